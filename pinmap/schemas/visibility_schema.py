from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime


VisibilityLevel = Literal["ghost", "circles", "fuzzy", "social", "discoverable", "beacon"]


class VisibilityUpdate(BaseModel):
    level: VisibilityLevel
    # Beacon only; defaults to 60 minutes
    beacon_duration_minutes: Optional[int] = Field(None, ge=1)


class VisibilityOut(BaseModel):
    level: VisibilityLevel
    beacon_expires_at: Optional[datetime] = None
    beacon_duration_minutes: Optional[int] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
