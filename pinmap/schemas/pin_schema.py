from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime


# --------------------------------------------------
# OWNER PREVIEW (embedded in every pin)
# --------------------------------------------------
class ProfilePreview(BaseModel):
    id: str
    name: Optional[str] = None
    avatar: Optional[str] = None


class VisitorProfile(ProfilePreview):
    bio: Optional[str] = None
    home_location: Optional[str] = None
    interests: List[str] = []
    looking_for: List[str] = []
    is_connected: bool = False


# --------------------------------------------------
# CREATE PIN
# --------------------------------------------------
class PinCreate(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    pin_type: Literal["current", "future"] = "current"
    arrival_time: Optional[datetime] = None
    description: Optional[str] = Field(None, max_length=500)


# --------------------------------------------------
# COUNTDOWN
# --------------------------------------------------
class CountdownOut(BaseModel):
    text: str
    urgency: Literal["imminent", "soon", "upcoming", "later"]
    days: int
    hours: int
    minutes: int
    total_hours: float
    color: str
    arrived: bool

    class Config:
        from_attributes = True


# --------------------------------------------------
# PIN OUT (viewer-specific projection)
# --------------------------------------------------
class PinOut(BaseModel):
    id: str
    owner_id: str
    pin_type: str

    # Disclosed coordinates; approximate when precision == "approximate"
    latitude: float
    longitude: float
    precision: Literal["exact", "approximate"]

    description: Optional[str] = None
    arrival_time: Optional[datetime] = None
    created_at: datetime

    status: str
    opacity: float
    age_hours: float
    is_active: bool
    is_boosted: bool = False
    is_own: bool = False
    likes_count: int = 0

    time_label: Optional[str] = None
    countdown: Optional[CountdownOut] = None

    owner: ProfilePreview


class VisitorOut(PinOut):
    owner: VisitorProfile


class PinCreateOut(BaseModel):
    already_exists: bool = False
    pin: PinOut


# --------------------------------------------------
# VIEWPORT
# --------------------------------------------------
class ClusterOut(BaseModel):
    id: str
    latitude: float
    longitude: float
    count: int
    size: int
    pin_ids: List[str]

    class Config:
        from_attributes = True


class ViewportOut(BaseModel):
    total: int
    clustered: bool = False
    pins: List[PinOut]
    clusters: List[ClusterOut] = []


# --------------------------------------------------
# INCOMING VISITORS
# --------------------------------------------------
class IncomingOut(BaseModel):
    total: int
    today: List[VisitorOut]
    tomorrow: List[VisitorOut]
    this_week: List[VisitorOut]


# --------------------------------------------------
# LIKES
# --------------------------------------------------
class LikeOut(BaseModel):
    liked: bool
    likes_count: int
