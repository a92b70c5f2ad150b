import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.orm import relationship

from pinmap.database import Base


class User(Base):
    """
    Read-only mirror of the profile service's user record.
    Only the fields the map needs for display and mode filtering live here.
    """
    __tablename__ = "users"

    # Matches the JWT "sub" claim issued by the auth service
    id = Column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        index=True
    )

    name = Column(String, nullable=True)
    avatar = Column(String, nullable=True)
    bio = Column(String, nullable=True)
    home_location = Column(String, nullable=True)

    # Lists of short tags, e.g. ["hiking", "coffee"] / ["friends", "dating"]
    interests = Column(JSON, nullable=False, default=list)
    looking_for = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)

    pins = relationship(
        "Pin",
        back_populates="owner",
        cascade="all, delete-orphan",
    )

    visibility_setting = relationship(
        "VisibilitySetting",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
