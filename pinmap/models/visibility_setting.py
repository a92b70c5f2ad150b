from datetime import datetime

from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from pinmap.database import Base


# Ordered from most private to most public
VISIBILITY_LEVELS = ("ghost", "circles", "fuzzy", "social", "discoverable", "beacon")
DEFAULT_VISIBILITY_LEVEL = "circles"


class VisibilitySetting(Base):
    __tablename__ = "visibility_settings"

    user_id = Column(
        String(36),
        ForeignKey("users.id"),
        primary_key=True,
    )

    level = Column(String, nullable=False, default=DEFAULT_VISIBILITY_LEVEL)

    # Beacon mode only
    beacon_expires_at = Column(DateTime, nullable=True)
    beacon_duration_minutes = Column(Integer, nullable=True)

    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="visibility_setting")

    __table_args__ = (
        CheckConstraint(
            "level IN ('ghost', 'circles', 'fuzzy', 'social', 'discoverable', 'beacon')",
            name="ck_visibility_level",
        ),
    )
