import uuid

from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
    text,
)
from sqlalchemy.orm import relationship

from pinmap.database import Base


PIN_TYPE_CURRENT = "current"
PIN_TYPE_FUTURE = "future"


class Pin(Base):
    """
    A location claim. Coordinates are always stored at full precision;
    status, opacity and countdown are derived at read time.
    """
    __tablename__ = "pins"

    id = Column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        index=True,
    )

    owner_id = Column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    # current | future
    pin_type = Column(String, nullable=False, default=PIN_TYPE_CURRENT)

    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    description = Column(String(500), nullable=True)

    # Only set for future pins
    arrival_time = Column(DateTime, nullable=True, index=True)

    # Set by the pin store, never updated
    created_at = Column(DateTime, nullable=False, index=True)

    likes_count = Column(Integer, nullable=False, default=0)

    # -------------------------------------------------------
    # RELATIONSHIPS
    # -------------------------------------------------------
    owner = relationship("User", back_populates="pins")

    likes = relationship(
        "PinLike",
        back_populates="pin",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint(
            "pin_type IN ('current', 'future')",
            name="ck_pins_type",
        ),
        CheckConstraint(
            "(pin_type = 'future' AND arrival_time IS NOT NULL) "
            "OR (pin_type = 'current' AND arrival_time IS NULL)",
            name="ck_pins_arrival_matches_type",
        ),
        # One current pin per owner. Concurrent check-ins race on this.
        Index(
            "uq_pins_one_current_per_owner",
            "owner_id",
            unique=True,
            sqlite_where=text("pin_type = 'current'"),
            postgresql_where=text("pin_type = 'current'"),
        ),
        Index("ix_pins_lat_lon", "latitude", "longitude"),
    )


class PinLike(Base):
    __tablename__ = "pin_likes"

    pin_id = Column(
        String(36),
        ForeignKey("pins.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id = Column(
        String(36),
        ForeignKey("users.id"),
        primary_key=True,
    )
    created_at = Column(DateTime, nullable=False)

    pin = relationship("Pin", back_populates="likes")
