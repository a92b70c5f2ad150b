# pinmap/models/block.py
from sqlalchemy import Column, String, DateTime, ForeignKey
from datetime import datetime
from pinmap.database import Base

class Block(Base):
    __tablename__ = "blocks"

    blocker_user_id = Column(
        String(36),
        ForeignKey("users.id"),
        primary_key=True,
    )

    blocked_user_id = Column(
        String(36),
        ForeignKey("users.id"),
        primary_key=True,
    )

    created_at = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )
