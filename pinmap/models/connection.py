from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
)
from sqlalchemy.sql import func

from pinmap.database import Base


CONNECTION_PENDING = "pending"
CONNECTION_ACCEPTED = "accepted"
CONNECTION_REJECTED = "rejected"


class Connection(Base):
    """
    Written by the connections service. The map only reads it.
    """
    __tablename__ = "connections"

    id = Column(Integer, primary_key=True, index=True)

    # Users involved
    from_user_id = Column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    to_user_id = Column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    # ------------------------------------
    # Connection state
    # ------------------------------------
    # pending | accepted | rejected
    status = Column(
        String,
        nullable=False,
        default=CONNECTION_PENDING,
        index=True,
    )

    # ------------------------------------
    # Timestamps
    # ------------------------------------
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "from_user_id != to_user_id",
            name="ck_connections_not_self",
        ),
        Index(
            "ix_connections_from_status",
            "from_user_id",
            "status",
        ),
        Index(
            "ix_connections_to_status",
            "to_user_id",
            "status",
        ),
    )
