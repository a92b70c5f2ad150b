from typing import Iterable

from sqlalchemy import or_, and_
from sqlalchemy.orm import Session

from pinmap.models.block import Block
from pinmap.models.connection import (
    Connection,
    CONNECTION_ACCEPTED,
    CONNECTION_PENDING,
)

STATUS_NONE = "none"
STATUS_PENDING = "pending"
STATUS_CONNECTED = "connected"


def _between(user_a_id: str, user_b_id: str):
    return or_(
        and_(Connection.from_user_id == user_a_id, Connection.to_user_id == user_b_id),
        and_(Connection.from_user_id == user_b_id, Connection.to_user_id == user_a_id),
    )


def _status_from_rows(rows) -> str:
    statuses = {c.status for c in rows}
    if CONNECTION_ACCEPTED in statuses:
        return STATUS_CONNECTED
    if CONNECTION_PENDING in statuses:
        return STATUS_PENDING
    return STATUS_NONE


def get_connection_status(db: Session, viewer_id: str, owner_id: str) -> str:
    """
    none | pending | connected, in either direction.
    Rejected requests count as none.
    """
    if viewer_id == owner_id:
        return STATUS_NONE

    rows = db.query(Connection).filter(_between(viewer_id, owner_id)).all()
    return _status_from_rows(rows)


def get_connection_statuses(db: Session, viewer_id: str, owner_ids: Iterable[str]) -> dict[str, str]:
    """
    Batch form of get_connection_status for a result page.
    """
    owner_ids = {o for o in owner_ids if o != viewer_id}
    if not owner_ids:
        return {}

    rows = (
        db.query(Connection)
        .filter(
            or_(
                and_(Connection.from_user_id == viewer_id, Connection.to_user_id.in_(owner_ids)),
                and_(Connection.to_user_id == viewer_id, Connection.from_user_id.in_(owner_ids)),
            )
        )
        .all()
    )

    by_owner: dict[str, list] = {}
    for c in rows:
        other = c.to_user_id if c.from_user_id == viewer_id else c.from_user_id
        by_owner.setdefault(other, []).append(c)

    return {o: _status_from_rows(by_owner.get(o, [])) for o in owner_ids}


def is_blocked(db: Session, user_a_id: str, user_b_id: str) -> bool:
    """
    Returns True if either user has blocked the other.
    """
    return (
        db.query(Block)
        .filter(
            (
                (Block.blocker_user_id == user_a_id)
                & (Block.blocked_user_id == user_b_id)
            )
            | (
                (Block.blocker_user_id == user_b_id)
                & (Block.blocked_user_id == user_a_id)
            )
        )
        .first()
        is not None
    )


def blocked_user_ids(db: Session, viewer_id: str, owner_ids: Iterable[str]) -> set[str]:
    owner_ids = set(owner_ids)
    if not owner_ids:
        return set()

    blocks = (
        db.query(Block)
        .filter(
            (
                (Block.blocker_user_id == viewer_id)
                & (Block.blocked_user_id.in_(owner_ids))
            )
            | (
                (Block.blocked_user_id == viewer_id)
                & (Block.blocker_user_id.in_(owner_ids))
            )
        )
        .all()
    )

    return {
        b.blocked_user_id if b.blocker_user_id == viewer_id else b.blocker_user_id
        for b in blocks
    }
