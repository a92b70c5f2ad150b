import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from pinmap.config import settings
from pinmap.core.errors import NotFoundError, ValidationError
from pinmap.core.retry import retry_once_on_contention
from pinmap.core.visibility import LEVEL_BEACON, LEVEL_DISCOVERABLE, effective_level
from pinmap.models.user import User
from pinmap.models.visibility_setting import (
    VisibilitySetting,
    VISIBILITY_LEVELS,
    DEFAULT_VISIBILITY_LEVEL,
)

logger = logging.getLogger(__name__)


def _require_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def get_visibility_level(db: Session, user_id: str, now: datetime) -> VisibilitySetting:
    """
    Current setting for `user_id`. Users who never chose a level get an
    unsaved default. An expired beacon is downgraded and saved.
    """
    _require_user(db, user_id)

    setting = db.query(VisibilitySetting).filter(VisibilitySetting.user_id == user_id).first()
    if not setting:
        return VisibilitySetting(user_id=user_id, level=DEFAULT_VISIBILITY_LEVEL)

    level = effective_level(setting.level, setting.beacon_expires_at, now)
    if level != setting.level:
        setting.level = LEVEL_DISCOVERABLE
        setting.beacon_expires_at = None
        setting.updated_at = now
        db.commit()
        db.refresh(setting)
        logger.info(f"Beacon expired for user {user_id}, reverted to {LEVEL_DISCOVERABLE}")

    return setting


@retry_once_on_contention
def set_visibility_level(
    db: Session,
    user_id: str,
    level: str,
    now: datetime,
    beacon_duration_minutes: Optional[int] = None,
) -> VisibilitySetting:
    if level not in VISIBILITY_LEVELS:
        raise ValidationError("Invalid visibility level")

    duration = beacon_duration_minutes or settings.BEACON_DEFAULT_MINUTES
    if level == LEVEL_BEACON and not settings.BEACON_MIN_MINUTES <= duration <= settings.BEACON_MAX_MINUTES:
        raise ValidationError(
            f"Beacon duration must be between {settings.BEACON_MIN_MINUTES} "
            f"and {settings.BEACON_MAX_MINUTES} minutes"
        )

    _require_user(db, user_id)

    setting = db.query(VisibilitySetting).filter(VisibilitySetting.user_id == user_id).first()
    if not setting:
        setting = VisibilitySetting(user_id=user_id)
        db.add(setting)

    if level == LEVEL_BEACON:
        setting.beacon_expires_at = now + timedelta(minutes=duration)
        setting.beacon_duration_minutes = duration
    else:
        setting.beacon_expires_at = None

    setting.level = level
    setting.updated_at = now

    db.commit()
    db.refresh(setting)

    if level == LEVEL_BEACON:
        logger.info(f"User {user_id} activated beacon for {setting.beacon_duration_minutes} minutes")
    else:
        logger.info(f"User {user_id} set visibility to {level}")

    return setting


def get_effective_levels(db: Session, user_ids: Iterable[str], now: datetime) -> dict[str, str]:
    """
    Read-only batch lookup for queries. Expired beacons are treated as
    discoverable here without writing the downgrade.
    """
    user_ids = set(user_ids)
    if not user_ids:
        return {}

    rows = db.query(VisibilitySetting).filter(VisibilitySetting.user_id.in_(user_ids)).all()
    found = {
        s.user_id: effective_level(s.level, s.beacon_expires_at, now)
        for s in rows
    }

    return {uid: found.get(uid, DEFAULT_VISIBILITY_LEVEL) for uid in user_ids}
