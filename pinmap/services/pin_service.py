import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import or_, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pinmap.config import settings
from pinmap.core.errors import (
    AuthorizationError,
    CapacityConflict,
    NotFoundError,
    ValidationError,
)
from pinmap.core.lifecycle import expiry_cutoff, is_expired
from pinmap.core.retry import retry_once_on_contention
from pinmap.models.pin import Pin, PIN_TYPE_CURRENT, PIN_TYPE_FUTURE
from pinmap.models.user import User
from pinmap.utils.time import to_naive_utc

logger = logging.getLogger(__name__)

# Two drops this close are the same place
SAME_LOCATION_DECIMALS = 6


@dataclass
class CreateResult:
    pin: Pin
    already_exists: bool = False


# --------------------------------------------------
# VALIDATION
# --------------------------------------------------
def _validate_coordinates(latitude, longitude):
    if latitude is None or longitude is None:
        raise ValidationError("latitude and longitude are required")

    try:
        latitude = float(latitude)
        longitude = float(longitude)
    except (TypeError, ValueError):
        raise ValidationError("latitude and longitude must be numbers")

    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise ValidationError("latitude and longitude must be finite")
    if not -90 <= latitude <= 90:
        raise ValidationError("latitude must be between -90 and 90")
    if not -180 <= longitude <= 180:
        raise ValidationError("longitude must be between -180 and 180")

    return latitude, longitude


def _same_location(pin: Pin, latitude: float, longitude: float) -> bool:
    return (
        round(pin.latitude, SAME_LOCATION_DECIMALS) == round(latitude, SAME_LOCATION_DECIMALS)
        and round(pin.longitude, SAME_LOCATION_DECIMALS) == round(longitude, SAME_LOCATION_DECIMALS)
    )


def _not_expired_filter(now: datetime):
    cutoff = expiry_cutoff(now)
    return or_(
        and_(Pin.pin_type == PIN_TYPE_CURRENT, Pin.created_at > cutoff),
        and_(Pin.pin_type == PIN_TYPE_FUTURE, Pin.arrival_time > cutoff),
    )


def _expired_filter(now: datetime):
    cutoff = expiry_cutoff(now)
    return or_(
        and_(Pin.pin_type == PIN_TYPE_CURRENT, Pin.created_at <= cutoff),
        and_(Pin.pin_type == PIN_TYPE_FUTURE, Pin.arrival_time <= cutoff),
    )


def _purge_expired_for_owner(db: Session, owner_id: str, now: datetime):
    """
    Expired pins are eligible for hard deletion; clear the owner's
    before checking capacity so stale rows never block a new drop.
    """
    for pin in db.query(Pin).filter(Pin.owner_id == owner_id, _expired_filter(now)).all():
        db.delete(pin)
    db.flush()


# --------------------------------------------------
# CREATE / SCHEDULE
# --------------------------------------------------
def _existing_current_outcome(existing: Pin, latitude: float, longitude: float) -> CreateResult:
    if _same_location(existing, latitude, longitude):
        logger.info(f"User {existing.owner_id} already checked in at pin {existing.id}")
        return CreateResult(pin=existing, already_exists=True)

    raise CapacityConflict(
        "You already have a current pin. Delete it before dropping a new one."
    )


def _create_current(db: Session, owner_id: str, latitude: float, longitude: float,
                    description: Optional[str], now: datetime) -> CreateResult:
    existing = (
        db.query(Pin)
        .filter(Pin.owner_id == owner_id, Pin.pin_type == PIN_TYPE_CURRENT)
        .first()
    )
    if existing:
        return _existing_current_outcome(existing, latitude, longitude)

    pin = Pin(
        owner_id=owner_id,
        pin_type=PIN_TYPE_CURRENT,
        latitude=latitude,
        longitude=longitude,
        description=description,
        created_at=now,
    )
    db.add(pin)

    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent check-in from the same owner
        db.rollback()
        existing = (
            db.query(Pin)
            .filter(Pin.owner_id == owner_id, Pin.pin_type == PIN_TYPE_CURRENT)
            .first()
        )
        if not existing:
            raise
        return _existing_current_outcome(existing, latitude, longitude)

    db.refresh(pin)
    logger.info(f"User {owner_id} dropped current pin {pin.id}")
    return CreateResult(pin=pin)


def _create_future(db: Session, owner_id: str, latitude: float, longitude: float,
                   arrival_time: Optional[datetime], description: Optional[str],
                   now: datetime) -> CreateResult:
    if arrival_time is None:
        raise ValidationError("arrival_time is required for future pins")

    arrival_time = to_naive_utc(arrival_time)
    if arrival_time <= now:
        raise ValidationError("arrival_time must be in the future")

    # Lock the owner's future rows so two schedules can't both take the last slot
    scheduled = (
        db.query(Pin.id)
        .filter(Pin.owner_id == owner_id, Pin.pin_type == PIN_TYPE_FUTURE)
        .with_for_update()
        .all()
    )
    if len(scheduled) >= settings.MAX_FUTURE_PINS:
        logger.info(f"User {owner_id} rejected at future pin capacity")
        raise CapacityConflict(
            f"You can have at most {settings.MAX_FUTURE_PINS} future pins"
        )

    pin = Pin(
        owner_id=owner_id,
        pin_type=PIN_TYPE_FUTURE,
        latitude=latitude,
        longitude=longitude,
        description=description,
        arrival_time=arrival_time,
        created_at=now,
    )
    db.add(pin)
    db.commit()
    db.refresh(pin)

    logger.info(f"User {owner_id} scheduled future pin {pin.id} for {arrival_time.isoformat()}")
    return CreateResult(pin=pin)


@retry_once_on_contention
def create_or_schedule_pin(
    db: Session,
    owner_id: str,
    latitude: float,
    longitude: float,
    now: datetime,
    pin_type: str = PIN_TYPE_CURRENT,
    arrival_time: Optional[datetime] = None,
    description: Optional[str] = None,
) -> CreateResult:
    """
    Drop a current pin or schedule a future one.

    Re-dropping a current pin at the same spot is not an error: the
    existing pin comes back with already_exists=True.
    """
    latitude, longitude = _validate_coordinates(latitude, longitude)

    if pin_type not in (PIN_TYPE_CURRENT, PIN_TYPE_FUTURE):
        raise ValidationError("pin_type must be 'current' or 'future'")
    if pin_type == PIN_TYPE_CURRENT and arrival_time is not None:
        raise ValidationError("arrival_time is only allowed for future pins")

    owner = db.query(User).filter(User.id == owner_id).first()
    if not owner:
        raise NotFoundError("User not found")

    _purge_expired_for_owner(db, owner_id, now)

    if pin_type == PIN_TYPE_CURRENT:
        return _create_current(db, owner_id, latitude, longitude, description, now)

    return _create_future(db, owner_id, latitude, longitude, arrival_time, description, now)


# --------------------------------------------------
# DELETE
# --------------------------------------------------
@retry_once_on_contention
def delete_pin(db: Session, owner_id: str, pin_id: str, now: datetime):
    pin = db.query(Pin).filter(Pin.id == pin_id).first()
    if not pin or is_expired(pin, now):
        raise NotFoundError("Pin not found")

    if pin.owner_id != owner_id:
        raise AuthorizationError("Not authorised to delete this pin")

    db.delete(pin)
    db.commit()

    logger.info(f"User {owner_id} deleted pin {pin_id}")


# --------------------------------------------------
# READ
# --------------------------------------------------
def get_live_pin(db: Session, pin_id: str, now: datetime) -> Pin:
    pin = db.query(Pin).filter(Pin.id == pin_id).first()
    if not pin or is_expired(pin, now):
        raise NotFoundError("Pin not found")
    return pin


def list_own_pins(db: Session, owner_id: str, now: datetime) -> list[Pin]:
    """
    Every live pin the owner has: the current pin first, then future
    pins by arrival.
    """
    pins = (
        db.query(Pin)
        .filter(Pin.owner_id == owner_id, _not_expired_filter(now))
        .all()
    )

    return sorted(
        pins,
        key=lambda p: (
            p.pin_type != PIN_TYPE_CURRENT,
            p.arrival_time or p.created_at,
            p.created_at,
            p.id,
        ),
    )


def live_pins_query(db: Session, now: datetime):
    return db.query(Pin).filter(_not_expired_filter(now))


def expired_pins_query(db: Session, now: datetime):
    return db.query(Pin).filter(_expired_filter(now))
