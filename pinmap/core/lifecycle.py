"""
Pin lifecycle and decay.

The only place that turns pin timestamps into a status and an opacity.
Everything that shows a pin (viewport, incoming visitors, "my pins",
the reaper) imports these constants and `compute_lifecycle` rather than
redoing the arithmetic.

Timeline, in hours since the anchor (creation for current pins,
arrival for future pins):

    0 ........ 24 ............ 168 ............ 720 ......
    active     ghost            old_ghost        expired
    1.0        1.0 -> 0.3       0.3 -> 0.1       0.0

A future pin is `scheduled` until its arrival time, then
`recently_arrived` for a short grace window before joining the curve.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta

from pinmap.config import settings
from pinmap.models.pin import PIN_TYPE_FUTURE
from pinmap.utils.time import hours_between


STATUS_SCHEDULED = "scheduled"
STATUS_ACTIVE = "active"
STATUS_RECENTLY_ARRIVED = "recently_arrived"
STATUS_GHOST = "ghost"
STATUS_OLD_GHOST = "old_ghost"
STATUS_EXPIRED = "expired"

ACTIVE_HOURS = 24
GHOST_HOURS = 24 * 7
EXPIRY_HOURS = 24 * settings.PIN_RETENTION_DAYS
RECENTLY_ARRIVED_HOURS = settings.RECENTLY_ARRIVED_HOURS

GHOST_OPACITY_FLOOR = 0.3
OLD_GHOST_OPACITY_FLOOR = 0.1


@dataclass(frozen=True)
class Lifecycle:
    status: str
    opacity: float
    age_hours: float
    is_active: bool

    @property
    def is_expired(self) -> bool:
        return self.status == STATUS_EXPIRED


def lifecycle_anchor(pin) -> datetime:
    """
    The instant decay is measured from.
    """
    if pin.pin_type == PIN_TYPE_FUTURE and pin.arrival_time is not None:
        return pin.arrival_time
    return pin.created_at


def expiry_cutoff(now: datetime) -> datetime:
    """
    Pins anchored at or before this instant are expired.
    """
    return now - timedelta(hours=EXPIRY_HOURS)


def _lerp(start: float, end: float, fraction: float) -> float:
    fraction = min(max(fraction, 0.0), 1.0)
    return start + (end - start) * fraction


def decay_opacity(age_hours: float) -> float:
    """
    Monotonically non-increasing in age, always within [0, 1].
    """
    if age_hours < ACTIVE_HOURS:
        return 1.0
    if age_hours < GHOST_HOURS:
        fraction = (age_hours - ACTIVE_HOURS) / (GHOST_HOURS - ACTIVE_HOURS)
        return _lerp(1.0, GHOST_OPACITY_FLOOR, fraction)
    if age_hours < EXPIRY_HOURS:
        fraction = (age_hours - GHOST_HOURS) / (EXPIRY_HOURS - GHOST_HOURS)
        return _lerp(GHOST_OPACITY_FLOOR, OLD_GHOST_OPACITY_FLOOR, fraction)
    return 0.0


def _status_for_age(age_hours: float) -> str:
    if age_hours < ACTIVE_HOURS:
        return STATUS_ACTIVE
    if age_hours < GHOST_HOURS:
        return STATUS_GHOST
    if age_hours < EXPIRY_HOURS:
        return STATUS_OLD_GHOST
    return STATUS_EXPIRED


def compute_lifecycle(pin, now: datetime) -> Lifecycle:
    """
    Derive status, opacity, age and activity for `pin` as of `now`.

    Pure: reads `pin_type`, `created_at` and `arrival_time` only.
    """
    # Future pin still on its way
    if pin.pin_type == PIN_TYPE_FUTURE and pin.arrival_time is not None and now < pin.arrival_time:
        return Lifecycle(
            status=STATUS_SCHEDULED,
            opacity=1.0,
            age_hours=max(hours_between(pin.created_at, now), 0.0),
            is_active=True,
        )

    age_hours = max(hours_between(lifecycle_anchor(pin), now), 0.0)
    status = _status_for_age(age_hours)

    if pin.pin_type == PIN_TYPE_FUTURE and age_hours < RECENTLY_ARRIVED_HOURS:
        status = STATUS_RECENTLY_ARRIVED

    return Lifecycle(
        status=status,
        opacity=round(decay_opacity(age_hours), 4),
        age_hours=round(age_hours, 2),
        is_active=age_hours < ACTIVE_HOURS,
    )


def is_expired(pin, now: datetime) -> bool:
    return compute_lifecycle(pin, now).is_expired