"""
Visibility policy: who may see a pin, and how precisely.

`disclose` never touches the stored pin. It returns a projection with
the coordinates the viewer is allowed to see, or None when the pin must
be hidden (callers drop it; non-owners never learn it exists).
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pinmap.config import settings
from pinmap.core.connections import STATUS_CONNECTED
from pinmap.core.geo import snap_to_grid
from pinmap.models.visibility_setting import DEFAULT_VISIBILITY_LEVEL

LEVEL_GHOST = "ghost"
LEVEL_CIRCLES = "circles"
LEVEL_FUZZY = "fuzzy"
LEVEL_SOCIAL = "social"
LEVEL_DISCOVERABLE = "discoverable"
LEVEL_BEACON = "beacon"

PRECISION_EXACT = "exact"
PRECISION_APPROXIMATE = "approximate"


@dataclass(frozen=True)
class Disclosure:
    latitude: float
    longitude: float
    precision: str
    is_boosted: bool = False
    is_owner: bool = False


def fuzz_coordinates(latitude: float, longitude: float, cell: Optional[float] = None) -> tuple[float, float]:
    """
    Snap a point to the centre of its grid cell.
    Same point, same cell size -> same output, every time.
    """
    cell = cell or settings.FUZZY_GRID_DEGREES
    return snap_to_grid(latitude, cell), snap_to_grid(longitude, cell)


def effective_level(level: Optional[str], beacon_expires_at: Optional[datetime], now: datetime) -> str:
    """
    The level the policy should apply right now.
    An expired beacon behaves as discoverable.
    """
    if not level:
        return DEFAULT_VISIBILITY_LEVEL
    if level == LEVEL_BEACON and beacon_expires_at is not None and now >= beacon_expires_at:
        return LEVEL_DISCOVERABLE
    return level


def _exact(pin, boosted: bool = False) -> Disclosure:
    return Disclosure(
        latitude=pin.latitude,
        longitude=pin.longitude,
        precision=PRECISION_EXACT,
        is_boosted=boosted,
    )


def _approximate(pin) -> Disclosure:
    lat, lon = fuzz_coordinates(pin.latitude, pin.longitude)
    return Disclosure(latitude=lat, longitude=lon, precision=PRECISION_APPROXIMATE)


def disclose(
    pin,
    viewer_id: str,
    owner_level: str,
    connection_status: str,
    blocked: bool = False,
) -> Optional[Disclosure]:
    # Owner
    if pin.owner_id == viewer_id:
        return Disclosure(
            latitude=pin.latitude,
            longitude=pin.longitude,
            precision=PRECISION_EXACT,
            is_boosted=owner_level == LEVEL_BEACON,
            is_owner=True,
        )

    # Blocks override every level
    if blocked:
        return None

    connected = connection_status == STATUS_CONNECTED

    if owner_level == LEVEL_GHOST:
        return None

    if owner_level == LEVEL_CIRCLES:
        return _exact(pin) if connected else None

    if owner_level == LEVEL_FUZZY:
        return _approximate(pin)

    if owner_level == LEVEL_SOCIAL:
        return _exact(pin) if connected else _approximate(pin)

    if owner_level == LEVEL_DISCOVERABLE:
        return _exact(pin)

    if owner_level == LEVEL_BEACON:
        return _exact(pin, boosted=True)

    # Unknown level: fail closed
    return None
