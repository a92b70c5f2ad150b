"""
Geographic utility functions
"""
import math
from dataclasses import dataclass

TILE_SIZE = 256
MAX_MERCATOR_LAT = 85.05112878


@dataclass(frozen=True)
class Bounds:
    """
    Half-open viewport: south <= lat < north, west <= lon < east.

    When west > east the box crosses the 180th meridian.
    """
    north: float
    south: float
    east: float
    west: float

    @property
    def crosses_antimeridian(self) -> bool:
        return self.west > self.east

    def contains(self, lat: float, lon: float) -> bool:
        if not (self.south <= lat < self.north):
            return False
        if self.crosses_antimeridian:
            return lon >= self.west or lon < self.east
        return self.west <= lon < self.east


def project_to_pixels(lat: float, lon: float, zoom: float) -> tuple[float, float]:
    """
    Web Mercator world pixel coordinates at `zoom`, the same space map
    tiles are drawn in, so distances here are on-screen distances.
    """
    lat = max(min(lat, MAX_MERCATOR_LAT), -MAX_MERCATOR_LAT)
    scale = world_width_pixels(zoom)

    x = (lon + 180.0) / 360.0 * scale
    sin_lat = math.sin(math.radians(lat))
    y = (0.5 - math.log((1 + sin_lat) / (1 - sin_lat)) / (4 * math.pi)) * scale

    return x, y


def world_width_pixels(zoom: float) -> float:
    return TILE_SIZE * (2 ** zoom)


def normalize_longitude(lon: float) -> float:
    """
    Wrap a longitude into [-180, 180).
    """
    return (lon + 180.0) % 360.0 - 180.0


def snap_to_grid(value: float, cell: float) -> float:
    """
    Centre of the grid cell containing `value`. Deterministic for a
    given input and cell size; the result is rounded so equal inputs
    always produce bit-identical floats.
    """
    index = math.floor(value / cell)
    return round(index * cell + cell / 2.0, 6)
