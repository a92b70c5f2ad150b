"""
Zoom-dependent clustering of disclosed pins.

Greedy and order-stable: pins are visited by id ascending; each
unvisited pin absorbs every other unvisited pin within the pixel radius
at this zoom. Groups of one stay individual pins. Same input, same
output.
"""
import math
from dataclasses import dataclass
from typing import Sequence

from pinmap.config import settings
from pinmap.core.geo import normalize_longitude, project_to_pixels, world_width_pixels

# A cluster of `count` pins gets the size of the last threshold it reaches
CLUSTER_COUNT_THRESHOLDS = (20, 50, 100, 500, 1000)
CLUSTER_SIZES_PX = (40, 48, 56, 64, 72, 80)


@dataclass(frozen=True)
class Cluster:
    id: str
    latitude: float
    longitude: float
    count: int
    size: int
    pin_ids: tuple


def cluster_size(count: int) -> int:
    bucket = sum(1 for threshold in CLUSTER_COUNT_THRESHOLDS if count >= threshold)
    return CLUSTER_SIZES_PX[bucket]


def should_cluster(zoom: float) -> bool:
    return zoom < settings.CLUSTER_MAX_ZOOM


def _centroid_longitude(anchor: float, longitudes) -> float:
    """
    Mean longitude, unwrapped around `anchor` so members on both sides
    of the antimeridian average to a point between them.
    """
    offsets = [normalize_longitude(lon - anchor) for lon in longitudes]
    mean = round(normalize_longitude(anchor + sum(offsets) / len(offsets)), 6)
    return mean - 360.0 if mean >= 180.0 else mean


def cluster_pins(pins: Sequence, zoom: float, radius_px: float = None):
    """
    Split `pins` (anything with id/latitude/longitude) into
    (unclustered pins, clusters). Above the zoom threshold every pin
    is returned as is.
    """
    if not should_cluster(zoom):
        return list(pins), []

    radius_px = radius_px if radius_px is not None else settings.CLUSTER_RADIUS_PX

    ordered = sorted(pins, key=lambda p: str(p.id))
    points = [project_to_pixels(p.latitude, p.longitude, zoom) for p in ordered]
    world_px = world_width_pixels(zoom)

    visited = [False] * len(ordered)
    singles = []
    clusters = []

    for i, seed in enumerate(ordered):
        if visited[i]:
            continue
        visited[i] = True

        members = [i]
        sx, sy = points[i]
        for j in range(i + 1, len(ordered)):
            if visited[j]:
                continue
            px, py = points[j]
            # The map wraps horizontally at the antimeridian
            dx = abs(px - sx)
            dx = min(dx, world_px - dx)
            if math.hypot(dx, py - sy) < radius_px:
                visited[j] = True
                members.append(j)

        if len(members) == 1:
            singles.append(seed)
            continue

        group = [ordered[m] for m in members]
        count = len(group)
        clusters.append(
            Cluster(
                id=f"cluster-{seed.id}",
                latitude=round(sum(p.latitude for p in group) / count, 6),
                longitude=_centroid_longitude(seed.longitude, [p.longitude for p in group]),
                count=count,
                size=cluster_size(count),
                pin_ids=tuple(str(p.id) for p in group),
            )
        )

    return singles, clusters
