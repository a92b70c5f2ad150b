"""
Map reads: viewport, single pin, own pins and incoming visitors.

Every read goes through the same pipeline: candidate pins from the
store -> visibility policy -> lifecycle/countdown annotation. Hidden
pins are dropped before anything is serialised.
"""
import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy import or_, and_
from sqlalchemy.orm import Session

from pinmap.config import settings
from pinmap.core import countdown as countdown_mod
from pinmap.core.clustering import cluster_pins, should_cluster
from pinmap.core.connections import (
    STATUS_CONNECTED,
    get_connection_status,
    get_connection_statuses,
    blocked_user_ids,
    is_blocked,
)
from pinmap.core.context import RequestContext
from pinmap.core.errors import NotFoundError, ValidationError
from pinmap.core.geo import Bounds
from pinmap.core.lifecycle import (
    STATUS_SCHEDULED,
    compute_lifecycle,
    lifecycle_anchor,
)
from pinmap.core.profiles import ProfileSummary, get_profile_summaries, get_viewer_profile_summary
from pinmap.core.retry import retry_once_on_contention
from pinmap.core.visibility import PRECISION_EXACT, Disclosure, disclose
from pinmap.models.pin import Pin, PinLike, PIN_TYPE_FUTURE
from pinmap.schemas.pin_schema import (
    ClusterOut,
    CountdownOut,
    PinOut,
    ProfilePreview,
    VisitorOut,
    VisitorProfile,
)
from pinmap.services import pin_service
from pinmap.services.visibility_service import get_effective_levels

logger = logging.getLogger(__name__)

AGE_FILTERS = {
    "all": None,
    "24h": timedelta(hours=24),
    "week": timedelta(days=7),
}


# --------------------------------------------------
# VALIDATION
# --------------------------------------------------
def validate_bounds(bounds: Bounds):
    for name in ("north", "south"):
        value = getattr(bounds, name)
        if not -90 <= value <= 90:
            raise ValidationError(f"{name} must be between -90 and 90")
    for name in ("east", "west"):
        value = getattr(bounds, name)
        if not -180 <= value <= 180:
            raise ValidationError(f"{name} must be between -180 and 180")
    if bounds.south >= bounds.north:
        raise ValidationError("south must be less than north")


def _bounds_filter(bounds: Bounds):
    lat_filter = and_(Pin.latitude >= bounds.south, Pin.latitude < bounds.north)

    if bounds.crosses_antimeridian:
        lon_filter = or_(Pin.longitude >= bounds.west, Pin.longitude < bounds.east)
    else:
        lon_filter = and_(Pin.longitude >= bounds.west, Pin.longitude < bounds.east)

    return and_(lat_filter, lon_filter)


# --------------------------------------------------
# PROJECTION
# --------------------------------------------------
def _disclose_all(db: Session, ctx: RequestContext, pins: list[Pin]):
    """
    Run every candidate through the policy with batched lookups.
    Hidden pins are dropped here. Returns the disclosed pins and the
    connection statuses looked up for their owners.
    """
    owner_ids = {p.owner_id for p in pins}
    levels = get_effective_levels(db, owner_ids, ctx.now)
    statuses = get_connection_statuses(db, ctx.viewer_id, owner_ids)
    blocked = blocked_user_ids(db, ctx.viewer_id, owner_ids - {ctx.viewer_id})

    disclosed = []
    for pin in pins:
        disclosure = disclose(
            pin,
            ctx.viewer_id,
            levels[pin.owner_id],
            statuses.get(pin.owner_id, "none"),
            blocked=pin.owner_id in blocked,
        )
        if disclosure is not None:
            disclosed.append((pin, disclosure))

    return disclosed, statuses


def _countdown_out(pin: Pin, ctx: RequestContext) -> Optional[CountdownOut]:
    if pin.pin_type != PIN_TYPE_FUTURE or pin.arrival_time is None:
        return None
    return CountdownOut.model_validate(countdown_mod.classify(pin.arrival_time, ctx.now))


def build_pin_out(
    pin: Pin,
    disclosure: Disclosure,
    ctx: RequestContext,
    owner: ProfileSummary,
    out_cls=PinOut,
    owner_preview=None,
):
    lifecycle = compute_lifecycle(pin, ctx.now)

    time_label = None
    if lifecycle.status != STATUS_SCHEDULED:
        time_label = countdown_mod.time_since(lifecycle_anchor(pin), ctx.now)

    if owner_preview is None:
        owner_preview = ProfilePreview(id=owner.id, name=owner.name, avatar=owner.avatar)

    return out_cls(
        id=pin.id,
        owner_id=pin.owner_id,
        pin_type=pin.pin_type,
        latitude=disclosure.latitude,
        longitude=disclosure.longitude,
        precision=disclosure.precision,
        description=pin.description,
        arrival_time=pin.arrival_time,
        created_at=pin.created_at,
        status=lifecycle.status,
        opacity=lifecycle.opacity,
        age_hours=lifecycle.age_hours,
        is_active=lifecycle.is_active,
        is_boosted=disclosure.is_boosted,
        is_own=disclosure.is_owner,
        likes_count=pin.likes_count or 0,
        time_label=time_label,
        countdown=_countdown_out(pin, ctx),
        owner=owner_preview,
    )


def _annotate(db: Session, ctx: RequestContext, disclosed: list[tuple[Pin, Disclosure]]) -> list[PinOut]:
    owners = get_profile_summaries(db, {p.owner_id for p, _ in disclosed})
    return [
        build_pin_out(pin, disclosure, ctx, owners[pin.owner_id])
        for pin, disclosure in disclosed
    ]


def _rank(disclosed: list[tuple[Pin, Disclosure]]) -> list[tuple[Pin, Disclosure]]:
    """
    Beacons first, then newest, then id. Stable sorts applied from the
    least significant key up.
    """
    ranked = sorted(disclosed, key=lambda item: item[0].id)
    ranked.sort(key=lambda item: item[0].created_at, reverse=True)
    ranked.sort(key=lambda item: not item[1].is_boosted)
    return ranked


# --------------------------------------------------
# VIEWPORT
# --------------------------------------------------
def query_viewport(
    db: Session,
    ctx: RequestContext,
    bounds: Bounds,
    zoom: float,
    mode: Optional[str] = None,
    age_filter: str = "all",
    cluster: bool = False,
) -> dict:
    validate_bounds(bounds)
    if age_filter not in AGE_FILTERS:
        raise ValidationError("age_filter must be one of: all, 24h, week")

    query = pin_service.live_pins_query(db, ctx.now).filter(_bounds_filter(bounds))

    max_age = AGE_FILTERS[age_filter]
    if max_age is not None:
        query = query.filter(Pin.created_at >= ctx.now - max_age)

    candidates = [
        p for p in query.all()
        if bounds.contains(p.latitude, p.longitude)
        and not compute_lifecycle(p, ctx.now).is_expired
    ]

    disclosed, _ = _disclose_all(db, ctx, candidates)
    logger.debug(
        f"Viewport for {ctx.viewer_id}: {len(candidates)} candidates, {len(disclosed)} disclosed"
    )

    if mode:
        wanted = mode.strip().lower()
        owners = get_profile_summaries(db, {p.owner_id for p, _ in disclosed})
        disclosed = [
            (pin, d) for pin, d in disclosed
            if d.is_owner or wanted in {m.lower() for m in owners[pin.owner_id].looking_for}
        ]

    disclosed = _rank(disclosed)

    # Boosted pins are exempt from the page limit
    boosted = [item for item in disclosed if item[1].is_boosted]
    regular = [item for item in disclosed if not item[1].is_boosted]
    disclosed = boosted + regular[:settings.VIEWPORT_RESULT_LIMIT]

    pins = _annotate(db, ctx, disclosed)

    if not (cluster and should_cluster(zoom)):
        return {"total": len(pins), "clustered": False, "pins": pins, "clusters": []}

    singles, clusters = cluster_pins(pins, zoom)
    single_ids = {p.id for p in singles}

    return {
        "total": len(pins),
        "clustered": True,
        "pins": [p for p in pins if p.id in single_ids],
        "clusters": [ClusterOut.model_validate(c) for c in clusters],
    }


# --------------------------------------------------
# SINGLE PIN
# --------------------------------------------------
def _disclose_one(db: Session, ctx: RequestContext, pin: Pin) -> Disclosure:
    level = get_effective_levels(db, {pin.owner_id}, ctx.now)[pin.owner_id]
    disclosure = disclose(
        pin,
        ctx.viewer_id,
        level,
        get_connection_status(db, ctx.viewer_id, pin.owner_id),
        blocked=pin.owner_id != ctx.viewer_id and is_blocked(db, ctx.viewer_id, pin.owner_id),
    )
    if disclosure is None:
        # Same answer as a missing pin
        raise NotFoundError("Pin not found")
    return disclosure


def get_pin(db: Session, ctx: RequestContext, pin_id: str) -> PinOut:
    pin = pin_service.get_live_pin(db, pin_id, ctx.now)
    disclosure = _disclose_one(db, ctx, pin)
    return build_pin_out(pin, disclosure, ctx, get_viewer_profile_summary(db, pin.owner_id))


@retry_once_on_contention
def toggle_like(db: Session, ctx: RequestContext, pin_id: str) -> dict:
    pin = pin_service.get_live_pin(db, pin_id, ctx.now)
    _disclose_one(db, ctx, pin)

    existing = (
        db.query(PinLike)
        .filter(PinLike.pin_id == pin.id, PinLike.user_id == ctx.viewer_id)
        .first()
    )

    if existing:
        db.delete(existing)
        pin.likes_count = max((pin.likes_count or 0) - 1, 0)
        liked = False
    else:
        db.add(PinLike(pin_id=pin.id, user_id=ctx.viewer_id, created_at=ctx.now))
        pin.likes_count = (pin.likes_count or 0) + 1
        liked = True

    db.commit()
    db.refresh(pin)

    return {"liked": liked, "likes_count": pin.likes_count}


# --------------------------------------------------
# MY PINS
# --------------------------------------------------
def own_pin_out(pin: Pin, ctx: RequestContext, owner: ProfileSummary) -> PinOut:
    """
    The owner always sees their own pin at full precision.
    """
    own = Disclosure(
        latitude=pin.latitude,
        longitude=pin.longitude,
        precision=PRECISION_EXACT,
        is_owner=True,
    )
    return build_pin_out(pin, own, ctx, owner)


def list_own_pins(db: Session, ctx: RequestContext) -> list[PinOut]:
    pins = pin_service.list_own_pins(db, ctx.viewer_id, ctx.now)
    owner = get_viewer_profile_summary(db, ctx.viewer_id)

    return [own_pin_out(pin, ctx, owner) for pin in pins]


# --------------------------------------------------
# INCOMING VISITORS
# --------------------------------------------------
def _visitor_sort_key(visitor: VisitorOut):
    return (visitor.arrival_time, visitor.created_at, visitor.id)


def query_incoming(
    db: Session,
    ctx: RequestContext,
    bounds: Bounds,
    horizon_days: Optional[int] = None,
) -> dict:
    """
    Future pins arriving in the viewport within the horizon, bucketed by
    the viewer's calendar: today, tomorrow, and the rest of the window.
    """
    validate_bounds(bounds)

    if horizon_days is None:
        horizon_days = settings.INCOMING_DEFAULT_DAYS
    if not 1 <= horizon_days <= settings.INCOMING_MAX_DAYS:
        raise ValidationError(f"days must be between 1 and {settings.INCOMING_MAX_DAYS}")

    horizon_end = ctx.now + timedelta(days=horizon_days)

    candidates = (
        db.query(Pin)
        .filter(
            Pin.pin_type == PIN_TYPE_FUTURE,
            Pin.arrival_time >= ctx.now,
            Pin.arrival_time <= horizon_end,
            _bounds_filter(bounds),
        )
        .all()
    )
    candidates = [p for p in candidates if bounds.contains(p.latitude, p.longitude)]

    disclosed, statuses = _disclose_all(db, ctx, candidates)
    owners = get_profile_summaries(db, {p.owner_id for p, _ in disclosed})

    today = ctx.today
    tomorrow = today + timedelta(days=1)
    grouped = {"today": [], "tomorrow": [], "this_week": []}

    for pin, disclosure in disclosed:
        owner = owners[pin.owner_id]
        visitor = build_pin_out(
            pin,
            disclosure,
            ctx,
            owner,
            out_cls=VisitorOut,
            owner_preview=VisitorProfile(
                id=owner.id,
                name=owner.name,
                avatar=owner.avatar,
                bio=owner.bio,
                home_location=owner.home_location,
                interests=owner.interests,
                looking_for=owner.looking_for,
                is_connected=statuses.get(pin.owner_id) == STATUS_CONNECTED,
            ),
        )

        arrival_date = ctx.local_date(pin.arrival_time)
        if arrival_date == today:
            grouped["today"].append(visitor)
        elif arrival_date == tomorrow:
            grouped["tomorrow"].append(visitor)
        else:
            grouped["this_week"].append(visitor)

    for bucket in grouped.values():
        bucket.sort(key=_visitor_sort_key)

    return {"total": sum(len(b) for b in grouped.values()), **grouped}
