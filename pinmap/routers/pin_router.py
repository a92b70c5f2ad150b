from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from pinmap.auth import get_request_context
from pinmap.core.context import RequestContext
from pinmap.core.geo import Bounds
from pinmap.database import get_db
from pinmap.schemas.pin_schema import (
    IncomingOut,
    LikeOut,
    PinCreate,
    PinCreateOut,
    PinOut,
    ViewportOut,
)
from pinmap.services import pin_service, query_service
from pinmap.core.profiles import get_viewer_profile_summary


router = APIRouter(prefix="/pins", tags=["Pins"])


# --------------------------------------------------
# DROP / SCHEDULE PIN
# --------------------------------------------------
@router.post("", response_model=PinCreateOut, status_code=201)
def create_pin(
    payload: PinCreate,
    response: Response,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    result = pin_service.create_or_schedule_pin(
        db,
        owner_id=ctx.viewer_id,
        latitude=payload.latitude,
        longitude=payload.longitude,
        now=ctx.now,
        pin_type=payload.pin_type,
        arrival_time=payload.arrival_time,
        description=payload.description,
    )

    # Re-check-in at the same spot is a success, not a new resource
    if result.already_exists:
        response.status_code = 200

    owner = get_viewer_profile_summary(db, ctx.viewer_id)

    return {
        "already_exists": result.already_exists,
        "pin": query_service.own_pin_out(result.pin, ctx, owner),
    }


# --------------------------------------------------
# VIEWPORT
# --------------------------------------------------
@router.get("", response_model=ViewportOut)
def get_viewport_pins(
    north: float = Query(...),
    south: float = Query(...),
    east: float = Query(...),
    west: float = Query(...),
    zoom: float = Query(12, ge=0, le=22),
    mode: Optional[str] = None,
    age_filter: Literal["all", "24h", "week"] = "all",
    cluster: bool = False,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return query_service.query_viewport(
        db,
        ctx,
        Bounds(north=north, south=south, east=east, west=west),
        zoom=zoom,
        mode=mode,
        age_filter=age_filter,
        cluster=cluster,
    )


# --------------------------------------------------
# MY PINS
# --------------------------------------------------
@router.get("/mine", response_model=List[PinOut])
def get_my_pins(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return query_service.list_own_pins(db, ctx)


# --------------------------------------------------
# INCOMING VISITORS
# --------------------------------------------------
@router.get("/incoming", response_model=IncomingOut)
def get_incoming_visitors(
    north: float = Query(...),
    south: float = Query(...),
    east: float = Query(...),
    west: float = Query(...),
    days: Optional[int] = None,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return query_service.query_incoming(
        db,
        ctx,
        Bounds(north=north, south=south, east=east, west=west),
        horizon_days=days,
    )


# --------------------------------------------------
# SINGLE PIN
# --------------------------------------------------
@router.get("/{pin_id}", response_model=PinOut)
def get_pin(
    pin_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return query_service.get_pin(db, ctx, pin_id)


# --------------------------------------------------
# LIKE / UNLIKE
# --------------------------------------------------
@router.post("/{pin_id}/like", response_model=LikeOut)
def like_pin(
    pin_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return query_service.toggle_like(db, ctx, pin_id)


# --------------------------------------------------
# DELETE PIN
# --------------------------------------------------
@router.delete("/{pin_id}", status_code=204)
def delete_pin(
    pin_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    pin_service.delete_pin(db, ctx.viewer_id, pin_id, ctx.now)
    return Response(status_code=204)
