from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pinmap.auth import get_request_context
from pinmap.core.context import RequestContext
from pinmap.database import get_db
from pinmap.schemas.visibility_schema import VisibilityOut, VisibilityUpdate
from pinmap.services import visibility_service


router = APIRouter(prefix="/visibility", tags=["Visibility"])


# --------------------------------------------------
# MY VISIBILITY LEVEL
# --------------------------------------------------
@router.get("", response_model=VisibilityOut)
def get_visibility(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return visibility_service.get_visibility_level(db, ctx.viewer_id, ctx.now)


# --------------------------------------------------
# UPDATE (takes effect on the next map query)
# --------------------------------------------------
@router.put("", response_model=VisibilityOut)
def update_visibility(
    payload: VisibilityUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return visibility_service.set_visibility_level(
        db,
        ctx.viewer_id,
        payload.level,
        ctx.now,
        beacon_duration_minutes=payload.beacon_duration_minutes,
    )
