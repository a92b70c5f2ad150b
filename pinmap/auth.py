from jose import jwt, JWTError
from fastapi import Header, HTTPException, Depends

from pinmap.config import settings
from pinmap.core.context import RequestContext, MAX_UTC_OFFSET_MINUTES
from pinmap.utils.time import utcnow


# ============================================================
# GET CURRENT USER (tokens are issued by the auth service)
# ============================================================
def get_current_user(authorization: str = Header(None)) -> dict:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing auth header")

    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid auth header")

    token = authorization.replace("Bearer ", "", 1)

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    if not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token")

    return payload  # contains sub + email


# ============================================================
# REQUEST CONTEXT (viewer + a single "now" per request)
# ============================================================
def get_request_context(
    current_user: dict = Depends(get_current_user),
    x_utc_offset: int = Header(0),
) -> RequestContext:
    if abs(x_utc_offset) > MAX_UTC_OFFSET_MINUTES:
        raise HTTPException(status_code=400, detail="Invalid X-UTC-Offset header")

    return RequestContext(
        viewer_id=current_user["sub"],
        now=utcnow(),
        utc_offset_minutes=x_utc_offset,
    )
