import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PinMapError(Exception):
    """
    Base class for errors a caller is allowed to see.
    """
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(PinMapError):
    status_code = 400


class CapacityConflict(PinMapError):
    status_code = 409


class NotFoundError(PinMapError):
    status_code = 404


class AuthorizationError(PinMapError):
    status_code = 403


# --------------------------------------------------
# HANDLERS
# --------------------------------------------------
async def pinmap_error_handler(request: Request, exc: PinMapError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(PinMapError, pinmap_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
