import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pinmap.database import Base, engine
from pinmap.config import settings
from pinmap.core.errors import register_exception_handlers

# Import models so SQLAlchemy registers tables
from pinmap.models import (
    user,
    connection,
    block,
    pin,
    visibility_setting,
)

# Routers
from pinmap.routers import (
    pin_router,
    visibility_router,
)

# -----------------------
# LOGGING
# -----------------------
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# -----------------------
# CREATE APP
# -----------------------
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Presence pins, visibility and map queries.",
    version="1.0.0",
)
logger.info(f"Starting {settings.PROJECT_NAME} ({settings.ENV})")

# -----------------------
# CORS
# -----------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # allow all during development
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------
# ERRORS
# -----------------------
register_exception_handlers(app)

# -----------------------
# DATABASE TABLES
# -----------------------
Base.metadata.create_all(bind=engine)

# -----------------------
# ROUTES
# -----------------------
app.include_router(pin_router.router)
app.include_router(visibility_router.router)

# -----------------------
# HEALTH CHECK
# -----------------------
@app.get("/")
def root():
    return {"message": "PinMap API is running!"}
