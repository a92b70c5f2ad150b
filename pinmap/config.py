import os
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


class Settings:
    # -------------------------------------------------------
    # Project
    # -------------------------------------------------------
    PROJECT_NAME: str = "PinMap API"
    ENV: str = os.getenv("ENV", "dev")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # -------------------------------------------------------
    # Database
    # -------------------------------------------------------
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./pinmap.db"
    )

    # Render uses postgres:// but SQLAlchemy needs postgresql://
    if DATABASE_URL.startswith("postgres://"):
        DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

    # -------------------------------------------------------
    # Authentication / JWT (tokens are issued elsewhere)
    # -------------------------------------------------------
    JWT_SECRET: str = os.getenv(
        "JWT_SECRET",
        "supersecretlocalkey123"   # Only used for local dev
    )
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_AUDIENCE: str = os.getenv("JWT_AUDIENCE", "authenticated")

    # -------------------------------------------------------
    # Pin store
    # -------------------------------------------------------
    MAX_FUTURE_PINS: int = int(os.getenv("MAX_FUTURE_PINS", 5))
    PIN_RETENTION_DAYS: int = int(os.getenv("PIN_RETENTION_DAYS", 30))
    RECENTLY_ARRIVED_HOURS: float = float(os.getenv("RECENTLY_ARRIVED_HOURS", 3))

    # -------------------------------------------------------
    # Visibility
    # -------------------------------------------------------
    # ~330m cells at the equator
    FUZZY_GRID_DEGREES: float = float(os.getenv("FUZZY_GRID_DEGREES", 0.003))

    BEACON_DEFAULT_MINUTES: int = int(os.getenv("BEACON_DEFAULT_MINUTES", 60))
    BEACON_MIN_MINUTES: int = int(os.getenv("BEACON_MIN_MINUTES", 15))
    BEACON_MAX_MINUTES: int = int(os.getenv("BEACON_MAX_MINUTES", 480))

    # -------------------------------------------------------
    # Map queries
    # -------------------------------------------------------
    CLUSTER_RADIUS_PX: float = float(os.getenv("CLUSTER_RADIUS_PX", 80))
    CLUSTER_MAX_ZOOM: int = int(os.getenv("CLUSTER_MAX_ZOOM", 16))
    VIEWPORT_RESULT_LIMIT: int = int(os.getenv("VIEWPORT_RESULT_LIMIT", 200))

    INCOMING_DEFAULT_DAYS: int = int(os.getenv("INCOMING_DEFAULT_DAYS", 7))
    INCOMING_MAX_DAYS: int = int(os.getenv("INCOMING_MAX_DAYS", 30))


# Single instance that is imported everywhere
settings = Settings()
