"""
Hard-delete pins past the retention window.

Single writer and idempotent: running it twice deletes nothing the
second time. Run from cron with:

    python -m pinmap.jobs.reaper
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from pinmap.config import settings
from pinmap.database import SessionLocal
from pinmap.models.pin import Pin, PinLike
from pinmap.services.pin_service import expired_pins_query
from pinmap.utils.time import utcnow

logger = logging.getLogger(__name__)


def reap_expired_pins(db: Session, now: datetime) -> int:
    expired_ids = [row.id for row in expired_pins_query(db, now).with_entities(Pin.id).all()]
    if not expired_ids:
        logger.info("Reaper: nothing to delete")
        return 0

    db.query(PinLike).filter(PinLike.pin_id.in_(expired_ids)).delete(synchronize_session=False)
    deleted = db.query(Pin).filter(Pin.id.in_(expired_ids)).delete(synchronize_session=False)
    db.commit()

    logger.info(f"Reaper: deleted {deleted} expired pins")
    return deleted


def main():
    # Register every table on Base before touching the session
    from pinmap.models import user, connection, block, pin, visibility_setting  # noqa: F401

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db = SessionLocal()
    try:
        reap_expired_pins(db, utcnow())
    finally:
        db.close()


if __name__ == "__main__":
    main()
