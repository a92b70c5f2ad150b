"""
Retry helper for pin store writes.

Lock contention and dropped connections surface as OperationalError.
Those are retried once on a clean session; anything else propagates.
"""
import logging
from functools import wraps

from sqlalchemy.exc import OperationalError

logger = logging.getLogger(__name__)


def retry_once_on_contention(func):
    """
    Decorate a store function whose first argument is the Session.
    """
    @wraps(func)
    def wrapper(db, *args, **kwargs):
        try:
            return func(db, *args, **kwargs)
        except OperationalError as e:
            db.rollback()
            logger.warning(f"{func.__name__} hit a storage error, retrying once: {e}")
            return func(db, *args, **kwargs)

    return wrapper
