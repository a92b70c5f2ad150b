from datetime import datetime, timezone


def utcnow() -> datetime:
    """
    Naive UTC "now". Every timestamp in the database is naive UTC.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """
    Normalise a client supplied datetime to naive UTC.
    Naive input is assumed to already be UTC.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600.0
