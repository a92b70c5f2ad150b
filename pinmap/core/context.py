from dataclasses import dataclass, field
from datetime import datetime, timedelta, date

from pinmap.utils.time import utcnow


MAX_UTC_OFFSET_MINUTES = 14 * 60


@dataclass(frozen=True)
class RequestContext:
    """
    Everything a read needs to know about who is asking and when.

    `now` is captured once so every field in a response is derived from
    the same instant. `utc_offset_minutes` is the viewer's clock, used
    for calendar-day bucketing.
    """
    viewer_id: str
    now: datetime = field(default_factory=utcnow)
    utc_offset_minutes: int = 0

    def local_date(self, moment: datetime) -> date:
        return (moment + timedelta(minutes=self.utc_offset_minutes)).date()

    @property
    def today(self) -> date:
        return self.local_date(self.now)
