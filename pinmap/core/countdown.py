"""
Arrival countdowns and "time since" labels.

Label, urgency and colour are all derived from one whole-minute
difference so they can never disagree with each other.
"""
from dataclasses import dataclass
from datetime import datetime


URGENCY_IMMINENT = "imminent"
URGENCY_SOON = "soon"
URGENCY_UPCOMING = "upcoming"
URGENCY_LATER = "later"

# Upper bounds in minutes. "Now!" covers everything up to IMMINENT_MINUTES.
IMMINENT_MINUTES = 5
SOON_MINUTES = 30
UPCOMING_MINUTES = 4 * 60

NOW_LABEL = "Now!"

URGENCY_COLORS = {
    URGENCY_IMMINENT: "#ef4444",
    URGENCY_SOON: "#f97316",
    URGENCY_UPCOMING: "#eab308",
    URGENCY_LATER: "#3b82f6",
}
ARRIVED_COLOR = "#22c55e"


@dataclass(frozen=True)
class Countdown:
    text: str
    urgency: str
    days: int
    hours: int
    minutes: int
    total_hours: float
    color: str
    arrived: bool


def urgency_for_minutes(diff_minutes: int) -> str:
    if diff_minutes <= IMMINENT_MINUTES:
        return URGENCY_IMMINENT
    if diff_minutes < SOON_MINUTES:
        return URGENCY_SOON
    if diff_minutes < UPCOMING_MINUTES:
        return URGENCY_UPCOMING
    return URGENCY_LATER


def label_for_minutes(diff_minutes: int) -> str:
    hours = diff_minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d"
    if hours > 0:
        return f"{hours}h"
    if diff_minutes > IMMINENT_MINUTES:
        return f"{diff_minutes}m"
    return NOW_LABEL


def classify(arrival_time: datetime, now: datetime) -> Countdown:
    """
    Countdown for a future pin as seen at `now`.

    `hours` and `days` are whole totals (2d 5h -> hours=53, days=2).
    """
    diff_seconds = (arrival_time - now).total_seconds()

    if diff_seconds <= 0:
        return Countdown(
            text=NOW_LABEL,
            urgency=URGENCY_IMMINENT,
            days=0,
            hours=0,
            minutes=0,
            total_hours=0.0,
            color=ARRIVED_COLOR,
            arrived=True,
        )

    diff_minutes = int(diff_seconds // 60)
    urgency = urgency_for_minutes(diff_minutes)

    return Countdown(
        text=label_for_minutes(diff_minutes),
        urgency=urgency,
        days=diff_minutes // (60 * 24),
        hours=diff_minutes // 60,
        minutes=diff_minutes,
        total_hours=round(diff_seconds / 3600.0, 2),
        color=URGENCY_COLORS[urgency],
        arrived=False,
    )


def time_since(moment: datetime, now: datetime) -> str:
    """
    "3d ago" / "5h ago" / "12m ago" / "Just now".
    """
    minutes = int(max((now - moment).total_seconds(), 0) // 60)
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d ago"
    if hours > 0:
        return f"{hours}h ago"
    if minutes > 0:
        return f"{minutes}m ago"
    return "Just now"
