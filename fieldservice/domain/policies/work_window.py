"""WorkWindow — attendance time boundaries (check-in window, checkout cutoff).

All datetimes here are local, naive wall-clock times.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta


@dataclass(frozen=True)
class EffectiveCheckout:
    at: datetime
    clamped: bool  # True when the cutoff replaced the real call time


def is_within_check_in_window(now: datetime, start: time, cutoff: time) -> bool:
    """Inclusive start, exclusive end: 09:00 is allowed, 19:00 is not."""
    return start <= now.time() < cutoff


def cutoff_on(day: datetime, cutoff: time) -> datetime:
    return day.replace(
        hour=cutoff.hour, minute=cutoff.minute, second=cutoff.second, microsecond=0
    )


def effective_checkout(now: datetime, cutoff: time) -> EffectiveCheckout:
    """Clamp a checkout at or after the cutoff to the cutoff of the same day."""
    if now.time() >= cutoff:
        return EffectiveCheckout(at=cutoff_on(now, cutoff), clamped=True)
    return EffectiveCheckout(at=now, clamped=False)


def worked_minutes(check_in: datetime | None, check_out: datetime) -> int:
    """Whole minutes between check-in and checkout, floored, never negative."""
    if check_in is None:
        return 0
    return max(0, (check_out - check_in) // timedelta(minutes=1))


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def work_date_key(moment: datetime) -> str:
    return moment.date().isoformat()


def is_same_day(a: datetime | None, b: datetime) -> bool:
    return a is not None and a.date() == b.date()


def is_cutoff_minute(now: datetime, cutoff: time) -> bool:
    return now.hour == cutoff.hour and now.minute == cutoff.minute
