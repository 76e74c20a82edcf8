"""
Time windows for a goal's daily sessions.

Windows follow the midpoint rule: the first session opens at midnight, the
last closes at the end of the day, and neighbouring sessions split the gap
between their scheduled times.
"""

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Literal

WindowStatus = Literal["locked", "ready", "missed"]


@dataclass(frozen=True)
class SessionWindow:
    start: datetime
    end: datetime
    status: WindowStatus
    minutes_until_start: int | None = None

    @property
    def can_start(self) -> bool:
        return self.status == "ready"


def _at(day_start: datetime, hhmm: str) -> datetime:
    hours, minutes = (int(part) for part in hhmm.split(":"))
    return day_start.replace(hour=hours, minute=minutes)


def _minutes_between(earlier: datetime, later: datetime) -> int:
    return int((later - earlier).total_seconds() // 60)


def session_window(
    session_times: list[str], index: int, now: datetime | None = None
) -> SessionWindow:
    """
    Compute when session `index` may be started today.

    Args:
        session_times: Scheduled "HH:MM" times for the day, in order.
        index: Which session to compute the window for.
        now: Current time; defaults to datetime.now().
    """
    now = now or datetime.now()
    day_start = datetime.combine(now.date(), time())
    current = _at(day_start, session_times[index])

    if index == 0:
        start = day_start
    else:
        previous = _at(day_start, session_times[index - 1])
        start = previous + timedelta(minutes=_minutes_between(previous, current) // 2)

    if index == len(session_times) - 1:
        end = datetime.combine(now.date(), time.max)
    else:
        following = _at(day_start, session_times[index + 1])
        half_gap = _minutes_between(current, following) // 2
        end = current + timedelta(minutes=half_gap - 1)

    if start <= now <= end:
        return SessionWindow(start, end, "ready")
    if now < start:
        return SessionWindow(start, end, "locked", _minutes_between(now, start))
    return SessionWindow(start, end, "missed")


def window_label(window: SessionWindow) -> str:
    return f"{window.start:%H:%M} - {window.end:%H:%M}"
