"""Deadline compression for review intervals near the end of a learning goal."""

from lexis.domain.constants import DEADLINE_WINDOW_DAYS


def compress(interval_days: int, days_remaining: int | None) -> int:
    """
    Cap an interval so the next review cannot land past the goal deadline.

    Inside the final week the interval is limited to half the remaining days,
    never less than one day. Outside it, or without a goal, the interval is
    returned unchanged.
    """
    if days_remaining is None or days_remaining >= DEADLINE_WINDOW_DAYS:
        return interval_days
    max_interval = max(1, days_remaining // 2)
    return max(0, min(interval_days, max_interval))
