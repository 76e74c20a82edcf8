"""
SRS update engine (SM-2 family).

Pure computation: given a card's memory state and a normalized quality,
returns the next memory state. Persistence is the caller's job.
"""

from dataclasses import replace
from datetime import date, datetime, time, timedelta

from lexis.domain.constants import (
    FAILURE_INTERVAL_DAYS,
    FIRST_INTERVAL_DAYS,
    MAX_MASTERY_SCORE,
    MIN_EASINESS,
    PASS_THRESHOLD,
    RECALL_SCORE_CAP,
    SCORE_DELTA_FAIL,
    SCORE_DELTA_PASS,
    SCORE_DELTA_PERFECT,
    SECOND_INTERVAL_DAYS,
)
from lexis.domain.models import CardMemoryState

from .deadline import compress


def is_pass(quality: float) -> bool:
    return quality >= PASS_THRESHOLD


def update_easiness(easiness: float, quality: float) -> float:
    """
    Standard SM-2 adjustment: EF' = EF + (0.1 - (5-q) * (0.08 + (5-q) * 0.02)).

    Applied on passes and failures alike, rounded to 2 decimals and floored at 1.3.
    """
    miss = 5 - quality
    updated = easiness + (0.1 - miss * (0.08 + miss * 0.02))
    return max(MIN_EASINESS, round(updated, 2))


def combine_score(current: float, quality: float, cap: int = RECALL_SCORE_CAP) -> float:
    """
    Fold one review into the mastery score.

    Perfect recall adds 2, a pass adds 1, a failure subtracts 3. Growth stops at
    `cap`, but a score already above the cap is held rather than pulled down.
    The score never leaves [0, 15].
    """
    if quality >= 5:
        delta = SCORE_DELTA_PERFECT
    elif is_pass(quality):
        delta = SCORE_DELTA_PASS
    else:
        delta = SCORE_DELTA_FAIL

    score = current + delta
    if delta > 0:
        if score > cap:
            score = max(current, cap)
    else:
        score = max(0, score)
    return min(MAX_MASTERY_SCORE, score)


def next_interval(level: int, previous_interval: int, easiness: float) -> int:
    """Interval after a successful review that brought the card to `level`."""
    if level <= 1:
        return FIRST_INTERVAL_DAYS
    if level == 2:
        return SECOND_INTERVAL_DAYS
    previous = max(1, previous_interval)
    return max(previous + 1, round(previous * easiness))


def apply_review(
    state: CardMemoryState,
    quality: float,
    today: date,
    days_remaining: int | None = None,
    score_cap: int = RECALL_SCORE_CAP,
    reviewed_at: datetime | None = None,
) -> CardMemoryState:
    """
    Compute the memory state after one review.

    Args:
        state: Current state (use CardMemoryState.new for an unseen card).
        quality: Normalized quality in [0, 5].
        today: Date the review happened on.
        days_remaining: Days left in the active learning goal, if any. Intervals
            are compressed inside the goal's final week.
        score_cap: Mastery score growth cap of the activity that produced the signal.
        reviewed_at: Review timestamp; defaults to the start of `today`.

    Returns:
        A new state. The input state is never modified.
    """
    passed = is_pass(quality)
    easiness = update_easiness(state.easiness_factor, quality)

    if passed:
        level = state.mastery_level + 1
        interval = next_interval(level, state.interval_days, easiness)
    else:
        level = 0
        interval = FAILURE_INTERVAL_DAYS

    interval = compress(interval, days_remaining)

    return replace(
        state,
        times_reviewed=state.times_reviewed + 1,
        times_correct=state.times_correct + (1 if passed else 0),
        mastery_level=level,
        mastery_score=combine_score(state.mastery_score, quality, score_cap),
        easiness_factor=easiness,
        interval_days=interval,
        next_review_date=today + timedelta(days=interval),
        last_reviewed_at=reviewed_at or datetime.combine(today, time()),
    )
