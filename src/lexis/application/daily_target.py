"""
Daily target calculator.

Implements the front-loading policy: every new card must be introduced
within the first 80% of a goal's scheduled sessions, leaving the remainder
for consolidation.
"""

import math

from lexis.domain.constants import FRONT_LOAD_RATIO, MINUTES_PER_CARD, REVIEW_RATIO
from lexis.domain.models import DailyTarget, LearningGoal


def compute_target(goal: LearningGoal | None) -> DailyTarget:
    """
    How many new and review cards to attempt today.

    Pure function of the goal snapshot; no goal means an all-zero target.
    """
    if goal is None:
        return DailyTarget()

    cards_remaining = goal.target_words - goal.words_learned
    total_sessions = goal.duration_days * goal.sessions_per_day
    current_session = (goal.current_day - 1) * goal.sessions_per_day + 1
    front_load_threshold = math.floor(total_sessions * FRONT_LOAD_RATIO)

    new_cards = 0
    if current_session <= front_load_threshold and cards_remaining > 0:
        sessions_left_in_phase = front_load_threshold - current_session + 1
        new_cards = math.ceil(cards_remaining / max(1, sessions_left_in_phase))

    review_cards = math.floor(goal.words_learned * REVIEW_RATIO)
    total_cards = new_cards + review_cards

    return DailyTarget(
        new_cards=new_cards,
        review_cards=review_cards,
        total_cards=total_cards,
        estimated_minutes=math.ceil(total_cards * MINUTES_PER_CARD),
    )
