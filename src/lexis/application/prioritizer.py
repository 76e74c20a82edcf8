"""
Card prioritizer for bounded daily study sessions.

Builds a session by:
1. Classifying every candidate as weak, due, new or early review
2. Ranking candidates by priority score
3. Always including weak and due cards, throttling new cards when too many
   weak cards pile up, and topping up to the daily target otherwise
"""

import logging
from dataclasses import dataclass
from datetime import date

from lexis.domain.constants import (
    BRAKE_HALVE_WEAK_COUNT,
    BRAKE_STOP_WEAK_COUNT,
    DUE_PRIORITY_BASE,
    EARLY_REVIEW_PRIORITY,
    NEW_PRIORITY,
    WEAK_LEVEL_THRESHOLD,
    WEAK_PRIORITY_BASE,
    WEAK_SCORE_THRESHOLD,
)
from lexis.domain.models import CardMemoryState, DailyTarget, PrioritizedCard, PriorityReason

logger = logging.getLogger(__name__)


@dataclass
class SessionPlan:
    """Result of session selection."""

    cards: list[PrioritizedCard]  # Selected cards, must-do first
    weak_count: int  # Weak candidates found
    due_count: int  # Due candidates found
    adjusted_new_target: int  # New-card quota after the safety brake
    braking: bool  # True when new content is halted entirely


def days_since_last_review(state: CardMemoryState, today: date) -> int:
    if state.last_reviewed_at is None:
        return 0
    return max(0, (today - state.last_reviewed_at.date()).days)


def _is_weak(state: CardMemoryState) -> bool:
    return (
        state.mastery_score < WEAK_SCORE_THRESHOLD
        or state.mastery_level < WEAK_LEVEL_THRESHOLD
    )


def _is_due(state: CardMemoryState, today: date) -> bool:
    return state.next_review_date is None or state.next_review_date <= today


def classify(state: CardMemoryState, today: date) -> PrioritizedCard:
    """
    Assign a priority reason and score to one card.

    A card that was never reviewed is always new, whatever its other fields say.
    """
    if state.times_reviewed == 0:
        return PrioritizedCard(state, NEW_PRIORITY, PriorityReason.NEW)

    if _is_weak(state):
        return PrioritizedCard(
            state, WEAK_PRIORITY_BASE - state.mastery_score, PriorityReason.WEAK
        )

    if _is_due(state, today):
        return PrioritizedCard(
            state,
            DUE_PRIORITY_BASE + days_since_last_review(state, today),
            PriorityReason.DUE,
        )

    return PrioritizedCard(state, EARLY_REVIEW_PRIORITY, PriorityReason.EARLY_REVIEW)


def rank(candidates: list[CardMemoryState], today: date) -> list[PrioritizedCard]:
    """Classify and sort by priority score descending, ties by card id."""
    scored = [classify(state, today) for state in candidates]
    scored.sort(key=lambda c: c.card_id)
    scored.sort(key=lambda c: c.priority_score, reverse=True)
    return scored


def adjusted_new_target(weak_count: int, new_cards: int) -> int:
    """
    Safety brake on new content.

    More than 15 weak cards stops new cards entirely; more than 8 halves them.
    """
    if weak_count > BRAKE_STOP_WEAK_COUNT:
        return 0
    if weak_count > BRAKE_HALVE_WEAK_COUNT:
        return new_cards // 2
    return new_cards


def build_session_plan(
    candidates: list[CardMemoryState], target: DailyTarget, today: date
) -> SessionPlan:
    ranked = rank(candidates, today)

    weak = [c for c in ranked if c.priority_reason == PriorityReason.WEAK]
    due = [c for c in ranked if c.priority_reason == PriorityReason.DUE]
    braking = len(weak) > BRAKE_STOP_WEAK_COUNT
    new_quota = adjusted_new_target(len(weak), target.new_cards)

    new = [c for c in ranked if c.priority_reason == PriorityReason.NEW][:new_quota]

    # Weak and due cards are never throttled.
    selected = weak + due + new

    if len(selected) < target.total_cards and not braking:
        chosen = {c.card_id for c in selected}
        remaining_slots = target.total_cards - len(selected)
        extras = [c for c in ranked if c.card_id not in chosen][:remaining_slots]
        selected += extras

    unique: dict[str, PrioritizedCard] = {}
    for card in selected:
        unique.setdefault(card.card_id, card)

    logger.debug(
        f"Session plan: weak={len(weak)} due={len(due)} new_quota={new_quota} "
        f"braking={braking} selected={len(unique)}"
    )

    return SessionPlan(
        cards=list(unique.values()),
        weak_count=len(weak),
        due_count=len(due),
        adjusted_new_target=new_quota,
        braking=braking,
    )


def select_session(
    candidates: list[CardMemoryState], target: DailyTarget, today: date
) -> list[PrioritizedCard]:
    """Choose today's cards from all candidates under the daily target."""
    return build_session_plan(candidates, target, today).cards
