"""
Learning goal planning and lifecycle.

Goal ids are ULIDs so they sort by creation time. Every function here is
pure: goals are frozen, updates return new instances.
"""

import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Literal

from ulid import ULID

from lexis.domain.constants import (
    LEARNING_DAYS_PER_CONSOLIDATION,
    LEARNING_DAYS_PER_INTERIM_TEST,
    MAX_SESSION_CAP,
    MIN_INTERIM_TESTS,
    MIN_PLAN_DURATION_DAYS,
    MIN_SESSION_CAP,
    MINUTES_PER_SESSION,
    REP_VOLUME_MULTIPLIER,
)
from lexis.domain.errors import InvalidGoalError
from lexis.domain.models import LearningGoal

logger = logging.getLogger(__name__)

PlanningMode = Literal["duration", "intensity"]
Difficulty = Literal["Easy", "Moderate", "Challenging", "Intense", "Extreme"]


def generate_goal_id() -> str:
    """Generate a sortable goal ID using ULID."""
    return f"goal_{ULID()}"


def validate_goal(goal: LearningGoal) -> LearningGoal:
    if goal.duration_days <= 0:
        raise InvalidGoalError(f"duration_days must be > 0, got {goal.duration_days}")
    if goal.sessions_per_day <= 0:
        raise InvalidGoalError(f"sessions_per_day must be > 0, got {goal.sessions_per_day}")
    if goal.target_words <= 0:
        raise InvalidGoalError(f"target_words must be > 0, got {goal.target_words}")
    if goal.words_learned < 0:
        raise InvalidGoalError(f"words_learned must be >= 0, got {goal.words_learned}")
    if not 1 <= goal.current_day <= goal.duration_days:
        raise InvalidGoalError(
            f"current_day must be within 1..{goal.duration_days}, got {goal.current_day}"
        )
    return goal


def create_goal(
    user_id: str,
    target_words: int,
    duration_days: int,
    sessions_per_day: int,
    deck_ids: list[str] | tuple[str, ...] = (),
    goal_name: str = "",
    now: datetime | None = None,
) -> LearningGoal:
    goal = LearningGoal(
        goal_id=generate_goal_id(),
        user_id=user_id,
        duration_days=duration_days,
        sessions_per_day=sessions_per_day,
        target_words=target_words,
        created_at=now or datetime.now(),
        goal_name=goal_name,
        deck_ids=tuple(deck_ids),
    )
    return validate_goal(goal)


def record_session(
    goal: LearningGoal, cards_completed: int, now: datetime | None = None
) -> LearningGoal:
    """
    Count one finished session and the words it taught.

    Reaching the target word count completes (deactivates) the goal.
    """
    words_learned = goal.words_learned + max(0, cards_completed)
    updated = replace(
        goal,
        sessions_completed=goal.sessions_completed + 1,
        words_learned=words_learned,
    )
    if words_learned >= goal.target_words and goal.is_active:
        logger.info(f"Goal {goal.goal_id} completed: {words_learned}/{goal.target_words} words")
        updated = replace(updated, is_active=False, completed_at=now or datetime.now())
    return updated


def advance_day(goal: LearningGoal) -> LearningGoal:
    return replace(goal, current_day=min(goal.duration_days, goal.current_day + 1))


@dataclass(frozen=True)
class GoalProgress:
    sessions_today: int
    sessions_per_day: int
    percent_complete: float
    words_remaining: int
    is_complete_today: bool
    is_goal_complete: bool


def goal_progress(goal: LearningGoal) -> GoalProgress:
    remainder = goal.sessions_completed % goal.sessions_per_day
    # a finished day reads as per_day of per_day until the next session starts
    complete_today = goal.sessions_completed > 0 and remainder == 0
    sessions_today = goal.sessions_per_day if complete_today else remainder
    return GoalProgress(
        sessions_today=sessions_today,
        sessions_per_day=goal.sessions_per_day,
        percent_complete=goal.words_learned / goal.target_words * 100,
        words_remaining=max(0, goal.target_words - goal.words_learned),
        is_complete_today=complete_today,
        is_goal_complete=goal.words_learned >= goal.target_words,
    )


@dataclass(frozen=True)
class GoalRequirements:
    """
    Workload estimate for a prospective goal.

    Attributes:
        total_reps: Hidden workload: every word needs about two reps.
        consolidation_days: One review-only day per four learning days.
        assessment_days: Pre-test, post-test and at least two interim tests.
        smart_duration: Recommended plan length in days.
    """

    words_per_day: int
    sessions_per_day: int
    words_per_session: int
    estimated_minutes_per_day: int
    difficulty: Difficulty
    total_reps: int
    consolidation_days: int
    assessment_days: int
    smart_duration: int


def _difficulty_label(sessions_per_day: int) -> Difficulty:
    if sessions_per_day <= 1:
        return "Easy"
    if sessions_per_day == 2:
        return "Moderate"
    if sessions_per_day == 3:
        return "Challenging"
    if sessions_per_day <= 5:
        return "Intense"
    return "Extreme"


def calculate_goal_requirements(
    target_words: int,
    duration_days: int | None,
    target_session_cap: int = MAX_SESSION_CAP,
    target_sessions_per_day: int = 2,
    planning_mode: PlanningMode = "duration",
) -> GoalRequirements:
    """
    Estimate the daily workload of a goal before it is created.

    In "duration" mode the user fixes the number of days and the sessions per
    day are derived; in "intensity" mode the user fixes words per session and
    sessions per day, and the plan length is derived.
    """
    safe_target = max(0, target_words or 0)
    total_reps = math.ceil(safe_target * REP_VOLUME_MULTIPLIER)
    session_cap = min(MAX_SESSION_CAP, max(MIN_SESSION_CAP, target_session_cap))

    if planning_mode == "intensity":
        daily_capacity = session_cap * max(1, target_sessions_per_day)
    else:
        daily_capacity = math.ceil(total_reps / max(1, duration_days or 1))

    raw_learning_days = math.ceil(total_reps / max(1, daily_capacity))
    consolidation_days = raw_learning_days // LEARNING_DAYS_PER_CONSOLIDATION
    interim_tests = max(MIN_INTERIM_TESTS, raw_learning_days // LEARNING_DAYS_PER_INTERIM_TEST)
    assessment_days = 2 + interim_tests
    smart_duration = max(
        MIN_PLAN_DURATION_DAYS, raw_learning_days + consolidation_days + assessment_days
    )

    if planning_mode == "duration" and duration_days:
        final_duration = duration_days
    else:
        final_duration = smart_duration

    sessions_per_day = target_sessions_per_day
    if planning_mode == "duration":
        required_daily_reps = math.ceil(total_reps / final_duration)
        sessions_per_day = math.ceil(required_daily_reps / session_cap)

    return GoalRequirements(
        words_per_day=math.ceil(safe_target / final_duration),
        sessions_per_day=sessions_per_day,
        words_per_session=session_cap,
        estimated_minutes_per_day=sessions_per_day * MINUTES_PER_SESSION,
        difficulty=_difficulty_label(sessions_per_day),
        total_reps=total_reps,
        consolidation_days=consolidation_days,
        assessment_days=assessment_days,
        smart_duration=smart_duration,
    )
