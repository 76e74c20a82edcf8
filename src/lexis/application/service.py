"""
Scheduler Service — Application layer orchestrator.

Coordinates the record stores and the pure scheduling modules. Every card
update is one read-compute-write against a single (user, card) key.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any

from lexis.domain.constants import (
    ASSESSMENT_BONUS_SCORE,
    ASSESSMENT_MAX_LEVEL,
    DEFAULT_WEAK_WORD_LIMIT,
    MAX_MASTERY_SCORE,
)
from lexis.domain.errors import GoalNotFoundError, InvalidGoalError, WriteConflictError
from lexis.domain.models import (
    CardMemoryState,
    DailyTarget,
    LearningGoal,
    PrioritizedCard,
    ReviewHistoryRow,
    WeakWordEntry,
)
from lexis.domain.ports import CardCatalog, CardStateRepository, GoalRepository

from . import goals as goal_rules
from .daily_target import compute_target
from .prioritizer import build_session_plan
from .quality import normalize, score_cap_for, validate_quality
from .risk_ranker import RiskRanker
from .srs_engine import apply_review

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssessmentResult:
    reset: int
    boosted: int
    skipped: int


class SchedulerService:
    """
    Application service for reviews, session selection and weak-word analysis.

    Follows Dependency Inversion: depends on the repository and catalog
    abstractions, not concrete adapter implementations.
    """

    def __init__(
        self,
        card_repo: CardStateRepository,
        goal_repo: GoalRepository,
        catalog: CardCatalog,
        ranker: RiskRanker | None = None,
    ):
        """
        Args:
            card_repo: Store (port) for card memory states.
            goal_repo: Store (port) for learning goals.
            catalog: Read-only card catalog.
            ranker: Optional custom risk ranker; uses default if not provided.
        """
        self._cards = card_repo
        self._goals = goal_repo
        self._catalog = catalog
        self._ranker = ranker or RiskRanker()
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._lock_users: dict[tuple[str, str], int] = {}

    @asynccontextmanager
    async def _card_lock(self, user_id: str, card_id: str) -> AsyncIterator[None]:
        """Serialize updates of one (user, card) key; the lock is dropped once unused."""
        key = (user_id, card_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if self._lock_users[key] == 0:
                del self._lock_users[key]
                del self._locks[key]

    async def _require_goal(self, goal_id: str) -> LearningGoal:
        goal = await self._goals.get(goal_id)
        if goal is None:
            raise GoalNotFoundError(goal_id)
        return goal

    async def _require_owned_goal(self, goal_id: str, user_id: str) -> LearningGoal:
        goal = await self._require_goal(goal_id)
        if goal.user_id != user_id:
            raise InvalidGoalError(f"Goal {goal_id} does not belong to user {user_id}")
        return goal

    # ---------- Reviews ----------

    def normalize(self, activity: str, outcome: Mapping[str, Any]) -> float:
        return normalize(activity, outcome)

    async def apply_review(
        self,
        user_id: str,
        card_id: str,
        quality: float,
        today: date,
        goal_id: str | None = None,
        activity: str | None = None,
        reviewed_at: datetime | None = None,
    ) -> CardMemoryState:
        """
        Record one review and persist the resulting memory state.

        Input is validated before anything is read. A missing state is the
        documented new-card default. The write is a compare-and-swap on the
        version that was read, so a concurrent review of the same card
        raises WriteConflictError instead of overwriting it.

        Raises:
            InvalidQualityError: quality is outside [0, 5].
            GoalNotFoundError: goal_id was given but does not exist.
            InvalidGoalError: the goal belongs to another user.
            PersistenceError: the store failed; nothing was applied.
        """
        quality = validate_quality(quality)
        days_remaining = None
        if goal_id is not None:
            goal = await self._require_owned_goal(goal_id, user_id)
            # a completed goal no longer has a deadline
            if goal.is_active:
                days_remaining = goal.days_remaining

        async with self._card_lock(user_id, card_id):
            prior = await self._cards.get(user_id, card_id)
            if prior is None:
                prior = CardMemoryState.new(user_id, card_id, today)

            updated = apply_review(
                prior,
                quality,
                today,
                days_remaining=days_remaining,
                score_cap=score_cap_for(activity),
                reviewed_at=reviewed_at or datetime.now(),
            )
            try:
                saved = await self._cards.save(updated, expected_version=prior.version)
            except WriteConflictError:
                logger.warning(f"Review of card {card_id} for user {user_id} lost a write race")
                raise

        logger.info(
            f"Reviewed card {card_id} for user {user_id}: q={quality} "
            f"level={saved.mastery_level} interval={saved.interval_days}d "
            f"next={saved.next_review_date}"
        )
        return saved

    # ---------- Goals ----------

    async def create_goal(
        self,
        user_id: str,
        target_words: int,
        duration_days: int,
        sessions_per_day: int,
        deck_ids: list[str] | None = None,
        goal_name: str = "",
        now: datetime | None = None,
    ) -> LearningGoal:
        goal = goal_rules.create_goal(
            user_id,
            target_words=target_words,
            duration_days=duration_days,
            sessions_per_day=sessions_per_day,
            deck_ids=deck_ids or [],
            goal_name=goal_name,
            now=now,
        )
        saved = await self._goals.save(goal)
        logger.info(f"Created goal {saved.goal_id} for user {user_id}")
        return saved

    async def get_goal(self, goal_id: str) -> LearningGoal:
        return await self._require_goal(goal_id)

    async def compute_target(self, goal_id: str) -> DailyTarget:
        return compute_target(await self._require_goal(goal_id))

    async def record_session(
        self, goal_id: str, cards_completed: int, now: datetime | None = None
    ) -> LearningGoal:
        goal = await self._require_goal(goal_id)
        updated = await self._goals.save(goal_rules.record_session(goal, cards_completed, now))
        logger.info(
            f"Goal {goal_id}: session {updated.sessions_completed} recorded, "
            f"{updated.words_learned}/{updated.target_words} words"
        )
        return updated

    async def advance_day(self, goal_id: str) -> LearningGoal:
        goal = await self._require_goal(goal_id)
        return await self._goals.save(goal_rules.advance_day(goal))

    # ---------- Session selection ----------

    async def select_session(
        self, user_id: str, goal_id: str, today: date
    ) -> list[PrioritizedCard]:
        """
        Pick today's cards from the goal's decks.

        Catalog cards without a stored state join as new cards.
        """
        goal = await self._require_owned_goal(goal_id, user_id)
        target = compute_target(goal)

        catalog_cards = await self._catalog.list_cards(list(goal.deck_ids))
        if not catalog_cards:
            return []

        card_ids = [c.card_id for c in catalog_cards]
        states = await self._cards.get_many(user_id, card_ids)
        candidates = [
            states.get(cid) or CardMemoryState.new(user_id, cid, today) for cid in card_ids
        ]

        plan = build_session_plan(candidates, target, today)
        logger.debug(
            f"Session for user {user_id} goal {goal_id}: {len(plan.cards)} cards "
            f"(weak={plan.weak_count}, due={plan.due_count}, "
            f"new_quota={plan.adjusted_new_target}, braking={plan.braking})"
        )
        return plan.cards

    # ---------- Weak words ----------

    async def rank_weak_words(
        self,
        user_id: str,
        deck_ids: list[str] | None = None,
        cutoff: datetime | None = None,
        limit: int = DEFAULT_WEAK_WORD_LIMIT,
    ) -> list[WeakWordEntry]:
        """
        Rank the user's riskiest reviewed cards.

        Args:
            deck_ids: If given, only cards from these decks are considered.
            cutoff: Only rows reviewed after this time (e.g. goal creation).
            limit: Maximum number of entries.
        """
        states = await self._cards.list_reviewed(user_id, since=cutoff)
        if deck_ids:
            in_scope = {c.card_id for c in await self._catalog.list_cards(deck_ids)}
            states = [s for s in states if s.card_id in in_scope]
        if not states:
            return []

        texts = await self._catalog.get_texts([s.card_id for s in states])
        history = [
            ReviewHistoryRow(
                card_id=s.card_id,
                times_reviewed=s.times_reviewed,
                times_correct=s.times_correct,
                mastery_score=s.mastery_score,
                updated_at=s.last_reviewed_at,
                word=texts.get(s.card_id),
            )
            for s in states
        ]
        return self._ranker.rank(history, limit=limit, cutoff=cutoff)

    # ---------- Assessments ----------

    async def apply_assessment(
        self,
        user_id: str,
        leech_ids: list[str],
        bonus_ids: list[str],
        today: date,
    ) -> AssessmentResult:
        """
        Apply interim-test results.

        Cards answered wrong are reset to the new-card defaults and due today.
        Cards answered right get a mastery bonus, but only if they already
        have a stored state.
        """
        reset = boosted = skipped = 0

        for card_id in leech_ids:
            async with self._card_lock(user_id, card_id):
                prior = await self._cards.get(user_id, card_id)
                expected = prior.version if prior else 0
                fresh = CardMemoryState.new(user_id, card_id, today)
                await self._cards.save(fresh, expected_version=expected)
            reset += 1

        for card_id in bonus_ids:
            async with self._card_lock(user_id, card_id):
                prior = await self._cards.get(user_id, card_id)
                if prior is None:
                    logger.warning(f"Skipping assessment bonus for unseen card {card_id}")
                    skipped += 1
                    continue
                bonus = replace(
                    prior,
                    mastery_score=min(
                        prior.mastery_score + ASSESSMENT_BONUS_SCORE, MAX_MASTERY_SCORE
                    ),
                    mastery_level=min(prior.mastery_level + 1, ASSESSMENT_MAX_LEVEL),
                )
                await self._cards.save(bonus, expected_version=prior.version)
            boosted += 1

        logger.info(
            f"Assessment for user {user_id}: reset={reset} boosted={boosted} skipped={skipped}"
        )
        return AssessmentResult(reset=reset, boosted=boosted, skipped=skipped)
