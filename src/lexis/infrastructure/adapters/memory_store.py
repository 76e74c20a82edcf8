"""
In-memory stores — dict-backed adapters for tests and throwaway runs.

Implement the same compare-and-swap contract as the SQLite adapter.
"""

import logging
from dataclasses import replace
from datetime import datetime

from lexis.domain.errors import WriteConflictError
from lexis.domain.models import CardMemoryState, CatalogCard, LearningGoal
from lexis.domain.ports import CardCatalog, CardStateRepository, GoalRepository

logger = logging.getLogger(__name__)


class InMemoryCardStateRepository(CardStateRepository):
    def __init__(self, states: list[CardMemoryState] | None = None):
        self._rows: dict[tuple[str, str], CardMemoryState] = {}
        for state in states or []:
            self._rows[(state.user_id, state.card_id)] = state

    async def get(self, user_id: str, card_id: str) -> CardMemoryState | None:
        return self._rows.get((user_id, card_id))

    async def get_many(self, user_id: str, card_ids: list[str]) -> dict[str, CardMemoryState]:
        return {
            cid: self._rows[(user_id, cid)] for cid in card_ids if (user_id, cid) in self._rows
        }

    async def save(self, state: CardMemoryState, expected_version: int) -> CardMemoryState:
        key = (state.user_id, state.card_id)
        current = self._rows.get(key)
        current_version = current.version if current else 0
        if current_version != expected_version:
            raise WriteConflictError(state.user_id, state.card_id, expected_version)

        stored = replace(state, version=expected_version + 1)
        self._rows[key] = stored
        return stored

    async def list_reviewed(
        self, user_id: str, since: datetime | None = None
    ) -> list[CardMemoryState]:
        rows = [
            s for (uid, _), s in self._rows.items() if uid == user_id and s.times_reviewed > 0
        ]
        if since is not None:
            rows = [s for s in rows if s.last_reviewed_at and s.last_reviewed_at > since]
        return rows


class InMemoryGoalRepository(GoalRepository):
    def __init__(self, goals: list[LearningGoal] | None = None):
        self._goals: dict[str, LearningGoal] = {g.goal_id: g for g in goals or []}

    async def get(self, goal_id: str) -> LearningGoal | None:
        return self._goals.get(goal_id)

    async def list_for_user(self, user_id: str) -> list[LearningGoal]:
        goals = [g for g in self._goals.values() if g.user_id == user_id]
        return sorted(goals, key=lambda g: g.created_at)

    async def save(self, goal: LearningGoal) -> LearningGoal:
        self._goals[goal.goal_id] = goal
        return goal


class InMemoryCardCatalog(CardCatalog):
    def __init__(self, cards: list[CatalogCard] | None = None):
        self._cards = list(cards or [])

    async def list_cards(self, deck_ids: list[str]) -> list[CatalogCard]:
        wanted = set(deck_ids)
        return [c for c in self._cards if c.deck_id in wanted]

    async def get_texts(self, card_ids: list[str]) -> dict[str, str]:
        wanted = set(card_ids)
        return {c.card_id: c.front for c in self._cards if c.card_id in wanted}
