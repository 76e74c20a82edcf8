"""
Ports (interfaces) for scheduler persistence and the card catalog.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .models import CardMemoryState, CatalogCard, LearningGoal


class CardStateRepository(ABC):
    """
    Port for per-(user, card) memory states.

    Implementations:
        - InMemoryCardStateRepository: dict-backed, for tests and dry runs.
        - SqliteCardStateRepository: single-file SQLite store.
    """

    @abstractmethod
    async def get(self, user_id: str, card_id: str) -> CardMemoryState | None:
        """
        Fetch the state for one card.

        Returns:
            The stored state, or None if the card was never reviewed.
        """
        pass

    @abstractmethod
    async def get_many(self, user_id: str, card_ids: list[str]) -> dict[str, CardMemoryState]:
        """
        Fetch states for several cards at once.

        Returns:
            Mapping of card id to state; cards without a row are absent.
        """
        pass

    @abstractmethod
    async def save(self, state: CardMemoryState, expected_version: int) -> CardMemoryState:
        """
        Atomically write a state if the stored version still equals expected_version.

        Args:
            state: The new state to persist.
            expected_version: Version the caller read (0 if no row existed).

        Returns:
            The persisted state with its version bumped to expected_version + 1.

        Raises:
            WriteConflictError: Another writer got there first; nothing was written.
            PersistenceError: The store failed.
        """
        pass

    @abstractmethod
    async def list_reviewed(
        self, user_id: str, since: datetime | None = None
    ) -> list[CardMemoryState]:
        """
        List states with times_reviewed > 0, optionally only those reviewed after `since`.
        """
        pass


class GoalRepository(ABC):
    """Port for learning goals."""

    @abstractmethod
    async def get(self, goal_id: str) -> LearningGoal | None:
        pass

    @abstractmethod
    async def list_for_user(self, user_id: str) -> list[LearningGoal]:
        pass

    @abstractmethod
    async def save(self, goal: LearningGoal) -> LearningGoal:
        """Insert or replace a goal."""
        pass


class CardCatalog(ABC):
    """
    Read-only catalog of card content.

    The scheduler only needs ids and display text, never how cards are stored.
    """

    @abstractmethod
    async def list_cards(self, deck_ids: list[str]) -> list[CatalogCard]:
        pass

    @abstractmethod
    async def get_texts(self, card_ids: list[str]) -> dict[str, str]:
        """Map card ids to their front text; unknown ids are absent."""
        pass
