"""
Domain models for the spaced-repetition scheduler.

These are pure data structures with no I/O or external dependencies.
Only CardMemoryState and LearningGoal are ever persisted; everything else
is derived on demand.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from .constants import DEFAULT_EASINESS


@dataclass(frozen=True)
class CardMemoryState:
    """
    Memory state of one card for one user.

    Attributes:
        times_reviewed: Total review events recorded.
        times_correct: Review events with quality >= 3 (never above times_reviewed).
        mastery_level: Discrete tier, reset to 0 on a failed review.
        mastery_score: Continuous ranking score (0-15), not used for interval math.
        easiness_factor: SM-2 easiness, never below 1.3.
        interval_days: Days between the last review and the next one.
        next_review_date: Date the card is next due.
        last_reviewed_at: Timestamp of the last review, None if never reviewed.
        version: Store revision used for compare-and-swap writes (0 = no row yet).
    """

    user_id: str
    card_id: str
    times_reviewed: int = 0
    times_correct: int = 0
    mastery_level: int = 0
    mastery_score: float = 0
    easiness_factor: float = DEFAULT_EASINESS
    interval_days: int = 0
    next_review_date: date | None = None
    last_reviewed_at: datetime | None = None
    version: int = 0

    @classmethod
    def new(cls, user_id: str, card_id: str, today: date | None = None) -> "CardMemoryState":
        """Default state for a card that has never been reviewed."""
        return cls(user_id=user_id, card_id=card_id, next_review_date=today)

    @property
    def is_new(self) -> bool:
        return self.times_reviewed == 0


@dataclass(frozen=True)
class LearningGoal:
    """A time-boxed study plan."""

    goal_id: str
    user_id: str
    duration_days: int
    sessions_per_day: int
    target_words: int
    created_at: datetime
    current_day: int = 1
    words_learned: int = 0
    goal_name: str = ""
    deck_ids: tuple[str, ...] = ()
    sessions_completed: int = 0
    is_active: bool = True
    completed_at: datetime | None = None

    @property
    def days_remaining(self) -> int:
        return self.duration_days - (self.current_day - 1)


@dataclass(frozen=True)
class DailyTarget:
    new_cards: int = 0
    review_cards: int = 0
    total_cards: int = 0
    estimated_minutes: int = 0


class PriorityReason(str, Enum):
    WEAK = "weak"
    NEW = "new"
    DUE = "due"
    EARLY_REVIEW = "early_review"


@dataclass(frozen=True)
class PrioritizedCard:
    state: CardMemoryState
    priority_score: float
    priority_reason: PriorityReason

    @property
    def card_id(self) -> str:
        return self.state.card_id


@dataclass(frozen=True)
class ReviewHistoryRow:
    """
    Read-only projection of a persisted state used by the risk ranker.

    Attributes:
        updated_at: Last time the row was written (the last review).
        word: Display text from the catalog, None if it could not be resolved.
    """

    card_id: str
    times_reviewed: int
    times_correct: int
    mastery_score: float
    updated_at: datetime | None = None
    word: str | None = None


@dataclass(frozen=True)
class WeakWordEntry:
    card_id: str
    word: str
    times_wrong: int
    last_wrong_at: datetime | None
    danger_score: float


@dataclass(frozen=True)
class CatalogCard:
    """Static card content from the external catalog."""

    card_id: str
    deck_id: str
    front: str
    back: str = ""
    tags: tuple[str, ...] = ()
