# Domain Package
from .models import (
    CardMemoryState,
    CatalogCard,
    DailyTarget,
    LearningGoal,
    PrioritizedCard,
    PriorityReason,
    ReviewHistoryRow,
    WeakWordEntry,
)
from .ports import CardCatalog, CardStateRepository, GoalRepository

__all__ = [
    "CardMemoryState",
    "CatalogCard",
    "DailyTarget",
    "LearningGoal",
    "PrioritizedCard",
    "PriorityReason",
    "ReviewHistoryRow",
    "WeakWordEntry",
    "CardCatalog",
    "CardStateRepository",
    "GoalRepository",
]
