from datetime import date, datetime

import pytest

from lexis.domain.models import CatalogCard, LearningGoal
from lexis.infrastructure.adapters.memory_store import (
    InMemoryCardCatalog,
    InMemoryCardStateRepository,
    InMemoryGoalRepository,
)


@pytest.fixture
def today():
    return date(2025, 3, 10)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/logs
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def goal():
    return LearningGoal(
        goal_id="goal_01TEST",
        user_id="u1",
        duration_days=10,
        sessions_per_day=2,
        target_words=40,
        created_at=datetime(2025, 3, 1, 9, 0),
        deck_ids=("spanish",),
    )


@pytest.fixture
def catalog_cards():
    return [
        CatalogCard(card_id=f"es-{i:03d}", deck_id="spanish", front=f"palabra{i}")
        for i in range(1, 6)
    ] + [CatalogCard(card_id="fr-001", deck_id="french", front="chien")]


@pytest.fixture
def card_repo():
    return InMemoryCardStateRepository()


@pytest.fixture
def goal_repo(goal):
    return InMemoryGoalRepository([goal])


@pytest.fixture
def catalog(catalog_cards):
    return InMemoryCardCatalog(catalog_cards)
