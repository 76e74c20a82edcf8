import sqlite3
from dataclasses import replace
from datetime import date, datetime

import pytest

from lexis.domain.errors import PersistenceError, WriteConflictError
from lexis.domain.models import CardMemoryState, LearningGoal
from lexis.infrastructure.adapters.sqlite_store import (
    SqliteCardStateRepository,
    SqliteDatabase,
    SqliteGoalRepository,
)


@pytest.fixture
def db(tmp_path):
    return SqliteDatabase(tmp_path / "data" / "lexis.db")


@pytest.fixture
def cards(db):
    return SqliteCardStateRepository(db)


@pytest.fixture
def goals(db):
    return SqliteGoalRepository(db)


def _reviewed(card_id="c1", **kwargs):
    fields = dict(
        times_reviewed=3,
        times_correct=2,
        mastery_level=2,
        mastery_score=4,
        easiness_factor=2.36,
        interval_days=6,
        next_review_date=date(2025, 3, 16),
        last_reviewed_at=datetime(2025, 3, 10, 14, 5, 30),
    )
    fields.update(kwargs)
    return CardMemoryState(user_id="u1", card_id=card_id, **fields)


# ── Card memory ──


@pytest.mark.asyncio
async def test_round_trip_preserves_fields(cards, tmp_path):
    saved = await cards.save(_reviewed(), expected_version=0)
    loaded = await cards.get("u1", "c1")

    assert loaded == saved
    assert loaded.version == 1
    assert loaded.next_review_date == date(2025, 3, 16)
    assert loaded.last_reviewed_at == datetime(2025, 3, 10, 14, 5, 30)
    assert (tmp_path / "data" / "lexis.db").exists()


@pytest.mark.asyncio
async def test_missing_row_is_none(cards):
    assert await cards.get("u1", "nope") is None
    assert await cards.get_many("u1", []) == {}


@pytest.mark.asyncio
async def test_conditional_update(cards):
    first = await cards.save(_reviewed(), expected_version=0)
    second = await cards.save(replace(first, times_reviewed=4), expected_version=1)

    assert second.version == 2
    assert (await cards.get("u1", "c1")).times_reviewed == 4


@pytest.mark.asyncio
async def test_stale_update_conflicts_and_leaves_row_untouched(cards):
    await cards.save(_reviewed(), expected_version=0)
    await cards.save(_reviewed(times_reviewed=4), expected_version=1)

    with pytest.raises(WriteConflictError):
        await cards.save(_reviewed(times_reviewed=9), expected_version=1)

    row = await cards.get("u1", "c1")
    assert row.times_reviewed == 4
    assert row.version == 2


@pytest.mark.asyncio
async def test_duplicate_insert_conflicts(cards):
    await cards.save(_reviewed(), expected_version=0)
    with pytest.raises(WriteConflictError):
        await cards.save(_reviewed(times_reviewed=1), expected_version=0)


@pytest.mark.asyncio
async def test_invalid_row_rejected_by_schema(cards):
    with pytest.raises(PersistenceError):
        await cards.save(_reviewed(times_correct=5, times_reviewed=2), expected_version=0)
    assert await cards.get("u1", "c1") is None


@pytest.mark.asyncio
async def test_get_many_and_list_reviewed(cards):
    await cards.save(_reviewed("a"), expected_version=0)
    await cards.save(
        _reviewed("b", last_reviewed_at=datetime(2025, 1, 2, 8, 0)), expected_version=0
    )
    await cards.save(
        CardMemoryState.new("u1", "new-card", date(2025, 3, 10)), expected_version=0
    )

    many = await cards.get_many("u1", ["a", "b", "zzz"])
    assert set(many) == {"a", "b"}

    reviewed = await cards.list_reviewed("u1")
    assert {s.card_id for s in reviewed} == {"a", "b"}

    recent = await cards.list_reviewed("u1", since=datetime(2025, 3, 1))
    assert [s.card_id for s in recent] == ["a"]


@pytest.mark.asyncio
async def test_unopenable_database(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    repo = SqliteCardStateRepository(SqliteDatabase(blocker / "lexis.db"))

    with pytest.raises(PersistenceError):
        await repo.get("u1", "c1")


@pytest.mark.asyncio
async def test_corrupt_database(tmp_path):
    path = tmp_path / "broken.db"
    path.write_bytes(b"this is not sqlite" * 100)
    repo = SqliteCardStateRepository(SqliteDatabase(path))

    with pytest.raises(PersistenceError) as exc:
        await repo.get("u1", "c1")
    assert isinstance(exc.value.__cause__, sqlite3.Error)


@pytest.mark.asyncio
async def test_in_memory_database_keeps_rows_between_calls():
    db = SqliteDatabase(":memory:")
    cards = SqliteCardStateRepository(db)
    goals = SqliteGoalRepository(db)

    assert await cards.get("u1", "c1") is None
    saved = await cards.save(_reviewed(), expected_version=0)
    assert await cards.get("u1", "c1") == saved
    assert await goals.list_for_user("u1") == []

    with pytest.raises(WriteConflictError):
        await cards.save(_reviewed(), expected_version=0)


@pytest.mark.asyncio
async def test_in_memory_database_reopens_empty_after_close():
    db = SqliteDatabase(":memory:")
    cards = SqliteCardStateRepository(db)
    await cards.save(_reviewed(), expected_version=0)

    db.close()

    assert await cards.get("u1", "c1") is None
    assert (await cards.save(_reviewed(), expected_version=0)).version == 1


# ── Goals ──


@pytest.mark.asyncio
async def test_goal_round_trip(goals):
    goal = LearningGoal(
        goal_id="goal_01",
        user_id="u1",
        duration_days=14,
        sessions_per_day=2,
        target_words=50,
        created_at=datetime(2025, 3, 1, 9, 0),
        goal_name="Trip",
        deck_ids=("es", "fr"),
    )
    await goals.save(goal)
    assert await goals.get("goal_01") == goal

    done = replace(goal, is_active=False, completed_at=datetime(2025, 3, 9, 20, 0))
    await goals.save(done)
    assert await goals.get("goal_01") == done


@pytest.mark.asyncio
async def test_goals_listed_in_creation_order(goals):
    for i, day in enumerate([5, 1, 3]):
        await goals.save(
            LearningGoal(
                goal_id=f"goal_{i}",
                user_id="u1",
                duration_days=7,
                sessions_per_day=1,
                target_words=10,
                created_at=datetime(2025, 3, day),
            )
        )

    listed = await goals.list_for_user("u1")
    assert [g.goal_id for g in listed] == ["goal_1", "goal_2", "goal_0"]
    assert await goals.list_for_user("nobody") == []
    assert await goals.get("goal_missing") is None
