"""
SQLite stores — Infrastructure adapters for a single-file database.

Card states are written with a versioned conditional UPDATE (or a plain
INSERT for a first review) inside one transaction, so two concurrent
reviews of the same card can never both succeed.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path

from lexis.domain.errors import PersistenceError, WriteConflictError
from lexis.domain.models import CardMemoryState, LearningGoal
from lexis.domain.ports import CardStateRepository, GoalRepository

logger = logging.getLogger(__name__)

# ======================= CARD MEMORY ==========================

card_memory_schema = """
    CREATE TABLE IF NOT EXISTS card_memory (
        user_id TEXT NOT NULL,
        card_id TEXT NOT NULL,

        times_reviewed INTEGER NOT NULL DEFAULT 0,
        times_correct INTEGER NOT NULL DEFAULT 0,
        mastery_level INTEGER NOT NULL DEFAULT 0,
        mastery_score REAL NOT NULL DEFAULT 0,
        easiness_factor REAL NOT NULL DEFAULT 2.5,
        interval_days INTEGER NOT NULL DEFAULT 0,
        next_review_date TEXT,
        last_reviewed_at TEXT,

        version INTEGER NOT NULL DEFAULT 1,

        PRIMARY KEY (user_id, card_id),
        CHECK (easiness_factor >= 1.3),
        CHECK (times_correct <= times_reviewed)
    )
"""

# ======================= GOALS ==========================

goal_schema = """
    CREATE TABLE IF NOT EXISTS learning_goals (
        goal_id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        goal_name TEXT NOT NULL DEFAULT '',
        duration_days INTEGER NOT NULL,
        current_day INTEGER NOT NULL DEFAULT 1,
        sessions_per_day INTEGER NOT NULL,
        target_words INTEGER NOT NULL,
        words_learned INTEGER NOT NULL DEFAULT 0,
        sessions_completed INTEGER NOT NULL DEFAULT 0,
        deck_ids TEXT NOT NULL DEFAULT '[]',
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL,
        completed_at TEXT
    )
"""

_CARD_COLUMNS = (
    "times_reviewed, times_correct, mastery_level, mastery_score, "
    "easiness_factor, interval_days, next_review_date, last_reviewed_at"
)


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class SqliteDatabase:
    """
    Owns the connection settings and schema for one database file.

    ``":memory:"`` keeps a single connection open for the lifetime of the
    object, since every new in-memory connection is a separate empty database.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = str(db_path)
        self._initialized = False
        self._memory_conn: sqlite3.Connection | None = None

    @property
    def in_memory(self) -> bool:
        return self.db_path == ":memory:"

    def _open(self) -> sqlite3.Connection:
        if self._memory_conn is not None:
            return self._memory_conn
        try:
            if not self.in_memory:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path, timeout=5.0)
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"Could not open database {self.db_path}: {e}") from e

        conn.row_factory = sqlite3.Row
        if self.in_memory:
            self._memory_conn = conn
        return conn

    def close(self) -> None:
        if self._memory_conn is not None:
            self._memory_conn.close()
            self._memory_conn = None
            self._initialized = False

    @contextmanager
    def connect(self):
        conn = self._open()
        try:
            if not self._initialized:
                conn.execute(card_memory_schema)
                conn.execute(goal_schema)
                self._initialized = True
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(f"Database error: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            if conn is not self._memory_conn:
                conn.close()


class SqliteCardStateRepository(CardStateRepository):
    def __init__(self, db: SqliteDatabase):
        self.db = db

    @staticmethod
    def _row_to_state(row: sqlite3.Row) -> CardMemoryState:
        return CardMemoryState(
            user_id=row["user_id"],
            card_id=row["card_id"],
            times_reviewed=row["times_reviewed"],
            times_correct=row["times_correct"],
            mastery_level=row["mastery_level"],
            mastery_score=row["mastery_score"],
            easiness_factor=row["easiness_factor"],
            interval_days=row["interval_days"],
            next_review_date=(
                date.fromisoformat(row["next_review_date"]) if row["next_review_date"] else None
            ),
            last_reviewed_at=(
                datetime.fromisoformat(row["last_reviewed_at"])
                if row["last_reviewed_at"]
                else None
            ),
            version=row["version"],
        )

    @staticmethod
    def _values(state: CardMemoryState) -> tuple:
        return (
            state.times_reviewed,
            state.times_correct,
            state.mastery_level,
            state.mastery_score,
            state.easiness_factor,
            state.interval_days,
            _iso(state.next_review_date),
            _iso(state.last_reviewed_at),
        )

    async def get(self, user_id: str, card_id: str) -> CardMemoryState | None:
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM card_memory WHERE user_id = ? AND card_id = ?",
                (user_id, card_id),
            ).fetchone()
            return self._row_to_state(row) if row else None

    async def get_many(self, user_id: str, card_ids: list[str]) -> dict[str, CardMemoryState]:
        if not card_ids:
            return {}
        placeholders = ",".join("?" for _ in card_ids)
        with self.db.connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM card_memory WHERE user_id = ? AND card_id IN ({placeholders})",
                (user_id, *card_ids),
            ).fetchall()
            return {row["card_id"]: self._row_to_state(row) for row in rows}

    async def save(self, state: CardMemoryState, expected_version: int) -> CardMemoryState:
        new_version = expected_version + 1
        with self.db.connect() as conn:
            if expected_version == 0:
                try:
                    conn.execute(
                        f"INSERT INTO card_memory (user_id, card_id, {_CARD_COLUMNS}, version) "
                        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                        (state.user_id, state.card_id, *self._values(state), new_version),
                    )
                except sqlite3.IntegrityError as e:
                    if "UNIQUE" not in str(e):
                        raise
                    raise WriteConflictError(
                        state.user_id, state.card_id, expected_version
                    ) from e
            else:
                cursor = conn.execute(
                    "UPDATE card_memory SET times_reviewed = ?, times_correct = ?, "
                    "mastery_level = ?, mastery_score = ?, easiness_factor = ?, "
                    "interval_days = ?, next_review_date = ?, last_reviewed_at = ?, "
                    "version = ? "
                    "WHERE user_id = ? AND card_id = ? AND version = ?",
                    (
                        *self._values(state),
                        new_version,
                        state.user_id,
                        state.card_id,
                        expected_version,
                    ),
                )
                if cursor.rowcount == 0:
                    raise WriteConflictError(state.user_id, state.card_id, expected_version)

        logger.debug(f"Saved card {state.card_id} for user {state.user_id} v{new_version}")
        return replace(state, version=new_version)

    async def list_reviewed(
        self, user_id: str, since: datetime | None = None
    ) -> list[CardMemoryState]:
        query = "SELECT * FROM card_memory WHERE user_id = ? AND times_reviewed > 0"
        params: list = [user_id]
        if since is not None:
            query += " AND last_reviewed_at > ?"
            params.append(since.isoformat())
        with self.db.connect() as conn:
            return [self._row_to_state(row) for row in conn.execute(query, params).fetchall()]


class SqliteGoalRepository(GoalRepository):
    def __init__(self, db: SqliteDatabase):
        self.db = db

    @staticmethod
    def _row_to_goal(row: sqlite3.Row) -> LearningGoal:
        return LearningGoal(
            goal_id=row["goal_id"],
            user_id=row["user_id"],
            goal_name=row["goal_name"],
            duration_days=row["duration_days"],
            current_day=row["current_day"],
            sessions_per_day=row["sessions_per_day"],
            target_words=row["target_words"],
            words_learned=row["words_learned"],
            sessions_completed=row["sessions_completed"],
            deck_ids=tuple(json.loads(row["deck_ids"])),
            is_active=bool(row["is_active"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            completed_at=(
                datetime.fromisoformat(row["completed_at"]) if row["completed_at"] else None
            ),
        )

    async def get(self, goal_id: str) -> LearningGoal | None:
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM learning_goals WHERE goal_id = ?", (goal_id,)
            ).fetchone()
            return self._row_to_goal(row) if row else None

    async def list_for_user(self, user_id: str) -> list[LearningGoal]:
        with self.db.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM learning_goals WHERE user_id = ? ORDER BY created_at",
                (user_id,),
            ).fetchall()
            return [self._row_to_goal(row) for row in rows]

    async def save(self, goal: LearningGoal) -> LearningGoal:
        with self.db.connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO learning_goals (goal_id, user_id, goal_name, "
                "duration_days, current_day, sessions_per_day, target_words, words_learned, "
                "sessions_completed, deck_ids, is_active, created_at, completed_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    goal.goal_id,
                    goal.user_id,
                    goal.goal_name,
                    goal.duration_days,
                    goal.current_day,
                    goal.sessions_per_day,
                    goal.target_words,
                    goal.words_learned,
                    goal.sessions_completed,
                    json.dumps(list(goal.deck_ids)),
                    int(goal.is_active),
                    goal.created_at.isoformat(),
                    _iso(goal.completed_at),
                ),
            )
        logger.debug(f"Saved goal {goal.goal_id}")
        return goal
