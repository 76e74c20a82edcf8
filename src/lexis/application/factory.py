"""
Store Factory
Centralizes the logic for selecting the storage backend.
"""

import logging
from dataclasses import dataclass

from lexis.application.config import AppConfig
from lexis.application.risk_ranker import RiskRanker
from lexis.application.service import SchedulerService
from lexis.domain.ports import CardCatalog, CardStateRepository, GoalRepository
from lexis.infrastructure.adapters.memory_store import (
    InMemoryCardStateRepository,
    InMemoryGoalRepository,
)
from lexis.infrastructure.adapters.sqlite_store import (
    SqliteCardStateRepository,
    SqliteDatabase,
    SqliteGoalRepository,
)
from lexis.infrastructure.adapters.yaml_catalog import YamlDeckCatalog

logger = logging.getLogger(__name__)


@dataclass
class Repositories:
    cards: CardStateRepository
    goals: GoalRepository
    catalog: CardCatalog


def get_repositories(config: AppConfig) -> Repositories:
    """
    Returns the store implementations selected by config.backend.
    The deck catalog is always read from config.decks_dir.
    """
    catalog = YamlDeckCatalog(config.decks_dir)

    if config.backend == "memory":
        logger.debug("Backend: memory")
        return Repositories(InMemoryCardStateRepository(), InMemoryGoalRepository(), catalog)

    logger.debug(f"Backend: sqlite ({config.db_path})")
    db = SqliteDatabase(config.db_path)
    return Repositories(SqliteCardStateRepository(db), SqliteGoalRepository(db), catalog)


def get_service(config: AppConfig) -> SchedulerService:
    repos = get_repositories(config)
    return SchedulerService(
        repos.cards,
        repos.goals,
        repos.catalog,
        ranker=RiskRanker(threshold=config.weak_word_threshold),
    )
