# Infrastructure Adapters Package
from .memory_store import InMemoryCardCatalog, InMemoryCardStateRepository, InMemoryGoalRepository
from .sqlite_store import SqliteCardStateRepository, SqliteDatabase, SqliteGoalRepository
from .yaml_catalog import YamlDeckCatalog

__all__ = [
    "InMemoryCardStateRepository",
    "InMemoryGoalRepository",
    "InMemoryCardCatalog",
    "SqliteDatabase",
    "SqliteCardStateRepository",
    "SqliteGoalRepository",
    "YamlDeckCatalog",
]
