"""
YAML deck catalog — reads decks from a directory of ``<deck_id>.yaml`` files.

Each file looks like::

    deck: Spanish Basics
    cards:
      - id: es-001
        front: perro
        back: dog
        tags: [animals]
"""

import logging
from pathlib import Path

import yaml  # type: ignore
from pydantic import BaseModel, Field, ValidationError

from lexis.domain.errors import PersistenceError
from lexis.domain.models import CatalogCard
from lexis.domain.ports import CardCatalog

logger = logging.getLogger(__name__)


class DeckCardEntry(BaseModel):
    id: str
    front: str
    back: str = ""
    tags: list[str] = Field(default_factory=list)


class DeckFile(BaseModel):
    deck: str | None = None
    cards: list[DeckCardEntry] = Field(default_factory=list)


class YamlDeckCatalog(CardCatalog):
    def __init__(self, decks_dir: Path | str):
        self.decks_dir = Path(decks_dir)
        self._cache: dict[str, list[CatalogCard]] = {}

    def deck_ids(self) -> list[str]:
        if not self.decks_dir.is_dir():
            return []
        return sorted(p.stem for p in self.decks_dir.glob("*.yaml"))

    def _load_deck(self, deck_id: str) -> list[CatalogCard]:
        if deck_id in self._cache:
            return self._cache[deck_id]

        path = self.decks_dir / f"{deck_id}.yaml"
        if not path.exists():
            logger.warning(f"Deck file not found: {path}")
            self._cache[deck_id] = []
            return []

        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
            parsed = DeckFile.model_validate(raw)
        except (yaml.YAMLError, ValidationError) as e:
            raise PersistenceError(f"Invalid deck file {path}: {e}") from e

        cards = [
            CatalogCard(
                card_id=entry.id,
                deck_id=deck_id,
                front=entry.front,
                back=entry.back,
                tags=tuple(entry.tags),
            )
            for entry in parsed.cards
        ]
        logger.debug(f"Loaded {len(cards)} cards from deck {deck_id}")
        self._cache[deck_id] = cards
        return cards

    async def list_cards(self, deck_ids: list[str]) -> list[CatalogCard]:
        cards: list[CatalogCard] = []
        for deck_id in deck_ids:
            cards.extend(self._load_deck(deck_id))
        return cards

    async def get_texts(self, card_ids: list[str]) -> dict[str, str]:
        wanted = set(card_ids)
        texts: dict[str, str] = {}
        for deck_id in self.deck_ids():
            for card in self._load_deck(deck_id):
                if card.card_id in wanted:
                    texts.setdefault(card.card_id, card.front)
        return texts
