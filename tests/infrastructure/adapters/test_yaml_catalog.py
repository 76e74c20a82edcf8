import pytest

from lexis.domain.errors import PersistenceError
from lexis.infrastructure.adapters.yaml_catalog import YamlDeckCatalog


@pytest.fixture
def decks_dir(tmp_path):
    d = tmp_path / "decks"
    d.mkdir()
    (d / "spanish.yaml").write_text(
        """
deck: Spanish Basics
cards:
  - id: es-001
    front: perro
    back: dog
    tags: [animals]
  - id: es-002
    front: gato
""",
        encoding="utf-8",
    )
    (d / "french.yaml").write_text(
        "deck: French\ncards:\n  - id: fr-001\n    front: chien\n", encoding="utf-8"
    )
    return d


@pytest.mark.asyncio
async def test_list_cards_for_decks(decks_dir):
    catalog = YamlDeckCatalog(decks_dir)

    cards = await catalog.list_cards(["spanish"])

    assert [c.card_id for c in cards] == ["es-001", "es-002"]
    assert cards[0].deck_id == "spanish"
    assert cards[0].back == "dog"
    assert cards[0].tags == ("animals",)
    assert cards[1].back == ""


@pytest.mark.asyncio
async def test_missing_deck_is_empty(decks_dir):
    catalog = YamlDeckCatalog(decks_dir)
    assert await catalog.list_cards(["german"]) == []


@pytest.mark.asyncio
async def test_get_texts_across_decks(decks_dir):
    catalog = YamlDeckCatalog(decks_dir)
    texts = await catalog.get_texts(["es-002", "fr-001", "unknown"])
    assert texts == {"es-002": "gato", "fr-001": "chien"}


def test_deck_ids(decks_dir, tmp_path):
    assert YamlDeckCatalog(decks_dir).deck_ids() == ["french", "spanish"]
    assert YamlDeckCatalog(tmp_path / "nowhere").deck_ids() == []


@pytest.mark.asyncio
async def test_invalid_deck_file(decks_dir):
    (decks_dir / "broken.yaml").write_text("cards:\n  - front: no id\n", encoding="utf-8")
    catalog = YamlDeckCatalog(decks_dir)

    with pytest.raises(PersistenceError):
        await catalog.list_cards(["broken"])


@pytest.mark.asyncio
async def test_malformed_yaml(decks_dir):
    (decks_dir / "bad.yaml").write_text("cards: [unclosed\n", encoding="utf-8")
    with pytest.raises(PersistenceError):
        await YamlDeckCatalog(decks_dir).list_cards(["bad"])
