from datetime import datetime

import pytest

from lexis.application.risk_ranker import RiskRanker
from lexis.domain.models import ReviewHistoryRow

UPDATED = datetime(2025, 3, 9, 18, 30)


def _row(card_id, reviewed, correct, score, word="word", updated_at=UPDATED):
    return ReviewHistoryRow(
        card_id=card_id,
        times_reviewed=reviewed,
        times_correct=correct,
        mastery_score=score,
        updated_at=updated_at,
        word=word,
    )


@pytest.fixture
def ranker():
    return RiskRanker()


def test_danger_score_components(ranker):
    card_a = _row("a", 10, 3, 5)
    card_b = _row("b", 10, 9, 12)

    assert ranker.danger_score(card_a) == pytest.approx(0.49 + 0.2 + 10 / 150)
    assert ranker.danger_score(card_a) == pytest.approx(0.757, abs=1e-3)
    assert ranker.danger_score(card_b) == pytest.approx(0.19)


def test_rank_keeps_risky_cards_only(ranker):
    entries = ranker.rank([_row("b", 10, 9, 12, word="gato"), _row("a", 10, 3, 5, word="perro")])

    assert [e.card_id for e in entries] == ["a"]
    entry = entries[0]
    assert entry.word == "perro"
    assert entry.times_wrong == 7
    assert entry.last_wrong_at == UPDATED


def test_rank_sorted_by_danger_descending(ranker):
    rows = [_row("mild", 4, 2, 6), _row("worst", 5, 0, 0), _row("bad", 6, 1, 2)]
    assert [e.card_id for e in ranker.rank(rows)] == ["worst", "bad", "mild"]


def test_leech_risk_is_capped(ranker):
    assert ranker.danger_score(_row("x", 40, 0, 15)) == pytest.approx(0.7 + 0.2)


def test_unreviewed_and_unnamed_rows_skipped(ranker):
    rows = [_row("zero", 0, 0, 0), _row("nameless", 5, 0, 0, word=None)]
    assert ranker.rank(rows) == []


def test_cutoff_scopes_to_recent_rows(ranker):
    rows = [
        _row("old", 5, 0, 0, updated_at=datetime(2025, 2, 1)),
        _row("new", 5, 0, 0, updated_at=datetime(2025, 3, 5)),
        _row("unknown", 5, 0, 0, updated_at=None),
    ]
    entries = ranker.rank(rows, cutoff=datetime(2025, 3, 1))
    assert [e.card_id for e in entries] == ["new"]


def test_limit_truncates(ranker):
    rows = [_row(f"c{i}", 5, 0, 0) for i in range(10)]
    entries = ranker.rank(rows, limit=3)
    assert [e.card_id for e in entries] == ["c0", "c1", "c2"]


def test_custom_threshold():
    strict = RiskRanker(threshold=0.8)
    assert strict.rank([_row("a", 10, 3, 5)]) == []
