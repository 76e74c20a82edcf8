"""
Weak-word risk ranker.

Scores historical review performance into a danger score for remediation.
This is a pure computation module with no I/O.
"""

from datetime import datetime

from lexis.domain.constants import (
    ACCURACY_RISK_WEIGHT,
    DANGER_THRESHOLD,
    DEFAULT_WEAK_WORD_LIMIT,
    LEECH_RISK_CAP,
    LEECH_RISK_DIVISOR,
    SCORE_RISK_CEILING,
    SCORE_RISK_DIVISOR,
)
from lexis.domain.models import ReviewHistoryRow, WeakWordEntry


class RiskRanker:
    """
    Ranks reviewed cards by how likely they are to be forgotten.

    Stateless and side-effect free.
    """

    def __init__(self, threshold: float = DANGER_THRESHOLD):
        self.threshold = threshold

    def danger_score(self, row: ReviewHistoryRow) -> float:
        """
        Combine three weighted risks:

        - accuracy: (1 - correct/reviewed) * 0.7
        - leech: wrong answers / 10, capped at 0.2
        - score: (15 - mastery score) / 150, at most 0.1
        """
        return (
            self._accuracy_risk(row) + self._leech_risk(row) + self._score_risk(row)
        )

    def _accuracy_risk(self, row: ReviewHistoryRow) -> float:
        accuracy = row.times_correct / row.times_reviewed
        return (1 - accuracy) * ACCURACY_RISK_WEIGHT

    def _leech_risk(self, row: ReviewHistoryRow) -> float:
        times_wrong = row.times_reviewed - row.times_correct
        return min(LEECH_RISK_CAP, times_wrong / LEECH_RISK_DIVISOR)

    def _score_risk(self, row: ReviewHistoryRow) -> float:
        return max(0.0, (SCORE_RISK_CEILING - row.mastery_score) / SCORE_RISK_DIVISOR)

    def rank(
        self,
        history: list[ReviewHistoryRow],
        limit: int = DEFAULT_WEAK_WORD_LIMIT,
        cutoff: datetime | None = None,
    ) -> list[WeakWordEntry]:
        """
        Return the riskiest cards, highest danger first.

        Args:
            history: Persisted review rows.
            limit: Maximum number of entries returned.
            cutoff: If set, only rows last updated after this time are scored
                (e.g. the goal's creation time, to scope analysis to one plan).
        """
        entries: list[WeakWordEntry] = []

        for row in history:
            if row.times_reviewed <= 0 or row.word is None:
                continue
            if cutoff is not None and (row.updated_at is None or row.updated_at <= cutoff):
                continue

            score = self.danger_score(row)
            if score <= self.threshold:
                continue

            entries.append(
                WeakWordEntry(
                    card_id=row.card_id,
                    word=row.word,
                    times_wrong=row.times_reviewed - row.times_correct,
                    last_wrong_at=row.updated_at,
                    danger_score=score,
                )
            )

        entries.sort(key=lambda e: e.card_id)
        entries.sort(key=lambda e: e.danger_score, reverse=True)
        return entries[: max(0, limit)]
