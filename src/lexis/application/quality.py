"""
Quality normalizer.

Maps the outcome of any study activity onto the shared 0-5 quality scale
consumed by the SRS engine. Each activity kind has its own pure mapping
function registered in QUALITY_MAPPERS; the engine never needs to know
which activity produced a signal.
"""

import math
from collections.abc import Callable, Mapping
from typing import Any

from lexis.domain.constants import (
    MAX_QUALITY,
    MIN_QUALITY,
    RECALL_SCORE_CAP,
    RECOGNITION_SCORE_CAP,
)
from lexis.domain.errors import InvalidQualityError, UnknownActivityError, ValidationError

# ---------- Activity kinds ----------
FLASHCARD = "flashcard"
LISTEN_CHOOSE = "listen_choose"
HANGMAN = "hangman"
MATCHING = "matching"
QUIZ = "quiz"
VOCAB_BLINDER = "vocab_blinder"
WORD_SEARCH = "word_search"
SCRAMBLE = "scramble"
NINJA_SLICE = "ninja_slice"
HONEYCOMB = "honeycomb"
SPEAKING = "speaking"

# Recognition games only prove the learner recognizes a word, so they cannot
# grow the mastery score past the recognition cap.
ACTIVITY_SCORE_CAPS: dict[str, int] = {
    QUIZ: RECOGNITION_SCORE_CAP,
    MATCHING: RECOGNITION_SCORE_CAP,
    WORD_SEARCH: RECOGNITION_SCORE_CAP,
    NINJA_SLICE: RECOGNITION_SCORE_CAP,
    LISTEN_CHOOSE: RECOGNITION_SCORE_CAP,
    VOCAB_BLINDER: RECOGNITION_SCORE_CAP,
    FLASHCARD: RECALL_SCORE_CAP,
    SCRAMBLE: RECALL_SCORE_CAP,
    HANGMAN: RECALL_SCORE_CAP,
    HONEYCOMB: RECALL_SCORE_CAP,
    SPEAKING: RECALL_SCORE_CAP,
}

BINARY_CORRECT_QUALITY = 5
BINARY_WRONG_QUALITY = 0
FLASHCARD_FORGOT_QUALITY = 1
LISTEN_REPLAY_PENALTY = 2
HANGMAN_MAX_WRONG = 6


def score_cap_for(activity: str | None) -> int:
    """Mastery score growth cap for an activity; unknown kinds count as recall."""
    if activity is None:
        return RECALL_SCORE_CAP
    return ACTIVITY_SCORE_CAPS.get(activity, RECALL_SCORE_CAP)


def flashcard_quality(
    is_correct: bool, attempts: int = 1, time_seconds: float | None = None
) -> int:
    """
    Flip a card and self-grade.

    First-attempt recall is graded by response time when known:
    5 (<=3s), 4 (<=6s), 3 (<=10s), 2 (slower). Each extra attempt degrades
    the grade; forgetting the card gives 1.
    """
    if not is_correct:
        return FLASHCARD_FORGOT_QUALITY
    if attempts > 1:
        return max(1, 4 - attempts)
    if time_seconds is None or time_seconds <= 3:
        return 5
    if time_seconds <= 6:
        return 4
    if time_seconds <= 10:
        return 3
    return 2


def listen_choose_quality(is_correct: bool, replays: int = 0) -> int:
    """Hear a word and pick it; every replay costs two quality points."""
    if not is_correct:
        return 0
    return max(1, 5 - LISTEN_REPLAY_PENALTY * max(0, replays))


def hangman_quality(is_complete: bool, wrong_guesses: int = 0) -> int:
    if not is_complete or wrong_guesses >= HANGMAN_MAX_WRONG:
        return 0
    if wrong_guesses == 0:
        return 5
    if wrong_guesses <= 2:
        return 4
    if wrong_guesses <= 4:
        return 3
    return 1


def matching_quality(is_correct: bool, is_first_try: bool = True) -> int:
    if not is_correct:
        return 0
    return 4 if is_first_try else 3


def binary_quality(is_correct: bool) -> int:
    """Quiz-style games: a right answer is worth a fixed high grade."""
    return BINARY_CORRECT_QUALITY if is_correct else BINARY_WRONG_QUALITY


# Games below grade on a native 0-3 scale which is rescaled onto 0-5.


def _from_three_point(grade: int) -> int:
    return round(grade * MAX_QUALITY / 3)


def word_search_quality(is_found: bool, time_seconds: float = 0) -> int:
    if not is_found:
        return 0
    if time_seconds < 10:
        return _from_three_point(3)
    if time_seconds <= 30:
        return _from_three_point(2)
    return _from_three_point(1)


def scramble_quality(is_complete: bool, hints_used: int = 0) -> int:
    if not is_complete:
        return 0
    if hints_used == 0:
        return _from_three_point(3)
    if hints_used <= 2:
        return _from_three_point(2)
    return _from_three_point(1)


def ninja_slice_quality(is_correct: bool, is_first_try: bool = True) -> int:
    if not is_correct:
        return 0
    return _from_three_point(3 if is_first_try else 1)


def honeycomb_quality(is_correct: bool, attempts: int = 1) -> int:
    if not is_correct:
        return 0
    if attempts <= 1:
        return _from_three_point(3)
    if attempts <= 3:
        return _from_three_point(2)
    return _from_three_point(1)


QUALITY_MAPPERS: dict[str, Callable[..., float]] = {
    FLASHCARD: flashcard_quality,
    LISTEN_CHOOSE: listen_choose_quality,
    HANGMAN: hangman_quality,
    MATCHING: matching_quality,
    QUIZ: binary_quality,
    VOCAB_BLINDER: binary_quality,
    WORD_SEARCH: word_search_quality,
    SCRAMBLE: scramble_quality,
    NINJA_SLICE: ninja_slice_quality,
    HONEYCOMB: honeycomb_quality,
}


def saturate(quality: float) -> float:
    return min(MAX_QUALITY, max(MIN_QUALITY, quality))


def normalize(activity: str, outcome: Mapping[str, Any]) -> float:
    """
    Map an activity outcome onto the 0-5 quality scale.

    Args:
        activity: Activity kind, one of QUALITY_MAPPERS' keys.
        outcome: Keyword arguments for that activity's mapping function.

    Raises:
        UnknownActivityError: No mapper is registered for the activity.
        ValidationError: The outcome does not fit the mapper's parameters.
    """
    mapper = QUALITY_MAPPERS.get(activity)
    if mapper is None:
        raise UnknownActivityError(activity)
    try:
        quality = mapper(**outcome)
    except TypeError as e:
        raise ValidationError(f"Invalid outcome for {activity}: {e}") from e
    return float(saturate(quality))


def validate_quality(quality: Any) -> float:
    """Reject anything that is not a finite number within the quality scale."""
    if isinstance(quality, bool) or not isinstance(quality, int | float):
        raise InvalidQualityError(quality)
    if not math.isfinite(quality) or not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidQualityError(quality)
    return float(quality)
