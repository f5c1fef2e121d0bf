"""Presentation helpers: score bands, worst phonemes and feedback text."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

from realecho import config
from realecho.models import PhonemeAssessment, WordAssessment


class ScoreLevel(str, Enum):
    GOOD = "good"
    OKAY = "okay"
    BAD = "bad"


def get_score_level(score: float) -> ScoreLevel:
    """Map a 0–100 score to its band; each band includes its lower bound."""
    if score >= config.GOOD_SCORE:
        return ScoreLevel.GOOD
    if score >= config.OKAY_SCORE:
        return ScoreLevel.OKAY
    return ScoreLevel.BAD


def find_worst_phoneme(word: WordAssessment) -> Optional[PhonemeAssessment]:
    """Return the lowest-scoring phoneme of a word (earliest on ties), or None."""
    if not word.phonemes:
        return None
    worst = word.phonemes[0]
    for phoneme in word.phonemes[1:]:
        if phoneme.accuracy_score < worst.accuracy_score:
            worst = phoneme
    return worst


def get_phoneme_comparison(phoneme: PhonemeAssessment) -> Tuple[str, Optional[str]]:
    """
    Return (expected, actual) for a phoneme.

    ``actual`` is the service's top alternative hypothesis when it differs from
    the expected phoneme, otherwise None.
    """
    actual = None
    if phoneme.nbest_phonemes and phoneme.nbest_phonemes[0].phoneme != phoneme.phoneme:
        actual = phoneme.nbest_phonemes[0].phoneme
    return phoneme.phoneme, actual


def format_phoneme_issue(word: WordAssessment) -> Optional[str]:
    worst = find_worst_phoneme(word)
    if worst is None or worst.accuracy_score >= config.PHONEME_ISSUE_THRESHOLD:
        return None
    expected, actual = get_phoneme_comparison(worst)
    if actual:
        return f"/{actual}/ instead of /{expected}/"
    return f"difficulty with /{expected}/"


def get_overall_feedback(score: float) -> str:
    if score >= 90:
        return "Excellent pronunciation!"
    if score >= 80:
        return "Great job! Minor improvements possible."
    if score >= 70:
        return "Good effort! Some words need practice."
    if score >= 60:
        return "Keep practicing! Focus on the highlighted words."
    return "Let's work on your pronunciation together."
