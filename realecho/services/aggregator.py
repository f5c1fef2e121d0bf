"""Problem-word selection and multi-chunk aggregation."""

from __future__ import annotations

from typing import Iterable, Sequence, Tuple

from realecho import config
from realecho.errors import EmptyInputError
from realecho.models import AssessmentResult, ErrorType, WordAssessment


def is_problem_word(word: WordAssessment, threshold: float = config.PROBLEM_WORD_THRESHOLD) -> bool:
    return word.error_type is not ErrorType.NONE or word.accuracy_score < threshold


def select_top_problem_words(
    words: Iterable[WordAssessment],
    limit: int = config.TOP_PROBLEM_WORDS,
    threshold: float = config.PROBLEM_WORD_THRESHOLD,
) -> Tuple[WordAssessment, ...]:
    """
    Pick the words most worth coaching.

    Keeps flagged words and words under ``threshold``, orders them by accuracy
    (sorted() is stable, so ties stay in transcript order) and returns the
    first ``limit``.
    """
    flagged = [w for w in words if is_problem_word(w, threshold)]
    return tuple(sorted(flagged, key=lambda w: w.accuracy_score)[:limit])


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def aggregate_results(chunks: Sequence[AssessmentResult]) -> AssessmentResult:
    """
    Merge per-segment results of one recording into a single report.

    Every chunk weighs the same in the averaged scores, whatever its duration.
    Problem words are selected again over the whole transcript.
    """
    chunks = list(chunks)
    if not chunks:
        raise EmptyInputError("No speech detected in the audio.")

    words = tuple(word for chunk in chunks for word in chunk.words)
    return AssessmentResult(
        recognized_text=" ".join(chunk.recognized_text for chunk in chunks),
        overall_score=_mean([c.overall_score for c in chunks]),
        accuracy_score=_mean([c.accuracy_score for c in chunks]),
        fluency_score=_mean([c.fluency_score for c in chunks]),
        prosody_score=_mean([c.prosody_score for c in chunks]),
        words=words,
        top_problem_words=select_top_problem_words(words),
    )
