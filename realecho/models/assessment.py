"""Assessment records built from pronunciation-assessment responses (offsets and durations in 100-ns ticks)."""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class ErrorType(str, Enum):
    """Word-level error classification, valued with the vendor's wire labels."""

    NONE = "None"
    MISPRONUNCIATION = "Mispronunciation"
    UNEXPECTED_BREAK = "UnexpectedBreak"
    MISSING_BREAK = "MissingBreak"
    MONOTONE = "Monotone"


@dataclass(frozen=True)
class NBestPhoneme:
    phoneme: str
    score: float


@dataclass(frozen=True)
class PhonemeAssessment:
    phoneme: str
    accuracy_score: float
    nbest_phonemes: Tuple[NBestPhoneme, ...] = ()
    offset: int = 0  # 100-ns ticks, as reported
    duration: int = 0


@dataclass(frozen=True)
class SyllableAssessment:
    syllable: str
    accuracy_score: float
    offset: int = 0
    duration: int = 0


@dataclass(frozen=True)
class WordAssessment:
    word: str
    accuracy_score: float
    error_type: ErrorType = ErrorType.NONE
    phonemes: Tuple[PhonemeAssessment, ...] = ()
    syllables: Tuple[SyllableAssessment, ...] = ()
    offset: int = 0
    duration: int = 0


@dataclass(frozen=True)
class AssessmentResult:
    recognized_text: str
    overall_score: float
    accuracy_score: float
    fluency_score: float
    prosody_score: float = 0.0  # 0 means the service did not compute it
    words: Tuple[WordAssessment, ...] = ()
    top_problem_words: Tuple[WordAssessment, ...] = ()

    @property
    def has_prosody(self) -> bool:
        return self.prosody_score > 0
