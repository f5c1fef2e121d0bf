from .assessment import (
    AssessmentResult,
    ErrorType,
    NBestPhoneme,
    PhonemeAssessment,
    SyllableAssessment,
    WordAssessment,
)

__all__ = [
    "AssessmentResult",
    "ErrorType",
    "NBestPhoneme",
    "PhonemeAssessment",
    "SyllableAssessment",
    "WordAssessment",
]
