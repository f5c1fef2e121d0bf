"""Pydantic schemas for request and response payloads."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from realecho.models import (
    AssessmentResult,
    ErrorType,
    NBestPhoneme,
    PhonemeAssessment,
    SyllableAssessment,
    WordAssessment,
)
from realecho.services.score_levels import ScoreLevel


class _HandOffModel(BaseModel):
    """camelCase JSON shape shared with the browser client and the coaching agent."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class NBestPhonemeOut(_HandOffModel):
    phoneme: str
    score: float


class PhonemeOut(_HandOffModel):
    phoneme: str
    accuracy_score: float
    nbest_phonemes: List[NBestPhonemeOut] = Field(default_factory=list)
    offset: int = Field(0, ge=0)
    duration: int = Field(0, ge=0)

    @classmethod
    def from_phoneme(cls, phoneme: PhonemeAssessment) -> "PhonemeOut":
        return cls(
            phoneme=phoneme.phoneme,
            accuracy_score=phoneme.accuracy_score,
            nbest_phonemes=[NBestPhonemeOut(phoneme=n.phoneme, score=n.score) for n in phoneme.nbest_phonemes],
            offset=phoneme.offset,
            duration=phoneme.duration,
        )

    def to_phoneme(self) -> PhonemeAssessment:
        return PhonemeAssessment(
            phoneme=self.phoneme,
            accuracy_score=self.accuracy_score,
            nbest_phonemes=tuple(NBestPhoneme(phoneme=n.phoneme, score=n.score) for n in self.nbest_phonemes),
            offset=self.offset,
            duration=self.duration,
        )


class SyllableOut(_HandOffModel):
    syllable: str
    accuracy_score: float
    offset: int = Field(0, ge=0)
    duration: int = Field(0, ge=0)


class WordOut(_HandOffModel):
    word: str
    accuracy_score: float
    error_type: ErrorType
    phonemes: List[PhonemeOut] = Field(default_factory=list)
    syllables: List[SyllableOut] = Field(default_factory=list)
    offset: int = Field(0, ge=0)
    duration: int = Field(0, ge=0)

    @classmethod
    def from_word(cls, word: WordAssessment) -> "WordOut":
        return cls(
            word=word.word,
            accuracy_score=word.accuracy_score,
            error_type=word.error_type,
            phonemes=[PhonemeOut.from_phoneme(p) for p in word.phonemes],
            syllables=[
                SyllableOut(
                    syllable=s.syllable,
                    accuracy_score=s.accuracy_score,
                    offset=s.offset,
                    duration=s.duration,
                )
                for s in word.syllables
            ],
            offset=word.offset,
            duration=word.duration,
        )

    def to_word(self) -> WordAssessment:
        return WordAssessment(
            word=self.word,
            accuracy_score=self.accuracy_score,
            error_type=self.error_type,
            phonemes=tuple(p.to_phoneme() for p in self.phonemes),
            syllables=tuple(
                SyllableAssessment(
                    syllable=s.syllable,
                    accuracy_score=s.accuracy_score,
                    offset=s.offset,
                    duration=s.duration,
                )
                for s in self.syllables
            ),
            offset=self.offset,
            duration=self.duration,
        )


class AssessmentResultOut(_HandOffModel):
    recognized_text: str
    overall_score: float
    accuracy_score: float
    fluency_score: float
    prosody_score: float = 0.0
    words: List[WordOut] = Field(default_factory=list)
    top_problem_words: List[WordOut] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: AssessmentResult) -> "AssessmentResultOut":
        return cls(
            recognized_text=result.recognized_text,
            overall_score=result.overall_score,
            accuracy_score=result.accuracy_score,
            fluency_score=result.fluency_score,
            prosody_score=result.prosody_score,
            words=[WordOut.from_word(w) for w in result.words],
            top_problem_words=[WordOut.from_word(w) for w in result.top_problem_words],
        )

    def to_result(self) -> AssessmentResult:
        return AssessmentResult(
            recognized_text=self.recognized_text,
            overall_score=self.overall_score,
            accuracy_score=self.accuracy_score,
            fluency_score=self.fluency_score,
            prosody_score=self.prosody_score,
            words=tuple(w.to_word() for w in self.words),
            top_problem_words=tuple(w.to_word() for w in self.top_problem_words),
        )


def dump_result(result: AssessmentResult) -> str:
    """Serialize a result to its hand-off JSON."""
    return AssessmentResultOut.from_result(result).model_dump_json(by_alias=True)


def load_result(payload: Union[str, bytes]) -> AssessmentResult:
    """Read a result back from its hand-off JSON."""
    return AssessmentResultOut.model_validate_json(payload).to_result()


# ------------------------
# API payloads
# ------------------------
class AudioAssessmentRequest(BaseModel):
    audio_b64: str = Field(..., min_length=1, description="Base64 audio (a data URL is accepted)")


class ChunksAssessmentRequest(BaseModel):
    chunks: List[Union[Dict[str, Any], str]] = Field(
        ..., description="Raw detailed recognition results, one per recognized segment, in arrival order"
    )


class AssessmentOut(BaseModel):
    public_id: str
    source: Literal["upload", "chunks"]
    created_at: str
    result: AssessmentResultOut
    overall_level: ScoreLevel
    feedback: str
    has_prosody: bool


class AssessmentSummaryOut(BaseModel):
    public_id: str
    source: Literal["upload", "chunks"]
    created_at: str
    recognized_text: str
    overall_score: float
    overall_level: ScoreLevel


class CoachingContextOut(BaseModel):
    assessment_id: str
    problem_words: List[WordOut]
    phoneme_issues: List[Optional[str]]
    prompt: str
    first_message: str


class ConversationTokenOut(BaseModel):
    signed_url: str
    agent_id: str

    @field_validator("signed_url")
    @classmethod
    def _signed_url_non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("signed_url must not be empty")
        return value
