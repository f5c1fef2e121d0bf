# -*- coding: utf-8 -*-
"""
Azure pronunciation-assessment JSON -> AssessmentResult.

One recognized segment of speech produces one detailed JSON document shaped
roughly like::

    {
      "RecognitionStatus": "Success",
      "DisplayText": "Hello world.",
      "NBest": [{
        "PronunciationAssessment": {"AccuracyScore": .., "FluencyScore": ..,
                                    "PronScore": .., "ProsodyScore": ..},
        "Words": [{
          "Word": "hello", "Offset": 500000, "Duration": 3100000,
          "PronunciationAssessment": {"AccuracyScore": .., "ErrorType": "None"},
          "Syllables": [{"Syllable": "hɛ", "Offset": .., "Duration": ..,
                         "PronunciationAssessment": {"AccuracyScore": ..}}],
          "Phonemes": [{"Phoneme": "h", "Offset": .., "Duration": ..,
                        "PronunciationAssessment": {
                            "AccuracyScore": ..,
                            "NBestPhonemes": [{"Phoneme": "h", "Score": ..}]}}]
        }]
      }]
    }

Scores, offsets and durations are copied verbatim. Optional granularity
(phonemes, syllables, n-best alternatives, prosody) becomes an empty tuple or
0 when absent; anything structurally missing raises DataContractError.
"""

from __future__ import annotations

import json
import math
from typing import Any, Mapping, Sequence, Union

from realecho.errors import DataContractError, EmptyInputError, UnrecognizedEnumValue
from realecho.models import (
    AssessmentResult,
    ErrorType,
    NBestPhoneme,
    PhonemeAssessment,
    SyllableAssessment,
    WordAssessment,
)
from realecho.services.aggregator import select_top_problem_words

RawResponse = Union[str, bytes, bytearray, Mapping[str, Any]]

NO_SPEECH_STATUSES = frozenset({"NoMatch", "InitialSilenceTimeout", "BabbleTimeout"})

_ERROR_TYPES = {member.value: member for member in ErrorType}


def _decode(raw: RawResponse) -> Mapping[str, Any]:
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = json.loads(raw)
        except (ValueError, UnicodeDecodeError) as exc:
            raise DataContractError(f"Response is not valid JSON: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise DataContractError(f"Response must be a JSON object, got {type(raw).__name__}")
    return raw


def _object(raw: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise DataContractError(f"{where}: expected an object")
    return raw


def _mapping(container: Mapping[str, Any], key: str, where: str) -> Mapping[str, Any]:
    value = container.get(key)
    if not isinstance(value, Mapping):
        raise DataContractError(f"{where}: missing object '{key}'")
    return value


def _list(container: Mapping[str, Any], key: str, where: str, *, optional: bool = False) -> Sequence[Any]:
    value = container.get(key)
    if value is None and optional:
        return ()
    if not isinstance(value, list):
        raise DataContractError(f"{where}: missing list '{key}'")
    return value


def _text(container: Mapping[str, Any], key: str, where: str) -> str:
    value = container.get(key)
    if not isinstance(value, str):
        raise DataContractError(f"{where}: missing text '{key}'")
    return value


def _score(container: Mapping[str, Any], key: str, where: str) -> float:
    value = container.get(key)
    # bool is an int subclass; a True score is never meaningful.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DataContractError(f"{where}: '{key}' must be a number, got {value!r}")
    try:
        number = float(value)
    except OverflowError:
        number = math.inf
    if not math.isfinite(number):
        raise DataContractError(f"{where}: '{key}' must be finite, got {value!r}")
    return number


def _ticks(container: Mapping[str, Any], key: str, where: str) -> int:
    value = container.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise DataContractError(f"{where}: '{key}' must be a non-negative integer, got {value!r}")
    return value


def parse_error_type(label: Any) -> ErrorType:
    """Map a vendor ErrorType label onto ErrorType, rejecting unknown labels."""
    try:
        return _ERROR_TYPES[label]
    except (KeyError, TypeError):
        raise UnrecognizedEnumValue("ErrorType", label) from None


def parse_phoneme(raw: Mapping[str, Any], where: str = "phoneme") -> PhonemeAssessment:
    raw = _object(raw, where)
    assessment = _mapping(raw, "PronunciationAssessment", where)
    nbest = tuple(
        NBestPhoneme(
            phoneme=_text(_object(alt, where), "Phoneme", f"{where}.NBestPhonemes[{i}]"),
            score=_score(alt, "Score", f"{where}.NBestPhonemes[{i}]"),
        )
        for i, alt in enumerate(_list(assessment, "NBestPhonemes", where, optional=True))
    )
    return PhonemeAssessment(
        phoneme=_text(raw, "Phoneme", where),
        accuracy_score=_score(assessment, "AccuracyScore", where),
        nbest_phonemes=nbest,
        offset=_ticks(raw, "Offset", where),
        duration=_ticks(raw, "Duration", where),
    )


def parse_syllable(raw: Mapping[str, Any], where: str = "syllable") -> SyllableAssessment:
    raw = _object(raw, where)
    assessment = _mapping(raw, "PronunciationAssessment", where)
    return SyllableAssessment(
        syllable=_text(raw, "Syllable", where),
        accuracy_score=_score(assessment, "AccuracyScore", where),
        offset=_ticks(raw, "Offset", where),
        duration=_ticks(raw, "Duration", where),
    )


def parse_word(raw: Mapping[str, Any], where: str = "word") -> WordAssessment:
    raw = _object(raw, where)
    assessment = _mapping(raw, "PronunciationAssessment", where)
    if "ErrorType" not in assessment:
        raise DataContractError(f"{where}: missing 'ErrorType'")
    phonemes = _list(raw, "Phonemes", where, optional=True)
    syllables = _list(raw, "Syllables", where, optional=True)
    return WordAssessment(
        word=_text(raw, "Word", where),
        accuracy_score=_score(assessment, "AccuracyScore", where),
        error_type=parse_error_type(assessment["ErrorType"]),
        phonemes=tuple(parse_phoneme(p, f"{where}.Phonemes[{i}]") for i, p in enumerate(phonemes)),
        syllables=tuple(parse_syllable(s, f"{where}.Syllables[{i}]") for i, s in enumerate(syllables)),
        offset=_ticks(raw, "Offset", where),
        duration=_ticks(raw, "Duration", where),
    )


def normalize_response(raw: RawResponse) -> AssessmentResult:
    """Convert one raw assessment response into an AssessmentResult."""
    data = _decode(raw)

    if data.get("RecognitionStatus") in NO_SPEECH_STATUSES:
        raise EmptyInputError("No speech detected. Please speak clearly and try again.")

    nbest = _list(data, "NBest", "response")
    if not nbest or not isinstance(nbest[0], Mapping):
        raise DataContractError("response: 'NBest' has no best hypothesis")
    best = nbest[0]
    scores = _mapping(best, "PronunciationAssessment", "NBest[0]")

    words = tuple(
        parse_word(w, f"NBest[0].Words[{i}]") for i, w in enumerate(_list(best, "Words", "NBest[0]"))
    )

    text = data.get("DisplayText")
    if not isinstance(text, str):
        text = best.get("Display") if isinstance(best.get("Display"), str) else ""

    prosody = 0.0
    if scores.get("ProsodyScore") is not None:
        prosody = _score(scores, "ProsodyScore", "NBest[0]")

    return AssessmentResult(
        recognized_text=text,
        overall_score=_score(scores, "PronScore", "NBest[0]"),
        accuracy_score=_score(scores, "AccuracyScore", "NBest[0]"),
        fluency_score=_score(scores, "FluencyScore", "NBest[0]"),
        prosody_score=prosody,
        words=words,
        top_problem_words=select_top_problem_words(words),
    )
