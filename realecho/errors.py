"""Failures raised while turning assessment responses into reports."""

from __future__ import annotations


class AssessmentError(Exception):
    """Base class for assessment normalization and aggregation failures."""


class DataContractError(AssessmentError):
    """Raised when a vendor response is malformed or structurally incomplete."""


class UnrecognizedEnumValue(DataContractError):
    """Raised when a word error classification is outside the known set."""

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = value
        super().__init__(f"Unrecognized {field}: {value!r}")


class EmptyInputError(AssessmentError):
    """Raised when there is no speech to report on."""


class SpeechServiceError(RuntimeError):
    """Raised when the cloud recognizer cancels with an error or cannot run."""
