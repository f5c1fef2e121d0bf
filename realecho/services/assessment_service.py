"""Domain services built on top of repositories."""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, List, Mapping, Sequence, Union
from datetime import datetime
from uuid import uuid4

from fastapi import HTTPException

from realecho.errors import EmptyInputError
from realecho.models import AssessmentResult
from realecho.repositories import AssessmentRepository
from realecho.schemas import (
    AssessmentOut,
    AssessmentResultOut,
    AssessmentSummaryOut,
    CoachingContextOut,
    WordOut,
    dump_result,
    load_result,
)
from realecho.services.aggregator import aggregate_results
from realecho.services.audio_service import AudioService
from realecho.services.coaching_service import (
    build_coaching_prompt,
    build_first_message,
    problem_words_for_coaching,
)
from realecho.services.normalizer import normalize_response
from realecho.services.score_levels import format_phoneme_issue, get_overall_feedback, get_score_level
from realecho.services.speech_service import SpeechAssessmentService

logger = logging.getLogger(__name__)


class AssessmentService:
    """Run assessments, keep the resulting reports and build coaching hand-offs."""

    def __init__(
        self,
        repo: AssessmentRepository,
        utc_now: Callable[[], datetime],
        audio_service: AudioService,
        speech_service_factory: Callable[[], SpeechAssessmentService],
    ):
        """Store dependencies; the speech service is only built when audio arrives."""
        self._repo = repo
        self._utc_now = utc_now
        self._audio_service = audio_service
        self._speech_service_factory = speech_service_factory

    def assess_upload(self, audio_path: str) -> AssessmentOut:
        """Convert an uploaded recording, assess it and store the aggregated report."""
        wav_path = self._audio_service.convert_to_wav(audio_path)
        try:
            result = self._speech_service_factory().assess_file(wav_path)
        finally:
            if os.path.exists(wav_path):
                os.remove(wav_path)
        return self._record(result, "upload")

    def assess_chunks(self, raw_chunks: Sequence[Union[str, Mapping[str, Any]]]) -> AssessmentOut:
        """Normalize segment responses collected by a live client and store the aggregated report."""
        chunks: List[AssessmentResult] = []
        for raw in raw_chunks:
            try:
                chunks.append(normalize_response(raw))
            except EmptyInputError:
                logger.debug("Skipping segment without speech")
        return self._record(aggregate_results(chunks), "chunks")

    def get(self, public_id: str) -> AssessmentOut:
        row = self._repo.find_by_public_id(public_id)
        if not row:
            raise HTTPException(status_code=404, detail="Assessment not found")
        return self._row_to_assessment_out(row)

    def list_recent(self, limit: int) -> List[AssessmentSummaryOut]:
        summaries = []
        for row in self._repo.list_recent(limit):
            result = load_result(row["result_json"])
            summaries.append(
                AssessmentSummaryOut(
                    public_id=row["public_id"],
                    source=row["source"],
                    created_at=row["created_at"],
                    recognized_text=result.recognized_text,
                    overall_score=result.overall_score,
                    overall_level=get_score_level(result.overall_score),
                )
            )
        return summaries

    def coaching_context(self, public_id: str) -> CoachingContextOut:
        """Build what the voice agent needs to drill the weakest words of a stored report."""
        row = self._repo.find_by_public_id(public_id)
        if not row:
            raise HTTPException(status_code=404, detail="Assessment not found")
        words = problem_words_for_coaching(load_result(row["result_json"]))
        return CoachingContextOut(
            assessment_id=row["public_id"],
            problem_words=[WordOut.from_word(w) for w in words],
            phoneme_issues=[format_phoneme_issue(w) for w in words],
            prompt=build_coaching_prompt(words),
            first_message=build_first_message(words),
        )

    def _record(self, result: AssessmentResult, source: str) -> AssessmentOut:
        row = self._repo.insert(
            public_id=str(uuid4()),
            source=source,
            result_json=dump_result(result),
            created_at=self._utc_now().isoformat(timespec="seconds"),
        )
        logger.info("Stored %s assessment %s (%d words)", source, row["public_id"], len(result.words))
        return self._row_to_assessment_out(row)

    @staticmethod
    def _row_to_assessment_out(row: Mapping[str, Any]) -> AssessmentOut:
        """Build an AssessmentOut instance from a repository row."""
        result = load_result(row["result_json"])
        return AssessmentOut(
            public_id=row["public_id"],
            source=row["source"],
            created_at=row["created_at"],
            result=AssessmentResultOut.from_result(result),
            overall_level=get_score_level(result.overall_score),
            feedback=get_overall_feedback(result.overall_score),
            has_prosody=result.has_prosody,
        )
