"""Hand-off of weak words to the ElevenLabs conversational coach."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence, Tuple

import requests

from realecho import config
from realecho.models import AssessmentResult, WordAssessment
from realecho.services.score_levels import format_phoneme_issue

logger = logging.getLogger(__name__)

SIGNED_URL_PATH = "/v1/convai/conversation/get-signed-url"


class CoachingTokenError(RuntimeError):
    """Raised when ElevenLabs refuses to issue a signed conversation URL."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


def problem_words_for_coaching(result: AssessmentResult) -> Tuple[WordAssessment, ...]:
    """Words to drill: the selected problem words, else the start of the transcript."""
    if result.top_problem_words:
        return result.top_problem_words
    return result.words[: config.COACHING_FALLBACK_WORDS]


def build_coaching_prompt(problem_words: Sequence[WordAssessment]) -> str:
    details = []
    for word in problem_words:
        issue = format_phoneme_issue(word)
        details.append(f'"{word.word}" ({issue})' if issue else f'"{word.word}"')

    return (
        f"Focus on these problem words: {', '.join(details)}.\n"
        "For each word:\n"
        "1. Say it clearly for the user\n"
        "2. Ask them to repeat\n"
        "3. Give specific phoneme corrections based on the issues above\n"
        "4. Use the word in a sentence for shadowing practice"
    )


def build_first_message(problem_words: Sequence[WordAssessment]) -> str:
    if not problem_words:
        return (
            "Great job! Your pronunciation was quite good. "
            "Let's practice some commonly challenging words to make it even better."
        )

    first = problem_words[0]
    issue = format_phoneme_issue(first)
    if issue:
        return (
            f'I noticed you had some trouble with "{first.word}" - it sounds like you said {issue}. '
            "Let's work on that together. Listen carefully and repeat after me..."
        )
    return (
        f'I noticed you had trouble with "{first.word}". '
        "Let's practice that together. Listen carefully and repeat after me..."
    )


class CoachingService:
    def __init__(
        self,
        agent_id: Optional[str] = None,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ):
        self.agent_id = agent_id or config.ELEVENLABS_AGENT_ID
        self.api_key = api_key or config.ELEVENLABS_API_KEY
        self._session = session or requests.Session()
        self.timeout = timeout

    def get_signed_url(self) -> Dict[str, str]:
        """
        Ask ElevenLabs for a signed websocket URL for the configured agent.

        Returns:
            {"signed_url": ..., "agent_id": ...}
        """
        if not self.agent_id or not self.api_key:
            raise EnvironmentError("ElevenLabs credentials not configured")

        try:
            response = self._session.get(
                config.ELEVENLABS_API_URL.rstrip("/") + SIGNED_URL_PATH,
                params={"agent_id": self.agent_id},
                headers={"xi-api-key": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("ElevenLabs request failed: %s", exc)
            raise CoachingTokenError("Failed to get signed URL") from exc

        if not response.ok:
            logger.error("ElevenLabs API error (%s): %s", response.status_code, response.text)
            raise CoachingTokenError("Failed to get signed URL", status_code=response.status_code)

        signed_url = response.json().get("signed_url")
        if not signed_url:
            raise CoachingTokenError("No signed URL received from ElevenLabs")
        return {"signed_url": signed_url, "agent_id": self.agent_id}
