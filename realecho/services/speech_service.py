import logging
import queue
import threading
from typing import Any, Callable, List, Optional

import azure.cognitiveservices.speech as speechsdk

from realecho import config
from realecho.errors import DataContractError, EmptyInputError, SpeechServiceError
from realecho.models import AssessmentResult
from realecho.services.aggregator import aggregate_results
from realecho.services.normalizer import normalize_response

logger = logging.getLogger(__name__)

RecognizerFactory = Callable[[str], Any]


class SpeechAssessmentService:
    """
    Unscripted pronunciation assessment of a WAV file with Azure continuous recognition.

    SDK callbacks only normalize each recognized segment and queue it; the
    calling thread waits for the end of the stream, drains the queue into an
    ordered buffer and aggregates once.
    """

    def __init__(
        self,
        recognizer_factory: Optional[RecognizerFactory] = None,
        timeout_s: Optional[float] = None,
    ):
        if recognizer_factory is None:
            if not config.AZURE_SPEECH_KEY or not config.AZURE_SPEECH_REGION:
                raise EnvironmentError("AZURE_SPEECH_KEY / AZURE_SPEECH_REGION not set in environment variables.")
            recognizer_factory = self._create_recognizer
        self._recognizer_factory = recognizer_factory
        self.timeout_s = config.RECOGNITION_TIMEOUT_S if timeout_s is None else timeout_s

    @staticmethod
    def _speech_config() -> speechsdk.SpeechConfig:
        speech_config = speechsdk.SpeechConfig(
            subscription=config.AZURE_SPEECH_KEY,
            region=config.AZURE_SPEECH_REGION,
        )
        speech_config.speech_recognition_language = config.SPEECH_LANGUAGE
        return speech_config

    @staticmethod
    def _pronunciation_config() -> speechsdk.PronunciationAssessmentConfig:
        # Empty reference text puts the service in unscripted (speaking) mode.
        pa_config = speechsdk.PronunciationAssessmentConfig(
            reference_text="",
            grading_system=speechsdk.PronunciationAssessmentGradingSystem.HundredMark,
            granularity=speechsdk.PronunciationAssessmentGranularity.Phoneme,
            enable_miscue=False,
        )
        pa_config.phoneme_alphabet = "IPA"
        pa_config.nbest_phoneme_count = config.NBEST_PHONEME_COUNT
        pa_config.enable_prosody_assessment()
        return pa_config

    def _create_recognizer(self, wav_path: str) -> speechsdk.SpeechRecognizer:
        audio_config = speechsdk.audio.AudioConfig(filename=wav_path)
        recognizer = speechsdk.SpeechRecognizer(
            speech_config=self._speech_config(),
            audio_config=audio_config,
        )
        self._pronunciation_config().apply_to(recognizer)
        return recognizer

    def collect_chunks(self, wav_path: str) -> List[AssessmentResult]:
        """Run continuous recognition and return the normalized segments in arrival order."""
        recognizer = self._recognizer_factory(wav_path)
        outcomes: "queue.Queue[Any]" = queue.Queue()
        done = threading.Event()
        errors: List[str] = []

        def on_recognized(evt) -> None:
            if evt.result.reason != speechsdk.ResultReason.RecognizedSpeech:
                logger.debug("Ignoring recognition event with reason %s", evt.result.reason)
                return
            raw = evt.result.properties.get(speechsdk.PropertyId.SpeechServiceResponse_JsonResult)
            try:
                outcomes.put(normalize_response(raw or ""))
            except EmptyInputError:
                logger.debug("Segment carried no speech; skipping")
            except DataContractError as exc:
                outcomes.put(exc)

        def on_canceled(evt) -> None:
            details = evt.cancellation_details
            if details.reason == speechsdk.CancellationReason.Error:
                logger.error("Recognition canceled: %s", details.error_details)
                errors.append(details.error_details or "unknown error")
            done.set()

        def on_session_stopped(evt) -> None:
            done.set()

        recognizer.recognized.connect(on_recognized)
        recognizer.canceled.connect(on_canceled)
        recognizer.session_stopped.connect(on_session_stopped)

        logger.info("Starting continuous recognition for %s", wav_path)
        try:
            recognizer.start_continuous_recognition()
        except RuntimeError as exc:
            raise SpeechServiceError(f"Failed to start recognition: {exc}") from exc
        try:
            finished = done.wait(self.timeout_s)
        finally:
            recognizer.stop_continuous_recognition()

        if not finished:
            raise SpeechServiceError(f"Recognition did not finish within {self.timeout_s:.0f}s")
        if errors:
            raise SpeechServiceError(f"Recognition error: {errors[0]}")

        buffer: List[AssessmentResult] = []
        while True:
            try:
                item = outcomes.get_nowait()
            except queue.Empty:
                break
            if isinstance(item, Exception):
                raise item
            buffer.append(item)
        logger.info("Recognition finished with %d segment(s)", len(buffer))
        return buffer

    def assess_file(self, wav_path: str) -> AssessmentResult:
        chunks = self.collect_chunks(wav_path)
        if not chunks:
            raise EmptyInputError("No speech detected in the audio file.")
        return aggregate_results(chunks)
