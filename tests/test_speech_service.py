import json
from types import SimpleNamespace

import azure.cognitiveservices.speech as speechsdk
import pytest

from azure_payloads import response_json, think_it_through, word
from realecho import config
from realecho.errors import DataContractError, EmptyInputError, SpeechServiceError
from realecho.services.speech_service import SpeechAssessmentService


class _Signal:
    def __init__(self):
        self.handlers = []

    def connect(self, handler):
        self.handlers.append(handler)

    def fire(self, evt):
        for handler in self.handlers:
            handler(evt)


class FakeRecognizer:
    """Replays a scripted list of events when recognition starts."""

    def __init__(self, script):
        self.script = script
        self.recognized = _Signal()
        self.canceled = _Signal()
        self.session_stopped = _Signal()
        self.stopped = False

    def start_continuous_recognition(self):
        for signal_name, evt in self.script:
            getattr(self, signal_name).fire(evt)

    def stop_continuous_recognition(self):
        self.stopped = True


def recognized(payload, reason=speechsdk.ResultReason.RecognizedSpeech):
    props = {speechsdk.PropertyId.SpeechServiceResponse_JsonResult: payload}
    return ("recognized", SimpleNamespace(result=SimpleNamespace(reason=reason, properties=props)))


def stopped():
    return ("session_stopped", SimpleNamespace())


def canceled(reason, details=""):
    return ("canceled", SimpleNamespace(cancellation_details=SimpleNamespace(reason=reason, error_details=details)))


def _service(script, timeout_s=5):
    recognizer = FakeRecognizer(script)
    return SpeechAssessmentService(recognizer_factory=lambda path: recognizer, timeout_s=timeout_s), recognizer


def test_segments_are_aggregated_in_arrival_order():
    service, recognizer = _service(
        [
            recognized(json.dumps(think_it_through())),
            recognized("", reason=speechsdk.ResultReason.NoMatch),
            recognized(response_json([word("again", 90.0)], text="Again.", accuracy=90.0)),
            stopped(),
        ]
    )

    result = service.assess_file("clip.wav")
    assert result.recognized_text == "Think it through. Again."
    assert [w.word for w in result.words] == ["think", "it", "through", "again"]
    assert result.accuracy_score == pytest.approx((69.7 + 90.0) / 2)
    assert recognizer.stopped


def test_no_speech_segments_are_skipped():
    service, _ = _service(
        [
            recognized(response_json([], text="", status="InitialSilenceTimeout")),
            recognized(response_json([word("hi", 80.0)], text="Hi.")),
            stopped(),
        ]
    )

    assert [c.recognized_text for c in service.collect_chunks("clip.wav")] == ["Hi."]


def test_stream_without_speech_is_an_empty_input():
    service, _ = _service([recognized("", reason=speechsdk.ResultReason.NoMatch), stopped()])

    with pytest.raises(EmptyInputError):
        service.assess_file("silence.wav")


def test_end_of_stream_cancel_is_not_an_error():
    service, _ = _service(
        [
            recognized(response_json([word("hi", 80.0)], text="Hi.")),
            canceled(speechsdk.CancellationReason.EndOfStream),
        ]
    )

    assert service.assess_file("clip.wav").recognized_text == "Hi."


def test_cancel_with_error_is_a_service_error():
    service, recognizer = _service([canceled(speechsdk.CancellationReason.Error, "401 Unauthorized")])

    with pytest.raises(SpeechServiceError, match="401 Unauthorized"):
        service.assess_file("clip.wav")
    assert recognizer.stopped


def test_malformed_segment_propagates():
    service, _ = _service([recognized('{"RecognitionStatus": "Success"}'), stopped()])

    with pytest.raises(DataContractError):
        service.assess_file("clip.wav")


def test_recognition_that_never_ends_times_out():
    service, recognizer = _service([], timeout_s=0.01)

    with pytest.raises(SpeechServiceError, match="did not finish"):
        service.assess_file("clip.wav")
    assert recognizer.stopped


def test_missing_credentials(monkeypatch):
    monkeypatch.setattr(config, "AZURE_SPEECH_KEY", None)

    with pytest.raises(EnvironmentError):
        SpeechAssessmentService()
