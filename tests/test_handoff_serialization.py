import json

from azure_payloads import think_it_through
from realecho.models import AssessmentResult, ErrorType
from realecho.schemas import AssessmentResultOut, dump_result, load_result
from realecho.services.aggregator import aggregate_results
from realecho.services.normalizer import normalize_response


def test_round_trip_is_field_for_field_equal():
    result = normalize_response(think_it_through())

    assert load_result(dump_result(result)) == result


def test_round_trip_of_an_aggregated_report():
    chunk = normalize_response(think_it_through())
    merged = aggregate_results([chunk, chunk, chunk])

    restored = load_result(dump_result(merged))
    assert restored == merged
    assert isinstance(restored.words, tuple)
    assert restored.top_problem_words[0].error_type is ErrorType.MISPRONUNCIATION


def test_hand_off_uses_camel_case_and_wire_labels():
    payload = json.loads(dump_result(normalize_response(think_it_through())))

    assert set(payload) == {
        "recognizedText",
        "overallScore",
        "accuracyScore",
        "fluencyScore",
        "prosodyScore",
        "words",
        "topProblemWords",
    }
    think = payload["words"][0]
    assert think["errorType"] == "Mispronunciation"
    assert think["phonemes"][0]["nbestPhonemes"][0] == {"phoneme": "s", "score": 71.0}
    assert think["syllables"][0]["accuracyScore"] == 42.0
    assert payload["words"][2]["phonemes"][0]["nbestPhonemes"] == []


def test_empty_report_round_trips():
    empty = AssessmentResult("", 0.0, 0.0, 0.0)

    assert AssessmentResultOut.from_result(empty).to_result() == empty
    assert load_result(dump_result(empty)) == empty
