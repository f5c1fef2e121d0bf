import random

import pytest

from azure_payloads import think_it_through
from realecho.errors import EmptyInputError
from realecho.models import AssessmentResult, ErrorType, WordAssessment
from realecho.services.aggregator import aggregate_results, is_problem_word, select_top_problem_words
from realecho.services.normalizer import normalize_response


def _w(text, score, error_type=ErrorType.NONE):
    return WordAssessment(word=text, accuracy_score=score, error_type=error_type)


def _chunk(text, words, overall=80.0, accuracy=80.0, fluency=80.0, prosody=0.0):
    words = tuple(words)
    return AssessmentResult(
        recognized_text=text,
        overall_score=overall,
        accuracy_score=accuracy,
        fluency_score=fluency,
        prosody_score=prosody,
        words=words,
        top_problem_words=select_top_problem_words(words),
    )


# ------------------------
# Top problem words
# ------------------------
def test_selects_low_scores_in_ascending_order():
    words = [_w("a", 95), _w("b", 50), _w("c", 79.9), _w("d", 80), _w("e", 20)]

    assert [w.word for w in select_top_problem_words(words)] == ["e", "b", "c"]


def test_error_type_overrides_a_good_score():
    words = [_w("fine", 99), _w("flagged", 95, ErrorType.MISPRONUNCIATION)]

    assert [w.word for w in select_top_problem_words(words)] == ["flagged"]


def test_every_error_type_other_than_none_qualifies():
    for error_type in ErrorType:
        assert is_problem_word(_w("x", 100, error_type)) is (error_type is not ErrorType.NONE)


def test_ties_keep_transcript_order():
    words = [_w("one", 70), _w("two", 60), _w("three", 70), _w("four", 60), _w("five", 70)]

    assert [w.word for w in select_top_problem_words(words)] == ["two", "four", "one"]


def test_at_most_three_words():
    words = [_w(str(i), 10 + i) for i in range(10)]

    assert len(select_top_problem_words(words)) == 3


def test_nothing_to_coach_gives_an_empty_tuple():
    assert select_top_problem_words([_w("great", 90), _w("job", 85)]) == ()
    assert select_top_problem_words([]) == ()


def test_selection_invariants_on_random_transcripts():
    rng = random.Random(1234)
    error_types = list(ErrorType)
    for _ in range(200):
        words = [
            _w(f"w{i}", float(rng.choice([20, 55, 70, 79, 80, 85, 100])),
               ErrorType.NONE if rng.random() < 0.8 else rng.choice(error_types))
            for i in range(rng.randint(0, 12))
        ]
        top = select_top_problem_words(words)

        assert len(top) <= 3
        assert all(w.error_type is not ErrorType.NONE or w.accuracy_score < 80 for w in top)
        scores = [w.accuracy_score for w in top]
        assert scores == sorted(scores)
        positions = [words.index(w) for w in top]
        for (s1, p1), (s2, p2) in zip(zip(scores, positions), zip(scores[1:], positions[1:])):
            if s1 == s2:
                assert p1 < p2


# ------------------------
# Aggregation
# ------------------------
def test_aggregating_nothing_is_rejected():
    with pytest.raises(EmptyInputError):
        aggregate_results([])


def test_singleton_matches_its_chunk():
    chunk = normalize_response(think_it_through())

    assert aggregate_results([chunk]) == chunk


def test_singleton_recomputes_problem_words():
    words = (_w("a", 10), _w("b", 20), _w("c", 30), _w("d", 40))
    stale = AssessmentResult("a b c d", 50.0, 50.0, 50.0, 0.0, words, top_problem_words=(words[3],))

    merged = aggregate_results([stale])
    assert [w.word for w in merged.top_problem_words] == ["a", "b", "c"]
    assert merged.words == stale.words
    assert merged.recognized_text == stale.recognized_text


def test_scores_are_equal_weight_means():
    short = _chunk("Hi.", [_w("hi", 90)], overall=90, accuracy=90, fluency=100, prosody=80)
    long = _chunk("A much longer segment.", [_w("a", 70)] * 40, overall=70, accuracy=70, fluency=60, prosody=0)

    merged = aggregate_results([short, long])
    assert merged.accuracy_score == 80.0
    assert merged.overall_score == 80.0
    assert merged.fluency_score == 80.0
    assert merged.prosody_score == 40.0


def test_text_is_space_joined_in_arrival_order():
    merged = aggregate_results([_chunk("First.", []), _chunk("", []), _chunk("Third.", [])])

    assert merged.recognized_text == "First.  Third."


def test_words_are_flattened_in_arrival_order():
    first = _chunk("a b", [_w("a", 90), _w("b", 91)])
    second = _chunk("c", [_w("c", 92)])

    merged = aggregate_results([first, second])
    assert [w.word for w in merged.words] == ["a", "b", "c"]


def test_problem_words_are_ranked_over_the_whole_recording():
    first = _chunk("x", [_w("forty", 40), _w("forty-five", 45), _w("fifty", 50)])
    second = _chunk("y", [_w("thirty", 30), _w("thirty-five", 35), _w("thirty-eight", 38)])

    merged = aggregate_results([first, second])
    assert [w.word for w in merged.top_problem_words] == ["thirty", "thirty-five", "thirty-eight"]


def test_aggregation_leaves_chunks_untouched():
    first = _chunk("a", [_w("a", 10)])
    second = _chunk("b", [_w("b", 20)])
    before = (first, second)

    aggregate_results([first, second])
    assert (first, second) == before
    assert first.words == (_w("a", 10),)
