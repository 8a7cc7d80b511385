"""Tests for progress data classes."""
from datetime import timezone

import pytest

from exam_review.models import (
    TIMED_OUT, QuestionAttempt, QuizAttempt, UserProgress, is_finite_number, parse_date, utc_now_iso,
)


def _question(**overrides):
    data = dict(
        id="qa1", quiz_attempt_id="s1", question_id="q1", category_id="legal",
        selected_option=1, correct_option=1, is_correct=True, time_spent=10,
    )
    data.update(overrides)
    return QuestionAttempt(**data)


def test_quiz_attempt_defaults():
    a = QuizAttempt(id="a1", category_id="legal", date="2024-03-01T10:00:00.000Z")
    assert a.score == 0
    assert a.total_questions == 0
    assert a.time_spent == 0


def test_quiz_attempt_to_dict_uses_camel_case():
    a = QuizAttempt(id="a1", category_id="legal", date="2024-03-01", score=2, total_questions=3, time_spent=40)
    assert a.to_dict() == {
        "id": "a1", "categoryId": "legal", "date": "2024-03-01",
        "score": 2, "totalQuestions": 3, "timeSpent": 40,
    }


def test_quiz_attempt_from_dict_missing_time_spent():
    a = QuizAttempt.from_dict({"id": "a1", "categoryId": "c", "date": "2024-03-01", "score": 1, "totalQuestions": 1})
    assert a.time_spent == 0


def test_question_attempt_round_trips_through_dict():
    q = _question()
    assert QuestionAttempt.from_dict(q.to_dict()) == q


def test_timed_out_flag():
    assert _question(selected_option=TIMED_OUT, is_correct=False).timed_out is True
    assert _question().timed_out is False


def test_user_progress_defaults_empty():
    p = UserProgress()
    assert p.quiz_attempts == []
    assert p.question_attempts == []
    assert p.to_dict() == {"quizAttempts": [], "questionAttempts": []}


def test_user_progress_copy_is_deep():
    p = UserProgress(quiz_attempts=[QuizAttempt(id="a1", category_id="c", date="2024-03-01")])
    clone = p.copy()
    clone.quiz_attempts[0].score = 5
    clone.quiz_attempts.append(QuizAttempt(id="a2", category_id="c", date="2024-03-02"))
    assert p.quiz_attempts[0].score == 0
    assert len(p.quiz_attempts) == 1


def test_find_and_filter_helpers():
    p = UserProgress(
        quiz_attempts=[QuizAttempt(id="a1", category_id="c", date="2024-03-01")],
        question_attempts=[_question(quiz_attempt_id="a1"), _question(id="qa2", quiz_attempt_id="other")],
    )
    assert p.find_quiz_attempt("a1").id == "a1"
    assert p.find_quiz_attempt("missing") is None
    assert [q.id for q in p.questions_for("a1")] == ["qa1"]


def test_parse_date_handles_z_suffix_and_bare_dates():
    assert parse_date("2024-03-01T10:00:00.000Z").tzinfo == timezone.utc
    assert parse_date("2024-03-01").year == 2024
    assert parse_date("2024-03-01T12:00:00+02:00").hour == 10


def test_parse_date_rejects_garbage():
    with pytest.raises(ValueError):
        parse_date("not-a-date")


def test_utc_now_iso_is_parseable():
    stamp = utc_now_iso()
    assert stamp.endswith("Z")
    assert parse_date(stamp).tzinfo == timezone.utc


def test_parse_date_out_of_range_offset_is_value_error():
    with pytest.raises(ValueError):
        parse_date("0001-01-01T00:00:00+01:00")
    with pytest.raises(ValueError):
        parse_date("9999-12-31T23:59:59-01:00")


def test_parse_date_accepts_short_fractions_and_basic_format():
    assert parse_date("2024-01-31T09:15:00.1Z").microsecond == 100000
    assert parse_date("20240131").day == 31


def test_is_finite_number():
    assert is_finite_number(3)
    assert is_finite_number(2.5)
    assert not is_finite_number(10 ** 400)
    assert not is_finite_number(float("nan"))
    assert not is_finite_number(True)
    assert not is_finite_number("3")
