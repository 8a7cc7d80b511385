"""Tests for the cached progress store."""
import json

import pytest

from exam_review.db import init_db, read_value, write_value
from exam_review.errors import ValidationError
from exam_review.models import QuizAttempt, UserProgress
from exam_review.store import STORAGE_KEY, ProgressStore


def _progress():
    return UserProgress(quiz_attempts=[
        QuizAttempt(id="a1", category_id="legal", date="2024-03-01T10:00:00.000Z", score=1, total_questions=2, time_spent=20),
    ])


def test_get_on_fresh_database_is_empty(store):
    assert store.get() == UserProgress()


def test_save_persists_json_document(store, tmp_db):
    store.save(_progress())
    stored = json.loads(read_value(tmp_db, STORAGE_KEY))
    assert stored["quizAttempts"][0]["categoryId"] == "legal"
    assert stored["questionAttempts"] == []


def test_new_store_reads_saved_progress(store, tmp_db):
    store.save(_progress())
    assert ProgressStore(tmp_db).get() == _progress()


def test_get_returns_cached_object(store, tmp_db):
    first = store.get()
    write_value(tmp_db, STORAGE_KEY, json.dumps(_progress().to_dict()))
    assert store.get() is first
    assert store.get().quiz_attempts == []


def test_reset_cache_forces_reload(store, tmp_db):
    store.get()
    write_value(tmp_db, STORAGE_KEY, json.dumps(_progress().to_dict()))
    store.reset_cache()
    assert store.get() == _progress()


def test_invalid_stored_data_falls_back_to_empty(tmp_db):
    init_db(tmp_db)
    bad = _progress().to_dict()
    bad["quizAttempts"][0]["date"] = "garbage"
    write_value(tmp_db, STORAGE_KEY, json.dumps(bad))
    assert ProgressStore(tmp_db).get() == UserProgress()


def test_corrupt_json_falls_back_to_empty(tmp_db):
    init_db(tmp_db)
    write_value(tmp_db, STORAGE_KEY, "{not json")
    assert ProgressStore(tmp_db).get() == UserProgress()


def test_save_rejects_invalid_progress_and_keeps_prior_state(store, tmp_db):
    store.save(_progress())
    bad = _progress()
    bad.quiz_attempts[0].date = "never"
    with pytest.raises(ValidationError):
        store.save(bad)
    assert json.loads(read_value(tmp_db, STORAGE_KEY)) == _progress().to_dict()
    assert store.get() == _progress()


def test_store_without_medium_degrades_silently():
    store = ProgressStore(None)
    assert store.get() == UserProgress()
    store.save(_progress())  # should not raise
    assert store.get() == _progress()
    store.reset_cache()
    assert store.get() == UserProgress()


def test_unwritable_location_is_treated_as_unavailable(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    store = ProgressStore(str(blocker / "sub" / "progress.db"))
    assert store.get() == UserProgress()
    store.save(_progress())  # should not raise


def test_out_of_range_stored_values_fall_back_to_empty(tmp_db):
    init_db(tmp_db)
    for field, value in (("date", "9999-12-31T23:59:59-01:00"), ("score", 10 ** 400)):
        bad = _progress().to_dict()
        bad["quizAttempts"][0][field] = value
        write_value(tmp_db, STORAGE_KEY, json.dumps(bad))
        assert ProgressStore(tmp_db).get() == UserProgress()


def test_deeply_nested_stored_json_falls_back_to_empty(tmp_db):
    init_db(tmp_db)
    nested = '{"quizAttempts": ' + "[" * 100000 + "]" * 100000 + ', "questionAttempts": []}'
    write_value(tmp_db, STORAGE_KEY, nested)
    assert ProgressStore(tmp_db).get() == UserProgress()
