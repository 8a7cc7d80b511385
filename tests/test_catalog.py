# tests/test_catalog.py
from exam_review.catalog import (
    category_names, get_category_name, load_categories, load_questions, question_texts,
)


def test_categories_load():
    categories = load_categories()
    assert len(categories) == 5
    assert {c.id for c in categories} >= {"leadership", "legal"}
    assert all(c.name and c.description for c in categories)


def test_questions_are_well_formed():
    questions = load_questions()
    assert len({q.id for q in questions}) == len(questions)
    known = {c.id for c in load_categories()}
    for q in questions:
        assert q.category_id in known
        assert len(q.options) >= 2
        assert 0 <= q.correct_option_index < len(q.options)


def test_load_questions_filters_by_category():
    legal = load_questions("legal")
    assert legal
    assert all(q.category_id == "legal" for q in legal)
    assert load_questions("no-such-category") == []


def test_category_name_lookup():
    assert category_names()["legal"] == "Legal Aspects"
    assert get_category_name("legal") == "Legal Aspects"
    assert get_category_name("retired-category") == "retired-category"
    assert get_category_name("x", {"x": "Custom"}) == "Custom"


def test_question_texts_keyed_by_id():
    texts = question_texts()
    assert set(texts) == {q.id for q in load_questions()}
