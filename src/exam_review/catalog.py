"""Read-only category and question catalog."""
import json
from functools import lru_cache
from pathlib import Path

from exam_review.models import Category, Question

CONTENT_DIR = Path(__file__).parent / "content"


@lru_cache(maxsize=None)
def _load_catalog() -> dict:
    return json.loads((CONTENT_DIR / "catalog.json").read_text())


def load_categories() -> list[Category]:
    return [
        Category(id=c["id"], name=c["name"], description=c.get("description", ""))
        for c in _load_catalog()["categories"]
    ]


def load_questions(category_id: str | None = None) -> list[Question]:
    """All catalog questions, or only those in *category_id*."""
    return [
        Question(
            id=q["id"],
            category_id=q["categoryId"],
            question=q["question"],
            options=list(q["options"]),
            correct_option_index=q["correctOptionIndex"],
            explanation=q.get("explanation", ""),
            source_url=q.get("sourceUrl"),
        )
        for q in _load_catalog()["questions"]
        if category_id is None or q["categoryId"] == category_id
    ]


def category_names() -> dict[str, str]:
    return {c.id: c.name for c in load_categories()}


def question_texts() -> dict[str, str]:
    return {q.id: q.question for q in load_questions()}


def get_category_name(category_id: str, names: dict[str, str] | None = None) -> str:
    """Display name for a category; unknown ids are shown verbatim."""
    if names is None:
        names = category_names()
    return names.get(category_id, category_id)
