"""Export and import of the full progress record as a portable JSON file."""
import json
import logging
import math
import uuid
from datetime import date
from pathlib import Path
from typing import Any

from exam_review.errors import ExportValidationError, ParseError
from exam_review.models import TIMED_OUT, UserProgress, is_finite_number, parse_date
from exam_review.schema import validate
from exam_review.store import ProgressStore

logger = logging.getLogger(__name__)

EXPORT_PREFIX = "exam-review-progress"
EPOCH = "1970-01-01T00:00:00.000Z"


def _as_str(value: Any, default: str) -> str:
    if value is None or isinstance(value, (dict, list)):
        return default
    text = str(value)
    return text if text else default


def _as_number(value: Any, default: float = 0) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return value if is_finite_number(value) else default
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return default
        if not math.isfinite(number):
            return default
        return int(number) if number.is_integer() else number
    return default


def _as_date(value: Any) -> str:
    if isinstance(value, str):
        try:
            parse_date(value)
            return value
        except ValueError:
            pass
    return EPOCH


def _sanitize_quiz_attempt(raw: Any) -> dict:
    raw = raw if isinstance(raw, dict) else {}
    total = max(_as_number(raw.get("totalQuestions")), 0)
    return {
        "id": _as_str(raw.get("id"), str(uuid.uuid4())),
        "categoryId": _as_str(raw.get("categoryId"), "unknown"),
        "date": _as_date(raw.get("date")),
        "score": _as_number(raw.get("score")),
        "totalQuestions": total,
        "timeSpent": _as_number(raw.get("timeSpent")),
    }


def _sanitize_question_attempt(raw: Any) -> dict:
    raw = raw if isinstance(raw, dict) else {}
    selected = _as_number(raw.get("selectedOption"), TIMED_OUT)
    correct = _as_number(raw.get("correctOption"), TIMED_OUT)
    is_correct = raw.get("isCorrect")
    if not isinstance(is_correct, bool):
        is_correct = selected != TIMED_OUT and selected == correct
    return {
        "id": _as_str(raw.get("id"), str(uuid.uuid4())),
        "quizAttemptId": _as_str(raw.get("quizAttemptId"), "unknown"),
        "questionId": _as_str(raw.get("questionId"), "unknown"),
        "categoryId": _as_str(raw.get("categoryId"), "unknown"),
        "selectedOption": selected,
        "correctOption": correct,
        "isCorrect": is_correct,
        "timeSpent": _as_number(raw.get("timeSpent")),
    }


def sanitize_progress(raw: Any) -> dict:
    """Re-type every field of a progress mapping, substituting safe defaults."""
    raw = raw if isinstance(raw, dict) else {}
    quiz_attempts = raw.get("quizAttempts")
    question_attempts = raw.get("questionAttempts")
    return {
        "quizAttempts": [
            _sanitize_quiz_attempt(a) for a in (quiz_attempts if isinstance(quiz_attempts, list) else [])
        ],
        "questionAttempts": [
            _sanitize_question_attempt(q) for q in (question_attempts if isinstance(question_attempts, list) else [])
        ],
    }


def export_filename(prefix: str = EXPORT_PREFIX) -> str:
    return f"{prefix}-{date.today().isoformat()}-{uuid.uuid4().hex[:6]}.json"


def export_progress(store: ProgressStore, directory: str = ".", prefix: str = EXPORT_PREFIX) -> Path:
    """Write the current progress to a timestamped JSON file and return its path.

    Raises ExportValidationError if the sanitized copy still fails validation.
    """
    data = sanitize_progress(store.get().to_dict())
    result = validate(data)
    if not result.valid:
        logger.error("Export aborted, sanitized progress is invalid: %s", result.error)
        raise ExportValidationError(result.error)
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / export_filename(prefix)
    path.write_text(json.dumps(data, indent=2))
    logger.info(
        "Exported %d attempts, %d questions to %s",
        len(data["quizAttempts"]), len(data["questionAttempts"]), path,
    )
    return path


def read_import_file(file_path: str) -> dict:
    """Read and parse an export file. Raises ParseError or OSError."""
    content = Path(file_path).read_text()
    text = content.strip()
    if not text:
        raise ParseError("file is empty")
    if not (text.startswith("{") and text.endswith("}")):
        raise ParseError("content does not look like a JSON object")
    try:
        return json.loads(text)
    except (json.JSONDecodeError, RecursionError) as e:
        raise ParseError(f"invalid JSON: {e}") from e


def import_progress(store: ProgressStore, file_path: str) -> bool:
    """Replace all stored progress with the contents of *file_path*.

    Returns False, leaving stored progress untouched, if the file cannot be
    read, parsed or validated.
    """
    try:
        data = read_import_file(file_path)
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Import failed, cannot read %s: %s", file_path, e)
        return False
    except ParseError as e:
        logger.error("Import failed for %s: %s", file_path, e)
        return False

    result = validate(data)
    if not result.valid:
        logger.error("Import failed for %s, validation error: %s", file_path, result.error)
        return False

    store.save(UserProgress.from_dict(data))
    store.reset_cache()
    logger.info(
        "Imported %d attempts, %d questions from %s",
        len(data["quizAttempts"]), len(data["questionAttempts"]), file_path,
    )
    return True
