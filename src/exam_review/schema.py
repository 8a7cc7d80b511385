"""Record schema and structural validation for persisted progress.

Validation is structural only: it checks field presence and types on every
quiz and question attempt, but not that a question's ``quizAttemptId`` points
at an existing quiz attempt.
"""
from dataclasses import dataclass
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, StrictBool, StrictStr, StringConstraints, field_validator
from pydantic import ValidationError as PydanticValidationError

from exam_review.errors import ValidationError
from exam_review.models import is_finite_number, parse_date

ARRAY_FIELDS = ("quizAttempts", "questionAttempts")


def _finite_number(value: Any) -> Any:
    if not is_finite_number(value):
        raise ValueError("must be a finite number")
    return value


NonEmptyStr = Annotated[StrictStr, StringConstraints(min_length=1)]
FiniteNumber = Annotated[float, BeforeValidator(_finite_number)]


class QuizAttemptRecord(BaseModel):
    id: NonEmptyStr
    categoryId: NonEmptyStr
    date: NonEmptyStr
    score: FiniteNumber
    totalQuestions: FiniteNumber
    timeSpent: Optional[FiniteNumber] = None

    @field_validator("date")
    @classmethod
    def _parseable_date(cls, v: str) -> str:
        try:
            parse_date(v)
        except ValueError:
            raise ValueError("must be a valid ISO-8601 date") from None
        return v

    @field_validator("totalQuestions")
    @classmethod
    def _non_negative_total(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must be >= 0")
        return v


class QuestionAttemptRecord(BaseModel):
    id: NonEmptyStr
    quizAttemptId: NonEmptyStr
    questionId: NonEmptyStr
    categoryId: NonEmptyStr
    selectedOption: FiniteNumber
    correctOption: FiniteNumber
    isCorrect: StrictBool
    timeSpent: Optional[FiniteNumber] = None


RECORD_MODELS = {
    "quizAttempts": QuizAttemptRecord,
    "questionAttempts": QuestionAttemptRecord,
}


@dataclass
class ValidationResult:
    valid: bool
    error: Optional[str] = None


def _describe(array: str, index: int, exc: PydanticValidationError) -> str:
    first = exc.errors()[0]
    loc = ".".join(str(part) for part in first["loc"])
    where = f"{array}[{index}]" + (f".{loc}" if loc else "")
    return f"{where}: {first['msg']}"


def validate(candidate: Any) -> ValidationResult:
    """Check an untrusted object against the UserProgress shape.

    Returns a ValidationResult; the error names the offending array, index and
    field so corrupted state can be diagnosed from the log alone.
    """
    if not isinstance(candidate, dict):
        return ValidationResult(False, "Progress data must be an object")
    for array in ARRAY_FIELDS:
        if not isinstance(candidate.get(array), list):
            return ValidationResult(False, f"{array} must be an array")
    for array in ARRAY_FIELDS:
        model = RECORD_MODELS[array]
        for index, item in enumerate(candidate[array]):
            if not isinstance(item, dict):
                return ValidationResult(False, f"{array}[{index}]: must be an object")
            try:
                model.model_validate(item)
            except PydanticValidationError as exc:
                return ValidationResult(False, _describe(array, index, exc))
    return ValidationResult(True)


def ensure_valid(candidate: Any) -> None:
    """Raise ValidationError if *candidate* does not validate."""
    result = validate(candidate)
    if not result.valid:
        raise ValidationError(result.error)
