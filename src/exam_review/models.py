"""Data classes for quiz progress records."""
import copy
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone

# selectedOption value recorded when the question timer ran out
TIMED_OUT = -1


def parse_date(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts a trailing ``Z`` and bare dates. Naive values are taken as UTC.
    Raises ValueError for anything else.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        raise ValueError(f"date out of range: {value!r}") from None


def is_finite_number(value) -> bool:
    """True for real ints and floats that fit a float and are not NaN or infinite."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def utc_now_iso() -> str:
    """Current time in the ``2024-01-31T09:15:00.000Z`` form used in stored records."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


@dataclass
class QuizAttempt:
    id: str
    category_id: str
    date: str
    score: int = 0
    total_questions: int = 0
    time_spent: float = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "categoryId": self.category_id,
            "date": self.date,
            "score": self.score,
            "totalQuestions": self.total_questions,
            "timeSpent": self.time_spent,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QuizAttempt":
        return cls(
            id=data["id"],
            category_id=data["categoryId"],
            date=data["date"],
            score=data["score"],
            total_questions=data["totalQuestions"],
            time_spent=data.get("timeSpent") or 0,
        )


@dataclass
class QuestionAttempt:
    id: str
    quiz_attempt_id: str
    question_id: str
    category_id: str
    selected_option: int
    correct_option: int
    is_correct: bool
    time_spent: float = 0

    @property
    def timed_out(self) -> bool:
        return self.selected_option == TIMED_OUT

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "quizAttemptId": self.quiz_attempt_id,
            "questionId": self.question_id,
            "categoryId": self.category_id,
            "selectedOption": self.selected_option,
            "correctOption": self.correct_option,
            "isCorrect": self.is_correct,
            "timeSpent": self.time_spent,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QuestionAttempt":
        return cls(
            id=data["id"],
            quiz_attempt_id=data["quizAttemptId"],
            question_id=data["questionId"],
            category_id=data["categoryId"],
            selected_option=data["selectedOption"],
            correct_option=data["correctOption"],
            is_correct=data["isCorrect"],
            time_spent=data.get("timeSpent") or 0,
        )


@dataclass
class UserProgress:
    quiz_attempts: list[QuizAttempt] = field(default_factory=list)
    question_attempts: list[QuestionAttempt] = field(default_factory=list)

    def find_quiz_attempt(self, attempt_id: str) -> QuizAttempt | None:
        for attempt in self.quiz_attempts:
            if attempt.id == attempt_id:
                return attempt
        return None

    def questions_for(self, attempt_id: str) -> list[QuestionAttempt]:
        return [q for q in self.question_attempts if q.quiz_attempt_id == attempt_id]

    def copy(self) -> "UserProgress":
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        return {
            "quizAttempts": [a.to_dict() for a in self.quiz_attempts],
            "questionAttempts": [q.to_dict() for q in self.question_attempts],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserProgress":
        """Build from a mapping that has already passed schema validation."""
        return cls(
            quiz_attempts=[QuizAttempt.from_dict(a) for a in data["quizAttempts"]],
            question_attempts=[QuestionAttempt.from_dict(q) for q in data["questionAttempts"]],
        )


@dataclass
class Category:
    id: str
    name: str
    description: str = ""


@dataclass
class Question:
    id: str
    category_id: str
    question: str
    options: list[str]
    correct_option_index: int
    explanation: str = ""
    source_url: str | None = None
