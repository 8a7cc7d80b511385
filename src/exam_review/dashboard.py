"""Dashboard analytics derived from stored progress.

Every function here is a pure fold over a UserProgress snapshot; nothing is
cached or written back.
"""
import math
from datetime import date, datetime, timedelta, timezone

from exam_review.models import QuizAttempt, UserProgress, parse_date
from exam_review.store import ProgressStore

MAX_CHALLENGING_QUESTIONS = 10
PRACTICE_FREQUENCY_DAYS = 30

TIME_BINS_MINUTES = [
    ("0-5 min", 0, 5),
    ("5-10 min", 5, 10),
    ("10-15 min", 10, 15),
    ("15-20 min", 15, 20),
    ("20-25 min", 20, 25),
    ("25-30 min", 25, 30),
    ("30+ min", 30, None),
]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percent(part: float, whole: float) -> float:
    if not whole:
        return 0.0
    return part / whole * 100


def _name(category_id: str, categories: dict[str, str] | None) -> str:
    return (categories or {}).get(category_id, category_id)


def _valid_attempts(progress: UserProgress) -> list[QuizAttempt]:
    return [a for a in progress.quiz_attempts if a.total_questions > 0]


def _attempt_score(attempt: QuizAttempt) -> int:
    return round_half_up(percent(attempt.score, attempt.total_questions))


def fetch_progress(store: ProgressStore) -> UserProgress:
    """Re-read progress from storage, picking up out-of-band changes."""
    store.reset_cache()
    return store.get()


def get_dashboard_metrics(progress: UserProgress, recent: int = 5) -> dict:
    answered_ids = {q.quiz_attempt_id for q in progress.question_attempts}
    valid = [a for a in _valid_attempts(progress) if a.id in answered_ids]
    valid.sort(key=lambda a: parse_date(a.date), reverse=True)
    return {
        "total_attempts": len(valid),
        "questions_answered": len(progress.question_attempts),
        "correct_answers": sum(1 for q in progress.question_attempts if q.is_correct),
        "recent_attempts": valid[:recent],
    }


def calculate_category_performance(progress: UserProgress, categories: dict[str, str] | None = None) -> list[dict]:
    totals: dict[str, dict] = {}
    for q in progress.question_attempts:
        entry = totals.setdefault(q.category_id, {"total": 0, "correct": 0})
        entry["total"] += 1
        if q.is_correct:
            entry["correct"] += 1
    return [
        {
            "id": category_id,
            "name": _name(category_id, categories),
            "score": round_half_up(percent(t["correct"], t["total"])),
            "attempts": t["total"],
        }
        for category_id, t in totals.items()
    ]


def calculate_time_metrics(progress: UserProgress, categories: dict[str, str] | None = None) -> list[dict]:
    totals: dict[str, dict] = {}
    for q in progress.question_attempts:
        entry = totals.setdefault(q.category_id, {"time": 0, "count": 0})
        entry["time"] += q.time_spent
        entry["count"] += 1
    return [
        {
            "id": category_id,
            "name": _name(category_id, categories),
            "avg_time": round_half_up(t["time"] / t["count"]) if t["count"] else 0,
        }
        for category_id, t in totals.items()
    ]


def _bucketed_scores(progress: UserProgress, key_fn) -> list[tuple[str, int, int]]:
    buckets: dict[str, list[float]] = {}
    for attempt in _valid_attempts(progress):
        key = key_fn(parse_date(attempt.date).date())
        buckets.setdefault(key, []).append(percent(attempt.score, attempt.total_questions))
    return [
        (key, round_half_up(sum(scores) / len(scores)), len(scores))
        for key, scores in sorted(buckets.items())
    ]


def calculate_daily_progress(progress: UserProgress) -> list[dict]:
    """Average quiz percentage per UTC calendar day, oldest first."""
    return [
        {"date": key, "avg_score": avg, "attempts": count}
        for key, avg, count in _bucketed_scores(progress, lambda d: d.isoformat())
    ]


def calculate_weekly_progress(progress: UserProgress) -> list[dict]:
    """Average quiz percentage per ISO week, keyed by the week's Monday."""
    return [
        {"week": key, "avg_score": avg, "attempts": count}
        for key, avg, count in _bucketed_scores(
            progress, lambda d: (d - timedelta(days=d.weekday())).isoformat()
        )
    ]


def calculate_category_trend(progress: UserProgress, category_id: str) -> dict:
    attempts = sorted(
        (a for a in _valid_attempts(progress) if a.category_id == category_id),
        key=lambda a: parse_date(a.date),
    )
    points = [
        {"attempt_number": i, "score": _attempt_score(a), "date": a.date}
        for i, a in enumerate(attempts, 1)
    ]
    # A single point is not a trend; callers show "not enough data" instead.
    return {"category_id": category_id, "points": points, "sufficient_data": len(points) >= 2}


def calculate_first_vs_overall(progress: UserProgress, categories: dict[str, str] | None = None) -> list[dict]:
    grouped: dict[str, list[QuizAttempt]] = {}
    for attempt in progress.quiz_attempts:
        grouped.setdefault(attempt.category_id, []).append(attempt)
    results = []
    for category_id, attempts in grouped.items():
        attempts.sort(key=lambda a: parse_date(a.date))
        scores = [_attempt_score(a) for a in attempts]
        first = scores[0]
        overall = round_half_up(sum(scores) / len(scores))
        results.append({
            "id": category_id,
            "name": _name(category_id, categories),
            "first_attempt_score": first,
            "first_attempt_date": attempts[0].date,
            "overall_avg_score": overall,
            "improvement": overall - first if len(scores) > 1 else 0,
            "attempts": len(scores),
        })
    results.sort(key=lambda r: r["name"].lower())
    return results


def most_challenging_questions(
    progress: UserProgress,
    limit: int = MAX_CHALLENGING_QUESTIONS,
    questions: dict[str, str] | None = None,
) -> list[dict]:
    """Questions answered wrong most often, by incorrect rate then raw count."""
    counts: dict[str, dict] = {}
    for q in progress.question_attempts:
        entry = counts.setdefault(q.question_id, {"total": 0, "incorrect": 0})
        entry["total"] += 1
        if not q.is_correct:
            entry["incorrect"] += 1
    ranked = [
        {
            "question_id": question_id,
            "question_text": (questions or {}).get(question_id, question_id),
            "total_attempts": c["total"],
            "incorrect_attempts": c["incorrect"],
            "incorrect_rate": percent(c["incorrect"], c["total"]),
        }
        for question_id, c in counts.items()
        if c["incorrect"] > 0
    ]
    ranked.sort(key=lambda r: (r["incorrect_rate"], r["incorrect_attempts"]), reverse=True)
    return ranked[:limit]


def score_distribution(progress: UserProgress) -> list[dict]:
    bins = [
        {"range": f"{i * 10}-{i * 10 + 9}%", "start": i * 10, "end": i * 10 + 9, "count": 0}
        for i in range(10)
    ]
    bins.append({"range": "100%", "start": 100, "end": 100, "count": 0})
    for attempt in _valid_attempts(progress):
        score = min(max(_attempt_score(attempt), 0), 100)
        bins[10 if score == 100 else score // 10]["count"] += 1
    return bins


def time_distribution(progress: UserProgress) -> list[dict]:
    bins = [
        {
            "range": label,
            "start_seconds": start * 60,
            "end_seconds": end * 60 if end is not None else None,
            "count": 0,
        }
        for label, start, end in TIME_BINS_MINUTES
    ]
    for attempt in _valid_attempts(progress):
        for b in bins:
            if attempt.time_spent >= b["start_seconds"] and (
                b["end_seconds"] is None or attempt.time_spent < b["end_seconds"]
            ):
                b["count"] += 1
                break
    return bins


def question_scatter(progress: UserProgress) -> list[dict]:
    return [
        {"time_spent": q.time_spent, "is_correct": q.is_correct, "category_id": q.category_id}
        for q in progress.question_attempts
    ]


def average_time_by_correctness(progress: UserProgress) -> dict:
    correct = [q.time_spent for q in progress.question_attempts if q.is_correct]
    incorrect = [q.time_spent for q in progress.question_attempts if not q.is_correct]
    return {
        "correct": round_half_up(sum(correct) / len(correct)) if correct else 0,
        "incorrect": round_half_up(sum(incorrect) / len(incorrect)) if incorrect else 0,
    }


def quiz_score_vs_time(progress: UserProgress, categories: dict[str, str] | None = None) -> list[dict]:
    return [
        {
            "id": a.id,
            "time": a.time_spent,
            "score": _attempt_score(a),
            "category": a.category_id,
            "category_name": _name(a.category_id, categories),
            "date": a.date,
            "raw_score": a.score,
            "total_questions": a.total_questions,
        }
        for a in _valid_attempts(progress)
    ]


def calculate_practice_frequency(
    progress: UserProgress,
    days: int = PRACTICE_FREQUENCY_DAYS,
    today: date | None = None,
) -> list[dict]:
    """Quiz attempts per day over the last *days* days, oldest first."""
    if today is None:
        today = datetime.now(timezone.utc).date()
    by_day: dict[str, int] = {}
    for attempt in progress.quiz_attempts:
        key = attempt.date[:10]
        by_day[key] = by_day.get(key, 0) + 1
    window = [(today - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]
    return [{"date": day, "count": by_day.get(day, 0)} for day in window]
