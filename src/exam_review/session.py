"""Quiz session recording: start, answer, finalize."""
import copy
import logging
import uuid

from exam_review.errors import ValidationError
from exam_review.models import TIMED_OUT, QuestionAttempt, QuizAttempt, is_finite_number, utc_now_iso
from exam_review.store import ProgressStore

logger = logging.getLogger(__name__)


def recompute_aggregate(session_id: str, question_attempts: list[QuestionAttempt]) -> dict:
    """Score, question count and total time for one session, from its questions."""
    questions = [q for q in question_attempts if q.quiz_attempt_id == session_id]
    return {
        "score": sum(1 for q in questions if q.is_correct),
        "total_questions": len(questions),
        "time_spent": sum(q.time_spent for q in questions),
    }


def start_session(store: ProgressStore, category_id: str, existing_id: str | None = None) -> QuizAttempt:
    """Begin a quiz session, or resume *existing_id* if it is already stored."""
    progress = store.get()
    if existing_id:
        existing = progress.find_quiz_attempt(existing_id)
        if existing:
            logger.info("Reusing existing quiz attempt %s", existing_id)
            return copy.deepcopy(existing)

    attempt = QuizAttempt(id=str(uuid.uuid4()), category_id=category_id, date=utc_now_iso())
    updated = progress.copy()
    updated.quiz_attempts.append(attempt)
    store.save(updated)
    logger.info("Created quiz attempt %s for %s", attempt.id, category_id)
    return copy.deepcopy(attempt)


def record_answer(
    store: ProgressStore,
    session_id: str,
    question_id: str,
    category_id: str,
    selected_option: int,
    correct_option: int,
    time_spent: float,
) -> QuestionAttempt | None:
    """Append a question attempt and bump the session's running counters.

    Unknown sessions are ignored. Returns the recorded attempt, or None when
    nothing was written.
    """
    progress = store.get().copy()
    quiz_attempt = progress.find_quiz_attempt(session_id)
    if quiz_attempt is None:
        logger.error("Cannot record question %s for nonexistent attempt %s", question_id, session_id)
        return None

    # Invalid options are still recorded, as a timeout, so no answer is lost.
    if not is_finite_number(selected_option):
        logger.warning("Invalid selected option %r for %s, recording as timeout", selected_option, question_id)
        selected_option = TIMED_OUT
    if not is_finite_number(correct_option):
        logger.warning("Invalid correct option %r for %s, recording as timeout", correct_option, question_id)
        correct_option = TIMED_OUT
    if not is_finite_number(time_spent) or time_spent < 0:
        logger.warning("Invalid time spent %r for %s, recording 0", time_spent, question_id)
        time_spent = 0

    is_correct = selected_option != TIMED_OUT and selected_option == correct_option
    question = QuestionAttempt(
        id=str(uuid.uuid4()),
        quiz_attempt_id=session_id,
        question_id=question_id,
        category_id=category_id,
        selected_option=selected_option,
        correct_option=correct_option,
        is_correct=is_correct,
        time_spent=time_spent,
    )
    progress.question_attempts.append(question)
    quiz_attempt.total_questions += 1
    if is_correct:
        quiz_attempt.score += 1
    quiz_attempt.time_spent += time_spent

    try:
        store.save(progress)
    except ValidationError as e:
        logger.error("Question %s not recorded for attempt %s: %s", question_id, session_id, e)
        return None
    logger.info(
        "Recorded question %s for attempt %s (correct=%s, total=%d)",
        question_id, session_id, is_correct, quiz_attempt.total_questions,
    )
    return question


def finalize_session(store: ProgressStore, session_id: str) -> QuizAttempt | None:
    """Recompute a session's aggregates from its question attempts.

    A missing attempt with orphaned questions is rebuilt from them; an attempt
    with no questions is removed. Returns the finalized attempt, or None if
    nothing remains.
    """
    if not session_id:
        logger.warning("Cannot finalize quiz: no attempt id provided")
        return None

    progress = store.get().copy()
    attempt = progress.find_quiz_attempt(session_id)
    questions = progress.questions_for(session_id)
    totals = recompute_aggregate(session_id, questions)

    if attempt is None:
        if not questions:
            logger.warning("Cannot finalize quiz: attempt %s not found", session_id)
            return None
        attempt = QuizAttempt(
            id=session_id,
            category_id=questions[0].category_id,
            date=utc_now_iso(),
            score=totals["score"],
            total_questions=totals["total_questions"],
            time_spent=totals["time_spent"],
        )
        progress.quiz_attempts.append(attempt)
        logger.info("Recreated missing quiz attempt %s from %d questions", session_id, len(questions))
    elif not questions:
        progress.quiz_attempts.remove(attempt)
        attempt = None
        logger.info("Removing empty quiz attempt %s", session_id)
    else:
        attempt.score = totals["score"]
        attempt.total_questions = totals["total_questions"]
        attempt.time_spent = totals["time_spent"]
        logger.info(
            "Finalized quiz attempt %s: %d/%d", session_id, attempt.score, attempt.total_questions,
        )

    try:
        store.save(progress)
    except ValidationError as e:
        logger.error("Could not finalize attempt %s: %s", session_id, e)
        return None
    return attempt
