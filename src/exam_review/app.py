"""Interactive CLI application."""
import logging
import os
import random
import time

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from exam_review.catalog import category_names, load_categories, load_questions, question_texts
from exam_review.dashboard import (
    average_time_by_correctness, calculate_category_performance, calculate_first_vs_overall,
    calculate_practice_frequency, calculate_time_metrics, calculate_weekly_progress,
    fetch_progress, get_dashboard_metrics, most_challenging_questions, score_distribution,
    time_distribution,
)
from exam_review.db import DEFAULT_DB_PATH
from exam_review.errors import ExportValidationError, ValidationError
from exam_review.models import TIMED_OUT, Question
from exam_review.session import finalize_session, record_answer, start_session
from exam_review.store import ProgressStore
from exam_review.transfer import export_progress, import_progress

console = Console()
logger = logging.getLogger(__name__)

# Seconds allowed per question before an answer counts as timed out
QUESTION_TIME_LIMIT = 120

EXIT_WORDS = ("q", "menu")


class SessionExitRequested(Exception):
    """User asked to leave the current quiz."""


def configure_logging() -> None:
    level = os.environ.get("EXAM_REVIEW_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def session_prompt(prompt: str, choices: list[str] | None = None) -> str:
    if choices:
        answer = Prompt.ask(prompt, choices=[*choices, *EXIT_WORDS], show_choices=False)
    else:
        answer = Prompt.ask(prompt)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def show_welcome():
    console.print(Panel(
        "[bold]Exam Review[/bold]\n[dim]Practice quizzes and progress tracking[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("quiz", "Practice quiz by category"),
        ("dashboard", "Scores, trends and weak spots"),
        ("export", "Save progress to a JSON file"),
        ("import", "Replace progress from a JSON file"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def run_quiz_session(store: ProgressStore, category_id: str, questions: list[Question],
                     clock=time.monotonic) -> tuple[int, int]:
    """Ask each question, recording answers as they come. Typing 'q' ends early.

    The session is finalized on the way out, whether or not it was completed.
    """
    if not questions:
        console.print("[yellow]No questions available![/yellow]")
        return 0, 0
    attempt = start_session(store, category_id)
    correct = answered = 0
    console.print(f"\n[bold]Quiz[/bold] — {len(questions)} questions "
                  f"[dim]({QUESTION_TIME_LIMIT}s each, 'q' to stop)[/dim]\n")
    try:
        for i, q in enumerate(questions, 1):
            console.print(f"[bold]Q{i}.[/bold] {q.question}\n")
            for n, option in enumerate(q.options, 1):
                console.print(f"  [cyan]{n})[/cyan] {option}")
            started = clock()
            answer = session_prompt("\nYour answer", choices=[str(n) for n in range(1, len(q.options) + 1)])
            elapsed = clock() - started
            if elapsed > QUESTION_TIME_LIMIT:
                selected = TIMED_OUT
                console.print("[red]Time's up![/red]")
            else:
                selected = int(answer) - 1
            result = record_answer(
                store, attempt.id, q.id, q.category_id, selected, q.correct_option_index,
                min(round(elapsed), QUESTION_TIME_LIMIT),
            )
            if result is None:
                console.print("[dim]This answer could not be saved.[/dim]")
            answered += 1
            if selected == q.correct_option_index:
                console.print("[green]Correct![/green]")
                correct += 1
            elif selected != TIMED_OUT:
                console.print(f"[red]Incorrect.[/red] Answer: [green]{q.options[q.correct_option_index]}[/green]")
            if q.explanation:
                console.print(f"[dim]{q.explanation}[/dim]")
            console.print()
    finally:
        if finalize_session(store, attempt.id) is None and answered:
            console.print("[dim]Quiz results could not be finalized.[/dim]")
    console.print(f"[bold]Score: {correct}/{len(questions)} ({correct/len(questions)*100:.0f}%)[/bold]\n")
    return correct, len(questions)


def cmd_quiz(store: ProgressStore):
    console.print("\n[bold]Practice Quiz[/bold]")
    categories = load_categories()
    for n, c in enumerate(categories, 1):
        console.print(f"  [cyan]{n}[/cyan]) {c.name} [dim]— {c.description}[/dim]")
    choice = Prompt.ask("Select category", choices=[str(n) for n in range(1, len(categories) + 1)])
    category = categories[int(choice) - 1]
    questions = load_questions(category.id)
    try:
        run_quiz_session(store, category.id, random.sample(questions, len(questions)))
    except SessionExitRequested:
        console.print("[dim]Quiz stopped. Answers so far are saved.[/dim]")


def _score_color(score: float) -> str:
    if score >= 80:
        return "green"
    elif score >= 60:
        return "yellow"
    return "red"


def cmd_dashboard(store: ProgressStore):
    progress = fetch_progress(store)
    names = category_names()
    metrics = get_dashboard_metrics(progress)
    if not metrics["questions_answered"]:
        console.print("[yellow]No data available yet. Take a quiz first![/yellow]")
        return

    accuracy = metrics["correct_answers"] / metrics["questions_answered"] * 100
    console.print(Panel(
        f"Quizzes: [bold]{metrics['total_attempts']}[/bold]  |  "
        f"Questions: [bold]{metrics['questions_answered']}[/bold]  |  "
        f"Accuracy: [bold {_score_color(accuracy)}]{accuracy:.0f}%[/]",
        title="Progress Dashboard", border_style="blue",
    ))

    table = Table(title="Category Performance")
    table.add_column("Category", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Questions", justify="right")
    table.add_column("Avg Time", justify="right")
    times = {t["id"]: t["avg_time"] for t in calculate_time_metrics(progress, names)}
    for cp in sorted(calculate_category_performance(progress, names), key=lambda c: c["name"]):
        color = _score_color(cp["score"])
        table.add_row(cp["name"], f"[{color}]{cp['score']}%[/{color}]", str(cp["attempts"]), f"{times[cp['id']]}s")
    console.print(table)

    improvement = Table(title="First Attempt vs Overall")
    improvement.add_column("Category", style="cyan")
    improvement.add_column("First", justify="right")
    improvement.add_column("Overall", justify="right")
    improvement.add_column("Change", justify="right")
    for row in calculate_first_vs_overall(progress, names):
        change = row["improvement"]
        improvement.add_row(
            row["name"], f"{row['first_attempt_score']}%", f"{row['overall_avg_score']}%",
            f"[{'green' if change >= 0 else 'red'}]{change:+d}[/]",
        )
    console.print(improvement)

    weekly = calculate_weekly_progress(progress)
    if len(weekly) > 1:
        console.print("\n[bold]Weekly average:[/bold] " + "  ".join(
            f"{w['week']}: {w['avg_score']}%" for w in weekly
        ))

    challenging = most_challenging_questions(progress, questions=question_texts())
    if challenging:
        hard = Table(title="Most Challenging Questions")
        hard.add_column("Question")
        hard.add_column("Wrong", justify="right")
        hard.add_column("Rate", justify="right")
        for q in challenging:
            text = q["question_text"]
            hard.add_row(text if len(text) <= 80 else text[:80] + "...",
                         f"{q['incorrect_attempts']}/{q['total_attempts']}", f"{q['incorrect_rate']:.0f}%")
        console.print(hard)

    scores = [b for b in score_distribution(progress) if b["count"]]
    console.print("\n[bold]Score distribution:[/bold] " + "  ".join(f"{b['range']}: {b['count']}" for b in scores))
    durations = time_distribution(progress)
    console.print("[bold]Quiz durations:[/bold] " + "  ".join(f"{b['range']}: {b['count']}" for b in durations))
    avg = average_time_by_correctness(progress)
    console.print(f"[bold]Avg time per answer:[/bold] correct {avg['correct']}s, incorrect {avg['incorrect']}s")
    active_days = sum(1 for d in calculate_practice_frequency(progress) if d["count"])
    console.print(f"[bold]Active days (last 30):[/bold] {active_days}")


def cmd_export(store: ProgressStore):
    directory = Prompt.ask("Export directory", default=".")
    try:
        path = export_progress(store, directory)
    except ExportValidationError as e:
        console.print(f"[red]Export failed: {e}[/red]")
        return
    console.print(f"[green]Progress exported to {path}[/green]")


def cmd_import(store: ProgressStore):
    file_path = Prompt.ask("File path")
    try:
        imported = import_progress(store, file_path)
    except ValidationError:
        imported = False
    if imported:
        console.print("[green]Progress imported successfully.[/green]")
    else:
        console.print("[red]The file could not be imported. Check the file format.[/red]")


def main():
    configure_logging()
    store = ProgressStore(DEFAULT_DB_PATH)
    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="quiz").strip().lower()
        try:
            if choice == "quiz":
                cmd_quiz(store)
            elif choice == "dashboard":
                cmd_dashboard(store)
            elif choice == "export":
                cmd_export(store)
            elif choice == "import":
                cmd_import(store)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Good luck on your exam![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.exception("Command %s failed", choice)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
