"""Interactive study planner shell."""
import sys
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from study_planner import storage
from study_planner.achievements import ACHIEVEMENTS, build_achievement_stats, get_achievement_progress
from study_planner.dashboard import (
    calculate_study_stats, format_study_time, get_mastery_color, get_mastery_label,
    get_study_recommendation, get_study_time_by_topic,
)
from study_planner.db import DATA_DIR, DEFAULT_DB_PATH, init_db
from study_planner.importer import RoadmapImportError, import_roadmap
from study_planner.models import COMPLETED, LOCKED
from study_planner.quiz import QuizResult, QuizResultError, result_to_percent, validate_quiz_result
from study_planner.review import get_items_due_for_review, get_weekly_review_plan
from study_planner.study import (
    SessionError, get_daily_goal, load_or_create_profile, record_study_session, start_session,
)

console = Console()

EXIT_WORDS = ("q", "menu")


class SessionExitRequested(Exception):
    """The user asked to leave the current session."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(prompt: str, choices: list | None = None) -> int:
    while True:
        answer = session_prompt(prompt)
        if answer.strip().isdigit() and (choices is None or answer.strip() in choices):
            return int(answer)
        console.print("[red]Please enter a valid number.[/red]")


def configure_logging() -> None:
    logger.remove()
    logger.add(sys.stderr, level="WARNING", format="<level>{message}</level>")
    logger.add(str(DATA_DIR / "planner.log"), level="DEBUG", rotation="1 MB", retention=3)


def show_welcome():
    console.print(Panel(
        "[bold]Study Planner[/bold]\n[dim]Roadmap, reviews and progress[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("today", "Topics due for review"),
        ("study", "Start a study session"),
        ("dashboard", "Streaks, scores + progress"),
        ("achievements", "Unlocked and pending achievements"),
        ("plan", "View the roadmap"),
        ("import", "Load a generated roadmap"),
        ("export", "Write a backup file"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def _require_roadmap(db_path: str):
    roadmap = storage.load_roadmap(db_path)
    if roadmap is None:
        console.print("[yellow]No roadmap yet. Use 'import' to load one.[/yellow]")
    return roadmap


def ask_quiz_score() -> int | None:
    if not Confirm.ask("Did you take a quiz?", default=True):
        return None
    total = session_int_prompt("Number of questions")
    if total == 0:
        return None
    correct = session_int_prompt("Correct answers")
    result = QuizResult(score=correct, total_questions=total)
    validate_quiz_result(result, list(range(1, total + 1)))
    return result_to_percent(result)


def cmd_today(db_path: str):
    roadmap = _require_roadmap(db_path)
    if roadmap is None:
        return
    due = get_items_due_for_review(roadmap.items)
    if not due:
        console.print("[green]Nothing due for review today.[/green]")
    else:
        table = Table(title="Review Today")
        table.add_column("ID", justify="right")
        table.add_column("Topic", style="cyan")
        table.add_column("Mastery", justify="right")
        table.add_column("Reviews", justify="right")
        for item in due:
            color = get_mastery_color(item.mastery)
            table.add_row(str(item.id), item.topic, f"[{color}]{item.mastery}%[/{color}]", str(item.review_count))
        console.print(table)

    plan = get_weekly_review_plan(roadmap.items)
    if plan:
        console.print("\n[bold]Coming up this week:[/bold]")
        for day in plan:
            topics = ", ".join(item.topic for item in day["items"])
            console.print(f"  [cyan]{day['date']}[/cyan] {topics}")


def cmd_study(db_path: str):
    roadmap = _require_roadmap(db_path)
    if roadmap is None:
        return
    available = [item for item in roadmap.items if item.status != LOCKED]
    for item in available:
        marker = "[green]review[/green]" if item.status == COMPLETED else "[cyan]learn[/cyan]"
        console.print(f"  [cyan]{item.id:>3}[/cyan]) {item.topic} ({marker})")
    topic_id = IntPrompt.ask("Topic", choices=[str(item.id) for item in available])
    session = start_session(topic_id)
    console.print(f"[dim]Session started at {session.start_time}. Type 'q' to abandon.[/dim]")

    try:
        session_prompt("[dim]Press Enter when you finish studying[/dim]", default="")
        score = ask_quiz_score()
    except SessionExitRequested:
        console.print("[dim]Session abandoned.[/dim]")
        return
    except QuizResultError as e:
        console.print(f"[red]{e}[/red]")
        return

    outcome = record_study_session(db_path, session, quiz_score=score)
    item = outcome.item
    console.print(f"\n[green]Session saved:[/green] {format_study_time(outcome.session.duration)}")
    if score is not None:
        color = get_mastery_color(item.mastery)
        console.print(
            f"  Score [bold]{score}%[/bold]  |  Mastery [{color}]{item.mastery}% "
            f"{get_mastery_label(item.mastery)}[/{color}]  |  Next review {item.next_review}"
        )
    if outcome.topic_completed:
        console.print(f"  [green]Topic complete: {item.topic}[/green]")
    for achievement in outcome.new_achievements:
        console.print(f"  [bold yellow]Unlocked: {achievement.title}[/bold yellow] - {achievement.description}")


def cmd_dashboard(db_path: str):
    roadmap = _require_roadmap(db_path)
    if roadmap is None:
        return
    sessions = storage.load_sessions(db_path)
    stats = calculate_study_stats(roadmap.items, sessions)

    console.print(Panel(
        f"Streak [bold]{stats.current_streak}[/bold] days (best {stats.longest_streak})  |  "
        f"Study time [bold]{format_study_time(stats.total_study_time)}[/bold]  |  "
        f"Avg score [bold]{stats.average_score}%[/bold]  |  "
        f"Quizzes [bold]{stats.total_quizzes}[/bold]  |  "
        f"Topics [bold]{stats.topics_completed}/{len(roadmap.items)}[/bold]",
        title="Progress Dashboard", border_style="blue",
    ))

    for title, topics in (("Weak Topics", stats.weak_topics), ("Strong Topics", stats.strong_topics)):
        if not topics:
            continue
        table = Table(title=title)
        table.add_column("Topic", style="cyan")
        table.add_column("Mastery", justify="right")
        table.add_column("Avg Score", justify="right")
        table.add_column("Quizzes", justify="right")
        for p in topics:
            color = get_mastery_color(p.mastery_level)
            table.add_row(p.topic_name, f"[{color}]{p.mastery_level}%[/{color}]", f"{p.average_score}%", str(p.quizzes_taken))
        console.print(table)

    goal = get_daily_goal(db_path)
    console.print(f"\n[bold]Last 7 days[/bold] (goal {goal} min/day)")
    for day in stats.daily_progress:
        filled = min(20, day.minutes * 20 // goal) if goal else 0
        color = "green" if day.minutes >= goal else "yellow"
        bar = f"[{color}]{'█' * filled}{'░' * (20 - filled)}[/{color}]"
        console.print(f"  {day.date} {bar} {day.minutes:>4} min  {day.quizzes} quiz")

    by_topic = get_study_time_by_topic(roadmap.items, sessions)
    if by_topic:
        top = ", ".join(f"{t['topic']} ({format_study_time(t['minutes'])})" for t in by_topic[:3])
        console.print(f"\n  Most studied: {top}")
    console.print(f"\n  [yellow]{get_study_recommendation(stats)}[/yellow]")


def cmd_achievements(db_path: str):
    roadmap = storage.load_roadmap(db_path)
    profile = load_or_create_profile(db_path)
    stats = build_achievement_stats(roadmap.items if roadmap else [], storage.load_sessions(db_path), profile)
    unlocked = {a.id: a for a in storage.load_achievements(db_path)}
    table = Table(title="Achievements")
    table.add_column("Achievement", style="cyan")
    table.add_column("Description")
    table.add_column("Status")
    for achievement in ACHIEVEMENTS:
        if achievement.id in unlocked:
            status = f"[green]Unlocked {unlocked[achievement.id].unlocked_at[:10]}[/green]"
        else:
            status = f"[dim]{get_achievement_progress(achievement, stats)}%[/dim]"
        table.add_row(achievement.title, achievement.description, status)
    console.print(table)


def cmd_plan(db_path: str):
    roadmap = _require_roadmap(db_path)
    if roadmap is None:
        return
    table = Table(title="Study Roadmap")
    table.add_column("Week", justify="right")
    table.add_column("Topic")
    table.add_column("Status")
    table.add_column("Mastery", justify="right")
    table.add_column("Best", justify="right")
    styles = {"completed": "green", "active": "cyan", "locked": "dim"}
    for item in roadmap.items:
        style = styles.get(item.status, "white")
        table.add_row(
            str(item.week),
            item.topic,
            f"[{style}]{item.status}[/{style}]",
            f"{item.mastery}%",
            f"{item.best_score}%",
        )
    console.print(table)


def cmd_import(db_path: str):
    file_path = Prompt.ask("Roadmap file (.json, .yaml)")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    if storage.load_roadmap(db_path) and not Confirm.ask(
        "Replace the current roadmap? This erases your study sessions and achievements.", default=False
    ):
        return
    try:
        roadmap = import_roadmap(file_path)
    except RoadmapImportError as e:
        console.print(f"[red]{e}[/red]")
        return
    storage.clear_all_data(db_path)
    storage.save_roadmap(db_path, roadmap)
    load_or_create_profile(db_path)
    console.print(f"[green]Imported {len(roadmap.items)} topics.[/green]")


def cmd_export(db_path: str):
    target = Prompt.ask("Backup file", default="study_planner_backup.json")
    Path(target).write_text(storage.export_all_data(db_path), encoding="utf-8")
    console.print(f"[green]Backup written to {target}[/green]")


COMMANDS = {
    "today": cmd_today,
    "study": cmd_study,
    "dashboard": cmd_dashboard,
    "achievements": cmd_achievements,
    "plan": cmd_plan,
    "import": cmd_import,
    "export": cmd_export,
}


def main():
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    configure_logging()
    storage.migrate_data(db_path)

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="today").strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]See you next session![/dim]")
            break
        command = COMMANDS.get(choice)
        if command is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            command(db_path)
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except SessionError as e:
            console.print(f"[red]{e}[/red]")
        except Exception as e:
            logger.exception(f"Command {choice} failed")
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
