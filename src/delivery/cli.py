"""
Exam Vocab Boost: Main CLI.

A Rich terminal interface for adaptive vocabulary-usage drills.

Commands:
- evb diagnostic   - Timed reading passage + usage items
- evb drill        - Adaptive (or focused) practice session
- evb dashboard    - Readiness, weaknesses and recent sessions
- evb report       - Latest diagnostic report
- evb profile      - Show or update exam details
- evb catalog      - Validate and summarise drill content
- evb sync push    - Back up local data to the cloud
- evb sync pull    - Restore local data from the cloud
- evb reset        - Clear all local data
"""
from __future__ import annotations

import asyncio
import random
import sys
import time
from datetime import date
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from config import Settings, get_settings
from src.adaptive.readiness import exam_readiness, recent_accuracy_percent, top_weaknesses
from src.adaptive.selector import ItemSelector
from src.content.catalog import Catalog, CatalogError, ContentItem
from src.content.constants import (
    CATEGORY_LABELS,
    L1_LANGUAGES,
    PRICING_TIERS,
    USAGE_CATEGORIES,
    DrillType,
    ExamType,
    Level,
    SessionMode,
    Tier,
    UsageCategory,
)
from src.sync.client import SyncClient

from .diagnostic import (
    apply_diagnostic_to_progress,
    build_diagnostic,
    pick_passage,
    pick_usage_items,
)
from .grading import apply_session_to_progress, build_session, grade, parse_response
from .paywall import can_start_drill
from .records import (
    AnsweredItem,
    DiagnosticResult,
    ReadingAnswer,
    UsageAnswer,
    new_record_id,
    utc_now_iso,
)
from .state_store import StateStore


# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="evb",
    help="Exam Vocab Boost: adaptive vocabulary-usage drills for IELTS and TOEFL",
    no_args_is_help=True,
)
sync_app = typer.Typer(help="Cloud backup of local learner data", no_args_is_help=True)
app.add_typer(sync_app, name="sync")

console = Console()


# =============================================================================
# Styling
# =============================================================================

STYLES = {
    "correct": "bold green",
    "incorrect": "bold red",
    "info": "bold cyan",
    "warning": "bold yellow",
    "dim": "dim",
    "drill_type": {
        DrillType.COLLOCATION_MCQ: "blue",
        DrillType.PREPOSITION_FILL: "magenta",
        DrillType.REGISTER_CHOICE: "green",
        DrillType.SENTENCE_BUILD: "yellow",
    },
}


def style_drill_type(drill_type: DrillType) -> str:
    color = STYLES["drill_type"].get(drill_type, "white")
    label = drill_type.value.replace("_", " ")
    return f"[{color}]{label}[/{color}]"


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]{message}[/red]")
    return typer.Exit(1)


# =============================================================================
# Shared setup
# =============================================================================

def _open_store(settings: Settings) -> StateStore:
    return StateStore(settings.state_db_path)


def _load_catalog(settings: Settings, catalog_dir: Optional[Path] = None) -> Catalog:
    try:
        return Catalog.load(catalog_dir or settings.catalog_dir)
    except CatalogError as e:
        raise _fail(f"Content catalog is invalid: {e}")


def _refresh_readiness(store: StateStore, settings: Settings) -> int:
    """Recompute readiness and store it on the progress record."""
    score = exam_readiness(
        store.get_latest_diagnostic(),
        store.get_recent_sessions(settings.readiness_window),
    )
    store.update_progress(exam_readiness_score=score)
    return score


# =============================================================================
# Display Helpers
# =============================================================================

def display_item(item: ContentItem, index: int, total: int) -> None:
    """Show an item prompt with its choices or tokens."""
    header = (
        f"Item {index}/{total}  |  {style_drill_type(item.type)}  |  "
        f"{CATEGORY_LABELS[item.category]}"
    )

    content = item.prompt
    if item.choices:
        content += "\n\n"
        for i, choice in enumerate(item.choices):
            content += f"  {chr(65 + i)}. {choice}\n"
    elif item.tokens:
        content += "\n\n  " + "   ".join(f"[{i}] {tok}" for i, tok in enumerate(item.tokens, 1))

    console.print(Panel(content, title=header, title_align="left", border_style="cyan", padding=(1, 2)))


def _answer_hint(item: ContentItem) -> str:
    if item.choices:
        return f"Your answer (A-{chr(64 + len(item.choices))})"
    if item.tokens:
        return "Words in order (or their numbers)"
    if isinstance(item.answer, tuple):
        return "Your answers, separated by commas"
    return "Your answer"


def display_feedback(answered: AnsweredItem) -> None:
    item = answered.item
    expected = " ".join(item.answer) if item.tokens else (
        ", ".join(item.answer) if isinstance(item.answer, tuple) else item.answer
    )

    if answered.correct:
        content = "[green]✓ Correct![/green]"
        style = STYLES["correct"]
    else:
        content = f"[red]✗ The answer is:[/red] {expected}"
        style = STYLES["incorrect"]
    if item.explanation:
        content += f"\n\n[dim]{item.explanation}[/dim]"

    console.print(Panel(content, border_style=style, padding=(0, 2)))


def ask_item(item: ContentItem, index: int, total: int) -> AnsweredItem:
    """Present one item, read the response and grade it."""
    display_item(item, index, total)
    start = time.monotonic()
    raw = Prompt.ask(_answer_hint(item))
    elapsed_ms = int((time.monotonic() - start) * 1000)

    answered = grade(item, parse_response(item, raw), elapsed_ms)
    display_feedback(answered)
    return answered


def _weakness_lines(categories: list[UsageCategory]) -> str:
    return "\n".join(f"  {i}. {CATEGORY_LABELS[cat]}" for i, cat in enumerate(categories, 1))


# =============================================================================
# Commands
# =============================================================================

@app.command()
def diagnostic(
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for item choice"),
) -> None:
    """
    Take the placement diagnostic.

    A timed reading passage with comprehension questions, then a set of
    usage items. The result drives adaptive drill selection.
    """
    settings = get_settings()
    catalog = _load_catalog(settings)
    rng = random.Random(seed)

    passage = pick_passage(catalog, rng)
    usage_items = pick_usage_items(catalog, rng, settings.diagnostic_usage_items)
    if passage is None or not usage_items:
        raise _fail("The content catalog has no reading passages or usage items.")

    with _open_store(settings) as store:
        # An unfinished attempt is restarted under the same id
        latest = store.get_latest_diagnostic()
        if latest is not None and not latest.is_complete:
            diagnostic_id = latest.id
            logger.info(f"Restarting incomplete diagnostic {diagnostic_id}")
        else:
            diagnostic_id = new_record_id("diag")
            store.add_diagnostic(DiagnosticResult(id=diagnostic_id, started_at=utc_now_iso()))

        console.print("\n[bold cyan]Vocabulary Usage Diagnostic[/bold cyan]")
        console.print("=" * 40)
        console.print(
            f"Part 1: read a short passage ({passage.word_count} words) and answer "
            f"{len(passage.questions)} questions.\n"
            f"Part 2: {len(usage_items)} vocabulary usage items.\n"
        )
        Prompt.ask("[dim]Press Enter to start reading[/dim]", default="", show_default=False)

        overall_start = time.monotonic()

        # Part 1: reading
        console.print(Panel(passage.content, title=passage.title, border_style="cyan", padding=(1, 2)))
        read_start = time.monotonic()
        Prompt.ask("[dim]Press Enter when you have finished reading[/dim]", default="", show_default=False)
        reading_ms = int((time.monotonic() - read_start) * 1000)

        reading_answers: list[ReadingAnswer] = []
        for i, question in enumerate(passage.questions, 1):
            content = question.question + "\n\n"
            for j, choice in enumerate(question.choices):
                content += f"  {chr(65 + j)}. {choice}\n"
            console.print(Panel(content, title=f"Question {i}/{len(passage.questions)}", border_style="cyan"))

            letters = [chr(65 + j) for j in range(len(question.choices))]
            picked = Prompt.ask("Your answer", choices=letters + [c.lower() for c in letters], show_choices=False)
            selected = question.choices[ord(picked.upper()) - 65]
            reading_answers.append(
                ReadingAnswer(
                    question_id=question.id,
                    selected=selected,
                    correct=selected == question.correct_answer,
                )
            )

        # Part 2: usage
        console.print("\n[bold]Part 2: Vocabulary Usage[/bold]\n")
        usage_answers: list[UsageAnswer] = []
        for i, item in enumerate(usage_items, 1):
            answered = ask_item(item, i, len(usage_items))
            usage_answers.append(
                UsageAnswer(
                    item_id=item.id,
                    category=item.category,
                    correct=answered.correct,
                    time_spent_ms=answered.time_spent_ms,
                )
            )

        result = build_diagnostic(
            passage,
            reading_answers,
            reading_ms,
            usage_answers,
            elapsed_seconds=time.monotonic() - overall_start,
            diagnostic_id=diagnostic_id,
        )
        store.update_diagnostic(
            diagnostic_id,
            started_at=result.started_at,
            completed_at=result.completed_at,
            reading=result.reading,
            usage=result.usage,
            weaknesses=result.weaknesses,
        )

        progress = store.get_progress() or store.initialize_progress()
        store.set_progress(
            apply_diagnostic_to_progress(progress, result, settings.progress_history_limit)
        )
        _refresh_readiness(store, settings)

        console.print("\n[green]Diagnostic complete![/green]\n")
        _display_report(result, store)


@app.command()
def drill(
    focus: Optional[UsageCategory] = typer.Option(
        None,
        "--focus", "-f",
        help="Practice a single category instead of adaptive selection",
    ),
    count: Optional[int] = typer.Option(
        None,
        "--count", "-n",
        help="Number of items (default from settings)",
    ),
    cram: bool = typer.Option(False, "--cram", help="Cram mode (Cram Mode Pack only)"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for item selection"),
) -> None:
    """
    Start a timed drill session.

    Items are weighted toward your weakest categories unless --focus is given.
    """
    settings = get_settings()
    catalog = _load_catalog(settings)
    count = count if count is not None else settings.items_per_session

    if focus is not None:
        mode = SessionMode.FOCUSED
    elif cram:
        mode = SessionMode.CRAM
    else:
        mode = SessionMode.ADAPTIVE

    with _open_store(settings) as store:
        decision = can_start_drill(
            store.get_entitlement(),
            store.get_sessions(),
            mode,
            free_sessions=settings.free_drill_sessions,
        )
        if not decision.allowed:
            raise _fail(decision.reason)
        if decision.reason:
            console.print(f"[yellow]{decision.reason}[/yellow]")

        selector = ItemSelector(catalog, rng=random.Random(seed), config=settings.selector_config())
        if mode == SessionMode.FOCUSED:
            items = selector.select_focused(focus, count)
        else:
            items = selector.select_adaptive(
                count,
                store.get_latest_diagnostic(),
                store.get_recent_sessions(settings.recent_window),
                store.get_bundle_states(),
            )

        if not items:
            raise _fail("No items available for this drill.")

        minutes = settings.drill_duration_seconds // 60
        title = (
            f"Focused drill: {CATEGORY_LABELS[focus]}" if focus is not None
            else f"{mode.value.capitalize()} drill"
        )
        console.print(f"\n[bold cyan]{title}[/bold cyan]")
        console.print(f"{len(items)} items  |  {minutes} minute time limit\n")

        answered: list[AnsweredItem] = []
        start = time.monotonic()
        try:
            for i, item in enumerate(items, 1):
                if time.monotonic() - start >= settings.drill_duration_seconds:
                    console.print("\n[yellow]Time's up![/yellow]")
                    break
                answered.append(ask_item(item, i, len(items)))
        except (KeyboardInterrupt, EOFError):
            console.print("\n\n[yellow]Session interrupted.[/yellow]")

        if not answered:
            console.print("[yellow]No items answered. Nothing was recorded.[/yellow]")
            return

        duration = min(int(time.monotonic() - start), settings.drill_duration_seconds)
        session = build_session(mode, answered, duration)
        store.add_session(session)

        progress = store.get_progress() or store.initialize_progress()
        store.set_progress(
            apply_session_to_progress(progress, session, settings.progress_history_limit)
        )
        readiness = _refresh_readiness(store, settings)

        results = session.results
        console.print("\n")
        console.print(Panel(
            f"[bold]Session Complete![/bold]\n\n"
            f"Items answered: {results.total_items}\n"
            f"Correct: {results.correct}\n"
            f"Accuracy: {results.accuracy * 100:.0f}%\n"
            f"Duration: {session.duration_sec // 60}m {session.duration_sec % 60}s\n"
            f"Exam readiness: {readiness}/100",
            title="Summary",
            border_style="green",
        ))

        if store.has_meaningful_engagement():
            console.print("[dim]Tip: back up your progress with 'evb sync push'.[/dim]")


@app.command()
def dashboard() -> None:
    """Show readiness, top weaknesses and recent sessions."""
    settings = get_settings()

    with _open_store(settings) as store:
        latest = store.get_latest_diagnostic()
        diagnostic_done = latest if latest is not None and latest.is_complete else None
        readiness_sessions = store.get_recent_sessions(settings.readiness_window)
        recent = store.get_recent_sessions(settings.recent_window)
        progress = store.get_progress()
        profile = store.get_profile()

        readiness = exam_readiness(diagnostic_done, readiness_sessions)
        weaknesses = top_weaknesses(
            diagnostic_done,
            readiness_sessions,
            diagnostic_weight=settings.diagnostic_weight,
            session_weight=settings.session_weight,
        )

        console.print("\n[bold cyan]Dashboard[/bold cyan]")
        console.print("=" * 40)

        table = Table(show_header=False, box=None)
        table.add_column("Metric", style="dim")
        table.add_column("Value", style="bold")

        table.add_row("Exam readiness", f"{readiness}/100")
        if profile and profile.exam_type:
            table.add_row("Exam", profile.exam_type.value)
        if profile and profile.exam_date:
            try:
                days = (date.fromisoformat(profile.exam_date) - date.today()).days
                table.add_row("Days to exam", str(max(0, days)))
            except ValueError:
                logger.warning(f"Ignoring malformed exam date: {profile.exam_date}")
        table.add_row("Drills completed", str(progress.drills_completed if progress else 0))
        table.add_row("Drill time", f"{(progress.total_drill_time if progress else 0) // 60} min")
        accuracy = recent_accuracy_percent(recent)
        table.add_row("Recent accuracy", f"{accuracy}%" if accuracy is not None else "-")

        console.print(table)

        if diagnostic_done is None:
            console.print("\n[yellow]Take the diagnostic ('evb diagnostic') for a personalized plan.[/yellow]")

        console.print("\n[bold]Top weaknesses[/bold]")
        console.print(_weakness_lines(weaknesses))

        if recent:
            console.print("\n[bold]Recent Sessions[/bold]")
            session_table = Table()
            session_table.add_column("Date")
            session_table.add_column("Mode")
            session_table.add_column("Items")
            session_table.add_column("Accuracy")

            for s in reversed(recent):
                results = s.results
                session_table.add_row(
                    s.created_at[:16].replace("T", " "),
                    s.mode.value,
                    str(results.total_items if results else 0),
                    f"{(results.accuracy if results else 0) * 100:.0f}%",
                )
            console.print(session_table)


def _display_report(result: DiagnosticResult, store: StateStore) -> None:
    if result.reading is not None:
        console.print(Panel(
            f"Reading speed: [bold]{result.reading.wpm}[/bold] words per minute\n"
            f"Comprehension: [bold]{result.reading.accuracy * 100:.0f}%[/bold]",
            title="Reading",
            border_style="cyan",
        ))

    if result.usage is not None:
        table = Table(title="Vocabulary Usage")
        table.add_column("Category")
        table.add_column("Correct", justify="right")
        table.add_column("Accuracy", justify="right")
        for cat in USAGE_CATEGORIES:
            tally = result.usage.category_scores[cat]
            accuracy = f"{tally.accuracy * 100:.0f}%" if tally.total else "-"
            table.add_row(CATEGORY_LABELS[cat], f"{tally.correct}/{tally.total}", accuracy)
        console.print(table)

    if result.weaknesses:
        console.print("\n[bold]Your top weaknesses[/bold]")
        console.print(_weakness_lines(result.weaknesses))

    if not store.get_entitlement().is_paid:
        plan = PRICING_TIERS[Tier.TIER_1]
        console.print(
            f"\n[dim]Start with 1 free drill ('evb drill'), or unlock '{plan['name']}' "
            f"(${plan['price']}) for unlimited practice.[/dim]"
        )


@app.command()
def report() -> None:
    """Show the latest diagnostic report."""
    settings = get_settings()

    with _open_store(settings) as store:
        completed = [d for d in store.get_diagnostics() if d.is_complete]
        if not completed:
            console.print("[yellow]No completed diagnostic yet. Run 'evb diagnostic' first.[/yellow]")
            raise typer.Exit(0)

        result = completed[-1]
        console.print(f"\n[bold cyan]Diagnostic Report[/bold cyan]  [dim]{result.completed_at[:10]}[/dim]")
        console.print("=" * 40)
        _display_report(result, store)


@app.command()
def profile(
    exam: Optional[ExamType] = typer.Option(None, "--exam", help="Target exam"),
    exam_date: Optional[str] = typer.Option(None, "--date", help="Exam date (YYYY-MM-DD)"),
    target: Optional[str] = typer.Option(None, "--target", help="Target score, e.g. 7.0 or 100"),
    l1: Optional[str] = typer.Option(None, "--l1", help="First language"),
    level: Optional[Level] = typer.Option(None, "--level", help="Self-assessed level"),
) -> None:
    """Show or update your exam profile."""
    settings = get_settings()

    changes = {}
    if exam is not None:
        changes["exam_type"] = exam
    if exam_date is not None:
        try:
            date.fromisoformat(exam_date)
        except ValueError:
            raise _fail(f"Invalid date '{exam_date}', expected YYYY-MM-DD.")
        changes["exam_date"] = exam_date
    if target is not None:
        changes["target_score"] = target
    if l1 is not None:
        if l1 not in L1_LANGUAGES:
            raise _fail(f"Unknown language '{l1}'. Choose one of: {', '.join(L1_LANGUAGES)}")
        changes["l1"] = l1
    if level is not None:
        changes["level_estimate"] = level

    with _open_store(settings) as store:
        if changes:
            current = store.update_profile(**changes)
            console.print("[green]Profile updated.[/green]")
        else:
            current = store.get_profile()
            if current is None:
                console.print("[yellow]No profile yet. Set one with e.g. 'evb profile --exam IELTS'.[/yellow]")
                raise typer.Exit(0)

        table = Table(show_header=False, box=None)
        table.add_column("Field", style="dim")
        table.add_column("Value", style="bold")
        table.add_row("Exam", current.exam_type.value if current.exam_type else "-")
        table.add_row("Exam date", current.exam_date or "-")
        table.add_row("Target score", current.target_score or "-")
        table.add_row("First language", current.l1 or "-")
        table.add_row("Level", current.level_estimate.value if current.level_estimate else "-")
        console.print(table)


@app.command()
def catalog(
    catalog_dir: Optional[Path] = typer.Option(
        None,
        "--dir", "-d",
        help="Directory with bundles.json / usage_items.json / passages.json",
    ),
) -> None:
    """Validate and summarise the drill content catalog."""
    settings = get_settings()
    loaded = _load_catalog(settings, catalog_dir)
    stats = loaded.stats()

    console.print(
        f"[green]Catalog OK:[/green] {stats['total_items']} items "
        f"({stats['bundles']} bundles, {stats['standalone_items']} standalone), "
        f"{stats['passages']} passages"
    )

    table = Table()
    table.add_column("Category")
    table.add_column("Items", justify="right")
    for cat in USAGE_CATEGORIES:
        table.add_row(CATEGORY_LABELS[cat], str(stats["by_category"][cat.value]))
    console.print(table)

    console.print("Types: " + ", ".join(f"{k}={v}" for k, v in stats["by_type"].items()))


@app.command()
def reset(
    force: bool = typer.Option(False, "--force", help="Skip confirmation"),
) -> None:
    """Clear all local data (a JSON backup is written first)."""
    if not force and not Confirm.ask("Delete ALL local progress? This cannot be undone!", default=False):
        raise typer.Exit(0)

    settings = get_settings()
    with _open_store(settings) as store:
        backup = store.backup()
        store.clear_all()

    console.print(f"[green]All local data cleared.[/green] [dim]Backup: {backup}[/dim]")


# =============================================================================
# Sync Commands
# =============================================================================

TOKEN_OPTION = typer.Option(
    ...,
    "--token", "-t",
    envvar="EVB_SYNC_TOKEN",
    help="Bearer token of your account",
)
URL_OPTION = typer.Option(None, "--url", help="Sync service base URL")


@sync_app.command("push")
def sync_push(token: str = TOKEN_OPTION, url: Optional[str] = URL_OPTION) -> None:
    """Upload all local data to the cloud."""
    settings = get_settings()

    with _open_store(settings) as store:
        data = store.export_all()

    client = SyncClient(url or settings.sync_base_url, token, timeout=settings.sync_timeout_seconds)

    async def _push():
        async with client:
            return await client.push(data)

    result = asyncio.run(_push())
    if not result.success:
        raise _fail(f"Sync failed: {result.error}")

    console.print(f"[green]Backed up {len(data['sessions'])} sessions and {len(data['diagnostics'])} diagnostics.[/green]")


@sync_app.command("pull")
def sync_pull(token: str = TOKEN_OPTION, url: Optional[str] = URL_OPTION) -> None:
    """Replace local data with the latest cloud backup."""
    settings = get_settings()
    client = SyncClient(url or settings.sync_base_url, token, timeout=settings.sync_timeout_seconds)

    async def _pull():
        async with client:
            return await client.pull()

    result = asyncio.run(_pull())
    if not result.success:
        raise _fail(f"Sync failed: {result.error}")
    if not result.data:
        console.print("[yellow]No cloud data found for this account.[/yellow]")
        raise typer.Exit(0)

    with _open_store(settings) as store:
        store.backup()
        try:
            imported = store.import_all(result.data)
        except ValueError as e:
            raise _fail(str(e))

    console.print(f"[green]Restored: {', '.join(imported) or 'nothing'}[/green]")


# =============================================================================
# Entry Point
# =============================================================================

def main() -> None:
    """CLI entry point."""
    settings = get_settings()

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{message}</level>",
    )
    if settings.log_file:
        logger.add(settings.log_file, level="DEBUG", rotation="1 MB", retention=3)

    app()


if __name__ == "__main__":
    main()
