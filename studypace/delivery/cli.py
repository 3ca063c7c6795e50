"""
studypace: terminal front end for the learning-analytics engine.

Commands:
- studypace log       - Log a study session (schedules its first review)
- studypace test      - Record a test score in an analysis space
- studypace stats     - Pace statistics and deadline plan for a subject
- studypace predict   - Volume projections and effort index for a space
- studypace queue     - Sessions due for review and upcoming
- studypace complete  - Mark a review as done
- studypace graduate  - Retire a session from reviews
- studypace import    - Import a JSON export (legacy or current)
"""
from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import NoReturn, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from config import get_settings
from studypace.core.exceptions import RecordNotFoundError, RecordValidationError
from studypace.delivery.state_store import StateStore
from studypace.delivery.study_service import StudyService

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="studypace",
    help="studypace: study pace analytics and review scheduling",
    no_args_is_help=True,
)
console = Console()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _service(ctx: typer.Context) -> StudyService:
    settings = get_settings()
    db_path = ctx.obj or settings.state_db_path
    return StudyService(StateStore(db_path), settings)


def _fail(message: str) -> NoReturn:
    console.print(f"[bold red]{escape(message)}[/bold red]")
    raise typer.Exit(code=1)


def format_minutes(minutes: float) -> str:
    """Render minutes as '1h 05m' or '35m'."""
    if minutes <= 0:
        return "0m"
    hours, mins = divmod(round(minutes), 60)
    return f"{hours}h {mins:02d}m" if hours else f"{mins}m"


@app.callback()
def main_options(
    ctx: typer.Context,
    db: Optional[Path] = typer.Option(
        None,
        "--db",
        help="SQLite state file (defaults to STATE_DB_PATH or ~/.studypace/state.db)",
    ),
) -> None:
    """studypace: study pace analytics and review scheduling."""
    ctx.obj = db


# =============================================================================
# Sessions
# =============================================================================


@app.command()
def log(
    ctx: typer.Context,
    subject: str = typer.Argument(..., help="Subject identifier"),
    quantity: float = typer.Option(..., "--quantity", "-q", help="Units studied (e.g. pages)"),
    minutes: float = typer.Option(..., "--minutes", "-m", help="Minutes spent"),
    start_page: Optional[int] = typer.Option(None, "--start", help="First page"),
    end_page: Optional[int] = typer.Option(None, "--end", help="Last page"),
) -> None:
    """Log a study session."""
    service = _service(ctx)
    record = service.log_session(
        subject, quantity, minutes, _now(), start_page=start_page, end_page=end_page
    )
    console.print(f"Logged session {record.id}")
    console.print(
        f"[dim]First review due {record.review.next_due_at:%Y-%m-%d %H:%M} UTC[/dim]"
    )


@app.command()
def stats(
    ctx: typer.Context,
    subject: str = typer.Argument(..., help="Subject identifier"),
    remaining: float = typer.Option(0.0, "--remaining", "-r", help="Units left to study"),
    target: Optional[datetime] = typer.Option(
        None, "--target", "-t", help="Target completion date", formats=["%Y-%m-%d"]
    ),
) -> None:
    """Show pace statistics and the daily plan for a subject."""
    service = _service(ctx)
    target_date = target.replace(tzinfo=timezone.utc) if target else None
    plan = service.subject_plan(subject, remaining, _now(), target_date)

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold")

    table.add_row("Pace", f"{plan.stats.mean_pace_per_unit:.2f} min/unit")
    table.add_row("Std dev", f"{plan.stats.std_dev_per_unit:.2f} min/unit")
    table.add_row("Total time", format_minutes(plan.stats.total_duration))
    table.add_row("Remaining", format_minutes(plan.stats.estimated_remaining_duration))
    if plan.days_left is not None:
        table.add_row("Days left", str(plan.days_left))
        table.add_row("Daily time", format_minutes(plan.daily_minutes_needed))
        table.add_row("Daily units", str(plan.daily_quantity_needed))

    console.print(Panel(table, title=f"[bold cyan]{subject}[/bold cyan]", title_align="left"))


# =============================================================================
# Tests
# =============================================================================


@app.command()
def test(
    ctx: typer.Context,
    space: str = typer.Argument(..., help="Analysis space identifier"),
    score: float = typer.Option(..., "--score", "-s", help="Test score"),
    test_minutes: float = typer.Option(0.0, "--test-minutes", help="Actual test duration"),
    rec_minutes: float = typer.Option(0.0, "--rec-minutes", help="Recommended test duration"),
    volume: Optional[float] = typer.Option(
        None, "--volume", "-b", help="Units studied since the previous test"
    ),
    hours: Optional[float] = typer.Option(None, "--hours", help="Hours studied since the previous test"),
    subject: Optional[str] = typer.Option(
        None, "--subject", help="Fill volume and hours from this subject's sessions"
    ),
) -> None:
    """Record a test score."""
    service = _service(ctx)
    try:
        observation = service.record_test(
            space,
            score,
            _now(),
            test_minutes_actual=test_minutes,
            test_minutes_recommended=rec_minutes,
            volume_invested=volume,
            study_hours=hours,
            subject_id=subject,
        )
    except RecordValidationError as e:
        _fail(str(e))
    console.print(f"Recorded test {observation.id}")
    console.print(
        f"[dim]volume {observation.volume_invested:g}, "
        f"{observation.study_hours:g} h studied[/dim]"
    )


@app.command()
def predict(
    ctx: typer.Context,
    space: str = typer.Argument(..., help="Analysis space identifier"),
    target_delta: Optional[float] = typer.Option(
        None, "--target-delta", "-t", help="Additional score to plan for (h3)"
    ),
) -> None:
    """Project the study volume needed for the next score gain."""
    service = _service(ctx)
    insight = service.space_insight(space, target_delta)
    trend, result = insight.trend, insight.prediction

    console.print(f"\n[bold cyan]{space}[/bold cyan]: {trend.count} tests, "
                  f"average score {trend.average_score:.1f}")

    if not result.computable:
        console.print("[yellow]Insufficient data for a prediction.[/yellow]")
        return

    table = Table(title=f"Target +{insight.target_delta:g}")
    table.add_column("Model")
    table.add_column("Value", justify="right")
    table.add_row("Linear volume", f"{result.linear_volume:.1f}")
    table.add_row("Cubic volume", f"{result.cubic_volume:.1f}")
    table.add_row("Effort index", f"{result.effort_index:.4f}")
    table.add_row("Mental burden", f"{result.mental_burden.total:.4f}")
    table.add_row("Density C", f"{result.density_coefficient:.5f}")
    console.print(table)


# =============================================================================
# Reviews
# =============================================================================


@app.command()
def queue(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-l", help="Rows per list"),
) -> None:
    """Show sessions due for review and upcoming reviews."""
    service = _service(ctx)
    now = _now()
    partition = service.review_queue(now)
    sessions = {s.id: s for s in service.store.load_sessions()}

    for title, ids, style in (
        ("Due", partition.due, "bold red"),
        ("Upcoming", partition.upcoming, "bold green"),
    ):
        table = Table(title=f"[{style}]{title} ({len(ids)})[/{style}]")
        table.add_column("Session")
        table.add_column("Subject")
        table.add_column("Step", justify="right")
        table.add_column("Due (UTC)")
        table.add_column("Retention", justify="right")
        for session_id in ids[:limit]:
            record = sessions[session_id]
            table.add_row(
                record.id,
                record.subject_id,
                str(record.review.step),
                f"{record.review.next_due_at:%Y-%m-%d %H:%M}",
                f"{service.retention(record, now)}%",
            )
        console.print(table)


@app.command()
def complete(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Session to mark as reviewed"),
) -> None:
    """Complete the pending review of a session."""
    service = _service(ctx)
    try:
        record = service.complete_review(session_id, _now())
    except RecordNotFoundError as e:
        _fail(str(e))

    if record.review.graduated:
        console.print(f"[yellow]{session_id} has graduated; nothing to review[/yellow]")
        return
    console.print(
        f"Reviewed {session_id}: step {record.review.step}, "
        f"next {record.review.next_due_at:%Y-%m-%d}"
    )


@app.command()
def graduate(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Session to retire"),
) -> None:
    """Retire a session from review scheduling."""
    service = _service(ctx)
    try:
        service.graduate_session(session_id, _now())
    except RecordNotFoundError as e:
        _fail(str(e))
    console.print(f"Graduated {session_id}")


@app.command("import")
def import_records(
    ctx: typer.Context,
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON export"),
) -> None:
    """
    Import a JSON export.

    Accepts the legacy {"logs": [...], "testCategories": [...]} layout
    or {"sessions": [...], "spaces": {id: [...]}}.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        _fail(f"Not valid JSON: {e}")

    if not isinstance(data, dict):
        _fail("Expected a JSON object at the top level")

    sessions = data.get("sessions") or data.get("logs") or []
    spaces = data.get("spaces") or {}
    if not isinstance(spaces, dict):
        _fail("Expected 'spaces' to map space ids to record lists")
    spaces = dict(spaces)
    for category in data.get("testCategories") or []:
        category_spaces = category.get("difficultySpaces") if isinstance(category, dict) else None
        for space in category_spaces or []:
            if not isinstance(space, dict) or "id" not in space:
                _fail(f"Space without an id in category {category.get('id', '<no id>')}")
            spaces[space["id"]] = space.get("records") or []

    service = _service(ctx)
    imported_sessions, imported_tests = service.import_records(sessions, spaces)
    console.print(f"Imported {imported_sessions} sessions and {imported_tests} tests")


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
        level="WARNING",
        format="<level>{message}</level>",
    )
    if settings.log_file:
        logger.add(
            settings.log_file,
            level=settings.log_level,
            rotation="1 MB",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
        )

    app()


if __name__ == "__main__":
    main()
