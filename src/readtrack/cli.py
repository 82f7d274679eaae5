"""Command-line interface for readtrack.

Built with Typer for commands and Rich for beautiful output.
"""

import json
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from .app import AppContext
from .config import Config
from .db.schemas import BookRecord, BookStatus, GoalUnit
from .errors import ReadTrackError
from .goals.progress import GoalBadge, goal_status
from .library.views import TABS
from .log import configure_logging
from .notifications.manager import CheckOutcome, NotificationPermission
from .reading.history import StatsPeriod
from .reading.stopwatch import StopOutcome, format_time, format_time_short
from .saving import SaveResult

# Create the main app
app = typer.Typer(
    name="readtrack",
    help="Track your reading: books, sessions, goals and reminders.",
    no_args_is_help=True,
)

# Create sub-apps for command groups
goal_app = typer.Typer(help="Manage reading goals.")
app.add_typer(goal_app, name="goal")

notify_app = typer.Typer(help="Goal reminders.")
app.add_typer(notify_app, name="notify")

# Rich console for pretty output
console = Console()


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


def print_save(result: SaveResult, message: str) -> None:
    """Report a save; unconfirmed saves are still treated as done."""
    print_success(message)
    if not result.confirmed:
        print_info("(saved offline, will sync when the database responds)")


def progress_bar(percent: float, width: int = 10) -> str:
    filled = int((percent / 100) * width)
    return "█" * filled + "░" * (width - filled)


def format_book_table(books: list[BookRecord], title: str = "Books") -> Table:
    """Create a rich table for displaying books."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", max_width=8)
    table.add_column("Title", style="cyan", no_wrap=False, max_width=40)
    table.add_column("Author", style="green", max_width=25)
    table.add_column("Status", style="yellow")
    table.add_column("Progress", justify="center")

    for book in books:
        table.add_row(
            book.id[:8],
            book.title,
            book.author,
            book.status.value,
            f"[{progress_bar(book.percent)}] {book.current_page}/{book.total_pages}",
        )

    return table


def get_app(ctx: typer.Context) -> AppContext:
    """The application context built by the main callback."""
    return ctx.obj


def parse_status(value: Optional[str]) -> Optional[BookStatus]:
    if value is None:
        return None
    try:
        return BookStatus.parse(value)
    except ValueError:
        raise typer.BadParameter(
            f"Use one of: {', '.join(s.name.lower().replace('_', '-') for s in BookStatus)}"
        )


def parse_unit(value: str) -> GoalUnit:
    try:
        return GoalUnit.parse(value)
    except ValueError:
        raise typer.BadParameter(f"Use one of: {', '.join(u.name.lower() for u in GoalUnit)}")


def select_book(ctx: typer.Context, query: str) -> BookRecord:
    """Find a book by id or title, asking when several match."""
    books = get_app(ctx).books().find_books(query)
    if not books:
        print_error(f"No book found matching: {query}")
        raise typer.Exit(1)

    if len(books) == 1:
        return books[0]

    console.print("\n[bold]Multiple books found:[/bold]")
    for i, b in enumerate(books, 1):
        console.print(f"  {i}. {b.title} by {b.author}")

    choice = typer.prompt("Select book number", type=int, default=1)
    if choice < 1 or choice > len(books):
        print_error("Invalid selection")
        raise typer.Exit(1)
    return books[choice - 1]


def select_goal(ctx: typer.Context, query: str):
    """Find a goal by id, id prefix or name."""
    goals = get_app(ctx).store.list_goals()
    matches = [g for g in goals if g.id == query]
    if not matches:
        needle = query.lower()
        matches = [g for g in goals if g.id.startswith(query) or needle in g.name.lower()]
    if len(matches) != 1:
        if matches:
            print_error(f"Several goals match '{query}'; use the id")
        else:
            print_error(f"No goal found matching: {query}")
        raise typer.Exit(1)
    return matches[0]


# ============================================================================
# Main Callback
# ============================================================================


@app.callback()
def main_callback(
    ctx: typer.Context,
    user: Optional[str] = typer.Option(
        None, "--user", "-u", help="User id (overrides READTRACK_USER_ID)"
    ),
) -> None:
    """Track your reading: books, sessions, goals and reminders."""
    config = Config.from_env()
    configure_logging(config.log_level, json=config.log_json)

    errors = config.validate()
    if errors:
        for error in errors:
            print_error(error)
        raise typer.Exit(1)

    ctx.obj = AppContext(config, user_id=user)
    ctx.call_on_close(ctx.obj.close)


# ============================================================================
# Book Commands
# ============================================================================


@app.command()
def add(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Book title"),
    author: str = typer.Argument(..., help="Author"),
    pages: str = typer.Argument(..., help="Total pages"),
    status: str = typer.Option("to-read", "--status", "-s", help="to-read, reading or read"),
) -> None:
    """Add a book to your library."""
    try:
        result = get_app(ctx).books().add_book(title, author, pages, parse_status(status))
    except ReadTrackError as e:
        print_error(e.message)
        raise typer.Exit(1)

    print_save(result, f"Added: {title} by {author}")


@app.command("list")
def list_books(
    ctx: typer.Context,
    status: Optional[str] = typer.Option(None, "--status", "-s", help="Filter by status"),
) -> None:
    """List books, one table per shelf."""
    shelf = parse_status(status)
    try:
        view = get_app(ctx).library()
        shelves = {shelf: view.shelf(shelf)} if shelf else view.shelves()
    except ReadTrackError as e:
        print_error(e.message)
        raise typer.Exit(1)

    if not any(shelves.values()):
        console.print("[dim]No books found.[/dim]")
        return

    for status_, books in shelves.items():
        if books:
            console.print(format_book_table(books, title=f"{status_.value} ({len(books)})"))


@app.command()
def progress(
    ctx: typer.Context,
    book: str = typer.Argument(..., help="Book title or ID"),
    page: int = typer.Argument(..., help="Current page"),
) -> None:
    """Set the current page of a book."""
    try:
        record = select_book(ctx, book)
        result = get_app(ctx).books().update_progress(record.id, page)
    except ReadTrackError as e:
        print_error(e.message)
        raise typer.Exit(1)

    if result.value is not None:
        updated = result.value
        print_save(
            result,
            f"{updated.title}: page {updated.current_page}/{updated.total_pages} ({updated.status.value})",
        )
    else:
        print_save(result, f"Updated: {record.title}")


@app.command()
def delete(
    ctx: typer.Context,
    book: str = typer.Argument(..., help="Book title or ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a book. Its reading sessions are kept."""
    try:
        record = select_book(ctx, book)
        if not yes and not typer.confirm(f"Delete '{record.title}'?", default=False):
            console.print("[dim]Cancelled.[/dim]")
            raise typer.Exit(0)
        get_app(ctx).books().delete_book(record.id)
    except ReadTrackError as e:
        print_error(e.message)
        raise typer.Exit(1)

    print_success(f"Deleted: {record.title}")


@app.command()
def summary(ctx: typer.Context) -> None:
    """Show reading time today and this week, and books per shelf."""
    try:
        view = get_app(ctx).library()
        totals = view.totals()
        shelves = view.shelves()
    except ReadTrackError as e:
        print_error(e.message)
        raise typer.Exit(1)

    lines = [
        f"Today:     [bold]{format_time_short(totals.today_seconds)}[/bold]",
        f"This week: [bold]{format_time_short(totals.week_seconds)}[/bold]",
        "",
    ]
    for status in TABS:
        lines.append(f"{status.value}: {len(shelves[status])}")

    console.print(Panel("\n".join(lines), title="Reading Summary"))


@app.command()
def export(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to file"),
) -> None:
    """Export all your documents as JSON."""
    try:
        documents = get_app(ctx).store.export_documents()
    except ReadTrackError as e:
        print_error(e.message)
        raise typer.Exit(1)

    text = json.dumps(documents, indent=2, ensure_ascii=False)
    if output:
        output.write_text(text, encoding="utf-8")
        print_success(f"Exported to {output}")
    else:
        console.print_json(text)


# ============================================================================
# Reading Session Commands
# ============================================================================


@app.command()
def timer(
    ctx: typer.Context,
    book: str = typer.Argument(..., help="Book title or ID"),
) -> None:
    """Time a reading session. Press Ctrl-C to stop."""
    context = get_app(ctx)
    try:
        record = select_book(ctx, book)
        stopwatch = context.stopwatch()
        stopwatch.select_book(record.id)
        stopwatch.start()
    except ReadTrackError as e:
        print_error(e.message)
        raise typer.Exit(1)

    def render() -> Panel:
        return Panel(
            f"[bold cyan]{format_time(stopwatch.elapsed)}[/bold cyan]\n[dim]Ctrl-C to stop[/dim]",
            title=f"Reading: {stopwatch.book_title}",
        )

    try:
        with Live(render(), console=console, refresh_per_second=4) as live:
            while stopwatch.running:
                time.sleep(0.25)
                live.update(render())
    except KeyboardInterrupt:
        pass

    def confirm_discard(seconds: int) -> bool:
        return typer.confirm(
            f"Session was only {seconds}s. Discard it?", default=True
        )

    try:
        result = stopwatch.stop(confirm_discard=confirm_discard)
    except ReadTrackError as e:
        print_error(e.message)
        raise typer.Exit(1)
    finally:
        stopwatch.close()

    if result.outcome is StopOutcome.DISCARDED:
        print_info("Session discarded.")
    elif result.outcome is StopOutcome.SAVED:
        print_save(result.save, f"Logged {format_time_short(result.duration_seconds)} of {record.title}")


@app.command()
def sessions(
    ctx: typer.Context,
    period: StatsPeriod = typer.Option(StatsPeriod.DAYS, "--period", "-p", help="Chart period"),
) -> None:
    """Show recent sessions and reading time per period."""
    try:
        history = get_app(ctx).history()
        recent = history.recent()
        points = history.chart(period)
    except ReadTrackError as e:
        print_error(e.message)
        raise typer.Exit(1)

    if not recent:
        console.print("[dim]No reading sessions yet.[/dim]")
        console.print("[dim]Use 'readtrack timer \"Book Title\"' to start one.[/dim]")
        return

    table = Table(title="Recent Sessions", show_header=True, header_style="bold magenta")
    table.add_column("Book", style="cyan", max_width=35)
    table.add_column("Duration", justify="right")
    table.add_column("When")
    table.add_column("Device", style="dim")
    for s in recent:
        table.add_row(
            s.book_title,
            format_time(s.duration_seconds),
            s.created_at.astimezone().strftime("%Y-%m-%d %H:%M") if s.created_at else "-",
            s.device.value,
        )
    console.print(table)

    chart = Table(title=f"Reading time ({period.value})", show_header=False, box=None)
    chart.add_column("Label", style="bold")
    chart.add_column("Bar")
    chart.add_column("Time", justify="right")
    for point in points:
        chart.add_row(
            point.full_label or point.label,
            progress_bar(point.height_percent, width=20),
            format_time_short(point.value),
        )
    console.print(chart)


# ============================================================================
# Goal Commands
# ============================================================================


@goal_app.command("add")
def goal_add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Goal name"),
    unit: str = typer.Option("books", "--unit", "-u", help="books, pages, hours or chapters"),
    deadline: datetime = typer.Option(..., "--deadline", "-d", formats=["%Y-%m-%d"], help="Last day"),
    target: Optional[str] = typer.Option(None, "--target", "-t", help="Target quantity"),
    hours: int = typer.Option(0, "--hours", help="Target hours (hours goals)"),
    minutes: int = typer.Option(0, "--minutes", help="Extra target minutes (hours goals)"),
) -> None:
    """Create a goal."""
    goal_unit = parse_unit(unit)
    try:
        result = get_app(ctx).goals().create_goal(
            name, goal_unit, deadline.date(), quantity=target, hours=hours, minutes=minutes
        )
    except ReadTrackError as e:
        print_error(e.message)
        raise typer.Exit(1)

    print_save(result, f"Goal created: {name}")


@goal_app.command("list")
def goal_list(ctx: typer.Context) -> None:
    """Show goals with their progress."""
    context = get_app(ctx)
    try:
        goals = context.goals().progress()
    except ReadTrackError as e:
        print_error(e.message)
        raise typer.Exit(1)

    if not goals:
        console.print("[dim]No reading goals set.[/dim]")
        console.print("[dim]Use 'readtrack goal add <name> --deadline YYYY-MM-DD' to set one.[/dim]")
        return

    styles = {
        GoalBadge.COMPLETED: "green",
        GoalBadge.OVERDUE: "red",
        GoalBadge.NEAR: "yellow",
        GoalBadge.ON_TRACK: "blue",
    }
    now = context.clock()

    table = Table(title="Reading Goals", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", max_width=8)
    table.add_column("Goal", style="cyan")
    table.add_column("Unit")
    table.add_column("Progress")
    table.add_column("Status")
    for p in goals:
        status = goal_status(p.goal, p.is_complete, now)
        table.add_row(
            p.goal.id[:8],
            p.goal.name,
            p.goal.unit.value,
            f"[{progress_bar(p.percent)}] {p.current:g}/{p.goal.total:g} ({p.percent}%)",
            f"[{styles[status.badge]}]{status.text}[/{styles[status.badge]}]",
        )
    console.print(table)


@goal_app.command("delete")
def goal_delete(
    ctx: typer.Context,
    goal: str = typer.Argument(..., help="Goal name or ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a goal."""
    try:
        record = select_goal(ctx, goal)
        if not yes and not typer.confirm(f"Delete goal '{record.name}'?", default=False):
            console.print("[dim]Cancelled.[/dim]")
            raise typer.Exit(0)
        get_app(ctx).goals().delete_goal(record.id)
    except ReadTrackError as e:
        print_error(e.message)
        raise typer.Exit(1)

    print_success(f"Deleted goal: {record.name}")


def _adjust_goal(ctx: typer.Context, goal: str, delta: int) -> None:
    try:
        record = select_goal(ctx, goal)
        result = get_app(ctx).goals().adjust(record.id, delta)
    except ReadTrackError as e:
        print_error(e.message)
        raise typer.Exit(1)

    current = result.value.current if result.value is not None else None
    if current is None:
        print_save(result, f"Updated: {record.name}")
    else:
        print_save(result, f"{record.name}: {current:g}/{record.total:g}")


@goal_app.command("inc")
def goal_inc(
    ctx: typer.Context,
    goal: str = typer.Argument(..., help="Goal name or ID"),
) -> None:
    """Add one to a chapters goal."""
    _adjust_goal(ctx, goal, 1)


@goal_app.command("dec")
def goal_dec(
    ctx: typer.Context,
    goal: str = typer.Argument(..., help="Goal name or ID"),
) -> None:
    """Remove one from a chapters goal."""
    _adjust_goal(ctx, goal, -1)


# ============================================================================
# Notification Commands
# ============================================================================


@notify_app.command("check")
def notify_check(
    ctx: typer.Context,
    test: bool = typer.Option(False, "--test", help="Send now, ignoring the daily limit"),
) -> None:
    """Check goals and send a reminder if one is due today."""
    try:
        notifier = get_app(ctx).notifier()
    except ReadTrackError as e:
        print_error(e.message)
        raise typer.Exit(1)

    if notifier.request_permission() is not NotificationPermission.GRANTED:
        print_error("Notifications are not available on this system.")
        raise typer.Exit(1)

    result = notifier.run_check(manual=test)
    messages = {
        CheckOutcome.SENT: f"Reminder sent via {result.channel}.",
        CheckOutcome.THROTTLED: "Already reminded today.",
        CheckOutcome.NOTHING_PENDING: "All goals complete. Nothing to remind.",
        CheckOutcome.UNDELIVERED: "No channel could deliver the reminder.",
        CheckOutcome.ERROR: "Could not load goals.",
    }
    if result.outcome in (CheckOutcome.UNDELIVERED, CheckOutcome.ERROR):
        print_warning(messages[result.outcome])
    else:
        print_info(messages[result.outcome])


@notify_app.command("watch")
def notify_watch(
    ctx: typer.Context,
    demo: Optional[bool] = typer.Option(None, "--demo/--no-demo", help="Re-check every few seconds"),
) -> None:
    """Keep checking goals in the foreground. Press Ctrl-C to stop."""
    try:
        notifier = get_app(ctx).notifier(demo=demo)
    except ReadTrackError as e:
        print_error(e.message)
        raise typer.Exit(1)

    if notifier.request_permission() is not NotificationPermission.GRANTED:
        print_error("Notifications are not available on this system.")
        raise typer.Exit(1)

    mode = "demo" if notifier.demo else "daily"
    print_info(f"Watching goals ({mode} mode). Ctrl-C to stop.")
    notifier.start()
    try:
        while notifier.running:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        notifier.stop()


# ============================================================================
# Version Command
# ============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"readtrack version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
