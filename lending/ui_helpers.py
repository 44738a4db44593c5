import json
import os
from typing import Any, Dict, List

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from lending.config import settings
from lending.engine import LendingEngine
from lending.script import OperationOutcome

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode
    # anything else keeps the current mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, settings.output_mode).lower()


def print_outcomes(outcomes: List[OperationOutcome]) -> None:
    """Print one line per batch step.
    - plain: '✓ step: message' or '✗ step: [Kind] message'
    - json: JSON array of outcome objects
    - rich: table with a status column
    """
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps([o.to_dict() for o in outcomes], ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="📚 Operations", header_style="bold cyan")
        table.add_column("", no_wrap=True)
        table.add_column("Step", style="magenta")
        table.add_column("Result", style="white")
        for o in outcomes:
            if o.ok:
                table.add_row("[green]✓[/]", o.step, o.message)
            else:
                table.add_row("[red]✗[/]", o.step, f"[red]{o.error_kind.value}[/]: {o.message}")
        _console.print(table)
    else:
        for o in outcomes:
            if o.ok:
                print(f"✓ {o.step}: {o.message}")
            else:
                print(f"✗ {o.step}: [{o.error_kind.value}] {o.message}")

    failed = sum(1 for o in outcomes if not o.ok)
    if mode != "json":
        print(f"Batch complete: {len(outcomes) - failed} succeeded, {failed} failed")


def print_state(engine: LendingEngine) -> None:
    """Print the books with their stock and the users with their loans."""
    mode = get_output_mode()
    books = engine.list_books()
    users = engine.list_users()

    if mode == "json":
        print(json.dumps(engine.snapshot().to_dict(), ensure_ascii=False))
        return

    if mode == "rich":
        book_table = Table(title="📚 Books", show_lines=True, header_style="bold cyan")
        book_table.add_column("ID", style="magenta", no_wrap=True)
        book_table.add_column("Title", style="white")
        book_table.add_column("Author", style="white")
        book_table.add_column("Stock", justify="right")
        for b in books:
            book_table.add_row(b.id, b.title, b.author, str(engine.stock_of(b.id)))
        _console.print(book_table)

        user_table = Table(title="👤 Users", show_lines=True, header_style="bold cyan")
        user_table.add_column("ID", style="magenta", no_wrap=True)
        user_table.add_column("Name", style="white")
        user_table.add_column("Borrowed", style="white")
        for u in users:
            user_table.add_row(u.id, u.name, f"{len(u.borrowed_books)}/{u.max_borrowed} {_titles(engine, u.borrowed_books)}")
        _console.print(user_table)
        return

    if not books:
        print("No books in library.")
    for b in books:
        print(f"{b.id} - {b.title} by {b.author} (stock {engine.stock_of(b.id)})")
    if not users:
        print("No registered users.")
    for u in users:
        line = f"{u.id} - {u.name}: {len(u.borrowed_books)}/{u.max_borrowed} borrowed"
        if u.borrowed_books:
            line += f" ({_titles(engine, u.borrowed_books)})"
        print(line)


def print_stats_result(stats: Dict[str, Any]) -> None:
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(stats, ensure_ascii=False))
    elif mode == "rich":
        content = "\n".join(f"[bold]{key.replace('_', ' ').title()}:[/] {value}" for key, value in stats.items())
        _console.print(Panel.fit(content, title="📊 Stats", border_style="blue"))
    else:
        for key, value in stats.items():
            print(f"{key.replace('_', ' ').title()}: {value}")


def _titles(engine: LendingEngine, book_ids) -> str:
    return ", ".join(sorted(engine.get_book(book_id).title for book_id in book_ids))
