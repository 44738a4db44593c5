import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from lending.config import settings
from lending.errors import InvariantViolation
from lending.script import DEMO_SCRIPT, LendingScript, load_script, run_script
from lending.ui_helpers import print_outcomes, print_state, print_stats_result, set_output_mode

console = Console(stderr=True)

app = typer.Typer(help=f"{settings.app_name} CLI")


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    log_level: str = typer.Option(settings.log_level, "--log-level", help="Logging level"),
):
    """Global options for the CLI (output mode, logging)."""
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    if output:
        set_output_mode(output)


def _load_or_exit(file_path: Path) -> LendingScript:
    if not file_path.exists():
        console.print(f"[red]File not found: {file_path}[/]")
        raise typer.Exit(code=1)
    try:
        return load_script(file_path)
    except ValidationError as e:
        console.print(f"[red]Invalid batch file {file_path}:[/]\n{e}")
        raise typer.Exit(code=1)


@app.command("demo")
def cli_demo():
    """Run the built-in lending scenario and show the resulting state."""
    engine, outcomes = run_script(DEMO_SCRIPT)
    print_outcomes(outcomes)
    print_state(engine)
    print_stats_result(engine.get_statistics())


@app.command("run")
def cli_run(
    file_path: Path = typer.Argument(..., help="JSON batch file with books, users and operations"),
    stop_on_error: bool = typer.Option(False, "--stop-on-error", help="Abort the batch at the first failure"),
    show_state: bool = typer.Option(True, "--state/--no-state", help="Print books and users afterwards"),
):
    """Replay a batch file against a fresh library."""
    script = _load_or_exit(file_path)
    engine, outcomes = run_script(script, stop_on_error=stop_on_error)
    print_outcomes(outcomes)
    if show_state:
        print_state(engine)


@app.command("check")
def cli_check(file_path: Path = typer.Argument(..., help="JSON batch file to replay")):
    """Replay a batch file and verify the stock and loan invariants."""
    script = _load_or_exit(file_path)
    engine, _ = run_script(script)
    try:
        engine.check_invariants()
    except InvariantViolation as e:
        print(f"Invariant violated: {e}")
        raise typer.Exit(code=1)
    print("Invariants hold.")
    print_stats_result(engine.get_statistics())


def main() -> None:
    app()


if __name__ == "__main__":
    main()
