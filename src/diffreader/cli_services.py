"""CLI service layer for diffreader.

Consoles, exit codes and input loading shared by the CLI commands.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from diffreader.config import DiffReaderConfig, get_config
from diffreader.exceptions import ConfigError

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_INVALID_ARG = 2

STDIN_MARKER = "-"

console = Console(stderr=False)  # stdout for normal output
error_console = Console(stderr=True)  # stderr for errors


def _escape_rich(text: str) -> str:
    """Escape brackets to prevent Rich markup interpretation."""
    return text.replace("[", "\\[").replace("]", "\\]")


def configure_logging(verbose: bool = False) -> None:
    """Route library logging to stderr through Rich."""
    handler = RichHandler(console=error_console, show_time=False, show_path=False)
    root = logging.getLogger("diffreader")
    root.handlers = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.propagate = False


class CLIContext:
    """Invocation-scoped context for CLI state."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose


def load_config(**overrides: object) -> DiffReaderConfig:
    """Load config, applying only the CLI options that were actually given."""
    explicit = {key: value for key, value in overrides.items() if value is not None}
    try:
        return get_config(**explicit)
    except ConfigError as e:
        error_console.print(f"[red]Error:[/red] {_escape_rich(str(e))}")
        raise typer.Exit(code=EXIT_INVALID_ARG)


def read_diff_input(source: str) -> str:
    """Read diff text from a file path, or from stdin when source is '-'."""
    if source == STDIN_MARKER:
        return sys.stdin.read()

    path = Path(source).expanduser()
    if not path.exists():
        error_console.print(f"[red]Error: Path does not exist: {_escape_rich(source)}[/red]")
        raise typer.Exit(code=EXIT_INVALID_ARG)
    if not path.is_file():
        error_console.print(f"[red]Error: Path is not a file: {_escape_rich(source)}[/red]")
        raise typer.Exit(code=EXIT_INVALID_ARG)

    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        error_console.print(f"[red]Error reading {_escape_rich(source)}:[/red] {_escape_rich(str(e))}")
        raise typer.Exit(code=EXIT_INVALID_ARG)
