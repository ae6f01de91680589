"""CLI entry point for diffreader."""

from __future__ import annotations

import json

import typer
from rich.table import Table
from rich.text import Text

from diffreader import __version__
from diffreader.cli_services import (
    EXIT_ERROR,
    EXIT_SUCCESS,
    STDIN_MARKER,
    CLIContext,
    _escape_rich,
    configure_logging,
    console,
    error_console,
    load_config,
    read_diff_input,
)
from diffreader.exceptions import DiffParseError, DiffReaderError
from diffreader.git import DiffParser
from diffreader.models import FileDiff, LineType
from diffreader.stats import DiffSummary, parse_numstat, summarize

app = typer.Typer(
    name="diffreader",
    help="Parse git unified diff output into files, hunks and lines",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

_LINE_MARKERS = {
    LineType.CONTEXT: " ",
    LineType.ADDITION: "+",
    LineType.DELETION: "-",
    LineType.NO_NEWLINE_MARKER: "\\",
}
_LINE_STYLES = {
    LineType.ADDITION: "green",
    LineType.DELETION: "red",
    LineType.NO_NEWLINE_MARKER: "dim",
}


def _is_verbose(ctx: typer.Context) -> bool:
    return isinstance(ctx.obj, CLIContext) and ctx.obj.verbose


def _report_error(ctx: typer.Context, error: DiffReaderError) -> typer.Exit:
    """Print a library error and return the exit to raise."""
    if isinstance(error, DiffParseError):
        error_console.print(f"[red]Parse error:[/red] {_escape_rich(error.message)}")
        if error.file_path is not None:
            error_console.print(f"  File: {_escape_rich(error.file_path)}")
        if error.hunk_header is not None:
            error_console.print(f"  Hunk: {_escape_rich(error.hunk_header)}")
        if error.line_number is not None:
            error_console.print(f"  Line: {error.line_number}")
        error_console.print(f"  Fragment: {_escape_rich(error.fragment)}")
    else:
        error_console.print(f"[red]Error:[/red] {_escape_rich(str(error))}")

    if _is_verbose(ctx):
        error_console.print(f"[dim]{type(error).__name__}[/dim]")
    return typer.Exit(code=EXIT_ERROR)


def _parse_input(
    ctx: typer.Context,
    source: str,
    strict: bool | None,
    jobs: int | None = None,
    raw: bool | None = None,
) -> list[FileDiff]:
    """Shared implementation for commands that parse diff text."""
    config = load_config(strict=strict, keep_raw_diff=raw, max_workers=jobs)
    parser = DiffParser.from_config(config)
    diff_text = read_diff_input(source)

    try:
        if config.max_workers is not None and config.max_workers > 1:
            return parser.parse_parallel(
                diff_text,
                max_workers=config.max_workers,
                min_parallel_blocks=config.min_parallel_blocks,
            )
        return parser.parse(diff_text)
    except DiffReaderError as e:
        raise _report_error(ctx, e) from e


def _flags(file_diff: FileDiff) -> str:
    flags = []
    if file_diff.is_binary:
        flags.append("binary")
    if file_diff.is_new:
        flags.append("new")
    if file_diff.is_deleted:
        flags.append("deleted")
    if file_diff.is_renamed:
        flags.append("renamed")
    return ", ".join(flags)


def _print_summary(summary: DiffSummary) -> None:
    console.print("[bold]Diff Statistics[/bold]")
    console.print(f"  Files: {summary.files}")
    console.print(f"  Additions: [green]+{summary.additions}[/green]")
    console.print(f"  Deletions: [red]-{summary.deletions}[/red]")
    console.print(f"  Net change: {summary.net_change:+d}")
    console.print(f"  Binary files: {summary.binary_files}")
    for change_type, count in summary.change_types.items():
        console.print(f"  {change_type.value.capitalize()}: {count}")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log skipped diff constructs and other diagnostics to stderr",
    ),
    version: bool | None = typer.Option(
        None,
        "--version",
        help="Show version information",
        is_flag=True,
    ),
):
    """diffreader - Structured views of git diff output."""
    if version:
        console.print(f"diffreader version {__version__}")
        raise typer.Exit(code=EXIT_SUCCESS)

    verbose = verbose or load_config().verbose
    configure_logging(verbose)
    ctx.obj = CLIContext(verbose=verbose)

    if ctx.invoked_subcommand is None:
        console.print("[bold]diffreader[/bold] - git diff parser")
        console.print("Use --help for usage information")
        raise typer.Exit(code=EXIT_SUCCESS)


@app.command()
def parse(
    ctx: typer.Context,
    source: str = typer.Argument(
        STDIN_MARKER,
        help="Diff file to read, or '-' for stdin",
    ),
    strict: bool | None = typer.Option(
        None,
        "--strict/--lenient",
        help="Fail on malformed headers and content lines instead of skipping them",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the parsed tree as JSON",
    ),
    jobs: int | None = typer.Option(
        None,
        "--jobs",
        "-j",
        help="Parse file blocks in this many worker processes",
    ),
    raw: bool | None = typer.Option(
        None,
        "--raw/--no-raw",
        help="Include each file's raw diff text in JSON output",
    ),
) -> None:
    """Parse a diff and list its files."""
    diffs = _parse_input(ctx, source, strict, jobs=jobs, raw=raw)

    if as_json:
        # Use built-in print to avoid Rich markup interpretation
        print(json.dumps([d.model_dump(mode="json") for d in diffs], indent=2))
        return

    if not diffs:
        console.print("[dim]No file changes found[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("File")
    table.add_column("Change")
    table.add_column("Flags")
    table.add_column("Hunks", justify="right")
    table.add_column("+", justify="right", style="green")
    table.add_column("-", justify="right", style="red")
    for file_diff in diffs:
        table.add_row(
            _escape_rich(file_diff.display_path),
            file_diff.change_type.value,
            _flags(file_diff),
            str(len(file_diff.hunks)),
            str(file_diff.additions_count),
            str(file_diff.deletions_count),
        )
    console.print(table)


@app.command()
def stats(
    ctx: typer.Context,
    source: str = typer.Argument(
        STDIN_MARKER,
        help="Diff file to read, or '-' for stdin",
    ),
    numstat: bool = typer.Option(
        False,
        "--numstat",
        help="Treat the input as `git diff --numstat` output",
    ),
    strict: bool | None = typer.Option(
        None,
        "--strict/--lenient",
        help="Fail on malformed input instead of skipping it",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the summary as JSON",
    ),
) -> None:
    """Show addition and deletion totals for a diff."""
    if numstat:
        config = load_config(strict=strict)
        text = read_diff_input(source)
        try:
            summary = parse_numstat(text, strict=config.strict)
        except DiffReaderError as e:
            raise _report_error(ctx, e) from e
    else:
        summary = summarize(_parse_input(ctx, source, strict))

    if as_json:
        print(json.dumps(summary.model_dump(mode="json"), indent=2))
        return

    _print_summary(summary)


@app.command()
def show(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path of the file within the diff"),
    source: str = typer.Argument(
        STDIN_MARKER,
        help="Diff file to read, or '-' for stdin",
    ),
    strict: bool | None = typer.Option(
        None,
        "--strict/--lenient",
        help="Fail on malformed headers and content lines instead of skipping them",
    ),
) -> None:
    """Show one file's hunks with old and new line numbers."""
    config = load_config(strict=strict)
    parser = DiffParser.from_config(config)
    diff_text = read_diff_input(source)

    try:
        file_diff = parser.parse_file(diff_text, path)
    except DiffReaderError as e:
        raise _report_error(ctx, e) from e

    if file_diff is None:
        error_console.print(f"[red]Error: No changes for {_escape_rich(path)} in diff[/red]")
        raise typer.Exit(code=EXIT_ERROR)

    console.print(f"[bold]{_escape_rich(file_diff.display_path)}[/bold] ({file_diff.change_type.value})")
    if file_diff.is_binary:
        console.print("[dim]Binary file[/dim]")
        return

    for hunk in file_diff.hunks:
        console.print(Text(hunk.header_line, style="cyan"))
        for line in hunk.lines:
            old = "" if line.old_line_number is None else str(line.old_line_number)
            new = "" if line.new_line_number is None else str(line.new_line_number)
            text = f"{old:>5} {new:>5} {_LINE_MARKERS[line.type]}{line.content}"
            console.print(Text(text, style=_LINE_STYLES.get(line.type, "")))


def run() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    run()
