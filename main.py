"""
cscopetree CLI Entry Point.

This module implements the command-line interface for cscopetree, a tool that
reads a cscope cross-reference database (`cscope.out`) and lists what it
knows about the indexed codebase without running cscope itself.

Commands:

1.  **files**: The source files covered by the database, taken from the
    trailer's file list (the authoritative list).
2.  **functions**: Every function definition recorded in the symbol body, with
    its file, line number and source line, grouped by file.
3.  **check**: Cross-checks the files named in the body against the trailer.
4.  **configure**: Interactively edits the default database path, trailer
    layout and encoding stored in `~/.cscopetree/settings.json`.

Usage:
    The database must have been generated uncompressed:

    $ cscope -b -c -R
    $ python main.py functions --file cscope.out

Dependencies:
    - Typer: CLI argument parsing and app structure.
    - Rich: Terminal tables, colors and the scan progress bar.
    - Inquirer: Interactive terminal prompts for `configure`.
"""

from dataclasses import asdict
from itertools import groupby
from pathlib import Path
from typing import Annotated
import json
import typer
from rich import print as pr
from rich.markup import escape
from rich.table import Table
import inquirer  # type: ignore
from inquirer.themes import GreenPassion  # type: ignore
from core.config import get_config_file, resolve_settings, save_config
from core.database import CscopeDatabase, open_database
from core.exceptions import (
    CscopeDatabaseError,
    FileIOError,
)
from core.extraction import cross_check_files, list_files, list_functions
from core.models import FileCrossCheck, FunctionRecord
from models import TrailerLayout
from ui.progress_display import NoOpProgressDisplay, RichProgressDisplay
from utils import debug, format_size

app = typer.Typer(
    help="List the files and function definitions recorded in a cscope database.",
    no_args_is_help=True,
)

DatabaseOption = Annotated[
    Path | None,
    typer.Option(
        "--file",
        "-f",
        dir_okay=False,  # Must be a file, not a directory
        help="cscope database file. Defaults to the configured database or ./cscope.out",
    ),
]
LayoutOption = Annotated[
    TrailerLayout | None,
    typer.Option(
        "--layout",
        case_sensitive=False,
        help="Trailer layout of the database.",
    ),
]
EncodingOption = Annotated[
    str | None,
    typer.Option("--encoding", help="Text encoding of the database."),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Write one JSON object per line instead of a table."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Print diagnostic details to stderr."),
]


@app.command()
def files(
    file: DatabaseOption = None,
    layout: LayoutOption = None,
    encoding: EncodingOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
):
    """
    List the source files covered by the database, in trailer order.
    """
    try:
        with open_from_settings(file, layout, encoding, verbose) as database:
            paths = list_files(database)
            if verbose:
                trailer = database.trailer()
                debug(f"Trailer layout: {trailer.layout}")
                debug(f"Include directories: {len(trailer.include_dirs)}")
    except CscopeDatabaseError as e:
        print_database_err(e)
    except FileIOError as e:
        print_file_io_err(e)
    except Exception as e:  # noqa: BLE001
        print_unexpected_err(e)

    if json_output:
        for path in paths:
            typer.echo(json.dumps({"type": "file", "path": path}))
        return

    table = Table(title=f"Files ({len(paths)})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Path", style="green")
    for index, path in enumerate(paths, start=1):
        table.add_row(str(index), escape(path))
    pr(table)


@app.command()
def functions(
    file: DatabaseOption = None,
    layout: LayoutOption = None,
    encoding: EncodingOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
):
    """
    List every function definition in the database, grouped by file.
    """
    progress_display = (
        NoOpProgressDisplay() if json_output else RichProgressDisplay(transient=True)
    )
    try:
        with open_from_settings(file, layout, encoding, verbose) as database:
            records = list_functions(database, progress_display)
    except CscopeDatabaseError as e:
        print_database_err(e)
    except FileIOError as e:
        print_file_io_err(e)
    except Exception as e:  # noqa: BLE001
        print_unexpected_err(e)

    if json_output:
        for record in records:
            typer.echo(json.dumps({"type": "function", **asdict(record)}))
        return

    print_function_tables(records)


@app.command()
def check(
    file: DatabaseOption = None,
    layout: LayoutOption = None,
    encoding: EncodingOption = None,
    verbose: VerboseOption = False,
):
    """
    Cross-check the files named in the database body against its trailer.

    Exits with code 1 when the body names files the trailer doesn't list.
    """
    try:
        with open_from_settings(file, layout, encoding, verbose) as database:
            result = cross_check_files(database)
    except CscopeDatabaseError as e:
        print_database_err(e)
    except FileIOError as e:
        print_file_io_err(e)
    except Exception as e:  # noqa: BLE001
        print_unexpected_err(e)

    print_cross_check(result, verbose)
    if not result.is_consistent:
        raise typer.Exit(code=1)


@app.command()
def configure():
    """
    Edit the default database path, trailer layout and encoding.
    """
    try:
        settings = resolve_settings(get_config_file())
    except FileIOError as e:
        print_file_io_err(e)

    pr("\n[bold green]Edit cscopetree defaults.[/bold green]\n")

    questions = [
        inquirer.Text(
            "database", message="Database path", default=settings["database"]
        ),
        inquirer.List(
            "layout",
            message="Trailer layout",
            choices=[str(layout) for layout in TrailerLayout],
            default=settings["layout"],
        ),
        inquirer.Text("encoding", message="Encoding", default=settings["encoding"]),
    ]

    answers = inquirer.prompt(questions, theme=GreenPassion())

    if not answers:
        raise typer.Exit(code=1)

    database = (answers.get("database") or "").strip()
    layout = (answers.get("layout") or "").strip()
    encoding = (answers.get("encoding") or "").strip()

    if not database or not layout or not encoding:
        pr("\n[bold][red]Error:[/bold] Database path, layout and encoding are required.")
        raise typer.Exit(code=1)

    try:
        save_config(database, layout, encoding)
    except FileIOError as e:
        print_file_io_err(e)

    pr("[green]Config saved.[/green]\n")


def open_from_settings(
    file: Path | None,
    layout: TrailerLayout | None,
    encoding: str | None,
    verbose: bool = False,
) -> CscopeDatabase:
    """
    Open the database selected by the command line or the settings file.

    Command-line options win over the settings file, which wins over the
    built-in defaults.

    Args:
        file: The --file option, if given.
        layout: The --layout option, if given.
        encoding: The --encoding option, if given.
        verbose: If True, prints the effective settings and the parsed header.

    Returns:
        CscopeDatabase: The opened database. The caller closes it.

    Raises:
        FileIOError: If the settings file or the database can't be read.
        CscopeDatabaseError: If the database header is invalid or unsupported.
    """
    settings = resolve_settings(
        get_config_file(),
        database=str(file) if file is not None else None,
        layout=str(layout) if layout is not None else None,
        encoding=encoding,
    )
    if verbose:
        debug(f"Settings: {settings}")

    database = open_database(
        Path(settings["database"]),
        TrailerLayout(settings["layout"]),
        settings["encoding"],
    )

    if verbose:
        header = database.header
        start, end = database.body_span()
        debug(f"cscope version: {header.cscope_version}")
        debug(f"Index directory: {header.index_directory}")
        debug(f"Options: {', '.join(sorted(header.options)) or 'none'}")
        debug(f"Body: bytes {start}-{end} ({format_size(end - start)})")

    return database


def print_function_tables(records: list[FunctionRecord]) -> None:
    """
    Print one table per file with the functions defined in it.

    Records arrive grouped by file, so consecutive records are grouped without
    sorting; a file that appears twice in the database gets two tables.

    Args:
        records (list[FunctionRecord]): The function definitions, in database order.
    """
    if not records:
        pr("[yellow]No function definitions found.[/yellow]")
        return

    for file_name, group in groupby(records, key=lambda r: r.file):
        table = Table(title=escape(file_name), title_style="bold cyan", title_justify="left")
        table.add_column("Function", style="green")
        table.add_column("Source")
        table.add_column("Line", justify="right")
        for record in group:
            table.add_row(
                escape(record.name), escape(record.source_text), str(record.line_number)
            )
        pr(table)

    pr(f"\n[bold]{len(records)}[/bold] function definitions.")


def print_cross_check(result: FileCrossCheck, verbose: bool = False) -> None:
    """
    Print the outcome of a body/trailer file cross-check.

    Args:
        result (FileCrossCheck): The comparison to report.
        verbose (bool): If True, also lists trailer files the body never names.
    """
    pr(
        f"Body files: [bold]{len(result.body_files)}[/bold]  "
        f"Trailer files: [bold]{len(result.trailer_files)}[/bold]"
    )

    if result.is_consistent:
        pr("[green]✅ Every file named in the body is listed in the trailer.[/green]")
    else:
        pr(
            f"[red bold]❌ {len(result.missing_from_trailer)} file(s) in the body "
            "are missing from the trailer:[/red bold]"
        )
        for path in result.missing_from_trailer:
            pr(f"  [red]{escape(path)}[/red]")

    if verbose and result.not_in_body:
        debug(f"{len(result.not_in_body)} trailer file(s) have no symbols in the body:")
        for path in result.not_in_body:
            debug(f"  {path}")


def print_database_err(e: CscopeDatabaseError) -> None:
    """
    Displays a user-friendly error message for an unreadable database.

    Args:
        e (CscopeDatabaseError): The exception that was raised, containing the
            error kind and where in the database it was detected.

    Raises:
        typer.Exit: Always raises with exit code 1 to terminate the application.
    """
    pr("❌ [bold red]Database Error[/bold red]")
    pr(f"The cscope database could not be read: {escape(e.message)}")
    pr(f"Error kind: [yellow]{e.kind}[/yellow]")
    if e.offset is not None:
        pr(f"Byte offset: [yellow]{e.offset}[/yellow]")
    if e.line_number is not None:
        pr(f"Line: [yellow]{e.line_number}[/yellow]")

    pr(
        "\n[yellow]Quick Fix:[/yellow] Regenerate the database with "
        "`cscope -b -c` and try again."
    )
    raise typer.Exit(code=1) from e


def print_file_io_err(e: FileIOError) -> None:
    """
    Displays a user-friendly error message for file I/O operation failures.

    Args:
        e (FileIOError): The exception that was raised, containing error details
            and file path information.

    Raises:
        typer.Exit: Always raises with exit code 1 to terminate the application.
    """
    pr("❌ [bold red]File I/O Error[/bold red]")
    pr(f"The app encountered an error while working with files: {escape(e.message)}")
    if e.file_path:
        pr(f"File path: [yellow]{escape(e.file_path)}[/yellow]")

    pr("\n[yellow]Quick Fix:[/yellow] Check the path and the file permissions.")
    if e.original_exception:
        pr(f"\nTechnical details: {escape(str(e.original_exception))}")

    raise typer.Exit(code=1) from e


def print_unexpected_err(e: Exception) -> None:
    """
    Displays a user-friendly error message for unexpected errors.

    This catch-all handler ensures that any unhandled exceptions are presented
    to the user in a friendly way, rather than showing a raw Python stack trace.

    Args:
        e (Exception): The unexpected exception that was raised.

    Raises:
        typer.Exit: Always raises with exit code 1 to terminate the application.
    """
    pr("❌ [bold red]Unexpected Error[/bold red]")
    pr("An unexpected error occurred while reading the database.")
    pr(f"\n[yellow]Error Type:[/yellow] {type(e).__name__}")
    pr(f"[yellow]Error Message:[/yellow] {escape(str(e))}")

    pr("\n--- PLEASE REPORT THIS ---")
    pr(f"Error Type: {type(e).__name__}")
    pr(f"Error Message: {escape(str(e))}")
    if e.__cause__:
        pr(f"Caused by: {escape(str(e.__cause__))}")

    raise typer.Exit(code=1) from e


if __name__ == "__main__":
    app()
