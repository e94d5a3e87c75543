"""
Module for extracting file and function lists from a cscope database.

This module is the thin layer between the database reader/scanner and the CLI:
- `list_files()` returns the trailer's file list, which is authoritative
- `list_functions()` scans the body and keeps function definitions
- `list_symbols()` filters scanned entries by any set of marks
- `cross_check_files()` compares the files named in the body with the trailer

Results keep database order. Sorting, grouping or deduplicating them is left
to whoever displays them.
"""

from itertools import groupby
from typing import Collection, Iterable, Iterator

from constants import PROGRESS_UPDATE_INTERVAL
from core.database import CscopeDatabase
from core.exceptions import CscopeDatabaseError
from core.models import FileCrossCheck, FunctionRecord, SymbolEntry, SymbolMark
from core.scanner import scan
from ui.progress_display import NoOpProgressDisplay, ProgressDisplay


def list_files(database: CscopeDatabase) -> list[str]:
    """
    Return every source file covered by the database, in trailer order.

    Args:
        database: The opened database.

    Returns:
        list[str]: The trailer's file paths, verbatim.

    Raises:
        TruncatedBodyError: If the database ends before its trailer.
        MalformedTrailerError: If the trailer can't be parsed.
    """
    return list(database.trailer().files)


def list_symbols(
    database: CscopeDatabase,
    marks: Collection[SymbolMark],
    span: tuple[int, int] | None = None,
) -> Iterator[SymbolEntry]:
    """
    Lazily yield the body entries whose mark is one of `marks`.

    Args:
        database: The opened database.
        marks: The marks to keep.
        span: Optional (start, end) byte range. If None, scans the whole body.

    Yields:
        SymbolEntry: Matching entries, in database order.
    """
    wanted = frozenset(marks)
    for entry in scan(database, span):
        if entry.mark in wanted:
            yield entry


def list_functions(
    database: CscopeDatabase,
    progress_display: ProgressDisplay | None = None,
) -> list[FunctionRecord]:
    """
    Return one record per function definition in the database body.

    The trailer is read first: it is what marks the end of the body, and a
    database that can't provide one is rejected before any scanning happens.
    Records follow scan order (grouped by file, ascending line). A function
    that is defined more than once yields one record per definition.

    Args:
        database: The opened database.
        progress_display: Optional progress display, advanced by the number of
            body bytes scanned. If None, uses NoOpProgressDisplay.

    Returns:
        list[FunctionRecord]: The function definitions, in database order.

    Raises:
        TruncatedBodyError: If the database ends before its trailer.
        MalformedTrailerError: If the trailer can't be parsed.
        MalformedBodyError: If a record appears before any file or line context.
    """
    database.trailer()

    start, end = database.body_span()
    display = progress_display if progress_display is not None else NoOpProgressDisplay()
    records: list[FunctionRecord] = []

    with display as pd:
        pd.on_start("Scanning symbols...", end - start)

        reported = start
        scanned = 0
        try:
            for block in _iter_blocks(scan(database)):
                source_text = "".join(entry.text for entry in block).strip()
                for entry in block:
                    if entry.mark is SymbolMark.FUNCTION_DEFINITION:
                        records.append(
                            FunctionRecord(
                                name=entry.text.strip(),
                                file=entry.file,
                                line_number=entry.line_number,
                                source_text=source_text,
                            )
                        )

                scanned += len(block)
                if scanned >= PROGRESS_UPDATE_INTERVAL:
                    pd.on_advance(block[-1].offset - reported)
                    reported = block[-1].offset
                    scanned = 0
        except CscopeDatabaseError as e:
            pd.on_fail(f"❌ Scan stopped: {e.kind}")
            raise

        pd.on_complete(f"✅ Found {len(records)} function definitions.")

    return records


def cross_check_files(database: CscopeDatabase) -> FileCrossCheck:
    """
    Compare the files named by body file marks with the trailer's file list.

    Args:
        database: The opened database.

    Returns:
        FileCrossCheck: Both lists plus the differences between them. Body
            files keep first-seen order; differences keep the order of the
            list they come from.
    """
    trailer_files = database.trailer().files

    seen: list[str] = []
    for _ in scan(database, on_file=seen.append):
        pass

    body_files = tuple(dict.fromkeys(seen))
    trailer_set = set(trailer_files)
    body_set = set(body_files)

    return FileCrossCheck(
        body_files=body_files,
        trailer_files=trailer_files,
        missing_from_trailer=tuple(f for f in body_files if f not in trailer_set),
        not_in_body=tuple(f for f in trailer_files if f not in body_set),
    )


def _iter_blocks(entries: Iterable[SymbolEntry]) -> Iterator[list[SymbolEntry]]:
    """Group consecutive entries that belong to the same source line."""
    for _, block in groupby(entries, key=lambda e: (e.file, e.line_number)):
        yield list(block)
