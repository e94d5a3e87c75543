"""
Module for scanning the symbol body of a cscope database.

The body is a sequence of newline-terminated records. cscope does not repeat
the file name or line number on every record; instead the records carry
context forward:

    <tab>@<file path>              sets the current file
    <empty line>
    <line number> <source text>    sets the current line (at a block start)
    <line number>                  sets the current line (anywhere)
    <tab><mark><symbol>            a classified symbol on that line
    <source text>                  unmarked source text or symbol
    ...
    <empty line>                   ends the block for that source line

The last file block is followed by `<tab>@` with an empty path, after which
the trailer begins.

`scan()` walks a byte range of the body once and lazily yields a
`SymbolEntry` for each record, carrying the file and line inherited from
preceding records. The parsing context lives in a `ScanState` owned by a
single scan, so separate scans never share state.
"""

from dataclasses import dataclass
from typing import BinaryIO, Callable, Iterator

from constants import DEFAULT_ENCODING, MARK_PREFIX
from core.database import CscopeDatabase
from core.exceptions import MalformedBodyError, TruncatedBodyError
from core.models import SymbolEntry, SymbolMark


@dataclass
class ScanState:
    """
    Context carried from one body record to the next.

    Attributes:
        current_file: Path from the most recent file mark, or None before the
            first file mark and after the end-of-files sentinel.
        current_line: Source line from the most recent line-number record.
        at_block_start: True at the start of the body, after a file mark and
            after an empty line, i.e. wherever a `<number> <text>` record is
            read as a line number. A bare number is one everywhere.
    """

    current_file: str | None = None
    current_line: int | None = None
    at_block_start: bool = True


def scan(
    database: CscopeDatabase,
    span: tuple[int, int] | None = None,
    on_file: Callable[[str], None] | None = None,
) -> Iterator[SymbolEntry]:
    """
    Lazily yield the symbol entries of a database body.

    Args:
        database: The opened database.
        span: Optional (start, end) byte range to scan. If None, uses
            database.body_span().
        on_file: Optional callback invoked with the path of every file mark.

    Returns:
        Iterator[SymbolEntry]: A forward-only iterator. Scan again to restart.

    Raises:
        TruncatedBodyError: If the input ends before the end of the span.
        MalformedBodyError: If a record appears before any file or line context.
    """
    start, end = span if span is not None else database.body_span()
    return scan_stream(database.stream, start, end, database.encoding, on_file)


def scan_stream(
    stream: BinaryIO,
    start: int,
    end: int,
    encoding: str = DEFAULT_ENCODING,
    on_file: Callable[[str], None] | None = None,
) -> Iterator[SymbolEntry]:
    """
    Lazily yield the symbol entries of a byte range of a binary stream.

    The scan keeps its own read position and seeks back to it whenever the
    stream was moved in between two records (e.g. by another scan of the same
    stream), so interleaved scans don't interfere.

    Args:
        stream: A readable, seekable binary stream.
        start: Offset of the first record.
        end: Offset at which scanning stops. A record crossing it is cut at `end`.
        encoding: Text encoding used to decode records.
        on_file: Optional callback invoked with the path of every file mark.

    Yields:
        SymbolEntry: One entry per symbol or source-text record, in database order.

    Raises:
        TruncatedBodyError: If the stream ends before `end`.
        MalformedBodyError: If a record appears before any file or line context.
    """
    state = ScanState()
    position = start

    while position < end:
        if stream.tell() != position:
            stream.seek(position)

        raw = stream.readline()
        if not raw:
            raise TruncatedBodyError(
                message=(
                    f"The database ends at byte {position}, before the trailer "
                    f"at byte {end}"
                ),
                offset=position,
            )

        line_offset = position
        position += len(raw)
        if position > end:
            raw = raw[: end - line_offset]

        line = raw.decode(encoding, errors="replace").removesuffix("\n")
        entry = scan_line(state, line, line_offset, on_file)
        if entry is not None:
            yield entry


def scan_line(
    state: ScanState,
    line: str,
    offset: int,
    on_file: Callable[[str], None] | None = None,
) -> SymbolEntry | None:
    """
    Apply one body record to the scan state.

    Args:
        state: The scan's context, updated in place.
        line: The record without its line terminator.
        offset: Byte offset of the record, used for entries and errors.
        on_file: Optional callback invoked with the path of a file mark.

    Returns:
        Optional[SymbolEntry]: The entry for this record, or None for records
            that only update context (file marks, line numbers, empty lines).

    Raises:
        MalformedBodyError: If the record needs a file or line that isn't set.
    """
    if not line:
        state.at_block_start = True
        return None

    if line.startswith(MARK_PREFIX):
        return _scan_marked_line(state, line, offset, on_file)

    if not line.strip():
        return None

    # A bare number sets the line anywhere; `<number> <text>` only at a block start
    line_number, text = _split_line_number(line)
    bare = not text.strip()
    if line_number is not None and (bare or state.at_block_start):
        state.at_block_start = False
        state.current_line = line_number
        if bare:
            return None
        return _make_entry(state, SymbolMark.UNMARKED, text, "", offset)

    state.at_block_start = False
    return _make_entry(state, SymbolMark.UNMARKED, line, "", offset)


def _scan_marked_line(
    state: ScanState,
    line: str,
    offset: int,
    on_file: Callable[[str], None] | None,
) -> SymbolEntry | None:
    raw_mark = line[len(MARK_PREFIX) : len(MARK_PREFIX) + 1]
    text = line[len(MARK_PREFIX) + 1 :]

    # A bare tab carries nothing
    if not raw_mark:
        return None

    mark = SymbolMark.from_char(raw_mark)
    if mark is SymbolMark.FILE:
        path = text.strip()
        state.current_file = path or None
        state.current_line = None
        state.at_block_start = True
        if path and on_file is not None:
            on_file(path)
        return None

    state.at_block_start = False
    return _make_entry(state, mark, text, raw_mark, offset)


def _make_entry(
    state: ScanState, mark: SymbolMark, text: str, raw_mark: str, offset: int
) -> SymbolEntry:
    if state.current_file is None:
        raise MalformedBodyError(
            message=f"Symbol record {text!r} appears before any file mark",
            offset=offset,
        )
    if state.current_line is None:
        raise MalformedBodyError(
            message=(
                f"Symbol record {text!r} in {state.current_file} appears before "
                "any line number"
            ),
            offset=offset,
        )
    return SymbolEntry(
        mark=mark,
        text=text,
        file=state.current_file,
        line_number=state.current_line,
        raw_mark=raw_mark,
        offset=offset,
    )


def _split_line_number(line: str) -> tuple[int | None, str]:
    """
    Split a `<line number><blank><text>` record.

    Returns:
        tuple: (line number, text after the blank), or (None, line) if the
            record doesn't start with a decimal number followed by a blank or
            the end of the line.
    """
    digits = 0
    while digits < len(line) and "0" <= line[digits] <= "9":
        digits += 1

    if digits == 0:
        return (None, line)

    rest = line[digits:]
    if rest and rest[0] != " ":
        return (None, line)

    return (int(line[:digits]), rest[1:])
