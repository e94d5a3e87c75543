"""
Module for reading the header and trailer of a cscope database.

A cscope cross-reference database (`cscope.out`) starts with a single header
line:

    cscope <version> <index directory> [-c] [-q <terms>] [-T] <trailer offset>

The trailer offset is written zero-padded to a fixed width, so it can be
rewritten in place once the body has been generated. Everything between the
end of the header line and that offset is the symbol body (see
`core.scanner`). The trailer holds the authoritative file list and the
include-directory list.

The main entry point is `open_database()`, which opens a database file,
validates its header and returns a `CscopeDatabase` that owns the file handle.
"""

import os
import re
from pathlib import Path
from typing import BinaryIO

from constants import (
    DEFAULT_ENCODING,
    HEADER_MAGIC,
    INVERTED_INDEX_OPTION,
    KNOWN_HEADER_OPTIONS,
    UNCOMPRESSED_OPTION,
)
from core.exceptions import (
    MalformedHeaderError,
    MalformedTrailerError,
    TruncatedBodyError,
    UnsupportedFormatError,
)
from core.file_io import FileReader, FilesystemFileReader
from core.models import DatabaseHeader, TrailerData
from models import TrailerLayout


class CscopeDatabase:
    """
    An opened cscope database.

    The header is parsed when the database is constructed; the trailer is
    parsed on first access and cached. The instance can be used as a context
    manager, which closes the underlying stream on exit when the database owns it.

    Attributes:
        header: The parsed header line.
        layout: The trailer layout to read (AUTO tries SIMPLE, then CSCOPE).
        encoding: Text encoding used to decode lines.
        size: Total size of the database in bytes.
    """

    def __init__(
        self,
        stream: BinaryIO,
        layout: TrailerLayout = TrailerLayout.AUTO,
        encoding: str = DEFAULT_ENCODING,
        owns_stream: bool = False,
    ) -> None:
        """
        Wrap a binary stream and parse its header.

        Args:
            stream: A readable, seekable binary stream positioned at offset zero.
            layout: The trailer layout to read.
            encoding: Text encoding used to decode database lines.
            owns_stream: If True, close() also closes the stream.

        Raises:
            MalformedHeaderError: If the header line is missing or invalid.
            UnsupportedFormatError: If the database is compressed or uses an
                unknown option.
        """
        self._stream = stream
        self._owns_stream = owns_stream
        self._trailer: TrailerData | None = None
        self.layout = TrailerLayout(layout)
        self.encoding = encoding
        self.size = _stream_size(stream)
        self.header = read_header(stream, encoding)

    @property
    def stream(self) -> BinaryIO:
        return self._stream

    def __enter__(self) -> "CscopeDatabase":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_stream:
            self._stream.close()

    def body_span(self) -> tuple[int, int]:
        """
        Return the byte range of the symbol body.

        Returns:
            tuple[int, int]: (start, end) where start is the end of the header
                line and end is the trailer offset.
        """
        return (self.header.header_length, self.header.trailer_offset)

    def trailer(self) -> TrailerData:
        """
        Parse the trailer (once) and return its lists.

        Returns:
            TrailerData: The file list and directory lists.

        Raises:
            TruncatedBodyError: If the database ends before the trailer offset.
                An offset past the end of the input is reported this way rather
                than as a malformed trailer, since the body it bounds can't be
                complete.
            MalformedTrailerError: If the trailer doesn't match the selected layout.
        """
        if self._trailer is None:
            self._trailer = self._read_trailer()
        return self._trailer

    def _read_trailer(self) -> TrailerData:
        offset = self.header.trailer_offset
        if offset > self.size:
            raise TruncatedBodyError(
                message=(
                    f"The database is {self.size} bytes long but declares its "
                    f"trailer at byte {offset}"
                ),
                offset=self.size,
            )

        if self.layout == TrailerLayout.SIMPLE:
            return self._parse_trailer(TrailerLayout.SIMPLE)
        if self.layout == TrailerLayout.CSCOPE:
            return self._parse_trailer(TrailerLayout.CSCOPE)

        try:
            return self._parse_trailer(TrailerLayout.SIMPLE)
        except MalformedTrailerError as simple_error:
            try:
                return self._parse_trailer(TrailerLayout.CSCOPE)
            except MalformedTrailerError:
                raise simple_error from None

    def _parse_trailer(self, layout: TrailerLayout) -> TrailerData:
        cursor = _TrailerCursor(self._stream, self.header.trailer_offset, self.encoding)

        if layout == TrailerLayout.SIMPLE:
            files = cursor.read_list("file")
            include_dirs = cursor.read_list("include directory")
            cursor.expect_end()
            return TrailerData(files=files, include_dirs=include_dirs, layout=layout)

        viewpath_dirs = cursor.read_list("viewpath directory")
        source_dirs = cursor.read_list("source directory")
        include_dirs = cursor.read_list("include directory")
        file_count = cursor.read_count("file")
        # Size of the string space cscope allocates for the names; unused here.
        cursor.read_count("string space")
        files = cursor.read_lines(file_count, "file")
        cursor.expect_end()
        return TrailerData(
            files=files,
            include_dirs=include_dirs,
            source_dirs=source_dirs,
            viewpath_dirs=viewpath_dirs,
            layout=layout,
        )


class _TrailerCursor:
    """Line reader over the trailer that tracks offsets for error reporting."""

    def __init__(self, stream: BinaryIO, offset: int, encoding: str) -> None:
        self._stream = stream
        self._encoding = encoding
        self.offset = offset
        stream.seek(offset)

    def _next_line(self) -> str | None:
        raw = self._stream.readline()
        if not raw:
            return None
        self.offset += len(raw)
        return raw.decode(self._encoding, errors="replace").rstrip("\r\n")

    def read_count(self, what: str) -> int:
        line_offset = self.offset
        line = self._next_line()
        if line is None:
            raise MalformedTrailerError(
                message=f"The trailer ends before the {what} count",
                offset=line_offset,
            )
        count = _parse_decimal(line.strip())
        if count is None:
            raise MalformedTrailerError(
                message=f"Invalid {what} count in trailer: {line!r}",
                offset=line_offset,
            )
        return count

    def read_lines(self, count: int, what: str) -> tuple[str, ...]:
        lines: list[str] = []
        while len(lines) < count:
            line = self._next_line()
            if line is None:
                raise MalformedTrailerError(
                    message=(
                        f"The trailer declares {count} {what} entries "
                        f"but only {len(lines)} are present"
                    ),
                    offset=self.offset,
                )
            lines.append(line)
        return tuple(lines)

    def read_list(self, what: str) -> tuple[str, ...]:
        return self.read_lines(self.read_count(what), what)

    def expect_end(self) -> None:
        while True:
            line_offset = self.offset
            line = self._next_line()
            if line is None:
                return
            if line.strip():
                raise MalformedTrailerError(
                    message=f"Unexpected data after the end of the trailer: {line!r}",
                    offset=line_offset,
                )


def open_database(
    path: Path,
    layout: TrailerLayout = TrailerLayout.AUTO,
    encoding: str = DEFAULT_ENCODING,
    file_reader: FileReader | None = None,
) -> CscopeDatabase:
    """
    Open a cscope database file and parse its header.

    The returned database owns the file handle: use it as a context manager or
    call close(). If the header can't be parsed, the handle is closed before
    the error propagates.

    Args:
        path: Path to the `cscope.out` file.
        layout: The trailer layout to read.
        encoding: Text encoding used to decode lines.
        file_reader: Optional FileReader used to open the file. If None, uses
            FilesystemFileReader.

    Returns:
        CscopeDatabase: The opened database.

    Raises:
        InvalidFilePathError: If the path is not a file.
        FileReadError: If the file can't be opened.
        MalformedHeaderError: If the header line is missing or invalid.
        UnsupportedFormatError: If the database is compressed or uses an unknown option.
    """
    reader = file_reader if file_reader is not None else FilesystemFileReader()
    stream = reader.open_binary(path)
    try:
        return CscopeDatabase(stream, layout, encoding, owns_stream=True)
    except Exception:
        stream.close()
        raise


def read_header(stream: BinaryIO, encoding: str = DEFAULT_ENCODING) -> DatabaseHeader:
    """
    Read and parse the first line of a database stream.

    Args:
        stream: A readable, seekable binary stream.
        encoding: Text encoding used to decode the line.

    Returns:
        DatabaseHeader: The parsed header.

    Raises:
        MalformedHeaderError: If the stream is empty, the line has no newline,
            or parse_header_line() rejects it.
        UnsupportedFormatError: If parse_header_line() rejects the options.
    """
    stream.seek(0)
    raw = stream.readline()
    if not raw:
        raise MalformedHeaderError(
            message="The database is empty", offset=0, line_number=1
        )
    if not raw.endswith(b"\n"):
        raise MalformedHeaderError(
            message="The header line is truncated", offset=len(raw), line_number=1
        )
    return parse_header_line(raw.decode(encoding, errors="replace"), len(raw))


def parse_header_line(line: str, header_length: int) -> DatabaseHeader:
    """
    Parse a cscope header line.

    Option flags are read backwards from the trailer offset so that an index
    directory containing blanks is kept whole.

    Args:
        line: The decoded header line.
        header_length: Length of the header line in bytes, newline included.

    Returns:
        DatabaseHeader: The parsed header.

    Raises:
        MalformedHeaderError: If the version marker, version, directory or offset
            is missing or invalid, or if the offset points inside the header.
        UnsupportedFormatError: If the database is compressed (no `-c`) or an
            unknown option flag is present.
    """
    spans = [match.span() for match in re.finditer(r"\S+", line)]
    tokens = [line[start:stop] for start, stop in spans]

    if not tokens or tokens[0] != HEADER_MAGIC:
        raise MalformedHeaderError(
            message=f"Missing '{HEADER_MAGIC}' version marker", offset=0, line_number=1
        )
    if len(tokens) < 2:
        raise MalformedHeaderError(
            message="Missing format version", offset=0, line_number=1
        )

    version = _parse_decimal(tokens[1])
    if version is None:
        raise MalformedHeaderError(
            message=f"Invalid format version: {tokens[1]!r}", offset=0, line_number=1
        )
    if len(tokens) < 4:
        raise MalformedHeaderError(
            message="The header line is truncated", offset=0, line_number=1
        )

    trailer_offset = _parse_decimal(tokens[-1])
    if trailer_offset is None:
        raise MalformedHeaderError(
            message=f"Invalid trailer offset: {tokens[-1]!r}", offset=0, line_number=1
        )

    middle = tokens[2:-1]
    options: set[str] = set()
    inverted_index_terms: int | None = None
    end = len(middle)
    while end > 0:
        token = middle[end - 1]
        if _is_option(token):
            options.add(token[1:])
            end -= 1
        elif (
            end > 1
            and middle[end - 2] == f"-{INVERTED_INDEX_OPTION}"
            and _parse_decimal(token) is not None
        ):
            options.add(INVERTED_INDEX_OPTION)
            inverted_index_terms = _parse_decimal(token)
            end -= 2
        else:
            break
    if end == 0:
        raise MalformedHeaderError(
            message="Missing index directory", offset=0, line_number=1
        )
    # Sliced from the line so runs of blanks inside the path survive
    index_directory = line[spans[2][0] : spans[1 + end][1]]

    if INVERTED_INDEX_OPTION in options and inverted_index_terms is None:
        raise MalformedHeaderError(
            message=f"Option -{INVERTED_INDEX_OPTION} is not followed by a term count",
            offset=0,
            line_number=1,
        )
    if trailer_offset < header_length:
        raise MalformedHeaderError(
            message=(
                f"Trailer offset {trailer_offset} points inside the "
                f"{header_length}-byte header"
            ),
            offset=0,
            line_number=1,
        )

    unknown = options - KNOWN_HEADER_OPTIONS
    if unknown:
        flags = ", ".join(f"-{flag}" for flag in sorted(unknown))
        raise UnsupportedFormatError(
            message=f"Unsupported header option(s): {flags}", offset=0, line_number=1
        )
    if UNCOMPRESSED_OPTION not in options:
        raise UnsupportedFormatError(
            message=(
                "The database is compressed; regenerate it with "
                f"`cscope -b -{UNCOMPRESSED_OPTION}`"
            ),
            offset=0,
            line_number=1,
        )

    return DatabaseHeader(
        cscope_version=version,
        index_directory=index_directory,
        options=frozenset(options),
        trailer_offset=trailer_offset,
        header_length=header_length,
        inverted_index_terms=inverted_index_terms,
    )


def _is_option(token: str) -> bool:
    return len(token) == 2 and token[0] == "-" and token[1].isalpha()


def _parse_decimal(token: str) -> int | None:
    """Parse a non-negative decimal integer, returning None if it isn't one."""
    if not token or not token.isascii() or not token.isdigit():
        return None
    return int(token)


def _stream_size(stream: BinaryIO) -> int:
    position = stream.tell()
    size = stream.seek(0, os.SEEK_END)
    stream.seek(position)
    return size
