"""
Custom exception classes for the cscopetree CLI.

This module defines the errors raised while reading a cscope database and
while accessing the filesystem. Database errors carry the kind of failure and,
where known, the byte offset or line number of the offending data so that the
CLI can report exactly where the database stopped making sense.
"""

import os
from enum import StrEnum
from typing import Optional


class ErrorKind(StrEnum):
    """
    Tags identifying which part of the database could not be read.

    Attributes:
        UNSUPPORTED_FORMAT: The header requests a variant this tool can't read
            (compressed database or an unknown option flag).
        MALFORMED_HEADER: The header line is missing, truncated or invalid.
        MALFORMED_TRAILER: The trailer counts don't match its contents, or extra
            data follows the last list.
        TRUNCATED_BODY: The input ends before the declared trailer offset.
        MALFORMED_BODY: A symbol record appears before any file or line context.
    """

    UNSUPPORTED_FORMAT = "unsupported_format"
    MALFORMED_HEADER = "malformed_header"
    MALFORMED_TRAILER = "malformed_trailer"
    TRUNCATED_BODY = "truncated_body"
    MALFORMED_BODY = "malformed_body"


class CscopeDatabaseError(Exception):
    """
    Base exception for every failure to read a cscope database.

    Attributes:
        kind: The ErrorKind tag for this failure.
        message: A human-readable error message describing what went wrong.
        offset: Byte offset in the database where the problem was detected, if known.
        line_number: Database line number (1-based) of the offending line, if known.
        original_exception: The underlying exception that caused this error, if any.
        diagnostic_info: A dictionary with the kind, location and the original
            exception's type and details.
    """

    kind: ErrorKind = ErrorKind.MALFORMED_BODY
    default_message = "The cscope database could not be read"

    def __init__(
        self,
        message: Optional[str] = None,
        offset: Optional[int] = None,
        line_number: Optional[int] = None,
        original_exception: Optional[Exception] = None,
    ):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.offset = offset
        self.line_number = line_number
        self.original_exception = original_exception
        self.diagnostic_info = {
            "kind": str(self.kind),
            "offset": offset,
            "line_number": line_number,
            "type": (
                type(original_exception).__name__ if original_exception else "Unknown"
            ),
            "details": str(original_exception) if original_exception else "No details",
        }


class UnsupportedFormatError(CscopeDatabaseError):
    """
    Raised when the header declares a database variant this tool can't read.

    Only uncompressed databases (generated with `cscope -c`) are understood.
    Without decompression the body is unreadable, so the whole operation aborts.
    """

    kind = ErrorKind.UNSUPPORTED_FORMAT
    default_message = "Unsupported cscope database format"


class MalformedHeaderError(CscopeDatabaseError):
    """Raised when the header's version, directory or offset fields are invalid."""

    kind = ErrorKind.MALFORMED_HEADER
    default_message = "Malformed cscope database header"


class MalformedTrailerError(CscopeDatabaseError):
    """
    Raised when the trailer can't be parsed.

    This covers counts that aren't integers, counts that don't match the number
    of lines present before end of input, and non-blank data after the last list.
    """

    kind = ErrorKind.MALFORMED_TRAILER
    default_message = "Malformed cscope database trailer"


class TruncatedBodyError(CscopeDatabaseError):
    """Raised when the input ends before the trailer offset declared in the header."""

    kind = ErrorKind.TRUNCATED_BODY
    default_message = "The cscope database ends before its trailer"


class MalformedBodyError(CscopeDatabaseError):
    """Raised when a symbol record has no current file or line number to attach to."""

    kind = ErrorKind.MALFORMED_BODY
    default_message = "Malformed cscope database body"


class FileIOError(Exception):
    """
    Base exception for filesystem errors.

    Attributes:
        message: A human-readable error message describing what went wrong.
        file_path: The path involved in the failed operation, if any.
        original_exception: The underlying exception that caused this error, if any.
        diagnostic_info: A dictionary containing the exception type, details and OS name.
    """

    def __init__(
        self,
        message: Optional[str] = None,
        file_path: Optional[str] = None,
        original_exception: Optional[Exception] = None,
    ):
        self.message = message or "A file operation failed"
        super().__init__(self.message)
        self.file_path = file_path
        self.original_exception = original_exception
        self.diagnostic_info = {
            "type": (
                type(original_exception).__name__ if original_exception else "Unknown"
            ),
            "details": str(original_exception) if original_exception else "No details",
            "os_name": os.name,
        }


class InvalidFilePathError(FileIOError):
    """Raised when a path can't be used for the requested operation."""


class FileReadError(FileIOError):
    """Raised when a file exists but can't be opened or read."""


class FileWriteError(FileIOError):
    """Raised when writing to a file fails."""
