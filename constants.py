"""
Application-wide constants for reading cscope databases.

This module defines the fixed tokens of the cscope cross-reference format and
the defaults used by the CLI when neither a command-line option nor the
settings file provides a value.
"""

from typing import Final

from models import Settings, TrailerLayout


# First token of every cscope database header line.
HEADER_MAGIC: Final[str] = "cscope"

# Option flags cscope may write into the header.
#   c: uncompressed ("ASCII only") database
#   q: inverted index built, followed by the number of terms
#   T: symbols truncated to 8 characters
KNOWN_HEADER_OPTIONS: Final[frozenset[str]] = frozenset({"c", "q", "T"})
UNCOMPRESSED_OPTION: Final[str] = "c"
INVERTED_INDEX_OPTION: Final[str] = "q"

# Every mark in the body is introduced by this control character.
MARK_PREFIX: Final[str] = "\t"

DEFAULT_DATABASE_NAME: Final[str] = "cscope.out"
DEFAULT_ENCODING: Final[str] = "utf-8"

DEFAULT_SETTINGS: Final[Settings] = {
    "database": DEFAULT_DATABASE_NAME,
    "layout": TrailerLayout.AUTO.value,
    "encoding": DEFAULT_ENCODING,
}

# Number of scanned records between two progress bar updates.
PROGRESS_UPDATE_INTERVAL: Final[int] = 2048
