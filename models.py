"""
Type definitions and data models used across the cscopetree CLI application.

This module contains shared type definitions including enums and TypedDict
structures that are used throughout the codebase for type safety and consistency.
"""

from enum import StrEnum
from typing import TypedDict

class TrailerLayout(StrEnum):
    """
    Enumeration of the trailer layouts the database reader understands.

    SIMPLE is a file count and file list followed by an include-directory count
    and list. CSCOPE is what the `cscope` tool itself writes: viewpath nodes,
    source directories, include directories, then the file count, the string
    space size and the file list. AUTO tries SIMPLE first and falls back to CSCOPE.
    """

    AUTO = "auto"
    SIMPLE = "simple"
    CSCOPE = "cscope"


class Settings(TypedDict, total=False):
    """
    Type definition for the user settings file.

    Attributes:
        database: Default path of the cscope database to read.
        layout: Default trailer layout (one of the TrailerLayout values).
        encoding: Text encoding used to decode database lines.
    """

    database: str
    layout: str
    encoding: str
