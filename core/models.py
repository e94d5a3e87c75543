"""
Core data models for reading cscope databases.

This module defines the structures produced while parsing a cscope database:
the header, the symbol marks used in the body, the symbol entries yielded by
the scanner, the trailer lists and the function records handed to the CLI.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from models import TrailerLayout


@dataclass(frozen=True)
class DatabaseHeader:
    """
    The parsed first line of a cscope database.

    Attributes:
        cscope_version: The database format version written by cscope (e.g. 15).
        index_directory: The directory cscope ran in; relative file names in the
            database are relative to it.
        options: Single-character option flags found in the header (e.g. "c", "q", "T").
        trailer_offset: Byte offset of the trailer, i.e. the end of the symbol body.
        header_length: Length of the header line in bytes, newline included.
        inverted_index_terms: The term count written after `-q`, if present.
    """

    cscope_version: int
    index_directory: str
    options: frozenset[str]
    trailer_offset: int
    header_length: int
    inverted_index_terms: int | None = None

    @property
    def is_compressed(self) -> bool:
        # cscope writes -c only when compression was turned off
        return "c" not in self.options

    @property
    def has_inverted_index(self) -> bool:
        return "q" in self.options

    @property
    def truncated_symbols(self) -> bool:
        return "T" in self.options


class SymbolMark(Enum):
    """
    Kinds of records found in the body of a cscope database.

    In the database a mark is a single character introduced by a tab at the
    start of a line. Records without a tab are plain symbols or source text
    (UNMARKED). Characters outside the known set map to OTHER so that newer
    database variants still scan.
    """

    FILE = "@"
    FUNCTION_DEFINITION = "$"
    FUNCTION_CALL = "`"
    FUNCTION_END = "}"
    MACRO_DEFINITION = "#"
    MACRO_END = ")"
    INCLUDE = "~"
    DIRECT_ASSIGNMENT = "="
    DEFINITION_END = ";"
    CLASS_DEFINITION = "c"
    ENUM_DEFINITION = "e"
    GLOBAL_DEFINITION = "g"
    LOCAL_DEFINITION = "l"
    MEMBER_DEFINITION = "m"
    PARAMETER_DEFINITION = "p"
    STRUCT_DEFINITION = "s"
    TYPEDEF_DEFINITION = "t"
    UNION_DEFINITION = "u"
    UNMARKED = ""
    OTHER = "?"

    @classmethod
    def from_char(cls, char: str) -> "SymbolMark":
        """
        Classify a mark character.

        Args:
            char: The character that followed the tab.

        Returns:
            SymbolMark: The matching mark, or OTHER if the character is not a known mark.
        """
        if not char or char == cls.OTHER.value:
            return cls.OTHER
        try:
            return cls(char)
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class SymbolEntry:
    """
    One classified record from the database body.

    Attributes:
        mark: The kind of record.
        text: The rest of the line after the mark: an identifier for symbol
            records, literal source text for unmarked records.
        file: The source file from the most recent file mark.
        line_number: The source line from the most recent line-number record.
        raw_mark: The literal mark character ("" for unmarked records).
        offset: Byte offset of the record in the database.
    """

    mark: SymbolMark
    text: str
    file: str
    line_number: int
    raw_mark: str = ""
    offset: int = 0


@dataclass(frozen=True)
class FileListEntry:
    path: str
    include_dirs: tuple[str, ...] = ()


@dataclass(frozen=True)
class TrailerData:
    """
    The lists stored in the trailer of a cscope database.

    Attributes:
        files: Source file paths, in the order cscope wrote them.
        include_dirs: Include-directory search paths.
        source_dirs: Source directories (cscope layout only).
        viewpath_dirs: Viewpath nodes (cscope layout only).
        layout: The trailer layout the lists were read with.
    """

    files: tuple[str, ...] = ()
    include_dirs: tuple[str, ...] = ()
    source_dirs: tuple[str, ...] = ()
    viewpath_dirs: tuple[str, ...] = ()
    layout: TrailerLayout = TrailerLayout.SIMPLE

    @property
    def file_entries(self) -> Iterator[FileListEntry]:
        for path in self.files:
            yield FileListEntry(path, self.include_dirs)


@dataclass(frozen=True)
class FunctionRecord:
    """
    A function definition found in the database.

    Attributes:
        name: The function name.
        file: The file the function is defined in.
        line_number: The line of the definition.
        source_text: The definition's source line, rebuilt from the records of
            its block (e.g. "int foo(void)"). Display only: two
            records for the same name, file and line compare equal.
    """

    name: str
    file: str
    line_number: int
    source_text: str = field(default="", compare=False)


@dataclass(frozen=True)
class FileCrossCheck:
    """
    Comparison between files seen in the body and the trailer's file list.

    The trailer is authoritative: trailer files the body never names end up in
    not_in_body, while a body file missing from the trailer points to a
    damaged database.
    """

    body_files: tuple[str, ...]
    trailer_files: tuple[str, ...]
    missing_from_trailer: tuple[str, ...] = ()
    not_in_body: tuple[str, ...] = ()

    @property
    def is_consistent(self) -> bool:
        return not self.missing_from_trailer
