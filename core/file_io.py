"""
Filesystem access for cscopetree.

Two kinds of files are touched: cscope databases, which are only ever opened
for binary reading because the parser works with byte offsets, and the small
JSON settings file, which is read and written as text. Both go through the
FileReader / FileWriter protocols so that commands and tests can swap the
filesystem for in-memory data.
"""

import io
import os
from pathlib import Path
from typing import BinaryIO, Protocol

from constants import DEFAULT_ENCODING
from core.exceptions import (
    FileReadError,
    FileWriteError,
    InvalidFilePathError,
)


class FileReader(Protocol):
    """
    Read access to databases and settings files.
    """

    def read_text(self, file_path: Path) -> str:
        """
        Return the text of a file, or an empty string if it doesn't exist.
        """

    def open_binary(self, file_path: Path) -> BinaryIO:
        """
        Open a file for binary, seekable reading at offset zero.

        The caller owns the returned stream and closes it.
        """


class FileWriter(Protocol):
    """
    Write access to a single text file.
    """

    def write_text(self, data: str) -> None:
        """
        Replace the content of the file with `data`.
        """


class FilesystemFileReader:
    """
    FileReader backed by the local filesystem.

    Attributes:
        encoding: Encoding used by read_text(). Undecodable bytes are dropped.
    """

    def __init__(self, encoding: str = DEFAULT_ENCODING):
        self.encoding = encoding

    def read_text(self, file_path: Path) -> str:
        """
        Read a text file.

        Args:
            file_path: The file to read.

        Returns:
            str: The file content, or "" if there is no regular file at the path.

        Raises:
            FileReadError: If the file exists but can't be read.
        """
        if not file_path.is_file():
            return ""

        try:
            return file_path.read_text(encoding=self.encoding, errors="ignore")
        except OSError as e:
            raise FileReadError(
                message=f"Failed to read file: {file_path}",
                file_path=str(file_path),
                original_exception=e,
            ) from e

    def open_binary(self, file_path: Path) -> BinaryIO:
        """
        Open a database file for binary reading.

        Args:
            file_path: The database to open.

        Returns:
            BinaryIO: A buffered, seekable stream positioned at offset zero.

        Raises:
            InvalidFilePathError: If the path does not point to a regular file.
            FileReadError: If the file cannot be opened.
        """
        if not file_path.is_file():
            raise InvalidFilePathError(
                message=f"Not a file: {file_path}",
                file_path=str(file_path),
            )

        try:
            return file_path.open("rb")
        except OSError as e:
            raise FileReadError(
                message=f"Failed to open file: {file_path}",
                file_path=str(file_path),
                original_exception=e,
            ) from e


class FilesystemFileWriter:
    """
    FileWriter that replaces the content of one file on disk.

    Use `from_path()` to get a writer whose target directory has been checked
    (or created).
    """

    def __init__(self, file_path: Path | None = None, encoding: str = DEFAULT_ENCODING):
        self.file_path = file_path
        self.encoding = encoding

    @classmethod
    def from_path(
        cls, file_path: Path, create_parents: bool = False
    ) -> "FilesystemFileWriter":
        """
        Create a writer for `file_path` after checking its directory.

        Args:
            file_path: The file to write.
            create_parents: If True, missing parent directories are created.

        Returns:
            FilesystemFileWriter: A writer for the given path.

        Raises:
            InvalidFilePathError: If the parent directory is missing (and
                create_parents is False) or is not writable.
            FileWriteError: If the parent directory can't be created.
        """
        parent = file_path.parent
        if create_parents and not parent.exists():
            try:
                parent.mkdir(parents=True)
            except OSError as e:
                raise FileWriteError(
                    message=f"Failed to create directory: {parent}",
                    file_path=str(file_path),
                    original_exception=e,
                ) from e

        if not parent.is_dir():
            raise InvalidFilePathError(
                message=f"Parent directory does not exist: {parent}",
                file_path=str(file_path),
            )
        if not os.access(parent, os.W_OK):
            raise InvalidFilePathError(
                message=f"Parent directory is not writable: {parent}",
                file_path=str(file_path),
            )
        return cls(file_path)

    def write_text(self, data: str) -> None:
        """
        Replace the file's content.

        Raises:
            InvalidFilePathError: If no file path is set.
            FileWriteError: If writing fails.
        """
        if self.file_path is None:
            raise InvalidFilePathError("No file path set.")

        try:
            with open(self.file_path, "w", encoding=self.encoding) as f:
                f.write(data)
        except OSError as e:
            raise FileWriteError(
                message=f"Failed to write to file: {self.file_path}",
                file_path=str(self.file_path),
                original_exception=e,
            ) from e


class MemoryFileReader:
    """
    FileReader serving in-memory content, for tests.

    Every stream returned by open_binary() is kept in `opened`, so tests can
    check that the code under test closed it.
    """

    def __init__(self, files: dict[Path, bytes] | None = None):
        self.files: dict[Path, bytes] = dict(files or {})
        self.read_text_calls: list[Path] = []
        self.opened: list[io.BytesIO] = []

    def read_text(self, file_path: Path) -> str:
        self.read_text_calls.append(file_path)
        data = self.files.get(file_path)
        return data.decode(DEFAULT_ENCODING, errors="ignore") if data is not None else ""

    def open_binary(self, file_path: Path) -> BinaryIO:
        if file_path not in self.files:
            raise InvalidFilePathError(
                message=f"Not a file: {file_path}",
                file_path=str(file_path),
            )
        stream = io.BytesIO(self.files[file_path])
        self.opened.append(stream)
        return stream


class MemoryFileWriter:
    """FileWriter that keeps every write in memory, for tests."""

    def __init__(self):
        self.writes: list[str] = []

    @property
    def data(self) -> str:
        return self.writes[-1] if self.writes else ""

    def write_text(self, data: str) -> None:
        self.writes.append(data)
