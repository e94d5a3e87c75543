"""
Shared fixtures for building cscope databases in tests.

Databases are assembled from a body and a trailer; the header's trailer offset
is computed so that it always points right after the body unless a test asks
for a specific (broken) offset.
"""

import io
from pathlib import Path

import pytest

from core.database import CscopeDatabase
from models import TrailerLayout


# A small uncompressed database body in the layout cscope writes:
# main.c defines main() and calls helper(); util.c defines helper(int value).
SAMPLE_BODY = (
    "\t@src/main.c\n"
    "\n"
    "1 #include \n"
    "\t~<stdio.h\n"
    ">\n"
    "\n"
    "3 int \n"
    "\t$main\n"
    "(void)\n"
    "\n"
    "5 \n"
    "\t`helper\n"
    "(42);\n"
    "\n"
    "6 \n"
    "\t}\n"
    "}\n"
    "\n"
    "\t@src/util.c\n"
    "\n"
    "2 static int \n"
    "\t$helper\n"
    "(int \n"
    "\tpvalue\n"
    ")\n"
    "\n"
    "7 \n"
    "\t}\n"
    "}\n"
    "\n"
    "\t@\n"
)
SAMPLE_FILES = ("src/main.c", "src/util.c", "include/util.h")
SAMPLE_INCLUDE_DIRS = ("include",)


def simple_trailer(files=(), include_dirs=()) -> str:
    lines = [str(len(files)), *files, str(len(include_dirs)), *include_dirs]
    return "\n".join(lines) + "\n"


def cscope_trailer(files=(), include_dirs=(), source_dirs=(), viewpath=(".",)) -> str:
    lines = [
        str(len(viewpath)),
        *viewpath,
        str(len(source_dirs)),
        *source_dirs,
        str(len(include_dirs)),
        *include_dirs,
        str(len(files)),
        str(sum(len(f) + 1 for f in files)),
        *files,
    ]
    return "\n".join(lines) + "\n"


def build_database_bytes(
    body: str = "",
    files=(),
    include_dirs=(),
    options: str = "-c",
    version: str = "15",
    directory: str = "/proj",
    trailer: str | None = None,
    offset: int | str | None = None,
    offset_width: int = 10,
) -> bytes:
    """
    Assemble a database: header, body and trailer.

    Args:
        body: Body text, placed right after the header line.
        files: Trailer file list (ignored when `trailer` is given).
        include_dirs: Trailer include directories (ignored when `trailer` is given).
        options: Option flags written between the directory and the offset.
        version: Version token.
        directory: Index directory token.
        trailer: Raw trailer text. If None, a simple trailer is built.
        offset: Trailer offset to write instead of the computed one. Strings
            are written verbatim.
        offset_width: Zero-padded width of the computed offset.
    """
    body_bytes = body.encode("utf-8")
    prefix = f"cscope {version} {directory} {options} "
    header_length = len(prefix.encode("utf-8")) + offset_width + 1

    if offset is None:
        offset_token = f"{header_length + len(body_bytes):0{offset_width}d}"
    elif isinstance(offset, int):
        offset_token = f"{offset:0{offset_width}d}"
    else:
        offset_token = offset

    if trailer is None:
        trailer = simple_trailer(files, include_dirs)

    header = f"{prefix}{offset_token}\n".encode("utf-8")
    return header + body_bytes + trailer.encode("utf-8")


@pytest.fixture
def database_bytes():
    """Factory building database bytes (see build_database_bytes)."""
    return build_database_bytes


@pytest.fixture
def database_factory():
    """Factory opening an in-memory database from build_database_bytes arguments."""

    def _factory(layout: TrailerLayout = TrailerLayout.AUTO, **kwargs) -> CscopeDatabase:
        return CscopeDatabase(io.BytesIO(build_database_bytes(**kwargs)), layout=layout)

    return _factory


@pytest.fixture
def database_file(tmp_path):
    """Factory writing a database to disk and returning its path."""

    def _factory(name: str = "cscope.out", data: bytes | None = None, **kwargs) -> Path:
        path = tmp_path / name
        path.write_bytes(data if data is not None else build_database_bytes(**kwargs))
        return path

    return _factory


@pytest.fixture
def sample_database(database_factory):
    """The SAMPLE_BODY database with a simple trailer."""
    return database_factory(
        body=SAMPLE_BODY, files=SAMPLE_FILES, include_dirs=SAMPLE_INCLUDE_DIRS
    )


@pytest.fixture
def sample_files():
    return SAMPLE_FILES


@pytest.fixture
def sample_body():
    return SAMPLE_BODY


@pytest.fixture
def make_simple_trailer():
    return simple_trailer


@pytest.fixture
def make_cscope_trailer():
    return cscope_trailer
