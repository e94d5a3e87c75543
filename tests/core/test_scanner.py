"""
Comprehensive tests for the scanner module using pytest.

Tests cover:
- scan_line: file marks, line numbers, marked and unmarked records
- scan / scan_stream: whole-body scans, spans, truncation and lazy iteration
- ScanState isolation between scans of the same database
"""

import io

import pytest

from core.exceptions import ErrorKind, MalformedBodyError, TruncatedBodyError
from core.models import SymbolEntry, SymbolMark
from core.scanner import ScanState, scan, scan_line, scan_stream


# ============================================================================
# Tests for scan_line
# ============================================================================


@pytest.mark.unit
def test_scan_line_file_mark_sets_file():
    """A file mark sets the current file and resets the line."""
    state = ScanState(current_file="old.c", current_line=9, at_block_start=False)
    seen = []

    assert scan_line(state, "\t@src/new.c", 0, on_file=seen.append) is None
    assert state.current_file == "src/new.c"
    assert state.current_line is None
    assert state.at_block_start
    assert seen == ["src/new.c"]


@pytest.mark.unit
def test_scan_line_end_sentinel_clears_file():
    """The `<tab>@` sentinel has an empty path and reports no file."""
    state = ScanState(current_file="a.c", current_line=1)
    seen = []

    assert scan_line(state, "\t@", 0, on_file=seen.append) is None
    assert state.current_file is None
    assert seen == []


@pytest.mark.unit
def test_scan_line_line_number_sets_line():
    """At a block start, a leading number sets the current line."""
    state = ScanState(current_file="a.c")

    entry = scan_line(state, "42 int ", 10)

    assert state.current_line == 42
    assert entry == SymbolEntry(
        mark=SymbolMark.UNMARKED, text="int ", file="a.c", line_number=42, offset=10
    )


@pytest.mark.unit
def test_scan_line_line_number_without_text():
    """A bare line number yields nothing."""
    state = ScanState(current_file="a.c")
    assert scan_line(state, "7 ", 0) is None
    assert scan_line(ScanState(current_file="a.c"), "7", 0) is None


@pytest.mark.unit
@pytest.mark.parametrize("line", ["7", "7 ", "7   "])
def test_scan_line_bare_number_inside_block_sets_line(line):
    """A record holding only a number sets the line even inside a block."""
    state = ScanState(current_file="a.c", current_line=3, at_block_start=False)

    assert scan_line(state, line, 0) is None
    assert state.current_line == 7
    assert state.at_block_start is False


@pytest.mark.unit
def test_scan_line_number_with_text_outside_block_start_is_text():
    """`<number> <text>` inside a block is source text, not a new line number."""
    state = ScanState(current_file="a.c", current_line=3, at_block_start=False)

    entry = scan_line(state, "100 + offset", 0)

    assert state.current_line == 3
    assert entry.mark is SymbolMark.UNMARKED
    assert entry.text == "100 + offset"
    assert entry.line_number == 3


@pytest.mark.unit
def test_scan_line_digits_followed_by_letters_are_not_a_line_number():
    """`12abc` is not a line-number record."""
    state = ScanState(current_file="a.c", current_line=3)
    entry = scan_line(state, "12abc", 0)
    assert state.current_line == 3
    assert entry.text == "12abc"


@pytest.mark.unit
def test_scan_line_empty_line_starts_block():
    """An empty record ends the block."""
    state = ScanState(current_file="a.c", current_line=3, at_block_start=False)
    assert scan_line(state, "", 0) is None
    assert state.at_block_start


@pytest.mark.unit
@pytest.mark.parametrize(
    "line, mark, text",
    [
        ("\t$main", SymbolMark.FUNCTION_DEFINITION, "main"),
        ("\t`printf", SymbolMark.FUNCTION_CALL, "printf"),
        ("\t}", SymbolMark.FUNCTION_END, ""),
        ("\t#MAX", SymbolMark.MACRO_DEFINITION, "MAX"),
        ("\t)", SymbolMark.MACRO_END, ""),
        ("\t~<stdio.h", SymbolMark.INCLUDE, "<stdio.h"),
        ("\t=count", SymbolMark.DIRECT_ASSIGNMENT, "count"),
        ("\t;", SymbolMark.DEFINITION_END, ""),
        ("\tgtotal", SymbolMark.GLOBAL_DEFINITION, "total"),
        ("\tpvalue", SymbolMark.PARAMETER_DEFINITION, "value"),
        ("\tsnode", SymbolMark.STRUCT_DEFINITION, "node"),
        ("\ttsize_t", SymbolMark.TYPEDEF_DEFINITION, "size_t"),
    ],
)
def test_scan_line_marks(line, mark, text):
    """Each known mark character is classified."""
    state = ScanState(current_file="a.c", current_line=1)

    entry = scan_line(state, line, 0)

    assert entry.mark is mark
    assert entry.text == text
    assert entry.raw_mark == line[1]
    assert not state.at_block_start


@pytest.mark.unit
@pytest.mark.parametrize("char", ["Z", "?", "!"])
def test_scan_line_unknown_mark_is_other(char):
    """Unknown mark characters are kept as OTHER with their raw character."""
    state = ScanState(current_file="a.c", current_line=1)

    entry = scan_line(state, f"\t{char}thing", 0)

    assert entry.mark is SymbolMark.OTHER
    assert entry.raw_mark == char
    assert entry.text == "thing"


@pytest.mark.unit
def test_scan_line_bare_tab_is_skipped():
    """A tab with no mark character yields nothing and keeps the block open."""
    state = ScanState(current_file="a.c", current_line=1, at_block_start=True)
    assert scan_line(state, "\t", 0) is None
    assert state.at_block_start


@pytest.mark.unit
def test_scan_line_whitespace_only_is_skipped():
    state = ScanState(current_file="a.c", current_line=1, at_block_start=False)
    assert scan_line(state, "   ", 0) is None


@pytest.mark.unit
def test_scan_line_symbol_before_file_mark():
    """A symbol record with no file context is malformed."""
    with pytest.raises(MalformedBodyError, match="before any file mark") as exc_info:
        scan_line(ScanState(), "\t$main", 17)
    assert exc_info.value.kind == ErrorKind.MALFORMED_BODY
    assert exc_info.value.offset == 17


@pytest.mark.unit
def test_scan_line_symbol_before_line_number():
    """A symbol record right after a file mark is malformed."""
    state = ScanState(current_file="a.c")
    with pytest.raises(MalformedBodyError, match="before any line number"):
        scan_line(state, "\t$main", 0)


# ============================================================================
# Tests for scan
# ============================================================================


@pytest.mark.unit
def test_scan_sample_body(sample_database):
    """The sample body yields every marked and unmarked record in order."""
    entries = list(scan(sample_database))

    assert len(entries) == 17
    assert [(e.mark, e.text) for e in entries[:6]] == [
        (SymbolMark.UNMARKED, "#include "),
        (SymbolMark.INCLUDE, "<stdio.h"),
        (SymbolMark.UNMARKED, ">"),
        (SymbolMark.UNMARKED, "int "),
        (SymbolMark.FUNCTION_DEFINITION, "main"),
        (SymbolMark.UNMARKED, "(void)"),
    ]
    assert {e.file for e in entries} == {"src/main.c", "src/util.c"}

    definitions = [e for e in entries if e.mark is SymbolMark.FUNCTION_DEFINITION]
    assert [(e.text, e.file, e.line_number) for e in definitions] == [
        ("main", "src/main.c", 3),
        ("helper", "src/util.c", 2),
    ]


@pytest.mark.unit
def test_scan_entries_inherit_file_and_line(sample_database):
    """Every entry carries the file and line of the block it belongs to."""
    entries = list(scan(sample_database))

    call = next(e for e in entries if e.mark is SymbolMark.FUNCTION_CALL)
    assert (call.text, call.file, call.line_number) == ("helper", "src/main.c", 5)

    param = next(e for e in entries if e.mark is SymbolMark.PARAMETER_DEFINITION)
    assert (param.text, param.file, param.line_number) == ("value", "src/util.c", 2)


@pytest.mark.unit
def test_scan_offsets_point_at_records(sample_database):
    """Entry offsets are the byte offsets of their records."""
    stream = sample_database.stream
    for entry in scan(sample_database):
        stream.seek(entry.offset)
        raw = stream.readline().decode()
        assert entry.text in raw


@pytest.mark.unit
def test_scan_is_repeatable(sample_database):
    """Scanning twice yields the same entries."""
    assert list(scan(sample_database)) == list(scan(sample_database))


@pytest.mark.unit
def test_scan_interleaved_scans_do_not_interfere(sample_database):
    """Two scans of one database can be advanced alternately."""
    expected = list(scan(sample_database))

    first = scan(sample_database)
    second = scan(sample_database)
    from_first = []
    from_second = []
    for a, b in zip(first, second):
        from_first.append(a)
        from_second.append(b)

    assert from_first == expected
    assert from_second == expected


@pytest.mark.unit
def test_scan_is_lazy(sample_database):
    """Stopping early reads only part of the body."""
    iterator = scan(sample_database)
    first = next(iterator)
    assert first.text == "#include "

    start, end = sample_database.body_span()
    assert sample_database.stream.tell() < end


@pytest.mark.unit
def test_scan_empty_body(database_factory):
    """An empty body yields nothing."""
    db = database_factory(body="")
    assert list(scan(db)) == []


@pytest.mark.unit
def test_scan_on_file_reports_every_file(sample_database):
    """on_file is called once per file mark, in order."""
    seen = []
    list(scan(sample_database, on_file=seen.append))
    assert seen == ["src/main.c", "src/util.c"]


@pytest.mark.unit
def test_scan_ignores_trailer(database_factory):
    """Trailer lines after the offset are never scanned as symbols."""
    db = database_factory(
        body="\t@a.c\n\n1 \n\t$f\n\n\t@\n",
        files=("a.c",),
        include_dirs=("include",),
    )
    entries = list(scan(db))
    assert [(e.mark, e.text) for e in entries] == [(SymbolMark.FUNCTION_DEFINITION, "f")]


@pytest.mark.unit
def test_scan_compact_layout_without_blank_lines(database_factory):
    """File mark, line numbers and symbols may follow each other directly."""
    db = database_factory(body="\t@f\n3\n\t$foo\n7\n\t$bar\n", files=("f",))

    entries = list(scan(db))

    assert [(e.text, e.file, e.line_number) for e in entries] == [
        ("foo", "f", 3),
        ("bar", "f", 7),
    ]
    assert all(e.mark is SymbolMark.FUNCTION_DEFINITION for e in entries)


@pytest.mark.unit
def test_scan_span_stops_mid_block(sample_database, sample_body):
    """A span ending inside a block yields only the records before its end."""
    start, _ = sample_database.body_span()
    cut = sample_body.index("(void)")

    entries = list(scan(sample_database, span=(start, start + cut)))

    assert entries[-1].mark is SymbolMark.FUNCTION_DEFINITION
    assert entries[-1].text == "main"


@pytest.mark.unit
def test_scan_span_cuts_record_crossing_end(sample_database, sample_body):
    """A record that crosses the end of the span is cut at the end."""
    start, _ = sample_database.body_span()
    cut = sample_body.index("(void)") + 3

    entries = list(scan(sample_database, span=(start, start + cut)))

    assert entries[-1].text == "(vo"


@pytest.mark.unit
def test_scan_truncated_body():
    """A stream that ends before the span end raises TruncatedBodyError."""
    body = b"\t@a.c\n\n1 \n\t$f\n"
    stream = io.BytesIO(body)

    with pytest.raises(TruncatedBodyError) as exc_info:
        list(scan_stream(stream, 0, len(body) + 50))
    assert exc_info.value.kind == ErrorKind.TRUNCATED_BODY
    assert exc_info.value.offset == len(body)


@pytest.mark.unit
def test_scan_truncated_body_yields_entries_before_error():
    """Entries before the truncation point are yielded first."""
    body = b"\t@a.c\n\n1 \n\t$f\n"
    iterator = scan_stream(io.BytesIO(body), 0, len(body) + 50)

    assert next(iterator).text == "f"
    with pytest.raises(TruncatedBodyError):
        next(iterator)


@pytest.mark.unit
def test_scan_stream_decodes_invalid_bytes():
    """Invalid bytes are replaced rather than failing the scan."""
    body = b"\t@a.c\n\n1 \n\t$f\xff\n"
    entries = list(scan_stream(io.BytesIO(body), 0, len(body)))
    assert entries[0].text == "f�"
