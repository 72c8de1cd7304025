import pytest
from pathlib import Path
from memsim.runtime.levels import AccessType
from memsim.trace.loader import (
    Access, TraceFormatError, load_trace, parse_address, parse_trace_lines, write_trace, MAX_ADDRESS,
)


def test_parse_supported_line_forms():
    lines = [
        "# header comment",
        "L 0x1000",
        "S 4096   # trailing comment",
        "",
        "R:0x10",
        "W: 0x20",
        "load 0xffffffffffffffff",
    ]
    assert parse_trace_lines(lines) == [
        Access(0x1000, AccessType.LOAD),
        Access(4096, AccessType.STORE),
        Access(0x10, AccessType.LOAD),
        Access(0x20, AccessType.STORE),
        Access(MAX_ADDRESS, AccessType.LOAD),
    ]


@pytest.mark.parametrize("line", ["X 0x10", "L", "L zz", "L 0x1_0000_0000_0000_0000", "L -4"])
def test_bad_lines_raise_with_location(line):
    with pytest.raises(TraceFormatError, match="t.trace:2"):
        parse_trace_lines(["L 0", line], source="t.trace")


def test_parse_address():
    assert parse_address("0x1F") == 31
    assert parse_address("31") == 31
    with pytest.raises(ValueError):
        parse_address(str(MAX_ADDRESS + 1))


def test_write_then_load(tmp_path: Path):
    accesses = [Access(0, AccessType.LOAD), Access(0xdead_beef, AccessType.STORE)]
    path = tmp_path / "sub" / "out.trace"
    write_trace(path, accesses)

    assert path.read_text() == "L 0x0\nS 0xdeadbeef\n"
    assert load_trace(path) == accesses


def test_load_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_trace(tmp_path / "nope.trace")
