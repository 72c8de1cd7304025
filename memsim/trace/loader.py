from __future__ import annotations
import re
from pathlib import Path
from typing import Iterable, List, NamedTuple

from ..runtime.levels import AccessType
from ..utils.logging import get_logger

logger = get_logger(__name__)

ADDRESS_BITS = 64
MAX_ADDRESS = (1 << ADDRESS_BITS) - 1

# "L 0x1000", "S 4096", "R: 0x10", "W:0x10"
_LINE_RE = re.compile(r"^\s*(?P<op>[A-Za-z]+)\s*:?\s*(?P<addr>\S+)\s*$")


class TraceFormatError(ValueError):
    """Raised when a trace line cannot be parsed."""


class Access(NamedTuple):
    """A single trace entry."""
    address: int
    access_type: AccessType


def parse_address(token: str) -> int:
    """Parses a hex ('0x' prefix) or decimal address into a 64-bit value."""
    token = token.strip()
    base = 16 if token.lower().startswith("0x") else 10
    address = int(token, base)
    if address < 0 or address > MAX_ADDRESS:
        raise ValueError(f"Address {token} is outside the {ADDRESS_BITS}-bit range")
    return address


def parse_trace_lines(lines: Iterable[str], source: str = "<trace>") -> List[Access]:
    accesses = []
    for lineno, raw in enumerate(lines, start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        match = _LINE_RE.match(line)
        if match is None:
            raise TraceFormatError(f"{source}:{lineno}: cannot parse trace line {raw.strip()!r}")
        try:
            access_type = AccessType.parse(match.group("op"))
            address = parse_address(match.group("addr"))
        except ValueError as e:
            raise TraceFormatError(f"{source}:{lineno}: {e}") from e
        accesses.append(Access(address, access_type))
    return accesses


def load_trace(path: str | Path) -> List[Access]:
    """Reads a trace file into a list of accesses."""
    path = Path(path)
    with open(path, "r") as f:
        accesses = parse_trace_lines(f, source=str(path))
    logger.info("Loaded %d accesses from %s", len(accesses), path)
    return accesses


def write_trace(path: str | Path, accesses: Iterable[Access]):
    """Writes accesses in the canonical 'L 0x...' form."""
    path = Path(path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        for address, access_type in accesses:
            f.write(f"{AccessType.parse(str(access_type)).value} {address:#x}\n")
