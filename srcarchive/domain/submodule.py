"""
Submodule domain objects for srcarchive.

`git submodule foreach` with no command prints one line per submodule:

    Entering 'deps/freetype/libpng'
    Entering 'third party/it's here'

The listing is parsed with a strict grammar rather than ad hoc trimming:

    line        := status-word SP quoted-path | <blank>
    quoted-path := "'" path "'"

Exactly one leading and one trailing quote are removed, so quotes inside
the path survive. Blank lines and empty paths are skipped. Anything else
is a parse error: guessing would root a submodule's files in the wrong
place.
"""

from dataclasses import dataclass
from typing import List, Optional

QUOTE = "'"


class SubmoduleParseError(ValueError):
    """Raised when a listing line does not follow the grammar."""

    def __init__(self, message: str, line: str, line_number: int = 0):
        super().__init__(message)
        self.line = line
        self.line_number = line_number


@dataclass(frozen=True)
class SubmoduleEntry:
    """
    One nested repository, relative to the root work tree.

    Attributes:
        path: Relative POSIX path (may contain spaces or quotes)
        status: Leading status word of the listing line
    """

    path: str
    status: str = "Entering"

    def to_dict(self) -> dict:
        return {'path': self.path, 'status': self.status}


def validate_relative_path(path: str) -> None:
    """Reject paths that would escape the archive prefix."""
    if path.startswith('/'):
        raise ValueError(f"Submodule path must be relative: {path!r}")
    parts = path.split('/')
    if any(part in ('', '.', '..') for part in parts):
        raise ValueError(f"Submodule path is not normalized: {path!r}")


def parse_listing_line(line: str, line_number: int = 0) -> Optional[SubmoduleEntry]:
    """
    Parse one listing line.

    Returns:
        SubmoduleEntry, or None for blank lines and empty paths

    Raises:
        SubmoduleParseError: if the line is not `<status> '<path>'`
    """
    line = line.rstrip('\r\n')
    if not line.strip():
        return None

    status, sep, quoted = line.partition(' ')
    if not sep or not status:
        raise SubmoduleParseError(f"Missing status word or path: {line!r}", line, line_number)

    if len(quoted) < 2 or not (quoted.startswith(QUOTE) and quoted.endswith(QUOTE)):
        raise SubmoduleParseError(f"Path is not quoted: {line!r}", line, line_number)

    path = quoted[1:-1]
    if not path:
        return None

    try:
        validate_relative_path(path)
    except ValueError as e:
        raise SubmoduleParseError(str(e), line, line_number) from e

    return SubmoduleEntry(path=path, status=status)


def parse_listing(output: str) -> List[SubmoduleEntry]:
    """
    Parse a full listing, preserving discovery order.

    Raises:
        SubmoduleParseError: on a malformed line or a path listed twice
    """
    entries: List[SubmoduleEntry] = []
    seen = set()
    for number, line in enumerate(output.splitlines(), start=1):
        entry = parse_listing_line(line, number)
        if entry is None:
            continue
        if entry.path in seen:
            raise SubmoduleParseError(f"Submodule listed twice: {entry.path!r}", line, number)
        seen.add(entry.path)
        entries.append(entry)
    return entries
