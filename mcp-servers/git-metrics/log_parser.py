"""Commit stream parsing.

Turns the text produced by the layouts in ``log_commands`` into structured
records.  Parsing never raises: lines that match no known shape are skipped.

The main layout interleaves header lines::

    <hash>|<name>|<email>|<YYYY-MM-DD>|<subject>

with ``--numstat`` lines::

    <additions>\\t<deletions>\\t<path>

and is read by a two-state machine: either no record is open, or one is
open and collecting change lines.  A header closes the open record (if any)
and opens the next; end of input closes the last one.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Iterator

from log_commands import FIELD_DELIMITER

_CHANGE_STAT_RE = re.compile(r"([0-9]+)\s+([0-9]+)\s(.+)")
_WEEKDAY_HOUR_RE = re.compile(r"([1-7]) ([0-9]{2})")
_ISO_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_HEADER_FIELDS = 5


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FileChange:
    path: str
    additions: int
    deletions: int


@dataclass
class CommitRecord:
    hash: str
    author: str
    email: str
    date: str
    message: str
    files: list[FileChange] = field(default_factory=list)

    @property
    def author_key(self) -> str:
        """Canonical ``"<name> <email>"`` identity, taken verbatim."""
        return author_key(self.author, self.email)

    @property
    def size(self) -> int:
        return sum(f.additions + f.deletions for f in self.files)


def author_key(name: str, email: str) -> str:
    return f"{name} <{email}>"


def parse_iso_date(value: str) -> date | None:
    """Return the calendar date for ``YYYY-MM-DD`` or None if unparseable."""
    if not _ISO_DATE_RE.fullmatch(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Main layout
# ---------------------------------------------------------------------------


class LineKind(enum.Enum):
    HEADER = "header"
    CHANGE_STAT = "change_stat"
    IGNORED = "ignored"


def classify_line(line: str) -> LineKind:
    if FIELD_DELIMITER in line:
        return LineKind.HEADER
    if _CHANGE_STAT_RE.fullmatch(line):
        return LineKind.CHANGE_STAT
    return LineKind.IGNORED


def _parse_header(line: str) -> CommitRecord:
    parts = line.split(FIELD_DELIMITER, _HEADER_FIELDS - 1)
    parts += [""] * (_HEADER_FIELDS - len(parts))
    commit_hash, name, email, day, message = parts
    return CommitRecord(
        hash=commit_hash,
        author=name,
        email=email,
        date=day,
        message=message,
    )


def _parse_change(line: str) -> FileChange | None:
    match = _CHANGE_STAT_RE.fullmatch(line)
    if match is None:
        return None
    additions, deletions, path = match.groups()
    return FileChange(path=path, additions=int(additions), deletions=int(deletions))


def iter_commits(text: str) -> Iterator[CommitRecord]:
    """Yield commit records in stream order."""
    current: CommitRecord | None = None

    for line in text.splitlines():
        kind = classify_line(line)
        if kind is LineKind.HEADER:
            if current is not None:
                yield current
            current = _parse_header(line)
        elif kind is LineKind.CHANGE_STAT and current is not None:
            change = _parse_change(line)
            if change is not None:
                current.files.append(change)

    if current is not None:
        yield current


def parse_commit_log(text: str) -> list[CommitRecord]:
    return list(iter_commits(text))


# ---------------------------------------------------------------------------
# Light layouts
# ---------------------------------------------------------------------------


def iter_author_files(text: str) -> Iterator[tuple[str, str]]:
    """Yield ``(author_key, path)`` from the author/name-only layout."""
    current = ""
    for line in text.splitlines():
        if FIELD_DELIMITER in line:
            name, _, email = line.partition(FIELD_DELIMITER)
            current = author_key(name, email)
        elif line.strip() and current:
            yield current, line


def iter_touched_files(text: str) -> Iterator[str]:
    """Yield every non-blank path line from the name-only layout."""
    for line in text.splitlines():
        if line.strip():
            yield line


def iter_weekday_hours(text: str) -> Iterator[tuple[int, str]]:
    """Yield ``(iso_weekday, "HH")`` pairs; malformed lines are skipped."""
    for line in text.splitlines():
        match = _WEEKDAY_HOUR_RE.fullmatch(line.strip())
        if match:
            yield int(match.group(1)), match.group(2)


def iter_file_history(text: str) -> Iterator[tuple[int, str]]:
    """Yield ``(unix_time, path)`` for every file touched, newest first."""
    timestamp: int | None = None
    for line in text.splitlines():
        if line.startswith(FIELD_DELIMITER):
            try:
                timestamp = int(line[1:].strip())
            except ValueError:
                timestamp = None
        elif line.strip() and timestamp is not None:
            yield timestamp, line


def parse_tree_sizes(text: str) -> dict[str, int]:
    """Map each blob path in an ``ls-tree -l`` listing to its size in bytes.

    Listing order is preserved.  Submodule entries report no size and are
    left out.
    """
    sizes: dict[str, int] = {}
    for line in text.splitlines():
        meta, sep, path = line.partition("\t")
        if not sep:
            continue
        fields = meta.split()
        if len(fields) != 4 or fields[1] != "blob":
            continue
        try:
            sizes[path] = int(fields[3])
        except ValueError:
            continue
    return sizes


def parse_tags(text: str) -> list[dict[str, str]]:
    """Parse ``name|YYYY-MM-DD`` tag lines, keeping input order."""
    tags: list[dict[str, str]] = []
    for line in text.splitlines():
        if FIELD_DELIMITER not in line:
            continue
        name, _, created = line.rpartition(FIELD_DELIMITER)
        tags.append({"tag": name, "date": created})
    return tags
