"""Input validation and per-tool parameter records.

Every user-supplied value passes through here before it is used to build a
git command.  Validation failures are raised immediately and never retried.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from errors import InvalidInputError, NotAGitRepoError, PathNotFoundError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_FORBIDDEN_CHARS = frozenset(";&|`$()\x00")
_SANITIZE_RE = re.compile(r"[;&|`$()]")
_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

DEFAULT_CHURN_LIMIT = 10
DEFAULT_STALE_DAYS = 90
VELOCITY_INTERVALS = ("week", "month")


# ---------------------------------------------------------------------------
# Primitive validators
# ---------------------------------------------------------------------------


def validate_repo_path(path: Any) -> Path:
    """Check that *path* is a safe, existing git working tree.

    Character checks run before any filesystem access so that an injection
    attempt is rejected without touching the disk.
    """
    if not isinstance(path, str) or not path:
        raise InvalidInputError("repo_path is required and must be a string")

    bad = sorted({ch for ch in path if ch in _FORBIDDEN_CHARS})
    if bad:
        raise InvalidInputError(
            f"Invalid characters in repo_path: {''.join(bad)!r}"
        )

    try:
        resolved = Path(path).expanduser().resolve()
    except (OSError, RuntimeError, ValueError) as exc:
        raise InvalidInputError(f"Cannot resolve repo_path {path!r}: {exc}") from exc
    if not resolved.exists():
        raise PathNotFoundError(f"Repository path does not exist: {resolved}")

    # worktrees and submodules use a .git file instead of a directory
    if not (resolved / ".git").exists():
        raise NotAGitRepoError(f"Not a git repository: {resolved}")

    return resolved


def validate_date(value: Any, field_name: str) -> str:
    """Require exactly ``YYYY-MM-DD``.  Calendar correctness is not checked."""
    if not isinstance(value, str) or not _DATE_RE.fullmatch(value):
        raise InvalidInputError(
            f"Invalid {field_name} date format: {value!r}. Use YYYY-MM-DD"
        )
    return value


def sanitize_input(value: str) -> str:
    """Strip shell metacharacters from a free-text filter.

    This is a second line of defence only: spaces and quotes pass through,
    so values must still travel as discrete argv entries.
    """
    return _SANITIZE_RE.sub("", value)


def _positive_int(value: Any, field_name: str, *, minimum: int) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{field_name} must be an integer")
    if value < minimum:
        raise InvalidInputError(f"{field_name} must be >= {minimum}")
    return value


# ---------------------------------------------------------------------------
# Parameter records
# ---------------------------------------------------------------------------


def _window_fields(args: Mapping[str, Any]) -> dict[str, Any]:
    repo_path = validate_repo_path(args.get("repo_path"))
    since = validate_date(args.get("since"), "since")

    until = args.get("until")
    if until is not None and until != "":
        until = validate_date(until, "until")
    else:
        until = None

    author = args.get("author")
    if author is not None:
        if not isinstance(author, str):
            raise InvalidInputError("author must be a string")
        author = sanitize_input(author).strip() or None

    return {
        "repo_path": repo_path,
        "since": since,
        "until": until,
        "author": author,
    }


@dataclass(frozen=True)
class WindowQuery:
    """Parameters shared by every date-windowed tool."""

    repo_path: Path
    since: str
    until: str | None = None
    author: str | None = None

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "WindowQuery":
        return cls(**_window_fields(args))


@dataclass(frozen=True)
class ChurnQuery(WindowQuery):
    limit: int = DEFAULT_CHURN_LIMIT

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "ChurnQuery":
        limit = args.get("limit")
        if limit is None:
            limit = DEFAULT_CHURN_LIMIT
        return cls(
            **_window_fields(args),
            limit=_positive_int(limit, "limit", minimum=1),
        )


@dataclass(frozen=True)
class VelocityQuery(WindowQuery):
    interval: str = "week"

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "VelocityQuery":
        interval = args.get("interval") or "week"
        if interval not in VELOCITY_INTERVALS:
            raise InvalidInputError(
                f"interval must be one of {', '.join(VELOCITY_INTERVALS)}"
            )
        return cls(**_window_fields(args), interval=interval)


@dataclass(frozen=True)
class DebtQuery:
    """Parameters for the technical-debt scan (not date-windowed)."""

    repo_path: Path
    stale_days: int = DEFAULT_STALE_DAYS

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "DebtQuery":
        stale_days = args.get("stale_days")
        if stale_days is None:
            stale_days = DEFAULT_STALE_DAYS
        return cls(
            repo_path=validate_repo_path(args.get("repo_path")),
            stale_days=_positive_int(stale_days, "stale_days", minimum=0),
        )
