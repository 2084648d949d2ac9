"""Git command construction for each analytical view.

Builders only return argv lists (without the git executable); they never
run anything.  Each output layout is paired with a parser in
``log_parser``.
"""

from __future__ import annotations

from validation import WindowQuery

# ---------------------------------------------------------------------------
# Output layouts
# ---------------------------------------------------------------------------

FIELD_DELIMITER = "|"

# header "hash|name|email|date|message" followed by numstat lines
COMMIT_FORMAT = "%H|%an|%ae|%ad|%s"
# header "name|email" followed by bare paths
AUTHOR_FORMAT = "%an|%ae"
# "<iso weekday> <hour>"
PATTERN_DATE_FORMAT = "%u %H"
# header "|<unix time>" followed by bare paths
FILE_HISTORY_FORMAT = "|%ct"
TAG_FORMAT = "%(refname:short)|%(creatordate:short)"

# keep non-ASCII paths verbatim instead of octal-escaped
_LOG_PREFIX = ["-c", "core.quotePath=false", "log"]


def _window_args(query: WindowQuery) -> list[str]:
    # a bare date makes git reuse the current time of day, so pin both ends
    args = [f"--since={query.since} 00:00:00"]
    if query.until:
        args.append(f"--until={query.until} 23:59:59")
    if query.author:
        args.append(f"--author={query.author}")
    return args


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def commit_log_args(query: WindowQuery, *, numstat: bool = True) -> list[str]:
    """Full commit layout, optionally with per-file change counts."""
    args = [
        *_LOG_PREFIX,
        *_window_args(query),
        f"--pretty=format:{COMMIT_FORMAT}",
        "--date=short",
    ]
    if numstat:
        args.append("--numstat")
    return args


def author_files_args(query: WindowQuery) -> list[str]:
    """Author header followed by the names of the files each commit touched."""
    return [
        *_LOG_PREFIX,
        *_window_args(query),
        f"--pretty=format:{AUTHOR_FORMAT}",
        "--name-only",
    ]


def churn_args(query: WindowQuery) -> list[str]:
    """File names only, one per touched file per commit."""
    return [
        *_LOG_PREFIX,
        *_window_args(query),
        "--pretty=format:",
        "--name-only",
    ]


def patterns_args(query: WindowQuery) -> list[str]:
    """Weekday and hour of each commit in the committer's own timezone."""
    return [
        *_LOG_PREFIX,
        *_window_args(query),
        "--pretty=format:%ad",
        f"--date=format:{PATTERN_DATE_FORMAT}",
    ]


def file_history_args() -> list[str]:
    """Whole-history commit timestamps with touched files (not windowed)."""
    return [
        *_LOG_PREFIX,
        f"--pretty=format:{FILE_HISTORY_FORMAT}",
        "--name-only",
    ]


def tree_listing_args() -> list[str]:
    """Tracked files at HEAD with blob sizes in bytes."""
    return ["-c", "core.quotePath=false", "ls-tree", "-r", "-l", "--full-tree", "HEAD"]


def tags_args() -> list[str]:
    """Tags newest first, with their creation date."""
    return ["tag", "--sort=-creatordate", f"--format={TAG_FORMAT}"]
