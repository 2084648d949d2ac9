"""Change-quality views.

Commit size statistics with revert/fix rates, and conventional-commit
classification together with the releases tagged inside the window.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date
from typing import Any, Iterable

from commit_analyzer import percentage
from git_client import GitClient
from log_commands import commit_log_args, tags_args
from log_parser import CommitRecord, parse_commit_log, parse_iso_date, parse_tags
from validation import WindowQuery

logger = logging.getLogger(__name__)

_FIX_RE = re.compile(r"\b(?:fix|bug|hotfix)\b", re.IGNORECASE)
_CONVENTIONAL_RE = re.compile(
    r"^(feat|fix|docs|style|refactor|perf|test|build|ci|chore|revert)"
    r"(?:\(([^)]+)\))?(!)?:"
)
_BREAKING_MARKER = "BREAKING CHANGE"
_TOP_SCOPES = 10


# ---------------------------------------------------------------------------
# Quality
# ---------------------------------------------------------------------------


def median_size(sizes: list[int]) -> int:
    """Element at index ``n // 2`` of the sorted sizes (upper middle)."""
    if not sizes:
        return 0
    return sorted(sizes)[len(sizes) // 2]


def measure_quality(commits: Iterable[CommitRecord]) -> dict[str, Any]:
    sizes: list[int] = []
    reverts = fixes = 0

    for commit in commits:
        sizes.append(commit.size)
        if "revert" in commit.message.lower():
            reverts += 1
        if _FIX_RE.search(commit.message):
            fixes += 1

    total = len(sizes)
    # round half up
    average = math.floor(sum(sizes) / total + 0.5) if total else 0

    return {
        "averageCommitSize": average,
        "medianCommitSize": median_size(sizes),
        "revertRate": percentage(reverts, total),
        "fixRate": percentage(fixes, total),
    }


# ---------------------------------------------------------------------------
# Conventional commits
# ---------------------------------------------------------------------------


def parse_conventional(message: str) -> tuple[str, str | None, bool] | None:
    """Return ``(type, scope, breaking)`` or None for free-form messages."""
    match = _CONVENTIONAL_RE.match(message)
    if not match:
        return None
    commit_type, scope, bang = match.groups()
    return commit_type, scope, bool(bang) or _BREAKING_MARKER in message


def filter_releases(
    tags: list[dict[str, str]],
    since: str,
    until: str | None,
    *,
    today: date | None = None,
) -> list[dict[str, str]]:
    """Keep tags created within ``[since, until]`` (or up to today)."""
    start = parse_iso_date(since)
    end = parse_iso_date(until) if until else (today or date.today())
    if start is None or end is None:
        return []

    releases: list[dict[str, str]] = []
    for tag in tags:
        created = parse_iso_date(tag["date"])
        if created is not None and start <= created <= end:
            releases.append(tag)
    return releases


def _release_frequency(count: int, since: str) -> str:
    if count == 0:
        return "No releases found"
    noun = "release" if count == 1 else "releases"
    return f"{count} {noun} since {since}"


def summarize_conventional(
    commits: Iterable[CommitRecord],
    releases: list[dict[str, str]],
    since: str,
) -> dict[str, Any]:
    types: dict[str, int] = {}
    scopes: dict[str, int] = {}
    total = conventional = breaking = 0

    for commit in commits:
        total += 1
        parsed = parse_conventional(commit.message)
        if parsed is None:
            continue
        conventional += 1
        commit_type, scope, is_breaking = parsed
        types[commit_type] = types.get(commit_type, 0) + 1
        if scope:
            scopes[scope] = scopes.get(scope, 0) + 1
        if is_breaking:
            breaking += 1

    ranked_types = sorted(types.items(), key=lambda kv: kv[1], reverse=True)
    ranked_scopes = sorted(scopes.items(), key=lambda kv: kv[1], reverse=True)

    return {
        "totalCommits": total,
        "conventionalCommits": conventional,
        "conventionalPercentage": percentage(conventional, total),
        "commitTypes": [{"type": t, "count": n} for t, n in ranked_types],
        "topScopes": [
            {"scope": s, "count": n} for s, n in ranked_scopes[:_TOP_SCOPES]
        ],
        "totalScopeCount": len(ranked_scopes),
        "breakingChanges": breaking,
        "recentReleases": releases,
        "totalReleasesCount": len(releases),
        "releaseFrequency": _release_frequency(len(releases), since),
    }


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class QualityAnalyzer:
    """Scores commit hygiene for a date window."""

    def __init__(self, client: GitClient, *, log: logging.Logger | None = None) -> None:
        self._client = client
        self._log = log or logger

    async def quality(self, query: WindowQuery) -> dict[str, Any]:
        self._log.info("Quality metrics for %s since %s", query.repo_path, query.since)
        output = await self._client.run(query.repo_path, commit_log_args(query))
        return measure_quality(parse_commit_log(output))

    async def conventional_commits(self, query: WindowQuery) -> dict[str, Any]:
        self._log.info(
            "Conventional commits for %s since %s", query.repo_path, query.since,
        )
        output = await self._client.run(
            query.repo_path, commit_log_args(query, numstat=False),
        )
        # tag listing is a second, independent query
        tag_output = await self._client.run(query.repo_path, tags_args())
        releases = filter_releases(parse_tags(tag_output), query.since, query.until)
        return summarize_conventional(parse_commit_log(output), releases, query.since)
