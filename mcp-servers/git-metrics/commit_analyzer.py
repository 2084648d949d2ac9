"""Commit-level activity views.

Totals, per-author rollups, team summary, file churn ranking and the
weekday/hour histogram.  The fold functions are pure; ``CommitAnalyzer``
pairs each one with the git query it needs.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from git_client import GitClient
from log_commands import churn_args, commit_log_args, patterns_args
from log_parser import CommitRecord, iter_touched_files, iter_weekday_hours, parse_commit_log
from validation import ChurnQuery, WindowQuery

logger = logging.getLogger(__name__)

MAX_CHURN_LIMIT = 100
_DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_WEEKEND_DAYS = frozenset({6, 7})
_LATE_NIGHT_START = 22
_LATE_NIGHT_END = 5


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def percentage(part: int, total: int) -> str:
    """One-decimal percentage string; ``"0.0%"`` when *total* is zero."""
    if not total:
        return "0.0%"
    return f"{part / total * 100:.1f}%"


def _is_late_night(hour: int) -> bool:
    return hour >= _LATE_NIGHT_START or hour <= _LATE_NIGHT_END


# ---------------------------------------------------------------------------
# Folds
# ---------------------------------------------------------------------------


def summarize_commits(commits: Iterable[CommitRecord]) -> dict[str, int]:
    """Window totals.  ``filesChanged`` counts distinct paths."""
    count = additions = deletions = 0
    paths: set[str] = set()

    for commit in commits:
        count += 1
        for change in commit.files:
            additions += change.additions
            deletions += change.deletions
            paths.add(change.path)

    return {
        "commits": count,
        "additions": additions,
        "deletions": deletions,
        "filesChanged": len(paths),
        "netChange": additions - deletions,
    }


def rollup_authors(commits: Iterable[CommitRecord]) -> dict[str, dict[str, int]]:
    """Per-author commits, line counts and file-change lines."""
    authors: dict[str, dict[str, int]] = {}

    for commit in commits:
        entry = authors.setdefault(
            commit.author_key,
            {"commits": 0, "additions": 0, "deletions": 0, "files": 0},
        )
        entry["commits"] += 1
        for change in commit.files:
            entry["additions"] += change.additions
            entry["deletions"] += change.deletions
            entry["files"] += 1

    return authors


def summarize_team(
    authors: dict[str, dict[str, int]],
    since: str,
    until: str | None,
) -> dict[str, Any]:
    return {
        "period": {"since": since, "until": until or "now"},
        "team": {
            "totalCommits": sum(a["commits"] for a in authors.values()),
            "totalAdditions": sum(a["additions"] for a in authors.values()),
            "totalDeletions": sum(a["deletions"] for a in authors.values()),
            "contributors": len(authors),
        },
        "contributors": authors,
    }


def rank_file_churn(paths: Iterable[str], limit: int) -> list[dict[str, Any]]:
    """Most frequently changed files; ties keep first-seen order."""
    limit = max(0, min(limit, MAX_CHURN_LIMIT))
    counts: dict[str, int] = {}
    for path in paths:
        counts[path] = counts.get(path, 0) + 1

    # sorted() is stable and dicts keep insertion order
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return [{"file": path, "changes": n} for path, n in ranked[:limit]]


def bucket_commit_times(slots: Iterable[tuple[int, str]]) -> dict[str, Any]:
    """Histogram commits by ISO weekday and hour of day."""
    by_weekday: dict[int, int] = {}
    by_hour: dict[str, int] = {}
    total = weekend = late_night = 0

    for weekday, hour in slots:
        total += 1
        by_weekday[weekday] = by_weekday.get(weekday, 0) + 1
        by_hour[hour] = by_hour.get(hour, 0) + 1
        if weekday in _WEEKEND_DAYS:
            weekend += 1
        if _is_late_night(int(hour)):
            late_night += 1

    return {
        "byDay": {_DAY_NAMES[d - 1]: by_weekday[d] for d in sorted(by_weekday)},
        "byHour": {h: by_hour[h] for h in sorted(by_hour)},
        "patterns": {
            "weekendPercentage": percentage(weekend, total),
            "lateNightPercentage": percentage(late_night, total),
        },
    }


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class CommitAnalyzer:
    """Fetches commit logs and folds them into activity summaries."""

    def __init__(self, client: GitClient, *, log: logging.Logger | None = None) -> None:
        self._client = client
        self._log = log or logger

    async def _commits(self, query: WindowQuery) -> list[CommitRecord]:
        output = await self._client.run(query.repo_path, commit_log_args(query))
        return parse_commit_log(output)

    async def stats(self, query: WindowQuery) -> dict[str, int]:
        self._log.info(
            "Commit stats for %s since %s", query.repo_path, query.since,
            extra={"until": query.until, "author": query.author},
        )
        return summarize_commits(await self._commits(query))

    async def authors(self, query: WindowQuery) -> dict[str, dict[str, int]]:
        self._log.info("Author metrics for %s since %s", query.repo_path, query.since)
        return rollup_authors(await self._commits(query))

    async def team_summary(self, query: WindowQuery) -> dict[str, Any]:
        self._log.info("Team summary for %s since %s", query.repo_path, query.since)
        authors = rollup_authors(await self._commits(query))
        return summarize_team(authors, query.since, query.until)

    async def file_churn(self, query: ChurnQuery) -> list[dict[str, Any]]:
        self._log.info("File churn for %s since %s", query.repo_path, query.since)
        if query.limit > MAX_CHURN_LIMIT:
            self._log.warning(
                "Clamping churn limit %d to %d", query.limit, MAX_CHURN_LIMIT,
            )
        output = await self._client.run(query.repo_path, churn_args(query))
        return rank_file_churn(iter_touched_files(output), query.limit)

    async def patterns(self, query: WindowQuery) -> dict[str, Any]:
        self._log.info("Commit patterns for %s since %s", query.repo_path, query.since)
        output = await self._client.run(query.repo_path, patterns_args(query))
        return bucket_commit_times(iter_weekday_hours(output))
