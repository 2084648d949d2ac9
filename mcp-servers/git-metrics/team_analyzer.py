"""Team-shape views: ownership, collaboration and velocity.

Ownership and collaboration read the light author/name-only layout in a
single pass, so no per-file subqueries are issued.  Velocity reuses the
full commit layout for its line counts.
"""

from __future__ import annotations

import itertools
import logging
from datetime import date, timedelta
from typing import Any, Iterable

from git_client import GitClient
from log_commands import author_files_args, commit_log_args
from log_parser import CommitRecord, iter_author_files, parse_commit_log, parse_iso_date
from validation import VelocityQuery, WindowQuery

logger = logging.getLogger(__name__)

PAIR_SEPARATOR = " <-> "
TOP_COLLABORATIONS = 10


# ---------------------------------------------------------------------------
# Folds
# ---------------------------------------------------------------------------


def map_file_owners(pairs: Iterable[tuple[str, str]]) -> dict[str, set[str]]:
    """Distinct authors per file, files in first-seen order."""
    owners: dict[str, set[str]] = {}
    for author, path in pairs:
        owners.setdefault(path, set()).add(author)
    return owners


def summarize_ownership(owners: dict[str, set[str]]) -> dict[str, Any]:
    exclusive: dict[str, int] = {}
    shared = 0

    for authors in owners.values():
        if len(authors) == 1:
            (author,) = authors
            exclusive[author] = exclusive.get(author, 0) + 1
        else:
            shared += 1

    ranked = sorted(exclusive.items(), key=lambda kv: kv[1], reverse=True)
    return {
        "totalFiles": len(owners),
        "sharedFiles": shared,
        "soloFiles": len(owners) - shared,
        "busFactor": [
            {"author": author, "exclusiveFiles": n} for author, n in ranked
        ],
    }


def pair_key(first: str, second: str) -> str:
    """Order-independent identity for two authors."""
    a, b = sorted((first, second))
    return f"{a}{PAIR_SEPARATOR}{b}"


def count_collaborations(owners: dict[str, set[str]]) -> dict[str, Any]:
    pairs: dict[str, int] = {}
    collaborative = 0

    for authors in owners.values():
        if len(authors) < 2:
            continue
        collaborative += 1
        for a, b in itertools.combinations(sorted(authors), 2):
            key = pair_key(a, b)
            pairs[key] = pairs.get(key, 0) + 1

    ranked = sorted(pairs.items(), key=lambda kv: kv[1], reverse=True)
    return {
        "collaborativeFiles": collaborative,
        "topCollaborations": [
            {"pair": pair, "sharedFiles": n}
            for pair, n in ranked[:TOP_COLLABORATIONS]
        ],
    }


def period_key(day: date, interval: str) -> str:
    """Sunday-aligned week start (``YYYY-MM-DD``) or month (``YYYY-MM``)."""
    if interval == "month":
        return day.strftime("%Y-%m")
    # date.weekday() is Monday=0; shift so Sunday is the first day
    return (day - timedelta(days=(day.weekday() + 1) % 7)).isoformat()


def bucket_velocity(commits: Iterable[CommitRecord], interval: str) -> dict[str, Any]:
    periods: dict[str, dict[str, int]] = {}

    for commit in commits:
        day = parse_iso_date(commit.date)
        if day is None:
            continue
        entry = periods.setdefault(
            period_key(day, interval),
            {"commits": 0, "additions": 0, "deletions": 0},
        )
        entry["commits"] += 1
        for change in commit.files:
            entry["additions"] += change.additions
            entry["deletions"] += change.deletions

    return {
        "interval": interval,
        "trends": [{"period": key, **periods[key]} for key in sorted(periods)],
    }


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class TeamAnalyzer:
    """Derives ownership, pairing and throughput signals from history."""

    def __init__(self, client: GitClient, *, log: logging.Logger | None = None) -> None:
        self._client = client
        self._log = log or logger

    async def _owners(self, query: WindowQuery) -> dict[str, set[str]]:
        output = await self._client.run(query.repo_path, author_files_args(query))
        return map_file_owners(iter_author_files(output))

    async def ownership(self, query: WindowQuery) -> dict[str, Any]:
        self._log.info("Code ownership for %s since %s", query.repo_path, query.since)
        return summarize_ownership(await self._owners(query))

    async def collaboration(self, query: WindowQuery) -> dict[str, Any]:
        self._log.info("Collaboration for %s since %s", query.repo_path, query.since)
        return count_collaborations(await self._owners(query))

    async def velocity(self, query: VelocityQuery) -> dict[str, Any]:
        self._log.info(
            "Velocity (%s) for %s since %s",
            query.interval, query.repo_path, query.since,
        )
        output = await self._client.run(query.repo_path, commit_log_args(query))
        return bucket_velocity(parse_commit_log(output), query.interval)
