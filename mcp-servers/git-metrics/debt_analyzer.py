"""Technical-debt signals.

Combines two independent queries: a whole-history log of touched files
(for staleness and churn) and a tree listing of HEAD (for blob sizes).
Only the first ``max_files`` tracked paths, in listing order, are scored.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Iterable

from git_client import GitClient
from log_commands import file_history_args, tree_listing_args
from log_parser import iter_file_history, parse_tree_sizes
from validation import DebtQuery

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 86_400
_LARGE_FILE_BYTES = 20_000
_HOTSPOT_MIN_BYTES = 10_000
_HOTSPOT_MIN_CHURN = 5
_TOP_N = 10


def collect_history(
    history: Iterable[tuple[int, str]],
) -> tuple[dict[str, int], dict[str, int]]:
    """Return ``(last_change, churn)`` keyed by path.

    *history* must be newest first, as ``git log`` emits it.
    """
    last_change: dict[str, int] = {}
    churn: dict[str, int] = {}
    for timestamp, path in history:
        last_change.setdefault(path, timestamp)
        churn[path] = churn.get(path, 0) + 1
    return last_change, churn


def assess_debt(
    sizes: dict[str, int],
    last_change: dict[str, int],
    churn: dict[str, int],
    *,
    stale_days: int,
    now: float,
) -> dict[str, Any]:
    stale: list[dict[str, Any]] = []
    large: list[dict[str, Any]] = []
    hotspots: list[dict[str, Any]] = []
    ages: list[int] = []

    for path, size in sizes.items():
        changed_at = last_change.get(path)
        if changed_at is not None:
            days = int((now - changed_at) // _SECONDS_PER_DAY)
            ages.append(days)
            if days > stale_days:
                stale.append({"file": path, "daysSinceLastChange": days})

        if size > _LARGE_FILE_BYTES:
            large.append({"file": path, "bytes": size})

        changes = churn.get(path, 0)
        if size > _HOTSPOT_MIN_BYTES and changes > _HOTSPOT_MIN_CHURN:
            hotspots.append({
                "file": path,
                "bytes": size,
                "changes": changes,
                "score": size * changes,
            })

    stale.sort(key=lambda f: f["daysSinceLastChange"], reverse=True)
    large.sort(key=lambda f: f["bytes"], reverse=True)
    hotspots.sort(key=lambda f: f["score"], reverse=True)

    return {
        "staleFiles": stale[:_TOP_N],
        "largeFiles": large[:_TOP_N],
        "complexityHotspots": hotspots[:_TOP_N],
        "averageFileAge": math.floor(sum(ages) / len(ages) + 0.5) if ages else None,
    }


class DebtAnalyzer:
    """Finds stale, oversized and frequently rewritten files."""

    def __init__(self, client: GitClient, *, log: logging.Logger | None = None) -> None:
        self._client = client
        self._log = log or logger

    async def technical_debt(self, query: DebtQuery) -> dict[str, Any]:
        self._log.info(
            "Technical debt for %s (stale after %d days)",
            query.repo_path, query.stale_days,
        )

        listing = await self._client.run(query.repo_path, tree_listing_args())
        sizes = parse_tree_sizes(listing)
        if len(sizes) > self._client.max_files:
            self._log.warning(
                "Scanning first %d of %d tracked files",
                self._client.max_files, len(sizes),
            )
            sizes = dict(list(sizes.items())[: self._client.max_files])

        history = await self._client.run(query.repo_path, file_history_args())
        last_change, churn = collect_history(iter_file_history(history))

        return assess_debt(
            sizes, last_change, churn,
            stale_days=query.stale_days,
            now=time.time(),
        )
