"""git-metrics — Git Repository Analytics MCP Server.

Provides tools that read a local repository's history:
  • Commit, author and team totals
  • File churn, commit timing patterns and velocity trends
  • Code ownership, bus factor and collaboration pairs
  • Commit quality, conventional-commit usage and technical debt

Designed to run as a local (stdio) MCP server.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any

from mcp.server.fastmcp import FastMCP

from errors import GitMetricsError
from git_client import GitClient
from handlers import ToolHandlers

# ---------------------------------------------------------------------------
# Logging – send everything to stderr so stdout stays clean for MCP protocol
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=os.environ.get("GIT_METRICS_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger("git-metrics")

# ---------------------------------------------------------------------------
# Shared client / handlers
# ---------------------------------------------------------------------------

_git = GitClient(logger=logger)  # reads GIT_METRICS_* from env
_handlers = ToolHandlers(_git, log=logger)

# ---------------------------------------------------------------------------
# MCP server
# ---------------------------------------------------------------------------

mcp = FastMCP(
    "git-metrics",
    instructions=(
        "Git repository analytics server.  Every tool takes the path of a "
        "local git working tree; windowed tools take 'since' (and optionally "
        "'until') as YYYY-MM-DD, with 'until' inclusive through the end of "
        "that day.  Each tool returns JSON; failures return an object with "
        "'error' and 'error_type' fields."
    ),
)


def _serialize(obj: Any) -> str:
    """Pretty-print a dict/list as JSON for the LLM to consume."""
    return json.dumps(obj, indent=2, default=str)


async def _run(tool: str, arguments: dict[str, Any]) -> str:
    try:
        result = await _handlers.dispatch(tool, arguments)
        return _serialize(result)
    except GitMetricsError as exc:
        logger.warning("%s failed: %s", tool, exc)
        return _serialize(
            {"error": str(exc), "error_type": exc.error_type, "tool": tool}
        )
    except Exception as exc:
        logger.exception("Unexpected error in %s", tool)
        return _serialize({"error": f"Internal error: {exc}", "tool": tool})


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool()
async def get_commit_stats(
    repo_path: str,
    since: str,
    until: str = "",
    author: str = "",
) -> str:
    """Get commit, line and file totals for a date window.

    Args:
        repo_path: Path to a local git repository.
        since: Start date (YYYY-MM-DD).
        until: End date (YYYY-MM-DD), inclusive; optional.
        author: Filter by author name or email; optional.
    """
    return await _run("get_commit_stats", {
        "repo_path": repo_path, "since": since, "until": until, "author": author,
    })


@mcp.tool()
async def get_author_metrics(repo_path: str, since: str, until: str = "") -> str:
    """Get commits, additions, deletions and files per author.

    Args:
        repo_path: Path to a local git repository.
        since: Start date (YYYY-MM-DD).
        until: End date (YYYY-MM-DD), inclusive; optional.
    """
    return await _run("get_author_metrics", {
        "repo_path": repo_path, "since": since, "until": until,
    })


@mcp.tool()
async def get_file_churn(
    repo_path: str,
    since: str,
    until: str = "",
    limit: int = 10,
) -> str:
    """Get the files changed most often (churn).

    Args:
        repo_path: Path to a local git repository.
        since: Start date (YYYY-MM-DD).
        until: End date (YYYY-MM-DD), inclusive; optional.
        limit: Number of files to return (1–100, default 10).
    """
    return await _run("get_file_churn", {
        "repo_path": repo_path, "since": since, "until": until, "limit": limit,
    })


@mcp.tool()
async def get_team_summary(repo_path: str, since: str, until: str = "") -> str:
    """Get team totals plus the per-contributor breakdown.

    Args:
        repo_path: Path to a local git repository.
        since: Start date (YYYY-MM-DD).
        until: End date (YYYY-MM-DD), inclusive; optional.
    """
    return await _run("get_team_summary", {
        "repo_path": repo_path, "since": since, "until": until,
    })


@mcp.tool()
async def get_commit_patterns(repo_path: str, since: str, until: str = "") -> str:
    """Get commit counts by weekday and hour, with weekend and late-night shares.

    Args:
        repo_path: Path to a local git repository.
        since: Start date (YYYY-MM-DD).
        until: End date (YYYY-MM-DD), inclusive; optional.
    """
    return await _run("get_commit_patterns", {
        "repo_path": repo_path, "since": since, "until": until,
    })


@mcp.tool()
async def get_code_ownership(repo_path: str, since: str, until: str = "") -> str:
    """Get shared vs. single-author files and per-author bus factor.

    Args:
        repo_path: Path to a local git repository.
        since: Start date (YYYY-MM-DD).
        until: End date (YYYY-MM-DD), inclusive; optional.
    """
    return await _run("get_code_ownership", {
        "repo_path": repo_path, "since": since, "until": until,
    })


@mcp.tool()
async def get_velocity_trends(
    repo_path: str,
    since: str,
    until: str = "",
    interval: str = "week",
) -> str:
    """Get commits and line changes per week or month.

    Args:
        repo_path: Path to a local git repository.
        since: Start date (YYYY-MM-DD).
        until: End date (YYYY-MM-DD), inclusive; optional.
        interval: "week" (Sunday-aligned, default) or "month".
    """
    return await _run("get_velocity_trends", {
        "repo_path": repo_path, "since": since, "until": until, "interval": interval,
    })


@mcp.tool()
async def get_collaboration_metrics(
    repo_path: str,
    since: str,
    until: str = "",
) -> str:
    """Get the author pairs who most often touch the same files.

    Args:
        repo_path: Path to a local git repository.
        since: Start date (YYYY-MM-DD).
        until: End date (YYYY-MM-DD), inclusive; optional.
    """
    return await _run("get_collaboration_metrics", {
        "repo_path": repo_path, "since": since, "until": until,
    })


@mcp.tool()
async def get_quality_metrics(repo_path: str, since: str, until: str = "") -> str:
    """Get average/median commit size and revert and fix rates.

    Args:
        repo_path: Path to a local git repository.
        since: Start date (YYYY-MM-DD).
        until: End date (YYYY-MM-DD), inclusive; optional.
    """
    return await _run("get_quality_metrics", {
        "repo_path": repo_path, "since": since, "until": until,
    })


@mcp.tool()
async def get_technical_debt(repo_path: str, stale_days: int = 90) -> str:
    """Get stale files, large files and complexity hotspots.

    Looks at the whole history, not a date window.

    Args:
        repo_path: Path to a local git repository.
        stale_days: Days without change before a file counts as stale (default 90).
    """
    return await _run("get_technical_debt", {
        "repo_path": repo_path, "stale_days": stale_days,
    })


@mcp.tool()
async def get_conventional_commits(
    repo_path: str,
    since: str,
    until: str = "",
) -> str:
    """Get conventional-commit usage, breaking changes and releases.

    Args:
        repo_path: Path to a local git repository.
        since: Start date (YYYY-MM-DD).
        until: End date (YYYY-MM-DD), inclusive; optional.
    """
    return await _run("get_conventional_commits", {
        "repo_path": repo_path, "since": since, "until": until,
    })


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    logger.info("git-metrics MCP server starting on stdio")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
