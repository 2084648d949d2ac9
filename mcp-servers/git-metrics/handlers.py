"""Tool registry.

Maps each tool name to its parameter record and the analyzer coroutine
that serves it.  Arguments are validated into the record before any git
command is built.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping

from commit_analyzer import CommitAnalyzer
from debt_analyzer import DebtAnalyzer
from errors import UnknownToolError
from git_client import GitClient
from quality_analyzer import QualityAnalyzer
from team_analyzer import TeamAnalyzer
from validation import ChurnQuery, DebtQuery, VelocityQuery, WindowQuery

Handler = Callable[[Any], Awaitable[Any]]


class ToolHandlers:
    """Validates tool arguments and routes them to the right analyzer."""

    def __init__(self, client: GitClient, *, log: logging.Logger | None = None) -> None:
        commits = CommitAnalyzer(client, log=log)
        team = TeamAnalyzer(client, log=log)
        quality = QualityAnalyzer(client, log=log)
        debt = DebtAnalyzer(client, log=log)

        self._tools: dict[str, tuple[type, Handler]] = {
            "get_commit_stats": (WindowQuery, commits.stats),
            "get_author_metrics": (WindowQuery, commits.authors),
            "get_file_churn": (ChurnQuery, commits.file_churn),
            "get_team_summary": (WindowQuery, commits.team_summary),
            "get_commit_patterns": (WindowQuery, commits.patterns),
            "get_code_ownership": (WindowQuery, team.ownership),
            "get_velocity_trends": (VelocityQuery, team.velocity),
            "get_collaboration_metrics": (WindowQuery, team.collaboration),
            "get_quality_metrics": (WindowQuery, quality.quality),
            "get_technical_debt": (DebtQuery, debt.technical_debt),
            "get_conventional_commits": (WindowQuery, quality.conventional_commits),
        }

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    async def dispatch(self, name: str, arguments: Mapping[str, Any]) -> Any:
        """Validate *arguments* for tool *name* and return its result."""
        try:
            record_type, handler = self._tools[name]
        except KeyError:
            raise UnknownToolError(name) from None

        query = record_type.from_args(arguments)
        return await handler(query)
