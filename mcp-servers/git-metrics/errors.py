"""Error taxonomy for the git-metrics MCP server.

Every failure a tool call can surface derives from ``GitMetricsError`` so
the server layer can report it as one descriptive error object.
"""

from __future__ import annotations


class GitMetricsError(Exception):
    """Base class for all errors reported to tool callers."""

    error_type = "GitMetricsError"


class InvalidInputError(GitMetricsError):
    """Raised when a parameter has the wrong shape, format or characters."""

    error_type = "InvalidInput"


class PathNotFoundError(GitMetricsError):
    """Raised when the repository path does not exist."""

    error_type = "NotFound"


class NotAGitRepoError(GitMetricsError):
    """Raised when the path exists but has no ``.git`` metadata."""

    error_type = "NotAGitRepo"


class CommandFailedError(GitMetricsError):
    """Raised when a git command exits non-zero or times out."""

    error_type = "CommandFailed"

    def __init__(self, command: list[str], detail: str) -> None:
        self.command = command
        self.detail = detail
        super().__init__(f"git command failed ({' '.join(command)}): {detail}")


class ResourceLimitExceededError(CommandFailedError):
    """Raised when a git command produces more output than allowed."""

    error_type = "ResourceLimitExceeded"


class UnknownToolError(GitMetricsError):
    """Raised when a tool name is not registered."""

    error_type = "UnknownTool"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")
