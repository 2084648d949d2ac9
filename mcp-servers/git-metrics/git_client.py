"""Bounded async runner for the git executable.

Provides a thin wrapper around ``git`` subprocesses used by the
git-metrics MCP server.  Every call is bounded by a wall-clock timeout and
a maximum stdout size; failures are logged once with the failing command
and re-raised.  There are no retries.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from errors import CommandFailedError, ResourceLimitExceededError

_DEFAULT_BINARY = "git"
_DEFAULT_TIMEOUT = 30.0
_DEFAULT_MAX_OUTPUT_BYTES = 50_000_000
_DEFAULT_MAX_FILES = 1000
_READ_CHUNK = 64 * 1024
_STDERR_LIMIT = 64 * 1024


def _env_number(name: str, default: float, logger: logging.Logger) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        value = -1
    if value <= 0:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default
    return value


class GitClient:
    """Runs git commands inside a repository working tree.

    Parameters
    ----------
    timeout:
        Seconds before a command is killed.  Falls back to
        ``GIT_METRICS_TIMEOUT`` when *None*.
    max_output_bytes:
        Largest stdout accepted per command.  Falls back to
        ``GIT_METRICS_MAX_OUTPUT_BYTES``.
    max_files:
        Cap on files examined by listing-based views.  Falls back to
        ``GIT_METRICS_MAX_FILES``.
    logger:
        Logger to report commands and failures on.
    """

    def __init__(
        self,
        *,
        binary: str | None = None,
        timeout: float | None = None,
        max_output_bytes: int | None = None,
        max_files: int | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self.binary = binary or os.environ.get("GIT_METRICS_GIT_BINARY") or _DEFAULT_BINARY
        self.timeout = timeout or _env_number(
            "GIT_METRICS_TIMEOUT", _DEFAULT_TIMEOUT, self._logger,
        )
        self.max_output_bytes = max_output_bytes or int(_env_number(
            "GIT_METRICS_MAX_OUTPUT_BYTES", _DEFAULT_MAX_OUTPUT_BYTES, self._logger,
        ))
        self.max_files = max_files or int(_env_number(
            "GIT_METRICS_MAX_FILES", _DEFAULT_MAX_FILES, self._logger,
        ))

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    # -- internal helpers ----------------------------------------------------

    async def _read_stdout(self, stream: asyncio.StreamReader, cmd: list[str]) -> bytes:
        chunks: list[bytes] = []
        total = 0
        while True:
            chunk = await stream.read(_READ_CHUNK)
            if not chunk:
                break
            total += len(chunk)
            if total > self.max_output_bytes:
                raise ResourceLimitExceededError(
                    cmd, f"output exceeded {self.max_output_bytes} bytes",
                )
            chunks.append(chunk)
        return b"".join(chunks)

    async def _read_stderr(self, stream: asyncio.StreamReader) -> bytes:
        data = await stream.read()
        return data[:_STDERR_LIMIT]

    # -- public API ----------------------------------------------------------

    async def run(self, repo_path: Path, args: list[str]) -> str:
        """Execute ``git <args>`` in *repo_path* and return decoded stdout."""
        cmd = [self.binary, *args]
        self._logger.info(
            "Running git command", extra={"command": cmd, "repo": str(repo_path)},
        )

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(repo_path),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            error = CommandFailedError(cmd, str(exc))
            self._log_failure(error)
            raise error from exc

        try:
            stdout, stderr, _ = await asyncio.wait_for(
                asyncio.gather(
                    self._read_stdout(proc.stdout, cmd),  # type: ignore[arg-type]
                    self._read_stderr(proc.stderr),  # type: ignore[arg-type]
                    proc.wait(),
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            await self._kill(proc)
            error = CommandFailedError(cmd, f"timed out after {self.timeout}s")
            self._log_failure(error)
            raise error from exc
        except ResourceLimitExceededError as error:
            await self._kill(proc)
            self._log_failure(error)
            raise
        except asyncio.CancelledError:
            self._logger.warning("git command cancelled", extra={"command": cmd})
            await self._kill(proc)
            raise

        if proc.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            error = CommandFailedError(
                cmd, f"exit {proc.returncode}: {detail or 'no error output'}",
            )
            self._log_failure(error)
            raise error

        return stdout.decode("utf-8", errors="replace")

    async def _kill(self, proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is None:
            proc.kill()
            await proc.wait()

    def _log_failure(self, error: CommandFailedError) -> None:
        self._logger.error(
            "git command failed: %s",
            error.detail,
            extra={"command": error.command},
        )
