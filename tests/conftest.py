"""Shared fixtures: throw-away git repositories with pinned dates."""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

import pytest

GIT = shutil.which("git")
requires_git = pytest.mark.skipif(GIT is None, reason="git is not installed")

DEFAULT_AUTHOR = ("Test User", "test@example.com")


class RepoBuilder:
    """Creates commits and tags with fixed authors and timestamps."""

    def __init__(self, path: Path) -> None:
        self.path = path
        path.mkdir(parents=True, exist_ok=True)
        self.git("init", "-q")

    def git(self, *args: str, env: dict[str, str] | None = None) -> str:
        result = subprocess.run(
            [
                "git",
                "-c", "init.defaultBranch=main",
                "-c", "commit.gpgsign=false",
                "-c", "tag.gpgsign=false",
                "-c", "user.name=Fixture",
                "-c", "user.email=fixture@example.com",
                *args,
            ],
            cwd=self.path,
            env={**os.environ, "GIT_CONFIG_NOSYSTEM": "1", **(env or {})},
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout

    def commit(
        self,
        files: dict[str, str],
        message: str,
        when: str,
        author: tuple[str, str] = DEFAULT_AUTHOR,
    ) -> None:
        """Write *files* and commit them at *when* (``YYYY-MM-DD HH:MM:SS``)."""
        for name, content in files.items():
            target = self.path / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        self.git("add", "-A")
        stamp = f"{when} +0000"
        name, email = author
        self.git(
            "commit", "-q", "-m", message,
            env={
                "GIT_AUTHOR_NAME": name,
                "GIT_AUTHOR_EMAIL": email,
                "GIT_AUTHOR_DATE": stamp,
                "GIT_COMMITTER_NAME": name,
                "GIT_COMMITTER_EMAIL": email,
                "GIT_COMMITTER_DATE": stamp,
            },
        )

    def tag(self, name: str, when: str) -> None:
        self.git(
            "tag", "-a", name, "-m", name,
            env={"GIT_COMMITTER_DATE": f"{when} +0000"},
        )


@pytest.fixture(autouse=True)
def utc_timezone(monkeypatch):
    # git reads --since/--until in local time; pin it so windows are exact
    monkeypatch.setenv("TZ", "UTC")


@pytest.fixture
def make_repo(tmp_path):
    def _make(name: str = "repo") -> RepoBuilder:
        return RepoBuilder(tmp_path / name)
    return _make


@pytest.fixture
def dated_repo(make_repo):
    """Five single-file commits spread over January to May 2025."""
    repo = make_repo("dated")
    for i, day in enumerate(
        ["2025-01-15", "2025-02-10", "2025-03-05", "2025-04-20", "2025-05-25"]
    ):
        repo.commit({f"file{i}.txt": f"content {i}\n"}, f"Commit {i}", f"{day} 12:00:00")
    return repo
