import asyncio

import pytest

from conftest import requires_git
from errors import InvalidInputError, NotAGitRepoError, UnknownToolError
from git_client import GitClient
from handlers import ToolHandlers

ALICE = ("Alice", "alice@example.com")
BOB = ("Bob", "bob@example.com")
CAROL = ("Carol", "carol@example.com")


@pytest.fixture
def handlers():
    return ToolHandlers(GitClient())


def call(handlers, name, **arguments):
    return asyncio.run(handlers.dispatch(name, arguments))


@pytest.fixture
def team_repo(make_repo):
    repo = make_repo("team")
    repo.commit({"src/app.py": "a\nb\n", "README.md": "hi\n"}, "feat(app): start", "2025-03-03 10:00:00", ALICE)
    repo.commit({"src/app.py": "a\nb\nc\n"}, "fix(app): typo", "2025-03-04 23:15:00", BOB)
    repo.commit({"src/app.py": "a\nc\n", "docs/guide one.md": "guide\n"}, "docs: guide", "2025-03-08 09:00:00", CAROL)
    repo.commit({"src/util.py": "u\n"}, "Revert \"feat: x\"", "2025-03-12 02:00:00", ALICE)
    repo.tag("v0.1.0", "2025-03-05 12:00:00")
    repo.tag("v0.0.1", "2024-12-01 12:00:00")
    return repo


# ---------------------------------------------------------------------------
# Dispatch and validation
# ---------------------------------------------------------------------------


def test_registered_tool_names(handlers):
    assert handlers.names == [
        "get_commit_stats",
        "get_author_metrics",
        "get_file_churn",
        "get_team_summary",
        "get_commit_patterns",
        "get_code_ownership",
        "get_velocity_trends",
        "get_collaboration_metrics",
        "get_quality_metrics",
        "get_technical_debt",
        "get_conventional_commits",
    ]


def test_unknown_tool(handlers):
    with pytest.raises(UnknownToolError, match="get_everything"):
        call(handlers, "get_everything", repo_path="/tmp")


def test_validation_happens_before_git(handlers, tmp_path):
    with pytest.raises(NotAGitRepoError):
        call(handlers, "get_commit_stats", repo_path=str(tmp_path), since="2025-01-01")
    (tmp_path / ".git").mkdir()
    with pytest.raises(InvalidInputError):
        call(handlers, "get_commit_stats", repo_path=str(tmp_path), since="2025/01/01")


# ---------------------------------------------------------------------------
# Date windows
# ---------------------------------------------------------------------------


@requires_git
@pytest.mark.parametrize(
    "since, until, expected",
    [
        ("2025-03-01", None, 3),
        ("2025-02-01", "2025-04-01", 2),
        ("2025-02-10", "2025-02-10", 1),
        ("2025-06-01", "2025-06-30", 0),
        ("2025-05-01", "2025-01-01", 0),
    ],
)
def test_date_window(handlers, dated_repo, since, until, expected):
    args = {"repo_path": str(dated_repo.path), "since": since}
    if until:
        args["until"] = until
    result = asyncio.run(handlers.dispatch("get_commit_stats", args))

    assert result["commits"] == expected


@requires_git
def test_views_agree_on_commit_count(handlers, team_repo):
    window = {"repo_path": str(team_repo.path), "since": "2025-03-01", "until": "2025-03-10"}

    stats = call(handlers, "get_commit_stats", **window)
    authors = call(handlers, "get_author_metrics", **window)
    team = call(handlers, "get_team_summary", **window)
    patterns = call(handlers, "get_commit_patterns", **window)

    assert stats["commits"] == 3
    assert sum(a["commits"] for a in authors.values()) == 3
    assert team["team"]["totalCommits"] == 3
    assert sum(patterns["byDay"].values()) == 3


# ---------------------------------------------------------------------------
# Views against a real repository
# ---------------------------------------------------------------------------


@requires_git
def test_commit_stats_and_author_filter(handlers, team_repo):
    base = {"repo_path": str(team_repo.path), "since": "2025-03-01"}

    stats = call(handlers, "get_commit_stats", **base)
    assert stats["commits"] == 4
    assert stats["filesChanged"] == 4
    assert stats["netChange"] == stats["additions"] - stats["deletions"]

    alice = call(handlers, "get_commit_stats", **base, author="alice@example.com")
    assert alice["commits"] == 2


@requires_git
def test_author_metrics_and_team_summary(handlers, team_repo):
    base = {"repo_path": str(team_repo.path), "since": "2025-03-01"}

    authors = call(handlers, "get_author_metrics", **base)
    assert authors["Alice <alice@example.com>"] == {
        "commits": 2, "additions": 4, "deletions": 0, "files": 3,
    }

    team = call(handlers, "get_team_summary", **base)
    assert team["period"] == {"since": "2025-03-01", "until": "now"}
    assert team["team"]["contributors"] == 3


@requires_git
def test_file_churn(handlers, team_repo):
    churn = call(handlers, "get_file_churn", repo_path=str(team_repo.path), since="2025-03-01", limit=2)

    assert churn[0] == {"file": "src/app.py", "changes": 3}
    assert len(churn) == 2

    everything = call(handlers, "get_file_churn", repo_path=str(team_repo.path), since="2025-03-01", limit=1000)
    assert {c["file"] for c in everything} == {
        "src/app.py", "README.md", "docs/guide one.md", "src/util.py",
    }


@requires_git
def test_commit_patterns(handlers, team_repo):
    result = call(handlers, "get_commit_patterns", repo_path=str(team_repo.path), since="2025-03-01")

    # Mon 10:00, Tue 23:15, Sat 09:00, Wed 02:00 (all +0000)
    assert result["byDay"] == {"Mon": 1, "Tue": 1, "Wed": 1, "Sat": 1}
    assert result["byHour"] == {"02": 1, "09": 1, "10": 1, "23": 1}
    assert result["patterns"] == {"weekendPercentage": "25.0%", "lateNightPercentage": "50.0%"}


@requires_git
def test_ownership_and_collaboration(handlers, team_repo):
    base = {"repo_path": str(team_repo.path), "since": "2025-03-01"}

    ownership = call(handlers, "get_code_ownership", **base)
    assert ownership["totalFiles"] == 4
    assert ownership["sharedFiles"] == 1
    assert ownership["busFactor"][0] == {"author": "Alice <alice@example.com>", "exclusiveFiles": 2}

    collaboration = call(handlers, "get_collaboration_metrics", **base)
    assert collaboration["collaborativeFiles"] == 1
    assert len(collaboration["topCollaborations"]) == 3


@requires_git
def test_velocity_trends(handlers, team_repo):
    base = {"repo_path": str(team_repo.path), "since": "2025-03-01"}

    weekly = call(handlers, "get_velocity_trends", **base)
    assert weekly["interval"] == "week"
    assert [(t["period"], t["commits"]) for t in weekly["trends"]] == [
        ("2025-03-02", 3),
        ("2025-03-09", 1),
    ]

    monthly = call(handlers, "get_velocity_trends", **base, interval="month")
    assert monthly["trends"][0]["period"] == "2025-03"
    assert monthly["trends"][0]["commits"] == 4


@requires_git
def test_quality_metrics(handlers, team_repo):
    result = call(handlers, "get_quality_metrics", repo_path=str(team_repo.path), since="2025-03-01")

    assert result["revertRate"] == "25.0%"
    assert result["fixRate"] == "25.0%"
    assert isinstance(result["averageCommitSize"], int)


@requires_git
def test_conventional_commits_and_releases(handlers, team_repo):
    result = call(handlers, "get_conventional_commits", repo_path=str(team_repo.path), since="2025-03-01")

    assert result["totalCommits"] == 4
    assert result["conventionalCommits"] == 3
    assert result["conventionalPercentage"] == "75.0%"
    assert result["topScopes"] == [{"scope": "app", "count": 2}]
    assert result["recentReleases"] == [{"tag": "v0.1.0", "date": "2025-03-05"}]
    assert result["releaseFrequency"] == "1 release since 2025-03-01"


@requires_git
def test_technical_debt(handlers, team_repo):
    result = call(handlers, "get_technical_debt", repo_path=str(team_repo.path), stale_days=0)

    stale = {f["file"] for f in result["staleFiles"]}
    assert stale == {"src/app.py", "README.md", "docs/guide one.md", "src/util.py"}
    assert result["largeFiles"] == []
    assert result["complexityHotspots"] == []
    assert result["averageFileAge"] > 0


@requires_git
def test_technical_debt_respects_file_cap(team_repo):
    handlers = ToolHandlers(GitClient(max_files=1))
    result = call(handlers, "get_technical_debt", repo_path=str(team_repo.path), stale_days=0)

    assert len(result["staleFiles"]) == 1
