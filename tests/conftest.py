"""Shared fixtures for trailmark tests."""

import shutil
import subprocess
from types import SimpleNamespace

import pytest

from trailmark.ledger import SessionLedger
from trailmark.lifecycle import SessionLifecycle


@pytest.fixture
def ledger(tmp_path):
    """Ledger in a fresh .trailmark directory."""
    return SessionLedger(tmp_path / ".trailmark" / "pending.json")


@pytest.fixture
def lifecycle(ledger):
    return SessionLifecycle(ledger)


@pytest.fixture
def git_repo(tmp_path, monkeypatch):
    """Throwaway git repository with one commit and an origin remote."""
    if shutil.which("git") is None:
        pytest.skip("git not available")

    repo = tmp_path / "repo"
    repo.mkdir()

    def git(*args):
        return subprocess.run(
            ["git", *args], cwd=repo, check=True, capture_output=True, text=True
        ).stdout.strip()

    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    git("init", "-q")
    git("config", "user.email", "dev@example.com")
    git("config", "user.name", "Dev")
    git("config", "commit.gpgsign", "false")
    (repo / "README").write_text("hello\n")
    git("add", "README")
    git("commit", "-q", "-m", "initial commit")
    git("remote", "add", "origin", "git@github.com:acme/widgets.git")
    return SimpleNamespace(path=repo, git=git)
