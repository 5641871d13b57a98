"""Git plumbing used by hooks and sync."""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .errors import GitError

_REMOTE_RE = re.compile(r"[:/]([^/]+)/([^/]+?)(?:\.git)?$")


@dataclass
class CommitMeta:
    sha: str
    message: str
    author: str
    committed_at: int


def run_git(*args: str, cwd: Path | str | None = None) -> str:
    """
    Run a git command and return its stripped stdout.

    Raises:
        GitError: If git is missing or exits non-zero
    """
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            cwd=cwd,
        )
    except OSError as e:
        raise GitError(f"Failed to run git {' '.join(args)}", cause=e) from e

    if result.returncode != 0:
        detail = result.stderr.strip() or f"exit code {result.returncode}"
        raise GitError(f"git {' '.join(args)} failed: {detail}")
    return result.stdout.strip()


def get_project_root(cwd: Path | str | None = None) -> Path:
    """Get the working tree root of the enclosing repository."""
    return Path(run_git("rev-parse", "--show-toplevel", cwd=cwd))


def get_current_sha(cwd: Path | str | None = None) -> str:
    return run_git("rev-parse", "HEAD", cwd=cwd)


def get_current_branch(cwd: Path | str | None = None) -> str:
    return run_git("rev-parse", "--abbrev-ref", "HEAD", cwd=cwd)


def get_remote_url(cwd: Path | str | None = None) -> str:
    return run_git("remote", "get-url", "origin", cwd=cwd)


def get_commit_meta(sha: str, cwd: Path | str | None = None) -> CommitMeta:
    """Get subject, author name and commit time for a commit."""
    text = run_git("log", "-1", "--format=%s%n%an%n%ct", sha, cwd=cwd)
    lines = text.split("\n")
    try:
        committed_at = int(lines[2]) if len(lines) > 2 else 0
    except ValueError:
        committed_at = 0
    return CommitMeta(
        sha=sha,
        message=lines[0] if lines else "",
        author=lines[1] if len(lines) > 1 else "",
        committed_at=committed_at,
    )


def parse_remote(remote_url: str) -> tuple[str, str]:
    """
    Split a remote URL into (org, repo).

    Handles both https://host/org/repo(.git) and git@host:org/repo(.git).

    Raises:
        GitError: If the URL has no org/repo suffix
    """
    match = _REMOTE_RE.search(remote_url.strip())
    if not match:
        raise GitError(f"Cannot parse git remote URL: {remote_url}")
    return match.group(1), match.group(2)


__all__ = [
    "CommitMeta",
    "get_commit_meta",
    "get_current_branch",
    "get_current_sha",
    "get_project_root",
    "get_remote_url",
    "parse_remote",
    "run_git",
]
