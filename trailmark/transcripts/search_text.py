"""Search document assembled from session metadata and search lines."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from .base import SearchLine


@dataclass
class SearchTextMetadata:
    session_id: str
    agent: str
    commits: list[str] = field(default_factory=list)
    branch: str | None = None
    repo: str | None = None
    data_path: str | None = None
    session_name: str | None = None
    first_message: str | None = None


def build_search_text(metadata: SearchTextMetadata, lines: Iterable[SearchLine]) -> str:
    """
    Build the search document for one session.

    A header of "Key: value" lines (empty values omitted), a blank line,
    then one "[role] text" line per search line.
    """
    header = [
        f"Session: {metadata.session_id}",
        f"Agent: {metadata.agent}",
    ]
    optional = [
        ("Commits", ", ".join(metadata.commits)),
        ("Branch", metadata.branch),
        ("Repo", metadata.repo),
        ("DataPath", metadata.data_path),
        ("SessionName", metadata.session_name),
        ("FirstMessage", metadata.first_message),
    ]
    header.extend(f"{key}: {value}" for key, value in optional if value)

    body = "\n".join(f"[{line.role.value}] {line.text}" for line in lines)
    return "\n".join(header) + "\n\n" + body + "\n"


__all__ = ["SearchTextMetadata", "build_search_text"]
