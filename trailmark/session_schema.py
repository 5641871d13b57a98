"""
Session record model for the pending ledger.

Pydantic models for the records stored in .trailmark/pending.json.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

KNOWN_AGENTS = ("claude-code", "pi", "opencode")


class SessionStatus(str, Enum):
    """Session status. Only ever moves from open to ended."""

    OPEN = "open"
    ENDED = "ended"


class Session(BaseModel):
    """One tracked agent conversation waiting to be synced."""

    id: str
    agent: str
    agent_version: str = "unknown"
    status: SessionStatus = SessionStatus.OPEN
    data_path: str
    commits: list[str] = Field(default_factory=list)

    model_config = {
        "use_enum_values": True,
        "validate_assignment": True,
        "validate_default": True,
    }

    @field_validator("commits", mode="before")
    @classmethod
    def _normalize_commits(cls, value: Any) -> Any:
        # Older ledgers stored {"sha": ..., "branch": ...} refs
        if not isinstance(value, list):
            return value
        seen: list[str] = []
        for item in value:
            if isinstance(item, dict):
                item = item.get("sha")
            if isinstance(item, str) and item and item not in seen:
                seen.append(item)
            elif not isinstance(item, str):
                raise ValueError(f"invalid commit entry: {item!r}")
        return seen

    @property
    def is_open(self) -> bool:
        return self.status == SessionStatus.OPEN.value

    @property
    def is_ended(self) -> bool:
        return self.status == SessionStatus.ENDED.value

    def end(self) -> None:
        """Mark the session ended. There is no way back to open."""
        self.status = SessionStatus.ENDED

    def add_commit(self, sha: str) -> bool:
        """
        Attach a commit SHA if it is not already attached.

        Returns:
            True if the SHA was appended, False if it was already present
        """
        if sha in self.commits:
            return False
        self.commits = [*self.commits, sha]
        return True


def find_by_id(sessions: list[Session], session_id: str) -> Session | None:
    """Linear scan for a session by id."""
    for session in sessions:
        if session.id == session_id:
            return session
    return None


def find_by_data_path(sessions: list[Session], data_path: str) -> Session | None:
    """Linear scan for a session by transcript path."""
    for session in sessions:
        if session.data_path == data_path:
            return session
    return None


__all__ = [
    "KNOWN_AGENTS",
    "SessionStatus",
    "Session",
    "find_by_id",
    "find_by_data_path",
]
