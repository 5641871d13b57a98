"""
SessionLifecycle - agent and git events as ledger mutations.

Agent plugins call start/switch/end, the post-commit hook calls capture.
Each public method returns its value or a TrailmarkError; none of them
raise, so the calling hook can always exit zero.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import InvalidInputError, SessionNotFoundError, TrailmarkError
from .identity import derive_session_id
from .ledger import SessionLedger
from .session_schema import Session, find_by_data_path, find_by_id

logger = logging.getLogger(__name__)


@dataclass
class LedgerSummary:
    """Counts shown by `trailmark status`."""

    total: int = 0
    open: int = 0
    ended: int = 0
    commits: int = 0
    with_commits: int = 0
    ready_to_sync: int = 0


class SessionLifecycle:
    """
    Translate lifecycle intents into ledger mutations.

    Dedup and state rules:
    - at most one record per data_path; a repeated start returns the existing id
    - status only moves open -> ended, an ended record is never reopened
    - commits are a set; capturing the same SHA twice is a no-op
    """

    def __init__(self, ledger: SessionLedger):
        self.ledger = ledger

    def start(
        self,
        agent: str,
        data_path: str,
        agent_version: str = "unknown",
        session_id: str | None = None,
    ) -> str | None | TrailmarkError:
        """
        Register a session, or return the id of the one already tracked.

        Args:
            agent: Agent integration name ("claude-code", "pi", ...)
            data_path: Path to the raw transcript; empty means ephemeral
            agent_version: Agent version string
            session_id: Externally supplied id (derived from data_path if None)

        Returns:
            The session id, None for an ephemeral session, or an error
        """
        if not data_path:
            logger.debug("ignoring ephemeral %s session (no data path)", agent)
            return None
        if not agent:
            return InvalidInputError("agent is required")

        new_id = session_id or derive_session_id(data_path)
        result_id = new_id

        def _add(sessions: list[Session]) -> list[Session]:
            nonlocal result_id
            existing = find_by_id(sessions, new_id) or find_by_data_path(sessions, data_path)
            if existing is not None:
                result_id = existing.id
                logger.debug("session %s already tracked (%s)", existing.id, existing.status)
                return sessions
            sessions.append(Session(
                id=new_id,
                agent=agent,
                agent_version=agent_version or "unknown",
                data_path=data_path,
            ))
            logger.debug("started %s session %s", agent, new_id)
            return sessions

        try:
            self.ledger.mutate(_add)
        except TrailmarkError as e:
            return e
        return result_id

    def end(self, session_id: str) -> None | TrailmarkError:
        """
        Mark a session ended. Unknown ids succeed silently.

        Returns:
            None on success, or an error
        """

        def _end(sessions: list[Session]) -> list[Session]:
            session = find_by_id(sessions, session_id)
            if session is None:
                logger.debug("end: no session %s in ledger", session_id)
            else:
                session.end()
            return sessions

        try:
            self.ledger.mutate(_end)
        except TrailmarkError as e:
            return e
        return None

    def switch(
        self,
        old_id: str | None,
        agent: str,
        new_data_path: str,
        agent_version: str = "unknown",
    ) -> str | None | TrailmarkError:
        """
        End the old session and start one for a new transcript.

        The two halves are separate writes. A failed end is logged and does
        not prevent the new session from being tracked.

        Returns:
            Result of the start half
        """
        if old_id:
            ended = self.end(old_id)
            if isinstance(ended, TrailmarkError):
                logger.warning("could not end session %s: %s", old_id, ended)
        return self.start(agent, new_data_path, agent_version)

    def capture(self, sha: str) -> int | TrailmarkError:
        """
        Tag every session in the ledger with a commit SHA.

        Open and ended sessions alike are tagged: a session that ended
        before the commit still informed it, and an open one keeps
        collecting commits until it ends and is synced.

        Returns:
            Number of sessions that gained the SHA, or an error
        """
        sha = (sha or "").strip()
        if not sha:
            return InvalidInputError("commit SHA is required")

        tagged = 0

        def _tag(sessions: list[Session]) -> list[Session]:
            nonlocal tagged
            for session in sessions:
                if session.add_commit(sha):
                    tagged += 1
            return sessions

        try:
            self.ledger.mutate(_tag)
        except TrailmarkError as e:
            return e
        logger.debug("tagged %d session(s) with %s", tagged, sha)
        return tagged

    def clear(self, session_id: str | None = None) -> int | TrailmarkError:
        """
        Remove one session, or every session when no id is given.

        Returns:
            Number of sessions removed, or SessionNotFoundError for an
            unknown id
        """
        removed = 0

        def _clear(sessions: list[Session]) -> list[Session]:
            nonlocal removed
            if session_id is None:
                removed = len(sessions)
                return []
            remaining = [s for s in sessions if s.id != session_id]
            removed = len(sessions) - len(remaining)
            return remaining

        try:
            if session_id is not None and self.ledger.get(session_id) is None:
                return SessionNotFoundError(session_id)
            self.ledger.mutate(_clear)
        except TrailmarkError as e:
            return e
        return removed

    def summary(self) -> LedgerSummary | TrailmarkError:
        """Count sessions by state for status output."""
        try:
            sessions = self.ledger.read()
        except TrailmarkError as e:
            return e

        summary = LedgerSummary(total=len(sessions))
        for session in sessions:
            if session.is_open:
                summary.open += 1
            else:
                summary.ended += 1
            summary.commits += len(session.commits)
            if session.commits:
                summary.with_commits += 1
                if session.is_ended:
                    summary.ready_to_sync += 1
        return summary


__all__ = ["LedgerSummary", "SessionLifecycle"]
