"""
Sync staging - ship ended, committed sessions and drop them from the ledger.

Called from the pre-push hook. The upload itself goes through an Uploader;
this module decides what is ready, builds each payload (normalizing the
transcript for search) and cleans up the ledger afterwards.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import GitError, TrailmarkError
from .git import CommitMeta, get_commit_meta
from .ledger import SessionLedger
from .session_schema import Session
from .transcripts import SearchTextMetadata, build_search_text, get_normalizer
from .uploader import Uploader

logger = logging.getLogger(__name__)

STALE_AFTER_SECONDS = 30 * 60

CommitLookup = Callable[[str], CommitMeta]


@dataclass
class SyncReport:
    """Outcome of one sync run, by session id."""

    uploaded: list[str] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    closed: list[str] = field(default_factory=list)


def close_stale_sessions(
    sessions: list[Session],
    now: float | None = None,
    stale_after: float = STALE_AFTER_SECONDS,
) -> list[str]:
    """
    End open sessions whose transcript has gone quiet.

    An agent that crashed or was killed never sends its end event. An open
    session is ended when its data file is missing or has not been
    modified for `stale_after` seconds.

    Returns:
        Ids of the sessions that were ended
    """
    now = time.time() if now is None else now
    closed = []
    for session in sessions:
        if not session.is_open:
            continue
        try:
            idle = now - Path(session.data_path).stat().st_mtime
        except OSError:
            logger.debug("auto-closed session %s (data file not accessible)", session.id)
            session.end()
            closed.append(session.id)
            continue
        if idle > stale_after:
            logger.debug(
                "auto-closed stale session %s (data file unchanged for %dm)",
                session.id,
                round(idle / 60),
            )
            session.end()
            closed.append(session.id)
    return closed


def build_payload(
    session: Session,
    raw: str,
    commits: list[CommitMeta],
    org: str,
    repo: str,
) -> dict[str, Any]:
    """
    Build the upload body for one session.

    Unknown agents still upload their raw transcript, just without the
    normalized search fields.
    """
    first_message = None
    session_name = None
    search_text = None

    normalizer = get_normalizer(session.agent)
    if normalizer is not None:
        first_message = normalizer.extract_first_message(raw)
        session_name = normalizer.extract_session_name(raw)
        search_text = build_search_text(
            SearchTextMetadata(
                session_id=session.id,
                agent=session.agent,
                commits=list(session.commits),
                repo=f"{org}/{repo}",
                data_path=session.data_path,
                session_name=session_name,
                first_message=first_message,
            ),
            normalizer.extract_lines(raw),
        )

    return {
        "session": {
            "id": session.id,
            "agent": session.agent,
            "agent_version": session.agent_version,
            "status": session.status,
            "data": raw,
            "first_message": first_message,
            "session_name": session_name,
            "search_text": search_text,
        },
        "commits": [
            {
                "sha": c.sha,
                "org": org,
                "repo": repo,
                "message": c.message,
                "author": c.author,
                "committed_at": c.committed_at,
            }
            for c in commits
        ],
    }


def _lookup_commits(session: Session, lookup: CommitLookup) -> list[CommitMeta]:
    commits = []
    for sha in session.commits:
        try:
            commits.append(lookup(sha))
        except GitError as e:
            # e.g. amended or rebased away before the push
            logger.warning("skipping commit %s: %s", sha, e)
    return commits


def sync(
    ledger: SessionLedger,
    uploader: Uploader,
    org: str,
    repo: str,
    stale_after: float = STALE_AFTER_SECONDS,
    commit_lookup: CommitLookup | None = None,
    now: float | None = None,
) -> SyncReport | TrailmarkError:
    """
    Upload every ended session that has commits, then remove it.

    Sessions whose transcript has disappeared are dropped. Upload failures
    leave the session in place for the next push. The final cleanup
    re-reads the ledger so edits made by other processes meanwhile survive.

    Returns:
        SyncReport, or the ledger error that stopped the run
    """
    lookup = commit_lookup or get_commit_meta
    report = SyncReport()

    def _end_closed(current: list[Session]) -> list[Session]:
        for s in current:
            if s.id in report.closed:
                s.end()
        return current

    try:
        sessions = ledger.read()
        report.closed = close_stale_sessions(sessions, now=now, stale_after=stale_after)
        if report.closed:
            ledger.mutate(_end_closed)
    except TrailmarkError as e:
        return e

    for session in sessions:
        if not session.is_ended or not session.commits:
            continue

        try:
            raw = Path(session.data_path).read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            logger.warning(
                "dropping session %s: data file missing at %s", session.id, session.data_path
            )
            report.dropped.append(session.id)
            continue
        except OSError as e:
            logger.warning("could not read session %s: %s", session.id, e)
            report.failed.append(session.id)
            continue

        payload = build_payload(session, raw, _lookup_commits(session, lookup), org, repo)
        try:
            uploader.upload(payload)
        except TrailmarkError as e:
            logger.warning("upload failed for session %s: %s", session.id, e)
            report.failed.append(session.id)
            continue

        report.uploaded.append(session.id)
        logger.debug("synced session %s", session.id)

    done = set(report.uploaded) | set(report.dropped)
    if done:
        try:
            ledger.mutate(lambda current: [s for s in current if s.id not in done])
        except TrailmarkError as e:
            return e
    return report


__all__ = [
    "STALE_AFTER_SECONDS",
    "SyncReport",
    "build_payload",
    "close_stale_sessions",
    "sync",
]
