"""
Claude Code hook adapter.

Claude Code runs `trailmark hook claude-code` for SessionStart and
SessionEnd, passing the hook input as JSON on stdin:

    {"session_id": "...", "transcript_path": "...", "hook_event_name": "SessionStart",
     "source": "startup"}

Claude's own session id is not ours: the ledger id is derived from the
transcript path. A small state file per Claude session,
.trailmark/hooks/{claude_session_id}.state, remembers which ledger id to end.
"""

from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .errors import HookInputError, LedgerIOError, TrailmarkError
from .lifecycle import SessionLifecycle

logger = logging.getLogger(__name__)

START_SOURCES = ("startup", "resume")


def detect_claude_version() -> str:
    """Ask the claude binary for its version, "unknown" if that fails."""
    try:
        result = subprocess.run(
            ["claude", "--version"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired):
        return "unknown"
    if result.returncode != 0:
        return "unknown"
    return result.stdout.strip() or "unknown"


def parse_hook_input(raw: str) -> dict[str, Any] | TrailmarkError:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        return HookInputError("Failed to parse hook input JSON", cause=e)
    if not isinstance(data, dict):
        return HookInputError("Hook input is not a JSON object")
    return data


class ClaudeCodeHook:
    """Dispatch Claude Code hook events to the session lifecycle."""

    def __init__(
        self,
        lifecycle: SessionLifecycle,
        state_dir: Path,
        version_detector: Callable[[], str] | None = None,
    ):
        self.lifecycle = lifecycle
        self.state_dir = Path(state_dir)
        self.version_detector = version_detector or detect_claude_version

    def state_file(self, claude_session_id: str) -> Path:
        """
        Path of the state file for a Claude session.

        Raises:
            HookInputError: If the id is not a single path component
        """
        if (
            claude_session_id in ("", ".", "..")
            or "/" in claude_session_id
            or "\\" in claude_session_id
            or "\0" in claude_session_id
        ):
            raise HookInputError(f"Invalid session_id: {claude_session_id!r}")
        return self.state_dir / f"{claude_session_id}.state"

    def handle(self, raw: str) -> str | None | TrailmarkError:
        """
        Handle one hook invocation.

        Returns:
            The ledger id for a tracked SessionStart, None when nothing was
            tracked, or an error
        """
        data = parse_hook_input(raw)
        if isinstance(data, TrailmarkError):
            return data

        event = data.get("hook_event_name")
        if event == "SessionStart":
            return self.on_session_start(data)
        if event == "SessionEnd":
            return self.on_session_end(data)
        logger.debug("ignoring hook event %s", event)
        return None

    def on_session_start(self, data: dict[str, Any]) -> str | None | TrailmarkError:
        claude_session_id = data.get("session_id")
        transcript_path = data.get("transcript_path")
        if data.get("source") not in START_SOURCES:
            return None
        if not claude_session_id or not transcript_path:
            return None
        if not isinstance(claude_session_id, str) or not isinstance(transcript_path, str):
            return HookInputError("session_id and transcript_path must be strings")

        try:
            state_file = self.state_file(claude_session_id)
        except HookInputError as e:
            return e

        session_id = self.lifecycle.start(
            "claude-code",
            transcript_path,
            self.version_detector(),
        )
        if isinstance(session_id, TrailmarkError) or session_id is None:
            return session_id

        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            state_file.write_text(session_id)
        except OSError as e:
            return LedgerIOError("Failed to write hook state file", cause=e)

        logger.debug("session %s started for claude-code", session_id)
        return session_id

    def on_session_end(self, data: dict[str, Any]) -> None | TrailmarkError:
        claude_session_id = data.get("session_id")
        if not claude_session_id:
            return None

        if not isinstance(claude_session_id, str):
            return HookInputError("session_id must be a string")
        try:
            state_file = self.state_file(claude_session_id)
        except HookInputError as e:
            return e

        try:
            session_id = state_file.read_text().strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            return LedgerIOError("Failed to read hook state file", cause=e)

        if session_id:
            ended = self.lifecycle.end(session_id)
            if isinstance(ended, TrailmarkError):
                return ended

        try:
            state_file.unlink(missing_ok=True)
        except OSError as e:
            return LedgerIOError("Failed to remove hook state file", cause=e)

        logger.debug("session %s ended", session_id)
        return None


__all__ = ["ClaudeCodeHook", "detect_claude_version", "parse_hook_input"]
