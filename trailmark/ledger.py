"""
SessionLedger - atomic JSON persistence for pending sessions.

One ledger per repository: {project_root}/.trailmark/pending.json

Hooks and agent plugins run as independent processes with no shared lock.
Every write goes to a temp file in the same directory and is renamed into
place, so a reader sees either the old ledger or the new one, never a torn
file. Two concurrent read-modify-write cycles can still lose one update;
lifecycle mutations are idempotent so the next git event re-applies it.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError

from .errors import CorruptLedgerError, LedgerIOError
from .session_schema import Session, find_by_data_path, find_by_id

logger = logging.getLogger(__name__)

LEDGER_DIRNAME = ".trailmark"
LEDGER_FILENAME = "pending.json"


def get_ledger_path(project_root: Path | str, dirname: str = LEDGER_DIRNAME) -> Path:
    """Get the pending ledger path for a project root."""
    return Path(project_root) / dirname / LEDGER_FILENAME


class SessionLedger:
    """
    JSON-array store of Session records.

    Lookups are linear scans; a ledger holds tens of entries at most.
    """

    def __init__(self, path: Path | str):
        """
        Initialize SessionLedger.

        Args:
            path: Path to the ledger JSON file (need not exist yet)
        """
        self.path = Path(path)

    def read(self) -> list[Session]:
        """
        Load all sessions from disk.

        Returns:
            Sessions in file order, or an empty list if there is no ledger yet

        Raises:
            LedgerIOError: If the file cannot be read
            CorruptLedgerError: If the content is not a valid session list
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            raise LedgerIOError(f"Failed to read ledger {self.path}", cause=e) from e
        except UnicodeDecodeError as e:
            raise CorruptLedgerError(f"Ledger {self.path} is not valid UTF-8", cause=e) from e

        if not text.strip():
            return []

        try:
            data = json.loads(text)
        except (ValueError, RecursionError) as e:
            raise CorruptLedgerError(f"Ledger {self.path} is not valid JSON", cause=e) from e

        if not isinstance(data, list):
            raise CorruptLedgerError(f"Ledger {self.path} does not hold a JSON array")

        try:
            return [Session.model_validate(item) for item in data]
        except ValidationError as e:
            raise CorruptLedgerError(f"Ledger {self.path} holds an invalid session", cause=e) from e

    def write(self, sessions: list[Session]) -> None:
        """
        Atomically replace the ledger contents.

        Uses write-to-temp-then-rename so concurrent readers never see a
        partially written file.

        Raises:
            LedgerIOError: If the directory or file cannot be written
        """
        payload = json.dumps(
            [s.model_dump(mode="json") for s in sessions],
            indent=2,
        ) + "\n"

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                suffix=".tmp",
                prefix="pending_",
                dir=self.path.parent,
            )
        except OSError as e:
            raise LedgerIOError(f"Failed to write ledger {self.path}", cause=e) from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)
        except OSError as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise LedgerIOError(f"Failed to write ledger {self.path}", cause=e) from e

        logger.debug("wrote %d session(s) to %s", len(sessions), self.path)

    def mutate(self, fn: Callable[[list[Session]], list[Session]]) -> list[Session]:
        """
        Read, transform and write back the ledger.

        Not a transaction: a concurrent writer between the read and the
        write loses its update.

        Args:
            fn: Receives the current sessions, returns the sessions to store

        Returns:
            The sessions that were written
        """
        sessions = fn(self.read())
        self.write(sessions)
        return sessions

    def get(self, session_id: str) -> Session | None:
        """Read the ledger and find a session by id."""
        return find_by_id(self.read(), session_id)

    def get_by_data_path(self, data_path: str) -> Session | None:
        """Read the ledger and find a session by transcript path."""
        return find_by_data_path(self.read(), data_path)

    def exists(self) -> bool:
        return self.path.exists()


__all__ = [
    "LEDGER_DIRNAME",
    "LEDGER_FILENAME",
    "SessionLedger",
    "get_ledger_path",
]
