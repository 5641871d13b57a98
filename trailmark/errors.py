"""Error taxonomy for trailmark.

Lifecycle operations return these instead of raising them, so a git hook
can always log the failure and exit zero.
"""

from __future__ import annotations


class TrailmarkError(Exception):
    """Base class for every failure trailmark reports."""

    code: str = "TRAILMARK_ERROR"
    recoverable: bool = True

    def __init__(self, message: str, *, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class LedgerIOError(TrailmarkError):
    """Reading or writing the ledger file failed at the OS level."""

    code = "IO_ERROR"


class CorruptLedgerError(TrailmarkError):
    """The ledger file exists but does not hold a valid list of sessions."""

    code = "CORRUPT_LEDGER"
    recoverable = False


class SessionNotFoundError(TrailmarkError):
    """An explicit lookup referenced a session id the ledger does not hold."""

    code = "SESSION_NOT_FOUND"

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class InvalidInputError(TrailmarkError):
    code = "INVALID_INPUT"


class GitError(TrailmarkError):
    code = "GIT_ERROR"


class ConfigError(TrailmarkError):
    code = "CONFIG_ERROR"


class UploadError(TrailmarkError):
    """The remote store rejected or never received a session."""

    code = "UPLOAD_ERROR"


class HookInputError(TrailmarkError):
    code = "PARSE_ERROR"


__all__ = [
    "TrailmarkError",
    "LedgerIOError",
    "CorruptLedgerError",
    "SessionNotFoundError",
    "InvalidInputError",
    "GitError",
    "ConfigError",
    "UploadError",
    "HookInputError",
]
