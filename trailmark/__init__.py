"""trailmark: link AI coding-agent conversations to git commits.

Agent plugins report session start/switch/end, the post-commit hook tags
open sessions with the new commit, and the pre-push hook uploads ended
sessions with their normalized transcripts.

Layers:
- Ledger: pending sessions in .trailmark/pending.json, atomic replace
- Lifecycle: start/switch/end/capture/clear as ledger mutations
- Transcripts: per-agent normalizers producing search lines
"""

__version__ = "0.1.0"

from .errors import (
    CorruptLedgerError,
    LedgerIOError,
    SessionNotFoundError,
    TrailmarkError,
)
from .identity import derive_session_id
from .ledger import SessionLedger, get_ledger_path
from .lifecycle import LedgerSummary, SessionLifecycle
from .session_schema import KNOWN_AGENTS, Session, SessionStatus
from .transcripts import (
    Role,
    SearchLine,
    TranscriptNormalizer,
    build_search_text,
    get_normalizer,
)

__all__ = [
    # Ledger
    "Session",
    "SessionStatus",
    "KNOWN_AGENTS",
    "SessionLedger",
    "get_ledger_path",
    "SessionLifecycle",
    "LedgerSummary",
    "derive_session_id",
    # Transcripts
    "Role",
    "SearchLine",
    "TranscriptNormalizer",
    "build_search_text",
    "get_normalizer",
    # Errors
    "TrailmarkError",
    "LedgerIOError",
    "CorruptLedgerError",
    "SessionNotFoundError",
]
