"""Deterministic session ids derived from transcript paths."""

from __future__ import annotations

import hashlib


def derive_session_id(data_path: str) -> str:
    """
    Derive a stable session id from an agent's transcript path.

    The SHA-256 digest of the path is formatted as 8-4-4-4-12 hex groups.
    It looks like a UUID but is not random: the same transcript file always
    maps to the same id, across restarts and resumes.

    Args:
        data_path: Path to the raw transcript

    Returns:
        Hyphen-grouped 32 hex character id
    """
    digest = hashlib.sha256(data_path.encode("utf-8")).hexdigest()
    return "-".join(
        [digest[0:8], digest[8:12], digest[12:16], digest[16:20], digest[20:32]]
    )


__all__ = ["derive_session_id"]
