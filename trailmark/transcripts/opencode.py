"""
OpenCode transcript normalizer.

OpenCode exports a session as one JSON array of {"info": ..., "parts": [...]}
messages rather than JSONL. Parts are flattened into blocks so the shared
rules apply unchanged. OpenCode keeps no session name in message data.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

from .base import ToolInvocation, TranscriptNormalizer, decode


class OpenCodeNormalizer(TranscriptNormalizer):
    agent = "opencode"

    def iter_entries(self, raw: str | bytes) -> Iterator[dict[str, Any]]:
        text = decode(raw)
        if not text.strip():
            return
        try:
            entries = json.loads(text)
        except (ValueError, RecursionError):
            return
        if not isinstance(entries, list):
            return
        for entry in entries:
            if isinstance(entry, dict):
                yield entry

    def message_of(self, entry: dict[str, Any]) -> tuple[str, Any] | None:
        info = entry.get("info")
        if not isinstance(info, dict):
            return None
        role = info.get("role")
        if role not in ("user", "assistant"):
            return None
        parts = entry.get("parts")
        return role, parts if isinstance(parts, list) else []

    def tool_call_of(self, block: dict[str, Any]) -> ToolInvocation | None:
        name = block.get("tool")
        if block.get("type") != "tool" or not isinstance(name, str) or not name:
            return None
        state = block.get("state")
        arguments = state.get("input") if isinstance(state, dict) else None
        return ToolInvocation(name, arguments)


__all__ = ["OpenCodeNormalizer"]
