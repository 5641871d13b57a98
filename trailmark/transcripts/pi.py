"""
Pi coding agent transcript normalizer.

Pi session files are JSONL. Conversation turns are entries of type
"message" with the role inside; tool calls are "toolCall" blocks with
their arguments under "arguments". Renaming a session with /name writes
a custom entry of customType "session-name".
"""

from __future__ import annotations

from typing import Any

from .base import ToolInvocation, TranscriptNormalizer


class PiNormalizer(TranscriptNormalizer):
    agent = "pi"

    def message_of(self, entry: dict[str, Any]) -> tuple[str, Any] | None:
        if entry.get("type") != "message":
            return None
        message = entry.get("message")
        if not isinstance(message, dict):
            return None
        role = message.get("role")
        # toolResult, bashExecution etc. are not conversation turns
        if role not in ("user", "assistant"):
            return None
        return role, message.get("content")

    def tool_call_of(self, block: dict[str, Any]) -> ToolInvocation | None:
        name = block.get("name")
        if block.get("type") == "toolCall" and isinstance(name, str) and name:
            return ToolInvocation(name, block.get("arguments"))
        return None

    def session_name_of(self, entry: dict[str, Any]) -> str | None:
        if entry.get("type") != "custom" or entry.get("customType") != "session-name":
            return None
        data = entry.get("data")
        if isinstance(data, dict) and isinstance(data.get("name"), str):
            return data["name"]
        return None


__all__ = ["PiNormalizer"]
