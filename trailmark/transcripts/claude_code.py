"""
Claude Code transcript normalizer.

Reads the JSONL transcript files that Claude Code maintains at:
~/.claude/projects/{project_hash}/{session_id}.jsonl

Key entry types:
- "user": User message or tool result
- "assistant": Assistant response with possible tool_use blocks
- "progress": Hook and tool execution progress (carries the session slug)
- "system", "summary": dropped
"""

from __future__ import annotations

from typing import Any

from .base import ToolInvocation, TranscriptNormalizer


class ClaudeCodeNormalizer(TranscriptNormalizer):
    agent = "claude-code"

    def message_of(self, entry: dict[str, Any]) -> tuple[str, Any] | None:
        if entry.get("isMeta") or entry.get("isSidechain"):
            return None
        entry_type = entry.get("type")
        if entry_type not in ("user", "assistant"):
            return None
        message = entry.get("message")
        if not isinstance(message, dict):
            return None
        return entry_type, message.get("content")

    def tool_call_of(self, block: dict[str, Any]) -> ToolInvocation | None:
        name = block.get("name")
        if block.get("type") == "tool_use" and isinstance(name, str) and name:
            return ToolInvocation(name, block.get("input"))
        return None

    def session_name_of(self, entry: dict[str, Any]) -> str | None:
        slug = entry.get("slug")
        if entry.get("type") == "progress" and isinstance(slug, str):
            return slug
        return None


__all__ = ["ClaudeCodeNormalizer"]
