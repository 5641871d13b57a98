"""Transcript normalizers, one per supported agent format."""

from .base import (
    Role,
    SearchLine,
    TranscriptNormalizer,
    summarize_tool_input,
)
from .claude_code import ClaudeCodeNormalizer
from .opencode import OpenCodeNormalizer
from .pi import PiNormalizer
from .search_text import SearchTextMetadata, build_search_text

NORMALIZERS: dict[str, TranscriptNormalizer] = {
    "claude-code": ClaudeCodeNormalizer(),
    "pi": PiNormalizer(),
    "opencode": OpenCodeNormalizer(),
}


def get_normalizer(agent: str) -> TranscriptNormalizer | None:
    """Get the normalizer for an agent, or None for an unsupported agent."""
    return NORMALIZERS.get(agent)


__all__ = [
    "NORMALIZERS",
    "ClaudeCodeNormalizer",
    "OpenCodeNormalizer",
    "PiNormalizer",
    "Role",
    "SearchLine",
    "SearchTextMetadata",
    "TranscriptNormalizer",
    "build_search_text",
    "get_normalizer",
    "summarize_tool_input",
]
