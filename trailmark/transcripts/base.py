"""
Shared rules for turning agent transcripts into search lines.

These are NOT full conversation mappers. They keep what a human would
search for (prompts, replies, which tools touched which files) and drop
thinking blocks, tool output, token metadata, signatures and cache data.

Each agent format subclasses TranscriptNormalizer and only says where
entries, roles, content and tool calls live. Trimming, skipping,
truncation and tool descriptors are decided here so every format
produces identical lines for equivalent input.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any

FIRST_MESSAGE_LIMIT = 200
COMMAND_LIMIT = 120

PATH_KEYS = ("path", "file_path", "filePath", "filename")
COMMAND_KEYS = ("command", "cmd")
QUERY_KEYS = ("query", "search", "pattern")


class Role(str, Enum):
    """Speaker of a search line."""

    HUMAN = "human"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class SearchLine:
    """One normalized, role-tagged line of conversation text."""

    role: Role
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "text": self.text}


@dataclass(frozen=True)
class ToolInvocation:
    """Name and arguments of a tool call block."""

    name: str
    arguments: Any


def _first_present(args: dict[str, Any], keys: tuple[str, ...]) -> Any:
    # First key whose value is not null, even if it is not a string
    for key in keys:
        value = args.get(key)
        if value is not None:
            return value
    return None


def summarize_tool_input(name: str, arguments: Any) -> str:
    """
    Produce a short one-line summary of a tool invocation.

    Prefers a file path, then a command (cut at 120 characters), then a
    search query; falls back to the bare tool name.
    """
    if not isinstance(arguments, dict):
        return name

    path = _first_present(arguments, PATH_KEYS)
    if isinstance(path, str):
        return f"{name} {path}"

    command = _first_present(arguments, COMMAND_KEYS)
    if isinstance(command, str):
        if len(command) > COMMAND_LIMIT:
            command = command[:COMMAND_LIMIT] + "..."
        return f"{name} {command}"

    query = _first_present(arguments, QUERY_KEYS)
    if isinstance(query, str):
        return f"{name} {query}"

    return name


def decode(raw: str | bytes) -> str:
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw


def iter_json_lines(raw: str | bytes) -> Iterator[dict[str, Any]]:
    """
    Parse line-delimited JSON, yielding one dict per valid line.

    Lines that are blank, malformed, or not JSON objects are skipped.
    """
    for line in decode(raw).splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            entry = json.loads(line)
        except (ValueError, RecursionError):
            continue
        if isinstance(entry, dict):
            yield entry


class TranscriptNormalizer(ABC):
    """
    Base class for per-agent transcript normalizers.

    Subclasses provide:
    - iter_entries: how raw text splits into entries
    - message_of: the (role, content) of an entry, or None to drop it
    - tool_call_of: the tool invocation a block represents, if any
    - session_name_of: the user-assigned label an entry carries, if any
    """

    agent: str = ""

    # -------------------------------------------------------------------------
    # Format hooks
    # -------------------------------------------------------------------------

    def iter_entries(self, raw: str | bytes) -> Iterator[dict[str, Any]]:
        return iter_json_lines(raw)

    @abstractmethod
    def message_of(self, entry: dict[str, Any]) -> tuple[str, Any] | None:
        """Return ("user" | "assistant", content) or None to skip the entry."""

    @abstractmethod
    def tool_call_of(self, block: dict[str, Any]) -> ToolInvocation | None:
        """Return the tool invocation for a tool-call block, else None."""

    def session_name_of(self, entry: dict[str, Any]) -> str | None:
        return None

    # -------------------------------------------------------------------------
    # Shared extraction
    # -------------------------------------------------------------------------

    def human_text(self, content: Any) -> str | None:
        """
        Collapse human content to one trimmed string.

        Block lists containing a tool result are tool echoes, not
        something the human typed, and yield nothing.
        """
        if isinstance(content, str):
            return content.strip() or None
        if not isinstance(content, list):
            return None

        blocks = [b for b in content if isinstance(b, dict)]
        if any(b.get("type") == "tool_result" for b in blocks):
            return None

        text = "\n".join(
            b["text"] for b in blocks
            if b.get("type") == "text" and isinstance(b.get("text"), str) and b["text"]
        ).strip()
        return text or None

    def assistant_lines(self, content: Any) -> Iterator[SearchLine]:
        if isinstance(content, str):
            content = [{"type": "text", "text": content}]
        if not isinstance(content, list):
            return

        for block in content:
            if not isinstance(block, dict):
                continue
            if block.get("type") == "text":
                text = block.get("text")
                if isinstance(text, str) and text.strip():
                    yield SearchLine(Role.ASSISTANT, text.strip())
                continue
            call = self.tool_call_of(block)
            if call is not None:
                yield SearchLine(Role.TOOL, summarize_tool_input(call.name, call.arguments))
            # thinking, signatures, tool results: dropped

    def extract_lines(self, raw: str | bytes) -> Iterator[SearchLine]:
        """
        Yield search lines in conversation order.

        A generator: call again with the same input to restart it.
        """
        for entry in self.iter_entries(raw):
            message = self.message_of(entry)
            if message is None:
                continue
            role, content = message
            if role == "user":
                text = self.human_text(content)
                if text:
                    yield SearchLine(Role.HUMAN, text)
            elif role == "assistant":
                yield from self.assistant_lines(content)

    def extract_first_message(self, raw: str | bytes) -> str | None:
        """
        Get the first non-empty human message, cut to 200 characters.

        Returns:
            Prefix of the message text, or None if there is none
        """
        for entry in self.iter_entries(raw):
            message = self.message_of(entry)
            if message is None or message[0] != "user":
                continue
            text = self.human_text(message[1])
            if text:
                return text[:FIRST_MESSAGE_LIMIT]
        return None

    def extract_session_name(self, raw: str | bytes) -> str | None:
        """Get the first user-assigned session label, if the agent stores one."""
        for entry in self.iter_entries(raw):
            name = self.session_name_of(entry)
            if name is not None:
                return name
        return None


__all__ = [
    "FIRST_MESSAGE_LIMIT",
    "COMMAND_LIMIT",
    "Role",
    "SearchLine",
    "ToolInvocation",
    "TranscriptNormalizer",
    "iter_json_lines",
    "summarize_tool_input",
]
