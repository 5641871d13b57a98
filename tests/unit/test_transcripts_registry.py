"""Tests for the normalizer registry and cross-format consistency."""

import json

from trailmark.transcripts import (
    ClaudeCodeNormalizer,
    OpenCodeNormalizer,
    PiNormalizer,
    get_normalizer,
)


class TestRegistry:
    def test_known_agents(self):
        assert isinstance(get_normalizer("claude-code"), ClaudeCodeNormalizer)
        assert isinstance(get_normalizer("pi"), PiNormalizer)
        assert isinstance(get_normalizer("opencode"), OpenCodeNormalizer)

    def test_unknown_agent(self):
        assert get_normalizer("cursor") is None


class TestEquivalentInput:
    def test_same_conversation_same_lines(self):
        """One conversation in each format normalizes to identical lines."""
        long_command = "git log --oneline " + "a" * 200
        claude = "\n".join(json.dumps(e) for e in [
            {"type": "user", "message": {"content": [{"type": "text", "text": " ship it "}]}},
            {"type": "assistant", "message": {"content": [
                {"type": "text", "text": "Shipping."},
                {"type": "tool_use", "name": "Bash", "input": {"command": long_command}},
                {"type": "tool_use", "name": "Grep", "input": {"pattern": "TODO"}},
            ]}},
        ])
        pi = "\n".join(json.dumps(e) for e in [
            {"type": "message", "message": {"role": "user", "content": [{"type": "text", "text": " ship it "}]}},
            {"type": "message", "message": {"role": "assistant", "content": [
                {"type": "text", "text": "Shipping."},
                {"type": "toolCall", "name": "Bash", "arguments": {"command": long_command}},
                {"type": "toolCall", "name": "Grep", "arguments": {"pattern": "TODO"}},
            ]}},
        ])
        opencode = json.dumps([
            {"info": {"role": "user"}, "parts": [{"type": "text", "text": " ship it "}]},
            {"info": {"role": "assistant"}, "parts": [
                {"type": "text", "text": "Shipping."},
                {"type": "tool", "tool": "Bash", "state": {"input": {"command": long_command}}},
                {"type": "tool", "tool": "Grep", "state": {"input": {"pattern": "TODO"}}},
            ]},
        ])

        results = [
            list(get_normalizer(agent).extract_lines(raw))
            for agent, raw in (("claude-code", claude), ("pi", pi), ("opencode", opencode))
        ]
        assert results[0] == results[1] == results[2]
        assert results[0][2].text == "Bash " + long_command[:120] + "..."
