"""Tests for the trailmark command line."""

import io
import json

import pytest

from trailmark.cli import build_parser, main
from trailmark.identity import derive_session_id
from trailmark.ledger import SessionLedger


@pytest.fixture
def repo(git_repo, monkeypatch):
    monkeypatch.chdir(git_repo.path)
    for name in ("TRAILMARK_WORKER_URL", "TRAILMARK_TOKEN", "TRAILMARK_DEBUG"):
        monkeypatch.delenv(name, raising=False)
    return git_repo


def read_ledger(repo):
    return SessionLedger(repo.path / ".trailmark" / "pending.json").read()


class TestParser:
    def test_session_start_arguments(self):
        args = build_parser().parse_args(
            ["session", "start", "--agent", "pi", "--data", "/tmp/a.jsonl"]
        )
        assert args.agent == "pi"
        assert args.agent_version == "unknown"

    def test_push_is_sync(self):
        assert build_parser().parse_args(["push"]).func is build_parser().parse_args(["sync"]).func


class TestCommands:
    def test_session_start_prints_id(self, repo, capsys):
        assert main(["session", "start", "--agent", "pi", "--data", "/tmp/a.jsonl"]) == 0
        assert capsys.readouterr().out == derive_session_id("/tmp/a.jsonl")
        assert len(read_ledger(repo)) == 1

    def test_capture_uses_head(self, repo):
        main(["session", "start", "--agent", "pi", "--data", "/tmp/a.jsonl"])
        assert main(["capture"]) == 0
        assert read_ledger(repo)[0].commits == [repo.git("rev-parse", "HEAD")]

    def test_end_and_clear(self, repo):
        session_id = derive_session_id("/tmp/a.jsonl")
        main(["session", "start", "--agent", "pi", "--data", "/tmp/a.jsonl"])
        main(["session", "end", "--id", session_id])
        assert read_ledger(repo)[0].status == "ended"

        assert main(["clear", "--id", session_id]) == 0
        assert read_ledger(repo) == []

    def test_switch_prints_new_id(self, repo, capsys):
        main(["session", "start", "--agent", "pi", "--data", "/tmp/a.jsonl"])
        capsys.readouterr()
        main(["session", "switch", "--id", derive_session_id("/tmp/a.jsonl"),
              "--agent", "pi", "--data", "/tmp/b.jsonl"])
        assert capsys.readouterr().out == derive_session_id("/tmp/b.jsonl")

    def test_status(self, repo, capsys):
        main(["session", "start", "--agent", "pi", "--data", "/tmp/a.jsonl"])
        assert main(["status"]) == 0
        out = capsys.readouterr().out
        assert "total:   1" in out
        assert "open:    1" in out

    def test_hook_failure_exits_zero(self, repo, capsys):
        """A corrupt ledger never blocks a commit."""
        ledger_dir = repo.path / ".trailmark"
        ledger_dir.mkdir()
        (ledger_dir / "pending.json").write_text("garbage")

        assert main(["capture"]) == 0
        assert "Warning:" in capsys.readouterr().err

    def test_manual_command_failure_exits_nonzero(self, repo):
        ledger_dir = repo.path / ".trailmark"
        ledger_dir.mkdir()
        (ledger_dir / "pending.json").write_text("garbage")

        assert main(["status"]) == 1

    def test_sync_unconfigured_exits_zero(self, repo, capsys):
        assert main(["sync"]) == 0
        assert "Not configured" in capsys.readouterr().err

    def test_outside_repository_exits_zero_for_hooks(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert main(["capture"]) == 0

    def test_claude_code_hook_from_stdin(self, repo, monkeypatch):
        monkeypatch.setattr("trailmark.hooks.detect_claude_version", lambda: "unknown")
        payload = json.dumps({
            "hook_event_name": "SessionStart",
            "session_id": "claude-abc",
            "source": "startup",
            "transcript_path": "/t/abc.jsonl",
        })
        monkeypatch.setattr("sys.stdin", io.StringIO(payload))

        assert main(["hook", "claude-code"]) == 0
        [session] = read_ledger(repo)
        assert session.agent == "claude-code"
        assert (repo.path / ".trailmark" / "hooks" / "claude-abc.state").exists()

    def test_unexpected_hook_failure_exits_zero(self, repo, monkeypatch, capsys):
        payload = json.dumps({
            "hook_event_name": "SessionStart",
            "session_id": "claude-abc",
            "source": "startup",
            "transcript_path": "/t/abc.jsonl",
        })
        monkeypatch.setattr("sys.stdin", io.StringIO(payload))

        def explode(self, raw):
            raise AttributeError("boom")

        monkeypatch.setattr("trailmark.hooks.ClaudeCodeHook.handle", explode)

        assert main(["hook", "claude-code"]) == 0
        assert "Warning: boom" in capsys.readouterr().err

    def test_unexpected_failure_propagates_for_manual_commands(self, repo, monkeypatch):
        def explode(self):
            raise AttributeError("boom")

        monkeypatch.setattr("trailmark.lifecycle.SessionLifecycle.summary", explode)

        with pytest.raises(AttributeError):
            main(["status"])

    def test_bad_config_type_exits_zero_for_hooks(self, repo, capsys):
        config_dir = repo.path / ".trailmark"
        config_dir.mkdir()
        (config_dir / "config").write_text(json.dumps({"worker_url": 5}))

        assert main(["capture"]) == 0
        assert "worker_url must be a string" in capsys.readouterr().err


class TestLogging:
    def test_hook_success_is_quiet(self, repo, capsys):
        main(["session", "start", "--agent", "pi", "--data", "/tmp/a.jsonl"])
        main(["capture"])
        assert capsys.readouterr().err == ""

    def test_status_commands_log_info(self, repo, capsys):
        assert main(["clear"]) == 0
        assert "Cleared 0 pending session(s)." in capsys.readouterr().err
