#!/usr/bin/env python3
"""
trailmark command line.

Usage:
    # From agent plugins (prints the session id on stdout)
    trailmark session start --agent pi --data ~/.pi/sessions/abc.jsonl --agent-version 0.9.1
    trailmark session switch --id <old-id> --agent pi --data <new-file>
    trailmark session end --id <id>

    # From git hooks
    trailmark capture          # post-commit
    trailmark sync             # pre-push

    # Claude Code hook (JSON on stdin)
    trailmark hook claude-code

    # Manual
    trailmark status
    trailmark clear [--id <id>]

Commands run from hooks always exit 0: a tracking failure is printed as a
warning and must never block a commit, a push or an agent.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from . import __version__
from .config import TrailmarkConfig
from .errors import ConfigError, SessionNotFoundError, TrailmarkError
from .git import (
    get_commit_meta,
    get_current_sha,
    get_project_root,
    get_remote_url,
    parse_remote,
)
from .hooks import ClaudeCodeHook
from .ledger import SessionLedger, get_ledger_path
from .lifecycle import SessionLifecycle
from .sync import sync
from .uploader import HttpUploader

logger = logging.getLogger("trailmark")

HOOK_COMMANDS = {"session", "capture", "sync", "push", "hook"}
STATUS_COMMANDS = {"status", "clear"}


class _CliFormatter(logging.Formatter):
    """Plain messages for info, "Warning: ..." / "Error: ..." otherwise."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.ERROR:
            return f"Error: {message}"
        if record.levelno >= logging.WARNING:
            return f"Warning: {message}"
        if record.levelno <= logging.DEBUG:
            return f"{record.name}: {message}"
        return message


def configure_logging(verbose: bool = False, level: int = logging.WARNING) -> None:
    """Send trailmark logs to stderr; stdout stays machine-readable."""
    if verbose or os.getenv("TRAILMARK_DEBUG"):
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_CliFormatter("%(message)s"))
    root = logging.getLogger("trailmark")
    root.handlers[:] = [handler]
    root.setLevel(level)
    root.propagate = False


@dataclass
class Context:
    project_root: Path
    config: TrailmarkConfig
    ledger: SessionLedger
    lifecycle: SessionLifecycle


def load_context(cwd: Path | str | None = None) -> Context:
    """
    Resolve project root, config and ledger for the current repository.

    Raises:
        GitError: Outside a git repository
        ConfigError: On an invalid config value
    """
    project_root = get_project_root(cwd)
    config = TrailmarkConfig.load(project_root)
    ledger = SessionLedger(get_ledger_path(project_root, config.ledger_dirname))
    return Context(project_root, config, ledger, SessionLifecycle(ledger))


# =============================================================================
# Commands
# =============================================================================


def cmd_session_start(ctx: Context, args: argparse.Namespace) -> TrailmarkError | None:
    result = ctx.lifecycle.start(args.agent, args.data, args.agent_version, session_id=args.id)
    if isinstance(result, TrailmarkError):
        return result
    if result is not None:
        # Only the id goes to stdout so adapters can capture it
        sys.stdout.write(result)
        sys.stdout.flush()
        logger.debug("session started for %s", args.agent)
    return None


def cmd_session_end(ctx: Context, args: argparse.Namespace) -> TrailmarkError | None:
    result = ctx.lifecycle.end(args.id)
    if result is None:
        logger.debug("session %s ended", args.id)
    return result


def cmd_session_switch(ctx: Context, args: argparse.Namespace) -> TrailmarkError | None:
    result = ctx.lifecycle.switch(args.id, args.agent, args.data, args.agent_version)
    if isinstance(result, TrailmarkError):
        return result
    if result is not None:
        sys.stdout.write(result)
        sys.stdout.flush()
    return None


def cmd_capture(ctx: Context, args: argparse.Namespace) -> TrailmarkError | None:
    sha = args.sha or get_current_sha(ctx.project_root)
    result = ctx.lifecycle.capture(sha)
    if isinstance(result, TrailmarkError):
        return result
    logger.debug("tagged %d session(s) with %s", result, sha)
    return None


def cmd_clear(ctx: Context, args: argparse.Namespace) -> TrailmarkError | None:
    result = ctx.lifecycle.clear(args.id)
    if isinstance(result, SessionNotFoundError):
        logger.info("Session %s not found in pending queue.", args.id)
        return None
    if isinstance(result, TrailmarkError):
        return result
    if args.id:
        logger.info("Cleared session %s.", args.id)
    else:
        logger.info("Cleared %d pending session(s).", result)
    return None


def cmd_status(ctx: Context, args: argparse.Namespace) -> TrailmarkError | None:
    summary = ctx.lifecycle.summary()
    if isinstance(summary, TrailmarkError):
        return summary

    print("Upload")
    print(f"  worker: {ctx.config.worker_url or 'not configured'}")
    print("")
    print("Sessions")
    if summary.total == 0:
        print("  no pending sessions")
        return None
    print(f"  total:   {summary.total}")
    print(f"  open:    {summary.open}")
    print(f"  ended:   {summary.ended}")
    print(f"  commits: {summary.commits} across {summary.with_commits} session(s)")
    if summary.ready_to_sync:
        print(f"  {summary.ready_to_sync} session(s) ready to sync on next push")
    else:
        print("  no sessions ready to sync")
    return None


def cmd_sync(ctx: Context, args: argparse.Namespace) -> TrailmarkError | None:
    if not ctx.config.is_configured:
        return ConfigError("Not configured. Set worker_url and token in ~/.trailmark/config.")

    remote_url = args.remote_url or get_remote_url(ctx.project_root)
    org, repo = parse_remote(remote_url)

    with HttpUploader(ctx.config.worker_url, ctx.config.token) as uploader:
        report = sync(
            ctx.ledger,
            uploader,
            org,
            repo,
            stale_after=ctx.config.stale_after_minutes * 60,
            commit_lookup=lambda sha: get_commit_meta(sha, cwd=ctx.project_root),
        )
    if isinstance(report, TrailmarkError):
        return report
    if report.uploaded:
        logger.info("Uploaded %d session(s).", len(report.uploaded))
    return None


def cmd_hook(ctx: Context, args: argparse.Namespace) -> TrailmarkError | None:
    raw = sys.stdin.read()
    hook = ClaudeCodeHook(
        ctx.lifecycle,
        state_dir=ctx.project_root / ctx.config.ledger_dirname / "hooks",
    )
    result = hook.handle(raw)
    if isinstance(result, TrailmarkError):
        return result
    return None


# =============================================================================
# Parser
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trailmark",
        description="Link AI agent conversations to the git commits they produced",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    session = sub.add_parser("session", help="Agent session lifecycle")
    session_sub = session.add_subparsers(dest="session_command", required=True)

    start = session_sub.add_parser("start", help="Start tracking a session")
    start.add_argument("--agent", required=True, help="Agent name (claude-code, pi, opencode)")
    start.add_argument("--data", required=True, help="Path to the agent's transcript file")
    start.add_argument("--agent-version", default="unknown", help="Agent version")
    start.add_argument("--id", default=None, help="Use this session id instead of deriving one")
    start.set_defaults(func=cmd_session_start)

    end = session_sub.add_parser("end", help="Mark a session ended")
    end.add_argument("--id", required=True, help="Session id printed by `session start`")
    end.set_defaults(func=cmd_session_end)

    switch = session_sub.add_parser("switch", help="End one session and start another")
    switch.add_argument("--id", default=None, help="Session id to end")
    switch.add_argument("--agent", required=True)
    switch.add_argument("--data", required=True)
    switch.add_argument("--agent-version", default="unknown")
    switch.set_defaults(func=cmd_session_switch)

    capture = sub.add_parser("capture", help="Tag pending sessions with a commit (post-commit hook)")
    capture.add_argument("--sha", default=None, help="Commit SHA (default: HEAD)")
    capture.set_defaults(func=cmd_capture)

    clear = sub.add_parser("clear", help="Remove pending sessions")
    clear.add_argument("--id", default=None, help="Only remove this session")
    clear.set_defaults(func=cmd_clear)

    status = sub.add_parser("status", help="Show pending session counts")
    status.set_defaults(func=cmd_status)

    for name in ("sync", "push"):
        sync_parser = sub.add_parser(name, help="Upload ended sessions (pre-push hook)")
        sync_parser.add_argument("--remote-url", default=None, help="Remote URL for org/repo")
        sync_parser.set_defaults(func=cmd_sync)

    hook = sub.add_parser("hook", help="Agent hook entry points")
    hook_sub = hook.add_subparsers(dest="hook_agent", required=True)
    claude = hook_sub.add_parser("claude-code", help="Claude Code SessionStart/SessionEnd hook")
    claude.set_defaults(func=cmd_hook)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(
        args.verbose,
        logging.INFO if args.command in STATUS_COMMANDS else logging.WARNING,
    )

    exit_code = 0 if args.command in HOOK_COMMANDS else 1
    try:
        ctx = load_context()
        error = args.func(ctx, args)
    except TrailmarkError as e:
        error = e
    except Exception as e:
        # Hooks must never block git or the agent
        if exit_code != 0:
            raise
        logger.debug("unexpected failure in %s", args.command, exc_info=True)
        error = e

    if error is None:
        return 0
    if exit_code == 0:
        logger.warning("%s", error)
    else:
        logger.error("%s", error)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
