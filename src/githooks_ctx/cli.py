"""Command line interface for inspecting hook context from a shell or hook script."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, TextIO

import yaml
from pydantic import ValidationError

from .config import ConfigStore
from .errors import ErrorCode, HookError
from .file_manager import FileManager
from .git import GitRepository
from .models import Commit
from .runtime import configure_logging, get_runtime_defaults
from .session import HookSession


def _commit_payload(commit: Commit) -> dict[str, Any]:
    return commit.model_dump(mode="json")


def _print_payload(payload: dict[str, Any], output_format: str, stream: TextIO | None = None) -> None:
    stream = stream or sys.stdout
    if output_format == "json":
        print(json.dumps(payload, indent=2), file=stream)
        return
    if output_format == "yaml":
        yaml.safe_dump(payload, stream, sort_keys=False, allow_unicode=False)
        return

    status = payload.get("status", "unknown").upper()
    message = payload.get("message", "")
    print(f"[{status}] {message}", file=stream)

    if payload.get("status") == "error":
        error_code = payload.get("error_code", "")
        suggestion = payload.get("suggestion", "")
        if error_code:
            print(f"error_code: {error_code}", file=stream)
        if suggestion:
            print(f"suggestion: {suggestion}", file=stream)
        return

    for key in ("hookname", "user", "group", "is_member", "path", "size", "value"):
        if key in payload and payload[key] not in ("", None):
            print(f"{key}: {payload[key]}", file=stream)

    if "config" in payload and isinstance(payload["config"], dict):
        for section, options in payload["config"].items():
            if isinstance(options, dict):
                for key, values in options.items():
                    for value in values:
                        print(f"{section}.{key}={value}", file=stream)
            else:
                for value in options:
                    print(f"{section}={value}", file=stream)

    if "values" in payload:
        for value in payload["values"]:
            print(value, file=stream)

    if "files" in payload:
        for name in payload["files"]:
            print(name, file=stream)

    for ref in payload.get("refs", []):
        print(f"{ref['ref']} {ref['old_commit']}..{ref['new_commit']}", file=stream)
        for commit in ref["commits"]:
            print(f"  {commit['commit'][:12]} {commit['subject']}", file=stream)

    for commit in payload.get("commits", []):
        print(f"{commit['commit'][:12]} {commit['subject']}", file=stream)


def _error_payload(exc: Exception) -> dict[str, Any]:
    if isinstance(exc, HookError):
        return exc.to_payload()
    if isinstance(exc, ValidationError):
        return {
            "status": "error",
            "error_code": ErrorCode.INVALID_INPUT.value,
            "message": "Input validation failed",
            "suggestion": "Check command arguments and constraints.",
            "details": {"errors": exc.errors(include_context=False, include_input=False)},
        }
    if isinstance(exc, ValueError):
        return {
            "status": "error",
            "error_code": ErrorCode.INVALID_INPUT.value,
            "message": str(exc),
            "suggestion": "Check the GITHOOKS_CTX_* environment variables.",
            "details": {},
        }
    return {
        "status": "error",
        "error_code": ErrorCode.INTERNAL_ERROR.value,
        "message": str(exc),
        "suggestion": "Retry with GITHOOKS_CTX_LOG_LEVEL=DEBUG and inspect logs.",
        "details": {},
    }


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-C", "--repo", default=None, help="Repository directory (default: current)")
    parser.add_argument(
        "--config-file",
        default=None,
        help="Read configuration from a name=value file instead of git config",
    )
    output = parser.add_mutually_exclusive_group()
    output.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    output.add_argument("--yaml", action="store_true", help="Output YAML")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="githooks-ctx", description="Git hook context inspector")
    subparsers = parser.add_subparsers(dest="command", required=True)

    config = subparsers.add_parser("config", help="Show configuration as seen by hooks")
    config.add_argument("section", nargs="?", help="Config section (e.g. githooks)")
    config.add_argument("key", nargs="?", help="Config key within the section")
    config.add_argument("--last", action="store_true", help="Show only the last value of a key")
    _add_common_options(config)

    commits = subparsers.add_parser("commits", help="List commits introduced by an update")
    commits.add_argument("old_commit", help="Old commit id (40 zeros for a new ref)")
    commits.add_argument("new_commit", help="New commit id (40 zeros for a deleted ref)")
    commits.add_argument("--ref", default="", help="Ref name being updated")
    commits.add_argument("--hook", default=None, help="Hook phase, e.g. pre-receive or post-receive")
    _add_common_options(commits)

    refs = subparsers.add_parser("refs", help="Read '<old> <new> <ref>' lines from stdin and list commits")
    refs.add_argument("--hook", default=None, help="Hook phase, e.g. pre-receive or post-receive")
    _add_common_options(refs)

    member = subparsers.add_parser("member", help="Check group membership")
    member.add_argument("user", help="User identifier")
    member.add_argument("group", help="Group name, with or without '@'")
    member.add_argument(
        "--groups",
        action="append",
        default=None,
        help="Group spec source (inline text or file:<path>); repeatable. Defaults to githooks.groups",
    )
    _add_common_options(member)

    blob = subparsers.add_parser("blob", help="Stage the content of a file at a revision")
    blob.add_argument("rev", help="Revision")
    blob.add_argument("path", help="File path relative to the repository root")
    blob.add_argument("--keep", action="store_true", help="Keep the staged file after exit")
    _add_common_options(blob)

    files = subparsers.add_parser("files", help="List files changed between two commits")
    files.add_argument("diff_filter", help="git --diff-filter letters, e.g. AM")
    files.add_argument("old_commit", help="Old commit id")
    files.add_argument("new_commit", help="New commit id")
    _add_common_options(files)

    return parser


def _run_command(args: argparse.Namespace, session: HookSession) -> dict[str, Any]:
    if args.command == "config":
        if args.section and args.key:
            values = session.config.get(args.section, args.key)
            if args.last:
                return {
                    "status": "success",
                    "message": "Config value retrieved",
                    "value": values[-1] if values else None,
                }
            return {"status": "success", "message": "Config values retrieved", "values": values}
        if args.section:
            return {
                "status": "success",
                "message": "Config section retrieved",
                "config": {args.section.lower(): session.config.get(args.section)},
            }
        return {"status": "success", "message": "Config listed", "config": session.config.get()}

    if args.command == "commits":
        session.hookname = args.hook
        if args.ref:
            session.record_ref_update(args.ref, args.old_commit, args.new_commit)
            commits = session.get_affected_ref_commits(args.ref)
        else:
            commits = session.get_commits(args.old_commit, args.new_commit)
        return {
            "status": "success",
            "message": f"{len(commits)} commit(s) in range",
            "hookname": args.hook,
            "commits": [_commit_payload(commit) for commit in commits],
        }

    if args.command == "refs":
        session.hookname = args.hook
        session.read_ref_updates(sys.stdin)
        refs_payload: list[dict[str, Any]] = []
        for ref in sorted(session.get_affected_refs()):
            old_commit, new_commit = session.get_affected_ref_range(ref)
            refs_payload.append(
                {
                    "ref": ref,
                    "old_commit": old_commit,
                    "new_commit": new_commit,
                    "commits": [_commit_payload(c) for c in session.get_affected_ref_commits(ref)],
                }
            )
        return {
            "status": "success",
            "message": f"{len(refs_payload)} affected ref(s)",
            "hookname": args.hook,
            "refs": refs_payload,
        }

    if args.command == "member":
        if args.groups:
            session.groups.load(args.groups)
        is_member = session.im_memberof(args.user, args.group)
        return {
            "status": "success",
            "message": "Membership checked",
            "user": args.user,
            "group": args.group,
            "is_member": is_member,
        }

    if args.command == "blob":
        path = session.blob(args.rev, args.path)
        return {
            "status": "success",
            "message": f"Staged {args.rev}:{args.path}",
            "path": path,
            "size": session.file_size(args.rev, args.path),
        }

    files = session.filter_files_in_range(args.diff_filter, args.old_commit, args.new_commit)
    return {"status": "success", "message": f"{len(files)} file(s) matched", "files": files}


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    output_format = "json" if args.json else "yaml" if args.yaml else "text"

    session: HookSession | None = None
    try:
        runtime = get_runtime_defaults()
        configure_logging(runtime.log_level)
        config = None
        if args.config_file:
            raw = FileManager().read_text(Path(args.config_file), encoding=runtime.config_encoding)
            config = ConfigStore.from_records(raw)
        session = HookSession(
            repository=GitRepository(args.repo, git_executable=runtime.git_executable),
            runtime=runtime,
            config=config,
        )
        response = _run_command(args, session)
        _print_payload(response, output_format)
        return 0
    except Exception as exc:  # noqa: BLE001
        payload = _error_payload(exc)
        _print_payload(payload, output_format)
        return 1
    finally:
        if session is not None and not getattr(args, "keep", False):
            session.close()


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
