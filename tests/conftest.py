"""Shared fixtures: a scripted git double and real throwaway repositories."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Any, BinaryIO

import pytest

from githooks_ctx.errors import RetrievalError


class FakeGit:
    """Answers git invocations from a table keyed by argument tuple and records every call."""

    def __init__(self, responses: dict[tuple[str, ...], Any] | None = None) -> None:
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, ...]] = []
        self.inputs: list[bytes | None] = []

    def _answer(self, args: tuple[str, ...]) -> Any:
        self.calls.append(args)
        if args not in self.responses:
            raise RetrievalError(f"unexpected git call: {' '.join(args)}", details={"command": list(args)})
        value = self.responses[args]
        if isinstance(value, Exception):
            raise value
        return value

    def run_bytes(self, *args: str, input: bytes | None = None) -> bytes:
        self.inputs.append(input)
        value = self._answer(args)
        return value if isinstance(value, bytes) else str(value).encode("utf-8")

    def run(self, *args: str, encoding: str = "utf-8", input: bytes | None = None) -> str:
        return self.run_bytes(*args, input=input).decode(encoding).rstrip("\n")

    def lines(self, *args: str) -> list[str]:
        output = self.run(*args)
        return output.split("\n") if output else []

    def try_run(self, *args: str) -> str | None:
        try:
            return self.run(*args)
        except RetrievalError:
            return None

    def stream_to(self, handle: BinaryIO, *args: str) -> int:
        value = self.run_bytes(*args)
        handle.write(value)
        return len(value)


@pytest.fixture()
def fake_git() -> type[FakeGit]:
    return FakeGit


class RepoBuilder:
    """Creates commits in a real repository through the git CLI."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def git(self, *args: str) -> str:
        completed = subprocess.run(
            ["git", "-C", str(self.path), *args],
            check=True,
            capture_output=True,
            text=True,
        )
        return completed.stdout.strip()

    def commit(self, message: str, files: dict[str, str] | None = None) -> str:
        for name, content in (files or {}).items():
            target = self.path / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
            self.git("add", name)
        self.git("commit", "-q", "--allow-empty", "-m", message)
        return self.git("rev-parse", "HEAD")


@pytest.fixture()
def git_repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> RepoBuilder:
    if shutil.which("git") is None:
        pytest.skip("git executable not available")

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Ada Author")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "ada@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Carl Committer")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "carl@example.com")
    for variable in ("GIT_DIR", "GIT_WORK_TREE", "GIT_INDEX_FILE"):
        monkeypatch.delenv(variable, raising=False)

    repo_path = tmp_path / "repo"
    repo_path.mkdir()
    builder = RepoBuilder(repo_path)
    builder.git("init", "-q")
    builder.git("symbolic-ref", "HEAD", "refs/heads/main")
    builder.git("config", "commit.gpgsign", "false")
    return builder
