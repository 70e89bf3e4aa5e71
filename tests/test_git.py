from __future__ import annotations

import io
from pathlib import Path

import pytest

from githooks_ctx.errors import RetrievalError
from githooks_ctx.git import GitRepository


def test_run_and_lines_against_real_repository(git_repo) -> None:
    sha = git_repo.commit("first", {"a.txt": "alpha\n"})
    repo = GitRepository(git_repo.path)

    assert repo.run("rev-parse", "HEAD") == sha
    assert repo.lines("for-each-ref", "--format=%(refname)") == ["refs/heads/main"]
    assert set(repo.lines("rev-parse", "--not", "--all")) == {f"^{sha}"}


def test_run_feeds_stdin(git_repo) -> None:
    sha = git_repo.commit("first")
    repo = GitRepository(git_repo.path)
    assert repo.run("rev-list", "--stdin", input=f"{sha}\n".encode()) == sha


def test_failed_command_raises_with_stderr(git_repo) -> None:
    repo = GitRepository(git_repo.path)
    with pytest.raises(RetrievalError) as exc_info:
        repo.run("rev-parse", "--verify", "no-such-ref")
    assert exc_info.value.details["command"][:2] == ["git", "rev-parse"]
    assert exc_info.value.details["stderr"]
    assert repo.try_run("rev-parse", "--verify", "no-such-ref") is None


def test_stream_to_copies_blob_and_reports_failures(git_repo) -> None:
    git_repo.commit("first", {"a.txt": "alpha\n"})
    repo = GitRepository(git_repo.path)

    buffer = io.BytesIO()
    assert repo.stream_to(buffer, "cat-file", "blob", "HEAD:a.txt") == 6
    assert buffer.getvalue() == b"alpha\n"

    with pytest.raises(RetrievalError):
        repo.stream_to(io.BytesIO(), "cat-file", "blob", "HEAD:missing.txt")


def test_missing_executable_is_a_retrieval_error(tmp_path: Path) -> None:
    repo = GitRepository(tmp_path, git_executable=str(tmp_path / "no-git-here"))
    with pytest.raises(RetrievalError, match="not found"):
        repo.run("status")
