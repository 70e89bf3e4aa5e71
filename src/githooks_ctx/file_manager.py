"""File helpers used by hooks: changed-file filters and commit message files."""

from __future__ import annotations

import re
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING

from .constants import EMPTY_TREE, NULL_COMMIT
from .errors import ConfigError, ErrorCode, HookError

if TYPE_CHECKING:
    from .git import GitRepository

COMMIT_ID_LINE = re.compile(r"^[0-9a-f]{40}$")


class FileManager:
    """Wrapper around text file operations and git's changed-file listings."""

    def __init__(self, repository: GitRepository | None = None) -> None:
        self.repository = repository

    def write_text(self, path: Path, content: str, encoding: str = "utf-8") -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding=encoding)
        except PermissionError as exc:
            raise HookError(
                ErrorCode.PERMISSION_DENIED,
                f"Permission denied while writing {path}",
                "Check directory permissions and try again.",
            ) from exc

    def read_text(self, path: Path, encoding: str = "utf-8") -> str:
        try:
            return path.read_text(encoding=encoding)
        except PermissionError as exc:
            raise HookError(
                ErrorCode.PERMISSION_DENIED,
                f"Permission denied while reading {path}",
                "Check directory permissions and try again.",
            ) from exc

    def read_lines(self, path: Path) -> list[str]:
        """Read a spec file that must exist; used for file-based group definitions."""
        try:
            return self.read_text(path).splitlines()
        except (FileNotFoundError, IsADirectoryError) as exc:
            raise ConfigError(
                f"Can't open groups file ({path})",
                "Check the file: path given in githooks.groups.",
                {"path": str(path)},
            ) from exc

    def read_commit_msg_file(self, path: Path, encoding: str = "utf-8") -> str:
        """Read a commit message file, cleaned the way ``git stripspace -s`` would."""
        message = self.read_text(path, encoding=encoding)
        return strip_commit_message(message)

    def write_commit_msg_file(self, path: Path, message: str, encoding: str = "utf-8") -> None:
        self.write_text(path, message, encoding=encoding)

    def filter_files_in_index(self, diff_filter: str, head: str) -> list[str]:
        """Files staged in the index whose status matches diff_filter (e.g. ``AM``)."""
        output = self._git().run(
            "diff-index",
            "--name-only",
            "--ignore-submodules",
            "--no-commit-id",
            "--cached",
            "-r",
            "-z",
            f"--diff-filter={diff_filter}",
            head,
        )
        return _split_nul(output)

    def filter_files_in_range(self, diff_filter: str, old_commit: str, new_commit: str) -> list[str]:
        if old_commit == NULL_COMMIT:
            old_commit = EMPTY_TREE
        output = self._git().run(
            "diff-tree",
            "--name-only",
            "--ignore-submodules",
            "--no-commit-id",
            "-r",
            "-z",
            f"--diff-filter={diff_filter}",
            old_commit,
            new_commit,
        )
        return _split_nul(output)

    def filter_files_in_commit(self, diff_filter: str, commit: str) -> list[str]:
        """Files matching diff_filter against every parent of commit.

        For merges ``-m`` lists one diff per parent, each introduced by the
        parent's id; a file counts only when it shows up in all of them.
        """
        output = self._git().run(
            "diff-tree",
            "--name-only",
            "--ignore-submodules",
            "-m",
            "-r",
            "-z",
            f"--diff-filter={diff_filter}",
            commit,
        )
        num_parents = 0
        files: Counter[str] = Counter()
        for name in _split_nul(output):
            if COMMIT_ID_LINE.match(name):
                num_parents += 1
            else:
                files[name] += 1
        return [name for name, count in files.items() if count == num_parents]

    def _git(self) -> GitRepository:
        if self.repository is None:
            raise HookError(
                ErrorCode.INTERNAL_ERROR,
                "FileManager has no repository to query.",
                "Create the FileManager through HookSession.",
            )
        return self.repository


def strip_commit_message(message: str) -> str:
    # Drop the diff appended by "git commit --verbose".
    message = re.sub(r"\ndiff --git .*", "", message, flags=re.S)
    message = re.sub(r"^#.*", "", message, flags=re.M)
    message = re.sub(r"[ \t\f]+$", "", message, flags=re.M)
    message = re.sub(r"\n{3,}", "\n\n", message)
    message = message.lstrip("\n")
    message = message.rstrip("\n") + "\n"
    if not message.strip():
        return ""
    return message


def _split_nul(output: str) -> list[str]:
    return [name for name in output.split("\0") if name]
