"""Read-only access to a Git repository through the git command line."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import BinaryIO

from .constants import BLOB_CHUNK_SIZE
from .errors import RetrievalError

logger = logging.getLogger(__name__)


class GitRepository:
    """Runs git subcommands against one repository and reports failures as RetrievalError."""

    def __init__(
        self,
        path: str | Path | None = None,
        git_executable: str = "git",
        env: dict[str, str] | None = None,
    ) -> None:
        self.path = Path(path) if path is not None else None
        self.git_executable = git_executable
        self._env = env

    def _command(self, args: list[str]) -> list[str]:
        command = [self.git_executable]
        if self.path is not None:
            command.extend(["-C", str(self.path)])
        command.extend(args)
        return command

    def run_bytes(self, *args: str, input: bytes | None = None) -> bytes:
        """Run git and return its raw standard output; input is fed to its stdin."""
        command = self._command(list(args))
        logger.debug("git %s", " ".join(args))
        try:
            completed = subprocess.run(
                command,
                check=True,
                capture_output=True,
                input=input,
                env=self._environment(),
            )
        except FileNotFoundError as exc:
            raise RetrievalError(
                f"git executable not found: {self.git_executable}",
                "Install git or set GITHOOKS_CTX_GIT to its location.",
            ) from exc
        except subprocess.CalledProcessError as exc:
            raise _command_error(args, exc) from exc
        return completed.stdout

    def run(self, *args: str, encoding: str = "utf-8", input: bytes | None = None) -> str:
        """Run git and return its output decoded, without the trailing newline."""
        output = self.run_bytes(*args, input=input).decode(encoding, errors="replace")
        return output.rstrip("\n")

    def lines(self, *args: str) -> list[str]:
        output = self.run(*args)
        if not output:
            return []
        return output.split("\n")

    def try_run(self, *args: str) -> str | None:
        """Run git, returning None instead of raising when the command fails."""
        try:
            return self.run(*args)
        except RetrievalError:
            return None

    def stream_to(self, handle: BinaryIO, *args: str) -> int:
        """Copy git's output into handle in fixed-size chunks; return the bytes written."""
        command = self._command(list(args))
        logger.debug("git %s (streamed)", " ".join(args))
        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=self._environment(),
            )
        except FileNotFoundError as exc:
            raise RetrievalError(
                f"git executable not found: {self.git_executable}",
                "Install git or set GITHOOKS_CTX_GIT to its location.",
            ) from exc

        written = 0
        assert process.stdout is not None
        with process.stdout:
            while True:
                chunk = process.stdout.read(BLOB_CHUNK_SIZE)
                if not chunk:
                    break
                handle.write(chunk)
                written += len(chunk)
        stderr = process.stderr.read() if process.stderr is not None else b""
        if process.stderr is not None:
            process.stderr.close()
        returncode = process.wait()
        if returncode:
            raise _command_error(
                args,
                subprocess.CalledProcessError(returncode, command, stderr=stderr),
            )
        return written

    def _environment(self) -> dict[str, str] | None:
        if self._env is None:
            return None
        merged = dict(os.environ)
        merged.update(self._env)
        return merged


def _command_error(args: tuple[str, ...] | list[str], exc: subprocess.CalledProcessError) -> RetrievalError:
    stderr = exc.stderr or b""
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    return RetrievalError(
        f"git {args[0] if args else ''} failed with exit code {exc.returncode}",
        "Check that the repository and the requested revisions exist.",
        {"command": ["git", *args], "stderr": stderr.strip()},
    )
