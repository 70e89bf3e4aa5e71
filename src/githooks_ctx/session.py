"""Session facade wiring every component of one hook invocation together."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

from .blobs import BlobStager
from .cache import SessionCache
from .commits import CommitStore
from .config import ConfigStore
from .errors import HookEnvironmentError, ParseError
from .file_manager import FileManager
from .git import GitRepository
from .groups import GroupResolver
from .models import Commit, RefUpdate
from .refs import AffectedRefTracker, is_ref_enabled
from .runtime import RuntimeDefaults, get_runtime_defaults
from .sink import ErrorSink

logger = logging.getLogger(__name__)

PostHook = Callable[..., Any]
CommitCheck = Callable[["HookSession", Commit, str], bool]


class HookSession:
    """State and services for exactly one hook invocation.

    Build one per process, feed it the affected refs, query it, and close it
    (or use it as a context manager) so staged blobs are removed.
    """

    def __init__(
        self,
        repository: GitRepository | None = None,
        hookname: str | None = None,
        runtime: RuntimeDefaults | None = None,
        env: Mapping[str, str] | None = None,
        config: ConfigStore | None = None,
    ) -> None:
        self.runtime = runtime or get_runtime_defaults(env)
        self._env = os.environ if env is None else env
        self.repository = repository or GitRepository(git_executable=self.runtime.git_executable)
        self.cache = SessionCache()
        self.config = config or ConfigStore(
            self.repository,
            self.cache,
            encoding=self.runtime.config_encoding,
            env=self._env,
        )
        self.config.cache = self.cache
        self.commits = CommitStore(self.repository, self.cache, hookname=hookname)
        self.refs = AffectedRefTracker(self.commits)
        self.files = FileManager(self.repository)
        self.groups = GroupResolver(self.config, self.cache, self.files)
        self.blobs = BlobStager(self.repository, self.cache, tmpdir_parent=self.runtime.tmpdir)
        self.errors = ErrorSink(nocarp=lambda: bool(self.config.get_bool("githooks", "nocarp", False)))
        self._hookname = hookname
        self._authenticated_user: str | None = None
        self._user_resolved = False
        self._input_data: list[Any] = []
        self._post_hooks: list[PostHook] = []
        self._commit_checks: list[CommitCheck] = []

    def __enter__(self) -> HookSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.blobs.cleanup()

    @property
    def hookname(self) -> str | None:
        return self._hookname

    @hookname.setter
    def hookname(self, name: str | None) -> None:
        self._hookname = name
        self.commits.hookname = name

    # Affected refs

    def record_ref_update(self, ref: str, old_commit: str, new_commit: str) -> RefUpdate:
        return self.refs.record_ref_update(ref, old_commit, new_commit)

    def read_ref_updates(self, lines: Iterable[str]) -> list[RefUpdate]:
        """Record ``<old> <new> <ref>`` lines as given to pre/post-receive on stdin."""
        updates: list[RefUpdate] = []
        for line in lines:
            if not line.strip():
                continue
            parts = line.split()
            if len(parts) != 3:
                raise ParseError(
                    f"Invalid ref update line: {line.rstrip()}",
                    "Each line must read '<old-commit> <new-commit> <ref>'.",
                    {"line": line},
                )
            old_commit, new_commit, ref = parts
            updates.append(self.record_ref_update(ref, old_commit, new_commit))
        return updates

    def get_affected_refs(self) -> set[str]:
        return self.refs.list_affected_refs()

    def get_affected_ref_range(self, ref: str) -> tuple[str, str]:
        return self.refs.get_range(ref)

    def get_affected_ref_commits(self, ref: str) -> tuple[Commit, ...]:
        return self.refs.get_commits(ref)

    def get_affected_ref_commit_ids(self, ref: str) -> tuple[str, ...]:
        return self.refs.get_commit_ids(ref)

    def is_ref_enabled(self, ref: str | None, specs: Iterable[str]) -> bool:
        return is_ref_enabled(ref, specs)

    # Authorization

    def set_authenticated_user(self, user: str | None) -> str | None:
        self._authenticated_user = user
        self._user_resolved = True
        return user

    @property
    def authenticated_user(self) -> str | None:
        """The pushing user, from githooks.userenv or GERRIT_USER_EMAIL/USER."""
        if not self._user_resolved:
            userenv = self.config.get_value("githooks", "userenv")
            if userenv:
                if userenv not in self._env:
                    raise HookEnvironmentError(
                        f"option userenv environment variable ({userenv}) is not defined.",
                        "Export the variable in the hook environment or fix githooks.userenv.",
                        {"userenv": userenv},
                    )
                user = self._env[userenv]
            else:
                user = self._env.get("GERRIT_USER_EMAIL") or self._env.get("USER") or None
            self.set_authenticated_user(user)
        return self._authenticated_user

    def match_user(self, spec: str) -> bool:
        return self.groups.match_user(self.authenticated_user, spec)

    def im_admin(self) -> bool:
        return any(self.match_user(spec) for spec in self.config.get("githooks", "admin"))

    def im_memberof(self, user: str, group_name: str) -> bool:
        return self.groups.is_member(user, group_name)

    # Repository content

    def get_commit(self, commit_id: str) -> Commit:
        return self.commits.get_commit(commit_id)

    def get_commits(self, old_commit: str, new_commit: str) -> tuple[Commit, ...]:
        return self.commits.get_commits(old_commit, new_commit)

    def blob(self, rev: str, path: str) -> str:
        return self.blobs.materialize(rev, path)

    def file_size(self, rev: str, path: str) -> int:
        return self.blobs.file_size(rev, path)

    def filter_files_in_index(self, diff_filter: str) -> list[str]:
        return self.files.filter_files_in_index(diff_filter, self.commits.get_head_or_empty_tree())

    def filter_files_in_range(self, diff_filter: str, old_commit: str, new_commit: str) -> list[str]:
        return self.files.filter_files_in_range(diff_filter, old_commit, new_commit)

    def filter_files_in_commit(self, diff_filter: str, commit: str) -> list[str]:
        return self.files.filter_files_in_commit(diff_filter, commit)

    def read_commit_msg_file(self, path: str | Path) -> str:
        return self.files.read_commit_msg_file(Path(path), encoding=self._commit_encoding())

    def write_commit_msg_file(self, path: str | Path, message: str) -> None:
        self.files.write_commit_msg_file(Path(path), message, encoding=self._commit_encoding())

    def _commit_encoding(self) -> str:
        return self.config.get_value("i18n", "commitencoding") or "utf-8"

    # Errors and plugin plumbing

    def error(self, prefix: str, message: str, details: str | None = None) -> bool:
        return self.errors.record(prefix, message, details)

    def get_errors(self) -> list[str]:
        return self.errors.errors

    def push_input_data(self, data: Any) -> None:
        self._input_data.append(data)

    def get_input_data(self) -> list[Any]:
        return list(self._input_data)

    def post_hook(self, callback: PostHook) -> None:
        """Register a callback run after all checks as ``callback(hookname, session, *args)``."""
        self._post_hooks.append(callback)

    def post_hooks(self) -> list[PostHook]:
        return list(self._post_hooks)

    def run_post_hooks(self, *args: Any) -> None:
        for callback in self._post_hooks:
            try:
                callback(self.hookname, self, *args)
            except Exception as exc:  # noqa: BLE001
                logger.exception("post hook %r failed", callback)
                self.error(__name__, f"post hook {getattr(callback, '__name__', callback)!s} failed", str(exc))

    def add_commit_check(self, check: CommitCheck) -> None:
        """Register ``check(session, commit, ref) -> bool`` for every affected commit."""
        self._commit_checks.append(check)

    def run_commit_checks(self) -> bool:
        """Run registered checks over each affected ref's commits; return True when all pass.

        Rejections and exceptions are recorded in the error sink, and the
        remaining commits are still checked.
        """
        ok = True
        for ref in sorted(self.get_affected_refs()):
            for commit in self.get_affected_ref_commits(ref):
                for check in self._commit_checks:
                    name = getattr(check, "__name__", repr(check))
                    try:
                        passed = bool(check(self, commit, ref))
                    except Exception as exc:  # noqa: BLE001
                        logger.exception("commit check %s failed on %s", name, commit.commit)
                        self.error(name, f"check failed on commit {commit.commit} in {ref}", str(exc))
                        passed = False
                    else:
                        if not passed:
                            self.error(name, f"commit {commit.commit} in {ref} was rejected", commit.subject)
                    ok = ok and passed
        return ok
