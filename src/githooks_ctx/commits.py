"""Commit metadata and commit-range queries, memoized per session."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .cache import SessionCache
from .constants import (
    CACHE_COMMITS,
    CACHE_RANGES,
    COMMIT_PRETTY_FORMAT,
    COMMIT_RECORD_FIELDS,
    EMPTY_TREE,
    NULL_COMMIT,
    POST_UPDATE_HOOKS,
)
from .errors import RetrievalError
from .models import Commit

if TYPE_CHECKING:
    from .git import GitRepository

logger = logging.getLogger(__name__)


def parse_commit_records(output: str) -> list[Commit]:
    """Parse rev-list output produced with COMMIT_PRETTY_FORMAT.

    Records are NUL-terminated and each one begins with rev-list's own
    ``commit <id>`` header line.
    """
    commits: list[Commit] = []
    for chunk in output.split("\0"):
        record = chunk.lstrip("\n")
        if not record.strip():
            continue
        parts = record.split("\n", len(COMMIT_RECORD_FIELDS) - 1)
        if len(parts) < len(COMMIT_RECORD_FIELDS):
            raise RetrievalError(
                "Unexpected git rev-list output while parsing commits.",
                "Check the git version; rev-list must support --pretty=format.",
                {"record": record[:200]},
            )
        fields = dict(zip(COMMIT_RECORD_FIELDS, parts))
        subject, _, remainder = fields["body"].partition("\n")
        body = remainder[1:] if remainder.startswith("\n") else remainder
        commits.append(
            Commit(
                commit=fields["commit"],
                tree=fields["tree"],
                parents=tuple(fields["parents"].split()),
                author_name=fields["author_name"],
                author_email=fields["author_email"],
                author_date=fields["author_date"],
                committer_name=fields["committer_name"],
                committer_email=fields["committer_email"],
                committer_date=fields["committer_date"],
                subject=subject,
                body=body.rstrip("\n"),
            )
        )
    return commits


class CommitStore:
    """Fetches commits and commit ranges from the repository.

    Both single commits and ranges are cached by their exact arguments, so a
    repeated query within one hook invocation never reaches git again.
    ``hookname`` tells the range resolution whether refs have already been
    moved (post-receive/post-update) when it runs.
    """

    def __init__(
        self,
        repository: GitRepository,
        cache: SessionCache | None = None,
        hookname: str | None = None,
    ) -> None:
        self.repository = repository
        self.cache = cache or SessionCache()
        self.hookname = hookname

    def get_commit(self, commit_id: str) -> Commit:
        cache = self.cache.cache(CACHE_COMMITS)
        if commit_id not in cache:
            output = self.repository.run(
                "rev-list",
                "--no-walk",
                f"--pretty=format:{COMMIT_PRETTY_FORMAT}",
                "--encoding=UTF-8",
                commit_id,
            )
            commits = parse_commit_records(output)
            if not commits:
                raise RetrievalError(
                    f"Commit {commit_id} not found.",
                    "Check that the revision exists in this repository.",
                    {"commit": commit_id},
                )
            cache[commit_id] = commits[0]
        return cache[commit_id]

    def get_commits(self, old_commit: str, new_commit: str) -> tuple[Commit, ...]:
        """Return commits reachable from new_commit but not from old_commit or any other ref.

        The result is ordered newest first, as git rev-list walks history.
        """
        cache = self.cache.cache(CACHE_RANGES)
        key = f"{old_commit}:{new_commit}"
        if key in cache:
            logger.debug("range %s served from cache", key)
            return cache[key]

        if new_commit == NULL_COMMIT:
            # A deleted ref introduces no commits.
            cache[key] = ()
            return cache[key]

        excludes = self.repository.lines("rev-parse", "--not", "--all")

        if self.hookname in POST_UPDATE_HOOKS:
            # The pushed ref already points at new_commit. Un-exclude it only when
            # that ref is the sole one pointing there; another ref may reach it too.
            pointing_refs = self.repository.lines(
                "for-each-ref",
                "--format=%(refname)",
                "--count=2",
                "--points-at",
                new_commit,
            )
            if len(pointing_refs) == 1:
                excludes = [item for item in excludes if item != f"^{new_commit}"]

        if old_commit != NULL_COMMIT:
            excludes.append(f"^{old_commit}")

        stdin = "".join(f"{item}\n" for item in excludes).encode("utf-8")
        output = self.repository.run(
            "rev-list",
            f"--pretty=format:{COMMIT_PRETTY_FORMAT}",
            "--encoding=UTF-8",
            "--stdin",
            new_commit,
            input=stdin,
        )
        commits = tuple(parse_commit_records(output))
        commit_cache = self.cache.cache(CACHE_COMMITS)
        for commit in commits:
            commit_cache.setdefault(commit.commit, commit)
        cache[key] = commits
        logger.debug("range %s resolved to %d commits", key, len(commits))
        return commits

    def get_commit_msg(self, rev: str) -> str:
        """Return the raw message of a commit, subject line included."""
        output = self.repository.run("rev-list", "--format=%B", "--max-count=1", rev)
        _, _, message = output.partition("\n")
        return message

    def get_sha1(self, rev: str) -> str:
        return self.repository.run("rev-parse", "--verify", rev)

    def get_head_or_empty_tree(self) -> str:
        """HEAD's id, or the empty tree when the current branch has no commits yet."""
        return self.repository.try_run("rev-parse", "--verify", "HEAD") or EMPTY_TREE

    def get_current_branch(self) -> str | None:
        """The ref HEAD points to, or None in detached HEAD state."""
        return self.repository.try_run("symbolic-ref", "HEAD") or None
