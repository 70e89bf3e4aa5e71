"""Tracking of the references touched by the current hook invocation."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from pydantic import ValidationError

from .commits import CommitStore
from .constants import REGEX_PREFIX
from .errors import NotFoundError, ParseError
from .models import Commit, RefUpdate

logger = logging.getLogger(__name__)


@dataclass
class _TrackedRef:
    update: RefUpdate
    commits: tuple[Commit, ...] | None = None
    commit_ids: tuple[str, ...] | None = None


class AffectedRefTracker:
    """Records one old/new pair per affected ref and resolves it to commits on demand."""

    def __init__(self, commit_store: CommitStore) -> None:
        self.commit_store = commit_store
        self._refs: dict[str, _TrackedRef] = {}

    def record_ref_update(self, ref: str, old_commit: str, new_commit: str) -> RefUpdate:
        """Remember a ref's range; recording the same ref again replaces it."""
        try:
            update = RefUpdate(ref=ref, old_commit=old_commit, new_commit=new_commit)
        except ValidationError as exc:
            raise ParseError(
                f"Invalid ref update for '{ref}': {old_commit} {new_commit}",
                "Commit ids must be 40 lowercase hex digits.",
                {"ref": ref, "old_commit": old_commit, "new_commit": new_commit},
            ) from exc
        self._refs[update.ref] = _TrackedRef(update=update)
        logger.debug("affected ref %s: %s..%s", update.ref, old_commit, new_commit)
        return update

    def list_affected_refs(self) -> set[str]:
        return set(self._refs)

    def _tracked(self, ref: str) -> _TrackedRef:
        tracked = self._refs.get(ref)
        if tracked is None:
            raise NotFoundError(
                f"No such affected ref: {ref}",
                "Only refs recorded for this hook invocation can be queried.",
                {"ref": ref, "affected_refs": sorted(self._refs)},
            )
        return tracked

    def get_ref_update(self, ref: str) -> RefUpdate:
        return self._tracked(ref).update

    def get_range(self, ref: str) -> tuple[str, str]:
        return self._tracked(ref).update.commit_range

    def get_commits(self, ref: str) -> tuple[Commit, ...]:
        tracked = self._tracked(ref)
        if tracked.commits is None:
            tracked.commits = self.commit_store.get_commits(*tracked.update.commit_range)
        return tracked.commits

    def get_commit_ids(self, ref: str) -> tuple[str, ...]:
        tracked = self._tracked(ref)
        if tracked.commit_ids is None:
            tracked.commit_ids = tuple(commit.commit for commit in self.get_commits(ref))
        return tracked.commit_ids


def is_ref_enabled(ref: str | None, specs: Iterable[str]) -> bool:
    """Tell whether ref matches any spec; no ref or no specs enables everything.

    A spec starting with ``^`` is a regular expression (the caret is part of
    it), anything else must equal the full ref name.
    """
    specs = list(specs)
    if ref is None or not specs:
        return True
    for spec in specs:
        if spec.startswith(REGEX_PREFIX):
            if re.search(spec, ref):
                return True
        elif ref == spec:
            return True
    return False
