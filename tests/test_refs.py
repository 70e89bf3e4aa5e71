from __future__ import annotations

import pytest

from githooks_ctx.constants import NULL_COMMIT
from githooks_ctx.errors import NotFoundError, ParseError
from githooks_ctx.refs import AffectedRefTracker, is_ref_enabled

A = "a" * 40
B = "b" * 40
C = "c" * 40


class _StubCommitStore:
    def __init__(self) -> None:
        self.requests: list[tuple[str, str]] = []

    def get_commits(self, old_commit: str, new_commit: str) -> tuple:
        self.requests.append((old_commit, new_commit))
        return ()


def test_record_and_query_ranges() -> None:
    tracker = AffectedRefTracker(_StubCommitStore())
    update = tracker.record_ref_update("refs/heads/main", A, B)
    tracker.record_ref_update("refs/heads/feature", NULL_COMMIT, C)

    assert update.commit_range == (A, B)
    assert tracker.list_affected_refs() == {"refs/heads/main", "refs/heads/feature"}
    assert tracker.get_range("refs/heads/feature") == (NULL_COMMIT, C)
    assert tracker.get_ref_update("refs/heads/feature").is_creation


def test_recording_a_ref_again_replaces_its_range() -> None:
    tracker = AffectedRefTracker(_StubCommitStore())
    tracker.record_ref_update("refs/heads/main", A, B)
    tracker.record_ref_update("refs/heads/main", B, C)
    assert tracker.get_range("refs/heads/main") == (B, C)
    assert tracker.list_affected_refs() == {"refs/heads/main"}


def test_unknown_ref_raises_not_found() -> None:
    tracker = AffectedRefTracker(_StubCommitStore())
    tracker.record_ref_update("refs/heads/main", A, B)
    with pytest.raises(NotFoundError) as exc_info:
        tracker.get_range("refs/heads/other")
    assert exc_info.value.details["affected_refs"] == ["refs/heads/main"]
    with pytest.raises(NotFoundError):
        tracker.get_commits("refs/heads/other")


def test_invalid_commit_ids_are_parse_errors() -> None:
    tracker = AffectedRefTracker(_StubCommitStore())
    with pytest.raises(ParseError):
        tracker.record_ref_update("refs/heads/main", "not-a-sha", B)


def test_commits_are_resolved_once_per_ref() -> None:
    store = _StubCommitStore()
    tracker = AffectedRefTracker(store)
    tracker.record_ref_update("refs/heads/main", A, B)

    assert tracker.get_commits("refs/heads/main") == ()
    assert tracker.get_commit_ids("refs/heads/main") == ()
    assert tracker.get_commits("refs/heads/main") == ()
    assert store.requests == [(A, B)]


def test_deletion_flags() -> None:
    tracker = AffectedRefTracker(_StubCommitStore())
    update = tracker.record_ref_update("refs/tags/v1", A, NULL_COMMIT)
    assert update.is_deletion
    assert not update.is_creation


@pytest.mark.parametrize(
    ("ref", "specs", "expected"),
    [
        (None, ["refs/heads/main"], True),
        ("refs/heads/main", [], True),
        ("refs/heads/main", ["refs/heads/main"], True),
        ("refs/heads/main", ["main"], False),
        ("refs/heads/release/1.0", ["^refs/heads/release/"], True),
        ("refs/tags/v1", ["^refs/heads/", "refs/tags/v2"], False),
    ],
)
def test_is_ref_enabled(ref, specs, expected) -> None:
    assert is_ref_enabled(ref, specs) is expected
