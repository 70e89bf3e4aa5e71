"""Staging of historical file content into session-scoped temporary files."""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING
from urllib.parse import quote

from .cache import SessionCache
from .constants import CACHE_BLOBS
from .errors import RetrievalError

if TYPE_CHECKING:
    from .git import GitRepository

logger = logging.getLogger(__name__)


class BlobStager:
    """Copies ``rev:path`` blobs into one temporary directory per session.

    Each (rev, path) pair is read from the repository once; later requests get
    the already staged file.
    """

    def __init__(
        self,
        repository: GitRepository,
        cache: SessionCache | None = None,
        tmpdir_parent: str | None = None,
    ) -> None:
        self.repository = repository
        self.cache = cache or SessionCache()
        self.tmpdir_parent = tmpdir_parent or None

    @property
    def tmpdir(self) -> Path | None:
        return self.cache.cache(CACHE_BLOBS).get("tmpdir")

    def _ensure_tmpdir(self) -> Path:
        store = self.cache.cache(CACHE_BLOBS)
        if "tmpdir" not in store:
            store["tmpdir"] = Path(tempfile.mkdtemp(prefix="githooks-", dir=self.tmpdir_parent))
            logger.debug("staging blobs under %s", store["tmpdir"])
        return store["tmpdir"]

    def materialize(self, rev: str, path: str) -> str:
        """Return a local file holding the content of path at rev."""
        store = self.cache.cache(CACHE_BLOBS)
        key = (rev, path)
        if key in store:
            return str(store[key])

        tmpdir = self._ensure_tmpdir()
        target = self._staging_path(tmpdir, rev, path)
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            with target.open("wb") as handle:
                self.repository.stream_to(handle, "cat-file", "blob", f"{rev}:{path}")
        except RetrievalError as exc:
            target.unlink(missing_ok=True)
            raise RetrievalError(
                f"Can't read blob {rev}:{path}",
                "Check that the file exists in that revision.",
                {"rev": rev, "path": path, **exc.details},
            ) from exc
        store[key] = target
        return str(target)

    def file_size(self, rev: str, path: str) -> int:
        output = self.repository.run("cat-file", "-s", f"{rev}:{path}")
        return int(output.strip())

    def cleanup(self) -> None:
        """Remove every staged file of the session."""
        store = self.cache.cache(CACHE_BLOBS)
        tmpdir = store.get("tmpdir")
        if tmpdir is not None:
            shutil.rmtree(tmpdir, ignore_errors=True)
        store.clear()

    @staticmethod
    def _staging_path(tmpdir: Path, rev: str, path: str) -> Path:
        # Quoted and prefixed so every revision, even "", maps to its own directory level.
        revdir = f"rev-{quote(rev, safe='')}"
        relative = PurePosixPath(revdir, path)
        if relative.is_absolute() or ".." in relative.parts:
            raise RetrievalError(
                f"Refusing to stage blob outside the session directory: {rev}:{path}",
                "Use a path relative to the repository root.",
                {"rev": rev, "path": path},
            )
        return tmpdir.joinpath(*relative.parts)
