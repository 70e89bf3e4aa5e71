"""Project-wide constants for the hook context."""

NULL_COMMIT = "0" * 40
EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

GROUP_PREFIX = "@"
REGEX_PREFIX = "^"
FILE_SOURCE_PREFIX = "file:"

POST_UPDATE_HOOKS = frozenset({"post-receive", "post-update"})

# rev-list prints a "commit <id>" header before each record.
COMMIT_PRETTY_FORMAT = "%H%n%T%n%P%n%aN%n%aE%n%ai%n%cN%n%cE%n%ci%n%s%n%n%b%x00"
COMMIT_RECORD_FIELDS = (
    "header",
    "commit",
    "tree",
    "parents",
    "author_name",
    "author_email",
    "author_date",
    "committer_name",
    "committer_email",
    "committer_date",
    "body",
)

CONFIG_DEFAULTS: dict[tuple[str, str], list[str]] = {
    ("githooks", "externals"): ["1"],
    ("githooks.gerrit", "enabled"): ["1"],
    ("githooks", "abort-commit"): ["1"],
}

CACHE_COMMITS = "commits"
CACHE_RANGES = "ranges"
CACHE_BLOBS = "blob"
CACHE_GITHOOKS = "githooks"

BLOB_CHUNK_SIZE = 64 * 1024
