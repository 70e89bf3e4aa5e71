"""Runtime configuration helpers."""

from __future__ import annotations

import codecs
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}
LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class RuntimeDefaults:
    """Runtime settings sourced from environment variables."""

    log_level: str
    config_encoding: str
    tmpdir: str
    git_executable: str


def get_runtime_defaults(env: Mapping[str, str] | None = None) -> RuntimeDefaults:
    """Validate and return runtime defaults from environment variables."""
    source = os.environ if env is None else env

    log_level = source.get("GITHOOKS_CTX_LOG_LEVEL", "WARNING").strip().upper() or "WARNING"
    if log_level not in LOG_LEVELS:
        allowed_levels = ", ".join(sorted(LOG_LEVELS))
        raise ValueError(f"GITHOOKS_CTX_LOG_LEVEL must be one of: {allowed_levels}.")

    config_encoding = source.get("GITHOOKS_CTX_CONFIG_ENCODING", "").strip() or "utf-8"
    try:
        codecs.lookup(config_encoding)
    except LookupError as exc:
        raise ValueError(
            f"GITHOOKS_CTX_CONFIG_ENCODING names an unknown encoding: {config_encoding}"
        ) from exc

    tmpdir = source.get("GITHOOKS_CTX_TMPDIR", "").strip()
    if tmpdir:
        tmpdir = _normalize_existing_directory(tmpdir, key="GITHOOKS_CTX_TMPDIR")

    git_executable = source.get("GITHOOKS_CTX_GIT", "").strip() or "git"

    return RuntimeDefaults(
        log_level=log_level,
        config_encoding=config_encoding,
        tmpdir=tmpdir,
        git_executable=git_executable,
    )


def configure_logging(log_level: str) -> None:
    """Install a stderr handler for hook diagnostics."""
    logging.basicConfig(
        level=getattr(logging, log_level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


def parse_git_bool(value: str | None, default: bool | None = None) -> bool | None:
    """Interpret a git config boolean word; an empty value means true."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized == "" or normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ValueError(f"'{value}' is not a boolean value (true/false).")


def _normalize_existing_directory(value: str, key: str) -> str:
    path = Path(value).expanduser()
    if not path.is_absolute():
        raise ValueError(f"{key} must be an absolute path: {value}")
    if not path.is_dir():
        raise ValueError(f"{key} must point to an existing directory: {value}")
    return str(path.resolve(strict=False))
