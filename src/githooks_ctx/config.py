"""Two-level multi-valued view of git configuration."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import TYPE_CHECKING

from .cache import SessionCache
from .constants import CACHE_GITHOOKS, CONFIG_DEFAULTS
from .errors import HookEnvironmentError, ParseError
from .runtime import parse_git_bool

if TYPE_CHECKING:
    from .git import GitRepository

logger = logging.getLogger(__name__)

ConfigMap = dict[str, dict[str, list[str]]]

HOME_MISSING_SUGGESTION = (
    "Define HOME before running the hook. Set it to an empty string to skip "
    "the global ~/.gitconfig, or point it at the directory holding the .gitconfig "
    "the hook should read (servers like Gerrit often start without HOME)."
)


def split_variable_name(name: str) -> tuple[str, str]:
    """Split ``section.key`` on its last dot, lower-casing both parts."""
    section, dot, key = name.rpartition(".")
    if not dot or not section or not key:
        raise ParseError(
            f"Cannot grok config variable name '{name}'.",
            "Config variable names must look like section.key.",
            {"variable": name},
        )
    return section.lower(), key.lower()


def parse_config_records(raw: str, config: ConfigMap | None = None) -> ConfigMap:
    """Parse ``git config --null --list`` output, or plain ``name=value`` lines.

    NUL-delimited input holds ``name\\nvalue`` records; a record without a
    newline is a valueless (boolean true) entry and maps to the empty string.
    Repeated names append in order of appearance.
    """
    parsed: ConfigMap = config if config is not None else {}
    if "\0" in raw:
        records = [(name, value) for name, _, value in (r.partition("\n") for r in raw.split("\0") if r)]
    else:
        records = []
        for line in raw.splitlines():
            if not line.strip():
                continue
            name, _, value = line.partition("=")
            records.append((name.strip(), value))

    for name, value in records:
        section, key = split_variable_name(name)
        parsed.setdefault(section, {}).setdefault(key, []).append(value)
    return parsed


class ConfigStore:
    """Lazily loaded configuration, memoized in the session cache.

    Values are always kept as ordered lists. ``get`` returns the list and
    ``get_value`` picks the last (most specific) entry.
    """

    def __init__(
        self,
        repository: GitRepository | None = None,
        cache: SessionCache | None = None,
        encoding: str = "utf-8",
        env: Mapping[str, str] | None = None,
        raw: str | None = None,
    ) -> None:
        self.repository = repository
        self.cache = cache or SessionCache()
        self.encoding = encoding
        self._env = env
        self._raw = raw

    @classmethod
    def from_records(cls, raw: str, cache: SessionCache | None = None) -> ConfigStore:
        """Build a store from literal config text instead of the repository."""
        return cls(cache=cache, raw=raw)

    def load(self) -> ConfigMap:
        store = self.cache.cache(CACHE_GITHOOKS)
        if "config" not in store:
            store["config"] = self._read()
        return store["config"]

    def _read(self) -> ConfigMap:
        if self._raw is not None:
            config = parse_config_records(self._raw)
        else:
            source = os.environ if self._env is None else self._env
            if "HOME" not in source:
                raise HookEnvironmentError(
                    "The HOME environment variable is undefined; it is needed to read "
                    "git's global configuration from $HOME/.gitconfig.",
                    HOME_MISSING_SUGGESTION,
                )
            config = {}
            if self.repository is not None:
                output = self.repository.run_bytes("config", "--null", "--list")
                config = parse_config_records(output.decode(self.encoding), config)

        for (section, key), values in CONFIG_DEFAULTS.items():
            config.setdefault(section, {}).setdefault(key, list(values))
        logger.debug("loaded %d config sections", len(config))
        return config

    def get(self, section: str | None = None, key: str | None = None):
        """Return the whole map, one section, or the value list of one key."""
        config = self.load()
        if section is None:
            return config
        section = section.lower()
        if key is None:
            return config.setdefault(section, {})
        return list(config.get(section, {}).get(key.lower(), []))

    def get_value(self, section: str, key: str, default: str | None = None) -> str | None:
        values = self.get(section, key)
        if not values:
            return default
        return values[-1]

    def get_bool(self, section: str, key: str, default: bool | None = None) -> bool | None:
        try:
            return parse_git_bool(self.get_value(section, key), default)
        except ValueError as exc:
            raise ParseError(
                f"Config option {section}.{key} {exc}",
                "Use true/false, yes/no, on/off or 1/0.",
                {"section": section, "key": key},
            ) from exc

    def has(self, section: str, key: str) -> bool:
        return key.lower() in self.load().get(section.lower(), {})

    def add(self, section: str, key: str, value: str) -> None:
        """Append a value; existing values are kept and the new one wins on read."""
        self.load().setdefault(section.lower(), {}).setdefault(key.lower(), []).append(value)

    def set_default(self, section: str, key: str, values: list[str]) -> None:
        """Fill an option only when the configuration does not define it."""
        self.load().setdefault(section.lower(), {}).setdefault(key.lower(), list(values))
