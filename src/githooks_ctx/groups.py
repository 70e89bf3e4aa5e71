"""Group specifications and recursive membership checks for access control."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from .cache import SessionCache
from .constants import CACHE_GITHOOKS, FILE_SOURCE_PREFIX, GROUP_PREFIX, REGEX_PREFIX
from .errors import ConfigError, ParseError, UndefinedGroupError
from .file_manager import FileManager
from .models import Group, GroupRef, UserMember

if TYPE_CHECKING:
    from .config import ConfigStore

logger = logging.getLogger(__name__)

GROUP_LINE_PATTERN = re.compile(r"^\s*(\w+)\s*=\s*(.+?)\s*$")

GroupMap = dict[str, Group]


def group_key(name: str) -> str:
    """Normalize a group name to its ``@``-prefixed form."""
    return name if name.startswith(GROUP_PREFIX) else f"{GROUP_PREFIX}{name}"


def parse_group_specs(groups: GroupMap, lines: Iterable[str], source: str) -> GroupMap:
    """Add the groups defined by lines to groups, in order.

    A ``@name`` member must refer to a group defined earlier, either in this
    source or in one processed before it. Groups cannot be redefined.
    """
    for raw_line in lines:
        line = raw_line.split("#", 1)[0]
        if not line.strip():
            continue
        match = GROUP_LINE_PATTERN.match(line)
        if match is None:
            raise ParseError(
                f"invalid line in '{source}': {raw_line.strip()}",
                "Group lines look like: name = user1 user2 @othergroup",
                {"source": source, "line": raw_line},
            )
        name = group_key(match.group(1))
        if name in groups:
            raise ConfigError(
                f"redefinition of group ({match.group(1)}) in '{source}': {raw_line.strip()}",
                "Each group may be defined only once.",
                {"source": source, "group": name},
            )
        members: list[UserMember | GroupRef] = []
        for token in match.group(2).split():
            if token.startswith(GROUP_PREFIX):
                if token not in groups:
                    raise ConfigError(
                        f"unknown group ({token}) cited in '{source}': {raw_line.strip()}",
                        "Define nested groups before the groups that cite them.",
                        {"source": source, "group": name, "member": token},
                    )
                members.append(GroupRef(name=token))
            else:
                members.append(UserMember(name=token))
        groups[name] = Group(name=name, members=tuple(members), source=source)
    return groups


class GroupResolver:
    """Loads group definitions once per session and answers membership queries."""

    def __init__(
        self,
        config: ConfigStore | None = None,
        cache: SessionCache | None = None,
        file_manager: FileManager | None = None,
    ) -> None:
        self.config = config
        self.cache = cache or SessionCache()
        self.file_manager = file_manager or FileManager()

    def load(self, sources: Iterable[str] | None = None) -> GroupMap:
        """Parse group sources; defaults to the githooks.groups option.

        A source of the form ``file:<path>`` is read from disk, anything else
        is inline spec text. The parsed map is memoized for the session.
        """
        store = self.cache.cache(CACHE_GITHOOKS)
        if "groups" in store:
            return store["groups"]

        if sources is None:
            specs = self.config.get("githooks", "groups") if self.config is not None else []
            if not specs:
                raise ConfigError(
                    "you have to define the githooks.groups option to use groups.",
                    "Add group definitions with git config --add githooks.groups '<spec>'.",
                )
        else:
            specs = list(sources)

        groups: GroupMap = {}
        for spec in specs:
            if spec.startswith(FILE_SOURCE_PREFIX):
                path = spec[len(FILE_SOURCE_PREFIX):]
                parse_group_specs(groups, self.file_manager.read_lines(Path(path)), path)
            else:
                parse_group_specs(groups, spec.split("\n"), "githooks.groups")
        logger.debug("loaded %d groups", len(groups))
        store["groups"] = groups
        return groups

    def reset(self) -> None:
        self.cache.cache(CACHE_GITHOOKS).pop("groups", None)

    def is_member(self, user: str, group_name: str) -> bool:
        """Tell whether user belongs to group_name directly or through nested groups."""
        return self._is_member(self.load(), user, group_key(group_name), set())

    def _is_member(self, groups: GroupMap, user: str, name: str, visited: set[str]) -> bool:
        group = groups.get(name)
        if group is None:
            raise UndefinedGroupError(
                f"group {name} is not defined.",
                "Define it in githooks.groups.",
                {"group": name},
            )
        if name in visited:
            return False
        visited.add(name)
        if user in group.users:
            return True
        return any(self._is_member(groups, user, subgroup, visited) for subgroup in group.subgroups)

    def match_user(self, user: str | None, spec: str) -> bool:
        """Match user against a ``^regex``, ``@group`` or literal user spec."""
        if not user:
            return False
        if spec.startswith(REGEX_PREFIX):
            return re.search(spec, user) is not None
        if spec.startswith(GROUP_PREFIX):
            return self.is_member(user, spec)
        return user == spec
