from __future__ import annotations

import pytest

from githooks_ctx.cache import SessionCache
from githooks_ctx.config import ConfigStore, parse_config_records, split_variable_name
from githooks_ctx.errors import HookEnvironmentError, ParseError


def test_split_variable_name_uses_last_dot_and_lowercases() -> None:
    assert split_variable_name("githooks.checkcommit.Max-Length") == ("githooks.checkcommit", "max-length")
    assert split_variable_name("Core.Bare") == ("core", "bare")


@pytest.mark.parametrize("name", ["nodot", "trailing.", ".leading"])
def test_split_variable_name_rejects_malformed_names(name: str) -> None:
    with pytest.raises(ParseError) as exc_info:
        split_variable_name(name)
    assert exc_info.value.code.value == "PARSE_ERROR"


def test_parse_nul_records_keeps_repeated_values_in_order() -> None:
    raw = "githooks.plugin\nCheckLog\0githooks.plugin\nCheckAcls\0core.bare\nfalse\0githooks.flag\0"
    config = parse_config_records(raw)
    assert config["githooks"]["plugin"] == ["CheckLog", "CheckAcls"]
    assert config["core"]["bare"] == ["false"]
    assert config["githooks"]["flag"] == [""]


def test_parse_nul_records_keeps_newlines_inside_values() -> None:
    raw = "githooks.groups\nadmins = alice\ndevs = bob @admins\0"
    config = parse_config_records(raw)
    assert config["githooks"]["groups"] == ["admins = alice\ndevs = bob @admins"]


def test_parse_text_records() -> None:
    config = parse_config_records("githooks.admin=alice\ngithooks.admin=bob\n\nuser.name=Jo=Doe\n")
    assert config["githooks"]["admin"] == ["alice", "bob"]
    assert config["user"]["name"] == ["Jo=Doe"]


def test_store_get_forms_and_defaults() -> None:
    store = ConfigStore.from_records("githooks.plugin=CheckLog\ngithooks.plugin=CheckFile\n")
    assert store.get("githooks", "plugin") == ["CheckLog", "CheckFile"]
    assert store.get("GitHooks", "PLUGIN") == ["CheckLog", "CheckFile"]
    assert store.get_value("githooks", "plugin") == "CheckFile"
    assert store.get("githooks", "missing") == []
    assert store.get_value("githooks", "missing", "fallback") == "fallback"
    assert store.get("githooks", "externals") == ["1"]
    assert store.get("githooks", "abort-commit") == ["1"]
    assert store.get("githooks.gerrit", "enabled") == ["1"]
    assert "githooks" in store.get()
    assert store.get("nosuchsection") == {}


def test_store_values_are_returned_as_copies() -> None:
    store = ConfigStore.from_records("githooks.admin=alice\n")
    values = store.get("githooks", "admin")
    values.append("mallory")
    assert store.get("githooks", "admin") == ["alice"]


def test_explicit_values_override_defaults() -> None:
    store = ConfigStore.from_records("githooks.externals=0\n")
    assert store.get("githooks", "externals") == ["0"]


def test_get_bool() -> None:
    store = ConfigStore.from_records("githooks.nocarp=yes\ngithooks.off=false\ngithooks.bad=maybe\n")
    assert store.get_bool("githooks", "nocarp") is True
    assert store.get_bool("githooks", "off") is False
    assert store.get_bool("githooks", "absent", False) is False
    with pytest.raises(ParseError):
        store.get_bool("githooks", "bad")


def test_has_add_and_set_default() -> None:
    store = ConfigStore.from_records("githooks.admin=alice\n")
    assert store.has("githooks", "admin")
    assert not store.has("githooks", "userenv")

    store.add("githooks", "admin", "bob")
    assert store.get("githooks", "admin") == ["alice", "bob"]
    assert store.get_value("githooks", "admin") == "bob"

    store.set_default("githooks", "admin", ["carol"])
    store.set_default("githooks", "userenv", ["GL_USER"])
    assert store.get("githooks", "admin") == ["alice", "bob"]
    assert store.get("githooks", "userenv") == ["GL_USER"]


def test_load_is_memoized_in_session_cache(fake_git) -> None:
    git = fake_git({("config", "--null", "--list"): b"githooks.plugin\nCheckLog\0"})
    cache = SessionCache()
    store = ConfigStore(git, cache, env={"HOME": "/home/hooks"})

    assert store.get("githooks", "plugin") == ["CheckLog"]
    assert store.get("githooks", "plugin") == ["CheckLog"]
    assert git.calls == [("config", "--null", "--list")]
    assert "config" in cache.cache("githooks")


def test_load_requires_home(fake_git) -> None:
    git = fake_git({("config", "--null", "--list"): b""})
    store = ConfigStore(git, env={})
    with pytest.raises(HookEnvironmentError) as exc_info:
        store.get()
    assert "HOME" in exc_info.value.message
    assert git.calls == []


def test_empty_home_is_accepted(fake_git) -> None:
    git = fake_git({("config", "--null", "--list"): b""})
    store = ConfigStore(git, env={"HOME": ""})
    assert store.get("githooks", "externals") == ["1"]


def test_load_decodes_with_configured_encoding(fake_git) -> None:
    git = fake_git({("config", "--null", "--list"): "user.name\nJosé\0".encode("latin-1")})
    store = ConfigStore(git, encoding="latin-1", env={"HOME": "/h"})
    assert store.get_value("user", "name") == "José"
