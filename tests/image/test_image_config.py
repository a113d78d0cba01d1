from __future__ import annotations

import pytest

from shipctl.errors import ScriptError
from shipctl.exit_codes import ERR_CONFIG
from shipctl.image.config import BuildConfig


def test_from_env_defaults_to_non_fips() -> None:
    cfg = BuildConfig.from_env({"GIT_HASH": "abc123"})
    assert cfg == BuildConfig(git_hash="abc123", enable_fips=False)
    assert cfg.fips_flag == "0"


@pytest.mark.parametrize(("raw", "expected"), [("1", True), ("0", False), ("true", False), ("", False), (" 1", False)])
def test_only_literal_one_enables_fips(raw: str, expected: bool) -> None:
    assert BuildConfig.from_env({"GIT_HASH": "abc123", "ENABLE_FIPS": raw}).enable_fips is expected


def test_from_env_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GIT_HASH", "deadbeef")
    monkeypatch.setenv("ENABLE_FIPS", "1")
    cfg = BuildConfig.from_env()
    assert cfg.git_hash == "deadbeef"
    assert cfg.enable_fips
    assert cfg.fips_flag == "1"


def test_missing_revision_is_config_error() -> None:
    with pytest.raises(ScriptError) as err:
        BuildConfig.from_env({"ENABLE_FIPS": "1"})
    assert err.value.code == ERR_CONFIG
    assert "GIT_HASH is required" in str(err.value)


@pytest.mark.parametrize("revision", ["abc 123", "abc\n123", "--upload-pack=evil", "\t"])
def test_unusable_revisions_are_rejected(revision: str) -> None:
    with pytest.raises(ScriptError) as err:
        BuildConfig.from_args(revision, False)
    assert err.value.code == ERR_CONFIG


def test_resolve_prefers_flags_over_env() -> None:
    env = {"GIT_HASH": "fromenv", "ENABLE_FIPS": "1"}
    assert BuildConfig.resolve("fromflag", None, env) == BuildConfig("fromflag", True)
    assert BuildConfig.resolve(None, None, env) == BuildConfig("fromenv", True)
    assert BuildConfig.resolve(None, None, {"GIT_HASH": "x", "ENABLE_FIPS": "yes"}) == BuildConfig("x", False)
    assert BuildConfig.resolve(None, True, {"GIT_HASH": "x"}) == BuildConfig("x", True)


def test_explicit_no_fips_overrides_env() -> None:
    env = {"GIT_HASH": "fromenv", "ENABLE_FIPS": "1"}
    assert BuildConfig.resolve(None, False, env) == BuildConfig("fromenv", False)
