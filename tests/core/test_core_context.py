from __future__ import annotations

import re
from pathlib import Path

import pytest

from shipctl.core.context import RunContext
from shipctl.core.fs import ensure_evidence_path, run_area_dir
from shipctl.core.repo_root import find_repo_root, try_find_repo_root
from shipctl.errors import ScriptError
from shipctl.exit_codes import ERR_ARTIFACT, ERR_CONFIG


def test_find_repo_root_from_nested_path(minimal_repo_root: Path) -> None:
    nested = minimal_repo_root / "components" / "server" / "src"
    nested.mkdir(parents=True)
    assert find_repo_root(nested) == minimal_repo_root.resolve()


def test_try_find_repo_root_returns_none_outside_repo(tmp_path: Path) -> None:
    assert try_find_repo_root(tmp_path) is None


def test_from_args_defaults(minimal_repo_root: Path) -> None:
    ctx = RunContext.from_args(None, None, repo_root=minimal_repo_root)
    assert re.fullmatch(r"ship-\d{8}-\d{6}-\S+", ctx.run_id)
    assert ctx.evidence_root == (minimal_repo_root / "artifacts" / "evidence").resolve()
    assert ctx.output_format == "text"
    assert not ctx.as_json


def test_from_args_reads_env_and_relative_evidence_root(minimal_repo_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RUN_ID", "ci-42")
    ctx = RunContext.from_args(None, "out/evidence", "json", repo_root=minimal_repo_root)
    assert ctx.run_id == "ci-42"
    assert ctx.evidence_root == (minimal_repo_root / "out" / "evidence").resolve()
    assert ctx.as_json


def test_from_args_outside_repo_is_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    with pytest.raises(ScriptError) as err:
        RunContext.from_args(None, None)
    assert err.value.code == ERR_CONFIG
    assert "--cwd" in str(err.value)


def test_with_tracing_turns_on_verbose(run_ctx: RunContext) -> None:
    traced = run_ctx.with_tracing()
    assert traced.verbose and not traced.quiet
    assert traced.run_id == run_ctx.run_id


def test_evidence_paths_stay_under_root(run_ctx: RunContext, tmp_path: Path) -> None:
    out = ensure_evidence_path(run_ctx, run_ctx.evidence_root / "image" / "x.json")
    assert run_ctx.evidence_root in out.parents
    with pytest.raises(ScriptError) as err:
        ensure_evidence_path(run_ctx, tmp_path / "elsewhere.json")
    assert err.value.code == ERR_ARTIFACT
    assert err.value.kind == "forbidden_write_path"


def test_run_area_dir_is_scoped_by_run_id(run_ctx: RunContext) -> None:
    area = run_area_dir(run_ctx, "image")
    assert area == run_ctx.evidence_root / "image" / "pytest-run"
    assert area.is_dir()
