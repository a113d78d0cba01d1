from __future__ import annotations

import socket
from pathlib import Path

import pytest
from hypothesis import settings
from hypothesis.database import DirectoryBasedExampleDatabase

from shipctl.core.context import RunContext
from shipctl.toolchain import ToolchainInventory

_ALLOWED_MARKERS = {"unit", "integration", "slow"}

_ROOT = Path(__file__).resolve().parents[1]
_HYPOTHESIS_DB = _ROOT / "artifacts/shipctl/.hypothesis/examples"
_HYPOTHESIS_DB.parent.mkdir(parents=True, exist_ok=True)
settings.register_profile("shipctl", database=DirectoryBasedExampleDatabase(_HYPOTHESIS_DB))
settings.load_profile("shipctl")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        names = {mark.name for mark in item.iter_markers()}
        if not names.intersection(_ALLOWED_MARKERS):
            item.add_marker("unit")


@pytest.fixture(autouse=True)
def no_network_for_unit(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    if request.node.get_closest_marker("integration") or request.node.get_closest_marker("slow"):
        return

    def _blocked(*_args: object, **_kwargs: object) -> socket.socket:
        raise RuntimeError("network disabled in unit tests")

    def _blocked_connect(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("network disabled in unit tests")

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket.socket, "connect", _blocked_connect)


@pytest.fixture(autouse=True)
def clean_build_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("GIT_HASH", "ENABLE_FIPS", "MAKEFILE_RUN", "SHELL_DEBUG", "RUN_ID", "EVIDENCE_ROOT", "CI"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def minimal_repo_root(tmp_path: Path) -> Path:
    repo = tmp_path / "repo"
    (repo / ".git").mkdir(parents=True)
    (repo / "Cargo.toml").write_text("[workspace]\n", encoding="utf-8")
    (repo / "Makefile").write_text("run:\n\t$(COMMAND)\n", encoding="utf-8")
    (repo / "artifacts/evidence").mkdir(parents=True)
    return repo


@pytest.fixture
def run_ctx(minimal_repo_root: Path) -> RunContext:
    return RunContext(
        run_id="pytest-run",
        repo_root=minimal_repo_root,
        evidence_root=minimal_repo_root / "artifacts/evidence",
        output_format="text",
        verbose=False,
        quiet=True,
        log_json=False,
        git_sha="abc1234",
        git_dirty=False,
    )


@pytest.fixture
def toolchain() -> ToolchainInventory:
    return ToolchainInventory.load()
