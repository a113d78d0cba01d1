from __future__ import annotations

import os
import shlex
import sys
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from hypothesis import given
from hypothesis import strategies as st

from helpers import write_tool
from shipctl.analysis.clippy import FEATURES, AnalysisInvocation, CargoClippy
from shipctl.analysis.config import WrapperConfig
from shipctl.analysis.wrapper import default_collaborators, run_wrapper, self_command_line
from shipctl.core.context import RunContext
from shipctl.toolchain import ToolchainInventory

ARGS = st.lists(st.text(min_size=1, max_size=8), max_size=5)


@dataclass
class FakeReentry:
    code: int = 0
    calls: list[str] = field(default_factory=list)

    def reenter(self, command_line: str) -> int:
        self.calls.append(command_line)
        return self.code


@dataclass
class FakeAnalysis:
    code: int = 0
    calls: list[tuple[str, list[str]]] = field(default_factory=list)

    def run_analysis(self, features: str, args) -> int:  # noqa: ANN001
        self.calls.append((features, list(args)))
        return self.code


def test_outside_reenters_once_with_full_command_line() -> None:
    reentry, analysis = FakeReentry(code=3), FakeAnalysis()
    code = run_wrapper(
        ["--foo", "bar baz"],
        config=WrapperConfig(),
        reentry=reentry,
        analysis=analysis,
        command_line=["scripts/clippy", "--foo", "bar baz"],
    )
    assert code == 3
    assert reentry.calls == ["scripts/clippy --foo 'bar baz'"]
    assert analysis.calls == []


def test_inside_runs_analysis_once_with_fixed_features() -> None:
    reentry, analysis = FakeReentry(), FakeAnalysis(code=101)
    code = run_wrapper(
        ["--foo", "bar"],
        config=WrapperConfig(makefile_run="1"),
        reentry=reentry,
        analysis=analysis,
        command_line=["scripts/clippy", "--foo", "bar"],
    )
    assert code == 101
    assert reentry.calls == []
    assert analysis.calls == [(FEATURES, ["--foo", "bar"])]


@given(ARGS, st.integers(min_value=0, max_value=255))
def test_inside_never_reenters(args: list[str], status: int) -> None:
    reentry, analysis = FakeReentry(), FakeAnalysis(code=status)
    code = run_wrapper(args, config=WrapperConfig(makefile_run="1"), reentry=reentry, analysis=analysis, command_line=["w", *args])
    assert code == status
    assert reentry.calls == []
    assert analysis.calls == [(FEATURES, args)]


@given(ARGS)
def test_outside_then_inside_runs_analysis_exactly_once(args: list[str]) -> None:
    analysis = FakeAnalysis()

    @dataclass
    class Nested:
        calls: int = 0

        def reenter(self, command_line: str) -> int:
            self.calls += 1
            forwarded = shlex.split(command_line)[1:]
            return run_wrapper(
                forwarded,
                config=WrapperConfig(makefile_run="1"),
                reentry=self,
                analysis=analysis,
                command_line=shlex.split(command_line),
            )

    nested = Nested()
    run_wrapper(args, config=WrapperConfig(), reentry=nested, analysis=analysis, command_line=["w", *args])
    assert nested.calls == 1
    assert analysis.calls == [(FEATURES, args)]


def test_invocation_argv_keeps_caller_arguments_last() -> None:
    argv = AnalysisInvocation(args=("--foo", "bar")).argv()
    assert argv == ["cargo", "clippy", "--all-targets", "--features", "testexport failpoints", "--foo", "bar"]


def _fake_cargo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, body: str) -> Path:
    record = tmp_path / "cargo.log"
    write_tool(tmp_path / "bin", "cargo", f'printf "%s\\n" "$@" > {record}\n{body}')
    monkeypatch.setenv("PATH", f"{tmp_path / 'bin'}{os.pathsep}{os.environ.get('PATH', '')}")
    return record


def test_cargo_clippy_passes_status_through(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    record = _fake_cargo(tmp_path, monkeypatch, "exit 101\n")
    assert CargoClippy(repo_root=tmp_path).run_analysis(FEATURES, ["-D", "warnings"]) == 101
    assert record.read_text(encoding="utf-8").splitlines() == [
        "clippy",
        "--all-targets",
        "--features",
        "testexport failpoints",
        "-D",
        "warnings",
    ]


def test_cargo_clippy_reports_signal_death_like_a_shell(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _fake_cargo(tmp_path, monkeypatch, "kill -TERM $$\n")
    assert CargoClippy(repo_root=tmp_path).run_analysis(FEATURES, []) == 143


def test_cargo_clippy_trace_echoes_command(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _fake_cargo(tmp_path, monkeypatch, "exit 0\n")
    CargoClippy(repo_root=tmp_path, trace=True).run_analysis(FEATURES, [])
    assert capsys.readouterr().err.startswith("+ cargo clippy --all-targets --features 'testexport failpoints'")


def test_debug_toggle_traces_only_the_analysis(run_ctx: RunContext, toolchain: ToolchainInventory) -> None:
    reentry, analysis = default_collaborators(run_ctx, WrapperConfig(shell_debug=True), toolchain)
    assert analysis.trace is True
    assert reentry.trace is False
    assert reentry.target == "run"
    assert reentry.variable == "COMMAND"


def test_cargo_clippy_without_cargo_reports_command_not_found(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("PATH", str(tmp_path / "empty"))
    assert CargoClippy(repo_root=tmp_path).run_analysis(FEATURES, []) == 127
    assert "cargo: command not found" in capsys.readouterr().err


@pytest.mark.parametrize("argv0", ["/venv/lib/shipctl/cli/__main__.py", "src/shipctl/analysis/wrapper.py"])
def test_self_command_line_reruns_python_entry_through_interpreter(argv0: str) -> None:
    assert self_command_line(argv0, "shipctl.cli", ["clippy", "-x"]) == [sys.executable, "-m", "shipctl.cli", "clippy", "-x"]


def test_self_command_line_keeps_console_scripts(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    assert self_command_line("shipctl-clippy", "m", ["-x"]) == ["shipctl-clippy", "-x"]
    assert self_command_line("/usr/bin/shipctl", "m", []) == ["/usr/bin/shipctl"]
    monkeypatch.chdir(tmp_path)
    assert self_command_line("bin/shipctl", "m", []) == [str(tmp_path / "bin" / "shipctl")]
