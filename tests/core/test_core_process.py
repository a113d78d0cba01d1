from __future__ import annotations

from pathlib import Path

from helpers import write_tool
from shipctl.core.exec import shell_status
from shipctl.core.process import COMMAND_NOT_FOUND, run_command


def test_run_command_captures_output_and_duration(tmp_path: Path) -> None:
    script = write_tool(tmp_path, "echo.sh", "echo out\necho err >&2\n")
    res = run_command([str(script)], tmp_path)
    assert res.code == 0
    assert res.stdout == "out\n"
    assert res.stderr == "err\n"
    assert res.combined_output == "out\nerr"
    assert res.duration_ms >= 0


def test_run_command_preserves_exit_status_verbatim(tmp_path: Path) -> None:
    script = write_tool(tmp_path, "fail.sh", "exit 201\n")
    assert run_command([str(script)], tmp_path).code == 201


def test_run_command_reports_signal_death_like_a_shell(tmp_path: Path) -> None:
    script = write_tool(tmp_path, "die.sh", "kill -TERM $$\n")
    assert run_command([str(script)], tmp_path).code == 143


def test_run_command_reports_missing_binary(tmp_path: Path) -> None:
    res = run_command(["definitely-not-a-shipctl-tool"], tmp_path)
    assert res.code == COMMAND_NOT_FOUND
    assert "command not found" in res.stderr


def test_run_command_passes_env(tmp_path: Path) -> None:
    script = write_tool(tmp_path, "env.sh", 'echo "$ENABLE_FIPS"\n')
    res = run_command([str(script)], tmp_path, env={"ENABLE_FIPS": "1", "PATH": "/usr/bin:/bin"})
    assert res.stdout.strip() == "1"


def test_shell_status_maps_only_negative_codes() -> None:
    assert shell_status(0) == 0
    assert shell_status(255) == 255
    assert shell_status(-9) == 137
