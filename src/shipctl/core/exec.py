"""Subprocess helpers for tools whose output goes straight to the terminal.

Steps that need captured output and timing go through ``core.process``.
"""

from __future__ import annotations

import subprocess
from pathlib import Path


def run(cmd: list[str], cwd: Path | None = None, env: dict[str, str] | None = None) -> subprocess.CompletedProcess[str]:
    return subprocess.run(cmd, cwd=cwd, env=env, text=True, check=False)


def check_output(cmd: list[str], cwd: Path | None = None) -> str:
    return subprocess.check_output(cmd, cwd=cwd, text=True)


def shell_status(returncode: int) -> int:
    """Report a signal death as a shell would (128 + signum)."""
    if returncode < 0:
        return 128 + (-returncode)
    return returncode


__all__ = ["check_output", "run", "shell_status"]
