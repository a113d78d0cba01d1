from __future__ import annotations

import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .exec import shell_status
from .logging import log_event

if TYPE_CHECKING:
    from .context import RunContext

COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class CommandResult:
    code: int
    stdout: str
    stderr: str
    duration_ms: int

    @property
    def combined_output(self) -> str:
        return (self.stdout + self.stderr).strip()


def run_command(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    capture: bool = True,
    ctx: RunContext | None = None,
) -> CommandResult:
    """Run one command to completion, never retrying.

    With ``capture=False`` the child inherits stdout/stderr so long builds
    stream their progress.
    """
    started = time.monotonic()
    try:
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            env=env,
            text=True,
            capture_output=capture,
            check=False,
        )
        result = CommandResult(
            code=shell_status(proc.returncode),
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    except FileNotFoundError as exc:
        result = CommandResult(
            code=COMMAND_NOT_FOUND,
            stdout="",
            stderr=f"command not found: {exc.filename or cmd[0]}",
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    if ctx is not None:
        log_event(
            ctx,
            "info",
            "process",
            "run-command",
            command=" ".join(cmd),
            cwd=str(cwd),
            code=result.code,
            duration_ms=result.duration_ms,
        )
    return result
