from __future__ import annotations

import shlex
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

from ..core.context import RunContext
from ..core.env import child_env
from ..core.exec import run, shell_status
from ..core.logging import log_event
from ..core.process import COMMAND_NOT_FOUND
from .config import CONTEXT_MARKER, WrapperConfig

MARKER_VALUE = "1"


def needs_reentry(config: WrapperConfig) -> bool:
    """True unless the marker holds a non-blank value.

    Empty or whitespace-only markers count as unset, so the wrapper re-enters
    rather than running outside the controlled environment.
    """
    return not (config.makefile_run or "").strip()


def reentry_command_line(command_line: Sequence[str]) -> str:
    return shlex.join(list(command_line))


class TaskRunner(Protocol):
    def reenter(self, command_line: str) -> int: ...


@dataclass
class MakeReentry:
    """Re-run the original command line through the make re-entry target."""

    repo_root: Path
    target: str
    variable: str
    ctx: RunContext | None = None
    trace: bool = False

    def command(self, command_line: str) -> list[str]:
        return ["make", "-C", str(self.repo_root), self.target, f"{self.variable}={command_line}"]

    def reenter(self, command_line: str) -> int:
        cmd = self.command(command_line)
        if self.trace:
            print(f"+ {shlex.join(cmd)}", file=sys.stderr)
        if self.ctx is not None:
            log_event(self.ctx, "debug", "clippy", "reenter", command=shlex.join(cmd))
        try:
            proc = run(cmd, cwd=self.repo_root, env=child_env({CONTEXT_MARKER: MARKER_VALUE}))
        except FileNotFoundError:
            # same status a shell reports for `exec make`
            print(f"{cmd[0]}: command not found", file=sys.stderr)
            return COMMAND_NOT_FOUND
        return shell_status(proc.returncode)
