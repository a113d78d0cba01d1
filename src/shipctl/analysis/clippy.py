from __future__ import annotations

import shlex
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

from ..core.context import RunContext
from ..core.exec import run, shell_status
from ..core.logging import log_event
from ..core.process import COMMAND_NOT_FOUND

FEATURES = "testexport failpoints"
SCOPE = "--all-targets"


@dataclass(frozen=True)
class AnalysisInvocation:
    args: tuple[str, ...] = ()
    features: str = FEATURES
    scope: str = SCOPE

    def argv(self) -> list[str]:
        return ["cargo", "clippy", self.scope, "--features", self.features, *self.args]


class AnalysisTool(Protocol):
    def run_analysis(self, features: str, args: Sequence[str]) -> int: ...


@dataclass
class CargoClippy:
    repo_root: Path
    ctx: RunContext | None = None
    trace: bool = False

    def run_analysis(self, features: str, args: Sequence[str]) -> int:
        cmd = AnalysisInvocation(args=tuple(args), features=features).argv()
        if self.trace:
            print(f"+ {shlex.join(cmd)}", file=sys.stderr)
        if self.ctx is not None:
            log_event(self.ctx, "debug", "clippy", "run-analysis", command=shlex.join(cmd))
        try:
            proc = run(cmd, cwd=self.repo_root)
        except FileNotFoundError:
            print(f"{cmd[0]}: command not found", file=sys.stderr)
            return COMMAND_NOT_FOUND
        return shell_status(proc.returncode)
