from __future__ import annotations

import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol

from ..core.context import RunContext
from ..core.env import child_env
from ..core.process import CommandResult, run_command
from ..core.result import Err, Ok, Result
from ..exit_codes import ERR_ARTIFACT
from ..toolchain import ToolchainInventory
from .artifacts import ArtifactPaths
from .config import BuildConfig
from .errors import BuildError
from .plan import build_plan

STAGE_VERIFY = "verify-artifacts"

CommandRunner = Callable[..., CommandResult]


class ReleaseBuilder(Protocol):
    def run_build(self, revision: str, enable_fips: bool) -> Result[ArtifactPaths, BuildError]: ...


@dataclass
class MakeReleaseBuild:
    """Pin the checkout and run the release target in a local source tree."""

    source_dir: Path
    toolchain: ToolchainInventory
    ctx: RunContext | None = None
    runner: CommandRunner = run_command

    def commands(self, revision: str, enable_fips: bool) -> list[tuple[str, list[str], dict[str, str]]]:
        config = BuildConfig.from_args(revision, enable_fips)
        rows: list[tuple[str, list[str], dict[str, str]]] = []
        for step in build_plan(config, self.toolchain):
            if not step.in_source:
                continue
            for cmd in step.argv():
                rows.append((step.name, cmd, dict(step.env)))
        return rows

    def run_build(self, revision: str, enable_fips: bool) -> Result[ArtifactPaths, BuildError]:
        for stage, cmd, overrides in self.commands(revision, enable_fips):
            result = self.runner(cmd, self.source_dir, env=child_env(overrides), capture=False, ctx=self.ctx)
            if result.code != 0:
                return Err(BuildError(stage, f"`{shlex.join(cmd)}` exited with {result.code}", result.code, result.stderr))
        paths = ArtifactPaths.under(self.source_dir)
        missing = paths.missing()
        if missing:
            listed = ", ".join(str(path) for path in missing)
            return Err(BuildError(STAGE_VERIFY, f"release target did not produce: {listed}", ERR_ARTIFACT))
        return Ok(paths)
