"""Guard-and-delegate entry point for clippy.

Outside the controlled environment the wrapper re-runs its own command line
through the make re-entry target and exits with the child's status. Inside
it runs clippy once with the fixed feature set and the caller's arguments.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Sequence

from ..cli.output import render_error
from ..core.context import RunContext
from ..core.logging import log_event
from ..core.repo_root import find_repo_root_or_cwd
from ..errors import ScriptError
from ..exit_codes import ERR_INTERNAL
from ..toolchain import ToolchainInventory
from .clippy import FEATURES, AnalysisTool, CargoClippy
from .config import WrapperConfig
from .reentry import MakeReentry, TaskRunner, needs_reentry, reentry_command_line

WRAPPER_MODULE = "shipctl.analysis.wrapper"


def self_command_line(argv0: str, module: str, args: Sequence[str]) -> list[str]:
    """Argv that starts this program again from any working directory.

    ``python -m pkg`` and ``python file.py`` leave a non-executable ``.py``
    path in ``argv[0]``; those re-run through the current interpreter.
    """
    if argv0.endswith(".py"):
        return [sys.executable, "-m", module, *args]
    if os.sep in argv0 and not os.path.isabs(argv0):
        # make -C changes directory before the line runs
        argv0 = str(Path(argv0).resolve())
    return [argv0, *args]


def run_wrapper(
    args: Sequence[str],
    *,
    config: WrapperConfig,
    reentry: TaskRunner,
    analysis: AnalysisTool,
    command_line: Sequence[str],
    ctx: RunContext | None = None,
) -> int:
    if needs_reentry(config):
        if ctx is not None:
            log_event(ctx, "debug", "clippy", "outside", command_line=reentry_command_line(command_line))
        return reentry.reenter(reentry_command_line(command_line))
    if ctx is not None:
        log_event(ctx, "debug", "clippy", "inside", args=list(args))
    return analysis.run_analysis(FEATURES, list(args))


def default_collaborators(
    ctx: RunContext,
    config: WrapperConfig,
    toolchain: ToolchainInventory,
) -> tuple[MakeReentry, CargoClippy]:
    # tracing only applies after the re-entry decision
    inside_ctx = ctx.with_tracing() if config.shell_debug else ctx
    reentry = MakeReentry(
        repo_root=ctx.repo_root,
        target=toolchain.reentry_target,
        variable=toolchain.reentry_variable,
        ctx=ctx,
    )
    analysis = CargoClippy(repo_root=ctx.repo_root, ctx=inside_ctx, trace=config.shell_debug)
    return reentry, analysis


def run_clippy_command(ctx: RunContext, args: Sequence[str], command_line: Sequence[str]) -> int:
    config = WrapperConfig.from_env()
    toolchain = ToolchainInventory.load(ctx.repo_root)
    reentry, analysis = default_collaborators(ctx, config, toolchain)
    return run_wrapper(args, config=config, reentry=reentry, analysis=analysis, command_line=command_line, ctx=ctx)


def main(argv: list[str] | None = None, program: str | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        ctx = RunContext.from_args(None, None, repo_root=find_repo_root_or_cwd())
        command_line = self_command_line(program or sys.argv[0], WRAPPER_MODULE, args)
        return run_clippy_command(ctx, args, command_line)
    except ScriptError as exc:
        print(render_error(as_json=False, error=exc), file=sys.stderr)
        return exc.code
    except Exception as exc:  # pragma: no cover
        internal = ScriptError(f"internal error: {exc}", ERR_INTERNAL, kind="internal_error")
        print(render_error(as_json=False, error=internal), file=sys.stderr)
        return ERR_INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
