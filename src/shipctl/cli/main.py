from __future__ import annotations

import argparse
import os
import sys

from .. import __version__
from ..analysis.wrapper import run_clippy_command, self_command_line
from ..core.context import RunContext
from ..core.env import getenv
from ..core.exec import check_output
from ..core.logging import log_event
from ..core.repo_root import find_repo_root_or_cwd, try_find_repo_root
from ..errors import ScriptError
from ..exit_codes import ERR_CONFIG, ERR_INTERNAL, ERR_USAGE
from ..image.command import configure_image_parser, run_image_command
from .output import build_base_payload, emit, render_error, resolve_output_format

CLI_MODULE = "shipctl.cli"
PASSTHROUGH_COMMANDS = ("clippy",)
VALUE_FLAGS = ("--run-id", "--evidence-root", "--cwd", "--format")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="shipctl")
    p.add_argument("--version", action="version", version=_version_string())
    p.add_argument("--json", action="store_true", help="emit JSON output")
    p.add_argument("--run-id", help="run identifier for reports")
    p.add_argument("--evidence-root", help="evidence root path")
    p.add_argument("--cwd", help="run command from an explicit repository root")
    p.add_argument("--format", choices=["text", "json"], default=None, help="output format")
    p.add_argument("--log-json", action="store_true", help="emit structured log events as JSON lines")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable verbose diagnostics")
    vg.add_argument("--quiet", action="store_true", help="only emit errors")
    sub = p.add_subparsers(dest="cmd", required=True)

    version_p = sub.add_parser("version", help="print versions and git context")
    version_p.add_argument("--json", action="store_true", help="emit JSON output")
    configure_image_parser(sub)
    sub.add_parser(
        "clippy",
        help="run clippy inside the controlled build environment; all following arguments are forwarded",
        add_help=False,
    )
    return p


def split_passthrough(raw_argv: list[str]) -> tuple[list[str], list[str] | None]:
    """Split ``[globals..., clippy, tail...]`` so the tail is never parsed.

    Returns the argv to parse and the verbatim tail, or ``None`` when the
    subcommand does not forward arguments.
    """
    idx = 0
    while idx < len(raw_argv):
        token = raw_argv[idx]
        if token in VALUE_FLAGS:
            idx += 2
            continue
        if token.startswith("-"):
            idx += 1
            continue
        if token in PASSTHROUGH_COMMANDS:
            return raw_argv[: idx + 1], raw_argv[idx + 1 :]
        return raw_argv, None
    return raw_argv, None


def _version_string() -> str:
    base = f"shipctl {__version__}"
    try:
        repo_root = try_find_repo_root()
        if repo_root is None:
            return f"{base}+unknown"
        sha = check_output(["git", "rev-parse", "--short", "HEAD"], cwd=repo_root).strip()
        if sha:
            return f"{base}+{sha}"
    except Exception:
        pass
    return f"{base}+unknown"


def main(argv: list[str] | None = None, program: str | None = None) -> int:
    raw_argv = list(argv if argv is not None else sys.argv[1:])
    head, tail = split_passthrough(raw_argv)
    p = build_parser()
    ns = p.parse_args(head)
    as_json_flag = "--json" in head
    try:
        if ns.format and as_json_flag and ns.format != "json":
            raise ScriptError("conflicting output flags: use either --format json or --json", ERR_CONFIG)
        if ns.cwd:
            os.chdir(ns.cwd)
        fmt = resolve_output_format(cli_json=as_json_flag, cli_format=ns.format, ci_present=bool(getenv("CI")))
        ctx = RunContext.from_args(
            ns.run_id,
            ns.evidence_root,
            fmt,  # type: ignore[arg-type]
            ns.verbose,
            ns.quiet,
            ns.log_json,
            # the wrapper hands a missing root over to make
            repo_root=find_repo_root_or_cwd() if ns.cmd == "clippy" else None,
        )
        if ns.cmd == "clippy":
            command_line = self_command_line(program or sys.argv[0], CLI_MODULE, raw_argv)
            return run_clippy_command(ctx, tail or [], command_line)
        log_event(ctx, "info", "cli", "start", cmd=ns.cmd, fmt=ctx.output_format)
        if ns.cmd == "version":
            emit({**build_base_payload(ctx), "shipctl_version": __version__}, ctx.as_json or ns.json)
            return 0
        if ns.cmd == "image":
            return run_image_command(ctx, ns)
        return ERR_USAGE
    except ScriptError as exc:
        as_json = as_json_flag or ns.format == "json"
        print(render_error(as_json=as_json, error=exc), file=sys.stderr)
        return exc.code
    except Exception as exc:  # pragma: no cover
        as_json = as_json_flag or ns.format == "json"
        internal = ScriptError(f"internal error: {exc}", ERR_INTERNAL, kind="internal_error")
        print(render_error(as_json=as_json, error=internal), file=sys.stderr)
        return ERR_INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
