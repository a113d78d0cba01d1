from __future__ import annotations

import argparse
import json
import shlex
from pathlib import Path

from ..core.context import RunContext
from ..core.fs import ensure_evidence_path
from ..core.logging import log_event
from ..errors import ScriptError
from ..exit_codes import ERR_CONFIG, ERR_USAGE, ERR_VALIDATION
from ..reporting.writer import write_json_report
from ..toolchain import ToolchainInventory
from .builder import MakeReleaseBuild
from .config import BuildConfig
from .contract import check_dockerfile, check_export_dockerfile
from .dockerfile import render_dockerfile
from .exporter import DEFAULT_TAG, DockerExport, DockerImageBuild
from .pipeline import PipelineOutcome, run_image_build, run_pipeline
from .plan import build_plan, runtime_stage


def _config(ns: argparse.Namespace) -> BuildConfig:
    return BuildConfig.resolve(ns.git_hash, ns.fips)


def plan_payload(ctx: RunContext, config: BuildConfig, toolchain: ToolchainInventory) -> dict[str, object]:
    stage = runtime_stage(config, toolchain)
    return {
        "schema_name": "shipctl.image-plan.v1",
        "schema_version": 1,
        "tool": "shipctl",
        "status": "ok",
        "run_id": ctx.run_id,
        "git_hash": config.git_hash,
        "enable_fips": config.enable_fips,
        "toolchain_source": toolchain.source_path,
        "build_stage": {
            "image": toolchain.builder_image,
            "steps": [
                {"name": step.name, "shell": step.shell(), "in_source": step.in_source}
                for step in build_plan(config, toolchain)
            ],
        },
        "runtime_stage": {
            "image": stage.base_image,
            "copies": [{"from": src, "to": dest} for src, dest in stage.copies],
            "packages": list(stage.runtime_packages),
            "ports": list(stage.ports),
            "entrypoint": list(stage.entrypoint),
        },
    }


def _run_plan(ctx: RunContext, ns: argparse.Namespace, toolchain: ToolchainInventory) -> int:
    payload = plan_payload(ctx, _config(ns), toolchain)
    write_json_report(ctx, "image", "plan.json", payload)
    if ctx.as_json or ns.json:
        print(json.dumps(payload, sort_keys=True))
        return 0
    for idx, step in enumerate(payload["build_stage"]["steps"], start=1):  # type: ignore[index]
        print(f"{idx}. {step['name']}: {step['shell']}")
    runtime = payload["runtime_stage"]
    print(f"{len(payload['build_stage']['steps']) + 1}. export: {runtime['image']} ports={runtime['ports']} entrypoint={runtime['entrypoint']}")  # type: ignore[index]
    return 0


def _run_render(ctx: RunContext, ns: argparse.Namespace, toolchain: ToolchainInventory) -> int:
    text = render_dockerfile(_config(ns), toolchain)
    if ns.out_file:
        out = ensure_evidence_path(ctx, Path(ns.out_file))
        out.write_text(text, encoding="utf-8")
        log_event(ctx, "info", "image", "render", out_file=str(out))
        print(str(out))
        return 0
    print(text, end="")
    return 0


def _run_check(ctx: RunContext, ns: argparse.Namespace, toolchain: ToolchainInventory) -> int:
    path = Path(ns.file)
    if not path.is_file():
        raise ScriptError(f"descriptor not found: {path}", ERR_CONFIG)
    text = path.read_text(encoding="utf-8")
    checker = check_export_dockerfile if ns.export else check_dockerfile
    violations = checker(text, toolchain, ns.fips)
    payload = {
        "schema_name": "shipctl.image-check.v1",
        "schema_version": 1,
        "tool": "shipctl",
        "run_id": ctx.run_id,
        "status": "ok" if not violations else "error",
        "file": str(path),
        "enable_fips": ns.fips,
        "violations": violations,
    }
    if ctx.as_json or ns.json:
        print(json.dumps(payload, sort_keys=True))
    elif violations:
        print(f"image contract: fail ({len(violations)} violation(s))")
        for item in violations:
            print(f"- {item}")
    else:
        print("image contract: pass")
    return 0 if not violations else ERR_VALIDATION


def _dirty_message(ctx: RunContext) -> str:
    if ctx.git_changes:
        shown = ", ".join(ctx.git_changes[:5])
        more = f" and {len(ctx.git_changes) - 5} more" if len(ctx.git_changes) > 5 else ""
        state = f"uncommitted changes to {shown}{more}"
    else:
        state = "worktree state could not be read"
    return f"local build checks out the revision with -f ({state}); commit them or pass --discard-local-changes"


def _finish(ctx: RunContext, ns: argparse.Namespace, outcome: PipelineOutcome, lane: str) -> int:
    payload = outcome.payload(ctx, lane)
    report = write_json_report(ctx, "image", "report.json", payload)
    if ctx.as_json or ns.json:
        print(json.dumps({**payload, "report_path": str(report)}, sort_keys=True))
    else:
        print(f"image {lane}: {'pass' if outcome.ok else 'fail'}")
        print(f"report: {report}")
    if outcome.failure is not None:
        raise outcome.failure.to_script_error()
    return 0


def _run_build(ctx: RunContext, ns: argparse.Namespace, toolchain: ToolchainInventory) -> int:
    config = _config(ns)
    if ns.local:
        if ctx.git_dirty and not ns.discard_local_changes:
            raise ScriptError(_dirty_message(ctx), ERR_CONFIG, kind="dirty_worktree")
        builder = MakeReleaseBuild(source_dir=ctx.repo_root, toolchain=toolchain, ctx=ctx)
        if ns.dry_run:
            for _stage, cmd, env in builder.commands(config.git_hash, config.enable_fips):
                prefix = " ".join(f"{k}={v}" for k, v in env.items())
                print(f"{prefix} {shlex.join(cmd)}".strip())
            print("docker build <export context holding tikv-server and tikv-ctl>")
            return 0
        exporter = DockerExport(ctx=ctx, toolchain=toolchain, tag=ns.tag)
        return _finish(ctx, ns, run_pipeline(ctx, config, builder=builder, exporter=exporter), "local")
    context = Path(ns.context).resolve() if ns.context else None
    build = DockerImageBuild(ctx=ctx, toolchain=toolchain, tag=ns.tag, context=context)
    if ns.dry_run:
        print(shlex.join(build.command(config)))
        return 0
    return _finish(ctx, ns, run_image_build(ctx, config, build), "docker")


def run_image_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    toolchain = ToolchainInventory.load(ctx.repo_root)
    if ns.image_cmd == "plan":
        return _run_plan(ctx, ns, toolchain)
    if ns.image_cmd == "render":
        return _run_render(ctx, ns, toolchain)
    if ns.image_cmd == "check":
        return _run_check(ctx, ns, toolchain)
    if ns.image_cmd == "build":
        return _run_build(ctx, ns, toolchain)
    return ERR_USAGE


def _add_build_params(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--git-hash", help="revision to build (default: $GIT_HASH)")
    parser.add_argument(
        "--fips",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="compliance build (default: ENABLE_FIPS=1)",
    )
    parser.add_argument("--json", action="store_true", help="emit JSON output")


def configure_image_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("image", help="runtime image build-and-export pipeline")
    image_sub = p.add_subparsers(dest="image_cmd", required=True)
    plan = image_sub.add_parser("plan", help="print the ordered build and export steps")
    _add_build_params(plan)
    render = image_sub.add_parser("render", help="render the two-stage image descriptor")
    _add_build_params(render)
    render.add_argument("--out-file", help="write under the evidence root instead of stdout")
    check = image_sub.add_parser("check", help="check a descriptor against the image contract")
    check.add_argument("--file", required=True)
    check.add_argument("--fips", action="store_true", help="expect the runtime crypto package")
    check.add_argument("--export", action="store_true", help="descriptor is runtime-only (local export)")
    check.add_argument("--json", action="store_true", help="emit JSON output")
    build = image_sub.add_parser("build", help="build the runtime image")
    _add_build_params(build)
    build.add_argument("--tag", default=DEFAULT_TAG)
    build.add_argument("--context", help="docker build context (default: repo root)")
    build.add_argument("--local", action="store_true", help="compile on this host, then export the two artifacts")
    build.add_argument("--discard-local-changes", action="store_true", help="allow --local on a dirty worktree")
    build.add_argument("--dry-run", action="store_true", help="print resolved commands and exit")
