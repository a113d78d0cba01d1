from __future__ import annotations

import json

from ..toolchain import ToolchainInventory
from .config import BuildConfig
from .plan import BUILDER_STAGE, BuildStep, RuntimeStage, build_plan, runtime_stage

SYNTAX_LINE = "# syntax=docker/dockerfile:1"


def _header(config: BuildConfig) -> list[str]:
    mode = "enabled" if config.enable_fips else "disabled"
    return [SYNTAX_LINE, f"# tikv runtime image: revision {config.git_hash}, fips {mode}"]


def render_builder_stage(steps: list[BuildStep], toolchain: ToolchainInventory) -> list[str]:
    lines = [f"FROM {toolchain.builder_image} AS {BUILDER_STAGE}"]
    source_copied = False
    for step in steps:
        if step.in_source and not source_copied:
            # the build context must carry .git for the checkout step
            lines.append(f"COPY . {toolchain.source_dir}")
            lines.append(f"WORKDIR {toolchain.source_dir}")
            source_copied = True
        lines.append(f"RUN {step.shell()}")
        for key, value in step.exports:
            lines.append(f"ENV {key}={value}")
    return lines


def render_runtime_stage(stage: RuntimeStage) -> list[str]:
    lines = [f"FROM {stage.base_image}"]
    flag = f"--from={stage.copy_from} " if stage.copy_from else ""
    for source, dest in stage.copies:
        lines.append(f"COPY {flag}{source} {dest}")
    install = stage.install_shell()
    if install:
        lines.append(f"RUN {install}")
    lines.append("EXPOSE " + " ".join(str(port) for port in stage.ports))
    lines.append(f"ENTRYPOINT {json.dumps(list(stage.entrypoint))}")
    return lines


def render_dockerfile(config: BuildConfig, toolchain: ToolchainInventory) -> str:
    """Render the two-stage descriptor; output is identical for identical inputs."""
    lines = _header(config)
    lines.extend(render_builder_stage(build_plan(config, toolchain), toolchain))
    lines.append("")
    lines.extend(render_runtime_stage(runtime_stage(config, toolchain)))
    return "\n".join(lines) + "\n"


def render_export_dockerfile(config: BuildConfig, toolchain: ToolchainInventory) -> str:
    """Runtime-only descriptor used when the artifacts were built outside docker."""
    lines = _header(config)
    lines.extend(render_runtime_stage(runtime_stage(config, toolchain, copy_from=None)))
    return "\n".join(lines) + "\n"
