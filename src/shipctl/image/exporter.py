from __future__ import annotations

import shlex
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from ..core.context import RunContext
from ..core.env import child_env
from ..core.fs import run_area_dir
from ..core.process import run_command
from ..core.result import Err, Ok, Result
from ..exit_codes import ERR_VALIDATION
from ..toolchain import ToolchainInventory
from .artifacts import ArtifactPaths
from .builder import CommandRunner
from .config import BuildConfig
from .contract import check_dockerfile, check_export_dockerfile
from .dockerfile import render_dockerfile, render_export_dockerfile
from .errors import BuildError

DEFAULT_TAG = "tikv:local"
STAGE_DESCRIPTOR = "check-descriptor"
STAGE_EXPORT = "export"
STAGE_DOCKER = "docker-build"


class ImageExporter(Protocol):
    def export(self, artifacts: ArtifactPaths, config: BuildConfig) -> Result[str, BuildError]: ...


def docker_build_command(dockerfile: Path, tag: str, context: Path, config: BuildConfig) -> list[str]:
    return [
        "docker",
        "build",
        "--pull=false",
        "-f",
        str(dockerfile),
        "-t",
        tag,
        "--label",
        f"org.opencontainers.image.revision={config.git_hash}",
        str(context),
    ]


def _contract_error(violations: list[str]) -> BuildError:
    return BuildError(STAGE_DESCRIPTOR, "descriptor violates the image contract: " + "; ".join(violations), ERR_VALIDATION)


@dataclass
class DockerExport:
    """Assemble the runtime image from artifacts already built on this host.

    The docker context holds only the two artifacts, copied by their fixed
    paths, and the runtime-only descriptor.
    """

    ctx: RunContext
    toolchain: ToolchainInventory
    tag: str = DEFAULT_TAG
    runner: CommandRunner = run_command

    def export(self, artifacts: ArtifactPaths, config: BuildConfig) -> Result[str, BuildError]:
        text = render_export_dockerfile(config, self.toolchain)
        violations = check_export_dockerfile(text, self.toolchain, config.enable_fips)
        if violations:
            return Err(_contract_error(violations))
        context = run_area_dir(self.ctx, "image") / "export-context"
        if context.exists():
            shutil.rmtree(context)
        context.mkdir(parents=True)
        for artifact, path in artifacts.by_artifact().items():
            shutil.copy2(path, context / artifact.binary)
        dockerfile = context / "Dockerfile"
        dockerfile.write_text(text, encoding="utf-8")
        cmd = docker_build_command(dockerfile, self.tag, context, config)
        result = self.runner(cmd, context, capture=False, ctx=self.ctx)
        if result.code != 0:
            return Err(BuildError(STAGE_EXPORT, f"`{shlex.join(cmd)}` exited with {result.code}", result.code, result.stderr))
        return Ok(self.tag)


@dataclass
class DockerImageBuild:
    """Run both stages inside docker from the rendered two-stage descriptor."""

    ctx: RunContext
    toolchain: ToolchainInventory
    tag: str = DEFAULT_TAG
    context: Path | None = None
    runner: CommandRunner = run_command

    def descriptor_path(self) -> Path:
        return run_area_dir(self.ctx, "image") / "Dockerfile"

    def build_context(self) -> Path:
        return (self.context or self.ctx.repo_root).resolve()

    def ignore_patterns(self) -> list[str]:
        """Context paths kept out of `COPY . <source>`.

        BuildKit reads `<descriptor>.dockerignore` instead of the context's
        own `.dockerignore`, so that file's patterns are carried over.
        """
        context = self.build_context()
        evidence = self.ctx.evidence_root.resolve()
        if context not in evidence.parents:
            return []
        existing = context / ".dockerignore"
        patterns = existing.read_text(encoding="utf-8").splitlines() if existing.is_file() else []
        return [*patterns, evidence.relative_to(context).as_posix()]

    def command(self, config: BuildConfig) -> list[str]:
        return docker_build_command(self.descriptor_path(), self.tag, self.build_context(), config)

    def build(self, config: BuildConfig) -> Result[str, BuildError]:
        text = render_dockerfile(config, self.toolchain)
        violations = check_dockerfile(text, self.toolchain, config.enable_fips)
        if violations:
            return Err(_contract_error(violations))
        descriptor = self.descriptor_path()
        descriptor.write_text(text, encoding="utf-8")
        ignored = self.ignore_patterns()
        if ignored:
            ignore_file = descriptor.with_name(f"{descriptor.name}.dockerignore")
            ignore_file.write_text("\n".join(ignored) + "\n", encoding="utf-8")
        cmd = self.command(config)
        result = self.runner(
            cmd,
            self.build_context(),
            env=child_env({"DOCKER_BUILDKIT": "1"}),
            capture=False,
            ctx=self.ctx,
        )
        if result.code != 0:
            return Err(BuildError(STAGE_DOCKER, f"`{shlex.join(cmd)}` exited with {result.code}", result.code, result.stderr))
        return Ok(self.tag)
