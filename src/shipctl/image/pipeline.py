from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..core.clock import utc_now_iso
from ..core.context import RunContext
from ..core.logging import log_event
from ..core.result import Err
from .artifacts import ArtifactPaths
from .builder import ReleaseBuilder
from .config import BuildConfig
from .errors import BuildError
from .exporter import ImageExporter


@dataclass
class PipelineOutcome:
    config: BuildConfig
    started_at: str
    image: str | None = None
    artifacts: ArtifactPaths | None = None
    failure: BuildError | None = None
    stages: list[dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failure is None and self.image is not None

    def payload(self, ctx: RunContext, lane: str) -> dict[str, Any]:
        return {
            "schema_name": "shipctl.image-report.v1",
            "schema_version": 1,
            "tool": "shipctl",
            "kind": "image-pipeline-report",
            "lane": lane,
            "run_id": ctx.run_id,
            "status": "ok" if self.ok else "error",
            "started_at": self.started_at,
            "git_hash": self.config.git_hash,
            "enable_fips": self.config.enable_fips,
            "image": self.image,
            "artifacts": (
                {"server": str(self.artifacts.server), "admin-tool": str(self.artifacts.admin_tool)}
                if self.artifacts
                else None
            ),
            "stages": self.stages,
            "error": (
                {"stage": self.failure.stage, "message": self.failure.message, "code": self.failure.code}
                if self.failure
                else None
            ),
        }


def run_pipeline(
    ctx: RunContext,
    config: BuildConfig,
    *,
    builder: ReleaseBuilder,
    exporter: ImageExporter,
) -> PipelineOutcome:
    """Build, then export; the first failure stops the pipeline and no image is reported."""
    outcome = PipelineOutcome(config=config, started_at=utc_now_iso())
    log_event(ctx, "info", "image", "build-start", git_hash=config.git_hash, fips=config.enable_fips)
    built = builder.run_build(config.git_hash, config.enable_fips)
    if isinstance(built, Err):
        outcome.failure = built.error
        outcome.stages.append({"name": "build", "status": "fail", "stage": built.error.stage})
        log_event(ctx, "error", "image", "build-failed", stage=built.error.stage, code=built.error.code)
        return outcome
    outcome.artifacts = built.value
    outcome.stages.append({"name": "build", "status": "pass"})
    exported = exporter.export(built.value, config)
    if isinstance(exported, Err):
        outcome.failure = exported.error
        outcome.stages.append({"name": "export", "status": "fail", "stage": exported.error.stage})
        log_event(ctx, "error", "image", "export-failed", stage=exported.error.stage, code=exported.error.code)
        return outcome
    outcome.image = exported.value
    outcome.stages.append({"name": "export", "status": "pass"})
    log_event(ctx, "info", "image", "export-done", image=exported.value)
    return outcome


def run_image_build(ctx: RunContext, config: BuildConfig, build) -> PipelineOutcome:  # noqa: ANN001
    """Two-stage docker build wrapped in the same outcome shape as ``run_pipeline``."""
    outcome = PipelineOutcome(config=config, started_at=utc_now_iso())
    log_event(ctx, "info", "image", "build-start", git_hash=config.git_hash, fips=config.enable_fips, mode="docker")
    result = build.build(config)
    if isinstance(result, Err):
        outcome.failure = result.error
        outcome.stages.append({"name": "docker-build", "status": "fail", "stage": result.error.stage})
        log_event(ctx, "error", "image", "build-failed", stage=result.error.stage, code=result.error.code)
        return outcome
    outcome.image = result.value
    outcome.stages.append({"name": "docker-build", "status": "pass"})
    log_event(ctx, "info", "image", "export-done", image=result.value)
    return outcome
