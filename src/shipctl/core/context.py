from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Literal

from ..errors import ScriptError
from ..exit_codes import ERR_CONFIG
from .clock import utc_stamp
from .env import getenv
from .git import read_git_context
from .repo_root import find_repo_root

OutputFormat = Literal["text", "json"]


@dataclass(frozen=True)
class RunContext:
    run_id: str
    repo_root: Path
    evidence_root: Path
    output_format: OutputFormat
    verbose: bool
    quiet: bool
    log_json: bool
    git_sha: str
    git_dirty: bool
    git_changes: tuple[str, ...] = ()

    @property
    def as_json(self) -> bool:
        return self.output_format == "json"

    def with_tracing(self) -> "RunContext":
        return replace(self, verbose=True, quiet=False)

    @classmethod
    def from_args(
        cls,
        run_id: str | None,
        evidence_root: str | None,
        output_format: OutputFormat = "text",
        verbose: bool = False,
        quiet: bool = False,
        log_json: bool = False,
        repo_root: Path | None = None,
    ) -> "RunContext":
        if repo_root is None:
            try:
                repo_root = find_repo_root()
            except RuntimeError as exc:
                raise ScriptError(
                    "unable to resolve repository root (need .git, Cargo.toml and Makefile); use --cwd",
                    ERR_CONFIG,
                    kind="repo_root",
                ) from exc
        repo_root = repo_root.resolve()
        git_ctx = read_git_context(repo_root)
        default_run = f"ship-{utc_stamp()}-{git_ctx.sha}"
        resolved_run_id = run_id or getenv("RUN_ID") or default_run
        raw_evidence = evidence_root or getenv("EVIDENCE_ROOT")
        if raw_evidence:
            path = Path(raw_evidence)
            resolved_evidence_root = path if path.is_absolute() else repo_root / path
        else:
            resolved_evidence_root = repo_root / "artifacts" / "evidence"
        return cls(
            run_id=resolved_run_id,
            repo_root=repo_root,
            evidence_root=resolved_evidence_root.resolve(),
            output_format=output_format,
            verbose=verbose,
            quiet=quiet,
            log_json=log_json,
            git_sha=git_ctx.sha,
            git_dirty=git_ctx.is_dirty,
            git_changes=git_ctx.changed_paths,
        )
