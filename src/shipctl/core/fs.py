from __future__ import annotations

from pathlib import Path

from ..errors import ScriptError
from ..exit_codes import ERR_ARTIFACT
from .context import RunContext


def ensure_evidence_path(ctx: RunContext, path: Path) -> Path:
    resolved = path.resolve() if path.is_absolute() else (ctx.repo_root / path).resolve()
    root = ctx.evidence_root.resolve()
    if resolved == root or root in resolved.parents:
        resolved.parent.mkdir(parents=True, exist_ok=True)
        return resolved
    raise ScriptError(f"forbidden write path outside evidence root: {resolved}", ERR_ARTIFACT, kind="forbidden_write_path")


def run_area_dir(ctx: RunContext, area: str) -> Path:
    out = ensure_evidence_path(ctx, ctx.evidence_root / area / ctx.run_id / ".keep").parent
    out.mkdir(parents=True, exist_ok=True)
    return out
