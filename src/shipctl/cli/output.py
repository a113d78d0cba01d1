"""CLI payload output helpers."""

from __future__ import annotations

import json

from ..errors import ScriptError


def emit(payload: dict[str, object], as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, sort_keys=True))
    else:
        print(json.dumps(payload, indent=2, sort_keys=True))


def build_base_payload(ctx, status: str = "ok") -> dict[str, object]:  # noqa: ANN001
    return {
        "schema_version": 1,
        "tool": "shipctl",
        "status": status,
        "run_id": ctx.run_id,
        "repo_root": str(ctx.repo_root),
        "evidence_root": str(ctx.evidence_root),
        "format": ctx.output_format,
        "git_sha": ctx.git_sha,
        "git_dirty": ctx.git_dirty,
    }


def resolve_output_format(*, cli_json: bool, cli_format: str | None, ci_present: bool) -> str:
    if cli_json:
        return "json"
    if cli_format:
        return cli_format
    return "json" if ci_present else "text"


def render_error(*, as_json: bool, error: ScriptError) -> str:
    if as_json:
        return json.dumps(
            {
                "schema_name": "shipctl.error.v1",
                "schema_version": 1,
                "tool": "shipctl",
                "status": "error",
                "errors": [error.as_row()],
            },
            sort_keys=True,
        )
    return error.message
