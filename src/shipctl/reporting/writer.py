from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from ..core.context import RunContext
from ..core.fs import run_area_dir


def write_json_report(ctx: RunContext, area: str, name: str, payload: dict[str, Any]) -> Path:
    """Write ``payload`` to ``<evidence_root>/<area>/<run_id>/<name>``.

    The report is replaced through a sibling temp file, never rewritten in place.
    """
    target = run_area_dir(ctx, area) / name
    staging = target.with_name(f".{target.name}.tmp")
    staging.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    os.replace(staging, target)
    return target
