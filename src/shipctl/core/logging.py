from __future__ import annotations

import inspect
import json
import sys
from typing import TYPE_CHECKING

from .clock import utc_now_iso

if TYPE_CHECKING:
    from .context import RunContext

LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40}


def _threshold(ctx: RunContext) -> int:
    if ctx.verbose:
        return LEVELS["debug"]
    if ctx.quiet:
        return LEVELS["warning"]
    return LEVELS["info"]


def _text_value(value: object) -> str:
    text = str(value)
    if not text or any(ch.isspace() or ch in "=\"" for ch in text):
        return json.dumps(text)
    return text


def log_event(ctx: RunContext, level: str, component: str, action: str, **fields: object) -> None:
    """Write one event to stderr as ``key=value`` text, or a JSON line with ``--log-json``."""
    if LEVELS.get(level, LEVELS["error"]) < _threshold(ctx):
        return
    frame = inspect.currentframe()
    caller = frame.f_back if frame is not None else None
    event: dict[str, object] = {
        "ts": utc_now_iso(),
        "level": level,
        "run_id": ctx.run_id,
        "component": component,
        "action": action,
        "file": caller.f_code.co_filename if caller else "?",
        "line": caller.f_lineno if caller else 0,
        **fields,
    }
    if ctx.log_json:
        sys.stderr.write(json.dumps(event, sort_keys=True, default=str) + "\n")
        return
    head = [f"ts={event['ts']}", f"level={level}", f"run_id={ctx.run_id}", f"component={component}", f"action={action}"]
    tail = [f"{key}={_text_value(value)}" for key, value in sorted(fields.items())]
    sys.stderr.write(" ".join(head + tail) + "\n")
