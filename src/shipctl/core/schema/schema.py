from __future__ import annotations

import json
from pathlib import Path

import jsonschema

from ...errors import ScriptError
from ...exit_codes import ERR_VALIDATION


def load_schema(schema_path: Path) -> dict[str, object]:
    return json.loads(schema_path.read_text(encoding="utf-8"))


def validate_payload_against_schema(payload: object, schema_path: Path, *, source: str) -> None:
    schema = load_schema(schema_path)
    try:
        jsonschema.validate(payload, schema)
    except jsonschema.ValidationError as exc:
        pointer = "/".join(str(p) for p in exc.absolute_path)
        loc = pointer or "<root>"
        raise ScriptError(f"{source}: schema validation failed at {loc}: {exc.message}", ERR_VALIDATION, kind="schema") from exc
