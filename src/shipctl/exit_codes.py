from __future__ import annotations

import json
from pathlib import Path

ERROR_REGISTRY = Path(__file__).resolve().parent / "configs" / "error-registry.json"


def _load_registry() -> dict[str, int]:
    payload = json.loads(ERROR_REGISTRY.read_text(encoding="utf-8"))
    mapping: dict[str, int] = {}
    for row in payload.get("codes", []):
        mapping[str(row["name"])] = int(row["code"])
    return mapping


_REG = _load_registry()

OK = 0
ERR_USAGE = _REG["SHIP_ERR_USAGE"]
ERR_CONFIG = _REG["SHIP_ERR_CONFIG"]
ERR_PREREQ = _REG["SHIP_ERR_PREREQ"]
ERR_VALIDATION = _REG["SHIP_ERR_VALIDATION"]
ERR_ARTIFACT = _REG["SHIP_ERR_ARTIFACT"]
ERR_BUILD = _REG["SHIP_ERR_BUILD"]
ERR_INTERNAL = _REG["SHIP_ERR_INTERNAL"]
