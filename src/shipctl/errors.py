from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ScriptError(Exception):
    """User-facing failure; ``code`` becomes the process exit status."""

    message: str
    code: int
    kind: str = "generic_error"

    def __str__(self) -> str:
        return self.message

    def as_row(self) -> dict[str, object]:
        return {"code": self.code, "kind": self.kind, "message": self.message}
