from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from ..core.env import getenv

CONTEXT_MARKER = "MAKEFILE_RUN"
DEBUG_TOGGLE = "SHELL_DEBUG"


@dataclass(frozen=True)
class WrapperConfig:
    makefile_run: str | None = None
    shell_debug: bool = False

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "WrapperConfig":
        if env is None:
            marker = getenv(CONTEXT_MARKER)
            debug = getenv(DEBUG_TOGGLE) or ""
        else:
            marker = env.get(CONTEXT_MARKER)
            debug = env.get(DEBUG_TOGGLE, "")
        return cls(makefile_run=marker, shell_debug=bool(debug))
