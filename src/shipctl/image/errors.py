from __future__ import annotations

from dataclasses import dataclass

from ..core.process import COMMAND_NOT_FOUND
from ..errors import ScriptError
from ..exit_codes import ERR_BUILD, ERR_PREREQ


@dataclass(frozen=True)
class BuildError:
    """Opaque failure of one pipeline stage, carried back as ``Err``."""

    stage: str
    message: str
    code: int
    output: str = ""

    def to_script_error(self) -> ScriptError:
        code = ERR_PREREQ if self.code == COMMAND_NOT_FOUND else ERR_BUILD
        text = f"{self.stage} failed: {self.message}"
        if self.output.strip():
            text = f"{text}\n{self.output.strip()}"
        return ScriptError(text, code, kind=f"pipeline:{self.stage}")
