"""Static-analysis wrapper that always runs inside the controlled make environment."""

from __future__ import annotations

from .clippy import FEATURES, AnalysisInvocation
from .config import WrapperConfig
from .reentry import needs_reentry, reentry_command_line

__all__ = ["FEATURES", "AnalysisInvocation", "WrapperConfig", "needs_reentry", "reentry_command_line"]
