from __future__ import annotations

from pathlib import Path


def write_tool(bin_dir: Path, name: str, body: str) -> Path:
    """Drop an executable stand-in for an external tool into ``bin_dir``."""
    bin_dir.mkdir(parents=True, exist_ok=True)
    tool = bin_dir / name
    tool.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    tool.chmod(0o755)
    return tool
