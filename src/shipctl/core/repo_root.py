"""Repository root detection helpers.

`Path.cwd()` is only allowed in this module.
"""

from __future__ import annotations

from pathlib import Path

REPO_MARKERS = ("Cargo.toml", "Makefile")


def find_repo_root(start: Path | None = None) -> Path:
    cur = (start or Path.cwd()).resolve()
    if cur.is_file():
        cur = cur.parent
    while True:
        if (cur / ".git").exists() and all((cur / marker).is_file() for marker in REPO_MARKERS):
            return cur
        if cur.parent == cur:
            raise RuntimeError("unable to resolve repository root")
        cur = cur.parent


def try_find_repo_root(start: Path | None = None) -> Path | None:
    try:
        return find_repo_root(start)
    except RuntimeError:
        return None


def find_repo_root_or_cwd(start: Path | None = None) -> Path:
    """Repository root, or the starting directory when none encloses it."""
    return try_find_repo_root(start) or (start or Path.cwd()).resolve()
