"""Checkout state read once per run."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .process import run_command


@dataclass(frozen=True)
class GitContext:
    sha: str
    changed_paths: tuple[str, ...] = ()
    readable: bool = True

    @property
    def is_dirty(self) -> bool:
        # an unreadable worktree counts as dirty so `checkout -f` never runs blind
        return bool(self.changed_paths) or not self.readable


def _porcelain_path(line: str) -> str:
    path = line[3:]
    if " -> " in path:
        path = path.split(" -> ", 1)[1]
    return path.strip().strip('"')


def read_git_context(repo_root: Path) -> GitContext:
    """Short HEAD sha and the tracked paths `git checkout -f` would overwrite.

    Untracked files survive a forced checkout, so they are not reported.
    """
    head = run_command(["git", "rev-parse", "--short", "HEAD"], repo_root)
    sha = head.stdout.strip() if head.code == 0 else ""
    status = run_command(["git", "status", "--porcelain", "--untracked-files=no"], repo_root)
    if status.code != 0:
        return GitContext(sha=sha or "unknown", readable=False)
    changed = tuple(_porcelain_path(line) for line in status.stdout.splitlines() if line.strip())
    return GitContext(sha=sha or "unknown", changed_paths=changed)
