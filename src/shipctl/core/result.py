"""Result helpers for collaborator return paths.

Shipctl uses `ScriptError` for user-facing failures; build collaborators
return `Ok`/`Err` so the pipeline decides how a failure surfaces.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err(Generic[E]):
    error: E


Result = Ok[T] | Err[E]
