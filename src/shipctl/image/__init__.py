"""Two-stage build-and-export pipeline for the tikv runtime image."""

from __future__ import annotations

from .artifacts import ARTIFACTS, Artifact, ArtifactPaths
from .config import BuildConfig, SERVICE_PORTS

__all__ = ["ARTIFACTS", "Artifact", "ArtifactPaths", "BuildConfig", "SERVICE_PORTS"]
