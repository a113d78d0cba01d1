from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath

OUTPUT_SUBDIR = "bin"


@dataclass(frozen=True)
class Artifact:
    role: str
    binary: str

    @property
    def relative_path(self) -> PurePosixPath:
        return PurePosixPath(OUTPUT_SUBDIR) / self.binary

    @property
    def image_path(self) -> str:
        return f"/{self.binary}"

    def build_path(self, source_dir: str) -> str:
        return str(PurePosixPath(source_dir) / self.relative_path)


SERVER = Artifact(role="server", binary="tikv-server")
ADMIN_TOOL = Artifact(role="admin-tool", binary="tikv-ctl")
ARTIFACTS: tuple[Artifact, ...] = (SERVER, ADMIN_TOOL)
ENTRYPOINT_ARTIFACT = SERVER


@dataclass(frozen=True)
class ArtifactPaths:
    server: Path
    admin_tool: Path

    def by_artifact(self) -> dict[Artifact, Path]:
        return {SERVER: self.server, ADMIN_TOOL: self.admin_tool}

    @classmethod
    def under(cls, source_dir: Path) -> "ArtifactPaths":
        return cls(
            server=source_dir / SERVER.relative_path,
            admin_tool=source_dir / ADMIN_TOOL.relative_path,
        )

    def missing(self) -> list[Path]:
        return [path for path in (self.server, self.admin_tool) if not path.is_file()]
