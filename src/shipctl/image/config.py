from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from ..core.env import getenv
from ..errors import ScriptError
from ..exit_codes import ERR_CONFIG

SERVICE_PORTS: tuple[int, ...] = (20160, 20180)
FIPS_ENABLED_VALUE = "1"


def _env_params() -> dict[str, str]:
    return {
        "GIT_HASH": getenv("GIT_HASH", "") or "",
        "ENABLE_FIPS": getenv("ENABLE_FIPS", "") or "",
    }


@dataclass(frozen=True)
class BuildConfig:
    git_hash: str
    enable_fips: bool = False

    @property
    def fips_flag(self) -> str:
        return FIPS_ENABLED_VALUE if self.enable_fips else "0"

    @classmethod
    def from_args(cls, git_hash: str | None, enable_fips: bool) -> "BuildConfig":
        revision = (git_hash or "").strip()
        if not revision:
            raise ScriptError("GIT_HASH is required: pass --git-hash or export GIT_HASH", ERR_CONFIG, kind="build_config")
        # the revision is baked into descriptor lines and git argv
        if revision.startswith("-") or any(ch.isspace() or not ch.isprintable() for ch in revision):
            raise ScriptError(f"GIT_HASH is not a usable revision: {revision!r}", ERR_CONFIG, kind="build_config")
        return cls(git_hash=revision, enable_fips=enable_fips)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "BuildConfig":
        source = env if env is not None else _env_params()
        return cls.from_args(source.get("GIT_HASH"), source.get("ENABLE_FIPS") == FIPS_ENABLED_VALUE)

    @classmethod
    def resolve(cls, git_hash: str | None, fips: bool | None, env: Mapping[str, str] | None = None) -> "BuildConfig":
        """Command-line values win; missing ones fall back to GIT_HASH / ENABLE_FIPS.

        ``fips`` is ``None`` when neither ``--fips`` nor ``--no-fips`` was given.
        """
        source = env if env is not None else _env_params()
        revision = git_hash or source.get("GIT_HASH")
        if fips is None:
            fips = source.get("ENABLE_FIPS") == FIPS_ENABLED_VALUE
        return cls.from_args(revision, fips)
