from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .core.schema.schema import validate_payload_against_schema
from .core.schema.yaml_utils import load_yaml
from .errors import ScriptError
from .exit_codes import ERR_VALIDATION

CONFIG_DIR = Path(__file__).resolve().parent / "configs"
DEFAULT_TOOLCHAIN = CONFIG_DIR / "toolchain.yaml"
TOOLCHAIN_SCHEMA = CONFIG_DIR / "toolchain.schema.json"
REPO_OVERRIDE = Path("configs") / "shipctl" / "toolchain.yaml"


@dataclass(frozen=True)
class ToolchainInventory:
    """Pinned images, packages and task-runner targets for the image pipeline."""

    schema_version: int
    builder_image: str
    runtime_image: str
    builder_package_manager: str
    runtime_package_manager: str
    build_packages: tuple[str, ...]
    crypto_build_package: str
    crypto_runtime_package: str
    rustup_url: str
    cargo_bin: str
    source_dir: str
    release_target: str
    reentry_target: str
    reentry_variable: str
    source_path: str

    @classmethod
    def from_payload(cls, payload: Any, source_path: str) -> "ToolchainInventory":
        validate_payload_against_schema(payload, TOOLCHAIN_SCHEMA, source=source_path)
        crypto = payload["crypto"]
        packages = tuple(str(p) for p in payload["build_packages"])
        if crypto["build_package"] not in packages:
            raise ScriptError(
                f"{source_path}: crypto.build_package `{crypto['build_package']}` must be listed in build_packages",
                ERR_VALIDATION,
                kind="schema",
            )
        if crypto["runtime_package"] == crypto["build_package"]:
            raise ScriptError(
                f"{source_path}: crypto.runtime_package must differ from crypto.build_package",
                ERR_VALIDATION,
                kind="schema",
            )
        return cls(
            schema_version=int(payload["schema_version"]),
            builder_image=payload["images"]["builder"],
            runtime_image=payload["images"]["runtime"],
            builder_package_manager=payload["package_managers"]["builder"],
            runtime_package_manager=payload["package_managers"]["runtime"],
            build_packages=packages,
            crypto_build_package=crypto["build_package"],
            crypto_runtime_package=crypto["runtime_package"],
            rustup_url=payload["rustup"]["url"],
            cargo_bin=payload["rustup"]["cargo_bin"],
            source_dir=payload["source"]["dir"],
            release_target=payload["make"]["release_target"],
            reentry_target=payload["make"]["reentry_target"],
            reentry_variable=payload["make"]["reentry_variable"],
            source_path=source_path,
        )

    @classmethod
    def load(cls, repo_root: Path | None = None) -> "ToolchainInventory":
        """Load the repository override when present, else the packaged default."""
        if repo_root is not None:
            override = repo_root / REPO_OVERRIDE
            if override.is_file():
                return cls.from_payload(load_yaml(override), REPO_OVERRIDE.as_posix())
        return cls.from_payload(load_yaml(DEFAULT_TOOLCHAIN), "shipctl/configs/toolchain.yaml")
