from __future__ import annotations

import shlex
from dataclasses import dataclass

from ..toolchain import ToolchainInventory
from .artifacts import ARTIFACTS, ENTRYPOINT_ARTIFACT
from .config import SERVICE_PORTS, BuildConfig

RUSTUP_INIT = "/tmp/rustup-init.sh"
BUILDER_STAGE = "builder"

STEP_PREPARE = "prepare-environment"
STEP_TOOLCHAIN = "install-toolchain"
STEP_PIN = "pin-source"
STEP_COMPILE = "compile"


@dataclass(frozen=True)
class BuildStep:
    """One strictly ordered builder-stage step.

    ``in_source`` steps run inside the source checkout; the local release
    build only runs those, the image build runs all of them.
    """

    name: str
    commands: tuple[tuple[str, ...], ...]
    env: tuple[tuple[str, str], ...] = ()
    exports: tuple[tuple[str, str], ...] = ()
    in_source: bool = False

    def argv(self) -> list[list[str]]:
        return [list(cmd) for cmd in self.commands]

    def shell(self) -> str:
        prefix = " ".join(f"{key}={shlex.quote(value)}" for key, value in self.env)
        parts = [shlex.join(cmd) for cmd in self.commands]
        if prefix:
            parts = [f"{prefix} {part}" for part in parts]
        return " && ".join(parts)


@dataclass(frozen=True)
class RuntimeStage:
    base_image: str
    copy_from: str | None
    copies: tuple[tuple[str, str], ...]
    package_manager: str
    runtime_packages: tuple[str, ...]
    ports: tuple[int, ...]
    entrypoint: tuple[str, ...]

    def install_shell(self) -> str | None:
        if not self.runtime_packages:
            return None
        pm = self.package_manager
        return f"{shlex.join([pm, 'install', '-y', *self.runtime_packages])} && {shlex.join([pm, 'clean', 'all'])}"


def build_plan(config: BuildConfig, toolchain: ToolchainInventory) -> list[BuildStep]:
    pm = toolchain.builder_package_manager
    return [
        BuildStep(
            name=STEP_PREPARE,
            commands=(
                (pm, "install", "-y", *toolchain.build_packages),
                (pm, "clean", "all"),
            ),
        ),
        BuildStep(
            name=STEP_TOOLCHAIN,
            commands=(
                ("curl", "--proto", "=https", "--tlsv1.2", "-sSf", toolchain.rustup_url, "-o", RUSTUP_INIT),
                ("sh", RUSTUP_INIT, "-y", "--no-modify-path", "--default-toolchain", "none"),
                ("rm", "-f", RUSTUP_INIT),
            ),
            exports=(("PATH", f"{toolchain.cargo_bin}:$PATH"),),
        ),
        BuildStep(
            name=STEP_PIN,
            commands=(("git", "checkout", "-f", config.git_hash),),
            in_source=True,
        ),
        BuildStep(
            name=STEP_COMPILE,
            commands=(("make", toolchain.release_target),),
            env=(("ENABLE_FIPS", config.fips_flag),),
            in_source=True,
        ),
    ]


def runtime_stage(
    config: BuildConfig,
    toolchain: ToolchainInventory,
    copy_from: str | None = BUILDER_STAGE,
) -> RuntimeStage:
    """Describe the export stage.

    With ``copy_from`` set, artifacts come from the builder stage's fixed
    output paths; with ``None`` they come from a context holding only the
    two binaries.
    """
    if copy_from is None:
        copies = tuple((artifact.binary, artifact.image_path) for artifact in ARTIFACTS)
    else:
        copies = tuple((artifact.build_path(toolchain.source_dir), artifact.image_path) for artifact in ARTIFACTS)
    return RuntimeStage(
        base_image=toolchain.runtime_image,
        copy_from=copy_from,
        copies=copies,
        package_manager=toolchain.runtime_package_manager,
        runtime_packages=(toolchain.crypto_runtime_package,) if config.enable_fips else (),
        ports=SERVICE_PORTS,
        entrypoint=(ENTRYPOINT_ARTIFACT.image_path,),
    )
