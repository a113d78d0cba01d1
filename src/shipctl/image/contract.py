"""Image contract checks for rendered or hand-edited descriptors."""

from __future__ import annotations

import json
import shlex
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from ..toolchain import ToolchainInventory
from .artifacts import ARTIFACTS, ENTRYPOINT_ARTIFACT
from .config import SERVICE_PORTS


@dataclass(frozen=True)
class Instruction:
    keyword: str
    value: str


@dataclass
class Stage:
    base: str
    alias: str | None
    instructions: list[Instruction] = field(default_factory=list)

    def of(self, keyword: str) -> list[Instruction]:
        return [ins for ins in self.instructions if ins.keyword == keyword]


def parse_instructions(text: str) -> list[Instruction]:
    out: list[Instruction] = []
    pending = ""
    for raw in text.splitlines():
        line = raw.strip()
        if not pending and (not line or line.startswith("#")):
            continue
        if line.endswith("\\"):
            pending += line[:-1].strip() + " "
            continue
        line = (pending + line).strip()
        pending = ""
        if not line:
            continue
        keyword, _, value = line.partition(" ")
        out.append(Instruction(keyword.upper(), value.strip()))
    if pending.strip():
        keyword, _, value = pending.strip().partition(" ")
        out.append(Instruction(keyword.upper(), value.strip()))
    return out


def split_stages(instructions: list[Instruction]) -> list[Stage]:
    stages: list[Stage] = []
    for ins in instructions:
        if ins.keyword == "FROM":
            words = ins.value.split()
            base = next((w for w in words if not w.startswith("--")), "")
            alias = None
            lowered = [w.lower() for w in words]
            if "as" in lowered:
                idx = lowered.index("as")
                alias = words[idx + 1] if idx + 1 < len(words) else None
            stages.append(Stage(base=base, alias=alias))
        elif stages:
            stages[-1].instructions.append(ins)
    return stages


def _words(value: str) -> list[str]:
    try:
        return shlex.split(value)
    except ValueError:
        return value.split()


def _check_builder_order(stages: list[Stage], toolchain: ToolchainInventory) -> list[str]:
    runs = [ins.value for stage in stages[:-1] for ins in stage.of("RUN")]
    markers = (
        ("environment preparation", f"{toolchain.builder_package_manager} install"),
        ("toolchain acquisition", "rustup-init"),
        ("source pinning", "git checkout"),
        ("compilation", f"make {toolchain.release_target}"),
    )
    errors: list[str] = []
    last = -1
    for label, marker in markers:
        idx = next((i for i, value in enumerate(runs) if marker in value), None)
        if idx is None:
            errors.append(f"build stage is missing {label} (`{marker}`)")
            continue
        if idx < last:
            errors.append(f"build stage runs {label} out of order")
        last = max(last, idx)
    return errors


def _check_copies(runtime: Stage) -> list[str]:
    errors: list[str] = []
    expected = {artifact.image_path: artifact for artifact in ARTIFACTS}
    seen: set[str] = set()
    for ins in runtime.of("ADD"):
        errors.append(f"runtime stage must not use ADD: `{ins.value}`")
    for ins in runtime.of("COPY"):
        words = [w for w in _words(ins.value) if not w.startswith("--")]
        if len(words) != 2:
            errors.append(f"runtime stage COPY must copy exactly one artifact: `{ins.value}`")
            continue
        source, dest = words
        artifact = expected.get(dest)
        if artifact is None or PurePosixPath(source).name != artifact.binary:
            errors.append(f"runtime stage copies a non-artifact path: `{ins.value}`")
            continue
        if dest in seen:
            errors.append(f"runtime stage copies {artifact.binary} twice")
        seen.add(dest)
    for dest, artifact in expected.items():
        if dest not in seen:
            errors.append(f"runtime stage is missing artifact {artifact.role} ({artifact.binary} -> {dest})")
    return errors


def _check_packages(runtime: Stage, toolchain: ToolchainInventory, enable_fips: bool) -> list[str]:
    errors: list[str] = []
    installs_runtime_crypto = False
    for ins in runtime.of("RUN"):
        words = set(_words(ins.value))
        for package in toolchain.build_packages:
            if package in words:
                errors.append(f"runtime stage installs build package `{package}`")
        if "install" in words and toolchain.crypto_runtime_package in words:
            installs_runtime_crypto = True
    if enable_fips and not installs_runtime_crypto:
        errors.append(f"fips build must install runtime package `{toolchain.crypto_runtime_package}`")
    if not enable_fips and installs_runtime_crypto:
        errors.append(f"non-fips build must not install `{toolchain.crypto_runtime_package}`")
    return errors


def _check_ports_and_entrypoint(runtime: Stage) -> list[str]:
    errors: list[str] = []
    ports: set[str] = set()
    for ins in runtime.of("EXPOSE"):
        ports.update(word.split("/", 1)[0] for word in ins.value.split())
    expected_ports = {str(port) for port in SERVICE_PORTS}
    if ports != expected_ports:
        errors.append(f"runtime stage must expose exactly {sorted(expected_ports)}, found {sorted(ports)}")
    entrypoints = runtime.of("ENTRYPOINT")
    if len(entrypoints) != 1:
        errors.append(f"runtime stage must declare exactly one ENTRYPOINT, found {len(entrypoints)}")
    else:
        try:
            parsed = json.loads(entrypoints[0].value)
        except ValueError:
            parsed = None
        if parsed != [ENTRYPOINT_ARTIFACT.image_path]:
            errors.append(f"ENTRYPOINT must be [\"{ENTRYPOINT_ARTIFACT.image_path}\"] in exec form, found `{entrypoints[0].value}`")
    if runtime.of("CMD"):
        errors.append("runtime stage must not declare default arguments (CMD)")
    return errors


def check_dockerfile(text: str, toolchain: ToolchainInventory, enable_fips: bool) -> list[str]:
    """Return contract violations; an empty list means the descriptor conforms."""
    stages = split_stages(parse_instructions(text))
    if len(stages) < 2:
        return ["descriptor must have a separate build stage and a runtime stage"]
    runtime = stages[-1]
    errors: list[str] = []
    aliases = {stage.alias for stage in stages[:-1] if stage.alias}
    if runtime.base in aliases or runtime.base == toolchain.builder_image:
        errors.append(f"runtime stage must start from a minimal base image, not `{runtime.base}`")
    errors.extend(_check_builder_order(stages, toolchain))
    errors.extend(_check_copies(runtime))
    errors.extend(_check_packages(runtime, toolchain, enable_fips))
    errors.extend(_check_ports_and_entrypoint(runtime))
    return errors


def check_export_dockerfile(text: str, toolchain: ToolchainInventory, enable_fips: bool) -> list[str]:
    """Same contract for the runtime-only descriptor of a local export."""
    stages = split_stages(parse_instructions(text))
    if len(stages) != 1:
        return ["export descriptor must have exactly one (runtime) stage"]
    runtime = stages[0]
    errors: list[str] = []
    if runtime.base == toolchain.builder_image:
        errors.append(f"runtime stage must start from a minimal base image, not `{runtime.base}`")
    errors.extend(_check_copies(runtime))
    errors.extend(_check_packages(runtime, toolchain, enable_fips))
    errors.extend(_check_ports_and_entrypoint(runtime))
    return errors
