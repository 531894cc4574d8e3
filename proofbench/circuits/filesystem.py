"""Filesystem artifact source for compiled Noir circuits.

Layout, one directory per circuit::

    <circuits_dir>/<name>/Prover.toml
    <circuits_dir>/<name>/target/<name with '-' replaced by '_'>.json
"""

from __future__ import annotations

import asyncio
import json
import logging
import tomllib
from pathlib import Path

from proofbench.errors import artifact_load_failure, artifact_not_found
from proofbench.models.artifacts import Artifact

logger = logging.getLogger(__name__)

PROVER_INPUTS_FILE = "Prover.toml"
TARGET_DIR = "target"


def compiled_program_path(circuit_dir: Path, name: str) -> Path:
    return circuit_dir / TARGET_DIR / f"{name.replace('-', '_')}.json"


def _coerce_input(value: object) -> object:
    if isinstance(value, list):
        return [_coerce_input(item) for item in value]
    if isinstance(value, dict):
        return {key: _coerce_input(item) for key, item in value.items()}
    if isinstance(value, str) and not value.startswith("0x"):
        try:
            return int(value)
        except ValueError:
            return value
    return value


def parse_prover_inputs(content: str) -> dict[str, object]:
    """Parse ``Prover.toml`` text; hex strings stay strings, decimal strings become ints."""
    return {key: _coerce_input(value) for key, value in tomllib.loads(content).items()}


class FileSystemArtifactSource:
    def __init__(self, circuits_dir: str | Path) -> None:
        self._circuits_dir = Path(circuits_dir)

    @property
    def circuits_dir(self) -> Path:
        return self._circuits_dir

    def _circuit_dir(self, name: str) -> Path:
        return self._circuits_dir / name

    async def exists(self, name: str) -> bool:
        return compiled_program_path(self._circuit_dir(name), name).is_file()

    async def load(self, name: str) -> Artifact:
        circuit_dir = self._circuit_dir(name)
        program_path = compiled_program_path(circuit_dir, name)
        if not program_path.is_file():
            raise artifact_not_found(name)

        try:
            raw = await asyncio.to_thread(program_path.read_text, encoding="utf-8")
            compiled = json.loads(raw)
            if not isinstance(compiled, dict):
                raise ValueError("compiled program must be a JSON object")
            if not compiled.get("bytecode") or not compiled.get("abi"):
                raise ValueError("invalid circuit JSON: missing bytecode or abi")
            return Artifact.from_compiled(name, compiled, location=circuit_dir)
        except (OSError, ValueError) as exc:
            raise artifact_load_failure(name, exc) from exc

    async def get_inputs(self, name: str) -> dict[str, object]:
        prover_path = self._circuit_dir(name) / PROVER_INPUTS_FILE
        if not prover_path.is_file():
            raise artifact_load_failure(name, FileNotFoundError(f"{PROVER_INPUTS_FILE} not found"))
        try:
            raw = await asyncio.to_thread(prover_path.read_text, encoding="utf-8")
            return parse_prover_inputs(raw)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise artifact_load_failure(name, exc) from exc

    async def list_available(self) -> list[str]:
        if not self._circuits_dir.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self._circuits_dir.iterdir()
            if entry.is_dir() and (entry / TARGET_DIR).is_dir()
        )


__all__ = [
    "FileSystemArtifactSource",
    "PROVER_INPUTS_FILE",
    "compiled_program_path",
    "parse_prover_inputs",
]
