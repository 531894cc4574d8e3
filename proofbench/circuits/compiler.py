"""Compiles Noir circuit projects with ``nargo compile``."""

from __future__ import annotations

import asyncio
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from proofbench.circuits.filesystem import TARGET_DIR, compiled_program_path
from proofbench.core.processes import communicate, session_kwargs
from proofbench.errors import configuration_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CompileOutcome:
    name: str
    success: bool
    message: str
    program_size: int | None = None


def _decode(stream: bytes) -> str:
    return stream.decode("utf-8", errors="replace").strip()


async def compile_circuit(circuits_dir: Path, name: str, *, nargo: str = "nargo") -> CompileOutcome:
    """Compile one circuit directory, replacing any previous ``target/`` output."""
    circuit_dir = circuits_dir / name
    if not circuit_dir.is_dir():
        return CompileOutcome(name, False, f"circuit directory not found: {circuit_dir}")

    executable = shutil.which(nargo)
    if executable is None:
        raise configuration_error(f"{nargo} not found. Please install the Noir toolchain first.")

    target = circuit_dir / TARGET_DIR
    if target.exists():
        shutil.rmtree(target)

    logger.info("Compiling circuit: %s", name)
    try:
        process = await asyncio.create_subprocess_exec(
            executable,
            "compile",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(circuit_dir),
            **session_kwargs(),
        )
    except OSError as exc:
        return CompileOutcome(name, False, f"failed to start {nargo}: {exc}")

    stdout, stderr = await communicate(process)
    if process.returncode != 0:
        output = _decode(stderr) or _decode(stdout) or f"exit status {process.returncode}"
        return CompileOutcome(name, False, output)

    program = compiled_program_path(circuit_dir, name)
    if not program.is_file():
        return CompileOutcome(name, False, f"compiled program not produced at {program}")

    size = program.stat().st_size
    logger.info("Circuit %s compiled (%d bytes)", name, size)
    return CompileOutcome(name, True, _decode(stdout) or "compiled", program_size=size)


async def compile_all(circuits_dir: Path, *, nargo: str = "nargo") -> list[CompileOutcome]:
    """Compile every circuit directory, continuing past individual failures."""
    if not circuits_dir.is_dir():
        raise configuration_error(f"circuits directory not found: {circuits_dir}")

    names = sorted(entry.name for entry in circuits_dir.iterdir() if entry.is_dir())
    if not names:
        logger.info("No circuits found to compile in %s", circuits_dir)
        return []

    outcomes: list[CompileOutcome] = []
    for name in names:
        outcome = await compile_circuit(circuits_dir, name, nargo=nargo)
        if not outcome.success:
            logger.error("Failed to compile %s: %s", name, outcome.message)
        outcomes.append(outcome)
    return outcomes


__all__ = ["CompileOutcome", "compile_all", "compile_circuit"]
