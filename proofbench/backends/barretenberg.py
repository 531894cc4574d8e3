"""Proving backend driving the Noir and Barretenberg command-line tools.

Witnesses are produced with ``nargo execute``; verification keys, proofs and
verification go through ``bb``. Every session gets a private scratch
directory, removed again by :meth:`BarretenbergCliBackend.release`.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import shutil
import tempfile
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from proofbench.circuits.filesystem import TARGET_DIR, compiled_program_path
from proofbench.core.processes import communicate, session_kwargs
from proofbench.errors import backend_init_failure, configuration_error
from proofbench.models.artifacts import (
    Artifact,
    ProofFailure,
    ProofResult,
    ProofSuccess,
    Witness,
)
from proofbench.protocols.backend import BackendInfo

logger = logging.getLogger(__name__)

SCHEMES: dict[str, str] = {"UltraHonk": "ultra_honk"}

_PROVER_NAME = "ProofbenchInputs"
_WITNESS_NAME = "proofbench_witness"
_NS_PER_MS = 1_000_000


@dataclass(frozen=True, slots=True)
class CommandResult:
    returncode: int
    stdout: str
    stderr: str
    duration_ms: float

    @property
    def output(self) -> str:
        return self.stderr or self.stdout or f"exit status {self.returncode}"


def _format_toml_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_format_toml_value(item) for item in value) + "]"
    if isinstance(value, dict):
        fields = ", ".join(f"{key} = {_format_toml_value(item)}" for key, item in value.items())
        return "{ " + fields + " }"
    raise TypeError(f"unsupported circuit input type: {type(value).__name__}")


def format_prover_inputs(inputs: dict[str, object]) -> str:
    """Render circuit inputs in the ``Prover.toml`` format understood by nargo."""
    return "".join(f"{key} = {_format_toml_value(value)}\n" for key, value in inputs.items())


class BarretenbergCliBackend:
    def __init__(
        self,
        *,
        name: str = "UltraHonk",
        nargo: str = "nargo",
        bb: str = "bb",
        threads: int = 1,
        work_root: Path | None = None,
        clock: Callable[[], int] = time.perf_counter_ns,
    ) -> None:
        scheme = SCHEMES.get(name)
        if scheme is None:
            supported = ", ".join(sorted(SCHEMES))
            raise configuration_error(f"unsupported backend '{name}' (supported: {supported})")
        if threads < 1:
            raise configuration_error("threads must be >= 1")
        self.name = name
        self._scheme = scheme
        self._nargo = nargo
        self._bb = bb
        self._threads = threads
        self._work_root = work_root
        self._clock = clock
        self._work_dir: Path | None = None
        self._artifact: Artifact | None = None
        self._version = "unknown"

    def info(self) -> BackendInfo:
        return BackendInfo(name=self.name, version=self._version)

    async def initialize(self, artifact: Artifact) -> None:
        """Write the verification key for ``artifact``, discarding any earlier state."""
        if artifact.location is None:
            raise backend_init_failure(f"circuit {artifact.name} has no project directory")

        work_dir = self._ensure_work_dir()
        for stale in ("vk", "proof", "verify"):
            shutil.rmtree(work_dir / stale, ignore_errors=True)
        (work_dir / "vk").mkdir()

        if self._version == "unknown":
            probe = await self._run([self._bb, "--version"])
            if probe.returncode == 0 and probe.stdout:
                self._version = probe.stdout.splitlines()[0]

        program = compiled_program_path(artifact.location, artifact.name)
        result = await self._run(
            [
                self._bb,
                "write_vk",
                "--scheme",
                self._scheme,
                "-b",
                str(program),
                "-o",
                str(work_dir / "vk"),
            ]
        )
        if result.returncode != 0:
            raise RuntimeError(f"bb write_vk failed: {result.output}")
        self._artifact = artifact

    async def execute_witness(self, artifact: Artifact, inputs: dict[str, object]) -> Witness:
        self._require_initialized()
        project_dir = artifact.location
        if project_dir is None:
            raise RuntimeError(f"circuit {artifact.name} has no project directory")

        prover_file = project_dir / f"{_PROVER_NAME}.toml"
        prover_file.write_text(format_prover_inputs(inputs), encoding="utf-8")
        try:
            result = await self._run(
                [
                    self._nargo,
                    "execute",
                    "--program-dir",
                    str(project_dir),
                    "--prover-name",
                    _PROVER_NAME,
                    _WITNESS_NAME,
                ]
            )
        finally:
            prover_file.unlink(missing_ok=True)

        if result.returncode != 0:
            raise RuntimeError(f"nargo execute failed: {result.output}")

        produced = project_dir / TARGET_DIR / f"{_WITNESS_NAME}.gz"
        data = produced.read_bytes()
        produced.unlink(missing_ok=True)
        return Witness(data=data, generation_time_ms=result.duration_ms)

    async def generate_proof(self, witness: Witness) -> ProofResult:
        work_dir, program = self._require_initialized()

        witness_path = work_dir / "witness.gz"
        witness_path.write_bytes(witness.data)
        proof_dir = work_dir / "proof"
        proof_dir.mkdir(exist_ok=True)

        result = await self._run(
            [
                self._bb,
                "prove",
                "--scheme",
                self._scheme,
                "-b",
                str(program),
                "-w",
                str(witness_path),
                "-k",
                str(work_dir / "vk" / "vk"),
                "-o",
                str(proof_dir),
            ]
        )
        if result.returncode != 0:
            return ProofFailure(error=result.output, generation_time_ms=result.duration_ms)

        return ProofSuccess(
            proof=(proof_dir / "proof").read_bytes(),
            public_inputs=(proof_dir / "public_inputs").read_bytes(),
            generation_time_ms=result.duration_ms,
        )

    async def verify(self, proof: ProofResult) -> bool:
        work_dir, _ = self._require_initialized()
        if isinstance(proof, ProofFailure):
            return False

        verify_dir = work_dir / "verify"
        verify_dir.mkdir(exist_ok=True)
        (verify_dir / "proof").write_bytes(proof.proof)
        (verify_dir / "public_inputs").write_bytes(proof.public_inputs)

        result = await self._run(
            [
                self._bb,
                "verify",
                "--scheme",
                self._scheme,
                "-k",
                str(work_dir / "vk" / "vk"),
                "-p",
                str(verify_dir / "proof"),
                "-i",
                str(verify_dir / "public_inputs"),
            ]
        )
        if result.returncode != 0:
            logger.info("bb verify rejected the proof: %s", result.output)
        return result.returncode == 0

    async def release(self) -> None:
        work_dir, self._work_dir = self._work_dir, None
        self._artifact = None
        if work_dir is not None:
            await asyncio.to_thread(shutil.rmtree, work_dir)

    def _ensure_work_dir(self) -> Path:
        if self._work_dir is None:
            if self._work_root is not None:
                self._work_root.mkdir(parents=True, exist_ok=True)
            self._work_dir = Path(tempfile.mkdtemp(prefix="proofbench-", dir=self._work_root))
        return self._work_dir

    def _require_initialized(self) -> tuple[Path, Path]:
        """Return the scratch directory and the compiled program of the current circuit."""
        artifact = self._artifact
        if self._work_dir is None or artifact is None or artifact.location is None:
            raise RuntimeError("backend not initialized")
        return self._work_dir, compiled_program_path(artifact.location, artifact.name)

    async def _run(self, command: Sequence[str]) -> CommandResult:
        env = dict(os.environ)
        env["HARDWARE_CONCURRENCY"] = str(self._threads)
        logger.debug("Running %s", " ".join(command))

        start = self._clock()
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                **session_kwargs(),
            )
        except OSError as exc:
            raise RuntimeError(f"failed to start {command[0]}: {exc}") from exc
        stdout, stderr = await communicate(process)
        duration_ms = (self._clock() - start) / _NS_PER_MS

        return CommandResult(
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace").strip(),
            stderr=stderr.decode("utf-8", errors="replace").strip(),
            duration_ms=duration_ms,
        )


def create_backend(
    name: str,
    *,
    nargo: str = "nargo",
    bb: str = "bb",
    threads: int = 1,
    work_root: Path | None = None,
) -> BarretenbergCliBackend:
    return BarretenbergCliBackend(
        name=name, nargo=nargo, bb=bb, threads=threads, work_root=work_root
    )


__all__ = [
    "BarretenbergCliBackend",
    "CommandResult",
    "SCHEMES",
    "create_backend",
    "format_prover_inputs",
]
