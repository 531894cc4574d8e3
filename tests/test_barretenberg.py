from __future__ import annotations

import asyncio
import os
from pathlib import Path

import pytest
from proofbench.backends.barretenberg import (
    BarretenbergCliBackend,
    create_backend,
    format_prover_inputs,
)
from proofbench.circuits.filesystem import FileSystemArtifactSource
from proofbench.errors import BenchmarkError, ErrorKind
from proofbench.models.artifacts import ProofFailure, ProofSuccess, Witness

from tests.fakes import make_artifact


@pytest.fixture
def cli_backend(toolchain: tuple[Path, Path], tmp_path: Path) -> BarretenbergCliBackend:
    nargo, bb = toolchain
    return BarretenbergCliBackend(
        nargo=str(nargo), bb=str(bb), threads=2, work_root=tmp_path / "work"
    )


async def test_full_proving_cycle(
    cli_backend: BarretenbergCliBackend, circuits_dir: Path, tmp_path: Path
) -> None:
    artifact = await FileSystemArtifactSource(circuits_dir).load("simple-hash")

    await cli_backend.initialize(artifact)
    witness = await cli_backend.execute_witness(artifact, {"x": 1, "y": "0x2a"})
    proof = await cli_backend.generate_proof(witness)
    verified = await cli_backend.verify(proof)
    await cli_backend.release()

    assert cli_backend.info().version == "0.82.2"
    assert witness.data == b'x = 1\ny = "0x2a"\n'
    assert isinstance(proof, ProofSuccess)
    assert proof.proof == b"proofbytes"
    assert proof.public_inputs == b"pub"
    assert verified is True
    assert not (circuits_dir / "simple-hash" / "ProofbenchInputs.toml").exists()
    assert list((tmp_path / "work").iterdir()) == []


async def test_rejected_proof(
    cli_backend: BarretenbergCliBackend, circuits_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("FAKE_BB_VERIFY_EXIT", "1")
    artifact = await FileSystemArtifactSource(circuits_dir).load("simple-hash")
    await cli_backend.initialize(artifact)

    proof = ProofSuccess(proof=b"tampered", generation_time_ms=1)

    assert await cli_backend.verify(proof) is False
    await cli_backend.release()


async def test_prove_failure_is_returned(
    cli_backend: BarretenbergCliBackend, circuits_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("FAKE_BB_PROVE_EXIT", "1")
    artifact = await FileSystemArtifactSource(circuits_dir).load("simple-hash")
    await cli_backend.initialize(artifact)

    proof = await cli_backend.generate_proof(Witness(data=b"w", generation_time_ms=1))

    assert isinstance(proof, ProofFailure)
    assert proof.error == "prove failed"
    assert await cli_backend.verify(proof) is False
    await cli_backend.release()


async def test_timeout_kills_running_prover(
    cli_backend: BarretenbergCliBackend,
    circuits_dir: Path,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    pid_file = tmp_path / "bb.pid"
    monkeypatch.setenv("FAKE_BB_PROVE_PIDFILE", str(pid_file))
    artifact = await FileSystemArtifactSource(circuits_dir).load("simple-hash")
    await cli_backend.initialize(artifact)

    with pytest.raises(TimeoutError):
        async with asyncio.timeout(1.0):
            await cli_backend.generate_proof(Witness(data=b"w", generation_time_ms=1))

    pid = int(pid_file.read_text(encoding="utf-8"))
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)
    await cli_backend.release()


async def test_reinitialize_discards_previous_proof(
    cli_backend: BarretenbergCliBackend, circuits_dir: Path, tmp_path: Path
) -> None:
    artifact = await FileSystemArtifactSource(circuits_dir).load("simple-hash")
    await cli_backend.initialize(artifact)
    await cli_backend.generate_proof(Witness(data=b"w", generation_time_ms=1))

    await cli_backend.initialize(artifact)

    (work_dir,) = list((tmp_path / "work").iterdir())
    assert not (work_dir / "proof").exists()
    assert (work_dir / "vk" / "vk").is_file()
    await cli_backend.release()


async def test_requires_initialization(cli_backend: BarretenbergCliBackend) -> None:
    with pytest.raises(RuntimeError, match="not initialized"):
        await cli_backend.generate_proof(Witness(data=b"w", generation_time_ms=1))


async def test_artifact_without_project_directory(cli_backend: BarretenbergCliBackend) -> None:
    with pytest.raises(BenchmarkError) as exc_info:
        await cli_backend.initialize(make_artifact())

    assert exc_info.value.kind == ErrorKind.backend_init_failure


async def test_missing_executable(circuits_dir: Path, tmp_path: Path) -> None:
    backend = BarretenbergCliBackend(bb=str(tmp_path / "no-bb"), work_root=tmp_path / "work")
    artifact = await FileSystemArtifactSource(circuits_dir).load("simple-hash")

    with pytest.raises(RuntimeError, match="failed to start"):
        await backend.initialize(artifact)
    await backend.release()


async def test_release_without_initialize_is_noop() -> None:
    await BarretenbergCliBackend().release()


def test_unknown_backend_rejected() -> None:
    with pytest.raises(BenchmarkError) as exc_info:
        create_backend("Groth16")

    assert exc_info.value.kind == ErrorKind.configuration_error
    assert "supported: UltraHonk" in exc_info.value.message


def test_threads_must_be_positive() -> None:
    with pytest.raises(BenchmarkError):
        BarretenbergCliBackend(threads=0)


def test_format_prover_inputs() -> None:
    rendered = format_prover_inputs(
        {"x": 1, "hash": "0x2a", "path": [1, 2], "flag": True, "point": {"x": 3, "y": "0x04"}}
    )

    assert rendered == (
        "x = 1\n"
        'hash = "0x2a"\n'
        "path = [1, 2]\n"
        "flag = true\n"
        'point = { x = 3, y = "0x04" }\n'
    )
