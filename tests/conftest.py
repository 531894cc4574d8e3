from __future__ import annotations

import logging
import sys
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from pathlib import Path

import pytest
from proofbench.orchestrator import BenchmarkOrchestrator, RuntimeEnvironment
from proofbench.profiling.profiler import StageProfiler
from proofbench.protocols.progress import ProgressSink
from proofbench.services.artifacts import ArtifactService
from proofbench.services.proofs import ProofService

from tests.fakes import (
    FakeBackend,
    FakeClock,
    FakeMemorySampler,
    InMemoryArtifactSource,
    RecordingProgressSink,
    RecordingSleep,
    write_compiled_circuit,
    write_fake_toolchain,
)

FIXED_NOW = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sampler() -> FakeMemorySampler:
    return FakeMemorySampler()


@pytest.fixture
def source(clock: FakeClock) -> InMemoryArtifactSource:
    return InMemoryArtifactSource(clock)


@pytest.fixture
def backend(clock: FakeClock) -> FakeBackend:
    return FakeBackend(clock)


@pytest.fixture
def sink() -> RecordingProgressSink:
    return RecordingProgressSink()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def profiler(clock: FakeClock, sampler: FakeMemorySampler) -> StageProfiler:
    return StageProfiler(clock=clock, sampler=sampler)


@pytest.fixture
def make_orchestrator(
    source: InMemoryArtifactSource,
    backend: FakeBackend,
    profiler: StageProfiler,
    sink: RecordingProgressSink,
    sleep: RecordingSleep,
) -> Callable[..., BenchmarkOrchestrator]:
    def factory(
        *,
        backend_override: FakeBackend | None = None,
        profiler_override: StageProfiler | None = None,
        progress: ProgressSink | None = None,
    ) -> BenchmarkOrchestrator:
        return BenchmarkOrchestrator(
            artifacts=ArtifactService(source),
            proofs=ProofService(backend_override or backend),
            profiler=profiler_override or profiler,
            progress=progress or sink,
            sleep=sleep,
            clock_now=lambda: FIXED_NOW,
            environment=RuntimeEnvironment(runtime_version="CPython 3.12.1", platform="linux"),
        )

    return factory


@pytest.fixture(autouse=True)
def restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers, filters, level = list(root.handlers), list(root.filters), root.level
    yield
    root.handlers[:] = handlers
    root.filters[:] = filters
    root.setLevel(level)


@pytest.fixture
def toolchain(tmp_path: Path) -> tuple[Path, Path]:
    if sys.platform == "win32":
        pytest.skip("fake toolchain scripts need a POSIX shell")
    return write_fake_toolchain(tmp_path / "bin")


@pytest.fixture
def circuits_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "circuits"
    write_compiled_circuit(directory)
    return directory
