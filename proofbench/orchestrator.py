"""Benchmark orchestrator: sequences the proving pipeline and aggregates runs.

Each run executes load → init → witness → generate → verify strictly in
order, every stage instrumented by the :class:`StageProfiler`. The first
failing stage aborts the run and the whole session: no partial result is
ever returned, so a returned ``BenchmarkResult`` always means every stage,
verification included, succeeded.

Runs are sequential, separated by ``inter_run_delay_s``. The backend is
released exactly once per session, whatever the outcome.
"""

from __future__ import annotations

import asyncio
import logging
import platform
import sys
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from functools import partial
from statistics import fmean
from typing import TypeVar

from proofbench.core.logging import benchmark_scope
from proofbench.core.telemetry import get_tracer
from proofbench.errors import (
    BenchmarkError,
    ErrorKind,
    proof_generation_failure,
    proof_verification_failure,
)
from proofbench.models.artifacts import Artifact, ProofFailure, ProofSuccess, Witness
from proofbench.models.benchmark import BenchmarkResult, Metadata, Stage, Totals, utc_now
from proofbench.models.session import BenchmarkConfiguration, RunState, SessionState
from proofbench.profiling.profiler import StageProfiler
from proofbench.protocols.progress import ProgressSink
from proofbench.services.artifacts import ArtifactService
from proofbench.services.proofs import ProofService

logger = logging.getLogger(__name__)

T = TypeVar("T")

PIPELINE_STAGES: tuple[str, ...] = ("load", "init", "witness", "generate", "verify")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class RuntimeEnvironment:
    runtime_version: str
    platform: str

    @classmethod
    def current(cls) -> RuntimeEnvironment:
        return cls(
            runtime_version=f"{platform.python_implementation()} {platform.python_version()}",
            platform=sys.platform,
        )


class BenchmarkOrchestrator:
    def __init__(
        self,
        artifacts: ArtifactService,
        proofs: ProofService,
        profiler: StageProfiler,
        progress: ProgressSink,
        *,
        sleep: Sleep = asyncio.sleep,
        clock_now: Callable[[], datetime] = utc_now,
        environment: RuntimeEnvironment | None = None,
    ) -> None:
        self._artifacts = artifacts
        self._proofs = proofs
        self._profiler = profiler
        self._progress = progress
        self._sleep = sleep
        self._clock_now = clock_now
        self._environment = environment or RuntimeEnvironment.current()
        self._tracer = get_tracer(__name__)
        self._state = SessionState.configured

    @property
    def state(self) -> SessionState:
        return self._state

    async def execute_benchmark(self, config: BenchmarkConfiguration) -> BenchmarkResult:
        """Run the pipeline ``config.runs`` times and return one (aggregated) result."""
        session_id = uuid.uuid4().hex[:12]
        results: list[BenchmarkResult] = []

        with (
            benchmark_scope(session_id=session_id),
            self._tracer.start_as_current_span("proofbench.session") as span,
        ):
            span.set_attribute("proofbench.artifact", config.artifact_name)
            span.set_attribute("proofbench.backend", config.backend)
            span.set_attribute("proofbench.runs", config.runs)

            self._state = SessionState.executing_runs
            self._notify("session_started", config)
            if config.verbose:
                self._profiler.start_observing()

            try:
                for run_number in range(1, config.runs + 1):
                    if config.runs > 1:
                        self._notify("run_started", run_number, config.runs)
                    with benchmark_scope(run=run_number):
                        results.append(await self._execute_single_run(config, run_number))

                    if run_number < config.runs:
                        await self._sleep(config.inter_run_delay_s)

                self._state = SessionState.aggregating
                final = self._aggregate(results, config)
            except Exception as exc:
                self._state = SessionState.failed
                logger.error("Benchmark failed: %s", exc)
                self._notify("session_failed", exc)
                raise
            finally:
                if config.verbose:
                    self._log_observations()
                self._profiler.stop_observing()
                await self._cleanup()

            self._state = SessionState.complete
            self._notify("session_completed", final)
            return final

    async def _execute_single_run(
        self, config: BenchmarkConfiguration, run_number: int
    ) -> BenchmarkResult:
        stages: list[Stage] = []
        run_state = RunState.pending
        logger.debug("Run %d %s", run_number, run_state)

        try:
            run_state = RunState.running
            artifact, inputs = await self._run_stage(
                config, stages, "load", partial(self._load, config.artifact_name)
            )
            await self._run_stage(
                config, stages, "init", partial(self._proofs.initialize, artifact)
            )
            witness = await self._run_stage(
                config, stages, "witness", partial(self._proofs.generate_witness, artifact, inputs)
            )
            proof = await self._run_stage(
                config, stages, "generate", partial(self._generate, witness)
            )
            await self._run_stage(config, stages, "verify", partial(self._verify, proof))
        except Exception:
            run_state = RunState.aborted
            logger.info(
                "Run %d %s after %d of %d stages",
                run_number,
                run_state,
                len(stages),
                len(PIPELINE_STAGES),
            )
            raise

        run_state = RunState.completed
        logger.debug("Run %d %s", run_number, run_state)

        totals = Totals(
            time_ms=sum(stage.time_ms for stage in stages),
            memory_peak=max(stage.memory_after.heap_used for stage in stages),
            proof_size=proof.proof_size,
            witness_size=witness.size,
        )
        return BenchmarkResult(
            artifact_name=config.artifact_name,
            backend=config.backend,
            stages=tuple(stages),
            totals=totals,
            metadata=self._metadata(artifact, config, runs=1),
            timestamp=self._clock_now(),
        )

    async def _run_stage(
        self,
        config: BenchmarkConfiguration,
        stages: list[Stage],
        name: str,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        self._notify("stage_started", name)
        with benchmark_scope(stage=name):
            outcome = await self._profiler.measure(
                name, _bounded(operation, name, config.stage_timeout_s)
            )

        stage = Stage(
            name=outcome.stage,
            time_ms=outcome.elapsed_ms,
            memory_before=outcome.memory_before,
            memory_after=outcome.memory_after,
            memory_delta=outcome.memory_delta,
        )
        stages.append(stage)
        self._notify("stage_completed", stage, config.verbose)
        return outcome.value

    async def _load(self, name: str) -> tuple[Artifact, dict[str, object]]:
        artifact = await self._artifacts.load_artifact(name)
        inputs = await self._artifacts.get_inputs(name)
        return artifact, inputs

    async def _generate(self, witness: Witness) -> ProofSuccess:
        proof = await self._proofs.generate_proof(witness)
        if isinstance(proof, ProofFailure):
            raise proof_generation_failure(proof.error)
        return proof

    async def _verify(self, proof: ProofSuccess) -> bool:
        if not await self._proofs.verify_proof(proof):
            raise proof_verification_failure("backend rejected the proof")
        return True

    def _metadata(
        self, artifact: Artifact, config: BenchmarkConfiguration, *, runs: int
    ) -> Metadata:
        return Metadata(
            size_metric=artifact.size_metric,
            payload_size=artifact.payload_size,
            threads=config.threads,
            runs=runs,
            runtime_version=self._environment.runtime_version,
            platform=self._environment.platform,
        )

    def _aggregate(
        self, results: list[BenchmarkResult], config: BenchmarkConfiguration
    ) -> BenchmarkResult:
        """Average stage times and totals across runs, index-aligned by pipeline position."""
        if len(results) == 1:
            return results[0]

        first = results[0]
        stages = tuple(
            stage.model_copy(update={"time_ms": fmean(r.stages[index].time_ms for r in results)})
            for index, stage in enumerate(first.stages)
        )
        # Proof and witness sizes are deterministic for a fixed circuit and inputs.
        totals = Totals(
            time_ms=fmean(r.totals.time_ms for r in results),
            memory_peak=fmean(r.totals.memory_peak for r in results),
            proof_size=first.totals.proof_size,
            witness_size=first.totals.witness_size,
        )
        return BenchmarkResult(
            artifact_name=config.artifact_name,
            backend=config.backend,
            stages=stages,
            totals=totals,
            metadata=first.metadata.model_copy(update={"runs": len(results)}),
            timestamp=self._clock_now(),
        )

    async def _cleanup(self) -> None:
        failure = await self._proofs.release()
        if failure is not None:
            self._notify("warning", f"Backend cleanup failed: {failure}")

    def _log_observations(self) -> None:
        summary = self._profiler.summary()
        for name, stats in summary.averages.items():
            logger.debug(
                "Observed %s: avg=%.2fms min=%.2fms max=%.2fms count=%d",
                name,
                stats.avg,
                stats.min,
                stats.max,
                stats.count,
            )

    def _notify(self, event: str, *args: object) -> None:
        try:
            getattr(self._progress, event)(*args)
        except Exception:
            logger.warning("Progress sink failed on %s", event, exc_info=True)


def _bounded(
    operation: Callable[[], Awaitable[T]], stage_name: str, timeout_s: float | None
) -> Callable[[], Awaitable[T]]:
    if timeout_s is None:
        return operation

    async def run() -> T:
        deadline = asyncio.timeout(timeout_s)
        try:
            async with deadline:
                return await operation()
        except TimeoutError as exc:
            if not deadline.expired():
                raise
            raise BenchmarkError(
                ErrorKind.stage_timeout,
                f"{stage_name} did not finish within {timeout_s:g}s",
                cause=exc,
            ) from exc

    return run


__all__ = [
    "BenchmarkOrchestrator",
    "PIPELINE_STAGES",
    "RuntimeEnvironment",
    "Sleep",
]
