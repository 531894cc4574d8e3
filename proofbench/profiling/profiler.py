"""Stage profiler: wraps one awaited operation with timing and memory sampling.

The profiler is a pure measurement shim: it never retries, never applies a
timeout and never changes whether an operation succeeds. Failures are
re-raised as :class:`BenchmarkError` annotated with the stage name and the
elapsed time so the caller can attribute them.

Observation mode additionally keeps a record of every measured stage for the
lifetime of the profiler (or until cleared), which the orchestrator logs as a
per-stage summary in verbose sessions.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, TypeVar

from opentelemetry import trace

from proofbench.core.telemetry import get_tracer
from proofbench.errors import BenchmarkError, ErrorKind
from proofbench.models.benchmark import MemoryDelta, MemorySnapshot, utc_now
from proofbench.profiling.memory import ProcessMemorySampler
from proofbench.protocols.memory import MemorySampler

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NS_PER_MS = 1_000_000


@dataclass(frozen=True, slots=True)
class StageOutcome(Generic[T]):
    """Timed and measured result of one successful stage."""

    stage: str
    elapsed_ms: float
    memory_before: MemorySnapshot
    memory_after: MemorySnapshot
    memory_delta: MemoryDelta
    value: T


@dataclass(frozen=True, slots=True)
class PerformanceMeasurement:
    name: str
    duration_ms: float
    start_ns: int
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True, slots=True)
class StageStatistics:
    avg: float
    min: float
    max: float
    count: int


@dataclass(frozen=True, slots=True)
class ProfileSummary:
    total_time_ms: float
    measurements: list[PerformanceMeasurement]
    averages: dict[str, StageStatistics]


class StageProfiler:
    def __init__(
        self,
        *,
        clock: Callable[[], int] = time.perf_counter_ns,
        sampler: MemorySampler | None = None,
        tracer: trace.Tracer | None = None,
    ) -> None:
        self._clock = clock
        self._sampler = sampler or ProcessMemorySampler()
        self._tracer = tracer or get_tracer(__name__)
        self._observing = False
        self._measurements: list[PerformanceMeasurement] = []

    @property
    def observing(self) -> bool:
        return self._observing

    def start_observing(self) -> None:
        if self._observing:
            return
        self._observing = True
        logger.debug("Stage observation started")

    def stop_observing(self) -> None:
        if not self._observing:
            return
        self._observing = False
        logger.debug("Stage observation stopped (%d measurements)", len(self._measurements))

    async def measure(
        self,
        stage_name: str,
        operation: Callable[[], Awaitable[T]],
    ) -> StageOutcome[T]:
        """Await ``operation`` and return its value with elapsed time and memory deltas."""
        if not stage_name.strip():
            raise ValueError("stage name must not be empty")

        with self._tracer.start_as_current_span(f"proofbench.stage.{stage_name}") as span:
            memory_before = self._sampler.snapshot()
            start_ns = self._clock()
            try:
                value = await operation()
            except Exception as exc:
                elapsed_ms = self._finish(stage_name, start_ns, span, success=False)
                memory_after = self._sampler.snapshot()
                logger.debug(
                    "Stage %s failed after %.2fms (heap delta %d bytes)",
                    stage_name,
                    elapsed_ms,
                    memory_after.heap_used - memory_before.heap_used,
                )
                if isinstance(exc, BenchmarkError):
                    raise exc.at_stage(stage_name, elapsed_ms) from exc
                raise BenchmarkError(
                    ErrorKind.stage_failure,
                    str(exc) or type(exc).__name__,
                    cause=exc,
                    stage=stage_name,
                    elapsed_ms=elapsed_ms,
                ) from exc

            elapsed_ms = self._finish(stage_name, start_ns, span, success=True)
            memory_after = self._sampler.snapshot()

        return StageOutcome(
            stage=stage_name,
            elapsed_ms=elapsed_ms,
            memory_before=memory_before,
            memory_after=memory_after,
            memory_delta=memory_before.delta(memory_after),
            value=value,
        )

    def _finish(self, stage_name: str, start_ns: int, span: trace.Span, *, success: bool) -> float:
        elapsed_ns = max(0, self._clock() - start_ns)
        elapsed_ms = elapsed_ns / _NS_PER_MS
        span.set_attribute("proofbench.stage.elapsed_ms", elapsed_ms)
        span.set_attribute("proofbench.stage.success", success)
        if self._observing:
            self._measurements.append(
                PerformanceMeasurement(name=stage_name, duration_ms=elapsed_ms, start_ns=start_ns)
            )
        return elapsed_ms

    def measurements(self) -> list[PerformanceMeasurement]:
        return list(self._measurements)

    def clear_measurements(self) -> None:
        self._measurements.clear()

    def summary(self) -> ProfileSummary:
        """Aggregate observed measurements per stage name."""
        measurements = self.measurements()
        grouped: dict[str, list[float]] = {}
        for measurement in measurements:
            grouped.setdefault(measurement.name, []).append(measurement.duration_ms)

        averages = {
            name: StageStatistics(
                avg=sum(durations) / len(durations),
                min=min(durations),
                max=max(durations),
                count=len(durations),
            )
            for name, durations in grouped.items()
        }
        return ProfileSummary(
            total_time_ms=sum(m.duration_ms for m in measurements),
            measurements=measurements,
            averages=averages,
        )


__all__ = [
    "PerformanceMeasurement",
    "ProfileSummary",
    "StageOutcome",
    "StageProfiler",
    "StageStatistics",
]
