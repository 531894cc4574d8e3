"""Benchmark report value types.

A ``BenchmarkResult`` is assembled once per run by the orchestrator (and once
more when runs are aggregated) and never mutated afterwards. ``to_document``
produces the stable, camelCase document that the CLI writes to disk.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Stage that dominates the pipeline; reports call it out separately.
PROOF_GENERATION_STAGE = "generate"


def utc_now() -> datetime:
    return datetime.now(UTC)


class MemoryDelta(BaseModel):
    model_config = ConfigDict(frozen=True)

    heap_used: int = 0
    heap_total: int = 0
    external: int = 0
    rss: int = 0

    def to_document(self) -> dict[str, int]:
        return {
            "heapUsed": self.heap_used,
            "heapTotal": self.heap_total,
            "external": self.external,
            "rss": self.rss,
        }


class MemorySnapshot(BaseModel):
    """Process memory counters in bytes at one instant."""

    model_config = ConfigDict(frozen=True)

    heap_used: int = Field(default=0, ge=0)
    heap_total: int = Field(default=0, ge=0)
    external: int = Field(default=0, ge=0)
    rss: int = Field(default=0, ge=0)

    def delta(self, after: MemorySnapshot) -> MemoryDelta:
        return MemoryDelta(
            heap_used=after.heap_used - self.heap_used,
            heap_total=after.heap_total - self.heap_total,
            external=after.external - self.external,
            rss=after.rss - self.rss,
        )

    def to_document(self) -> dict[str, int]:
        return {
            "heapUsed": self.heap_used,
            "heapTotal": self.heap_total,
            "external": self.external,
            "rss": self.rss,
        }


class Stage(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    time_ms: float = Field(ge=0)
    memory_before: MemorySnapshot = Field(default_factory=MemorySnapshot)
    memory_after: MemorySnapshot = Field(default_factory=MemorySnapshot)
    memory_delta: MemoryDelta = Field(default_factory=MemoryDelta)
    success: bool = True
    error: str | None = None

    def to_document(self) -> dict[str, object]:
        document: dict[str, object] = {
            "stage": self.name,
            "timeMs": round(self.time_ms, 2),
            "memoryBefore": self.memory_before.to_document(),
            "memoryAfter": self.memory_after.to_document(),
            "memoryDelta": self.memory_delta.to_document(),
            "success": self.success,
        }
        if self.error is not None:
            document["error"] = self.error
        return document


class Totals(BaseModel):
    model_config = ConfigDict(frozen=True)

    time_ms: float = Field(ge=0)
    memory_peak: float = Field(ge=0)
    proof_size: int = Field(ge=0)
    witness_size: int = Field(ge=0)

    def to_document(self) -> dict[str, float | int]:
        return {
            "timeMs": round(self.time_ms, 2),
            "memoryPeak": self.memory_peak,
            "proofSize": self.proof_size,
            "witnessSize": self.witness_size,
        }


class Metadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    size_metric: int = Field(ge=0)
    payload_size: int = Field(ge=0)
    threads: int = Field(default=1, ge=1)
    runs: int = Field(default=1, ge=1)
    runtime_version: str
    platform: str

    def to_document(self) -> dict[str, object]:
        return {
            "sizeMetric": self.size_metric,
            "payloadSize": self.payload_size,
            "threads": self.threads,
            "runs": self.runs,
            "runtimeVersion": self.runtime_version,
            "platform": self.platform,
        }


class BenchmarkResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    artifact_name: str
    backend: str
    stages: tuple[Stage, ...]
    totals: Totals
    metadata: Metadata
    timestamp: datetime = Field(default_factory=utc_now)

    @field_validator("stages")
    @classmethod
    def _at_least_one_stage(cls, value: tuple[Stage, ...]) -> tuple[Stage, ...]:
        if not value:
            raise ValueError("benchmark must have at least one stage")
        return value

    @property
    def total_time(self) -> float:
        return self.totals.time_ms

    def stage(self, name: str) -> Stage | None:
        return next((s for s in self.stages if s.name == name), None)

    @property
    def proof_generation_time(self) -> float:
        stage = self.stage(PROOF_GENERATION_STAGE)
        return stage.time_ms if stage is not None else 0.0

    @property
    def proof_generation_percentage(self) -> float:
        if self.total_time <= 0:
            return 0.0
        return self.proof_generation_time / self.total_time * 100

    def to_document(self) -> dict[str, object]:
        return {
            "artifact": {
                "name": self.artifact_name,
                "sizeMetric": self.metadata.size_metric,
                "payloadSize": self.metadata.payload_size,
            },
            "backend": self.backend,
            "stages": [stage.to_document() for stage in self.stages],
            "totals": self.totals.to_document(),
            "metadata": self.metadata.to_document(),
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_document(), indent=2)


__all__ = [
    "BenchmarkResult",
    "MemoryDelta",
    "MemorySnapshot",
    "Metadata",
    "PROOF_GENERATION_STAGE",
    "Stage",
    "Totals",
    "utc_now",
]
