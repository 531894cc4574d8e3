from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SessionState(StrEnum):
    configured = "configured"
    executing_runs = "executing_runs"
    aggregating = "aggregating"
    complete = "complete"
    failed = "failed"


class RunState(StrEnum):
    pending = "pending"
    running = "running"
    completed = "completed"
    aborted = "aborted"


class BenchmarkConfiguration(BaseModel):
    """Parameters for one benchmark session."""

    model_config = ConfigDict(frozen=True)

    artifact_name: str
    backend: str = "UltraHonk"
    runs: int = Field(default=1, ge=1)
    threads: int = Field(default=1, ge=1)
    verbose: bool = False
    inter_run_delay_s: float = Field(default=0.1, ge=0)
    stage_timeout_s: float | None = Field(default=None, gt=0)

    @field_validator("artifact_name", "backend")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value


__all__ = ["BenchmarkConfiguration", "RunState", "SessionState"]
