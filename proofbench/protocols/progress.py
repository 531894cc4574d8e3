from __future__ import annotations

from typing import Protocol, runtime_checkable

from proofbench.models.benchmark import BenchmarkResult, Stage
from proofbench.models.session import BenchmarkConfiguration


@runtime_checkable
class ProgressSink(Protocol):
    """Fire-and-forget notifications emitted while a session runs."""

    def session_started(self, config: BenchmarkConfiguration) -> None: ...

    def run_started(self, run_number: int, total_runs: int) -> None: ...

    def stage_started(self, stage_name: str) -> None: ...

    def stage_completed(self, stage: Stage, verbose: bool) -> None: ...

    def session_completed(self, result: BenchmarkResult) -> None: ...

    def session_failed(self, error: BaseException) -> None: ...

    def warning(self, message: str) -> None: ...


__all__ = ["ProgressSink"]
