from __future__ import annotations

from typing import Protocol, runtime_checkable

from proofbench.models.benchmark import MemorySnapshot


@runtime_checkable
class MemorySampler(Protocol):
    def snapshot(self) -> MemorySnapshot: ...


__all__ = ["MemorySampler"]
