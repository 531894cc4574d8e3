"""Process memory sampling.

Counters map onto the report's memory fields: ``rss`` is the resident set,
``heap_total`` the virtual size, ``external`` shared pages, and ``heap_used``
the bytes Python has allocated (from ``tracemalloc`` while it is tracing,
otherwise the private resident portion).
"""

from __future__ import annotations

import tracemalloc

import psutil

from proofbench.models.benchmark import MemorySnapshot


class ProcessMemorySampler:
    """Reads memory counters of the current process."""

    def __init__(self, process: psutil.Process | None = None) -> None:
        self._process = process or psutil.Process()

    def snapshot(self) -> MemorySnapshot:
        info = self._process.memory_info()
        shared = int(getattr(info, "shared", 0))
        if tracemalloc.is_tracing():
            heap_used, _ = tracemalloc.get_traced_memory()
        else:
            heap_used = max(0, info.rss - shared)
        return MemorySnapshot(
            heap_used=heap_used,
            heap_total=info.vms,
            external=shared,
            rss=info.rss,
        )


__all__ = ["ProcessMemorySampler"]
