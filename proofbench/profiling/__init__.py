from proofbench.profiling.memory import ProcessMemorySampler
from proofbench.profiling.profiler import (
    PerformanceMeasurement,
    ProfileSummary,
    StageOutcome,
    StageProfiler,
    StageStatistics,
)

__all__ = [
    "PerformanceMeasurement",
    "ProcessMemorySampler",
    "ProfileSummary",
    "StageOutcome",
    "StageProfiler",
    "StageStatistics",
]
