from __future__ import annotations

from proofbench.models.artifacts import (
    Artifact,
    ArtifactComplexity,
    ProofFailure,
    ProofResult,
    ProofSuccess,
    Witness,
)
from proofbench.models.benchmark import (
    PROOF_GENERATION_STAGE,
    BenchmarkResult,
    MemoryDelta,
    MemorySnapshot,
    Metadata,
    Stage,
    Totals,
    utc_now,
)
from proofbench.models.session import BenchmarkConfiguration, RunState, SessionState

__all__ = [
    "Artifact",
    "ArtifactComplexity",
    "BenchmarkConfiguration",
    "BenchmarkResult",
    "MemoryDelta",
    "MemorySnapshot",
    "Metadata",
    "PROOF_GENERATION_STAGE",
    "ProofFailure",
    "ProofResult",
    "ProofSuccess",
    "RunState",
    "SessionState",
    "Stage",
    "Totals",
    "Witness",
    "utc_now",
]
