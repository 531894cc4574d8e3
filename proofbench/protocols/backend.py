from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from proofbench.models.artifacts import Artifact, ProofResult, Witness


@dataclass(frozen=True, slots=True)
class BackendInfo:
    name: str
    version: str


@runtime_checkable
class ProvingBackend(Protocol):
    """Witness/proof engine driven by the orchestrator.

    ``initialize`` is called once per run and must replace whatever state a
    previous call prepared; ``release`` is called exactly once per session.
    """

    name: str

    async def initialize(self, artifact: Artifact) -> None: ...

    async def execute_witness(self, artifact: Artifact, inputs: dict[str, object]) -> Witness: ...

    async def generate_proof(self, witness: Witness) -> ProofResult: ...

    async def verify(self, proof: ProofResult) -> bool: ...

    async def release(self) -> None: ...

    def info(self) -> BackendInfo: ...


__all__ = ["BackendInfo", "ProvingBackend"]
