from __future__ import annotations

import logging

from proofbench.errors import (
    BenchmarkError,
    backend_init_failure,
    proof_generation_failure,
    proof_verification_failure,
    witness_generation_failure,
)
from proofbench.models.artifacts import Artifact, ProofResult, Witness
from proofbench.protocols.backend import BackendInfo, ProvingBackend

logger = logging.getLogger(__name__)


class ProofService:
    """Drives a proving backend and maps its failures onto error kinds.

    A ``BenchmarkError`` raised by the backend itself keeps its kind.
    """

    def __init__(self, backend: ProvingBackend) -> None:
        self._backend = backend

    @property
    def backend_name(self) -> str:
        return self._backend.name

    def backend_info(self) -> BackendInfo:
        return self._backend.info()

    async def initialize(self, artifact: Artifact) -> None:
        logger.debug("Initializing %s for circuit: %s", self._backend.name, artifact.name)
        try:
            await self._backend.initialize(artifact)
        except BenchmarkError:
            raise
        except Exception as exc:
            raise backend_init_failure(f"could not prepare {artifact.name}: {exc}", exc) from exc

    async def generate_witness(self, artifact: Artifact, inputs: dict[str, object]) -> Witness:
        try:
            witness = await self._backend.execute_witness(artifact, inputs)
        except BenchmarkError:
            raise
        except Exception as exc:
            raise witness_generation_failure(
                f"execution of {artifact.name} failed: {exc}", exc
            ) from exc
        logger.debug(
            "Witness generated: %d bytes in %.2fms", witness.size, witness.generation_time_ms
        )
        return witness

    async def generate_proof(self, witness: Witness) -> ProofResult:
        try:
            proof = await self._backend.generate_proof(witness)
        except BenchmarkError:
            raise
        except Exception as exc:
            raise proof_generation_failure(str(exc), exc) from exc
        logger.debug(
            "Proof generated: %d bytes in %.2fms", proof.proof_size, proof.generation_time_ms
        )
        return proof

    async def verify_proof(self, proof: ProofResult) -> bool:
        try:
            verified = await self._backend.verify(proof)
        except BenchmarkError:
            raise
        except Exception as exc:
            raise proof_verification_failure(str(exc), exc) from exc
        logger.debug("Proof verification %s", "succeeded" if verified else "failed")
        return verified

    async def release(self) -> Exception | None:
        """Release backend resources; returns the failure instead of raising it."""
        logger.debug("Releasing %s resources", self._backend.name)
        try:
            await self._backend.release()
        except Exception as exc:
            logger.warning("Error during backend cleanup: %s", exc, exc_info=True)
            return exc
        return None


__all__ = ["ProofService"]
