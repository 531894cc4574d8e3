from proofbench.services.artifacts import ArtifactService
from proofbench.services.proofs import ProofService

__all__ = ["ArtifactService", "ProofService"]
