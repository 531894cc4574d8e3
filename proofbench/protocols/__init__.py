from proofbench.protocols.artifacts import ArtifactSource
from proofbench.protocols.backend import BackendInfo, ProvingBackend
from proofbench.protocols.memory import MemorySampler
from proofbench.protocols.progress import ProgressSink

__all__ = [
    "ArtifactSource",
    "BackendInfo",
    "MemorySampler",
    "ProgressSink",
    "ProvingBackend",
]
