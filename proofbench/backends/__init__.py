from proofbench.backends.barretenberg import SCHEMES, BarretenbergCliBackend, create_backend

__all__ = ["BarretenbergCliBackend", "SCHEMES", "create_backend"]
