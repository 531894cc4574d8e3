from proofbench.circuits.compiler import CompileOutcome, compile_all, compile_circuit
from proofbench.circuits.filesystem import FileSystemArtifactSource, parse_prover_inputs

__all__ = [
    "CompileOutcome",
    "FileSystemArtifactSource",
    "compile_all",
    "compile_circuit",
    "parse_prover_inputs",
]
