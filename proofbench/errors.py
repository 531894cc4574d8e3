"""Benchmark error kinds.

A single exception type carries a flat ``ErrorKind`` plus an optional cause,
so callers branch on ``error.kind`` rather than on a class hierarchy. Stage
context (name and elapsed time) is attached by the profiler via
:meth:`BenchmarkError.at_stage`.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    artifact_not_found = "artifact_not_found"
    artifact_load_failure = "artifact_load_failure"
    backend_init_failure = "backend_init_failure"
    witness_generation_failure = "witness_generation_failure"
    proof_generation_failure = "proof_generation_failure"
    proof_verification_failure = "proof_verification_failure"
    stage_failure = "stage_failure"
    stage_timeout = "stage_timeout"
    configuration_error = "configuration_error"
    validation_error = "validation_error"


class BenchmarkError(Exception):
    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        cause: BaseException | None = None,
        stage: str | None = None,
        elapsed_ms: float | None = None,
    ) -> None:
        self.kind = kind
        self.message = message
        self.cause = cause
        self.stage = stage
        self.elapsed_ms = elapsed_ms
        super().__init__(self._render())
        if cause is not None:
            self.__cause__ = cause

    @property
    def code(self) -> str:
        return self.kind.value.upper()

    def at_stage(self, stage: str, elapsed_ms: float) -> BenchmarkError:
        """Return a copy of this error annotated with the failing stage."""
        return BenchmarkError(
            self.kind,
            self.message,
            cause=self.cause,
            stage=stage,
            elapsed_ms=elapsed_ms,
        )

    def _render(self) -> str:
        if self.stage is None:
            return self.message
        elapsed = 0.0 if self.elapsed_ms is None else self.elapsed_ms
        return f"Stage {self.stage} failed after {elapsed:.2f}ms: {self.message}"

    def __repr__(self) -> str:
        return (
            f"BenchmarkError(kind={self.kind.value!r}, "
            f"message={self.message!r}, stage={self.stage!r})"
        )


def artifact_not_found(name: str, cause: BaseException | None = None) -> BenchmarkError:
    return BenchmarkError(ErrorKind.artifact_not_found, f"Circuit '{name}' not found", cause=cause)


def artifact_load_failure(name: str, cause: BaseException | None = None) -> BenchmarkError:
    message = f"Failed to load circuit '{name}'"
    if cause is not None:
        message = f"{message}: {cause}"
    return BenchmarkError(ErrorKind.artifact_load_failure, message, cause=cause)


def backend_init_failure(message: str, cause: BaseException | None = None) -> BenchmarkError:
    return BenchmarkError(
        ErrorKind.backend_init_failure,
        f"Backend initialization failed: {message}",
        cause=cause,
    )


def witness_generation_failure(message: str, cause: BaseException | None = None) -> BenchmarkError:
    return BenchmarkError(
        ErrorKind.witness_generation_failure,
        f"Witness generation failed: {message}",
        cause=cause,
    )


def proof_generation_failure(message: str, cause: BaseException | None = None) -> BenchmarkError:
    return BenchmarkError(
        ErrorKind.proof_generation_failure,
        f"Proof generation failed: {message}",
        cause=cause,
    )


def proof_verification_failure(message: str, cause: BaseException | None = None) -> BenchmarkError:
    return BenchmarkError(
        ErrorKind.proof_verification_failure,
        f"Proof verification failed: {message}",
        cause=cause,
    )


def configuration_error(message: str, cause: BaseException | None = None) -> BenchmarkError:
    return BenchmarkError(ErrorKind.configuration_error, message, cause=cause)


def validation_error(message: str, cause: BaseException | None = None) -> BenchmarkError:
    return BenchmarkError(ErrorKind.validation_error, message, cause=cause)


__all__ = [
    "BenchmarkError",
    "ErrorKind",
    "artifact_load_failure",
    "artifact_not_found",
    "backend_init_failure",
    "configuration_error",
    "proof_generation_failure",
    "proof_verification_failure",
    "validation_error",
    "witness_generation_failure",
]
