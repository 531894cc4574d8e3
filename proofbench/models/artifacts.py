from __future__ import annotations

import base64
from binascii import Error as BinasciiError
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Rough constraint estimate used when the toolchain does not report gate counts.
BYTES_PER_CONSTRAINT = 100

ArtifactComplexity = Literal["simple", "medium", "complex"]


class Artifact(BaseModel):
    """A compiled circuit ready to be benchmarked."""

    model_config = ConfigDict(frozen=True)

    name: str
    payload: bytes
    size_metric: int = Field(ge=0)
    payload_size: int = Field(ge=0)
    abi: dict[str, object] = Field(default_factory=dict)
    location: Path | None = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("artifact name cannot be empty")
        return value

    @field_validator("payload")
    @classmethod
    def _payload_not_empty(cls, value: bytes) -> bytes:
        if not value:
            raise ValueError("artifact payload cannot be empty")
        return value

    @property
    def complexity(self) -> ArtifactComplexity:
        if self.size_metric < 100:
            return "simple"
        if self.size_metric < 1000:
            return "medium"
        return "complex"

    @classmethod
    def from_compiled(
        cls,
        name: str,
        compiled: Mapping[str, object],
        location: Path | None = None,
    ) -> Artifact:
        """Build an artifact from a compiled-program mapping (``bytecode`` + ``abi``)."""
        raw = compiled.get("bytecode")
        if isinstance(raw, str):
            try:
                payload = base64.b64decode(raw.encode("utf-8"), validate=True)
            except BinasciiError as exc:
                raise ValueError("compiled bytecode is not valid base64") from exc
        elif isinstance(raw, (bytes, bytearray)):
            payload = bytes(raw)
        else:
            raise ValueError("compiled program is missing bytecode")

        abi = compiled.get("abi")
        if not isinstance(abi, dict):
            raise ValueError("compiled program is missing abi")

        return cls(
            name=name,
            payload=payload,
            size_metric=len(payload) // BYTES_PER_CONSTRAINT,
            payload_size=len(payload),
            abi=abi,
            location=location,
        )


class Witness(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: bytes
    generation_time_ms: float = Field(ge=0)

    @field_validator("data")
    @classmethod
    def _data_not_empty(cls, value: bytes) -> bytes:
        if not value:
            raise ValueError("witness data cannot be empty")
        return value

    @property
    def size(self) -> int:
        return len(self.data)


class ProofSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    proof: bytes
    public_inputs: bytes = b""
    generation_time_ms: float = Field(ge=0)
    verified: bool = False
    verification_time_ms: float = Field(default=0.0, ge=0)

    @field_validator("proof")
    @classmethod
    def _proof_not_empty(cls, value: bytes) -> bytes:
        if not value:
            raise ValueError("proof cannot be empty")
        return value

    @property
    def proof_size(self) -> int:
        return len(self.proof)

    @property
    def public_inputs_size(self) -> int:
        return len(self.public_inputs)

    @property
    def is_valid(self) -> bool:
        return self.verified


class ProofFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["failure"] = "failure"
    error: str
    generation_time_ms: float = Field(default=0.0, ge=0)
    verified: Literal[False] = False

    @property
    def proof_size(self) -> int:
        return 0

    @property
    def is_valid(self) -> bool:
        return False


ProofResult = Annotated[ProofSuccess | ProofFailure, Field(discriminator="kind")]


__all__ = [
    "Artifact",
    "ArtifactComplexity",
    "BYTES_PER_CONSTRAINT",
    "ProofFailure",
    "ProofResult",
    "ProofSuccess",
    "Witness",
]
