from __future__ import annotations

from typing import Protocol, runtime_checkable

from proofbench.models.artifacts import Artifact


@runtime_checkable
class ArtifactSource(Protocol):
    async def load(self, name: str) -> Artifact: ...

    async def get_inputs(self, name: str) -> dict[str, object]: ...

    async def exists(self, name: str) -> bool: ...

    async def list_available(self) -> list[str]: ...


__all__ = ["ArtifactSource"]
