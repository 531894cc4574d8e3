from __future__ import annotations

import logging

from proofbench.errors import BenchmarkError, artifact_load_failure, artifact_not_found
from proofbench.models.artifacts import Artifact
from proofbench.protocols.artifacts import ArtifactSource

logger = logging.getLogger(__name__)


class ArtifactService:
    """Loads artifacts and their test inputs, normalizing source errors."""

    def __init__(self, source: ArtifactSource) -> None:
        self._source = source

    async def load_artifact(self, name: str) -> Artifact:
        logger.debug("Loading circuit: %s", name)
        try:
            if not await self._source.exists(name):
                raise artifact_not_found(name)
            artifact = await self._source.load(name)
        except BenchmarkError:
            raise
        except Exception as exc:
            raise artifact_load_failure(name, exc) from exc

        logger.debug(
            "Circuit loaded: %s (%d constraints, %d bytes)",
            artifact.name,
            artifact.size_metric,
            artifact.payload_size,
        )
        return artifact

    async def get_inputs(self, name: str) -> dict[str, object]:
        logger.debug("Loading test inputs for circuit: %s", name)
        try:
            return await self._source.get_inputs(name)
        except BenchmarkError:
            raise
        except Exception as exc:
            raise artifact_load_failure(name, exc) from exc

    async def list_available(self) -> list[str]:
        try:
            circuits = await self._source.list_available()
        except Exception as exc:
            raise artifact_load_failure("*", exc) from exc
        logger.debug("Found %d available circuits", len(circuits))
        return circuits


__all__ = ["ArtifactService"]
