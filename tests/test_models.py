"""Tests for artifact, proof and report models."""

from __future__ import annotations

import base64
import json
from datetime import UTC, datetime

import pytest
from proofbench.models.artifacts import (
    Artifact,
    ProofFailure,
    ProofResult,
    ProofSuccess,
    Witness,
)
from proofbench.models.benchmark import (
    BenchmarkResult,
    MemorySnapshot,
    Metadata,
    Stage,
    Totals,
)
from proofbench.models.session import BenchmarkConfiguration
from pydantic import TypeAdapter, ValidationError

from tests.fakes import make_artifact


def _stage(name: str, time_ms: float, heap_after: int = 0) -> Stage:
    return Stage(
        name=name,
        time_ms=time_ms,
        memory_after=MemorySnapshot(heap_used=heap_after),
    )


def _result(stages: tuple[Stage, ...]) -> BenchmarkResult:
    return BenchmarkResult(
        artifact_name="simple-hash",
        backend="UltraHonk",
        stages=stages,
        totals=Totals(
            time_ms=sum(stage.time_ms for stage in stages),
            memory_peak=max((stage.memory_after.heap_used for stage in stages), default=0),
            proof_size=2144,
            witness_size=512,
        ),
        metadata=Metadata(
            size_metric=25,
            payload_size=2500,
            runtime_version="CPython 3.12.1",
            platform="linux",
        ),
        timestamp=datetime(2024, 1, 15, 10, 30, tzinfo=UTC),
    )


class TestArtifact:
    def test_complexity_thresholds(self) -> None:
        assert make_artifact(payload_size=9_900).complexity == "simple"
        assert make_artifact(payload_size=10_000).complexity == "medium"
        assert make_artifact(payload_size=100_000).complexity == "complex"

    def test_blank_name_rejected(self) -> None:
        with pytest.raises(ValidationError, match="name cannot be empty"):
            Artifact(name=" ", payload=b"x", size_metric=0, payload_size=1)

    def test_empty_payload_rejected(self) -> None:
        with pytest.raises(ValidationError, match="payload cannot be empty"):
            Artifact(name="a", payload=b"", size_metric=0, payload_size=0)

    def test_negative_size_metric_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Artifact(name="a", payload=b"x", size_metric=-1, payload_size=1)

    def test_from_compiled_decodes_base64_bytecode(self) -> None:
        payload = b"\x00\x01" * 250
        compiled = {"bytecode": base64.b64encode(payload).decode(), "abi": {"parameters": []}}

        artifact = Artifact.from_compiled("simple-hash", compiled)

        assert artifact.payload == payload
        assert artifact.payload_size == 500
        assert artifact.size_metric == 5

    def test_from_compiled_requires_abi(self) -> None:
        with pytest.raises(ValueError, match="missing abi"):
            Artifact.from_compiled("x", {"bytecode": base64.b64encode(b"abc").decode()})

    def test_from_compiled_rejects_invalid_base64(self) -> None:
        with pytest.raises(ValueError, match="base64"):
            Artifact.from_compiled("x", {"bytecode": "%%%", "abi": {}})

    def test_artifact_is_frozen(self) -> None:
        artifact = make_artifact()
        with pytest.raises(ValidationError):
            artifact.name = "other"  # type: ignore[misc]


class TestProofs:
    def test_witness_size(self) -> None:
        assert Witness(data=b"abc", generation_time_ms=1.0).size == 3

    def test_empty_witness_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Witness(data=b"", generation_time_ms=1.0)

    def test_success_sizes(self) -> None:
        proof = ProofSuccess(proof=b"p" * 10, public_inputs=b"i" * 4, generation_time_ms=5)

        assert proof.proof_size == 10
        assert proof.public_inputs_size == 4
        assert not proof.is_valid

    def test_failure_has_no_proof(self) -> None:
        failure = ProofFailure(error="unsatisfied")

        assert failure.proof_size == 0
        assert not failure.is_valid

    def test_failure_cannot_be_verified(self) -> None:
        with pytest.raises(ValidationError):
            ProofFailure(error="x", verified=True)  # type: ignore[arg-type]

    def test_result_union_discriminates_on_kind(self) -> None:
        adapter = TypeAdapter(ProofResult)

        parsed = adapter.validate_python({"kind": "failure", "error": "bad"})

        assert isinstance(parsed, ProofFailure)


class TestBenchmarkResult:
    def test_requires_a_stage(self) -> None:
        with pytest.raises(ValidationError, match="at least one stage"):
            _result(())

    def test_stage_lookup(self) -> None:
        result = _result((_stage("load", 5), _stage("generate", 95)))

        assert result.stage("generate") is not None
        assert result.stage("missing") is None

    def test_proof_generation_percentage(self) -> None:
        result = _result((_stage("load", 25), _stage("generate", 75)))

        assert result.total_time == 100
        assert result.proof_generation_time == 75
        assert result.proof_generation_percentage == 75

    def test_percentage_without_generate_stage(self) -> None:
        assert _result((_stage("load", 25),)).proof_generation_percentage == 0.0

    def test_document_shape(self) -> None:
        result = _result((_stage("load", 5.126, heap_after=2048), _stage("generate", 809)))

        document = json.loads(result.to_json())

        assert document["artifact"] == {
            "name": "simple-hash",
            "sizeMetric": 25,
            "payloadSize": 2500,
        }
        assert document["backend"] == "UltraHonk"
        assert document["stages"][0]["stage"] == "load"
        assert document["stages"][0]["timeMs"] == 5.13
        assert document["stages"][0]["memoryAfter"]["heapUsed"] == 2048
        assert "error" not in document["stages"][0]
        assert document["totals"]["proofSize"] == 2144
        assert document["metadata"]["runs"] == 1
        assert document["metadata"]["runtimeVersion"] == "CPython 3.12.1"
        assert document["timestamp"] == "2024-01-15T10:30:00+00:00"

    def test_failed_stage_document_includes_error(self) -> None:
        stage = Stage(name="verify", time_ms=1, success=False, error="rejected")

        assert stage.to_document()["error"] == "rejected"

    def test_memory_delta(self) -> None:
        before = MemorySnapshot(heap_used=100, heap_total=200, external=10, rss=300)
        after = MemorySnapshot(heap_used=50, heap_total=250, external=10, rss=400)

        delta = before.delta(after)

        assert (delta.heap_used, delta.heap_total, delta.external, delta.rss) == (-50, 50, 0, 100)


class TestBenchmarkConfiguration:
    def test_defaults(self) -> None:
        config = BenchmarkConfiguration(artifact_name="simple-hash")

        assert config.backend == "UltraHonk"
        assert config.runs == 1
        assert config.threads == 1
        assert config.inter_run_delay_s == 0.1
        assert config.stage_timeout_s is None

    @pytest.mark.parametrize("field", ["runs", "threads"])
    def test_counts_must_be_positive(self, field: str) -> None:
        with pytest.raises(ValidationError):
            BenchmarkConfiguration.model_validate({"artifact_name": "a", field: 0})

    def test_blank_artifact_rejected(self) -> None:
        with pytest.raises(ValidationError):
            BenchmarkConfiguration(artifact_name="")
