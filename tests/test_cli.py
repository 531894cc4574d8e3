"""Tests for the proofbench CLI (main.py)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner
from proofbench import main
from proofbench.config import ProofbenchSettings
from proofbench.main import cli
from proofbench.models.session import BenchmarkConfiguration
from proofbench.orchestrator import BenchmarkOrchestrator
from proofbench.profiling.profiler import StageProfiler
from proofbench.protocols.progress import ProgressSink
from proofbench.services.artifacts import ArtifactService
from proofbench.services.proofs import ProofService

from tests.fakes import (
    FakeBackend,
    FakeClock,
    FakeMemorySampler,
    InMemoryArtifactSource,
    RecordingSleep,
)


def _write_config(path: Path, **sections: object) -> Path:
    path.write_text(yaml.safe_dump({"proofbench": sections}, sort_keys=False), encoding="utf-8")
    return path


@pytest.fixture
def fake_wiring(monkeypatch: pytest.MonkeyPatch) -> FakeBackend:
    clock = FakeClock()
    backend = FakeBackend(clock)

    def build(
        settings: ProofbenchSettings,
        config: BenchmarkConfiguration,
        progress: ProgressSink,
    ) -> BenchmarkOrchestrator:
        return BenchmarkOrchestrator(
            artifacts=ArtifactService(InMemoryArtifactSource(clock)),
            proofs=ProofService(backend),
            profiler=StageProfiler(clock=clock, sampler=FakeMemorySampler()),
            progress=progress,
            sleep=RecordingSleep(),
        )

    monkeypatch.setattr(main, "build_orchestrator", build)
    return backend


class TestBenchmarkCommand:
    def test_writes_json_report(self, tmp_path: Path, fake_wiring: FakeBackend) -> None:
        output = tmp_path / "result.json"
        args = ["benchmark", "-c", "simple-hash", "-r", "2", "-o", str(output)]

        result = CliRunner().invoke(cli, [*args, "--config", str(tmp_path / "absent.yaml")])

        assert result.exit_code == 0, result.output
        assert "Benchmark completed successfully" in result.output
        assert "Proof Generation" in result.output
        document = json.loads(output.read_text(encoding="utf-8"))
        assert [stage["stage"] for stage in document["stages"]] == [
            "load",
            "init",
            "witness",
            "generate",
            "verify",
        ]
        assert document["totals"]["timeMs"] == 982
        assert document["metadata"]["runs"] == 2
        assert fake_wiring.release_count == 1

    def test_failure_exits_non_zero(self, tmp_path: Path, fake_wiring: FakeBackend) -> None:
        fake_wiring.fail_on = "witness"

        result = CliRunner().invoke(
            cli, ["benchmark", "--config", str(tmp_path / "absent.yaml")]
        )

        assert result.exit_code == 1
        assert "WITNESS_GENERATION_FAILURE" in result.output
        assert result.output.count("Stage witness failed after 16.00ms") == 1
        assert "✗ Benchmark failed" in result.output

    def test_missing_circuit(self, tmp_path: Path, fake_wiring: FakeBackend) -> None:
        result = CliRunner().invoke(
            cli, ["benchmark", "-c", "nope", "--config", str(tmp_path / "absent.yaml")]
        )

        assert result.exit_code == 1
        assert "Circuit 'nope' not found" in result.output

    def test_blank_circuit_is_reported_without_traceback(
        self, tmp_path: Path, fake_wiring: FakeBackend
    ) -> None:
        result = CliRunner().invoke(
            cli, ["benchmark", "-c", " ", "--config", str(tmp_path / "absent.yaml")]
        )

        assert result.exit_code == 1
        assert "VALIDATION_ERROR" in result.output
        assert not isinstance(result.exception, ValueError)
        assert fake_wiring.calls == []

    def test_quiet_logs_progress_instead_of_drawing(
        self, tmp_path: Path, fake_wiring: FakeBackend
    ) -> None:
        output = tmp_path / "result.json"

        result = CliRunner().invoke(
            cli,
            ["benchmark", "-q", "-o", str(output), "--config", str(tmp_path / "absent.yaml")],
        )

        assert result.exit_code == 0, result.output
        assert "PROOFBENCH" not in result.output
        assert "Benchmark completed successfully" not in result.output
        assert output.is_file()

    def test_rejects_zero_runs(self) -> None:
        result = CliRunner().invoke(cli, ["benchmark", "-r", "0"])

        assert result.exit_code == 2

    def test_runs_real_pipeline_against_fake_toolchain(
        self, tmp_path: Path, circuits_dir: Path, toolchain: tuple[Path, Path]
    ) -> None:
        nargo, bb = toolchain
        config = _write_config(
            tmp_path / "proofbench.yaml",
            circuits_dir=str(circuits_dir),
            benchmark={"inter_run_delay_s": 0},
            toolchain={"nargo": str(nargo), "bb": str(bb), "work_dir": str(tmp_path / "work")},
        )
        output = tmp_path / "result.json"

        result = CliRunner().invoke(
            cli, ["benchmark", "-c", "simple-hash", "-o", str(output), "--config", str(config)]
        )

        assert result.exit_code == 0, result.output
        document = json.loads(output.read_text(encoding="utf-8"))
        assert document["artifact"]["payloadSize"] == 3
        assert document["totals"]["proofSize"] == len(b"proofbytes")
        assert all(stage["success"] for stage in document["stages"])


class TestListCircuits:
    def test_lists_compiled_circuits(self, tmp_path: Path, circuits_dir: Path) -> None:
        config = _write_config(tmp_path / "proofbench.yaml", circuits_dir=str(circuits_dir))

        result = CliRunner().invoke(cli, ["list-circuits", "--config", str(config)])

        assert result.exit_code == 0, result.output
        assert "simple-hash" in result.output

    def test_empty_directory_hints_setup(self, tmp_path: Path) -> None:
        config = _write_config(tmp_path / "proofbench.yaml", circuits_dir=str(tmp_path / "none"))

        result = CliRunner().invoke(cli, ["list-circuits", "--config", str(config)])

        assert result.exit_code == 0
        assert "proofbench setup" in result.output


class TestSetup:
    def test_compiles_all_circuits(self, tmp_path: Path, toolchain: tuple[Path, Path]) -> None:
        nargo, _ = toolchain
        circuits = tmp_path / "circuits"
        (circuits / "simple-hash").mkdir(parents=True)
        config = _write_config(
            tmp_path / "proofbench.yaml",
            circuits_dir=str(circuits),
            toolchain={"nargo": str(nargo)},
        )

        result = CliRunner().invoke(cli, ["setup", "--config", str(config)])

        assert result.exit_code == 0, result.output
        assert "[OK] simple-hash" in result.output
        assert (circuits / "simple-hash" / "target" / "simple_hash.json").is_file()

    def test_compile_failure_exits_non_zero(
        self, tmp_path: Path, toolchain: tuple[Path, Path]
    ) -> None:
        nargo, _ = toolchain
        circuits = tmp_path / "circuits"
        (circuits / "bad").mkdir(parents=True)
        (circuits / "bad" / "broken").touch()
        config = _write_config(
            tmp_path / "proofbench.yaml",
            circuits_dir=str(circuits),
            toolchain={"nargo": str(nargo)},
        )

        result = CliRunner().invoke(cli, ["setup", "bad", "--config", str(config)])

        assert result.exit_code == 1
        assert "failed to compile: bad" in result.output

    def test_missing_nargo(self, tmp_path: Path) -> None:
        (tmp_path / "circuits" / "simple-hash").mkdir(parents=True)
        config = _write_config(
            tmp_path / "proofbench.yaml",
            circuits_dir=str(tmp_path / "circuits"),
            toolchain={"nargo": "definitely-not-nargo"},
        )

        result = CliRunner().invoke(cli, ["setup", "--config", str(config)])

        assert result.exit_code == 1
        assert "CONFIGURATION_ERROR" in result.output
