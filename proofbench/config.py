from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from proofbench.errors import validation_error
from proofbench.models.session import BenchmarkConfiguration


class BenchmarkDefaults(BaseModel):
    """Defaults applied when the CLI does not override them."""

    artifact: str = "simple-hash"
    backend: str = "UltraHonk"
    threads: int = Field(default=1, ge=1)
    runs: int = Field(default=1, ge=1)
    inter_run_delay_s: float = Field(default=0.1, ge=0)
    stage_timeout_s: float | None = Field(default=None, gt=0)


class ToolchainConfig(BaseModel):
    nargo: str = "nargo"
    bb: str = "bb"
    work_dir: Path | None = None
    """Parent directory for per-session backend scratch space; system temp if unset."""


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_output: bool = False

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return normalized


class TelemetryConfig(BaseModel):
    """OpenTelemetry tracing configuration."""

    enabled: bool = False
    endpoint: str = "localhost:4317"
    env: str = "dev"


class ProofbenchSettings(BaseSettings):
    circuits_dir: Path = Path("./circuits")
    benchmark: BenchmarkDefaults = Field(default_factory=BenchmarkDefaults)
    toolchain: ToolchainConfig = Field(default_factory=ToolchainConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    model_config = SettingsConfigDict(
        env_prefix="PROOFBENCH_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    def benchmark_configuration(
        self,
        *,
        artifact: str | None = None,
        backend: str | None = None,
        runs: int | None = None,
        threads: int | None = None,
        verbose: bool = False,
    ) -> BenchmarkConfiguration:
        defaults = self.benchmark
        try:
            return BenchmarkConfiguration(
                artifact_name=artifact or defaults.artifact,
                backend=backend or defaults.backend,
                runs=defaults.runs if runs is None else runs,
                threads=defaults.threads if threads is None else threads,
                verbose=verbose,
                inter_run_delay_s=defaults.inter_run_delay_s,
                stage_timeout_s=defaults.stage_timeout_s,
            )
        except ValidationError as exc:
            raise validation_error(_describe(exc), cause=exc) from exc


def _describe(exc: ValidationError) -> str:
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return f"invalid benchmark configuration: {details}"


def _coerce_env_value(value: str) -> object:
    parsed = yaml.safe_load(value)
    return value if parsed is None else parsed


def _set_nested(mapping: dict[str, object], path: list[str], value: object) -> None:
    current = mapping
    for key in path[:-1]:
        existing = current.get(key)
        if not isinstance(existing, dict):
            existing = {}
            current[key] = existing
        current = existing
    current[path[-1]] = value


def _apply_env_overrides(data: dict[str, object]) -> dict[str, object]:
    merged = dict(data)
    prefix = "PROOFBENCH_"
    for key, raw_value in os.environ.items():
        if not key.startswith(prefix):
            continue
        path = key[len(prefix) :].lower().split("__")
        _set_nested(merged, path, _coerce_env_value(raw_value))
    return merged


def load_config(path: str | Path | None = "proofbench.yaml") -> ProofbenchSettings:
    """Load settings from YAML (optional) with ``PROOFBENCH_*`` env overrides on top."""
    raw: dict[str, object] = {}
    config_path = Path(path) if path is not None else None
    if config_path is not None and config_path.exists():
        loaded = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        if not isinstance(loaded, dict):
            raise ValueError("config file must contain a top-level mapping")
        section = loaded.get("proofbench", loaded)
        if not isinstance(section, dict):
            raise ValueError("proofbench config section must be a mapping")
        raw = section

    return ProofbenchSettings.model_validate(_apply_env_overrides(raw))


__all__ = [
    "BenchmarkDefaults",
    "LoggingConfig",
    "ProofbenchSettings",
    "TelemetryConfig",
    "ToolchainConfig",
    "load_config",
]
