"""Console and logging progress sinks.

Both are pure presentation: the orchestrator calls them fire-and-forget and
ignores anything they raise.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import click

from proofbench.models.benchmark import PROOF_GENERATION_STAGE, BenchmarkResult, Stage
from proofbench.models.session import BenchmarkConfiguration

logger = logging.getLogger(__name__)

STAGE_DISPLAY_NAMES: dict[str, str] = {
    "load": "Circuit Load",
    "init": "Backend Init",
    "witness": "Witness Generation",
    "generate": "Proof Generation",
    "verify": "Proof Verify",
}

_STAGE_STATUS: dict[str, str] = {
    "load": "Loading circuit...",
    "init": "Initializing backend...",
    "witness": "Generating witness...",
    "generate": "Generating proof...",
    "verify": "Verifying proof...",
}

_BAR_WIDTH = 30
_MB = 1024 * 1024


def stage_display_name(name: str) -> str:
    return STAGE_DISPLAY_NAMES.get(name, name.upper())


def format_mb(num_bytes: float) -> int:
    return round(num_bytes / _MB)


def _bar(percentage: float, width: int = _BAR_WIDTH) -> str:
    filled = max(0, min(width, round(width * percentage / 100)))
    return "█" * filled + "░" * (width - filled)


def render_pipeline(result: BenchmarkResult) -> list[str]:
    """One line per stage: name, share of total time, duration and post-stage heap."""
    total = result.totals.time_ms
    lines: list[str] = []
    for stage in result.stages:
        share = stage.time_ms / total * 100 if total > 0 else 0.0
        label = stage_display_name(stage.name)
        line = (
            f"{label:<20} {_bar(share)} {share:5.1f}%  "
            f"{round(stage.time_ms):>7}ms  {format_mb(stage.memory_after.heap_used):>5}MB"
        )
        lines.append(click.style(line, bold=True) if stage.name == PROOF_GENERATION_STAGE else line)
    return lines


def render_summary(result: BenchmarkResult) -> list[str]:
    totals = result.totals
    lines = [
        f"Total time:   {round(totals.time_ms)}ms",
        f"Peak memory:  {format_mb(totals.memory_peak)}MB",
        f"Proof size:   {totals.proof_size} bytes",
        f"Witness size: {totals.witness_size} bytes",
    ]
    if result.metadata.runs > 1:
        lines.append(f"Runs:         {result.metadata.runs} (averaged)")
    if result.stage(PROOF_GENERATION_STAGE) is not None:
        lines.append(
            f"Proof generation accounts for {result.proof_generation_percentage:.1f}% of total time"
        )
    return lines


class ConsoleProgressSink:
    def __init__(self, echo: Callable[..., None] = click.echo) -> None:
        self._echo = echo

    def banner(
        self,
        title: str = "PROOFBENCH",
        subtitle: str = "Zero-knowledge proof benchmarking",
    ) -> None:
        rule = "═" * max(len(title), len(subtitle))
        self._echo(click.style(f"\n{rule}\n{title}\n{subtitle}\n{rule}\n", fg="cyan", bold=True))

    def session_started(self, config: BenchmarkConfiguration) -> None:
        self._echo(
            f"Circuit: {click.style(config.artifact_name, bold=True)} | "
            f"Backend: {click.style(config.backend, bold=True)} | "
            f"Runs: {click.style(str(config.runs), bold=True)} | "
            f"Threads: {click.style(str(config.threads), bold=True)}\n"
        )

    def run_started(self, run_number: int, total_runs: int) -> None:
        self._echo(click.style(f"Run {run_number}/{total_runs}", fg="blue", bold=True))

    def stage_started(self, stage_name: str) -> None:
        status = _STAGE_STATUS.get(stage_name, f"Running {stage_name}...")
        self._echo(click.style("… ", fg="yellow") + status)

    def stage_completed(self, stage: Stage, verbose: bool) -> None:
        label = stage_display_name(stage.name)
        elapsed = click.style(f"{round(stage.time_ms)}ms", fg="cyan")
        memory = click.style(f"{format_mb(stage.memory_after.heap_used)}MB", fg="magenta")
        if not verbose:
            tag = click.style("[BENCH]", fg="blue")
            self._echo(f"{tag} {click.style(label, bold=True)}: {elapsed} | {memory}")
            return
        delta = stage.memory_delta
        self._echo(
            f"┌─ {click.style(label, bold=True)} {click.style('✓', fg='green')}\n"
            f"│  time {elapsed}  heap {memory}  "
            f"Δheap {delta.heap_used:+d}B  Δrss {delta.rss:+d}B\n"
            "└─"
        )

    def session_completed(self, result: BenchmarkResult) -> None:
        self._echo(click.style("✓ Benchmark completed successfully", fg="green"))
        self._echo("")
        for line in render_pipeline(result):
            self._echo(line)
        self._echo("")
        for line in render_summary(result):
            self._echo(line)

    def session_failed(self, error: BaseException) -> None:
        self._echo(click.style("✗ Benchmark failed", fg="red"), err=True)

    def warning(self, message: str) -> None:
        self._echo(click.style(f"[WARN] {message}", fg="yellow"), err=True)


class LoggingProgressSink:
    """Progress sink that only writes log records; used for non-interactive runs."""

    def session_started(self, config: BenchmarkConfiguration) -> None:
        logger.info(
            "Benchmark %s on %s: runs=%d threads=%d",
            config.artifact_name,
            config.backend,
            config.runs,
            config.threads,
        )

    def run_started(self, run_number: int, total_runs: int) -> None:
        logger.info("Run %d/%d", run_number, total_runs)

    def stage_started(self, stage_name: str) -> None:
        logger.debug("Stage %s started", stage_name)

    def stage_completed(self, stage: Stage, verbose: bool) -> None:
        logger.info(
            "Stage %s: %.2fms heap=%dB",
            stage.name,
            stage.time_ms,
            stage.memory_after.heap_used,
        )

    def session_completed(self, result: BenchmarkResult) -> None:
        logger.info(
            "Benchmark completed: total=%.2fms peak=%dB proof=%dB",
            result.totals.time_ms,
            round(result.totals.memory_peak),
            result.totals.proof_size,
        )

    def session_failed(self, error: BaseException) -> None:
        logger.error("Benchmark failed: %s", error)

    def warning(self, message: str) -> None:
        logger.warning(message)


__all__ = [
    "ConsoleProgressSink",
    "LoggingProgressSink",
    "STAGE_DISPLAY_NAMES",
    "format_mb",
    "render_pipeline",
    "render_summary",
    "stage_display_name",
]
