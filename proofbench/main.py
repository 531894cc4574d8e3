"""proofbench CLI entry point and dependency wiring."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import click

from proofbench.backends.barretenberg import create_backend
from proofbench.circuits.compiler import CompileOutcome, compile_all, compile_circuit
from proofbench.circuits.filesystem import FileSystemArtifactSource
from proofbench.config import ProofbenchSettings, load_config
from proofbench.core.logging import setup_logging
from proofbench.core.telemetry import init_tracing, shutdown_tracing
from proofbench.errors import BenchmarkError
from proofbench.models.benchmark import BenchmarkResult
from proofbench.models.session import BenchmarkConfiguration
from proofbench.orchestrator import BenchmarkOrchestrator
from proofbench.profiling.profiler import StageProfiler
from proofbench.protocols.progress import ProgressSink
from proofbench.reporting.console import ConsoleProgressSink, LoggingProgressSink
from proofbench.services.artifacts import ArtifactService
from proofbench.services.proofs import ProofService

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = "proofbench.yaml"


def build_orchestrator(
    settings: ProofbenchSettings,
    config: BenchmarkConfiguration,
    progress: ProgressSink,
) -> BenchmarkOrchestrator:
    """Wire the filesystem source, the CLI backend and the profiler into an orchestrator."""
    backend = create_backend(
        config.backend,
        nargo=settings.toolchain.nargo,
        bb=settings.toolchain.bb,
        threads=config.threads,
        work_root=settings.toolchain.work_dir,
    )
    return BenchmarkOrchestrator(
        artifacts=ArtifactService(FileSystemArtifactSource(settings.circuits_dir)),
        proofs=ProofService(backend),
        profiler=StageProfiler(),
        progress=progress,
    )


def _load_settings(config_path: Path, verbose: bool = False) -> ProofbenchSettings:
    try:
        settings = load_config(config_path)
    except ValueError as exc:
        raise click.ClickException(f"invalid configuration: {exc}") from exc
    level = "DEBUG" if verbose else settings.logging.level
    setup_logging(level, json_output=settings.logging.json_output)
    return settings


def _fail(exc: BenchmarkError, verbose: bool) -> click.ClickException:
    if verbose and exc.cause is not None:
        click.echo(f"Caused by: {exc.cause!r}", err=True)
    return click.ClickException(f"[{exc.code}] {exc}")


_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=_DEFAULT_CONFIG_PATH,
    show_default=True,
)


@click.group()
@click.version_option(package_name="proofbench")
def cli() -> None:
    """Benchmarking and profiling tool for Noir circuits on Barretenberg."""


async def _run_benchmark(
    settings: ProofbenchSettings,
    config: BenchmarkConfiguration,
    progress: ProgressSink,
) -> BenchmarkResult:
    orchestrator = build_orchestrator(settings, config, progress)
    return await orchestrator.execute_benchmark(config)


@cli.command("benchmark")
@click.option("-c", "--circuit", default=None, help="Circuit to benchmark.")
@click.option("-b", "--backend", default=None, help="Proving backend (UltraHonk).")
@click.option("-t", "--threads", type=click.IntRange(min=1), default=None, help="Prover threads.")
@click.option("-r", "--runs", type=click.IntRange(min=1), default=None, help="Number of runs.")
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Write the JSON report to this file.",
)
@click.option("--verbose", is_flag=True, help="Verbose output.")
@click.option("-q", "--quiet", is_flag=True, help="Log progress instead of drawing it.")
@_config_option
def benchmark_command(
    circuit: str | None,
    backend: str | None,
    threads: int | None,
    runs: int | None,
    output: Path | None,
    verbose: bool,
    quiet: bool,
    config_path: Path,
) -> None:
    """Run a benchmark of one circuit."""
    settings = _load_settings(config_path, verbose)
    try:
        config = settings.benchmark_configuration(
            artifact=circuit,
            backend=backend,
            runs=runs,
            threads=threads,
            verbose=verbose,
        )
    except BenchmarkError as exc:
        raise _fail(exc, verbose) from exc

    progress: ProgressSink
    if quiet:
        progress = LoggingProgressSink()
    else:
        console = ConsoleProgressSink()
        console.banner()
        progress = console

    if settings.telemetry.enabled:
        init_tracing(
            config=config, env=settings.telemetry.env, endpoint=settings.telemetry.endpoint
        )
    try:
        result = asyncio.run(_run_benchmark(settings, config, progress))
    except BenchmarkError as exc:
        raise _fail(exc, verbose) from exc
    finally:
        shutdown_tracing()

    if output is not None:
        output.write_text(result.to_json() + "\n", encoding="utf-8")
        logger.info("Report written to %s", output)
        click.echo(click.style(f"Results saved to: {output.resolve()}", fg="green"))


@cli.command("list-circuits")
@_config_option
def list_circuits_command(config_path: Path) -> None:
    """List compiled circuits available for benchmarking."""
    settings = _load_settings(config_path)
    service = ArtifactService(FileSystemArtifactSource(settings.circuits_dir))
    try:
        circuits = asyncio.run(service.list_available())
    except BenchmarkError as exc:
        raise _fail(exc, verbose=False) from exc

    if not circuits:
        click.echo("No circuits found. Run `proofbench setup` first.", err=True)
        return
    click.echo("Available circuits:")
    for name in circuits:
        click.echo(f"  {click.style('•', fg='green')} {name}")


def _report_compile(outcome: CompileOutcome) -> None:
    if outcome.success:
        tag = click.style("[OK]", fg="green")
        click.echo(f"{tag} {outcome.name} ({outcome.program_size} bytes)")
    else:
        tag = click.style("[FAIL]", fg="red")
        click.echo(f"{tag} {outcome.name}: {outcome.message}", err=True)


@cli.command("setup")
@click.argument("circuit", required=False)
@_config_option
def setup_command(circuit: str | None, config_path: Path) -> None:
    """Compile one circuit, or every circuit under circuits_dir, with nargo."""
    settings = _load_settings(config_path)
    nargo = settings.toolchain.nargo
    try:
        if circuit:
            outcomes = [asyncio.run(compile_circuit(settings.circuits_dir, circuit, nargo=nargo))]
        else:
            outcomes = asyncio.run(compile_all(settings.circuits_dir, nargo=nargo))
    except BenchmarkError as exc:
        raise _fail(exc, verbose=False) from exc

    for outcome in outcomes:
        _report_compile(outcome)

    failed = [outcome.name for outcome in outcomes if not outcome.success]
    if failed:
        raise click.ClickException(f"failed to compile: {', '.join(failed)}")
    click.echo("Compilation completed")


__all__ = ["build_orchestrator", "cli"]


if __name__ == "__main__":
    cli()
