"""OpenTelemetry tracing setup for benchmark sessions.

Sessions and stages are recorded as spans. The exported resource carries the
circuit, backend, run count and thread count of the session, so traces from
different benchmark configurations can be told apart in the collector. When
tracing is disabled a no-op provider is installed so instrumented code never
branches on it.
"""

from __future__ import annotations

import logging
import platform
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import NoOpTracerProvider

from proofbench.models.session import BenchmarkConfiguration

logger = logging.getLogger(__name__)

_tracer_provider: TracerProvider | NoOpTracerProvider | None = None


def _package_version() -> str:
    try:
        return pkg_version("proofbench")
    except PackageNotFoundError:
        return "0.0.0"


def session_resource(
    config: BenchmarkConfiguration | None = None,
    *,
    service_name: str = "proofbench",
    env: str = "dev",
) -> Resource:
    attributes: dict[str, str | int] = {
        "service.name": service_name,
        "service.version": _package_version(),
        "deployment.environment": env,
        "host.arch": platform.machine(),
    }
    if config is not None:
        attributes.update(
            {
                "proofbench.circuit": config.artifact_name,
                "proofbench.backend": config.backend,
                "proofbench.runs": config.runs,
                "proofbench.threads": config.threads,
            }
        )
    return Resource.create(attributes)


def init_tracing(
    *,
    config: BenchmarkConfiguration | None = None,
    service_name: str = "proofbench",
    env: str = "dev",
    endpoint: str | None = "localhost:4317",
) -> TracerProvider | NoOpTracerProvider:
    """Install a tracer provider exporting over OTLP gRPC, or a no-op one."""
    global _tracer_provider  # noqa: PLW0603

    if not endpoint:
        provider = NoOpTracerProvider()
        trace.set_tracer_provider(provider)
        _tracer_provider = provider
        logger.info("Tracing disabled (no endpoint configured)")
        return provider

    resource = session_resource(config, service_name=service_name, env=env)
    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(endpoint=endpoint, insecure=True)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    logger.info("Tracing benchmark sessions to %s (env=%s)", endpoint, env)

    trace.set_tracer_provider(provider)
    _tracer_provider = provider
    return provider


def get_tracer(name: str) -> trace.Tracer:
    return trace.get_tracer(name)


def shutdown_tracing() -> None:
    """Flush pending session spans and shut the provider down."""
    global _tracer_provider  # noqa: PLW0603

    provider, _tracer_provider = _tracer_provider, None
    if isinstance(provider, TracerProvider):
        provider.shutdown()


__all__ = ["get_tracer", "init_tracing", "session_resource", "shutdown_tracing"]
