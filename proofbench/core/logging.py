"""Structured logging setup with benchmark context propagation.

Every record emitted while a session runs carries the session id, the run
number and the active stage, so interleaved output from services, the
profiler and the backend can be tied back to one measurement.
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime

from opentelemetry import trace


@dataclass(frozen=True, slots=True)
class BenchmarkContext:
    """Identifiers attached to log records produced inside a session."""

    session_id: str | None = None
    run: int | None = None
    stage: str | None = None


_EMPTY_CONTEXT = BenchmarkContext()
_BENCHMARK_CONTEXT: contextvars.ContextVar[BenchmarkContext | None] = contextvars.ContextVar(
    "proofbench_benchmark_context",
    default=None,
)


def get_benchmark_context() -> BenchmarkContext:
    context = _BENCHMARK_CONTEXT.get()
    if context is None:
        return _EMPTY_CONTEXT
    return context


def _current_trace_id() -> str:
    ctx = trace.get_current_span().get_span_context()
    if ctx.trace_id:
        return format(ctx.trace_id, "032x")
    return ""


class BenchmarkContextFilter(logging.Filter):
    """Inject benchmark context fields into every ``LogRecord`` before formatting."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = get_benchmark_context()
        record.session_id = context.session_id
        record.run = context.run
        record.stage = context.stage
        record.otel_trace_id = _current_trace_id()
        return True


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object | None] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "session_id": getattr(record, "session_id", None),
            "run": getattr(record, "run", None),
            "stage": getattr(record, "stage", None),
            "trace_id": getattr(record, "otel_trace_id", None),
        }
        if record.exc_info is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def setup_logging(level: int | str = logging.INFO, json_output: bool = False) -> None:
    """Configure root logging once with context-aware handlers."""

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.filters.clear()

    handler = logging.StreamHandler(stream=sys.stderr)
    if json_output:
        formatter: logging.Formatter = _JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s "
            "session=%(session_id)s run=%(run)s stage=%(stage)s "
            "%(message)s",
        )
    handler.setFormatter(formatter)

    context_filter = BenchmarkContextFilter()
    handler.addFilter(context_filter)
    root_logger.addFilter(context_filter)
    root_logger.addHandler(handler)


@contextmanager
def benchmark_scope(
    *,
    session_id: str | None = None,
    run: int | None = None,
    stage: str | None = None,
) -> Iterator[None]:
    """Temporarily apply benchmark identifiers to the current async context.

    Nested scopes inherit outer values unless explicitly overridden.
    """

    current = get_benchmark_context()
    updated = BenchmarkContext(
        session_id=current.session_id if session_id is None else session_id,
        run=current.run if run is None else run,
        stage=current.stage if stage is None else stage,
    )
    token = _BENCHMARK_CONTEXT.set(updated)
    try:
        yield
    finally:
        _BENCHMARK_CONTEXT.reset(token)


__all__ = [
    "BenchmarkContext",
    "BenchmarkContextFilter",
    "benchmark_scope",
    "get_benchmark_context",
    "setup_logging",
]
