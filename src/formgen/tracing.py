"""
Logging, tracing and pipeline telemetry for formgen.

Tracing uses the OpenAI Agents SDK's built-in trace/span machinery. Every
pipeline run is one trace; every stage event is a custom span inside it.
PipelineTelemetry is injected into the orchestrator so the same events can
go to logs, traces, or a test's event list.
"""

import json
import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass, field
from typing import Any

from agents import custom_span, set_tracing_disabled, trace
from agents.tracing import Span, Trace, TracingProcessor, set_trace_processors

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO", fmt: str = LOG_FORMAT) -> None:
    """Configure root logging for CLIs and servers."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=fmt)
    # The HTTP client logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


class LoggingTracingProcessor(TracingProcessor):
    """
    A tracing processor that writes traces to the `formgen.trace` logger.

    Useful for development and debugging.
    """

    def __init__(self, verbose: bool = False):
        """
        Initialize the logging tracing processor.

        Args:
            verbose: If True, log every span as well as traces.
        """
        self.verbose = verbose
        self._logger = logging.getLogger("formgen.trace")

    def on_trace_start(self, trace: Trace) -> None:
        self._logger.info("[TRACE START] %s (ID: %s...)", trace.name, trace.trace_id[:8])

    def on_trace_end(self, trace: Trace) -> None:
        self._logger.info("[TRACE END] %s", trace.name)

    def on_span_start(self, span: Span[Any]) -> None:
        if self.verbose:
            self._logger.debug("[SPAN START] %s", span.span_data.export())

    def on_span_end(self, span: Span[Any]) -> None:
        if self.verbose:
            self._logger.debug("[SPAN END] %s", span.span_data.export())

    def shutdown(self) -> None:
        pass

    def force_flush(self) -> None:
        pass


class FileTracingProcessor(TracingProcessor):
    """
    A tracing processor that writes traces to a JSON Lines file.

    Spans are buffered per trace and the whole trace is written as one line
    when it ends.
    """

    def __init__(self, file_path: str = "traces.jsonl"):
        """
        Initialize the file tracing processor.

        Args:
            file_path: Path to the output file (JSON Lines format).
        """
        self.file_path = file_path
        self._traces: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def on_trace_start(self, trace: Trace) -> None:
        with self._lock:
            self._traces[trace.trace_id] = {"trace_id": trace.trace_id, "name": trace.name, "spans": []}

    def on_trace_end(self, trace: Trace) -> None:
        with self._lock:
            record = self._traces.pop(trace.trace_id, None)
        if record is None:
            return
        with open(self.file_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record, default=str) + "\n")

    def on_span_start(self, span: Span[Any]) -> None:
        pass

    def on_span_end(self, span: Span[Any]) -> None:
        with self._lock:
            record = self._traces.get(span.trace_id)
            if record is not None:
                record["spans"].append(
                    {
                        "span_id": span.span_id,
                        "parent_id": span.parent_id,
                        "started_at": span.started_at,
                        "ended_at": span.ended_at,
                        "data": span.span_data.export(),
                    }
                )

    def shutdown(self) -> None:
        with self._lock:
            self._traces.clear()

    def force_flush(self) -> None:
        pass


def setup_tracing(
    enabled: bool = True,
    console: bool = True,
    verbose: bool = False,
    file_path: str | None = None,
) -> None:
    """
    Configure tracing for formgen.

    By default, traces are sent to the OpenAI dashboard if you have an
    OpenAI API key configured. Passing console or file_path replaces the
    default exporter with local processors.

    Args:
        enabled: Whether tracing is enabled.
        console: Whether to log traces through the logging module.
        verbose: Whether to log span details too.
        file_path: Optional JSONL file to write traces to.

    Example:
        >>> from formgen.tracing import setup_tracing
        >>> setup_tracing(console=True, file_path="traces.jsonl")
    """
    if not enabled:
        set_tracing_disabled(True)
        return

    set_tracing_disabled(False)

    processors: list[TracingProcessor] = []
    if console:
        processors.append(LoggingTracingProcessor(verbose=verbose))
    if file_path:
        processors.append(FileTracingProcessor(file_path=file_path))

    if processors:
        set_trace_processors(processors)


def disable_tracing() -> None:
    """Disable all tracing."""
    set_tracing_disabled(True)


def enable_tracing() -> None:
    """Enable tracing (uses default OpenAI dashboard)."""
    set_tracing_disabled(False)


STAGE_START = "stage-start"
STAGE_END = "stage-end"
STAGE_SKIP = "stage-skip"
STAGE_ERROR = "stage-error"


@dataclass
class TelemetryEvent:
    """One pipeline telemetry event."""

    event: str
    stage: str
    elapsed_ms: int | None = None
    models: list[str] = field(default_factory=list)
    detail: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"event": self.event, "stage": self.stage}
        if self.elapsed_ms is not None:
            data["elapsed_ms"] = self.elapsed_ms
        if self.models:
            data["models"] = list(self.models)
        if self.detail:
            data["detail"] = self.detail
        return data


@dataclass
class StageRecord:
    """Mutable handle yielded while a stage runs."""

    stage: str
    started: float
    models: list[str] = field(default_factory=list)
    elapsed_ms: int = 0


class PipelineTelemetry:
    """
    Structured stage events for one or more pipeline runs.

    Events go to a logger, to an optional listener, and (when tracing is
    enabled) to custom spans inside the run's trace.
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        tracing: bool = True,
        listener: Callable[[TelemetryEvent], None] | None = None,
    ):
        self._logger = logger or logging.getLogger("formgen.pipeline")
        self.tracing = tracing
        self.listener = listener
        self.events: list[TelemetryEvent] = []

    def _emit(self, event: TelemetryEvent) -> None:
        self.events.append(event)
        level = logging.WARNING if event.event == STAGE_ERROR else logging.INFO
        self._logger.log(level, "%s", json.dumps(event.to_dict()))
        if self.tracing:
            with custom_span(event.event, data=event.to_dict()):
                pass
        if self.listener is not None:
            self.listener(event)

    @contextmanager
    def run(self, name: str = "formgen-pipeline", metadata: dict[str, Any] | None = None) -> Iterator[None]:
        """Wrap one pipeline run in a trace (or nothing when tracing is off)."""
        context = trace(name, metadata=metadata) if self.tracing else nullcontext()
        with context:
            yield

    @contextmanager
    def stage(self, stage: str) -> Iterator[StageRecord]:
        """
        Emit stage-start, then stage-end or stage-error around the block.

        Exceptions are re-raised after the stage-error event.
        """
        record = StageRecord(stage=stage, started=time.perf_counter())
        self._emit(TelemetryEvent(STAGE_START, stage))
        try:
            yield record
        except Exception as e:
            record.elapsed_ms = int((time.perf_counter() - record.started) * 1000)
            self._emit(
                TelemetryEvent(
                    STAGE_ERROR,
                    stage,
                    elapsed_ms=record.elapsed_ms,
                    models=record.models,
                    detail=f"{type(e).__name__}: {e}",
                )
            )
            raise
        record.elapsed_ms = int((time.perf_counter() - record.started) * 1000)
        self._emit(TelemetryEvent(STAGE_END, stage, elapsed_ms=record.elapsed_ms, models=record.models))

    def stage_skip(self, stage: str, reason: str) -> None:
        self._emit(TelemetryEvent(STAGE_SKIP, stage, detail=reason))

    def stage_error(self, stage: str, error: BaseException, elapsed_ms: int | None = None) -> None:
        """Record a handled stage failure (soft failures never reach stage())."""
        self._emit(TelemetryEvent(STAGE_ERROR, stage, elapsed_ms=elapsed_ms, detail=f"{type(error).__name__}: {error}"))
