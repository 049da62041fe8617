"""
OpenTelemetry Instrumentation for the Event Manager

Architectural Intent:
- Records dispatch metrics and traces through the OpenTelemetry API
- Without a configured SDK every instrument is a no-op, so instrumentation
  is safe to leave on in libraries and tests
- configure_exporter() installs SDK providers exporting over OTLP

Security:
- Endpoint defaults to empty string (must be explicitly configured)
- Non-localhost http:// endpoints rejected unless insecure=True
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlparse
import logging

from opentelemetry import metrics, trace

from nexus.domain.services.cancellation import ListenerAbortedError, ListenerTimeoutError

logger = logging.getLogger(__name__)


@dataclass
class OTELConfig:
    endpoint: str = ""
    service_name: str = "event-nexus"
    environment: str = "development"
    export_interval_ms: int = 5000
    insecure: bool = False

    def __post_init__(self) -> None:
        if self.endpoint:
            parsed = urlparse(self.endpoint)
            is_localhost = parsed.hostname in ("localhost", "127.0.0.1", "::1")
            if parsed.scheme == "http" and not is_localhost and not self.insecure:
                raise ValueError(
                    f"Non-localhost HTTP endpoint '{self.endpoint}' requires "
                    "insecure=True or use https://. "
                    "Set insecure=True to explicitly allow plaintext export."
                )


def failure_kind(error: BaseException) -> str:
    if isinstance(error, ListenerTimeoutError):
        return "timeout"
    if isinstance(error, ListenerAbortedError):
        return "aborted"
    return "error"


class DispatchTelemetry:
    """
    Metrics and spans for event dispatch.

    Instruments:
    - nexus.listener.failures (counter): attributes event, kind
    - nexus.emit.duration_ms (histogram): attributes event, mode
    - nexus.emit_async (span): one per asynchronous emission
    """

    def __init__(
        self,
        meter_provider: Optional[Any] = None,
        tracer_provider: Optional[Any] = None,
    ) -> None:
        meter = metrics.get_meter(__name__, meter_provider=meter_provider)
        self._tracer = trace.get_tracer(__name__, tracer_provider=tracer_provider)
        self._failures = meter.create_counter(
            "nexus.listener.failures",
            unit="1",
            description="Listener invocations that raised, timed out or were aborted",
        )
        self._duration = meter.create_histogram(
            "nexus.emit.duration_ms",
            unit="ms",
            description="Wall time of asynchronous emissions",
        )

    def record_listener_failure(self, event: str, error: BaseException) -> None:
        self._failures.add(1, attributes={"event": event, "kind": failure_kind(error)})

    def record_emit(self, event: str, mode: str, duration_ms: float) -> None:
        self._duration.record(duration_ms, attributes={"event": event, "mode": mode})

    def start_span(self, name: str, attributes: Optional[dict[str, Any]] = None):
        """Context manager for a span that is current while the block runs."""
        return self._tracer.start_as_current_span(name, attributes=attributes or {})


def configure_exporter(config: OTELConfig) -> Optional[DispatchTelemetry]:
    """Install SDK providers exporting via OTLP and return bound instrumentation.

    Returns None when no endpoint is configured.
    """
    if not config.endpoint:
        logger.info("OTEL endpoint not configured, telemetry disabled")
        return None

    from opentelemetry.sdk.resources import Resource, SERVICE_NAME
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor
    from opentelemetry.sdk.metrics import MeterProvider
    from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import (
        OTLPMetricExporter,
    )

    resource = Resource(
        attributes={
            SERVICE_NAME: config.service_name,
            "environment": config.environment,
        }
    )

    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(
        BatchSpanProcessor(
            OTLPSpanExporter(endpoint=config.endpoint, insecure=config.insecure)
        )
    )
    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=config.endpoint, insecure=config.insecure),
        export_interval_millis=config.export_interval_ms,
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])

    trace.set_tracer_provider(tracer_provider)
    metrics.set_meter_provider(meter_provider)
    logger.info("OTEL export enabled to %s", config.endpoint)
    return DispatchTelemetry(meter_provider=meter_provider, tracer_provider=tracer_provider)
