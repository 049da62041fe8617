"""Tests for dispatch telemetry."""

import pytest
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from nexus.application.dtos.emit_options import EmitOptions
from nexus.domain.events.event import Event
from nexus.domain.services.cancellation import ListenerAbortedError, ListenerTimeoutError
from nexus.infrastructure.event_manager import EventManager
from nexus.infrastructure.telemetry.otel_exporter import (
    DispatchTelemetry,
    OTELConfig,
    configure_exporter,
    failure_kind,
)


@pytest.fixture
def metric_reader():
    return InMemoryMetricReader()


@pytest.fixture
def span_exporter():
    return InMemorySpanExporter()


@pytest.fixture
def telemetry(metric_reader, span_exporter):
    tracer_provider = TracerProvider()
    tracer_provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return DispatchTelemetry(
        meter_provider=MeterProvider(metric_readers=[metric_reader]),
        tracer_provider=tracer_provider,
    )


def _metrics(reader):
    found = {}
    data = reader.get_metrics_data()
    for resource_metrics in data.resource_metrics:
        for scope_metrics in resource_metrics.scope_metrics:
            for metric in scope_metrics.metrics:
                found[metric.name] = list(metric.data.data_points)
    return found


class TestOTELConfig:
    def test_defaults(self):
        config = OTELConfig()
        assert config.endpoint == ""
        assert config.service_name == "event-nexus"

    def test_localhost_http_allowed(self):
        OTELConfig(endpoint="http://localhost:4317")

    def test_remote_http_rejected(self):
        with pytest.raises(ValueError, match="insecure=True"):
            OTELConfig(endpoint="http://collector.example.com:4317")

    def test_remote_http_allowed_when_insecure(self):
        OTELConfig(endpoint="http://collector.example.com:4317", insecure=True)

    def test_https_allowed(self):
        OTELConfig(endpoint="https://collector.example.com:4317")


class TestFailureKind:
    def test_kinds(self):
        assert failure_kind(ListenerTimeoutError(10)) == "timeout"
        assert failure_kind(ListenerAbortedError()) == "aborted"
        assert failure_kind(RuntimeError()) == "error"


class TestDispatchTelemetry:
    def test_failure_counter(self, telemetry, metric_reader):
        telemetry.record_listener_failure("k", RuntimeError())
        telemetry.record_listener_failure("k", ListenerTimeoutError(5))

        points = _metrics(metric_reader)["nexus.listener.failures"]
        by_kind = {p.attributes["kind"]: p.value for p in points}
        assert by_kind == {"error": 1, "timeout": 1}
        assert all(p.attributes["event"] == "k" for p in points)

    def test_duration_histogram(self, telemetry, metric_reader):
        telemetry.record_emit("k", "sequential", 12.0)

        points = _metrics(metric_reader)["nexus.emit.duration_ms"]
        assert len(points) == 1
        assert points[0].count == 1
        assert dict(points[0].attributes) == {"event": "k", "mode": "sequential"}

    @pytest.mark.asyncio
    async def test_emit_async_produces_span_and_metrics(
        self, telemetry, metric_reader, span_exporter
    ):
        manager = EventManager(telemetry=telemetry)
        manager.register("k", lambda event: 1 / 0)
        manager.register("k", lambda event: None)

        await manager.emit_async(Event("k", None), EmitOptions(mode="concurrent"))

        spans = span_exporter.get_finished_spans()
        assert [s.name for s in spans] == ["nexus.emit_async"]
        assert spans[0].attributes["event"] == "k"
        assert spans[0].attributes["listeners"] == 2

        found = _metrics(metric_reader)
        assert found["nexus.listener.failures"][0].value == 1
        assert found["nexus.emit.duration_ms"][0].attributes["mode"] == "concurrent"


class TestConfigureExporter:
    def test_disabled_without_endpoint(self):
        assert configure_exporter(OTELConfig()) is None
