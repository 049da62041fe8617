"""
Nexus Telemetry Infrastructure

Architectural Intent:
- OpenTelemetry integration for dispatch observability
- Metrics and traces export over OTLP
"""

from nexus.infrastructure.telemetry.otel_exporter import (
    DispatchTelemetry,
    OTELConfig,
    configure_exporter,
    failure_kind,
)

__all__ = [
    "DispatchTelemetry",
    "OTELConfig",
    "configure_exporter",
    "failure_kind",
]
