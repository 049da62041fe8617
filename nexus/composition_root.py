"""
Composition Root

Architectural Intent:
- Dependency injection composition root for Event Nexus
- Single place where the shared EventManager is built and wired
- Collaborators receive the EventManager (or EventManagerPort) by injection
  instead of reaching for a process-global instance

Design Decisions:
- Uses a simple dataclass container instead of a DI framework
- The error sink is injected here because callables cannot come from config
- Telemetry is only exported when a telemetry endpoint is configured
"""

from dataclasses import dataclass
from typing import Optional

from nexus.domain.events.event import ErrorSink
from nexus.domain.services.listener_registry import CapacityCallback
from nexus.infrastructure.config import NexusConfig, load_config
from nexus.infrastructure.event_manager import DispatcherSettings, EventManager
from nexus.infrastructure.telemetry.otel_exporter import (
    DispatchTelemetry,
    configure_exporter,
)


@dataclass
class NexusContainer:
    """DI container holding all wired dependencies."""

    config: NexusConfig
    settings: DispatcherSettings
    telemetry: Optional[DispatchTelemetry]
    event_manager: EventManager


def create_container(
    config: Optional[NexusConfig] = None,
    on_error: Optional[ErrorSink] = None,
    on_capacity_exceeded: Optional[CapacityCallback] = None,
    telemetry: Optional[DispatchTelemetry] = None,
) -> NexusContainer:
    """Create and wire all dependencies."""
    config = config or load_config()
    settings = config.to_settings(
        on_error=on_error, on_capacity_exceeded=on_capacity_exceeded
    )
    if telemetry is None:
        telemetry = configure_exporter(config.to_otel_config())

    event_manager = EventManager(settings=settings, telemetry=telemetry)

    return NexusContainer(
        config=config,
        settings=settings,
        telemetry=telemetry,
        event_manager=event_manager,
    )
