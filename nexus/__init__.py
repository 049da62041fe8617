"""
Event Nexus: in-process publish/subscribe dispatcher.
"""

from nexus.application.dtos.emit_options import EmitMode, EmitOptions
from nexus.domain.events.event import Event, ListenerErrorInfo
from nexus.domain.ports.event_manager_port import EventManagerPort
from nexus.domain.services.cancellation import (
    CancellationToken,
    ListenerAbortedError,
    ListenerTimeoutError,
    NexusError,
    with_timeout,
)
from nexus.domain.value_objects.event_key import EventKey, WILDCARD_KEY
from nexus.infrastructure.event_manager import DispatcherSettings, EventManager

__all__ = [
    "CancellationToken",
    "DispatcherSettings",
    "EmitMode",
    "EmitOptions",
    "Event",
    "EventKey",
    "EventManager",
    "EventManagerPort",
    "ListenerAbortedError",
    "ListenerErrorInfo",
    "ListenerTimeoutError",
    "NexusError",
    "WILDCARD_KEY",
    "with_timeout",
]
