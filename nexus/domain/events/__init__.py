"""
Domain Events Package

Architectural Intent:
- Contains the event value and listener contracts shared by every layer
"""

from nexus.domain.events.event import (
    ErrorSink,
    Event,
    Listener,
    ListenerErrorInfo,
)

__all__ = [
    "ErrorSink",
    "Event",
    "Listener",
    "ListenerErrorInfo",
]
