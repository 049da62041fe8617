"""
Domain Services Package

Architectural Intent:
- Listener bookkeeping and the per-listener cancellation wrapper
"""

from nexus.domain.services.cancellation import (
    CancellationToken,
    ListenerAbortedError,
    ListenerTimeoutError,
    NexusError,
    with_timeout,
)
from nexus.domain.services.listener_registry import ListenerRegistry

__all__ = [
    "CancellationToken",
    "ListenerAbortedError",
    "ListenerTimeoutError",
    "ListenerRegistry",
    "NexusError",
    "with_timeout",
]
