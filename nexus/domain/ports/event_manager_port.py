"""
Event Manager Port

Architectural Intent:
- Abstract interface for registering listeners and publishing events
- Allows decoupling of event producers from consumers
- Collaborators depend on this port; the composition root injects the implementation
"""

from __future__ import annotations
from typing import Optional, Protocol, runtime_checkable, TYPE_CHECKING

from nexus.domain.events.event import Event, Listener

if TYPE_CHECKING:
    from nexus.application.dtos.emit_options import EmitOptions


@runtime_checkable
class EventManagerPort(Protocol):
    def register(self, event_key: str, listener: Listener) -> None: ...

    def emit(self, event: Event) -> None: ...

    async def emit_async(
        self, event: Event, options: Optional["EmitOptions"] = None
    ) -> None: ...
