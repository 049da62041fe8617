"""
Listener Registry

Architectural Intent:
- Owns the mapping from event key to the ordered set of registered listeners
- Reads hand out snapshots so in-flight dispatch never sees later registrations
- Append-only: listeners are never removed once registered

Design Decisions:
- Each key maps to an insertion-ordered dict keyed by listener identity, which
  gives set semantics without requiring listeners to be hashable
- The per-key capacity is advisory only: exceeding it is reported, never refused
"""

from __future__ import annotations
import logging
from typing import Any, Callable, Hashable, Optional

from nexus.domain.events.event import Listener
from nexus.domain.value_objects.event_key import EventKey

logger = logging.getLogger(__name__)

CapacityCallback = Callable[[str, int, int], None]


def listener_identity(listener: Listener) -> Hashable:
    """Identity used for deduplication.

    Bound methods are recreated on every attribute access, so they are keyed
    by the (instance, function) pair instead of the method object itself.
    """
    owner = getattr(listener, "__self__", None)
    func = getattr(listener, "__func__", None)
    if owner is not None and func is not None:
        return (id(owner), func)
    return id(listener)


class ListenerRegistry:
    def __init__(
        self,
        max_listeners: Optional[int] = None,
        on_capacity_exceeded: Optional[CapacityCallback] = None,
        debug: bool = False,
    ) -> None:
        self._listeners: dict[str, dict[Hashable, Listener]] = {}
        self._max_listeners = max_listeners
        self._on_capacity_exceeded = on_capacity_exceeded
        self._debug = debug

    @property
    def max_listeners(self) -> Optional[int]:
        return self._max_listeners

    def register(self, event_key: str, listener: Listener) -> None:
        if not callable(listener):
            raise TypeError(f"Listener must be callable, got {type(listener).__name__}")
        name = EventKey(event_key).value
        entries = self._listeners.setdefault(name, {})
        entries.setdefault(listener_identity(listener), listener)

        count = len(entries)
        if self._max_listeners and count > self._max_listeners:
            if self._debug:
                logger.debug(
                    "Listener count for %r = %d > max (%d)",
                    name,
                    count,
                    self._max_listeners,
                )
            if self._on_capacity_exceeded is not None:
                try:
                    self._on_capacity_exceeded(name, count, self._max_listeners)
                except Exception:
                    logger.exception("Capacity callback failed for %r", name)

    def listeners_for(self, event_key: str) -> tuple[Listener, ...]:
        entries = self._listeners.get(str(event_key).strip())
        if not entries:
            return ()
        return tuple(entries.values())

    def listener_count(self, event_key: str) -> int:
        return len(self._listeners.get(str(event_key).strip(), ()))

    def event_keys(self) -> tuple[str, ...]:
        return tuple(self._listeners)

    def stats(self) -> dict[str, Any]:
        return {
            "event_keys": len(self._listeners),
            "total_listeners": sum(len(v) for v in self._listeners.values()),
            "max_listeners": self._max_listeners,
        }
