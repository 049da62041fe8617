"""
Event Module

Architectural Intent:
- Immutable event value carried from publishers to listeners
- Payload is opaque to the dispatcher; keeping payload types consistent per
  event key is the caller's responsibility (not checked at runtime)
- Listeners are plain callables, sync or async
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar, Union

T = TypeVar("T")

# A listener may finish immediately or hand back an awaitable that finishes later
Listener = Callable[["Event[Any]"], Union[None, Awaitable[Any]]]


@dataclass(frozen=True)
class Event(Generic[T]):
    name: str
    payload: T


@dataclass(frozen=True)
class ListenerErrorInfo:
    """Where a listener failure happened: the event key and the listener's
    zero-based position in the dispatch order."""

    event: str
    listener_index: int


ErrorSink = Callable[[BaseException, ListenerErrorInfo], None]
