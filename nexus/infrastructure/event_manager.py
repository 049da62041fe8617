"""
Event Manager Infrastructure

Architectural Intent:
- In-memory dispatcher for publishing events to registered listeners
- Supports synchronous fan-out (emit) and asynchronous fan-out (emit_async)
  in sequential or concurrent mode
- One failing listener never prevents delivery to the others

Dispatch Order:
- Listeners registered under the event's own key run first, then wildcard
  ("*") listeners, each group in registration order
- An event published on "*" itself reaches wildcard listeners exactly once
- listener_index counts across both groups in the order they run
"""

from __future__ import annotations
import asyncio
import contextlib
import inspect
import logging
import time
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Optional, TYPE_CHECKING

from nexus.application.dtos.emit_options import EmitMode, EmitOptions
from nexus.domain.events.event import ErrorSink, Event, Listener, ListenerErrorInfo
from nexus.domain.services.cancellation import with_timeout
from nexus.domain.services.listener_registry import CapacityCallback, ListenerRegistry
from nexus.domain.value_objects.event_key import EventKey, WILDCARD_KEY

if TYPE_CHECKING:
    from nexus.infrastructure.telemetry.otel_exporter import DispatchTelemetry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatcherSettings:
    """Process-wide dispatcher settings, fixed at construction."""

    debug: bool = False
    # Advisory only; None or 0 means unlimited
    max_listeners: Optional[int] = None
    on_error: Optional[ErrorSink] = None
    on_capacity_exceeded: Optional[CapacityCallback] = None
    default_options: EmitOptions = field(default_factory=EmitOptions)


class EventManager:
    """
    Publish/subscribe dispatcher.

    Error policy:
    - Event names are validated as EventKeys before dispatch starts; a blank
      name raises ValueError and no listener runs.
    - emit() never raises a listener failure to its caller.
    - emit_async() raises only in sequential mode with stop_on_error, and only
      the first failure (dispatch stops there).
    - Every failure, including timeouts and aborts, is passed to
      settings.on_error together with a ListenerErrorInfo. When no sink is
      configured the failure is only logged at DEBUG level; outside the
      stop_on_error path it is otherwise invisible to the caller.
    """

    def __init__(
        self,
        settings: Optional[DispatcherSettings] = None,
        registry: Optional[ListenerRegistry] = None,
        telemetry: Optional["DispatchTelemetry"] = None,
    ) -> None:
        self._settings = settings or DispatcherSettings()
        self._registry = registry or ListenerRegistry(
            max_listeners=self._settings.max_listeners,
            on_capacity_exceeded=self._settings.on_capacity_exceeded,
            debug=self._settings.debug,
        )
        self._telemetry = telemetry
        self._background: set[asyncio.Future] = set()

    @property
    def settings(self) -> DispatcherSettings:
        return self._settings

    @property
    def registry(self) -> ListenerRegistry:
        return self._registry

    def register(self, event_key: str, listener: Listener) -> None:
        self._registry.register(event_key, listener)

    def _snapshot(self, name: str) -> tuple[Listener, ...]:
        specific = self._registry.listeners_for(name)
        if name == WILDCARD_KEY:
            return specific
        return specific + self._registry.listeners_for(WILDCARD_KEY)

    # -------------------------------------------------------------------------
    # Synchronous dispatch
    # -------------------------------------------------------------------------

    def emit(self, event: Event) -> None:
        """Dispatch an event to every matching listener without suspending.

        Awaitables returned by listeners are scheduled on the running loop and
        not waited for; if one fails later it is still reported to the sink.
        """
        name = EventKey(event.name).value
        if self._settings.debug:
            logger.debug("dispatch: %r", event)

        for index, listener in enumerate(self._snapshot(name)):
            try:
                outcome = listener(event)
            except Exception as e:
                self._report(e, name, index)
                continue
            if inspect.isawaitable(outcome):
                self._schedule(outcome, name, index)

    def _schedule(self, outcome: Any, name: str, index: int) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(outcome):
                outcome.close()
            self._report(
                RuntimeError(
                    f"Listener for {name!r} returned an awaitable but no event loop is running"
                ),
                name,
                index,
            )
            return

        future = asyncio.ensure_future(outcome, loop=loop)
        self._background.add(future)
        future.add_done_callback(partial(self._on_background_done, name, index))

    def _on_background_done(self, name: str, index: int, future: asyncio.Future) -> None:
        self._background.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            self._report(error, name, index)

    async def drain(self) -> None:
        """Wait for fire-and-forget work started by emit() to settle."""
        while self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    # -------------------------------------------------------------------------
    # Asynchronous dispatch
    # -------------------------------------------------------------------------

    async def emit_async(self, event: Event, options: Optional[EmitOptions] = None) -> None:
        """Dispatch an event and wait for its listeners.

        Args:
            event: Event to dispatch.
            options: Mode, stop_on_error, per-listener timeout and cancellation
                token. Defaults to settings.default_options.

        Raises:
            Exception: The first listener failure, only in sequential mode
                with stop_on_error enabled.
        """
        options = options or self._settings.default_options
        name = EventKey(event.name).value
        if self._settings.debug:
            logger.debug("dispatch (async, %s): %r", options.mode.value, event)

        snapshot = self._snapshot(name)
        started = time.perf_counter()
        span = (
            self._telemetry.start_span(
                "nexus.emit_async",
                {"event": name, "mode": options.mode.value, "listeners": len(snapshot)},
            )
            if self._telemetry is not None
            else contextlib.nullcontext()
        )
        try:
            with span:
                if options.mode is EmitMode.SEQUENTIAL:
                    for index, listener in enumerate(snapshot):
                        await self._run_one(listener, index, event, name, options)
                else:
                    tasks = [
                        asyncio.ensure_future(
                            self._run_one(listener, index, event, name, options)
                        )
                        for index, listener in enumerate(snapshot)
                    ]
                    await asyncio.gather(*tasks)
        finally:
            if self._telemetry is not None:
                self._telemetry.record_emit(
                    name, options.mode.value, (time.perf_counter() - started) * 1000
                )

    async def _run_one(
        self,
        listener: Listener,
        index: int,
        event: Event,
        name: str,
        options: EmitOptions,
    ) -> None:
        try:
            outcome = listener(event)
            await with_timeout(outcome, options.timeout_ms, options.cancellation_token)
        except Exception as e:
            self._report(e, name, index)
            if options.mode is EmitMode.SEQUENTIAL and options.stop_on_error:
                raise

    # -------------------------------------------------------------------------
    # Error reporting
    # -------------------------------------------------------------------------

    def _report(self, error: BaseException, name: str, index: int) -> None:
        if self._telemetry is not None:
            self._telemetry.record_listener_failure(name, error)

        context = {"event": name, "listener_index": index}
        if self._settings.debug:
            logger.error(
                "Listener error on %r (idx: %d)",
                name,
                index,
                exc_info=error,
                extra=context,
            )
        else:
            logger.debug(
                "Listener error on %r (idx: %d): %s", name, index, error, extra=context
            )

        sink = self._settings.on_error
        if sink is None:
            return
        try:
            sink(error, ListenerErrorInfo(event=name, listener_index=index))
        except Exception:
            logger.exception(
                "Error sink failed for %r (idx: %d)", name, index, extra=context
            )

    def stats(self) -> dict[str, Any]:
        return {
            **self._registry.stats(),
            "pending_background": len(self._background),
        }
