"""
Cancellation Module

Architectural Intent:
- Bounds a single listener outcome with an optional deadline and an optional
  external cancellation token
- Normalizes both into distinguishable exceptions (ListenerTimeoutError,
  ListenerAbortedError) so they flow through the same reporting path as
  ordinary listener failures

Design Decisions:
- The race is settled with asyncio.wait over the listener task and a private
  waiter future that the timer and token callbacks resolve
- Timer handles and token callbacks are released on every exit path
- A listener that loses the race is cancelled, so no orphaned task outlives the call
"""

from __future__ import annotations
import asyncio
import inspect
import logging
import math
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)


class NexusError(Exception):
    pass


class ListenerTimeoutError(NexusError, TimeoutError):
    def __init__(self, timeout_ms: float) -> None:
        super().__init__(f"Listener timed out after {timeout_ms:g} ms")
        self.timeout_ms = timeout_ms


class ListenerAbortedError(NexusError):
    def __init__(self, reason: Any = None) -> None:
        message = "Listener aborted"
        if reason is not None:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.reason = reason


class CancellationToken:
    """
    External handle a caller can signal to abort in-flight listener invocations.

    Callbacks run synchronously inside cancel(). A callback added after the
    token has been cancelled runs immediately.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: Any = None
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> Any:
        return self._reason

    @property
    def callback_count(self) -> int:
        return len(self._callbacks)

    def cancel(self, reason: Any = None) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def add_callback(self, callback: Callable[[], None]) -> None:
        if self._cancelled:
            callback()
            return
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[], None]) -> None:
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass


def _discard(outcome: Any) -> None:
    # Never awaited: close coroutines and cancel futures so nothing warns or runs
    if inspect.iscoroutine(outcome):
        outcome.close()
    elif isinstance(outcome, asyncio.Future):
        outcome.cancel()


async def with_timeout(
    outcome: Union[Awaitable[Any], Any],
    timeout_ms: Optional[float] = None,
    cancellation_token: Optional[CancellationToken] = None,
) -> Any:
    """Await a listener outcome, bounded by a deadline and/or a cancellation token.

    Args:
        outcome: Awaitable returned by a listener, or a plain (already settled) value.
        timeout_ms: Deadline in milliseconds. None or 0 disables the timer.
        cancellation_token: External token; cancelling it aborts the wait.

    Raises:
        ListenerTimeoutError: If the deadline elapses first.
        ListenerAbortedError: If the token is (or becomes) cancelled first.
    """
    awaitable = inspect.isawaitable(outcome)
    if not timeout_ms and cancellation_token is None:
        return await outcome if awaitable else outcome

    if cancellation_token is not None and cancellation_token.cancelled:
        if awaitable:
            _discard(outcome)
        raise ListenerAbortedError(cancellation_token.reason)

    if not awaitable:
        return outcome

    loop = asyncio.get_running_loop()
    task = asyncio.ensure_future(outcome)
    waiter: asyncio.Future = loop.create_future()

    def _settle(error: NexusError) -> None:
        if not waiter.done():
            waiter.set_result(error)

    def _on_timeout() -> None:
        _settle(ListenerTimeoutError(timeout_ms))

    def _on_abort() -> None:
        _settle(ListenerAbortedError(cancellation_token.reason))

    timer = None
    if timeout_ms and math.isfinite(timeout_ms):
        timer = loop.call_later(timeout_ms / 1000, _on_timeout)
    if cancellation_token is not None:
        cancellation_token.add_callback(_on_abort)

    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        if timer is not None:
            timer.cancel()
        if cancellation_token is not None:
            cancellation_token.remove_callback(_on_abort)

    if task.done():
        waiter.cancel()
        return task.result()

    task.cancel()
    error = waiter.result()
    logger.debug("Listener outcome abandoned: %s", error)
    raise error
