"""
Demonstration Scenario

Walks through every dispatch feature against an injected EventManager:
sync events, wildcard listeners, sequential async listeners, error isolation,
per-listener timeouts and a small e-commerce flow.
"""

import asyncio
from typing import Callable

from nexus.application.dtos.emit_options import EmitMode, EmitOptions
from nexus.domain.events.event import Event, ListenerErrorInfo
from nexus.domain.ports.event_manager_port import EventManagerPort
from nexus.domain.services.cancellation import ListenerTimeoutError

PAYMENT_DELAY_S = 0.2
SLOW_OPERATION_DELAY_S = 1.0
SLOW_OPERATION_TIMEOUT_MS = 200


def print_error_sink(out: Callable[[str], None] = print):
    def on_error(error: BaseException, info: ListenerErrorInfo) -> None:
        out(f"[-] Error in event {info.event!r} (listener {info.listener_index}): {error}")

    return on_error


async def run_demo(manager: EventManagerPort, out: Callable[[str], None] = print) -> None:
    out("[*] 1. Synchronous events")

    def on_login(event: Event) -> None:
        out(f"    user logged in: {event.payload['name']} ({event.payload['email']})")

    def on_order_created(event: Event) -> None:
        out(f"    new order #{event.payload['order_id']} - ${event.payload['total']}")

    manager.register("user:login", on_login)
    manager.register("order:created", on_order_created)
    manager.emit(Event("user:login", {"name": "Juan Perez", "email": "juan@example.com"}))
    manager.emit(Event("order:created", {"order_id": "ORD-001", "total": 99.99}))

    out("[*] 2. Wildcard listener")

    def on_any(event: Event) -> None:
        out(f"    [wildcard] event: {event.name!r}")

    manager.register("*", on_any)
    manager.emit(Event("user:logout", {"user_id": "user-123"}))

    out("[*] 3. Asynchronous events (sequential)")

    async def on_order_paid(event: Event) -> None:
        out(f"    processing payment for order #{event.payload['order_id']}...")
        await asyncio.sleep(PAYMENT_DELAY_S)
        out(f"    payment completed for order #{event.payload['order_id']}")

    manager.register("order:paid", on_order_paid)
    await manager.emit_async(
        Event("order:paid", {"order_id": "ORD-002", "amount": 149.99}),
        EmitOptions(mode=EmitMode.SEQUENTIAL),
    )

    out("[*] 4. Error isolation")

    def failing(event: Event) -> None:
        out("    processing test event...")
        raise RuntimeError("simulated failure")

    def second(event: Event) -> None:
        out("    second listener still ran")

    manager.register("test:error", failing)
    manager.register("test:error", second)
    manager.emit(Event("test:error", {"test": True}))

    out("[*] 5. Timeouts")

    async def slow_operation(event: Event) -> None:
        out("    starting slow operation...")
        await asyncio.sleep(SLOW_OPERATION_DELAY_S)
        out("    slow operation completed")

    manager.register("slow:operation", slow_operation)
    try:
        await manager.emit_async(
            Event("slow:operation", {"data": "test"}),
            EmitOptions(stop_on_error=True, timeout_ms=SLOW_OPERATION_TIMEOUT_MS),
        )
    except ListenerTimeoutError as e:
        out(f"[-] Timeout: {e}")

    out("[*] 6. E-commerce flow")
    manager.emit(Event("user:login", {"name": "Ana Lopez", "email": "ana@example.com"}))
    manager.emit(Event("order:created", {"order_id": "ORD-003", "total": 299.99}))
    await manager.emit_async(
        Event("order:paid", {"order_id": "ORD-003", "amount": 299.99}),
        EmitOptions(mode=EmitMode.CONCURRENT),
    )
    manager.emit(Event("user:logout", {"user_id": "user-456"}))

    out("[+] Demo completed.")
