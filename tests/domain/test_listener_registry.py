"""Tests for ListenerRegistry bookkeeping."""

import logging

import pytest
from nexus.domain.services.listener_registry import ListenerRegistry, listener_identity


def _listener(event):
    pass


class Handler:
    def on_event(self, event):
        pass


class TestRegister:
    def test_insertion_order_preserved(self):
        registry = ListenerRegistry()

        def a(event): pass
        def b(event): pass
        def c(event): pass

        for listener in (a, b, c):
            registry.register("k", listener)

        assert registry.listeners_for("k") == (a, b, c)

    def test_duplicate_registration_is_noop(self):
        registry = ListenerRegistry()
        registry.register("k", _listener)
        registry.register("k", _listener)
        assert registry.listeners_for("k") == (_listener,)

    def test_duplicate_keeps_original_position(self):
        registry = ListenerRegistry()

        def other(event): pass

        registry.register("k", _listener)
        registry.register("k", other)
        registry.register("k", _listener)
        assert registry.listeners_for("k") == (_listener, other)

    def test_key_is_trimmed(self):
        registry = ListenerRegistry()
        registry.register("  user:login ", _listener)
        assert registry.listeners_for("user:login") == (_listener,)
        assert registry.listeners_for(" user:login") == (_listener,)

    def test_same_listener_under_different_keys(self):
        registry = ListenerRegistry()
        registry.register("a", _listener)
        registry.register("b", _listener)
        assert registry.listener_count("a") == 1
        assert registry.listener_count("b") == 1

    def test_bound_methods_dedupe_per_instance(self):
        registry = ListenerRegistry()
        first, second = Handler(), Handler()
        registry.register("k", first.on_event)
        registry.register("k", first.on_event)
        registry.register("k", second.on_event)
        assert registry.listener_count("k") == 2

    def test_equal_but_distinct_callables_both_kept(self):
        class Callback:
            def __eq__(self, other):
                return isinstance(other, Callback)

            __hash__ = None

            def __call__(self, event):
                pass

        registry = ListenerRegistry()
        registry.register("k", Callback())
        registry.register("k", Callback())
        assert registry.listener_count("k") == 2

    def test_blank_key_rejected(self):
        with pytest.raises(ValueError):
            ListenerRegistry().register("  ", _listener)

    def test_non_callable_rejected(self):
        with pytest.raises(TypeError):
            ListenerRegistry().register("k", "not callable")


class TestSnapshot:
    def test_unknown_key_is_empty(self):
        assert ListenerRegistry().listeners_for("missing") == ()

    def test_snapshot_not_affected_by_later_registration(self):
        registry = ListenerRegistry()
        registry.register("k", _listener)
        snapshot = registry.listeners_for("k")

        def late(event): pass

        registry.register("k", late)
        assert snapshot == (_listener,)
        assert registry.listeners_for("k") == (_listener, late)

    def test_event_keys_and_stats(self):
        registry = ListenerRegistry(max_listeners=3)
        registry.register("a", _listener)
        registry.register("b", _listener)
        assert registry.event_keys() == ("a", "b")
        assert registry.stats() == {
            "event_keys": 2,
            "total_listeners": 2,
            "max_listeners": 3,
        }


class TestAdvisoryCapacity:
    def test_exceeding_is_reported_not_enforced(self):
        exceeded = []
        registry = ListenerRegistry(
            max_listeners=1,
            on_capacity_exceeded=lambda key, count, limit: exceeded.append((key, count, limit)),
        )

        def a(event): pass
        def b(event): pass

        registry.register("k", a)
        assert exceeded == []
        registry.register("k", b)
        assert exceeded == [("k", 2, 1)]
        assert registry.listeners_for("k") == (a, b)

    def test_unlimited_by_default(self):
        exceeded = []
        registry = ListenerRegistry(on_capacity_exceeded=lambda *a: exceeded.append(a))
        for _ in range(50):
            registry.register("k", lambda event: None)
        assert registry.listener_count("k") == 50
        assert exceeded == []

    def test_debug_logs_advisory(self, caplog):
        registry = ListenerRegistry(max_listeners=1, debug=True)
        with caplog.at_level(logging.DEBUG, logger="nexus"):
            registry.register("k", lambda event: None)
            registry.register("k", lambda event: None)
        assert "> max (1)" in caplog.text

    def test_no_log_without_debug(self, caplog):
        registry = ListenerRegistry(max_listeners=1)
        with caplog.at_level(logging.DEBUG, logger="nexus"):
            registry.register("k", lambda event: None)
            registry.register("k", lambda event: None)
        assert "> max" not in caplog.text

    def test_failing_callback_does_not_break_register(self, caplog):
        def diagnostic(key, count, limit):
            raise RuntimeError("diagnostic failed")

        registry = ListenerRegistry(max_listeners=1, on_capacity_exceeded=diagnostic)

        def a(event): pass
        def b(event): pass

        registry.register("k", a)
        with caplog.at_level(logging.ERROR, logger="nexus"):
            registry.register("k", b)

        assert registry.listeners_for("k") == (a, b)
        assert "Capacity callback failed" in caplog.text


class TestListenerIdentity:
    def test_function_identity(self):
        assert listener_identity(_listener) == listener_identity(_listener)

    def test_bound_method_identity_stable(self):
        handler = Handler()
        assert listener_identity(handler.on_event) == listener_identity(handler.on_event)
        assert listener_identity(handler.on_event) != listener_identity(Handler().on_event)
