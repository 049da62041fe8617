"""Global test configuration.

Shared fixtures for dispatcher tests: a recording error sink and an
EventManager factory wired to it.
"""

import pytest

from nexus.infrastructure.event_manager import DispatcherSettings, EventManager


class RecordingSink:
    """Error sink that remembers every (error, info) it receives."""

    def __init__(self):
        self.calls = []

    def __call__(self, error, info):
        self.calls.append((error, info))

    @property
    def indexes(self):
        return [info.listener_index for _, info in self.calls]

    @property
    def errors(self):
        return [error for error, _ in self.calls]


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_manager(sink):
    def factory(**settings):
        settings.setdefault("on_error", sink)
        return EventManager(settings=DispatcherSettings(**settings))

    return factory


@pytest.fixture
def manager(make_manager):
    return make_manager()
