"""
Pytest configuration for NetMonitor tests.

This file contains fixtures and configuration for the test suite.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from netmonitor.config.config import Config
from netmonitor.core.log_processor import StreamingLogProcessor
from netmonitor.core.request_store import RequestStore
from netmonitor.parsers.event_parser import EventParser


BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeTimerHandle:
    """Stand-in for asyncio.TimerHandle."""

    def __init__(self, loop, delay, callback):
        self.loop = loop
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.loop.timers.remove(self)
        self.callback()


class FakeTask:
    def __init__(self):
        self.cancelled = False

    def done(self):
        return False

    def cancel(self):
        self.cancelled = True


class FakeLoop:
    """
    Minimal event loop recording tasks and timers instead of running them.
    """

    def __init__(self):
        self.timers = []
        self.tasks = []

    def call_later(self, delay, callback):
        handle = FakeTimerHandle(self, delay, callback)
        self.timers.append(handle)
        return handle

    def create_task(self, coro):
        coro.close()
        task = FakeTask()
        self.tasks.append(task)
        return task

    @property
    def pending_timers(self):
        return [timer for timer in self.timers if not timer.cancelled]


class TickingClock:
    """Clock advancing one second per call, for deterministic timestamps."""

    def __init__(self, start=BASE_TIME):
        self.current = start

    def __call__(self):
        now = self.current
        self.current = self.current + timedelta(seconds=1)
        return now


async def wait_until(predicate, timeout=2.0):
    """Poll until predicate() is true, failing after timeout seconds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Keep user environment and config files out of the tests."""
    for name in ('NETMONITOR_CONFIG', 'NETMONITOR_HOST', 'NETMONITOR_PORT', 'NETMONITOR_URL',
                 'NETMONITOR_RECONNECT_DELAY', 'NETMONITOR_LOG_LEVEL'):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def sample_config():
    """Create a sample configuration for testing."""
    config = Config()
    config.client.reconnect_delay = 3.0
    return config


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def event_parser(clock):
    """Create an event parser with deterministic timestamps."""
    return EventParser(clock=clock)


@pytest.fixture
def log_processor(sample_config, event_parser):
    """Create a streaming log processor for testing."""
    return StreamingLogProcessor(sample_config, parser=event_parser)


@pytest.fixture
def request_store(sample_config):
    """Create an empty request store."""
    return RequestStore(sample_config)


@pytest.fixture
def fake_loop():
    return FakeLoop()


@pytest.fixture
def logcat_lines():
    """A short logcat capture with one complete call and unrelated noise."""
    return [
        "01-01 12:00:00.000  4242  4267 I ActivityManager: Start proc com.example",
        "01-01 12:00:00.100  4242  4267 I ReactNativeJS: 'NETWORK_REQUEST 1 POST https://api.example.com/v1/login'",
        "01-01 12:00:00.110  4242  4267 I ReactNativeJS: 'NETWORK_REQUEST_BODY 1 {\"user\":\"ada\"}'",
        "01-01 12:00:00.200  4242  4267 I ReactNativeJS: 'Running \"App\" with {\"rootTag\":1}'",
        "01-01 12:00:00.450  4242  4267 I ReactNativeJS: 'NETWORK_RESPONSE 1 200 350ms'",
        "01-01 12:00:00.460  4242  4267 I ReactNativeJS: 'NETWORK_RESPONSE_BODY 1 {\"token\":\"abc\"}'",
    ]
