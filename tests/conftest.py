# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Root pytest configuration with shared fixtures and markers.

This file is automatically loaded by pytest and provides:
- Custom markers for test categories
- Shared fixtures (in-memory host, controllable clock, fake timers)
- Test collection customization
"""

import pytest

from buffer_sweeper.providers.local import LocalResourceHost

# Fixed epoch used by FakeClock so timestamps in tests are readable
BASE_TIME = 1_700_000_000.0


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "critical: Mark test as guarding a never-destroy invariant",
    )
    config.addinivalue_line(
        "markers",
        "integration: Mark test as integration test (runner + scheduler + host)",
    )
    config.addinivalue_line(
        "markers",
        "slow: Mark test as slow-running (may be skipped in quick runs)",
    )


# ============================================================================
# Shared Fixtures
# ============================================================================


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = BASE_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTimer:
    """One-shot timer handle that only fires when told to."""

    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.cancelled = 0

    def cancel(self):
        self.cancelled += 1

    def fire(self):
        return self.callback()


class FakeTimerFactory:
    """Timer factory recording every timer it creates."""

    def __init__(self):
        self.timers: list[FakeTimer] = []

    def __call__(self, interval, callback):
        timer = FakeTimer(interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled]


@pytest.fixture
def clock():
    """Controllable clock starting at BASE_TIME."""
    return FakeClock()


@pytest.fixture
def host():
    """Empty in-memory resource host."""
    return LocalResourceHost()


@pytest.fixture
def timers():
    """Fake timer factory for scheduler tests."""
    return FakeTimerFactory()


# ============================================================================
# Test Collection Hooks
# ============================================================================


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add automatic markers based on paths."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
