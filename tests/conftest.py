"""Shared test fixtures and helpers for the Pacer test suite."""

import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

from pacer.providers import InMemoryDataProvider
from pacer.service import DifficultyService


# --- Clock ---


class FakeClock:
    """A controllable clock: call it for the current time, advance it by hand."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


# --- Fixtures ---


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def provider():
    return InMemoryDataProvider()


@pytest.fixture
def service(provider, clock):
    """A service with the default config, an in-memory provider and a fake clock."""
    return DifficultyService(provider, clock=clock)


@pytest.fixture
def tmp_json_path():
    """Provide a temporary JSON file path, cleaned up after use."""
    with tempfile.NamedTemporaryFile(suffix=".json", delete=False) as f:
        path = f.name
    yield path
    for leftover in (path, path + ".lock"):
        if os.path.exists(leftover):
            os.unlink(leftover)


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory, cleaned up after use."""
    d = tempfile.mkdtemp()
    yield d
    import shutil
    shutil.rmtree(d, ignore_errors=True)
