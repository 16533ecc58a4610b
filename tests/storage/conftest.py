"""Shared fixtures for storage tests."""

import pytest

from sitecontent.storage.bodies import BodyStore
from sitecontent.storage.cache import ReadCache
from sitecontent.storage.drivers import MemoryDriver, encode_json
from sitecontent.storage.events import EventBus
from sitecontent.storage.repository import ContentRepository


class CountingDriver(MemoryDriver):
    """Memory driver that counts collection reads."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.reads: list[str] = []

    def read(self, path):
        self.reads.append(path)
        return super().read(path)


class FakeClock:
    """Manually advanced clock for cache tests."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def driver():
    """In-memory driver."""
    return CountingDriver()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def cache(clock):
    return ReadCache(ttl=300.0, clock=clock)


@pytest.fixture
def repository(driver, cache, event_bus):
    """Repository over the in-memory driver."""
    return ContentRepository(
        driver, cache=cache, bodies=BodyStore(driver), event_bus=event_bus
    )


@pytest.fixture
def sample_services():
    """Service records as stored by an older deployment."""
    return [
        {
            "id": "svc-1",
            "slug": "music-engraving",
            "title": "Music Engraving",
            "description": "Professional engraving of scores and parts",
            "order": 10,
        },
        {
            "id": "svc-2",
            "slug": "notation-software",
            "title": "Notation Software",
            "description": "Custom tools for score preparation",
            "order": 20,
        },
    ]


@pytest.fixture
def seed(driver):
    """Store a collection value directly through the driver."""

    def _seed(key, value):
        driver.write_collection(key, encode_json(value))

    return _seed
