"""Tests for the read cache and its use by the repository."""

import pytest

from sitecontent.storage.cache import ReadCache
from sitecontent.storage.drivers import collection_path


class TestReadCache:
    def test_loads_once_within_window(self, cache, clock):
        calls = []

        def loader():
            calls.append(1)
            return {"news": []}

        first = cache.get_or_load(loader)
        clock.advance(299)
        second = cache.get_or_load(loader)

        assert first is second
        assert len(calls) == 1

    def test_reloads_after_window(self, cache, clock):
        calls = []

        def loader():
            calls.append(1)
            return {"n": len(calls)}

        cache.get_or_load(loader)
        clock.advance(300)

        assert cache.get_or_load(loader) == {"n": 2}
        assert len(calls) == 2

    def test_invalidate_forces_reload(self, cache):
        calls = []

        def loader():
            calls.append(1)
            return {}

        cache.get_or_load(loader)
        cache.invalidate()
        cache.get_or_load(loader)

        assert len(calls) == 2

    def test_get_returns_none_when_stale(self, cache, clock):
        assert cache.get() is None
        cache.get_or_load(lambda: {"a": 1})
        assert cache.get() == {"a": 1}

        clock.advance(301)
        assert cache.get() is None

    def test_failed_load_leaves_cache_empty(self, cache):
        def failing():
            raise RuntimeError("backend down")

        with pytest.raises(RuntimeError):
            cache.get_or_load(failing)
        assert cache.get() is None
        assert cache.last_good is None

    def test_last_good_survives_invalidation(self, cache):
        cache.get_or_load(lambda: {"v": 1})
        cache.invalidate()

        assert cache.get() is None
        assert cache.last_good == {"v": 1}

    def test_captured_at_uses_clock(self, clock):
        cache = ReadCache(ttl=10, clock=clock)
        assert cache.captured_at is None

        cache.get_or_load(dict)
        assert cache.captured_at == clock.now


class TestRepositoryCache:
    """Cached graph reads through the repository."""

    def reads_of(self, driver, key):
        return driver.reads.count(collection_path(key))

    def test_two_reads_in_window_hit_backend_once(self, repository, driver, clock):
        first = repository.get_cached_or_load()
        clock.advance(60)
        second = repository.get_cached_or_load()

        assert first == second
        assert self.reads_of(driver, "news") == 1

    def test_read_after_window_reloads_once(self, repository, driver, clock):
        repository.get_cached_or_load()
        clock.advance(301)
        repository.get_cached_or_load()
        repository.get_cached_or_load()

        assert self.reads_of(driver, "news") == 2

    def test_write_invalidates(self, repository, driver):
        repository.get_cached_or_load()
        repository.add_record("news", {"title": "Launch"})

        reads_before = self.reads_of(driver, "news")
        graph = repository.get_cached_or_load()
        repository.get_cached_or_load()

        assert self.reads_of(driver, "news") == reads_before + 1
        assert [r["title"] for r in graph["news"]] == ["Launch"]

    def test_graph_has_every_collection(self, repository):
        graph = repository.get_cached_or_load()
        assert set(graph) == {
            "services",
            "news",
            "portfolio",
            "about",
            "settings",
            "categories",
        }
