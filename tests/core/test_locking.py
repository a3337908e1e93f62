"""
Unit tests for the locking module.

Tests cover:
- Single computation per key
- Concurrent requesters sharing one outcome
- Failure propagation without caching
- Pending / resolved inspection
"""

import threading

import pytest

from cctoolkit.core.locking import SingleFlightCache


class TestSingleFlightCache:
    """Tests for SingleFlightCache class."""

    def test_computes_once_per_key(self):
        """Test that a second request reuses the first result."""
        cache = SingleFlightCache()
        calls = []

        def compute():
            calls.append(1)
            return True

        assert cache.get_or_compute("k", compute) is True
        assert cache.get_or_compute("k", compute) is True
        assert len(calls) == 1

    def test_distinct_keys_compute_separately(self):
        """Test that different keys get their own computation."""
        cache = SingleFlightCache()

        assert cache.get_or_compute("a", lambda: 1) == 1
        assert cache.get_or_compute("b", lambda: 2) == 2
        assert len(cache) == 2

    def test_concurrent_requesters_share_one_computation(self):
        """Test that waiters block on the running computation."""
        cache = SingleFlightCache()
        started = threading.Event()
        release = threading.Event()
        calls = []

        def compute():
            calls.append(1)
            started.set()
            release.wait(timeout=5)
            return "value"

        results = []

        def worker():
            results.append(cache.get_or_compute("key", compute))

        owner = threading.Thread(target=worker)
        owner.start()
        assert started.wait(timeout=5)

        waiters = [threading.Thread(target=worker) for _ in range(8)]
        for thread in waiters:
            thread.start()

        assert cache.is_pending("key")
        release.set()

        owner.join(timeout=5)
        for thread in waiters:
            thread.join(timeout=5)

        assert calls == [1]
        assert results == ["value"] * 9

    def test_failure_is_not_cached(self):
        """Test that a failed computation can be retried."""
        cache = SingleFlightCache()

        def fail():
            raise OSError("spawn failed")

        with pytest.raises(OSError, match="spawn failed"):
            cache.get_or_compute("key", fail)

        assert "key" not in cache
        assert cache.get_or_compute("key", lambda: 42) == 42

    def test_failure_reaches_every_waiter(self):
        """Test that waiters observe the owner's error."""
        cache = SingleFlightCache()
        started = threading.Event()
        release = threading.Event()

        def fail():
            started.set()
            release.wait(timeout=5)
            raise OSError("no such file")

        errors = []

        def worker():
            try:
                cache.get_or_compute("key", fail)
            except OSError as e:
                errors.append(str(e))

        threads = [threading.Thread(target=worker)]
        threads[0].start()
        assert started.wait(timeout=5)
        threads += [threading.Thread(target=worker) for _ in range(3)]
        for thread in threads[1:]:
            thread.start()

        release.set()
        for thread in threads:
            thread.join(timeout=5)

        assert errors == ["no such file"] * 4

    def test_get_and_peek(self):
        """Test inspecting resolved and absent keys."""
        cache = SingleFlightCache()

        assert cache.get("missing") is None
        assert cache.peek("missing") is None
        assert not cache.is_pending("missing")

        cache.get_or_compute("k", lambda: False)
        assert cache.get("k") is False
        assert not cache.is_pending("k")

    def test_clear(self):
        """Test that clear forgets resolved entries."""
        cache = SingleFlightCache()
        cache.get_or_compute("k", lambda: 1)

        cache.clear()

        assert len(cache) == 0
        assert cache.get_or_compute("k", lambda: 2) == 2
