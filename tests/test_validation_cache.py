"""Tests for validation_cache module."""

import threading

from ReMove.validation_cache import ValidationCache

from fakes import FakeClock, make_identity


class TestGetPut:
    def test_miss_returns_none(self):
        assert ValidationCache().get("octocat") is None

    def test_positive_entry(self):
        cache = ValidationCache()
        identity = make_identity("Octocat")
        cache.put("Octocat", identity)
        entry = cache.get("octocat")
        assert entry.result == identity
        assert entry.key == "octocat"

    def test_negative_entry_is_a_hit(self):
        cache = ValidationCache()
        cache.put("ghost", None)
        entry = cache.get("GHOST")
        assert entry is not None
        assert entry.result is None

    def test_one_entry_per_normalized_key(self):
        cache = ValidationCache()
        cache.put("Octocat", None)
        cache.put("OCTOCAT ", make_identity())
        assert len(cache) == 1
        assert cache.get("octocat").result is not None


class TestExpiry:
    def test_entry_live_at_exactly_ttl(self):
        clock = FakeClock()
        cache = ValidationCache(ttl=300, clock=clock)
        cache.put("octocat", make_identity())
        clock.advance(300)
        assert cache.get("octocat") is not None

    def test_entry_expires_after_ttl(self):
        clock = FakeClock()
        cache = ValidationCache(ttl=300, clock=clock)
        cache.put("octocat", make_identity())
        clock.advance(301)
        assert cache.get("octocat") is None
        assert len(cache) == 0

    def test_negative_entries_share_ttl(self):
        clock = FakeClock()
        cache = ValidationCache(ttl=300, clock=clock)
        cache.put("ghost", None)
        clock.advance(299)
        assert cache.get("ghost") is not None
        clock.advance(2)
        assert cache.get("ghost") is None

    def test_get_evicts_other_expired_entries(self):
        clock = FakeClock()
        cache = ValidationCache(ttl=300, clock=clock)
        cache.put("old", None)
        clock.advance(200)
        cache.put("new", None)
        clock.advance(150)
        cache.get("unrelated")
        assert len(cache) == 1
        assert cache.get("new") is not None

    def test_cleanup_reports_removed(self):
        clock = FakeClock()
        cache = ValidationCache(ttl=10, clock=clock)
        cache.put("a", None)
        cache.put("b", None)
        clock.advance(11)
        assert cache.cleanup() == 2

    def test_clear(self):
        cache = ValidationCache()
        cache.put("a", None)
        cache.clear()
        assert len(cache) == 0


class TestThreadSafety:
    def test_put_waits_for_concurrent_get(self):
        writer_blocked = []
        writers = []

        def clock():
            if not writer_blocked:
                writer = threading.Thread(target=cache.put, args=("late", None))
                writer.start()
                writers.append(writer)
                writer.join(timeout=0.05)
                writer_blocked.append(writer.is_alive())
            return 1000.0

        cache = ValidationCache(ttl=10, clock=clock)
        assert cache.get("octocat") is None
        writers[0].join(timeout=5)
        assert writer_blocked == [True]
        assert cache.get("LATE") is not None

    def test_concurrent_get_and_put(self):
        clock = FakeClock()
        cache = ValidationCache(ttl=0.001, clock=clock)
        errors = []

        def worker(prefix):
            try:
                for i in range(500):
                    cache.put(f"{prefix}{i}", None)
                    clock.advance(0.001)
                    cache.get(f"{prefix}{i - 1}")
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(p,)) for p in "abcd"]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert errors == []
