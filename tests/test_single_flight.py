import threading
import time
import unittest

from crypto_explorer.app_types import CacheEntry
from crypto_explorer.response_cache import InMemoryResponseCache, SingleFlight, cached_fetch, evict_oldest


class TestCachedFetch(unittest.TestCase):
    def test_miss_then_hit(self):
        cache = InMemoryResponseCache(ttl_seconds=60)
        calls = []

        def loader():
            calls.append(1)
            return {"value": len(calls)}

        self.assertEqual(cached_fetch(cache, "k", loader), {"value": 1})
        self.assertEqual(cached_fetch(cache, "k", loader), {"value": 1})
        self.assertEqual(len(calls), 1)

    def test_stale_entry_is_refetched(self):
        now = [1000.0]
        cache = InMemoryResponseCache(ttl_seconds=60, clock=lambda: now[0])
        values = iter(["first", "second"])

        self.assertEqual(cached_fetch(cache, "k", lambda: next(values)), "first")
        now[0] += 61
        self.assertEqual(cached_fetch(cache, "k", lambda: next(values)), "second")

    def test_loader_error_stores_nothing(self):
        cache = InMemoryResponseCache(ttl_seconds=60)

        def failing():
            raise RuntimeError("provider down")

        with self.assertRaises(RuntimeError):
            cached_fetch(cache, "k", failing)
        self.assertIsNone(cache.get("k"))

    def test_max_entries_evicts_oldest(self):
        cache = InMemoryResponseCache(ttl_seconds=60)
        for i in range(12):
            cached_fetch(cache, f"{i}-10", lambda i=i: i, max_entries=10)

        self.assertEqual(cache.size, 10)
        self.assertEqual(list(cache.keys())[0], "2-10")
        self.assertIsNone(cache.get("0-10"))
        self.assertIsNone(cache.get("1-10"))

    def test_concurrent_misses_share_one_load(self):
        cache = InMemoryResponseCache(ttl_seconds=60)
        flight = SingleFlight()
        calls = []
        calls_lock = threading.Lock()
        start = threading.Barrier(5)
        results = []

        def loader():
            with calls_lock:
                calls.append(1)
            time.sleep(0.05)
            return "payload"

        def worker():
            start.wait()
            results.append(cached_fetch(cache, "bitcoin", loader, flight=flight))

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len(calls), 1)
        self.assertEqual(results, ["payload"] * 5)
        self.assertEqual(flight.in_flight(), 0)


class TestEvictOldest(unittest.TestCase):
    def test_noop_when_within_limit(self):
        cache = InMemoryResponseCache()
        cache.set("a", CacheEntry(data=1, stored_at=0))
        evict_oldest(cache, 10)
        self.assertEqual(cache.size, 1)


if __name__ == "__main__":
    unittest.main()
