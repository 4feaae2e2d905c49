import unittest

from crypto_explorer.app_types import CacheEntry
from crypto_explorer.response_cache.memory import InMemoryResponseCache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class TestInMemoryResponseCache(unittest.TestCase):
    def test_entry_is_valid_until_ttl_elapses(self):
        clock = FakeClock()
        cache = InMemoryResponseCache(ttl_seconds=60, clock=clock)
        cache.set("1-10", CacheEntry(data=[1], stored_at=clock()))

        entry = cache.get("1-10")
        self.assertTrue(cache.is_valid(entry))
        clock.now += 59.9
        self.assertTrue(cache.is_valid(cache.get("1-10")))
        clock.now += 0.1
        self.assertFalse(cache.is_valid(cache.get("1-10")))
        # stale entries are still readable until replaced or evicted
        self.assertEqual(cache.get("1-10").data, [1])

    def test_missing_entry_is_not_valid(self):
        cache = InMemoryResponseCache()
        self.assertIsNone(cache.get("nope"))
        self.assertFalse(cache.is_valid(None))

    def test_keys_are_insertion_ordered_and_overwrite_keeps_slot(self):
        cache = InMemoryResponseCache()
        for key in ("a", "b", "c"):
            cache.set(key, CacheEntry(data=key, stored_at=0))
        cache.set("a", CacheEntry(data="a2", stored_at=1))

        self.assertEqual(list(cache.keys()), ["a", "b", "c"])
        self.assertEqual(cache.size, 3)
        self.assertEqual(cache.get("a").data, "a2")

    def test_delete_and_clear(self):
        cache = InMemoryResponseCache()
        cache.set("a", CacheEntry(data=1, stored_at=0))
        cache.set("b", CacheEntry(data=2, stored_at=0))

        self.assertTrue(cache.delete("a"))
        self.assertFalse(cache.delete("a"))
        self.assertEqual(list(cache.keys()), ["b"])

        cache.clear()
        self.assertEqual(cache.size, 0)


if __name__ == "__main__":
    unittest.main()
