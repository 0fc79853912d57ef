import threading
import time
import unittest

from airfryhub.cache import QueryCache


class QueryCacheTests(unittest.TestCase):
    def test_fetch_uses_cached_value(self):
        cache = QueryCache()
        calls = []

        def loader():
            calls.append(1)
            return len(calls)

        self.assertEqual(cache.fetch(("post", "a"), loader), 1)
        self.assertEqual(cache.fetch(("post", "a"), loader), 1)
        self.assertEqual(len(calls), 1)

    def test_invalidate_by_prefix(self):
        cache = QueryCache()
        cache.set(("posts", "", "newest", ()), [1])
        cache.set(("posts", "wings", "newest", ()), [2])
        cache.set(("post", "a"), "a")
        cache.set(("post", "b"), "b")

        self.assertEqual(cache.invalidate("posts"), 2)
        self.assertEqual(cache.invalidate("post", "a"), 1)
        self.assertNotIn(("post", "a"), cache)
        self.assertIn(("post", "b"), cache)
        self.assertEqual(len(cache), 1)

    def test_loader_errors_are_not_cached(self):
        cache = QueryCache()

        def failing():
            raise RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            cache.fetch(("post", "x"), failing)
        self.assertNotIn(("post", "x"), cache)
        self.assertEqual(cache.fetch(("post", "x"), lambda: "ok"), "ok")

    def test_entries_expire(self):
        cache = QueryCache(ttl=0.0001)
        cache.set(("post", "a"), "a")
        time.sleep(0.01)
        self.assertNotIn(("post", "a"), cache)

    def test_evicts_once_full(self):
        cache = QueryCache(maxsize=2)
        cache.set(("post", "a"), "a")
        cache.set(("post", "b"), "b")
        cache.set(("post", "c"), "c")
        self.assertEqual(len(cache), 2)
        self.assertIn(("post", "c"), cache)

    def test_load_overlapping_invalidation_is_not_stored(self):
        cache = QueryCache()
        started = threading.Event()
        release = threading.Event()
        results = []

        def slow_loader():
            started.set()
            release.wait(5)
            return "old feed"

        reader = threading.Thread(
            target=lambda: results.append(cache.fetch(("posts", "newest"), slow_loader))
        )
        reader.start()
        self.assertTrue(started.wait(5))
        cache.invalidate("posts")
        release.set()
        reader.join(5)

        self.assertEqual(results, ["old feed"])
        self.assertNotIn(("posts", "newest"), cache)
        self.assertEqual(cache.fetch(("posts", "newest"), lambda: "new feed"), "new feed")


if __name__ == "__main__":
    unittest.main()
