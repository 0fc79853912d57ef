import threading
import unittest
from datetime import datetime, timedelta, timezone

from airfryhub.db import InMemoryDbClient
from airfryhub.errors import ValidationFailed
from airfryhub.feed import (
    EMPTY_FEED_MESSAGE,
    EMPTY_FILTERED_FEED_MESSAGE,
    FeedQuery,
    SortKey,
    format_time_ago,
)


class FeedQueryTests(unittest.TestCase):
    def test_build_defaults(self):
        query = FeedQuery.build()
        self.assertEqual(query.sort, SortKey.NEWEST)
        self.assertEqual(query.search, "")
        self.assertEqual(query.flags, ())
        self.assertFalse(query.is_filtered)
        self.assertEqual(query.empty_message(), EMPTY_FEED_MESSAGE)

    def test_unknown_sort_rejected(self):
        with self.assertRaises(ValidationFailed) as ctx:
            FeedQuery.build(sort="random")
        self.assertIn("sort", ctx.exception.errors)

    def test_cache_key_and_clear(self):
        query = FeedQuery.build(search=" fries ", sort="oldest", flags=["tip", "tip"])
        self.assertEqual(query.cache_key(), ("posts", "fries", "oldest", ("tip",)))
        self.assertTrue(query.is_filtered)
        self.assertEqual(query.empty_message(), EMPTY_FILTERED_FEED_MESSAGE)
        cleared = query.cleared()
        self.assertFalse(cleared.is_filtered)
        self.assertEqual(cleared.sort, SortKey.OLDEST)

    def test_matches_search_and_flags(self):
        query = FeedQuery.build(search="WINGS", flags=["recipe"])
        self.assertTrue(query.matches("Hot wings", "", ["recipe", "tip"]))
        self.assertTrue(query.matches("Dinner", "crispy wings", ["recipe"]))
        self.assertFalse(query.matches("Hot wings", "", ["tip"]))
        self.assertFalse(query.matches("Fries", "", ["recipe"]))


class TimeAgoTests(unittest.TestCase):
    def test_buckets(self):
        now = datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc)
        self.assertEqual(format_time_ago(now - timedelta(minutes=59), now), "Just now")
        self.assertEqual(format_time_ago(now - timedelta(hours=5), now), "5h ago")
        self.assertEqual(format_time_ago(now - timedelta(days=3), now), "3d ago")
        self.assertEqual(format_time_ago(now - timedelta(days=10), now), "2024-05-10")

    def test_naive_timestamps_treated_as_utc(self):
        now = datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc)
        self.assertEqual(format_time_ago(datetime(2024, 5, 20, 10, 0), now), "2h ago")


class InMemoryFeedTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.wings = self.db.create_post(
            {"title": "Buffalo wings", "content": "crispy", "flags": ["recipe"]},
            created_at=base,
        )
        self.fries = self.db.create_post(
            {"title": "Frozen fries", "content": "shake often", "flags": ["tip"]},
            created_at=base + timedelta(hours=1),
        )
        self.tofu = self.db.create_post(
            {"title": "Tofu bites", "content": "", "flags": ["recipe", "beginner"]},
            created_at=base + timedelta(hours=2),
        )
        for _ in range(3):
            self.db.increment_upvotes(self.wings.id)
        self.db.increment_upvotes(self.fries.id)

    def ids(self, **kwargs):
        return [p.id for p in self.db.list_posts(FeedQuery.build(**kwargs))]

    def test_sorts(self):
        self.assertEqual(self.ids(), [self.tofu.id, self.fries.id, self.wings.id])
        self.assertEqual(
            self.ids(sort="oldest"), [self.wings.id, self.fries.id, self.tofu.id]
        )
        self.assertEqual(
            self.ids(sort="most_upvoted"),
            [self.wings.id, self.fries.id, self.tofu.id],
        )

    def test_most_upvoted_ties_show_newest_first(self):
        self.db.increment_upvotes(self.tofu.id)
        self.assertEqual(
            self.ids(sort="most_upvoted"),
            [self.wings.id, self.tofu.id, self.fries.id],
        )

    def test_search_title_or_content(self):
        self.assertEqual(self.ids(search="CRISPY"), [self.wings.id])
        self.assertEqual(self.ids(search="fries"), [self.fries.id])

    def test_flags_require_all(self):
        self.assertEqual(self.ids(flags=["recipe"]), [self.tofu.id, self.wings.id])
        self.assertEqual(self.ids(flags=["recipe", "beginner"]), [self.tofu.id])

    def test_clearing_filters_returns_full_list(self):
        filtered = FeedQuery.build(search="wings", flags=["recipe"])
        self.assertEqual(len(self.db.list_posts(filtered)), 1)
        self.assertEqual(len(self.db.list_posts(filtered.cleared())), 3)



class InMemoryConcurrencyTests(unittest.TestCase):
    def test_concurrent_upvotes_are_not_lost(self):
        db = InMemoryDbClient()
        post = db.create_post({"title": "Wings", "content": ""})

        def vote():
            for _ in range(200):
                db.increment_upvotes(post.id)

        voters = [threading.Thread(target=vote) for _ in range(8)]
        for voter in voters:
            voter.start()
        for voter in voters:
            voter.join()
        self.assertEqual(db.get_post(post.id).upvotes, 1600)


if __name__ == "__main__":
    unittest.main()
