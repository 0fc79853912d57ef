"""
Forum operations: feed, posts, upvotes and comments.

Each operation is a single platform call wrapped with validation before and
cache invalidation after. There are no multi-step transactions and nothing
is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from airfryhub.cache import QueryCache
from airfryhub.db import CommentRecord, DbClient, PostRecord
from airfryhub.errors import Forbidden, NotAuthenticated, NotFound
from airfryhub.feed import FeedQuery
from airfryhub.validation import validate_comment, validate_post

logger = logging.getLogger(__name__)

POST_NOT_FOUND = "Post not found"


@dataclass
class FeedPage:
    query: FeedQuery
    posts: list[PostRecord]

    @property
    def count(self) -> int:
        return len(self.posts)

    @property
    def empty_message(self) -> Optional[str]:
        if self.posts:
            return None
        return self.query.empty_message()


class ForumService:
    def __init__(self, db: DbClient, cache: Optional[QueryCache] = None):
        self.db = db
        self.cache = cache or QueryCache()

    # Reads

    def list_posts(self, query: FeedQuery) -> FeedPage:
        posts = self.cache.fetch(query.cache_key(), lambda: self.db.list_posts(query))
        return FeedPage(query=query, posts=posts)

    def get_post(self, post_id: str) -> PostRecord:
        def load() -> PostRecord:
            post = self.db.get_post(post_id)
            if not post:
                raise NotFound(POST_NOT_FOUND)
            return post

        return self.cache.fetch(("post", post_id), load)

    def list_comments(self, post_id: str) -> list[CommentRecord]:
        self.get_post(post_id)
        return self.cache.fetch(
            ("comments", post_id), lambda: self.db.list_comments(post_id)
        )

    # Mutations

    def create_post(self, payload: dict[str, Any], owner_id: Optional[str]) -> PostRecord:
        data = validate_post(payload)
        post = self.db.create_post(data.as_record(), user_id=owner_id)
        logger.info("Created post %s for owner %s", post.id, owner_id)
        self.cache.invalidate("posts")
        return post

    def _owned_post(self, post_id: str, owner_id: Optional[str]) -> PostRecord:
        if not owner_id:
            raise NotAuthenticated()
        post = self.db.get_post(post_id)
        if not post:
            raise NotFound(POST_NOT_FOUND)
        if post.user_id != owner_id:
            raise Forbidden("Only the author can change this post")
        return post

    def update_post(
        self, post_id: str, payload: dict[str, Any], owner_id: Optional[str]
    ) -> PostRecord:
        data = validate_post(payload)
        self._owned_post(post_id, owner_id)
        if not self.db.update_post(post_id, data.as_record()):
            raise NotFound(POST_NOT_FOUND)
        logger.info("Updated post %s", post_id)
        self.cache.invalidate("post", post_id)
        self.cache.invalidate("posts")
        return self.get_post(post_id)

    def delete_post(self, post_id: str, owner_id: Optional[str]) -> None:
        self._owned_post(post_id, owner_id)
        if not self.db.delete_post(post_id):
            raise NotFound(POST_NOT_FOUND)
        logger.info("Deleted post %s", post_id)
        self.cache.invalidate("post", post_id)
        self.cache.invalidate("comments", post_id)
        self.cache.invalidate("posts")

    def upvote(self, post_id: str, owner_id: Optional[str]) -> int:
        if not owner_id:
            raise NotAuthenticated()
        upvotes = self.db.increment_upvotes(post_id)
        if upvotes is None:
            raise NotFound(POST_NOT_FOUND)
        self.cache.invalidate("post", post_id)
        self.cache.invalidate("posts")
        return upvotes

    def add_comment(
        self, post_id: str, payload: dict[str, Any], owner_id: Optional[str]
    ) -> CommentRecord:
        if not owner_id:
            raise NotAuthenticated()
        data = validate_comment(payload)
        self.get_post(post_id)
        comment = self.db.create_comment(post_id, data.content, owner_id)
        self.cache.invalidate("comments", post_id)
        return comment
