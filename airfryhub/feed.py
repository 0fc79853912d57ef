"""
Feed query composition: free-text search, tag filter and sort key.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional

from airfryhub.errors import ValidationFailed
from airfryhub.flags import dedupe_flags

EMPTY_FEED_MESSAGE = "No posts found yet"
EMPTY_FILTERED_FEED_MESSAGE = "No posts found matching your criteria"


class SortKey(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    MOST_UPVOTED = "most_upvoted"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortKey":
        if not value:
            return cls.NEWEST
        try:
            return cls(value)
        except ValueError:
            raise ValidationFailed(
                {"sort": f"Sort must be one of: {', '.join(k.value for k in cls)}"}
            ) from None


@dataclass(frozen=True)
class FeedQuery:
    search: str = ""
    sort: SortKey = SortKey.NEWEST
    flags: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def build(
        cls,
        search: Optional[str] = None,
        sort: Optional[str] = None,
        flags: Optional[Iterable[str]] = None,
    ) -> "FeedQuery":
        return cls(
            search=(search or "").strip(),
            sort=SortKey.parse(sort),
            flags=tuple(dedupe_flags(f for f in (flags or []) if f)),
        )

    @property
    def is_filtered(self) -> bool:
        return bool(self.search or self.flags)

    def cache_key(self) -> tuple:
        return ("posts", self.search, self.sort.value, self.flags)

    def cleared(self) -> "FeedQuery":
        """Same sort order with search and tag filters removed."""
        return FeedQuery(sort=self.sort)

    def empty_message(self) -> str:
        if self.is_filtered:
            return EMPTY_FILTERED_FEED_MESSAGE
        return EMPTY_FEED_MESSAGE

    def matches(self, title: str, content: str, flags: Iterable[str]) -> bool:
        if self.search:
            needle = self.search.lower()
            if needle not in (title or "").lower() and needle not in (
                content or ""
            ).lower():
                return False
        if self.flags and not set(self.flags).issubset(set(flags or [])):
            return False
        return True


def format_time_ago(created_at: datetime, now: Optional[datetime] = None) -> str:
    """Short relative timestamp used in feed and post views."""
    now = now or datetime.now(timezone.utc)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    diff_hours = int((now - created_at).total_seconds() // 3600)
    if diff_hours < 1:
        return "Just now"
    if diff_hours < 24:
        return f"{diff_hours}h ago"
    if diff_hours < 168:
        return f"{diff_hours // 24}d ago"
    return created_at.date().isoformat()
