"""
Database abstraction for the hosted Postgres and an in-memory test implementation.
"""

from __future__ import annotations

import itertools
import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterator, Optional, Protocol

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    or_,
    select,
    type_coerce,
    update,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from airfryhub.errors import RemoteCallFailed
from airfryhub.feed import FeedQuery, SortKey

logger = logging.getLogger(__name__)

POSTS_TABLE = "posts"
COMMENTS_TABLE = "comments"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DbClient(Protocol):
    """Interface for the posts/comments tables and the upvote procedure."""

    def list_posts(self, query: FeedQuery) -> list["PostRecord"]:
        ...

    def get_post(self, post_id: str) -> Optional["PostRecord"]:
        ...

    def create_post(
        self,
        fields: dict,
        user_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> "PostRecord":
        ...

    def update_post(self, post_id: str, fields: dict) -> bool:
        ...

    def delete_post(self, post_id: str) -> bool:
        ...

    def increment_upvotes(self, post_id: str) -> Optional[int]:
        ...

    def list_comments(self, post_id: str) -> list["CommentRecord"]:
        ...

    def create_comment(
        self, post_id: str, content: str, user_id: Optional[str]
    ) -> "CommentRecord":
        ...


@dataclass
class PostRecord:
    id: str
    title: str
    content: str = ""
    image_url: Optional[str] = None
    link_url: Optional[str] = None
    flags: list[str] = field(default_factory=list)
    user_id: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    upvotes: int = 0

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "image_url": self.image_url,
            "link_url": self.link_url,
            "flags": list(self.flags),
            "user_id": self.user_id,
            "created_at": self.created_at,
            "upvotes": self.upvotes,
        }


@dataclass
class CommentRecord:
    id: str
    post_id: str
    content: str
    user_id: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "post_id": self.post_id,
            "content": self.content,
            "user_id": self.user_id,
            "created_at": self.created_at,
        }


def _sort_posts(posts: list[PostRecord], order: Dict[str, int], sort: SortKey):
    if sort == SortKey.OLDEST:
        return sorted(posts, key=lambda p: (p.created_at, order[p.id]))
    if sort == SortKey.MOST_UPVOTED:
        return sorted(
            posts,
            key=lambda p: (p.upvotes, p.created_at, order[p.id]),
            reverse=True,
        )
    return sorted(posts, key=lambda p: (p.created_at, order[p.id]), reverse=True)


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.posts: Dict[str, PostRecord] = {}
        self.comments: Dict[str, CommentRecord] = {}
        self._order: Dict[str, int] = {}
        self._seq = itertools.count()
        self._lock = threading.Lock()

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.posts.clear()
            self.comments.clear()
            self._order.clear()

    def list_posts(self, query: FeedQuery) -> list[PostRecord]:
        with self._lock:
            matching = [
                PostRecord(**p.as_dict())
                for p in self.posts.values()
                if query.matches(p.title, p.content, p.flags)
            ]
            return _sort_posts(matching, dict(self._order), query.sort)

    def get_post(self, post_id: str) -> Optional[PostRecord]:
        with self._lock:
            post = self.posts.get(post_id)
            return PostRecord(**post.as_dict()) if post else None

    def create_post(
        self,
        fields: dict,
        user_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> PostRecord:
        record = PostRecord(
            id=str(uuid.uuid4()),
            title=fields["title"],
            content=fields.get("content") or "",
            image_url=fields.get("image_url"),
            link_url=fields.get("link_url"),
            flags=list(fields.get("flags") or []),
            user_id=user_id,
            created_at=created_at or _utcnow(),
        )
        with self._lock:
            self.posts[record.id] = record
            self._order[record.id] = next(self._seq)
            return PostRecord(**record.as_dict())

    def update_post(self, post_id: str, fields: dict) -> bool:
        with self._lock:
            post = self.posts.get(post_id)
            if not post:
                return False
            for key in ("title", "content", "image_url", "link_url"):
                if key in fields:
                    setattr(post, key, fields[key])
            if "flags" in fields:
                post.flags = list(fields["flags"] or [])
            return True

    def delete_post(self, post_id: str) -> bool:
        with self._lock:
            if self.posts.pop(post_id, None) is None:
                return False
            self._order.pop(post_id, None)
            for comment_id in [
                c.id for c in self.comments.values() if c.post_id == post_id
            ]:
                del self.comments[comment_id]
            return True

    def increment_upvotes(self, post_id: str) -> Optional[int]:
        with self._lock:
            post = self.posts.get(post_id)
            if not post:
                return None
            post.upvotes += 1
            return post.upvotes

    def list_comments(self, post_id: str) -> list[CommentRecord]:
        with self._lock:
            comments = [
                CommentRecord(**c.as_dict())
                for c in self.comments.values()
                if c.post_id == post_id
            ]
        return sorted(comments, key=lambda c: c.created_at)

    def create_comment(
        self, post_id: str, content: str, user_id: Optional[str]
    ) -> CommentRecord:
        record = CommentRecord(
            id=str(uuid.uuid4()),
            post_id=post_id,
            content=content,
            user_id=user_id,
        )
        with self._lock:
            self.comments[record.id] = record
        return CommentRecord(**record.as_dict())


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PostgresDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (the hosted
    Postgres in production, SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @property
    def supports_jsonb(self) -> bool:
        return self.engine.dialect.name == "postgresql"

    @contextmanager
    def _remote_call(self, action: str) -> Iterator[Session]:
        with self.Session() as session:
            try:
                yield session
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Database call failed while trying to %s", action)
                detail = getattr(exc, "orig", None) or exc
                raise RemoteCallFailed(f"Failed to {action}: {detail}") from exc

    def _to_post_record(self, row: "PostRow") -> PostRecord:
        return PostRecord(
            id=row.id,
            title=row.title,
            content=row.content or "",
            image_url=row.image_url,
            link_url=row.link_url,
            flags=list(row.flags or []),
            user_id=row.user_id,
            created_at=_as_utc(row.created_at),
            upvotes=row.upvotes,
        )

    def _to_comment_record(self, row: "CommentRow") -> CommentRecord:
        return CommentRecord(
            id=row.id,
            post_id=row.post_id,
            content=row.content,
            user_id=row.user_id,
            created_at=_as_utc(row.created_at),
        )

    def list_posts(self, query: FeedQuery) -> list[PostRecord]:
        stmt = select(PostRow)
        if query.search:
            pattern = f"%{_escape_like(query.search)}%"
            stmt = stmt.where(
                or_(
                    PostRow.title.ilike(pattern, escape="\\"),
                    PostRow.content.ilike(pattern, escape="\\"),
                )
            )
        if query.flags and self.supports_jsonb:
            stmt = stmt.where(
                type_coerce(PostRow.flags, JSONB).contains(list(query.flags))
            )
        if query.sort == SortKey.OLDEST:
            stmt = stmt.order_by(PostRow.created_at.asc())
        elif query.sort == SortKey.MOST_UPVOTED:
            stmt = stmt.order_by(PostRow.upvotes.desc(), PostRow.created_at.desc())
        else:
            stmt = stmt.order_by(PostRow.created_at.desc())

        with self._remote_call("load posts") as session:
            rows = session.execute(stmt).scalars().all()
            posts = [self._to_post_record(row) for row in rows]
        if query.flags and not self.supports_jsonb:
            wanted = set(query.flags)
            posts = [p for p in posts if wanted.issubset(p.flags)]
        return posts

    def get_post(self, post_id: str) -> Optional[PostRecord]:
        with self._remote_call("load post") as session:
            row = session.get(PostRow, post_id)
            if not row:
                return None
            return self._to_post_record(row)

    def create_post(
        self,
        fields: dict,
        user_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> PostRecord:
        with self._remote_call("create post") as session:
            row = PostRow(
                id=str(uuid.uuid4()),
                title=fields["title"],
                content=fields.get("content") or "",
                image_url=fields.get("image_url"),
                link_url=fields.get("link_url"),
                flags=list(fields.get("flags") or []),
                user_id=user_id,
                created_at=created_at or _utcnow(),
                upvotes=0,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_post_record(row)

    def update_post(self, post_id: str, fields: dict) -> bool:
        values = {
            key: fields[key]
            for key in ("title", "content", "image_url", "link_url", "flags")
            if key in fields
        }
        with self._remote_call("update post") as session:
            result = session.execute(
                update(PostRow)
                .where(PostRow.id == post_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            session.commit()
            return bool(result.rowcount)

    def delete_post(self, post_id: str) -> bool:
        with self._remote_call("delete post") as session:
            session.execute(
                delete(CommentRow)
                .where(CommentRow.post_id == post_id)
                .execution_options(synchronize_session=False)
            )
            result = session.execute(
                delete(PostRow)
                .where(PostRow.id == post_id)
                .execution_options(synchronize_session=False)
            )
            session.commit()
            return bool(result.rowcount)

    def increment_upvotes(self, post_id: str) -> Optional[int]:
        # Single atomic UPDATE ... RETURNING, same as the increment_upvotes procedure.
        stmt = (
            update(PostRow)
            .where(PostRow.id == post_id)
            .values(upvotes=PostRow.upvotes + 1)
            .returning(PostRow.upvotes)
            .execution_options(synchronize_session=False)
        )
        with self._remote_call("upvote post") as session:
            upvotes = session.execute(stmt).scalar_one_or_none()
            session.commit()
            return upvotes

    def list_comments(self, post_id: str) -> list[CommentRecord]:
        stmt = (
            select(CommentRow)
            .where(CommentRow.post_id == post_id)
            .order_by(CommentRow.created_at.asc())
        )
        with self._remote_call("load comments") as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_comment_record(row) for row in rows]

    def create_comment(
        self, post_id: str, content: str, user_id: Optional[str]
    ) -> CommentRecord:
        with self._remote_call("post comment") as session:
            row = CommentRow(
                id=str(uuid.uuid4()),
                post_id=post_id,
                content=content,
                user_id=user_id,
                created_at=_utcnow(),
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_comment_record(row)


Base = declarative_base()


class PostRow(Base):
    __tablename__ = POSTS_TABLE

    id = Column(String, primary_key=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False, default="")
    image_url = Column(String, nullable=True)
    link_url = Column(String, nullable=True)
    flags = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=list)
    user_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    upvotes = Column(Integer, nullable=False, default=0)


class CommentRow(Base):
    __tablename__ = COMMENTS_TABLE

    id = Column(String, primary_key=True)
    post_id = Column(
        String,
        ForeignKey(f"{POSTS_TABLE}.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content = Column(Text, nullable=False)
    user_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
