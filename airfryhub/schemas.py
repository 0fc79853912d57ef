"""
Pydantic schemas for the forum API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class PostPayload(BaseModel):
    """Raw form fields; checked by the validation module, not here."""

    title: Optional[str] = None
    content: Optional[str] = None
    image_url: Optional[str] = None
    link_url: Optional[str] = None
    flags: Optional[list[str]] = None


class CommentPayload(BaseModel):
    content: Optional[str] = None


class FlagResponse(BaseModel):
    value: str
    label: str
    icon: str


class PostResponse(BaseModel):
    id: str
    title: str
    content: str
    image_url: Optional[str] = None
    link_url: Optional[str] = None
    flags: list[str] = Field(default_factory=list)
    flag_details: list[FlagResponse] = Field(default_factory=list)
    user_id: Optional[str] = None
    created_at: datetime
    time_ago: str
    upvotes: int
    is_owner: bool = False


class FeedResponse(BaseModel):
    posts: list[PostResponse]
    count: int
    search: str
    sort: str
    flags: list[str]
    filter_summary: Optional[str] = None
    empty_message: Optional[str] = None


class CommentResponse(BaseModel):
    id: str
    post_id: str
    content: str
    user_id: Optional[str] = None
    created_at: datetime
    time_ago: str


class CommentsListResponse(BaseModel):
    comments: list[CommentResponse]
    count: int


class UpvoteResponse(BaseModel):
    id: str
    upvotes: int


class DeleteResponse(BaseModel):
    status: Literal["ok"]


class SessionResponse(BaseModel):
    user_id: str
    is_anonymous: bool
    expires_at: Optional[datetime] = None


class UploadResponse(BaseModel):
    url: str
    path: str
    progress: list[int]


class LinkPreviewResponse(BaseModel):
    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    site_name: Optional[str] = None
    favicon: Optional[str] = None
