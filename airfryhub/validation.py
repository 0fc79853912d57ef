"""
Client-side schema checks for posts and comments.

These run before any call to the platform. A failure is reported as a
``ValidationFailed`` carrying one message per offending field.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import (
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic_core import PydanticCustomError

from airfryhub.errors import ValidationFailed
from airfryhub.flags import dedupe_flags, is_known_flag

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 200
CONTENT_MAX_LENGTH = 2000
COMMENT_MIN_LENGTH = 3
COMMENT_MAX_LENGTH = 500

INVALID_URL_MESSAGE = "Please enter a valid URL"

_url_adapter = TypeAdapter(AnyUrl)


def is_valid_url(value: str) -> bool:
    try:
        url = _url_adapter.validate_python(value)
    except ValidationError:
        return False
    return bool(url.scheme and url.host)


def _check_optional_url(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    if not is_valid_url(value):
        raise PydanticCustomError("invalid_url", INVALID_URL_MESSAGE)
    return value


class PostInput(BaseModel):
    """Validated fields for creating or editing a post."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, validate_default=True)
    content: Optional[str] = ""
    image_url: Optional[str] = None
    link_url: Optional[str] = None
    flags: Optional[list[str]] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def _check_title(cls, value: Optional[str]) -> str:
        if not value:
            raise PydanticCustomError("title_required", "Title is required")
        if len(value) < TITLE_MIN_LENGTH:
            raise PydanticCustomError(
                "title_too_short", "Title must be at least 3 characters"
            )
        if len(value) > TITLE_MAX_LENGTH:
            raise PydanticCustomError(
                "title_too_long", "Title must be less than 200 characters"
            )
        return value

    @field_validator("content")
    @classmethod
    def _check_content(cls, value: Optional[str]) -> str:
        value = value or ""
        if len(value) > CONTENT_MAX_LENGTH:
            raise PydanticCustomError(
                "content_too_long", "Content must be less than 2000 characters"
            )
        return value

    @field_validator("image_url", "link_url")
    @classmethod
    def _check_urls(cls, value: Optional[str]) -> Optional[str]:
        return _check_optional_url(value)

    @field_validator("flags")
    @classmethod
    def _check_flags(cls, value: Optional[list[str]]) -> list[str]:
        flags = dedupe_flags(value or [])
        for flag in flags:
            if not is_known_flag(flag):
                raise PydanticCustomError(
                    "unknown_flag", "Unknown tag: {value}", {"value": flag}
                )
        return flags

    def as_record(self) -> dict:
        return self.model_dump()


class CommentInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    content: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("content")
    @classmethod
    def _check_content(cls, value: Optional[str]) -> str:
        if not value:
            raise PydanticCustomError("comment_required", "Comment cannot be empty")
        if len(value) < COMMENT_MIN_LENGTH:
            raise PydanticCustomError(
                "comment_too_short", "Comment must be at least 3 characters"
            )
        if len(value) > COMMENT_MAX_LENGTH:
            raise PydanticCustomError(
                "comment_too_long", "Comment must be less than 500 characters"
            )
        return value


def _error_map(exc: ValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for error in exc.errors():
        loc = error.get("loc") or ("general",)
        field = str(loc[0])
        errors.setdefault(field, error["msg"])
    return errors


def validate_post(data: dict[str, Any]) -> PostInput:
    try:
        return PostInput.model_validate(data)
    except ValidationError as exc:
        raise ValidationFailed(_error_map(exc)) from exc


def validate_comment(data: dict[str, Any]) -> CommentInput:
    try:
        return CommentInput.model_validate(data)
    except ValidationError as exc:
        raise ValidationFailed(_error_map(exc)) from exc


def validate_url(value: str, field: str = "url") -> str:
    value = (value or "").strip()
    if not is_valid_url(value):
        raise ValidationFailed({field: INVALID_URL_MESSAGE})
    return value
