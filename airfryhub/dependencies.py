"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Request

from airfryhub.auth import (
    AuthClient,
    AuthSession,
    GoTrueAuthClient,
    InMemoryAuthClient,
    resolve_owner,
)
from airfryhub.cache import QueryCache
from airfryhub.config import get_settings
from airfryhub.db import DbClient, InMemoryDbClient, PostgresDbClient
from airfryhub.errors import RemoteCallFailed
from airfryhub.service import ForumService
from airfryhub.storage import InMemoryStorageClient, S3StorageClient, StorageClient

logger = logging.getLogger(__name__)

_db_client: DbClient | None = None
_storage_client: StorageClient | None = None
_auth_client: AuthClient | None = None
_forum_service: ForumService | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so state persists across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _db_client = InMemoryDbClient()
    else:
        _db_client = PostgresDbClient(settings.database_url)
    return _db_client


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.storage_endpoint:
        _storage_client = InMemoryStorageClient()
    else:
        _storage_client = S3StorageClient(
            bucket=settings.storage_bucket,
            region=settings.storage_region or "",
            endpoint=settings.storage_endpoint,
            access_key_id=settings.storage_access_key_id or "",
            secret_access_key=settings.storage_secret_access_key or "",
            public_base_url=settings.storage_public_url,
        )
    return _storage_client


def get_auth_client() -> AuthClient:
    global _auth_client
    if _auth_client:
        return _auth_client

    settings = get_settings()
    if (
        settings.use_in_memory_backends
        or not settings.auth_url
        or not settings.supabase_anon_key
    ):
        _auth_client = InMemoryAuthClient()
    else:
        _auth_client = GoTrueAuthClient(settings.auth_url, settings.supabase_anon_key)
    return _auth_client


def get_forum_service(db: DbClient = Depends(get_db_client)) -> ForumService:
    global _forum_service
    if _forum_service and _forum_service.db is db:
        return _forum_service

    settings = get_settings()
    _forum_service = ForumService(
        db,
        QueryCache(
            maxsize=settings.query_cache_size, ttl=settings.query_stale_seconds
        ),
    )
    return _forum_service


def reset_dependencies() -> None:
    """Drop all singletons so the next request rebuilds them (tests)."""
    global _db_client, _storage_client, _auth_client, _forum_service
    _db_client = None
    _storage_client = None
    _auth_client = None
    _forum_service = None


def session_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return request.cookies.get(get_settings().session_cookie_name)


def get_current_owner(
    request: Request, auth: AuthClient = Depends(get_auth_client)
) -> Optional[AuthSession]:
    """Identity behind the request's session token, if any. Reads stay public."""
    token = session_token(request)
    try:
        return resolve_owner(token, auth)
    except RemoteCallFailed as exc:
        logger.error("Session error: %s", exc.message)
        return None
