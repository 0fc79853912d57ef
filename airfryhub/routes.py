"""
HTTP routes for the forum API.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Query,
    Request,
    Response,
    UploadFile,
)
from starlette.concurrency import run_in_threadpool

from airfryhub.auth import AuthClient, AuthSession, bootstrap
from airfryhub.config import get_settings
from airfryhub.db import CommentRecord, PostRecord
from airfryhub.dependencies import (
    get_auth_client,
    get_current_owner,
    get_forum_service,
    get_storage_client,
    session_token,
)
from airfryhub.feed import FeedQuery, format_time_ago
from airfryhub.flags import AVAILABLE_FLAGS, describe_selection, display_flags
from airfryhub.link_preview import build_preview
from airfryhub.schemas import (
    CommentPayload,
    CommentResponse,
    CommentsListResponse,
    DeleteResponse,
    FeedResponse,
    FlagResponse,
    LinkPreviewResponse,
    PostPayload,
    PostResponse,
    SessionResponse,
    UpvoteResponse,
    UploadResponse,
)
from airfryhub.service import ForumService
from airfryhub.storage import StorageClient
from airfryhub.uploads import check_image, upload_image

logger = logging.getLogger(__name__)

router = APIRouter()


def _owner_id(owner: Optional[AuthSession]) -> Optional[str]:
    return owner.user_id if owner else None


def _post_response(post: PostRecord, owner_id: Optional[str]) -> PostResponse:
    return PostResponse(
        id=post.id,
        title=post.title,
        content=post.content,
        image_url=post.image_url,
        link_url=post.link_url,
        flags=post.flags,
        flag_details=[FlagResponse(**flag.as_dict()) for flag in display_flags(post.flags)],
        user_id=post.user_id,
        created_at=post.created_at,
        time_ago=format_time_ago(post.created_at),
        upvotes=post.upvotes,
        is_owner=bool(owner_id) and post.user_id == owner_id,
    )


def _comment_response(comment: CommentRecord) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        post_id=comment.post_id,
        content=comment.content,
        user_id=comment.user_id,
        created_at=comment.created_at,
        time_ago=format_time_ago(comment.created_at),
    )


def _session_response(session: AuthSession) -> SessionResponse:
    return SessionResponse(
        user_id=session.user_id,
        is_anonymous=session.is_anonymous,
        expires_at=session.expires_at,
    )


@router.get("/flags", response_model=list[FlagResponse])
def list_flags():
    return [FlagResponse(**flag.as_dict()) for flag in AVAILABLE_FLAGS]


@router.get("/posts", response_model=FeedResponse)
def list_posts(
    search: str | None = Query(None),
    sort: str | None = Query(None, description="newest, oldest or most_upvoted"),
    flags: str | None = Query(None, description="Comma-separated tag values"),
    service: ForumService = Depends(get_forum_service),
    owner: Optional[AuthSession] = Depends(get_current_owner),
):
    flag_list = [f.strip() for f in flags.split(",")] if flags else []
    query = FeedQuery.build(search=search, sort=sort, flags=flag_list)
    page = service.list_posts(query)
    owner_id = _owner_id(owner)
    return FeedResponse(
        posts=[_post_response(post, owner_id) for post in page.posts],
        count=page.count,
        search=query.search,
        sort=query.sort.value,
        flags=list(query.flags),
        filter_summary=describe_selection(query.flags),
        empty_message=page.empty_message,
    )


@router.post("/posts", response_model=PostResponse, status_code=201)
def create_post(
    payload: PostPayload,
    service: ForumService = Depends(get_forum_service),
    owner: Optional[AuthSession] = Depends(get_current_owner),
):
    post = service.create_post(payload.model_dump(), _owner_id(owner))
    return _post_response(post, _owner_id(owner))


@router.get("/posts/{post_id}", response_model=PostResponse)
def get_post(
    post_id: str,
    service: ForumService = Depends(get_forum_service),
    owner: Optional[AuthSession] = Depends(get_current_owner),
):
    return _post_response(service.get_post(post_id), _owner_id(owner))


@router.put("/posts/{post_id}", response_model=PostResponse)
def update_post(
    post_id: str,
    payload: PostPayload,
    service: ForumService = Depends(get_forum_service),
    owner: Optional[AuthSession] = Depends(get_current_owner),
):
    post = service.update_post(post_id, payload.model_dump(), _owner_id(owner))
    return _post_response(post, _owner_id(owner))


@router.delete("/posts/{post_id}", response_model=DeleteResponse)
def delete_post(
    post_id: str,
    service: ForumService = Depends(get_forum_service),
    owner: Optional[AuthSession] = Depends(get_current_owner),
):
    service.delete_post(post_id, _owner_id(owner))
    return DeleteResponse(status="ok")


@router.post("/posts/{post_id}/upvote", response_model=UpvoteResponse)
def upvote_post(
    post_id: str,
    service: ForumService = Depends(get_forum_service),
    owner: Optional[AuthSession] = Depends(get_current_owner),
):
    upvotes = service.upvote(post_id, _owner_id(owner))
    return UpvoteResponse(id=post_id, upvotes=upvotes)


@router.get("/posts/{post_id}/comments", response_model=CommentsListResponse)
def list_comments(
    post_id: str,
    service: ForumService = Depends(get_forum_service),
):
    comments = service.list_comments(post_id)
    return CommentsListResponse(
        comments=[_comment_response(c) for c in comments], count=len(comments)
    )


@router.post(
    "/posts/{post_id}/comments", response_model=CommentResponse, status_code=201
)
def add_comment(
    post_id: str,
    payload: CommentPayload,
    service: ForumService = Depends(get_forum_service),
    owner: Optional[AuthSession] = Depends(get_current_owner),
):
    comment = service.add_comment(post_id, payload.model_dump(), _owner_id(owner))
    return _comment_response(comment)


@router.post("/uploads/images", response_model=UploadResponse, status_code=201)
async def upload_post_image(
    file: UploadFile = File(...),
    storage: StorageClient = Depends(get_storage_client),
):
    max_bytes = get_settings().max_image_bytes
    if file.size is not None:
        check_image(file.content_type, file.size, max_bytes)
    data = await file.read(max_bytes + 1)
    result = await run_in_threadpool(
        upload_image,
        storage,
        file.filename or "",
        data,
        file.content_type,
        max_bytes=max_bytes,
    )
    return UploadResponse(url=result.url, path=result.path, progress=result.progress)


@router.get("/link-preview", response_model=LinkPreviewResponse)
def link_preview(url: str = Query(..., min_length=1)):
    preview = build_preview(url, fetch=get_settings().link_preview_fetch)
    return LinkPreviewResponse(**preview.as_dict())


def _start_session(request: Request, response: Response, auth: AuthClient):
    session = bootstrap(session_token(request), auth)
    settings = get_settings()
    response.set_cookie(
        settings.session_cookie_name,
        session.access_token,
        httponly=True,
        samesite="lax",
    )
    return _session_response(session)


@router.post("/auth/anonymous", response_model=SessionResponse)
def sign_in_anonymously(
    request: Request,
    response: Response,
    auth: AuthClient = Depends(get_auth_client),
):
    return _start_session(request, response, auth)


@router.post("/auth/retry", response_model=SessionResponse)
def retry_authentication(
    request: Request,
    response: Response,
    auth: AuthClient = Depends(get_auth_client),
):
    logger.info("Retrying authentication")
    return _start_session(request, response, auth)


@router.get("/auth/session", response_model=SessionResponse)
def current_session(owner: Optional[AuthSession] = Depends(get_current_owner)):
    if not owner:
        raise HTTPException(status_code=401, detail="Not authenticated yet")
    return _session_response(owner)
