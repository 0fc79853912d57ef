"""
FastAPI application entry point for the forum service.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from airfryhub.config import get_settings
from airfryhub.errors import ForumError, ValidationFailed
from airfryhub.logging_utils import configure_logging
from airfryhub.routes import router

logger = logging.getLogger(__name__)


async def forum_error_handler(request: Request, exc: ForumError) -> JSONResponse:
    content: dict = {"detail": exc.message}
    if isinstance(exc, ValidationFailed):
        content["errors"] = exc.errors
    elif exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=content)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors: dict[str, str] = {}
    for error in exc.errors():
        names = [str(part) for part in error.get("loc", ()) if not isinstance(part, int)]
        field = names[-1] if names else "body"
        errors.setdefault(field, error.get("msg", "Invalid value"))
    return await forum_error_handler(request, ValidationFailed(errors))


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(title="AirFryHub Forum", version="0.1.0")
    app.add_exception_handler(ForumError, forum_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
