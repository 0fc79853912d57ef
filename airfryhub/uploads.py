"""
Image upload: type/size checks, randomized object naming, simulated progress.
"""

from __future__ import annotations

import logging
import random
import string
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from airfryhub.errors import RemoteCallFailed, ValidationFailed
from airfryhub.storage import StorageClient

logger = logging.getLogger(__name__)

IMAGE_PREFIX = "images"
DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024
_BASE36 = string.digits + string.ascii_lowercase


def _random_suffix(length: int = 6) -> str:
    return "".join(random.choice(_BASE36) for _ in range(length))


def build_image_path(filename: str, now_ms: Optional[int] = None) -> str:
    """Return ``images/<epoch-ms>-<random>.<ext>`` for an uploaded file name."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    ext = filename.rsplit(".", 1)[-1] if filename and "." in filename else "bin"
    return f"{IMAGE_PREFIX}/{now_ms}-{_random_suffix()}.{ext}"


@dataclass
class UploadProgress:
    """
    Simulated progress for an upload. The platform gives no progress signal,
    so the bar advances in steps of 10, stalls at 90 until the upload
    returns, then jumps to 100.
    """

    step: int = 10
    ceiling: int = 90
    percent: int = 0
    history: list[int] = field(default_factory=list)

    def tick(self) -> int:
        self.percent = min(self.percent + self.step, self.ceiling)
        self.history.append(self.percent)
        return self.percent

    def complete(self) -> int:
        self.percent = 100
        self.history.append(self.percent)
        return self.percent

    def reset(self) -> int:
        self.percent = 0
        return self.percent


@dataclass
class UploadResult:
    path: str
    url: str
    progress: list[int]


def check_image(content_type: Optional[str], size: int, max_bytes: int) -> None:
    if not content_type or not content_type.startswith("image/"):
        raise ValidationFailed({"image_upload": "Please select an image file"})
    if size > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise ValidationFailed(
            {"image_upload": f"Image size must be less than {limit_mb}MB"}
        )


def upload_image(
    storage: StorageClient,
    filename: str,
    data: bytes,
    content_type: Optional[str],
    *,
    max_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
    progress: Optional[UploadProgress] = None,
    on_progress: Optional[Callable[[int], None]] = None,
) -> UploadResult:
    check_image(content_type, len(data), max_bytes)
    progress = progress or UploadProgress()
    path = build_image_path(filename)

    progress.tick()
    if on_progress:
        on_progress(progress.percent)
    try:
        storage.upload_bytes(path, data, content_type)
    except RemoteCallFailed as exc:
        progress.reset()
        logger.error("Error uploading image %s: %s", path, exc.message)
        raise RemoteCallFailed(
            f"Failed to upload image: {exc.message}" if exc.message else "Failed to upload image"
        ) from exc
    progress.complete()
    if on_progress:
        on_progress(progress.percent)

    url = storage.public_url(path)
    logger.info("Uploaded image %s (%d bytes)", path, len(data))
    return UploadResult(path=path, url=url, progress=list(progress.history))
