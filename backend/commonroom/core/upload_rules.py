"""Upload Gate — size/type precondition for submission attachments.

Invariants:
    - Only the listed image and video content types are accepted
    - Images are capped at 10 MB, videos at 50 MB (limits passed in from settings)
    - Stored path is `{user_id}/{epoch_millis}-{safe_filename}`; the filename never
      contributes a path separator
"""

import re
from datetime import datetime

from commonroom.core.errors import RequestValidationFailed

IMAGE_TYPES = frozenset({
    "image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp",
})
VIDEO_TYPES = frozenset({
    "video/mp4", "video/webm", "video/ogg", "video/avi", "video/mov",
})

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def media_kind(content_type: str) -> str:
    """'image' or 'video'; raises for anything else."""
    if content_type in IMAGE_TYPES:
        return "image"
    if content_type in VIDEO_TYPES:
        return "video"
    raise RequestValidationFailed(
        "Invalid file type. Only images (JPEG, PNG, GIF, WebP) and videos "
        "(MP4, WebM, OGG, AVI, MOV) are allowed.",
        "file",
    )


def check_upload(
    content_type: str, size: int, max_image_bytes: int, max_video_bytes: int,
) -> str:
    kind = media_kind(content_type)
    limit = max_video_bytes if kind == "video" else max_image_bytes
    if size <= 0:
        raise RequestValidationFailed("No file provided", "file")
    if size > limit:
        raise RequestValidationFailed(
            f"File size too large. Maximum size is {limit // (1024 * 1024)}MB.", "file",
        )
    return kind


def storage_path(user_id: str, filename: str, now: datetime) -> str:
    safe = _UNSAFE.sub("_", filename.rsplit("/", 1)[-1]).strip("._") or "upload"
    return f"{user_id}/{int(now.timestamp() * 1000)}-{safe}"
