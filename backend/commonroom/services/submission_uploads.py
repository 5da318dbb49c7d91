"""Submission Uploads — size/type gate in front of blob storage.

Invariants:
    - Nothing reaches blob storage unless check_upload() accepted it
    - The returned URL is signed; the bucket is never public
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from commonroom.core.authorize import Caller, authorize
from commonroom.core.domain_types import Action
from commonroom.core.repository_protocols import BlobStorage
from commonroom.core.upload_rules import check_upload, storage_path
from commonroom.services.record_store import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredUpload:
    path: str
    url: str
    kind: str
    size: int
    content_type: str


class SubmissionUploadGate:
    """Validates an attachment and hands it to BlobStorage."""

    def __init__(
        self,
        blobs: BlobStorage,
        bucket: str,
        max_image_bytes: int,
        max_video_bytes: int,
        signed_url_ttl_seconds: int,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.blobs = blobs
        self.bucket = bucket
        self.max_image_bytes = max_image_bytes
        self.max_video_bytes = max_video_bytes
        self.signed_url_ttl_seconds = signed_url_ttl_seconds
        self.clock = clock

    async def upload_submission_file(
        self, caller: Caller, filename: str, content_type: str, data: bytes,
    ) -> StoredUpload:
        authorize(caller, Action.UPLOAD_SUBMISSION_FILE)
        kind = check_upload(
            content_type, len(data), self.max_image_bytes, self.max_video_bytes,
        )
        path = storage_path(caller.user_id, filename, self.clock())
        await self.blobs.put(self.bucket, path, data, content_type)
        url = await self.blobs.signed_url(self.bucket, path, self.signed_url_ttl_seconds)
        logger.info(
            f"Uploaded {kind} ({len(data)} bytes)",
            extra={"user_id": caller.user_id, "path": path,
                   "operation": "upload_submission_file"},
        )
        return StoredUpload(
            path=path, url=url, kind=kind, size=len(data), content_type=content_type,
        )
