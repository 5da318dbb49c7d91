"""Submission Upload Gate — service tests.

Tests cover:
    - Accepted image lands in the bucket under the caller's prefix with a signed URL
    - Wrong type and oversize uploads never reach storage
    - Admins and inactive accounts cannot upload
"""

import pytest

from commonroom.core.domain_types import UserStatus
from commonroom.core.errors import ForbiddenError, RequestValidationFailed
from commonroom.services.submission_uploads import SubmissionUploadGate
from tests.services.fake_store import FakeBlobStorage


@pytest.fixture
def blobs():
    return FakeBlobStorage()


@pytest.fixture
def gate(blobs, clock):
    return SubmissionUploadGate(
        blobs, bucket="submissions", max_image_bytes=1024, max_video_bytes=4096,
        signed_url_ttl_seconds=60, clock=clock,
    )


async def test_image_upload(gate, blobs, clock, alice):
    stored = await gate.upload_submission_file(alice, "my photo.png", "image/png", b"x" * 100)
    millis = int(clock.now.timestamp() * 1000)
    assert stored.path == f"alice/{millis}-my_photo.png"
    assert stored.kind == "image"
    assert stored.url.endswith("?ttl=60")
    assert blobs.objects[("submissions", stored.path)] == (b"x" * 100, "image/png")


async def test_video_uses_video_limit(gate, alice):
    stored = await gate.upload_submission_file(alice, "clip.mp4", "video/mp4", b"v" * 2048)
    assert stored.kind == "video"


@pytest.mark.parametrize("content_type,size", [
    ("application/pdf", 10),
    ("image/png", 2048),
    ("image/png", 0),
])
async def test_rejected_uploads_not_stored(gate, blobs, alice, content_type, size):
    with pytest.raises(RequestValidationFailed):
        await gate.upload_submission_file(alice, "f", content_type, b"a" * size)
    assert blobs.objects == {}


async def test_admin_and_suspended_cannot_upload(gate, admin, seed_user):
    with pytest.raises(ForbiddenError):
        await gate.upload_submission_file(admin, "a.png", "image/png", b"a")
    quiet = seed_user("quiet", status=UserStatus.SUSPENDED)
    with pytest.raises(ForbiddenError):
        await gate.upload_submission_file(quiet, "a.png", "image/png", b"a")
