"""Object Storage — key layout, public URLs and upload error mapping."""

import re

import pytest
from botocore.exceptions import ClientError

from marketplace.core.errors import StorageError
from marketplace.infrastructure.object_storage import ObjectStorage, make_key
from tests.services.fakes import FakeS3Client

UUID_RE = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"


class FailingS3Client:
    def put_object(self, **kwargs):
        raise ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject",
        )


def test_make_key_keeps_lowercased_extension():
    key = make_key("listings", "user-1", "Front Photo.JPG")
    assert re.fullmatch(rf"listings/user-1/{UUID_RE}\.jpg", key)


def test_make_key_never_uses_file_name():
    key = make_key("listings", "user-1", "../../etc/passwd")
    assert "passwd" not in key
    assert ".." not in key


def test_make_key_sanitizes_owner_and_prefix():
    key = make_key("/disputes/", "a b/c", "")
    assert key.startswith("disputes/a_b_c/")


async def test_upload_returns_public_url():
    s3 = FakeS3Client()
    storage = ObjectStorage(s3, "https://cdn.test/")
    stored = await storage.upload("bucket", "k/1.png", b"data", "image/png")
    assert stored.public_url == "https://cdn.test/bucket/k/1.png"
    assert s3.objects[("bucket", "k/1.png")]["Body"] == b"data"


async def test_upload_failure_maps_to_storage_error():
    storage = ObjectStorage(FailingS3Client(), "https://cdn.test")
    with pytest.raises(StorageError) as exc:
        await storage.upload("bucket", "k/1.png", b"data")
    assert exc.value.http_status == 502
