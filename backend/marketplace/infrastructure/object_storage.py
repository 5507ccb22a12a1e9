"""Object Storage — S3-compatible uploads for listing images and dispute evidence.

Invariants:
    - Keys are <prefix>/<owner_id>/<uuid><.ext>; file names never reach the key verbatim
    - public_url is deterministic from (bucket, key) and settings.storage_public_base_url
    - botocore failures surface as StorageError (502)
"""

import asyncio
import logging
import re
import uuid
from dataclasses import dataclass
from functools import lru_cache

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from marketplace.config import get_settings
from marketplace.core.errors import StorageError

logger = logging.getLogger(__name__)

_EXT_RE = re.compile(r"\.([a-zA-Z0-9]{1,10})$")
_SAFE_RE = re.compile(r"[^a-zA-Z0-9_-]")


@dataclass(frozen=True)
class StoredObject:
    bucket: str
    key: str
    public_url: str


def make_key(prefix: str, owner_id: str, file_name: str = "") -> str:
    ext = ""
    m = _EXT_RE.search((file_name or "").strip())
    if m:
        ext = f".{m.group(1).lower()}"
    safe_owner = _SAFE_RE.sub("_", str(owner_id or "unassigned"))[:80]
    safe_prefix = _SAFE_RE.sub("_", prefix.strip("/")) or "uploads"
    return f"{safe_prefix}/{safe_owner}/{uuid.uuid4()}{ext}"


class ObjectStorage:
    """boto3 S3 client wrapper; blocking calls run in a worker thread."""

    def __init__(self, client, public_base_url: str):
        self._client = client
        self._public_base_url = public_base_url.rstrip("/")

    def public_url(self, bucket: str, key: str) -> str:
        return f"{self._public_base_url}/{bucket}/{key}"

    async def upload(
        self, bucket: str, key: str, data: bytes, content_type: str | None = None,
    ) -> StoredObject:
        kwargs = {"Bucket": bucket, "Key": key, "Body": data or b""}
        if content_type:
            kwargs["ContentType"] = content_type
        try:
            await asyncio.to_thread(self._client.put_object, **kwargs)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Upload to {bucket}/{key} failed: {e}")
            raise StorageError("Upload failed")
        logger.info(f"Stored object {bucket}/{key}")
        return StoredObject(bucket=bucket, key=key, public_url=self.public_url(bucket, key))


@lru_cache
def get_object_storage() -> ObjectStorage:
    """FastAPI dependency — storage client built from settings."""
    settings = get_settings()
    client = boto3.client(
        "s3",
        endpoint_url=settings.storage_endpoint_url,
        region_name=settings.storage_region,
        aws_access_key_id=settings.storage_access_key_id,
        aws_secret_access_key=settings.storage_secret_access_key,
        config=Config(
            retries={"max_attempts": 3, "mode": "standard"},
            connect_timeout=2,
            read_timeout=15,
        ),
    )
    return ObjectStorage(client, settings.storage_public_base_url)
