"""S3-backed object storage (the dream-images bucket)."""
from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

import boto3

from dream_atlas.config import settings
from dream_atlas.domain.object_storage.repo import ObjectStorageRepository

logger = logging.getLogger(__name__)

_CACHE_CONTROL = "max-age=31536000"


class S3StorageRepository(ObjectStorageRepository):
    """boto3 is blocking; every call is pushed to the default executor."""

    def __init__(
        self,
        bucket: Optional[str] = None,
        region: Optional[str] = None,
        public_base_url: Optional[str] = None,
        extra_owned_prefixes: Iterable[str] = (),
        client=None,
    ) -> None:
        cfg = settings()
        self._bucket = bucket or cfg.s3_bucket
        self._region = region or cfg.aws_region
        self._public_base = (public_base_url or cfg.storage_public_base_url).rstrip("/")
        self._owned_prefixes = [self._public_base, *extra_owned_prefixes, *cfg.storage_owned_prefixes]
        self._client = client or boto3.client("s3", region_name=self._region)

    async def upload_bytes(self, key: str, data: bytes, content_type: str) -> str:
        logger.info(f"Uploading {len(data)} bytes to s3://{self._bucket}/{key}")
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None,
            lambda: self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                CacheControl=_CACHE_CONTROL,
            )
        )
        return self.public_url(key)

    def public_url(self, key: str) -> str:
        return f"{self._public_base}/{key}"

    def is_owned_url(self, url: str) -> bool:
        return any(url.startswith(prefix) for prefix in self._owned_prefixes if prefix)
