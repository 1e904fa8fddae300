"""Turns a dream's media reference into something a vision model may see.

Outcomes for one dream:

* no media                         → ``None``
* ``thumbnail_url`` already set    → that URL, as is (cache hit)
* video                            → first frame uploaded to our bucket,
                                     stored in ``thumbnail_url``
* our own image                    → the URL unchanged
* external image                   → re-hosted in our bucket, ``image_url``
                                     overwritten with the copy
* anything else / any failure      → ``None`` (the dream is skipped)

Failures never leave this module: a batch always completes, possibly with
fewer images.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from dream_atlas.domain.dream.entities.dream import Dream
from dream_atlas.domain.dream.repo import DreamRepository
from dream_atlas.domain.errors import MediaDegraded
from dream_atlas.domain.object_storage.repo import ObjectStorageRepository
from dream_atlas.domain.ports.media import FrameExtractor, MediaFetcher
from dream_atlas.services.media.classifier import MediaClassifier, MediaKind, has_image_extension, is_remote_url

logger = logging.getLogger(__name__)

THUMBNAIL_FOLDER = "thumbnails"


def extension_for(content_type: str) -> str:
    if "png" in content_type:
        return "png"
    if "webp" in content_type:
        return "webp"
    if "gif" in content_type:
        return "gif"
    return "jpg"


class MediaNormalizer:

    def __init__(
        self,
        dream_repo: DreamRepository,
        storage: ObjectStorageRepository,
        classifier: MediaClassifier,
        fetcher: MediaFetcher,
        frame_extractor: Optional[FrameExtractor] = None,
    ) -> None:
        self._repo = dream_repo
        self._storage = storage
        self._classifier = classifier
        self._fetcher = fetcher
        self._frames = frame_extractor

    async def normalize(self, dream: Dream, session: AsyncSession) -> Optional[str]:
        """Vision-safe image URL for ``dream``, or ``None``. Never raises."""
        try:
            return await self._normalize(dream, session)
        except MediaDegraded as e:
            logger.warning(f"Skipping media of dream {dream.id}: {e}")
            return None

    async def normalize_many(
        self, dreams: Iterable[Dream], session: AsyncSession
    ) -> Dict[UUID, Optional[str]]:
        # sequential: every write goes through the one request session
        return {dream.id: await self.normalize(dream, session) for dream in dreams}

    async def rehost_image(self, owner_id: UUID, url: str) -> str:
        """Copy an external image into the owner's namespace; return the new URL.

        Already-owned URLs come back unchanged. Raises ``MediaDegraded``.
        """
        if self._storage.is_owned_url(url):
            return url
        if not is_remote_url(url):
            raise MediaDegraded("only http(s) media URLs can be imported")
        try:
            fetched = await self._fetcher.fetch(url)
        except Exception as e:
            raise MediaDegraded(f"could not fetch image ({e})") from e
        if not fetched.data:
            raise MediaDegraded("image URL returned an empty body")
        key = self._storage.new_key(owner_id, extension_for(fetched.content_type))
        try:
            stored = await self._storage.upload_bytes(key, fetched.data, fetched.content_type)
        except Exception as e:
            raise MediaDegraded(f"could not upload image ({e})") from e
        logger.info(f"Re-hosted external image for user {owner_id}: {stored}")
        return stored

    # ─────────────────────────────── internals ──────────────────────────────── #

    async def _normalize(self, dream: Dream, session: AsyncSession) -> Optional[str]:
        media_url = dream.image_url
        if not media_url:
            return None
        if dream.thumbnail_url:
            return dream.thumbnail_url
        if not is_remote_url(media_url):
            raise MediaDegraded(f"not an http(s) reference: {media_url[:100]}")

        kind = await self._classifier.classify(media_url)
        if kind == MediaKind.VIDEO:
            return await self._thumbnail_for_video(dream, session)

        looks_like_image = kind == MediaKind.IMAGE or (
            kind == MediaKind.UNKNOWN and has_image_extension(media_url)
        )
        if not looks_like_image:
            raise MediaDegraded(f"could not classify {media_url[:100]}")

        if self._storage.is_owned_url(media_url):
            return media_url

        stored = await self.rehost_image(dream.user_id, media_url)
        try:
            await self._repo.set_image_url(dream.id, stored, session)
        except Exception as e:
            raise MediaDegraded(f"could not record re-hosted image ({e})") from e
        return stored

    async def _thumbnail_for_video(self, dream: Dream, session: AsyncSession) -> str:
        if self._frames is None:
            raise MediaDegraded("no frame extractor configured")
        try:
            frame = await self._frames.extract_first_frame(dream.image_url)
            key = self._storage.new_key(dream.user_id, "jpg", THUMBNAIL_FOLDER)
            url = await self._storage.upload_bytes(key, frame, "image/jpeg")
            await self._repo.set_thumbnail_url(dream.id, url, session)
        except Exception as e:
            raise MediaDegraded(f"frame extraction failed ({e})") from e
        logger.info(f"Stored video thumbnail for dream {dream.id}")
        return url
