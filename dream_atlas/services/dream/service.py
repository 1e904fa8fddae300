"""Application layer orchestrating Dream journal use-cases.

Persistence is delegated to DreamRepository / ProfileRepository; image imports
go through the media normalizer so every stored copy lands in the owner's
namespace of our bucket.
"""
from __future__ import annotations

import logging
import re
import secrets
import string
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from dream_atlas.domain.dream.entities.dream import Dream, DreamVisibility
from dream_atlas.domain.dream.entities.interpretation import DreamInterpretation
from dream_atlas.domain.dream.repo import DreamRepository
from dream_atlas.domain.object_storage.repo import ObjectStorageRepository
from dream_atlas.domain.errors import DreamNotFoundError, MediaDegraded, NotFoundError, UpstreamFailure, ValidationError
from dream_atlas.domain.user.entities import Profile
from dream_atlas.domain.user.repo import ProfileRepository
from dream_atlas.services.media.classifier import is_remote_url
from dream_atlas.services.media.normalizer import MediaNormalizer, extension_for

logger = logging.getLogger(__name__)

_SLUG_ALPHABET = string.ascii_lowercase + string.digits
_NON_SLUG = re.compile(r"[^a-z0-9]+")
_SLUG_ATTEMPTS = 3

UPLOAD_LIMIT_BYTES = 10 * 1024 * 1024
_UPLOAD_EXTENSIONS = ("jpg", "jpeg", "png", "webp", "gif")


def make_slug(title: str) -> str:
    """``"My Ocean Dream!"`` → ``"my-ocean-dream-k3x9qa"``."""
    base = _NON_SLUG.sub("-", (title or "").lower()).strip("-") or "dream"
    suffix = "".join(secrets.choice(_SLUG_ALPHABET) for _ in range(6))
    return f"{base[:100]}-{suffix}"


def _check_visibility(value: str) -> str:
    try:
        return DreamVisibility(value).value
    except ValueError:
        raise ValidationError(f"visibility must be one of: {', '.join(v.value for v in DreamVisibility)}")


def _check_media_url(value: Optional[str]) -> Optional[str]:
    url = (value or "").strip() or None
    if url is not None and not is_remote_url(url):
        raise ValidationError("image_url must be an http(s) URL")
    return url


@dataclass
class SharedDream:
    """A dream as shown on its slug page."""
    dream: Dream
    interpretation: Optional[DreamInterpretation]
    author: Optional[Profile]


class DreamService:
    def __init__(
        self,
        dream_repo: DreamRepository,
        profile_repo: ProfileRepository,
        normalizer: MediaNormalizer,
        storage: ObjectStorageRepository,
    ) -> None:
        self._repo = dream_repo
        self._profiles = profile_repo
        self._normalizer = normalizer
        self._storage = storage

    # ─────────────────────────────── dreams ──────────────────────────────── #

    async def list_dreams(self, user_id: UUID, session: AsyncSession) -> List[Dream]:
        return await self._repo.list_dreams_by_user(user_id, session)

    async def create_dream(self, user_id: UUID, payload, session: AsyncSession) -> Dream:
        title = (payload.title or "").strip()
        if not title:
            raise ValidationError("title is required")
        visibility = _check_visibility(payload.visibility)
        # stored as given; media is normalized lazily on first AI use
        image_url = _check_media_url(payload.image_url)

        for attempt in range(_SLUG_ATTEMPTS):
            dream = Dream(
                slug=make_slug(title),
                title=title,
                description=payload.description or None,
                dream_date=payload.dream_date or date.today(),
                visibility=visibility,
                image_url=image_url,
            )
            created = await self._repo.create_dream(user_id, dream, session)
            if created is not None:
                logger.info(f"Created dream {created.id} ({created.slug}) for user {user_id}")
                return created
            logger.warning(f"Slug {dream.slug} collided (attempt {attempt + 1}), retrying")
        raise UpstreamFailure("Could not allocate a unique link for this dream")

    async def get_dream(self, user_id: UUID, did: UUID, session: AsyncSession) -> Dream:
        dream = await self._repo.get_dream(user_id, did, session)
        if dream is None:
            raise DreamNotFoundError()
        return dream

    async def update_dream(
        self, user_id: UUID, did: UUID, fields: Dict[str, Any], session: AsyncSession
    ) -> Dream:
        if "title" in fields:
            fields["title"] = (fields["title"] or "").strip()
            if not fields["title"]:
                raise ValidationError("title cannot be empty")
        if "dream_date" in fields and fields["dream_date"] is None:
            raise ValidationError("dream_date cannot be empty")
        if "visibility" in fields:
            fields["visibility"] = _check_visibility(fields["visibility"])
        if "image_url" in fields:
            # new media invalidates the cached still frame
            fields["image_url"] = _check_media_url(fields["image_url"])
            fields["thumbnail_url"] = None
        dream = await self._repo.update_dream(user_id, did, fields, session)
        if dream is None:
            raise DreamNotFoundError()
        return dream

    async def delete_dream(self, user_id: UUID, did: UUID, session: AsyncSession) -> None:
        dream = await self._repo.delete_dream(user_id, did, session)
        if dream is None:
            raise DreamNotFoundError()
        logger.info(f"Deleted dream {did} for user {user_id}")

    # ───────────────────────────── public pages ──────────────────────────── #

    async def list_public_dreams(
        self, username: str, session: AsyncSession
    ) -> Tuple[Profile, List[Dream]]:
        profile = await self._profiles.get_by_username(username, session)
        if profile is None or not profile.is_public_profile:
            raise NotFoundError("Profile not found")
        return profile, await self._repo.list_public_by_user(profile.id, session)

    async def get_shared_dream(
        self, slug: str, viewer_id: Optional[UUID], session: AsyncSession
    ) -> SharedDream:
        """Public and unlisted dreams are readable by anyone; private ones by the owner only."""
        dream = await self._repo.get_by_slug(slug, session)
        if dream is None:
            raise DreamNotFoundError()
        if dream.visibility == DreamVisibility.PRIVATE.value and dream.user_id != viewer_id:
            raise DreamNotFoundError()
        interpretation = await self._repo.get_interpretation(dream.id, session)
        author = await self._profiles.get_by_id(dream.user_id, session)
        return SharedDream(dream=dream, interpretation=interpretation, author=author)

    # ──────────────────────────────── media ──────────────────────────────── #

    async def import_image(self, user_id: UUID, image_url: Optional[str]) -> str:
        """Copy an external image URL into the caller's storage namespace."""
        image_url = (image_url or "").strip()
        if not image_url:
            raise ValidationError("imageUrl is required")
        try:
            return await self._normalizer.rehost_image(user_id, image_url)
        except MediaDegraded as e:
            logger.warning(f"Image import failed for user {user_id}: {e}")
            raise ValidationError(f"Could not import image: {e}")

    async def upload_image(
        self, user_id: UUID, data: bytes, filename: Optional[str], content_type: Optional[str]
    ) -> str:
        """Store an uploaded image file under ``<user>/<uuid>.<ext>`` and return its URL."""
        content_type = (content_type or "").lower()
        if not content_type.startswith("image/"):
            raise ValidationError("Only image uploads are supported")
        if not data:
            raise ValidationError("Uploaded file is empty")
        if len(data) > UPLOAD_LIMIT_BYTES:
            raise ValidationError(f"Image is larger than {UPLOAD_LIMIT_BYTES // (1024 * 1024)} MB")

        name = filename or ""
        ext = name.rsplit(".", 1)[-1].lower() if "." in name else ""
        if ext not in _UPLOAD_EXTENSIONS:
            ext = extension_for(content_type)
        key = self._storage.new_key(user_id, ext)
        try:
            url = await self._storage.upload_bytes(key, data, content_type)
        except Exception as e:
            logger.error(f"Image upload failed for user {user_id}: {e}")
            raise UpstreamFailure(f"Could not store image: {e}") from e
        logger.info(f"Stored uploaded image for user {user_id}: {url}")
        return url
