"""Assembles interpretation context from the dream store and the media pipeline."""

import logging
from datetime import date
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from dream_atlas.domain.dream.entities.dream import Dream
from dream_atlas.domain.dream.repo import DreamRepository
from dream_atlas.domain.errors import (
    DreamNotFoundError,
    EmptyWindowError,
    ForbiddenError,
    ValidationError,
)
from dream_atlas.services.media.normalizer import MediaNormalizer
from .context_window import AtlasContextWindow, DreamEntry, ImagePart

logger = logging.getLogger(__name__)


def _entry(dream: Dream) -> DreamEntry:
    return DreamEntry(
        dream_id=str(dream.id),
        dream_date=dream.dream_date,
        title=dream.title,
        description=dream.description,
    )


class AtlasContextBuilder:
    """Owner-only context: public visibility never grants AI access."""

    def __init__(self, dream_repo: DreamRepository, normalizer: MediaNormalizer):
        self._repo = dream_repo
        self._normalizer = normalizer

    async def build_for_dream(
        self,
        user_id: UUID,
        dream_id: UUID,
        session: AsyncSession
    ) -> AtlasContextWindow:
        """Context for one dream the caller owns."""
        dream = await self._repo.get_dream(None, dream_id, session)
        if dream is None:
            raise DreamNotFoundError()
        if dream.user_id != user_id:
            raise ForbiddenError("Forbidden")

        images = []
        url = await self._normalizer.normalize(dream, session)
        if url:
            images.append(ImagePart(url=url, dream_date=dream.dream_date, title=dream.title))

        logger.debug(f"Built single-dream context for {dream_id} with {len(images)} image(s)")
        return AtlasContextWindow(
            user_id=str(user_id),
            scope="dream",
            entries=[_entry(dream)],
            images=images,
            dream_id=str(dream.id),
            period_start=dream.dream_date,
            period_end=dream.dream_date,
        )

    async def build_for_window(
        self,
        user_id: UUID,
        period_start: date,
        period_end: date,
        session: AsyncSession,
        allow_empty: bool = False,
    ) -> AtlasContextWindow:
        """Context over the caller's own dreams in [period_start, period_end]."""
        if period_start > period_end:
            raise ValidationError("`from` must not be after `to`")

        dreams = await self._repo.list_dreams_in_window(user_id, period_start, period_end, session)
        if not dreams and not allow_empty:
            raise EmptyWindowError()

        # records first, then media, then the prompt
        normalized = await self._normalizer.normalize_many(dreams, session)
        images = [
            ImagePart(url=normalized[d.id], dream_date=d.dream_date, title=d.title)
            for d in dreams
            if normalized.get(d.id)
        ]

        logger.info(
            f"Built window context {period_start}..{period_end} for user {user_id}: "
            f"{len(dreams)} dreams, {len(images)} images"
        )
        return AtlasContextWindow(
            user_id=str(user_id),
            scope="window",
            entries=[_entry(d) for d in dreams],
            images=images,
            period_start=period_start,
            period_end=period_end,
            metadata={"dream_count": len(dreams)},
        )
