# dream_atlas/infrastructure/implementations/dream/rds_dream_repository.py
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from dream_atlas.domain.dream.entities.dream import Dream, DreamVisibility
from dream_atlas.domain.dream.entities.interpretation import DreamInterpretation
from dream_atlas.domain.dream.repo import DreamRepository

logger = logging.getLogger(__name__)

# columns a caller may change through update_dream
_EDITABLE = {"title", "description", "dream_date", "visibility", "image_url", "thumbnail_url"}


class RDSDreamRepository(DreamRepository):
    """Async SQLAlchemy implementation; every write is scoped by the row id."""

    # ─────────────────────────────── dreams CRUD ────────────────────────────── #

    async def create_dream(self, user_id: UUID, dream: Dream, session: AsyncSession) -> Dream:
        """Insert dream; if the id already exists return the stored row (idempotent)."""
        try:
            dream.user_id = user_id
            session.add(dream)
            await session.commit()
            await session.refresh(dream)
            return dream
        except IntegrityError:
            await session.rollback()
            return await self.get_dream(user_id, dream.id, session)

    async def get_dream(self, user_id: Optional[UUID], did: UUID, session: AsyncSession) -> Optional[Dream]:
        query = select(Dream).where(Dream.id == did)
        if user_id is not None:
            query = query.where(Dream.user_id == user_id)
        result = await session.execute(query)
        return result.scalars().first()

    async def get_by_slug(self, slug: str, session: AsyncSession) -> Optional[Dream]:
        result = await session.execute(select(Dream).where(Dream.slug == slug))
        return result.scalars().first()

    async def list_dreams_by_user(self, user_id: UUID, session: AsyncSession) -> List[Dream]:
        result = await session.execute(
            select(Dream)
            .where(Dream.user_id == user_id)
            .order_by(Dream.dream_date.desc(), Dream.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_public_by_user(self, user_id: UUID, session: AsyncSession) -> List[Dream]:
        result = await session.execute(
            select(Dream)
            .where(Dream.user_id == user_id, Dream.visibility == DreamVisibility.PUBLIC.value)
            .order_by(Dream.dream_date.desc(), Dream.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_dreams_in_window(
        self, user_id: UUID, start: date, end: date, session: AsyncSession
    ) -> List[Dream]:
        result = await session.execute(
            select(Dream)
            .where(
                Dream.user_id == user_id,
                Dream.dream_date >= start,
                Dream.dream_date <= end,
            )
            .order_by(Dream.dream_date.asc(), Dream.created_at.asc())
        )
        dreams = list(result.scalars().all())
        logger.debug(f"Window {start}..{end} for user {user_id}: {len(dreams)} dreams")
        return dreams

    async def update_dream(
        self, user_id: UUID, did: UUID, fields: Dict[str, Any], session: AsyncSession
    ) -> Optional[Dream]:
        values = {k: v for k, v in fields.items() if k in _EDITABLE}
        if values:
            await session.execute(
                update(Dream)
                .where(Dream.id == did, Dream.user_id == user_id)
                .values(**values)
            )
            await session.commit()
        return await self.get_dream(user_id, did, session)

    async def delete_dream(self, user_id: UUID, did: UUID, session: AsyncSession) -> Optional[Dream]:
        dream = await self.get_dream(user_id, did, session)
        if not dream:
            return None
        await session.delete(dream)
        await session.commit()
        return dream

    # ───────────────────────── media write-backs ─────────────────────────── #

    async def set_image_url(self, did: UUID, url: str, session: AsyncSession) -> None:
        await self._write_media(did, {"image_url": url}, session)

    async def set_thumbnail_url(self, did: UUID, url: str, session: AsyncSession) -> None:
        await self._write_media(did, {"thumbnail_url": url}, session)

    async def _write_media(self, did: UUID, values: Dict[str, str], session: AsyncSession) -> None:
        # a failed write-back must leave the request session usable
        try:
            await session.execute(update(Dream).where(Dream.id == did).values(**values))
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            logger.warning(f"Media write-back for dream {did} rolled back")
            raise

    # ─────────────────────────── interpretations ─────────────────────────── #

    async def get_interpretation(self, did: UUID, session: AsyncSession) -> Optional[DreamInterpretation]:
        result = await session.execute(
            select(DreamInterpretation)
            .where(DreamInterpretation.dream_id == did)
            .order_by(DreamInterpretation.created_at.desc(), DreamInterpretation.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def replace_interpretation(
        self, did: UUID, summary_text: str, session: AsyncSession
    ) -> DreamInterpretation:
        await session.execute(delete(DreamInterpretation).where(DreamInterpretation.dream_id == did))
        row = DreamInterpretation(dream_id=did, summary_text=summary_text)
        session.add(row)
        await session.commit()
        await session.refresh(row)
        return row
