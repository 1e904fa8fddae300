"""SQLAlchemy implementation of ProfileRepository."""
from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dream_atlas.domain.user.entities import Profile
from dream_atlas.domain.user.repo import ProfileRepository

_EDITABLE = {"username", "display_name", "email", "bio", "is_public_profile"}


class SqlProfileRepository(ProfileRepository):

    async def get_by_id(self, uid: UUID, session: AsyncSession) -> Optional[Profile]:
        result = await session.execute(select(Profile).where(Profile.id == uid))
        return result.scalars().first()

    async def get_by_username(self, username: str, session: AsyncSession) -> Optional[Profile]:
        result = await session.execute(select(Profile).where(Profile.username == username))
        return result.scalars().first()

    async def upsert(self, uid: UUID, fields: Dict[str, Any], session: AsyncSession) -> Profile:
        values = {k: v for k, v in fields.items() if k in _EDITABLE}
        profile = await self.get_by_id(uid, session)
        if profile is None:
            profile = Profile(id=uid, **values)
            session.add(profile)
        else:
            for key, value in values.items():
                setattr(profile, key, value)
        try:
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise
        await session.refresh(profile)
        return profile
