"""Profile service: the caller's own public identity (username, bio, visibility)."""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dream_atlas.domain.errors import NotFoundError, ValidationError
from dream_atlas.domain.user.entities import Profile
from dream_atlas.domain.user.repo import ProfileRepository

logger = logging.getLogger(__name__)

# usernames appear in /dreams/public/{username}
_USERNAME = re.compile(r"^[A-Za-z0-9_.-]{1,64}$")


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None


class ProfileService:
    def __init__(self, profile_repo: ProfileRepository) -> None:
        self._repo = profile_repo

    async def get_profile(self, user_id: UUID, session: AsyncSession) -> Profile:
        profile = await self._repo.get_by_id(user_id, session)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    async def save_profile(
        self,
        user_id: UUID,
        fields: Dict[str, Any],
        session: AsyncSession,
        email: Optional[str] = None,
    ) -> Profile:
        """Create the caller's profile on first save, update it afterwards.

        Only the keys present in ``fields`` change. A username is required
        when the profile does not exist yet and must not belong to anyone else.
        """
        current = await self._repo.get_by_id(user_id, session)
        values: Dict[str, Any] = {}

        if "username" in fields:
            username = (fields["username"] or "").strip()
            if not _USERNAME.match(username):
                raise ValidationError("username must be 1-64 letters, digits, '.', '_' or '-'")
            if current is None or username != current.username:
                owner = await self._repo.get_by_username(username, session)
                if owner is not None and owner.id != user_id:
                    raise ValidationError("Username is already taken.")
            values["username"] = username
        elif current is None:
            raise ValidationError("username is required")

        for key in ("display_name", "bio"):
            if key in fields:
                values[key] = _blank_to_none(fields[key])
        if "is_public_profile" in fields:
            values["is_public_profile"] = bool(fields["is_public_profile"])
        if current is None and email:
            values["email"] = email

        try:
            profile = await self._repo.upsert(user_id, values, session)
        except IntegrityError:
            # lost a race for the same username
            raise ValidationError("Username is already taken.")
        logger.info(f"{'Created' if current is None else 'Updated'} profile for user {user_id}")
        return profile
