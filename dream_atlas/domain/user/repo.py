"""Port interface for profiles."""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from .entities import Profile

class ProfileRepository(ABC):
    """Hexagonal port: lookups plus the owner's own create-or-update."""

    @abstractmethod
    async def get_by_id(self, uid: UUID, session: AsyncSession) -> Optional[Profile]: ...

    @abstractmethod
    async def get_by_username(self, username: str, session: AsyncSession) -> Optional[Profile]: ...

    @abstractmethod
    async def upsert(self, uid: UUID, fields: Dict[str, Any], session: AsyncSession) -> Profile:
        """Insert the profile row for ``uid`` or update the given columns of it."""
