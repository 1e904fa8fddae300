"""Port interface for dream persistence."""
from __future__ import annotations
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from dream_atlas.domain.dream.entities.dream import Dream
from dream_atlas.domain.dream.entities.interpretation import DreamInterpretation


class DreamRepository(ABC):
    """Hexagonal port: persistence operations for the Dream aggregate."""

    # ─────────────────────────────── dreams ──────────────────────────────── #

    @abstractmethod
    async def create_dream(self, user_id: UUID, dream: Dream, session: AsyncSession) -> Dream: ...

    @abstractmethod
    async def get_dream(self, user_id: Optional[UUID], did: UUID, session: AsyncSession) -> Optional[Dream]:
        """Owner-scoped fetch; ``user_id=None`` skips the owner filter."""

    @abstractmethod
    async def get_by_slug(self, slug: str, session: AsyncSession) -> Optional[Dream]: ...

    @abstractmethod
    async def list_dreams_by_user(self, user_id: UUID, session: AsyncSession) -> List[Dream]:
        """All of the owner's dreams, newest dream_date first."""

    @abstractmethod
    async def list_public_by_user(self, user_id: UUID, session: AsyncSession) -> List[Dream]: ...

    @abstractmethod
    async def list_dreams_in_window(
        self, user_id: UUID, start: date, end: date, session: AsyncSession
    ) -> List[Dream]:
        """Owner's dreams with start <= dream_date <= end, oldest first."""

    @abstractmethod
    async def update_dream(
        self, user_id: UUID, did: UUID, fields: Dict[str, Any], session: AsyncSession
    ) -> Optional[Dream]: ...

    @abstractmethod
    async def delete_dream(self, user_id: UUID, did: UUID, session: AsyncSession) -> Optional[Dream]: ...

    # ───────────────────────── media write-backs ─────────────────────────── #

    @abstractmethod
    async def set_image_url(self, did: UUID, url: str, session: AsyncSession) -> None:
        """Point the dream at its re-hosted copy. Scoped to ``did`` only; an
        already-loaded instance of that dream reflects the new value."""

    @abstractmethod
    async def set_thumbnail_url(self, did: UUID, url: str, session: AsyncSession) -> None: ...

    # ─────────────────────────── interpretations ─────────────────────────── #

    @abstractmethod
    async def get_interpretation(self, did: UUID, session: AsyncSession) -> Optional[DreamInterpretation]: ...

    @abstractmethod
    async def replace_interpretation(
        self, did: UUID, summary_text: str, session: AsyncSession
    ) -> DreamInterpretation:
        """Delete any interpretation rows of the dream, then insert one."""
