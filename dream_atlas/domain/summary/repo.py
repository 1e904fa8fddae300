"""Repository interface for period-aggregate summaries."""
from __future__ import annotations
from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from dream_atlas.domain.summary.entities import AggregateSummary


class SummaryRepository(ABC):
    """Abstract repository for aggregate summary operations."""

    @abstractmethod
    async def create_summary(
        self,
        user_id: UUID,
        period_start: date,
        period_end: date,
        summary_text: str,
        session: AsyncSession
    ) -> AggregateSummary:
        """Append a new summary row; older rows are kept."""
        pass

    @abstractmethod
    async def latest_summary(
        self,
        user_id: UUID,
        period_start: date,
        period_end: date,
        session: AsyncSession
    ) -> Optional[AggregateSummary]:
        """Most recent row for the exact period (created_at desc, id desc)."""
        pass
