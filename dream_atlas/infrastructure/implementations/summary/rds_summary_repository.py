"""SQLAlchemy implementation of the aggregate summary repository."""
from __future__ import annotations
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dream_atlas.domain.summary.entities import AggregateSummary
from dream_atlas.domain.summary.repo import SummaryRepository


class RDSSummaryRepository(SummaryRepository):
    """PostgreSQL implementation of aggregate summary repository."""

    async def create_summary(
        self,
        user_id: UUID,
        period_start: date,
        period_end: date,
        summary_text: str,
        session: AsyncSession
    ) -> AggregateSummary:
        row = AggregateSummary(
            user_id=user_id,
            period_start=period_start,
            period_end=period_end,
            summary_text=summary_text,
        )
        session.add(row)
        await session.commit()
        await session.refresh(row)
        return row

    async def latest_summary(
        self,
        user_id: UUID,
        period_start: date,
        period_end: date,
        session: AsyncSession
    ) -> Optional[AggregateSummary]:
        result = await session.execute(
            select(AggregateSummary)
            .where(
                AggregateSummary.user_id == user_id,
                AggregateSummary.period_start == period_start,
                AggregateSummary.period_end == period_end,
            )
            .order_by(AggregateSummary.created_at.desc(), AggregateSummary.id.desc())
            .limit(1)
        )
        return result.scalars().first()
