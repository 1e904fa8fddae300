"""SQLAlchemy implementation of ConversationRepository."""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dream_atlas.domain.conversation.entities.conversation import ChatMessage, ChatSession
from dream_atlas.domain.conversation.repo import ConversationRepository


class RDSConversationRepository(ConversationRepository):

    async def create_session(
        self, user_id: UUID, period_start: date, period_end: date, session: AsyncSession
    ) -> ChatSession:
        chat = ChatSession(user_id=user_id, period_start=period_start, period_end=period_end)
        session.add(chat)
        await session.commit()
        await session.refresh(chat)
        return chat

    async def get_session(
        self, user_id: UUID, session_id: UUID, session: AsyncSession
    ) -> Optional[ChatSession]:
        result = await session.execute(
            select(ChatSession).where(ChatSession.id == session_id, ChatSession.user_id == user_id)
        )
        return result.scalars().first()

    async def latest_session(
        self, user_id: UUID, period_start: date, period_end: date, session: AsyncSession
    ) -> Optional[ChatSession]:
        result = await session.execute(
            select(ChatSession)
            .where(
                ChatSession.user_id == user_id,
                ChatSession.period_start == period_start,
                ChatSession.period_end == period_end,
            )
            .order_by(ChatSession.created_at.desc(), ChatSession.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def list_messages(self, session_id: UUID, session: AsyncSession) -> List[ChatMessage]:
        result = await session.execute(
            select(ChatMessage)
            .where(ChatMessage.session_id == session_id)
            .order_by(ChatMessage.created_at.asc())
        )
        return list(result.scalars().all())

    async def append_messages(
        self, session_id: UUID, turns: Sequence[Tuple[str, str]], session: AsyncSession
    ) -> List[ChatMessage]:
        # rows of one call get strictly increasing created_at
        base = datetime.utcnow()
        rows = [
            ChatMessage(
                session_id=session_id,
                role=role,
                content=content,
                created_at=base + timedelta(microseconds=i),
            )
            for i, (role, content) in enumerate(turns)
        ]
        session.add_all(rows)
        await session.commit()
        return rows
