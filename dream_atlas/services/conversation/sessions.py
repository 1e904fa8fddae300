"""Maps (owner, period) to a persisted chat and replays its history."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from dream_atlas.domain.conversation.entities.conversation import ChatMessage, ChatSession, MessageRole
from dream_atlas.domain.conversation.repo import ConversationRepository
from dream_atlas.domain.errors import SessionNotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionHandle:
    """Resolved chat window. ``session_id`` is None until the row exists."""
    user_id: UUID
    period_start: date
    period_end: date
    session_id: Optional[UUID] = None

    @property
    def pending(self) -> bool:
        return self.session_id is None


class SessionContinuityManager:

    def __init__(self, conversation_repo: ConversationRepository) -> None:
        self._repo = conversation_repo

    async def resolve(
        self,
        user_id: UUID,
        session_id: Optional[UUID],
        period_start: Optional[date],
        period_end: Optional[date],
        db: AsyncSession,
    ) -> SessionHandle:
        """Look up an existing session, or describe a new one without writing it.

        With an id, caller-supplied dates are ignored: the stored window wins.
        """
        if session_id is not None:
            chat = await self._repo.get_session(user_id, session_id, db)
            if chat is None:
                raise SessionNotFoundError()
            return SessionHandle(user_id, chat.period_start, chat.period_end, chat.id)

        if period_start is None or period_end is None:
            raise ValidationError("`from` and `to` (YYYY-MM-DD) are required for a new chat")
        if period_start > period_end:
            raise ValidationError("`from` must not be after `to`")
        return SessionHandle(user_id, period_start, period_end)

    async def get_or_create(
        self,
        user_id: UUID,
        session_id: Optional[UUID],
        period_start: Optional[date],
        period_end: Optional[date],
        db: AsyncSession,
    ) -> SessionHandle:
        handle = await self.resolve(user_id, session_id, period_start, period_end, db)
        return await self._ensure_persisted(handle, db)

    async def history(self, handle: SessionHandle, db: AsyncSession) -> List[Tuple[str, str]]:
        """Prior (role, content) turns, oldest first."""
        if handle.pending:
            return []
        messages = await self._repo.list_messages(handle.session_id, db)
        return [(m.role, m.content) for m in messages]

    async def record_turn(
        self, handle: SessionHandle, user_message: str, assistant_message: str, db: AsyncSession
    ) -> Tuple[SessionHandle, List[ChatMessage]]:
        """Append the (user, assistant) pair, creating the session row first if needed."""
        handle = await self._ensure_persisted(handle, db)
        rows = await self._repo.append_messages(
            handle.session_id,
            [(MessageRole.USER.value, user_message), (MessageRole.ASSISTANT.value, assistant_message)],
            db,
        )
        return handle, rows

    async def load_history(
        self, user_id: UUID, period_start: date, period_end: date, db: AsyncSession
    ) -> Tuple[Optional[ChatSession], List[ChatMessage]]:
        """Latest session for the period and its messages; read-only."""
        chat = await self._repo.latest_session(user_id, period_start, period_end, db)
        if chat is None:
            return None, []
        return chat, await self._repo.list_messages(chat.id, db)

    async def _ensure_persisted(self, handle: SessionHandle, db: AsyncSession) -> SessionHandle:
        if not handle.pending:
            return handle
        chat = await self._repo.create_session(handle.user_id, handle.period_start, handle.period_end, db)
        logger.info(f"Opened chat session {chat.id} for user {handle.user_id} ({handle.period_start}..{handle.period_end})")
        return replace(handle, session_id=chat.id)
