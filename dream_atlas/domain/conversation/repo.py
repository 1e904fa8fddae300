"""Repository interface for chat sessions and their messages."""
from __future__ import annotations
from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from dream_atlas.domain.conversation.entities.conversation import ChatMessage, ChatSession


class ConversationRepository(ABC):

    @abstractmethod
    async def create_session(
        self, user_id: UUID, period_start: date, period_end: date, session: AsyncSession
    ) -> ChatSession: ...

    @abstractmethod
    async def get_session(
        self, user_id: UUID, session_id: UUID, session: AsyncSession
    ) -> Optional[ChatSession]:
        """Owner-scoped lookup; another user's session resolves to None."""

    @abstractmethod
    async def latest_session(
        self, user_id: UUID, period_start: date, period_end: date, session: AsyncSession
    ) -> Optional[ChatSession]:
        """Most recently created session for the period (created_at desc, id desc)."""

    @abstractmethod
    async def list_messages(self, session_id: UUID, session: AsyncSession) -> List[ChatMessage]:
        """Messages in creation order."""

    @abstractmethod
    async def append_messages(
        self, session_id: UUID, turns: Sequence[Tuple[str, str]], session: AsyncSession
    ) -> List[ChatMessage]:
        """Insert (role, content) turns in the given order."""
