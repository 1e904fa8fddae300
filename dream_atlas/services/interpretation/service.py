"""Application layer for the AI features: dream summaries, period themes, chat.

Each use-case runs the same pipeline: read records → normalize media → build
the prompt → call the model → persist. Nothing is written unless the model
returned usable text.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from dream_atlas.context.atlas import AtlasContextBuilder, InterpretationTask
from dream_atlas.domain.conversation.entities.conversation import ChatMessage, ChatSession
from dream_atlas.domain.dream.entities.interpretation import DreamInterpretation
from dream_atlas.domain.dream.repo import DreamRepository
from dream_atlas.domain.errors import DreamNotFoundError, ForbiddenError, ValidationError
from dream_atlas.domain.summary.entities import AggregateSummary
from dream_atlas.domain.summary.repo import SummaryRepository
from dream_atlas.services.conversation.sessions import SessionContinuityManager
from .requester import InterpretationRequester
from .strategies import InterpretationRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatReply:
    session_id: UUID
    assistant_message: str


class InterpretationService:
    def __init__(
        self,
        dream_repo: DreamRepository,
        summary_repo: SummaryRepository,
        context_builder: AtlasContextBuilder,
        requester: InterpretationRequester,
        sessions: SessionContinuityManager,
    ) -> None:
        self._dreams = dream_repo
        self._summaries = summary_repo
        self._context = context_builder
        self._requester = requester
        self._sessions = sessions

    # ─────────────────────────── per-dream summary ─────────────────────────── #

    async def summarize_dream(self, user_id: UUID, dream_id: UUID, db: AsyncSession) -> DreamInterpretation:
        """Generate and store the dream's interpretation, replacing any previous one."""
        context = await self._context.build_for_dream(user_id, dream_id, db)
        text = await self._requester.request(
            InterpretationRequest(context=context, task=InterpretationTask.DREAM_SUMMARY)
        )
        row = await self._dreams.replace_interpretation(dream_id, text, db)
        logger.info(f"Stored interpretation for dream {dream_id} ({len(text)} chars)")
        return row

    async def get_dream_interpretation(
        self, user_id: UUID, dream_id: UUID, db: AsyncSession
    ) -> Optional[DreamInterpretation]:
        dream = await self._dreams.get_dream(None, dream_id, db)
        if dream is None:
            raise DreamNotFoundError()
        if dream.user_id != user_id:
            raise ForbiddenError("Forbidden")
        return await self._dreams.get_interpretation(dream_id, db)

    # ───────────────────────────── period themes ───────────────────────────── #

    async def summarize_period(
        self, user_id: UUID, period_start: date, period_end: date, db: AsyncSession
    ) -> AggregateSummary:
        """Append a new theme summary for the caller's dreams in the period."""
        context = await self._context.build_for_window(user_id, period_start, period_end, db)
        text = await self._requester.request(
            InterpretationRequest(context=context, task=InterpretationTask.PERIOD_SUMMARY)
        )
        row = await self._summaries.create_summary(user_id, period_start, period_end, text, db)
        logger.info(f"Stored aggregate summary {row.id} for user {user_id} ({period_start}..{period_end})")
        return row

    async def load_period_summary(
        self, user_id: UUID, period_start: date, period_end: date, db: AsyncSession
    ) -> Optional[AggregateSummary]:
        return await self._summaries.latest_summary(user_id, period_start, period_end, db)

    # ────────────────────────────────── chat ────────────────────────────────── #

    async def chat(
        self,
        user_id: UUID,
        message: Optional[str],
        db: AsyncSession,
        session_id: Optional[UUID] = None,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
    ) -> ChatReply:
        """One chat turn. Without ``session_id`` a new session is opened for the period."""
        message = (message or "").strip()
        if not message:
            raise ValidationError("message is required")

        handle = await self._sessions.resolve(user_id, session_id, period_start, period_end, db)
        # an empty window is still a valid conversation
        context = await self._context.build_for_window(
            user_id, handle.period_start, handle.period_end, db, allow_empty=True
        )
        history = await self._sessions.history(handle, db)

        reply = await self._requester.request(
            InterpretationRequest(
                context=context,
                task=InterpretationTask.CHAT_TURN,
                history=history,
                user_message=message,
            )
        )
        handle, _ = await self._sessions.record_turn(handle, message, reply, db)
        return ChatReply(session_id=handle.session_id, assistant_message=reply)

    async def load_chat(
        self, user_id: UUID, period_start: date, period_end: date, db: AsyncSession
    ) -> Tuple[Optional[ChatSession], List[ChatMessage]]:
        return await self._sessions.load_history(user_id, period_start, period_end, db)
