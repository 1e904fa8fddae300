# dream_atlas/api/ai/routes.py

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dream_atlas.dependencies import (
    get_current_user_id,
    get_interpretation_service,
    get_session,
)
from dream_atlas.domain.errors import AtlasError, ValidationError
from dream_atlas.services.interpretation.service import InterpretationService
from .schemas import (
    AggregateResponse,
    ChatHistoryResponse,
    ChatMessageRead,
    ChatRequest,
    ChatResponse,
    PeriodRequest,
    SummaryRequest,
    SummaryResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/ai",
    tags=["ai"],
)


def _unexpected(action: str, user_id: UUID, e: Exception) -> HTTPException:
    logger.error(f"Error during {action} for user {user_id}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


@router.post("/summary", response_model=SummaryResponse, response_model_by_alias=True)
async def summarize_dream(
    payload: SummaryRequest,
    db: AsyncSession = Depends(get_session),
    svc: InterpretationService = Depends(get_interpretation_service),
    user_id: UUID = Depends(get_current_user_id),
):
    """Generate (or regenerate) the interpretation of one dream."""
    if payload.dream_id is None:
        raise ValidationError("dreamId is required")
    try:
        logger.info(f"[ai] summary: user={user_id} dream={payload.dream_id}")
        row = await svc.summarize_dream(user_id, payload.dream_id, db)
        return SummaryResponse(summary=row.summary_text, created_at=row.created_at)
    except (AtlasError, SQLAlchemyError):
        raise
    except Exception as e:
        raise _unexpected("generate summary", user_id, e)


@router.post("/aggregate", response_model=AggregateResponse, response_model_by_alias=True)
async def summarize_period(
    payload: PeriodRequest,
    db: AsyncSession = Depends(get_session),
    svc: InterpretationService = Depends(get_interpretation_service),
    user_id: UUID = Depends(get_current_user_id),
):
    """Themes across the caller's dreams between `from` and `to`."""
    start, end = payload.require_period()
    try:
        logger.info(f"[ai] aggregate: user={user_id} period={start}..{end}")
        row = await svc.summarize_period(user_id, start, end, db)
        return AggregateResponse(summary=row.summary_text, created_at=row.created_at)
    except (AtlasError, SQLAlchemyError):
        raise
    except Exception as e:
        raise _unexpected("generate aggregate summary", user_id, e)


@router.post("/aggregate/load", response_model=AggregateResponse, response_model_by_alias=True)
async def load_period_summary(
    payload: PeriodRequest,
    db: AsyncSession = Depends(get_session),
    svc: InterpretationService = Depends(get_interpretation_service),
    user_id: UUID = Depends(get_current_user_id),
):
    start, end = payload.require_period()
    row = await svc.load_period_summary(user_id, start, end, db)
    if row is None:
        return AggregateResponse()
    return AggregateResponse(summary=row.summary_text, created_at=row.created_at)


@router.post("/chat", response_model=ChatResponse, response_model_by_alias=True)
async def chat(
    payload: ChatRequest,
    db: AsyncSession = Depends(get_session),
    svc: InterpretationService = Depends(get_interpretation_service),
    user_id: UUID = Depends(get_current_user_id),
):
    """One chat turn; omit `sessionId` to start a new conversation for `from`..`to`."""
    try:
        reply = await svc.chat(
            user_id,
            payload.message,
            db,
            session_id=payload.session_id,
            period_start=payload.period_start,
            period_end=payload.period_end,
        )
        return ChatResponse(session_id=reply.session_id, assistant_message=reply.assistant_message)
    except (AtlasError, SQLAlchemyError):
        raise
    except Exception as e:
        raise _unexpected("answer chat message", user_id, e)


@router.post("/chat/load", response_model=ChatHistoryResponse, response_model_by_alias=True)
async def load_chat(
    payload: PeriodRequest,
    db: AsyncSession = Depends(get_session),
    svc: InterpretationService = Depends(get_interpretation_service),
    user_id: UUID = Depends(get_current_user_id),
):
    start, end = payload.require_period()
    chat_session, messages = await svc.load_chat(user_id, start, end, db)
    return ChatHistoryResponse(
        session_id=chat_session.id if chat_session else None,
        messages=[ChatMessageRead.model_validate(m) for m in messages],
    )
