# dream_atlas/dependencies.py
"""
Centralised FastAPI dependency providers.

Lifetimes
---------
* module-level singletons → created once at import time
* request-scoped objects  → yielded by functions that FastAPI wraps
"""
from __future__ import annotations

from typing import AsyncGenerator, Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from dream_atlas.config import settings
from dream_atlas.context.atlas import AtlasContextBuilder
from dream_atlas.domain.errors import UnauthorizedError
from dream_atlas.infrastructure.db.bootstrap import get_session as get_db_session
from dream_atlas.infrastructure.implementations.conversation.rds_conversation_repository import RDSConversationRepository
from dream_atlas.infrastructure.implementations.dream.rds_dream_repository import RDSDreamRepository
from dream_atlas.infrastructure.implementations.object_storage.s3_storage_repository import S3StorageRepository
from dream_atlas.infrastructure.implementations.summary.rds_summary_repository import RDSSummaryRepository
from dream_atlas.infrastructure.implementations.user.profile_repository import SqlProfileRepository
from dream_atlas.infrastructure.llm.openai_llm import OpenAILLM
from dream_atlas.infrastructure.media.ffmpeg_frame_extractor import FFmpegFrameExtractor
from dream_atlas.infrastructure.media.http_fetcher import HttpMediaFetcher
from dream_atlas.services.conversation.sessions import SessionContinuityManager
from dream_atlas.services.dream.service import DreamService
from dream_atlas.services.export.journal import JournalExportService
from dream_atlas.services.interpretation.requester import InterpretationRequester
from dream_atlas.services.interpretation.service import InterpretationService
from dream_atlas.services.media.classifier import MediaClassifier
from dream_atlas.services.media.normalizer import MediaNormalizer
from dream_atlas.services.profile.service import ProfileService

# ────────────────────────── singletons ─────────────────────────── #

_dream_repo = RDSDreamRepository()
_summary_repo = RDSSummaryRepository()
_conversation_repo = RDSConversationRepository()
_profile_repo = SqlProfileRepository()

_storage_service = S3StorageRepository()
_fetcher = HttpMediaFetcher(timeout_s=settings().media_fetch_timeout_s)
_frame_extractor = FFmpegFrameExtractor(
    binary=settings().ffmpeg_binary,
    timeout_s=settings().ffmpeg_timeout_s,
)

_llm = OpenAILLM(
    api_key=settings().openai_api_key,
    model=settings().interpretation_model,
    base_url=settings().openai_base_url,
    temperature=settings().interpretation_temperature,
)

_classifier = MediaClassifier(_fetcher)
_normalizer = MediaNormalizer(_dream_repo, _storage_service, _classifier, _fetcher, _frame_extractor)
_context_builder = AtlasContextBuilder(_dream_repo, _normalizer)
_requester = InterpretationRequester(_llm)
_sessions = SessionContinuityManager(_conversation_repo)

_dream_service = DreamService(_dream_repo, _profile_repo, _normalizer, _storage_service)
_profile_service = ProfileService(_profile_repo)
_interpretation_service = InterpretationService(
    _dream_repo, _summary_repo, _context_builder, _requester, _sessions
)
_export_service = JournalExportService(_dream_repo, _profile_repo, _fetcher)

# ─────────────────────── DI provider helpers ───────────────────── #

def get_dream_service() -> DreamService:
    return _dream_service


def get_interpretation_service() -> InterpretationService:
    return _interpretation_service


def get_export_service() -> JournalExportService:
    return _export_service


def get_profile_service() -> ProfileService:
    return _profile_service

# ───────────────────────── auth helpers ───────────────────────── #

_security = HTTPBearer(auto_error=False)


def _decode(token: str) -> dict:
    try:
        return jwt.decode(token, settings().jwt_secret, algorithms=["HS256"])
    except JWTError:
        raise UnauthorizedError("Invalid or expired token")


def _user_id_from(payload: dict) -> UUID:
    # `uid` is issued by our own identity provider; plain `sub` is accepted too
    raw = payload.get("uid") or payload.get("sub")
    try:
        return UUID(str(raw))
    except ValueError:
        raise UnauthorizedError("Unauthorized")


async def get_current_user(
    token: Optional[HTTPAuthorizationCredentials] = Depends(_security),
) -> dict:
    """Decode the bearer JWT and return its payload (uid/sub, email, exp, …)."""
    if token is None:
        raise UnauthorizedError("Unauthorized")
    return _decode(token.credentials)


async def get_current_user_id(payload: dict = Depends(get_current_user)) -> UUID:
    """Caller's user id; 401 when the token is missing or invalid."""
    return _user_id_from(payload)


async def get_optional_user_id(
    token: Optional[HTTPAuthorizationCredentials] = Depends(_security),
) -> Optional[UUID]:
    """Caller's user id on public pages, or None for anonymous visitors."""
    if token is None:
        return None
    return _user_id_from(_decode(token.credentials))


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped database session (async).

    Delegates to *dream_atlas.infrastructure.db.bootstrap.get_session* but
    preserves the required *async generator* signature so FastAPI can manage
    the lifecycle automatically (open → yield → close).
    """
    async for session in get_db_session():
        yield session
