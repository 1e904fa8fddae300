"""Profile API routes."""
from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dream_atlas.dependencies import (
    get_current_user,
    get_current_user_id,
    get_profile_service,
    get_session,
)
from dream_atlas.services.profile.service import ProfileService
from .schemas import ProfileRead, ProfileUpdate

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/profile",
    tags=["profile"],
)


@router.get("", response_model=ProfileRead)
async def read_profile(
    user_id: UUID = Depends(get_current_user_id),
    svc: ProfileService = Depends(get_profile_service),
    db: AsyncSession = Depends(get_session),
):
    return ProfileRead.model_validate(await svc.get_profile(user_id, db))


@router.put("", response_model=ProfileRead)
async def save_profile(
    payload: ProfileUpdate,
    claims: dict = Depends(get_current_user),
    user_id: UUID = Depends(get_current_user_id),
    svc: ProfileService = Depends(get_profile_service),
    db: AsyncSession = Depends(get_session),
):
    fields = payload.model_dump(exclude_unset=True)
    profile = await svc.save_profile(user_id, fields, db, email=claims.get("email"))
    return ProfileRead.model_validate(profile)
