# dream_atlas/api/dream/routes.py
from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from dream_atlas.dependencies import (
    get_current_user,
    get_current_user_id,
    get_dream_service,
    get_export_service,
    get_interpretation_service,
    get_optional_user_id,
    get_session,
)
from dream_atlas.services.dream.service import DreamService
from dream_atlas.services.export.journal import JournalExportService
from dream_atlas.services.interpretation.service import InterpretationService
from .schemas import (
    DreamCreate,
    DreamRead,
    DreamUpdate,
    ImageImportRequest,
    ImageImportResponse,
    InterpretationRead,
    PublicProfileRead,
    SharedDreamRead,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/dreams",
    tags=["dreams"],
)

images_router = APIRouter(
    prefix="/images",
    tags=["images"],
)

# ──────────────────────────── export / public ──────────────────────────── #

@router.get("/export-pdf")
async def export_pdf(
    claims: dict = Depends(get_current_user),
    user_id: UUID = Depends(get_current_user_id),
    svc: JournalExportService = Depends(get_export_service),
    db: AsyncSession = Depends(get_session),
):
    export = await svc.export(user_id, db, email=claims.get("email"))
    return Response(
        content=export.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@router.get("/public/{username}", response_model=PublicProfileRead)
async def public_profile(
    username: str,
    svc: DreamService = Depends(get_dream_service),
    db: AsyncSession = Depends(get_session),
):
    profile, dreams = await svc.list_public_dreams(username, db)
    return PublicProfileRead(
        username=profile.username,
        display_name=profile.display_name,
        bio=profile.bio,
        dreams=[DreamRead.model_validate(d) for d in dreams],
    )


@router.get("/d/{slug}", response_model=SharedDreamRead)
async def shared_dream(
    slug: str,
    viewer_id: Optional[UUID] = Depends(get_optional_user_id),
    svc: DreamService = Depends(get_dream_service),
    db: AsyncSession = Depends(get_session),
):
    shared = await svc.get_shared_dream(slug, viewer_id, db)
    return SharedDreamRead.model_validate(shared, from_attributes=True)

# ─────────────────────────────── dreams ─────────────────────────────── #

@router.get("/", response_model=List[DreamRead])
async def list_dreams(
    svc: DreamService = Depends(get_dream_service),
    db: AsyncSession = Depends(get_session),
    user_id: UUID = Depends(get_current_user_id),
):
    dreams = await svc.list_dreams(user_id, db)
    return [DreamRead.model_validate(d) for d in dreams]


@router.post("/", response_model=DreamRead, status_code=status.HTTP_201_CREATED)
async def create_dream(
    payload: DreamCreate,
    svc: DreamService = Depends(get_dream_service),
    db: AsyncSession = Depends(get_session),
    user_id: UUID = Depends(get_current_user_id),
):
    dream = await svc.create_dream(user_id, payload, db)
    return DreamRead.model_validate(dream)


@router.get("/{did}", response_model=DreamRead)
async def read_dream(
    did: UUID,
    user_id: UUID = Depends(get_current_user_id),
    svc: DreamService = Depends(get_dream_service),
    db: AsyncSession = Depends(get_session),
):
    return DreamRead.model_validate(await svc.get_dream(user_id, did, db))


@router.get("/{did}/interpretation", response_model=Optional[InterpretationRead])
async def read_interpretation(
    did: UUID,
    user_id: UUID = Depends(get_current_user_id),
    svc: InterpretationService = Depends(get_interpretation_service),
    db: AsyncSession = Depends(get_session),
):
    """Stored interpretation of the caller's dream; null until one is generated."""
    current = await svc.get_dream_interpretation(user_id, did, db)
    return InterpretationRead.model_validate(current) if current else None


@router.patch("/{did}", response_model=DreamRead)
async def update_dream(
    did: UUID,
    patch: DreamUpdate,
    user_id: UUID = Depends(get_current_user_id),
    svc: DreamService = Depends(get_dream_service),
    db: AsyncSession = Depends(get_session),
):
    fields = patch.model_dump(exclude_unset=True)
    logger.debug(f"PATCH dream {did}: {sorted(fields)}")
    dream = await svc.update_dream(user_id, did, fields, db)
    return DreamRead.model_validate(dream)


@router.delete("/{did}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_dream(
    did: UUID,
    user_id: UUID = Depends(get_current_user_id),
    svc: DreamService = Depends(get_dream_service),
    db: AsyncSession = Depends(get_session),
):
    await svc.delete_dream(user_id, did, db)

# ─────────────────────────────── images ─────────────────────────────── #

@images_router.post("/import", response_model=ImageImportResponse, response_model_by_alias=True)
async def import_image(
    payload: ImageImportRequest,
    user_id: UUID = Depends(get_current_user_id),
    svc: DreamService = Depends(get_dream_service),
):
    stored = await svc.import_image(user_id, payload.image_url)
    return ImageImportResponse(stored_url=stored)


@images_router.post("/upload", response_model=ImageImportResponse, response_model_by_alias=True)
async def upload_image(
    file: UploadFile = File(...),
    user_id: UUID = Depends(get_current_user_id),
    svc: DreamService = Depends(get_dream_service),
):
    data = await file.read()
    stored = await svc.upload_image(user_id, data, file.filename, file.content_type)
    return ImageImportResponse(stored_url=stored)
