# dream_atlas/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from dream_atlas.api.ai.routes import router as ai_router
from dream_atlas.api.dream.routes import images_router, router as dream_router
from dream_atlas.api.profile.routes import router as profile_router
from dream_atlas.config import settings
from dream_atlas.domain.errors import AtlasError
from dream_atlas.infrastructure.db.bootstrap import dispose_engine, init_engine

logging.basicConfig(
    level=settings().log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await init_engine(settings())
    logger.info("Dream Atlas API started")
    yield
    await dispose_engine()


app = FastAPI(title="Dream Atlas", lifespan=lifespan)

app.include_router(dream_router)
app.include_router(images_router)
app.include_router(ai_router)
app.include_router(profile_router)


@app.exception_handler(AtlasError)
async def atlas_error_handler(request: Request, exc: AtlasError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(SQLAlchemyError)
async def record_store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"{request.method} {request.url.path}: record store failure: {exc}")
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"error": str(exc)})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ())[1:]) or "request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": f"{field}: {first.get('msg', 'invalid input')}"},
    )


@app.get("/health")
async def health():
    return {"status": "ok"}
