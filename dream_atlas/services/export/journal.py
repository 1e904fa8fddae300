"""Renders a user's dreams as a downloadable PDF journal (PyMuPDF).

The export is read-only: media is fetched for display but never normalized,
re-hosted, or written back.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence
from uuid import UUID

import fitz  # PyMuPDF
from sqlalchemy.ext.asyncio import AsyncSession

from dream_atlas.domain.dream.entities.dream import Dream
from dream_atlas.domain.dream.repo import DreamRepository
from dream_atlas.domain.errors import EmptyWindowError
from dream_atlas.domain.ports.media import MediaFetcher
from dream_atlas.domain.user.repo import ProfileRepository
from dream_atlas.services.media.classifier import has_video_extension

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = fitz.paper_size("a4")
MARGIN = 56
FONT = "helv"
FONT_BOLD = "hebo"
BODY_SIZE = 11
LINE_HEIGHT = 15
IMAGE_MAX_HEIGHT = 260


@dataclass
class JournalEntry:
    dream: Dream
    image: Optional[bytes] = None


@dataclass
class JournalExport:
    filename: str
    content: bytes


def total_days(dreams: Sequence[Dream]) -> int:
    """Inclusive span in days between the earliest and latest dream."""
    dates = [d.dream_date for d in dreams]
    return (max(dates) - min(dates)).days + 1


def wrap_text(text: str, width: float, fontname: str = FONT, fontsize: float = BODY_SIZE) -> List[str]:
    """Greedy word wrap using the font's real glyph widths."""
    lines: List[str] = []
    for paragraph in (text or "").splitlines() or [""]:
        current = ""
        for word in paragraph.split():
            candidate = f"{current} {word}" if current else word
            if fitz.get_text_length(candidate, fontname=fontname, fontsize=fontsize) <= width:
                current = candidate
            else:
                if current:
                    lines.append(current)
                current = word
        lines.append(current)
    return lines


class _PageCursor:
    """Writes lines top-down, starting a new page when the current one is full."""

    def __init__(self, doc: fitz.Document) -> None:
        self.doc = doc
        self.page = None
        self.y = 0.0

    def new_page(self) -> None:
        self.page = self.doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
        self.y = MARGIN

    def ensure(self, height: float) -> None:
        if self.page is None or self.y + height > PAGE_HEIGHT - MARGIN:
            self.new_page()

    def line(self, text: str, fontsize: float = BODY_SIZE, fontname: str = FONT, color=(0, 0, 0)) -> None:
        step = max(LINE_HEIGHT, fontsize * 1.35)
        self.ensure(step)
        self.y += step
        self.page.insert_text((MARGIN, self.y), text, fontsize=fontsize, fontname=fontname, color=color)

    def gap(self, height: float) -> None:
        self.y += height

    def image(self, data: bytes) -> bool:
        self.ensure(IMAGE_MAX_HEIGHT + LINE_HEIGHT)
        rect = fitz.Rect(MARGIN, self.y + 8, PAGE_WIDTH - MARGIN, self.y + 8 + IMAGE_MAX_HEIGHT)
        try:
            self.page.insert_image(rect, stream=data, keep_proportion=True)
        except Exception as e:
            logger.warning(f"Skipping undecodable journal image: {e}")
            return False
        self.y = rect.y1
        return True


def render_journal(user_name: str, entries: Sequence[JournalEntry], days: int) -> bytes:
    doc = fitz.open()
    text_width = PAGE_WIDTH - 2 * MARGIN

    # cover
    cover = _PageCursor(doc)
    cover.new_page()
    cover.gap(PAGE_HEIGHT / 3)
    cover.line("Dream Journal", fontsize=32, fontname=FONT_BOLD)
    cover.gap(12)
    cover.line(user_name, fontsize=16)
    cover.gap(8)
    noun = "dream" if len(entries) == 1 else "dreams"
    cover.line(f"{len(entries)} {noun} over {days} days", fontsize=12, color=(0.4, 0.4, 0.4))

    for entry in entries:
        dream = entry.dream
        cursor = _PageCursor(doc)
        cursor.new_page()
        cursor.line(dream.dream_date.strftime("%B %d, %Y"), fontsize=10, color=(0.4, 0.4, 0.4))
        for title_line in wrap_text(dream.title, text_width, FONT_BOLD, 18):
            cursor.line(title_line, fontsize=18, fontname=FONT_BOLD)
        if entry.image:
            cursor.image(entry.image)
        cursor.gap(10)
        for body_line in wrap_text(dream.description or "(no description)", text_width):
            cursor.line(body_line)

    content = doc.tobytes(garbage=3, deflate=True)
    doc.close()
    return content


class JournalExportService:
    def __init__(
        self,
        dream_repo: DreamRepository,
        profile_repo: ProfileRepository,
        fetcher: MediaFetcher,
    ) -> None:
        self._repo = dream_repo
        self._profiles = profile_repo
        self._fetcher = fetcher

    async def export(self, user_id: UUID, session: AsyncSession, email: Optional[str] = None) -> JournalExport:
        dreams = await self._repo.list_dreams_by_user(user_id, session)
        if not dreams:
            raise EmptyWindowError("No dreams found to export")

        profile = await self._profiles.get_by_id(user_id, session)
        if profile is not None:
            user_name = profile.journal_name()
        elif email:
            user_name = email.split("@")[0]
        else:
            user_name = "User"

        entries = [JournalEntry(dream, await self._image_for(dream)) for dream in dreams]
        days = total_days(dreams)

        loop = asyncio.get_running_loop()
        content = await loop.run_in_executor(None, render_journal, user_name, entries, days)
        logger.info(f"Exported journal for user {user_id}: {len(dreams)} dreams, {len(content)} bytes")
        return JournalExport(filename=f"dream-journal-{date.today().isoformat()}.pdf", content=content)

    async def _image_for(self, dream: Dream) -> Optional[bytes]:
        url = dream.thumbnail_url or dream.image_url
        if not url:
            return None
        if not dream.thumbnail_url and has_video_extension(url):
            return None
        try:
            fetched = await self._fetcher.fetch(url)
        except Exception as e:
            logger.warning(f"Journal export: could not fetch image for dream {dream.id}: {e}")
            return None
        return fetched.data or None
