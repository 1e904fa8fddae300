"""Image / video detection that does not trust file extensions alone.

Extensions are only a fast path for videos. Everything else is decided by the
first bytes of the resource, matched against container signatures:

* ISO-BMFF (MP4, MOV, M4V): ``....ftyp`` + a known major brand
* EBML (WebM, MKV):         ``1A 45 DF A3``
* RIFF AVI:                 ``RIFF....AVI ``
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional
from urllib.parse import urlparse

from dream_atlas.domain.ports.media import MediaFetcher

logger = logging.getLogger(__name__)

HEAD_BYTES = 13

REMOTE_SCHEMES = ("http", "https")

VIDEO_EXTENSIONS = (".mp4", ".webm", ".avi", ".mov")
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".gif")

_EBML_MAGIC = b"\x1a\x45\xdf\xa3"
_FTYP_BRANDS = (b"isom", b"iso2", b"mp41", b"mp42", b"avc1", b"M4V ", b"qt  ")


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    UNKNOWN = "unknown"


def is_remote_url(media_ref: str) -> bool:
    """Only http(s) references with a host are ever fetched or decoded."""
    parsed = urlparse(media_ref)
    return parsed.scheme.lower() in REMOTE_SCHEMES and bool(parsed.netloc)


def url_extension(media_ref: str) -> str:
    """Lower-cased extension of the URL path, query string ignored."""
    path = urlparse(media_ref).path.lower()
    dot = path.rfind(".")
    if dot == -1 or "/" in path[dot:]:
        return ""
    return path[dot:]


def has_video_extension(media_ref: str) -> bool:
    return url_extension(media_ref) in VIDEO_EXTENSIONS


def has_image_extension(media_ref: str) -> bool:
    return url_extension(media_ref) in IMAGE_EXTENSIONS


def sniff_signature(head: bytes) -> MediaKind:
    """Classify from the leading bytes of a file."""
    if not head:
        return MediaKind.UNKNOWN
    if len(head) >= 12 and head[4:8] == b"ftyp" and head[8:12] in _FTYP_BRANDS:
        return MediaKind.VIDEO
    if head[:4] == _EBML_MAGIC:
        return MediaKind.VIDEO
    if len(head) >= 12 and head[:4] == b"RIFF" and head[8:12] == b"AVI ":
        return MediaKind.VIDEO
    return MediaKind.IMAGE


class MediaClassifier:
    """No side effects: at most one ranged GET per call."""

    def __init__(self, fetcher: MediaFetcher) -> None:
        self._fetcher = fetcher

    async def classify(self, media_ref: Optional[str]) -> MediaKind:
        if not media_ref:
            return MediaKind.UNKNOWN
        if not is_remote_url(media_ref):
            logger.warning(f"Refusing non-http media reference {media_ref[:100]}")
            return MediaKind.UNKNOWN
        if has_video_extension(media_ref):
            return MediaKind.VIDEO

        try:
            head = await self._fetcher.fetch_head(media_ref, HEAD_BYTES)
        except Exception as e:
            logger.warning(f"Could not read head of media {media_ref[:100]}: {e}")
            return MediaKind.UNKNOWN

        kind = sniff_signature(head)
        logger.debug(f"Sniffed {media_ref[:100]} as {kind.value}")
        return kind
