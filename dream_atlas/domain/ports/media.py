from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class FetchedMedia:
    data: bytes
    content_type: str


class MediaFetcher(ABC):
    """Reads remote media bytes."""

    @abstractmethod
    async def fetch_head(self, url: str, num_bytes: int) -> bytes:
        """Return (at most) the first ``num_bytes`` of the resource."""

    @abstractmethod
    async def fetch(self, url: str) -> FetchedMedia:
        """Download the whole resource using browser-like request headers."""


class FrameExtractor(ABC):

    @abstractmethod
    async def extract_first_frame(self, video_url: str) -> bytes:
        """Return one representative JPEG frame of the video."""
