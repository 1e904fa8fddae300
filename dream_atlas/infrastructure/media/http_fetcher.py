"""httpx-based MediaFetcher."""
from __future__ import annotations

import logging
from typing import Dict, Optional

import httpx

from dream_atlas.domain.ports.media import FetchedMedia, MediaFetcher

logger = logging.getLogger(__name__)

# Image CDNs (Midjourney in particular) refuse obvious bot traffic.
BROWSER_HEADERS: Dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "image/webp,image/apng,image/*,*/*;q=0.8",
    "Referer": "https://www.midjourney.com/",
    "Accept-Language": "en-US,en;q=0.9",
}


class HttpMediaFetcher(MediaFetcher):

    def __init__(self, timeout_s: float = 20.0, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._timeout = timeout_s
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            follow_redirects=True,
            headers=BROWSER_HEADERS,
            transport=self._transport,
        )

    async def fetch_head(self, url: str, num_bytes: int) -> bytes:
        async with self._client() as http:
            # servers that ignore Range answer 200 with the full body; stream so
            # we still only read what we need
            async with http.stream("GET", url, headers={"Range": f"bytes=0-{num_bytes - 1}"}) as resp:
                resp.raise_for_status()
                head = b""
                async for chunk in resp.aiter_bytes():
                    head += chunk
                    if len(head) >= num_bytes:
                        break
        return head[:num_bytes]

    async def fetch(self, url: str) -> FetchedMedia:
        async with self._client() as http:
            resp = await http.get(url)
            resp.raise_for_status()
        content_type = resp.headers.get("content-type", "image/jpeg").split(";")[0].strip()
        logger.debug(f"Fetched {len(resp.content)} bytes ({content_type}) from {url[:100]}")
        return FetchedMedia(data=resp.content, content_type=content_type or "image/jpeg")
