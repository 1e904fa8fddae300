"""Port interface for chat-completion language models."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

# A user turn's content is either plain text or an ordered list of parts:
#   {"type": "text", "text": ...} | {"type": "image_url", "image_url": {"url": ...}}
ChatMessage = Dict[str, Any]


class LLMError(Exception):
    """Any model call failure (auth, rate limit, network, bad request…)."""


class MediaRejectedError(LLMError):
    """The provider refused the request because of the attached media."""


class LLMService(ABC):

    @abstractmethod
    async def generate_response(
        self,
        messages: List[ChatMessage],
        temperature: Optional[float] = None,
    ) -> str:
        """Return the completion text (possibly empty)."""
