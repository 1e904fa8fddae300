"""OpenAI chat-completions adapter implementing the LLMService port."""
from __future__ import annotations

import logging
import re
import time
from typing import List, Optional

import openai
from openai import AsyncOpenAI

from dream_atlas.domain.ports.llm import ChatMessage, LLMError, LLMService, MediaRejectedError

logger = logging.getLogger(__name__)

# error codes OpenAI returns when it refuses an attached image
_MEDIA_ERROR_CODES = {
    "invalid_image",
    "invalid_image_url",
    "invalid_image_format",
    "image_parse_error",
    "image_too_large",
}
_MEDIA_WORDS = re.compile(r"\b(image|images|image_url|video|media)\b")


def is_media_error(exc: Exception) -> bool:
    """Bad-request errors about the attached media are the only retryable kind."""
    if not isinstance(exc, openai.BadRequestError):
        return False
    if getattr(exc, "code", None) in _MEDIA_ERROR_CODES:
        return True
    return bool(_MEDIA_WORDS.search(str(exc).lower()))


class OpenAILLM(LLMService):
    """Vision-capable chat model; plain-text and multi-part user turns both work."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        temperature: float = 0.7,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)

    @property
    def model(self) -> str:
        return self._model

    async def generate_response(
        self,
        messages: List[ChatMessage],
        temperature: Optional[float] = None,
    ) -> str:
        start = time.time()
        try:
            completion = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=self._temperature if temperature is None else temperature,
            )
        except openai.OpenAIError as e:
            if is_media_error(e):
                logger.warning(f"OpenAI rejected attached media: {e}")
                raise MediaRejectedError(str(e)) from e
            logger.error(f"OpenAI call failed ({type(e).__name__}): {e}")
            raise LLMError(str(e)) from e

        logger.debug(f"OpenAI {self._model} answered in {time.time() - start:.2f}s")
        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""
