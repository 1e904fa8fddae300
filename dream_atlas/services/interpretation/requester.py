"""Calls the language model for one interpretation task.

Only a media rejection lets the next strategy run, so a request makes at
most two model calls (vision, then text-only). Persistence is the caller's
job and happens only after this returns.
"""
from __future__ import annotations

import logging
import re
from typing import Optional, Sequence

from dream_atlas.domain.errors import EmptyResultError, UpstreamFailure
from dream_atlas.domain.ports.llm import LLMService
from .strategies import (
    DEFAULT_POLICY,
    InterpretationRequest,
    InterpretationStrategy,
    OutcomeStatus,
)

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^\s*```[a-zA-Z]*\s*")
_TRAILING_FENCE = re.compile(r"\s*```\s*$")


def strip_code_fences(text: Optional[str]) -> str:
    """Remove a leading ```html / ``` and a trailing ``` fence."""
    if not text:
        return ""
    text = _LEADING_FENCE.sub("", text, count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


class InterpretationRequester:

    def __init__(
        self,
        llm: LLMService,
        policy: Sequence[InterpretationStrategy] = DEFAULT_POLICY,
        temperature: Optional[float] = None,
    ) -> None:
        self._llm = llm
        self._policy = tuple(policy)
        self._temperature = temperature

    async def request(self, request: InterpretationRequest) -> str:
        """Final HTML/text for the task. Raises EmptyResultError / UpstreamFailure."""
        last_error: Optional[str] = None
        for strategy in self._policy:
            if not strategy.applies(request):
                continue

            logger.info(
                f"Interpretation {request.task.value}: trying {strategy.name} "
                f"({len(request.context.entries)} dreams, {len(request.context.images)} images)"
            )
            outcome = await strategy.attempt(self._llm, request, self._temperature)

            if outcome.status == OutcomeStatus.OK:
                text = strip_code_fences(outcome.text)
                if not text:
                    logger.error(f"{strategy.name} returned no usable content for {request.task.value}")
                    raise EmptyResultError("Could not generate a response")
                return text

            if outcome.status == OutcomeStatus.MEDIA_REJECTED:
                logger.warning(f"{strategy.name} rejected media, falling back: {outcome.error}")
                last_error = outcome.error
                continue

            logger.error(f"{strategy.name} failed for {request.task.value}: {outcome.error}")
            raise UpstreamFailure(f"Language model request failed: {outcome.error}")

        raise UpstreamFailure(f"Language model request failed: {last_error or 'no strategy applied'}")
