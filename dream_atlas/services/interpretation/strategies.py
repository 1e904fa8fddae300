"""Ordered model-call strategies and their typed outcomes.

The requester walks ``DEFAULT_POLICY`` in order:

1. ``VisionStrategy``   – only when the context carries images
2. ``TextOnlyStrategy`` – images stripped, text parts only

A strategy never raises for model failures; it reports a ``StrategyOutcome``
and the requester decides whether the next strategy may run.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from dream_atlas.context.atlas import AtlasContextWindow, AtlasPrompts, InterpretationTask
from dream_atlas.domain.ports.llm import LLMError, LLMService, MediaRejectedError

logger = logging.getLogger(__name__)


@dataclass
class InterpretationRequest:
    context: AtlasContextWindow
    task: InterpretationTask
    # prior (role, content) turns, oldest first; chat only
    history: Sequence[Tuple[str, str]] = field(default_factory=tuple)
    user_message: Optional[str] = None


class OutcomeStatus(str, Enum):
    OK = "ok"
    MEDIA_REJECTED = "media_rejected"
    FAILED = "failed"


@dataclass
class StrategyOutcome:
    strategy: str
    status: OutcomeStatus
    text: Optional[str] = None
    error: Optional[str] = None


class InterpretationStrategy(ABC):
    name: str = "strategy"
    vision: bool = False

    @abstractmethod
    def applies(self, request: InterpretationRequest) -> bool: ...

    def build_messages(self, request: InterpretationRequest) -> List[Dict[str, Any]]:
        return AtlasPrompts.build_messages(
            request.context,
            request.task,
            vision=self.vision,
            history=request.history,
            user_message=request.user_message,
        )

    async def attempt(
        self, llm: LLMService, request: InterpretationRequest, temperature: Optional[float] = None
    ) -> StrategyOutcome:
        messages = self.build_messages(request)
        try:
            text = await llm.generate_response(messages, temperature=temperature)
        except MediaRejectedError as e:
            return StrategyOutcome(self.name, OutcomeStatus.MEDIA_REJECTED, error=str(e))
        except LLMError as e:
            return StrategyOutcome(self.name, OutcomeStatus.FAILED, error=str(e))
        return StrategyOutcome(self.name, OutcomeStatus.OK, text=text)


class VisionStrategy(InterpretationStrategy):
    name = "vision"
    vision = True

    def applies(self, request: InterpretationRequest) -> bool:
        return request.context.has_images


class TextOnlyStrategy(InterpretationStrategy):
    name = "text_only"
    vision = False

    def applies(self, request: InterpretationRequest) -> bool:
        return True


DEFAULT_POLICY: Tuple[InterpretationStrategy, ...] = (VisionStrategy(), TextOnlyStrategy())
