"""Atlas context window data structures."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

# description truncation, in characters
WINDOW_DESCRIPTION_LIMIT = 200
SINGLE_DESCRIPTION_LIMIT = 400
TEXT_ONLY_DESCRIPTION_LIMIT = 400


@dataclass(frozen=True)
class DreamEntry:
    """The text the model sees for one dream."""
    dream_id: str
    dream_date: date
    title: str
    description: Optional[str] = None

    def to_line(self, limit: int) -> str:
        text = self.description[:limit] if self.description else "(no description)"
        return f"- [{self.dream_date.isoformat()}] {self.title}: {text}"


@dataclass(frozen=True)
class ImagePart:
    """A vision-safe image attributed to one dream."""
    url: str
    dream_date: date
    title: str

    def to_parts(self) -> List[Dict[str, Any]]:
        when = self.dream_date.isoformat()
        return [
            {"type": "text", "text": f'[Image for the dream "{self.title}" from {when}:]'},
            {"type": "image_url", "image_url": {"url": self.url}},
            {"type": "text", "text": f'[End of image for "{self.title}"]'},
        ]


@dataclass
class AtlasContextWindow:
    """Everything one interpretation request may show the model."""

    user_id: str
    scope: str  # "dream" or "window"
    entries: List[DreamEntry] = field(default_factory=list)
    images: List[ImagePart] = field(default_factory=list)

    period_start: Optional[date] = None
    period_end: Optional[date] = None
    dream_id: Optional[str] = None

    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_images(self) -> bool:
        return bool(self.images)

    @property
    def is_single_dream(self) -> bool:
        return self.scope == "dream"

    def description_limit(self, vision: bool) -> int:
        if self.is_single_dream:
            return SINGLE_DESCRIPTION_LIMIT
        return WINDOW_DESCRIPTION_LIMIT if vision else TEXT_ONLY_DESCRIPTION_LIMIT

    def text_lines(self, limit: int) -> List[str]:
        return [entry.to_line(limit) for entry in self.entries]

    def image_parts(self) -> List[Dict[str, Any]]:
        parts: List[Dict[str, Any]] = []
        for image in self.images:
            parts.extend(image.to_parts())
        return parts
