"""Interpretation context system."""

from .builder import AtlasContextBuilder
from .context_window import AtlasContextWindow, DreamEntry, ImagePart
from .prompts import AtlasPrompts, InterpretationTask

__all__ = [
    "AtlasContextBuilder",
    "AtlasContextWindow",
    "DreamEntry",
    "ImagePart",
    "AtlasPrompts",
    "InterpretationTask",
]
