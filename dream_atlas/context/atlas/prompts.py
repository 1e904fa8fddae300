"""Prompt templates and message assembly for interpretation tasks."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .context_window import AtlasContextWindow


class InterpretationTask(str, Enum):
    DREAM_SUMMARY = "dream_summary"
    PERIOD_SUMMARY = "period_summary"
    CHAT_TURN = "chat_turn"


@dataclass
class AtlasPrompts:
    """Centralized prompt management for interpretation requests."""

    NO_FENCES = "DO NOT wrap your response in markdown code blocks (no ```html or ```). Return ONLY the raw HTML."

    # System prompts for different tasks
    DREAM_SUMMARY_SYSTEM = """You specialise in dreams and symbolic imagery. You avoid medical or diagnostic language and keep things exploratory."""

    PERIOD_SUMMARY_SYSTEM = """You speak like a thoughtful dream guide, not a therapist. You emphasise curiosity and self-reflection."""

    PERIOD_SUMMARY_VISION_SYSTEM = PERIOD_SUMMARY_SYSTEM + """ When analyzing dream images, describe specific visual elements you see (colors, objects, composition, mood, settings) and connect them to the themes and patterns across the dreams."""

    CHAT_SYSTEM = """You are a dream-pattern guide. You see a list of someone's dreams over a period of time and chat with them about themes, emotions and symbols. You never diagnose or give medical advice. You emphasise curiosity and gentle self-reflection. Keep your replies concise: at most 2 short paragraphs or 4–6 sentences total (around 120 words), focusing on the heart of the question rather than repeating the full context."""

    CHAT_VISION_SYSTEM = """You are a dream-pattern guide. You see a list of someone's dreams over a period of time and chat with them about themes, emotions and symbols. IMPORTANT: When images are provided with dreams, you can see and analyze them. Describe specific visual details you observe (colors, objects, composition, mood, settings, people, animals, movement, etc.) and connect them to the dream themes. You never diagnose or give medical advice. You emphasise curiosity and gentle self-reflection. Keep your replies concise: at most 2 short paragraphs or 4–6 sentences total (around 120 words), focusing on the heart of the question rather than repeating the full context."""

    # User prompt templates
    DREAM_SUMMARY_USER = """You are an oneirology-inspired AI that helps someone explore their recurring motifs in dreams.

Dream title: {title}
Dream date: {dream_date}

Dream description:
{description}

1) Give a short, poetic summary in 2–3 sentences.
2) Name 3–5 key symbols or motifs and what they might represent psychologically.
3) Suggest 1 gentle reflection question the dreamer could ask themselves.

IMPORTANT: Return your answer as a small HTML fragment (no <html> or <body> tags).
{no_fences}
Structure it with:
- A <h3> title like "What this dream is circling around".
- A couple of <p> paragraphs for the narrative summary.
- A <h4> "Symbols" heading followed by a <ul><li> list of motifs.
- A <h4> "A question to sit with" heading with one <p> reflective question.
You may use <strong> and <em> for gentle emphasis, but keep the tone grounded and non-prescriptive."""

    PERIOD_SUMMARY_USER = """You are helping someone explore patterns across several dreams.

Here are their dreams between {period_start} and {period_end}:

{dream_lines}
{image_note}
Please:
1) Summarise recurring themes, settings, and emotional tones.
2) Point out 3–7 motifs that appear more than once.
3) Offer a short paragraph on how these might connect to waking life (without making diagnoses).
4) Finish with 2 or 3 reflection prompts they can journal on.

IMPORTANT: Return your answer as a short HTML fragment, no <html> or <body> tags.
{no_fences}
Use simple, clean structure:
- A <h3> "Themes" section with paragraphs.
- A <h3> "Motifs" section with a <ul><li> list of motifs.
- A <h3> "Reflection prompts" section with <ul><li> questions.
You may use <strong> and <em> for gentle emphasis, but avoid overly decorative markup.
Keep it under ~500 words, warm in tone, and easy to read."""

    PERIOD_IMAGE_NOTE = "\nPlease analyze these dreams, taking into account both the text descriptions and the images (where provided).\n"

    CHAT_CONTEXT = """The user is exploring patterns across their dreams.
The period is from {period_start} to {period_end}.
Here is a compact list of their dreams in this window:
{dream_lines}"""

    CHAT_NEW_MESSAGE = "Here is my new message or question about these dreams:"

    # ─────────────────────────── message assembly ─────────────────────────── #

    @classmethod
    def build_messages(
        cls,
        context: AtlasContextWindow,
        task: InterpretationTask,
        vision: bool,
        history: Sequence[Tuple[str, str]] = (),
        user_message: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Role-structured messages; with ``vision`` the user turn is multi-part."""
        vision = vision and context.has_images
        if task == InterpretationTask.DREAM_SUMMARY:
            return cls._dream_summary(context, vision)
        if task == InterpretationTask.PERIOD_SUMMARY:
            return cls._period_summary(context, vision)
        if task == InterpretationTask.CHAT_TURN:
            return cls._chat_turn(context, vision, history, user_message or "")
        raise ValueError(f"Unknown task type: {task}")

    @classmethod
    def _dream_summary(cls, context: AtlasContextWindow, vision: bool) -> List[Dict[str, Any]]:
        entry = context.entries[0]
        limit = context.description_limit(vision)
        text = cls.DREAM_SUMMARY_USER.format(
            title=entry.title,
            dream_date=entry.dream_date.isoformat(),
            description=entry.description[:limit] if entry.description else "(no description provided)",
            no_fences=cls.NO_FENCES,
        )
        return [
            {"role": "system", "content": cls.DREAM_SUMMARY_SYSTEM},
            {"role": "user", "content": cls._user_content(text, context, vision)},
        ]

    @classmethod
    def _period_summary(cls, context: AtlasContextWindow, vision: bool) -> List[Dict[str, Any]]:
        text = cls.PERIOD_SUMMARY_USER.format(
            period_start=context.period_start.isoformat(),
            period_end=context.period_end.isoformat(),
            dream_lines="\n".join(context.text_lines(context.description_limit(vision))),
            image_note=cls.PERIOD_IMAGE_NOTE if vision else "",
            no_fences=cls.NO_FENCES,
        )
        system = cls.PERIOD_SUMMARY_VISION_SYSTEM if vision else cls.PERIOD_SUMMARY_SYSTEM
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": cls._user_content(text, context, vision)},
        ]

    @classmethod
    def _chat_turn(
        cls,
        context: AtlasContextWindow,
        vision: bool,
        history: Sequence[Tuple[str, str]],
        user_message: str,
    ) -> List[Dict[str, Any]]:
        # chat keeps the compact lines on both paths
        context_text = cls.CHAT_CONTEXT.format(
            period_start=context.period_start.isoformat(),
            period_end=context.period_end.isoformat(),
            dream_lines="\n".join(context.text_lines(context.description_limit(vision=True))),
        )
        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": cls.CHAT_VISION_SYSTEM if vision else cls.CHAT_SYSTEM},
            {"role": "user", "content": cls._user_content(context_text, context, vision)},
        ]
        for role, content in history:
            messages.append({"role": "assistant" if role == "assistant" else "user", "content": content})

        if vision:
            messages.append({
                "role": "user",
                "content": [
                    *cls._user_content(context_text, context, vision),
                    {"type": "text", "text": f"{cls.CHAT_NEW_MESSAGE}\n\n{user_message}"},
                ],
            })
        else:
            messages.append({
                "role": "user",
                "content": "\n\n".join([context_text, "", cls.CHAT_NEW_MESSAGE, user_message]),
            })
        return messages

    @staticmethod
    def _user_content(text: str, context: AtlasContextWindow, vision: bool):
        if not vision:
            return text
        return [{"type": "text", "text": text}, *context.image_parts()]
