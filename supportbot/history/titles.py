"""
Chat title generation.

Asks the model for a short title summarizing a session's first message. When
the model fails or answers with nothing usable, a title is cut from the message
itself.
"""

from __future__ import annotations

import re

from supportbot.config.logging import get_logger
from supportbot.errors import GenerationFailed
from supportbot.llm.gateway import ModelGateway
from supportbot.llm.models import TextReply, Turn

logger = get_logger(__name__)

TITLE_SYSTEM_INSTRUCTION = (
    "You are a helpful AI assistant that creates concise, descriptive chat titles. "
    "Focus on the main subject/question. Use clear, descriptive language. "
    "Do not use quotes in your response."
)

TITLE_PROMPT = (
    "Create a brief, informative title that summarizes the main topic or question in "
    "the following message. Keep it between 4-7 words. Respond ONLY with the title: "
    '"{message}"'
)

FALLBACK_TITLE_LENGTH = 30

_QUOTED_RE = re.compile(r"""^["'](.+)["']$""", re.DOTALL)
_SENTENCE_END_RE = re.compile(r"[.!?]")


def _capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def clean_title(raw: str) -> str:
    """Strip whitespace and surrounding quotes, capitalize the first letter."""
    title = raw.strip()
    title = _QUOTED_RE.sub(r"\1", title)
    return _capitalize_first(title)


def fallback_title(message: str) -> str:
    """
    Build a title from the message text alone.

    Takes the first 30 characters, cuts at the first sentence-ending punctuation
    (unless it is the very first character), capitalizes, and appends "..." when
    anything was dropped.
    """
    title = message[:FALLBACK_TITLE_LENGTH]
    match = _SENTENCE_END_RE.search(title)
    if match and match.start() > 0:
        title = title[: match.start()]

    title = _capitalize_first(title)

    if len(title) < len(message):
        title += "..."
    return title


class TitleGenerator:
    """
    Generates chat titles with the model.

    Args:
        gateway: Model gateway used for the title request (no tools)
    """

    def __init__(self, gateway: ModelGateway):
        self._gateway = gateway

    async def generate(self, first_message: str) -> str:
        """
        Return a title for a conversation starting with ``first_message``.

        Raises:
            GenerationFailed: If the model call fails or returns no usable text
        """
        result = await self._gateway.generate(
            [Turn.from_user(TITLE_PROMPT.format(message=first_message))],
            [],
            TITLE_SYSTEM_INSTRUCTION,
        )
        if not isinstance(result, TextReply):
            raise GenerationFailed("Model returned no title text")

        title = clean_title(result.text)
        if not title:
            raise GenerationFailed("Model returned an empty title")
        return title

    async def generate_or_fallback(self, first_message: str) -> tuple[str, bool]:
        """
        Like generate(), but never fails.

        Returns:
            (title, generated) where ``generated`` is False for a fallback title
        """
        try:
            return await self.generate(first_message), True
        except GenerationFailed as e:
            logger.warning(f"Title generation failed, using fallback title: {e}")
            return fallback_title(first_message), False
