"""Output content filter — strips active markup from model text before it reaches a client."""

from __future__ import annotations

import logging
import re

logger = logging.getLogger("lore-engine.content_filter")

REMOVED_MARKER = "[content removed]"

_BLOCK_TAGS = r"(?:script|iframe|object|embed)"

_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    # Paired block elements, body included.
    (re.compile(rf"<\s*({_BLOCK_TAGS})\b[^>]*>.*?<\s*/\s*\1\s*>", re.IGNORECASE | re.DOTALL),
     REMOVED_MARKER),
    # Unpaired, self-closing or stray closing block tags.
    (re.compile(rf"<\s*/?\s*{_BLOCK_TAGS}\b[^>]*>", re.IGNORECASE), REMOVED_MARKER),
    # Unterminated openings.
    (re.compile(rf"<\s*/?\s*{_BLOCK_TAGS}\b", re.IGNORECASE), REMOVED_MARKER),
    # Event handler attributes inside a tag, quoted and unquoted. Browsers also
    # start a new attribute right after "/" or a closing quote.
    (re.compile(
        r"(<[a-z!/][^>]*?)(?:\s+|(?<=[/\"']))on[a-z]+\s*=\s*(?:\"[^\"]*\"|'[^']*'|[^\s>]*)",
        re.IGNORECASE,
    ), r"\1"),
    (re.compile(r"javascript\s*:", re.IGNORECASE), ""),
)


def filter_text(text: str | None) -> str | None:
    """Remove script-capable markup. Idempotent: the result is a fixed point."""
    if not text:
        return text
    current = text
    while True:
        # Every rewrite drops a "<" or shortens the text, so this terminates.
        cleaned = current
        for pattern, replacement in _RULES:
            cleaned = pattern.sub(replacement, cleaned)
        if cleaned == current:
            break
        current = cleaned
    if current != text:
        logger.info("Content filter removed active markup from model output")
    return current
