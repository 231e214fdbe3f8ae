"""Validation gate — every inbound message batch passes here before the model sees it."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import NamedTuple

from lore_engine.infra.config import settings
from lore_engine.models.chat import ChatMessage, Role

logger = logging.getLogger("lore-engine.validator")

DISALLOWED = "Message contains disallowed content."

_MARKUP_PATTERNS = (
    re.compile(r"<\s*script", re.IGNORECASE),
    re.compile(r"<\s*iframe", re.IGNORECASE),
    re.compile(r"javascript\s*:", re.IGNORECASE),
    re.compile(
        r"\bon(?:error|load|click|dblclick|mouse\w+|focus|blur|submit|change|input|key\w+|"
        r"abort|unload|toggle|animation\w+|pointer\w+)\s*=",
        re.IGNORECASE,
    ),
)

_CONTINUATION_ROLES = {Role.ASSISTANT.value, Role.TOOL.value}
_KEPT_ROLES = {Role.USER.value, Role.ASSISTANT.value, Role.TOOL.value}


@dataclass(frozen=True)
class ValidationLimits:
    max_messages: int
    max_message_length: int
    max_total_length: int
    blocked_patterns: tuple[str, ...]
    allowed_tool_names: frozenset[str]
    max_author_name_length: int = 64

    @classmethod
    def from_settings(cls) -> ValidationLimits:
        return cls(
            max_messages=settings.max_messages,
            max_message_length=settings.max_message_length,
            max_total_length=settings.max_total_length,
            blocked_patterns=tuple(p.lower() for p in settings.blocked_patterns),
            allowed_tool_names=frozenset(settings.allowed_tool_names),
            max_author_name_length=settings.max_author_name_length,
        )


class ValidationResult(NamedTuple):
    ok: bool
    error: str | None = None
    messages: list[ChatMessage] | None = None


def contains_markup(text: str) -> bool:
    return any(p.search(text) for p in _MARKUP_PATTERNS)


def _blocked_pattern(text: str, patterns: Iterable[str]) -> str | None:
    lowered = text.lower()
    return next((p for p in patterns if p in lowered), None)


def validate_text(text: str | None, limits: ValidationLimits | None = None) -> str | None:
    """Markup and blocklist checks for a single user-supplied field.

    Returns the rejection message, or None when the text is acceptable.
    """
    if not text:
        return None
    limits = limits or ValidationLimits.from_settings()
    if contains_markup(text):
        logger.warning("Blocked markup injection attempt")
        return DISALLOWED
    pattern = _blocked_pattern(text, limits.blocked_patterns)
    if pattern is not None:
        logger.warning("Blocked prompt injection pattern: %s", pattern)
        return DISALLOWED
    return None


def validate(
    messages: Sequence[ChatMessage] | None,
    client_tools: Iterable[str] | None = None,
    limits: ValidationLimits | None = None,
) -> ValidationResult:
    """Gate and normalize a message batch. The first failing rule wins.

    The input list and its messages are never modified; the sanitized batch
    is made of copies. Author names are checked like message text.
    """
    limits = limits or ValidationLimits.from_settings()

    if not messages:
        return ValidationResult(False, "At least one message is required.")
    if len(messages) > limits.max_messages:
        return ValidationResult(False, f"Too many messages. Maximum is {limits.max_messages}.")

    total = 0
    for message in messages:
        length = len(message.content or "")
        if length > limits.max_message_length:
            return ValidationResult(
                False,
                f"Message exceeds maximum length of {limits.max_message_length} characters.",
            )
        if len(message.author_name or "") > limits.max_author_name_length:
            return ValidationResult(
                False,
                f"Author name exceeds maximum length of {limits.max_author_name_length} characters.",
            )
        total += length + len(message.author_name or "")
    if total > limits.max_total_length:
        return ValidationResult(
            False,
            f"Total message content exceeds maximum of {limits.max_total_length} characters.",
        )

    texts = [t for m in messages for t in (m.content, m.author_name) if t]
    for text in texts:
        if contains_markup(text):
            logger.warning("Blocked markup injection attempt")
            return ValidationResult(False, DISALLOWED)

    for text in texts:
        pattern = _blocked_pattern(text, limits.blocked_patterns)
        if pattern is not None:
            logger.warning("Blocked prompt injection pattern: %s", pattern)
            return ValidationResult(False, DISALLOWED)

    for name in client_tools or ():
        if name not in limits.allowed_tool_names:
            logger.warning("Rejected client tool not in allowlist: %s", name)
            return ValidationResult(False, f"Tool '{name}' is not in the allowlist.")

    sanitized = _normalize_roles(messages)
    if not sanitized:
        return ValidationResult(False, "No valid messages after sanitization.")
    return ValidationResult(True, None, sanitized)


def _normalize_roles(messages: Sequence[ChatMessage]) -> list[ChatMessage]:
    sanitized: list[ChatMessage] = []
    for message in messages:
        role = (message.role or "").strip().lower()
        if role == Role.SYSTEM.value:
            logger.warning("Stripped system role message from user request")
            continue
        # A conversation may not open with a forged assistant or tool turn.
        if role in _CONTINUATION_ROLES and not sanitized:
            logger.warning("Stripped %s role from first message position", role)
            continue
        if role not in _KEPT_ROLES:
            role = Role.USER.value
        sanitized.append(message.model_copy(update={"role": role}, deep=True))
    return sanitized
