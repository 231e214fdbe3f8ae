"""What the game loop remembers about each tool result and each narration."""

from __future__ import annotations

from pydantic import BaseModel

from lore_engine.domain.world import canonical_location
from lore_engine.models.result import (
    CombatWinResult,
    DiceCheckResult,
    ExperienceResult,
    HealthResult,
    ItemResult,
    LocationResult,
    NpcResult,
)
from lore_engine.security.content_filter import filter_text


def memory_for(result: BaseModel) -> tuple[str, str] | None:
    """``(memory_type, content)`` for a tool result, or None if it is not memorable.

    NPC secrets are never remembered; memories end up in prompts and in the
    memory API.
    """
    match result:
        case LocationResult(location=location):
            return "location", f"Traveled to {canonical_location(location) or location}"
        case ItemResult(name=name, added=True):
            return "item", f"Acquired {name}"
        case ItemResult(name=name):
            return "item", f"Lost {name}"
        case DiceCheckResult(roll=roll, stat=stat, success=success):
            return "event", f"Rolled {roll} for {stat} check ({'succeeded' if success else 'failed'})"
        case NpcResult(name=name, role=role):
            return "character", f"Met {name}, a {role}"
        case HealthResult(amount=amount, source=source):
            return "event", f"Health changed by {amount} (from {source or 'unknown'})"
        case ExperienceResult(amount=amount, reason=reason):
            return "event", f"Gained {amount} XP for {reason or 'adventuring'}"
        case CombatWinResult(enemy=enemy):
            return "event", f"Defeated {enemy}"
    return None


def narration_summary(text: str, length: int) -> str:
    """Leading ``length`` characters of a narration, marked when cut."""
    text = text.strip()
    if len(text) <= length:
        return text
    # Cutting can leave half a tag behind.
    return filter_text(text[:length] + "...") or ""
