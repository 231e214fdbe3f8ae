"""Player state schemas."""

from __future__ import annotations

import uuid
from typing import Literal

from pydantic import BaseModel, Field

INITIAL_LOCATION = "The Crossroads"

ItemType = Literal["weapon", "armor", "potion", "key", "misc"]
ITEM_TYPES: tuple[str, ...] = ("weapon", "armor", "potion", "key", "misc")


def _short_id() -> str:
    return uuid.uuid4().hex[:8]


def _default_stats() -> dict[str, int]:
    return {"strength": 10, "dexterity": 10, "wisdom": 10, "charisma": 10}


class Item(BaseModel):
    id: str = Field(default_factory=_short_id)
    name: str
    description: str = ""
    emoji: str = "📦"
    type: ItemType = "misc"
    quantity: int = Field(default=1, ge=1)


class PlayerState(BaseModel):
    """Mutable per-user game state.

    Only the reducer changes these fields during play; ``new game`` replaces
    the whole record. ``version`` is owned by the state store.
    """

    id: str = ""
    name: str = "Adventurer"
    character_class: str = "Explorer"
    health: int = 100
    max_health: int = 100
    gold: int = 10
    experience: int = 0
    level: int = 1
    location: str = INITIAL_LOCATION
    inventory: list[Item] = Field(default_factory=list)
    stats: dict[str, int] = Field(default_factory=_default_stats)
    visited_locations: set[str] = Field(default_factory=lambda: {INITIAL_LOCATION})
    unlocked_achievements: set[str] = Field(default_factory=set)
    success_streak: int = 0
    max_streak: int = 0
    version: int = 0
