"""Achievement catalog and the state-predicate sweep.

Two kinds of achievements exist. *State* achievements are re-derived from the
current PlayerState snapshot by :func:`sweep`. *Event* achievements (combat,
dice, first contact, first loot, twist of fate) are unlocked by the reducer at
the moment the triggering tool result is applied and have no predicate here.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from lore_engine.models.player import INITIAL_LOCATION, PlayerState


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    emoji: str
    category: str


CATALOG: tuple[Achievement, ...] = (
    # Combat
    Achievement("first-blood", "First Blood", "Win your first combat encounter", "⚔️", "combat"),
    Achievement("critical-hit", "Critical Hit", "Roll a natural 20", "🎯", "combat"),
    Achievement("survivor", "Survivor", "Survive a fight with less than 5 HP", "💪", "combat"),
    Achievement("dragon-slayer", "Dragon Slayer", "Defeat an Ancient Dragon", "🐉", "combat"),
    # Exploration
    Achievement("first-steps", "First Steps", "Move to a new location", "👣", "exploration"),
    Achievement("explorer", "World Walker", "Visit 5 different locations", "🗺️", "exploration"),
    Achievement("cartographer", "Cartographer", "Visit 10 different locations", "🧭", "exploration"),
    # Social
    Achievement("first-contact", "First Contact", "Meet your first NPC", "🤝", "social"),
    Achievement("diplomat", "Silver Tongue", "Succeed at a charisma check", "🗣️", "social"),
    Achievement("secret-keeper", "Secret Keeper", "Discover an NPC's hidden secret", "🤫", "social"),
    # Wealth
    Achievement("first-loot", "Loot Goblin", "Find your first item", "📦", "wealth"),
    Achievement("hoarder", "Hoarder", "Have 10 or more items", "🎒", "wealth"),
    Achievement("wealthy", "Wealthy", "Accumulate 100 gold", "💰", "wealth"),
    Achievement("rich", "Filthy Rich", "Accumulate 500 gold", "👑", "wealth"),
    # Progression
    Achievement("level-2", "Getting Stronger", "Reach level 2", "⬆️", "progression"),
    Achievement("level-5", "Seasoned Adventurer", "Reach level 5", "🌟", "progression"),
    Achievement("level-10", "Legend", "Reach level 10", "✨", "progression"),
    Achievement("twist-of-fate", "Tempting Fate", "Trigger a Twist of Fate", "🌀", "progression"),
)

STATE_PREDICATES: dict[str, Callable[[PlayerState], bool]] = {
    "first-steps": lambda s: s.location != INITIAL_LOCATION,
    "explorer": lambda s: len(s.visited_locations) >= 5,
    "cartographer": lambda s: len(s.visited_locations) >= 10,
    "hoarder": lambda s: sum(i.quantity for i in s.inventory) >= 10,
    "wealthy": lambda s: s.gold >= 100,
    "rich": lambda s: s.gold >= 500,
    "level-2": lambda s: s.level >= 2,
    "level-5": lambda s: s.level >= 5,
    "level-10": lambda s: s.level >= 10,
}


def get_achievement(achievement_id: str) -> Achievement | None:
    for achievement in CATALOG:
        if achievement.id == achievement_id:
            return achievement
    return None


def newly_earned(state: PlayerState) -> list[Achievement]:
    """State achievements satisfied by ``state`` and not yet unlocked."""
    earned = []
    for achievement in CATALOG:
        if achievement.id in state.unlocked_achievements:
            continue
        predicate = STATE_PREDICATES.get(achievement.id)
        if predicate is not None and predicate(state):
            earned.append(achievement)
    return earned


def sweep(state: PlayerState) -> list[Achievement]:
    """Unlock every newly satisfied state achievement in place and return them."""
    earned = newly_earned(state)
    state.unlocked_achievements.update(a.id for a in earned)
    return earned
