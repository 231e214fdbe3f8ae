"""New game — class starter kits."""

from __future__ import annotations

from lore_engine.models.player import INITIAL_LOCATION, Item, PlayerState

MAX_NAME_LENGTH = 30
DEFAULT_NAME = "Adventurer"
DEFAULT_CLASS = "Explorer"

# class -> (stat overrides, starter items)
STARTER_KITS: dict[str, tuple[dict[str, int], tuple[dict, ...]]] = {
    "warrior": (
        {"strength": 14, "dexterity": 10},
        (
            dict(name="Iron Sword", emoji="⚔️", type="weapon", description="A sturdy blade"),
            dict(name="Leather Shield", emoji="🛡️", type="armor", description="Basic protection"),
        ),
    ),
    "rogue": (
        {"dexterity": 14, "charisma": 12},
        (
            dict(name="Twin Daggers", emoji="🗡️", type="weapon", description="Quick and deadly"),
            dict(name="Lockpicks", emoji="🔧", type="key", description="Opens most locks"),
        ),
    ),
    "mage": (
        {"wisdom": 14, "charisma": 12},
        (
            dict(name="Oak Staff", emoji="🪄", type="weapon", description="Channels arcane energy"),
            dict(name="Spellbook", emoji="📕", type="misc", description="Contains basic incantations"),
        ),
    ),
}

DEFAULT_KIT: tuple[dict, ...] = (
    dict(name="Walking Stick", emoji="🏒", type="weapon", description="Better than nothing"),
    dict(name="Traveler's Map", emoji="🗺️", type="misc", description="Shows nearby areas"),
)


def new_player_state(
    user_id: str, character_name: str | None = None, character_class: str | None = None
) -> PlayerState:
    name = (character_name or "").strip()[:MAX_NAME_LENGTH] or DEFAULT_NAME
    cls = (character_class or "").strip()[:MAX_NAME_LENGTH] or DEFAULT_CLASS

    state = PlayerState(id=user_id, name=name, character_class=cls, location=INITIAL_LOCATION)
    stats, items = STARTER_KITS.get(cls.lower(), ({}, DEFAULT_KIT))
    state.stats.update(stats)
    state.inventory.extend(Item(**spec) for spec in items)
    state.inventory.append(
        Item(name="Healing Potion", emoji="🧪", type="potion", description="Restores 25 HP", quantity=2)
    )
    return state
