"""State reducer — folds one tool result into PlayerState.

``apply`` never mutates its input: it returns a new state plus the client-safe
view of the result. Event achievements are unlocked here, at the moment the
triggering result is applied; state achievements come from the sweep that
runs after every application.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from lore_engine.domain import achievements
from lore_engine.domain.world import canonical_location, top_tier_creature
from lore_engine.models.player import ITEM_TYPES, Item, PlayerState
from lore_engine.models.result import (
    GAME_RESULT_TYPES,
    CombatWinResult,
    DiceCheckResult,
    ExperienceResult,
    GoldResult,
    HealthResult,
    ItemResult,
    LocationResult,
    NpcResult,
    ToolResult,
)

XP_PER_LEVEL = 100
HEALTH_PER_LEVEL = 10
LOW_HEALTH_THRESHOLD = 5


def apply(result: ToolResult | BaseModel | None, state: PlayerState) -> tuple[PlayerState, Any]:
    """Return ``(new_state, client_view)`` for one tool result.

    Results outside the game union (including ``None``) leave the state
    untouched and are exposed as-is.
    """
    if not isinstance(result, GAME_RESULT_TYPES):
        return state, _plain(result)

    new_state = state.model_copy(deep=True)
    view = _reduce(result, new_state)
    achievements.sweep(new_state)
    return new_state, view


def _reduce(result: ToolResult, state: PlayerState) -> Any:
    match result:
        case LocationResult(location=raw):
            location = canonical_location(raw) or raw
            state.location = location
            state.visited_locations.add(location)
        case ItemResult(added=True):
            _add_item(state, result)
        case ItemResult(name=name):
            _remove_item(state, name)
        case HealthResult(amount=amount):
            state.health = max(0, min(state.max_health, state.health + amount))
        case GoldResult(amount=amount):
            state.gold = max(0, state.gold + amount)
        case ExperienceResult(amount=amount):
            _gain_experience(state, amount)
        case DiceCheckResult():
            _record_check(state, result)
        case CombatWinResult():
            _record_victory(state, result)
        case NpcResult():
            state.unlocked_achievements.add("first-contact")
            return npc_public_view(result)

    return result.model_dump(mode="json")


def _add_item(state: PlayerState, result: ItemResult) -> None:
    # Same-named items are kept as separate entries.
    state.inventory.append(
        Item(
            name=result.name,
            description=result.description,
            emoji=result.emoji or "📦",
            type=result.type if result.type in ITEM_TYPES else "misc",
        )
    )
    state.unlocked_achievements.add("first-loot")


def _remove_item(state: PlayerState, name: str) -> None:
    wanted = name.strip().lower()
    for index, item in enumerate(state.inventory):
        if item.name.lower() == wanted:
            if item.quantity > 1:
                item.quantity -= 1
            else:
                del state.inventory[index]
            return


def _gain_experience(state: PlayerState, amount: int) -> None:
    state.experience = max(0, state.experience + amount)
    while state.experience >= state.level * XP_PER_LEVEL:
        state.experience -= state.level * XP_PER_LEVEL
        state.level += 1
        state.max_health += HEALTH_PER_LEVEL
        state.health = state.max_health


def _record_check(state: PlayerState, result: DiceCheckResult) -> None:
    if result.success:
        state.success_streak += 1
        state.max_streak = max(state.max_streak, state.success_streak)
    else:
        state.success_streak = 0

    if result.critical_success:
        state.unlocked_achievements.add("critical-hit")
    if result.success and result.stat == "charisma":
        state.unlocked_achievements.add("diplomat")


def _record_victory(state: PlayerState, result: CombatWinResult) -> None:
    state.unlocked_achievements.add("first-blood")
    if 0 < state.health < LOW_HEALTH_THRESHOLD:
        state.unlocked_achievements.add("survivor")
    if result.enemy.lower() == top_tier_creature().name.lower():
        state.unlocked_achievements.add("dragon-slayer")


def npc_public_view(npc: NpcResult) -> dict[str, str]:
    """NPC fields safe for the client: no secret, and no field that leaks it."""
    view = npc.model_dump(include={"id", "name", "role", "description", "attitude"})
    secret = npc.hidden_secret
    if secret:
        for key, value in view.items():
            # Deleting can splice a fresh occurrence together; strings only shrink.
            while secret in value:
                value = value.replace(secret, "")
            view[key] = value
    return view


def _plain(result: Any) -> Any:
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json")
    return result
