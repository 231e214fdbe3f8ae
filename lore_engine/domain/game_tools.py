"""Game tools the Dungeon Master model may call."""

from __future__ import annotations

import uuid
from typing import Annotated

from pydantic import BaseModel, Field

from lore_engine.domain.catalog import Tool, ToolCatalog, capped_text, clamped_int, one_of
from lore_engine.domain.world import find_creature
from lore_engine.models.player import ITEM_TYPES
from lore_engine.models.result import (
    CombatWinResult,
    DiceCheckResult,
    ExperienceResult,
    GoldResult,
    HealthResult,
    ItemResult,
    LocationResult,
    NpcResult,
)
from lore_engine.modules.dice.roller import STAT_MODIFIERS, roll_check

ATTITUDES = ("friendly", "neutral", "hostile", "suspicious")

MAX_HEALTH_DELTA = 500
MAX_GOLD_DELTA = 100_000
MAX_XP_AWARD = 10_000

ShortText = Annotated[str, capped_text(60)]
Label = Annotated[str, capped_text(100)]
LongText = Annotated[str, capped_text(500)]


# --- Argument models ---


class RollCheckArgs(BaseModel):
    stat: Annotated[str, one_of(STAT_MODIFIERS, "none")] = Field(
        description="The stat being tested: strength, dexterity, wisdom, or charisma"
    )
    difficulty: Annotated[int, clamped_int(1, 30)] = Field(
        default=10, description="Difficulty class (1-30, where 10 is moderate)"
    )
    action: Label = Field(default="", description="Brief description of what the player is attempting")


class MovePlayerArgs(BaseModel):
    location: Annotated[str, capped_text(80)] = Field(description="Name of the new location")
    description: LongText = Field(default="", description="Brief atmospheric description of arriving")


class GiveItemArgs(BaseModel):
    name: ShortText = Field(description="Name of the item")
    description: Annotated[str, capped_text(200)] = Field(default="", description="Brief description")
    type: Annotated[str, one_of(ITEM_TYPES, "misc")] = Field(
        default="misc", description="Type: weapon, armor, potion, key, or misc"
    )
    emoji: Annotated[str, capped_text(8)] = Field(default="📦", description="Emoji icon for the item")


class TakeItemArgs(BaseModel):
    name: ShortText = Field(description="Name of the item to remove")


class ModifyHealthArgs(BaseModel):
    amount: Annotated[int, clamped_int(-MAX_HEALTH_DELTA, MAX_HEALTH_DELTA)] = Field(
        description="Amount to change. Positive = heal, negative = damage"
    )
    source: Label = Field(default="", description="Source of the damage or healing")


class ModifyGoldArgs(BaseModel):
    amount: Annotated[int, clamped_int(-MAX_GOLD_DELTA, MAX_GOLD_DELTA)] = Field(
        description="Amount to change. Positive = gain, negative = spend"
    )
    reason: Label = Field(default="", description="Reason for the change")


class AwardExperienceArgs(BaseModel):
    amount: Annotated[int, clamped_int(0, MAX_XP_AWARD)] = Field(description="XP amount to award")
    reason: Label = Field(default="", description="What the XP is for")


class GenerateNpcArgs(BaseModel):
    name: ShortText = Field(description="NPC's name")
    role: ShortText = Field(default="", description="NPC's visible role or occupation")
    description: LongText = Field(default="", description="NPC's personality and appearance")
    hidden_secret: LongText = Field(default="", description="Hidden secret the player doesn't know")
    attitude: Annotated[str, one_of(ATTITUDES, "neutral")] = Field(
        default="neutral",
        description="NPC's attitude toward the player: friendly, neutral, hostile, or suspicious",
    )


class WinCombatArgs(BaseModel):
    enemy: Annotated[str, capped_text(80)] = Field(description="Name of the defeated enemy")


# --- Tool functions ---


def roll_check_tool(args: RollCheckArgs) -> DiceCheckResult:
    rolled = roll_check(args.stat, args.difficulty)
    return DiceCheckResult(
        roll=rolled.roll,
        modifier=rolled.modifier,
        total=rolled.total,
        difficulty=rolled.difficulty,
        success=rolled.success,
        critical_success=rolled.critical_success,
        critical_failure=rolled.critical_failure,
        action=args.action,
        stat=args.stat,
    )


def move_player(args: MovePlayerArgs) -> LocationResult:
    return LocationResult(location=args.location, description=args.description)


def give_item(args: GiveItemArgs) -> ItemResult:
    return ItemResult(
        name=args.name,
        description=args.description,
        type=args.type,
        emoji=args.emoji or "📦",
        added=True,
    )


def take_item(args: TakeItemArgs) -> ItemResult:
    return ItemResult(name=args.name, added=False)


def modify_health(args: ModifyHealthArgs) -> HealthResult:
    return HealthResult(amount=args.amount, source=args.source)


def modify_gold(args: ModifyGoldArgs) -> GoldResult:
    return GoldResult(amount=args.amount, reason=args.reason)


def award_experience(args: AwardExperienceArgs) -> ExperienceResult:
    return ExperienceResult(amount=args.amount, reason=args.reason)


def generate_npc(args: GenerateNpcArgs) -> NpcResult:
    return NpcResult(
        id=uuid.uuid4().hex[:8],
        name=args.name,
        role=args.role,
        description=args.description,
        hidden_secret=args.hidden_secret,
        attitude=args.attitude,
    )


def win_combat(args: WinCombatArgs) -> CombatWinResult:
    creature = find_creature(args.enemy)
    if creature is None:
        return CombatWinResult(enemy=args.enemy)
    return CombatWinResult(
        enemy=creature.name,
        creature_level=creature.level,
        xp_reward=creature.xp_reward,
        gold_drop=creature.gold_drop,
    )


GAME_TOOLS: tuple[Tool, ...] = (
    Tool("RollCheck",
         "Roll dice for an action check. Returns the result and whether it succeeds against a difficulty.",
         RollCheckArgs, roll_check_tool),
    Tool("MovePlayer",
         "Update the player's location. Call this when the player moves to a new area.",
         MovePlayerArgs, move_player),
    Tool("GiveItem", "Add an item to the player's inventory.", GiveItemArgs, give_item),
    Tool("TakeItem", "Remove an item from the player's inventory.", TakeItemArgs, take_item),
    Tool("ModifyHealth", "Deal damage to the player or heal them.", ModifyHealthArgs, modify_health),
    Tool("ModifyGold", "Award or spend the player's gold.", ModifyGoldArgs, modify_gold),
    Tool("AwardExperience", "Award experience points to the player.", AwardExperienceArgs, award_experience),
    Tool("GenerateNpc",
         "Generate an NPC with visible traits and hidden secrets the player doesn't know yet.",
         GenerateNpcArgs, generate_npc),
    Tool("WinCombat",
         "Record that the player won a combat encounter. Award XP and gold separately.",
         WinCombatArgs, win_combat),
)


def game_catalog() -> ToolCatalog:
    return ToolCatalog(GAME_TOOLS)
