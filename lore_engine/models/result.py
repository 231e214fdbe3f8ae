"""Tool result schemas — output of the tool catalogs, input to the reducer."""

from __future__ import annotations

from typing import Annotated, Literal, Union, get_args

from pydantic import BaseModel, Field


# --- Game tool results ---


class LocationResult(BaseModel):
    kind: Literal["location"] = "location"
    location: str
    description: str = ""


class ItemResult(BaseModel):
    kind: Literal["item"] = "item"
    name: str
    description: str = ""
    type: str = "misc"
    emoji: str = "📦"
    added: bool


class HealthResult(BaseModel):
    kind: Literal["health"] = "health"
    amount: int
    source: str = ""


class GoldResult(BaseModel):
    kind: Literal["gold"] = "gold"
    amount: int
    reason: str = ""


class ExperienceResult(BaseModel):
    kind: Literal["experience"] = "experience"
    amount: int
    reason: str = ""


class DiceCheckResult(BaseModel):
    kind: Literal["dice_check"] = "dice_check"
    roll: int
    modifier: int
    total: int
    difficulty: int
    success: bool
    critical_success: bool = False
    critical_failure: bool = False
    action: str = ""
    stat: str


class NpcResult(BaseModel):
    kind: Literal["npc"] = "npc"
    id: str
    name: str
    role: str
    description: str
    hidden_secret: str
    attitude: str


class CombatWinResult(BaseModel):
    kind: Literal["combat_win"] = "combat_win"
    enemy: str
    creature_level: int | None = None
    xp_reward: int = 0
    gold_drop: int = 0


ToolResult = Annotated[
    Union[
        LocationResult,
        ItemResult,
        HealthResult,
        GoldResult,
        ExperienceResult,
        DiceCheckResult,
        NpcResult,
        CombatWinResult,
    ],
    Field(discriminator="kind"),
]

# Concrete member classes of the union, for isinstance checks.
GAME_RESULT_TYPES: tuple[type[BaseModel], ...] = get_args(get_args(ToolResult)[0])


# --- Storytelling tool results (general chat path; never reduced into state) ---


class SceneResult(BaseModel):
    id: str
    title: str
    description: str
    characters: list[str] = []
    location: str
    mood: str


class CharacterResult(BaseModel):
    id: str
    name: str
    role: str
    backstory: str
    traits: list[str] = []


class AnalysisResult(BaseModel):
    themes: list[str]
    plot_holes: list[str]
    suggestions: list[str]
    tension_level: int


class TwistResult(BaseModel):
    description: str
    impact_level: int
    affected_characters: list[str]
