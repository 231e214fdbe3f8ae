"""Storytelling tools for the general chat path.

These results feed the model's narration only; they never touch PlayerState.
"""

from __future__ import annotations

import uuid
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, Field

from lore_engine.domain.catalog import Tool, ToolCatalog, capped_text, clamped_int, one_of
from lore_engine.models.result import AnalysisResult, CharacterResult, SceneResult, TwistResult
from lore_engine.security.content_filter import filter_text

GENRES = ("fantasy", "sci-fi", "mystery", "horror")
MOODS = ("tense", "peaceful", "mysterious", "epic")
CHARACTER_ROLES = ("protagonist", "antagonist", "mentor", "sidekick")

StoryContext = Annotated[str, capped_text(4000)]


def _trait_list(v: object) -> list[str]:
    if not isinstance(v, (list, tuple)):
        v = [] if v is None else [v]
    traits = (filter_text(str(t).strip()) or "" for t in v)
    return [t[:40] for t in traits if t][:8]


class GenerateSceneArgs(BaseModel):
    prompt: Annotated[str, capped_text(500)] = Field(description="The scene prompt or description")
    genre: Annotated[str, one_of(GENRES, "fantasy")] = Field(
        default="fantasy", description="The genre (fantasy, sci-fi, mystery, horror)"
    )
    mood: Annotated[str, one_of(MOODS, "mysterious")] = Field(
        default="mysterious", description="The mood (tense, peaceful, mysterious, epic)"
    )


class CreateCharacterArgs(BaseModel):
    name: Annotated[str, capped_text(60)] = Field(description="The character's name")
    role: Annotated[str, one_of(CHARACTER_ROLES, "sidekick")] = Field(
        default="sidekick", description="The character's role (protagonist, antagonist, mentor, sidekick)"
    )
    backstory: Annotated[str, capped_text(1000)] = Field(default="", description="The character's backstory")
    traits: Annotated[list[str], BeforeValidator(_trait_list)] = Field(
        default_factory=list, description="Character personality traits"
    )


class AnalyzeStoryArgs(BaseModel):
    story_context: StoryContext = Field(description="A summary of the current story context")


class SuggestTwistArgs(BaseModel):
    story_context: StoryContext = Field(default="", description="A summary of the current story context")
    current_tension: Annotated[int, clamped_int(1, 10)] = Field(
        default=5, description="Current tension level from 1 (calm) to 10 (climax)"
    )


def generate_scene(args: GenerateSceneArgs) -> SceneResult:
    return SceneResult(
        id=f"scene-{uuid.uuid4().hex}",
        title=f"{args.mood.capitalize()} {args.genre.capitalize()} Scene",
        description=f"A {args.mood} {args.genre} scene: {args.prompt}",
        characters=[f"Protagonist of the {args.genre} tale"],
        location=f"A {args.mood} {args.genre} setting",
        mood=args.mood,
    )


def create_character(args: CreateCharacterArgs) -> CharacterResult:
    return CharacterResult(
        id=f"char-{uuid.uuid4().hex}",
        name=args.name,
        role=args.role,
        backstory=args.backstory,
        traits=args.traits,
    )


def analyze_story(args: AnalyzeStoryArgs) -> AnalysisResult:
    """Cheap deterministic heuristics; the model does the real reading."""
    text = args.story_context
    lowered = text.lower()
    themes = ["identity", "conflict"]
    if "magic" in lowered:
        themes.append("supernatural")
    if "love" in lowered:
        themes.append("romance")
    plot_holes = []
    if len(text) < 50:
        plot_holes.append("Story context is too brief to identify a clear narrative arc")
    return AnalysisResult(
        themes=themes,
        plot_holes=plot_holes,
        suggestions=[
            "Consider deepening character motivations",
            "Add environmental details to ground the reader",
        ],
        tension_level=max(1, min(10, len(text) // 100)),
    )


def suggest_twist(args: SuggestTwistArgs) -> TwistResult:
    tension = args.current_tension
    if tension <= 3:
        description = "A mysterious stranger arrives with knowledge that challenges the protagonist's beliefs"
    elif tension <= 6:
        description = "An ally reveals a hidden agenda that shifts the power dynamic"
    elif tension <= 8:
        description = "The true antagonist is unmasked: someone the protagonist trusted all along"
    else:
        description = "The world itself changes: what was believed to be real is revealed as an illusion"

    affected = ["protagonist"]
    if tension > 5:
        affected.append("antagonist")
    if tension > 7:
        affected.append("mentor")
    return TwistResult(
        description=description,
        impact_level=min(10, tension + 2),
        affected_characters=affected,
    )


STORY_TOOLS: tuple[Tool, ...] = (
    Tool("GenerateScene",
         "Generates a new scene for the interactive fiction story based on a prompt and genre",
         GenerateSceneArgs, generate_scene),
    Tool("CreateCharacter", "Creates a new character for the interactive fiction story",
         CreateCharacterArgs, create_character),
    Tool("AnalyzeStory",
         "Analyzes the current story state and returns themes, plot holes, and suggestions",
         AnalyzeStoryArgs, analyze_story),
    Tool("SuggestTwist", "Suggests a plot twist based on the current story state and tension level",
         SuggestTwistArgs, suggest_twist),
)


def story_catalog() -> ToolCatalog:
    return ToolCatalog(STORY_TOOLS)
