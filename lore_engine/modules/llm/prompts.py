"""Prompt templates for the Dungeon Master and the story assistant."""

from __future__ import annotations

from collections.abc import Sequence
from string import Template

from lore_engine.domain.world import format_bestiary, get_connections
from lore_engine.infra.memory_store import StoryMemory
from lore_engine.models.player import PlayerState

# --- Game path ---
DM_SYSTEM_PROMPT = (
    "You are the Dungeon Master (DM) of LoreEngine, an interactive fiction game.\n\n"
    "RULES:\n"
    '- You narrate the story in second person ("You enter the tavern...")\n'
    "- Keep descriptions vivid but concise (2-4 paragraphs per scene)\n"
    '- Always end with a prompt for player action ("What do you do?")\n'
    "- Use the game tools to enforce mechanics: roll dice for risky actions, track items, manage health\n"
    "- Start each NEW scene with an ASCII art block (5-10 lines) depicting the location\n"
    "- Wrap ASCII art in triple backticks with 'ascii' label: ```ascii\\n...\\n```\n"
    "- Never reveal NPC hidden secrets until the player discovers them through gameplay\n"
    "- Be fair but challenging. Not every action succeeds.\n"
    "- When a player takes damage, call ModifyHealth. When they find items, call GiveItem.\n"
    "- For any risky action (combat, stealth, persuasion), call RollCheck first\n"
    "- Track the player's location with MovePlayer when they travel\n"
    "- When the player defeats a creature, call WinCombat with its name\n"
    "- Award XP for clever solutions and completing objectives\n\n"
    "TONE: Dark fantasy with moments of humor. Think Discworld meets Dark Souls."
)

GAME_CONTEXT = Template(
    "CURRENT GAME STATE:\n"
    "Player: $name the $character_class (Level $level)\n"
    "HP: $health/$max_health | Gold: $gold | XP: $experience\n"
    "Location: $location\n"
    "Exits: $exits\n"
    "Stats: STR $strength | DEX $dexterity | WIS $wisdom | CHA $charisma\n"
    "Inventory: $inventory"
)

# --- Chat path ---
STORY_SYSTEM_PROMPT = (
    "You are a helpful assistant in the LoreEngine creative writing application. "
    "Use the story tools to generate scenes, create characters, analyze drafts "
    "and suggest plot twists when they help the writer."
)


def build_game_context(state: PlayerState) -> str:
    inventory = ", ".join(f"{i.emoji} {i.name} (x{i.quantity})" for i in state.inventory)
    context = GAME_CONTEXT.substitute(
        name=state.name,
        character_class=state.character_class,
        level=state.level,
        health=state.health,
        max_health=state.max_health,
        gold=state.gold,
        experience=state.experience,
        location=state.location,
        exits=", ".join(get_connections(state.location)) or "unknown",
        strength=state.stats.get("strength", 10),
        dexterity=state.stats.get("dexterity", 10),
        wisdom=state.stats.get("wisdom", 10),
        charisma=state.stats.get("charisma", 10),
        inventory=inventory or "(empty)",
    )
    bestiary = format_bestiary(state.level)
    if bestiary:
        context += "\n\n" + bestiary
    return context


def format_memories(memories: Sequence[StoryMemory]) -> str:
    if not memories:
        return ""
    lines = [f"- [{m.memory_type}] {m.content}" for m in memories]
    return "PAST EVENTS THE PLAYER REMEMBERS:\n" + "\n".join(lines)


def build_dm_prompt(state: PlayerState, memories: Sequence[StoryMemory] = ()) -> str:
    prompt = f"{DM_SYSTEM_PROMPT}\n\n{build_game_context(state)}"
    recalled = format_memories(memories)
    if recalled:
        prompt += "\n\n" + recalled
    return prompt
