"""Static reference data — world map, bestiary and Twist of Fate table."""

from __future__ import annotations

import random
from dataclasses import dataclass, field

from lore_engine.models.player import INITIAL_LOCATION


# --- World map ---


@dataclass(frozen=True)
class MapLocation:
    name: str
    emoji: str
    x: int
    y: int
    connections: tuple[str, ...] = field(default_factory=tuple)


LOCATIONS: tuple[MapLocation, ...] = (
    MapLocation(INITIAL_LOCATION, "✖️", 4, 4,
                ("Dark Forest", "Village of Thornwall", "Mountain Path", "Swamp of Sorrows")),
    MapLocation("Dark Forest", "🌲", 2, 2, ("The Crossroads", "Ancient Temple", "Witch's Hut")),
    MapLocation("Village of Thornwall", "🏘️", 6, 2,
                ("The Crossroads", "Castle Ironhold", "Market Square")),
    MapLocation("Mountain Path", "⛰️", 4, 1, ("The Crossroads", "Dragon's Peak", "Dwarven Mines")),
    MapLocation("Swamp of Sorrows", "🏚️", 4, 7, ("The Crossroads", "Sunken Ruins", "Witch's Hut")),
    MapLocation("Ancient Temple", "🏛️", 1, 1, ("Dark Forest",)),
    MapLocation("Witch's Hut", "🏠", 1, 5, ("Dark Forest", "Swamp of Sorrows")),
    MapLocation("Castle Ironhold", "🏰", 8, 1, ("Village of Thornwall",)),
    MapLocation("Market Square", "🏪", 7, 3, ("Village of Thornwall",)),
    MapLocation("Dragon's Peak", "🐉", 4, 0, ("Mountain Path",)),
    MapLocation("Dwarven Mines", "⛏️", 6, 0, ("Mountain Path",)),
    MapLocation("Sunken Ruins", "🗿", 3, 8, ("Swamp of Sorrows",)),
)


def canonical_location(name: str) -> str | None:
    """Return the canonical spelling of a known location (case-insensitive)."""
    lowered = name.strip().lower()
    for loc in LOCATIONS:
        if loc.name.lower() == lowered:
            return loc.name
    return None


def get_connections(location: str) -> tuple[str, ...]:
    canonical = canonical_location(location)
    for loc in LOCATIONS:
        if loc.name == canonical:
            return loc.connections
    return ()


def render_map(current: str, visited: set[str]) -> str:
    """Text map: current place bracketed, visited named, adjacent shown as ???."""
    reachable = {c for loc in LOCATIONS if loc.name in visited for c in loc.connections}
    lines = ["+------------------------------------+",
             "|            WORLD MAP               |",
             "+------------------------------------+"]
    for loc in LOCATIONS:
        if loc.name == current:
            marker, label = f"[{loc.emoji}]", f"> {loc.name} <"
        elif loc.name in visited:
            marker, label = f" {loc.emoji} ", loc.name
        elif loc.name in reachable:
            marker, label = " ? ", "???"
        else:
            continue
        lines.append(f"| {marker} {label:<30} |")
    explored = len([loc for loc in LOCATIONS if loc.name in visited])
    lines.append("+------------------------------------+")
    lines.append(f"| Explored: {explored}/{len(LOCATIONS)} locations".ljust(37) + "|")
    lines.append("+------------------------------------+")
    return "\n".join(lines)


# --- Bestiary ---


@dataclass(frozen=True)
class Creature:
    name: str
    emoji: str
    level: int
    health: int
    attack_dc: int
    damage: int
    description: str
    abilities: tuple[str, ...]
    weakness: str
    xp_reward: int
    gold_drop: int


CREATURES: tuple[Creature, ...] = (
    Creature("Goblin Scout", "👺", 1, 15, 8, 3,
             "A sneaky goblin armed with a rusty dagger. Not dangerous alone, but they rarely are.",
             ("Nimble Dodge (can avoid one attack per encounter)",), "Fire", 25, 5),
    Creature("Dire Rat", "🐀", 1, 10, 6, 2,
             "An oversized rodent with glowing red eyes and yellowed fangs.",
             ("Disease Bite (10% chance to poison on hit)",), "Light", 15, 2),
    Creature("Skeleton Warrior", "💀", 2, 25, 10, 5,
             "The animated bones of a fallen soldier, wielding a notched sword.",
             ("Undead Resilience (immune to poison)", "Bone Shield (+2 to defense)"),
             "Bludgeoning", 40, 10),
    Creature("Shadow Wisp", "👻", 3, 20, 12, 7,
             "A writhing mass of dark energy that whispers forgotten secrets.",
             ("Incorporeal (physical attacks deal half damage)", "Life Drain (heals for damage dealt)"),
             "Radiant/Holy magic", 60, 15),
    Creature("Bandit Captain", "🗡️", 3, 35, 13, 8,
             "A charismatic rogue who leads a gang of cutthroats from the shadows.",
             ("Riposte (counterattack on failed enemy attack)", "Rally (buffs nearby allies)"),
             "Can be bribed or persuaded", 75, 50),
    Creature("Forest Troll", "🧌", 4, 60, 11, 10,
             "A hulking brute covered in moss and bark. Its wounds close almost as fast as they open.",
             ("Regeneration (recovers 5 HP per round)", "Crushing Blow (double damage on crit)"),
             "Fire (stops regeneration)", 100, 25),
    Creature("Crystal Golem", "💎", 5, 80, 14, 12,
             "A construct of living crystal, pulsing with arcane energy.",
             ("Magic Resistance (halves spell damage)", "Shard Burst (area attack when below half health)"),
             "Sonic/Thunder damage", 150, 40),
    Creature("Wraith Lord", "🦇", 6, 50, 15, 15,
             "An ancient king who refused to die. His crown still sits upon a skull wreathed in cold flame.",
             ("Dread Aura (fear check DC 14)", "Phase Walk (teleport 30ft)", "Soul Rend (ignores armor)"),
             "Sunlight (deals double damage, prevents phasing)", 200, 100),
    Creature("Swamp Hydra", "🐍", 7, 100, 13, 18,
             "Three serpentine heads rise from the murky water, each dripping with venom.",
             ("Multi-Attack (attacks once per head)", "Regrow Head (if not cauterized with fire)",
              "Venomous Bite (poison for 3 rounds)"),
             "Fire (prevents head regrowth)", 250, 60),
    Creature("Ancient Dragon", "🐉", 10, 200, 18, 30,
             "A mountain of scales and fury. Legends say it hoards not gold, but souls.",
             ("Breath Weapon (cone of fire, 40 damage)", "Frightful Presence (DC 18 fear)",
              "Tail Sweep (hits all adjacent)", "Legendary Resistance (auto-succeeds 3 saves per day)"),
             "Ancient rune weapons, dragonsbane herbs", 1000, 500),
)


def find_creature(name: str) -> Creature | None:
    lowered = name.strip().lower()
    for creature in CREATURES:
        if creature.name.lower() == lowered:
            return creature
    return None


def top_tier_creature() -> Creature:
    return max(CREATURES, key=lambda c: c.level)


def creatures_for_level(player_level: int) -> list[Creature]:
    """Creatures from one level below to two levels above the player."""
    low = max(1, player_level - 1)
    high = player_level + 2
    return [c for c in CREATURES if low <= c.level <= high]


def format_bestiary(player_level: int) -> str:
    available = creatures_for_level(player_level)
    if not available:
        return ""
    lines = [
        f"- {c.emoji} {c.name} (Lvl {c.level}, HP {c.health}, ATK DC {c.attack_dc}, "
        f"DMG {c.damage}, XP {c.xp_reward}, {c.gold_drop}gp): {c.description} "
        f"Abilities: {', '.join(c.abilities)}. Weakness: {c.weakness}"
        for c in available
    ]
    return f"AVAILABLE CREATURES FOR ENCOUNTERS (player level {player_level}):\n" + "\n".join(lines)


# --- Twist of Fate ---


@dataclass(frozen=True)
class Twist:
    title: str
    prompt: str
    emoji: str
    category: str


TWISTS: tuple[Twist, ...] = (
    Twist("Earthquake!", "A sudden earthquake shakes the ground violently. Cracks appear in the earth "
          "around you, and something ancient stirs beneath the surface.", "🌋", "environment"),
    Twist("Eclipse", "The sun vanishes behind an unnatural darkness. Stars appear in the daytime sky, "
          "and shadows begin to move on their own.", "🌑", "environment"),
    Twist("Fog of Whispers", "A thick, luminous fog rolls in from nowhere. Within it, you hear whispered "
          "voices telling fragments of a prophecy about you.", "🌫️", "environment"),
    Twist("Wild Magic Surge", "The air crackles with untamed magical energy. Every spell and enchantment "
          "in the area goes haywire.", "⚡", "environment"),
    Twist("Ambush!", "Enemies burst from hiding! You're surrounded and must fight or find a clever way "
          "to escape.", "⚔️", "combat"),
    Twist("Mysterious Stranger", "A cloaked figure steps from the shadows. They claim to know your "
          "destiny, but their intentions are unclear.", "🕵️", "encounter"),
    Twist("Merchant of Wonders", "A peculiar merchant appears with impossible wares: bottled starlight, "
          "maps to hidden places, and a mirror that shows the future.", "🏪", "encounter"),
    Twist("Wounded Creature", "You find a magnificent creature, half-dragon and half-stag, wounded and "
          "dying. It looks at you with intelligent eyes.", "🦌", "encounter"),
    Twist("Hidden Passage", "The wall beside you suddenly shifts, revealing a narrow passage descending "
          "into darkness.", "🚪", "discovery"),
    Twist("Ancient Artifact", "Something gleams in the rubble: an artifact from a civilization that "
          "shouldn't exist. It seems to recognize you.", "💫", "discovery"),
    Twist("Portal Rift", "A shimmering rift tears open in the air before you, showing a glimpse of "
          "another world entirely.", "🌀", "discovery"),
    Twist("Treasure Map Fragment", "You discover a fragment of an old map marking a location very close "
          "to where you are now.", "🗺️", "discovery"),
    Twist("Memory Flash", "A vivid memory floods your mind, but it's not YOUR memory. It belongs to "
          "someone who stood in this exact spot, centuries ago.", "🧠", "personal"),
    Twist("Cursed!", "A malevolent presence brushes against your soul. A curse has taken hold.",
          "☠️", "personal"),
    Twist("Rival Appears", "Someone from your past arrives, a rival who has been tracking you. They "
          "challenge you to settle an old score.", "🦹", "personal"),
    Twist("Divine Vision", "A deity notices you and sends a vision: a task that will grant you great "
          "power if completed.", "👁️", "personal"),
)


def random_twist(category: str | None = None) -> Twist:
    """Pick a twist, optionally from one category; unknown categories fall back to any."""
    if category:
        pool = [t for t in TWISTS if t.category == category.strip().lower()]
        if pool:
            return random.choice(pool)
    return random.choice(TWISTS)
