"""d20 ability-check roller."""

from __future__ import annotations

import random
from dataclasses import dataclass

STAT_MODIFIERS: dict[str, int] = {
    "strength": 2,
    "dexterity": 2,
    "wisdom": 1,
    "charisma": 1,
}


@dataclass
class CheckRoll:
    roll: int
    modifier: int
    total: int
    difficulty: int
    success: bool
    critical_success: bool
    critical_failure: bool


def roll_check(stat: str, difficulty: int, rng: random.Random | None = None) -> CheckRoll:
    """Roll 1d20 plus the stat modifier against a difficulty class.

    Args:
        stat: Lower-case stat name; unknown stats get no modifier.
        difficulty: Target number the total must meet or exceed.
        rng: Optional random source (tests pass a seeded one).

    Returns:
        A CheckRoll. A natural 20 always succeeds and a natural 1 always fails.
    """
    d20 = (rng or random).randint(1, 20)
    modifier = STAT_MODIFIERS.get(stat, 0)
    total = d20 + modifier
    critical = d20 == 20
    fumble = d20 == 1
    return CheckRoll(
        roll=d20,
        modifier=modifier,
        total=total,
        difficulty=difficulty,
        success=critical or (total >= difficulty and not fumble),
        critical_success=critical,
        critical_failure=fumble,
    )
