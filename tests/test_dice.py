"""Unit tests for the d20 check roller."""

import random

from lore_engine.modules.dice.roller import STAT_MODIFIERS, CheckRoll, roll_check


class FixedRandom(random.Random):
    def __init__(self, value: int):
        super().__init__()
        self.value = value

    def randint(self, a, b):
        return self.value


class TestRollCheck:
    def test_roll_returns_correct_structure(self):
        result = roll_check("strength", 12)
        assert isinstance(result, CheckRoll)
        assert 1 <= result.roll <= 20
        assert result.modifier == 2
        assert result.total == result.roll + 2
        assert result.difficulty == 12

    def test_modifiers(self):
        assert STAT_MODIFIERS == {"strength": 2, "dexterity": 2, "wisdom": 1, "charisma": 1}
        assert roll_check("none", 10, FixedRandom(10)).modifier == 0

    def test_meets_difficulty(self):
        result = roll_check("wisdom", 11, FixedRandom(10))
        assert result.total == 11
        assert result.success is True

    def test_below_difficulty(self):
        assert roll_check("charisma", 15, FixedRandom(10)).success is False

    def test_natural_twenty_always_succeeds(self):
        result = roll_check("none", 30, FixedRandom(20))
        assert result.success is True
        assert result.critical_success is True
        assert result.critical_failure is False

    def test_natural_one_always_fails(self):
        result = roll_check("strength", 1, FixedRandom(1))
        assert result.total == 3
        assert result.success is False
        assert result.critical_failure is True

    def test_seeded_rolls_in_range(self):
        rng = random.Random(3)
        for _ in range(100):
            assert 1 <= roll_check("dexterity", 10, rng).roll <= 20
