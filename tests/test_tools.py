"""Unit tests for the tool catalogs and their argument clamping."""

import pytest
from pydantic import ValidationError

from lore_engine.domain.catalog import ToolCatalog, ToolNotFoundError
from lore_engine.domain.game_tools import GAME_TOOLS, game_catalog
from lore_engine.domain.story_tools import story_catalog
from lore_engine.models.result import (
    CombatWinResult,
    DiceCheckResult,
    HealthResult,
    ItemResult,
    NpcResult,
)


@pytest.fixture
def catalog() -> ToolCatalog:
    return game_catalog()


class TestCatalog:
    def test_game_tool_names(self, catalog):
        assert catalog.names() == [
            "RollCheck",
            "MovePlayer",
            "GiveItem",
            "TakeItem",
            "ModifyHealth",
            "ModifyGold",
            "AwardExperience",
            "GenerateNpc",
            "WinCombat",
        ]

    def test_story_tool_names(self):
        assert story_catalog().names() == ["GenerateScene", "CreateCharacter", "AnalyzeStory", "SuggestTwist"]

    def test_schema_surface(self, catalog):
        schemas = {s.name: s for s in catalog.list_tools()}
        roll = schemas["RollCheck"]
        assert roll.description
        assert roll.parameters["type"] == "object"
        assert set(roll.parameters["properties"]) == {"stat", "difficulty", "action"}
        assert "title" not in roll.parameters
        assert roll.parameters["required"] == ["stat"]

    def test_names_are_case_sensitive(self, catalog):
        assert "RollCheck" in catalog
        assert "rollcheck" not in catalog
        with pytest.raises(ToolNotFoundError):
            catalog.dispatch("rollcheck", {"stat": "strength"})

    def test_unknown_tool(self, catalog):
        with pytest.raises(ToolNotFoundError):
            catalog.dispatch("DeleteWorld", {})

    def test_missing_required_argument(self, catalog):
        with pytest.raises(ValidationError):
            catalog.dispatch("ModifyHealth", {})

    def test_uncoercible_argument(self, catalog):
        with pytest.raises(ValidationError):
            catalog.dispatch("ModifyGold", {"amount": "lots"})

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError):
            ToolCatalog(GAME_TOOLS + GAME_TOOLS[:1])


class TestArgumentClamping:
    def test_difficulty_clamped(self, catalog):
        high = catalog.dispatch("RollCheck", {"stat": "strength", "difficulty": 99})
        low = catalog.dispatch("RollCheck", {"stat": "strength", "difficulty": -4})
        assert high.difficulty == 30
        assert low.difficulty == 1

    def test_stat_lowercased(self, catalog):
        result = catalog.dispatch("RollCheck", {"stat": "  CHARISMA "})
        assert isinstance(result, DiceCheckResult)
        assert result.stat == "charisma"
        assert result.modifier == 1

    def test_unknown_stat_falls_back(self, catalog):
        result = catalog.dispatch("RollCheck", {"stat": "luck"})
        assert result.stat == "none"
        assert result.modifier == 0

    def test_health_delta_bounded(self, catalog):
        result = catalog.dispatch("ModifyHealth", {"amount": -10**9, "source": "meteor"})
        assert isinstance(result, HealthResult)
        assert result.amount == -500

    def test_xp_never_negative(self, catalog):
        assert catalog.dispatch("AwardExperience", {"amount": -50}).amount == 0

    def test_item_type_fallback_and_caps(self, catalog):
        result = catalog.dispatch("GiveItem", {"name": "x" * 500, "type": "Nuclear"})
        assert isinstance(result, ItemResult)
        assert result.added is True
        assert result.type == "misc"
        assert len(result.name) == 60

    def test_item_type_lowercased(self, catalog):
        assert catalog.dispatch("GiveItem", {"name": "Elixir", "type": "POTION"}).type == "potion"

    def test_take_item(self, catalog):
        result = catalog.dispatch("TakeItem", {"name": "Rope"})
        assert result.added is False

    def test_npc_attitude_fallback(self, catalog):
        result = catalog.dispatch(
            "GenerateNpc", {"name": "Mara", "attitude": "murderous", "hidden_secret": "She is a lich"}
        )
        assert isinstance(result, NpcResult)
        assert result.attitude == "neutral"
        assert result.hidden_secret == "She is a lich"

    def test_win_combat_resolves_bestiary(self, catalog):
        result = catalog.dispatch("WinCombat", {"enemy": "ancient dragon"})
        assert isinstance(result, CombatWinResult)
        assert result.enemy == "Ancient Dragon"
        assert result.creature_level == 10
        assert result.xp_reward == 1000

    def test_win_combat_unknown_enemy(self, catalog):
        result = catalog.dispatch("WinCombat", {"enemy": "Angry Goose"})
        assert result.enemy == "Angry Goose"
        assert result.creature_level is None

    def test_free_text_is_filtered(self, catalog):
        npc = catalog.dispatch(
            "GenerateNpc",
            {"name": "<b onclick=steal()>Mara</b>", "description": "<iframe src=evil></iframe> kind"},
        )
        assert npc.name == "<b>Mara</b>"
        assert "iframe" not in npc.description
        assert npc.description.endswith(" kind")

        enemy = catalog.dispatch("WinCombat", {"enemy": "javascript:Goose"})
        assert enemy.enemy == "Goose"

    def test_truncation_cannot_expose_a_tag(self, catalog):
        # 60-char cap lands right after "<script", turning "<scripts" into an opening tag.
        name = "x" * 53 + "<scripts"
        result = catalog.dispatch("TakeItem", {"name": name})
        assert "<script" not in result.name


class TestStoryTools:
    def test_generate_scene_fallbacks(self):
        result = story_catalog().dispatch("GenerateScene", {"prompt": "A storm", "genre": "western", "mood": "EPIC"})
        assert result.mood == "epic"
        assert "fantasy" in result.description

    def test_create_character_traits(self):
        result = story_catalog().dispatch(
            "CreateCharacter", {"name": "Ilsa", "role": "mentor", "traits": "stubborn"}
        )
        assert result.role == "mentor"
        assert result.traits == ["stubborn"]

    def test_create_character_traits_filtered(self):
        result = story_catalog().dispatch(
            "CreateCharacter", {"name": "Ilsa", "traits": ["brave", "<script>x</script>", "<svg/onload=x>"]}
        )
        assert result.traits == ["brave", "[content removed]", "<svg/>"]

    def test_analyze_story_short_context(self):
        result = story_catalog().dispatch("AnalyzeStory", {"story_context": "Magic returns."})
        assert "supernatural" in result.themes
        assert result.plot_holes
        assert 1 <= result.tension_level <= 10

    def test_suggest_twist_tension_clamped(self):
        result = story_catalog().dispatch("SuggestTwist", {"current_tension": 40})
        assert result.impact_level == 10
        assert result.affected_characters == ["protagonist", "antagonist", "mentor"]
