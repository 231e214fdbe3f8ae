"""Unit tests for the achievement catalog and sweep."""

from lore_engine.domain import achievements
from lore_engine.models.player import Item, PlayerState


def test_catalog_shape():
    ids = [a.id for a in achievements.CATALOG]
    assert len(ids) == 18
    assert len(set(ids)) == 18
    assert {a.category for a in achievements.CATALOG} == {
        "combat", "exploration", "social", "wealth", "progression",
    }
    assert set(achievements.STATE_PREDICATES) <= set(ids)


def test_get_achievement():
    assert achievements.get_achievement("rich").title == "Filthy Rich"
    assert achievements.get_achievement("nope") is None


def test_fresh_state_earns_nothing():
    state = PlayerState(id="u1")
    assert achievements.sweep(state) == []
    assert state.unlocked_achievements == set()


def test_sweep_unlocks_state_predicates():
    state = PlayerState(id="u1", gold=600, level=5, location="Dark Forest")
    state.visited_locations.update({"Dark Forest", "Mountain Path", "Dragon's Peak", "Market Square"})
    state.inventory.append(Item(name="Arrow", quantity=10))

    earned = {a.id for a in achievements.sweep(state)}
    assert earned == {
        "first-steps", "explorer", "hoarder", "wealthy", "rich", "level-2", "level-5",
    }
    assert earned <= state.unlocked_achievements


def test_sweep_reports_only_new():
    state = PlayerState(id="u1", gold=150)
    assert [a.id for a in achievements.sweep(state)] == ["wealthy"]
    assert achievements.sweep(state) == []


def test_sweep_never_removes():
    state = PlayerState(id="u1", gold=150)
    achievements.sweep(state)
    state.gold = 0
    achievements.sweep(state)
    assert "wealthy" in state.unlocked_achievements


def test_event_achievements_not_swept():
    state = PlayerState(id="u1")
    achievements.sweep(state)
    for event_id in ("first-blood", "critical-hit", "first-contact", "first-loot", "secret-keeper"):
        assert event_id not in state.unlocked_achievements
