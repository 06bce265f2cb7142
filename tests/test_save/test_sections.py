import math
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from meadow_save.events import SaveEvent
from meadow_save.sections import (
    ChestSection,
    CurrencySection,
    InventorySection,
    PlayerSection,
    WeatherSection,
    WorldSection,
    default_sections,
)
from meadow_save.sections.base import call_hook, read_field, to_plain, write_field


# Helpers

def test_read_and_write_field_accept_objects_and_mappings():
    obj = SimpleNamespace(a=1, b=None)
    mapping = {"a": 1, "b": None}

    for target in (obj, mapping):
        assert read_field(target, "a") == 1
        assert read_field(target, "b", "default") == "default"
        assert read_field(target, "missing", 5) == 5
        write_field(target, "c", 3)
        assert read_field(target, "c") == 3

    assert read_field(None, "a", "x") == "x"


def test_call_hook_is_optional():
    hook = MagicMock(return_value="done")

    assert call_hook(SimpleNamespace(refresh=hook), "refresh", 1) == "done"
    hook.assert_called_once_with(1)
    assert call_hook(SimpleNamespace(), "refresh") is None
    assert call_hook({"refresh": "not callable"}, "refresh") is None
    assert call_hook(None, "refresh") is None


def test_to_plain_copies_and_drops_unrepresentable():
    class Tree:
        def __init__(self):
            self.x = 1
            self.sprite = object()
            self.grow = lambda: None
            self._cache = {"hidden": True}
            self.tags = ("oak", "old")
            self.height = math.inf

    source = {"tree": Tree(), 5: "five", ("tuple",): "skipped"}
    plain = to_plain(source)

    assert plain == {"tree": {"x": 1, "tags": ["oak", "old"]}, "5": "five"}


def test_to_plain_breaks_cycles():
    parent = {"name": "barn", "children": []}
    child = SimpleNamespace(name="hay", parent=parent)
    parent["children"].append(child)
    loop = [1]
    loop.append(loop)

    assert to_plain(parent) == {"name": "barn", "children": [{"name": "hay"}]}
    assert to_plain(loop) == [1]


def test_to_plain_keeps_shared_values():
    spot = {"x": 1, "y": 2}

    assert to_plain({"a": spot, "b": spot}) == {"a": {"x": 1, "y": 2}, "b": {"x": 1, "y": 2}}


def test_to_plain_exclude():
    world = {"trees": []}
    tree = SimpleNamespace(x=3, world=world)

    assert to_plain(tree, exclude=(world,)) == {"x": 3}
    assert to_plain(world, exclude=(world,)) is None


def test_to_plain_cuts_deep_chains():
    chain = {}
    node = chain
    for _ in range(100):
        node["next"] = {}
        node = node["next"]

    plain = to_plain(chain)

    depth = 0
    while "next" in plain:
        plain = plain["next"]
        depth += 1
    assert depth < 100


def test_default_sections_order(config):
    assert list(default_sections(config)) == [
        "player", "inventory", "currency", "weather", "world", "chests",
    ]


# Player

def test_player_gather_defaults_when_missing(registry, config):
    snapshot = PlayerSection(config).gather(registry).to_data()

    assert snapshot == {
        "x": 400,
        "y": 300,
        "facingDirection": "down",
        "characterId": "stella",
        "needs": {"hunger": 100, "thirst": 100, "energy": 100},
    }


def test_player_gather_reads_live_state(game, config):
    game.player_system.active_character.id = "rowan"

    snapshot = PlayerSection(config).gather(game.registry).to_data()

    assert snapshot["x"] == 128.0
    assert snapshot["facingDirection"] == "left"
    assert snapshot["characterId"] == "rowan"
    assert snapshot["needs"]["thirst"] == 55.5


def test_player_gather_uses_system_current_player(registry, config):
    registry.register_system("player", SimpleNamespace(current_player={"x": 7, "y": 8}))

    snapshot = PlayerSection(config).gather(registry)

    assert (snapshot.x, snapshot.y) == (7, 8)


def test_player_apply_position_and_needs(game, config):
    PlayerSection(config).apply(game.registry, {
        "x": 1, "y": 2, "facingDirection": "up", "characterId": "stella",
        "needs": {"hunger": 10, "thirst": 20},
    })

    assert (game.player.x, game.player.y, game.player.facing_direction) == (1, 2, "up")
    assert game.player_system.needs.hunger == 10
    assert game.player_system.needs.thirst == 20
    assert game.player_system.needs.energy == 100


def test_player_apply_ignores_bad_values(game, config):
    PlayerSection(config).apply(game.registry, {"x": "left", "y": math.nan, "facingDirection": 3})

    assert (game.player.x, game.player.y, game.player.facing_direction) == (128.0, 256.0, "left")


def test_player_needs_skipped_for_other_character(game, config):
    PlayerSection(config).apply(game.registry, {
        "characterId": "rowan", "needs": {"hunger": 1, "thirst": 1, "energy": 1},
    })

    assert game.player_system.needs.hunger == 40


# Currency

def test_currency_gather(game, registry, config):
    assert CurrencySection(config).gather(game.registry).money == 2500


def test_currency_gather_default(registry, config):
    assert CurrencySection(config).gather(registry).money == 1000


@pytest.mark.parametrize("money", [-500, math.inf, math.nan, "100", True, None])
def test_currency_apply_rejects_invalid(game, config, money):
    CurrencySection(config).apply(game.registry, {"money": money})

    assert game.currency.current_money == 2500
    game.currency.notify_change.assert_not_called()


def test_currency_apply_valid(game, config):
    CurrencySection(config).apply(game.registry, {"money": 0})

    assert game.currency.current_money == 0
    game.currency.notify_change.assert_called_once()


# Weather

def test_weather_gather_excludes_transient_state(game, config):
    snapshot = WeatherSection(config).gather(game.registry).to_data()

    assert snapshot["day"] == 12
    assert snapshot["weatherType"] == "rain"
    assert snapshot["currentTime"] == 14 * 60
    for transient in ("rainParticles", "rain_particles", "isSleeping", "sleepPhase"):
        assert transient not in snapshot


def test_weather_gather_replaces_non_finite_numbers(game, config):
    game.weather.ambient_darkness = math.nan
    game.weather.weather_timer = math.inf

    snapshot = WeatherSection(config).gather(game.registry)

    assert snapshot.ambient_darkness == 0
    assert snapshot.weather_timer == 0
    assert snapshot.day == 12


def test_weather_gather_none_without_system(registry, config):
    assert WeatherSection(config).gather(registry) is None


def test_weather_apply_resets_transient_state(game, config, event_bus):
    times = []
    event_bus.subscribe(SaveEvent.TIME_CHANGED, lambda e: times.append(e.data), weak=False)
    rain = game.weather.rain_particles

    WeatherSection(config).apply(game.registry, {"day": 20, "season": "Autumn"})

    weather = game.weather
    assert weather.day == 20
    assert weather.season == "Autumn"
    assert weather.month == 3
    assert rain == [] and weather.rain_particles is rain
    assert weather.lightning_flashes == []
    assert weather.is_sleeping is False
    assert weather.sleep_transition_progress == 0
    assert weather.sleep_phase is None
    assert weather.sleep_timer_acc == 0
    weather.pause.assert_called_once()
    weather.resume.assert_called_once()
    weather.update_ambient_light.assert_called_once()
    assert times == [{"day": 20, "time": 14 * 60, "weekday": "Tuesday"}]


def test_weather_resumes_when_apply_fails(game, config):
    game.weather.update_ambient_light.side_effect = RuntimeError("no light")

    with pytest.raises(RuntimeError):
        WeatherSection(config).apply(game.registry, {"day": 2})

    game.weather.resume.assert_called_once()


def test_weather_reset_uses_system_reset(game, config):
    game.weather.reset = MagicMock()

    assert WeatherSection(config).reset_for_new_game(game.registry) is True
    game.weather.reset.assert_called_once()


def test_weather_reset_without_reset_method(game, config):
    assert WeatherSection(config).reset_for_new_game(game.registry) is True

    weather = game.weather
    assert (weather.current_time, weather.day, weather.month, weather.year) == (360, 1, 1, 1)
    assert (weather.season, weather.weather_type) == ("Spring", "clear")
    assert weather.next_weather_change == 120
    assert weather.rain_particles == []


def test_weather_reset_without_system(registry, config):
    assert WeatherSection(config).reset_for_new_game(registry) is False


# World

def test_world_gather_copies(game, config):
    snapshot = WorldSection(config).gather(game.registry)

    assert snapshot["trees"] == [{"x": 10, "y": 20, "type": "oak"}]
    assert snapshot["trees"][0] is not game.world["trees"][0]
    assert set(snapshot) == set(config.world_collections)


def test_world_gather_without_world(registry, config):
    snapshot = WorldSection(config).gather(registry)

    assert all(entities == [] for entities in snapshot.values())


class Tree:
    def __init__(self, world, x, y, kind="oak"):
        self.world = world
        self.x = x
        self.y = y
        self.kind = kind
        self.position = SimpleNamespace(x=x, y=y)
        self.draw = lambda: None


class UnreadableEntity:
    @property
    def __dict__(self):
        raise RuntimeError("sprite not loaded")


def test_world_gather_object_entities_drop_world_links(game, config):
    game.world["trees"].append(Tree(game.world, 7, 8))

    snapshot = WorldSection(config).gather(game.registry)

    assert snapshot["trees"][1] == {
        "x": 7, "y": 8, "kind": "oak", "position": {"x": 7, "y": 8},
    }
    assert snapshot["rocks"] == [{"x": 5, "y": 5}]


def test_world_gather_self_referencing_entity(game, config):
    rock = {"x": 1, "y": 2}
    rock["self"] = rock
    rock["neighbours"] = game.world["rocks"]
    game.world["rocks"].append(rock)

    snapshot = WorldSection(config).gather(game.registry)

    assert snapshot["rocks"][1] == {"x": 1, "y": 2}


def test_world_gather_skips_only_the_broken_entity(game, config, caplog):
    game.world["trees"].append(UnreadableEntity())
    game.world["trees"].append({"x": 30, "y": 40})

    snapshot = WorldSection(config).gather(game.registry)

    assert snapshot["trees"] == [{"x": 10, "y": 20, "type": "oak"}, {"x": 30, "y": 40}]
    assert "trees[1]" in caplog.text


def test_world_fallback_leaves_world_out(config):
    assert WorldSection(config).fallback() is None


def test_world_apply_replaces_collections(game, config):
    trees = game.world["trees"]

    WorldSection(config).apply(game.registry, {"trees": [{"x": 1, "y": 1}], "fences": [{"x": 0}]})

    assert trees == [{"x": 1, "y": 1}]
    assert game.world["trees"] is trees
    assert game.world["fences"] == [{"x": 0}]
    assert game.world["rocks"] == [{"x": 5, "y": 5}]


# Inventory

def test_inventory_gather(game, config):
    snapshot = InventorySection(config).gather(game.registry).to_data()

    assert snapshot["categories"]["seeds"] == [{"id": 101, "quantity": 12}]
    assert snapshot["equipped"] == {"id": 202, "category": "tools"}


def test_inventory_gather_equipped_object(game, config):
    game.inventory.equipped = SimpleNamespace(id=202, category="tools", owner=game.inventory)

    snapshot = InventorySection(config).gather(game.registry).to_data()

    assert snapshot["equipped"] == {"id": 202, "category": "tools"}


def test_inventory_gather_absent(registry, config):
    assert InventorySection(config).gather(registry) is None


def test_inventory_apply_restores_stacks(game, config, caplog):
    InventorySection(config).apply(game.registry, {
        "categories": {
            "seeds": [{"id": 101, "quantity": 4}],
            "tools": [{"id": 303, "quantity": 1}, {"id": 999, "quantity": 1}],
        },
        "equipped": {"id": 303},
    })

    inventory = game.inventory
    assert inventory.categories["seeds"]["items"] == [{"id": 101, "quantity": 4}]
    assert inventory.categories["tools"]["items"] == [{"id": 303, "quantity": 1}]
    assert inventory.equipped == {"id": 303}
    assert "999" in caplog.text
    inventory.schedule_ui_update.assert_called_once()


def test_inventory_equipped_cleared_when_missing(game, config):
    InventorySection(config).apply(game.registry, {
        "categories": {"seeds": [{"id": 101, "quantity": 1}]},
        "equipped": {"id": 202},
    })

    assert game.inventory.equipped is None
    assert game.inventory.categories["tools"]["items"] == []


# Chests

def test_chest_gather(game, config):
    snapshot = ChestSection(config).gather(game.registry)

    assert snapshot["chest_1"].to_data() == {
        "id": "chest_1", "x": 64, "y": 96, "contents": {"0": {"id": 101, "quantity": 3}},
    }


def test_chest_gather_items_linked_to_chest(game, config):
    chest = game.chests.chests["chest_1"]
    seeds = SimpleNamespace(id=101, quantity=3, chest=chest, system=game.chests)
    contents = {"0": seeds}
    contents["1"] = {"id": 202, "in": contents}
    chest["contents"] = contents

    snapshot = ChestSection(config).gather(game.registry)

    assert snapshot["chest_1"].contents == {
        "0": {"id": 101, "quantity": 3},
        "1": {"id": 202},
    }


def test_chest_apply_merges(game, config):
    game.chests.chests["chest_keep"] = {"id": "chest_keep", "x": 0, "y": 0, "contents": {"1": "x"}}

    ChestSection(config).apply(game.registry, {
        "chest_1": {"id": "chest_1", "x": 64, "y": 96, "contents": {}},
        "chest_new": {"id": "chest_new", "x": 5, "y": 6, "contents": {"2": {"id": 101}}},
    })

    chests = game.chests.chests
    assert chests["chest_1"]["contents"] == {}
    assert chests["chest_new"]["x"] == 5
    assert chests["chest_new"]["contents"] == {"2": {"id": 101}}
    assert chests["chest_keep"]["contents"] == {"1": "x"}


def test_chest_apply_creates_missing_map(registry, config):
    system = SimpleNamespace(chests=None)
    registry.register_system("chest", system)

    ChestSection(config).apply(registry, {"c": {"x": 1, "y": 2, "contents": {"0": 1}}})

    assert system.chests["c"]["contents"] == {"0": 1}
