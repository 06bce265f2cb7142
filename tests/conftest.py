import os
import sys
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

# Ensure the packages can be imported without installing
sys.path.append(os.getcwd())


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start=1_700_000_000_000):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


class FakeInventory:
    """Inventory system with per-item categories and a stack limit."""

    def __init__(self, item_categories, max_stack=99):
        self.item_categories = item_categories
        self.max_stack = max_stack
        self.categories = {
            name: {"items": []} for name in sorted(set(item_categories.values()))
        }
        self.equipped = None
        self.schedule_ui_update = MagicMock()

    def add_item(self, item_id, quantity):
        category = self.item_categories.get(item_id)
        if category is None or quantity > self.max_stack:
            return False
        self.categories[category]["items"].append({"id": item_id, "quantity": quantity})
        return True


class FakeChests:
    def __init__(self):
        self.chests = {}

    def add_chest(self, chest_id, data):
        self.chests[chest_id] = dict(data)


@pytest.fixture
def event_bus():
    """Fresh EventBus for each test."""
    from meadow_engine.core.events import EventBus
    return EventBus()


@pytest.fixture
def registry(event_bus):
    """Empty Registry on the test event bus."""
    from meadow_engine.core.registry import Registry
    return Registry(event_bus)


@pytest.fixture
def store():
    """In-memory backing store."""
    from meadow_engine.storage import MemoryStore
    return MemoryStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    from meadow_save.config import SaveConfig
    return SaveConfig()


@pytest.fixture
def game(registry):
    """Registry populated with a full set of live subsystems."""
    player = SimpleNamespace(x=128.0, y=256.0, facing_direction="left")
    player_system = SimpleNamespace(
        needs=SimpleNamespace(hunger=40, thirst=55.5, energy=70),
        active_character=SimpleNamespace(id="stella", name="Stella"),
    )
    currency = SimpleNamespace(current_money=2500, notify_change=MagicMock())
    weather = SimpleNamespace(
        current_time=14 * 60,
        day=12,
        month=3,
        year=2,
        season="Summer",
        weather_type="rain",
        weather_timer=30,
        next_weather_change=90,
        ambient_darkness=0.25,
        rain_particles=[{"x": 1, "y": 2}],
        fog_layers=[],
        snow_particles=[],
        lightning_flashes=[{"t": 3}],
        is_sleeping=True,
        sleep_transition_progress=0.6,
        sleep_phase="fading",
        sleep_timer_acc=1200,
        pause=MagicMock(),
        resume=MagicMock(),
        update_ambient_light=MagicMock(),
        get_weekday=MagicMock(return_value="Tuesday"),
    )
    world = {
        "trees": [{"x": 10, "y": 20, "type": "oak"}],
        "rocks": [{"x": 5, "y": 5}],
        "thickets": [],
        "houses": [],
        "placedBuildings": [{"id": "barn", "x": 300, "y": 100}],
        "placedWells": [],
        "animals": [{"kind": "cow", "name": "Daisy"}],
    }
    inventory = FakeInventory({101: "seeds", 202: "tools", 303: "tools"})
    inventory.categories["seeds"]["items"].append({"id": 101, "quantity": 12})
    inventory.categories["tools"]["items"].append({"id": 202, "quantity": 1})
    inventory.equipped = {"id": 202, "category": "tools"}
    chests = FakeChests()
    chests.chests["chest_1"] = {"id": "chest_1", "x": 64, "y": 96, "contents": {"0": {"id": 101, "quantity": 3}}}

    registry.set_object("currentPlayer", player)
    registry.register_system("player", player_system)
    registry.register_system("currency", currency)
    registry.register_system("weather", weather)
    registry.set_object("world", world)
    registry.register_system("inventory", inventory)
    registry.register_system("chest", chests)

    return SimpleNamespace(
        registry=registry,
        player=player,
        player_system=player_system,
        currency=currency,
        weather=weather,
        world=world,
        inventory=inventory,
        chests=chests,
    )


@pytest.fixture
def manager(registry, store, clock):
    """SaveManager over an empty registry."""
    from meadow_save.manager import SaveManager
    return SaveManager(registry, store, clock=clock)


@pytest.fixture
def game_manager(game, store, clock):
    """SaveManager over the populated registry."""
    from meadow_save.manager import SaveManager
    return SaveManager(game.registry, store, clock=clock)
