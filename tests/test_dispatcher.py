"""Tests for dispatcher module."""
import pytest

from aquasim._types import HOUR
from aquasim.actions import (
    ActionError,
    ActionResult,
    BuyDecor,
    BuyFish,
    BuyFood,
    BuyTool,
    DebugScenario,
    Feed,
    FinishClean,
    FishConsume,
    MoveDecor,
    PlayWithFish,
    ResetState,
    SellDecor,
    SellFish,
    StartClean,
    SwitchTank,
    TrimPlant,
    UnlockTank,
    parse_action,
)
from aquasim.content import define_catalog
from aquasim.dispatcher import PLAY_COOLDOWN, apply
from aquasim.state import DecorInstance, FishInstance, new_save

T0 = 1_700_000_000.0
CATALOG = define_catalog()


def _make_save():
    return new_save(CATALOG, T0)


def _apply(save, action, now=T0) -> ActionResult:
    return apply(save, action, CATALOG, now)


def _activate(save, tank_id: str):
    tank = save.tanks[tank_id]
    tank.unlocked = True
    tank.last_seen_at = T0
    save.active_tank_id = tank_id
    return tank


def _guppy(save):
    return save.tanks["fresh"].fish[0]


# ── Tanks ────────────────────────────────────────────────────────────


def test_switch_tank_requires_unlock():
    save = _make_save()
    result = _apply(save, SwitchTank("tropical"))
    assert result.error is ActionError.INVALID_STATE
    save.tanks["tropical"].unlocked = True
    assert _apply(save, SwitchTank("tropical")).success
    assert save.active_tank_id == "tropical"


def test_switch_unknown_tank():
    assert _apply(_make_save(), SwitchTank("lava")).error is ActionError.UNKNOWN_ID


def test_unlock_tank_requirement():
    save = _make_save()
    result = _apply(save, UnlockTank("tropical"))
    assert result.error is ActionError.REQUIREMENT_UNMET
    assert result.reason == "Earn 1,500 lifetime coins"


def test_unlock_tank():
    save = _make_save()
    save.lifetime.coins_earned = 1500
    result = _apply(save, UnlockTank("tropical"), now=T0 + HOUR)
    assert result.success
    assert result.data["tank_name"] == "Tropical Planted"
    tropical = save.tanks["tropical"]
    assert tropical.unlocked
    assert tropical.last_seen_at == T0 + HOUR
    assert save.active_tank_id == "tropical"


def test_unlock_tank_twice():
    save = _make_save()
    save.lifetime.coins_earned = 1500
    _apply(save, UnlockTank("tropical"))
    assert _apply(save, UnlockTank("tropical")).error is ActionError.INVALID_STATE


def test_unlock_salt_needs_heater():
    save = _make_save()
    save.lifetime.coins_earned = 6000
    assert _apply(save, UnlockTank("salt")).error is ActionError.REQUIREMENT_UNMET
    save.tanks["tropical"].tools_owned["heater"] = 1
    assert _apply(save, UnlockTank("salt")).success


# ── Fish ─────────────────────────────────────────────────────────────


def test_buy_fish_inflates_per_species():
    save = _make_save()
    result = _apply(save, BuyFish("guppy"))
    assert result.success
    assert result.data["price"] == 18
    assert save.coins == 32
    assert save.lifetime.fish_purchased == 2

    fish = save.tanks["fresh"].find_fish(result.data["fish_id"])
    assert fish.hunger == 95
    assert fish.born_at == T0


def test_buy_fish_insufficient_funds():
    save = _make_save()
    save.coins = 10
    result = _apply(save, BuyFish("guppy"))
    assert result.error is ActionError.INSUFFICIENT_FUNDS
    assert result.data["price"] == 18


def test_buy_fish_capacity():
    save = _make_save()
    save.coins = 10_000
    save.tanks["fresh"].fish = [FishInstance.create("guppy", T0) for _ in range(6)]
    assert _apply(save, BuyFish("goldfish")).error is ActionError.CAPACITY_EXCEEDED
    assert _apply(save, BuyFish("guppy")).success


def test_buy_fish_species_limit():
    save = _make_save()
    save.coins = 10_000
    salt = _activate(save, "salt")
    salt.fish.append(FishInstance.create("moray_eel", T0))
    assert _apply(save, BuyFish("moray_eel")).error is ActionError.LIMIT_REACHED


def test_buy_fish_from_other_tank():
    assert _apply(_make_save(), BuyFish("discus")).error is ActionError.UNKNOWN_ID


def test_sell_fish():
    save = _make_save()
    result = _apply(save, SellFish(_guppy(save).id))
    assert result.data["value"] == 5
    assert save.coins == 55
    assert save.tanks["fresh"].fish == []


def test_sell_legacy_fish_for_nothing():
    save = _make_save()
    _guppy(save).legacy = True
    assert _apply(save, SellFish(_guppy(save).id)).data["value"] == 0
    assert save.coins == 50


def test_feed_uses_stock():
    save = _make_save()
    result = _apply(save, Feed("basic_flakes"))
    assert result.data == {"food_id": "basic_flakes", "remaining": 9, "sink": "slowSink"}


def test_feed_out_of_stock():
    save = _make_save()
    assert _apply(save, Feed("pellets")).error is ActionError.OUT_OF_STOCK
    assert _apply(save, Feed("bloodworms")).error is ActionError.UNKNOWN_ID


def test_fish_consume():
    save = _make_save()
    fish = _guppy(save)
    fish.hunger = 50
    result = _apply(save, FishConsume(fish.id, "pellets"), now=T0 + HOUR)
    assert result.data["consumed"]
    assert fish.hunger == 95
    assert fish.xp == 8
    assert fish.last_fed_at == T0 + HOUR


def test_fish_consume_levels_up():
    save = _make_save()
    fish = _guppy(save)
    fish.xp = 28
    result = _apply(save, FishConsume(fish.id, "basic_flakes"))
    assert result.data["levels_gained"] == 1
    assert fish.level == 2
    assert fish.xp == pytest.approx(3)


def test_fish_ignores_wrong_food():
    save = _make_save()
    fish = _guppy(save)
    fish.hunger = 50
    result = _apply(save, FishConsume(fish.id, "algae_wafer"))
    assert result.success
    assert not result.data["consumed"]
    assert fish.hunger == 50


# ── Cleaning & play ──────────────────────────────────────────────────


def test_start_clean_is_deterministic():
    first, second = _make_save(), _make_save()
    for save in (first, second):
        save.tanks["fresh"].cleanliness = 60
    a = _apply(first, StartClean())
    b = _apply(second, StartClean())
    assert a.data["seed"] == b.data["seed"]
    assert a.data["dirt_fraction"] == pytest.approx(0.4)
    assert (a.data["grid_w"], a.data["grid_h"]) == (64, 48)
    assert first.tanks["fresh"].clean_session["dirt"] == pytest.approx(0.4)


def test_finish_clean():
    save = _make_save()
    fresh = save.tanks["fresh"]
    fresh.cleanliness = 60
    _apply(save, StartClean())
    result = _apply(save, FinishClean(50))
    assert fresh.cleanliness == pytest.approx(80)
    assert result.data["coins_earned"] == 100
    assert result.data["xp"] == 1
    assert save.coins == 150
    assert save.lifetime.coins_earned == 100
    assert _guppy(save).xp == 1
    assert fresh.clean_session is None


def test_finish_clean_uses_recorded_dirt():
    save = _make_save()
    fresh = save.tanks["fresh"]
    fresh.cleanliness = 50
    _apply(save, StartClean())
    fresh.cleanliness = 90
    _apply(save, FinishClean(100))
    assert fresh.cleanliness == 100


def test_finish_clean_without_session():
    assert _apply(_make_save(), FinishClean(80)).error is ActionError.INVALID_STATE


def test_play_cooldown():
    save = _make_save()
    assert _apply(save, PlayWithFish()).success
    assert save.coins == 75
    assert _guppy(save).last_played_at == T0
    assert _guppy(save).xp == 5

    blocked = _apply(save, PlayWithFish(), now=T0 + 2 * HOUR)
    assert blocked.error is ActionError.COOLDOWN_ACTIVE
    assert blocked.data["cooldown_remaining"] == pytest.approx(4 * HOUR)

    assert _apply(save, PlayWithFish(), now=T0 + 6 * HOUR).success
    assert save.tanks["fresh"].cooldowns[PLAY_COOLDOWN] == T0 + 6 * HOUR


# ── Store ────────────────────────────────────────────────────────────


def test_buy_food():
    save = _make_save()
    result = _apply(save, BuyFood("pellets", 5))
    assert result.data["cost"] == 30
    assert save.coins == 20
    assert save.tanks["fresh"].food_stock["pellets"] == 5


def test_buy_food_quantity():
    assert _apply(_make_save(), BuyFood("pellets", 0)).error is ActionError.INVALID_PAYLOAD


def test_buy_decor():
    save = _make_save()
    result = _apply(save, BuyDecor("hornwort", x=0.3))
    assert result.data["price"] == 20
    decor = save.tanks["fresh"].find_decor(result.data["decor_instance_id"])
    assert decor.size == 0.5
    assert (decor.x, decor.y) == (0.3, 0.6)
    assert save.coins == 30


def test_buy_decor_limit():
    save = _make_save()
    save.coins = 500
    assert _apply(save, BuyDecor("sunken_ship")).success
    assert _apply(save, BuyDecor("sunken_ship")).error is ActionError.LIMIT_REACHED


def test_sell_decor():
    save = _make_save()
    decor = DecorInstance.create("hornwort", T0)
    save.tanks["fresh"].decor.append(decor)
    assert _apply(save, SellDecor(decor.id)).data["value"] == 7
    assert save.coins == 57
    assert save.tanks["fresh"].decor == []


def test_buy_tool_levels():
    save = _make_save()
    save.coins = 1000
    _activate(save, "tropical")
    assert _apply(save, BuyTool("heater")).data["price"] == 60
    assert _apply(save, BuyTool("heater")).error is ActionError.LIMIT_REACHED
    assert _apply(save, BuyTool("filter_tropical")).data["level"] == 1
    assert _apply(save, BuyTool("filter_tropical")).data["price"] == 180
    assert save.tanks["tropical"].tools_owned == {"heater": 1, "filter_tropical": 2}
    assert save.coins == 1000 - 60 - 80 - 180


def test_move_decor_clamps():
    save = _make_save()
    decor = DecorInstance.create("rock_pile", T0)
    save.tanks["fresh"].decor.append(decor)
    _apply(save, MoveDecor(decor.id, x=1.5, y=-0.2))
    assert (decor.x, decor.y) == (1.0, 0.0)
    _apply(save, MoveDecor(decor.id, x=0.4))
    assert (decor.x, decor.y) == (0.4, 0.0)


def test_trim_plant():
    save = _make_save()
    plant = DecorInstance.create("hornwort", T0, size=1.0)
    rock = DecorInstance.create("rock_pile", T0)
    save.tanks["fresh"].decor += [plant, rock]
    assert _apply(save, TrimPlant(plant.id)).data["size"] == pytest.approx(0.75)
    assert _apply(save, TrimPlant(rock.id)).error is ActionError.INVALID_STATE
    plant.size = 0.55
    _apply(save, TrimPlant(plant.id))
    assert plant.size == 0.5


def test_reset_state():
    save = _make_save()
    save.coins = 999
    save.tanks["fresh"].fish = []
    assert _apply(save, ResetState(), now=T0 + HOUR).success
    assert save.coins == 50
    assert len(save.tanks["fresh"].fish) == 1
    assert save.meta.created_at == T0 + HOUR


# ── Debug scenarios ──────────────────────────────────────────────────


def test_scenario_rich():
    save = _make_save()
    assert _apply(save, DebugScenario("rich")).success
    assert save.coins == 99999


def test_scenario_all_weak():
    save = _make_save()
    _apply(save, DebugScenario("all_weak"))
    assert _guppy(save).weak
    assert _guppy(save).health == 10


def test_scenario_full_tank():
    save = _make_save()
    _apply(save, DebugScenario("full_tank"))
    assert len(save.tanks["fresh"].fish) == 8


def test_scenario_full_grown():
    save = _make_save()
    result = _apply(save, DebugScenario("full_grown_tropical"))
    assert result.data["applied"] == "full_grown_tropical"
    tropical = save.tanks["tropical"]
    assert save.active_tank_id == "tropical"
    assert tropical.tools_owned == {"heater": 1, "filter_tropical": 2}
    assert all(f.level == 5 for f in tropical.fish)
    assert len(tropical.decor) == len(CATALOG.get_tank("tropical").decor)


def test_scenario_all_unlocked():
    save = _make_save()
    _apply(save, DebugScenario("all_unlocked"))
    assert all(t.unlocked for t in save.tanks.values())
    assert save.tanks["salt"].fish


def test_unknown_scenario():
    result = _apply(_make_save(), DebugScenario("volcano"))
    assert result.error is ActionError.UNKNOWN_OPERATION
    result = _apply(_make_save(), DebugScenario("full_grown_lava"))
    assert result.error is ActionError.UNKNOWN_OPERATION


# ── Dispatch ─────────────────────────────────────────────────────────


@pytest.mark.parametrize("action", [
    SwitchTank("salt"),
    UnlockTank("tropical"),
    BuyFish("goldfish"),
    BuyFish("shark"),
    SellFish("nope"),
    Feed("pellets"),
    FishConsume("nope", "pellets"),
    FinishClean(100),
    BuyFood("pellets", 100),
    BuyDecor("sunken_ship"),
    SellDecor("nope"),
    BuyTool("heater"),
    MoveDecor("nope", 0.5, 0.5),
    TrimPlant("nope"),
    DebugScenario("volcano"),
])
def test_rejected_action_leaves_save_unchanged(action):
    save = _make_save()
    save.coins = 20
    before = save.to_dict()
    result = _apply(save, action)
    assert not result.success
    assert save.to_dict() == before


def test_parse_failure_passes_through():
    save = _make_save()
    failed = parse_action("teleport")
    assert _apply(save, failed) is failed


def test_no_active_tank():
    save = _make_save()
    save.active_tank_id = "lava"
    assert _apply(save, Feed("basic_flakes")).error is ActionError.INVALID_STATE
