"""Tests for simulation module."""
import pytest

from aquasim._types import DAY, HOUR
from aquasim.catalog import (
    Catalog,
    DecorDef,
    FoodDef,
    GrowthDef,
    SpeciesDef,
    SpreadDef,
    TankDef,
)
from aquasim.content import define_catalog
from aquasim.simulation import (
    advance,
    coin_rate,
    effective_dirty_rate,
    effective_flow,
    life_stage,
    used_space,
)
from aquasim.state import DecorInstance, FishInstance, Save, new_save

T0 = 1_700_000_000.0
# Midnight UTC, so day boundaries fall on whole multiples of DAY
DAY0 = 19700 * DAY


def _make_save():
    catalog = define_catalog()
    return new_save(catalog, T0), catalog


def _make_bowl_catalog(**spread) -> Catalog:
    """One tank, one fast-starving species and one spreading plant."""
    spread_kwargs = dict(chance_per_day=1.0, max_clusters=10, spawn_radius=0.1, threshold=0.5)
    spread_kwargs.update(spread)
    return Catalog(tanks=[TankDef(
        "bowl",
        base_dirty_rate=0.0,
        dirty_per_space=0.0,
        species=[SpeciesDef("guppy", base_coin_per_hour=1.0, hunger_rate=2.5,
                            diet=("flakes",))],
        foods=[FoodDef("flakes")],
        decor=[DecorDef("duckweed", placement="top",
                        growth=GrowthDef(0.01, 1.0, 2.0),
                        spread=SpreadDef(**spread_kwargs))],
        starter_species=["guppy"],
    )])


def _make_bowl_save(catalog: Catalog, now: float) -> Save:
    save = new_save(catalog, now)
    save.tanks["bowl"].fish[0].hunger = 100.0
    return save


def _plant(now: float) -> DecorInstance:
    return DecorInstance(id="p1", decor_id="duckweed", x=0.5, y=0.08, size=1.0, placed_at=now)


# ── Catch-up basics ──────────────────────────────────────────────────


def test_advance_same_time_is_noop():
    save, catalog = _make_save()
    before = save.to_dict()
    result = advance(save, catalog, T0)
    assert save.to_dict() == before
    assert result.coins_earned == 0


def test_advance_backwards_clock_changes_nothing():
    save, catalog = _make_save()
    advance(save, catalog, T0 + HOUR)
    before = save.to_dict()
    result = advance(save, catalog, T0)
    assert save.to_dict() == before
    assert result.hours_by_tank == {}
    assert save.meta.last_saved_at == T0 + HOUR


def test_advance_one_hour():
    save, catalog = _make_save()
    result = advance(save, catalog, T0 + HOUR)
    fresh = save.tanks["fresh"]
    assert fresh.fish[0].hunger == pytest.approx(94.1)
    assert fresh.cleanliness == pytest.approx(99.52)
    # 2.5 * 1.0 happiness * 1.12 level * 0.9 baby
    assert result.coins_earned == pytest.approx(2.52)
    assert save.coins == pytest.approx(52.52)
    assert save.lifetime.coins_earned == pytest.approx(2.52)
    assert fresh.last_seen_at == T0 + HOUR
    assert save.meta.last_saved_at == T0 + HOUR


def test_advance_caps_idle_time():
    save, catalog = _make_save()
    result = advance(save, catalog, T0 + 500 * HOUR)
    assert result.hours_by_tank["fresh"] == pytest.approx(168)
    assert save.tanks["fresh"].last_seen_at == T0 + 500 * HOUR


def test_advance_keeps_values_in_bounds():
    save, catalog = _make_save()
    advance(save, catalog, T0 + 168 * HOUR)
    fresh = save.tanks["fresh"]
    assert 0 <= fresh.cleanliness <= 100
    for fish in fresh.fish:
        assert 0 <= fish.hunger <= 100
        assert 0 <= fish.health <= 100


def test_advance_skips_locked_tanks():
    save, catalog = _make_save()
    advance(save, catalog, T0 + 10 * HOUR)
    assert save.tanks["tropical"].last_seen_at == T0
    assert save.tanks["tropical"].cleanliness == 100


def test_legacy_fish_are_frozen():
    save, catalog = _make_save()
    fish = save.tanks["fresh"].fish[0]
    fish.legacy = True
    result = advance(save, catalog, T0 + 5 * HOUR)
    assert fish.hunger == 95
    assert result.coins_earned == 0
    assert save.tanks["fresh"].cleanliness == pytest.approx(98.0)  # 0.4 base rate


def test_advance_is_deterministic():
    save, catalog = _make_save()
    save.tanks["fresh"].decor.append(DecorInstance.create("hornwort", T0, size=0.5))
    first = Save.from_dict(save.to_dict())
    second = Save.from_dict(save.to_dict())
    advance(first, catalog, T0 + 30 * HOUR)
    advance(second, catalog, T0 + 30 * HOUR)
    assert first.to_dict() == second.to_dict()


def test_plant_growth():
    save, catalog = _make_save()
    save.tanks["fresh"].decor.append(DecorInstance.create("hornwort", T0, size=0.5))
    advance(save, catalog, T0 + 10 * HOUR)
    assert save.tanks["fresh"].decor[0].size == pytest.approx(0.7)
    advance(save, catalog, T0 + 1000 * HOUR)
    assert save.tanks["fresh"].decor[0].size == pytest.approx(2.0)


# ── Weak state machine ───────────────────────────────────────────────


def test_starvation_hourly():
    catalog = _make_bowl_catalog()
    save = _make_bowl_save(catalog, T0)
    transitions = []
    for h in range(1, 49):
        result = advance(save, catalog, T0 + h * HOUR)
        transitions.extend(result.weak_transitions)
    fish = save.tanks["bowl"].fish[0]
    assert transitions == [fish.id]
    assert fish.weak
    assert fish.hunger == 0
    assert fish.health == pytest.approx(80)


def test_starvation_single_step():
    catalog = _make_bowl_catalog()
    save = _make_bowl_save(catalog, T0)
    result = advance(save, catalog, T0 + 48 * HOUR)
    fish = save.tanks["bowl"].fish[0]
    assert result.weak_transitions == [fish.id]
    assert fish.weak
    assert fish.health == pytest.approx(80)


def test_weak_fish_earn_less():
    save, catalog = _make_save()
    fish = save.tanks["fresh"].fish[0]
    species = catalog.get_tank("fresh").get_species("guppy")
    healthy = coin_rate(fish, species, 100, T0, catalog)
    fish.weak = True
    assert coin_rate(fish, species, 100, T0, catalog) == pytest.approx(healthy * 0.1)


def test_recovery_needs_hard_requirements():
    save, catalog = _make_save()
    tropical = save.tanks["tropical"]
    tropical.unlocked = True
    fish = FishInstance.create("neon_tetra", T0, hunger=100)
    fish.weak = True
    fish.health = 10
    tropical.fish.append(fish)

    result = advance(save, catalog, T0 + HOUR)
    assert fish.weak
    assert result.recoveries == []

    tropical.tools_owned["heater"] = 1
    result = advance(save, catalog, T0 + 2 * HOUR)
    assert not fish.weak
    assert result.recoveries == [fish.id]
    # lifted to the recovery floor, then one hour of regen
    assert fish.health == pytest.approx(32)


def test_health_regenerates():
    save, catalog = _make_save()
    fish = save.tanks["fresh"].fish[0]
    fish.health = 50
    advance(save, catalog, T0 + 3 * HOUR)
    assert fish.health == pytest.approx(56)


# ── Derived metrics ──────────────────────────────────────────────────


def _tropical_with(*species_ids):
    save, catalog = _make_save()
    tank = save.tanks["tropical"]
    tank.fish = [FishInstance.create(s, T0) for s in species_ids]
    return tank, catalog.get_tank("tropical"), catalog.tuning


def test_dirty_rate_with_filter_levels():
    tank, tdef, tuning = _tropical_with("neon_tetra", "neon_tetra")
    assert effective_dirty_rate(tank, tdef, tuning) == pytest.approx(0.6)
    tank.tools_owned["filter_tropical"] = 1
    assert effective_dirty_rate(tank, tdef, tuning) == pytest.approx(0.48)
    tank.tools_owned["filter_tropical"] = 2
    assert effective_dirty_rate(tank, tdef, tuning) == pytest.approx(0.42)


def test_dirty_rate_with_cleaner_species():
    tank, tdef, tuning = _tropical_with("pleco")
    assert effective_dirty_rate(tank, tdef, tuning) == pytest.approx(0.72)


def test_dirty_rate_floor():
    save, catalog = _make_save()
    fresh = save.tanks["fresh"]
    fresh.fish = [FishInstance.create("snail", T0) for _ in range(7)]
    rate = effective_dirty_rate(fresh, catalog.get_tank("fresh"), catalog.tuning)
    assert rate == pytest.approx(0.05)


def test_flow_follows_filter_level():
    tank, tdef, _tuning = _tropical_with()
    assert effective_flow(tank, tdef) == 0
    tank.tools_owned["filter_tropical"] = 2
    assert effective_flow(tank, tdef) == pytest.approx(0.6)


def test_used_space_counts_retired_fish_as_one():
    tank, tdef, _tuning = _tropical_with("neon_tetra", "discus")
    assert used_space(tank, tdef) == pytest.approx(4.5)
    tank.fish.append(FishInstance(id="old", species_id="betta", born_at=T0, legacy=True))
    assert used_space(tank, tdef) == pytest.approx(5.5)


@pytest.mark.parametrize("age_days,stage", [
    (0, "baby"),
    (1.9, "baby"),
    (2, "juvenile"),
    (6.5, "juvenile"),
    (7, "adult"),
    (30, "adult"),
])
def test_life_stage(age_days, stage):
    catalog = define_catalog()
    fish = FishInstance.create("guppy", T0)
    assert life_stage(fish, T0 + age_days * DAY, catalog.tuning)[0] == stage


# ── Plant spread ─────────────────────────────────────────────────────


def _spread_save(catalog: Catalog) -> Save:
    save = _make_bowl_save(catalog, DAY0)
    save.tanks["bowl"].decor.append(_plant(DAY0))
    return save


def _positions(save: Save) -> dict:
    return {d.id: (round(d.x, 9), round(d.y, 9)) for d in save.tanks["bowl"].decor}


def test_spread_spawns_child():
    catalog = _make_bowl_catalog()
    save = _spread_save(catalog)
    result = advance(save, catalog, DAY0 + DAY)
    assert result.spawned == ["p1~19700"]
    child = save.tanks["bowl"].find_decor("p1~19700")
    assert child.size == 1.0
    assert child.placed_at == DAY0
    assert child.state["cluster"] == "p1"
    assert abs(child.x - 0.5) <= 0.1


def test_spread_is_split_independent():
    catalog = _make_bowl_catalog()
    whole = _spread_save(catalog)
    advance(whole, catalog, DAY0 + DAY)

    hourly = _spread_save(catalog)
    for h in range(1, 25):
        advance(hourly, catalog, DAY0 + h * HOUR)

    assert _positions(hourly) == _positions(whole)


def test_spread_respects_cluster_cap():
    catalog = _make_bowl_catalog(max_clusters=2)
    save = _spread_save(catalog)
    advance(save, catalog, DAY0 + 3 * DAY)
    assert len(save.tanks["bowl"].decor) == 2


def test_spread_needs_threshold_size():
    catalog = _make_bowl_catalog(threshold=5.0)
    save = _spread_save(catalog)
    result = advance(save, catalog, DAY0 + 3 * DAY)
    assert result.spawned == []
    assert len(save.tanks["bowl"].decor) == 1


def test_spread_zero_chance():
    catalog = _make_bowl_catalog(chance_per_day=0.0)
    save = _spread_save(catalog)
    advance(save, catalog, DAY0 + 5 * DAY)
    assert len(save.tanks["bowl"].decor) == 1
