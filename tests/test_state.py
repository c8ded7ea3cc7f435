"""Tests for state module."""
import pytest

from aquasim.content import define_catalog
from aquasim.state import (
    CURRENT_SAVE_VERSION,
    DecorInstance,
    FishInstance,
    Save,
    TankState,
    new_save,
)

T0 = 1_700_000_000.0


def _make_save() -> Save:
    return new_save(define_catalog(), T0)


def test_new_save_defaults():
    save = _make_save()
    assert save.version == CURRENT_SAVE_VERSION
    assert save.coins == 50
    assert save.active_tank_id == "fresh"
    assert set(save.tanks) == {"fresh", "tropical", "salt"}
    assert save.lifetime.coins_earned == 0
    assert save.lifetime.fish_purchased == 1
    assert save.meta.created_at == T0
    assert save.meta.last_catalog_version == define_catalog().content_version


def test_new_save_starter_tank():
    fresh = _make_save().tanks["fresh"]
    assert fresh.unlocked
    assert fresh.cleanliness == 100
    assert fresh.last_seen_at == T0
    assert fresh.food_stock == {"basic_flakes": 10}
    assert [f.species_id for f in fresh.fish] == ["guppy"]
    assert fresh.fish[0].hunger == 95
    assert fresh.fish[0].born_at == T0


def test_new_save_other_tanks_locked():
    save = _make_save()
    assert not save.tanks["tropical"].unlocked
    assert not save.tanks["salt"].unlocked
    assert save.tanks["salt"].fish == []


def test_fish_ids_unique():
    a = FishInstance.create("guppy", T0)
    b = FishInstance.create("guppy", T0)
    assert a.id != b.id
    assert a.id.startswith("f_")


def test_dict_round_trip():
    save = _make_save()
    save.tanks["fresh"].decor.append(
        DecorInstance.create("hornwort", T0, x=0.2, y=0.6, size=0.5)
    )
    save.tanks["fresh"].cooldowns["play"] = T0
    restored = Save.from_dict(save.to_dict())
    assert restored == save


def test_from_dict_takes_tank_id_from_key():
    doc = _make_save().to_dict()
    del doc["tanks"]["fresh"]["id"]
    assert Save.from_dict(doc).tanks["fresh"].id == "fresh"


def test_from_dict_requires_version():
    doc = _make_save().to_dict()
    del doc["version"]
    with pytest.raises(KeyError):
        Save.from_dict(doc)


def test_from_dict_rejects_bad_tank():
    doc = _make_save().to_dict()
    doc["tanks"]["fresh"] = "not a tank"
    with pytest.raises(TypeError):
        Save.from_dict(doc)


def test_tank_helpers():
    tank = TankState(id="fresh")
    tank.fish = [FishInstance.create("guppy", T0), FishInstance.create("guppy", T0)]
    tank.decor = [
        DecorInstance.create("hornwort", T0),
        DecorInstance(id="old", decor_id="castle", legacy=True),
    ]
    tank.tools_owned["heater"] = 1
    assert tank.species_count("guppy") == 2
    assert tank.tool_level("heater") == 1
    assert tank.tool_level("skimmer") == 0
    assert tank.has_decor("hornwort")
    assert not tank.has_decor("castle")
    assert tank.decor_count("castle") == 1
    assert tank.find_fish(tank.fish[1].id) is tank.fish[1]
    assert tank.find_fish("nope") is None
    assert tank.find_decor("old").legacy


def test_active_tank():
    save = _make_save()
    assert save.active_tank is save.tanks["fresh"]
    save.active_tank_id = "lava"
    assert save.active_tank is None


def test_replace_with():
    save = _make_save()
    other = new_save(define_catalog(), T0 + 100)
    other.coins = 999
    save.replace_with(other)
    assert save.coins == 999
    assert save.meta.created_at == T0 + 100
