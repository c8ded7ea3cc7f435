"""Tests for unlock module."""
from aquasim.content import define_catalog
from aquasim.state import new_save
from aquasim.unlock import Unlock

T0 = 1_700_000_000.0


def _make_save():
    return new_save(define_catalog(), T0)


def test_free():
    assert Unlock.free().evaluate(_make_save())
    assert Unlock.free().describe() == "Free"


def test_lifetime_coins():
    save = _make_save()
    rule = Unlock.lifetime_coins(1500)
    assert not rule.evaluate(save)
    save.lifetime.coins_earned = 1500
    assert rule.evaluate(save)


def test_lifetime_coins_ignores_balance():
    save = _make_save()
    save.coins = 10_000
    assert not Unlock.lifetime_coins(1500).evaluate(save)


def test_tool_owned():
    save = _make_save()
    rule = Unlock.tool_owned("tropical", "heater")
    assert not rule.evaluate(save)
    save.tanks["tropical"].tools_owned["heater"] = 1
    assert rule.evaluate(save)
    assert rule.references() == [("tropical", "heater")]


def test_tool_owned_missing_tank():
    assert not Unlock.tool_owned("lava", "heater").evaluate(_make_save())


def test_all():
    save = _make_save()
    rule = Unlock.all(Unlock.lifetime_coins(5000), Unlock.tool_owned("tropical", "heater"))
    save.lifetime.coins_earned = 6000
    assert not rule.evaluate(save)
    save.tanks["tropical"].tools_owned["heater"] = 1
    assert rule.evaluate(save)


def test_and_operator():
    save = _make_save()
    rule = Unlock.lifetime_coins(100) & Unlock.tool_owned("tropical", "heater")
    save.lifetime.coins_earned = 200
    assert not rule.evaluate(save)
    assert rule.references() == [("tropical", "heater")]


def test_compound_describe():
    rule = Unlock.all(Unlock.lifetime_coins(5000), Unlock.tool_owned("tropical", "heater"))
    assert rule.describe() == "Earn 5,000 lifetime coins and Own heater in tropical"
