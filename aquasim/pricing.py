from __future__ import annotations

import math
from typing import TYPE_CHECKING, Callable, Sequence

if TYPE_CHECKING:
    from aquasim.catalog import DecorDef, Economy, SpeciesDef, ToolDef, Tuning
    from aquasim.state import FishInstance


def _ceil(value: float) -> int:
    # Round away float noise first so 20 * 0.35 stays 7
    return math.ceil(round(value, 9))


class PriceCurve:
    """Determines how an item's price changes with the number already owned."""

    def __init__(self, fn: Callable[[float, int], float]) -> None:
        self._fn = fn

    def compute(self, base_price: float, owned: int) -> float:
        """Whole-coin price for the next unit, rounded up. Unbuyable is inf."""
        value = self._fn(base_price, owned)
        if math.isinf(value):
            return value
        return _ceil(value)

    @classmethod
    def fixed(cls) -> PriceCurve:
        """Price never changes."""
        return cls(lambda base, _owned: base)

    @classmethod
    def exponential(cls, growth_rate: float = 1.18) -> PriceCurve:
        """Price = base * growth_rate^owned."""
        gr = growth_rate  # capture
        return cls(lambda base, owned: base * gr ** owned)

    @classmethod
    def tiered(cls, prices: Sequence[float]) -> PriceCurve:
        """Explicit price per level; *owned* is the current level."""
        table = tuple(prices)

        def _compute(_base: float, owned: int) -> float:
            if owned >= len(table):
                return math.inf
            return table[owned]

        return cls(_compute)


# ── Fish ─────────────────────────────────────────────────────────────


def fish_price(species: SpeciesDef, owned: int, economy: Economy) -> int:
    """Price of the next unit of *species* when *owned* are already in the tank."""
    return PriceCurve.exponential(economy.fish_price_growth).compute(
        species.base_price, owned
    )


def fish_sell_return(
    fish: FishInstance, species: SpeciesDef, owned: int, economy: Economy
) -> int:
    """Coins returned for selling *fish* while *owned* of its species are in the tank.

    The base is the price at which the sold unit could be bought back.
    """
    current = fish_price(species, max(owned - 1, 0), economy)
    return _ceil(
        current * economy.fish_sell_return * (1 + fish.level * economy.sell_level_bonus)
    )


# ── Decor & tools ────────────────────────────────────────────────────


def decor_price(decor: DecorDef) -> int:
    return PriceCurve.fixed().compute(decor.price, 0)


def decor_sell_return(decor: DecorDef, economy: Economy) -> int:
    rate = decor.sell_return if decor.sell_return is not None else economy.decor_sell_return
    return _ceil(decor.price * rate)


def tool_price(tool: ToolDef, current_level: int) -> int | None:
    """Price of the next level, or None when already at max level."""
    if current_level >= tool.max_level:
        return None
    return PriceCurve.tiered(tool.prices).compute(0.0, current_level)


# ── Experience ───────────────────────────────────────────────────────


def xp_to_next_level(level: int, tuning: Tuning) -> float:
    return tuning.xp_base + tuning.xp_per_level * (level - 1)


def grant_xp(fish: FishInstance, amount: float, tuning: Tuning) -> int:
    """Add experience and resolve level-ups. Returns the number of levels gained."""
    fish.xp += amount
    gained = 0
    while fish.level < tuning.max_level and fish.xp >= xp_to_next_level(fish.level, tuning):
        fish.xp -= xp_to_next_level(fish.level, tuning)
        fish.level += 1
        gained += 1
    return gained
