from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from aquasim._types import clamp

if TYPE_CHECKING:
    from aquasim.catalog import TankDef, Tuning
    from aquasim.state import FishInstance, TankState

OK = "OK"

# (minimum happiness, coin multiplier), checked top-down
_COIN_STEPS: tuple[tuple[float, float], ...] = (
    (80.0, 1.0),
    (60.0, 0.70),
    (40.0, 0.40),
    (20.0, 0.15),
)


@dataclass(frozen=True)
class HappinessFactor:
    source: str
    label: str
    value: float

    def to_dict(self) -> dict:
        return {"source": self.source, "label": self.label, "value": self.value}


@dataclass(frozen=True)
class HappinessScore:
    value: int
    breakdown: tuple[HappinessFactor, ...]


def hunger_contribution(hunger: float) -> float:
    if hunger >= 70:
        return 0.0
    if hunger >= 40:
        return -(70 - hunger) * 0.5
    if hunger >= 10:
        return -(70 - hunger) * 0.8
    return -60.0


def cleanliness_contribution(cleanliness: float) -> float:
    if cleanliness >= 60:
        return 0.0
    if cleanliness >= 30:
        return -(60 - cleanliness) * 0.5
    return -(60 - cleanliness) * 1.0


def plant_mass(tank: TankState, tank_def: TankDef) -> float:
    """Sum of sizes of the growable decor currently in *tank*."""
    total = 0.0
    for d in tank.decor:
        ddef = tank_def.get_decor(d.decor_id)
        if not d.legacy and ddef is not None and ddef.growable:
            total += d.size
    return total


def floating_plant_count(tank: TankState, tank_def: TankDef) -> int:
    count = 0
    for d in tank.decor:
        ddef = tank_def.get_decor(d.decor_id)
        if not d.legacy and ddef is not None and ddef.floating:
            count += 1
    return count


def live_plant_count(tank: TankState, tank_def: TankDef) -> int:
    count = 0
    for d in tank.decor:
        ddef = tank_def.get_decor(d.decor_id)
        if not d.legacy and ddef is not None and ddef.growable:
            count += 1
    return count


def _factor(source: str, label: str, value: float) -> HappinessFactor:
    return HappinessFactor(source, label if value else OK, value)


def score(
    fish: FishInstance, tank: TankState, tank_def: TankDef, tuning: Tuning
) -> HappinessScore:
    """Happiness of *fish* in *tank*, with one breakdown entry per source.

    Order: hunger, cleanliness, each required tool, each required decor,
    plant mass, floating plants, live plants.
    """
    factors = [
        _factor("hunger", "Hungry", hunger_contribution(fish.hunger)),
        _factor("cleanliness", "Dirty water", cleanliness_contribution(tank.cleanliness)),
    ]

    species = tank_def.get_species(fish.species_id)
    if species is not None:
        for req in species.tools:
            unmet = tank.tool_level(req.tool_id) <= 0
            label = req.label or f"Missing {req.tool_id}"
            factors.append(_factor(f"tool:{req.tool_id}", label, -req.penalty if unmet else 0.0))
        for req in species.decor:
            unmet = not tank.has_decor(req.decor_id)
            label = req.label or f"Missing {req.decor_id}"
            factors.append(
                _factor(f"decor:{req.decor_id}", label, -req.penalty if unmet else 0.0)
            )
        if species.plant_mass is not None:
            req = species.plant_mass
            unmet = plant_mass(tank, tank_def) < req.min_total
            factors.append(_factor("plant_mass", req.label, -req.penalty if unmet else 0.0))
        if species.floating_plants is not None:
            req = species.floating_plants
            unmet = floating_plant_count(tank, tank_def) < req.min_count
            factors.append(
                _factor("floating_plants", req.label, -req.penalty if unmet else 0.0)
            )

    bonus = min(
        live_plant_count(tank, tank_def) * tuning.plant_bonus_per_decor,
        tuning.plant_bonus_cap,
    )
    factors.append(_factor("live_plants", "Live plants", bonus))

    total = 100.0 + sum(f.value for f in factors)
    value = int(clamp(math.floor(total + 0.5), 0, 100))
    return HappinessScore(value=value, breakdown=tuple(factors))


def coin_multiplier(happiness: float) -> float:
    """Step function from happiness to the share of base coin income earned."""
    for minimum, mult in _COIN_STEPS:
        if happiness >= minimum:
            return mult
    return 0.0
