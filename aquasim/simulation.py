"""Idle catch-up: advance every unlocked tank from its last visit to *now*."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from aquasim._types import DAY, HOUR, Lcg, clamp, day_index, hash_string
from aquasim.happiness import coin_multiplier, score
from aquasim.state import DecorInstance

if TYPE_CHECKING:
    from aquasim.catalog import Catalog, DecorDef, SpeciesDef, TankDef, Tuning
    from aquasim.state import FishInstance, Save, TankState

logger = logging.getLogger(__name__)


@dataclass
class AdvanceResult:
    """What happened during one catch-up pass."""

    coins_earned: float = 0.0
    hours_by_tank: dict[str, float] = field(default_factory=dict)
    weak_transitions: list[str] = field(default_factory=list)
    recoveries: list[str] = field(default_factory=list)
    spawned: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "coins_earned": int(self.coins_earned),
            "hours_by_tank": {k: round(v, 4) for k, v in self.hours_by_tank.items()},
            "weak_transitions": list(self.weak_transitions),
            "recoveries": list(self.recoveries),
            "spawned": list(self.spawned),
        }


# ── Derived tank metrics ─────────────────────────────────────────────


def used_space(tank: TankState, tank_def: TankDef) -> float:
    """Space taken by every fish in *tank*; retired species count as 1."""
    total = 0.0
    for f in tank.fish:
        species = tank_def.get_species(f.species_id)
        total += species.space_cost if species is not None and not f.legacy else 1.0
    return total


def _live_fish(tank: TankState, tank_def: TankDef) -> list[tuple[FishInstance, SpeciesDef]]:
    pairs = []
    for f in tank.fish:
        if f.legacy:
            continue
        species = tank_def.get_species(f.species_id)
        if species is not None:
            pairs.append((f, species))
    return pairs


def effective_dirty_rate(tank: TankState, tank_def: TankDef, tuning: Tuning) -> float:
    """Cleanliness points lost per hour."""
    live = _live_fish(tank, tank_def)
    space = sum(species.space_cost for _f, species in live)
    rate = tank_def.base_dirty_rate + tank_def.dirty_per_space * space

    for tool in tank_def.tools:
        rate *= 1 - tool.dirt_reduction_at(tank.tool_level(tool.id))

    utility = sum(species.dirt_reduction for _f, species in live)
    rate *= max(0.0, 1 - utility)
    return max(rate, tuning.min_dirty_rate)


def effective_flow(tank: TankState, tank_def: TankDef) -> float:
    return max(
        (tool.flow_at(tank.tool_level(tool.id)) for tool in tank_def.tools),
        default=0.0,
    )


def life_stage(fish: FishInstance, now: float, tuning: Tuning) -> tuple[str, float]:
    """(stage name, coin multiplier) for the fish's age at *now*."""
    age_days = max(0.0, now - fish.born_at) / DAY
    if age_days < tuning.baby_days:
        return "baby", tuning.baby_coin_mult
    if age_days < tuning.juvenile_days:
        return "juvenile", tuning.juvenile_coin_mult
    return "adult", tuning.adult_coin_mult


def coin_rate(
    fish: FishInstance,
    species: SpeciesDef,
    happiness: float,
    now: float,
    catalog: Catalog,
) -> float:
    """Coins per hour this fish earns right now."""
    _stage, stage_mult = life_stage(fish, now, catalog.tuning)
    weak_mult = catalog.tuning.weak_coin_multiplier if fish.weak else 1.0
    return (
        species.base_coin_per_hour
        * coin_multiplier(happiness)
        * (1 + fish.level * catalog.economy.level_coin_bonus)
        * stage_mult
        * weak_mult
    )


# ── Per-fish state machine ───────────────────────────────────────────


def _should_weaken(fish: FishInstance, happiness: int, now: float, tuning: Tuning) -> bool:
    unfed_hours = (now - fish.last_fed_at) / HOUR
    starving = fish.hunger <= tuning.weak_hunger and unfed_hours >= tuning.unfed_hours
    return starving or fish.health <= tuning.weak_health or happiness < tuning.weak_happiness


def _can_recover(
    fish: FishInstance, species: SpeciesDef, tank: TankState, tuning: Tuning
) -> bool:
    return (
        fish.hunger >= tuning.recovery_hunger
        and tank.cleanliness >= tuning.recovery_cleanliness
        and species.hard_requirements_met(tank)
    )


def _advance_fish(
    fish: FishInstance,
    species: SpeciesDef,
    tank: TankState,
    tank_def: TankDef,
    hours: float,
    now: float,
    catalog: Catalog,
    result: AdvanceResult,
) -> float:
    tuning = catalog.tuning
    fish.hunger = clamp(
        fish.hunger - species.hunger_rate * tank_def.hunger_rate_multiplier * hours, 0.0, 100.0
    )
    happiness = score(fish, tank, tank_def, tuning).value

    if not fish.weak and _should_weaken(fish, happiness, now, tuning):
        fish.weak = True
        fish.health = clamp(fish.health - tuning.weak_health_penalty, 0.0, 100.0)
        result.weak_transitions.append(fish.id)
    elif fish.weak and _can_recover(fish, species, tank, tuning):
        fish.weak = False
        fish.health = max(fish.health, tuning.recovery_health)
        result.recoveries.append(fish.id)

    if (
        not fish.weak
        and fish.hunger >= tuning.regen_hunger
        and tank.cleanliness >= tuning.regen_cleanliness
    ):
        fish.health = clamp(fish.health + tuning.regen_per_hour * hours, 0.0, 100.0)

    return coin_rate(fish, species, happiness, now, catalog) * hours


# ── Decor growth & spread ────────────────────────────────────────────


def _size_at(start_size: float, ddef: DecorDef, start: float, t: float) -> float:
    growth = ddef.growth
    return clamp(
        start_size + growth.rate_per_hour * (t - start) / HOUR, growth.min_size, growth.max_size
    )


def _cluster_size(tank: TankState, cluster: str) -> int:
    return sum(
        1 for d in tank.decor if not d.legacy and d.state.get("cluster", d.id) == cluster
    )


def _spread_one(
    decor: DecorInstance,
    ddef: DecorDef,
    tank: TankState,
    start: float,
    end: float,
    start_size: float,
) -> list[DecorInstance]:
    """Run the per-day spread check for every day touched by [start, end].

    The roll for a day is fixed by (tank, day, instance id) and the day's
    simulated fraction only accumulates, so splitting a day into several
    calls reaches the same decision.
    """
    spread = ddef.spread
    st = decor.state
    st.setdefault("cluster", decor.id)
    children: list[DecorInstance] = []

    for day in range(day_index(start), day_index(end) + 1):
        day_start = day * DAY
        overlap = min(end, day_start + DAY) - max(start, day_start)
        if overlap <= 0:
            continue
        if st.get("spread_day") != day:
            st["spread_day"] = day
            st["spread_progress"] = 0.0
            st["spread_done"] = False
        st["spread_progress"] = min(1.0, st["spread_progress"] + overlap / DAY)

        if st["spread_done"]:
            continue
        checked_at = min(end, day_start + DAY)
        if _size_at(start_size, ddef, start, checked_at) < spread.threshold:
            continue
        if _cluster_size(tank, st["cluster"]) + len(children) >= spread.max_clusters:
            continue

        rng = Lcg(hash_string(f"{tank.id}:{day}:{decor.id}"))
        roll = rng.next()
        if roll >= spread.chance_per_day * st["spread_progress"]:
            continue

        child_id = f"{decor.id}~{day}"
        if tank.find_decor(child_id) is not None:
            st["spread_done"] = True
            continue
        r = spread.spawn_radius
        child = DecorInstance(
            id=child_id,
            decor_id=decor.decor_id,
            x=clamp(decor.x + rng.uniform(-r, r), 0.0, 1.0),
            y=clamp(decor.y + rng.uniform(-r, r) * 0.3, 0.0, 1.0),
            size=ddef.growth.min_size,
            placed_at=day_start,
            state={
                "cluster": st["cluster"],
                "spread_day": day,
                "spread_progress": st["spread_progress"],
                "spread_done": True,
            },
        )
        st["spread_done"] = True
        children.append(child)
    return children


def _advance_decor(
    tank: TankState,
    tank_def: TankDef,
    start: float,
    end: float,
    result: AdvanceResult,
) -> None:
    hours = (end - start) / HOUR
    for decor in list(tank.decor):
        if decor.legacy:
            continue
        ddef = tank_def.get_decor(decor.decor_id)
        if ddef is None or ddef.growth is None:
            continue
        start_size = decor.size
        decor.size = clamp(
            decor.size + ddef.growth.rate_per_hour * hours,
            ddef.growth.min_size,
            ddef.growth.max_size,
        )
        if ddef.spread is not None:
            children = _spread_one(decor, ddef, tank, start, end, start_size)
            tank.decor.extend(children)
            result.spawned.extend(d.id for d in children)


# ── Core loop ────────────────────────────────────────────────────────


def advance_tank(
    save: Save,
    tank: TankState,
    tank_def: TankDef,
    catalog: Catalog,
    now: float,
    result: AdvanceResult,
) -> None:
    """Advance one tank to *now* and stamp its last_seen_at in the same step."""
    tuning = catalog.tuning
    if now <= tank.last_seen_at:
        return
    elapsed = min(now - tank.last_seen_at, tuning.max_idle_hours * HOUR)
    start = now - elapsed
    hours = elapsed / HOUR

    rate = effective_dirty_rate(tank, tank_def, tuning)
    tank.cleanliness = clamp(tank.cleanliness - rate * hours, 0.0, 100.0)

    earned = 0.0
    for fish, species in _live_fish(tank, tank_def):
        earned += _advance_fish(fish, species, tank, tank_def, hours, now, catalog, result)

    _advance_decor(tank, tank_def, start, now, result)

    earned = max(earned, 0.0)
    save.coins += earned
    save.lifetime.coins_earned += earned
    result.coins_earned += earned
    result.hours_by_tank[tank.id] = hours
    tank.last_seen_at = now
    logger.debug(
        "Advanced %s by %.2fh: +%.2f coins, cleanliness %.1f",
        tank.id, hours, earned, tank.cleanliness,
    )


def advance(save: Save, catalog: Catalog, now: float) -> AdvanceResult:
    """Catch every unlocked tank up to *now*.

    Replaying with the same *now* is a no-op, and a clock that moved
    backwards advances nothing.
    """
    result = AdvanceResult()
    for tank in save.tanks.values():
        if not tank.unlocked:
            continue
        tank_def = catalog.get_tank(tank.id)
        if tank_def is None:
            continue
        advance_tank(save, tank, tank_def, catalog, now, result)
    save.meta.last_saved_at = max(save.meta.last_saved_at, now)
    return result
