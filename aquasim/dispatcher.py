"""Apply one player action to a save as an all-or-nothing transition.

Every handler checks all of its preconditions before touching the save, so a
failed ``ActionResult`` always comes back with the save exactly as it was.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from aquasim._types import DAY, HOUR, clamp, hash_string
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
)
from aquasim.pricing import (
    decor_price,
    decor_sell_return,
    fish_price,
    fish_sell_return,
    grant_xp,
    tool_price,
)
from aquasim.simulation import used_space
from aquasim.state import DecorInstance, FishInstance, new_save

if TYPE_CHECKING:
    from aquasim.actions import Action
    from aquasim.catalog import Catalog, DecorDef, SpeciesDef, TankDef
    from aquasim.state import Save, TankState

logger = logging.getLogger(__name__)

PLAY_COOLDOWN = "play"

# Default resting height per decor placement
_PLACEMENT_Y = {"top": 0.08, "mid": 0.6, "bottom": 0.85, "any": 0.7}


@dataclass
class _Context:
    save: Save
    catalog: Catalog
    now: float
    tank: TankState
    tank_def: TankDef


def _unknown(what: str, id: str) -> ActionResult:
    return ActionResult.fail(ActionError.UNKNOWN_ID, f"Unknown {what}: {id!r}")


def _funds(price: float, coins: float) -> ActionResult:
    return ActionResult.fail(
        ActionError.INSUFFICIENT_FUNDS,
        f"Need {price:,.0f} coins, have {math.floor(coins):,}",
        price=price,
    )


# ── Tanks ────────────────────────────────────────────────────────────


def _switch_tank(ctx: _Context, action: SwitchTank) -> ActionResult:
    tank = ctx.save.tanks.get(action.tank_id)
    if ctx.catalog.get_tank(action.tank_id) is None or tank is None:
        return _unknown("tank", action.tank_id)
    if not tank.unlocked:
        return ActionResult.fail(ActionError.INVALID_STATE, f"Tank {action.tank_id!r} is locked")
    ctx.save.active_tank_id = action.tank_id
    return ActionResult.ok(tank_id=action.tank_id)


def _unlock_tank(ctx: _Context, action: UnlockTank) -> ActionResult:
    tdef = ctx.catalog.get_tank(action.tank_id)
    tank = ctx.save.tanks.get(action.tank_id)
    if tdef is None or tank is None:
        return _unknown("tank", action.tank_id)
    if tank.unlocked:
        return ActionResult.fail(
            ActionError.INVALID_STATE, f"Tank {action.tank_id!r} is already unlocked"
        )
    if not tdef.unlock.evaluate(ctx.save):
        return ActionResult.fail(ActionError.REQUIREMENT_UNMET, tdef.unlock_label)
    if ctx.save.coins < tdef.unlock_price:
        return _funds(tdef.unlock_price, ctx.save.coins)

    ctx.save.coins -= tdef.unlock_price
    tank.unlocked = True
    tank.last_seen_at = ctx.now
    if not tank.food_stock:
        tank.food_stock = {fid: qty for fid, qty in tdef.starter_food}
    ctx.save.active_tank_id = tdef.id
    logger.info("Unlocked tank %s", tdef.id)
    return ActionResult.ok(tank_id=tdef.id, tank_name=tdef.name)


# ── Fish ─────────────────────────────────────────────────────────────


def _buy_fish(ctx: _Context, action: BuyFish) -> ActionResult:
    species = ctx.tank_def.get_species(action.species_id)
    if species is None:
        return _unknown("species", action.species_id)
    owned = ctx.tank.species_count(species.id)
    if species.max_per_tank is not None and owned >= species.max_per_tank:
        return ActionResult.fail(
            ActionError.LIMIT_REACHED, f"At most {species.max_per_tank} {species.name} per tank"
        )
    space = used_space(ctx.tank, ctx.tank_def)
    if space + species.space_cost > ctx.tank_def.capacity:
        return ActionResult.fail(
            ActionError.CAPACITY_EXCEEDED,
            f"Needs {species.space_cost:g} space, {max(ctx.tank_def.capacity - space, 0):g} free",
        )
    price = fish_price(species, owned, ctx.catalog.economy)
    if ctx.save.coins < price:
        return _funds(price, ctx.save.coins)

    ctx.save.coins -= price
    fish = FishInstance.create(species.id, ctx.now, hunger=ctx.catalog.tuning.new_fish_hunger)
    ctx.tank.fish.append(fish)
    ctx.save.lifetime.fish_purchased += 1
    return ActionResult.ok(fish_id=fish.id, species_id=species.id, price=price)


def _sell_fish(ctx: _Context, action: SellFish) -> ActionResult:
    fish = ctx.tank.find_fish(action.fish_id)
    if fish is None:
        return _unknown("fish", action.fish_id)
    species = ctx.tank_def.get_species(fish.species_id)
    value = 0
    if species is not None and not fish.legacy:
        value = fish_sell_return(
            fish, species, ctx.tank.species_count(species.id), ctx.catalog.economy
        )
    ctx.tank.fish.remove(fish)
    ctx.save.coins += value
    return ActionResult.ok(fish_id=fish.id, value=value)


def _feed(ctx: _Context, action: Feed) -> ActionResult:
    food = ctx.tank_def.get_food(action.food_id)
    if food is None:
        return _unknown("food", action.food_id)
    if ctx.tank.food_stock.get(food.id, 0) <= 0:
        return ActionResult.fail(ActionError.OUT_OF_STOCK, f"No {food.name} left")
    ctx.tank.food_stock[food.id] -= 1
    return ActionResult.ok(food_id=food.id, remaining=ctx.tank.food_stock[food.id], sink=food.sink)


def _fish_consume(ctx: _Context, action: FishConsume) -> ActionResult:
    fish = ctx.tank.find_fish(action.fish_id)
    if fish is None:
        return _unknown("fish", action.fish_id)
    food = ctx.tank_def.get_food(action.food_id)
    if food is None:
        return _unknown("food", action.food_id)
    species = ctx.tank_def.get_species(fish.species_id)
    if species is None or fish.legacy or not species.accepts(food.id):
        return ActionResult.ok(fish_id=fish.id, consumed=False)

    fish.hunger = clamp(fish.hunger + food.hunger_restore, 0.0, 100.0)
    fish.last_fed_at = ctx.now
    gained = grant_xp(fish, food.xp, ctx.catalog.tuning)
    return ActionResult.ok(
        fish_id=fish.id, consumed=True, hunger=fish.hunger, level=fish.level,
        levels_gained=gained,
    )


# ── Cleaning & play ──────────────────────────────────────────────────


def _start_clean(ctx: _Context, action: StartClean) -> ActionResult:
    tuning = ctx.catalog.tuning
    dirt = 1 - ctx.tank.cleanliness / 100
    seed = hash_string(f"{ctx.tank.id}:{math.floor(ctx.tank.cleanliness)}:{int(ctx.now)}")
    ctx.tank.clean_session = {"dirt": dirt, "seed": float(seed), "started_at": ctx.now}
    return ActionResult.ok(
        seed=seed, dirt_fraction=dirt, grid_w=tuning.wipe_grid_w, grid_h=tuning.wipe_grid_h
    )


def _finish_clean(ctx: _Context, action: FinishClean) -> ActionResult:
    session = ctx.tank.clean_session
    if session is None:
        return ActionResult.fail(ActionError.INVALID_STATE, "No cleaning session in progress")

    improvement = clamp(action.improvement_percent, 0.0, 100.0) / 100
    removed = session["dirt"] * improvement
    ctx.tank.cleanliness = clamp(ctx.tank.cleanliness + removed * 100, 0.0, 100.0)
    coins = math.floor(removed * 100 * ctx.catalog.economy.coins_per_100_dirt)
    ctx.save.coins += coins
    ctx.save.lifetime.coins_earned += coins

    xp = math.ceil(ctx.catalog.tuning.clean_xp_per_fish * improvement)
    for fish in ctx.tank.fish:
        if not fish.legacy:
            grant_xp(fish, xp, ctx.catalog.tuning)
    ctx.tank.clean_session = None
    return ActionResult.ok(cleanliness=ctx.tank.cleanliness, coins_earned=coins, xp=xp)


def _play(ctx: _Context, action: PlayWithFish) -> ActionResult:
    tuning = ctx.catalog.tuning
    cooldown = tuning.play_cooldown_hours * HOUR
    last = ctx.tank.cooldowns.get(PLAY_COOLDOWN)
    if last is not None and ctx.now - last < cooldown:
        remaining = cooldown - (ctx.now - last)
        return ActionResult.fail(
            ActionError.COOLDOWN_ACTIVE,
            f"Ready again in {remaining / HOUR:.1f}h",
            cooldown_remaining=remaining,
        )

    ctx.tank.cooldowns[PLAY_COOLDOWN] = ctx.now
    ctx.save.coins += tuning.play_reward_coins
    ctx.save.lifetime.coins_earned += tuning.play_reward_coins
    for fish in ctx.tank.fish:
        if not fish.legacy:
            fish.last_played_at = ctx.now
            grant_xp(fish, tuning.play_reward_xp, tuning)
    return ActionResult.ok(coins=tuning.play_reward_coins, xp=tuning.play_reward_xp)


# ── Store ────────────────────────────────────────────────────────────


def _buy_food(ctx: _Context, action: BuyFood) -> ActionResult:
    food = ctx.tank_def.get_food(action.food_id)
    if food is None:
        return _unknown("food", action.food_id)
    if action.quantity < 1:
        return ActionResult.fail(ActionError.INVALID_PAYLOAD, "quantity must be at least 1")
    cost = math.ceil(food.price * action.quantity)
    if ctx.save.coins < cost:
        return _funds(cost, ctx.save.coins)

    ctx.save.coins -= cost
    ctx.tank.food_stock[food.id] = ctx.tank.food_stock.get(food.id, 0) + action.quantity
    return ActionResult.ok(
        food_id=food.id, quantity=action.quantity, cost=cost, stock=ctx.tank.food_stock[food.id]
    )


def _buy_decor(ctx: _Context, action: BuyDecor) -> ActionResult:
    ddef = ctx.tank_def.get_decor(action.decor_id)
    if ddef is None:
        return _unknown("decor", action.decor_id)
    if ddef.max_per_tank is not None and ctx.tank.decor_count(ddef.id) >= ddef.max_per_tank:
        return ActionResult.fail(
            ActionError.LIMIT_REACHED, f"At most {ddef.max_per_tank} {ddef.name} per tank"
        )
    price = decor_price(ddef)
    if ctx.save.coins < price:
        return _funds(price, ctx.save.coins)

    ctx.save.coins -= price
    default_y = _PLACEMENT_Y.get(ddef.placement, 0.85)
    x = clamp(action.x if action.x is not None else 0.5, 0.0, 1.0)
    y = clamp(action.y if action.y is not None else default_y, 0.0, 1.0)
    size = ddef.growth.min_size if ddef.growth is not None else 1.0
    decor = DecorInstance.create(ddef.id, ctx.now, x=x, y=y, size=size)
    ctx.tank.decor.append(decor)
    return ActionResult.ok(decor_instance_id=decor.id, decor_id=ddef.id, price=price)


def _find_decor(ctx: _Context, instance_id: str) -> tuple[DecorInstance | None, DecorDef | None]:
    decor = ctx.tank.find_decor(instance_id)
    if decor is None:
        return None, None
    return decor, ctx.tank_def.get_decor(decor.decor_id)


def _sell_decor(ctx: _Context, action: SellDecor) -> ActionResult:
    decor, ddef = _find_decor(ctx, action.decor_instance_id)
    if decor is None:
        return _unknown("decor instance", action.decor_instance_id)
    value = 0
    if ddef is not None and not decor.legacy:
        value = decor_sell_return(ddef, ctx.catalog.economy)
    ctx.tank.decor.remove(decor)
    ctx.save.coins += value
    return ActionResult.ok(decor_instance_id=decor.id, value=value)


def _buy_tool(ctx: _Context, action: BuyTool) -> ActionResult:
    tool = ctx.tank_def.get_tool(action.tool_id)
    if tool is None:
        return _unknown("tool", action.tool_id)
    level = ctx.tank.tool_level(tool.id)
    price = tool_price(tool, level)
    if price is None:
        return ActionResult.fail(ActionError.LIMIT_REACHED, f"{tool.name} is at max level")
    if ctx.save.coins < price:
        return _funds(price, ctx.save.coins)

    ctx.save.coins -= price
    ctx.tank.tools_owned[tool.id] = level + 1
    return ActionResult.ok(tool_id=tool.id, level=level + 1, price=price)


def _move_decor(ctx: _Context, action: MoveDecor) -> ActionResult:
    decor = ctx.tank.find_decor(action.decor_instance_id)
    if decor is None:
        return _unknown("decor instance", action.decor_instance_id)
    if action.x is not None:
        decor.x = clamp(action.x, 0.0, 1.0)
    if action.y is not None:
        decor.y = clamp(action.y, 0.0, 1.0)
    return ActionResult.ok(decor_instance_id=decor.id, x=decor.x, y=decor.y)


def _trim_plant(ctx: _Context, action: TrimPlant) -> ActionResult:
    decor, ddef = _find_decor(ctx, action.decor_instance_id)
    if decor is None:
        return _unknown("decor instance", action.decor_instance_id)
    if decor.legacy or ddef is None or ddef.growth is None:
        return ActionResult.fail(ActionError.INVALID_STATE, "Only live plants can be trimmed")
    decor.size = clamp(
        decor.size - ctx.catalog.tuning.trim_step, ddef.growth.min_size, ddef.growth.max_size
    )
    return ActionResult.ok(decor_instance_id=decor.id, size=decor.size)


def _reset_state(ctx: _Context, action: ResetState) -> ActionResult:
    ctx.save.replace_with(new_save(ctx.catalog, ctx.now))
    logger.info("Save reset to factory defaults")
    return ActionResult.ok(reset=True)


# ── Debug scenarios ──────────────────────────────────────────────────


def _smallest_species(tank_def: TankDef) -> SpeciesDef | None:
    return min(tank_def.species, key=lambda s: s.space_cost, default=None)


def _fill_tank(ctx: _Context, tank: TankState, tank_def: TankDef, **overrides) -> None:
    species = _smallest_species(tank_def)
    if species is None:
        return
    while used_space(tank, tank_def) + species.space_cost <= tank_def.capacity:
        tank.fish.append(_debug_fish(ctx, species.id, **overrides))


def _debug_fish(ctx: _Context, species_id: str, **overrides) -> FishInstance:
    fish = FishInstance.create(species_id, ctx.now, hunger=ctx.catalog.tuning.new_fish_hunger)
    for key, value in overrides.items():
        setattr(fish, key, value)
    return fish


def _scenario_full_grown(ctx: _Context, tank_id: str) -> ActionResult:
    tdef = ctx.catalog.get_tank(tank_id)
    tank = ctx.save.tanks.get(tank_id)
    if tdef is None or tank is None:
        return ActionResult.fail(
            ActionError.UNKNOWN_OPERATION, f"Unknown scenario: full_grown_{tank_id}"
        )

    grown = {"born_at": ctx.now - 30 * DAY, "hunger": 85.0, "level": 5}
    tank.unlocked = True
    tank.last_seen_at = ctx.now
    tank.cleanliness = 100.0
    ctx.save.coins = 50000.0
    ctx.save.lifetime.coins_earned = max(ctx.save.lifetime.coins_earned, 50000.0)
    ctx.save.active_tank_id = tank_id

    tank.fish = []
    for species in tdef.species:
        if used_space(tank, tdef) + species.space_cost > tdef.capacity:
            break
        tank.fish.append(_debug_fish(ctx, species.id, **grown))
    _fill_tank(ctx, tank, tdef, **grown)

    count = max(len(tdef.decor), 1)
    tank.decor = []
    for i, ddef in enumerate(tdef.decor):
        size = ddef.growth.max_size if ddef.growth is not None else 1.0
        tank.decor.append(DecorInstance.create(
            ddef.id, ctx.now, x=0.1 + (i / count) * 0.8,
            y=_PLACEMENT_Y.get(ddef.placement, 0.85), size=size,
        ))
    tank.food_stock = {f.id: 50 for f in tdef.foods}
    tank.tools_owned = {t.id: t.max_level for t in tdef.tools}
    return ActionResult.ok(applied=f"full_grown_{tank_id}")


def _apply_scenario(ctx: _Context, name: str) -> bool:
    """Mutate the active tank for a named scenario. False when *name* is unknown."""
    save, tank, tdef = ctx.save, ctx.tank, ctx.tank_def
    if name == "clean_tank":
        tank.cleanliness = 100.0
        for f in tank.fish:
            f.hunger, f.weak, f.health = 90.0, False, 100.0
    elif name == "dirty_tank":
        tank.cleanliness = 5.0
    elif name == "hungry_fish":
        for f in tank.fish:
            f.hunger = 5.0
    elif name == "all_weak":
        for f in tank.fish:
            f.weak, f.hunger, f.health = True, 5.0, 10.0
    elif name == "rich":
        save.coins = 99999.0
    elif name == "poor":
        save.coins = 0.0
    elif name == "missing_requirements":
        required = {req.decor_id for s in tdef.species for req in s.decor}
        tank.decor = [d for d in tank.decor if d.decor_id not in required]
        tank.tools_owned = {}
    elif name == "max_plants":
        for d in tank.decor:
            ddef = tdef.get_decor(d.decor_id)
            if ddef is not None and ddef.growth is not None:
                d.size = ddef.growth.max_size
    elif name == "baby_fish":
        for f in tank.fish:
            f.born_at = ctx.now
    elif name == "full_tank":
        _fill_tank(ctx, tank, tdef)
    elif name == "all_unlocked":
        for other in ctx.catalog.tanks:
            state = save.tanks[other.id]
            if not state.unlocked:
                state.unlocked = True
                state.last_seen_at = ctx.now
                if not state.fish and other.species:
                    state.fish.append(_debug_fish(ctx, other.species[0].id))
    elif name == "fresh_start":
        save.replace_with(new_save(ctx.catalog, ctx.now))
    else:
        return False
    return True


def _debug_scenario(ctx: _Context, action: DebugScenario) -> ActionResult:
    name = action.scenario
    if name.startswith("full_grown_"):
        return _scenario_full_grown(ctx, name[len("full_grown_"):])
    if not _apply_scenario(ctx, name):
        return ActionResult.fail(ActionError.UNKNOWN_OPERATION, f"Unknown scenario: {name!r}")
    logger.info("Applied debug scenario %s", name)
    return ActionResult.ok(applied=name)


# ── Dispatch ─────────────────────────────────────────────────────────

_HANDLERS: dict[type, Callable[[_Context, object], ActionResult]] = {
    SwitchTank: _switch_tank,
    UnlockTank: _unlock_tank,
    BuyFish: _buy_fish,
    SellFish: _sell_fish,
    Feed: _feed,
    FishConsume: _fish_consume,
    StartClean: _start_clean,
    FinishClean: _finish_clean,
    PlayWithFish: _play,
    BuyFood: _buy_food,
    BuyDecor: _buy_decor,
    SellDecor: _sell_decor,
    BuyTool: _buy_tool,
    MoveDecor: _move_decor,
    TrimPlant: _trim_plant,
    ResetState: _reset_state,
    DebugScenario: _debug_scenario,
}


def apply(save: Save, action: Action | ActionResult, catalog: Catalog, now: float) -> ActionResult:
    """Apply *action* to the save's active tank.

    A parse failure passed in as an ``ActionResult`` is returned unchanged.
    """
    if isinstance(action, ActionResult):
        return action
    handler = _HANDLERS.get(type(action))
    if handler is None:
        return ActionResult.fail(ActionError.UNKNOWN_ACTION, f"Unknown action: {action!r}")

    tank = save.active_tank
    tank_def = catalog.get_tank(save.active_tank_id)
    if tank is None or tank_def is None:
        return ActionResult.fail(ActionError.INVALID_STATE, "No active tank")
    return handler(_Context(save, catalog, now, tank, tank_def), action)
