"""Read-only view of a save, shaped for the widget client."""
from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

from aquasim._types import DAY, HOUR
from aquasim.happiness import score
from aquasim.pricing import (
    decor_price,
    decor_sell_return,
    fish_price,
    fish_sell_return,
    tool_price,
    xp_to_next_level,
)
from aquasim.simulation import (
    coin_rate,
    effective_dirty_rate,
    effective_flow,
    life_stage,
    used_space,
)

if TYPE_CHECKING:
    from aquasim.actions import ActionResult
    from aquasim.catalog import Catalog, TankDef
    from aquasim.simulation import AdvanceResult
    from aquasim.state import DecorInstance, FishInstance, Save, TankState

NOT_ENOUGH_COINS = "Not enough coins"


def _fish_view(
    fish: FishInstance, tank: TankState, tank_def: TankDef, catalog: Catalog, now: float
) -> dict[str, Any]:
    tuning = catalog.tuning
    view: dict[str, Any] = {
        "id": fish.id,
        "species_id": fish.species_id,
        "name": fish.species_id,
        "legacy": fish.legacy,
        "level": fish.level,
        "xp": round(fish.xp, 2),
        "xp_to_next": (
            xp_to_next_level(fish.level, tuning) if fish.level < tuning.max_level else None
        ),
        "hunger": round(fish.hunger, 2),
        "health": round(fish.health, 2),
        "weak": fish.weak,
        "age_days": round(max(0.0, now - fish.born_at) / DAY, 2),
        "happiness": None,
        "breakdown": [],
        "life_stage": life_stage(fish, now, tuning)[0],
        "coin_rate": 0.0,
        "sell_value": 0,
        "zone": "middle",
    }
    species = tank_def.get_species(fish.species_id)
    if species is None or fish.legacy:
        return view

    happiness = score(fish, tank, tank_def, tuning)
    view.update(
        name=species.name,
        happiness=happiness.value,
        breakdown=[f.to_dict() for f in happiness.breakdown],
        coin_rate=round(coin_rate(fish, species, happiness.value, now, catalog), 4),
        sell_value=fish_sell_return(
            fish, species, tank.species_count(species.id), catalog.economy
        ),
        zone=species.zone,
    )
    return view


def _decor_view(decor: DecorInstance, tank_def: TankDef, catalog: Catalog) -> dict[str, Any]:
    ddef = tank_def.get_decor(decor.decor_id)
    live = ddef is not None and not decor.legacy
    return {
        "id": decor.id,
        "decor_id": decor.decor_id,
        "name": ddef.name if ddef is not None else decor.decor_id,
        "x": decor.x,
        "y": decor.y,
        "size": round(decor.size, 4),
        "placement": ddef.placement if ddef is not None else "bottom",
        "growable": live and ddef.growable,
        "legacy": decor.legacy,
        "cluster": decor.state.get("cluster"),
        "sell_value": decor_sell_return(ddef, catalog.economy) if live else 0,
    }


def _tank_view(tank: TankState, tank_def: TankDef, catalog: Catalog, now: float) -> dict[str, Any]:
    space = used_space(tank, tank_def)
    last_play = tank.cooldowns.get("play")
    cooldown = catalog.tuning.play_cooldown_hours * HOUR
    play_remaining = 0.0 if last_play is None else max(0.0, cooldown - (now - last_play))
    return {
        "id": tank.id,
        "name": tank_def.name,
        "capacity": tank_def.capacity,
        "used_space": space,
        "over_capacity": space > tank_def.capacity,
        "cleanliness": round(tank.cleanliness, 2),
        "dirty_rate": round(effective_dirty_rate(tank, tank_def, catalog.tuning), 4),
        "flow": effective_flow(tank, tank_def),
        "food_stock": dict(tank.food_stock),
        "tools_owned": dict(tank.tools_owned),
        "play_cooldown_remaining": play_remaining,
        "cleaning": tank.clean_session is not None,
        "fish": [_fish_view(f, tank, tank_def, catalog, now) for f in tank.fish],
        "decor": [_decor_view(d, tank_def, catalog) for d in tank.decor],
    }


def _tanks_list(save: Save, catalog: Catalog) -> list[dict[str, Any]]:
    rows = []
    for tdef in catalog.tanks:
        tank = save.tanks.get(tdef.id)
        unlocked = tank is not None and tank.unlocked
        rows.append({
            "id": tdef.id,
            "name": tdef.name,
            "capacity": tdef.capacity,
            "unlocked": unlocked,
            "fish_count": len(tank.fish) if tank is not None else 0,
            "used_space": used_space(tank, tdef) if unlocked else 0.0,
            "meets_requirements": tdef.unlock.evaluate(save),
            "unlock_label": tdef.unlock_label,
            "unlock_price": tdef.unlock_price,
            "active": save.active_tank_id == tdef.id,
        })
    return rows


def _item(id: str, name: str, price: float | None, block: str | None, **extra: Any) -> dict:
    return {
        "id": id,
        "name": name,
        "price": price,
        "can_buy": block is None,
        "block_reason": block,
        **extra,
    }


def _store(save: Save, tank: TankState, tank_def: TankDef, catalog: Catalog) -> dict[str, list]:
    coins = save.coins
    free_space = tank_def.capacity - used_space(tank, tank_def)
    sections: dict[str, list] = {}

    for section in tank_def.store:
        items = []
        for item_id in section.order:
            if section.id == "fish":
                species = tank_def.get_species(item_id)
                owned = tank.species_count(item_id)
                price = fish_price(species, owned, catalog.economy)
                block = None
                if species.max_per_tank is not None and owned >= species.max_per_tank:
                    block = "Limit reached"
                elif species.space_cost > free_space:
                    block = "Tank full"
                elif coins < price:
                    block = NOT_ENOUGH_COINS
                items.append(_item(
                    item_id, species.name, price, block,
                    owned=owned, space_cost=species.space_cost,
                    base_coin_per_hour=species.base_coin_per_hour,
                ))
            elif section.id == "food":
                food = tank_def.get_food(item_id)
                price = math.ceil(food.price)
                block = NOT_ENOUGH_COINS if coins < price else None
                items.append(_item(
                    item_id, food.name, price, block,
                    stock=tank.food_stock.get(item_id, 0), hunger_restore=food.hunger_restore,
                ))
            elif section.id == "decor":
                ddef = tank_def.get_decor(item_id)
                price = decor_price(ddef)
                block = None
                if ddef.max_per_tank is not None and tank.decor_count(item_id) >= ddef.max_per_tank:
                    block = "Limit reached"
                elif coins < price:
                    block = NOT_ENOUGH_COINS
                items.append(_item(item_id, ddef.name, price, block, growable=ddef.growable))
            elif section.id == "tools":
                tool = tank_def.get_tool(item_id)
                level = tank.tool_level(item_id)
                price = tool_price(tool, level)
                if price is None:
                    block = "Max level"
                elif coins < price:
                    block = NOT_ENOUGH_COINS
                else:
                    block = None
                items.append(_item(
                    item_id, tool.name, price, block,
                    level=level, max_level=tool.max_level,
                    next_dirt_reduction=tool.dirt_reduction_at(level + 1),
                ))
        sections[section.id] = items
    return sections


def build_response(
    save: Save,
    catalog: Catalog,
    now: float,
    action_result: ActionResult | None = None,
    sim_result: AdvanceResult | None = None,
    is_new: bool = False,
) -> dict[str, Any]:
    """Project *save* into the plain dict returned by every inbound operation."""
    tank = save.active_tank
    tank_def = catalog.get_tank(save.active_tank_id)
    return {
        "coins": math.floor(save.coins),
        "lifetime_coins": math.floor(save.lifetime.coins_earned),
        "active_tank_id": save.active_tank_id,
        "catalog_version": catalog.content_version,
        "tank": _tank_view(tank, tank_def, catalog, now),
        "tanks": _tanks_list(save, catalog),
        "store": _store(save, tank, tank_def, catalog),
        "action_result": action_result.to_dict() if action_result is not None else None,
        "sim_result": sim_result.to_dict() if sim_result is not None else None,
        "is_new": is_new,
    }
