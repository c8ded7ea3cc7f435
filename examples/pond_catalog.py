"""Garden pond: a one-tank catalog showing how to define custom content."""
from __future__ import annotations

from aquasim.catalog import (
    Catalog,
    DecorDef,
    Economy,
    FoodDef,
    GrowthDef,
    SpeciesDef,
    SpreadDef,
    StoreSection,
    TankDef,
    ToolDef,
    ToolRequirement,
    Tuning,
)
from aquasim.formatting import format_text_report
from aquasim.service import AquariumService, MemoryStore
from aquasim.unlock import Unlock


def define_catalog() -> Catalog:
    pond = TankDef(
        id="pond",
        name="Garden Pond",
        capacity=12,
        base_dirty_rate=0.3,
        dirty_per_space=0.05,
        unlock=Unlock.free(),
        species=[
            SpeciesDef("shubunkin", "Shubunkin", base_price=20, base_coin_per_hour=2.0,
                       hunger_rate=0.8, space_cost=2, diet=("pond_sticks", "koi_pellets")),
            SpeciesDef("koi", "Koi", base_price=60, base_coin_per_hour=6.0,
                       hunger_rate=1.2, space_cost=4, diet=("koi_pellets",),
                       tools=(ToolRequirement("pump", 20, "Needs a pump"),)),
            SpeciesDef("pond_snail", "Pond Snail", base_price=15, base_coin_per_hour=0.3,
                       hunger_rate=0.4, space_cost=1, diet=("pond_sticks",),
                       dirt_reduction=0.2, zone="bottom"),
        ],
        foods=[
            FoodDef("pond_sticks", "Pond Sticks", price=2, hunger_restore=25, xp=4),
            FoodDef("koi_pellets", "Koi Pellets", price=5, hunger_restore=45, xp=8),
        ],
        decor=[
            DecorDef("water_lily", "Water Lily", price=25, placement="top",
                     growth=GrowthDef(0.02, 0.4, 1.6),
                     spread=SpreadDef(chance_per_day=0.4, max_clusters=3,
                                      spawn_radius=0.2, threshold=1.0)),
            DecorDef("stone_lantern", "Stone Lantern", price=40, max_per_tank=1),
        ],
        tools=[
            ToolDef("pump", "Pump", prices=[50, 120], dirt_reduction=[0.25, 0.4],
                    flow=[0.4, 0.8]),
        ],
        store=[
            StoreSection("fish", ["shubunkin", "koi", "pond_snail"]),
            StoreSection("food", ["pond_sticks", "koi_pellets"]),
            StoreSection("decor", ["water_lily", "stone_lantern"]),
            StoreSection("tools", ["pump"]),
        ],
        starter_species=["shubunkin"],
        starter_food=[("pond_sticks", 10)],
    )
    return Catalog(
        content_version="pond-1",
        tanks=[pond],
        economy=Economy(starting_coins=150),
        tuning=Tuning(max_idle_hours=72),
    )


class StepClock:
    """Manual clock for scripted sessions."""

    def __init__(self, start: float) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, hours: float) -> None:
        self.now += hours * 3600


def play_session(service: AquariumService, clock: StepClock, instance_id: str = "pond") -> dict:
    """Buy a pump and a koi, plant a lily, then check back twice a day for three days."""
    service.get_state(instance_id)
    service.do_action(instance_id, "buy_tool", {"tool_id": "pump"})
    service.do_action(instance_id, "buy_decor", {"decor_id": "water_lily"})
    response = service.do_action(instance_id, "buy_fish", {"species_id": "koi"})

    for _ in range(6):
        clock.advance(12)
        response = service.get_state(instance_id)
        for fish in response["tank"]["fish"]:
            food = "koi_pellets" if fish["species_id"] == "koi" else "pond_sticks"
            if response["tank"]["food_stock"].get(food, 0) <= 0:
                service.do_action(instance_id, "buy_food", {"food_id": food, "quantity": 5})
            service.do_action(instance_id, "feed", {"food_id": food})
            response = service.do_action(
                instance_id, "fish_consume", {"fish_id": fish["id"], "food_id": food}
            )
    return response


def main() -> None:
    clock = StepClock(1_700_000_000.0)
    service = AquariumService(MemoryStore(), catalog=define_catalog(), clock=clock)
    print(format_text_report(play_session(service, clock)))


if __name__ == "__main__":
    main()
