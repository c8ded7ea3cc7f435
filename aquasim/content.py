"""Default aquarium content: three tanks, their species, food, decor and tools."""
from __future__ import annotations

from aquasim.catalog import (
    Catalog,
    DecorDef,
    DecorRequirement,
    Economy,
    FloatingPlantsRequirement,
    FoodDef,
    GrowthDef,
    PlantMassRequirement,
    Rename,
    SpeciesDef,
    SpreadDef,
    StoreSection,
    TankDef,
    ToolDef,
    ToolRequirement,
    Tuning,
)
from aquasim.unlock import Unlock

CONTENT_VERSION = "1.1.0"

_TROPICAL_TOOLS = (ToolRequirement("heater", 20, "Missing Heater"),)
_SALT_TOOLS = (
    ToolRequirement("filter_salt", 15, "Missing Filter"),
    ToolRequirement("skimmer", 15, "Missing Protein Skimmer"),
    ToolRequirement("uv_sterilizer", 20, "Missing UV Sterilizer"),
)


def _store(fish, food, decor, tools) -> list[StoreSection]:
    return [
        StoreSection("fish", fish),
        StoreSection("food", food),
        StoreSection("decor", decor),
        StoreSection("tools", tools),
    ]


def _fresh_tank() -> TankDef:
    return TankDef(
        id="fresh",
        name="Fresh Starter",
        capacity=8,
        base_dirty_rate=0.4,
        dirty_per_space=0.08,
        unlock=Unlock.free(),
        unlock_label="Your starter tank",
        species=[
            SpeciesDef("guppy", "Guppy", base_price=15, base_coin_per_hour=2.5,
                       hunger_rate=0.9, space_cost=1,
                       diet=("basic_flakes", "pellets"), zone="top"),
            SpeciesDef("goldfish", "Goldfish", base_price=35, base_coin_per_hour=4.0,
                       hunger_rate=1.0, space_cost=3,
                       diet=("basic_flakes", "pellets")),
            SpeciesDef("snail", "Mystery Snail", base_price=40, base_coin_per_hour=0.5,
                       hunger_rate=0.5, space_cost=1, diet=("algae_wafer",),
                       dirt_reduction=0.15, zone="bottom"),
        ],
        foods=[
            FoodDef("basic_flakes", "Basic Flakes", price=3, hunger_restore=30, xp=5,
                    sink="slowSink"),
            FoodDef("pellets", "Pellets", price=6, hunger_restore=45, xp=8),
            FoodDef("algae_wafer", "Algae Wafer", price=4, hunger_restore=35, xp=5),
        ],
        decor=[
            DecorDef("hornwort", "Hornwort", price=20, placement="mid",
                     growth=GrowthDef(0.02, 0.5, 2.0)),
            DecorDef("vallisneria", "Vallisneria", price=25, placement="mid",
                     growth=GrowthDef(0.018, 0.5, 2.2)),
            DecorDef("anubias", "Anubias", price=22, placement="mid",
                     growth=GrowthDef(0.008, 0.4, 1.4)),
            DecorDef("moss_ball", "Moss Ball", price=15),
            DecorDef("rock_pile", "Rock Pile", price=25),
            DecorDef("driftwood", "Driftwood", price=35, placement="mid"),
            DecorDef("treasure_chest", "Treasure Chest", price=50),
            DecorDef("sunken_ship", "Sunken Ship", price=75, max_per_tank=1),
        ],
        store=_store(
            ["guppy", "goldfish", "snail"],
            ["basic_flakes", "pellets", "algae_wafer"],
            ["hornwort", "vallisneria", "anubias", "moss_ball", "rock_pile",
             "driftwood", "treasure_chest", "sunken_ship"],
            [],
        ),
        starter_species=["guppy"],
        starter_food=[("basic_flakes", 10)],
    )


def _tropical_tank() -> TankDef:
    return TankDef(
        id="tropical",
        name="Tropical Planted",
        capacity=14,
        base_dirty_rate=0.5,
        dirty_per_space=0.10,
        unlock=Unlock.lifetime_coins(1500),
        unlock_label="Earn 1,500 lifetime coins",
        species=[
            SpeciesDef("neon_tetra", "Neon Tetra", base_price=25, base_coin_per_hour=3.2,
                       hunger_rate=0.8, space_cost=0.5,
                       diet=("tropical_flakes", "bloodworms"), tools=_TROPICAL_TOOLS),
            SpeciesDef("blue_eye", "Blue-Eye", base_price=30, base_coin_per_hour=3.5,
                       hunger_rate=0.9, space_cost=0.5,
                       diet=("tropical_flakes", "pellets"), tools=_TROPICAL_TOOLS,
                       zone="top"),
            SpeciesDef("moon_fish", "Moon Fish", base_price=40, base_coin_per_hour=4.5,
                       hunger_rate=1.0, space_cost=2,
                       diet=("tropical_flakes", "pellets", "bloodworms"),
                       tools=_TROPICAL_TOOLS),
            SpeciesDef("discus", "Discus", base_price=70, base_coin_per_hour=6.5,
                       hunger_rate=1.1, space_cost=4,
                       diet=("tropical_flakes", "bloodworms"), tools=_TROPICAL_TOOLS,
                       plant_mass=PlantMassRequirement(3.0, 25, "Needs plants")),
            SpeciesDef("pleco", "Pleco", base_price=50, base_coin_per_hour=1.8,
                       hunger_rate=0.6, space_cost=3, diet=("algae_wafer",),
                       tools=_TROPICAL_TOOLS, dirt_reduction=0.10, zone="bottom"),
            SpeciesDef("gourami", "Gourami", base_price=55, base_coin_per_hour=5.5,
                       hunger_rate=1.0, space_cost=2,
                       diet=("tropical_flakes", "pellets", "bloodworms"),
                       tools=_TROPICAL_TOOLS,
                       floating_plants=FloatingPlantsRequirement(
                           1, 30, "Needs floating plants"),
                       zone="top"),
        ],
        foods=[
            FoodDef("tropical_flakes", "Tropical Flakes", price=4, hunger_restore=30,
                    xp=5, sink="slowSink"),
            FoodDef("pellets", "Pellets", price=6, hunger_restore=45, xp=8),
            FoodDef("bloodworms", "Bloodworms", price=8, hunger_restore=55, xp=10,
                    sink="slowSink"),
            FoodDef("algae_wafer", "Algae Wafer", price=4, hunger_restore=35, xp=5),
        ],
        decor=[
            DecorDef("java_fern", "Java Fern", price=30, placement="mid",
                     growth=GrowthDef(0.015, 0.5, 1.8)),
            DecorDef("amazon_sword", "Amazon Sword", price=40, placement="mid",
                     growth=GrowthDef(0.02, 0.5, 2.0)),
            DecorDef("cryptocoryne", "Cryptocoryne", price=28, placement="mid",
                     growth=GrowthDef(0.012, 0.5, 1.6)),
            DecorDef("ludwigia", "Ludwigia", price=35, placement="mid",
                     growth=GrowthDef(0.022, 0.5, 2.0)),
            DecorDef("floating_plants", "Floating Plants", price=20, placement="top",
                     growth=GrowthDef(0.025, 0.3, 1.5),
                     spread=SpreadDef(chance_per_day=0.3, max_clusters=4,
                                      spawn_radius=0.15, threshold=0.8)),
            DecorDef("mossy_log", "Mossy Log", price=45),
            DecorDef("hollow_stump", "Hollow Stump", price=55),
        ],
        tools=[
            ToolDef("heater", "Heater", prices=[60]),
            ToolDef("filter_tropical", "Filter", prices=[80, 180],
                    dirt_reduction=[0.20, 0.30], flow=[0.3, 0.6]),
        ],
        store=_store(
            ["neon_tetra", "blue_eye", "moon_fish", "discus", "pleco", "gourami"],
            ["tropical_flakes", "pellets", "bloodworms", "algae_wafer"],
            ["java_fern", "amazon_sword", "cryptocoryne", "ludwigia",
             "floating_plants", "mossy_log", "hollow_stump"],
            ["heater", "filter_tropical"],
        ),
    )


def _salt_tank() -> TankDef:
    return TankDef(
        id="salt",
        name="Saltwater Reef",
        capacity=20,
        base_dirty_rate=0.6,
        dirty_per_space=0.12,
        unlock=Unlock.all(
            Unlock.lifetime_coins(5000),
            Unlock.tool_owned("tropical", "heater"),
        ),
        unlock_label="Earn 5,000 lifetime coins and own a Heater",
        species=[
            SpeciesDef("clownfish", "Clownfish", base_price=45, base_coin_per_hour=5.0,
                       hunger_rate=1.0, space_cost=2,
                       diet=("marine_pellets", "reef_flakes", "frozen_brine"),
                       tools=_SALT_TOOLS,
                       decor=(DecorRequirement("anemone", 40, "Missing Anemone"),)),
            SpeciesDef("blue_tang", "Blue Tang", base_price=80, base_coin_per_hour=7.5,
                       hunger_rate=1.1, space_cost=3,
                       diet=("marine_pellets", "reef_flakes"), tools=_SALT_TOOLS),
            SpeciesDef("green_chromis", "Green Chromis", base_price=35,
                       base_coin_per_hour=3.0, hunger_rate=0.8, space_cost=0.5,
                       diet=("reef_flakes", "frozen_brine"), tools=_SALT_TOOLS),
            SpeciesDef("firefish", "Firefish", base_price=45, base_coin_per_hour=4.5,
                       hunger_rate=0.9, space_cost=1,
                       diet=("reef_flakes", "frozen_brine"), tools=_SALT_TOOLS),
            SpeciesDef("royal_gramma", "Royal Gramma", base_price=55,
                       base_coin_per_hour=5.0, hunger_rate=0.9, space_cost=1.5,
                       diet=("marine_pellets", "reef_flakes"), tools=_SALT_TOOLS,
                       zone="bottom"),
            SpeciesDef("banggai_cardinal", "Banggai Cardinalfish", base_price=45,
                       base_coin_per_hour=3.8, hunger_rate=0.8, space_cost=1,
                       diet=("reef_flakes", "frozen_brine"), tools=_SALT_TOOLS),
            SpeciesDef("moray_eel", "Moray Eel", base_price=150, base_coin_per_hour=12.0,
                       hunger_rate=1.3, space_cost=8, max_per_tank=1,
                       diet=("marine_pellets", "frozen_brine", "live_shrimp"),
                       tools=_SALT_TOOLS,
                       decor=(DecorRequirement("cave", 55, "Missing Cave"),),
                       zone="bottom"),
            SpeciesDef("cleaner_shrimp", "Cleaner Shrimp", base_price=55,
                       base_coin_per_hour=1.8, hunger_rate=0.5, space_cost=0.5,
                       diet=("reef_flakes",), tools=_SALT_TOOLS,
                       dirt_reduction=0.08, zone="bottom"),
        ],
        foods=[
            FoodDef("marine_pellets", "Marine Pellets", price=8, hunger_restore=45, xp=8),
            FoodDef("reef_flakes", "Reef Flakes", price=6, hunger_restore=30, xp=5,
                    sink="slowSink"),
            FoodDef("frozen_brine", "Frozen Brine Shrimp", price=10, hunger_restore=55,
                    xp=10, sink="slowSink"),
            FoodDef("live_shrimp", "Live Shrimp", price=18, hunger_restore=70, xp=15),
        ],
        decor=[
            DecorDef("anemone", "Anemone", price=80, placement="any"),
            DecorDef("live_rock", "Live Rock", price=45),
            DecorDef("brain_coral", "Brain Coral", price=60),
            DecorDef("staghorn_coral", "Staghorn Coral", price=55, placement="any"),
            DecorDef("cave", "Cave", price=100, max_per_tank=1),
            DecorDef("sea_fan", "Sea Fan", price=40, placement="any"),
        ],
        tools=[
            ToolDef("filter_salt", "Filter", prices=[100, 220],
                    dirt_reduction=[0.20, 0.30], flow=[0.3, 0.6]),
            ToolDef("skimmer", "Protein Skimmer", prices=[150], dirt_reduction=[0.20]),
            ToolDef("uv_sterilizer", "UV Sterilizer", prices=[200]),
        ],
        store=_store(
            ["clownfish", "blue_tang", "green_chromis", "firefish", "royal_gramma",
             "banggai_cardinal", "moray_eel", "cleaner_shrimp"],
            ["marine_pellets", "reef_flakes", "frozen_brine", "live_shrimp"],
            ["anemone", "live_rock", "brain_coral", "staghorn_coral", "cave", "sea_fan"],
            ["filter_salt", "skimmer", "uv_sterilizer"],
        ),
    )


def define_catalog() -> Catalog:
    return Catalog(
        content_version=CONTENT_VERSION,
        tanks=[_fresh_tank(), _tropical_tank(), _salt_tank()],
        economy=Economy(),
        tuning=Tuning(),
        renames=[
            # Pre-catalog single-tank content
            Rename("food", "flakes", "basic_flakes", since="1.0.0"),
            Rename("food", "premium_flakes", "tropical_flakes", since="1.0.0"),
            Rename("decor", "plant_fern", "hornwort", since="1.0.0"),
            Rename("decor", "plant_grass", "vallisneria", since="1.0.0"),
            Rename("decor", "plant_anubias", "anubias", since="1.0.0"),
            Rename("decor", "treasure", "treasure_chest", since="1.0.0"),
            Rename("decor", "shipwreck", "sunken_ship", since="1.0.0"),
            Rename("decor", "coral_rock", "live_rock", since="1.0.0"),
            Rename("tool", "filter", "filter_tropical", since="1.0.0"),
            Rename("fish", "neon", "neon_tetra", since="1.1.0"),
        ],
        legacy_tank_ids=["fresh", "tropical", "salt"],
    )
