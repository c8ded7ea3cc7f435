from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from aquasim.unlock import Unlock, UnlockRule

if TYPE_CHECKING:
    from aquasim.state import TankState

CONTENT_KINDS = ("fish", "food", "decor", "tool")


# ── Global configuration ─────────────────────────────────────────────


@dataclass(frozen=True)
class Economy:
    """Global price and reward constants."""

    fish_price_growth: float = 1.18
    fish_sell_return: float = 0.30
    sell_level_bonus: float = 0.05
    decor_sell_return: float = 0.35
    coins_per_100_dirt: float = 5.0
    level_coin_bonus: float = 0.12
    starting_coins: float = 50.0


@dataclass(frozen=True)
class Tuning:
    """Simulation constants shared by every tank."""

    max_idle_hours: float = 168.0
    max_level: int = 10
    xp_base: float = 30.0
    xp_per_level: float = 14.0

    # Weak / recovery state machine
    weak_hunger: float = 10.0
    weak_health: float = 15.0
    weak_happiness: float = 20.0
    unfed_hours: float = 12.0
    weak_health_penalty: float = 20.0
    weak_coin_multiplier: float = 0.1
    recovery_hunger: float = 35.0
    recovery_cleanliness: float = 30.0
    recovery_health: float = 30.0

    # Passive health regeneration
    regen_per_hour: float = 2.0
    regen_hunger: float = 40.0
    regen_cleanliness: float = 40.0

    min_dirty_rate: float = 0.05

    # Life stages (age in days → coin multiplier)
    baby_days: float = 2.0
    juvenile_days: float = 7.0
    baby_coin_mult: float = 0.90
    juvenile_coin_mult: float = 1.00
    adult_coin_mult: float = 1.05

    plant_bonus_per_decor: float = 2.0
    plant_bonus_cap: float = 6.0

    play_cooldown_hours: float = 6.0
    play_reward_coins: float = 25.0
    play_reward_xp: float = 5.0

    clean_xp_per_fish: float = 2.0
    wipe_grid_w: int = 64
    wipe_grid_h: int = 48

    trim_step: float = 0.25
    new_fish_hunger: float = 95.0
    default_food_quantity: int = 5


# ── Content definitions ──────────────────────────────────────────────


@dataclass(frozen=True)
class ToolRequirement:
    tool_id: str
    penalty: float
    label: str = ""


@dataclass(frozen=True)
class DecorRequirement:
    decor_id: str
    penalty: float
    label: str = ""


@dataclass(frozen=True)
class PlantMassRequirement:
    min_total: float
    penalty: float
    label: str = "Needs plants"


@dataclass(frozen=True)
class FloatingPlantsRequirement:
    min_count: int
    penalty: float
    label: str = "Needs floating plants"


@dataclass(frozen=True)
class SpeciesDef:
    """Static definition of a fish species."""

    id: str
    name: str = ""
    base_price: float = 10.0
    base_coin_per_hour: float = 1.0
    hunger_rate: float = 1.0
    space_cost: float = 1.0
    diet: tuple[str, ...] = ()
    max_per_tank: int | None = None
    tools: tuple[ToolRequirement, ...] = ()
    decor: tuple[DecorRequirement, ...] = ()
    plant_mass: PlantMassRequirement | None = None
    floating_plants: FloatingPlantsRequirement | None = None
    dirt_reduction: float = 0.0
    zone: str = "middle"

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", self.id)
        object.__setattr__(self, "diet", tuple(self.diet))
        object.__setattr__(self, "tools", tuple(self.tools))
        object.__setattr__(self, "decor", tuple(self.decor))

    def accepts(self, food_id: str) -> bool:
        return food_id in self.diet

    def hard_requirements_met(self, tank: TankState) -> bool:
        """True when every required tool and decor is present in *tank*."""
        for req in self.tools:
            if tank.tool_level(req.tool_id) <= 0:
                return False
        for req in self.decor:
            if not tank.has_decor(req.decor_id):
                return False
        return True


@dataclass(frozen=True)
class FoodDef:
    id: str
    name: str = ""
    price: float = 1.0
    hunger_restore: float = 30.0
    xp: float = 5.0
    sink: str = "sink"

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", self.id)


@dataclass(frozen=True)
class GrowthDef:
    rate_per_hour: float
    min_size: float
    max_size: float


@dataclass(frozen=True)
class SpreadDef:
    chance_per_day: float
    max_clusters: int
    spawn_radius: float
    threshold: float


@dataclass(frozen=True)
class DecorDef:
    id: str
    name: str = ""
    price: float = 10.0
    placement: str = "bottom"
    growth: GrowthDef | None = None
    spread: SpreadDef | None = None
    max_per_tank: int | None = None
    sell_return: float | None = None

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", self.id)

    @property
    def growable(self) -> bool:
        return self.growth is not None

    @property
    def floating(self) -> bool:
        return self.placement == "top"


@dataclass(frozen=True)
class ToolDef:
    """An upgradable tank tool; level N costs prices[N-1]."""

    id: str
    name: str = ""
    prices: tuple[float, ...] = ()
    dirt_reduction: tuple[float, ...] = ()
    flow: tuple[float, ...] = ()

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", self.id)
        object.__setattr__(self, "prices", tuple(self.prices))
        object.__setattr__(self, "dirt_reduction", tuple(self.dirt_reduction))
        object.__setattr__(self, "flow", tuple(self.flow))

    @property
    def max_level(self) -> int:
        return len(self.prices)

    def dirt_reduction_at(self, level: int) -> float:
        if level <= 0 or not self.dirt_reduction:
            return 0.0
        return self.dirt_reduction[min(level, len(self.dirt_reduction)) - 1]

    def flow_at(self, level: int) -> float:
        if level <= 0 or not self.flow:
            return 0.0
        return self.flow[min(level, len(self.flow)) - 1]


@dataclass(frozen=True)
class StoreSection:
    id: str
    order: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "order", tuple(self.order))


@dataclass(frozen=True)
class TankDef:
    """Static definition of one tank slot and the content sold for it."""

    id: str
    name: str = ""
    capacity: float = 8.0
    base_dirty_rate: float = 0.4
    dirty_per_space: float = 0.08
    hunger_rate_multiplier: float = 1.0
    unlock: UnlockRule = field(default_factory=Unlock.free)
    unlock_label: str = ""
    unlock_price: float = 0.0
    species: tuple[SpeciesDef, ...] = ()
    foods: tuple[FoodDef, ...] = ()
    decor: tuple[DecorDef, ...] = ()
    tools: tuple[ToolDef, ...] = ()
    store: tuple[StoreSection, ...] = ()
    starter_species: tuple[str, ...] = ()
    starter_food: tuple[tuple[str, int], ...] = ()

    _species_by_id: dict[str, SpeciesDef] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )
    _foods_by_id: dict[str, FoodDef] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )
    _decor_by_id: dict[str, DecorDef] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )
    _tools_by_id: dict[str, ToolDef] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", self.id)
        if not self.unlock_label:
            object.__setattr__(self, "unlock_label", self.unlock.describe())
        for name in ("species", "foods", "decor", "tools", "store",
                     "starter_species", "starter_food"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        object.__setattr__(self, "_species_by_id", {s.id: s for s in self.species})
        object.__setattr__(self, "_foods_by_id", {f.id: f for f in self.foods})
        object.__setattr__(self, "_decor_by_id", {d.id: d for d in self.decor})
        object.__setattr__(self, "_tools_by_id", {t.id: t for t in self.tools})

    def get_species(self, id: str) -> SpeciesDef | None:
        return self._species_by_id.get(id)

    def get_food(self, id: str) -> FoodDef | None:
        return self._foods_by_id.get(id)

    def get_decor(self, id: str) -> DecorDef | None:
        return self._decor_by_id.get(id)

    def get_tool(self, id: str) -> ToolDef | None:
        return self._tools_by_id.get(id)

    def ids(self, kind: str) -> frozenset[str]:
        """Enumerable id set for one content kind."""
        if kind == "fish":
            return frozenset(self._species_by_id)
        if kind == "food":
            return frozenset(self._foods_by_id)
        if kind == "decor":
            return frozenset(self._decor_by_id)
        if kind == "tool":
            return frozenset(self._tools_by_id)
        raise ValueError(f"Unknown content kind: {kind!r}")


@dataclass(frozen=True)
class Rename:
    """A content id retired in catalog version *since*, replaced by *new_id*."""

    kind: str
    old_id: str
    new_id: str
    since: str = ""


@dataclass(frozen=True)
class Catalog:
    """Complete, immutable content definition consumed by the core."""

    content_version: str = "1.0.0"
    tanks: tuple[TankDef, ...] = ()
    economy: Economy = field(default_factory=Economy)
    tuning: Tuning = field(default_factory=Tuning)
    renames: tuple[Rename, ...] = ()
    legacy_tank_ids: tuple[str, ...] = ()

    _tanks_by_id: dict[str, TankDef] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )
    _renames_by_key: dict[tuple[str, str], str] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "tanks", tuple(self.tanks))
        object.__setattr__(self, "renames", tuple(self.renames))
        object.__setattr__(self, "legacy_tank_ids", tuple(self.legacy_tank_ids))
        object.__setattr__(self, "_tanks_by_id", {t.id: t for t in self.tanks})
        object.__setattr__(
            self,
            "_renames_by_key",
            {(r.kind, r.old_id): r.new_id for r in self.renames},
        )

    @property
    def tank_ids(self) -> list[str]:
        return [t.id for t in self.tanks]

    @property
    def default_tank_id(self) -> str:
        return self.tanks[0].id

    def get_tank(self, id: str) -> TankDef | None:
        return self._tanks_by_id.get(id)

    def resolve_rename(self, kind: str, id: str) -> str:
        """Follow rename records for *id* until it no longer changes."""
        seen = {id}
        current = id
        while (kind, current) in self._renames_by_key:
            current = self._renames_by_key[(kind, current)]
            if current in seen:
                break
            seen.add(current)
        return current

    def validate(self) -> list[str]:
        """Check for common catalog errors. Returns list of error messages."""
        errors: list[str] = []
        if not self.tanks:
            errors.append("Catalog defines no tanks")

        seen_t: set[str] = set()
        for t in self.tanks:
            if t.id in seen_t:
                errors.append(f"Duplicate tank ID: {t.id!r}")
            seen_t.add(t.id)

        for t in self.tanks:
            errors.extend(self._validate_tank(t))

            for tank_id, tool_id in t.unlock.references():
                ref = self.get_tank(tank_id)
                if ref is None:
                    errors.append(
                        f"Tank {t.id!r} unlock rule references unknown tank {tank_id!r}"
                    )
                elif ref.get_tool(tool_id) is None:
                    errors.append(
                        f"Tank {t.id!r} unlock rule references unknown tool "
                        f"{tool_id!r} in {tank_id!r}"
                    )

        # Check rename targets exist somewhere in the catalog
        for r in self.renames:
            if r.kind not in CONTENT_KINDS:
                errors.append(f"Rename {r.old_id!r} has unknown kind {r.kind!r}")
                continue
            if not any(r.new_id in t.ids(r.kind) for t in self.tanks):
                errors.append(
                    f"Rename {r.old_id!r} -> {r.new_id!r} targets unknown {r.kind} id"
                )

        for lid in self.legacy_tank_ids:
            if lid not in seen_t:
                errors.append(f"Legacy tank mapping references unknown tank {lid!r}")

        return errors

    @staticmethod
    def _validate_tank(t: TankDef) -> list[str]:
        errors: list[str] = []
        for kind, items in (
            ("species", t.species),
            ("food", t.foods),
            ("decor", t.decor),
            ("tool", t.tools),
        ):
            seen: set[str] = set()
            for item in items:
                if item.id in seen:
                    errors.append(f"Tank {t.id!r} has duplicate {kind} ID: {item.id!r}")
                seen.add(item.id)

        food_ids = t.ids("food")
        tool_ids = t.ids("tool")
        decor_ids = t.ids("decor")

        for sp in t.species:
            for fid in sp.diet:
                if fid not in food_ids:
                    errors.append(
                        f"Species {sp.id!r} in {t.id!r} eats unknown food {fid!r}"
                    )
            for req in sp.tools:
                if req.tool_id not in tool_ids:
                    errors.append(
                        f"Species {sp.id!r} in {t.id!r} requires unknown tool {req.tool_id!r}"
                    )
            for req in sp.decor:
                if req.decor_id not in decor_ids:
                    errors.append(
                        f"Species {sp.id!r} in {t.id!r} requires unknown decor {req.decor_id!r}"
                    )

        for d in t.decor:
            if d.growth is not None and d.growth.min_size > d.growth.max_size:
                errors.append(f"Decor {d.id!r} in {t.id!r} has min_size > max_size")
            if d.spread is not None and d.growth is None:
                errors.append(f"Decor {d.id!r} in {t.id!r} spreads but does not grow")

        for tool in t.tools:
            if tool.max_level < 1:
                errors.append(f"Tool {tool.id!r} in {t.id!r} has no price levels")

        section_kinds = {"fish": "fish", "food": "food", "decor": "decor", "tools": "tool"}
        for sec in t.store:
            kind = section_kinds.get(sec.id)
            if kind is None:
                errors.append(f"Tank {t.id!r} has unknown store section {sec.id!r}")
                continue
            known = t.ids(kind)
            for item_id in sec.order:
                if item_id not in known:
                    errors.append(
                        f"Store section {sec.id!r} in {t.id!r} lists unknown id {item_id!r}"
                    )

        for sid in t.starter_species:
            if t.get_species(sid) is None:
                errors.append(f"Tank {t.id!r} starter species {sid!r} is unknown")
        for fid, _qty in t.starter_food:
            if t.get_food(fid) is None:
                errors.append(f"Tank {t.id!r} starter food {fid!r} is unknown")
        return errors
