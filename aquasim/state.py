from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field, fields
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from aquasim.catalog import Catalog

CURRENT_SAVE_VERSION = 3


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


@dataclass
class FishInstance:
    """Mutable runtime state for one owned fish."""

    id: str
    species_id: str
    born_at: float
    level: int = 1
    xp: float = 0.0
    hunger: float = 100.0
    health: float = 100.0
    weak: bool = False
    last_fed_at: float = 0.0
    last_played_at: float | None = None
    legacy: bool = False

    @classmethod
    def create(cls, species_id: str, now: float, hunger: float = 95.0) -> FishInstance:
        return cls(
            id=new_id("f"),
            species_id=species_id,
            born_at=now,
            hunger=hunger,
            last_fed_at=now,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FishInstance:
        played = data.get("last_played_at")
        return cls(
            id=str(data["id"]),
            species_id=str(data["species_id"]),
            born_at=float(data["born_at"]),
            level=int(data.get("level", 1)),
            xp=float(data.get("xp", 0.0)),
            hunger=float(data.get("hunger", 100.0)),
            health=float(data.get("health", 100.0)),
            weak=bool(data.get("weak", False)),
            last_fed_at=float(data.get("last_fed_at", data["born_at"])),
            last_played_at=float(played) if played is not None else None,
            legacy=bool(data.get("legacy", False)),
        )


@dataclass
class DecorInstance:
    """Mutable runtime state for one placed decoration."""

    id: str
    decor_id: str
    x: float = 0.5
    y: float = 0.85
    size: float = 1.0
    placed_at: float = 0.0
    state: dict[str, Any] = field(default_factory=dict)
    legacy: bool = False

    @classmethod
    def create(
        cls, decor_id: str, now: float, x: float = 0.5, y: float = 0.85, size: float = 1.0
    ) -> DecorInstance:
        return cls(id=new_id("d"), decor_id=decor_id, x=x, y=y, size=size, placed_at=now)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DecorInstance:
        return cls(
            id=str(data["id"]),
            decor_id=str(data["decor_id"]),
            x=float(data.get("x", 0.5)),
            y=float(data.get("y", 0.85)),
            size=float(data.get("size", 1.0)),
            placed_at=float(data.get("placed_at", 0.0)),
            state=dict(data.get("state") or {}),
            legacy=bool(data.get("legacy", False)),
        )


@dataclass
class TankState:
    """Mutable runtime state for one tank slot."""

    id: str
    unlocked: bool = False
    cleanliness: float = 100.0
    last_seen_at: float = 0.0
    food_stock: dict[str, int] = field(default_factory=dict)
    tools_owned: dict[str, int] = field(default_factory=dict)
    fish: list[FishInstance] = field(default_factory=list)
    decor: list[DecorInstance] = field(default_factory=list)
    cooldowns: dict[str, float] = field(default_factory=dict)
    clean_session: dict[str, float] | None = None

    def tool_level(self, tool_id: str) -> int:
        return self.tools_owned.get(tool_id, 0)

    def has_decor(self, decor_id: str) -> bool:
        return any(d.decor_id == decor_id and not d.legacy for d in self.decor)

    def decor_count(self, decor_id: str) -> int:
        return sum(1 for d in self.decor if d.decor_id == decor_id)

    def species_count(self, species_id: str) -> int:
        return sum(1 for f in self.fish if f.species_id == species_id)

    def find_fish(self, fish_id: str) -> FishInstance | None:
        return next((f for f in self.fish if f.id == fish_id), None)

    def find_decor(self, instance_id: str) -> DecorInstance | None:
        return next((d for d in self.decor if d.id == instance_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "unlocked": self.unlocked,
            "cleanliness": self.cleanliness,
            "last_seen_at": self.last_seen_at,
            "food_stock": dict(self.food_stock),
            "tools_owned": dict(self.tools_owned),
            "fish": [f.to_dict() for f in self.fish],
            "decor": [d.to_dict() for d in self.decor],
            "cooldowns": dict(self.cooldowns),
            "clean_session": dict(self.clean_session) if self.clean_session else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TankState:
        session = data.get("clean_session")
        return cls(
            id=str(data["id"]),
            unlocked=bool(data.get("unlocked", False)),
            cleanliness=float(data.get("cleanliness", 100.0)),
            last_seen_at=float(data.get("last_seen_at", 0.0)),
            food_stock={str(k): int(v) for k, v in (data.get("food_stock") or {}).items()},
            tools_owned={str(k): int(v) for k, v in (data.get("tools_owned") or {}).items()},
            fish=[FishInstance.from_dict(f) for f in data.get("fish") or []],
            decor=[DecorInstance.from_dict(d) for d in data.get("decor") or []],
            cooldowns={str(k): float(v) for k, v in (data.get("cooldowns") or {}).items()},
            clean_session=dict(session) if session else None,
        )


@dataclass
class Lifetime:
    coins_earned: float = 0.0
    fish_purchased: int = 0


@dataclass
class SaveMeta:
    created_at: float = 0.0
    last_saved_at: float = 0.0
    last_catalog_version: str = ""


@dataclass
class Save:
    """Root persisted document for one widget instance."""

    version: int = CURRENT_SAVE_VERSION
    active_tank_id: str = ""
    coins: float = 0.0
    tanks: dict[str, TankState] = field(default_factory=dict)
    lifetime: Lifetime = field(default_factory=Lifetime)
    meta: SaveMeta = field(default_factory=SaveMeta)

    @property
    def active_tank(self) -> TankState | None:
        return self.tanks.get(self.active_tank_id)

    def replace_with(self, other: Save) -> None:
        """Overwrite every field of this save in place with *other*'s."""
        for f in fields(self):
            setattr(self, f.name, getattr(other, f.name))

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "active_tank_id": self.active_tank_id,
            "coins": self.coins,
            "tanks": {tid: t.to_dict() for tid, t in self.tanks.items()},
            "lifetime": asdict(self.lifetime),
            "meta": asdict(self.meta),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Save:
        lifetime = data.get("lifetime") or {}
        meta = data.get("meta") or {}
        tanks: dict[str, TankState] = {}
        for tid, raw in (data.get("tanks") or {}).items():
            tank = TankState.from_dict({**raw, "id": str(tid)})
            tanks[tank.id] = tank
        return cls(
            version=int(data["version"]),
            active_tank_id=str(data.get("active_tank_id", "")),
            coins=float(data.get("coins", 0.0)),
            tanks=tanks,
            lifetime=Lifetime(
                coins_earned=float(lifetime.get("coins_earned", 0.0)),
                fish_purchased=int(lifetime.get("fish_purchased", 0)),
            ),
            meta=SaveMeta(
                created_at=float(meta.get("created_at", 0.0)),
                last_saved_at=float(meta.get("last_saved_at", 0.0)),
                last_catalog_version=str(meta.get("last_catalog_version", "")),
            ),
        )


def new_tank(tank_id: str, now: float, unlocked: bool = False) -> TankState:
    return TankState(id=tank_id, unlocked=unlocked, last_seen_at=now)


def new_save(catalog: Catalog, now: float) -> Save:
    """Factory-default save: the first catalog tank unlocked and stocked."""
    tanks: dict[str, TankState] = {}
    starter_count = 0
    for tdef in catalog.tanks:
        tank = new_tank(tdef.id, now, unlocked=tdef.id == catalog.default_tank_id)
        if tank.unlocked:
            tank.food_stock = {fid: qty for fid, qty in tdef.starter_food}
            tank.fish = [
                FishInstance.create(sid, now, hunger=catalog.tuning.new_fish_hunger)
                for sid in tdef.starter_species
            ]
            starter_count += len(tank.fish)
        tanks[tdef.id] = tank

    return Save(
        version=CURRENT_SAVE_VERSION,
        active_tank_id=catalog.default_tank_id,
        coins=catalog.economy.starting_coins,
        tanks=tanks,
        lifetime=Lifetime(coins_earned=0.0, fish_purchased=starter_count),
        meta=SaveMeta(
            created_at=now,
            last_saved_at=now,
            last_catalog_version=catalog.content_version,
        ),
    )
