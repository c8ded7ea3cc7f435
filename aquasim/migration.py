"""Bring stored save documents up to the current schema and catalog.

Three stages run in order on every load:

1. ``transform_legacy`` rewrites the pre-catalog widget layout (numeric tank
   keys, camelCase fields, millisecond timestamps) into a version-1 document.
2. ``migrate`` walks ``MIGRATIONS`` one version at a time up to
   ``CURRENT_SAVE_VERSION``. Each step only fills in missing structure.
3. ``reconcile`` aligns the typed ``Save`` with the current ``Catalog``:
   missing tanks, renamed ids, legacy flags and value bounds.

``normalize`` wraps all three and never raises; ``None`` tells the caller to
start over from ``new_save``.
"""
from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any, Callable

from aquasim._types import clamp
from aquasim.state import CURRENT_SAVE_VERSION, Save, TankState, new_tank

if TYPE_CHECKING:
    from aquasim.catalog import Catalog, TankDef

logger = logging.getLogger(__name__)

_LEGACY_TOOL_KEYS = {"filterLevel": "filter"}


# ── Legacy layout ────────────────────────────────────────────────────


def _is_numeric_key(key: Any) -> bool:
    return isinstance(key, int) or (isinstance(key, str) and key.strip().isdigit())


def is_legacy(raw: dict[str, Any]) -> bool:
    """True for the pre-catalog layout, whatever its ``version`` field says."""
    tanks = raw.get("tanks")
    if isinstance(tanks, dict) and tanks and all(_is_numeric_key(k) for k in tanks):
        return True
    return "tanks" not in raw and ("tankTier" in raw or "fish" in raw)


def _seconds(ms: Any, default: float = 0.0) -> float:
    if ms is None:
        return default
    return float(ms) / 1000.0


def _legacy_fish(raw: dict[str, Any], fallback_seen: float) -> dict[str, Any]:
    born = _seconds(raw.get("bornAt"), fallback_seen)
    return {
        "id": str(raw["id"]),
        "species_id": str(raw["speciesId"]),
        "born_at": born,
        "level": int(raw.get("level", 1)),
        "xp": float(raw.get("xp", 0)),
        "hunger": float(raw.get("hunger", 100)),
        "health": float(raw.get("health", 100)),
        "weak": bool(raw.get("weak", False)),
        "last_fed_at": _seconds(raw.get("lastFedAt"), fallback_seen),
    }


def _legacy_tank(
    key: str, raw: dict[str, Any], last_seen: float, unlocked: bool
) -> dict[str, Any]:
    fish = [_legacy_fish(f, last_seen) for f in raw.get("fish") or []]
    # Snails used to be a counter, they are fish now
    for i in range(int(raw.get("snails") or 0)):
        fish.append({
            "id": f"snail_{key}_{i}",
            "species_id": "snail",
            "born_at": last_seen,
            "last_fed_at": last_seen,
        })

    upgrades = raw.get("upgrades") or {}
    tools = {
        tool_id: int(upgrades[old_key])
        for old_key, tool_id in _LEGACY_TOOL_KEYS.items()
        if upgrades.get(old_key)
    }

    decor = [
        {
            "id": str(d["id"]),
            "decor_id": str(d["type"]),
            "x": float(d.get("x", 0.5)),
            "y": float(d.get("y", 0.85)),
            "placed_at": last_seen,
        }
        for d in raw.get("decorations") or []
    ]

    return {
        "unlocked": unlocked,
        "cleanliness": float(raw.get("cleanliness", 100)),
        "last_seen_at": last_seen,
        "food_stock": {},
        "tools_owned": tools,
        "fish": fish,
        "decor": decor,
        "last_laser_reward": _seconds(raw.get("lastLaserReward")),
    }


def transform_legacy(raw: dict[str, Any], catalog: Catalog) -> dict[str, Any]:
    """One-shot rewrite of a legacy document into a version-1 document."""
    if "tanks" not in raw:
        tier = int(raw.get("tankTier") or 1)
        raw = {
            **raw,
            "tanks": {str(tier): {
                "fish": raw.get("fish") or [],
                "cleanliness": raw.get("cleanliness", 100),
                "upgrades": raw.get("upgrades") or {},
                "snails": raw.get("snails") or 0,
                "decorations": raw.get("decorations") or [],
                "lastLaserReward": raw.get("lastLaserReward") or 0,
            }},
            "activeTankId": tier,
            "unlockedTanks": list(range(1, tier + 1)),
        }

    legacy_ids = catalog.legacy_tank_ids or tuple(catalog.tank_ids)
    last_seen = _seconds(raw.get("lastSeenAt"))
    unlocked_numbers = {int(n) for n in raw.get("unlockedTanks") or []}

    default_id = catalog.default_tank_id
    # A save with one tank kept its fish in that tank whatever its tier
    single = len(raw["tanks"]) == 1

    coins = float(raw.get("coins") or 0)
    tanks: dict[str, dict[str, Any]] = {}
    for key, tank_raw in raw["tanks"].items():
        number = int(key)
        if single:
            coins += float(tank_raw.get("coins") or 0)
            tanks[default_id] = _legacy_tank(str(number), tank_raw, last_seen, unlocked=True)
            continue
        if not 1 <= number <= len(legacy_ids):
            logger.warning("Dropping legacy tank %s with no catalog counterpart", key)
            continue
        coins += float(tank_raw.get("coins") or 0)
        tank_id = legacy_ids[number - 1]
        tanks[tank_id] = _legacy_tank(
            str(number), tank_raw, last_seen,
            unlocked=number in unlocked_numbers or number == 1,
        )

    if single:
        for number in sorted(unlocked_numbers):
            if 1 <= number <= len(legacy_ids):
                tanks.setdefault(
                    legacy_ids[number - 1], _legacy_tank(str(number), {}, last_seen, unlocked=True)
                )

    # Food used to be one shared pool
    default_tank = tanks.setdefault(
        default_id, _legacy_tank("1", {}, last_seen, unlocked=True)
    )
    for food_id, qty in (raw.get("foodStock") or {}).items():
        if qty:
            new_id = catalog.resolve_rename("food", str(food_id))
            default_tank["food_stock"][new_id] = (
                default_tank["food_stock"].get(new_id, 0) + int(qty)
            )

    active_index = int(raw.get("activeTankId") or 1) - 1
    if single or not 0 <= active_index < len(legacy_ids):
        active = default_id
    else:
        active = legacy_ids[active_index]

    stats = raw.get("stats") or {}
    lifetime: dict[str, Any] = {"coins_earned": float(stats.get("coinsEarnedLifetime") or 0)}
    if "fishPurchasedLifetime" in stats:
        lifetime["fish_purchased"] = int(stats["fishPurchasedLifetime"])

    logger.info("Transformed legacy save with %d tank(s)", len(tanks))
    return {
        "version": 1,
        "active_tank_id": active,
        "coins": coins,
        "tanks": tanks,
        "lifetime": lifetime,
        "meta": {"created_at": last_seen, "last_saved_at": last_seen},
    }


# ── Versioned chain ──────────────────────────────────────────────────


def _v1_to_v2(doc: dict[str, Any]) -> dict[str, Any]:
    for tank in doc.get("tanks", {}).values():
        for fish in tank.get("fish", []):
            fish.setdefault("last_played_at", None)
            fish.setdefault("legacy", False)
        for decor in tank.get("decor", []):
            decor.setdefault("size", 1.0)
            decor.setdefault("state", {})
            decor.setdefault("legacy", False)
        cooldowns = tank.setdefault("cooldowns", {})
        laser = tank.pop("last_laser_reward", None)
        if laser:
            cooldowns.setdefault("play", float(laser))
    return doc


def _v2_to_v3(doc: dict[str, Any]) -> dict[str, Any]:
    tanks = doc.get("tanks", {})
    owned = sum(len(t.get("fish", [])) for t in tanks.values())
    doc.setdefault("lifetime", {}).setdefault("fish_purchased", owned)
    doc.setdefault("meta", {}).setdefault("last_catalog_version", "")
    for tank in tanks.values():
        tank.setdefault("clean_session", None)
    return doc


# MIGRATIONS[v] upgrades a version-v document to version v + 1
MIGRATIONS: dict[int, Callable[[dict[str, Any]], dict[str, Any]]] = {
    1: _v1_to_v2,
    2: _v2_to_v3,
}


def migrate(raw: Any, catalog: Catalog) -> dict[str, Any] | None:
    """Return a current-version copy of *raw*, or None when it is unrecoverable."""
    if not isinstance(raw, dict):
        return None
    doc = copy.deepcopy(raw)
    if is_legacy(doc):
        doc = transform_legacy(doc, catalog)

    version = doc.get("version")
    if isinstance(version, bool) or not isinstance(version, int):
        return None
    if version < 1 or version > CURRENT_SAVE_VERSION:
        return None

    while version < CURRENT_SAVE_VERSION:
        doc = MIGRATIONS[version](doc)
        version += 1
        doc["version"] = version
        logger.info("Migrated save to version %d", version)
    return doc


# ── Reconciliation ───────────────────────────────────────────────────


def _reconcile_tank_content(
    tank: TankState, tdef: TankDef | None, catalog: Catalog
) -> list[str]:
    notes: list[str] = []
    tid = tank.id

    for fish in tank.fish:
        new_id = catalog.resolve_rename("fish", fish.species_id)
        if new_id != fish.species_id:
            notes.append(f"{tid}: fish {fish.id} species {fish.species_id} -> {new_id}")
            fish.species_id = new_id
        legacy = tdef is None or tdef.get_species(fish.species_id) is None
        if legacy != fish.legacy:
            state = "retired" if legacy else "restored"
            notes.append(f"{tid}: fish {fish.id} ({fish.species_id}) {state}")
            fish.legacy = legacy

    for decor in tank.decor:
        new_id = catalog.resolve_rename("decor", decor.decor_id)
        if new_id != decor.decor_id:
            notes.append(f"{tid}: decor {decor.id} {decor.decor_id} -> {new_id}")
            decor.decor_id = new_id
        ddef = tdef.get_decor(decor.decor_id) if tdef is not None else None
        legacy = ddef is None
        if legacy != decor.legacy:
            state = "retired" if legacy else "restored"
            notes.append(f"{tid}: decor {decor.id} ({decor.decor_id}) {state}")
            decor.legacy = legacy
        if ddef is not None and ddef.growth is not None:
            size = clamp(decor.size, ddef.growth.min_size, ddef.growth.max_size)
            if size != decor.size:
                notes.append(f"{tid}: decor {decor.id} size clamped to {size}")
                decor.size = size

    tools: dict[str, int] = {}
    for tool_id, level in tank.tools_owned.items():
        new_id = catalog.resolve_rename("tool", tool_id)
        tdef_tool = tdef.get_tool(new_id) if tdef is not None else None
        if tdef_tool is None:
            notes.append(f"{tid}: dropped unknown tool {tool_id}")
            continue
        clamped = int(clamp(level, 0, tdef_tool.max_level))
        if new_id != tool_id or clamped != level:
            notes.append(f"{tid}: tool {tool_id} level {level} -> {new_id} level {clamped}")
        tools[new_id] = max(tools.get(new_id, 0), clamped)
    tank.tools_owned = tools

    stock: dict[str, int] = {}
    for food_id, qty in tank.food_stock.items():
        new_id = catalog.resolve_rename("food", food_id)
        if tdef is None or tdef.get_food(new_id) is None:
            notes.append(f"{tid}: dropped unknown food {food_id}")
            continue
        if new_id != food_id:
            notes.append(f"{tid}: food {food_id} -> {new_id}")
        stock[new_id] = stock.get(new_id, 0) + max(int(qty), 0)
    if stock != tank.food_stock:
        tank.food_stock = stock

    return notes


def _clamp_values(save: Save, catalog: Catalog) -> list[str]:
    notes: list[str] = []
    max_level = catalog.tuning.max_level
    for tank in save.tanks.values():
        cleanliness = clamp(tank.cleanliness, 0.0, 100.0)
        if cleanliness != tank.cleanliness:
            notes.append(f"{tank.id}: cleanliness clamped to {cleanliness}")
            tank.cleanliness = cleanliness
        for fish in tank.fish:
            hunger = clamp(fish.hunger, 0.0, 100.0)
            health = clamp(fish.health, 0.0, 100.0)
            level = int(clamp(fish.level, 1, max_level))
            if (hunger, health, level) != (fish.hunger, fish.health, fish.level):
                notes.append(f"{tank.id}: fish {fish.id} values clamped")
                fish.hunger, fish.health, fish.level = hunger, health, level
    return notes


def reconcile(save: Save, catalog: Catalog, now: float | None = None) -> list[str]:
    """Align *save* with *catalog* in place. Idempotent.

    Returns human-readable notes describing what changed; an empty list
    means the save already matched the catalog.
    """
    notes: list[str] = []
    seen_at = now if now is not None else save.meta.last_saved_at
    default_id = catalog.default_tank_id

    for tdef in catalog.tanks:
        if tdef.id not in save.tanks:
            save.tanks[tdef.id] = new_tank(tdef.id, seen_at, unlocked=tdef.id == default_id)
            notes.append(f"added tank {tdef.id}")

    default_tank = save.tanks[default_id]
    if not default_tank.unlocked:
        default_tank.unlocked = True
        default_tank.last_seen_at = seen_at
        notes.append(f"unlocked starter tank {default_id}")

    for tank in save.tanks.values():
        notes.extend(_reconcile_tank_content(tank, catalog.get_tank(tank.id), catalog))
    notes.extend(_clamp_values(save, catalog))

    active = save.tanks.get(save.active_tank_id)
    if catalog.get_tank(save.active_tank_id) is None or active is None or not active.unlocked:
        notes.append(f"active tank {save.active_tank_id!r} -> {default_id!r}")
        save.active_tank_id = default_id

    if save.version != CURRENT_SAVE_VERSION:
        save.version = CURRENT_SAVE_VERSION
        notes.append(f"version set to {CURRENT_SAVE_VERSION}")
    if save.meta.last_catalog_version != catalog.content_version:
        notes.append(
            f"catalog {save.meta.last_catalog_version or '?'} -> {catalog.content_version}"
        )
        save.meta.last_catalog_version = catalog.content_version
    return notes


def normalize(raw: Any, catalog: Catalog, now: float) -> Save | None:
    """Load any stored document as a current, reconciled ``Save``.

    Never raises. Returns None when *raw* is missing or unrecoverable.
    """
    if raw is None:
        return None
    try:
        doc = migrate(raw, catalog)
        if doc is None:
            logger.warning("Discarding save with unsupported layout or version")
            return None
        save = Save.from_dict(doc)
        notes = reconcile(save, catalog, now)
    except (KeyError, TypeError, ValueError, AttributeError, OverflowError) as exc:
        logger.warning("Discarding unreadable save: %r", exc)
        return None

    for note in notes:
        logger.info("Reconciled: %s", note)
    return save
