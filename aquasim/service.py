from __future__ import annotations

import copy
import json
import logging
import os
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

from aquasim._types import DAY, HOUR, clamp, day_index
from aquasim.actions import parse_action
from aquasim.content import define_catalog
from aquasim.dispatcher import apply
from aquasim.migration import normalize
from aquasim.projection import build_response
from aquasim.simulation import advance
from aquasim.state import new_save

if TYPE_CHECKING:
    from aquasim.catalog import Catalog
    from aquasim.state import Save

logger = logging.getLogger(__name__)

DEFAULT_INSTANCE = "default"


def store_key(instance_id: str | None) -> str:
    return f"aquarium_{instance_id or DEFAULT_INSTANCE}"


# ── Persistence ──────────────────────────────────────────────────────


class SaveStore(ABC):
    """Key-value settings storage owned by the host."""

    @abstractmethod
    def get(self, key: str) -> dict[str, Any] | None: ...

    @abstractmethod
    def set(self, key: str, doc: dict[str, Any]) -> None: ...


class MemoryStore(SaveStore):
    def __init__(self, docs: dict[str, dict[str, Any]] | None = None) -> None:
        self.docs: dict[str, dict[str, Any]] = dict(docs or {})

    def get(self, key: str) -> dict[str, Any] | None:
        doc = self.docs.get(key)
        return copy.deepcopy(doc) if doc is not None else None

    def set(self, key: str, doc: dict[str, Any]) -> None:
        self.docs[key] = copy.deepcopy(doc)


class JsonFileStore(SaveStore):
    """One ``<key>.json`` file per save under *directory*."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> dict[str, Any] | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            with open(str(path), encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Ignoring corrupt save file %s: %s", path, exc)
            return None

    def set(self, key: str, doc: dict[str, Any]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        tmp = path.with_suffix(".json.tmp")
        with open(str(tmp), "w", encoding="utf-8") as f:
            json.dump(doc, f, indent=2)
        os.replace(tmp, path)


# ── Inbound operations ───────────────────────────────────────────────


def _rebase_spread(state: dict[str, Any], placed_at: float, seen_at: float) -> None:
    """Restate daily spread progress for the day that now holds *seen_at*."""
    day = day_index(seen_at)
    day_start = day * DAY
    done = state.get("spread_day") == day and bool(state.get("spread_done"))
    state["spread_day"] = day
    state["spread_progress"] = clamp((seen_at - max(day_start, placed_at)) / DAY, 0.0, 1.0)
    state["spread_done"] = done


def _shift_clock(save: Save, seconds: float) -> None:
    """Move every stored timestamp *seconds* into the past."""
    for tank in save.tanks.values():
        tank.last_seen_at -= seconds
        tank.cooldowns = {k: v - seconds for k, v in tank.cooldowns.items()}
        if tank.clean_session is not None and "started_at" in tank.clean_session:
            tank.clean_session["started_at"] -= seconds
        for fish in tank.fish:
            fish.born_at -= seconds
            fish.last_fed_at -= seconds
            if fish.last_played_at is not None:
                fish.last_played_at -= seconds
        for decor in tank.decor:
            decor.placed_at -= seconds
            if "spread_day" in decor.state:
                _rebase_spread(decor.state, decor.placed_at, tank.last_seen_at)


class AquariumService:
    """Load, catch up, act, persist and project, one widget instance at a time."""

    def __init__(
        self,
        store: SaveStore,
        catalog: Catalog | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        catalog = catalog if catalog is not None else define_catalog()
        errors = catalog.validate()
        if errors:
            raise ValueError(
                "Invalid Catalog:\n" + "\n".join(f"  - {e}" for e in errors)
            )
        self.store = store
        self.catalog = catalog
        self.clock = clock

    def _load(self, instance_id: str | None, now: float) -> tuple[Save, bool]:
        raw = self.store.get(store_key(instance_id))
        save = normalize(raw, self.catalog, now)
        if save is None:
            if raw is not None:
                logger.warning("Starting %s over from a fresh save", store_key(instance_id))
            return new_save(self.catalog, now), True
        return save, False

    def _persist(self, instance_id: str | None, save: Save, now: float) -> None:
        save.meta.last_saved_at = now
        self.store.set(store_key(instance_id), save.to_dict())

    def get_state(self, instance_id: str | None = None) -> dict[str, Any]:
        now = self.clock()
        save, is_new = self._load(instance_id, now)
        sim = advance(save, self.catalog, now)
        self._persist(instance_id, save, now)
        return build_response(save, self.catalog, now, sim_result=sim, is_new=is_new)

    def do_action(
        self, instance_id: str | None, kind: str, payload: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        now = self.clock()
        save, is_new = self._load(instance_id, now)
        sim = advance(save, self.catalog, now)
        result = apply(save, parse_action(kind, payload), self.catalog, now)
        if not result.success:
            logger.debug("Action %s rejected: %s", kind, result.reason)
        self._persist(instance_id, save, now)
        return build_response(
            save, self.catalog, now, action_result=result, sim_result=sim, is_new=is_new
        )

    def fast_forward(self, instance_id: str | None, hours: float) -> dict[str, Any]:
        """Pretend *hours* passed since the last visit, then catch up."""
        if hours < 0:
            raise ValueError("hours must be non-negative")
        now = self.clock()
        save, is_new = self._load(instance_id, now)
        advance(save, self.catalog, now)
        _shift_clock(save, hours * HOUR)
        sim = advance(save, self.catalog, now)
        self._persist(instance_id, save, now)
        return build_response(save, self.catalog, now, sim_result=sim, is_new=is_new)

    def reset(self, instance_id: str | None = None) -> dict[str, Any]:
        return self.do_action(instance_id, "reset_state")
