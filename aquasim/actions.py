from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union


class ActionError(str, Enum):
    UNKNOWN_ID = "unknown_id"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    LIMIT_REACHED = "limit_reached"
    REQUIREMENT_UNMET = "requirement_unmet"
    COOLDOWN_ACTIVE = "cooldown_active"
    OUT_OF_STOCK = "out_of_stock"
    INVALID_STATE = "invalid_state"
    INVALID_PAYLOAD = "invalid_payload"
    UNKNOWN_ACTION = "unknown_action"
    UNKNOWN_OPERATION = "unknown_operation"


@dataclass(frozen=True)
class ActionResult:
    """Outcome of one action. A failed result never comes with a changed save."""

    success: bool
    data: dict[str, Any] = field(default_factory=dict)
    error: ActionError | None = None
    reason: str = ""

    @classmethod
    def ok(cls, **data: Any) -> ActionResult:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: ActionError, reason: str, **data: Any) -> ActionResult:
        return cls(success=False, data=data, error=error, reason=reason)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "error": self.error.value if self.error is not None else None,
            "reason": self.reason,
            "data": dict(self.data),
        }


# ── Action types ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class SwitchTank:
    kind: ClassVar[str] = "switch_tank"
    tank_id: str


@dataclass(frozen=True)
class UnlockTank:
    kind: ClassVar[str] = "unlock_tank"
    tank_id: str


@dataclass(frozen=True)
class BuyFish:
    kind: ClassVar[str] = "buy_fish"
    species_id: str


@dataclass(frozen=True)
class SellFish:
    kind: ClassVar[str] = "sell_fish"
    fish_id: str


@dataclass(frozen=True)
class Feed:
    kind: ClassVar[str] = "feed"
    food_id: str


@dataclass(frozen=True)
class FishConsume:
    kind: ClassVar[str] = "fish_consume"
    fish_id: str
    food_id: str


@dataclass(frozen=True)
class StartClean:
    kind: ClassVar[str] = "start_clean"


@dataclass(frozen=True)
class FinishClean:
    kind: ClassVar[str] = "finish_clean"
    improvement_percent: float


@dataclass(frozen=True)
class PlayWithFish:
    kind: ClassVar[str] = "laser_pointer"


@dataclass(frozen=True)
class BuyFood:
    kind: ClassVar[str] = "buy_food"
    food_id: str
    quantity: int = 5


@dataclass(frozen=True)
class BuyDecor:
    kind: ClassVar[str] = "buy_decor"
    decor_id: str
    x: float | None = None
    y: float | None = None


@dataclass(frozen=True)
class SellDecor:
    kind: ClassVar[str] = "sell_decor"
    decor_instance_id: str


@dataclass(frozen=True)
class BuyTool:
    kind: ClassVar[str] = "buy_tool"
    tool_id: str


@dataclass(frozen=True)
class MoveDecor:
    kind: ClassVar[str] = "move_decor"
    decor_instance_id: str
    x: float | None = None
    y: float | None = None


@dataclass(frozen=True)
class TrimPlant:
    kind: ClassVar[str] = "trim_plant"
    decor_instance_id: str


@dataclass(frozen=True)
class ResetState:
    kind: ClassVar[str] = "reset_state"


@dataclass(frozen=True)
class DebugScenario:
    kind: ClassVar[str] = "debug_scenario"
    scenario: str


Action = Union[
    SwitchTank, UnlockTank, BuyFish, SellFish, Feed, FishConsume, StartClean,
    FinishClean, PlayWithFish, BuyFood, BuyDecor, SellDecor, BuyTool, MoveDecor,
    TrimPlant, ResetState, DebugScenario,
]

ACTION_KINDS: dict[str, type] = {
    cls.kind: cls
    for cls in (
        SwitchTank, UnlockTank, BuyFish, SellFish, Feed, FishConsume, StartClean,
        FinishClean, PlayWithFish, BuyFood, BuyDecor, SellDecor, BuyTool, MoveDecor,
        TrimPlant, ResetState, DebugScenario,
    )
}


# ── Wire parsing ─────────────────────────────────────────────────────


def _coerce(name: str, type_name: str, value: Any) -> Any:
    optional = type_name.endswith("| None")
    if value is None:
        if optional:
            return None
        raise ValueError(f"{name} is required")
    base = type_name.replace("| None", "").strip()
    if base == "str":
        if not isinstance(value, str) or not value:
            raise ValueError(f"{name} must be a non-empty string")
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number")
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite")
    if base == "int":
        if int(value) != value:
            raise ValueError(f"{name} must be a whole number")
        return int(value)
    return float(value)


def parse_action(kind: str, payload: dict[str, Any] | None = None) -> Action | ActionResult:
    """Turn the wire form (kind + payload dict) into a typed action.

    Returns a failed ``ActionResult`` instead for unknown kinds or payloads
    with missing or mistyped fields.
    """
    cls = ACTION_KINDS.get(kind)
    if cls is None:
        return ActionResult.fail(ActionError.UNKNOWN_ACTION, f"Unknown action: {kind!r}")
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        return ActionResult.fail(ActionError.INVALID_PAYLOAD, "Payload must be an object")

    kwargs: dict[str, Any] = {}
    try:
        for f in dataclasses.fields(cls):
            if f.name in payload:
                kwargs[f.name] = _coerce(f.name, str(f.type), payload[f.name])
            elif f.default is dataclasses.MISSING:
                raise ValueError(f"{f.name} is required")
    except ValueError as exc:
        return ActionResult.fail(ActionError.INVALID_PAYLOAD, f"{kind}: {exc}")
    return cls(**kwargs)
