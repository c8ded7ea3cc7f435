from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from aquasim._types import compare

if TYPE_CHECKING:
    from aquasim.state import Save


class UnlockRule(ABC):
    """Base class for tank unlock rules: boolean conditions on a save."""

    @abstractmethod
    def evaluate(self, save: Save) -> bool: ...

    @abstractmethod
    def describe(self) -> str: ...

    def references(self) -> list[tuple[str, str]]:
        """(tank_id, tool_id) pairs this rule depends on, for validation."""
        return []

    def __and__(self, other: UnlockRule) -> UnlockRule:
        return _CompoundRule([self, other])


# ── Private implementations ──────────────────────────────────────────


class _FreeRule(UnlockRule):
    def evaluate(self, save: Save) -> bool:
        return True

    def describe(self) -> str:
        return "Free"


class _LifetimeCoinsRule(UnlockRule):
    def __init__(self, threshold: float) -> None:
        self.threshold = threshold

    def evaluate(self, save: Save) -> bool:
        return compare(save.lifetime.coins_earned, ">=", self.threshold)

    def describe(self) -> str:
        return f"Earn {self.threshold:,.0f} lifetime coins"


class _ToolOwnedRule(UnlockRule):
    def __init__(self, tank_id: str, tool_id: str) -> None:
        self.tank_id = tank_id
        self.tool_id = tool_id

    def evaluate(self, save: Save) -> bool:
        tank = save.tanks.get(self.tank_id)
        return tank is not None and tank.tool_level(self.tool_id) > 0

    def describe(self) -> str:
        return f"Own {self.tool_id} in {self.tank_id}"

    def references(self) -> list[tuple[str, str]]:
        return [(self.tank_id, self.tool_id)]


class _CompoundRule(UnlockRule):
    def __init__(self, rules: list[UnlockRule]) -> None:
        self.rules = rules

    def evaluate(self, save: Save) -> bool:
        return all(r.evaluate(save) for r in self.rules)

    def describe(self) -> str:
        return " and ".join(r.describe() for r in self.rules)

    def references(self) -> list[tuple[str, str]]:
        refs: list[tuple[str, str]] = []
        for r in self.rules:
            refs.extend(r.references())
        return refs


# ── Public factory ───────────────────────────────────────────────────


class Unlock:
    """Factory for built-in unlock rule types."""

    @staticmethod
    def free() -> UnlockRule:
        return _FreeRule()

    @staticmethod
    def lifetime_coins(threshold: float) -> UnlockRule:
        return _LifetimeCoinsRule(threshold)

    @staticmethod
    def tool_owned(tank_id: str, tool_id: str) -> UnlockRule:
        return _ToolOwnedRule(tank_id, tool_id)

    @staticmethod
    def all(*rules: UnlockRule) -> UnlockRule:
        return _CompoundRule(list(rules))
