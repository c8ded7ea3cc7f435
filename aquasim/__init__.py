# aquasim: idle aquarium economy simulator

from aquasim._types import clamp, compare, hash_string, Lcg
from aquasim.unlock import UnlockRule, Unlock
from aquasim.catalog import (
    Catalog,
    TankDef,
    SpeciesDef,
    FoodDef,
    DecorDef,
    GrowthDef,
    SpreadDef,
    ToolDef,
    StoreSection,
    ToolRequirement,
    DecorRequirement,
    PlantMassRequirement,
    FloatingPlantsRequirement,
    Economy,
    Tuning,
    Rename,
)
from aquasim.pricing import PriceCurve
from aquasim.content import define_catalog
from aquasim.state import (
    CURRENT_SAVE_VERSION,
    Save,
    TankState,
    FishInstance,
    DecorInstance,
    new_save,
)
from aquasim.migration import MIGRATIONS, migrate, reconcile, normalize
from aquasim.happiness import HappinessFactor, HappinessScore, score, coin_multiplier
from aquasim.simulation import AdvanceResult, advance, effective_dirty_rate
from aquasim.actions import ActionError, ActionResult, ACTION_KINDS, parse_action
from aquasim.dispatcher import apply
from aquasim.projection import build_response
from aquasim.service import SaveStore, MemoryStore, JsonFileStore, AquariumService
from aquasim.formatting import format_text_report

__all__ = [
    # Types
    "clamp",
    "compare",
    "hash_string",
    "Lcg",
    # Unlock rules
    "UnlockRule",
    "Unlock",
    # Catalog
    "Catalog",
    "TankDef",
    "SpeciesDef",
    "FoodDef",
    "DecorDef",
    "GrowthDef",
    "SpreadDef",
    "ToolDef",
    "StoreSection",
    "ToolRequirement",
    "DecorRequirement",
    "PlantMassRequirement",
    "FloatingPlantsRequirement",
    "Economy",
    "Tuning",
    "Rename",
    "define_catalog",
    # Pricing
    "PriceCurve",
    # State
    "CURRENT_SAVE_VERSION",
    "Save",
    "TankState",
    "FishInstance",
    "DecorInstance",
    "new_save",
    # Migration
    "MIGRATIONS",
    "migrate",
    "reconcile",
    "normalize",
    # Happiness
    "HappinessFactor",
    "HappinessScore",
    "score",
    "coin_multiplier",
    # Simulation
    "AdvanceResult",
    "advance",
    "effective_dirty_rate",
    # Actions
    "ActionError",
    "ActionResult",
    "ACTION_KINDS",
    "parse_action",
    "apply",
    # Service
    "build_response",
    "SaveStore",
    "MemoryStore",
    "JsonFileStore",
    "AquariumService",
    # Formatting
    "format_text_report",
]
