"""Run-progression engine: meters, scene selection, modifiers and meta progression."""

from .daily import DailyRunTicket, DailyRunTracker
from .endings import ENDING_IDS, EndingsBook
from .engine import ChoiceOutcome, InvalidArgumentError, RunController, RunStart, RunSummary
from .insight import InsightLedger, calculate_insight
from .loader import ContentValidationError, load_scene_pools
from .meters import MeterBank
from .models import METER_NAMES, Choice, EffectsResult, PlayerHistory, Scene
from .modifiers import MODIFIERS, RunModifierRegistry
from .persistence import JsonFileStore, KeyValueStore, MemoryStore
from .rng import DeterministicRNG, generate_date_seed
from .selector import SceneCatalog

__all__ = [
    "ENDING_IDS",
    "METER_NAMES",
    "MODIFIERS",
    "ChoiceOutcome",
    "Choice",
    "ContentValidationError",
    "DailyRunTicket",
    "DailyRunTracker",
    "DeterministicRNG",
    "EffectsResult",
    "EndingsBook",
    "InsightLedger",
    "InvalidArgumentError",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "MeterBank",
    "PlayerHistory",
    "RunController",
    "RunModifierRegistry",
    "RunStart",
    "RunSummary",
    "Scene",
    "SceneCatalog",
    "calculate_insight",
    "generate_date_seed",
    "load_scene_pools",
]
