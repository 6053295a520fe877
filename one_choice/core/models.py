from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

MeterName = Literal["mind", "heart", "time", "drive"]
Difficulty = Literal["easy", "normal", "hard"]
SceneTier = Literal["easy", "mid", "hard"]
GamePhase = Literal["loading", "menu", "playing", "gameover"]

METER_NAMES: tuple[MeterName, MeterName, MeterName, MeterName] = ("mind", "heart", "time", "drive")
DIFFICULTIES: tuple[Difficulty, Difficulty, Difficulty] = ("easy", "normal", "hard")
SCENE_TIERS: tuple[SceneTier, SceneTier, SceneTier] = ("easy", "mid", "hard")

METER_MIN = 0
METER_MAX = 100


class StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class Choice(StrictModel):
    label: str = Field(min_length=1)
    effects: dict[MeterName, int] = Field(default_factory=dict)
    score: int = 0

    @field_validator("score", mode="before")
    @classmethod
    def default_missing_score(cls, value: Any) -> Any:
        return 0 if value is None else value


class Scene(StrictModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    id: int
    text: str = Field(min_length=1)
    choices: list[Choice] = Field(min_length=2, max_length=2)

    def touches_any(self, meters: list[str] | tuple[str, ...]) -> bool:
        wanted = set(meters)
        return any(wanted.intersection(choice.effects) for choice in self.choices)


class ScenePoolFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    scenes: list[Scene] = Field(default_factory=list)


def zero_meters() -> dict[str, int]:
    return {meter: 0 for meter in METER_NAMES}


class PlayerHistory(StrictModel):
    total_runs: int = Field(default=0, alias="totalRuns", ge=0)
    best_choices: int = Field(default=0, alias="bestChoices", ge=0)
    failure_stats: dict[str, int] = Field(default_factory=dict, alias="failureStats")
    last_difficulty: Difficulty = Field(default="normal", alias="lastDifficulty")


class InsightState(StrictModel):
    insight: int = 0
    unlocked_modifiers: list[str] = Field(default_factory=list, alias="unlockedModifiers")
    # Persisted for forward compatibility; nothing reads it yet.
    unlocked_scenes: list[str] = Field(default_factory=list, alias="unlockedScenes")
    permanent_bonuses: dict[str, int] = Field(default_factory=zero_meters, alias="permanentBonuses")

    @field_validator("permanent_bonuses")
    @classmethod
    def fill_bonuses(cls, bonuses: dict[str, int]) -> dict[str, int]:
        hydrated = zero_meters()
        for meter, value in bonuses.items():
            if meter in hydrated:
                hydrated[meter] = int(value)
        return hydrated


class DailyRunState(StrictModel):
    last_daily_date: str | None = Field(default=None, alias="lastDailyDate")
    daily_completed: bool = Field(default=False, alias="dailyCompleted")
    daily_seed: int | None = Field(default=None, alias="dailySeed")


class RunSnapshot(StrictModel):
    stats: dict[str, int]
    score: int = 0
    choices_made: int = Field(default=0, alias="choicesMade", ge=0)
    timestamp: int = Field(ge=0)


def clamp_meter(value: int) -> int:
    return max(METER_MIN, min(METER_MAX, int(value)))


def full_meters() -> dict[str, int]:
    return {meter: METER_MAX for meter in METER_NAMES}


@dataclass(slots=True)
class MeterChange:
    previous: int
    new: int
    delta: int


@dataclass(slots=True)
class EffectsResult:
    changes: dict[str, MeterChange] = field(default_factory=dict)
    any_zero: bool = False
    zero_meter: str | None = None
    score_bonus: int = 0
