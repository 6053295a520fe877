from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Mapping, Protocol

from .models import METER_NAMES
from .rng import DeterministicRNG

FAST_MULTIPLIER = 1.5
HARSH_MULTIPLIER = 1.3
HARSH_WINDOW = 5
DOUBLE_EFFECT_EVERY = 5
DOUBLE_EFFECT_PENALTY = -5


class TextResolver(Protocol):
    def resolve(self, key: str) -> str: ...


@dataclass(slots=True)
class ModifierState:
    locked_meter: str | None = None


@dataclass(slots=True)
class TransformContext:
    meters: Mapping[str, int]
    choice_number: int
    total_estimate: int
    state: ModifierState
    rng: DeterministicRNG


Transform = Callable[[dict[str, int], TransformContext], dict[str, int]]


@dataclass(frozen=True, slots=True)
class Modifier:
    id: str
    transform: Transform
    requires_unlock: bool = False

    @property
    def name_key(self) -> str:
        return f"modifier.{self.id}.name"

    @property
    def description_key(self) -> str:
        return f"modifier.{self.id}.description"


@dataclass(slots=True)
class ActiveModifier:
    modifier: Modifier
    name: str
    description: str
    state: ModifierState

    @property
    def id(self) -> str:
        return self.modifier.id


def _fast(meter: str) -> Transform:
    def transform(effects: dict[str, int], ctx: TransformContext) -> dict[str, int]:
        if effects.get(meter):
            # math.floor on a negative product rounds away from zero; kept as-is.
            effects[meter] = math.floor(effects[meter] * FAST_MULTIPLIER)
        return effects

    return transform


def _double_effect(effects: dict[str, int], ctx: TransformContext) -> dict[str, int]:
    if ctx.choice_number % DOUBLE_EFFECT_EVERY != 0:
        return effects
    untouched = [meter for meter in METER_NAMES if meter not in effects]
    if untouched:
        meter = ctx.rng.pick(untouched)
        effects[meter] = effects.get(meter, 0) + DOUBLE_EFFECT_PENALTY
    return effects


def _no_recovery(effects: dict[str, int], ctx: TransformContext) -> dict[str, int]:
    if ctx.state.locked_meter is None:
        lowest: str | None = None
        lowest_value = math.inf
        for meter, value in ctx.meters.items():
            if value < lowest_value:
                lowest_value = value
                lowest = meter
        ctx.state.locked_meter = lowest
    locked = ctx.state.locked_meter
    if locked is not None and effects.get(locked, 0) > 0:
        effects[locked] = 0
    return effects


def _harsh_end(effects: dict[str, int], ctx: TransformContext) -> dict[str, int]:
    if ctx.total_estimate - ctx.choice_number <= HARSH_WINDOW:
        for meter, delta in effects.items():
            if delta < 0:
                effects[meter] = math.floor(delta * HARSH_MULTIPLIER)
    return effects


MODIFIERS: tuple[Modifier, ...] = (
    Modifier("fast_mind", _fast("mind")),
    Modifier("fast_heart", _fast("heart")),
    Modifier("fast_time", _fast("time")),
    Modifier("fast_drive", _fast("drive")),
    Modifier("double_effect", _double_effect),
    Modifier("no_recovery", _no_recovery),
    Modifier("harsh_end", _harsh_end),
)

MODIFIER_BY_ID = {modifier.id: modifier for modifier in MODIFIERS}


class RunModifierRegistry:
    def __init__(
        self,
        localizer: TextResolver | None = None,
        modifiers: tuple[Modifier, ...] = MODIFIERS,
    ) -> None:
        self.localizer = localizer
        self.modifiers = modifiers
        self.current: ActiveModifier | None = None

    def available(self, unlocked_ids: set[str] | list[str]) -> list[Modifier]:
        unlocked = set(unlocked_ids)
        return [modifier for modifier in self.modifiers if not modifier.requires_unlock or modifier.id in unlocked]

    def select_random(self, unlocked_ids: set[str] | list[str], rng: DeterministicRNG) -> ActiveModifier | None:
        candidates = self.available(unlocked_ids)
        if not candidates:
            return None
        return self._activate(rng.pick(candidates))

    def select(self, modifier_id: str) -> ActiveModifier:
        modifier = MODIFIER_BY_ID.get(modifier_id)
        if modifier is None:
            raise ValueError(f"Unknown modifier '{modifier_id}'.")
        return self._activate(modifier)

    def _activate(self, modifier: Modifier) -> ActiveModifier:
        if self.localizer is not None:
            name = self.localizer.resolve(modifier.name_key)
            description = self.localizer.resolve(modifier.description_key)
        else:
            name = modifier.name_key
            description = modifier.description_key
        self.current = ActiveModifier(modifier=modifier, name=name, description=description, state=ModifierState())
        return self.current

    def transform(
        self,
        meters: Mapping[str, int],
        effects: Mapping[str, int],
        choice_number: int,
        total_estimate: int,
        rng: DeterministicRNG,
    ) -> dict[str, int]:
        proposed = dict(effects)
        if self.current is None:
            return proposed
        ctx = TransformContext(
            meters=dict(meters),
            choice_number=choice_number,
            total_estimate=total_estimate,
            state=self.current.state,
            rng=rng,
        )
        return self.current.modifier.transform(proposed, ctx)

    def reset(self) -> None:
        self.current = None
