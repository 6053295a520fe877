from __future__ import annotations

import math
from typing import Mapping

from .models import METER_MAX, InsightState
from .persistence import INSIGHT_KEY, KeyValueStore, load_model, save_model
from .run_director import INSIGHT_MULTIPLIERS

MODIFIER_UNLOCK_COST = 50


def calculate_insight(choices_made: int, difficulty: str) -> int:
    multiplier = INSIGHT_MULTIPLIERS.get(difficulty, 1.0)
    return max(0, math.floor(choices_made * multiplier))


class InsightLedger:
    """Meta currency earned per run, spent on permanent modifier unlocks."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self.state = InsightState()

    @property
    def balance(self) -> int:
        return self.state.insight

    def add_insight(self, amount: int) -> None:
        self.state.insight += int(amount)
        self.save()

    def modifier_cost(self, modifier_id: str) -> int:
        return MODIFIER_UNLOCK_COST

    def can_unlock_modifier(self, modifier_id: str) -> bool:
        return self.state.insight >= self.modifier_cost(modifier_id) and modifier_id not in self.state.unlocked_modifiers

    def unlock_modifier(self, modifier_id: str) -> bool:
        if not self.can_unlock_modifier(modifier_id):
            return False
        self.state.insight -= self.modifier_cost(modifier_id)
        self.state.unlocked_modifiers.append(modifier_id)
        self.save()
        return True

    def unlocked_modifiers(self) -> list[str]:
        return list(self.state.unlocked_modifiers)

    def add_permanent_bonus(self, meter: str, amount: int) -> None:
        if meter not in self.state.permanent_bonuses:
            raise ValueError(f"Unknown meter '{meter}'.")
        self.state.permanent_bonuses[meter] += int(amount)
        self.save()

    def apply_permanent_bonuses(self, base: Mapping[str, int]) -> dict[str, int]:
        boosted = dict(base)
        for meter, bonus in self.state.permanent_bonuses.items():
            if meter in boosted:
                boosted[meter] = min(METER_MAX, boosted[meter] + bonus)
        return boosted

    def save(self) -> None:
        save_model(self.store, INSIGHT_KEY, self.state)

    def load(self) -> None:
        self.state = load_model(self.store, INSIGHT_KEY, InsightState)
