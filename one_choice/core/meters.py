from __future__ import annotations

from typing import Callable, Mapping

from .models import METER_MAX, METER_NAMES, EffectsResult, MeterChange, clamp_meter, full_meters

REVIVE_FLOOR = 30

ChangeObserver = Callable[[dict[str, MeterChange]], None]
ZeroObserver = Callable[[str], None]


class MeterBank:
    """The four clamped life meters of the active run.

    Mutation goes through :meth:`apply_effects` only. Observers are plain lists;
    the controller subscribes to both for gameplay logging.
    """

    def __init__(self) -> None:
        self._values: dict[str, int] = full_meters()
        self._change_observers: list[ChangeObserver] = []
        self._zero_observers: list[ZeroObserver] = []

    def reset(self) -> None:
        self._values = full_meters()

    def set_all(self, values: Mapping[str, int]) -> None:
        for meter, value in values.items():
            if meter in self._values:
                self._values[meter] = clamp_meter(value)

    def apply_effects(self, effects: Mapping[str, int], score_bonus: int = 0) -> EffectsResult:
        result = EffectsResult(score_bonus=score_bonus)
        for meter, delta in effects.items():
            if meter not in self._values:
                continue
            previous = self._values[meter]
            self._values[meter] = clamp_meter(previous + int(delta))
            result.changes[meter] = MeterChange(previous=previous, new=self._values[meter], delta=int(delta))
            # First zero wins; later zeros in the same call are not reported.
            if self._values[meter] == 0 and not result.any_zero:
                result.any_zero = True
                result.zero_meter = meter

        for observer in list(self._change_observers):
            observer(result.changes)
        if result.any_zero and result.zero_meter is not None:
            for observer in list(self._zero_observers):
                observer(result.zero_meter)
        return result

    def get(self, meter: str) -> int:
        return self._values.get(meter, 0)

    def get_all(self) -> dict[str, int]:
        return dict(self._values)

    def get_lowest(self) -> str:
        lowest = METER_NAMES[0]
        for meter in METER_NAMES:
            if self._values[meter] < self._values[lowest]:
                lowest = meter
        return lowest

    def get_below(self, threshold: int) -> list[str]:
        return [meter for meter in METER_NAMES if self._values[meter] < threshold]

    def revive(self, meter: str) -> None:
        if meter in self._values:
            self._values[meter] = min(METER_MAX, max(REVIVE_FLOOR, self._values[meter]))

    def on_change(self, observer: ChangeObserver) -> None:
        self._change_observers.append(observer)

    def on_zero(self, observer: ZeroObserver) -> None:
        self._zero_observers.append(observer)
