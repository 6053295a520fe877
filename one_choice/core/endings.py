from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping, Protocol

from .persistence import ENDINGS_KEY, KeyValueStore, load_string_list

Predicate = Callable[[str | None, Mapping[str, int]], bool]


class TextResolver(Protocol):
    def resolve(self, key: str) -> str: ...


def _zeroed(meter: str) -> Predicate:
    return lambda zero_meter, final: zero_meter == meter


def _burnout(zero_meter: str | None, final: Mapping[str, int]) -> bool:
    return all(value < 20 for value in final.values())


def _obsession(zero_meter: str | None, final: Mapping[str, int]) -> bool:
    values = list(final.values())
    return max(values) > 80 and min(values) < 10


def _emptiness(zero_meter: str | None, final: Mapping[str, int]) -> bool:
    return all(20 <= value <= 40 for value in final.values())


def _sacrifice(zero_meter: str | None, final: Mapping[str, int]) -> bool:
    return zero_meter in ("heart", "time")


ENDING_CONDITIONS: dict[str, Predicate] = {
    "mind": _zeroed("mind"),
    "heart": _zeroed("heart"),
    "time": _zeroed("time"),
    "drive": _zeroed("drive"),
    "burnout": _burnout,
    "obsession": _obsession,
    "emptiness": _emptiness,
    "sacrifice": _sacrifice,
}

ENDING_IDS: tuple[str, ...] = tuple(ENDING_CONDITIONS)


@dataclass(frozen=True, slots=True)
class EndingEntry:
    id: str
    title: str
    description: str
    unlocked: bool


class EndingsBook:
    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self.unlocked: set[str] = set()

    def is_unlocked(self, ending_id: str) -> bool:
        return ending_id in self.unlocked

    def unlocked_count(self) -> int:
        return len(self.unlocked)

    def unlock(self, ending_id: str) -> None:
        self.unlocked.add(ending_id)
        self.save()

    def check_and_unlock(self, zero_meter: str | None, final: Mapping[str, int]) -> list[str]:
        """Unlock every still-locked ending whose condition holds. Never re-locks."""
        newly: list[str] = []
        for ending_id in ENDING_IDS:
            if ending_id in self.unlocked:
                continue
            if ENDING_CONDITIONS[ending_id](zero_meter, final):
                self.unlock(ending_id)
                newly.append(ending_id)
        return newly

    def all_endings(self, localizer: TextResolver) -> list[EndingEntry]:
        return [
            EndingEntry(
                id=ending_id,
                title=localizer.resolve(f"endings.{ending_id}.title"),
                description=localizer.resolve(f"endings.{ending_id}.description"),
                unlocked=ending_id in self.unlocked,
            )
            for ending_id in ENDING_IDS
        ]

    def save(self) -> None:
        self.store.put(ENDINGS_KEY, sorted(self.unlocked))

    def load(self) -> None:
        self.unlocked = {entry for entry in load_string_list(self.store, ENDINGS_KEY) if entry in ENDING_CONDITIONS}


def ending_text(localizer: TextResolver, zero_meter: str | None) -> tuple[str, str]:
    key = f"endings.{zero_meter}"
    title = localizer.resolve(f"{key}.title")
    description = localizer.resolve(f"{key}.description")
    if title == f"{key}.title":
        title = localizer.resolve("endings.mind.title")
        description = localizer.resolve("endings.mind.description")
    return title, description
