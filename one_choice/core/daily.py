from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable

from .models import DailyRunState
from .persistence import DAILY_KEY, KeyValueStore, load_model, save_model
from .rng import generate_date_seed

Clock = Callable[[], date]


@dataclass(frozen=True, slots=True)
class DailyRunTicket:
    seed: int
    date: str


def format_day(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


class DailyRunTracker:
    """One deterministic bonus run per local calendar day."""

    def __init__(self, store: KeyValueStore, clock: Clock = date.today) -> None:
        self.store = store
        self.clock = clock
        self.state = DailyRunState()

    def today(self) -> str:
        return format_day(self.clock())

    @property
    def seed(self) -> int | None:
        return self.state.daily_seed

    def is_available(self) -> bool:
        if not self.state.last_daily_date:
            return True
        return self.state.last_daily_date != self.today()

    def start(self) -> DailyRunTicket | None:
        if not self.is_available():
            return None
        today = self.today()
        self.state.daily_seed = generate_date_seed(today)
        self.state.last_daily_date = today
        self.state.daily_completed = False
        self.save()
        return DailyRunTicket(seed=self.state.daily_seed, date=today)

    def complete(self) -> None:
        self.state.daily_completed = True
        self.save()

    def save(self) -> None:
        save_model(self.store, DAILY_KEY, self.state)

    def load(self) -> None:
        self.state = load_model(self.store, DAILY_KEY, DailyRunState)
        if self.state.last_daily_date != self.today():
            # Stale completion flag; the stored seed is kept.
            self.state.daily_completed = False
