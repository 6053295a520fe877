from __future__ import annotations

from .models import PlayerHistory
from .persistence import PLAYER_STATS_KEY, KeyValueStore, load_model, save_model


class HistoryRecorder:
    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self.history = PlayerHistory()

    def record_run(self, zero_meter: str | None, choices_made: int, difficulty: str) -> None:
        history = self.history
        history.total_runs += 1
        if choices_made > history.best_choices:
            history.best_choices = choices_made
        if zero_meter:
            history.failure_stats[zero_meter] = history.failure_stats.get(zero_meter, 0) + 1
        history.last_difficulty = difficulty  # type: ignore[assignment]
        self.save()

    def most_common_failure(self) -> str | None:
        most_common: str | None = None
        best = 0
        for meter, count in self.history.failure_stats.items():
            if count > best:
                best = count
                most_common = meter
        return most_common

    def save(self) -> None:
        save_model(self.store, PLAYER_STATS_KEY, self.history)

    def load(self) -> None:
        self.history = load_model(self.store, PLAYER_STATS_KEY, PlayerHistory)
