from __future__ import annotations

from datetime import date

import pytest

from one_choice.core.daily import DailyRunTracker
from one_choice.core.endings import ENDING_IDS, EndingsBook
from one_choice.core.history import HistoryRecorder
from one_choice.core.insight import MODIFIER_UNLOCK_COST, InsightLedger
from one_choice.core.persistence import DAILY_KEY, ENDINGS_KEY, INSIGHT_KEY, MemoryStore
from one_choice.core.rng import generate_date_seed


def _manual_date_hash(text: str) -> int:
    h = 0
    for char in text:
        h = (h * 31 + ord(char)) & 0xFFFFFFFF
        if h >= 0x80000000:
            h -= 0x100000000
    return abs(h)


def test_insight_ledger_unlocks_and_persists() -> None:
    store = MemoryStore()
    ledger = InsightLedger(store)
    ledger.add_insight(30)
    assert ledger.can_unlock_modifier("harsh_end") is False
    assert ledger.unlock_modifier("harsh_end") is False

    ledger.add_insight(30)
    assert ledger.unlock_modifier("harsh_end") is True
    assert ledger.balance == 60 - MODIFIER_UNLOCK_COST
    assert ledger.unlock_modifier("harsh_end") is False

    reloaded = InsightLedger(store)
    reloaded.load()
    assert reloaded.balance == 10
    assert reloaded.unlocked_modifiers() == ["harsh_end"]
    assert store.get(INSIGHT_KEY)["unlockedModifiers"] == ["harsh_end"]


def test_permanent_bonuses_are_capped() -> None:
    ledger = InsightLedger(MemoryStore())
    ledger.add_permanent_bonus("mind", 15)
    boosted = ledger.apply_permanent_bonuses({"mind": 90, "heart": 50, "time": 100, "drive": 0})
    assert boosted == {"mind": 100, "heart": 50, "time": 100, "drive": 0}

    with pytest.raises(ValueError):
        ledger.add_permanent_bonus("luck", 5)


def test_corrupt_insight_record_falls_back_to_defaults() -> None:
    store = MemoryStore({INSIGHT_KEY: {"insight": "lots", "bogus": True}})
    ledger = InsightLedger(store)
    ledger.load()
    assert ledger.balance == 0
    assert ledger.state.permanent_bonuses == {"mind": 0, "heart": 0, "time": 0, "drive": 0}


def test_zero_meter_ending_plus_sacrifice() -> None:
    book = EndingsBook(MemoryStore())
    newly = book.check_and_unlock("heart", {"mind": 50, "heart": 0, "time": 50, "drive": 50})
    assert newly == ["heart", "sacrifice"]


def test_burnout_ending_when_everything_is_low() -> None:
    book = EndingsBook(MemoryStore())
    newly = book.check_and_unlock("mind", {"mind": 0, "heart": 10, "time": 15, "drive": 5})
    assert newly == ["mind", "burnout"]
    assert book.check_and_unlock("mind", {"mind": 0, "heart": 10, "time": 15, "drive": 5}) == []
    assert book.unlocked_count() == 2


def test_obsession_and_emptiness_conditions() -> None:
    book = EndingsBook(MemoryStore())
    assert "obsession" in book.check_and_unlock("drive", {"mind": 90, "heart": 40, "time": 30, "drive": 0})

    other = EndingsBook(MemoryStore())
    assert other.check_and_unlock(None, {"mind": 20, "heart": 30, "time": 40, "drive": 25}) == ["emptiness"]


def test_endings_persist_and_ignore_unknown_ids() -> None:
    store = MemoryStore({ENDINGS_KEY: ["time", "ascension", 7]})
    book = EndingsBook(store)
    book.load()
    assert book.unlocked == {"time"}

    book.unlock("drive")
    assert store.get(ENDINGS_KEY) == ["drive", "time"]
    assert len(ENDING_IDS) == 8


def test_date_seed_matches_rolling_hash() -> None:
    assert generate_date_seed("2024-01-01") == _manual_date_hash("2024-01-01")
    assert generate_date_seed("2024-01-01") == generate_date_seed("2024-01-01")
    assert generate_date_seed("2024-01-01") != generate_date_seed("2024-01-02")
    assert generate_date_seed("2024-01-01") >= 0


def test_daily_run_available_once_per_day() -> None:
    today = [date(2024, 1, 1)]
    store = MemoryStore()
    tracker = DailyRunTracker(store, clock=lambda: today[0])

    ticket = tracker.start()
    assert ticket is not None
    assert ticket.date == "2024-01-01"
    assert ticket.seed == generate_date_seed("2024-01-01")
    assert tracker.is_available() is False
    assert tracker.start() is None

    today[0] = date(2024, 1, 2)
    assert tracker.is_available() is True


def test_stale_daily_record_resets_completion_and_keeps_seed() -> None:
    store = MemoryStore({DAILY_KEY: {"lastDailyDate": "2023-12-31", "dailyCompleted": True, "dailySeed": 42}})
    tracker = DailyRunTracker(store, clock=lambda: date(2024, 1, 1))
    tracker.load()
    assert tracker.state.daily_completed is False
    assert tracker.seed == 42
    assert tracker.is_available() is True


def test_history_records_runs_and_failures() -> None:
    store = MemoryStore()
    recorder = HistoryRecorder(store)
    assert recorder.most_common_failure() is None

    recorder.record_run("time", 12, "hard")
    recorder.record_run("mind", 30, "normal")
    recorder.record_run("mind", 4, "easy")

    history = recorder.history
    assert history.total_runs == 3
    assert history.best_choices == 30
    assert history.last_difficulty == "easy"
    assert recorder.most_common_failure() == "mind"

    reloaded = HistoryRecorder(store)
    reloaded.load()
    assert reloaded.history.failure_stats == {"time": 1, "mind": 2}


def test_most_common_failure_tie_goes_to_first_recorded() -> None:
    recorder = HistoryRecorder(MemoryStore())
    recorder.record_run("drive", 3, "normal")
    recorder.record_run("heart", 3, "normal")
    assert recorder.most_common_failure() == "drive"
