from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from one_choice.core.ads import DenyingAdService
from one_choice.core.engine import SNAPSHOT_MAX_AGE_MS, InvalidArgumentError, RunController
from one_choice.core.insight import InsightLedger
from one_choice.core.models import Choice, Scene
from one_choice.core.persistence import INSIGHT_KEY, PLAYER_STATS_KEY, MemoryStore
from one_choice.core.rng import generate_date_seed
from one_choice.core.selector import SceneCatalog

CONTENT_DIR = Path(__file__).resolve().parents[1] / "content"
NOW_MS = 1_700_000_000_000


def _controller(store: MemoryStore | None = None, now: list[int] | None = None, **kwargs) -> RunController:
    clock_now = now or [NOW_MS]
    controller = RunController(
        store or MemoryStore(),
        content_dir=CONTENT_DIR,
        clock=lambda: date(2024, 1, 1),
        now_ms=lambda: clock_now[0],
        ui_seed=1,
        **kwargs,
    )
    controller.boot()
    return controller


def _pool(tier: str, effects_a: dict[str, int], effects_b: dict[str, int]) -> list[Scene]:
    return [
        Scene(
            id=i,
            text=f"{tier}-{i}",
            choices=[
                Choice(label="A", effects=effects_a, score=1),
                Choice(label="B", effects=effects_b, score=2),
            ],
        )
        for i in range(1, 4)
    ]


def _gentle_pools() -> dict[str, list[Scene]]:
    return {tier: _pool(tier, {"mind": 1}, {"heart": 1}) for tier in ("easy", "mid", "hard")}


def _lethal_pools() -> dict[str, list[Scene]]:
    return {tier: _pool(tier, {"mind": -100}, {"mind": -100}) for tier in ("easy", "mid", "hard")}


def test_boot_lands_in_menu() -> None:
    controller = _controller()
    assert controller.game_state == "menu"
    assert controller.catalog.loaded
    assert controller.make_choice(0) is None


def test_boot_survives_corrupt_records() -> None:
    store = MemoryStore({PLAYER_STATS_KEY: "garbage", INSIGHT_KEY: [1, 2, 3]})
    controller = _controller(store)
    assert controller.game_state == "menu"
    assert controller.history.history.total_runs == 0
    assert controller.insight.balance == 0


def test_first_menu_start_is_the_daily_run() -> None:
    controller = _controller()
    start = controller.start_game_from_menu()
    assert start.is_daily_run is True
    assert start.first_time is True
    assert start.seed == generate_date_seed("2024-01-01")
    assert start.quote
    assert start.scene is not None
    assert controller.game_state == "playing"

    controller.return_to_menu()
    second = controller.start_game_from_menu()
    assert second.is_daily_run is False


def test_same_seed_replays_same_scenes() -> None:
    def play(controller: RunController) -> list[tuple[int, dict[str, int]]]:
        controller.start_new_game(seed=77)
        trail = []
        while controller.game_state == "playing" and len(trail) < 12:
            trail.append((controller.run.current_scene.id, controller.meters.get_all()))
            controller.make_choice(len(trail) % 2)
        return trail

    assert play(_controller()) == play(_controller())


def test_choice_accumulates_score_and_saves_snapshot() -> None:
    now = [NOW_MS]
    controller = _controller(now=now)
    controller.catalog.load_pools(_gentle_pools())
    controller.start_new_game(seed=3)

    outcome = controller.make_choice(1)
    assert outcome is not None
    assert outcome.score == 2
    assert outcome.choices_made == 1
    assert outcome.game_over is False
    assert outcome.next_scene is not None

    snapshot = controller.load_last_snapshot()
    assert snapshot is not None
    assert snapshot.choices_made == 1
    assert snapshot.score == 2

    now[0] = NOW_MS + SNAPSHOT_MAX_AGE_MS
    assert controller.load_last_snapshot() is None


def test_tiers_follow_normal_curve_over_forty_choices() -> None:
    controller = _controller()
    controller.catalog.load_pools(_gentle_pools())
    controller.start_new_game(seed="curve")

    tiers = []
    for _ in range(40):
        tiers.append(controller.run.current_scene.text.split("-")[0])
        outcome = controller.make_choice(0)
        assert outcome is not None and not outcome.game_over

    assert tiers[:10] == ["easy"] * 10
    assert tiers[10:30] == ["mid"] * 20
    assert tiers[30:] == ["hard"] * 10


def test_hard_difficulty_starts_in_mid_pool() -> None:
    controller = _controller()
    controller.catalog.load_pools(_gentle_pools())
    assert controller.select_difficulty("hard") is True
    start = controller.start_new_game(seed=9)
    assert start.scene.text.startswith("mid")


def test_fatal_choice_ends_run_and_awards_once() -> None:
    controller = _controller()
    controller.catalog.load_pools(_lethal_pools())
    controller.select_difficulty("hard")
    controller.start_new_game(seed=4)

    outcome = controller.make_choice(0)
    assert outcome.game_over is True
    summary = outcome.summary
    assert summary is not None
    assert summary.zero_meter == "mind"
    assert summary.choices_made == 1
    assert summary.insight_earned == 1
    assert "mind" in summary.new_endings
    assert 1 <= summary.percentile <= 99
    assert controller.game_state == "gameover"
    assert controller.make_choice(0) is None

    assert controller.revive_run() is True
    assert controller.game_state == "playing"
    assert controller.meters.get("mind") == 30

    again = controller.make_choice(0)
    assert again.game_over is True
    assert again.summary is not None
    assert again.summary.choices_made == 2
    assert again.summary.score == 2
    assert again.summary.insight_earned == 0
    assert again.summary.new_endings == []
    assert controller.last_summary is again.summary
    assert controller.game_state == "gameover"
    assert controller.insight.balance == 1
    assert controller.history.history.total_runs == 1


def test_revive_denied_keeps_game_over() -> None:
    controller = _controller(ads=DenyingAdService())
    controller.catalog.load_pools(_lethal_pools())
    controller.start_new_game(seed=4)
    controller.make_choice(0)
    assert controller.revive_run() is False
    assert controller.game_state == "gameover"


def test_daily_run_completion_is_recorded() -> None:
    controller = _controller()
    controller.catalog.load_pools(_lethal_pools())
    start = controller.start_game_from_menu()
    assert start.is_daily_run
    controller.make_choice(0)
    assert controller.daily.state.daily_completed is True
    assert controller.daily.is_available() is False


class _CountingAds:
    def __init__(self) -> None:
        self.interstitials = 0

    def request_rewarded_ad(self, kind: str) -> bool:
        return True

    def request_interstitial(self) -> bool:
        self.interstitials += 1
        return True


def test_interstitial_every_third_return_to_menu() -> None:
    ads = _CountingAds()
    controller = _controller(ads=ads)
    for _ in range(7):
        controller.start_new_game(seed=1)
        controller.return_to_menu()
    assert ads.interstitials == 2
    assert controller.game_state == "menu"


def test_invalid_input_is_ignored_unless_strict() -> None:
    lenient = _controller()
    assert lenient.select_difficulty("nightmare") is False
    assert lenient.select_language("de") is False
    lenient.start_new_game(seed=2)
    assert lenient.make_choice(5) is None
    assert lenient.run.choices_made == 0

    strict = _controller(strict=True)
    with pytest.raises(InvalidArgumentError):
        strict.select_difficulty("nightmare")
    strict.start_new_game(seed=2)
    with pytest.raises(InvalidArgumentError):
        strict.make_choice(-1)


def test_jump_to_scene_only_while_playing() -> None:
    controller = _controller()
    controller.catalog.load_pools(_gentle_pools())
    assert controller.jump_to_scene("hard", 2) is None
    controller.start_new_game(seed=8)
    scene = controller.jump_to_scene("hard", 2)
    assert scene is not None and scene.text == "hard-2"
    assert controller.run.current_scene is scene
    assert controller.jump_to_scene("hard", 99) is None


def test_language_and_failure_labels() -> None:
    controller = _controller()
    assert controller.most_common_failure() == "—"
    controller.history.record_run("heart", 3, "normal")
    assert controller.most_common_failure() == "Heart"
    assert controller.select_language("ru") is True
    assert controller.settings.language == "ru"
    assert controller.most_common_failure() != "Heart"


def test_toggle_sound_persists() -> None:
    store = MemoryStore()
    controller = _controller(store)
    assert controller.toggle_sound() is False
    reloaded = _controller(store)
    assert reloaded.settings.sound_enabled is False


def test_percentile_stays_in_range() -> None:
    controller = _controller()
    for choices, score in ((0, 0), (5, 40), (200, 5000)):
        controller.run.choices_made = choices
        controller.run.score = score
        assert 1 <= controller.calculate_percentile() <= 99


def _write_undecodable_pools(content_dir: Path) -> None:
    for tier in ("easy", "mid", "hard"):
        (content_dir / f"scenes_{tier}.json").write_bytes(b'{"scenes": [\xff\xfe]}')


def test_boot_with_undecodable_pools_uses_fallback_scenes(tmp_path: Path) -> None:
    _write_undecodable_pools(tmp_path)
    controller = RunController(MemoryStore(), content_dir=tmp_path, clock=lambda: date(2024, 1, 1), ui_seed=1)
    controller.boot()

    assert controller.game_state == "menu"
    assert controller.catalog.used_fallback is True
    start = controller.start_new_game(seed=1)
    assert start.scene is not None and start.scene.id == 1


def test_boot_recovers_when_catalog_reload_also_fails(monkeypatch) -> None:
    def broken_load(self: SceneCatalog, content_dir: Path | str) -> None:
        raise RuntimeError("disk vanished")

    monkeypatch.setattr(SceneCatalog, "load", broken_load)
    controller = _controller()

    assert controller.game_state == "menu"
    assert controller.catalog.loaded is True
    assert controller.catalog.used_fallback is True
    assert controller.start_new_game(seed=5).scene is not None


class _RecordingLedger(InsightLedger):
    def __init__(self, store: MemoryStore) -> None:
        super().__init__(store)
        self.calls: list[tuple[dict[str, int], dict[str, int]]] = []

    def apply_permanent_bonuses(self, base):
        boosted = super().apply_permanent_bonuses(base)
        self.calls.append((dict(base), boosted))
        return boosted


def test_permanent_bonuses_apply_at_run_start_and_stay_capped() -> None:
    store = MemoryStore()
    controller = _controller(store)
    controller.catalog.load_pools(_gentle_pools())
    ledger = _RecordingLedger(store)
    ledger.load()
    controller.insight = ledger

    ledger.add_permanent_bonus("mind", 20)
    ledger.add_permanent_bonus("drive", 5)
    controller.start_new_game(seed=6)

    full = {"mind": 100, "heart": 100, "time": 100, "drive": 100}
    assert ledger.calls == [(full, full)]
    assert controller.meters.get_all() == full
    assert store.get(INSIGHT_KEY)["permanentBonuses"] == {"mind": 20, "heart": 0, "time": 0, "drive": 5}

    controller.start_new_game(seed=7)
    assert len(ledger.calls) == 2
