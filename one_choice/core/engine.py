from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from .ads import INTERSTITIAL_EVERY, AdService, StandaloneAdService, safe_interstitial, safe_rewarded
from .daily import Clock, DailyRunTracker
from .endings import EndingsBook, ending_text
from .history import HistoryRecorder
from .insight import InsightLedger, calculate_insight
from .loader import default_content_dir, fallback_pools
from .localization import Localizer
from .meters import MeterBank
from .models import DIFFICULTIES, EffectsResult, GamePhase, MeterChange, RunSnapshot, Scene
from .modifiers import ActiveModifier, RunModifierRegistry
from .persistence import SNAPSHOT_KEY, KeyValueStore, save_model
from .quotes import QuoteBook
from .rng import DeterministicRNG, fresh_seed
from .run_director import LOW_METER_THRESHOLD, estimated_total_choices, forced_tier, initial_tier
from .selector import SceneCatalog
from .settings import AppSettings, load_settings, save_settings

logger = logging.getLogger(__name__)
gameplay_logger = logging.getLogger("one_choice.gameplay")

SNAPSHOT_MAX_AGE_MS = 24 * 60 * 60 * 1000


class InvalidArgumentError(ValueError):
    pass


@dataclass(slots=True)
class RunState:
    score: int = 0
    choices_made: int = 0
    difficulty: str = "normal"
    is_daily_run: bool = False
    game_state: GamePhase = "loading"
    insight_already_awarded: bool = False
    seed: int | str = 0
    current_scene: Scene | None = None
    last_choice: int | None = None


@dataclass(slots=True)
class RunStart:
    seed: int | str
    is_daily_run: bool
    first_time: bool
    modifier: ActiveModifier | None
    scene: Scene | None
    quote: str = ""


@dataclass(slots=True)
class RunSummary:
    zero_meter: str | None
    ending_title: str
    ending_description: str
    score: int
    choices_made: int
    insight_earned: int
    insight_total: int
    new_endings: list[str] = field(default_factory=list)
    percentile: int = 0
    restart_quote: str = ""
    is_daily_run: bool = False


@dataclass(slots=True)
class ChoiceOutcome:
    applied_effects: dict[str, int]
    result: EffectsResult
    score: int
    choices_made: int
    next_scene: Scene | None
    summary: RunSummary | None = None

    @property
    def game_over(self) -> bool:
        return self.result.any_zero


class RunController:
    """Owns one player's session: meters, scene catalog, modifiers and meta progression.

    Not thread-safe. A host serving several players needs one controller per
    player and must serialize calls to it.
    """

    def __init__(
        self,
        store: KeyValueStore,
        content_dir: Path | str | None = None,
        ads: AdService | None = None,
        localizer: Localizer | None = None,
        clock: Clock = date.today,
        now_ms: Callable[[], int] | None = None,
        ui_seed: int | str | None = None,
        strict: bool = False,
    ) -> None:
        self.store = store
        self.content_dir = Path(content_dir) if content_dir is not None else default_content_dir()
        self.ads = ads or StandaloneAdService()
        self.localizer = localizer or Localizer.from_dir(self.content_dir / "locales")
        self.now_ms = now_ms or (lambda: int(time.time() * 1000))
        self.strict = strict

        self.settings = AppSettings()
        self.meters = MeterBank()
        self.catalog = SceneCatalog()
        self.modifiers = RunModifierRegistry(self.localizer)
        self.insight = InsightLedger(store)
        self.endings = EndingsBook(store)
        self.daily = DailyRunTracker(store, clock=clock)
        self.history = HistoryRecorder(store)

        self.ui_rng = DeterministicRNG.from_seed(ui_seed if ui_seed is not None else fresh_seed())
        self.quotes = QuoteBook(self.ui_rng, language=self.settings.language)
        self.rng = DeterministicRNG.from_seed(0)
        self.run = RunState()
        self.last_summary: RunSummary | None = None
        self.menu_returns = 0

        self.meters.on_change(self._log_meter_changes)
        self.meters.on_zero(self._log_zero)

    # -- setup -------------------------------------------------------------

    def boot(self) -> None:
        """Load persisted state and content. Always ends in the menu state."""
        try:
            self.settings = load_settings(self.store)
            if not self.localizer.set_language(self.settings.language):
                self.settings.language = self.localizer.language
            self.quotes.set_language(self.settings.language)
            self.history.load()
            self.insight.load()
            self.endings.load()
            self.daily.load()
            self.catalog.load(self.content_dir)
        except Exception:
            logger.exception("Boot failed; continuing with defaults.")
            if not self.catalog.loaded:
                try:
                    self.catalog.load(self.content_dir)
                except Exception:
                    logger.exception("Scene catalog reload failed; using fallback scenes.")
                    self.catalog.load_pools(fallback_pools())
                    self.catalog.used_fallback = True
        self.run.difficulty = self.settings.difficulty
        self.run.game_state = "menu"
        logger.info(
            "Booted: runs=%d insight=%d endings=%d daily_available=%s",
            self.history.history.total_runs,
            self.insight.balance,
            self.endings.unlocked_count(),
            self.daily.is_available(),
        )

    def _reject(self, message: str) -> None:
        if self.strict:
            raise InvalidArgumentError(message)
        logger.debug("Ignored: %s", message)

    def select_difficulty(self, difficulty: str) -> bool:
        if difficulty not in DIFFICULTIES:
            self._reject(f"Unknown difficulty '{difficulty}'.")
            return False
        self.settings.difficulty = difficulty  # type: ignore[assignment]
        save_settings(self.store, self.settings)
        return True

    def select_language(self, language: str) -> bool:
        if not self.localizer.set_language(language):
            self._reject(f"Unknown language '{language}'.")
            return False
        self.settings.language = language
        self.quotes.set_language(language)
        save_settings(self.store, self.settings)
        return True

    def toggle_sound(self) -> bool:
        self.settings.sound_enabled = not self.settings.sound_enabled
        save_settings(self.store, self.settings)
        return self.settings.sound_enabled

    # -- run lifecycle -----------------------------------------------------

    def start_game_from_menu(self) -> RunStart:
        first_time = self.history.history.total_runs == 0
        ticket = self.daily.start()
        if ticket is not None:
            logger.info("Starting daily run for %s (seed=%d).", ticket.date, ticket.seed)
            start = self.start_new_game(seed=ticket.seed, is_daily_run=True)
        else:
            start = self.start_new_game()
        start.first_time = first_time
        if first_time:
            start.quote = self.quotes.get_quote("preGame")
        return start

    def start_new_game(self, seed: int | str | None = None, is_daily_run: bool = False) -> RunStart:
        run_seed = seed if seed is not None else fresh_seed()
        self.rng = DeterministicRNG.from_seed(run_seed)
        self.run = RunState(
            difficulty=self.settings.difficulty,
            is_daily_run=is_daily_run,
            game_state="playing",
            seed=run_seed,
        )
        self.last_summary = None

        self.meters.reset()
        self.catalog.reset()
        self.modifiers.reset()
        self.quotes.reset()

        self.catalog.current_difficulty = initial_tier(self.run.difficulty)
        self.meters.set_all(self.insight.apply_permanent_bonuses(self.meters.get_all()))
        modifier = self.modifiers.select_random(self.insight.unlocked_modifiers(), self.rng)

        scene = self._present_next_scene()
        gameplay_logger.info(
            "run start seed=%s difficulty=%s daily=%s modifier=%s",
            run_seed,
            self.run.difficulty,
            is_daily_run,
            modifier.id if modifier else "-",
        )
        return RunStart(
            seed=run_seed,
            is_daily_run=is_daily_run,
            first_time=False,
            modifier=modifier,
            scene=scene,
        )

    def _present_next_scene(self) -> Scene | None:
        low_meters = self.meters.get_below(LOW_METER_THRESHOLD)
        tier = forced_tier(self.run.difficulty, self.run.choices_made)
        scene = self.catalog.sample(self.run.choices_made, low_meters, self.rng, forced_difficulty=tier)
        if scene is None:
            logger.error("No scene available for tier '%s'.", tier)
        self.run.current_scene = scene
        return scene

    def make_choice(self, index: int) -> ChoiceOutcome | None:
        scene = self.run.current_scene
        if self.run.game_state != "playing" or scene is None:
            return None
        if not 0 <= index < len(scene.choices):
            self._reject(f"Choice index {index} out of range for scene {scene.id}.")
            return None

        choice = scene.choices[index]
        effects = self.modifiers.transform(
            self.meters.get_all(),
            choice.effects,
            self.run.choices_made + 1,
            estimated_total_choices(self.run.choices_made),
            self.rng,
        )
        result = self.meters.apply_effects(effects, choice.score)

        self.run.score += choice.score
        self.run.choices_made += 1
        self.run.last_choice = index
        self._save_snapshot()

        outcome = ChoiceOutcome(
            applied_effects=effects,
            result=result,
            score=self.run.score,
            choices_made=self.run.choices_made,
            next_scene=None,
        )
        if result.any_zero:
            outcome.summary = self.handle_game_over(result.zero_meter)
        else:
            outcome.next_scene = self._present_next_scene()
        return outcome

    def handle_game_over(self, zero_meter: str | None) -> RunSummary | None:
        """End the run. Returns None if it already ended.

        A revived run that collapses again gets a summary with current
        numbers but no second award: no insight, endings or history entry.
        """
        if self.run.game_state == "gameover":
            return None
        self.run.game_state = "gameover"
        if self.run.insight_already_awarded:
            summary = self._build_summary(zero_meter, earned=0, new_endings=[])
            gameplay_logger.info(
                "run end after revive zero=%s choices=%d score=%d",
                zero_meter,
                summary.choices_made,
                summary.score,
            )
            return summary
        self.run.insight_already_awarded = True

        final = self.meters.get_all()
        new_endings = self.endings.check_and_unlock(zero_meter, final)
        earned = calculate_insight(self.run.choices_made, self.run.difficulty)
        self.insight.add_insight(earned)
        self.history.record_run(zero_meter, self.run.choices_made, self.run.difficulty)
        if self.run.is_daily_run:
            self.daily.complete()

        summary = self._build_summary(zero_meter, earned=earned, new_endings=new_endings)
        gameplay_logger.info(
            "run end zero=%s choices=%d score=%d insight=+%d endings=%s",
            zero_meter,
            summary.choices_made,
            summary.score,
            earned,
            ",".join(new_endings) or "-",
        )
        return summary

    def _build_summary(self, zero_meter: str | None, earned: int, new_endings: list[str]) -> RunSummary:
        title, description = ending_text(self.localizer, zero_meter)
        summary = RunSummary(
            zero_meter=zero_meter,
            ending_title=title,
            ending_description=description,
            score=self.run.score,
            choices_made=self.run.choices_made,
            insight_earned=earned,
            insight_total=self.insight.balance,
            new_endings=new_endings,
            percentile=self.calculate_percentile(),
            restart_quote=self.quotes.get_quote("restart"),
            is_daily_run=self.run.is_daily_run,
        )
        self.last_summary = summary
        return summary

    def revive_run(self) -> bool:
        if self.run.game_state != "gameover":
            return False
        if not safe_rewarded(self.ads, "revive"):
            return False
        lowest = self.meters.get_lowest()
        self.meters.revive(lowest)
        # The award guard stays set: this run already paid out.
        self.run.game_state = "playing"
        self._present_next_scene()
        gameplay_logger.info("run revived meter=%s value=%d", lowest, self.meters.get(lowest))
        return True

    def return_to_menu(self) -> None:
        self.menu_returns += 1
        if self.menu_returns >= INTERSTITIAL_EVERY:
            safe_interstitial(self.ads)
            self.menu_returns = 0
        self.run.game_state = "menu"
        self.run.current_scene = None

    def jump_to_scene(self, tier: str, scene_id: int) -> Scene | None:
        if self.run.game_state != "playing":
            return None
        scene = self.catalog.find(tier, scene_id)
        if scene is None:
            self._reject(f"No scene {scene_id} in '{tier}' pool.")
            return None
        self.run.current_scene = scene
        return scene

    # -- queries -----------------------------------------------------------

    @property
    def game_state(self) -> GamePhase:
        return self.run.game_state

    def calculate_percentile(self) -> int:
        base = min(95, max(5, math.floor((self.run.choices_made * 2 + self.run.score / 10) * 1.5)))
        variation = self.ui_rng.next_int(0, 10) - 5
        return max(1, min(99, base + variation))

    def most_common_failure(self) -> str:
        meter = self.history.most_common_failure()
        if meter is None:
            return "—"
        return self.localizer.resolve(f"meters.{meter}")

    def menu_quote(self) -> str:
        return self.quotes.get_quote("menu")

    def load_last_snapshot(self) -> RunSnapshot | None:
        payload = self.store.get(SNAPSHOT_KEY)
        if payload is None:
            return None
        try:
            snapshot = RunSnapshot.model_validate(payload)
        except ValidationError:
            logger.warning("Discarding corrupt run snapshot.")
            return None
        if self.now_ms() - snapshot.timestamp >= SNAPSHOT_MAX_AGE_MS:
            return None
        return snapshot

    # -- internals ---------------------------------------------------------

    def _save_snapshot(self) -> None:
        snapshot = RunSnapshot(
            stats=self.meters.get_all(),
            score=self.run.score,
            choices_made=self.run.choices_made,
            timestamp=self.now_ms(),
        )
        save_model(self.store, SNAPSHOT_KEY, snapshot)

    def _log_meter_changes(self, changes: dict[str, MeterChange]) -> None:
        if changes:
            gameplay_logger.info(
                "meters %s",
                " ".join(f"{meter}={change.previous}->{change.new}" for meter, change in changes.items()),
            )

    def _log_zero(self, meter: str) -> None:
        gameplay_logger.info("meter %s reached zero", meter)
