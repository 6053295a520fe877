from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from .loader import ContentValidationError, fallback_pools, load_scene_pools
from .models import SCENE_TIERS, Scene, SceneTier
from .rng import DeterministicRNG
from .run_director import default_tier

logger = logging.getLogger(__name__)

USAGE_RESET_RATIO = 0.8


class SceneCatalog:
    """Three difficulty pools plus the per-run anti-repetition usage set."""

    def __init__(self) -> None:
        self.pools: dict[str, list[Scene]] = {tier: [] for tier in SCENE_TIERS}
        self.used_ids: set[int] = set()
        self.current_difficulty: SceneTier = "easy"
        self.loaded = False
        self.used_fallback = False

    def load(self, content_dir: Path | str) -> None:
        try:
            pools = load_scene_pools(content_dir)
        except (ContentValidationError, OSError) as exc:
            logger.warning("Scene catalog failed to load, using fallback scenes: %s", exc)
            self.pools = fallback_pools()
            self.used_fallback = True
        else:
            self.pools = pools
            self.used_fallback = False
            logger.debug(
                "Loaded scenes: easy=%d mid=%d hard=%d",
                len(pools["easy"]),
                len(pools["mid"]),
                len(pools["hard"]),
            )
        self.loaded = True

    def load_pools(self, pools: dict[str, list[Scene]]) -> None:
        self.pools = {tier: list(pools.get(tier, [])) for tier in SCENE_TIERS}
        self.used_fallback = False
        self.loaded = True

    def find(self, tier: str, scene_id: int) -> Scene | None:
        return next((scene for scene in self.pools.get(tier, []) if scene.id == scene_id), None)

    def sample(
        self,
        choices_made: int,
        low_meters: Sequence[str],
        rng: DeterministicRNG,
        forced_difficulty: str | None = None,
    ) -> Scene | None:
        if not self.loaded:
            return None

        if forced_difficulty in SCENE_TIERS:
            self.current_difficulty = forced_difficulty  # type: ignore[assignment]
        else:
            self.current_difficulty = default_tier(choices_made)

        pool = self.pools[self.current_difficulty]
        if not pool:
            return None

        if len(self.used_ids) > len(pool) * USAGE_RESET_RATIO:
            self.used_ids.clear()

        candidates = [scene for scene in pool if scene.id not in self.used_ids]
        if not candidates:
            candidates = list(pool)
            self.used_ids.clear()

        # Prefer scenes that can move a struggling meter; never narrow to nothing.
        if low_meters:
            targeted = [scene for scene in candidates if scene.touches_any(tuple(low_meters))]
            if targeted:
                candidates = targeted

        selected = rng.pick(candidates)
        self.used_ids.add(selected.id)
        return selected

    def reset(self) -> None:
        self.used_ids.clear()
        self.current_difficulty = "easy"
