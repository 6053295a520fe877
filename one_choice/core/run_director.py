from __future__ import annotations

from .models import Difficulty, SceneTier

# (upper bound on choices_made, tier); the last row catches everything above.
DEFAULT_CURVE: tuple[tuple[int, SceneTier], ...] = (
    (10, "easy"),
    (30, "mid"),
    (10**9, "hard"),
)

DIFFICULTY_CURVES: dict[str, tuple[tuple[int, SceneTier], ...]] = {
    "easy": (
        (15, "easy"),
        (25, "mid"),
        (10**9, "hard"),
    ),
    "normal": DEFAULT_CURVE,
    "hard": (
        (5, "mid"),
        (10**9, "hard"),
    ),
}

INITIAL_TIER: dict[str, SceneTier] = {
    "easy": "easy",
    "normal": "mid",
    "hard": "hard",
}

INSIGHT_MULTIPLIERS: dict[str, float] = {
    "easy": 0.5,
    "normal": 1.0,
    "hard": 1.5,
}

HARSH_END_LOOKAHEAD = 10
LOW_METER_THRESHOLD = 30


def _tier_from_curve(curve: tuple[tuple[int, SceneTier], ...], choices_made: int) -> SceneTier:
    for limit, tier in curve:
        if choices_made < limit:
            return tier
    return curve[-1][1]


def default_tier(choices_made: int) -> SceneTier:
    return _tier_from_curve(DEFAULT_CURVE, choices_made)


def forced_tier(difficulty: Difficulty | str, choices_made: int) -> SceneTier:
    """Tier the controller forces for a player-selected difficulty.

    Easy lingers in the gentle pool, hard skips it entirely; unknown
    difficulties follow the default curve.
    """
    curve = DIFFICULTY_CURVES.get(difficulty, DEFAULT_CURVE)
    return _tier_from_curve(curve, choices_made)


def initial_tier(difficulty: Difficulty | str) -> SceneTier:
    return INITIAL_TIER.get(difficulty, "mid")


def estimated_total_choices(choices_made: int) -> int:
    # Recomputed every choice, so the harsh_end window drifts with the run.
    return choices_made + HARSH_END_LOOKAHEAD
