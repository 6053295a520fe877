from __future__ import annotations

from one_choice.core.insight import calculate_insight
from one_choice.core.run_director import default_tier, estimated_total_choices, forced_tier, initial_tier


def test_default_curve_boundaries() -> None:
    assert [default_tier(n) for n in (0, 9, 10, 29, 30, 500)] == ["easy", "easy", "mid", "mid", "hard", "hard"]


def test_easy_difficulty_lingers_in_gentle_pool() -> None:
    assert forced_tier("easy", 14) == "easy"
    assert forced_tier("easy", 15) == "mid"
    assert forced_tier("easy", 24) == "mid"
    assert forced_tier("easy", 25) == "hard"


def test_hard_difficulty_skips_easy_pool() -> None:
    assert forced_tier("hard", 0) == "mid"
    assert forced_tier("hard", 4) == "mid"
    assert forced_tier("hard", 5) == "hard"


def test_normal_and_unknown_follow_default_curve() -> None:
    for n in range(0, 45):
        assert forced_tier("normal", n) == default_tier(n)
        assert forced_tier("nightmare", n) == default_tier(n)


def test_initial_tier_per_difficulty() -> None:
    assert initial_tier("easy") == "easy"
    assert initial_tier("normal") == "mid"
    assert initial_tier("hard") == "hard"


def test_total_estimate_tracks_progress() -> None:
    assert estimated_total_choices(0) == 10
    assert estimated_total_choices(17) == 27


def test_insight_scales_with_difficulty() -> None:
    assert calculate_insight(20, "hard") == 30
    assert calculate_insight(20, "normal") == 20
    assert calculate_insight(5, "easy") == 2
    assert calculate_insight(0, "hard") == 0
