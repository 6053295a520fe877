from __future__ import annotations

import hashlib
import json
from datetime import date
from pathlib import Path
from typing import Literal

import typer
from rich.console import Console
from rich.table import Table

from one_choice.core.ads import DenyingAdService
from one_choice.core.engine import RunController
from one_choice.core.models import DIFFICULTIES, Choice, Scene
from one_choice.core.modifiers import MODIFIER_BY_ID
from one_choice.core.persistence import MemoryStore
from one_choice.core.rng import DeterministicRNG

app = typer.Typer(add_completion=False, help="Run deterministic headless runs for balancing and testing.")
console = Console()

AutopickPolicy = Literal["safe", "random", "greedy"]
SIM_DAY = date(2024, 1, 1)


def _normalize_seed(raw_seed: str) -> int | str:
    try:
        return int(raw_seed)
    except ValueError:
        return raw_seed


def _choice_cost(choice: Choice, meters: dict[str, int]) -> tuple[int, int]:
    # Lowest resulting meter first, then total loss.
    worst = min(meters[meter] + choice.effects.get(meter, 0) for meter in meters)
    return (-worst, -sum(choice.effects.values()))


def pick_choice(scene: Scene, meters: dict[str, int], policy: AutopickPolicy, rng: DeterministicRNG) -> int:
    if policy == "random":
        return rng.next_int(0, len(scene.choices))
    if policy == "greedy":
        return max(range(len(scene.choices)), key=lambda idx: scene.choices[idx].score)
    return min(range(len(scene.choices)), key=lambda idx: _choice_cost(scene.choices[idx], meters))


def simulate_run(
    controller: RunController,
    seed: int | str,
    max_choices: int,
    policy: AutopickPolicy,
    modifier: str | None = None,
) -> dict:
    start = controller.start_new_game(seed=seed)
    active = controller.modifiers.select(modifier) if modifier else start.modifier
    policy_rng = DeterministicRNG.from_seed(f"{seed}:policy")
    scene_ids: list[int] = []

    while controller.game_state == "playing" and controller.run.choices_made < max_choices:
        scene = controller.run.current_scene
        if scene is None:
            break
        scene_ids.append(scene.id)
        controller.make_choice(pick_choice(scene, controller.meters.get_all(), policy, policy_rng))

    summary = controller.last_summary
    return {
        "seed": seed,
        "modifier": active.id if active else None,
        "choices": controller.run.choices_made,
        "score": controller.run.score,
        "meters": controller.meters.get_all(),
        "zero_meter": summary.zero_meter if summary else None,
        "insight": summary.insight_earned if summary else 0,
        "new_endings": summary.new_endings if summary else [],
        "scenes": scene_ids,
        "rng_calls": controller.rng.calls,
    }


@app.command()
def main(
    seed: str = typer.Option("123", "--seed", help="Seed value (int or string)."),
    runs: int = typer.Option(1, "--runs", min=1, help="Number of consecutive runs."),
    max_choices: int = typer.Option(200, "--max-choices", min=1, help="Stop a run after this many choices."),
    difficulty: str = typer.Option("normal", "--difficulty", help="Difficulty: easy|normal|hard."),
    autopick: AutopickPolicy = typer.Option("safe", "--autopick", help="Choice policy: safe|random|greedy."),
    modifier: str | None = typer.Option(None, "--modifier", help="Force a modifier id for every run."),
) -> None:
    if difficulty not in DIFFICULTIES:
        console.print(f"[bold red]Unknown difficulty '{difficulty}'.[/bold red]")
        raise typer.Exit(1)
    if modifier is not None and modifier not in MODIFIER_BY_ID:
        console.print(f"[bold red]Unknown modifier '{modifier}'.[/bold red]")
        raise typer.Exit(1)

    base_seed = _normalize_seed(seed)
    controller = RunController(
        MemoryStore(),
        content_dir=Path(__file__).resolve().parents[1] / "content",
        ads=DenyingAdService(),
        clock=lambda: SIM_DAY,
        now_ms=lambda: 0,
        ui_seed=base_seed,
    )
    controller.boot()
    if controller.catalog.used_fallback:
        console.print("[bold red]Content load failed; refusing to simulate on fallback scenes.[/bold red]")
        raise typer.Exit(1)
    controller.select_difficulty(difficulty)

    results = []
    for index in range(runs):
        run_seed = base_seed if index == 0 else f"{base_seed}:{index}"
        results.append(simulate_run(controller, run_seed, max_choices, autopick, modifier))
        controller.return_to_menu()

    summary = Table(title="Simulation Summary")
    summary.add_column("Seed", style="cyan", no_wrap=True)
    summary.add_column("Modifier")
    summary.add_column("Choices", justify="right")
    summary.add_column("Score", justify="right")
    summary.add_column("Collapse")
    summary.add_column("Meters")
    summary.add_column("Endings")
    for result in results:
        summary.add_row(
            str(result["seed"]),
            result["modifier"] or "-",
            str(result["choices"]),
            str(result["score"]),
            result["zero_meter"] or "-",
            ", ".join(f"{meter}={value}" for meter, value in result["meters"].items()),
            ", ".join(result["new_endings"]) or "-",
        )
    console.print(summary)

    history = controller.history.history
    console.print(
        f"Runs recorded: {history.total_runs} | Best: {history.best_choices} | "
        f"Insight: {controller.insight.balance} | Endings: {controller.endings.unlocked_count()}/8"
    )

    signature = hashlib.sha256(json.dumps(results, sort_keys=True).encode("utf-8")).hexdigest()[:16]
    console.print(f"\n[bold green]Deterministic signature:[/bold green] {signature}")


if __name__ == "__main__":
    app()
