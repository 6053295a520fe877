from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .models import SCENE_TIERS, Choice, Scene, ScenePoolFile

POOL_FILES: dict[str, str] = {tier: f"scenes_{tier}.json" for tier in SCENE_TIERS}


class ContentValidationError(ValueError):
    def __init__(self, message: str, details: list[str] | None = None) -> None:
        self.details = details or []
        suffix = "\n".join(self.details)
        super().__init__(f"{message}\n{suffix}" if suffix else message)


def default_content_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "content"


def _load_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ContentValidationError(f"Missing content file: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ContentValidationError(f"Invalid JSON in {path.name}: {exc.msg} at line {exc.lineno}") from exc
    except UnicodeDecodeError as exc:
        raise ContentValidationError(f"{path.name} is not valid UTF-8: {exc.reason} at byte {exc.start}") from exc


def _load_pool(path: Path) -> list[Scene]:
    data = _load_json(path)
    try:
        return ScenePoolFile.model_validate(data).scenes
    except ValidationError as exc:
        errors = []
        for issue in exc.errors():
            issue_path = ".".join(str(part) for part in issue.get("loc", [])) or "(root)"
            errors.append(f"{path.name}:{issue_path}: {issue.get('msg', 'validation error')}")
        raise ContentValidationError(f"Schema validation failed for {path.name}.", errors) from exc


def _assert_unique_ids(tier: str, scenes: list[Scene]) -> None:
    seen: set[int] = set()
    for scene in scenes:
        if scene.id in seen:
            raise ContentValidationError(f"Duplicate scene id {scene.id} in '{tier}' pool.")
        seen.add(scene.id)


def load_scene_pools(content_dir: Path | str) -> dict[str, list[Scene]]:
    base_path = Path(content_dir)
    pools: dict[str, list[Scene]] = {}
    for tier, filename in POOL_FILES.items():
        scenes = _load_pool(base_path / filename)
        _assert_unique_ids(tier, scenes)
        pools[tier] = scenes
    return pools


def fallback_scenes() -> list[Scene]:
    return [
        Scene(
            id=1,
            text="You face a choice: help a colleague or focus on your own work.",
            choices=[
                Choice(label="Help the colleague", effects={"heart": -3, "time": -5}, score=5),
                Choice(label="Focus on your work", effects={"drive": -4, "heart": -2}, score=8),
            ],
        )
    ]


def fallback_pools() -> dict[str, list[Scene]]:
    return {tier: fallback_scenes() for tier in SCENE_TIERS}
