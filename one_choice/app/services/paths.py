from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


APP_DIR_NAME = "OneChoice"
HOME_ENV_VAR = "ONE_CHOICE_HOME"


@dataclass(slots=True)
class UserPaths:
    root: Path
    logs: Path
    store: Path


def _candidate_roots(app_name: str) -> list[Path]:
    candidates: list[Path] = []
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        candidates.append(Path(override))

    local_app_data = os.environ.get("LOCALAPPDATA")
    if local_app_data:
        candidates.append(Path(local_app_data) / app_name)

    candidates.append(Path.home() / f".{app_name.lower()}")
    return candidates


def resolve_user_paths(app_name: str = APP_DIR_NAME) -> UserPaths:
    last_error: Exception | None = None
    for root in _candidate_roots(app_name):
        logs = root / "logs"
        try:
            logs.mkdir(parents=True, exist_ok=True)
            return UserPaths(root=root, logs=logs, store=root / "storage.json")
        except OSError as exc:
            last_error = exc
            continue
    raise RuntimeError("Unable to initialize user data directories.") from last_error
