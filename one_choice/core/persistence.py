from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

KEY_PREFIX = "onechoice_"
LANGUAGE_KEY = f"{KEY_PREFIX}language"
SETTINGS_KEY = f"{KEY_PREFIX}settings"
DIFFICULTY_KEY = f"{KEY_PREFIX}difficulty"
PLAYER_STATS_KEY = f"{KEY_PREFIX}player_stats"
INSIGHT_KEY = f"{KEY_PREFIX}insight"
ENDINGS_KEY = f"{KEY_PREFIX}endings"
DAILY_KEY = f"{KEY_PREFIX}daily"
SNAPSHOT_KEY = f"{KEY_PREFIX}save"

ModelT = TypeVar("ModelT", bound=BaseModel)


class KeyValueStore(Protocol):
    """Durable key-value substrate. Implementations never raise to callers."""

    def put(self, key: str, value: Any) -> None: ...

    def get(self, key: str) -> Any | None: ...


class MemoryStore:
    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self.data: dict[str, Any] = {}
        for key, value in (initial or {}).items():
            self.put(key, value)

    def put(self, key: str, value: Any) -> None:
        try:
            # Round-trip through JSON so stored values behave like a real backend.
            self.data[key] = json.loads(json.dumps(value))
        except (TypeError, ValueError) as exc:
            logger.warning("Could not store '%s': %s", key, exc)

    def get(self, key: str) -> Any | None:
        value = self.data.get(key)
        return None if value is None else json.loads(json.dumps(value))


class JsonFileStore:
    """All keys in a single JSON document, rewritten on every put."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Could not read store %s: %s", self.path, exc)
            return {}
        return payload if isinstance(payload, dict) else {}

    def put(self, key: str, value: Any) -> None:
        payload = self._read()
        payload[key] = value
        try:
            encoded = json.dumps(payload, indent=2)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(encoded, encoding="utf-8")
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Could not persist '%s' to %s: %s", key, self.path, exc)

    def get(self, key: str) -> Any | None:
        return self._read().get(key)


def save_model(store: KeyValueStore, key: str, model: BaseModel) -> None:
    store.put(key, model.model_dump(mode="json", by_alias=True))


def load_model(store: KeyValueStore, key: str, model_type: type[ModelT]) -> ModelT:
    payload = store.get(key)
    if payload is None:
        return model_type()
    try:
        return model_type.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Discarding corrupt record '%s': %s", key, exc.error_count())
        return model_type()


def load_string_list(store: KeyValueStore, key: str) -> list[str]:
    payload = store.get(key)
    if not isinstance(payload, list):
        return []
    return [str(entry) for entry in payload if isinstance(entry, str)]
