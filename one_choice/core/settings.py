from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .models import Difficulty
from .persistence import DIFFICULTY_KEY, LANGUAGE_KEY, SETTINGS_KEY, KeyValueStore


class AppSettings(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    language: str = "en"
    sound_enabled: bool = Field(default=True, alias="soundEnabled")
    difficulty: Difficulty = "normal"

    def as_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def merge_settings(payload: dict[str, Any] | None) -> AppSettings:
    if not isinstance(payload, dict):
        payload = {}
    clean = {key: value for key, value in payload.items() if value is not None}
    try:
        return AppSettings.model_validate(clean)
    except ValueError:
        # Drop the offending fields one at a time rather than losing everything.
        settings = AppSettings()
        for key, value in clean.items():
            try:
                settings = AppSettings.model_validate({**settings.as_dict(), key: value})
            except ValueError:
                continue
        return settings


def load_settings(store: KeyValueStore) -> AppSettings:
    stored = store.get(SETTINGS_KEY)
    payload: dict[str, Any] = dict(stored) if isinstance(stored, dict) else {}
    payload["language"] = store.get(LANGUAGE_KEY)
    payload["difficulty"] = store.get(DIFFICULTY_KEY)
    return merge_settings(payload)


def save_settings(store: KeyValueStore, settings: AppSettings) -> None:
    store.put(LANGUAGE_KEY, settings.language)
    store.put(DIFFICULTY_KEY, settings.difficulty)
    store.put(SETTINGS_KEY, {"soundEnabled": settings.sound_enabled})
