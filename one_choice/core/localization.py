from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "ru"


def _lookup(table: dict[str, Any], key: str) -> str | None:
    value: Any = table
    for part in key.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value if isinstance(value, str) else None


def load_locale_tables(locales_dir: Path) -> dict[str, dict[str, Any]]:
    tables: dict[str, dict[str, Any]] = {}
    for path in sorted(locales_dir.glob("*.json")):
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Skipping locale %s: %s", path.name, exc)
            continue
        if isinstance(payload, dict):
            tables[path.stem] = payload
    return tables


class Localizer:
    """Dotted-key lookup: current language, then the default language, then the key itself."""

    def __init__(
        self,
        tables: dict[str, dict[str, Any]],
        language: str = "en",
        default_language: str = DEFAULT_LANGUAGE,
    ) -> None:
        self.tables = tables
        self.default_language = default_language
        self.language = language if language in tables else default_language

    @classmethod
    def from_dir(cls, locales_dir: Path, language: str = "en") -> "Localizer":
        return cls(load_locale_tables(locales_dir), language=language)

    def languages(self) -> list[str]:
        return sorted(self.tables)

    def set_language(self, language: str) -> bool:
        if language not in self.tables:
            return False
        self.language = language
        return True

    def resolve(self, key: str) -> str:
        text = _lookup(self.tables.get(self.language, {}), key)
        if text is None:
            text = _lookup(self.tables.get(self.default_language, {}), key)
        return key if text is None else text
