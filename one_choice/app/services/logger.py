from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

APP_LOGGER = "one_choice"
GAMEPLAY_LOGGER = "one_choice.gameplay"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
GAMEPLAY_FORMAT = "%(asctime)s %(message)s"

GAMEPLAY_MAX_BYTES = 512 * 1024
GAMEPLAY_BACKUPS = 3


@dataclass(slots=True)
class AppLoggerBundle:
    app: logging.Logger
    gameplay: logging.Logger
    latest_log_path: Path
    gameplay_log_path: Path


def _archive_name(logs_dir: Path, session_log: Path) -> Path:
    # Stamp with the session's own last write so archives sort by name.
    stamp = datetime.fromtimestamp(session_log.stat().st_mtime).strftime("%Y%m%d_%H%M%S")
    target = logs_dir / f"latest_{stamp}.log"
    suffix = 1
    while target.exists():
        target = logs_dir / f"latest_{stamp}_{suffix}.log"
        suffix += 1
    return target


def archive_previous_session(logs_dir: Path, keep_archives: int = 5) -> Path:
    """Move the last ``latest.log`` aside and prune all but ``keep_archives`` archives."""
    logs_dir.mkdir(parents=True, exist_ok=True)
    latest = logs_dir / "latest.log"
    if latest.is_file():
        latest.replace(_archive_name(logs_dir, latest))

    archives = sorted(logs_dir.glob("latest_*.log"), key=lambda path: path.name)
    surplus = len(archives) - keep_archives
    for stale in archives[: max(surplus, 0)]:
        stale.unlink(missing_ok=True)
    return latest


def _reset_logger(name: str, level: int, handlers: list[logging.Handler]) -> logging.Logger:
    target = logging.getLogger(name)
    for old in list(target.handlers):
        target.removeHandler(old)
        old.close()
    target.setLevel(level)
    target.propagate = False
    for handler in handlers:
        target.addHandler(handler)
    return target


def configure_logging(
    logs_dir: Path,
    verbose: bool = False,
    console: bool = False,
    keep_archives: int = 5,
) -> AppLoggerBundle:
    """Send ``one_choice.*`` records to ``latest.log`` and run events to ``gameplay.log``.

    Calling it again replaces the handlers instead of stacking them. The
    gameplay log survives across sessions and rolls over by size.
    """
    latest = archive_previous_session(logs_dir, keep_archives)
    formatter = logging.Formatter(LOG_FORMAT)

    app_handlers: list[logging.Handler] = [logging.FileHandler(latest, mode="w", encoding="utf-8")]
    if console:
        app_handlers.append(logging.StreamHandler())
    for handler in app_handlers:
        handler.setFormatter(formatter)
    app_logger = _reset_logger(APP_LOGGER, logging.DEBUG if verbose else logging.INFO, app_handlers)

    gameplay_path = logs_dir / "gameplay.log"
    gameplay_handler = RotatingFileHandler(
        gameplay_path,
        maxBytes=GAMEPLAY_MAX_BYTES,
        backupCount=GAMEPLAY_BACKUPS,
        encoding="utf-8",
    )
    gameplay_handler.setFormatter(logging.Formatter(GAMEPLAY_FORMAT))
    gameplay_logger = _reset_logger(GAMEPLAY_LOGGER, logging.INFO, [gameplay_handler])

    return AppLoggerBundle(
        app=app_logger,
        gameplay=gameplay_logger,
        latest_log_path=latest,
        gameplay_log_path=gameplay_path,
    )
