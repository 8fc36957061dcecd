"""Logging setup for the TUI.

Console records go to the Textual devtools console (``textual console``)
because the terminal belongs to the app. Set ``NOWPLAYING_LOG_FILE`` to
also keep a rotating log on disk.

Environment:
    NOWPLAYING_LOG_LEVEL          root level name (default INFO)
    NOWPLAYING_LOG_FILE           optional log file path
    NOWPLAYING_LOG_ROTATE_BYTES   rotate after this many bytes (default 5 MiB)
    NOWPLAYING_LOG_BACKUP_COUNT   rotated files kept (default 3)
    NOWPLAYING_LOG_MODULE_LEVELS  e.g. "nowplaying.refresh=DEBUG,nowplaying.library=INFO"
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from textual.logging import TextualHandler

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
ROTATE_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 3


def level_from_name(name: str, default: int = logging.INFO) -> int:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else default


def parse_module_levels(raw: str, default: int = logging.INFO) -> dict[str, int]:
    """Parse ``module=LEVEL`` pairs; malformed entries are skipped."""
    levels = {}
    for entry in raw.split(","):
        module, sep, name = entry.partition("=")
        module, name = module.strip(), name.strip()
        if sep and module and name:
            levels[module] = level_from_name(name, default)
    return levels


def _positive_env(name: str, default: int) -> int:
    try:
        value = int(os.environ.get(name, ""))
    except ValueError:
        return default
    return value if value > 0 else default


def _file_handler(path: str) -> RotatingFileHandler:
    log_path = Path(path).expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        log_path,
        maxBytes=_positive_env("NOWPLAYING_LOG_ROTATE_BYTES", ROTATE_BYTES),
        backupCount=_positive_env("NOWPLAYING_LOG_BACKUP_COUNT", BACKUP_COUNT),
        encoding="utf-8",
    )


def setup_logging(level_name: Optional[str] = None) -> None:
    level = level_from_name(level_name or os.environ.get("NOWPLAYING_LOG_LEVEL", "INFO"))
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S")

    handlers: list[logging.Handler] = [TextualHandler()]
    log_file = os.environ.get("NOWPLAYING_LOG_FILE")
    if log_file:
        handlers.append(_file_handler(log_file))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for module, module_level in parse_module_levels(
        os.environ.get("NOWPLAYING_LOG_MODULE_LEVELS", ""), level
    ).items():
        logging.getLogger(module).setLevel(module_level)
        root.debug("Log level override: %s=%s", module, logging.getLevelName(module_level))
