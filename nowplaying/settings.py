import json
import logging
import os
from typing import Any

logger = logging.getLogger(__name__)

CURRENT_SETTINGS_VERSION = 1

DEFAULT_PLAYING_FORMAT = "playing $title from $album"

DEFAULT_SETTINGS = {
    "settings_version": CURRENT_SETTINGS_VERSION,
    "playing_format": DEFAULT_PLAYING_FORMAT,
    "refresh_interval_ms": 500,
    "volume_slider_width": 10,
    "volume": 80,
    "music_folders": [],
    "ascii": False,
}


def default_settings_path() -> str:
    override = os.getenv("NOWPLAYING_SETTINGS", "").strip()
    if override:
        return os.path.expanduser(override)
    base = os.getenv("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    return os.path.join(base, "nowplaying", "settings.json")


def ascii_forced() -> bool:
    term = os.environ.get("TERM", "").lower()
    return os.environ.get("NOWPLAYING_ASCII", "") == "1" or "ghostty" in term


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    return default


def _as_str(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return default


def _as_int(value: Any, default: int, minimum: int | None = None, maximum: int | None = None) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        return default
    if minimum is not None and value < minimum:
        return default
    if maximum is not None and value > maximum:
        return default
    return value


def _as_str_list(value: Any, default: list[str], max_items: int = 32) -> list[str]:
    if not isinstance(value, list):
        return list(default)
    out: list[str] = []
    for item in value:
        if isinstance(item, str) and item.strip():
            out.append(item.strip())
        if len(out) >= max_items:
            break
    return out


def normalize_settings(raw: dict[str, Any] | None) -> dict[str, Any]:
    raw = raw or {}
    normalized = dict(DEFAULT_SETTINGS)
    normalized["playing_format"] = _as_str(raw.get("playing_format"), DEFAULT_SETTINGS["playing_format"])
    normalized["refresh_interval_ms"] = _as_int(
        raw.get("refresh_interval_ms"), DEFAULT_SETTINGS["refresh_interval_ms"], minimum=100, maximum=5000
    )
    normalized["volume_slider_width"] = _as_int(
        raw.get("volume_slider_width"), DEFAULT_SETTINGS["volume_slider_width"], minimum=3, maximum=40
    )
    normalized["volume"] = _as_int(raw.get("volume"), DEFAULT_SETTINGS["volume"], minimum=0, maximum=100)
    normalized["music_folders"] = _as_str_list(raw.get("music_folders"), DEFAULT_SETTINGS["music_folders"])
    normalized["ascii"] = _as_bool(raw.get("ascii"), DEFAULT_SETTINGS["ascii"])
    normalized["settings_version"] = CURRENT_SETTINGS_VERSION
    return normalized


def load_settings(path: str) -> dict[str, Any]:
    if not os.path.exists(path):
        return normalize_settings(None)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return normalize_settings(None)

    if not isinstance(data, dict):
        return normalize_settings(None)
    return normalize_settings(data)


def save_settings(path: str, settings: dict[str, Any]) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    data = normalize_settings(settings)
    temp_file = f"{path}.tmp"
    with open(temp_file, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    os.replace(temp_file, path)
