from __future__ import annotations


class NowPlayingError(Exception):
    """Base class for errors raised inside the now-playing front end."""


class LibraryError(NowPlayingError):
    """A library scan or queue snapshot fetch failed."""


class QueueLockedError(NowPlayingError):
    """The play queue cannot be edited while shuffle is on."""


def classify_exception(exc: Exception) -> str:
    if isinstance(exc, QueueLockedError):
        return "locked"
    text = str(exc).lower()
    if isinstance(exc, PermissionError) or "permission denied" in text:
        return "permission"
    if isinstance(exc, FileNotFoundError) or any(k in text for k in ("not found", "no such")):
        return "not_found"
    if isinstance(exc, TimeoutError) or "timed out" in text:
        return "timeout"
    if any(k in text for k in ("header", "decode", "parse", "invalid")):
        return "parse"
    return "unknown"


def user_message(kind: str, context: str = "general") -> str:
    if context == "queue":
        mapping = {
            "locked": "Queue is shuffled. Turn shuffle off to edit.",
            "permission": "Queue unavailable: permission denied.",
            "timeout": "Queue refresh timed out. Keeping the current list.",
            "unknown": "Queue refresh failed. Keeping the current list.",
        }
        return mapping.get(kind, mapping["unknown"])

    if context == "library":
        mapping = {
            "permission": "Cannot read music folder: permission denied.",
            "not_found": "Music folder not found.",
            "parse": "Some files could not be read.",
            "unknown": "Library scan failed.",
        }
        return mapping.get(kind, mapping["unknown"])

    return "Operation failed. Please retry."
