"""Local music library: tag reading and queue snapshots."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from mutagen import File as MutagenFile
from mutagen import MutagenError

from .errors import LibraryError

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = {".mp3", ".flac", ".m4a", ".mp4", ".ogg", ".opus", ".wav", ".aiff", ".wma"}


@dataclass(frozen=True)
class Track:
    title: str = ""
    album: str = ""
    artist: str = ""
    track_number: Optional[int] = None
    duration: float = 0.0
    path: str = ""


def _first_tag(audio, key: str) -> str:
    values = audio.get(key) if audio is not None else None
    if not values:
        return ""
    return str(values[0]).strip()


def _parse_track_number(raw: str) -> Optional[int]:
    if not raw:
        return None
    try:
        return int(raw.split("/")[0])
    except ValueError:
        return None


def read_track(path: str) -> Track:
    """Read tags for ``path``; a file without a title falls back to its stem."""
    try:
        audio = MutagenFile(path, easy=True)
    except (MutagenError, OSError) as exc:
        raise LibraryError(f"Cannot read {path}: {exc}") from exc
    if audio is None:
        raise LibraryError(f"Cannot parse file: {path}")

    duration = float(audio.info.length) if getattr(audio, "info", None) else 0.0
    return Track(
        title=_first_tag(audio, "title") or Path(path).stem,
        album=_first_tag(audio, "album"),
        artist=_first_tag(audio, "artist"),
        track_number=_parse_track_number(_first_tag(audio, "tracknumber")),
        duration=duration,
        path=path,
    )


def iter_audio_files(paths: Iterable[str]) -> Iterable[str]:
    for raw in paths:
        path = os.path.expanduser(raw)
        if os.path.isfile(path):
            yield path
            continue
        if not os.path.isdir(path):
            raise LibraryError(f"No such file or directory: {raw}")
        for root, dirs, files in os.walk(path):
            dirs.sort()
            for name in sorted(files):
                if Path(name).suffix.lower() in AUDIO_EXTENSIONS:
                    yield os.path.join(root, name)


class LocalLibrary:
    """Scans folders for audio files and answers queue snapshot queries."""

    def __init__(self, paths: Iterable[str] = ()) -> None:
        self.paths = list(paths)
        self.tracks: list[Track] = []
        self.skipped = 0

    def scan(self) -> list[Track]:
        """Blocking scan; run it from a worker thread."""
        tracks = []
        skipped = 0
        for path in iter_audio_files(self.paths):
            try:
                tracks.append(read_track(path))
            except LibraryError as exc:
                skipped += 1
                logger.debug("Skipping %s", exc)
        self.tracks = tracks
        self.skipped = skipped
        logger.info("Library scan found %d tracks (%d skipped)", len(tracks), skipped)
        return tracks

    async def fetch_queue_snapshot(self, playback) -> tuple:
        """Return the engine's queue as an ordered tuple of tracks.

        The engine is only touched from the event loop, so the snapshot is
        taken here rather than on a worker thread.
        """
        try:
            return playback.queue_snapshot()
        except LibraryError:
            raise
        except Exception as exc:
            raise LibraryError(f"Queue snapshot failed: {exc}") from exc
