"""In-process playback engine: queue, transport clock and change signals."""

import logging
import random
import time
from enum import Enum
from typing import Callable, Optional, Sequence

from .errors import QueueLockedError
from .library import Track

logger = logging.getLogger(__name__)

VOLUME_STEP = 0.05
SEEK_STEP = 10.0

# ── Signals ──────────────────────────────────────────────────────────


class Subscription:
    """Handle returned by :meth:`Signal.connect`; disconnecting twice is a no-op."""

    def __init__(self, signal: "Signal", handler: Callable) -> None:
        self._signal = signal
        self._handler = handler

    @property
    def connected(self) -> bool:
        return self._signal is not None

    def disconnect(self) -> None:
        if self._signal is None:
            return
        self._signal._remove(self._handler)
        self._signal = None


class Signal:
    def __init__(self, name: str = "") -> None:
        self.name = name
        self._handlers: list[Callable] = []

    def __len__(self) -> int:
        return len(self._handlers)

    def connect(self, handler: Callable) -> Subscription:
        self._handlers.append(handler)
        return Subscription(self, handler)

    def _remove(self, handler: Callable) -> None:
        try:
            self._handlers.remove(handler)
        except ValueError:
            pass

    def emit(self, *args) -> None:
        for handler in list(self._handlers):
            handler(*args)


# ── Engine ───────────────────────────────────────────────────────────


class PlaybackState(str, Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


class QueueEditor:
    """Mutates the play queue; obtained from :meth:`PlaybackService.edit`."""

    def __init__(self, service: "PlaybackService") -> None:
        self._service = service

    def move_entry(self, from_index: int, to_index: int) -> bool:
        return self._service._move_entry(from_index, to_index)

    def delete_entry(self, index: int) -> bool:
        return self._service._delete_entry(index)


class PlaybackService:
    """Authoritative queue and transport state.

    Decoding and audio output are not part of this front end; the service
    keeps a wall clock for the position of the current track.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._queue: list[Track] = []
        self._unshuffled: Optional[list[Track]] = None
        self._shuffle_order: list[int] = []
        self._index: Optional[int] = None
        self._state = PlaybackState.STOPPED
        self._volume = 1.0
        self._position = 0.0
        self._position_mark = 0.0

        self.track_changed = Signal("track_changed")
        self.volume_changed = Signal("volume_changed")
        self.position_changed = Signal("position_changed")
        self.shuffle_changed = Signal("shuffle_changed")
        self.state_changed = Signal("state_changed")

    # queries

    def get_current_index(self) -> Optional[int]:
        return self._index

    def get_queue_count(self) -> int:
        return len(self._queue)

    def get_current_track(self) -> Optional[Track]:
        if self._index is None:
            return None
        return self._queue[self._index]

    def get_volume(self) -> float:
        return self._volume

    def get_position(self) -> float:
        position = self._position
        if self._state == PlaybackState.PLAYING:
            position += self._clock() - self._position_mark
        track = self.get_current_track()
        if track is not None and track.duration > 0:
            position = min(position, track.duration)
        return max(0.0, position)

    def get_playback_state(self) -> PlaybackState:
        return self._state

    def is_shuffled(self) -> bool:
        return self._unshuffled is not None

    def queue_snapshot(self) -> tuple:
        return tuple(self._queue)

    # queue

    def set_queue(self, tracks: Sequence[Track]) -> None:
        self.stop()
        was_shuffled = self.is_shuffled()
        self._queue = list(tracks)
        self._unshuffled = None
        self._shuffle_order = []
        logger.info("Queue loaded with %d tracks", len(self._queue))
        if was_shuffled:
            self.shuffle_changed.emit(False)

    def edit(self) -> QueueEditor:
        return QueueEditor(self)

    def _check_editable(self) -> None:
        if self.is_shuffled():
            raise QueueLockedError("queue is shuffled")

    def _move_entry(self, from_index: int, to_index: int) -> bool:
        self._check_editable()
        count = len(self._queue)
        if not (0 <= from_index < count and 0 <= to_index < count) or from_index == to_index:
            return False
        track = self._queue.pop(from_index)
        self._queue.insert(to_index, track)
        if self._index is not None:
            if self._index == from_index:
                self._index = to_index
            elif from_index < self._index <= to_index:
                self._index -= 1
            elif to_index <= self._index < from_index:
                self._index += 1
        return True

    def _delete_entry(self, index: int) -> bool:
        self._check_editable()
        if not 0 <= index < len(self._queue):
            return False
        del self._queue[index]
        if self._index is not None:
            if index == self._index:
                self.stop()
            elif index < self._index:
                self._index -= 1
        return True

    # transport

    def _mark(self, position: float = 0.0) -> None:
        self._position = position
        self._position_mark = self._clock()

    def _set_state(self, state: PlaybackState) -> None:
        if state != self._state:
            self._state = state
            self.state_changed.emit(state)

    def play_at(self, index: int) -> bool:
        if not 0 <= index < len(self._queue):
            return False
        self._index = index
        self._mark(0.0)
        self._set_state(PlaybackState.PLAYING)
        self.track_changed.emit(index, self._queue[index])
        return True

    def play_pause(self) -> None:
        if self._state == PlaybackState.PLAYING:
            self._mark(self.get_position())
            self._set_state(PlaybackState.PAUSED)
        elif self._state == PlaybackState.PAUSED:
            self._position_mark = self._clock()
            self._set_state(PlaybackState.PLAYING)
        elif self._queue:
            self.play_at(self._index or 0)

    def next(self) -> bool:
        if self._index is None:
            return self.play_at(0)
        return self.play_at(self._index + 1)

    def previous(self) -> bool:
        if self._index is None:
            return False
        if self.get_position() > 3.0 or self._index == 0:
            self.seek(0.0)
            return True
        return self.play_at(self._index - 1)

    def stop(self) -> None:
        was_playing = self._index is not None
        self._index = None
        self._mark(0.0)
        self._set_state(PlaybackState.STOPPED)
        if was_playing:
            self.track_changed.emit(None, None)

    def seek(self, seconds: float) -> None:
        if self._state == PlaybackState.STOPPED:
            return
        track = self.get_current_track()
        upper = track.duration if track is not None and track.duration > 0 else seconds
        self._mark(max(0.0, min(upper, seconds)))
        self.position_changed.emit(self._position)

    def seek_by(self, delta: float) -> None:
        self.seek(self.get_position() + delta)

    def set_volume(self, volume: float) -> None:
        volume = max(0.0, min(1.0, volume))
        if volume != self._volume:
            self._volume = volume
            self.volume_changed.emit(volume)

    def toggle_shuffle(self) -> bool:
        if self._unshuffled is None:
            order = list(range(len(self._queue)))
            random.shuffle(order)
            self._unshuffled = list(self._queue)
            self._shuffle_order = order
            self._queue = [self._unshuffled[i] for i in order]
            if self._index is not None:
                self._index = order.index(self._index)
        else:
            if self._index is not None:
                self._index = self._shuffle_order[self._index]
            self._queue = self._unshuffled
            self._unshuffled = None
            self._shuffle_order = []
        shuffled = self.is_shuffled()
        logger.info("Shuffle %s", "on" if shuffled else "off")
        self.shuffle_changed.emit(shuffled)
        return shuffled
