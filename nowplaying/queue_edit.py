import logging
from typing import Callable

from .playback import PlaybackService

logger = logging.getLogger(__name__)

UNSET = -1

MOVE_UP_KEYS = ("alt+up", "ctrl+up")
MOVE_DOWN_KEYS = ("alt+down", "ctrl+down")
DELETE_KEYS = ("backspace", "delete")
EDIT_KEYS = frozenset(MOVE_UP_KEYS + MOVE_DOWN_KEYS + DELETE_KEYS)


class QueueEditCoordinator:
    """Moves and deletes queue entries and remembers which row to reselect.

    After every edit ``pending_reselect`` holds the index that should be
    selected once the list has been re-queried, and ``requery`` is called.
    The queue list consumes the index with :meth:`take_pending_reselect`.
    """

    def __init__(self, playback: PlaybackService, requery: Callable[[], None]) -> None:
        self.playback = playback
        self.requery = requery
        self.pending_reselect = UNSET

    def can_edit(self) -> bool:
        return not self.playback.is_shuffled()

    def move(self, from_index: int, to_index: int) -> bool:
        count = self.playback.get_queue_count()
        if not (0 <= from_index < count and 0 <= to_index < count) or from_index == to_index:
            return False
        if not self.playback.edit().move_entry(from_index, to_index):
            return False
        logger.info("Moved queue entry %d -> %d", from_index, to_index)
        self.pending_reselect = to_index
        self.requery()
        return True

    def delete(self, index: int) -> bool:
        if not 0 <= index < self.playback.get_queue_count():
            return False
        if not self.playback.edit().delete_entry(index):
            return False
        logger.info("Deleted queue entry %d", index)
        # stay on the same row, or the new last row when the tail was deleted
        self.pending_reselect = max(0, min(index, self.playback.get_queue_count() - 1))
        self.requery()
        return True

    def move_up(self, selected: int) -> bool:
        return self.move(selected, selected - 1)

    def move_down(self, selected: int) -> bool:
        return self.move(selected, selected + 1)

    def handle_key(self, key: str, selected: int) -> bool:
        """Apply the edit bound to ``key``; returns False if the key was not consumed."""
        if key not in EDIT_KEYS:
            return False
        if not self.can_edit():
            logger.debug("Ignoring %s: queue is shuffled", key)
            return False
        if key in MOVE_UP_KEYS:
            self.move_up(selected)
        elif key in MOVE_DOWN_KEYS:
            self.move_down(selected)
        else:
            self.delete(selected)
        return True

    def take_pending_reselect(self) -> int:
        index, self.pending_reselect = self.pending_reselect, UNSET
        return index
