"""Now-playing queue list: re-query, selection and scroll reconciliation."""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence

from rich.text import Text
from textual import events
from textual.app import ComposeResult
from textual.widget import Widget
from textual.widgets import ListItem, ListView

from .errors import LibraryError, classify_exception, user_message
from .formatting import format_track_row
from .library import LocalLibrary, Track
from .playback import PlaybackService
from .queue_edit import EDIT_KEYS, UNSET, QueueEditCoordinator

logger = logging.getLogger(__name__)

ACTIVATE_KEY = "enter"


@dataclass
class SelectionState:
    selected_index: int = 0
    first_visible_index: int = 0
    visible_count: int = 0

    def is_visible(self, index: int) -> bool:
        first = self.first_visible_index
        return first <= index < first + self.visible_count


class QueueListController:
    """Keeps the displayed queue in step with the playback engine.

    ``view`` is the list widget (or any object with ``show_tracks``,
    ``clear_tracks``, ``visible_window``, ``apply_selection`` and
    ``mark_playing``). ``run_query`` schedules the fetch coroutine on the
    event loop. Only the most recently issued requery may update the list.
    """

    def __init__(
        self,
        playback: PlaybackService,
        library: LocalLibrary,
        view,
        run_query: Callable[[Awaitable], object],
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.playback = playback
        self.library = library
        self.view = view
        self.on_error = on_error
        self.selection = SelectionState()
        self.tracks: tuple = ()
        self.visible = False
        self.editor = QueueEditCoordinator(playback, self.requery)
        self._run_query = run_query
        self._generation = 0
        self._subscriptions = [
            playback.shuffle_changed.connect(self._on_shuffle_changed),
            playback.track_changed.connect(self._on_track_changed),
        ]

    # ── Re-query ──────────────────────────────────────────────────────

    def requery(self, source: str = "edit") -> int:
        self._generation += 1
        generation = self._generation
        logger.debug("Requery #%d issued (%s)", generation, source)
        self._run_query(self._fetch(generation))
        return generation

    async def _fetch(self, generation: int) -> None:
        try:
            tracks = await self.library.fetch_queue_snapshot(self.playback)
        except LibraryError as exc:
            if generation != self._generation:
                return
            # keep whatever is on screen
            logger.warning("Queue requery #%d failed: %s", generation, exc)
            if self.on_error is not None:
                self.on_error(user_message(classify_exception(exc), "queue"))
            return
        self.complete(generation, tracks)

    def complete(self, generation: int, tracks: Sequence[Track]) -> bool:
        if generation != self._generation:
            logger.debug("Discarding stale requery #%d", generation)
            return False
        self.tracks = tuple(tracks)
        self.view.show_tracks(self.tracks, self.playback.get_current_index())
        self.reconcile()
        return True

    def reconcile(self) -> None:
        reselect = self.editor.pending_reselect
        count = len(self.tracks)
        if count:
            selection = self.selection
            selection.first_visible_index, selection.visible_count = self.view.visible_window()
            if reselect != UNSET:
                target = reselect if 0 <= reselect < count else 0
                selection.selected_index = target
                if not selection.is_visible(target):
                    selection.first_visible_index = self._scroll_into_view(target)
            else:
                playing = self.playback.get_current_index()
                target = playing if playing is not None and 0 <= playing < count else 0
                selection.selected_index = target
                if target != 0:
                    selection.first_visible_index = target
                else:
                    # top row: no scroll offset
                    selection.first_visible_index = 0
            self.view.apply_selection(selection)
        self.editor.take_pending_reselect()

    def _scroll_into_view(self, index: int) -> int:
        first = self.selection.first_visible_index
        visible = self.selection.visible_count
        if visible <= 0 or index < first:
            return index
        return index - visible + 1

    # ── Input ─────────────────────────────────────────────────────────

    @property
    def selected_index(self) -> int:
        return self.selection.selected_index

    def select(self, index: Optional[int]) -> None:
        if index is None or not 0 <= index < len(self.tracks):
            index = 0
        self.selection.selected_index = index

    def activate(self) -> bool:
        if not self.tracks:
            return False
        return self.playback.play_at(self.selection.selected_index)

    def handle_key(self, key: str) -> bool:
        if key == ACTIVATE_KEY:
            return self.activate()
        return self.editor.handle_key(key, self.selection.selected_index)

    # ── Visibility and engine events ──────────────────────────────────

    def on_shown(self) -> None:
        self.visible = True
        self.requery("shown")

    def on_hidden(self) -> None:
        self.visible = False
        self._generation += 1
        self.tracks = ()
        self.view.clear_tracks()

    def _on_shuffle_changed(self, shuffled: bool) -> None:
        if self.visible:
            self.requery("shuffle")

    def _on_track_changed(self, index, track) -> None:
        if self.visible:
            self.view.mark_playing(index)

    def close(self) -> None:
        self._generation += 1
        for subscription in self._subscriptions:
            subscription.disconnect()
        self._subscriptions = []


# ── Widgets ──────────────────────────────────────────────────────────


class TrackRowLabel(Widget):
    DEFAULT_CSS = """
    TrackRowLabel {
        height: 1;
    }
    """

    def __init__(self, track: Track) -> None:
        super().__init__()
        self.track = track

    def render(self) -> Text:
        return Text(format_track_row(self.track, self.content_size.width), no_wrap=True)


class TrackRow(ListItem):
    """A single queue entry."""

    def __init__(self, track: Track, playing: bool = False) -> None:
        super().__init__(classes="-playing" if playing else None)
        self.track = track

    def compose(self) -> ComposeResult:
        yield TrackRowLabel(self.track)


class QueueListView(ListView):
    """The play queue, editable with alt/ctrl+up/down, backspace and delete."""

    DEFAULT_CSS = """
    QueueListView > TrackRow.-playing {
        color: $success;
        text-style: bold;
    }
    """

    def __init__(
        self,
        playback: PlaybackService,
        library: LocalLibrary,
        on_error: Optional[Callable[[str], None]] = None,
        *,
        id: Optional[str] = None,
    ) -> None:
        super().__init__(id=id)
        self.controller = QueueListController(
            playback, library, self, self._run_query, on_error=on_error
        )

    def _run_query(self, coro: Awaitable) -> None:
        self.run_worker(coro, name="queue-requery", group="queue-requery", exclusive=True)

    # view interface used by the controller

    def show_tracks(self, tracks: Sequence[Track], playing_index: Optional[int]) -> None:
        self.clear()
        self.extend(TrackRow(track, i == playing_index) for i, track in enumerate(tracks))

    def clear_tracks(self) -> None:
        self.clear()

    def visible_window(self) -> tuple:
        return int(self.scroll_offset.y), self.scrollable_content_region.height

    def apply_selection(self, selection: SelectionState) -> None:
        self.call_after_refresh(
            self._apply_selection, selection.selected_index, selection.first_visible_index
        )

    def _apply_selection(self, selected: int, first_visible: int) -> None:
        self.index = selected
        self.scroll_to(y=first_visible, animate=False)

    def mark_playing(self, index: Optional[int]) -> None:
        for i, row in enumerate(self.query(TrackRow)):
            row.set_class(i == index, "-playing")

    # events

    def on_show(self) -> None:
        self.controller.on_shown()

    def on_hide(self) -> None:
        self.controller.on_hidden()

    def on_unmount(self) -> None:
        self.controller.close()

    def on_key(self, event: events.Key) -> None:
        if event.key in EDIT_KEYS and self.controller.handle_key(event.key):
            event.stop()
            event.prevent_default()

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        if event.list_view is self:
            self.controller.select(self.index)

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if event.list_view is self:
            self.controller.select(self.index)
            self.controller.activate()
