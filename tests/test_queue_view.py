import asyncio

from nowplaying.errors import LibraryError
from nowplaying.queue_edit import UNSET
from nowplaying.queue_view import QueueListController, SelectionState

from conftest import make_tracks, titles


class FakeView:
    def __init__(self, first=0, visible=10):
        self.window = (first, visible)
        self.shown = []
        self.applied = []
        self.cleared = 0
        self.playing = []

    def show_tracks(self, tracks, playing_index):
        self.shown.append(([t.title for t in tracks], playing_index))

    def clear_tracks(self):
        self.cleared += 1

    def visible_window(self):
        return self.window

    def apply_selection(self, selection):
        self.applied.append((selection.selected_index, selection.first_visible_index))

    def mark_playing(self, index):
        self.playing.append(index)


class FakeLibrary:
    def __init__(self):
        self.fail = False

    async def fetch_queue_snapshot(self, playback):
        if self.fail:
            raise LibraryError("database is locked")
        return playback.queue_snapshot()


class QueryRunner:
    def __init__(self):
        self.pending = []

    def __call__(self, coro):
        self.pending.append(coro)

    def run_all(self):
        pending, self.pending = self.pending, []
        for coro in pending:
            asyncio.run(coro)


def _make_controller(playback, view=None, library=None):
    view = view or FakeView()
    runner = QueryRunner()
    errors = []
    controller = QueueListController(
        playback, library or FakeLibrary(), view, runner, on_error=errors.append
    )
    controller.visible = True
    return controller, view, runner, errors


def test_selection_state_window():
    state = SelectionState(selected_index=0, first_visible_index=5, visible_count=3)
    assert state.is_visible(5)
    assert state.is_visible(7)
    assert not state.is_visible(8)
    assert not state.is_visible(4)


def test_reselect_is_consumed_once(playback):
    playback.set_queue(make_tracks("A", "B", "C", "D", "E"))
    playback.play_at(3)
    controller, view, runner, _ = _make_controller(playback)

    controller.editor.move(2, 1)
    runner.run_all()
    assert controller.selected_index == 1
    assert controller.editor.pending_reselect == UNSET

    controller.requery("refresh")
    runner.run_all()
    assert controller.selected_index == 3


def test_move_down_scenario_selects_moved_row(playback):
    controller, view, runner, _ = _make_controller(playback)
    controller.on_shown()
    runner.run_all()
    controller.select(1)

    assert controller.handle_key("alt+down")
    assert titles(playback) == ["A", "C", "B"]
    assert controller.editor.pending_reselect == 2
    runner.run_all()
    assert view.shown[-1][0] == ["A", "C", "B"]
    assert controller.selected_index == 2
    assert controller.tracks[2].title == "B"


def test_shuffled_edit_leaves_queue_and_selection(playback):
    controller, view, runner, _ = _make_controller(playback)
    playback.toggle_shuffle()
    runner.run_all()
    controller.select(1)
    before = titles(playback)
    assert not controller.handle_key("alt+up")
    assert titles(playback) == before
    assert controller.selected_index == 1
    assert runner.pending == []


def test_stale_completion_is_discarded(playback):
    controller, view, runner, _ = _make_controller(playback)
    first = controller.requery("one")
    second = controller.requery("two")
    assert not controller.complete(first, make_tracks("X"))
    assert view.shown == []
    assert controller.complete(second, playback.queue_snapshot())
    assert view.shown == [(["A", "B", "C"], None)]
    for coro in runner.pending:
        coro.close()


def test_superseded_fetch_does_not_update(playback):
    controller, view, runner, _ = _make_controller(playback)
    controller.requery("one")
    controller.requery("two")
    runner.run_all()
    assert len(view.shown) == 1


def test_failed_fetch_keeps_displayed_list(playback):
    library = FakeLibrary()
    controller, view, runner, errors = _make_controller(playback, library=library)
    controller.requery()
    runner.run_all()
    shown = list(view.shown)

    library.fail = True
    controller.requery()
    runner.run_all()
    assert view.shown == shown
    assert [t.title for t in controller.tracks] == ["A", "B", "C"]
    assert view.cleared == 0
    assert errors == ["Queue refresh failed. Keeping the current list."]


def test_reselect_inside_window_does_not_scroll(playback):
    playback.set_queue(make_tracks(*"ABCDEFGHIJKLMNOPQRST"))
    view = FakeView(first=4, visible=5)
    controller, _, runner, _ = _make_controller(playback, view=view)
    controller.editor.move(6, 7)
    runner.run_all()
    assert view.applied[-1] == (7, 4)


def test_reselect_below_window_scrolls_minimally(playback):
    playback.set_queue(make_tracks(*"ABCDEFGHIJKLMNOPQRST"))
    view = FakeView(first=4, visible=5)
    controller, _, runner, _ = _make_controller(playback, view=view)
    controller.editor.move(8, 9)
    runner.run_all()
    assert view.applied[-1] == (9, 5)


def test_reselect_above_window_scrolls_to_it(playback):
    playback.set_queue(make_tracks(*"ABCDEFGHIJKLMNOPQRST"))
    view = FakeView(first=4, visible=5)
    controller, _, runner, _ = _make_controller(playback, view=view)
    controller.editor.move(3, 2)
    runner.run_all()
    assert view.applied[-1] == (2, 2)


def test_playing_fallback_scrolls_playing_row_to_top(playback):
    playback.set_queue(make_tracks(*"ABCDEFGHIJKLMNOPQRST"))
    playback.play_at(12)
    view = FakeView(first=0, visible=5)
    controller, _, runner, _ = _make_controller(playback, view=view)
    controller.requery()
    runner.run_all()
    assert view.applied[-1] == (12, 12)


def test_playing_fallback_at_top_has_no_offset(playback):
    playback.play_at(0)
    view = FakeView(first=0, visible=2)
    controller, _, runner, _ = _make_controller(playback, view=view)
    controller.requery()
    runner.run_all()
    assert view.applied[-1] == (0, 0)


def test_nothing_playing_selects_first_row(playback):
    controller, view, runner, _ = _make_controller(playback)
    controller.requery()
    runner.run_all()
    assert controller.selected_index == 0


def test_out_of_range_reselect_defaults_to_zero(playback):
    controller, view, runner, _ = _make_controller(playback)
    controller.editor.pending_reselect = 42
    controller.complete(controller.requery(), playback.queue_snapshot())
    assert controller.selected_index == 0
    assert controller.editor.pending_reselect == UNSET
    for coro in runner.pending:
        coro.close()


def test_empty_queue_still_clears_reselect(playback):
    playback.set_queue([])
    controller, view, runner, _ = _make_controller(playback)
    controller.editor.pending_reselect = 1
    controller.requery()
    runner.run_all()
    assert view.applied == []
    assert controller.editor.pending_reselect == UNSET


def test_hidden_clears_display_and_drops_outstanding_query(playback):
    controller, view, runner, _ = _make_controller(playback)
    controller.requery()
    controller.on_hidden()
    runner.run_all()
    assert view.cleared == 1
    assert view.shown == []
    assert controller.tracks == ()
    assert titles(playback) == ["A", "B", "C"]


def test_shown_requeries(playback):
    controller, view, runner, _ = _make_controller(playback)
    controller.visible = False
    controller.on_shown()
    assert controller.visible
    assert len(runner.pending) == 1
    runner.run_all()
    assert view.shown[-1][0] == ["A", "B", "C"]


def test_shuffle_change_requeries_only_when_visible(playback):
    controller, view, runner, _ = _make_controller(playback)
    playback.toggle_shuffle()
    assert len(runner.pending) == 1
    runner.run_all()
    controller.on_hidden()
    playback.toggle_shuffle()
    assert runner.pending == []


def test_track_change_marks_playing_row(playback):
    controller, view, runner, _ = _make_controller(playback)
    playback.play_at(2)
    assert view.playing == [2]


def test_enter_plays_selected_row(playback):
    controller, view, runner, _ = _make_controller(playback)
    controller.requery()
    runner.run_all()
    controller.select(2)
    assert controller.handle_key("enter")
    assert playback.get_current_index() == 2


def test_close_disconnects_from_engine(playback):
    controller, view, runner, _ = _make_controller(playback)
    controller.close()
    playback.toggle_shuffle()
    playback.play_at(1)
    assert runner.pending == []
    assert view.playing == []


def test_delete_last_row_keeps_selection_at_tail(playback):
    controller, view, runner, _ = _make_controller(playback)
    controller.on_shown()
    runner.run_all()
    controller.select(2)

    assert controller.handle_key("delete")
    runner.run_all()
    assert view.shown[-1][0] == ["A", "B"]
    assert controller.selected_index == 1
