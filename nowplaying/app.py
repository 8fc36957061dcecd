"""Now Playing TUI: live transport readout and an editable play queue."""

import argparse
import logging
from typing import Optional, Sequence

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.css.query import NoMatches
from textual.widgets import Footer, Header, Static

from .app_logging import setup_logging
from .errors import LibraryError, classify_exception, user_message
from .formatting import FormatTemplate
from .library import LocalLibrary, Track
from .playback import SEEK_STEP, VOLUME_STEP, PlaybackService, PlaybackState
from .queue_view import QueueListView
from .settings import ascii_forced, default_settings_path, load_settings, save_settings
from .transport import TransportReadout

logger = logging.getLogger(__name__)

# ── Main App ─────────────────────────────────────────────────────────


class NowPlayingApp(App):
    """Now Playing: watch and edit the play queue from your terminal."""

    CSS = """
    Screen {
        background: $surface;
    }

    #queue {
        height: 1fr;
        border: round $primary-background-darken-1;
    }

    #queue:focus > ListItem.--highlight {
        background: $accent;
        color: $text;
    }

    #transport {
        height: 2;
        padding: 0 1;
        margin: 1 0 0 0;
    }

    #status-bar {
        dock: bottom;
        height: 1;
        background: $primary-background-darken-1;
        padding: 0 2;
    }
    """

    TITLE = "♫ Now Playing"
    SUB_TITLE = "Play Queue"

    BINDINGS = [
        Binding("space", "play_pause", "Play/Pause", priority=True),
        Binding("n", "next_track", "Next"),
        Binding("p", "prev_track", "Prev"),
        Binding("s", "stop_track", "Stop"),
        Binding("x", "toggle_shuffle", "Shuffle"),
        Binding("equal,plus", "volume_up", "+Vol", key_display="+"),
        Binding("minus", "volume_down", "-Vol", key_display="-"),
        Binding("m", "toggle_mute", "Mute"),
        Binding("right", "seek_forward", ">>", show=False),
        Binding("left", "seek_back", "<<", show=False),
        Binding("v", "toggle_queue", "Queue"),
        Binding("r", "refresh", "Refresh", show=False),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        paths: Sequence[str] = (),
        settings_path: Optional[str] = None,
        playback: Optional[PlaybackService] = None,
        library: Optional[LocalLibrary] = None,
    ) -> None:
        super().__init__()
        self.settings_path = settings_path or default_settings_path()
        self.settings = load_settings(self.settings_path)
        self.playback = playback or PlaybackService()
        self.library = library or LocalLibrary(list(paths) or self.settings["music_folders"])
        self.template = FormatTemplate.compile(self.settings["playing_format"])
        self.playback.set_volume(self.settings["volume"] / 100.0)
        self._pre_mute_volume = self.playback.get_volume() or 0.5

    def compose(self) -> ComposeResult:
        yield Header()
        yield QueueListView(self.playback, self.library, on_error=self._set_status, id="queue")
        yield TransportReadout(
            self.playback,
            self.template,
            interval=self.settings["refresh_interval_ms"] / 1000.0,
            volume_width=self.settings["volume_slider_width"],
            ascii=self.settings["ascii"] or ascii_forced(),
            id="transport",
        )
        yield Static("", id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        if self.library.paths:
            self._set_status("Loading...")
            self.initial_load()
        else:
            self._set_status("No music folders configured")

    @work(thread=True)
    def initial_load(self) -> None:
        try:
            tracks = self.library.scan()
        except LibraryError as exc:
            logger.warning("Library scan failed: %s", exc)
            self.call_from_thread(self._set_status, user_message(classify_exception(exc), "library"))
            return
        self.call_from_thread(self._load_queue, tracks)

    def _load_queue(self, tracks: list[Track]) -> None:
        self.playback.set_queue(tracks)
        self._requery("loaded")
        msg = f"Loaded {len(tracks)} tracks"
        if self.library.skipped:
            msg += f" ({self.library.skipped} skipped)"
        self._set_status(msg)

    def _requery(self, source: str) -> None:
        try:
            queue = self.query_one("#queue", QueueListView)
        except NoMatches:
            return
        if queue.controller.visible:
            queue.controller.requery(source)

    def _set_status(self, msg: str) -> None:
        try:
            sb = self.query_one("#status-bar", Static)
        except NoMatches:
            return
        icon = {PlaybackState.PLAYING: "▶", PlaybackState.PAUSED: "⏸"}.get(
            self.playback.get_playback_state(), "·"
        )
        sb.update(f" {icon}  {msg}")

    # ── Actions ───────────────────────────────────────────────────────

    def action_play_pause(self) -> None:
        self.playback.play_pause()
        self._set_status("Toggled play/pause")

    def action_next_track(self) -> None:
        if self.playback.next():
            self._set_status("Next track")
        else:
            self._set_status("End of queue")

    def action_prev_track(self) -> None:
        self.playback.previous()
        self._set_status("Previous track")

    def action_stop_track(self) -> None:
        self.playback.stop()
        self._set_status("Stopped")

    def action_toggle_shuffle(self) -> None:
        shuffled = self.playback.toggle_shuffle()
        self._set_status(f"Shuffle {'on' if shuffled else 'off'}")

    def _change_volume(self, delta: float) -> None:
        self.playback.set_volume(self.playback.get_volume() + delta)
        self._set_status(f"Volume: {round(self.playback.get_volume() * 100)}%")

    def action_volume_up(self) -> None:
        self._change_volume(VOLUME_STEP)

    def action_volume_down(self) -> None:
        self._change_volume(-VOLUME_STEP)

    def action_toggle_mute(self) -> None:
        volume = self.playback.get_volume()
        if volume > 0:
            self._pre_mute_volume = volume
            self.playback.set_volume(0.0)
            self._set_status("Muted")
        else:
            self.playback.set_volume(self._pre_mute_volume)
            self._set_status(f"Unmuted ({round(self._pre_mute_volume * 100)}%)")

    def action_seek_forward(self) -> None:
        if self.playback.get_playback_state() == PlaybackState.STOPPED:
            return
        self.playback.seek_by(SEEK_STEP)
        self._set_status("Seek forward 10s")

    def action_seek_back(self) -> None:
        if self.playback.get_playback_state() == PlaybackState.STOPPED:
            return
        self.playback.seek_by(-SEEK_STEP)
        self._set_status("Seek back 10s")

    def action_toggle_queue(self) -> None:
        queue = self.query_one("#queue", QueueListView)
        queue.display = not queue.display
        if queue.display:
            queue.focus()

    def action_refresh(self) -> None:
        self._requery("refresh")
        self._set_status("Refreshed")

    async def action_quit(self) -> None:
        self.settings["volume"] = round(self.playback.get_volume() * 100)
        try:
            save_settings(self.settings_path, self.settings)
        except OSError as exc:
            logger.warning("Could not save settings to %s: %s", self.settings_path, exc)
        self.exit()


# ── Entry point ──────────────────────────────────────────────────────


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="nowplaying", description=NowPlayingApp.__doc__)
    parser.add_argument("paths", nargs="*", help="audio files or folders to queue")
    parser.add_argument("--settings", help="path to settings.json")
    args = parser.parse_args(argv)

    setup_logging()
    app = NowPlayingApp(paths=args.paths, settings_path=args.settings)
    app.run()


if __name__ == "__main__":
    main()
