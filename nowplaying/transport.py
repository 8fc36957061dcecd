import time
from typing import Callable, Optional

from rich.cells import cell_len
from rich.text import Text
from textual.widgets import Static

from .formatting import FormatTemplate, format_time
from .playback import PlaybackService, PlaybackState
from .refresh import REFRESH_INTERVAL, ImmediateCall, RefreshScheduler
from .settings import DEFAULT_PLAYING_FORMAT
from .slider import ASCII_THUMB, ASCII_TRACK, THUMB, TRACK, render_slider

ATTENTION_STYLE = "green"
FOCUSED_ATTENTION_STYLE = "red"
STOPPED_MESSAGE = "playback is stopped"
VOLUME_LABEL = "vol "
VOLUME_SLIDER_WIDTH = 10


class TransportReadout(Static):
    """Two-line readout: what is playing, then the volume and time sliders."""

    DEFAULT_CSS = """
    TransportReadout {
        height: 2;
    }
    """

    can_focus = True

    def __init__(
        self,
        playback: PlaybackService,
        template: Optional[FormatTemplate] = None,
        *,
        interval: float = REFRESH_INTERVAL,
        volume_width: int = VOLUME_SLIDER_WIDTH,
        ascii: bool = False,
        clock: Callable[[], float] = time.time,
        name: Optional[str] = None,
        id: Optional[str] = None,
        classes: Optional[str] = None,
    ) -> None:
        super().__init__("", name=name, id=id, classes=classes)
        self.playback = playback
        self.template = template or FormatTemplate.compile(DEFAULT_PLAYING_FORMAT)
        self.volume_width = volume_width
        self.glyphs = (ASCII_THUMB, ASCII_TRACK) if ascii else (THUMB, TRACK)
        self.in_focus = False
        self.readout = Text()
        self._clock = clock
        self.scheduler = RefreshScheduler(self._set_refresh_timer, self.update_readout, interval)
        self._subscriptions = [
            playback.track_changed.connect(self._on_track_changed),
            playback.volume_changed.connect(self._on_volume_changed),
            playback.position_changed.connect(self._on_position_changed),
            playback.state_changed.connect(self._on_state_changed),
        ]

    def _set_refresh_timer(self, delay: float, callback: Callable[[], None]):
        if delay <= 0:
            call = ImmediateCall(callback)
            self.call_later(call)
            return call
        return self.set_timer(delay, callback, name="transport-refresh")

    # ── Rendering ─────────────────────────────────────────────────────

    def attention_style(self) -> str:
        return FOCUSED_ATTENTION_STYLE if self.in_focus else ATTENTION_STYLE

    def elapsed_hidden(self, state: PlaybackState) -> bool:
        # blink the elapsed time while paused
        return state == PlaybackState.PAUSED and int(self._clock()) % 2 == 0

    def build_readout(self, width: int) -> Text:
        playback = self.playback
        state = playback.get_playback_state()
        attention = self.attention_style()
        text = Text(no_wrap=True, overflow="crop")
        duration = 0.0

        if state == PlaybackState.STOPPED:
            text.append(STOPPED_MESSAGE, style=attention)
        else:
            track = playback.get_current_track()
            title = album = artist = ""
            if track is not None:
                title, album, artist = track.title, track.album, track.artist
                duration = track.duration
            values = {
                "title": title or "[song]",
                "album": album or "[album]",
                "artist": artist or "[artist]",
            }
            text.append_text(self.template.render(values, width, style=attention).to_text())
        text.append("\n")

        thumb, track_glyph = self.glyphs
        volume = VOLUME_LABEL + render_slider(playback.get_volume(), self.volume_width, thumb, track_glyph) + "  "

        seconds_total = max(0, int(round(duration)))
        seconds_current = 0
        if state != PlaybackState.STOPPED:
            seconds_current = min(int(round(playback.get_position())), seconds_total)
        current_time = format_time(seconds_current)
        total_time = format_time(seconds_total)

        timer_width = width - cell_len(volume) - len(current_time) - len(total_time) - 2
        fraction = seconds_current / seconds_total if seconds_total else 0.0

        text.append(volume)
        if self.elapsed_hidden(state):
            text.append(" " * len(current_time))
        else:
            text.append(current_time)
        text.append(f" {render_slider(fraction, timer_width, thumb, track_glyph)} {total_time}")
        return text

    def update_readout(self) -> None:
        self.readout = self.build_readout(self.content_size.width)
        self.update(self.readout)

    # ── Events ────────────────────────────────────────────────────────

    def _on_track_changed(self, index, track) -> None:
        self.scheduler.request_refresh(0)

    def _on_volume_changed(self, volume: float) -> None:
        self.scheduler.request_refresh(0)

    def _on_position_changed(self, position: float) -> None:
        self.scheduler.request_refresh(0)

    def _on_state_changed(self, state: PlaybackState) -> None:
        self.scheduler.request_refresh(0)

    def on_show(self) -> None:
        self.scheduler.set_visible(True)

    def on_hide(self) -> None:
        self.scheduler.set_visible(False)

    def on_resize(self) -> None:
        self.scheduler.request_refresh(0)

    def on_focus(self) -> None:
        self.in_focus = True
        self.scheduler.request_refresh(0)

    def on_blur(self) -> None:
        self.in_focus = False
        self.scheduler.request_refresh(0)

    def on_unmount(self) -> None:
        self.scheduler.set_visible(False)
        for subscription in self._subscriptions:
            subscription.disconnect()
        self._subscriptions = []
