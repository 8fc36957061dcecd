import pytest

from nowplaying.library import Track
from nowplaying.playback import PlaybackService


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def make_tracks(*titles, duration=180.0):
    return [
        Track(title=title, album=f"{title} album", artist="Artist", track_number=i + 1, duration=duration)
        for i, title in enumerate(titles)
    ]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def playback(clock):
    service = PlaybackService(clock=clock)
    service.set_queue(make_tracks("A", "B", "C"))
    return service


def titles(playback):
    return [t.title for t in playback.queue_snapshot()]
