import math

THUMB = "■"
TRACK = "─"
ASCII_THUMB = "O"
ASCII_TRACK = "-"


def thumb_index(fraction: float, width: int) -> int:
    if width <= 0:
        return -1
    if math.isnan(fraction):
        fraction = 0.0
    fraction = max(0.0, min(1.0, fraction))
    return min(width - 1, int(math.floor(fraction * width)))


def render_slider(fraction: float, width: int, thumb: str = THUMB, track: str = TRACK) -> str:
    """Render a ``width`` cell bar with a single thumb cell at ``fraction``."""
    if width <= 0:
        return ""
    offset = thumb_index(fraction, width)
    return track * offset + thumb + track * (width - offset - 1)
