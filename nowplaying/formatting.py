"""Placeholder templates and cell-width aware text helpers."""

from dataclasses import dataclass
from typing import Mapping, NamedTuple, Optional

from rich.cells import cell_len, set_cell_size
from rich.text import Text

ELLIPSIS = "…"

# ── Cell-width helpers ───────────────────────────────────────────────


def ellipsize(value: str, width: int) -> str:
    """Shorten ``value`` to exactly ``width`` cells, ending with an ellipsis.

    Wide characters are never split: a double-width character that does not
    fit in front of the ellipsis is replaced by padding.
    """
    if width <= 0:
        return ""
    if cell_len(value) <= width:
        return value
    if width == 1:
        return ELLIPSIS
    return set_cell_size(value, width - 1) + ELLIPSIS


def align(value: str, width: int, right: bool = False) -> str:
    if width <= 0:
        return ""
    value = ellipsize(value, width)
    pad = " " * (width - cell_len(value))
    return pad + value if right else value + pad


def format_time(seconds: float) -> str:
    if seconds <= 0:
        return "0:00"
    total = int(seconds)
    m, s = divmod(total, 60)
    return f"{m}:{s:02d}"


# ── Templates ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Token:
    text: str
    is_placeholder: bool = False

    @property
    def name(self) -> str:
        return self.text[1:] if self.is_placeholder else ""


class Span(NamedTuple):
    text: str
    style: Optional[str] = None


class RenderResult(NamedTuple):
    width: int
    spans: tuple

    @property
    def plain(self) -> str:
        return "".join(span.text for span in self.spans)

    def to_text(self) -> Text:
        text = Text()
        for span in self.spans:
            text.append(span.text, style=span.style)
        return text


def tokenize(format_string: str) -> tuple:
    """Split a format string into literal and ``$name`` placeholder tokens.

    A placeholder runs until the next whitespace character. ``$$`` is an
    escaped dollar sign and lands in the surrounding literal run.
    """
    tokens = []
    literal = []
    i = 0
    n = len(format_string)
    while i < n:
        c = format_string[i]
        if c != "$":
            literal.append(c)
            i += 1
            continue
        if i + 1 < n and format_string[i + 1] == "$":
            literal.append("$")
            i += 2
            continue
        end = i + 1
        while end < n and not format_string[end].isspace():
            end += 1
        if end == i + 1:
            # a bare "$" has no name to look up
            literal.append("$")
            i += 1
            continue
        if literal:
            tokens.append(Token("".join(literal)))
            literal = []
        tokens.append(Token(format_string[i:end], is_placeholder=True))
        i = end
    if literal:
        tokens.append(Token("".join(literal)))
    return tuple(tokens)


class FormatTemplate:
    """A compiled ``$placeholder`` format string.

    Compiled once, then rendered any number of times against a value map and
    a width budget. Reformatting means building a new template.
    """

    def __init__(self, format_string: str) -> None:
        self.format_string = format_string
        self.tokens = tokenize(format_string)

    @classmethod
    def compile(cls, format_string: str) -> "FormatTemplate":
        return cls(format_string)

    def __repr__(self) -> str:
        return f"FormatTemplate({self.format_string!r})"

    def render(
        self,
        values: Mapping[str, str],
        width: int,
        style: Optional[str] = None,
    ) -> RenderResult:
        remaining = max(0, width)
        spans = []
        for token in self.tokens:
            if remaining <= 0:
                break
            value = ""
            if token.is_placeholder:
                value = values.get(token.name, "")
            if not value:
                value = token.text
            if cell_len(value) > remaining:
                value = ellipsize(value, remaining)
            spans.append(Span(value, style if token.is_placeholder else None))
            remaining -= cell_len(value)
        return RenderResult(max(0, width) - remaining, tuple(spans))


# ── Queue rows ───────────────────────────────────────────────────────

TRACK_COL_WIDTH = 3
ARTIST_COL_WIDTH = 14
ALBUM_COL_WIDTH = 14
DURATION_COL_WIDTH = 5
COLUMN_GAP = "   "


def format_track_row(track, width: int) -> str:
    """Lay out one queue row: number, title, duration, album, artist."""
    number = str(track.track_number) if track.track_number else ""
    title_width = max(
        0,
        width
        - TRACK_COL_WIDTH
        - DURATION_COL_WIDTH
        - ALBUM_COL_WIDTH
        - ARTIST_COL_WIDTH
        - 4 * len(COLUMN_GAP),
    )
    columns = [
        align(number, TRACK_COL_WIDTH, right=True),
        align(track.title, title_width),
        align(format_time(track.duration), DURATION_COL_WIDTH, right=True),
        align(track.album, ALBUM_COL_WIDTH),
        align(track.artist, ARTIST_COL_WIDTH),
    ]
    return COLUMN_GAP.join(columns)
