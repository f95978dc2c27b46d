"""Handwriting pad: stroke capture and PNG export."""
import base64
import io
import time

from PIL import Image, ImageDraw

from hana_vocab.models import Point

INK_COLOR = (30, 27, 75)
BACKGROUND = (255, 255, 255)


def _now_ms() -> int:
    return int(time.time() * 1000)


def parse_strokes(data) -> list[list[Point]]:
    """Build strokes from JSON data: a list of strokes, each a list of
    [x, y, t] triples or {"x", "y", "t"} objects."""
    if not isinstance(data, list):
        raise ValueError("Strokes must be a list")
    strokes = []
    for raw_stroke in data:
        if not isinstance(raw_stroke, list):
            raise ValueError("Each stroke must be a list of points")
        stroke = []
        for raw in raw_stroke:
            if isinstance(raw, dict):
                stroke.append(Point(float(raw["x"]), float(raw["y"]), int(raw.get("t", 0))))
            else:
                x, y, *rest = raw
                stroke.append(Point(float(x), float(y), int(rest[0]) if rest else 0))
        if stroke:
            strokes.append(stroke)
    return strokes


class HandwritingPad:
    """Collects strokes drawn on a fixed-size surface.

    Each pointer drag is one stroke: start_stroke on press, extend_stroke on
    every move, end_stroke on release. Coordinates are pad-local pixels.
    """

    def __init__(self, width: int = 400, height: int = 400, line_width: int = 6):
        self.width = width
        self.height = height
        self.line_width = line_width
        self.strokes: list[list[Point]] = []
        self._current: list[Point] | None = None

    @property
    def has_strokes(self) -> bool:
        return bool(self.strokes)

    @property
    def is_drawing(self) -> bool:
        return self._current is not None

    def start_stroke(self, x: float, y: float, t: int | None = None) -> None:
        self._current = [Point(x, y, _now_ms() if t is None else t)]

    def extend_stroke(self, x: float, y: float, t: int | None = None) -> None:
        if self._current is None:
            return
        self._current.append(Point(x, y, _now_ms() if t is None else t))

    def end_stroke(self) -> list[list[Point]]:
        """Commit the stroke in progress and return all strokes so far."""
        if self._current:
            self.strokes.append(self._current)
        self._current = None
        return self.strokes

    def add_stroke(self, points: list[Point]) -> None:
        if points:
            self.strokes.append(list(points))

    def clear(self) -> None:
        self.strokes = []
        self._current = None

    def render(self) -> Image.Image:
        """Draw all strokes onto an opaque white canvas."""
        img = Image.new("RGB", (self.width, self.height), BACKGROUND)
        draw = ImageDraw.Draw(img)
        radius = self.line_width / 2
        for stroke in self.strokes:
            coords = [(p.x, p.y) for p in stroke]
            if len(coords) > 1:
                draw.line(coords, fill=INK_COLOR, width=self.line_width, joint="curve")
            # Round caps at every point so single taps still leave a dot.
            for x, y in coords:
                draw.ellipse((x - radius, y - radius, x + radius, y + radius), fill=INK_COLOR)
        return img

    def to_png(self) -> bytes:
        buf = io.BytesIO()
        self.render().save(buf, format="PNG")
        return buf.getvalue()

    def to_data_url(self) -> str:
        return "data:image/png;base64," + base64.b64encode(self.to_png()).decode("ascii")
