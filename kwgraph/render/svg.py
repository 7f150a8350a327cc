"""SVG implementation of the drawing surface."""
from __future__ import annotations

import html
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from kwgraph.config import RenderingConfig
from kwgraph.render.surface import Point, Rect

LOGGER = logging.getLogger(__name__)


def _fmt(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in {"-0", ""} else text


class SvgSurface:
    """Collects drawing primitives as SVG elements with a pan offset."""

    def __init__(self, width: int, height: int, rendering: Optional[RenderingConfig] = None) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("surface dimensions must be positive")
        self._width = int(width)
        self._height = int(height)
        self._rendering = rendering or RenderingConfig()
        self._offset: Point = (0.0, 0.0)
        self._elements: List[str] = []

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def bounds(self) -> Rect:
        return Rect(0.0, 0.0, float(self._width), float(self._height))

    @property
    def offset(self) -> Point:
        return self._offset

    @property
    def elements(self) -> Tuple[str, ...]:
        return tuple(self._elements)

    def set_offset(self, offset: Point) -> None:
        self._offset = (float(offset[0]), float(offset[1]))

    def pan(self, dx: float, dy: float) -> None:
        self._offset = (self._offset[0] + dx, self._offset[1] + dy)

    def offset_adjust(self, point: Point) -> Point:
        """Return ``point`` shifted by the current pan offset."""

        return (point[0] + self._offset[0], point[1] + self._offset[1])

    def negative_offset_adjust(self, point: Point) -> Point:
        """Return ``point`` with the current pan offset removed."""

        return (point[0] - self._offset[0], point[1] - self._offset[1])

    def clear(self) -> None:
        self._elements.clear()

    def draw_ellipse(self, bounds: Rect, fill: str, stroke: str) -> None:
        cx, cy = bounds.center
        self._elements.append(
            f'<ellipse cx="{_fmt(cx)}" cy="{_fmt(cy)}" rx="{_fmt(bounds.width / 2.0)}" '
            f'ry="{_fmt(bounds.height / 2.0)}" fill="{html.escape(fill, quote=True)}" '
            f'stroke="{html.escape(stroke, quote=True)}"/>'
        )

    def draw_line(self, start: Point, end: Point, color: str) -> None:
        self._elements.append(
            f'<line x1="{_fmt(start[0])}" y1="{_fmt(start[1])}" x2="{_fmt(end[0])}" '
            f'y2="{_fmt(end[1])}" stroke="{html.escape(color, quote=True)}"/>'
        )

    def draw_text(self, text: str, origin: Point, font_size: float, color: str) -> None:
        """Draw ``text`` with its top-left corner at ``origin``."""

        # SVG positions text by its baseline; shift down by one em.
        baseline = origin[1] + font_size
        self._elements.append(
            f'<text x="{_fmt(origin[0])}" y="{_fmt(baseline)}" font-size="{_fmt(font_size)}" '
            f'font-family="{self._rendering.font_family}" fill="{html.escape(color, quote=True)}">'
            f"{html.escape(text)}</text>"
        )

    def measure_text(self, text: str, font_size: float) -> Tuple[float, float]:
        """Approximate the rendered text box from the configured glyph ratios."""

        width = len(text) * font_size * self._rendering.char_width_ratio
        height = font_size * self._rendering.line_height_ratio
        return (width, height)

    def to_svg(self) -> str:
        """Serialise the collected elements into a standalone SVG document."""

        header = (
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{self._width}" height="{self._height}" '
            f'viewBox="0 0 {self._width} {self._height}">'
        )
        background = (
            f'<rect x="0" y="0" width="{self._width}" height="{self._height}" '
            f'fill="{html.escape(self._rendering.background, quote=True)}"/>'
        )
        return "\n".join([header, background, *self._elements, "</svg>"])

    def write(self, path: Path) -> Path:
        """Write the SVG document to ``path``, creating parent directories."""

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_svg(), encoding="utf-8")
        LOGGER.info("Wrote diagram SVG to %s (%d elements)", path, len(self._elements))
        return path
