"""Drawing surface contract and the rendering context consumed by diagrams."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Iterable, Mapping, Optional, Protocol, Tuple

from kwgraph.contracts import KeywordRelevance, normalize_keyword

if TYPE_CHECKING:  # pragma: no cover - import only for type checkers
    from kwgraph.graph.node import Node

Point = Tuple[float, float]


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle expressed by its top-left corner and size."""

    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Point:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, point: Point) -> bool:
        px, py = point
        return self.x <= px <= self.right and self.y <= py <= self.bottom

    def offset(self, dx: float, dy: float) -> "Rect":
        return Rect(self.x + dx, self.y + dy, self.width, self.height)


class DrawingSurface(Protocol):
    """Primitives a diagram needs from a renderer.

    Coordinates passed to the drawing primitives are final surface
    coordinates; callers apply the pan offset through ``offset_adjust``.
    """

    @property
    def offset(self) -> Point:
        ...

    def offset_adjust(self, point: Point) -> Point:
        ...

    def draw_ellipse(self, bounds: Rect, fill: str, stroke: str) -> None:
        ...

    def draw_line(self, start: Point, end: Point, color: str) -> None:
        ...

    def draw_text(self, text: str, origin: Point, font_size: float, color: str) -> None:
        ...

    def measure_text(self, text: str, font_size: float) -> Tuple[float, float]:
        ...


@dataclass(frozen=True)
class RenderedLabel:
    """Text drawn for a labeled node, kept so callers can hit-test labels."""

    node: "Node"
    text: str
    bounds: Rect
    font_size: float


@dataclass(frozen=True)
class RelevanceScale:
    """Keyword relevance lookup with the observed minimum and maximum."""

    relevance: Mapping[str, float] = field(default_factory=dict)
    min_relevance: float = 0.0
    max_relevance: float = 0.0

    @classmethod
    def from_keywords(cls, keywords: Iterable[KeywordRelevance]) -> "RelevanceScale":
        """Build a scale from collaborator keyword records.

        The first record for a keyword wins when the collaborator repeats it.

        Args:
            keywords: Keyword relevance records.

        Returns:
            RelevanceScale: Case-insensitive lookup with min/max bounds.
        """

        lookup: Dict[str, float] = {}
        for record in keywords:
            lookup.setdefault(record.key, float(record.relevance))
        if not lookup:
            return cls()
        values = list(lookup.values())
        return cls(relevance=lookup, min_relevance=min(values), max_relevance=max(values))

    def lookup(self, keyword: Optional[str]) -> Optional[float]:
        if not keyword:
            return None
        return self.relevance.get(normalize_keyword(keyword))

    def font_size(self, keyword: Optional[str], *, base_size: float, weight_multiplier: float) -> float:
        """Return the label font size for ``keyword``.

        Args:
            keyword: Label text.
            base_size: Size used for keywords without recorded relevance.
            weight_multiplier: Points added per unit of relevance above the minimum.

        Returns:
            float: ``base_size + (relevance - min_relevance) * weight_multiplier``.
        """

        relevance = self.lookup(keyword)
        if relevance is None:
            return base_size
        return base_size + (relevance - self.min_relevance) * weight_multiplier


__all__ = ["DrawingSurface", "Point", "Rect", "RelevanceScale", "RenderedLabel"]
