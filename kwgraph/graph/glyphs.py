"""Per-kind node drawing routines dispatched on ``NodeKind``."""
from __future__ import annotations

from typing import Callable, Dict, Optional

from kwgraph.config import RenderingConfig
from kwgraph.graph.node import Node, NodeKind
from kwgraph.render.surface import DrawingSurface, Rect, RelevanceScale, RenderedLabel

GlyphDrawer = Callable[[DrawingSurface, Node, Rect, RelevanceScale, RenderingConfig], Optional[RenderedLabel]]

# Label origin relative to the glyph's top-left corner, after centring on the text width.
_LABEL_NUDGE_X = 5.0
_LABEL_NUDGE_Y = 10.0


def draw_marker(
    surface: DrawingSurface,
    node: Node,
    bounds: Rect,
    relevance: RelevanceScale,
    rendering: RenderingConfig,
) -> Optional[RenderedLabel]:
    """Draw a filled and stroked spot."""

    surface.draw_ellipse(bounds, node.style.fill, node.style.stroke)
    return None


def draw_labeled(
    surface: DrawingSurface,
    node: Node,
    bounds: Rect,
    relevance: RelevanceScale,
    rendering: RenderingConfig,
) -> Optional[RenderedLabel]:
    """Draw a spot with its label underneath, sized by keyword relevance."""

    draw_marker(surface, node, bounds, relevance, rendering)
    text = node.label or ""
    font_size = relevance.font_size(
        text,
        base_size=rendering.base_font_size,
        weight_multiplier=rendering.font_weight_multiplier,
    )
    width, height = surface.measure_text(text, font_size)
    origin = (bounds.x - width / 2.0 + _LABEL_NUDGE_X, bounds.y + _LABEL_NUDGE_Y)
    surface.draw_text(text, origin, font_size, rendering.label_color)
    return RenderedLabel(
        node=node,
        text=text,
        bounds=Rect(origin[0], origin[1], width, height),
        font_size=font_size,
    )


GLYPH_DRAWERS: Dict[NodeKind, GlyphDrawer] = {
    NodeKind.MARKER: draw_marker,
    NodeKind.LABELED: draw_labeled,
}


def draw_node(
    surface: DrawingSurface,
    node: Node,
    bounds: Rect,
    relevance: RelevanceScale,
    rendering: RenderingConfig,
) -> Optional[RenderedLabel]:
    """Dispatch to the drawing routine registered for the node's kind."""

    return GLYPH_DRAWERS[node.kind](surface, node, bounds, relevance, rendering)
