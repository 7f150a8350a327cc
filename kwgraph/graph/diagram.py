"""Diagram container that owns nodes, arranges them and draws them."""
from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from kwgraph.config import LayoutConfig, RenderingConfig
from kwgraph.graph.glyphs import draw_node
from kwgraph.graph.layout import LayoutResult, compute_force_layout, seed_positions
from kwgraph.graph.node import Node, set_diagram
from kwgraph.render.surface import DrawingSurface, Point, Rect, RelevanceScale, RenderedLabel

LOGGER = logging.getLogger(__name__)


class Diagram:
    """Owns a set of nodes and runs the force-directed layout over them."""

    def __init__(
        self,
        *,
        layout: Optional[LayoutConfig] = None,
        rendering: Optional[RenderingConfig] = None,
    ) -> None:
        self._layout = layout or LayoutConfig()
        self._rendering = rendering or RenderingConfig()
        # Dict preserves insertion order, which seeds the layout deterministically.
        self._nodes: Dict[Node, None] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(list(self._nodes))

    def __contains__(self, node: object) -> bool:
        return node in self._nodes

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return tuple(self._nodes)

    @property
    def layout_config(self) -> LayoutConfig:
        return self._layout

    @property
    def rendering_config(self) -> RenderingConfig:
        return self._rendering

    def add_node(self, node: Node) -> bool:
        """Attach ``node`` (and its subtree) to this diagram.

        Returns:
            bool: False if the node was already attached here.

        Raises:
            ValueError: If ``node`` is None.
        """
        if node is None:
            raise ValueError("node must not be None")
        if node.diagram is self:
            return False
        set_diagram(node, self)
        return True

    def remove_node(self, node: Node) -> bool:
        """Detach ``node`` and drop every edge linking it to the remaining nodes.

        Returns:
            bool: True if the node belonged to this diagram.
        """
        if node not in self._nodes:
            return False
        for other in list(self._nodes):
            if other is not node:
                node.disconnect(other)
        set_diagram(node, None)
        return True

    def clear(self) -> None:
        """Detach and discard every node."""

        for node in list(self._nodes):
            set_diagram(node, None)
        self._nodes.clear()

    def edges(self) -> List[Tuple[Node, Node]]:
        """Return unique undirected edges whose endpoints both belong to this diagram."""

        seen = set()
        result: List[Tuple[Node, Node]] = []
        for node in self._nodes:
            for child in node.connections:
                if child not in self._nodes:
                    continue
                key = frozenset((id(node), id(child)))
                if key in seen:
                    continue
                seen.add(key)
                result.append((node, child))
        return result

    def bounds(self) -> Rect:
        """Logical bounds covering every node centre and glyph."""

        if not self._nodes:
            return Rect(0.0, 0.0, 0.0, 0.0)
        left = min(node.position[0] - node.size[0] / 2.0 for node in self._nodes)
        top = min(node.position[1] - node.size[1] / 2.0 for node in self._nodes)
        right = max(node.position[0] + node.size[0] / 2.0 for node in self._nodes)
        bottom = max(node.position[1] + node.size[1] / 2.0 for node in self._nodes)
        return Rect(left, top, right - left, bottom - top)

    def arrange(self) -> LayoutResult:
        """Run the force simulation and write the final positions back to the nodes.

        Nodes that were never positioned are seeded on a circle around the
        centroid of the positioned ones (or the origin). Each call starts from
        rest, so repeated calls on an unchanged graph settle on the same layout.

        Returns:
            LayoutResult: Final coordinates and convergence metadata.
        """
        nodes = list(self._nodes)
        if not nodes:
            return compute_force_layout(np.zeros((0, 2)), [], [], self._layout)

        initial = np.array([node.position for node in nodes], dtype=float).reshape(-1, 2)
        unplaced = [index for index, node in enumerate(nodes) if not node.is_placed]
        if unplaced:
            placed_mask = np.ones(len(nodes), dtype=bool)
            placed_mask[unplaced] = False
            centre: Point = (0.0, 0.0)
            if placed_mask.any():
                centroid = initial[placed_mask].mean(axis=0)
                centre = (float(centroid[0]), float(centroid[1]))
            initial[unplaced] = seed_positions(len(unplaced), center=centre, radius=self._layout.seed_radius)

        index_of = {node: index for index, node in enumerate(nodes)}
        edge_pairs = self.edges()
        edges = [(index_of[source], index_of[target]) for source, target in edge_pairs]
        spring_lengths = [self._spring_length(source, target) for source, target in edge_pairs]

        result = compute_force_layout(initial, edges, spring_lengths, self._layout)
        for node, (x, y) in zip(nodes, result.positions):
            node.position = (float(x), float(y))

        LOGGER.debug(
            "Arranged diagram nodes=%d edges=%d iterations=%d converged=%s",
            len(nodes),
            len(edges),
            result.iterations,
            result.converged,
        )
        if not result.converged and len(nodes) > 1:
            LOGGER.info(
                "Layout stopped at the iteration cap (%d) with max displacement %.4f",
                result.iterations,
                result.max_displacement,
            )
        return result

    def _spring_length(self, source: Node, target: Node) -> float:
        largest_side = max(max(source.size), max(target.size))
        return max(self._layout.spring_length, self._layout.spring_length_multiplier * largest_side)

    def fit_scale(self, bounds: Rect) -> float:
        """Largest scale not above 1 that fits the diagram inside ``bounds``."""

        logical = self.bounds()
        scale = 1.0
        if logical.width > 0:
            scale = min(scale, bounds.width / logical.width)
        if logical.height > 0:
            scale = min(scale, bounds.height / logical.height)
        return max(scale, 0.0)

    def draw(
        self,
        surface: DrawingSurface,
        bounds: Rect,
        scale_factor: Optional[float] = None,
        relevance: Optional[RelevanceScale] = None,
    ) -> List[RenderedLabel]:
        """Draw connectors and then node glyphs onto ``surface``.

        Node positions are scaled by ``scale_factor`` around the centre of
        ``bounds`` and shifted by the surface pan offset. Drawing never changes
        node positions.

        Args:
            surface: Target drawing surface.
            bounds: Area of the surface reserved for the diagram.
            scale_factor: Position scale; defaults to a fit-to-bounds scale.
            relevance: Keyword relevance used to size labels.

        Returns:
            List[RenderedLabel]: Label boxes in surface coordinates, in draw order.
        """
        if not self._nodes:
            return []
        scale = self.fit_scale(bounds) if scale_factor is None else scale_factor
        scale_context = relevance or RelevanceScale()
        centre_x, centre_y = bounds.center

        def _to_surface(node: Node) -> Point:
            x, y = node.position
            return surface.offset_adjust((centre_x + x * scale, centre_y + y * scale))

        for source, target in self.edges():
            surface.draw_line(_to_surface(source), _to_surface(target), self._rendering.connector_color)

        labels: List[RenderedLabel] = []
        for node in self._nodes:
            cx, cy = _to_surface(node)
            width, height = node.size
            glyph_bounds = Rect(cx - width / 2.0, cy - height / 2.0, float(width), float(height))
            label = draw_node(surface, node, glyph_bounds, scale_context, self._rendering)
            if label is not None:
                labels.append(label)
        return labels

    def _register(self, node: Node) -> None:
        self._nodes[node] = None

    def _unregister(self, node: Node) -> None:
        self._nodes.pop(node, None)


__all__ = ["Diagram", "set_diagram"]
