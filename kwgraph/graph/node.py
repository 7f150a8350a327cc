"""Connectable diagram vertices and the mutations that link them."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Set, Tuple

if TYPE_CHECKING:  # pragma: no cover - import only for type checkers
    from kwgraph.graph.diagram import Diagram

LOGGER = logging.getLogger(__name__)

Point = Tuple[float, float]


class NodeKind(str, Enum):
    """Closed set of visual node variants."""

    MARKER = "marker"
    LABELED = "labeled"


@dataclass(frozen=True)
class NodeStyle:
    """Fill and stroke colours used for the node glyph."""

    fill: str = "blue"
    stroke: str = "black"


class Node:
    """A positioned vertex that can be attached to a diagram and connected to other nodes.

    Connections are stored as an ordered list of children on the parent. For
    layout and removal purposes they behave as undirected edges.
    """

    def __init__(
        self,
        kind: NodeKind = NodeKind.MARKER,
        *,
        label: Optional[str] = None,
        style: Optional[NodeStyle] = None,
        size: Tuple[int, int] = (8, 8),
    ) -> None:
        """Initialise an unattached node at the origin.

        Args:
            kind: Visual variant used when drawing.
            label: Text rendered next to labeled nodes.
            style: Glyph colours; defaults to a blue spot with a black outline.
            size: Width and height of the glyph bounding box.

        Raises:
            ValueError: If a labeled node has no label or the size is not positive.
        """
        if kind is NodeKind.LABELED and not (label and label.strip()):
            raise ValueError("labeled nodes require a non-empty label")
        width, height = size
        if width <= 0 or height <= 0:
            raise ValueError("node size must be positive")
        self.kind = kind
        self.label = label
        self.style = style or NodeStyle()
        self.size: Tuple[int, int] = (int(width), int(height))
        self._position: Point = (0.0, 0.0)
        self._placed = False
        self._connections: List[Node] = []
        self._diagram: Optional["Diagram"] = None

    @classmethod
    def marker(cls, *, style: Optional[NodeStyle] = None, size: Tuple[int, int] = (8, 8)) -> "Node":
        return cls(NodeKind.MARKER, style=style, size=size)

    @classmethod
    def labeled(
        cls,
        label: str,
        *,
        style: Optional[NodeStyle] = None,
        size: Tuple[int, int] = (8, 8),
    ) -> "Node":
        return cls(NodeKind.LABELED, label=label, style=style, size=size)

    def __repr__(self) -> str:
        name = self.label if self.label is not None else self.kind.value
        return f"Node({name!r}, x={self._position[0]:.1f}, y={self._position[1]:.1f})"

    @property
    def position(self) -> Point:
        """Position of the node centre relative to the diagram origin."""

        return self._position

    @position.setter
    def position(self, value: Point) -> None:
        x, y = value
        self._position = (float(x), float(y))
        self._placed = True

    @property
    def is_placed(self) -> bool:
        """Whether the node has been given a position by layout or by a caller."""

        return self._placed

    @property
    def connections(self) -> Tuple["Node", ...]:
        """Read-only view of the child nodes this node is connected to."""

        return tuple(self._connections)

    @property
    def diagram(self) -> Optional["Diagram"]:
        """The diagram that currently owns this node, if any."""

        return self._diagram

    def is_connected_to(self, other: "Node") -> bool:
        """Return True if an edge exists between the nodes in either direction."""

        return other in self._connections or self in other._connections

    def add_child(self, child: "Node") -> bool:
        """Connect ``child`` below this node.

        Args:
            child: The node to connect.

        Returns:
            bool: True if the edge was added, False for a self-loop or duplicate edge.

        Raises:
            ValueError: If ``child`` is None.
        """
        if child is None:
            raise ValueError("child must not be None")
        if child is self or child in self._connections:
            return False
        if self._diagram is not None:
            set_diagram(child, self._diagram)
        self._connections.append(child)
        return True

    def add_parent(self, parent: "Node") -> bool:
        """Connect this node below ``parent``.

        Args:
            parent: The node that should own the edge.

        Returns:
            bool: True if the edge was added.

        Raises:
            ValueError: If ``parent`` is None.
        """
        if parent is None:
            raise ValueError("parent must not be None")
        return parent.add_child(self)

    def disconnect(self, other: "Node") -> bool:
        """Remove any edge between this node and ``other``.

        Returns:
            bool: True if an edge existed in either direction.
        """
        removed_child = _remove_all(self._connections, other)
        removed_parent = _remove_all(other._connections, self)
        return removed_child or removed_parent


def _remove_all(connections: List[Node], target: Node) -> bool:
    if target not in connections:
        return False
    connections[:] = [node for node in connections if node is not target]
    return True


def set_diagram(node: Node, diagram: Optional["Diagram"]) -> None:
    """Move ``node`` into ``diagram``, detaching it from any previous owner.

    Attaching cascades through the node's children so a subtree always lands in
    the same diagram as its parent. Detaching (``diagram=None``) only affects
    ``node`` itself.

    Args:
        node: The node to move.
        diagram: Target diagram, or None to detach.
    """
    if node._diagram is diagram:
        return
    if diagram is None:
        _move(node, None)
        return
    visited: Set[int] = set()
    pending = [node]
    while pending:
        current = pending.pop()
        if id(current) in visited:
            continue
        visited.add(id(current))
        if current._diagram is not diagram:
            _move(current, diagram)
        pending.extend(reversed(current._connections))


def _move(node: Node, diagram: Optional["Diagram"]) -> None:
    previous = node._diagram
    if previous is not None:
        previous._unregister(node)
    node._diagram = diagram
    if diagram is not None:
        diagram._register(node)
