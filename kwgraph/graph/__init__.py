"""Node model, force-directed diagram layout and relationship graph builder."""

from .builder import BuildResult, RelationshipGraphBuilder
from .diagram import Diagram
from .layout import LayoutResult, compute_force_layout, seed_positions
from .node import Node, NodeKind, NodeStyle, set_diagram

__all__ = [
    "BuildResult",
    "Diagram",
    "LayoutResult",
    "Node",
    "NodeKind",
    "NodeStyle",
    "RelationshipGraphBuilder",
    "compute_force_layout",
    "seed_positions",
    "set_diagram",
]
