"""Tests for node connections and diagram membership."""

from __future__ import annotations

import pytest

from kwgraph.graph import Diagram, Node, NodeKind, set_diagram


def _edge_set(*nodes: Node) -> set[tuple[int, int]]:
    return {(id(node), id(child)) for node in nodes for child in node.connections}


def test_new_node_is_unattached_at_origin() -> None:
    node = Node.marker()
    assert node.diagram is None
    assert node.position == (0.0, 0.0)
    assert not node.is_placed
    assert node.kind is NodeKind.MARKER
    assert node.connections == ()


def test_labeled_node_requires_label() -> None:
    with pytest.raises(ValueError):
        Node(NodeKind.LABELED, label="  ")
    assert Node.labeled("fox").label == "fox"


def test_add_child_then_disconnect_restores_edges() -> None:
    parent, child, other = Node.marker(), Node.marker(), Node.marker()
    parent.add_child(other)
    before = _edge_set(parent, child, other)

    assert parent.add_child(child) is True
    assert parent.disconnect(child) is True

    assert _edge_set(parent, child, other) == before


def test_self_loop_is_rejected_without_mutation() -> None:
    node = Node.marker()
    assert node.add_child(node) is False
    assert node.connections == ()


def test_duplicate_edge_is_rejected() -> None:
    parent, child = Node.marker(), Node.marker()
    assert parent.add_child(child) is True
    assert parent.add_child(child) is False
    assert parent.connections == (child,)


def test_add_child_rejects_none() -> None:
    with pytest.raises(ValueError):
        Node.marker().add_child(None)  # type: ignore[arg-type]


def test_add_parent_delegates_to_parent() -> None:
    parent, child = Node.marker(), Node.marker()
    assert child.add_parent(parent) is True
    assert parent.connections == (child,)
    assert child.connections == ()


def test_disconnect_removes_edge_stored_on_either_side() -> None:
    parent, child = Node.marker(), Node.marker()
    parent.add_child(child)

    assert child.disconnect(parent) is True
    assert parent.connections == ()
    assert child.disconnect(parent) is False


def test_connections_are_read_only() -> None:
    parent, child = Node.marker(), Node.marker()
    parent.add_child(child)
    with pytest.raises(AttributeError):
        parent.connections.append(Node.marker())  # type: ignore[attr-defined]


def test_attaching_child_to_attached_parent_cascades_to_subtree() -> None:
    diagram = Diagram()
    root, child, grandchild = Node.marker(), Node.marker(), Node.marker()
    child.add_child(grandchild)
    diagram.add_node(root)

    root.add_child(child)

    assert child.diagram is diagram
    assert grandchild.diagram is diagram
    assert diagram.nodes == (root, child, grandchild)


def test_adding_root_attaches_existing_subtree_in_preorder() -> None:
    root, left, right, leaf = Node.marker(), Node.marker(), Node.marker(), Node.marker()
    root.add_child(left)
    root.add_child(right)
    left.add_child(leaf)

    diagram = Diagram()
    assert diagram.add_node(root) is True

    assert diagram.nodes == (root, left, leaf, right)
    assert all(node.diagram is diagram for node in (root, left, right, leaf))


def test_child_of_unattached_parent_keeps_its_diagram() -> None:
    diagram = Diagram()
    child = Node.marker()
    diagram.add_node(child)

    Node.marker().add_child(child)

    assert child.diagram is diagram


def test_set_diagram_moves_node_between_diagrams() -> None:
    first, second = Diagram(), Diagram()
    node = Node.marker()
    set_diagram(node, first)

    set_diagram(node, second)

    assert node.diagram is second
    assert node not in first
    assert node in second


def test_set_diagram_is_idempotent() -> None:
    diagram = Diagram()
    node = Node.marker()
    set_diagram(node, diagram)
    set_diagram(node, diagram)

    assert diagram.nodes == (node,)
    assert diagram.add_node(node) is False


def test_set_diagram_none_detaches_only_the_node() -> None:
    diagram = Diagram()
    parent, child = Node.marker(), Node.marker()
    parent.add_child(child)
    diagram.add_node(parent)

    set_diagram(parent, None)

    assert parent.diagram is None
    assert child.diagram is diagram


def test_remove_node_drops_edges_to_remaining_nodes() -> None:
    diagram = Diagram()
    root, child = Node.marker(), Node.marker()
    root.add_child(child)
    diagram.add_node(root)

    assert diagram.remove_node(child) is True

    assert child.diagram is None
    assert root.connections == ()
    assert diagram.nodes == (root,)
    assert diagram.remove_node(child) is False


def test_clear_detaches_every_node() -> None:
    diagram = Diagram()
    root, child = Node.marker(), Node.marker()
    root.add_child(child)
    diagram.add_node(root)

    diagram.clear()

    assert len(diagram) == 0
    assert root.diagram is None
    assert child.diagram is None


def test_edges_are_unique_and_undirected() -> None:
    diagram = Diagram()
    a, b, c = Node.marker(), Node.marker(), Node.marker()
    a.add_child(b)
    b.add_child(a)
    b.add_child(c)
    diagram.add_node(a)

    edges = diagram.edges()

    assert len(edges) == 2
    assert {frozenset(map(id, edge)) for edge in edges} == {
        frozenset((id(a), id(b))),
        frozenset((id(b), id(c))),
    }


def test_edges_ignore_nodes_outside_the_diagram() -> None:
    diagram = Diagram()
    root, child = Node.marker(), Node.marker()
    root.add_child(child)
    diagram.add_node(root)
    set_diagram(child, Diagram())

    assert diagram.edges() == []
