"""Force-directed layout engine."""

from __future__ import annotations

import pytest

from streamcloud.model.geometry_primitives import Vector
from streamcloud.model.graph import GraphNode, create_root_node
from streamcloud.solvers.layout import Diagram


def _star(n_words: int, deterministic: bool = True) -> tuple[Diagram, GraphNode, list[GraphNode]]:
    diagram = Diagram(deterministic=deterministic)
    root = create_root_node()
    diagram.add_node(root)
    words = []
    for i in range(n_words):
        node = GraphNode(label=f"w{i}", position=root.position)
        node.connect(root)
        diagram.add_node(node)
        words.append(node)
    return diagram, root, words


# ------------------------------------------------------------------------------
# Registration
# ------------------------------------------------------------------------------

def test_add_node_is_idempotent(diagram):
    node = GraphNode("cat")

    assert diagram.add_node(node) is True
    assert diagram.add_node(node) is False
    assert diagram.nodes == (node,)


def test_add_node_registers_connected_nodes(diagram):
    root = create_root_node()
    word = GraphNode("cat")
    word.connect(root)

    diagram.add_node(word)

    assert diagram.nodes == (word, root)


def test_add_none_is_rejected(diagram):
    with pytest.raises(ValueError):
        diagram.add_node(None)


def test_remove_node_severs_incoming_connections_only(diagram):
    a, b = GraphNode("a"), GraphNode("b")
    a.connect(b)
    diagram.add_node(a)

    assert diagram.remove_node(b) is True
    assert a.connections == ()
    assert diagram.contains_node(a)
    assert not diagram.contains_node(b)
    assert diagram.remove_node(b) is False


def test_clear_empties_the_diagram():
    diagram, _, _ = _star(3)
    diagram.clear()

    assert len(diagram) == 0
    assert diagram.step() == 0.0


# ------------------------------------------------------------------------------
# Step
# ------------------------------------------------------------------------------

def _run(steps: int) -> list[list[tuple[float, float]]]:
    diagram, _, _ = _star(6)
    history = []
    for _ in range(steps):
        diagram.step(damping=0.5, spring_length=100)
        history.append([node.position.to_tuple() for node in diagram.nodes])
    return history


def test_deterministic_runs_are_reproducible():
    assert _run(40) == _run(40)


def test_coincident_nodes_separate_with_bounded_velocity():
    diagram, _, (first, second) = _star(2)

    diagram.step()

    for node in diagram.nodes:
        assert node.velocity.magnitude <= Diagram.MAX_VELOCITY + 1e-9
    assert first.position != second.position


def test_velocity_is_clamped():
    diagram = Diagram(deterministic=True)
    a = GraphNode("a", position=Vector(-10.0, 0.0))
    b = GraphNode("b", position=Vector(10.0, 0.0))
    diagram.add_node(a)
    diagram.add_node(b)

    diagram.step(damping=0.5, spring_length=100)

    # repulsion 10000 / 20^2 = 25, damped to 12.5, clamped to 5
    assert a.velocity.x == pytest.approx(-5.0)
    assert b.velocity.x == pytest.approx(5.0)
    assert a.position.distance_to(b.position) == pytest.approx(30.0)


def test_spring_does_not_push_when_shorter_than_rest_length():
    diagram = Diagram(deterministic=True, repulsion=0.0)
    a = GraphNode("a", position=Vector(0.0, 0.0))
    b = GraphNode("b", position=Vector(50.0, 0.0))
    a.connect(b)
    diagram.add_node(a)

    diagram.step(damping=0.5, spring_length=100)

    assert a.velocity.magnitude == 0.0
    assert b.velocity.magnitude == 0.0
    assert a.position.distance_to(b.position) == pytest.approx(50.0)


def test_spring_pulls_both_endpoints():
    diagram = Diagram(deterministic=True, repulsion=0.0, max_velocity=100.0)
    a = GraphNode("a", position=Vector(0.0, 0.0))
    b = GraphNode("b", position=Vector(300.0, 0.0))
    a.connect(b)
    diagram.add_node(a)

    diagram.step(damping=0.5, spring_length=100)

    # 0.1 * (300 - 100) = 20, damped to 10, towards each other
    assert a.velocity.x == pytest.approx(10.0)
    assert b.velocity.x == pytest.approx(-10.0)
    assert a.position.distance_to(b.position) == pytest.approx(280.0)


def test_step_recentres_on_origin():
    diagram, _, _ = _star(5)
    for _ in range(10):
        diagram.step()

    center = diagram.bounds().center
    assert center.x == pytest.approx(0.0, abs=1e-9)
    assert center.y == pytest.approx(0.0, abs=1e-9)


def test_star_spreads_out_over_time():
    diagram, root, words = _star(8)
    for _ in range(200):
        diagram.step()

    distances = [w.position.distance_to(root.position) for w in words]
    assert min(distances) > 10.0


@pytest.mark.parametrize("damping, spring_length", [(-0.1, 100), (1.5, 100), (0.5, 0), (0.5, -1)])
def test_invalid_parameters_are_rejected(diagram, damping, spring_length):
    diagram.add_node(GraphNode("a"))
    with pytest.raises(ValueError):
        diagram.step(damping=damping, spring_length=spring_length)


def test_arrange_resets_positions_and_velocities():
    diagram, _, _ = _star(4)
    for _ in range(5):
        diagram.step()

    diagram.arrange()

    for node in diagram.nodes:
        assert node.position == Vector()
        assert node.velocity == Vector()


# ------------------------------------------------------------------------------
# Framing
# ------------------------------------------------------------------------------

def test_bounds_and_fit_scale(diagram):
    diagram.add_node(GraphNode("a", position=Vector(-50.0, -10.0)))
    diagram.add_node(GraphNode("b", position=Vector(50.0, 10.0)))

    bounds = diagram.bounds()
    assert (bounds.width, bounds.height) == (100.0, 20.0)
    assert diagram.fit_scale(800, 600) == pytest.approx(6.0)


def test_fit_scale_of_degenerate_diagram_is_one(diagram):
    assert diagram.fit_scale(800, 600) == 1.0
    diagram.add_node(GraphNode("a", position=Vector(3.0, 4.0)))
    assert diagram.fit_scale(800, 600) == 1.0
