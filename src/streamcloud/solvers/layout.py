"""
Force-Directed Layout Engine
============================
The core simulation that positions the word cloud.

Why is this file needed?
------------------------
1. Physics: It applies Coulomb-like repulsion between every pair of nodes and a
   one-sided Hooke spring along every edge.
2. Time-Stepping: Each call to ``Diagram.step`` advances the simulation by one
   frame. There is no terminal "converged" state; the caller decides how many
   steps to run per rendered frame.
3. Framing: After each step the node set is recentred on the origin and the
   bounding box is exposed so a renderer can scale it into its viewport.

Note: This module should be pure Python/NumPy and should NOT import PySide6.
"""
from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Optional

import numpy as np

from streamcloud.model.geometry_primitives import Bounds, Vector

if TYPE_CHECKING:
    import numpy.typing as npt

    from streamcloud.model.graph import GraphNode

logger = logging.getLogger(__name__)


class Diagram:
    """
    A set of connected nodes, laid out by a force-directed simulation.

    All next positions are computed from one snapshot of the current positions
    (simultaneous update), and forces are summed in registration order, so with
    ``deterministic=True`` repeated runs are bit-for-bit reproducible.
    """

    ATTRACTION_CONSTANT = 0.1       # spring constant
    REPULSION_CONSTANT = 10000.0    # charge constant
    MAX_VELOCITY = 5.0              # units per step

    DEFAULT_DAMPING = 0.5
    DEFAULT_SPRING_LENGTH = 100
    DETERMINISTIC_SEED = 0

    def __init__(
        self,
        deterministic: bool = False,
        repulsion: float = REPULSION_CONSTANT,
        attraction: float = ATTRACTION_CONSTANT,
        max_velocity: float = MAX_VELOCITY,
    ) -> None:
        """
        Initialize an empty diagram.

        Args:
            deterministic: Seed the random source (used only to pick a bearing for
                coincident nodes) with a fixed constant.
            repulsion: Charge constant k_r of the repulsion force.
            attraction: Spring constant k_a of the attraction force.
            max_velocity: Ceiling applied to every node's velocity after damping.
        """
        if max_velocity <= 0:
            raise ValueError("max_velocity must be positive.")
        self.repulsion = float(repulsion)
        self.attraction = float(attraction)
        self.max_velocity = float(max_velocity)
        self.deterministic = deterministic
        self.rng = self._make_rng(deterministic)

        self._nodes: list[GraphNode] = []
        self._members: set[GraphNode] = set()

    @classmethod
    def _make_rng(cls, deterministic: bool) -> np.random.Generator:
        return np.random.default_rng(cls.DETERMINISTIC_SEED if deterministic else None)

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(nodes={len(self._nodes)}, deterministic={self.deterministic})"

    @property
    def nodes(self) -> tuple[GraphNode, ...]:
        """Read-only view of the registered nodes, in registration order."""
        return tuple(self._nodes)

    def contains_node(self, node: GraphNode) -> bool:
        return node in self._members

    # ------------------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------------------

    def add_node(self, node: GraphNode) -> bool:
        """
        Adds the node to this diagram, followed by every node reachable through its
        connections.

        Returns:
            True if the node was added, False if it was already on this diagram.
        """
        if node is None:
            raise ValueError("node cannot be None")

        if node in self._members:
            return False

        self._nodes.append(node)
        self._members.add(node)

        for child in node.iter_connections():
            self.add_node(child)

        return True

    def remove_node(self, node: GraphNode) -> bool:
        """
        Removes the node from the diagram. Connections from other nodes towards it
        are severed; the connected nodes themselves remain on the diagram.

        Returns:
            True if the node belonged to the diagram.
        """
        if node not in self._members:
            return False

        for other in self._nodes:
            if other is not node:
                other.disconnect(node)

        self._nodes.remove(node)
        self._members.discard(node)
        return True

    def clear(self) -> None:
        """Removes all nodes from the diagram."""
        self._nodes.clear()
        self._members.clear()

    def arrange(self, deterministic: Optional[bool] = None) -> None:
        """
        Restart the layout: reseed the random source and move every node to the
        origin at rest. The first steps afterwards spread the nodes apart again.
        """
        if deterministic is not None:
            self.deterministic = deterministic
        self.rng = self._make_rng(self.deterministic)
        for node in self._nodes:
            node.position = Vector()
            node.velocity = Vector()

    # ------------------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------------------

    def step(
        self,
        damping: float = DEFAULT_DAMPING,
        spring_length: float = DEFAULT_SPRING_LENGTH,
    ) -> float:
        """
        Advance the simulation by one frame.

        Args:
            damping: Value between 0 and 1 that slows the motion of the nodes.
            spring_length: Rest length of the springs along the connections.
                Connected nodes closer than this feel no attraction.

        Returns:
            Total displacement of all nodes during this step (before recentring).
        """
        if not 0.0 <= damping <= 1.0:
            raise ValueError(f"damping must be within [0, 1], got {damping!r}")
        if spring_length <= 0:
            raise ValueError(f"spring_length must be positive, got {spring_length!r}")

        n = len(self._nodes)
        if n == 0:
            return 0.0

        # Snapshot of the current state; nothing on the nodes changes until the end.
        positions = np.array([node.position.to_tuple() for node in self._nodes], dtype=np.float64)
        velocities = np.array([node.velocity.to_tuple() for node in self._nodes], dtype=np.float64)

        net_force = self._net_forces(positions, spring_length)

        # apply net force to node velocity
        velocities = (velocities + net_force) * damping
        speed = np.hypot(velocities[:, 0], velocities[:, 1])
        too_fast = speed > self.max_velocity
        if np.any(too_fast):
            velocities[too_fast] *= (self.max_velocity / speed[too_fast])[:, np.newaxis]

        # apply velocity to node position
        next_positions = positions + velocities
        displacement = float(np.hypot(velocities[:, 0], velocities[:, 1]).sum())

        # center the diagram around the origin
        mid_point = (next_positions.min(axis=0) + next_positions.max(axis=0)) / 2.0
        next_positions -= mid_point

        for node, pos, vel in zip(self._nodes, next_positions, velocities):
            node.position = Vector.from_array(pos)
            node.velocity = Vector.from_array(vel)

        return displacement

    def _net_forces(
        self,
        positions: npt.NDArray[np.float64],
        spring_length: float,
    ) -> npt.NDArray[np.float64]:
        """
        Sum of repulsion and attraction acting on every node, shape (n, 2).

        Row i of the pairwise arrays describes the forces acting on node i; column j
        the node creating them.
        """
        n = positions.shape[0]

        # delta[i, j] points from node i towards node j
        delta = positions[np.newaxis, :, :] - positions[:, np.newaxis, :]
        distance = np.hypot(delta[..., 0], delta[..., 1])
        bearing = np.arctan2(delta[..., 1], delta[..., 0])

        # Coincident nodes have no geometric bearing; pick a random one so they separate.
        # Both nodes of a pair share the bearing, in opposite directions.
        coincident = np.triu(distance == 0.0, k=1)
        n_coincident = int(np.count_nonzero(coincident))
        if n_coincident:
            angles = self.rng.uniform(0.0, 2.0 * math.pi, size=n_coincident)
            rows, cols = np.nonzero(coincident)
            bearing[rows, cols] = angles
            bearing[cols, rows] = angles + math.pi

        proximity = np.maximum(distance, 1.0)

        # Coulomb's Law: F = k(Qq/r^2), pushing away from the other node
        magnitude = -(self.repulsion / proximity ** 2)
        np.fill_diagonal(magnitude, 0.0)

        # Hooke's Law, pulling only: F = k * max(r - L, 0) along incoming and outgoing edges
        edges = self._edge_counts()
        incident = edges + edges.T
        magnitude += self.attraction * np.maximum(proximity - spring_length, 0.0) * incident

        fx = (magnitude * np.cos(bearing)).sum(axis=1)
        fy = (magnitude * np.sin(bearing)).sum(axis=1)
        return np.column_stack((fx, fy)).reshape(n, 2)

    def _edge_counts(self) -> npt.NDArray[np.float64]:
        """Directed adjacency matrix of the registered nodes (edges to unregistered nodes are ignored)."""
        index = {node: i for i, node in enumerate(self._nodes)}
        edges = np.zeros((len(self._nodes), len(self._nodes)), dtype=np.float64)
        for i, node in enumerate(self._nodes):
            for other in node.iter_connections():
                j = index.get(other)
                if j is not None and j != i:
                    edges[i, j] += 1.0
        return edges

    # ------------------------------------------------------------------------------
    # Framing
    # ------------------------------------------------------------------------------

    def bounds(self) -> Bounds:
        """The box that fits exactly around every node in the diagram."""
        return Bounds.from_points(node.position for node in self._nodes)

    def fit_scale(self, viewport_width: float, viewport_height: float) -> float:
        """Scale factor that fits the diagram into a viewport (1.0 when degenerate)."""
        return self.bounds().fit_scale(viewport_width, viewport_height)
