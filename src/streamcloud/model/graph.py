from __future__ import annotations

import itertools
from typing import Iterator, Optional

from streamcloud.model.geometry_primitives import Vector

_node_ids = itertools.count()


class GraphNode:
    """
    Represents a node in the word cloud layout graph.

    Connections are directed and kept in insertion order. For the purpose of the
    force simulation an edge pulls both of its endpoints.
    """
    def __init__(
        self,
        label: Optional[str] = None,
        position: Vector | None = None,
    ) -> None:
        """
        Initialize the node.

        Args:
            label: Text carried by the node. ``None`` marks the root anchor.
            position: Initial logical position. Defaults to the origin.
        """
        self.uid = next(_node_ids)
        self.label = label
        self.position: Vector = position if position is not None else Vector()
        self.velocity: Vector = Vector()
        self._connections: dict[GraphNode, None] = {}

    def __repr__(self) -> str:
        """String representation of the node."""
        name = "root" if self.is_root else repr(self.label)
        return f"{self.__class__.__name__}(id={self.uid}, {name}, position=({self.x:.2f}, {self.y:.2f}))"

    @property
    def is_root(self) -> bool:
        return self.label is None

    @property
    def x(self) -> float:
        """X-coordinate of the node."""
        return self.position.x

    @property
    def y(self) -> float:
        """Y-coordinate of the node."""
        return self.position.y

    @property
    def connections(self) -> tuple[GraphNode, ...]:
        return tuple(self._connections)

    def iter_connections(self) -> Iterator[GraphNode]:
        return iter(self._connections)

    def connect(self, other: GraphNode) -> bool:
        """
        Add a directed connection to another node.
        Returns False if the connection already exists.
        """
        if other is self:
            raise ValueError("A node cannot connect to itself.")
        if other in self._connections:
            return False
        self._connections[other] = None
        return True

    def disconnect(self, other: GraphNode) -> bool:
        """Remove the connection to another node. Returns False if there was none."""
        return self._connections.pop(other, False) is None

    def is_connected_to(self, other: GraphNode) -> bool:
        return other in self._connections


def create_root_node(position: Vector | None = None) -> GraphNode:
    """The permanent anchor every word node connects to."""
    return GraphNode(label=None, position=position)
