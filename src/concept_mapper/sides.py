"""
Node side optimizer — picks which side of each node an edge attaches to.

For every node the optimizer remembers the sides already used by incoming
and by outgoing edges.  A new edge gets the side pair that matches the
direction between the two node centers; if that side of the source node
already receives an incoming edge (or that side of the target already
emits an outgoing one) the nearest free side by angle is used instead.

The bookkeeping is scoped to one generation pass: call ``reset`` with the
pass's node set before creating its edges.
"""

from __future__ import annotations

import math
from typing import Iterable

from .geometry import node_center
from .models import SIDES, CanvasEdgeData, CanvasNodeData, Side


# Canonical direction of each side, in canvas coordinates (y grows downward)
SIDE_ANGLES: dict[Side, float] = {
    "right": 0.0,
    "bottom": math.pi / 2,
    "left": math.pi,
    "top": 3 * math.pi / 2,
}


def preferred_sides(angle: float) -> tuple[Side, Side]:
    """Side pair for a travel angle in radians, as returned by ``atan2``."""
    if -math.pi / 4 < angle <= math.pi / 4:
        return "right", "left"
    if math.pi / 4 < angle <= 3 * math.pi / 4:
        return "bottom", "top"
    if angle > 3 * math.pi / 4 or angle <= -3 * math.pi / 4:
        return "left", "right"
    return "top", "bottom"


def closest_side(angle: float, available: list[Side]) -> Side:
    """The side in ``available`` whose direction is nearest to ``angle``.

    Ties keep the earliest side in ``available``.
    """
    angle = angle % (2 * math.pi)

    def distance(side: Side) -> float:
        diff = abs(angle - SIDE_ANGLES[side])
        if diff > math.pi:
            diff = 2 * math.pi - diff
        return diff

    best = available[0]
    for side in available[1:]:
        if distance(side) < distance(best):
            best = side
    return best


class NodeSideOptimizer:
    """Tracks used sides per node and chooses sides for new edges."""

    def __init__(self):
        self._incoming: dict[str, set[Side]] = {}
        self._outgoing: dict[str, set[Side]] = {}

    def reset(self, node_ids: Iterable[str], edges: Iterable[CanvasEdgeData] = ()) -> None:
        """Start a new pass over ``node_ids``, seeding usage from existing ``edges``."""
        self._incoming = {node_id: set() for node_id in node_ids}
        self._outgoing = {node_id: set() for node_id in self._incoming}
        for edge in edges:
            self.record_edge(edge.from_node, edge.to_node, edge.from_side, edge.to_side)

    def record_edge(self, from_id: str, to_id: str, from_side: Side, to_side: Side) -> None:
        if from_id in self._outgoing:
            self._outgoing[from_id].add(from_side)
        if to_id in self._incoming:
            self._incoming[to_id].add(to_side)

    def incoming_sides(self, node_id: str) -> frozenset[Side]:
        return frozenset(self._incoming.get(node_id, ()))

    def outgoing_sides(self, node_id: str) -> frozenset[Side]:
        return frozenset(self._outgoing.get(node_id, ()))

    def choose_sides(self, from_node: CanvasNodeData, to_node: CanvasNodeData) -> tuple[Side, Side]:
        """Sides for an edge ``from_node -> to_node``. Does not record them."""
        start = node_center(from_node)
        end = node_center(to_node)
        angle = math.atan2(end.y - start.y, end.x - start.x)

        from_side, to_side = preferred_sides(angle)

        from_incoming = self._incoming.get(from_node.id, set())
        if from_side in from_incoming:
            available = [side for side in SIDES if side not in from_incoming]
            if available:
                from_side = closest_side(angle, available)

        to_outgoing = self._outgoing.get(to_node.id, set())
        if to_side in to_outgoing:
            available = [side for side in SIDES if side not in to_outgoing]
            if available:
                to_side = closest_side(angle + math.pi, available)

        return from_side, to_side
