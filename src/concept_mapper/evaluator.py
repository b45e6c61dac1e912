"""
Layout quality evaluator.

Scores a realized canvas by counting three kinds of visual conflict:

  - node/node overlaps (bounding boxes touch or intersect)
  - edge/node overlaps (an edge's straight segment crosses a node it does
    not connect)
  - edge/edge crossings (two edge segments intersect)

Counts are combined with weights 10 / 3 / 1 into a single score; lower is
better and zero means a clean layout.  All checks are pairwise (O(n^2)),
which is fine for concept maps of a few dozen nodes.
"""

from __future__ import annotations

from typing import Optional

from .geometry import Point, Rect, connection_point, rects_overlap, segment_intersect, segment_intersects_rect
from .models import CanvasData, CanvasEdgeData, CanvasNodeData, QualityMetrics


def count_node_overlaps(nodes: list[CanvasNodeData]) -> int:
    """Number of unordered node pairs whose rectangles overlap."""
    rects = [Rect.of(node) for node in nodes]
    count = 0
    for i in range(len(rects)):
        for j in range(i + 1, len(rects)):
            if rects_overlap(rects[i], rects[j]):
                count += 1
    return count


def _edge_segment(
    edge: CanvasEdgeData,
    node_map: dict[str, CanvasNodeData],
) -> Optional[tuple[Point, Point]]:
    from_node = node_map.get(edge.from_node)
    to_node = node_map.get(edge.to_node)
    if from_node is None or to_node is None:
        return None
    return connection_point(from_node, edge.from_side), connection_point(to_node, edge.to_side)


def count_edge_node_overlaps(edges: list[CanvasEdgeData], nodes: list[CanvasNodeData]) -> int:
    """Number of (edge, node) pairs where the edge crosses a node it doesn't connect."""
    node_map = {node.id: node for node in nodes}
    count = 0
    for edge in edges:
        segment = _edge_segment(edge, node_map)
        if segment is None:
            continue
        start, end = segment
        for node in nodes:
            if node.id == edge.from_node or node.id == edge.to_node:
                continue
            if segment_intersects_rect(start, end, Rect.of(node)):
                count += 1
    return count


def _share_endpoint(a: CanvasEdgeData, b: CanvasEdgeData) -> bool:
    """Whether two edges meet at the same side of the same node.

    Compares node id and side only, not resolved coordinates.
    """
    return (
        (a.from_node == b.from_node and a.from_side == b.from_side)
        or (a.to_node == b.to_node and a.to_side == b.to_side)
        or (a.from_node == b.to_node and a.from_side == b.to_side)
        or (a.to_node == b.from_node and a.to_side == b.from_side)
    )


def count_edge_edge_overlaps(edges: list[CanvasEdgeData], nodes: list[CanvasNodeData]) -> int:
    """Number of unordered edge pairs whose segments intersect."""
    node_map = {node.id: node for node in nodes}
    segments = [_edge_segment(edge, node_map) for edge in edges]
    count = 0
    for i in range(len(edges)):
        if segments[i] is None:
            continue
        for j in range(i + 1, len(edges)):
            if _share_endpoint(edges[i], edges[j]):
                continue
            if segments[j] is None:
                continue
            if segment_intersect(*segments[i], *segments[j]):
                count += 1
    return count


class LayoutEvaluator:
    """Computes ``QualityMetrics`` for a canvas snapshot."""

    def evaluate(self, data: CanvasData) -> QualityMetrics:
        return QualityMetrics.from_counts(
            node_overlaps=count_node_overlaps(data.nodes),
            edge_node_overlaps=count_edge_node_overlaps(data.edges, data.nodes),
            edge_edge_overlaps=count_edge_edge_overlaps(data.edges, data.nodes),
        )
