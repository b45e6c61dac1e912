"""Geometric predicates used to score layouts."""

from __future__ import annotations

from dataclasses import dataclass

from .models import CanvasNodeData, Side


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle given by its top-left corner and size."""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def of(cls, node: CanvasNodeData) -> "Rect":
        return cls(node.x, node.y, node.width, node.height)

    def sides(self) -> list[tuple[Point, Point]]:
        """The four boundary segments: top, right, bottom, left."""
        x1, y1 = self.x, self.y
        x2, y2 = self.x + self.width, self.y + self.height
        return [
            (Point(x1, y1), Point(x2, y1)),
            (Point(x2, y1), Point(x2, y2)),
            (Point(x1, y2), Point(x2, y2)),
            (Point(x1, y1), Point(x1, y2)),
        ]


def segment_intersect(p1: Point, p2: Point, p3: Point, p4: Point) -> bool:
    """Whether segment p1-p2 intersects segment p3-p4.

    Parallel (and collinear) segments never intersect.  Touching at an
    endpoint counts as an intersection.
    """
    d = (p4.y - p3.y) * (p2.x - p1.x) - (p4.x - p3.x) * (p2.y - p1.y)
    if d == 0:
        return False

    ua = ((p4.x - p3.x) * (p1.y - p3.y) - (p4.y - p3.y) * (p1.x - p3.x)) / d
    ub = ((p2.x - p1.x) * (p1.y - p3.y) - (p2.y - p1.y) * (p1.x - p3.x)) / d

    return 0 <= ua <= 1 and 0 <= ub <= 1


def segment_intersects_rect(p1: Point, p2: Point, rect: Rect) -> bool:
    """Whether the segment crosses any of the rectangle's boundary segments.

    A segment lying entirely inside the rectangle does not count.
    """
    return any(segment_intersect(p1, p2, a, b) for a, b in rect.sides())


def rects_overlap(a: Rect, b: Rect) -> bool:
    """AABB overlap test. Rectangles that only touch still overlap."""
    return not (
        a.x + a.width < b.x
        or a.x > b.x + b.width
        or a.y + a.height < b.y
        or a.y > b.y + b.height
    )


def connection_point(node: CanvasNodeData, side: Side) -> Point:
    """Midpoint of the node edge named by ``side``."""
    if side == "top":
        return Point(node.x + node.width / 2, node.y)
    if side == "right":
        return Point(node.x + node.width, node.y + node.height / 2)
    if side == "bottom":
        return Point(node.x + node.width / 2, node.y + node.height)
    if side == "left":
        return Point(node.x, node.y + node.height / 2)
    raise ValueError(f"Unknown side: {side}")


def node_center(node: CanvasNodeData) -> Point:
    return Point(node.x + node.width / 2, node.y + node.height / 2)
