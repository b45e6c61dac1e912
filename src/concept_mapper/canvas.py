"""
Host canvas — an in-process canvas document store.

``Canvas`` keeps the nodes and edges of one ``.canvas`` document keyed by
id, in insertion order.  The layout engine talks to it only through the
small contract below:

    default_node_size       host default text-node dimensions
    create_text_node        place a text node, returns it (or None)
    set_node_color / set_node_field
    add_edge                returns False when an endpoint is missing
    get_data / set_data     read / atomically replace the full state
    request_save            persist to ``path`` (no-op without one)

``Workspace`` tracks open documents and which one is active; a document's
identity is its path.  ``CanvasHelper`` is the layout-side adapter that
turns entities and relationships into canvas records.
"""

from __future__ import annotations

import logging
import math
import uuid
from pathlib import Path
from typing import Optional

from .config import DEFAULT_NODE_HEIGHT, DEFAULT_NODE_WIDTH, LABEL_WRAP_LENGTH
from .models import (
    CanvasData,
    CanvasEdgeData,
    CanvasNodeData,
    Entity,
    NodeSize,
    Position,
    Relationship,
)
from .parser import canvas_to_json, parse_canvas_document
from .sides import NodeSideOptimizer
from .themes import EDGE_COLOR

logger = logging.getLogger(__name__)


def random_id(length: int = 16) -> str:
    """Random lowercase hex id, as the host uses for nodes and edges."""
    return uuid.uuid4().hex[:length]


class Canvas:
    """One canvas document."""

    def __init__(
        self,
        path: Optional[str | Path] = None,
        default_node_size: Optional[NodeSize] = None,
    ):
        self.path: Optional[Path] = Path(path) if path is not None else None
        self.default_node_size = default_node_size or NodeSize(
            width=DEFAULT_NODE_WIDTH, height=DEFAULT_NODE_HEIGHT
        )
        self.nodes: dict[str, CanvasNodeData] = {}
        self.edges: dict[str, CanvasEdgeData] = {}
        self.save_count = 0

    @property
    def identity(self) -> Optional[str]:
        return str(self.path) if self.path is not None else None

    def is_empty(self) -> bool:
        return not self.nodes and not self.edges

    # --- Nodes ---

    def create_text_node(self, text: str, pos: Position, size: NodeSize) -> Optional[CanvasNodeData]:
        """Place a text node with its top-left corner at ``pos``.

        Returns None when the position is not finite.
        """
        if not (math.isfinite(pos.x) and math.isfinite(pos.y)):
            return None
        node = CanvasNodeData(
            id=random_id(),
            text=text,
            x=pos.x,
            y=pos.y,
            width=size.width,
            height=size.height,
        )
        self.nodes[node.id] = node
        return node

    def set_node_color(self, node_id: str, color: str) -> bool:
        return self.set_node_field(node_id, "color", color)

    def set_node_field(self, node_id: str, name: str, value) -> bool:
        node = self.nodes.get(node_id)
        if node is None:
            return False
        setattr(node, name, value)
        return True

    def remove_node(self, node_id: str) -> None:
        """Remove a node together with every edge attached to it."""
        self.nodes.pop(node_id, None)
        for edge_id in [e.id for e in self.edges.values() if node_id in (e.from_node, e.to_node)]:
            del self.edges[edge_id]

    # --- Edges ---

    def add_edge(self, edge: CanvasEdgeData) -> bool:
        if edge.from_node not in self.nodes or edge.to_node not in self.nodes:
            return False
        self.edges[edge.id] = edge
        return True

    def remove_edge(self, edge_id: str) -> None:
        self.edges.pop(edge_id, None)

    # --- Whole document ---

    def get_data(self) -> CanvasData:
        """A deep copy of the current state."""
        return CanvasData(
            nodes=[node.model_copy(deep=True) for node in self.nodes.values()],
            edges=[edge.model_copy(deep=True) for edge in self.edges.values()],
        )

    def set_data(self, data: CanvasData) -> None:
        """Replace the full state with a copy of ``data``."""
        self.nodes = {node.id: node.model_copy(deep=True) for node in data.nodes}
        self.edges = {edge.id: edge.model_copy(deep=True) for edge in data.edges}

    def clear(self) -> None:
        self.nodes = {}
        self.edges = {}

    def request_save(self) -> None:
        """Write the document as JSON Canvas to ``path``, if it has one."""
        self.save_count += 1
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(canvas_to_json(self.get_data()))


class Workspace:
    """The set of open canvas documents and the active one."""

    def __init__(self):
        self._documents: dict[str, Canvas] = {}
        self._active: Optional[Canvas] = None

    @property
    def active(self) -> Optional[Canvas]:
        return self._active

    def open(self, path: str | Path) -> Canvas:
        """Activate the document at ``path``, loading it from disk on first open."""
        key = str(Path(path))
        canvas = self._documents.get(key)
        if canvas is None:
            canvas = Canvas(path)
            if canvas.path.exists():
                canvas.set_data(parse_canvas_document(canvas.path.read_text()))
            self._documents[key] = canvas
        self._active = canvas
        return canvas

    def add(self, canvas: Canvas, activate: bool = True) -> Canvas:
        key = canvas.identity or f"untitled-{id(canvas)}"
        self._documents[key] = canvas
        if activate:
            self._active = canvas
        return canvas


def format_text_with_line_breaks(text: str, max_length: int) -> str:
    """Greedy word wrap: break between words so no line exceeds ``max_length``.

    A single word longer than ``max_length`` stays on its own line.
    """
    lines: list[str] = []
    current = ""

    for word in text.split(" "):
        if current and len(current) + len(word) + 1 > max_length:
            lines.append(current)
            current = word
        elif current:
            current += " " + word
        else:
            current = word

    if current:
        lines.append(current)

    return "\n".join(lines)


def wrap_edge_label(label: str, max_length: int = LABEL_WRAP_LENGTH) -> str:
    if label and " " in label and len(label) > max_length:
        return format_text_with_line_breaks(label, max_length)
    return label


class CanvasHelper:
    """Creates concept-map nodes and edges on a canvas.

    Owns the ``NodeSideOptimizer`` for the current generation pass.
    """

    def __init__(self, side_optimizer: Optional[NodeSideOptimizer] = None):
        self.side_optimizer = side_optimizer or NodeSideOptimizer()

    def create_text_node(
        self,
        canvas: Canvas,
        pos: Position,
        entity: Entity,
        size: NodeSize,
        color: Optional[str] = None,
    ) -> Optional[CanvasNodeData]:
        node = canvas.create_text_node(entity.name, pos, size)
        if node is None:
            return None

        canvas.set_node_field(node.id, "explanation", entity.explanation)
        if color:
            canvas.set_node_color(node.id, color)
        return node

    def start_edge_pass(self, canvas: Canvas) -> None:
        """Rebuild side usage from the live canvas state."""
        self.side_optimizer.reset(canvas.nodes.keys(), canvas.edges.values())

    def create_edge(
        self,
        canvas: Canvas,
        from_node_id: str,
        to_node_id: str,
        relationship: Relationship,
        colored: bool = False,
    ) -> Optional[CanvasEdgeData]:
        from_node = canvas.nodes.get(from_node_id)
        to_node = canvas.nodes.get(to_node_id)
        if from_node is None or to_node is None:
            logger.error(f"Cannot create edge. Node not found. From: {from_node_id}, To: {to_node_id}")
            return None

        from_side, to_side = self.side_optimizer.choose_sides(from_node, to_node)
        self.side_optimizer.record_edge(from_node_id, to_node_id, from_side, to_side)

        edge = CanvasEdgeData(
            id=random_id(),
            from_node=from_node_id,
            from_side=from_side,
            to_node=to_node_id,
            to_side=to_side,
            label=wrap_edge_label(relationship.label),
            explanation=relationship.explanation,
            color=EDGE_COLOR if colored else None,
        )
        if not canvas.add_edge(edge):
            logger.error(f"Host rejected edge {from_node_id} -> {to_node_id}")
            return None
        return edge

    def clear_canvas(self, canvas: Canvas) -> None:
        canvas.clear()
        canvas.request_save()
