"""
Layout generator — one concept-map drawing pass for one algorithm.

Steps:
1. Ask the layout engine for raw node centers
2. Recenter them on the bounding box center of all raw positions
3. Convert centers to top-left corners and stretch x
4. Snap to the grid
5. Create a node per entity (optionally colored by BFS level)
6. Rebuild side usage, then create an edge per relationship

Failures to create a node or an edge are logged and skipped; the pass
itself only fails when the layout engine does.
"""

from __future__ import annotations

import logging
import math
import random
from typing import Optional

from .canvas import Canvas, CanvasHelper
from .colorizer import calculate_node_levels, get_node_color
from .config import GRID_SPACING, HORIZONTAL_STRETCH_FACTOR, LAYOUT_ALGORITHMS, AlgorithmConfig
from .engines import LayoutEngine, RawPositions, build_layout_graph, compute_layout
from .models import ConceptMapData, NodeSize, Position

logger = logging.getLogger(__name__)


def recenter_positions(raw: RawPositions) -> RawPositions:
    """Shift positions so their bounding box is centered on the origin."""
    if not raw:
        return {}
    xs = [pos[0] for pos in raw.values()]
    ys = [pos[1] for pos in raw.values()]
    center_x = (min(xs) + max(xs)) / 2
    center_y = (min(ys) + max(ys)) / 2
    return {node_id: (x - center_x, y - center_y) for node_id, (x, y) in raw.items()}


def centers_to_top_left(
    centered: RawPositions,
    node_sizes: dict[str, NodeSize],
    default_size: NodeSize,
    stretch_factor: float = HORIZONTAL_STRETCH_FACTOR,
) -> dict[str, Position]:
    positions: dict[str, Position] = {}
    for node_id, (x, y) in centered.items():
        size = node_sizes.get(node_id)
        if size is None:
            logger.warning(
                f"No size found for node {node_id}. Default size will be used "
                "for converting center coordinates to top-left coordinates."
            )
            size = default_size
        positions[node_id] = Position(
            x=(x - size.width / 2) * stretch_factor,
            y=y - size.height / 2,
        )
    return positions


def _snap(value: float, spacing: float) -> float:
    # Round half up
    return math.floor(value / spacing + 0.5) * spacing


def align_to_grid(positions: dict[str, Position], spacing: float = GRID_SPACING) -> dict[str, Position]:
    if spacing <= 0:
        logger.debug("Grid spacing is not positive. Skipping alignment.")
        return positions
    return {
        node_id: Position(x=_snap(pos.x, spacing), y=_snap(pos.y, spacing))
        for node_id, pos in positions.items()
    }


class LayoutGenerator:
    """Draws a concept map onto a canvas using one layout algorithm."""

    def __init__(
        self,
        helper: Optional[CanvasHelper] = None,
        algorithms: Optional[dict[str, AlgorithmConfig]] = None,
        engines: Optional[dict[str, LayoutEngine]] = None,
        grid_spacing: float = GRID_SPACING,
        stretch_factor: float = HORIZONTAL_STRETCH_FACTOR,
        rng: Optional[random.Random] = None,
    ):
        self.helper = helper or CanvasHelper()
        self.algorithms = algorithms if algorithms is not None else LAYOUT_ALGORITHMS
        self.engines = engines
        self.grid_spacing = grid_spacing
        self.stretch_factor = stretch_factor
        self.rng = rng or random.Random()

    def calculate_node_positions(
        self,
        data: ConceptMapData,
        node_sizes: dict[str, NodeSize],
        default_size: NodeSize,
        algorithm: str,
    ) -> dict[str, Position]:
        graph = build_layout_graph(data)
        config = self.algorithms.get(algorithm, AlgorithmConfig())
        seed = self.rng.randrange(2**32)

        raw = compute_layout(graph, algorithm, config.options, seed=seed, engines=self.engines)
        if not raw:
            logger.error(f"Layout algorithm {algorithm} did not return any node positions.")
            return {}

        centered = recenter_positions(raw)
        positions = centers_to_top_left(centered, node_sizes, default_size, self.stretch_factor)
        return align_to_grid(positions, self.grid_spacing)

    def generate(
        self,
        canvas: Canvas,
        data: ConceptMapData,
        node_sizes: dict[str, NodeSize],
        algorithm: str,
        colored_nodes: bool = True,
        colored_edges: bool = True,
    ) -> dict[str, str]:
        """Run one pass. Returns the entity id -> canvas node id map."""
        default_size = canvas.default_node_size
        positions = self.calculate_node_positions(data, node_sizes, default_size, algorithm)
        levels = calculate_node_levels(data)

        node_map: dict[str, str] = {}

        for entity in data.entities:
            pos = positions.get(entity.id)
            if pos is None:
                logger.error(f"No position found for entity: {entity.name}. Node will not be created.")
                continue

            size = node_sizes.get(entity.id)
            if size is None:
                logger.warning(f"No size found for entity: {entity.name}. Default size will be used for node creation.")
                size = default_size

            color = get_node_color(levels.get(entity.id)) if colored_nodes else None

            node = self.helper.create_text_node(canvas, pos, entity, size, color)
            if node is not None:
                node_map[entity.id] = node.id
            else:
                logger.error(f"Failed to create node for entity: {entity.name}")

        self.helper.start_edge_pass(canvas)

        for rel in data.relationships:
            from_node_id = node_map.get(rel.source_id)
            to_node_id = node_map.get(rel.target_id)
            if from_node_id and to_node_id:
                self.helper.create_edge(canvas, from_node_id, to_node_id, rel, colored_edges)
            else:
                logger.error(f"Could not find nodes for relationship: {rel.source_id} -> {rel.target_id}")

        return node_map
