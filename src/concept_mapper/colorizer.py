"""
Level colorizer — colors nodes by their distance from the central entity.

The relationship graph is treated as undirected with unit edge weights, so
an entity's level is its shortest hop count from the central (first) entity.
Entities that cannot be reached have no level and get a distinct gray.
"""

from __future__ import annotations

from collections import deque
from typing import Optional

from .models import ConceptMapData
from .themes import LEVEL_COLORS, OVERFLOW_LEVEL_COLOR, UNLEVELED_NODE_COLOR


def calculate_node_levels(data: ConceptMapData) -> dict[str, int]:
    """Breadth-first distances from the central entity.

    Unreachable entities are absent from the result.
    """
    central_id = data.central_entity.id
    levels: dict[str, int] = {central_id: 0}

    graph: dict[str, list[str]] = {entity.id: [] for entity in data.entities}
    for rel in data.relationships:
        graph.setdefault(rel.source_id, []).append(rel.target_id)
        graph.setdefault(rel.target_id, []).append(rel.source_id)

    queue = deque([central_id])
    while queue:
        current = queue.popleft()
        for neighbor in graph.get(current, []):
            if neighbor not in levels:
                levels[neighbor] = levels[current] + 1
                queue.append(neighbor)

    # Relationships may name ids that are not entities; those never get a level
    entity_ids = {entity.id for entity in data.entities}
    return {node_id: lvl for node_id, lvl in levels.items() if node_id in entity_ids}


def get_node_color(level: Optional[int]) -> str:
    """Palette color for a level; ``None`` means unreachable."""
    if level is None:
        return UNLEVELED_NODE_COLOR
    if 0 <= level < len(LEVEL_COLORS):
        return LEVEL_COLORS[level]
    return OVERFLOW_LEVEL_COLOR
