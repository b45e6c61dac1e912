"""
Layout engines — the pluggable force-directed layout capability.

Each engine is a plain function ``(graph, options, seed) -> positions``
returning the *center* of every node in the engine's own coordinate
system.  Engines are looked up by tag in ``LAYOUT_ENGINES``; the generator
never depends on which one it is driving.

    spring        Fruchterman-Reingold from a random start
    kamada-kawai  path-length spring model from a random start
    layered       BFS layers laid out as columns (deterministic)

``options`` comes from ``config.LAYOUT_ALGORITHMS`` and is passed through to
networkx; ``seed`` makes a randomized run reproducible.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Callable, Optional

import networkx as nx

from .errors import LayoutEngineError, UnknownAlgorithmError
from .models import ConceptMapData

logger = logging.getLogger(__name__)

RawPositions = dict[str, tuple[float, float]]
LayoutEngine = Callable[[nx.Graph, dict[str, Any], Optional[int]], RawPositions]


def build_layout_graph(data: ConceptMapData) -> nx.Graph:
    """Undirected graph over entity ids; relationships to unknown ids are dropped."""
    graph = nx.Graph()
    for entity in data.entities:
        graph.add_node(entity.id, name=entity.name)
    for rel in data.relationships:
        if rel.source_id in graph and rel.target_id in graph:
            graph.add_edge(rel.source_id, rel.target_id)
    return graph


def _as_positions(layout: dict) -> RawPositions:
    return {str(node_id): (float(pos[0]), float(pos[1])) for node_id, pos in layout.items()}


def _random_start(graph: nx.Graph, seed: Optional[int]) -> dict[str, tuple[float, float]]:
    rng = random.Random(seed)
    return {node_id: (rng.random(), rng.random()) for node_id in graph.nodes}


def spring_engine(graph: nx.Graph, options: dict[str, Any], seed: Optional[int]) -> RawPositions:
    layout = nx.spring_layout(
        graph,
        k=options.get("k"),
        iterations=options.get("iterations", 50),
        threshold=options.get("threshold", 1e-4),
        scale=options.get("scale", 1),
        seed=seed,
    )
    return _as_positions(layout)


def kamada_kawai_engine(graph: nx.Graph, options: dict[str, Any], seed: Optional[int]) -> RawPositions:
    if graph.number_of_nodes() == 1:
        return {node_id: (0.0, 0.0) for node_id in graph.nodes}
    layout = nx.kamada_kawai_layout(
        graph,
        pos=_random_start(graph, seed),
        scale=options.get("scale", 1),
    )
    return _as_positions(layout)


def layered_engine(graph: nx.Graph, options: dict[str, Any], seed: Optional[int]) -> RawPositions:
    """Columns of nodes by BFS depth from the first node.

    Nodes unreachable from the first node go in one extra trailing layer.
    """
    nodes = list(graph.nodes)
    if not nodes:
        return {}

    depths = nx.single_source_shortest_path_length(graph, nodes[0])
    trailing = max(depths.values()) + 1
    layered = nx.Graph()
    # Insert in layer order so columns run left to right
    for node_id in sorted(nodes, key=lambda n: depths.get(n, trailing)):
        layered.add_node(node_id, layer=depths.get(node_id, trailing))
    layered.add_edges_from(graph.edges)

    layout = nx.multipartite_layout(
        layered,
        subset_key="layer",
        align=options.get("align", "vertical"),
        scale=options.get("scale", 1),
    )
    return _as_positions(layout)


LAYOUT_ENGINES: dict[str, LayoutEngine] = {
    "spring": spring_engine,
    "kamada-kawai": kamada_kawai_engine,
    "layered": layered_engine,
}


def compute_layout(
    graph: nx.Graph,
    algorithm: str,
    options: dict[str, Any],
    seed: Optional[int] = None,
    engines: Optional[dict[str, LayoutEngine]] = None,
) -> RawPositions:
    """Run the engine registered under ``algorithm``.

    Raises:
        UnknownAlgorithmError: No engine is registered under that tag.
        LayoutEngineError: The engine itself failed.
    """
    registry = LAYOUT_ENGINES if engines is None else engines
    engine = registry.get(algorithm)
    if engine is None:
        raise UnknownAlgorithmError(algorithm, list(registry))

    try:
        return engine(graph, options, seed)
    except LayoutEngineError:
        raise
    except Exception as e:
        raise LayoutEngineError(algorithm, str(e)) from e
