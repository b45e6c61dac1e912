"""Shared fixtures: small concept maps and deterministic layout engines."""

from __future__ import annotations

import pytest

from concept_mapper.canvas import Canvas, Workspace
from concept_mapper.config import AlgorithmConfig, ConceptMapperSettings
from concept_mapper.concept_maps import ConceptMapCreator
from concept_mapper.generator import LayoutGenerator
from concept_mapper.models import CanvasNodeData, ConceptMapData, Entity, Relationship


def fixed_engine(centers: dict[str, tuple[float, float]]):
    """Engine that always returns ``centers``."""
    def engine(graph, options, seed):
        return {node_id: centers[node_id] for node_id in graph.nodes}
    return engine


def sequence_engine(layouts: list[dict[str, tuple[float, float]]]):
    """Engine returning the given layouts in turn (last one repeats)."""
    calls = []

    def engine(graph, options, seed):
        layout = layouts[min(len(calls), len(layouts) - 1)]
        calls.append(seed)
        return {node_id: layout[node_id] for node_id in graph.nodes}

    engine.calls = calls
    return engine


def node(node_id: str, x: float, y: float, width: float = 10, height: float = 10) -> CanvasNodeData:
    return CanvasNodeData(id=node_id, x=x, y=y, width=width, height=height)


@pytest.fixture
def star_map() -> ConceptMapData:
    """A central entity with two related entities, both edges from the center."""
    return ConceptMapData(
        entities=[
            Entity(id="c", name="Photosynthesis", explanation="Light to sugar"),
            Entity(id="a", name="Chlorophyll", explanation="Green pigment"),
            Entity(id="b", name="Glucose", explanation="A sugar"),
        ],
        relationships=[
            Relationship(source_id="c", target_id="a", label="depends on"),
            Relationship(source_id="c", target_id="b", label="produces"),
        ],
    )


# Centers that give the star map a clean layout: ``a`` to the right, ``b`` below
STAR_CLEAN = {"c": (0.0, 0.0), "a": (400.0, 0.0), "b": (0.0, 300.0)}

# Every node on the same spot
STAR_PILED = {"c": (0.0, 0.0), "a": (0.0, 0.0), "b": (0.0, 0.0)}


@pytest.fixture
def workspace(tmp_path) -> Workspace:
    ws = Workspace()
    ws.open(tmp_path / "map.canvas")
    return ws


def make_creator(
    workspace: Workspace,
    engines: dict,
    iterations: dict[str, int] | None = None,
    **settings,
) -> ConceptMapCreator:
    iterations = iterations or {}
    algorithms = {
        name: AlgorithmConfig(iterations=iterations.get(name, 1)) for name in engines
    }
    settings.setdefault("primary_algorithm", next(iter(engines)))
    settings.setdefault("grid_spacing", 0)
    config = ConceptMapperSettings(**settings)
    generator = LayoutGenerator(algorithms=algorithms, engines=engines)
    return ConceptMapCreator(
        workspace,
        get_settings=lambda: config,
        generator=generator,
        algorithms=algorithms,
    )


@pytest.fixture
def canvas() -> Canvas:
    return Canvas()
