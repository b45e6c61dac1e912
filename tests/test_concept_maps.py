"""Tests for candidate search, layout application and layout switching."""

from __future__ import annotations

import asyncio

import pytest

from concept_mapper.canvas import Workspace
from concept_mapper.client import StaticSource
from concept_mapper.concept_maps import ConceptMapCreator, HasCandidates, Idle
from concept_mapper.config import ConceptMapperSettings
from concept_mapper.errors import (
    CanvasNotEmptyError,
    LayoutSearchError,
    NoLayoutsError,
    UnknownAlgorithmError,
)
from concept_mapper.models import CanvasNodeData, Position, NodeSize
from concept_mapper.parser import parse_canvas_document

from conftest import STAR_CLEAN, STAR_PILED, fixed_engine, make_creator, sequence_engine

STAR_MIRRORED = {"c": (0.0, 0.0), "a": (-400.0, 0.0), "b": (0.0, 300.0)}


def _node_by_text(canvas, text: str) -> CanvasNodeData:
    return next(node for node in canvas.nodes.values() if node.text == text)


def test_search_keeps_lowest_score(workspace, star_map):
    engine = sequence_engine([STAR_PILED, STAR_CLEAN, STAR_PILED])
    creator = make_creator(workspace, {"fixed": engine}, iterations={"fixed": 3})

    (candidate,) = creator.create_concept_map(star_map)

    assert len(engine.calls) == 3
    assert candidate.algorithm == "fixed"
    assert candidate.metrics.weighted_score == 0
    assert workspace.active.get_data() == candidate.snapshot


def test_search_keeps_first_on_ties(workspace, star_map):
    engine = sequence_engine([STAR_CLEAN, STAR_MIRRORED])
    creator = make_creator(workspace, {"fixed": engine}, iterations={"fixed": 2})

    creator.create_concept_map(star_map)

    assert _node_by_text(workspace.active, "Chlorophyll").x > 0


def test_piled_layout_is_penalized(workspace, star_map):
    creator = make_creator(workspace, {"fixed": fixed_engine(STAR_PILED)})

    (candidate,) = creator.create_concept_map(star_map)

    assert candidate.metrics.node_overlaps == 3
    assert candidate.metrics.weighted_score >= 30


def test_selection_disabled_runs_once(workspace, star_map):
    engine = sequence_engine([STAR_CLEAN])
    creator = make_creator(
        workspace, {"fixed": engine}, iterations={"fixed": 5}, best_layout_selection=False
    )

    creator.create_concept_map(star_map)

    assert len(engine.calls) == 1


def test_result_is_saved_to_document(workspace, star_map):
    creator = make_creator(workspace, {"fixed": fixed_engine(STAR_CLEAN)})

    creator.create_concept_map(star_map)

    canvas = workspace.active
    saved = parse_canvas_document(canvas.path.read_text())
    assert len(saved.nodes) == 3
    assert len(saved.edges) == 2
    assert saved == canvas.get_data()


def test_refuses_non_empty_canvas(workspace, star_map):
    workspace.active.create_text_node("Existing", Position(x=0, y=0), NodeSize(width=10, height=10))
    creator = make_creator(workspace, {"fixed": fixed_engine(STAR_CLEAN)})

    with pytest.raises(CanvasNotEmptyError):
        creator.create_concept_map(star_map)

    assert len(workspace.active.nodes) == 1


def test_failing_engine_raises_and_clears(workspace, star_map):
    def broken(graph, options, seed):
        raise RuntimeError("did not converge")

    creator = make_creator(workspace, {"broken": broken}, iterations={"broken": 3})

    with pytest.raises(LayoutSearchError, match="broken"):
        creator.create_concept_map(star_map)

    assert workspace.active.is_empty()
    assert isinstance(creator.state, Idle)


def test_failed_iterations_are_skipped(workspace, star_map):
    calls = []

    def flaky(graph, options, seed):
        calls.append(seed)
        if len(calls) == 1:
            raise RuntimeError("bad start")
        return {node_id: STAR_CLEAN[node_id] for node_id in graph.nodes}

    creator = make_creator(workspace, {"flaky": flaky}, iterations={"flaky": 2})

    (candidate,) = creator.create_concept_map(star_map)

    assert len(calls) == 2
    assert candidate.metrics.weighted_score == 0


def test_unknown_algorithm_fails_the_request(workspace, star_map):
    creator = make_creator(
        workspace, {"fixed": fixed_engine(STAR_CLEAN)}, primary_algorithm="nope"
    )

    with pytest.raises(UnknownAlgorithmError):
        creator.create_concept_map(star_map)

    assert workspace.active.is_empty()


def test_algorithm_order_puts_primary_first(workspace):
    engines = {name: fixed_engine(STAR_CLEAN) for name in ("one", "two", "three")}
    creator = make_creator(workspace, engines)

    settings = ConceptMapperSettings(primary_algorithm="two", multiple_layout_algorithms=True)
    assert creator.algorithm_order(settings) == ["two", "one", "three"]

    settings = ConceptMapperSettings(primary_algorithm="two")
    assert creator.algorithm_order(settings) == ["two"]


# --- Rotation ---

@pytest.fixture
def two_layouts(workspace, star_map) -> ConceptMapCreator:
    creator = make_creator(
        workspace,
        {"clean": fixed_engine(STAR_CLEAN), "piled": fixed_engine(STAR_PILED)},
        multiple_layout_algorithms=True,
    )
    creator.create_concept_map(star_map)
    return creator


def test_multiple_algorithms_give_alternates(two_layouts, workspace):
    state = two_layouts.state
    assert isinstance(state, HasCandidates)
    assert [c.algorithm for c in state.candidates] == ["clean", "piled"]
    assert state.index == 0
    assert two_layouts.has_alternate_layouts(workspace.active.identity)
    assert workspace.active.get_data() == state.candidates[0].snapshot


def test_rotate_layout_cycles(two_layouts, workspace):
    canvas = workspace.active
    saves = canvas.save_count

    assert two_layouts.rotate_layout().algorithm == "piled"
    assert canvas.get_data() == two_layouts.state.candidates[1].snapshot
    assert canvas.save_count == saves + 1

    assert two_layouts.rotate_layout().algorithm == "clean"
    assert canvas.get_data() == two_layouts.state.candidates[0].snapshot


def test_no_alternates_for_other_document(two_layouts, tmp_path):
    assert not two_layouts.has_alternate_layouts(str(tmp_path / "other.canvas"))
    assert not two_layouts.has_alternate_layouts(None)


def test_rotate_refused_on_other_document(two_layouts, workspace, tmp_path):
    workspace.open(tmp_path / "other.canvas")

    with pytest.raises(NoLayoutsError):
        two_layouts.rotate_layout()


def test_single_candidate_has_no_alternates(workspace, star_map):
    creator = make_creator(workspace, {"fixed": fixed_engine(STAR_CLEAN)})
    creator.create_concept_map(star_map)

    assert not creator.has_alternate_layouts(workspace.active.identity)


def test_rotate_without_layouts(workspace):
    creator = make_creator(workspace, {"fixed": fixed_engine(STAR_CLEAN)})

    assert not creator.has_alternate_layouts(workspace.active.identity)
    with pytest.raises(NoLayoutsError):
        creator.rotate_layout()


def test_new_generation_discards_candidates(two_layouts, workspace, star_map):
    workspace.active.clear()
    two_layouts.get_settings().multiple_layout_algorithms = False

    two_layouts.create_concept_map(star_map)

    assert len(two_layouts.state.candidates) == 1


def test_has_candidates_validates():
    with pytest.raises(ValueError):
        HasCandidates((), 0, None)


# --- Full request ---

async def test_generate_from_source(workspace, star_map):
    creator = make_creator(workspace, {"fixed": fixed_engine(STAR_CLEAN)})
    creator.source = StaticSource(star_map)

    outcome = await creator.generate("Photosynthesis")

    assert outcome.success
    assert len(outcome.candidates) == 1
    assert len(workspace.active.nodes) == 3


async def test_generate_reports_non_empty_canvas(workspace, star_map):
    workspace.active.create_text_node("Existing", Position(x=0, y=0), NodeSize(width=10, height=10))
    creator = make_creator(workspace, {"fixed": fixed_engine(STAR_CLEAN)})
    creator.source = StaticSource(star_map)

    outcome = await creator.generate("Photosynthesis")

    assert not outcome.success
    assert "empty" in outcome.message


async def test_generate_without_source(workspace):
    creator = make_creator(workspace, {"fixed": fixed_engine(STAR_CLEAN)})

    outcome = await creator.generate("Photosynthesis")

    assert not outcome.success


async def test_generate_without_open_canvas(star_map):
    creator = ConceptMapCreator(Workspace(), source=StaticSource(star_map))

    outcome = await creator.generate("Photosynthesis")

    assert not outcome.success
    assert "open a canvas" in outcome.message


class HeldSource:
    """Returns its data only once released."""

    def __init__(self, data):
        self.data = data
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def fetch(self, topic: str, text: str = ""):
        self.started.set()
        await self.release.wait()
        return self.data


async def test_generate_draws_on_canvas_active_at_start(workspace, star_map, tmp_path):
    target = workspace.active
    creator = make_creator(workspace, {"fixed": fixed_engine(STAR_CLEAN)})
    source = HeldSource(star_map)
    creator.source = source

    task = asyncio.create_task(creator.generate("Photosynthesis"))
    await source.started.wait()
    other = workspace.open(tmp_path / "other.canvas")
    source.release.set()
    outcome = await task

    assert outcome.success
    assert len(target.nodes) == 3
    assert other.is_empty()
    assert workspace.active is other
    assert creator.state.document == target.identity


def test_create_on_given_canvas(workspace, star_map, tmp_path):
    target = workspace.active
    workspace.open(tmp_path / "other.canvas").create_text_node(
        "Existing", Position(x=0, y=0), NodeSize(width=10, height=10)
    )
    creator = make_creator(workspace, {"fixed": fixed_engine(STAR_CLEAN)})

    creator.create_concept_map(star_map, canvas=target)

    assert len(target.nodes) == 3
    assert len(workspace.active.nodes) == 1
