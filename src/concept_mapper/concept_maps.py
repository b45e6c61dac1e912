"""
Concept map creator — candidate search and layout switching.

For each requested algorithm the creator runs the layout generator
``iterations`` times (clear canvas, draw, snapshot, score) and keeps the
lowest-scoring snapshot as that algorithm's candidate.  The primary
algorithm's candidate is applied to the canvas; the others stay available
so the user can cycle through them with ``rotate_layout``.

Retained candidates form a small state machine::

    Idle ──generate──▶ HasCandidates(candidates, index, document)
      ▲                      │ rotate_layout: index = (index + 1) % len
      └──new generation──────┘

Candidates are only offered while the active document is the one they
were generated for.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from .canvas import Canvas, CanvasHelper, Workspace
from .client import ConceptMapSource
from .config import LAYOUT_ALGORITHMS, AlgorithmConfig, ConceptMapperSettings
from .errors import (
    CanvasNotEmptyError,
    ConceptMapError,
    LayoutEngineError,
    LayoutSearchError,
    NoLayoutsError,
    UnknownAlgorithmError,
)
from .evaluator import LayoutEvaluator
from .generator import LayoutGenerator
from .models import ConceptMapData, LayoutCandidate, NodeSize

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Layout state
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Idle:
    """No layouts have been generated (or they were discarded)."""


@dataclass(frozen=True)
class HasCandidates:
    candidates: tuple[LayoutCandidate, ...]
    index: int
    document: Optional[str]

    def __post_init__(self):
        if not self.candidates:
            raise ValueError("HasCandidates requires at least one candidate")
        if not 0 <= self.index < len(self.candidates):
            raise ValueError(f"Candidate index {self.index} out of range")

    @property
    def current(self) -> LayoutCandidate:
        return self.candidates[self.index]

    def advance(self) -> "HasCandidates":
        return HasCandidates(self.candidates, (self.index + 1) % len(self.candidates), self.document)


LayoutState = Union[Idle, HasCandidates]


@dataclass(frozen=True)
class GenerationOutcome:
    success: bool
    message: str
    candidates: tuple[LayoutCandidate, ...] = ()


# ---------------------------------------------------------------------------
# Creator
# ---------------------------------------------------------------------------

class ConceptMapCreator:
    """Generates concept maps on the active canvas of a workspace."""

    def __init__(
        self,
        workspace: Workspace,
        get_settings: Callable[[], ConceptMapperSettings] = ConceptMapperSettings,
        source: Optional[ConceptMapSource] = None,
        generator: Optional[LayoutGenerator] = None,
        evaluator: Optional[LayoutEvaluator] = None,
        algorithms: Optional[dict[str, AlgorithmConfig]] = None,
    ):
        self.workspace = workspace
        self.get_settings = get_settings
        self.source = source
        self.algorithms = algorithms if algorithms is not None else LAYOUT_ALGORITHMS
        self.generator = generator or LayoutGenerator(algorithms=self.algorithms)
        self.evaluator = evaluator or LayoutEvaluator()
        self.state: LayoutState = Idle()

    @property
    def helper(self) -> CanvasHelper:
        return self.generator.helper

    def _active_canvas(self) -> Canvas:
        canvas = self.workspace.active
        if canvas is None:
            raise ConceptMapError("Please open a canvas file first")
        return canvas

    # --- Produced interface ---

    async def generate(
        self,
        topic: str,
        text: str = "",
        canvas: Optional[Canvas] = None,
    ) -> GenerationOutcome:
        """Fetch a graph from the data source and lay it out.

        The target is ``canvas``, or the canvas active when the call starts.
        Switching documents while the fetch is pending does not move the map.
        """
        self.state = Idle()
        if self.source is None:
            return GenerationOutcome(False, "No concept map data source configured")
        try:
            target = self._ensure_empty_canvas(canvas)
            data = await self.source.fetch(topic, text)
            candidates = self.create_concept_map(data, canvas=target)
        except ConceptMapError as e:
            logger.error(f"Concept map generation failed: {e}")
            return GenerationOutcome(False, str(e))
        return GenerationOutcome(True, "Concept map created", candidates)

    def has_alternate_layouts(self, document: Optional[str]) -> bool:
        state = self.state
        if not isinstance(state, HasCandidates):
            return False
        if state.document != document:
            return False
        return len(state.candidates) > 1

    def rotate_layout(self) -> LayoutCandidate:
        """Apply the next retained candidate, wrapping after the last."""
        state = self.state
        if not isinstance(state, HasCandidates):
            raise NoLayoutsError("No layouts have been generated")

        canvas = self._active_canvas()
        if canvas.identity != state.document:
            raise NoLayoutsError("Layouts were generated for a different canvas")

        self.state = state.advance()
        candidate = self.state.current
        self.apply_layout(canvas, candidate)
        logger.debug(f"Switched to {candidate.algorithm}")
        return candidate

    # --- Generation ---

    def _ensure_empty_canvas(self, canvas: Optional[Canvas] = None) -> Canvas:
        if canvas is None:
            canvas = self._active_canvas()
        if not canvas.is_empty():
            raise CanvasNotEmptyError("Canvas should be empty to start a concept map creation")
        return canvas

    def algorithm_order(self, settings: ConceptMapperSettings) -> list[str]:
        order = [settings.primary_algorithm]
        if settings.multiple_layout_algorithms:
            order.extend(name for name in self.algorithms if name != settings.primary_algorithm)
        return order

    def create_concept_map(
        self,
        data: ConceptMapData,
        canvas: Optional[Canvas] = None,
    ) -> tuple[LayoutCandidate, ...]:
        """Search every requested algorithm and apply the primary one's best layout.

        Draws on ``canvas`` when given, otherwise on the active canvas.
        """
        self.state = Idle()
        canvas = self._ensure_empty_canvas(canvas)
        settings = self.get_settings()

        self.generator.grid_spacing = settings.grid_spacing
        self.generator.stretch_factor = settings.horizontal_stretch_factor

        node_sizes = self.calculate_node_sizes(canvas, data)
        try:
            candidates = tuple(
                self.search_best_layout(algorithm, canvas, data, node_sizes, settings)
                for algorithm in self.algorithm_order(settings)
            )
        except ConceptMapError:
            self.helper.clear_canvas(canvas)
            raise

        self.state = HasCandidates(candidates, 0, canvas.identity)
        self.apply_layout(canvas, candidates[0])
        return candidates

    def calculate_node_sizes(self, canvas: Canvas, data: ConceptMapData) -> dict[str, NodeSize]:
        # Every entity currently uses the host default text-node size
        return {entity.id: canvas.default_node_size for entity in data.entities}

    def iterations_for(self, algorithm: str, settings: ConceptMapperSettings) -> int:
        if not settings.best_layout_selection:
            return 1
        config = self.algorithms.get(algorithm)
        return config.iterations if config else 1

    def search_best_layout(
        self,
        algorithm: str,
        canvas: Canvas,
        data: ConceptMapData,
        node_sizes: dict[str, NodeSize],
        settings: ConceptMapperSettings,
    ) -> LayoutCandidate:
        iterations = self.iterations_for(algorithm, settings)
        best: Optional[LayoutCandidate] = None
        last_error: Optional[LayoutEngineError] = None

        logger.debug(f"Layout generation using {algorithm}. ({iterations} iterations)")

        for i in range(iterations):
            self.helper.clear_canvas(canvas)
            try:
                self.generator.generate(
                    canvas,
                    data,
                    node_sizes,
                    algorithm,
                    colored_nodes=settings.colored_nodes,
                    colored_edges=settings.colored_edges,
                )
            except UnknownAlgorithmError:
                raise
            except LayoutEngineError as e:
                logger.error(f"Iteration {i + 1} failed: {e}")
                last_error = e
                continue

            snapshot = canvas.get_data()
            metrics = self.evaluator.evaluate(snapshot)

            logger.debug(
                f"Iteration {i + 1} metrics: nodes={metrics.node_overlaps}, "
                f"nodes-edges={metrics.edge_node_overlaps}, edges={metrics.edge_edge_overlaps}, "
                f"weighted-score={metrics.weighted_score}"
            )

            if best is None or metrics.weighted_score < best.metrics.weighted_score:
                best = LayoutCandidate(snapshot=snapshot, metrics=metrics, algorithm=algorithm)
                logger.debug(f"New best result with score {metrics.weighted_score}")

        if best is None:
            raise LayoutSearchError(algorithm) from last_error
        return best

    def apply_layout(self, canvas: Canvas, candidate: LayoutCandidate) -> None:
        metrics = candidate.metrics
        logger.info(
            f"Apply the best generation for {candidate.algorithm} algorithm: "
            f"nodes={metrics.node_overlaps}, nodes-edges={metrics.edge_node_overlaps}, "
            f"edges={metrics.edge_edge_overlaps}"
        )
        canvas.clear()
        canvas.set_data(candidate.snapshot)
        canvas.request_save()
