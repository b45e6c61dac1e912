"""Exception hierarchy for Concept Mapper."""

from __future__ import annotations


class ConceptMapError(Exception):
    """Base class for failures surfaced to the caller of a generation request."""


class InvalidConceptMapDataError(ConceptMapError, ValueError):
    """The entity/relationship graph is missing or malformed."""


class DataSourceError(ConceptMapError):
    """The extraction service could not deliver a graph."""


class LayoutEngineError(ConceptMapError):
    """A layout algorithm failed while computing node positions."""

    def __init__(self, algorithm: str, message: str):
        super().__init__(f"Layout algorithm '{algorithm}' failed: {message}")
        self.algorithm = algorithm


class UnknownAlgorithmError(LayoutEngineError):
    def __init__(self, algorithm: str, known: list[str]):
        super().__init__(algorithm, f"unknown algorithm. Valid algorithms: {', '.join(known)}")


class LayoutSearchError(ConceptMapError):
    """No iteration of a search produced a usable candidate."""

    def __init__(self, algorithm: str):
        super().__init__(f"Failed to generate layout using {algorithm} algorithm.")
        self.algorithm = algorithm


class NoLayoutsError(ConceptMapError):
    """A layout switch was requested but no alternate layouts are available."""


class CanvasNotEmptyError(ConceptMapError):
    """Generation only starts on an empty canvas."""
