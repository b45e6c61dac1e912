"""
Data models for Concept Mapper — graphs in, canvas documents out.

Two families of models live here:

**Source graph** (what the extraction service returns)

    ConceptMapData
    ├── Entity        — a concept; the first one is the *central* entity
    └── Relationship  — a directed, labeled link between two entities

**Canvas document** (what the layout engine writes)

    CanvasData        — one full snapshot of the host canvas
    ├── CanvasNodeData — a placed node (top-left position + size)
    └── CanvasEdgeData — an edge with the side it leaves / enters on

Canvas records serialize with JSON Canvas field names (``fromNode``,
``toSide`` ...) so a snapshot can be written straight to a ``.canvas`` file.
Python code uses the snake_case attribute names.

Finally, ``QualityMetrics`` and ``LayoutCandidate`` carry the result of
scoring one realized layout.
"""

from __future__ import annotations
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


Side = Literal["top", "right", "bottom", "left"]

SIDES: tuple[Side, ...] = ("top", "right", "bottom", "left")


# ---------------------------------------------------------------------------
# Source graph
# ---------------------------------------------------------------------------

class Entity(BaseModel):
    """A concept extracted from the source text."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    explanation: str = ""


class Relationship(BaseModel):
    """A directed, labeled link ``source_id -> target_id``.

    Several relationships between the same ordered pair are allowed.
    """
    model_config = ConfigDict(frozen=True)

    source_id: str
    target_id: str
    label: str = ""
    explanation: str = ""


class ConceptMapData(BaseModel):
    """An entity/relationship graph as delivered by the data source.

    Validation rejects an empty entity list and duplicate entity ids.
    Relationships that point at unknown entities are accepted here; the
    layout generator logs and skips them.
    """
    entities: list[Entity]
    relationships: list[Relationship] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_entities(self) -> "ConceptMapData":
        if not self.entities:
            raise ValueError("Concept map must contain at least one entity")
        seen: set[str] = set()
        for entity in self.entities:
            if entity.id in seen:
                raise ValueError(f"Duplicate entity id: {entity.id}")
            seen.add(entity.id)
        return self

    @property
    def central_entity(self) -> Entity:
        """The first entity is the center of the map by convention."""
        return self.entities[0]

    def entity_ids(self) -> list[str]:
        return [entity.id for entity in self.entities]


# ---------------------------------------------------------------------------
# Geometry records
# ---------------------------------------------------------------------------

class NodeSize(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: float = Field(gt=0)
    height: float = Field(gt=0)


class Position(BaseModel):
    """Top-left corner of a node in canvas coordinates."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float


# ---------------------------------------------------------------------------
# Canvas document
# ---------------------------------------------------------------------------

class CanvasNodeData(BaseModel):
    """A node on the host canvas.

    ``explanation`` is out-of-band data attached to the node; the host keeps
    it alongside the JSON Canvas fields without interpreting it.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    type: str = "text"
    text: str = ""
    x: float = 0.0
    y: float = 0.0
    width: float = 250.0
    height: float = 60.0
    color: Optional[str] = None
    explanation: Optional[str] = None


class CanvasEdgeData(BaseModel):
    """An edge on the host canvas, attached to one side of each endpoint."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    from_node: str = Field(alias="fromNode")
    from_side: Side = Field(alias="fromSide")
    to_node: str = Field(alias="toNode")
    to_side: Side = Field(alias="toSide")
    label: Optional[str] = None
    color: Optional[str] = None
    explanation: Optional[str] = None


class CanvasData(BaseModel):
    """The full ordered node and edge state of one canvas document."""
    nodes: list[CanvasNodeData] = Field(default_factory=list)
    edges: list[CanvasEdgeData] = Field(default_factory=list)

    def node_map(self) -> dict[str, CanvasNodeData]:
        return {node.id: node for node in self.nodes}

    def to_json_dict(self) -> dict:
        """Dump with JSON Canvas field names, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

NODE_OVERLAP_WEIGHT = 10
EDGE_NODE_OVERLAP_WEIGHT = 3
EDGE_EDGE_OVERLAP_WEIGHT = 1


class QualityMetrics(BaseModel):
    """Overlap counts for one realized layout. Lower ``weighted_score`` is better."""
    model_config = ConfigDict(frozen=True)

    node_overlaps: int = Field(ge=0)
    edge_node_overlaps: int = Field(ge=0)
    edge_edge_overlaps: int = Field(ge=0)
    weighted_score: float = Field(ge=0)

    @classmethod
    def from_counts(
        cls,
        node_overlaps: int,
        edge_node_overlaps: int,
        edge_edge_overlaps: int,
    ) -> "QualityMetrics":
        return cls(
            node_overlaps=node_overlaps,
            edge_node_overlaps=edge_node_overlaps,
            edge_edge_overlaps=edge_edge_overlaps,
            weighted_score=weighted_score(
                node_overlaps, edge_node_overlaps, edge_edge_overlaps
            ),
        )


def weighted_score(node_overlaps: int, edge_node_overlaps: int, edge_edge_overlaps: int) -> int:
    """Combine overlap counts into one number (weights 10 / 3 / 1)."""
    return (
        NODE_OVERLAP_WEIGHT * node_overlaps
        + EDGE_NODE_OVERLAP_WEIGHT * edge_node_overlaps
        + EDGE_EDGE_OVERLAP_WEIGHT * edge_edge_overlaps
    )


class LayoutCandidate(BaseModel):
    """The best snapshot found for one algorithm during a search."""
    model_config = ConfigDict(frozen=True)

    snapshot: CanvasData
    metrics: QualityMetrics
    algorithm: str
