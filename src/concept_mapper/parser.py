"""Parsers for concept-map graphs and canvas documents.

Concept-map graphs are read from YAML (JSON is accepted too, being a YAML
subset)::

    entities:
      - id: e1
        name: Photosynthesis
        explanation: "How plants turn light into sugar"
      - id: e2
        name: Chlorophyll
    relationships:
      - source_id: e1
        target_id: e2
        label: depends on

The first entity is the central one.  Canvas documents use the JSON Canvas
format (``{"nodes": [...], "edges": [...]}``).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .errors import InvalidConceptMapDataError
from .models import CanvasData, ConceptMapData


def concept_map_from_dict(data: Any) -> ConceptMapData:
    """Validate a decoded payload into a ``ConceptMapData``.

    Raises:
        InvalidConceptMapDataError: Missing entities/relationships or bad fields.
    """
    if not isinstance(data, dict) or "entities" not in data or "relationships" not in data:
        raise InvalidConceptMapDataError("Invalid concept map data format: expected 'entities' and 'relationships'")
    try:
        return ConceptMapData.model_validate(data)
    except ValidationError as e:
        raise InvalidConceptMapDataError(f"Invalid concept map data: {e}") from e


def parse_concept_map(text: str) -> ConceptMapData:
    """Parse a YAML or JSON string into a ``ConceptMapData``."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise InvalidConceptMapDataError(f"Could not parse concept map: {e}") from e
    if not data:
        raise InvalidConceptMapDataError("Empty concept map input")
    return concept_map_from_dict(data)


def parse_concept_map_file(path: str | Path) -> ConceptMapData:
    content = Path(path).read_text()
    return parse_concept_map(content)


def concept_map_to_yaml(data: ConceptMapData) -> str:
    """Serialize a concept map back to YAML."""
    return yaml.dump(data.model_dump(), default_flow_style=False, sort_keys=False, allow_unicode=True)


def parse_canvas_document(text: str) -> CanvasData:
    """Parse a JSON Canvas document; an empty file is an empty canvas."""
    if not text.strip():
        return CanvasData()
    return CanvasData.model_validate(json.loads(text))


def canvas_to_json(data: CanvasData) -> str:
    return json.dumps(data.to_json_dict(), indent="\t")
