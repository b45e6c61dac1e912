"""
Configuration for Concept Mapper.

Module-level constants hold the tuning the layout pipeline was calibrated
with.  User-facing switches live in ``ConceptMapperSettings`` and can be
overridden from a YAML file and from ``CONCEPT_MAPPER_*`` environment
variables (environment wins).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field


# --- Layout post-processing ---

GRID_SPACING = 200               # Grid step for node alignment (100 also works well)
HORIZONTAL_STRETCH_FACTOR = 1.25  # Horizontal coordinate stretch factor

# Edge labels longer than this (and containing a space) are wrapped
LABEL_WRAP_LENGTH = 12

# Host default text-node dimensions
DEFAULT_NODE_WIDTH = 250
DEFAULT_NODE_HEIGHT = 60


# --- Layout algorithms ---

class AlgorithmConfig(BaseModel):
    """Options passed through to a layout algorithm plus its search iteration count.

    ``iterations`` is how many randomized runs the best-layout search makes
    when best-layout selection is enabled.
    """
    options: dict[str, Any] = Field(default_factory=dict)
    iterations: int = Field(default=1, ge=1)


# Registry order is the order alternate layouts are generated in.
LAYOUT_ALGORITHMS: dict[str, AlgorithmConfig] = {
    "spring": AlgorithmConfig(
        options={
            "k": 1.6,           # Optimal distance between nodes (unit-scale layout)
            "iterations": 300,  # Fruchterman-Reingold iterations
            "threshold": 1e-4,
            "scale": 700,       # Half-width of the resulting drawing
        },
        iterations=20,
    ),
    "kamada-kawai": AlgorithmConfig(
        options={
            "scale": 750,
        },
        iterations=30,
    ),
    "layered": AlgorithmConfig(
        options={
            "align": "vertical",  # Layers as columns -> left-to-right flow
            "scale": 900,
        },
        iterations=1,
    ),
}

DEFAULT_ALGORITHM = "spring"


# --- Data source ---

BACKEND_URL = os.environ.get("CONCEPT_MAPPER_BACKEND_URL", "http://localhost:8000")
POLL_INTERVAL_SECONDS = 2.0
MAX_POLL_ATTEMPTS = 30
REQUEST_TIMEOUT_SECONDS = 60.0


# --- Output ---

OUTPUT_DIR = Path(os.environ.get("CONCEPT_MAPPER_OUTPUT_DIR", Path.home() / ".concept-mapper"))


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class ConceptMapperSettings(BaseModel):
    """User-facing switches for concept map generation.

    Attributes:
        colored_nodes: Color nodes by their distance from the central entity.
        colored_edges: Give every edge the edge accent color.
        best_layout_selection: Run several randomized layouts per algorithm
            and keep the best-scoring one.
        multiple_layout_algorithms: Also generate layouts with the other
            registered algorithms so the user can switch between them.
        primary_algorithm: Algorithm whose layout is applied first.
        grid_spacing: Grid step positions are snapped to (0 disables).
        horizontal_stretch_factor: Multiplier applied to x coordinates.
    """
    colored_nodes: bool = True
    colored_edges: bool = True
    best_layout_selection: bool = True
    multiple_layout_algorithms: bool = False
    primary_algorithm: str = DEFAULT_ALGORITHM
    grid_spacing: float = GRID_SPACING
    horizontal_stretch_factor: float = HORIZONTAL_STRETCH_FACTOR


ENV_PREFIX = "CONCEPT_MAPPER_"


def load_settings(path: Optional[str | Path] = None) -> ConceptMapperSettings:
    """Build settings from defaults, an optional YAML file, and the environment."""
    data: dict[str, Any] = {}

    if path is not None:
        content = Path(path).read_text()
        loaded = yaml.safe_load(content) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")
        data.update(loaded)

    for name in ConceptMapperSettings.model_fields:
        env_value = os.environ.get(ENV_PREFIX + name.upper())
        if env_value is not None:
            data[name] = env_value

    return ConceptMapperSettings(**data)
