"""
Color definitions for Concept Mapper.

Two groups of colors live here:

- The **level palette** used to color nodes by their BFS distance from the
  central entity.  Distances 0..11 each have their own color; deeper levels
  share an overflow color and unreachable nodes get a separate gray.
- **Preview themes** (dark and light) used by the PNG preview renderer for
  everything that is not a node's own color.
"""

from __future__ import annotations
from dataclasses import dataclass


# --- Level palette ---

CENTRAL_NODE_COLOR = "#ff4500"
EDGE_COLOR = "#5CD1FF"

LEVEL_COLORS: tuple[str, ...] = (
    CENTRAL_NODE_COLOR,  # 0: central entity
    "#00ff00",           # 1
    "#00ffff",           # 2
    "#ff80ed",           # 3
    "#ffa500",           # 4
    "#8a2be2",           # 5
    "#3498db",           # 6
    "#ffd700",           # 7
    "#ff5733",           # 8
    "#16a085",           # 9
    "#800000",           # 10
    "#40e0d0",           # 11
)

# Levels past the end of LEVEL_COLORS
OVERFLOW_LEVEL_COLOR = "#bada55"

# Nodes not reachable from the central entity
UNLEVELED_NODE_COLOR = "#95A5A6"


# --- Preview themes ---

@dataclass
class ThemePalette:
    """Color palette for the preview renderer."""

    background: str

    # Nodes without their own color
    node_fill: str
    node_border: str
    node_text: str

    # Edges without their own color
    edge_color: str
    edge_label: str


# Catppuccin Mocha (dark theme) - current default
DARK_THEME = ThemePalette(
    background="#11111b",
    node_fill="#1e1e2e",
    node_border="#585b70",
    node_text="#cdd6f4",
    edge_color="#585b70",
    edge_label="#a6adc8",
)


LIGHT_THEME = ThemePalette(
    background="#ffffff",
    node_fill="#eff1f5",
    node_border="#9ca0b0",
    node_text="#1e1e2e",
    edge_color="#8c8fa1",
    edge_label="#4c4f69",
)


THEMES: dict[str, ThemePalette] = {
    "dark": DARK_THEME,
    "light": LIGHT_THEME,
}


def get_theme(name: str) -> ThemePalette:
    """Get a theme palette by name.

    Raises:
        ValueError: If theme name is not recognized
    """
    if name not in THEMES:
        valid = ", ".join(THEMES.keys())
        raise ValueError(f"Unknown theme '{name}'. Valid themes: {valid}")
    return THEMES[name]
