"""Tests for the PNG preview renderer."""

from __future__ import annotations

import pytest

from concept_mapper.models import CanvasData, CanvasEdgeData, CanvasNodeData
from concept_mapper.renderer import SnapshotRenderer

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@pytest.fixture
def snapshot() -> CanvasData:
    return CanvasData(
        nodes=[
            CanvasNodeData(id="c", text="Photosynthesis", x=-400, y=-200, color="#ff4500"),
            CanvasNodeData(id="a", text="Chlorophyll is a green pigment", x=100, y=-200, color="4"),
            CanvasNodeData(id="b", text="Glucose", x=-400, y=100),
        ],
        edges=[
            CanvasEdgeData(
                id="e1", from_node="c", from_side="right", to_node="a", to_side="left",
                label="depends\non", color="#5CD1FF",
            ),
            CanvasEdgeData(id="e2", from_node="c", from_side="bottom", to_node="b", to_side="top"),
            CanvasEdgeData(id="e3", from_node="c", from_side="top", to_node="gone", to_side="top"),
        ],
    )


@pytest.mark.parametrize("theme", ["dark", "light"])
def test_render_png(snapshot, theme):
    png = SnapshotRenderer(theme=theme).render(snapshot)
    assert png.startswith(PNG_SIGNATURE)


def test_render_writes_file(snapshot, tmp_path):
    path = tmp_path / "previews" / "map.png"

    png = SnapshotRenderer(scale=0.5).render(snapshot, output_path=str(path))

    assert path.read_bytes() == png


def test_render_empty_canvas():
    assert SnapshotRenderer().render(CanvasData()).startswith(PNG_SIGNATURE)


def test_unknown_theme():
    with pytest.raises(ValueError):
        SnapshotRenderer(theme="sepia")
