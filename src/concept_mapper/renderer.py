"""Snapshot renderer using Pillow — produces PNG previews of concept-map layouts."""

from __future__ import annotations

import math
import textwrap
from io import BytesIO
from pathlib import Path
from typing import Optional

from PIL import Image, ImageDraw, ImageFont

from .geometry import connection_point
from .models import CanvasData, CanvasEdgeData, CanvasNodeData
from .themes import ThemePalette, get_theme


# --- Font handling ---

def _load_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load a font, falling back to default if none available."""
    font_paths = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
        "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
        "/usr/share/fonts/TTF/DejaVuSans.ttf",
    ]
    for fp in font_paths:
        if Path(fp).exists():
            return ImageFont.truetype(fp, size)
    return ImageFont.load_default()


# --- Color helpers ---

def _hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """Convert hex color to RGB tuple. Supports both 3-char and 6-char hex."""
    hex_color = hex_color.lstrip("#")
    if len(hex_color) == 3:
        hex_color = hex_color[0]*2 + hex_color[1]*2 + hex_color[2]*2
    return tuple(int(hex_color[i:i+2], 16) for i in (0, 2, 4))


def _hex_to_rgba(hex_color: str, alpha: int = 255) -> tuple[int, int, int, int]:
    r, g, b = _hex_to_rgb(hex_color)
    return (r, g, b, alpha)


def _text_color_for(fill: str) -> str:
    """Black or white text, whichever reads better on ``fill``."""
    r, g, b = _hex_to_rgb(fill)
    luminance = 0.299 * r + 0.587 * g + 0.114 * b
    return "#11111b" if luminance > 150 else "#ffffff"


# --- Drawing primitives ---

def _draw_arrow(
    draw: ImageDraw.ImageDraw,
    start: tuple[float, float],
    end: tuple[float, float],
    color: str = "#585b70",
    width: int = 2,
    arrow_size: int = 10,
):
    """Draw a line with an arrowhead."""
    draw.line([start, end], fill=color, width=width)

    dx = end[0] - start[0]
    dy = end[1] - start[1]
    length = math.sqrt(dx * dx + dy * dy)
    if length == 0:
        return

    udx = dx / length
    udy = dy / length

    ax = end[0] - arrow_size * udx + (arrow_size / 2) * udy
    ay = end[1] - arrow_size * udy - (arrow_size / 2) * udx
    bx = end[0] - arrow_size * udx - (arrow_size / 2) * udy
    by = end[1] - arrow_size * udy + (arrow_size / 2) * udx

    draw.polygon([(end[0], end[1]), (ax, ay), (bx, by)], fill=color)


def _wrap_text(text: str, font: ImageFont.FreeTypeFont, max_width: int) -> list[str]:
    """Word-wrap text to fit within max_width pixels."""
    words = text.split()
    lines = []
    current = ""

    for word in words:
        test = f"{current} {word}".strip() if current else word
        bbox = font.getbbox(test)
        tw = bbox[2] - bbox[0]
        if tw <= max_width:
            current = test
        else:
            if current:
                lines.append(current)
            # If single word is too long, force-wrap it
            if font.getbbox(word)[2] - font.getbbox(word)[0] > max_width:
                for chunk in textwrap.wrap(word, width=max(1, max_width // 8)):
                    lines.append(chunk)
                current = ""
            else:
                current = word

    if current:
        lines.append(current)

    return lines if lines else [""]


# --- Main renderer ---

class SnapshotRenderer:
    """Renders a ``CanvasData`` snapshot to a PNG image."""

    PADDING = 60
    NODE_PADDING = 10
    LINE_HEIGHT = 20
    CORNER_RADIUS = 10

    def __init__(self, scale: float = 1.0, theme: str = "dark"):
        self.scale = scale
        self.font_body = _load_font(int(16 * scale))
        self.font_small = _load_font(int(13 * scale))
        self.theme: ThemePalette = get_theme(theme)

    def render(self, data: CanvasData, output_path: Optional[str] = None) -> bytes:
        """Render the snapshot to PNG bytes. Optionally save to file."""
        min_x, min_y, max_x, max_y = self._calculate_bounds(data)
        img_width = max(1, int((max_x - min_x + 2 * self.PADDING) * self.scale))
        img_height = max(1, int((max_y - min_y + 2 * self.PADDING) * self.scale))

        img = Image.new("RGBA", (img_width, img_height), _hex_to_rgba(self.theme.background))
        draw = ImageDraw.Draw(img)

        ox = -min_x + self.PADDING
        oy = -min_y + self.PADDING

        node_map = data.node_map()
        for edge in data.edges:
            self._draw_edge(draw, edge, node_map, ox, oy)
        for node in data.nodes:
            self._draw_node(draw, node, ox, oy)
        for edge in data.edges:
            self._draw_edge_label(draw, edge, node_map, ox, oy)

        buf = BytesIO()
        img.save(buf, format="PNG")
        png = buf.getvalue()

        if output_path:
            path = Path(output_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(png)

        return png

    def _calculate_bounds(self, data: CanvasData) -> tuple[float, float, float, float]:
        if not data.nodes:
            return 0.0, 0.0, 0.0, 0.0
        return (
            min(n.x for n in data.nodes),
            min(n.y for n in data.nodes),
            max(n.x + n.width for n in data.nodes),
            max(n.y + n.height for n in data.nodes),
        )

    def _to_image(self, x: float, y: float, ox: float, oy: float) -> tuple[float, float]:
        return (x + ox) * self.scale, (y + oy) * self.scale

    def _draw_node(self, draw: ImageDraw.ImageDraw, node: CanvasNodeData, ox: float, oy: float):
        x1, y1 = self._to_image(node.x, node.y, ox, oy)
        x2, y2 = self._to_image(node.x + node.width, node.y + node.height, ox, oy)

        # Host preset colors ("1".."6") are not drawn; only hex colors are
        custom = node.color if node.color and node.color.startswith("#") else None
        fill = custom or self.theme.node_fill
        text_color = _text_color_for(custom) if custom else self.theme.node_text
        draw.rounded_rectangle(
            [x1, y1, x2, y2],
            radius=int(self.CORNER_RADIUS * self.scale),
            fill=fill,
            outline=self.theme.node_border,
            width=max(1, int(2 * self.scale)),
        )

        padding = self.NODE_PADDING * self.scale
        lines = _wrap_text(node.text, self.font_body, int(x2 - x1 - 2 * padding))
        line_height = self.LINE_HEIGHT * self.scale
        ty = (y1 + y2) / 2 - len(lines) * line_height / 2
        for line in lines:
            bbox = self.font_body.getbbox(line)
            tx = (x1 + x2) / 2 - (bbox[2] - bbox[0]) / 2
            draw.text((tx, ty), line, fill=text_color, font=self.font_body)
            ty += line_height

    def _edge_points(
        self,
        edge: CanvasEdgeData,
        node_map: dict[str, CanvasNodeData],
        ox: float,
        oy: float,
    ) -> Optional[tuple[tuple[float, float], tuple[float, float]]]:
        from_node = node_map.get(edge.from_node)
        to_node = node_map.get(edge.to_node)
        if from_node is None or to_node is None:
            return None
        start = connection_point(from_node, edge.from_side)
        end = connection_point(to_node, edge.to_side)
        return self._to_image(start.x, start.y, ox, oy), self._to_image(end.x, end.y, ox, oy)

    def _draw_edge(self, draw, edge: CanvasEdgeData, node_map, ox: float, oy: float):
        points = self._edge_points(edge, node_map, ox, oy)
        if points is None:
            return
        _draw_arrow(
            draw,
            points[0],
            points[1],
            color=edge.color if edge.color and edge.color.startswith("#") else self.theme.edge_color,
            width=max(1, int(2 * self.scale)),
            arrow_size=int(10 * self.scale),
        )

    def _draw_edge_label(self, draw, edge: CanvasEdgeData, node_map, ox: float, oy: float):
        if not edge.label:
            return
        points = self._edge_points(edge, node_map, ox, oy)
        if points is None:
            return
        mx = (points[0][0] + points[1][0]) / 2
        my = (points[0][1] + points[1][1]) / 2

        lines = edge.label.split("\n")
        line_height = (self.LINE_HEIGHT - 4) * self.scale
        ty = my - len(lines) * line_height / 2
        for line in lines:
            bbox = self.font_small.getbbox(line)
            draw.text(
                (mx - (bbox[2] - bbox[0]) / 2, ty),
                line,
                fill=self.theme.edge_label,
                font=self.font_small,
            )
            ty += line_height
