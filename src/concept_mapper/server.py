"""Concept Mapper server — MCP tools for generating concept-map canvases."""

from __future__ import annotations

import json
import logging
import uuid

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .canvas import Workspace
from .client import BackendClient
from .concept_maps import ConceptMapCreator, HasCandidates
from .config import LAYOUT_ALGORITHMS, OUTPUT_DIR, load_settings
from .errors import ConceptMapError
from .models import LayoutCandidate
from .parser import concept_map_from_dict
from .renderer import SnapshotRenderer

logger = logging.getLogger(__name__)

server = Server("concept-mapper")

workspace = Workspace()
creator = ConceptMapCreator(workspace, get_settings=load_settings, source=BackendClient())


def _ensure_output_dir():
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)


def _new_document(name: str):
    _ensure_output_dir()
    filename = name.lower().replace(" ", "-")[:30] + "-" + str(uuid.uuid4())[:4]
    return workspace.open(OUTPUT_DIR / f"{filename}.canvas")


def _candidate_summary(candidate: LayoutCandidate) -> dict:
    return {
        "algorithm": candidate.algorithm,
        "nodes": len(candidate.snapshot.nodes),
        "edges": len(candidate.snapshot.edges),
        **candidate.metrics.model_dump(),
    }


def _text(payload: dict) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(payload))]


# --- Tool definitions ---

@server.list_tools()
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name="create_concept_map",
            description=(
                "Lay out a concept map from entities and relationships onto a new canvas "
                "document. The first entity is the central concept. Several randomized "
                "layouts are scored for overlaps and crossings and the best one is kept. "
                "Returns the path to the .canvas file and the layout quality metrics."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "title": {
                        "type": "string",
                        "description": "Title used to name the canvas document.",
                    },
                    "entities": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "id": {"type": "string"},
                                "name": {"type": "string"},
                                "explanation": {"type": "string"},
                            },
                            "required": ["id", "name"],
                        },
                    },
                    "relationships": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "source_id": {"type": "string"},
                                "target_id": {"type": "string"},
                                "label": {"type": "string"},
                                "explanation": {"type": "string"},
                            },
                            "required": ["source_id", "target_id"],
                        },
                    },
                },
                "required": ["title", "entities", "relationships"],
            },
        ),
        Tool(
            name="generate_concept_map",
            description=(
                "Extract a concept map for a topic (optionally from source text) using the "
                "extraction backend, then lay it out on a new canvas document."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "topic": {"type": "string", "description": "Topic of the concept map."},
                    "text": {"type": "string", "description": "Optional source text to extract from."},
                },
                "required": ["topic"],
            },
        ),
        Tool(
            name="switch_layout",
            description=(
                "Apply the next alternate layout (from another layout algorithm) to the "
                "canvas the concept map was generated on."
            ),
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="list_layouts",
            description="List the layouts kept for the current concept map and which one is applied.",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="render_preview",
            description="Render the active canvas to a PNG preview. Returns the PNG path.",
            inputSchema={
                "type": "object",
                "properties": {
                    "scale": {
                        "type": "number",
                        "description": "Render scale factor (default 1.0)",
                        "default": 1.0,
                    },
                    "theme": {
                        "type": "string",
                        "enum": ["dark", "light"],
                        "default": "dark",
                    },
                },
            },
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    if name == "create_concept_map":
        return await _create_concept_map(arguments)
    elif name == "generate_concept_map":
        return await _generate_concept_map(arguments)
    elif name == "switch_layout":
        return await _switch_layout(arguments)
    elif name == "list_layouts":
        return await _list_layouts(arguments)
    elif name == "render_preview":
        return await _render_preview(arguments)
    else:
        return [TextContent(type="text", text=f"Unknown tool: {name}")]


async def _create_concept_map(args: dict) -> list[TextContent]:
    try:
        data = concept_map_from_dict({
            "entities": args.get("entities"),
            "relationships": args.get("relationships"),
        })
    except ConceptMapError as e:
        return [TextContent(type="text", text=f"Invalid concept map: {e}")]

    canvas = _new_document(args.get("title", "concept-map"))
    try:
        candidates = creator.create_concept_map(data, canvas=canvas)
    except ConceptMapError as e:
        return [TextContent(type="text", text=f"Layout generation failed: {e}")]

    return _text({
        "status": "success",
        "canvas_path": canvas.identity,
        "layouts": [_candidate_summary(c) for c in candidates],
        "alternate_layouts": creator.has_alternate_layouts(canvas.identity),
    })


async def _generate_concept_map(args: dict) -> list[TextContent]:
    canvas = _new_document(args["topic"])
    outcome = await creator.generate(args["topic"], args.get("text", ""), canvas=canvas)
    if not outcome.success:
        return [TextContent(type="text", text=f"Concept map generation failed: {outcome.message}")]

    return _text({
        "status": "success",
        "canvas_path": canvas.identity,
        "layouts": [_candidate_summary(c) for c in outcome.candidates],
        "alternate_layouts": creator.has_alternate_layouts(canvas.identity),
    })


async def _switch_layout(args: dict) -> list[TextContent]:
    try:
        candidate = creator.rotate_layout()
    except ConceptMapError as e:
        return [TextContent(type="text", text=f"Cannot switch layout: {e}")]
    return _text({"status": "success", "applied": _candidate_summary(candidate)})


async def _list_layouts(args: dict) -> list[TextContent]:
    state = creator.state
    if not isinstance(state, HasCandidates):
        return _text({"layouts": [], "algorithms": list(LAYOUT_ALGORITHMS)})
    return _text({
        "canvas_path": state.document,
        "current": state.index,
        "layouts": [_candidate_summary(c) for c in state.candidates],
    })


async def _render_preview(args: dict) -> list[TextContent]:
    canvas = workspace.active
    if canvas is None:
        return [TextContent(type="text", text="No active canvas to render")]

    _ensure_output_dir()
    stem = canvas.path.stem if canvas.path else str(uuid.uuid4())[:8]
    output_path = str(OUTPUT_DIR / f"{stem}.png")

    renderer = SnapshotRenderer(scale=args.get("scale", 1.0), theme=args.get("theme", "dark"))
    try:
        renderer.render(canvas.get_data(), output_path=output_path)
    except Exception as e:
        return [TextContent(type="text", text=f"Rendering failed: {e}")]

    return _text({"status": "success", "path": output_path})


def main():
    """Entry point for the MCP server."""
    import asyncio

    # stdout carries the MCP protocol; logs go to stderr
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    asyncio.run(_run())


async def _run():
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


if __name__ == "__main__":
    main()
