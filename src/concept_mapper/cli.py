"""Command line for laying out concept-map graph files offline."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import yaml

from .canvas import Workspace
from .concept_maps import ConceptMapCreator
from .config import LAYOUT_ALGORITHMS, load_settings
from .errors import ConceptMapError
from .parser import parse_concept_map_file
from .renderer import SnapshotRenderer


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


def cmd_layout(args: argparse.Namespace) -> int:
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        settings = load_settings(args.settings)
    except (OSError, yaml.YAMLError, ValueError) as e:
        logger.error(f"Could not load settings from {args.settings}: {e}")
        return 1

    if args.all_algorithms:
        settings.multiple_layout_algorithms = True
    if args.no_selection:
        settings.best_layout_selection = False
    if args.algorithm:
        settings.primary_algorithm = args.algorithm
    if args.grid is not None:
        settings.grid_spacing = args.grid

    out_path = Path(args.out)
    if out_path.exists():
        out_path.unlink()

    workspace = Workspace()
    canvas = workspace.open(out_path)
    creator = ConceptMapCreator(workspace, get_settings=lambda: settings)

    try:
        data = parse_concept_map_file(args.graph)
        candidates = creator.create_concept_map(data)
    except ConceptMapError as e:
        logger.error(str(e))
        return 1

    if args.png:
        renderer = SnapshotRenderer(scale=args.scale, theme=args.theme)
        for i, candidate in enumerate(candidates):
            png_path = Path(args.png)
            if i > 0:
                png_path = png_path.with_name(f"{png_path.stem}-{candidate.algorithm}{png_path.suffix}")
            renderer.render(candidate.snapshot, output_path=str(png_path))
            logger.info(f"Preview for {candidate.algorithm} written to {png_path}")

    print(json.dumps({
        "canvas_path": canvas.identity,
        "layouts": [
            {"algorithm": c.algorithm, **c.metrics.model_dump()} for c in candidates
        ],
    }, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="concept-mapper", description="Concept map layout generation")
    sub = parser.add_subparsers(dest="command", required=True)

    layout = sub.add_parser("layout", help="Lay out a concept-map graph file into a .canvas document")
    layout.add_argument("graph", help="YAML or JSON file with entities and relationships")
    layout.add_argument("--out", required=True, help="Output .canvas path (overwritten)")
    layout.add_argument("--png", help="Also render a PNG preview of every kept layout")
    layout.add_argument("--algorithm", choices=list(LAYOUT_ALGORITHMS), help="Primary layout algorithm")
    layout.add_argument("--all-algorithms", action="store_true", help="Keep one layout per algorithm")
    layout.add_argument("--no-selection", action="store_true", help="Single iteration, no best-layout search")
    layout.add_argument("--grid", type=float, help="Grid spacing (0 disables snapping)")
    layout.add_argument("--settings", help="YAML settings file")
    layout.add_argument("--scale", type=float, default=1.0, help="Preview scale factor")
    layout.add_argument("--theme", choices=["dark", "light"], default="dark")
    layout.add_argument("-v", "--verbose", action="store_true")
    layout.set_defaults(func=cmd_layout)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
