#!/usr/bin/env python3
"""
Command-line front end: turn a raster image into an extruded STL solid.

Usage:
    python -m rastersolid IMAGE [-o model.stl] [--dxf lines.dxf] [--config options.yaml]
                                [--threshold N] [--level N] [--depth MM]
                                [--scale S | --width-mm MM] [--min-area A]
                                [--no-holes] [--smooth] [--tracer NAME]
                                [--fallback] [-v]

Examples:
    # Extrude a logo 5 mm deep and 80 mm wide
    python -m rastersolid logo.png -o logo.stl --depth 5 --width-mm 80

    # Also write the traced outlines as DXF lines
    python -m rastersolid logo.png -o logo.stl --dxf logo.dxf

Exit status is 0 on success, 1 when a pipeline stage fails and 2 on bad
command-line usage.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from rastersolid import __version__
from rastersolid.config import PipelineOptions, load_options
from rastersolid.errors import EmptyVectorData, RasterSolidError
from rastersolid.io.dxf import write_dxf, write_dxf_document
from rastersolid.io.stl import write_stl
from rastersolid.pipeline import build_model, fallback_circle, vectorize

logger = logging.getLogger("rastersolid")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rastersolid",
        description="Vectorize a raster image and extrude it into a binary STL solid.",
    )
    parser.add_argument("image", help="input image (PNG, JPEG, BMP, ...)")
    parser.add_argument("-o", "--output", default=None,
                        help="STL output path (default: IMAGE with a .stl suffix)")
    parser.add_argument("--dxf", default=None, help="also write the outlines as DXF lines")
    parser.add_argument("--dxf-document", action="store_true",
                        help="write a complete DXF drawing through ezdxf instead of "
                             "the minimal ENTITIES-only form")
    parser.add_argument("--config", default=None, help="YAML file with pipeline options")
    parser.add_argument("--threshold", type=int, default=None,
                        help="luminance cut-off 0-255 (default 128)")
    parser.add_argument("--level", type=int, default=None, dest="simplification_level",
                        help="simplification level 0-10 (default 5)")
    parser.add_argument("--depth", type=float, default=None,
                        help="extrusion depth in mm (default 10)")
    scale = parser.add_mutually_exclusive_group()
    scale.add_argument("--scale", type=float, default=None, help="millimeters per pixel")
    scale.add_argument("--width-mm", type=float, default=None, dest="target_width_mm",
                       help="scale the model to this width in mm")
    parser.add_argument("--min-area", type=float, default=None, dest="min_area",
                        help="drop shapes smaller than this many square pixels")
    parser.add_argument("--no-holes", action="store_true",
                        help="fill holes instead of cutting them out")
    parser.add_argument("--smooth", action="store_true",
                        help="remove stray ink pixels and fill pin holes after thresholding")
    parser.add_argument("--tracer", default=None,
                        help="boundary tracer to use (moore or opencv, default moore)")
    parser.add_argument("--fallback", action="store_true",
                        help="extrude a placeholder circle when nothing can be traced")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def resolve_options(args: argparse.Namespace) -> PipelineOptions:
    """Merge the optional YAML file with command-line overrides."""

    options = load_options(args.config) if args.config else PipelineOptions()
    return options.replace(
        threshold=args.threshold,
        simplification_level=args.simplification_level,
        depth=args.depth,
        scale=args.scale,
        target_width_mm=args.target_width_mm,
        min_area=args.min_area,
        preserve_holes=False if args.no_holes else None,
        smooth=True if args.smooth else None,
        tracer=args.tracer,
    )


def run_cli(args: argparse.Namespace) -> int:
    options = resolve_options(args)
    image_path = Path(args.image)
    output = Path(args.output) if args.output else image_path.with_suffix(".stl")

    try:
        vector = vectorize(image_path, options)
    except EmptyVectorData as exc:
        if not args.fallback:
            raise
        logger.warning("%s; using the placeholder circle", exc.message)
        vector = fallback_circle()

    mesh = build_model(vector, options)
    size = write_stl(mesh, output)
    print(f"wrote {output} ({len(mesh)} triangles, {size} bytes)")

    if args.dxf:
        if args.dxf_document:
            count = write_dxf_document(vector.shapes, vector.height, args.dxf)
            print(f"wrote {args.dxf} ({count} lines)")
        else:
            write_dxf(vector.shapes, vector.height, args.dxf)
            print(f"wrote {args.dxf}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return run_cli(args)
    except RasterSolidError as exc:
        print(exc.format(), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
