#!/usr/bin/env python3
"""
Export a sheet-metal design to SVG, DXF, STL, bend instructions and a quote.

Usage:
    python scripts/export_design.py --design design.json
    python scripts/export_design.py --design design.json --material stainless-3mm --quantity 10
    python scripts/export_design.py --design design.json --no-stl --runs-dir /tmp/runs -v

The design file is JSON: {"material": "<material id>", "shapes": [...]} with
shapes in the same camelCase form the designer saves.
"""
import sys
import argparse
import logging
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from materials import DEFAULT_MATERIAL_ID, MATERIALS, get_material
from pipeline import PipelineConfig, export_design, load_design
from quote import coerce_quantity
from sheet_design import DesignError


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Export manufacturing artifacts for a sheet-metal design"
    )
    parser.add_argument("--design", type=str, required=True, help="Path to design JSON")
    parser.add_argument(
        "--material", type=str, default=None, choices=sorted(MATERIALS),
        help=f"Material id (default: from the design file, else {DEFAULT_MATERIAL_ID})",
    )
    parser.add_argument("--quantity", type=str, default="1", help="Number of parts to quote")
    parser.add_argument("--runs-dir", type=str, default="runs", help="Output root for run folders")
    parser.add_argument("--name", type=str, default=None, help="Design name (default: file stem)")
    parser.add_argument("--no-stl", action="store_true", help="Skip STL export")
    parser.add_argument("--no-dxf", action="store_true", help="Skip DXF export")
    parser.add_argument("-v", "--verbose", action="store_true")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        shapes, file_material = load_design(args.design)
        material = get_material(args.material or file_material or DEFAULT_MATERIAL_ID)
    except (OSError, ValueError, KeyError) as e:
        print(f"Error: could not load design {args.design}: {e}", file=sys.stderr)
        return 2

    config = PipelineConfig(
        runs_dir=args.runs_dir,
        design_name=args.name or Path(args.design).stem,
        quantity=coerce_quantity(args.quantity),
        export_stl=not args.no_stl,
        export_dxf=not args.no_dxf,
    )

    try:
        result = export_design(shapes, material, config)
    except DesignError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    quote = result.quote
    print(f"\nRun: {result.run_dir}")
    print(f"Material: {material.label}")
    print(f"Shapes: {len(shapes)}  Bends: {quote.total_bends}")
    print(f"Total area: {quote.total_area:.6f} m²")
    print(f"Total: ${quote.total:.2f} (quantity {quote.quantity})")

    for label, path in (
        ("SVG", result.svg_path),
        ("DXF", result.dxf_path),
        ("STL", result.stl_path),
        ("Bend instructions", result.bend_text_path),
    ):
        if path:
            print(f"{label}: {path}")

    for warning in result.warnings:
        print(f"Warning: {warning}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
