"""Single-path pipeline: design -> every manufacturing artifact in a run folder."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from bend_geometry import bend_instructions_json, bend_instructions_text
from dxf_exporter import DXFExportConfig, design_to_dxf
from geometry_primitives import validate_shape
from materials import Material, default_material
from quote import Quote, QuoteConfig, compute_quote, format_quote_text
from run_protocol import prepare_run_dir, timestamp_ms, write_bytes, write_json, write_text
from sheet_design import (
    Shape,
    require_shapes,
    shapes_from_list,
    shapes_to_list,
    total_bends,
    total_holes,
)
from solid_export import SolidExportConfig, export_stl
from svg_exporter import SVGExportConfig, export_svg

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    runs_dir: str = "runs"
    design_name: str = "design"
    quantity: int = 1
    export_svg: bool = True
    export_dxf: bool = True
    export_stl: bool = True
    export_bend_instructions: bool = True
    svg: SVGExportConfig = field(default_factory=SVGExportConfig)
    dxf: DXFExportConfig = field(default_factory=DXFExportConfig)
    solid: SolidExportConfig = field(default_factory=SolidExportConfig)
    quote: QuoteConfig = field(default_factory=QuoteConfig)


@dataclass
class PipelineResult:
    run_id: str
    run_dir: str
    design_json_path: str
    quote_path: str
    summary_path: str
    manifest_path: str
    quote: Quote
    svg_path: Optional[str] = None
    dxf_path: Optional[str] = None
    stl_path: Optional[str] = None
    bend_text_path: Optional[str] = None
    bend_json_path: Optional[str] = None
    warnings: List[str] = field(default_factory=list)


def export_design(
    shapes: Sequence[Shape],
    material: Optional[Material] = None,
    config: Optional[PipelineConfig] = None,
) -> PipelineResult:
    """Write SVG, DXF, STL, bend instructions, quote and manifest for *shapes*.

    Raises ``EmptyDesignError`` when the design has no shapes and
    ``NothingToExportError`` when STL export finds no solid shape. Both are
    raised before the run folder is created.
    """
    require_shapes(shapes)
    if config is None:
        config = PipelineConfig()
    if material is None:
        material = default_material()

    started = time.perf_counter()
    svg_content = export_svg(shapes, config.svg) if config.export_svg else None
    stl_content = None
    if config.export_stl:
        stl_content = export_stl(shapes, config.solid.resolve_thickness(material))

    stamp = timestamp_ms()
    paths = prepare_run_dir(config.runs_dir, config.design_name)
    logger.info("Exporting %d shape(s) to %s", len(shapes), paths.run_dir)

    design_json_path = paths.design_json_path
    write_json(design_json_path, {"material": material.id, "shapes": shapes_to_list(shapes)})

    warnings: List[str] = []
    for shape in shapes:
        for issue in validate_shape(shape):
            warnings.append(f"{shape.id}: {issue}")
            logger.warning("%s: %s", shape.id, issue)

    svg_path = None
    if svg_content is not None:
        svg_path = paths.artifact("design", "svg", stamp)
        write_text(svg_path, svg_content)

    dxf_path = None
    if config.export_dxf:
        dxf_path = paths.artifact("design", "dxf", stamp)
        design_to_dxf(shapes, str(dxf_path), config.dxf)

    stl_path = None
    if stl_content is not None:
        stl_path = paths.artifact("design", "stl", stamp)
        write_bytes(stl_path, stl_content)

    bend_text_path = None
    bend_json_path = None
    if config.export_bend_instructions and total_bends(shapes) > 0:
        bend_text_path = paths.artifact("bend-instructions", "txt", stamp)
        bend_json_path = paths.artifact("bend-instructions", "json", stamp)
        write_text(bend_text_path, bend_instructions_text(shapes, material))
        write_text(bend_json_path, bend_instructions_json(shapes, material))

    quote = compute_quote(shapes, material, config.quantity, config.quote)
    write_json(paths.quote_path, quote.to_dict())

    elapsed = time.perf_counter() - started
    summary = _build_summary(paths.run_id, shapes, material, quote, elapsed, warnings)
    write_text(paths.summary_path, summary)

    manifest: Dict[str, Any] = {
        "run_id": paths.run_id,
        "design_name": config.design_name,
        "material": material.to_dict(),
        "created_utc": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "elapsed_s": round(elapsed, 3),
        "counts": {
            "shapes": len(shapes),
            "holes": total_holes(shapes),
            "bends": total_bends(shapes),
        },
        "config": asdict(config),
        "warnings": warnings,
        "artifacts": {
            "design_json": str(design_json_path),
            "svg": _opt(svg_path),
            "dxf": _opt(dxf_path),
            "stl": _opt(stl_path),
            "bend_instructions_txt": _opt(bend_text_path),
            "bend_instructions_json": _opt(bend_json_path),
            "quote": str(paths.quote_path),
            "summary": str(paths.summary_path),
        },
    }
    write_json(paths.manifest_path, manifest)

    return PipelineResult(
        run_id=paths.run_id,
        run_dir=str(paths.run_dir),
        design_json_path=str(design_json_path),
        quote_path=str(paths.quote_path),
        summary_path=str(paths.summary_path),
        manifest_path=str(paths.manifest_path),
        quote=quote,
        svg_path=_opt(svg_path),
        dxf_path=_opt(dxf_path),
        stl_path=_opt(stl_path),
        bend_text_path=_opt(bend_text_path),
        bend_json_path=_opt(bend_json_path),
        warnings=warnings,
    )


def _opt(path) -> Optional[str]:
    return str(path) if path is not None else None


def _build_summary(
    run_id: str,
    shapes: Sequence[Shape],
    material: Material,
    quote: Quote,
    elapsed_s: float,
    warnings: List[str],
) -> str:
    lines = [
        f"# Run {run_id}",
        "",
        f"- Material: {material.label}",
        f"- Shapes: {len(shapes)}",
        f"- Holes: {total_holes(shapes)}",
        f"- Bends: {quote.total_bends}",
        f"- Duration: {elapsed_s:.2f}s",
        f"- Total: **${quote.total:.2f}** (quantity {quote.quantity})",
        "",
        "## Quote",
        "",
        "```",
        format_quote_text(quote).rstrip(),
        "```",
        "",
        "## Warnings",
    ]
    if not warnings:
        lines.append("- None")
    else:
        lines.extend(f"- {w}" for w in warnings[:12])
    return "\n".join(lines) + "\n"


def load_design(path: str) -> Tuple[List[Shape], Optional[str]]:
    """Read ``{"material": "<id>", "shapes": [...]}`` from *path*.

    Returns the shapes and the material id (None when absent). Malformed
    shapes raise ``ValueError`` or ``KeyError``.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict) or not isinstance(data.get("shapes"), list):
        raise ValueError(f"{path}: expected an object with a 'shapes' list")
    return shapes_from_list(data["shapes"]), data.get("material")
