"""
SVG export of a sheet-metal design.

Generates one laser-cutting document for the whole design:
  - cut paths (red hairline): each shape's cut profile (outline minus the
    union of its holes) as one path; even-odd fill shows the cutouts
  - engrave layer (blue): text shapes
  - bend annotations (orange, dashed): bend lines with angle/direction
    labels plus a legend; these are not cut paths

Coordinates are millimetres. The design is Y-up and centred on each shape's
position; the document is Y-down with the origin at the top-left, so every
point goes through one flip/translation derived from the design bounds.
"""
import io
import logging
import math
import os
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

import svgwrite

from geometry_primitives import (
    bend_line,
    cut_profile,
    polygon_parts,
    text_extent,
    to_world,
    world_bounds,
)
from sheet_design import (
    BendDirection,
    Rectangle,
    Shape,
    Text,
    bends_of,
    require_shapes,
    total_bends,
)

logger = logging.getLogger(__name__)

Transform = Callable[[float, float], Tuple[float, float]]


@dataclass
class SVGExportConfig:
    """Configuration for SVG export."""
    margin: float = 10.0              # mm around the design
    cut_color: str = "#ff0000"
    cut_stroke_width: float = 0.1     # hairline for laser software
    fill_shapes: bool = True          # fill outlines with the shape colour
    engrave_color: str = "#0000ff"
    bend_color: str = "#f97316"
    bend_stroke_width: float = 0.5
    bend_dasharray: str = "4,2"
    label_font_size: float = 3.0
    add_bend_labels: bool = True
    add_legend: bool = True
    legend_height: float = 12.0       # mm reserved below the design


def _style(config: SVGExportConfig) -> str:
    return f"""
        .cut {{ stroke: {config.cut_color}; stroke-width: {config.cut_stroke_width}; }}
        .engrave {{ fill: {config.engrave_color}; font-family: Arial, sans-serif; }}
        .bend {{ stroke: {config.bend_color}; stroke-width: {config.bend_stroke_width}; fill: none; }}
        .bend-label {{ fill: {config.bend_color}; font-family: Arial, sans-serif; }}
        .legend {{ fill: #333333; font-family: Arial, sans-serif; }}
    """


def _ring_to_d(coords, transform: Transform) -> str:
    pts = [transform(x, y) for x, y in list(coords)[:-1]]
    head, rest = pts[0], pts[1:]
    parts = [f"M {head[0]:.4f},{head[1]:.4f}"]
    parts.extend(f"L {x:.4f},{y:.4f}" for x, y in rest)
    parts.append("Z")
    return " ".join(parts)


def shape_path_data(shape: Shape, transform: Transform) -> str:
    """Path ``d`` for *shape*: every ring of its cut profile.

    Overlapping holes are merged and hole parts outside the outline dropped,
    so even-odd filling shows exactly the material the solid keeps.
    """
    parts = []
    for polygon in polygon_parts(cut_profile(shape)):
        for ring in [polygon.exterior, *polygon.interiors]:
            parts.append(_ring_to_d(ring.coords, transform))
    return " ".join(parts)


def _add_cut_shape(dwg, group, shape: Shape, transform: Transform, config: SVGExportConfig) -> None:
    group.add(dwg.path(
        d=shape_path_data(shape, transform),
        class_="cut",
        fill=shape.color if config.fill_shapes else "none",
        fill_rule="evenodd",
        stroke=config.cut_color,
        stroke_width=config.cut_stroke_width,
    ))


def _add_text_shape(dwg, group, shape: Text, transform: Transform, config: SVGExportConfig) -> None:
    x, y = transform(shape.position.x, shape.position.y)
    _, height = text_extent(shape)
    attrs = dict(
        insert=(x, y + height * 0.35),  # roughly centre the cap height on the position
        class_="engrave",
        font_size=shape.font_size,
        font_family=shape.font_family,
        text_anchor="middle",
        fill=config.engrave_color,
    )
    if shape.rotation:
        # Y-down document: a counter-clockwise design rotation is a negative SVG rotate.
        attrs["transform"] = f"rotate({-math.degrees(shape.rotation):.4f}, {x:.4f}, {y:.4f})"
    group.add(dwg.text(shape.text, **attrs))


def _add_bends(dwg, group, shape: Rectangle, transform: Transform, config: SVGExportConfig) -> None:
    for bend in bends_of(shape):
        line = to_world(bend_line(shape, bend), shape)
        (x1, y1), (x2, y2) = [transform(x, y) for x, y in line.coords]
        group.add(dwg.line(
            start=(x1, y1),
            end=(x2, y2),
            class_="bend",
            stroke=config.bend_color,
            stroke_width=config.bend_stroke_width,
            stroke_dasharray=config.bend_dasharray,
        ))
        if config.add_bend_labels:
            arrow = "↑" if bend.direction == BendDirection.UP else "↓"
            group.add(dwg.text(
                f"{bend.angle:g}° {arrow}",
                insert=((x1 + x2) / 2.0, (y1 + y2) / 2.0 - config.label_font_size * 0.5),
                class_="bend-label",
                font_size=config.label_font_size,
                text_anchor="middle",
                fill=config.bend_color,
            ))


def _add_legend(dwg, canvas_height: float, config: SVGExportConfig) -> None:
    x = config.margin
    y = canvas_height - config.legend_height + config.label_font_size
    legend = dwg.g(id="legend", class_="legend")
    legend.add(dwg.line(
        start=(x, y - config.label_font_size * 0.35),
        end=(x + 10.0, y - config.label_font_size * 0.35),
        stroke=config.bend_color,
        stroke_width=config.bend_stroke_width,
        stroke_dasharray=config.bend_dasharray,
    ))
    legend.add(dwg.text(
        "Bend line (not a cut path): ↑ bend up, ↓ bend down",
        insert=(x + 12.0, y),
        font_size=config.label_font_size,
        fill="#333333",
    ))
    legend.add(dwg.text(
        "Red: cut. Blue: engrave. Positions in mm on the flat sheet.",
        insert=(x, y + config.label_font_size * 1.5),
        font_size=config.label_font_size,
        fill="#333333",
    ))
    dwg.add(legend)


def build_drawing(
    shapes: Sequence[Shape],
    config: Optional[SVGExportConfig] = None,
) -> svgwrite.Drawing:
    """Assemble the SVG document for *shapes*.

    Raises ``EmptyDesignError`` when there is nothing to draw.
    """
    require_shapes(shapes)
    if config is None:
        config = SVGExportConfig()

    minx, miny, maxx, maxy = world_bounds(shapes)
    has_bends = total_bends(shapes) > 0
    canvas_width = (maxx - minx) + 2 * config.margin
    canvas_height = (maxy - miny) + 2 * config.margin
    if has_bends and config.add_legend:
        canvas_height += config.legend_height

    def transform(x: float, y: float) -> Tuple[float, float]:
        return (x - minx + config.margin, maxy - y + config.margin)

    dwg = svgwrite.Drawing(
        size=(f"{canvas_width:.4f}mm", f"{canvas_height:.4f}mm"),
        viewBox=f"0 0 {canvas_width:.4f} {canvas_height:.4f}",
    )
    dwg.defs.add(dwg.style(_style(config)))

    for shape in shapes:
        group = dwg.g(id=shape.id, class_="shape")
        if isinstance(shape, Text):
            _add_text_shape(dwg, group, shape, transform, config)
        else:
            _add_cut_shape(dwg, group, shape, transform, config)
        if isinstance(shape, Rectangle) and shape.bends:
            _add_bends(dwg, group, shape, transform, config)
        dwg.add(group)

    if has_bends and config.add_legend:
        _add_legend(dwg, canvas_height, config)
    return dwg


def export_svg(
    shapes: Sequence[Shape],
    config: Optional[SVGExportConfig] = None,
) -> str:
    """Self-contained SVG document string for *shapes*."""
    dwg = build_drawing(shapes, config)
    buffer = io.StringIO()
    dwg.write(buffer, pretty=True)
    return buffer.getvalue()


def save_svg(
    shapes: Sequence[Shape],
    filepath: str,
    config: Optional[SVGExportConfig] = None,
) -> str:
    """Write the SVG for *shapes* to *filepath*.

    Returns:
        Path to created SVG file.
    """
    content = export_svg(shapes, config)
    os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(content)
    logger.info("Exported SVG: %s", filepath)
    return filepath

