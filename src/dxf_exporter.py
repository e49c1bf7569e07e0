"""
DXF export for laser-cut sheet-metal parts.

Uses ezdxf to produce one DXF file per design with layers:
  - CUT (red, ACI 1): cut profile rings (outline minus the union of holes)
  - ENGRAVE (blue, ACI 5): text shapes
  - BEND (orange, ACI 30, DASHED): bend lines and their angle labels

Units: millimeters. Format: R2010. Coordinates are the design's world
coordinates (Y-up), so no flip is needed.
"""
import logging
import math
import os
from dataclasses import dataclass
from typing import Optional, Sequence

import ezdxf
from ezdxf.enums import TextEntityAlignment
from shapely.geometry import Polygon

from geometry_primitives import bend_line, cut_profile, polygon_parts, to_world
from sheet_design import (
    BendDirection,
    Rectangle,
    Shape,
    Text,
    bends_of,
    require_shapes,
)

logger = logging.getLogger(__name__)


@dataclass
class DXFExportConfig:
    """Configuration for DXF export."""
    cut_layer: str = "CUT"
    engrave_layer: str = "ENGRAVE"
    bend_layer: str = "BEND"
    cut_color: int = 1       # ACI red
    engrave_color: int = 5   # ACI blue
    bend_color: int = 30     # ACI orange
    bend_linetype: str = "DASHED"
    add_bend_labels: bool = True
    label_height_mm: float = 3.0


def design_to_dxf(
    shapes: Sequence[Shape],
    filepath: str,
    config: Optional[DXFExportConfig] = None,
) -> str:
    """Export every shape of a design to one DXF file.

    Args:
        shapes: The design's shapes.
        filepath: Output DXF file path.
        config: DXF export settings.

    Returns:
        Path to created DXF file.
    """
    require_shapes(shapes)
    if config is None:
        config = DXFExportConfig()

    doc = ezdxf.new("R2010", setup=True)
    doc.units = ezdxf.units.MM
    msp = doc.modelspace()
    _setup_layers(doc, config)

    for shape in shapes:
        if isinstance(shape, Text):
            _add_text(msp, shape, config)
            continue
        for part in polygon_parts(cut_profile(shape)):
            _add_polygon_to_dxf(msp, part, config.cut_layer)
        if isinstance(shape, Rectangle):
            _add_bends(msp, shape, config)

    os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
    doc.saveas(filepath)
    logger.info("Exported DXF: %s", filepath)
    return filepath


# ─── Internal helpers ────────────────────────────────────────────────────────

def _setup_layers(doc, config: DXFExportConfig) -> None:
    """Create CUT, ENGRAVE and BEND layers."""
    doc.layers.add(config.cut_layer, color=config.cut_color)
    doc.layers.add(config.engrave_layer, color=config.engrave_color)
    doc.layers.add(config.bend_layer, color=config.bend_color, linetype=config.bend_linetype)


def _add_polygon_to_dxf(msp, polygon: Polygon, layer: str) -> None:
    """Add a Shapely polygon as closed LWPolylines (exterior and interiors)."""
    for ring in [polygon.exterior, *polygon.interiors]:
        coords = list(ring.coords)[:-1]
        if len(coords) >= 3:
            msp.add_lwpolyline(coords, close=True, dxfattribs={"layer": layer})


def _add_text(msp, shape: Text, config: DXFExportConfig) -> None:
    msp.add_text(
        shape.text,
        height=shape.font_size,
        dxfattribs={
            "layer": config.engrave_layer,
            "rotation": math.degrees(shape.rotation),
        },
    ).set_placement(
        (shape.position.x, shape.position.y),
        align=TextEntityAlignment.MIDDLE_CENTER,
    )


def _add_bends(msp, shape: Rectangle, config: DXFExportConfig) -> None:
    for bend in bends_of(shape):
        line = to_world(bend_line(shape, bend), shape)
        start, end = list(line.coords)
        msp.add_line(start, end, dxfattribs={"layer": config.bend_layer})
        if config.add_bend_labels:
            arrow = "UP" if bend.direction == BendDirection.UP else "DOWN"
            mid = ((start[0] + end[0]) / 2.0, (start[1] + end[1]) / 2.0 + config.label_height_mm)
            msp.add_text(
                f"{bend.angle:g}%%d {arrow}",
                height=config.label_height_mm,
                dxfattribs={"layer": config.bend_layer},
            ).set_placement(mid, align=TextEntityAlignment.MIDDLE_CENTER)
