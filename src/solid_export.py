"""
Solid export: binary STL of the whole design and the 3D preview scene.

Each shape becomes one mesh in world coordinates (rotated about its centre
then moved to its position). Holes are cut through ``hole_cutting``; a failed
cut falls back to the uncut solid. Text has no solid body and is skipped with
a warning.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
import trimesh

from bend_geometry import folded_mesh
from hole_cutting import BooleanEngine, cut_solid
from materials import Material
from sheet_design import (
    DEFAULT_COLOR,
    NothingToExportError,
    Rectangle,
    Shape,
    Text,
    require_shapes,
)

logger = logging.getLogger(__name__)


@dataclass
class SolidExportConfig:
    """Configuration for solid export.

    ``thickness`` of None means "use the material thickness".
    """
    thickness: Optional[float] = None
    default_thickness: float = 2.0

    def resolve_thickness(self, material: Optional[Material] = None) -> float:
        if self.thickness is not None:
            return self.thickness
        if material is not None:
            return material.thickness_mm
        return self.default_thickness


def placement_matrix(shape: Shape) -> np.ndarray:
    """4x4 transform from a shape's local frame to world coordinates."""
    matrix = trimesh.transformations.rotation_matrix(shape.rotation, [0, 0, 1])
    matrix[:3, 3] = [shape.position.x, shape.position.y, 0.0]
    return matrix


def placed_solid(
    shape: Shape,
    thickness: float,
    engine: Optional[BooleanEngine] = None,
) -> trimesh.Trimesh:
    """Hole-cut solid of *shape* in world coordinates."""
    mesh = cut_solid(shape, thickness, engine=engine).copy()
    mesh.apply_transform(placement_matrix(shape))
    return mesh


def design_solids(
    shapes: Sequence[Shape],
    thickness: float,
    engine: Optional[BooleanEngine] = None,
) -> List[Tuple[Shape, trimesh.Trimesh]]:
    """(shape, world mesh) for every shape that has a solid body.

    Raises ``EmptyDesignError`` for an empty design and
    ``NothingToExportError`` when no shape produced geometry.
    """
    require_shapes(shapes)
    solids = []
    for shape in shapes:
        if isinstance(shape, Text):
            logger.warning("Skipping text shape %s: text is not supported in STL export", shape.id)
            continue
        try:
            solids.append((shape, placed_solid(shape, thickness, engine=engine)))
        except Exception as e:
            logger.warning("Skipping %s: solid construction failed: %s", shape.id, e)
    if not solids:
        raise NothingToExportError("Nothing to export: no shape produced a solid")
    return solids


def export_stl(
    shapes: Sequence[Shape],
    thickness: float,
    engine: Optional[BooleanEngine] = None,
) -> bytes:
    """Binary STL of all exportable shapes, merged into one mesh."""
    meshes = [mesh for _, mesh in design_solids(shapes, thickness, engine=engine)]
    combined = trimesh.util.concatenate(meshes)
    data = combined.export(file_type="stl")
    logger.info("Built STL: %d shape(s), %d faces", len(meshes), len(combined.faces))
    return data


def save_stl(
    shapes: Sequence[Shape],
    filepath: str,
    thickness: float,
    engine: Optional[BooleanEngine] = None,
) -> str:
    data = export_stl(shapes, thickness, engine=engine)
    with open(filepath, "wb") as f:
        f.write(data)
    logger.info("Exported STL: %s", filepath)
    return filepath


def _parse_hex(hex_color: str) -> Tuple[int, int, int]:
    h = str(hex_color).lstrip("#")
    if len(h) != 6:
        raise ValueError(f"not a #rrggbb colour: {hex_color!r}")
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def _hex_to_rgba(hex_color: str) -> np.ndarray:
    """Face colour for *hex_color*; anything but #rrggbb falls back to the default grey."""
    try:
        r, g, b = _parse_hex(hex_color)
    except ValueError:
        logger.debug("Unusable colour %r, using %s", hex_color, DEFAULT_COLOR)
        r, g, b = _parse_hex(DEFAULT_COLOR)
    return np.array([r, g, b, 255], dtype=np.uint8)


def _colorize(mesh: trimesh.Trimesh, color: str) -> None:
    mesh.visual.face_colors = np.tile(_hex_to_rgba(color), (len(mesh.faces), 1))


def build_preview_scene(
    shapes: Sequence[Shape],
    thickness: float,
    engine: Optional[BooleanEngine] = None,
) -> trimesh.Scene:
    """3D preview: bent rectangles folded, everything else hole-cut.

    Text is left out; the scene may be empty for a text-only design.
    """
    require_shapes(shapes)
    scene = trimesh.Scene()
    for shape in shapes:
        if isinstance(shape, Text):
            continue
        mesh = None
        if isinstance(shape, Rectangle) and shape.bends:
            fold = folded_mesh(shape, thickness)
            if fold is not None:
                mesh = fold.mesh.copy()
                mesh.apply_transform(placement_matrix(shape))
        if mesh is None:
            mesh = placed_solid(shape, thickness, engine=engine)
        _colorize(mesh, shape.color)
        scene.add_geometry(mesh, node_name=shape.id, geom_name=shape.id)
    return scene
