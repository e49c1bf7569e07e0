"""
Hole cutting: boolean subtraction of hole brushes from a shape's solid body.

Solids live in design space: the outline lies in XY (local coordinates,
centred on the origin) and is extruded along Z, centred on z = 0. Placement
in the world happens later (see ``solid_export``).

All boolean calls go through a ``BooleanEngine`` so the mesh library can be
swapped; the default uses trimesh's manifold backend.
"""
import logging
from typing import Callable, Dict, List, Optional, Protocol

import trimesh
from shapely.geometry import Polygon

from geometry_primitives import boundary_path
from sheet_design import (
    Circle,
    Hole,
    HoleType,
    Rectangle,
    Shape,
    ShapeKind,
    Text,
    UnsupportedShapeError,
)

logger = logging.getLogger(__name__)

SOLID_CIRCLE_SECTIONS = 64
HOLE_CIRCLE_SECTIONS = 32
CUT_DEPTH_FACTOR = 1.2
CUT_DEPTH_MARGIN = 1.0


class BooleanEngine(Protocol):
    """Anything that can subtract one closed mesh from another."""

    def subtract(self, solid: trimesh.Trimesh, tool: trimesh.Trimesh) -> trimesh.Trimesh:
        ...


class ManifoldEngine:
    """Default engine: trimesh booleans backed by manifold3d."""

    name = "manifold"

    def subtract(self, solid: trimesh.Trimesh, tool: trimesh.Trimesh) -> trimesh.Trimesh:
        return trimesh.boolean.difference([solid, tool], engine=self.name)


DEFAULT_ENGINE = ManifoldEngine()


# ─── Brushes ─────────────────────────────────────────────────────────────────

def cut_depth(depth: float) -> float:
    """Height of a hole brush: long enough to clear both faces of the sheet."""
    return max(CUT_DEPTH_FACTOR * depth, depth + CUT_DEPTH_MARGIN)


def _rectangle_solid(shape: Rectangle, depth: float) -> trimesh.Trimesh:
    if shape.corner_radius > 0:
        return _extrude(Polygon(boundary_path(shape)), depth)
    return trimesh.creation.box(extents=[shape.width, shape.height, depth])


def _circle_solid(shape: Circle, depth: float) -> trimesh.Trimesh:
    return trimesh.creation.cylinder(
        radius=shape.radius, height=depth, sections=SOLID_CIRCLE_SECTIONS
    )


def _polygon_solid(shape: Shape, depth: float) -> trimesh.Trimesh:
    return _extrude(Polygon(boundary_path(shape)), depth)


def _text_solid(shape: Text, depth: float) -> trimesh.Trimesh:
    raise UnsupportedShapeError("Text shapes have no solid body")


SOLID_BUILDERS: Dict[ShapeKind, Callable[..., trimesh.Trimesh]] = {
    ShapeKind.RECTANGLE: _rectangle_solid,
    ShapeKind.CIRCLE: _circle_solid,
    ShapeKind.TRIANGLE: _polygon_solid,
    ShapeKind.PENTAGON: _polygon_solid,
    ShapeKind.HEXAGON: _polygon_solid,
    ShapeKind.STAR: _polygon_solid,
    ShapeKind.HEART: _polygon_solid,
    ShapeKind.TEXT: _text_solid,
    ShapeKind.CUSTOM: _polygon_solid,
}


def base_solid(shape: Shape, depth: float) -> trimesh.Trimesh:
    """Uncut solid body of *shape*, ``depth`` thick along Z.

    Raises ``UnsupportedShapeError`` for text.
    """
    if depth <= 0:
        raise ValueError(f"Extrusion depth must be positive, got {depth!r}")
    return SOLID_BUILDERS[shape.kind](shape, depth)


def _extrude(polygon: Polygon, depth: float) -> trimesh.Trimesh:
    """Extrude *polygon* by *depth* and centre the result on z = 0."""
    mesh = trimesh.creation.extrude_polygon(polygon, height=depth)
    mesh.apply_translation([0.0, 0.0, -depth / 2.0])
    return mesh


def hole_brush(hole: Hole, depth: float) -> trimesh.Trimesh:
    """Through-cut tool for *hole*, centred on the extrusion axis."""
    height = cut_depth(depth)
    if hole.type == HoleType.CIRCLE:
        brush = trimesh.creation.cylinder(
            radius=hole.radius, height=height, sections=HOLE_CIRCLE_SECTIONS
        )
    else:
        brush = trimesh.creation.box(extents=[hole.width, hole.height, height])
    brush.apply_translation([hole.position.x, hole.position.y, 0.0])
    return brush


# ─── Subtraction ─────────────────────────────────────────────────────────────

def subtract_holes(
    solid: trimesh.Trimesh,
    holes: List[Hole],
    depth: float,
    engine: Optional[BooleanEngine] = None,
) -> trimesh.Trimesh:
    """Subtract each hole in storage order. Boolean errors propagate.

    An empty result is treated as a failure.
    """
    engine = engine or DEFAULT_ENGINE
    result = solid
    for hole in holes:
        result = engine.subtract(result, hole_brush(hole, depth))
        if result is None or result.is_empty or len(result.faces) == 0:
            raise ValueError(f"Subtracting hole {hole.id} left no geometry")
    return result


def solid_with_holes(
    shape: Shape,
    depth: float,
    engine: Optional[BooleanEngine] = None,
) -> Optional[trimesh.Trimesh]:
    """Solid body of *shape* with every hole cut through.

    Returns None when any boolean step fails; the failure is logged with the
    shape id. Shapes without holes return the base solid unchanged.
    """
    solid = base_solid(shape, depth)
    if not shape.holes:
        return solid
    try:
        return subtract_holes(solid, shape.holes, depth, engine=engine)
    except Exception as e:
        logger.warning("Hole cutting failed for %s: %s", shape.id, e)
        return None


def cut_solid(
    shape: Shape,
    depth: float,
    engine: Optional[BooleanEngine] = None,
) -> trimesh.Trimesh:
    """Like ``solid_with_holes`` but falls back to the uncut solid."""
    result = solid_with_holes(shape, depth, engine=engine)
    if result is None:
        logger.info("Using uncut solid for %s", shape.id)
        return base_solid(shape, depth)
    return result

