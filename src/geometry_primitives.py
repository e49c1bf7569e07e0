"""
Boundary paths and 2D outlines for every shape family.

Turns a shape's parametric description into an ordered vertex loop in local
coordinates (centred on the origin, Y up) and into Shapely polygons for the
exporters. Loops are returned without the duplicated closing vertex.
"""
import math
from typing import Callable, Dict, List, Sequence, Tuple

import numpy as np
from shapely import affinity
from shapely.geometry import GeometryCollection, LineString, MultiPolygon, Polygon, box
from shapely.geometry.base import BaseGeometry

from sheet_design import (
    Bend,
    BendOrientation,
    Circle,
    CustomPath,
    Heart,
    Hexagon,
    Hole,
    HoleType,
    Pentagon,
    Rectangle,
    Shape,
    ShapeKind,
    Star,
    Text,
    Triangle,
    UnsupportedShapeError,
    bends_of,
)

Point2D = Tuple[float, float]

CIRCLE_SEGMENTS = 128
HEART_SEGMENT_SAMPLES = 16
CORNER_SAMPLES = 8
TEXT_ADVANCE_RATIO = 0.6  # average glyph advance as a fraction of font size

# Heart template at size 50: start point then eight cubic segments
# (control 1, control 2, end point).
_HEART_START = (0.0, 15.0)
_HEART_SEGMENTS = (
    ((0.0, 15.0), (-10.0, 25.0), (-25.0, 25.0)),
    ((-55.0, 25.0), (-55.0, -10.0), (-55.0, -10.0)),
    ((-55.0, -25.0), (-40.0, -40.0), (-25.0, -47.0)),
    ((-10.0, -54.0), (0.0, -50.0), (0.0, -50.0)),
    ((0.0, -50.0), (10.0, -54.0), (25.0, -47.0)),
    ((40.0, -40.0), (55.0, -25.0), (55.0, -10.0)),
    ((55.0, -10.0), (55.0, 25.0), (25.0, 25.0)),
    ((10.0, 25.0), (0.0, 15.0), (0.0, 15.0)),
)


# ─── Path builders ───────────────────────────────────────────────────────────

def regular_polygon_path(sides: int, radius: float) -> List[Point2D]:
    """N vertices at ``radius``; vertex i sits at angle (i/N)*2pi - pi/2."""
    angles = np.arange(sides) / sides * 2.0 * np.pi - np.pi / 2.0
    return [(float(radius * np.cos(a)), float(radius * np.sin(a))) for a in angles]


def star_path(outer_radius: float, inner_radius: float, points: int) -> List[Point2D]:
    """2P vertices alternating outer/inner radius, same angular origin as polygons."""
    count = points * 2
    result = []
    for i in range(count):
        angle = i / count * 2.0 * math.pi - math.pi / 2.0
        r = outer_radius if i % 2 == 0 else inner_radius
        result.append((r * math.cos(angle), r * math.sin(angle)))
    return result


def circle_path(radius: float, segments: int = CIRCLE_SEGMENTS) -> List[Point2D]:
    angles = np.arange(segments) / segments * 2.0 * np.pi
    return [(float(radius * np.cos(a)), float(radius * np.sin(a))) for a in angles]


def rectangle_path(width: float, height: float) -> List[Point2D]:
    hw, hh = width / 2.0, height / 2.0
    return [(-hw, -hh), (hw, -hh), (hw, hh), (-hw, hh)]


def rounded_rectangle_path(
    width: float,
    height: float,
    corner_radius: float,
    samples: int = CORNER_SAMPLES,
) -> List[Point2D]:
    """Rectangle with quadratic-Bezier corners.

    The radius is clamped to half the shorter side; a radius of zero gives the
    plain four-corner rectangle.
    """
    r = min(corner_radius, width / 2.0, height / 2.0)
    if r <= 0:
        return rectangle_path(width, height)

    hw, hh = width / 2.0, height / 2.0
    # (straight-edge end, corner control, corner end) walking counter-clockwise
    legs = (
        ((hw - r, -hh), (hw, -hh), (hw, -hh + r)),
        ((hw, hh - r), (hw, hh), (hw - r, hh)),
        ((-hw + r, hh), (-hw, hh), (-hw, hh - r)),
        ((-hw, -hh + r), (-hw, -hh), (-hw + r, -hh)),
    )
    start = np.array([-hw + r, -hh])
    points = [tuple(start)]
    t = np.linspace(0.0, 1.0, samples + 1)[1:, None]
    for edge_end, control, corner_end in legs:
        p0, p1, p2 = np.array(edge_end), np.array(control), np.array(corner_end)
        points.append(tuple(p0))
        curve = (1 - t) ** 2 * p0 + 2 * (1 - t) * t * p1 + t ** 2 * p2
        points.extend(tuple(p) for p in curve)
    # The last corner lands back on the start point.
    return _dedupe([(float(x), float(y)) for x, y in points[:-1]])


def heart_path(size: float, samples: int = HEART_SEGMENT_SAMPLES) -> List[Point2D]:
    """Fixed eight-segment cubic Bezier heart scaled by ``size / 50``."""
    scale = size / 50.0
    t = np.linspace(0.0, 1.0, samples + 1)[1:, None]
    current = np.array(_HEART_START) * scale
    points: List[Point2D] = []
    for c1, c2, end in _HEART_SEGMENTS:
        p1 = np.array(c1) * scale
        p2 = np.array(c2) * scale
        p3 = np.array(end) * scale
        curve = (
            (1 - t) ** 3 * current
            + 3 * (1 - t) ** 2 * t * p1
            + 3 * (1 - t) * t ** 2 * p2
            + t ** 3 * p3
        )
        points.extend((float(x), float(y)) for x, y in curve)
        current = p3
    return _dedupe(points)


def _dedupe(points: Sequence[Point2D], tol: float = 1e-9) -> List[Point2D]:
    """Drop consecutive duplicates, including a trailing copy of the first point."""
    result: List[Point2D] = []
    for p in points:
        if result and abs(p[0] - result[-1][0]) <= tol and abs(p[1] - result[-1][1]) <= tol:
            continue
        result.append(p)
    if len(result) > 1 and abs(result[0][0] - result[-1][0]) <= tol \
            and abs(result[0][1] - result[-1][1]) <= tol:
        result.pop()
    return result


# ─── Per-shape dispatch ──────────────────────────────────────────────────────

def _rectangle(shape: Rectangle) -> List[Point2D]:
    return rounded_rectangle_path(shape.width, shape.height, shape.corner_radius)


def _circle(shape: Circle) -> List[Point2D]:
    return circle_path(shape.radius)


def _triangle(shape: Triangle) -> List[Point2D]:
    return regular_polygon_path(3, shape.size)


def _pentagon(shape: Pentagon) -> List[Point2D]:
    return regular_polygon_path(5, shape.size)


def _hexagon(shape: Hexagon) -> List[Point2D]:
    return regular_polygon_path(6, shape.size)


def _star(shape: Star) -> List[Point2D]:
    return star_path(shape.outer_radius, shape.inner_radius, shape.points)


def _heart(shape: Heart) -> List[Point2D]:
    return heart_path(shape.size)


def _text(shape: Text) -> List[Point2D]:
    raise UnsupportedShapeError("Text shapes have no boundary path (glyph outlines need a font)")


def _custom(shape: CustomPath) -> List[Point2D]:
    return [(p.x, p.y) for p in shape.points]


PATH_BUILDERS: Dict[ShapeKind, Callable[..., List[Point2D]]] = {
    ShapeKind.RECTANGLE: _rectangle,
    ShapeKind.CIRCLE: _circle,
    ShapeKind.TRIANGLE: _triangle,
    ShapeKind.PENTAGON: _pentagon,
    ShapeKind.HEXAGON: _hexagon,
    ShapeKind.STAR: _star,
    ShapeKind.HEART: _heart,
    ShapeKind.TEXT: _text,
    ShapeKind.CUSTOM: _custom,
}


def boundary_path(shape: Shape) -> List[Point2D]:
    """Closed outline of *shape* in local coordinates (implicit closure)."""
    return PATH_BUILDERS[shape.kind](shape)


def hole_path(hole: Hole) -> List[Point2D]:
    """Hole outline in the parent's local coordinates."""
    if hole.type == HoleType.CIRCLE:
        local = circle_path(hole.radius)
    else:
        local = rectangle_path(hole.width, hole.height)
    return [(x + hole.position.x, y + hole.position.y) for x, y in local]


# ─── Shapely conversions ─────────────────────────────────────────────────────

def shape_polygon(shape: Shape) -> Polygon:
    """Outer boundary of *shape* as a local-coordinate polygon."""
    return Polygon(boundary_path(shape))


def hole_polygon(hole: Hole) -> Polygon:
    return Polygon(hole_path(hole))


def shape_profile(shape: Shape) -> Polygon:
    """Outline minus all holes (the material left after cutting)."""
    result = shape_polygon(shape)
    for hole in shape.holes:
        result = result.difference(hole_polygon(hole))
    return result


def to_world(geometry: BaseGeometry, shape: Shape) -> BaseGeometry:
    """Rotate about the shape centre then move to the shape's position."""
    placed = geometry
    if shape.rotation:
        placed = affinity.rotate(placed, shape.rotation, origin=(0, 0), use_radians=True)
    return affinity.translate(placed, shape.position.x, shape.position.y)


def world_polygon(shape: Shape) -> Polygon:
    return to_world(shape_polygon(shape), shape)


def cut_profile(shape: Shape) -> BaseGeometry:
    """World-placed material left after cutting: outline minus the union of holes.

    When the holes remove everything the bare outline is returned, the same
    way hole cutting falls back to the uncut solid.
    """
    profile = shape_profile(shape)
    if profile.is_empty:
        profile = shape_polygon(shape)
    return to_world(profile, shape)


def polygon_parts(geometry: BaseGeometry) -> List[Polygon]:
    """Non-empty polygons of a (multi)polygon result, in shapely's order."""
    if geometry.is_empty:
        return []
    if isinstance(geometry, Polygon):
        return [geometry]
    if isinstance(geometry, (MultiPolygon, GeometryCollection)):
        return [g for g in geometry.geoms if isinstance(g, Polygon) and not g.is_empty]
    return []


def text_extent(shape: Text) -> Tuple[float, float]:
    """Estimated (width, height) of a text shape's layout box."""
    return (TEXT_ADVANCE_RATIO * shape.font_size * len(shape.text), shape.font_size)


def layout_polygon(shape: Shape) -> Polygon:
    """Local footprint used for bounds: the outline, or the text box estimate."""
    if isinstance(shape, Text):
        w, h = text_extent(shape)
        return box(-w / 2.0, -h / 2.0, w / 2.0, h / 2.0)
    return shape_polygon(shape)


def shape_extent(shape: Shape) -> Tuple[float, float]:
    """Local bounding-box (width, height) of *shape*."""
    minx, miny, maxx, maxy = layout_polygon(shape).bounds
    return (maxx - minx, maxy - miny)


def world_bounds(shapes: Sequence[Shape]) -> Tuple[float, float, float, float]:
    """(minx, miny, maxx, maxy) over every shape's placed footprint."""
    if not shapes:
        return (0.0, 0.0, 0.0, 0.0)
    bounds = np.array([to_world(layout_polygon(s), s).bounds for s in shapes])
    return (
        float(bounds[:, 0].min()),
        float(bounds[:, 1].min()),
        float(bounds[:, 2].max()),
        float(bounds[:, 3].max()),
    )


def bend_line(shape: Rectangle, bend: Bend) -> LineString:
    """Bend line across the flat rectangle, in local coordinates."""
    hw, hh = shape.width / 2.0, shape.height / 2.0
    if bend.orientation == BendOrientation.HORIZONTAL:
        y = -hh + bend.position
        return LineString([(-hw, y), (hw, y)])
    x = -hw + bend.position
    return LineString([(x, -hh), (x, hh)])


def validate_shape(shape: Shape) -> List[str]:
    """Advisory geometry checks.

    Returns list of warning strings (empty = ok). Nothing here rejects a
    shape; holes outside the outline are still cut as drawn.
    """
    issues = []
    if isinstance(shape, Text):
        if shape.holes:
            issues.append("Holes on text shapes are ignored")
        return issues

    outline = shape_polygon(shape)
    if not outline.is_valid:
        issues.append("Outline polygon is invalid")
    if outline.area < 1.0:
        issues.append(f"Outline area too small: {outline.area:.2f} mm2")

    hole_polys = [(h, hole_polygon(h)) for h in shape.holes]
    for hole, poly in hole_polys:
        if not outline.contains(poly):
            issues.append(f"Hole {hole.id} extends outside outline")
    for i, (hole_a, poly_a) in enumerate(hole_polys):
        for hole_b, poly_b in hole_polys[i + 1:]:
            if poly_a.intersects(poly_b):
                issues.append(f"Holes {hole_a.id} and {hole_b.id} overlap")

    for bend in bends_of(shape):
        for hole, poly in hole_polys:
            if bend_line(shape, bend).intersects(poly):
                issues.append(f"Bend {bend.id} crosses hole {hole.id}")
    return issues
