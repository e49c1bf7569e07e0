"""
Closed-form area formulas per shape family, consumed by quoting.

Rectangle, circle, triangle and hexagon use exact formulas. Pentagon, star and
heart use the approximations the pricing has always been based on:

- pentagon: 2.377 * r^2 (r = circumradius; the exact value is ~2.3776 r^2)
- star: (pi*R^2 + pi*r^2) / 2, not the star polygon's own area
- heart: 0.75 * pi * (size/2)^2, not the Bezier-enclosed area

Triangle ``size`` is treated as the side length here even though the outline
uses it as the circumradius; quotes keep the historical formula.

Holes are not subtracted: a quote prices the material footprint.
"""
import math
from collections import OrderedDict
from typing import Callable, Dict, List, Sequence

from shapely.geometry import Polygon

from sheet_design import (
    Circle,
    CustomPath,
    Heart,
    Hexagon,
    Pentagon,
    Rectangle,
    Shape,
    ShapeKind,
    Star,
    Text,
    Triangle,
)
from units import mm2_to_m2

PENTAGON_AREA_FACTOR = 2.377
HEART_CIRCLE_FRACTION = 0.75


def _rectangle(shape: Rectangle) -> float:
    return shape.width * shape.height


def _circle(shape: Circle) -> float:
    return math.pi * shape.radius * shape.radius


def _triangle(shape: Triangle) -> float:
    return (math.sqrt(3) / 4.0) * shape.size * shape.size


def _pentagon(shape: Pentagon) -> float:
    return PENTAGON_AREA_FACTOR * shape.size * shape.size


def _hexagon(shape: Hexagon) -> float:
    return (3.0 * math.sqrt(3) / 2.0) * shape.size * shape.size


def _star(shape: Star) -> float:
    outer = math.pi * shape.outer_radius * shape.outer_radius
    inner = math.pi * shape.inner_radius * shape.inner_radius
    return (outer + inner) / 2.0


def _heart(shape: Heart) -> float:
    radius = shape.size / 2.0
    return HEART_CIRCLE_FRACTION * math.pi * radius * radius


def _text(shape: Text) -> float:
    # Engraved, not priced as material.
    return 0.0


def _custom(shape: CustomPath) -> float:
    return Polygon([(p.x, p.y) for p in shape.points]).area


AREA_FORMULAS: Dict[ShapeKind, Callable[..., float]] = {
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

APPROXIMATE_KINDS = frozenset({ShapeKind.PENTAGON, ShapeKind.STAR, ShapeKind.HEART})


def shape_area(shape: Shape) -> float:
    """Area of *shape* in mm^2 (see module docstring for approximations)."""
    return AREA_FORMULAS[shape.kind](shape)


def is_area_approximate(shape: Shape) -> bool:
    return shape.kind in APPROXIMATE_KINDS


def total_area_mm2(shapes: Sequence[Shape]) -> float:
    return sum(shape_area(s) for s in shapes)


def area_breakdown(shapes: Sequence[Shape]) -> List[Dict[str, object]]:
    """Area (m^2) and piece count grouped by capitalised type name."""
    groups: "OrderedDict[str, Dict[str, float]]" = OrderedDict()
    for shape in shapes:
        name = shape.kind.value.capitalize()
        entry = groups.setdefault(name, {"area": 0.0, "count": 0})
        entry["area"] += shape_area(shape)
        entry["count"] += 1
    return [
        {
            "type": name,
            "area": mm2_to_m2(entry["area"]),
            "count": int(entry["count"]),
            "approximate": any(
                is_area_approximate(s) for s in shapes if s.kind.value.capitalize() == name
            ),
        }
        for name, entry in groups.items()
    ]
