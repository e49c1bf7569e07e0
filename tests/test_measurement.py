"""Tests for the area engine."""
import math

import pytest

from measurement import (
    AREA_FORMULAS,
    area_breakdown,
    is_area_approximate,
    shape_area,
    total_area_mm2,
)
from sheet_design import (
    Circle,
    CustomPath,
    Heart,
    Hexagon,
    Hole,
    Pentagon,
    Position,
    Rectangle,
    ShapeKind,
    Star,
    Text,
    Triangle,
    create_shape,
)


class TestAreaFormulas:

    def test_every_kind_has_a_formula(self):
        assert set(AREA_FORMULAS) == set(ShapeKind)

    @pytest.mark.parametrize("width,height", [(100, 150), (0.5, 3), (1234.5, 6.25)])
    def test_rectangle_exact(self, width, height):
        assert shape_area(Rectangle(width=width, height=height)) == width * height

    @pytest.mark.parametrize("radius", [0.1, 1, 50, 333.3])
    def test_circle(self, radius):
        assert shape_area(Circle(radius=radius)) == pytest.approx(math.pi * radius ** 2, rel=1e-9)

    def test_triangle_uses_side_formula(self):
        assert shape_area(Triangle(size=10)) == pytest.approx(math.sqrt(3) / 4 * 100)

    def test_hexagon(self):
        assert shape_area(Hexagon(size=10)) == pytest.approx(3 * math.sqrt(3) / 2 * 100)

    def test_pentagon_constant(self):
        assert shape_area(Pentagon(size=10)) == pytest.approx(237.7)

    def test_star_is_averaged_circle_approximation(self):
        star = Star(outer_radius=50, inner_radius=25)
        expected = (math.pi * 2500 + math.pi * 625) / 2
        assert shape_area(star) == pytest.approx(expected)

    def test_heart_approximation(self):
        assert shape_area(Heart(size=100)) == pytest.approx(0.75 * math.pi * 2500)

    def test_text_has_no_area(self):
        assert shape_area(Text(text="LONG TEXT", font_size=50)) == 0.0

    def test_custom_path_shoelace(self):
        path = CustomPath(points=[Position(0, 0), Position(30, 0), Position(30, 10), Position(0, 10)])
        assert shape_area(path) == pytest.approx(300.0)

    def test_holes_not_subtracted(self):
        rect = Rectangle(width=10, height=10, holes=[Hole(type="circle", radius=2)])
        assert shape_area(rect) == 100.0

    @pytest.mark.parametrize("kind", list(ShapeKind))
    def test_non_negative(self, kind):
        assert shape_area(create_shape(kind)) >= 0.0


class TestApproximation:

    def test_flags(self):
        assert is_area_approximate(Star())
        assert is_area_approximate(Heart())
        assert is_area_approximate(Pentagon())
        assert not is_area_approximate(Rectangle())
        assert not is_area_approximate(Circle())
        assert not is_area_approximate(Hexagon())


class TestBreakdown:

    def test_groups_by_type(self):
        shapes = [
            Rectangle(width=100, height=100),
            Rectangle(width=100, height=100),
            Star(),
        ]
        breakdown = area_breakdown(shapes)
        assert [entry["type"] for entry in breakdown] == ["Rectangle", "Star"]
        rect = breakdown[0]
        assert rect["count"] == 2
        assert rect["area"] == pytest.approx(0.02)
        assert rect["approximate"] is False
        assert breakdown[1]["approximate"] is True

    def test_total(self):
        shapes = [Rectangle(width=10, height=10), Rectangle(width=20, height=5)]
        assert total_area_mm2(shapes) == 200.0
