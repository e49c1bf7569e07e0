"""Tests for dxf_exporter module."""
import os
import tempfile

import ezdxf
import pytest
from shapely.geometry import Polygon

from dxf_exporter import DXFExportConfig, design_to_dxf
from sheet_design import EmptyDesignError, Hole, HoleType, Position, Rectangle, Text


@pytest.fixture
def tmp_dir():
    with tempfile.TemporaryDirectory() as d:
        yield d


def _export(shapes, tmp_dir, config=None):
    filepath = os.path.join(tmp_dir, "design.dxf")
    design_to_dxf(shapes, filepath, config)
    return ezdxf.readfile(filepath)


class TestDesignToDXF:
    """Test whole-design DXF export."""

    def test_exports_rectangle(self, tmp_dir, plain_rectangle):
        """A simple rectangle should produce one closed CUT polyline."""
        filepath = os.path.join(tmp_dir, "rect.dxf")
        result = design_to_dxf([plain_rectangle], filepath)

        assert result == filepath
        assert os.path.getsize(filepath) > 0
        doc = ezdxf.readfile(filepath)
        (outline,) = doc.modelspace().query("LWPOLYLINE")
        assert outline.dxf.layer == "CUT"
        assert outline.closed
        assert Polygon(list(outline.get_points("xy"))).area == pytest.approx(100 * 150)

    def test_layers(self, tmp_dir, plain_rectangle):
        """CUT, ENGRAVE and BEND layers exist with their colours."""
        doc = _export([plain_rectangle], tmp_dir)
        assert doc.layers.get("CUT").color == 1
        assert doc.layers.get("ENGRAVE").color == 5
        bend = doc.layers.get("BEND")
        assert bend.color == 30
        assert bend.dxf.linetype == "DASHED"

    def test_millimetre_units(self, tmp_dir, plain_rectangle):
        doc = _export([plain_rectangle], tmp_dir)
        assert doc.units == ezdxf.units.MM

    def test_holes_become_polylines(self, tmp_dir, holed_rectangle):
        """Each hole is its own closed polyline on the CUT layer."""
        doc = _export([holed_rectangle], tmp_dir)
        polylines = doc.modelspace().query('LWPOLYLINE[layer=="CUT"]')
        assert len(polylines) == 3
        areas = sorted(Polygon(list(p.get_points("xy"))).area for p in polylines)
        assert areas[1] == pytest.approx(30 * 20)
        assert areas[2] == pytest.approx(100 * 150)

    def test_overlapping_holes_merge(self, tmp_dir):
        """Overlapping holes cut as one merged opening."""
        rect = Rectangle(
            width=100,
            height=100,
            holes=[
                Hole(type=HoleType.RECTANGLE, position=Position(-10, 0), width=30, height=30),
                Hole(type=HoleType.RECTANGLE, position=Position(10, 0), width=30, height=30),
            ],
        )
        polylines = _export([rect], tmp_dir).modelspace().query('LWPOLYLINE[layer=="CUT"]')
        areas = sorted(Polygon(list(p.get_points("xy"))).area for p in polylines)
        assert areas == pytest.approx([50 * 30, 100 * 100])

    def test_world_coordinates(self, tmp_dir):
        """Coordinates stay Y-up and include the shape position."""
        rect = Rectangle(width=10, height=10, position=Position(100, -50))
        doc = _export([rect], tmp_dir)
        (outline,) = doc.modelspace().query("LWPOLYLINE")
        xs, ys = zip(*outline.get_points("xy"))
        assert (min(xs), max(xs)) == pytest.approx((95, 105))
        assert (min(ys), max(ys)) == pytest.approx((-55, -45))

    def test_text_on_engrave_layer(self, tmp_dir):
        doc = _export([Text(text="HELLO", font_size=12)], tmp_dir)
        msp = doc.modelspace()
        assert len(msp.query("LWPOLYLINE")) == 0
        (text,) = msp.query("TEXT")
        assert text.dxf.text == "HELLO"
        assert text.dxf.layer == "ENGRAVE"
        assert text.dxf.height == pytest.approx(12)

    def test_bend_lines(self, tmp_dir, bent_rectangle):
        """Bends export as lines plus labels on the BEND layer, never as cuts."""
        doc = _export([bent_rectangle], tmp_dir)
        msp = doc.modelspace()
        (line,) = msp.query('LINE[layer=="BEND"]')
        assert line.dxf.start.y == pytest.approx(0.0)
        assert line.dxf.end.y == pytest.approx(0.0)
        assert abs(line.dxf.end.x - line.dxf.start.x) == pytest.approx(100.0)
        labels = msp.query('TEXT[layer=="BEND"]')
        assert len(labels) == 1
        assert "UP" in labels[0].dxf.text
        assert len(msp.query('LWPOLYLINE[layer=="CUT"]')) == 1

    def test_bend_labels_optional(self, tmp_dir, bent_rectangle):
        doc = _export([bent_rectangle], tmp_dir, DXFExportConfig(add_bend_labels=False))
        assert len(doc.modelspace().query("TEXT")) == 0

    def test_mixed_design(self, tmp_dir, mixed_design):
        doc = _export(mixed_design, tmp_dir)
        msp = doc.modelspace()
        # rectangle, circle + hole, star, heart
        assert len(msp.query('LWPOLYLINE[layer=="CUT"]')) == 5
        assert len(msp.query('TEXT[layer=="ENGRAVE"]')) == 1

    def test_empty_design(self, tmp_dir):
        with pytest.raises(EmptyDesignError):
            design_to_dxf([], os.path.join(tmp_dir, "empty.dxf"))
        assert not os.path.exists(os.path.join(tmp_dir, "empty.dxf"))
