"""
Shared test fixtures for sheet-metal design tests.
"""
import json
import sys
import warnings
from pathlib import Path

# Suppress trimesh internal RuntimeWarning for degenerate triangles produced
# while merging vertices of thin fold meshes.
warnings.filterwarnings(
    "ignore",
    message="invalid value encountered in divide",
    category=RuntimeWarning,
    module=r"trimesh\.triangles",
)

import pytest

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from materials import Material, get_material
from sheet_design import (
    Bend,
    BendDirection,
    BendOrientation,
    Circle,
    Heart,
    Hole,
    HoleType,
    Position,
    Rectangle,
    Star,
    Text,
    shapes_to_list,
)


@pytest.fixture
def steel_60():
    """Catalog-style material priced at $60/m2, 2mm thick."""
    return Material(id="test-steel", name="Test Steel", thickness=2.0, price_per_square_meter=60.0)


@pytest.fixture
def default_mat():
    return get_material("steel-2mm")


@pytest.fixture
def plain_rectangle():
    """A 100x150mm rectangle at the origin."""
    return Rectangle(id="rect-plain", width=100.0, height=150.0)


@pytest.fixture
def holed_rectangle():
    """A 100x150mm rectangle with two separated holes."""
    return Rectangle(
        id="rect-holes",
        width=100.0,
        height=150.0,
        holes=[
            Hole(id="hole-a", type=HoleType.CIRCLE, position=Position(0, 40), radius=10.0),
            Hole(id="hole-b", type=HoleType.RECTANGLE, position=Position(0, -40), width=30.0, height=20.0),
        ],
    )


@pytest.fixture
def bent_rectangle():
    """A 100x150mm rectangle with one 90 degree up bend at mid-height."""
    return Rectangle(
        id="rect-bent",
        width=100.0,
        height=150.0,
        bends=[Bend(id="bend-mid", position=75.0, angle=90.0, direction=BendDirection.UP)],
    )


@pytest.fixture
def two_bend_rectangle():
    return Rectangle(
        id="rect-two-bends",
        width=100.0,
        height=150.0,
        bends=[
            Bend(id="bend-low", position=30.0, angle=90.0, direction=BendDirection.UP),
            Bend(id="bend-high", position=120.0, angle=90.0, direction=BendDirection.UP),
        ],
    )


@pytest.fixture
def vertical_bent_rectangle():
    return Rectangle(
        id="rect-vertical",
        width=120.0,
        height=80.0,
        bends=[Bend(
            id="bend-v",
            position=60.0,
            orientation=BendOrientation.VERTICAL,
            angle=90.0,
            direction=BendDirection.DOWN,
        )],
    )


@pytest.fixture
def mixed_design(bent_rectangle):
    """Rectangle with a bend, a circle with a hole, a star, a heart and text."""
    return [
        bent_rectangle,
        Circle(
            id="circle-1",
            position=Position(200, 0),
            radius=40.0,
            holes=[Hole(id="hole-c", type=HoleType.CIRCLE, radius=8.0)],
        ),
        Star(id="star-1", position=Position(-200, 0)),
        Heart(id="heart-1", position=Position(0, 200), size=80.0),
        Text(id="text-1", position=Position(0, -150), text="HELLO", font_size=12.0),
    ]


@pytest.fixture
def design_file(tmp_path, mixed_design):
    """Design JSON on disk, as saved by the designer."""
    path = tmp_path / "design.json"
    payload = {"material": "aluminium-3mm", "shapes": shapes_to_list(mixed_design)}
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)
