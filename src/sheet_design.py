"""
Core data structures for parametric sheet-metal designs.

A design is an ordered list of shapes. Each shape is a dataclass tagged with a
``ShapeKind``; holes hang off any shape and bend lines off rectangles only.
All linear dimensions are millimetres and every position is a centre point.
"""
import copy
import math
import uuid
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Sequence, Union

from shapely.geometry import Polygon

DEFAULT_COLOR = "#6B7280"


# ─── Errors ──────────────────────────────────────────────────────────────────

class DesignError(Exception):
    """Base exception for design-level failures surfaced to the user."""
    pass


class EmptyDesignError(DesignError):
    """The design has no shapes."""
    pass


class NothingToExportError(DesignError):
    """No shape produced geometry for the requested export."""
    pass


class NoBendsError(DesignError):
    """Bend instructions were requested for a design without bends."""
    pass


class UnsupportedShapeError(DesignError):
    """The operation is not defined for this kind of shape."""
    pass


# ─── Enums ───────────────────────────────────────────────────────────────────

class ShapeKind(Enum):
    """Closed set of shape families."""
    RECTANGLE = "rectangle"
    CIRCLE = "circle"
    TRIANGLE = "triangle"
    PENTAGON = "pentagon"
    HEXAGON = "hexagon"
    STAR = "star"
    HEART = "heart"
    TEXT = "text"
    CUSTOM = "custom"


class HoleType(Enum):
    RECTANGLE = "rectangle"
    CIRCLE = "circle"


class BendOrientation(Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class BendDirection(Enum):
    UP = "up"
    DOWN = "down"


# ─── Validation helpers ──────────────────────────────────────────────────────

def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _require_positive(name: str, value: Any) -> None:
    if not _is_number(value) or value <= 0:
        raise ValueError(f"{name} must be a positive number, got {value!r}")


def _require_non_negative(name: str, value: Any) -> None:
    if not _is_number(value) or value < 0:
        raise ValueError(f"{name} must be a non-negative number, got {value!r}")


def _require_unique_ids(label: str, items: Iterable[Any]) -> None:
    seen = set()
    for item in items:
        if item.id in seen:
            raise ValueError(f"Duplicate {label} id: {item.id}")
        seen.add(item.id)


# ─── Sub-entities ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Position:
    """A 2D point in millimetres."""
    x: float = 0.0
    y: float = 0.0

    def __post_init__(self):
        if not (_is_number(self.x) and _is_number(self.y)):
            raise ValueError(f"Position must be finite, got ({self.x!r}, {self.y!r})")


@dataclass
class Hole:
    """A through-cut in a parent shape.

    Attributes:
        type: Rectangle or circle cutout.
        position: Centre relative to the parent shape's centre.
        width, height: Rectangle hole size.
        radius: Circle hole radius.
    """
    type: HoleType
    position: Position = field(default_factory=Position)
    width: Optional[float] = None
    height: Optional[float] = None
    radius: Optional[float] = None
    id: str = ""

    def __post_init__(self):
        self.type = HoleType(self.type)
        if not self.id:
            self.id = new_id("hole")
        if self.type == HoleType.CIRCLE:
            _require_positive("Hole radius", self.radius)
        else:
            _require_positive("Hole width", self.width)
            _require_positive("Hole height", self.height)


@dataclass
class Bend:
    """A sheet-metal bend line on a rectangle.

    Attributes:
        position: Distance from the reference edge of the flat part
            (bottom edge for horizontal bends, left edge for vertical ones).
        orientation: Direction the bend line runs across the part.
        angle: Bend angle in degrees, 0-180.
        direction: Fold toward the viewer (up) or away (down).
        radius: Inside bend radius in mm.
    """
    position: float
    orientation: BendOrientation = BendOrientation.HORIZONTAL
    angle: float = 90.0
    direction: BendDirection = BendDirection.UP
    radius: float = 2.0
    id: str = ""

    def __post_init__(self):
        self.orientation = BendOrientation(self.orientation)
        self.direction = BendDirection(self.direction)
        if not self.id:
            self.id = new_id("bend")
        _require_non_negative("Bend position", self.position)
        _require_non_negative("Bend radius", self.radius)
        if not _is_number(self.angle) or not 0.0 <= self.angle <= 180.0:
            raise ValueError(f"Bend angle must be within [0, 180] degrees, got {self.angle!r}")

    @property
    def reference_edge(self) -> str:
        return "bottom" if self.orientation == BendOrientation.HORIZONTAL else "left"

    @property
    def signed_angle_rad(self) -> float:
        """Fold angle in radians, positive for ``up``."""
        sign = 1.0 if self.direction == BendDirection.UP else -1.0
        return math.radians(self.angle) * sign


# ─── Shapes ──────────────────────────────────────────────────────────────────

@dataclass
class BaseShape:
    """Fields common to every shape family."""
    kind: ClassVar[ShapeKind]

    id: str = ""
    position: Position = field(default_factory=Position)
    color: str = DEFAULT_COLOR
    rotation: float = 0.0  # radians
    locked: bool = False
    holes: List[Hole] = field(default_factory=list)

    def __post_init__(self):
        if not self.id:
            self.id = new_id(self.kind.value)
        if not _is_number(self.rotation):
            raise ValueError(f"Rotation must be finite, got {self.rotation!r}")
        _require_unique_ids("hole", self.holes)
        self._validate()

    def _validate(self) -> None:
        pass


@dataclass
class Rectangle(BaseShape):
    kind: ClassVar[ShapeKind] = ShapeKind.RECTANGLE

    width: float = 100.0
    height: float = 150.0
    corner_radius: float = 0.0
    bends: List[Bend] = field(default_factory=list)

    def _validate(self) -> None:
        _require_positive("Rectangle width", self.width)
        _require_positive("Rectangle height", self.height)
        _require_non_negative("Corner radius", self.corner_radius)
        _require_unique_ids("bend", self.bends)
        for bend in self.bends:
            edge = self.bend_edge_length(bend.orientation)
            if bend.position > edge:
                raise ValueError(
                    f"Bend {bend.id} at {bend.position:g}mm lies outside the "
                    f"{edge:g}mm {bend.orientation.value} edge"
                )

    def bend_edge_length(self, orientation: BendOrientation) -> float:
        """Length of the flat edge a bend position is measured along."""
        if orientation == BendOrientation.HORIZONTAL:
            return self.height
        return self.width


@dataclass
class Circle(BaseShape):
    kind: ClassVar[ShapeKind] = ShapeKind.CIRCLE

    radius: float = 50.0

    def _validate(self) -> None:
        _require_positive("Circle radius", self.radius)


@dataclass
class Triangle(BaseShape):
    kind: ClassVar[ShapeKind] = ShapeKind.TRIANGLE

    size: float = 50.0

    def _validate(self) -> None:
        _require_positive("Triangle size", self.size)


@dataclass
class Pentagon(BaseShape):
    kind: ClassVar[ShapeKind] = ShapeKind.PENTAGON

    size: float = 50.0  # circumradius

    def _validate(self) -> None:
        _require_positive("Pentagon size", self.size)


@dataclass
class Hexagon(BaseShape):
    kind: ClassVar[ShapeKind] = ShapeKind.HEXAGON

    size: float = 50.0  # circumradius

    def _validate(self) -> None:
        _require_positive("Hexagon size", self.size)


@dataclass
class Star(BaseShape):
    kind: ClassVar[ShapeKind] = ShapeKind.STAR

    outer_radius: float = 50.0
    inner_radius: float = 25.0
    points: int = 5

    def _validate(self) -> None:
        _require_positive("Star outer radius", self.outer_radius)
        _require_positive("Star inner radius", self.inner_radius)
        if isinstance(self.points, bool) or not isinstance(self.points, int) or self.points < 3:
            raise ValueError(f"Star needs at least 3 points, got {self.points!r}")


@dataclass
class Heart(BaseShape):
    kind: ClassVar[ShapeKind] = ShapeKind.HEART

    size: float = 100.0

    def _validate(self) -> None:
        _require_positive("Heart size", self.size)


@dataclass
class Text(BaseShape):
    kind: ClassVar[ShapeKind] = ShapeKind.TEXT

    text: str = "A"
    font_size: float = 10.0
    font_family: str = "Arial"

    def _validate(self) -> None:
        if not isinstance(self.text, str) or not self.text:
            raise ValueError("Text shape needs non-empty text")
        _require_positive("Font size", self.font_size)


def _default_custom_points() -> List[Position]:
    return [Position(-25, -25), Position(25, -25), Position(25, 25), Position(-25, 25)]


@dataclass
class CustomPath(BaseShape):
    kind: ClassVar[ShapeKind] = ShapeKind.CUSTOM

    points: List[Position] = field(default_factory=_default_custom_points)

    def _validate(self) -> None:
        if len(self.points) < 3:
            raise ValueError(f"Custom path needs at least 3 points, got {len(self.points)}")
        polygon = Polygon([(p.x, p.y) for p in self.points])
        if not polygon.is_valid or polygon.area <= 0:
            raise ValueError("Custom path must form a simple, non-degenerate polygon")


Shape = Union[Rectangle, Circle, Triangle, Pentagon, Hexagon, Star, Heart, Text, CustomPath]

SHAPE_CLASSES: Dict[ShapeKind, type] = {
    ShapeKind.RECTANGLE: Rectangle,
    ShapeKind.CIRCLE: Circle,
    ShapeKind.TRIANGLE: Triangle,
    ShapeKind.PENTAGON: Pentagon,
    ShapeKind.HEXAGON: Hexagon,
    ShapeKind.STAR: Star,
    ShapeKind.HEART: Heart,
    ShapeKind.TEXT: Text,
    ShapeKind.CUSTOM: CustomPath,
}


def create_shape(kind: Union[ShapeKind, str], **kwargs: Any) -> Shape:
    """Build a shape of *kind* with a generated id and default geometry."""
    return SHAPE_CLASSES[ShapeKind(kind)](**kwargs)


def with_updates(shape: Shape, updates: Dict[str, Any]) -> Shape:
    """Return a validated copy of *shape* with *updates* applied.

    Only fields that exist on this shape's class may be set, and the id is
    immutable. Raises ``ValueError`` on any invalid field or value.
    """
    allowed = {f.name for f in fields(shape)}
    for name in updates:
        if name == "id":
            raise ValueError("Shape id is immutable")
        if name not in allowed:
            raise ValueError(f"Field {name!r} is not valid for a {shape.kind.value}")
    return replace(copy.deepcopy(shape), **copy.deepcopy(updates))


def bends_of(shape: Shape) -> List[Bend]:
    return list(shape.bends) if isinstance(shape, Rectangle) else []


def total_bends(shapes: Sequence[Shape]) -> int:
    return sum(len(bends_of(s)) for s in shapes)


def total_holes(shapes: Sequence[Shape]) -> int:
    return sum(len(s.holes) for s in shapes)


def require_shapes(shapes: Sequence[Shape]) -> None:
    """Raise ``EmptyDesignError`` before any geometry work on an empty design."""
    if not shapes:
        raise EmptyDesignError("Design is empty: add at least one shape first")


# ─── Serialisation ───────────────────────────────────────────────────────────

# Field names as used by the browser front end.
_FIELD_ALIASES = {
    "corner_radius": "cornerRadius",
    "outer_radius": "outerRadius",
    "inner_radius": "innerRadius",
    "font_size": "fontSize",
    "font_family": "fontFamily",
}


def _position_to_dict(p: Position) -> Dict[str, float]:
    return {"x": p.x, "y": p.y}


def _position_from_dict(data: Any) -> Position:
    if isinstance(data, Position):
        return data
    return Position(float(data["x"]), float(data["y"]))


def hole_to_dict(hole: Hole) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": hole.id,
        "type": hole.type.value,
        "position": _position_to_dict(hole.position),
    }
    for name in ("width", "height", "radius"):
        value = getattr(hole, name)
        if value is not None:
            data[name] = value
    return data


def hole_from_dict(data: Dict[str, Any]) -> Hole:
    return Hole(
        id=data.get("id", ""),
        type=HoleType(data["type"]),
        position=_position_from_dict(data.get("position", {"x": 0, "y": 0})),
        width=data.get("width"),
        height=data.get("height"),
        radius=data.get("radius"),
    )


def bend_to_dict(bend: Bend) -> Dict[str, Any]:
    return {
        "id": bend.id,
        "position": bend.position,
        "orientation": bend.orientation.value,
        "angle": bend.angle,
        "direction": bend.direction.value,
        "radius": bend.radius,
    }


def bend_from_dict(data: Dict[str, Any]) -> Bend:
    return Bend(
        id=data.get("id", ""),
        position=data["position"],
        orientation=BendOrientation(data.get("orientation", "horizontal")),
        angle=data.get("angle", 90.0),
        direction=BendDirection(data.get("direction", "up")),
        radius=data.get("radius", 2.0),
    )


def shape_to_dict(shape: Shape) -> Dict[str, Any]:
    """JSON-compatible dict using the front end's camelCase field names."""
    data: Dict[str, Any] = {"id": shape.id, "type": shape.kind.value}
    for f in fields(shape):
        if f.name == "id":
            continue
        value = getattr(shape, f.name)
        key = _FIELD_ALIASES.get(f.name, f.name)
        if f.name == "position":
            data[key] = _position_to_dict(value)
        elif f.name == "holes":
            data[key] = [hole_to_dict(h) for h in value]
        elif f.name == "bends":
            data[key] = [bend_to_dict(b) for b in value]
        elif f.name == "points" and isinstance(shape, CustomPath):
            data[key] = [_position_to_dict(p) for p in value]
        else:
            data[key] = value
    return data


def shape_from_dict(data: Dict[str, Any]) -> Shape:
    """Inverse of ``shape_to_dict``; missing fields take their defaults."""
    kind = ShapeKind(data["type"])
    cls = SHAPE_CLASSES[kind]
    kwargs: Dict[str, Any] = {}
    for f in fields(cls):
        key = _FIELD_ALIASES.get(f.name, f.name)
        if key not in data or data[key] is None:
            continue
        value = data[key]
        if f.name == "position":
            value = _position_from_dict(value)
        elif f.name == "holes":
            value = [hole_from_dict(h) for h in value]
        elif f.name == "bends":
            value = [bend_from_dict(b) for b in value]
        elif f.name == "points" and cls is CustomPath:
            value = [_position_from_dict(p) for p in value]
        elif f.name == "points":
            value = int(value)
        kwargs[f.name] = value
    return cls(**kwargs)


def shapes_to_list(shapes: Sequence[Shape]) -> List[Dict[str, Any]]:
    return [shape_to_dict(s) for s in shapes]


def shapes_from_list(items: Iterable[Dict[str, Any]]) -> List[Shape]:
    return [shape_from_dict(item) for item in items]
