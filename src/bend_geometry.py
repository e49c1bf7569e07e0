"""
Bend geometry: folded 3D mesh of a bent rectangle and bend instructions.

Fold mesh axes (local to the rectangle, like the CSG solid):
  X  across the sheet (the width for horizontal bends)
  Y  along the walked edge, starting at the reference edge
  Z  sheet thickness; ``up`` folds toward +Z

The mid-surface is walked from the reference edge, split at each bend line.
A segment at cumulative fold angle ``a`` runs along (cos a, sin a) in the
(y, z) plane. Thickness is applied on both sides of the mid-surface, and at
each joint the offset follows the bisector of the two segment normals
(a miter) so consecutive segments share their joint vertices.

Bend radius is recorded in the instructions but the preview fold is sharp.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import trimesh

from materials import Material
from sheet_design import (
    Bend,
    BendDirection,
    BendOrientation,
    NoBendsError,
    Rectangle,
    Shape,
    bends_of,
    require_shapes,
)

logger = logging.getLogger(__name__)

SEGMENT_EPS = 1e-9
MITER_EPS = 1e-9

# Per-segment triangles over vertices 0-3 (front: -w/2,S  +w/2,S  +w/2,E  -w/2,E)
# and 4-7 (the same corners on the back face).
_SIDE_FACES = (
    (0, 2, 1), (0, 3, 2),  # front
    (4, 5, 6), (4, 6, 7),  # back
    (0, 4, 7), (0, 7, 3),  # left
    (1, 2, 6), (1, 6, 5),  # right
)
_START_CAP = ((0, 1, 5), (0, 5, 4))
_END_CAP = ((3, 7, 6), (3, 6, 2))


@dataclass
class FoldSegment:
    """One flat piece of the folded mid-surface.

    Attributes:
        start: 3D start point on the mid-surface (x = 0).
        end: 3D end point on the mid-surface.
        direction: Unit vector from start to end.
        angle: Cumulative fold angle in radians (positive = up).
    """
    start: np.ndarray
    end: np.ndarray
    direction: np.ndarray
    angle: float

    @property
    def length(self) -> float:
        return float(np.linalg.norm(self.end - self.start))


@dataclass
class FoldResult:
    """Folded mesh plus the segments it was built from."""
    mesh: trimesh.Trimesh
    segments: List[FoldSegment] = field(default_factory=list)
    orientation: BendOrientation = BendOrientation.HORIZONTAL


# ─── Fold walk ───────────────────────────────────────────────────────────────

def sorted_bends(bends: Sequence[Bend]) -> List[Bend]:
    """Bends in folding order (by position, stable for ties)."""
    return sorted(bends, key=lambda b: b.position)


def fold_orientation(shape: Rectangle) -> Optional[BendOrientation]:
    """Which bend orientation gets folded, or None for a flat part.

    Horizontal bends win when both orientations are present.
    """
    orientations = {b.orientation for b in shape.bends}
    if not orientations:
        return None
    if BendOrientation.HORIZONTAL in orientations:
        if BendOrientation.VERTICAL in orientations:
            logger.warning(
                "Rectangle %s has horizontal and vertical bends; "
                "folding horizontal only, %d vertical bend(s) skipped in preview",
                shape.id,
                sum(1 for b in shape.bends if b.orientation == BendOrientation.VERTICAL),
            )
        return BendOrientation.HORIZONTAL
    return BendOrientation.VERTICAL


def _walk(edge_length: float, bends: Sequence[Bend]) -> List[Tuple[float, float, float]]:
    """(start, end, cumulative angle) along the walked edge, zero-length pieces dropped."""
    pieces = []
    angle = 0.0
    cursor = 0.0
    for bend in sorted_bends(bends):
        stop = min(max(bend.position, 0.0), edge_length)
        if stop - cursor > SEGMENT_EPS:
            pieces.append((cursor, stop, angle))
        cursor = max(cursor, stop)
        angle += bend.signed_angle_rad
    if edge_length - cursor > SEGMENT_EPS:
        pieces.append((cursor, edge_length, angle))
    return pieces


def _unit(angle: float) -> np.ndarray:
    """Walk direction in the (y, z) plane."""
    return np.array([np.cos(angle), np.sin(angle)])


def _normal(angle: float) -> np.ndarray:
    """Thickness direction in the (y, z) plane; +Z for a flat segment."""
    return np.array([-np.sin(angle), np.cos(angle)])


def fold_segments(edge_length: float, bends: Sequence[Bend]) -> List[FoldSegment]:
    """Mid-surface segments in the (x=0, y, z) plane, walking from y = -edge/2."""
    segments = []
    point = np.array([-edge_length / 2.0, 0.0])
    for start, stop, angle in _walk(edge_length, bends):
        d = _unit(angle)
        end = point + d * (stop - start)
        segments.append(FoldSegment(
            start=np.array([0.0, point[0], point[1]]),
            end=np.array([0.0, end[0], end[1]]),
            direction=np.array([0.0, d[0], d[1]]),
            angle=float(angle),
        ))
        point = end
    return segments


def _joint_offsets(segments: List[FoldSegment], half_t: float) -> List[Tuple[np.ndarray, np.ndarray]]:
    """(start offset, end offset) per segment in the (y, z) plane.

    Offsets point from the mid-surface to the back face. At a joint both
    segments use the mitered offset; a 180 degree fold has no bisector and
    keeps each segment's own normal.
    """
    own = [_normal(s.angle) * half_t for s in segments]
    starts = list(own)
    ends = list(own)
    for i in range(len(segments) - 1):
        bisector = _normal(segments[i].angle) + _normal(segments[i + 1].angle)
        norm_sq = float(bisector @ bisector)
        if norm_sq < MITER_EPS:
            continue
        # |b| = 2 cos(delta/2), so half_t * b/|b| / cos(delta/2) = 2 half_t b / |b|^2
        miter = 2.0 * half_t * bisector / norm_sq
        ends[i] = miter
        starts[i + 1] = miter
    return list(zip(starts, ends))


def build_fold_mesh(width: float, edge_length: float, bends: Sequence[Bend], thickness: float) -> FoldResult:
    """Fold a ``width`` x ``edge_length`` sheet along *bends* (walked along Y)."""
    if thickness <= 0:
        raise ValueError(f"Thickness must be positive, got {thickness!r}")
    segments = fold_segments(edge_length, bends)
    offsets = _joint_offsets(segments, thickness / 2.0)
    hw = width / 2.0

    vertices = []
    faces = []
    for i, (segment, (off_start, off_end)) in enumerate(zip(segments, offsets)):
        s = segment.start[1:]
        e = segment.end[1:]
        base = len(vertices)
        for sign in (-1.0, 1.0):  # front face, then back face
            ps = s + sign * off_start
            pe = e + sign * off_end
            vertices.extend([
                (-hw, ps[0], ps[1]),
                (hw, ps[0], ps[1]),
                (hw, pe[0], pe[1]),
                (-hw, pe[0], pe[1]),
            ])
        tris = list(_SIDE_FACES)
        if i == 0:
            tris.extend(_START_CAP)
        if i == len(segments) - 1:
            tris.extend(_END_CAP)
        faces.extend((base + a, base + b, base + c) for a, b, c in tris)

    mesh = trimesh.Trimesh(
        vertices=np.array(vertices, dtype=float),
        faces=np.array(faces, dtype=np.int64),
        process=True,
    )
    return FoldResult(mesh=mesh, segments=segments)


def _rotate_about_z(points: np.ndarray, angle: float) -> np.ndarray:
    matrix = trimesh.transformations.rotation_matrix(angle, [0, 0, 1])[:3, :3]
    return points @ matrix.T


def folded_mesh(shape: Rectangle, thickness: float) -> Optional[FoldResult]:
    """Folded mesh of a bent rectangle in its local frame, or None if flat.

    Horizontal bends walk the height (Y, from the bottom edge); vertical bends
    walk the width (X, from the left edge).
    """
    orientation = fold_orientation(shape)
    if orientation is None:
        return None
    bends = [b for b in shape.bends if b.orientation == orientation]

    if orientation == BendOrientation.HORIZONTAL:
        result = build_fold_mesh(shape.width, shape.height, bends, thickness)
    else:
        # Fold with the axes swapped, then turn so the walk runs along +X.
        result = build_fold_mesh(shape.height, shape.width, bends, thickness)
        turn = -np.pi / 2.0
        result.mesh.apply_transform(trimesh.transformations.rotation_matrix(turn, [0, 0, 1]))
        for segment in result.segments:
            segment.start = _rotate_about_z(segment.start, turn)
            segment.end = _rotate_about_z(segment.end, turn)
            segment.direction = _rotate_about_z(segment.direction, turn)
    result.orientation = orientation
    logger.debug(
        "Folded %s: %d %s bend(s), %d segment(s)",
        shape.id, len(bends), orientation.value, len(result.segments),
    )
    return result


# ─── Instructions ────────────────────────────────────────────────────────────

def _bend_record(step: int, bend: Bend) -> Dict[str, Any]:
    return {
        "step": step,
        "id": bend.id,
        "position": bend.position,
        "referenceEdge": bend.reference_edge,
        "orientation": bend.orientation.value,
        "angle": bend.angle,
        "direction": bend.direction.value,
        "radius": bend.radius,
    }


def bend_instructions_data(
    shapes: Sequence[Shape],
    material: Optional[Material] = None,
) -> Dict[str, Any]:
    """Structured bend instructions, one entry per bent part.

    Raises ``EmptyDesignError`` for an empty design and ``NoBendsError`` when
    no shape has bends.
    """
    require_shapes(shapes)
    parts = []
    for shape in shapes:
        bends = bends_of(shape)
        if not bends:
            continue
        parts.append({
            "shapeId": shape.id,
            "sheet": {"width": shape.width, "height": shape.height},
            "bends": [_bend_record(i, b) for i, b in enumerate(sorted_bends(bends), start=1)],
        })
    if not parts:
        raise NoBendsError("No bend instructions to export: add bends to a rectangle first")

    data: Dict[str, Any] = {
        "units": "mm",
        "totalBends": sum(len(p["bends"]) for p in parts),
        "parts": parts,
    }
    if material is not None:
        data["material"] = {
            "id": material.id,
            "name": material.name,
            "thickness": material.thickness_mm,
        }
    return data


def bend_instructions_json(
    shapes: Sequence[Shape],
    material: Optional[Material] = None,
) -> str:
    return json.dumps(bend_instructions_data(shapes, material), indent=2)


def _arrow(direction: str) -> str:
    return "↑" if direction == BendDirection.UP.value else "↓"


def bend_instructions_text(
    shapes: Sequence[Shape],
    material: Optional[Material] = None,
) -> str:
    """Plain-text manufacturing steps rendered from ``bend_instructions_data``."""
    data = bend_instructions_data(shapes, material)
    lines = [
        "SHEET METAL BEND INSTRUCTIONS",
        "=" * 29,
        "",
    ]
    if "material" in data:
        m = data["material"]
        lines.append(f"Material: {m['name']} ({m['thickness']:.1f} mm thick)")
    lines.append(f"Parts with bends: {len(data['parts'])}")
    lines.append(f"Total bends: {data['totalBends']}")

    for index, part in enumerate(data["parts"], start=1):
        sheet = part["sheet"]
        lines.extend([
            "",
            f"PART {index}: {part['shapeId']}",
            f"Flat sheet: {sheet['width']:.1f} mm x {sheet['height']:.1f} mm",
            f"Bends: {len(part['bends'])}",
        ])
        for rec in part["bends"]:
            lines.extend([
                "",
                f"  Step {rec['step']}: {rec['angle']:g}°, {rec['direction']}, "
                f"position={rec['position']:.1f} mm",
                f"    Line: {rec['orientation']}, {rec['position']:.1f} mm from "
                f"{rec['referenceEdge']} edge",
                f"    Angle: {rec['angle']:g}° {_arrow(rec['direction'])}",
                f"    Direction: {rec['direction']}",
                f"    Inside radius: {rec['radius']:.1f} mm",
                f"    Procedure: align the {rec['orientation']} bend line "
                f"{rec['position']:.1f} mm from the {rec['referenceEdge']} edge, "
                f"then bend {rec['angle']:g}° {rec['direction']} with a "
                f"{rec['radius']:.1f} mm inside radius.",
            ])

    lines.extend([
        "",
        "NOTES",
        "- Positions are measured on the flat (unfolded) sheet.",
        "- Bend in step order within each part.",
        "- Bend lines are marked on the SVG as orange dashed lines; they are not cut paths.",
        "",
    ])
    return "\n".join(lines)
