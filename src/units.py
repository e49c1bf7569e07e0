"""
Length unit conversions.

All geometry is stored in millimetres; display units only exist at the edges
(CLI arguments, labels).
"""
from typing import Dict

INCH_TO_MM = 25.4

MM_PER_UNIT: Dict[str, float] = {
    "mm": 1.0,
    "cm": 10.0,
    "m": 1000.0,
    "inch": INCH_TO_MM,
}


def to_mm(value: float, unit: str) -> float:
    """Convert *value* expressed in *unit* to millimetres."""
    try:
        return value * MM_PER_UNIT[unit]
    except KeyError:
        raise ValueError(f"Unknown length unit: {unit}") from None


def from_mm(value_mm: float, unit: str) -> float:
    """Convert millimetres to *unit*."""
    try:
        return value_mm / MM_PER_UNIT[unit]
    except KeyError:
        raise ValueError(f"Unknown length unit: {unit}") from None


def mm2_to_m2(area_mm2: float) -> float:
    return area_mm2 / 1_000_000.0
