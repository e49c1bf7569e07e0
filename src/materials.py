"""
Sheet-metal material catalog.

Laser-cutting stock with thickness and price per square metre. Entries are
immutable; the designer picks one and every consumer reads thickness and price
from it.
"""

from dataclasses import dataclass
from typing import Dict, List

from units import INCH_TO_MM


@dataclass(frozen=True)
class Material:
    """A catalog entry for one metal at one thickness."""

    id: str
    name: str
    thickness: float  # mm
    price_per_square_meter: float
    unit: str = "mm"

    @property
    def thickness_mm(self) -> float:
        if self.unit == "inch":
            return self.thickness * INCH_TO_MM
        return self.thickness

    @property
    def label(self) -> str:
        return f"{self.name} {self.thickness:g}{self.unit}"

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "thickness": self.thickness,
            "pricePerSquareMeter": self.price_per_square_meter,
            "unit": self.unit,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "Material":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            thickness=float(data["thickness"]),
            price_per_square_meter=float(data["pricePerSquareMeter"]),
            unit=str(data.get("unit", "mm")),
        )


def _series(prefix: str, name: str, prices: Dict[float, float]) -> Dict[str, Material]:
    return {
        f"{prefix}-{t:g}mm": Material(
            id=f"{prefix}-{t:g}mm",
            name=name,
            thickness=t,
            price_per_square_meter=price,
        )
        for t, price in prices.items()
    }


MATERIALS: Dict[str, Material] = {
    **_series("steel", "Mild Steel", {
        1: 45, 1.5: 52, 2: 60, 3: 75, 4: 90, 5: 110, 6: 130,
    }),
    **_series("stainless", "Stainless Steel", {
        1: 65, 1.5: 75, 2: 85, 3: 105, 4: 125, 5: 150, 6: 175,
    }),
    **_series("aluminium", "Aluminium", {
        1: 55, 1.5: 62, 2: 70, 3: 85, 4: 100, 5: 120, 6: 140,
    }),
}

DEFAULT_MATERIAL_ID = "steel-2mm"


def get_material(material_id: str) -> Material:
    """Look up a catalog entry, raising ``KeyError`` with the known ids."""
    try:
        return MATERIALS[material_id]
    except KeyError:
        known = ", ".join(sorted(MATERIALS))
        raise KeyError(f"Unknown material {material_id!r} (known: {known})") from None


def default_material() -> Material:
    return MATERIALS[DEFAULT_MATERIAL_ID]


def materials_by_name(name: str) -> List[Material]:
    """All thicknesses available for one metal, thinnest first."""
    return sorted(
        (m for m in MATERIALS.values() if m.name == name),
        key=lambda m: m.thickness,
    )


def match_material(name: str, thickness: float) -> Material:
    """Pick the entry for *name* at *thickness*, else its thinnest stock."""
    options = materials_by_name(name)
    if not options:
        raise KeyError(f"Unknown metal type: {name}")
    for material in options:
        if material.thickness == thickness:
            return material
    return options[0]
