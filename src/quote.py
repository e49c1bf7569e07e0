"""
Quote engine: material cost from shape areas plus cutting and bend fees.

    material_cost = total area (m^2) x price per m^2
    cutting_cost  = flat fee per job
    bend_cost     = number of bends x per-bend fee
    subtotal      = material + cutting + bend
    total         = subtotal x quantity

Areas come from ``measurement`` (holes are not subtracted).
"""
import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from materials import Material
from measurement import area_breakdown, total_area_mm2
from sheet_design import Shape, require_shapes, total_bends
from units import mm2_to_m2

logger = logging.getLogger(__name__)

CUTTING_FEE = 50.0
PER_BEND_FEE = 50.0


@dataclass
class QuoteConfig:
    cutting_fee: float = CUTTING_FEE
    per_bend_fee: float = PER_BEND_FEE


@dataclass
class Quote:
    """Price breakdown for one design at a given quantity (currency: USD)."""
    material_cost: float
    cutting_cost: float
    bend_cost: float
    subtotal: float
    total: float
    total_area: float          # m^2
    total_bends: int
    quantity: int = 1
    breakdown: List[Dict[str, Any]] = field(default_factory=list)
    material: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        return {
            "materialCost": data["material_cost"],
            "cuttingCost": data["cutting_cost"],
            "bendCost": data["bend_cost"],
            "subtotal": data["subtotal"],
            "total": data["total"],
            "totalArea": data["total_area"],
            "totalBends": data["total_bends"],
            "quantity": data["quantity"],
            "shapes": data["breakdown"],
            "material": data["material"],
        }


def coerce_quantity(value: Any) -> int:
    """Quantity as an integer >= 1; anything unusable becomes 1."""
    if isinstance(value, bool):
        return 1
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 1
    if not math.isfinite(number):
        return 1
    return max(1, int(number))


def compute_quote(
    shapes: Sequence[Shape],
    material: Material,
    quantity: Any = 1,
    config: Optional[QuoteConfig] = None,
) -> Quote:
    """Quote for *shapes* cut from *material*.

    Raises ``EmptyDesignError`` for an empty design.
    """
    require_shapes(shapes)
    if config is None:
        config = QuoteConfig()
    qty = coerce_quantity(quantity)

    area_m2 = mm2_to_m2(total_area_mm2(shapes))
    bends = total_bends(shapes)
    material_cost = area_m2 * material.price_per_square_meter
    cutting_cost = config.cutting_fee
    bend_cost = bends * config.per_bend_fee
    subtotal = material_cost + cutting_cost + bend_cost

    quote = Quote(
        material_cost=material_cost,
        cutting_cost=cutting_cost,
        bend_cost=bend_cost,
        subtotal=subtotal,
        total=subtotal * qty,
        total_area=area_m2,
        total_bends=bends,
        quantity=qty,
        breakdown=area_breakdown(shapes),
        material={
            "id": material.id,
            "name": material.name,
            "thickness": material.thickness,
            "unit": material.unit,
            "pricePerSquareMeter": material.price_per_square_meter,
        },
    )
    logger.debug("Quote: %d shapes, %.6f m2, %d bends, total %.2f", len(shapes), area_m2, bends, quote.total)
    return quote


def format_quote_text(quote: Quote) -> str:
    """Plain-text quote as sent in notification emails."""
    m = quote.material
    lines = [
        "QUOTE DETAILS",
        "=" * 50,
        "",
        f"Material: {m['name']}",
        f"Thickness: {m['thickness']:g}{m['unit']}",
        f"Price per m²: ${m['pricePerSquareMeter']:.2f}",
        "",
        "SHAPES:",
        "-" * 50,
    ]
    for entry in quote.breakdown:
        note = " (approx.)" if entry["approximate"] else ""
        lines.append(
            f"{entry['type']}: {entry['count']} piece(s), {entry['area'] * 10000:.2f} cm² total{note}"
        )
    lines.extend([
        "",
        f"TOTAL AREA: {quote.total_area * 10000:.2f} cm² ({quote.total_area:.6f} m²)",
        f"Material cost: ${quote.material_cost:.2f}",
        f"Cutting fee: ${quote.cutting_cost:.2f}",
        f"Bending: {quote.total_bends} bend(s), ${quote.bend_cost:.2f}",
        f"Subtotal: ${quote.subtotal:.2f}",
        f"Quantity: {quote.quantity}",
        f"ESTIMATED TOTAL: ${quote.total:.2f}",
        "",
        "Note: This is an estimate. Star, heart and pentagon areas are approximations;"
        " final pricing may vary with cutting complexity and additional services.",
        "",
    ])
    return "\n".join(lines)
