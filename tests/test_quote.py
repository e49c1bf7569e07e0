"""Tests for the quote engine."""
import math

import pytest

from quote import QuoteConfig, coerce_quantity, compute_quote, format_quote_text
from sheet_design import Bend, EmptyDesignError, Rectangle, Star, Text


class TestComputeQuote:

    def test_single_rectangle(self, plain_rectangle, steel_60):
        quote = compute_quote([plain_rectangle], steel_60, 1)
        assert quote.material_cost == pytest.approx(0.90)
        assert quote.cutting_cost == 50.0
        assert quote.bend_cost == 0.0
        assert quote.total == pytest.approx(50.90)
        assert quote.total_area == pytest.approx(0.015)

    def test_bends_add_fee(self, two_bend_rectangle, steel_60):
        quote = compute_quote([two_bend_rectangle], steel_60, 1)
        assert quote.total_bends == 2
        assert quote.bend_cost == 100.0
        assert quote.total == pytest.approx(150.90)

    def test_quantity_multiplies_everything(self, two_bend_rectangle, steel_60):
        quote = compute_quote([two_bend_rectangle], steel_60, 3)
        assert quote.subtotal == pytest.approx(150.90)
        assert quote.total == pytest.approx(3 * 150.90)

    def test_text_is_free(self, plain_rectangle, steel_60):
        with_text = compute_quote([plain_rectangle, Text(text="LOGO")], steel_60)
        assert with_text.material_cost == pytest.approx(0.90)

    def test_holes_do_not_reduce_cost(self, plain_rectangle, holed_rectangle, steel_60):
        plain = compute_quote([plain_rectangle], steel_60)
        holed = compute_quote([holed_rectangle], steel_60)
        assert holed.total == pytest.approx(plain.total)

    def test_custom_fees(self, bent_rectangle, steel_60):
        quote = compute_quote([bent_rectangle], steel_60, config=QuoteConfig(cutting_fee=0, per_bend_fee=10))
        assert quote.total == pytest.approx(0.90 + 10)

    def test_empty_design(self, steel_60):
        with pytest.raises(EmptyDesignError):
            compute_quote([], steel_60)

    def test_to_dict_keys(self, plain_rectangle, steel_60):
        data = compute_quote([plain_rectangle, Star()], steel_60).to_dict()
        for key in ("materialCost", "cuttingCost", "bendCost", "subtotal", "total", "totalArea", "totalBends"):
            assert key in data
        assert data["material"]["pricePerSquareMeter"] == 60.0
        assert [entry["type"] for entry in data["shapes"]] == ["Rectangle", "Star"]


class TestCoerceQuantity:

    @pytest.mark.parametrize("value,expected", [
        (1, 1),
        (7, 7),
        ("4", 4),
        (2.9, 2),
        (0, 1),
        (-3, 1),
        ("abc", 1),
        (None, 1),
        (True, 1),
        (math.inf, 1),
        (math.nan, 1),
    ])
    def test_values(self, value, expected):
        assert coerce_quantity(value) == expected

    def test_compute_quote_clamps(self, plain_rectangle, steel_60):
        assert compute_quote([plain_rectangle], steel_60, "nonsense").quantity == 1
        assert compute_quote([plain_rectangle], steel_60, -5).total == pytest.approx(50.90)


class TestQuoteText:

    def test_summary_lines(self, bent_rectangle, steel_60):
        text = format_quote_text(compute_quote([bent_rectangle, Star()], steel_60, 2))
        assert text.startswith("QUOTE DETAILS")
        assert "Rectangle: 1 piece(s), 150.00 cm² total" in text
        assert "(approx.)" in text
        assert "Bending: 1 bend(s), $50.00" in text
        assert "Quantity: 2" in text
        assert "ESTIMATED TOTAL: $" in text

    def test_area_in_square_centimetres(self, plain_rectangle, steel_60):
        text = format_quote_text(compute_quote([plain_rectangle], steel_60))
        assert "TOTAL AREA: 150.00 cm² (0.015000 m²)" in text
        assert "ESTIMATED TOTAL: $50.90" in text


def test_bend_count_spans_shapes(steel_60):
    shapes = [
        Rectangle(bends=[Bend(position=10)]),
        Rectangle(bends=[Bend(position=20), Bend(position=40)]),
    ]
    assert compute_quote(shapes, steel_60).bend_cost == 150.0
