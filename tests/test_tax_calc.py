"""
Tests for the GST totals calculator.
Covers:
    ✓ Uniform and mixed GST rates
    ✓ Flat discount applied before tax
    ✓ CGST/SGST vs IGST split
    ✓ Non-numeric and missing inputs treated as zero
"""

import math

import pytest

from invoice_state import LineItem
from tax_calc import (
    compute_line, compute_totals, is_inter_state, money, place_of_supply_for,
    to_number, weighted_gst_rate,
)


def _item(qty=1, price=0, gst=18, **extra):
    return {"qty": qty, "price": price, "gst": gst, **extra}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 1. NUMERIC NORMALIZATION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestToNumber:
    @pytest.mark.parametrize("value", [None, "", "   ", "abc", float("nan"), float("inf"),
                                       float("-inf"), True, [], {}])
    def test_garbage_is_zero(self, value):
        assert to_number(value) == 0.0

    def test_numeric_strings_parse(self):
        assert to_number("2500") == 2500.0
        assert to_number(" 12.5 ") == 12.5
        assert to_number("1,25,000.50") == 125000.5

    def test_numbers_pass_through(self):
        assert to_number(3) == 3.0
        assert to_number(0.25) == 0.25


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 2. CONCRETE SCENARIOS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestSingleItem:
    def test_intra_state(self):
        totals = compute_totals([_item(1, 2500, 18)], 0, 0, inter_state=False)
        assert money(totals["subtotal"]) == 2500.00
        assert money(totals["total_gst"]) == 450.00
        assert money(totals["cgst"]) == 225.00
        assert money(totals["sgst"]) == 225.00
        assert totals["igst"] == 0
        assert money(totals["grand_total"]) == 2950.00

    def test_inter_state(self):
        totals = compute_totals([_item(1, 2500, 18)], 0, 0, inter_state=True)
        assert money(totals["igst"]) == 450.00
        assert totals["cgst"] == 0
        assert totals["sgst"] == 0
        assert money(totals["grand_total"]) == 2950.00

    def test_accepts_line_item_objects(self):
        totals = compute_totals([LineItem(qty=1, price=2500, gst=18)])
        assert totals["total_gst"] == pytest.approx(450.0)


class TestMixedRates:
    def test_zero_and_eighteen_percent(self):
        items = [_item(1, 1000, 0), _item(1, 1000, 18)]
        totals = compute_totals(items, 0, 0, False)
        assert money(totals["subtotal"]) == 2000.00
        assert totals["weighted_gst_rate"] == pytest.approx(0.09)
        assert money(totals["total_gst"]) == 180.00
        assert money(totals["grand_total"]) == 2180.00

    def test_weighted_rate_is_revenue_weighted(self):
        items = [_item(2, 500, 5), _item(3, 1000, 12), _item(1, 500, 28)]
        subtotal = 1000 + 3000 + 500
        expected = (1000 * 0.05 + 3000 * 0.12 + 500 * 0.28) / subtotal
        assert weighted_gst_rate(items) == pytest.approx(expected)

    def test_discount_taken_off_before_tax(self):
        items = [_item(2, 500, 5), _item(3, 1000, 12), _item(1, 500, 28)]
        totals = compute_totals(items, discount=500, shipping=0, inter_state=False)
        assert totals["taxable_value"] == pytest.approx(4000.0)
        assert totals["total_gst"] == pytest.approx(4000.0 * weighted_gst_rate(items))


class TestUniformRate:
    @pytest.mark.parametrize("rate", [0, 5, 12, 18, 28])
    def test_gst_is_subtotal_times_rate(self, rate):
        items = [_item(3, 199.99, rate), _item(7, 10, rate), _item(1, 12345.5, rate)]
        totals = compute_totals(items)
        assert totals["total_gst"] == pytest.approx(totals["subtotal"] * rate / 100)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 3. DISCOUNT / SHIPPING EDGE CASES
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestDiscountAndShipping:
    def test_discount_larger_than_subtotal_clamps_to_zero(self):
        totals = compute_totals([_item(1, 100, 18)], discount=250, shipping=0)
        assert totals["taxable_value"] == 0
        assert totals["total_gst"] == 0
        assert totals["grand_total"] == 0

    def test_shipping_is_not_taxed(self):
        totals = compute_totals([_item(1, 1000, 18)], discount=0, shipping=100)
        assert totals["total_gst"] == pytest.approx(180.0)
        assert totals["grand_total"] == pytest.approx(1280.0)

    def test_discount_is_not_subtracted_twice(self):
        totals = compute_totals([_item(1, 1000, 18)], discount=100, shipping=50)
        assert totals["grand_total"] == pytest.approx(900 + 50 + 162)

    def test_discount_and_shipping_echoed(self):
        totals = compute_totals([_item(1, 1000, 18)], discount="100", shipping="abc")
        assert totals["discount"] == 100.0
        assert totals["shipping"] == 0.0


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 4. TOTALITY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestNeverFails:
    def test_empty_invoice(self):
        totals = compute_totals([], 0, 0, False)
        assert totals["subtotal"] == 0
        assert totals["weighted_gst_rate"] == 0
        assert totals["grand_total"] == 0

    def test_none_items(self):
        assert compute_totals(None)["grand_total"] == 0

    def test_bad_fields_count_as_zero(self):
        items = [
            {"qty": "two", "price": 100, "gst": 18},
            {"qty": None, "price": None},
            {"qty": float("nan"), "price": 50, "gst": "x"},
            {},
            _item(1, 100, 18),
        ]
        totals = compute_totals(items, discount=None, shipping=float("inf"))
        assert totals["subtotal"] == pytest.approx(100.0)
        assert totals["total_gst"] == pytest.approx(18.0)
        assert math.isfinite(totals["grand_total"])

    def test_huge_numbers_count_as_zero(self):
        assert to_number(10 ** 400) == 0.0
        items = [_item(10 ** 400, 1, 18), _item(1e200, 1e200, 18), _item(1, 100, 18)]
        totals = compute_totals(items)
        assert totals["subtotal"] == pytest.approx(100.0)
        assert totals["weighted_gst_rate"] == pytest.approx(0.18)
        assert math.isfinite(totals["grand_total"])

    @pytest.mark.parametrize("inter_state", [False, True])
    def test_split_invariant(self, inter_state):
        items = [_item(1, 333.33, 5), _item(2, 71.4, 28)]
        totals = compute_totals(items, discount=13, shipping=7, inter_state=inter_state)
        if inter_state:
            assert totals["igst"] == totals["total_gst"]
            assert totals["cgst"] == totals["sgst"] == 0
        else:
            assert totals["cgst"] == totals["sgst"] == totals["total_gst"] / 2
            assert totals["cgst"] + totals["sgst"] == pytest.approx(totals["total_gst"])
            assert totals["igst"] == 0


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 5. LINE BREAKDOWN / JURISDICTION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestComputeLine:
    def test_intra_state_line(self):
        res = compute_line(2, 500, 12, inter_state=False)
        assert res["taxable"] == 1000
        assert res["cgst"] == pytest.approx(60)
        assert res["sgst"] == pytest.approx(60)
        assert res["igst"] == 0
        assert res["line_total"] == pytest.approx(1120)

    def test_inter_state_line(self):
        res = compute_line(2, 500, 12, inter_state=True)
        assert res["igst"] == pytest.approx(120)
        assert res["cgst"] == res["sgst"] == 0


class TestJurisdiction:
    def test_same_state_is_intra(self):
        assert is_inter_state("Rajasthan", "Rajasthan") is False

    def test_different_state_is_inter(self):
        assert is_inter_state("Rajasthan", "Gujarat") is True

    def test_place_of_supply_prefers_client(self):
        assert place_of_supply_for("Rajasthan", "Gujarat") == "Gujarat"

    def test_place_of_supply_falls_back_to_business(self):
        assert place_of_supply_for("Rajasthan", "") == "Rajasthan"


def test_money_rounds_to_two_places():
    assert money(2949.999) == 2950.0
    assert money("12.5") == 12.5
    assert money(None) == 0.0
