"""Tests for order amount computation and minor unit conversion."""

from decimal import Decimal

import pytest

from checkout.models.fees import compute_order_amounts, to_minor_units


class TestComputeOrderAmounts:
    def test_amount_is_price_times_quantity(self):
        amounts = compute_order_amounts(Decimal("120000"), 3, Decimal("0"), Decimal("0"))
        assert amounts.amount == Decimal("360000")
        assert amounts.total_amount == Decimal("360000")

    def test_total_adds_both_fees(self):
        amounts = compute_order_amounts(Decimal("250000"), 1, Decimal("5000"), Decimal("10000"))
        assert amounts.amount == Decimal("250000")
        assert amounts.base_fee == Decimal("5000")
        assert amounts.delivery_fee == Decimal("10000")
        assert amounts.total_amount == Decimal("265000")

    def test_float_inputs_keep_their_printed_value(self):
        amounts = compute_order_amounts(0.1, 3, 0.2, 0)
        assert amounts.amount == Decimal("0.3")
        assert amounts.total_amount == Decimal("0.5")

    def test_zero_price_is_allowed(self):
        amounts = compute_order_amounts(0, 1, 0, 0)
        assert amounts.total_amount == 0

    @pytest.mark.parametrize(
        "price, quantity, base_fee, delivery_fee, message",
        [
            (-1, 1, 0, 0, "Unit price cannot be negative"),
            (100, 0, 0, 0, "Quantity must be at least 1"),
            (100, 1, -5, 0, "Base fee cannot be negative"),
            (100, 1, 0, -5, "Delivery fee cannot be negative"),
        ],
    )
    def test_rejects_invalid_inputs(self, price, quantity, base_fee, delivery_fee, message):
        with pytest.raises(ValueError, match=message):
            compute_order_amounts(price, quantity, base_fee, delivery_fee)


class TestToMinorUnits:
    def test_whole_amount(self):
        assert to_minor_units(Decimal("265000")) == 26500000

    def test_fractional_amount(self):
        assert to_minor_units(Decimal("1234.56")) == 123456

    def test_rounds_half_up(self):
        assert to_minor_units(Decimal("10.005")) == 1001
        assert to_minor_units(Decimal("10.004")) == 1000

    def test_accepts_strings_and_ints(self):
        assert to_minor_units("99.99") == 9999
        assert to_minor_units(5) == 500
