"""
Tests for money arithmetic.

Covers:
- Unit price and line totals with product discounts
- Subtotal, tax, cart-level discount and grand total
- Rounding to paise with ROUND_HALF_UP
- Discount validation
"""

from decimal import Decimal

from django.test import override_settings

import pytest

from apps.core.exceptions import ValidationError
from apps.sales import pricing
from apps.sales.pricing import Discount


class TestLinePricing:
    """Test unit price and line totals."""

    def test_unit_price_applies_product_discount(self):
        assert pricing.unit_price(Decimal("500.00"), Decimal("10")) == Decimal("450.00")

    def test_unit_price_without_discount(self):
        assert pricing.unit_price("99.99", None) == Decimal("99.99")

    def test_line_total_multiplies_quantity(self):
        assert pricing.line_total(Decimal("500.00"), Decimal("10"), 3) == Decimal("1350.00")

    def test_line_total_rounds_once(self):
        """33.33% off 10.00 is 6.667 per unit; three units are 20.00, not 3 x 6.67."""
        assert pricing.line_total(Decimal("10.00"), Decimal("33.33"), 3) == Decimal("20.00")

    def test_half_up_rounding(self):
        assert pricing.quantize(Decimal("0.125")) == Decimal("0.13")
        assert pricing.quantize(Decimal("0.124")) == Decimal("0.12")

    def test_invalid_amount(self):
        with pytest.raises(ValidationError):
            pricing.to_decimal("abc")


class TestTotals:
    """Test subtotal, tax, discount and total."""

    LINES = [
        (Decimal("500.00"), Decimal("10"), 2),  # 900.00
        (Decimal("99.99"), Decimal("0"), 1),  # 99.99
    ]

    def test_subtotal(self):
        assert pricing.calculate_subtotal(self.LINES) == Decimal("999.99")

    def test_empty_subtotal(self):
        assert pricing.calculate_subtotal([]) == Decimal("0.00")

    def test_tax_uses_rate(self):
        assert pricing.calculate_tax(Decimal("1000.00"), Decimal("0.18")) == Decimal("180.00")

    @override_settings(POS_TAX_RATE=Decimal("0.05"))
    def test_tax_defaults_to_setting(self):
        assert pricing.calculate_tax(Decimal("200.00")) == Decimal("10.00")

    def test_percent_discount(self):
        discount = Discount(pricing.PERCENT, Decimal("10"))
        assert pricing.calculate_discount(Decimal("999.99"), discount) == Decimal("100.00")

    def test_amount_discount_capped_at_subtotal(self):
        discount = Discount(pricing.AMOUNT, Decimal("5000"))
        assert pricing.calculate_discount(Decimal("999.99"), discount) == Decimal("999.99")

    def test_no_discount(self):
        assert pricing.calculate_discount(Decimal("100.00"), None) == Decimal("0.00")
        assert pricing.calculate_discount(Decimal("100.00"), Discount.none()) == Decimal("0.00")

    def test_total_never_negative(self):
        assert pricing.calculate_total(Decimal("10.00"), Decimal("0"), Decimal("20.00")) == Decimal(
            "0.00"
        )

    def test_calculate_totals(self):
        totals = pricing.calculate_totals(
            self.LINES, Discount(pricing.AMOUNT, Decimal("99.99")), Decimal("0.10")
        )

        assert totals.subtotal == Decimal("999.99")
        assert totals.tax == Decimal("100.00")
        assert totals.discount_amount == Decimal("99.99")
        assert totals.total == Decimal("1000.00")
        assert totals.total == totals.subtotal + totals.tax - totals.discount_amount

    def test_totals_as_dict_uses_strings(self):
        totals = pricing.calculate_totals(self.LINES, tax_rate=Decimal("0"))
        assert totals.as_dict() == {
            "subtotal": "999.99",
            "tax": "0.00",
            "discount_amount": "0.00",
            "total": "999.99",
        }


class TestDiscount:
    """Test discount validation."""

    def test_value_coerced_to_decimal(self):
        assert Discount(pricing.AMOUNT, "25.50").value == Decimal("25.50")

    def test_unknown_type(self):
        with pytest.raises(ValidationError):
            Discount("bogus", Decimal("1"))

    def test_negative_value(self):
        with pytest.raises(ValidationError):
            Discount(pricing.AMOUNT, Decimal("-1"))

    def test_percent_over_hundred(self):
        with pytest.raises(ValidationError):
            Discount(pricing.PERCENT, Decimal("100.01"))

    def test_as_dict(self):
        assert Discount(pricing.PERCENT, Decimal("5")).as_dict() == {"type": "percent", "value": "5"}
