"""
Money arithmetic for carts and bills.

Every amount is a Decimal quantized to paise with ROUND_HALF_UP. The cart
screen and the checkout pipeline both call these functions so the totals a
cashier sees are the totals that get billed.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings

from apps.core.exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

PERCENT = "percent"
AMOUNT = "amount"
DISCOUNT_TYPES = (PERCENT, AMOUNT)


def to_decimal(value) -> Decimal:
    """Convert a number or numeric string to Decimal."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"'{value}' is not a valid amount.")


def quantize(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def get_tax_rate() -> Decimal:
    """Configured tax rate as a fraction (0.18 for 18%)."""
    return to_decimal(getattr(settings, "POS_TAX_RATE", ZERO))


@dataclass(frozen=True)
class Discount:
    """A cart-level discount: a percentage of the subtotal or a flat amount."""

    type: str = PERCENT
    value: Decimal = ZERO

    def __post_init__(self):
        if self.type not in DISCOUNT_TYPES:
            raise ValidationError(
                f"Discount type must be one of: {', '.join(DISCOUNT_TYPES)}.",
                field="discount_type",
            )
        value = to_decimal(self.value)
        if value < 0:
            raise ValidationError("Discount cannot be negative.", field="discount_value")
        if self.type == PERCENT and value > HUNDRED:
            raise ValidationError(
                "Percentage discount cannot exceed 100.", field="discount_value"
            )
        object.__setattr__(self, "value", value)

    @classmethod
    def none(cls):
        return cls(PERCENT, ZERO)

    def as_dict(self):
        return {"type": self.type, "value": str(self.value)}


def unit_price(price, discount_percentage) -> Decimal:
    """Selling price of one unit after the product's own discount."""
    price = to_decimal(price)
    rate = to_decimal(discount_percentage or 0) / HUNDRED
    return quantize(price * (1 - rate))


def line_total(price, discount_percentage, quantity) -> Decimal:
    """
    Amount for one cart line.

    Computed from the unrounded unit price so that a line of many units does
    not accumulate per-unit rounding.
    """
    price = to_decimal(price)
    rate = to_decimal(discount_percentage or 0) / HUNDRED
    return quantize(price * (1 - rate) * quantity)


def calculate_subtotal(lines) -> Decimal:
    """
    Sum of line totals.

    Args:
        lines: Iterable of (price, discount_percentage, quantity) tuples.
    """
    subtotal = ZERO
    for price, discount_percentage, quantity in lines:
        subtotal += line_total(price, discount_percentage, quantity)
    return quantize(subtotal)


def calculate_tax(subtotal, tax_rate=None) -> Decimal:
    if tax_rate is None:
        tax_rate = get_tax_rate()
    return quantize(to_decimal(subtotal) * to_decimal(tax_rate))


def calculate_discount(subtotal, discount) -> Decimal:
    """Cart-level discount amount; a flat amount never exceeds the subtotal."""
    subtotal = to_decimal(subtotal)
    if discount is None or discount.value == 0:
        return ZERO
    if discount.type == PERCENT:
        return quantize(subtotal * discount.value / HUNDRED)
    return quantize(min(discount.value, subtotal))


def calculate_total(subtotal, tax, discount_amount) -> Decimal:
    total = to_decimal(subtotal) + to_decimal(tax) - to_decimal(discount_amount)
    return quantize(max(total, ZERO))


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    tax: Decimal
    discount_amount: Decimal
    total: Decimal

    def as_dict(self):
        return {
            "subtotal": str(self.subtotal),
            "tax": str(self.tax),
            "discount_amount": str(self.discount_amount),
            "total": str(self.total),
        }


def calculate_totals(lines, discount=None, tax_rate=None) -> Totals:
    """Subtotal, tax, discount and grand total for a set of lines."""
    subtotal = calculate_subtotal(lines)
    tax = calculate_tax(subtotal, tax_rate)
    discount_amount = calculate_discount(subtotal, discount)
    return Totals(
        subtotal=subtotal,
        tax=tax,
        discount_amount=discount_amount,
        total=calculate_total(subtotal, tax, discount_amount),
    )
