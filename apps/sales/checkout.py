"""
Checkout pipeline.

Turns a cart into a saved bill and reconciles inventory:

1. Require an authenticated operator session.
2. Reject an empty cart.
3. Validate customer details and payment method.
4. Recompute every amount server side.
5. Save the bill and its items in one transaction.
6. Decrement stock line by line under POS_STOCK_SHORTFALL_POLICY.
7. Move the bill to COMPLETED and return it for the receipt.

Nothing is written before step 5, so failures in steps 1-4 leave the
database untouched.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import DatabaseError, transaction

from apps.core.exceptions import (
    EmptyCartError,
    InsufficientStockError,
    PersistenceError,
    ProductNotFoundError,
    ValidationError,
)
from apps.core.identity import require_session
from apps.inventory.services import InventoryService

from . import pricing
from .models import Bill
from .services import BillStore, BillWithItems

logger = logging.getLogger(__name__)

WARN = "warn"
ABORT = "abort"
SHORTFALL_POLICIES = (WARN, ABORT)


@dataclass(frozen=True)
class CustomerInfo:
    name: str
    phone: str
    email: str = ""

    @classmethod
    def coerce(cls, customer):
        if isinstance(customer, cls):
            return customer
        customer = customer or {}
        return cls(
            name=customer.get("name") or customer.get("customer_name") or "",
            phone=customer.get("phone") or customer.get("customer_phone") or "",
            email=customer.get("email") or customer.get("customer_email") or "",
        )


@dataclass
class CheckoutResult:
    bill: BillWithItems
    warnings: List[str] = field(default_factory=list)

    @property
    def has_warnings(self):
        return bool(self.warnings)

    def as_dict(self):
        return {"bill": self.bill.as_dict(), "warnings": list(self.warnings)}


def get_shortfall_policy():
    policy = getattr(settings, "POS_STOCK_SHORTFALL_POLICY", WARN)
    if policy not in SHORTFALL_POLICIES:
        raise ImproperlyConfigured(
            f"POS_STOCK_SHORTFALL_POLICY must be one of {SHORTFALL_POLICIES}, got '{policy}'"
        )
    return policy


class CheckoutService:
    """
    Runs a checkout.

    Args:
        shortfall_policy: "warn" records a failed stock decrement on the bill
            and carries on; "abort" rolls the whole checkout back. Defaults to
            POS_STOCK_SHORTFALL_POLICY.
        tax_rate: Overrides POS_TAX_RATE.
    """

    def __init__(self, shortfall_policy=None, tax_rate=None):
        self.shortfall_policy = shortfall_policy or get_shortfall_policy()
        if self.shortfall_policy not in SHORTFALL_POLICIES:
            raise ImproperlyConfigured(f"Unknown stock shortfall policy '{self.shortfall_policy}'")
        self.tax_rate = pricing.get_tax_rate() if tax_rate is None else pricing.to_decimal(tax_rate)

    def checkout(self, cart_items, customer, payment_method, discount=None, session=None):
        """
        Check out the given cart lines.

        Raises:
            AuthenticationRequiredError: No authenticated session.
            EmptyCartError: No cart lines.
            ValidationError: Bad customer details, payment method or discount.
            PersistenceError: The bill could not be saved.
            InsufficientStockError: A line could not be decremented under the
                "abort" policy.
        """
        session = require_session(session)

        items = list(cart_items or [])
        if not items:
            raise EmptyCartError("Add items to the cart before checking out.")

        customer = self._validate_customer(CustomerInfo.coerce(customer))
        payment_method = self._validate_payment_method(payment_method)
        discount = self._coerce_discount(discount)

        totals = pricing.calculate_totals(
            [item.as_line() for item in items], discount, self.tax_rate
        )

        operator = session.user
        try:
            with transaction.atomic():
                bill = BillStore.insert_bill(
                    operator=operator,
                    counter_number=getattr(operator, "counter_number", 1) or 1,
                    customer_name=customer.name,
                    customer_phone=customer.phone,
                    customer_email=customer.email,
                    payment_method=payment_method,
                    subtotal=totals.subtotal,
                    tax=totals.tax,
                    tax_rate=self.tax_rate,
                    discount_type=discount.type,
                    discount_value=discount.value,
                    discount_amount=totals.discount_amount,
                    total=totals.total,
                )
                known_ids = InventoryService.existing_product_ids(
                    [item.product.product_id for item in items]
                )
                BillStore.insert_bill_items(
                    bill, [self._snapshot_line(item, known_ids) for item in items]
                )
                bill.mark_persisted()
                bill.save(update_fields=["status"])

                warnings = self._reconcile_stock(bill, items)

                bill.mark_reconciled(warnings)
                bill.complete()
                bill.save(update_fields=["status", "reconciliation_warnings", "completed_at"])
        except DatabaseError as e:
            logger.error(f"Checkout failed while writing: {str(e)}", exc_info=True)
            raise PersistenceError(f"Checkout failed: {str(e)}")

        logger.info(
            f"Checkout {bill.bill_number} by {operator.get_username()}: "
            f"{len(items)} lines, total {bill.total}, {len(warnings)} warnings"
        )
        return CheckoutResult(bill=BillWithItems.from_bill(bill), warnings=warnings)

    def _reconcile_stock(self, bill, items):
        warnings = []
        for item in items:
            try:
                InventoryService.decrease_stock(
                    item.product.product_id, item.quantity, size=item.selected_size
                )
            except (InsufficientStockError, ProductNotFoundError) as e:
                if self.shortfall_policy == ABORT:
                    logger.warning(
                        f"Aborting checkout {bill.bill_number}: {item.product.name}: {e.message}"
                    )
                    raise
                message = f"{item.product.name}: {e.message}"
                logger.warning(f"Stock not reconciled for bill {bill.bill_number}: {message}")
                warnings.append(message)
        return warnings

    @staticmethod
    def _snapshot_line(item, known_ids):
        product_id = item.product.product_id
        return {
            "product_id": product_id if product_id in known_ids else None,
            "product_name": item.product.name,
            "item_number": item.product.item_number,
            "product_price": pricing.quantize(item.product.price),
            "discount_percentage": pricing.quantize(item.product.discount_percentage),
            "selected_size": item.selected_size or "",
            "quantity": item.quantity,
            "total": item.total,
        }

    @staticmethod
    def _validate_customer(customer):
        name = (customer.name or "").strip()
        phone = (customer.phone or "").strip()
        email = (customer.email or "").strip()

        missing = []
        if not name:
            missing.append("customer_name")
        if not phone:
            missing.append("customer_phone")
        if missing:
            raise ValidationError("Customer name and phone are required.", fields=missing)

        if email:
            try:
                validate_email(email)
            except DjangoValidationError:
                raise ValidationError(f"'{email}' is not a valid email address.", field="customer_email")

        return CustomerInfo(name=name, phone=phone, email=email)

    @staticmethod
    def _validate_payment_method(payment_method):
        valid = [choice for choice, _ in Bill.PAYMENT_METHOD_CHOICES]
        if payment_method not in valid:
            raise ValidationError(
                f"Payment method must be one of: {', '.join(valid)}.", field="payment_method"
            )
        return payment_method

    @staticmethod
    def _coerce_discount(discount) -> pricing.Discount:
        if discount is None:
            return pricing.Discount.none()
        if isinstance(discount, pricing.Discount):
            return discount
        return pricing.Discount(
            discount.get("type", pricing.PERCENT), discount.get("value", pricing.ZERO)
        )


def checkout_cart(cart, customer, payment_method, session, service: Optional[CheckoutService] = None):
    """Check out a Cart using its own discount."""
    service = service or CheckoutService()
    return service.checkout(cart.items, customer, payment_method, cart.discount, session)
