"""
Sales models for the billing counter.

- Bill: one completed checkout with customer details, payment method and
  totals. Its status moves through the checkout pipeline with django-fsm.
- BillItem: an immutable snapshot of one cart line at the time of sale.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from apps.inventory.models import Product


class Bill(models.Model):
    """
    A bill produced by a checkout.

    Bills are append-only: they are written once, together with their items,
    and afterwards only the status and reconciliation warnings change.
    """

    # Payment method choices
    CASH = "cash"
    CARD = "card"
    DIGITAL_WALLET = "digital-wallet"

    PAYMENT_METHOD_CHOICES = [
        (CASH, "Cash"),
        (CARD, "Card"),
        (DIGITAL_WALLET, "Digital Wallet"),
    ]

    # Discount type choices
    PERCENT = "percent"
    AMOUNT = "amount"

    DISCOUNT_TYPE_CHOICES = [
        (PERCENT, "Percentage"),
        (AMOUNT, "Fixed Amount"),
    ]

    # Status choices for FSM
    PENDING = "PENDING"
    PERSISTED = "PERSISTED"
    RECONCILED = "RECONCILED"
    COMPLETED = "COMPLETED"

    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (PERSISTED, "Persisted"),
        (RECONCILED, "Reconciled"),
        (COMPLETED, "Completed"),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the bill",
    )

    bill_number = models.CharField(
        max_length=20,
        unique=True,
        help_text="Sequential bill number printed on the receipt (e.g., BILL-00000001)",
    )

    operator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="bills",
        help_text="Operator who processed the checkout",
    )

    counter_number = models.PositiveIntegerField(
        default=1,
        help_text="Billing counter the bill was made at",
    )

    # Customer
    customer_name = models.CharField(
        max_length=255,
        help_text="Customer name",
    )

    customer_phone = models.CharField(
        max_length=20,
        help_text="Customer phone number (used for WhatsApp receipts)",
    )

    customer_email = models.EmailField(
        blank=True,
        help_text="Optional customer email",
    )

    payment_method = models.CharField(
        max_length=20,
        choices=PAYMENT_METHOD_CHOICES,
        help_text="How the customer paid",
    )

    # Amounts
    subtotal = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Sum of line totals",
    )

    tax = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Tax amount",
    )

    tax_rate = models.DecimalField(
        max_digits=6,
        decimal_places=4,
        default=Decimal("0.0000"),
        validators=[MinValueValidator(Decimal("0.0000"))],
        help_text="Tax rate applied at checkout as a fraction (0.18 for 18%)",
    )

    discount_type = models.CharField(
        max_length=10,
        choices=DISCOUNT_TYPE_CHOICES,
        default=PERCENT,
        help_text="Type of the cart-level discount",
    )

    discount_value = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Percentage or amount entered by the cashier",
    )

    discount_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Cart-level discount in currency",
    )

    total = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Amount payable (subtotal + tax - discount)",
    )

    status = FSMField(
        default=PENDING,
        choices=STATUS_CHOICES,
        help_text="Checkout pipeline status",
    )

    reconciliation_warnings = models.JSONField(
        default=list,
        blank=True,
        help_text="Stock decrements that failed after the bill was saved",
    )

    # Timestamps
    created_at = models.DateTimeField(
        auto_now_add=True,
        help_text="When the bill was created",
    )

    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When checkout finished",
    )

    class Meta:
        db_table = "bills"
        ordering = ["-created_at"]
        verbose_name = "Bill"
        verbose_name_plural = "Bills"
        indexes = [
            models.Index(fields=["-created_at"], name="bill_date_idx"),
            models.Index(fields=["status"], name="bill_status_idx"),
            models.Index(fields=["operator", "-created_at"], name="bill_operator_date_idx"),
            models.Index(fields=["customer_phone"], name="bill_customer_phone_idx"),
            models.Index(fields=["payment_method"], name="bill_payment_idx"),
        ]

    def __str__(self):
        return f"{self.bill_number} - {self.total}"

    # FSM Transitions
    @transition(field=status, source=PENDING, target=PERSISTED)
    def mark_persisted(self):
        """Header and items have been written."""

    @transition(field=status, source=PERSISTED, target=RECONCILED)
    def mark_reconciled(self, warnings=None):
        """Every stock decrement has been attempted."""
        self.reconciliation_warnings = list(warnings or [])

    @transition(field=status, source=RECONCILED, target=COMPLETED)
    def complete(self, completed_at=None):
        """Checkout finished; the bill can be handed to the customer."""
        self.completed_at = completed_at or timezone.now()

    @property
    def has_warnings(self):
        return bool(self.reconciliation_warnings)

    @property
    def total_quantity(self):
        return sum(item.quantity for item in self.items.all())


class BillItem(models.Model):
    """
    One line of a bill.

    Captures the product's name, price and discount at the time of sale so
    later catalog changes never alter a printed bill. Rows are written once;
    saving an existing row raises.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the bill item",
    )

    bill = models.ForeignKey(
        Bill,
        on_delete=models.CASCADE,
        related_name="items",
        help_text="Bill that this item belongs to",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bill_items",
        help_text="Product that was sold (kept as reference only)",
    )

    position = models.PositiveIntegerField(
        default=0,
        help_text="Line order on the bill",
    )

    # Snapshot
    product_name = models.CharField(
        max_length=255,
        help_text="Product name at time of sale",
    )

    item_number = models.CharField(
        max_length=50,
        help_text="Item number at time of sale",
    )

    product_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Unit MRP at time of sale",
    )

    discount_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Product discount percentage at time of sale",
    )

    selected_size = models.CharField(
        max_length=20,
        blank=True,
        help_text="Size sold, blank for products without sizes",
    )

    quantity = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Quantity sold",
    )

    total = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Line total after the product discount",
    )

    class Meta:
        db_table = "bill_items"
        ordering = ["position"]
        verbose_name = "Bill Item"
        verbose_name_plural = "Bill Items"
        indexes = [
            models.Index(fields=["bill", "position"], name="billitem_bill_idx"),
            models.Index(fields=["product"], name="billitem_product_idx"),
        ]

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Bill items are immutable once saved.")
        super().save(*args, **kwargs)

    @property
    def mrp_total(self):
        """Line amount before the product discount."""
        return self.product_price * self.quantity
