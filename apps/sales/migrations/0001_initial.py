# Generated migration for bills and bill items

import decimal
import uuid

import django.core.validators
import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("inventory", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Bill",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for the bill",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "bill_number",
                    models.CharField(
                        help_text="Sequential bill number printed on the receipt (e.g., BILL-00000001)",
                        max_length=20,
                        unique=True,
                    ),
                ),
                (
                    "counter_number",
                    models.PositiveIntegerField(
                        default=1, help_text="Billing counter the bill was made at"
                    ),
                ),
                ("customer_name", models.CharField(help_text="Customer name", max_length=255)),
                (
                    "customer_phone",
                    models.CharField(
                        help_text="Customer phone number (used for WhatsApp receipts)",
                        max_length=20,
                    ),
                ),
                (
                    "customer_email",
                    models.EmailField(blank=True, help_text="Optional customer email", max_length=254),
                ),
                (
                    "payment_method",
                    models.CharField(
                        choices=[
                            ("cash", "Cash"),
                            ("card", "Card"),
                            ("digital-wallet", "Digital Wallet"),
                        ],
                        help_text="How the customer paid",
                        max_length=20,
                    ),
                ),
                (
                    "subtotal",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Sum of line totals",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(decimal.Decimal("0.00"))],
                    ),
                ),
                (
                    "tax",
                    models.DecimalField(
                        decimal_places=2,
                        default=decimal.Decimal("0.00"),
                        help_text="Tax amount",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(decimal.Decimal("0.00"))],
                    ),
                ),
                (
                    "discount_type",
                    models.CharField(
                        choices=[("percent", "Percentage"), ("amount", "Fixed Amount")],
                        default="percent",
                        help_text="Type of the cart-level discount",
                        max_length=10,
                    ),
                ),
                (
                    "discount_value",
                    models.DecimalField(
                        decimal_places=2,
                        default=decimal.Decimal("0.00"),
                        help_text="Percentage or amount entered by the cashier",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(decimal.Decimal("0.00"))],
                    ),
                ),
                (
                    "discount_amount",
                    models.DecimalField(
                        decimal_places=2,
                        default=decimal.Decimal("0.00"),
                        help_text="Cart-level discount in currency",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(decimal.Decimal("0.00"))],
                    ),
                ),
                (
                    "total",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Amount payable (subtotal + tax - discount)",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(decimal.Decimal("0.00"))],
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("PERSISTED", "Persisted"),
                            ("RECONCILED", "Reconciled"),
                            ("COMPLETED", "Completed"),
                        ],
                        default="PENDING",
                        help_text="Checkout pipeline status",
                        max_length=50,
                    ),
                ),
                (
                    "reconciliation_warnings",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="Stock decrements that failed after the bill was saved",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(auto_now_add=True, help_text="When the bill was created"),
                ),
                (
                    "completed_at",
                    models.DateTimeField(blank=True, help_text="When checkout finished", null=True),
                ),
                (
                    "operator",
                    models.ForeignKey(
                        help_text="Operator who processed the checkout",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bills",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Bill",
                "verbose_name_plural": "Bills",
                "db_table": "bills",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["-created_at"], name="bill_date_idx"),
                    models.Index(fields=["status"], name="bill_status_idx"),
                    models.Index(fields=["operator", "-created_at"], name="bill_operator_date_idx"),
                    models.Index(fields=["customer_phone"], name="bill_customer_phone_idx"),
                    models.Index(fields=["payment_method"], name="bill_payment_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BillItem",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for the bill item",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "position",
                    models.PositiveIntegerField(default=0, help_text="Line order on the bill"),
                ),
                (
                    "product_name",
                    models.CharField(help_text="Product name at time of sale", max_length=255),
                ),
                (
                    "item_number",
                    models.CharField(help_text="Item number at time of sale", max_length=50),
                ),
                (
                    "product_price",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Unit MRP at time of sale",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(decimal.Decimal("0.00"))],
                    ),
                ),
                (
                    "discount_percentage",
                    models.DecimalField(
                        decimal_places=2,
                        default=decimal.Decimal("0.00"),
                        help_text="Product discount percentage at time of sale",
                        max_digits=5,
                    ),
                ),
                (
                    "selected_size",
                    models.CharField(
                        blank=True,
                        help_text="Size sold, blank for products without sizes",
                        max_length=20,
                    ),
                ),
                (
                    "quantity",
                    models.PositiveIntegerField(
                        help_text="Quantity sold",
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                (
                    "total",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Line total after the product discount",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(decimal.Decimal("0.00"))],
                    ),
                ),
                (
                    "bill",
                    models.ForeignKey(
                        help_text="Bill that this item belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="sales.bill",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        blank=True,
                        help_text="Product that was sold (kept as reference only)",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bill_items",
                        to="inventory.product",
                    ),
                ),
            ],
            options={
                "verbose_name": "Bill Item",
                "verbose_name_plural": "Bill Items",
                "db_table": "bill_items",
                "ordering": ["position"],
                "indexes": [
                    models.Index(fields=["bill", "position"], name="billitem_bill_idx"),
                    models.Index(fields=["product"], name="billitem_product_idx"),
                ],
            },
        ),
    ]
