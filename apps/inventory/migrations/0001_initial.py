# Generated migration for the product catalog

import decimal
import uuid

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for the product",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "item_number",
                    models.CharField(
                        help_text="Item number / barcode value, unique across the catalog",
                        max_length=50,
                        unique=True,
                    ),
                ),
                ("name", models.CharField(help_text="Product name", max_length=255)),
                ("brand", models.CharField(help_text="Brand name", max_length=100)),
                (
                    "category",
                    models.CharField(
                        help_text="Category name (e.g., Shirts, Sarees, Footwear)", max_length=100
                    ),
                ),
                (
                    "description",
                    models.TextField(blank=True, help_text="Optional product description"),
                ),
                (
                    "image",
                    models.CharField(
                        blank=True, help_text="Image URL or storage path", max_length=500
                    ),
                ),
                (
                    "price",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Unit MRP",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(decimal.Decimal("0.00"))],
                    ),
                ),
                (
                    "discount_percentage",
                    models.DecimalField(
                        decimal_places=2,
                        default=decimal.Decimal("0.00"),
                        help_text="Promotional discount applied to the MRP (0-100)",
                        max_digits=5,
                        validators=[
                            django.core.validators.MinValueValidator(decimal.Decimal("0.00")),
                            django.core.validators.MaxValueValidator(decimal.Decimal("100.00")),
                        ],
                    ),
                ),
                (
                    "stock",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Total units in stock (derived from sizes_stock for variant products)",
                    ),
                ),
                (
                    "sizes_stock",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Per-size stock, e.g. {'S': 3, 'M': 5}. Empty for products without sizes.",
                    ),
                ),
                (
                    "low_stock_threshold",
                    models.PositiveIntegerField(
                        default=5,
                        help_text="Stock level at or below which the product is reported as low stock",
                    ),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        default=True, help_text="Whether this product is available for sale"
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True, help_text="When the product was added to the catalog"
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True, help_text="When the product was last updated"
                    ),
                ),
            ],
            options={
                "verbose_name": "Product",
                "verbose_name_plural": "Products",
                "db_table": "products",
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["category"], name="product_category_idx"),
                    models.Index(fields=["brand"], name="product_brand_idx"),
                    models.Index(fields=["is_active"], name="product_active_idx"),
                    models.Index(
                        fields=["stock", "low_stock_threshold"], name="product_low_stock_idx"
                    ),
                ],
            },
        ),
    ]
