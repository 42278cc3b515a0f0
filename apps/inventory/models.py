"""
Inventory models for the retail POS.

Products are sold either as a single stock-keeping unit or in size variants
(S/M/L, 28/30/32, ...). For variant products the per-size counts in
sizes_stock are the source of truth and the aggregate stock column is
recomputed from them on every save.
"""

import uuid
from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from apps.core.exceptions import InsufficientStockError

IN_STOCK = "in-stock"
LOW_STOCK = "low-stock"
OUT_OF_STOCK = "out-of-stock"


def normalize_sizes_stock(sizes_stock):
    """
    Validate and normalize a size -> stock mapping.

    Size labels are trimmed and must be unique ignoring case; counts must be
    non-negative integers.

    Raises:
        ValueError: If the mapping is malformed.
    """
    if sizes_stock in (None, ""):
        return {}
    if not isinstance(sizes_stock, dict):
        raise ValueError("sizes_stock must be a mapping of size to stock.")

    normalized = {}
    seen = set()
    for size, count in sizes_stock.items():
        label = str(size).strip()
        if not label:
            raise ValueError("Size labels cannot be empty.")
        if label.lower() in seen:
            raise ValueError(f"Duplicate size '{label}'.")
        if isinstance(count, bool) or not isinstance(count, int):
            raise ValueError(f"Stock for size '{label}' must be a whole number.")
        if count < 0:
            raise ValueError(f"Stock for size '{label}' cannot be negative.")
        seen.add(label.lower())
        normalized[label] = count
    return normalized


class Product(models.Model):
    """
    A product in the shop catalog.

    Tracks:
    - Item number (the value printed in the barcode)
    - Name, brand and category
    - Unit MRP and promotional discount percentage
    - Aggregate stock and optional per-size stock
    - Low stock threshold for alerts
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the product",
    )

    item_number = models.CharField(
        max_length=50,
        unique=True,
        help_text="Item number / barcode value, unique across the catalog",
    )

    name = models.CharField(
        max_length=255,
        help_text="Product name",
    )

    brand = models.CharField(
        max_length=100,
        help_text="Brand name",
    )

    category = models.CharField(
        max_length=100,
        help_text="Category name (e.g., Shirts, Sarees, Footwear)",
    )

    description = models.TextField(
        blank=True,
        help_text="Optional product description",
    )

    image = models.CharField(
        max_length=500,
        blank=True,
        help_text="Image URL or storage path",
    )

    # Pricing
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Unit MRP",
    )

    discount_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00")), MaxValueValidator(Decimal("100.00"))],
        help_text="Promotional discount applied to the MRP (0-100)",
    )

    # Stock
    stock = models.PositiveIntegerField(
        default=0,
        help_text="Total units in stock (derived from sizes_stock for variant products)",
    )

    sizes_stock = models.JSONField(
        default=dict,
        blank=True,
        help_text="Per-size stock, e.g. {'S': 3, 'M': 5}. Empty for products without sizes.",
    )

    low_stock_threshold = models.PositiveIntegerField(
        default=5,
        help_text="Stock level at or below which the product is reported as low stock",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this product is available for sale",
    )

    # Timestamps
    created_at = models.DateTimeField(
        auto_now_add=True,
        help_text="When the product was added to the catalog",
    )

    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the product was last updated",
    )

    class Meta:
        db_table = "products"
        ordering = ["name"]
        verbose_name = "Product"
        verbose_name_plural = "Products"
        indexes = [
            models.Index(fields=["category"], name="product_category_idx"),
            models.Index(fields=["brand"], name="product_brand_idx"),
            models.Index(fields=["is_active"], name="product_active_idx"),
            models.Index(fields=["stock", "low_stock_threshold"], name="product_low_stock_idx"),
        ]

    def __str__(self):
        return f"{self.item_number} - {self.name}"

    def save(self, *args, **kwargs):
        """
        Override save to derive aggregate stock from the size variants.
        """
        self.sizes_stock = normalize_sizes_stock(self.sizes_stock)
        if self.sizes_stock:
            self.stock = sum(self.sizes_stock.values())
            update_fields = kwargs.get("update_fields")
            if update_fields is not None and "sizes_stock" in update_fields:
                kwargs["update_fields"] = set(update_fields) | {"stock"}
        super().save(*args, **kwargs)

    def has_sizes(self):
        """Check if the product is sold in size variants."""
        return bool(self.sizes_stock)

    def available_stock(self, size=None):
        """Units available for the given size, or overall when size is None."""
        if size is None:
            return self.stock
        return self.sizes_stock.get(size, 0)

    def is_low_stock(self):
        """Check if stock is at or below the threshold but not zero."""
        return 0 < self.stock <= self.low_stock_threshold

    def is_out_of_stock(self):
        """Check if product is out of stock."""
        return self.stock == 0

    def stock_status(self):
        """Return 'out-of-stock', 'low-stock' or 'in-stock'."""
        if self.is_out_of_stock():
            return OUT_OF_STOCK
        if self.stock <= self.low_stock_threshold:
            return LOW_STOCK
        return IN_STOCK

    def deduct_stock(self, quantity, size=None):
        """
        Deduct sold units.

        For variant products the size's count is decremented and the
        aggregate stock recomputed; otherwise the flat stock is decremented.

        Raises:
            InsufficientStockError: If fewer than quantity units are left, or
                if no size is given for a product sold in sizes.
        """
        if size is None and self.has_sizes():
            raise InsufficientStockError(
                f"{self.name} is sold in sizes ({', '.join(self.sizes_stock)}); no size was selected.",
                product_id=str(self.id),
                available=0,
                requested=quantity,
            )

        available = self.available_stock(size)
        if available < quantity:
            label = f"{self.name} ({size})" if size else self.name
            raise InsufficientStockError(
                f"Insufficient stock for {label}. Available: {available}, Requested: {quantity}",
                product_id=str(self.id),
                available=available,
                requested=quantity,
            )

        if size is not None:
            sizes_stock = dict(self.sizes_stock)
            sizes_stock[size] = available - quantity
            self.sizes_stock = sizes_stock
            self.save(update_fields=["sizes_stock", "stock", "updated_at"])
        else:
            self.stock -= quantity
            self.save(update_fields=["stock", "updated_at"])
