"""
Inventory service.

The single entry point the rest of the POS uses to read and change the
product catalog. Stock decrements lock the product row and check the stock
floor so that concurrent sales can never drive stock below zero.
"""

import logging
import uuid

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import F, Q

from apps.core.exceptions import ProductNotFoundError, ValidationError

from .models import Product, normalize_sizes_stock

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "price", "brand", "category", "item_number")

EDITABLE_FIELDS = (
    "item_number",
    "name",
    "brand",
    "category",
    "description",
    "image",
    "price",
    "discount_percentage",
    "stock",
    "sizes_stock",
    "low_stock_threshold",
    "is_active",
)


class InventoryService:
    """Catalog reads, writes and stock reconciliation."""

    @staticmethod
    def fetch_products(search=None, include_inactive=False):
        """
        Return products ordered by name.

        Args:
            search: Optional text matched against item number, name, brand
                and category.
            include_inactive: Include products that are no longer for sale.
        """
        queryset = Product.objects.all()
        if not include_inactive:
            queryset = queryset.filter(is_active=True)

        if search:
            queryset = queryset.filter(
                Q(item_number__icontains=search)
                | Q(name__icontains=search)
                | Q(brand__icontains=search)
                | Q(category__icontains=search)
            )

        return queryset.order_by("name")

    @staticmethod
    def fetch_product(product_id):
        """Return the product with the given id, or None."""
        try:
            return Product.objects.get(id=product_id)
        except (Product.DoesNotExist, DjangoValidationError, ValueError, TypeError):
            return None

    @staticmethod
    def existing_product_ids(product_ids):
        """The subset of product_ids that still exist, as strings."""
        valid_ids = []
        for product_id in product_ids:
            try:
                valid_ids.append(uuid.UUID(str(product_id)))
            except ValueError:
                continue
        return {
            str(product_id)
            for product_id in Product.objects.filter(id__in=valid_ids).values_list("id", flat=True)
        }

    @staticmethod
    def fetch_by_item_number(item_number):
        """
        Look up an active product by its scanned item number.

        Raises:
            ProductNotFoundError: If no active product has that item number.
        """
        code = (item_number or "").strip()
        try:
            return Product.objects.get(item_number__iexact=code, is_active=True)
        except Product.DoesNotExist:
            raise ProductNotFoundError(f"No product with item number '{code}'.", item_number=code)

    @staticmethod
    def create_product(**fields):
        """
        Add a product to the catalog.

        Raises:
            ValidationError: If a required field is missing, the item number
                is already taken or sizes_stock is malformed.
        """
        missing = [
            name for name in REQUIRED_FIELDS if fields.get(name) in (None, "")
        ]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}", fields=missing
            )

        data = InventoryService._clean_fields(fields)
        data.setdefault(
            "low_stock_threshold", getattr(settings, "POS_DEFAULT_LOW_STOCK_THRESHOLD", 5)
        )

        if Product.objects.filter(item_number__iexact=data["item_number"]).exists():
            raise ValidationError(
                f"Item number '{data['item_number']}' already exists.",
                field="item_number",
            )

        product = Product.objects.create(**data)
        logger.info(f"Created product {product.item_number} ({product.name})")
        return product

    @staticmethod
    def update_product(product, **fields):
        """
        Update a product.

        When sizes_stock is given the aggregate stock is recomputed from it;
        an explicit stock value is ignored for variant products.
        """
        data = InventoryService._clean_fields(fields)

        item_number = data.get("item_number")
        if item_number and (
            Product.objects.filter(item_number__iexact=item_number)
            .exclude(id=product.id)
            .exists()
        ):
            raise ValidationError(
                f"Item number '{item_number}' already exists.", field="item_number"
            )

        for name, value in data.items():
            setattr(product, name, value)
        product.save()

        logger.info(f"Updated product {product.item_number}: {', '.join(sorted(data))}")
        return product

    @staticmethod
    def decrease_stock(product_id, quantity, size=None):
        """
        Conditionally decrement stock for a sold line.

        The product row is locked for the rest of the surrounding transaction.
        A size line decrements that size and recomputes the aggregate stock;
        a flat line decrements stock directly.

        Raises:
            ProductNotFoundError: If the product does not exist.
            InsufficientStockError: If fewer than quantity units remain.
        """
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1.", quantity=quantity)

        with transaction.atomic():
            try:
                product = Product.objects.select_for_update().get(id=product_id)
            except (Product.DoesNotExist, DjangoValidationError, ValueError):
                raise ProductNotFoundError(
                    f"Product {product_id} not found.", product_id=str(product_id)
                )

            product.deduct_stock(quantity, size=size)

        if product.is_out_of_stock():
            logger.warning(f"Product {product.item_number} ({product.name}) is out of stock")
        elif product.is_low_stock():
            logger.warning(
                f"Product {product.item_number} ({product.name}) is low on stock: "
                f"{product.stock} left (threshold {product.low_stock_threshold})"
            )

        return product

    @staticmethod
    def low_stock_products():
        """Active products at or below their low stock threshold, including sold out."""
        return Product.objects.filter(
            is_active=True, stock__lte=F("low_stock_threshold")
        ).order_by("stock", "name")

    @staticmethod
    def _clean_fields(fields):
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(
                f"Unknown product fields: {', '.join(sorted(unknown))}",
                fields=sorted(unknown),
            )

        data = dict(fields)
        for name in ("item_number", "name", "brand", "category"):
            if isinstance(data.get(name), str):
                data[name] = data[name].strip()

        if "sizes_stock" in data:
            try:
                data["sizes_stock"] = normalize_sizes_stock(data["sizes_stock"])
            except ValueError as e:
                raise ValidationError(str(e), field="sizes_stock")
            if data["sizes_stock"]:
                data.pop("stock", None)

        if "stock" in data and (data["stock"] is None or int(data["stock"]) < 0):
            raise ValidationError("Stock cannot be negative.", field="stock")

        return data
