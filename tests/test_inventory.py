"""
Tests for the product catalog and stock.

Covers:
- Product model: size normalization, derived stock, stock status
- InventoryService: create, update, lookup, search
- Conditional stock decrements and low stock reporting
"""

import uuid
from decimal import Decimal

import pytest

from apps.core.exceptions import InsufficientStockError, ProductNotFoundError, ValidationError
from apps.inventory.models import (
    IN_STOCK,
    LOW_STOCK,
    OUT_OF_STOCK,
    Product,
    normalize_sizes_stock,
)
from apps.inventory.services import InventoryService


class TestNormalizeSizes:
    """Test size manager rules."""

    def test_labels_are_trimmed(self):
        assert normalize_sizes_stock({" M ": 2, "L": 0}) == {"M": 2, "L": 0}

    def test_empty(self):
        assert normalize_sizes_stock(None) == {}
        assert normalize_sizes_stock({}) == {}

    def test_duplicate_labels_ignore_case(self):
        with pytest.raises(ValueError):
            normalize_sizes_stock({"m": 1, "M": 2})

    def test_negative_stock(self):
        with pytest.raises(ValueError):
            normalize_sizes_stock({"M": -1})

    def test_non_integer_stock(self):
        with pytest.raises(ValueError):
            normalize_sizes_stock({"M": "3"})
        with pytest.raises(ValueError):
            normalize_sizes_stock({"M": True})

    def test_blank_label(self):
        with pytest.raises(ValueError):
            normalize_sizes_stock({"  ": 1})


@pytest.mark.django_db
class TestProductModel:
    """Test Product model functionality."""

    def test_stock_derived_from_sizes(self, jeans):
        assert jeans.stock == 3
        assert jeans.has_sizes()
        assert jeans.available_stock("30") == 2
        assert jeans.available_stock("36") == 0

    def test_stock_status(self, shirt):
        assert shirt.stock_status() == IN_STOCK

        shirt.stock = 3
        assert shirt.stock_status() == LOW_STOCK
        assert shirt.is_low_stock()

        shirt.stock = 0
        assert shirt.stock_status() == OUT_OF_STOCK
        assert shirt.is_out_of_stock()
        assert not shirt.is_low_stock()

    def test_deduct_flat_stock(self, shirt):
        shirt.deduct_stock(4)

        shirt.refresh_from_db()
        assert shirt.stock == 6

    def test_deduct_size_stock(self, jeans):
        jeans.deduct_stock(2, size="30")

        jeans.refresh_from_db()
        assert jeans.sizes_stock == {"30": 0, "32": 1, "34": 0}
        assert jeans.stock == 1

    def test_deduct_more_than_available(self, shirt):
        with pytest.raises(InsufficientStockError) as exc_info:
            shirt.deduct_stock(11)

        assert exc_info.value.context["available"] == 10
        assert exc_info.value.context["requested"] == 11
        shirt.refresh_from_db()
        assert shirt.stock == 10

    def test_deduct_sized_product_requires_size(self, jeans):
        with pytest.raises(InsufficientStockError):
            jeans.deduct_stock(1)

        jeans.refresh_from_db()
        assert jeans.stock == 3

    def test_str(self, shirt):
        assert str(shirt) == "SH-001 - Cotton Shirt"


@pytest.mark.django_db
class TestInventoryService:
    """Test catalog reads and writes."""

    def test_create_product(self, settings):
        settings.POS_DEFAULT_LOW_STOCK_THRESHOLD = 7

        product = InventoryService.create_product(
            item_number=" TS-9 ",
            name="Graphic Tee",
            brand="Acme",
            category="T-Shirts",
            price=Decimal("349.00"),
            sizes_stock={"S": 1, "M": 4},
        )

        assert product.item_number == "TS-9"
        assert product.stock == 5
        assert product.low_stock_threshold == 7
        assert product.is_active

    def test_create_requires_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            InventoryService.create_product(name="Mystery", price=Decimal("10"))

        assert set(exc_info.value.context["fields"]) == {"brand", "category", "item_number"}

    def test_duplicate_item_number(self, shirt):
        with pytest.raises(ValidationError):
            InventoryService.create_product(
                item_number="sh-001",
                name="Another Shirt",
                brand="Acme",
                category="Shirts",
                price=Decimal("10"),
            )

    def test_unknown_field(self):
        with pytest.raises(ValidationError):
            InventoryService.create_product(
                item_number="X-1",
                name="X",
                brand="B",
                category="C",
                price=Decimal("1"),
                colour="red",
            )

    def test_invalid_sizes(self):
        with pytest.raises(ValidationError):
            InventoryService.create_product(
                item_number="X-2",
                name="X",
                brand="B",
                category="C",
                price=Decimal("1"),
                sizes_stock={"M": -2},
            )

    def test_update_product(self, shirt):
        InventoryService.update_product(shirt, price=Decimal("550.00"), stock=20)

        shirt.refresh_from_db()
        assert shirt.price == Decimal("550.00")
        assert shirt.stock == 20

    def test_update_sizes_ignores_explicit_stock(self, jeans):
        InventoryService.update_product(jeans, sizes_stock={"30": 5, "32": 5}, stock=99)

        jeans.refresh_from_db()
        assert jeans.stock == 10

    def test_update_to_taken_item_number(self, shirt, jeans):
        with pytest.raises(ValidationError):
            InventoryService.update_product(jeans, item_number="SH-001")

    def test_fetch_product(self, shirt):
        assert InventoryService.fetch_product(shirt.id) == shirt
        assert InventoryService.fetch_product(uuid.uuid4()) is None
        assert InventoryService.fetch_product("not-a-uuid") is None

    def test_fetch_by_item_number(self, shirt):
        assert InventoryService.fetch_by_item_number(" sh-001 ") == shirt

        with pytest.raises(ProductNotFoundError):
            InventoryService.fetch_by_item_number("NOPE")

    def test_inactive_product_not_scannable(self, shirt):
        shirt.is_active = False
        shirt.save()

        with pytest.raises(ProductNotFoundError):
            InventoryService.fetch_by_item_number("SH-001")

    def test_search(self, shirt, jeans, socks):
        assert list(InventoryService.fetch_products(search="acme")) == [shirt, jeans]
        assert list(InventoryService.fetch_products(search="accessor")) == [socks]

    def test_existing_product_ids(self, shirt):
        missing = str(uuid.uuid4())

        assert InventoryService.existing_product_ids([str(shirt.id), missing, "junk"]) == {
            str(shirt.id)
        }


@pytest.mark.django_db
class TestDecreaseStock:
    """Test conditional stock decrements."""

    def test_decrease_flat(self, shirt):
        product = InventoryService.decrease_stock(shirt.id, 3)

        assert product.stock == 7

    def test_decrease_size(self, jeans):
        product = InventoryService.decrease_stock(jeans.id, 1, size="32")

        assert product.sizes_stock["32"] == 0
        assert product.stock == 2

    def test_stock_never_goes_negative(self, socks):
        InventoryService.decrease_stock(socks.id, 1)

        with pytest.raises(InsufficientStockError):
            InventoryService.decrease_stock(socks.id, 1)

        socks.refresh_from_db()
        assert socks.stock == 0

    def test_unknown_product(self):
        with pytest.raises(ProductNotFoundError):
            InventoryService.decrease_stock(uuid.uuid4(), 1)

    def test_invalid_quantity(self, shirt):
        with pytest.raises(ValidationError):
            InventoryService.decrease_stock(shirt.id, 0)

    def test_low_stock_products(self, shirt, jeans, socks):
        InventoryService.decrease_stock(shirt.id, 8)

        low = list(InventoryService.low_stock_products())

        assert shirt in low
        assert socks in low
        assert low[0].stock <= low[-1].stock
        assert Product.objects.get(id=jeans.id) not in low
