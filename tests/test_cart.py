"""
Tests for the cart engine.

Covers:
- Adding flat and size variant products
- Merging lines and the stock cap
- Quantity updates and removal
- Cart-level discount and totals
- Session persistence and cashier notices
"""

from decimal import Decimal

from django.contrib.sessions.backends.cache import SessionStore

import pytest

from apps.core.exceptions import StockExceededError, ValidationError
from apps.sales import pricing
from apps.sales.cart import Cart, CartSession, ProductSnapshot


@pytest.mark.django_db
class TestAddItem:
    """Test adding products to the cart."""

    def test_add_flat_product(self, cart, shirt):
        item = cart.add_item(shirt, 2)

        assert len(cart) == 1
        assert item.quantity == 2
        assert item.selected_size is None
        assert item.unit_price == Decimal("450.00")
        assert item.total == Decimal("900.00")

    def test_adding_same_product_merges_lines(self, cart, shirt):
        cart.add_item(shirt, 2)
        cart.add_item(shirt, 3)

        assert len(cart) == 1
        assert cart.items[0].quantity == 5
        assert cart.item_count == 5

    def test_merge_cannot_exceed_stock(self, cart, shirt):
        cart.add_item(shirt, 8)

        with pytest.raises(StockExceededError) as exc_info:
            cart.add_item(shirt, 3)

        assert exc_info.value.title == "Max stock reached"
        assert cart.items[0].quantity == 8

    def test_out_of_stock_product(self, cart, shirt):
        shirt.stock = 0
        shirt.save()

        with pytest.raises(StockExceededError):
            cart.add_item(shirt)

        assert cart.is_empty

    def test_invalid_quantity(self, cart, shirt):
        for quantity in (0, -1, 1.5, True):
            with pytest.raises(ValidationError):
                cart.add_item(shirt, quantity)

    def test_size_required_for_variant_product(self, cart, jeans):
        with pytest.raises(ValidationError):
            cart.add_item(jeans, 1)

    def test_unknown_size(self, cart, jeans):
        with pytest.raises(ValidationError):
            cart.add_item(jeans, 1, "36")

    def test_sold_out_size(self, cart, jeans):
        with pytest.raises(ValidationError):
            cart.add_item(jeans, 1, "34")

    def test_size_for_flat_product(self, cart, shirt):
        with pytest.raises(ValidationError):
            cart.add_item(shirt, 1, "M")

    def test_sizes_are_separate_lines(self, cart, jeans):
        cart.add_item(jeans, 1, "30")
        cart.add_item(jeans, 1, "32")
        cart.add_item(jeans, 1, "30")

        assert len(cart) == 2
        assert cart.find((jeans.id, "30")).quantity == 2
        assert cart.find((jeans.id, "32")).quantity == 1

    def test_size_stock_cap(self, cart, jeans):
        cart.add_item(jeans, 1, "32")

        with pytest.raises(StockExceededError):
            cart.add_item(jeans, 1, "32")

    def test_snapshot_is_taken_at_add_time(self, cart, shirt):
        cart.add_item(shirt, 1)
        shirt.price = Decimal("999.00")
        shirt.save()

        assert cart.items[0].product.price == Decimal("500.00")


@pytest.mark.django_db
class TestUpdateAndRemove:
    """Test changing and removing lines."""

    def test_update_quantity(self, cart, shirt):
        item = cart.add_item(shirt, 1)

        updated = cart.update_quantity(item, 4)

        assert updated.quantity == 4

    def test_update_beyond_stock(self, cart, shirt):
        item = cart.add_item(shirt, 1)

        with pytest.raises(StockExceededError):
            cart.update_quantity(item, 11)

        assert cart.items[0].quantity == 1

    def test_update_to_zero_removes_line(self, cart, shirt):
        item = cart.add_item(shirt, 2)

        assert cart.update_quantity(item, 0) is None
        assert cart.is_empty

    def test_update_missing_line(self, cart, shirt):
        with pytest.raises(ValidationError):
            cart.update_quantity((shirt.id, None), 3)

        assert cart.is_empty

    def test_remove_by_key(self, cart, shirt, jeans):
        cart.add_item(shirt, 1)
        cart.add_item(jeans, 1, "30")

        removed = cart.remove_item((str(jeans.id), "30"))

        assert removed.product.name == "Denim Jeans"
        assert len(cart) == 1

    def test_remove_missing_line(self, cart, shirt):
        assert cart.remove_item((str(shirt.id), None)) is None

    def test_clear_resets_discount(self, cart, shirt):
        cart.add_item(shirt, 1)
        cart.apply_discount(pricing.PERCENT, Decimal("5"))

        cart.clear()

        assert cart.is_empty
        assert cart.discount == pricing.Discount.none()


@pytest.mark.django_db
class TestCartTotals:
    """Test totals shown at the counter."""

    def test_totals(self, cart, shirt, socks):
        cart.add_item(shirt, 2)
        cart.add_item(socks, 1)

        assert cart.subtotal == Decimal("999.99")
        assert cart.tax_amount == Decimal("0.00")
        assert cart.total == Decimal("999.99")

    def test_amount_discount(self, cart, shirt):
        cart.add_item(shirt, 2)
        cart.apply_discount(pricing.AMOUNT, Decimal("50"))

        totals = cart.totals()

        assert totals.discount_amount == Decimal("50.00")
        assert totals.total == Decimal("850.00")

    def test_remove_discount(self, cart, shirt):
        cart.add_item(shirt, 2)
        cart.apply_discount(pricing.PERCENT, Decimal("10"))
        cart.remove_discount()

        assert cart.discount_amount == Decimal("0.00")

    def test_serialization(self, cart, shirt, jeans):
        cart.add_item(shirt, 2)
        cart.add_item(jeans, 1, "30")
        cart.apply_discount(pricing.AMOUNT, Decimal("20"))

        restored = Cart.from_dict(cart.to_dict())

        assert [item.key for item in restored] == [item.key for item in cart]
        assert restored.discount == cart.discount
        assert restored.total == cart.total

    def test_snapshot_from_dict_keeps_sizes(self, jeans):
        snapshot = ProductSnapshot.from_product(jeans)

        restored = ProductSnapshot.from_dict(snapshot.to_dict())

        assert restored == snapshot
        assert restored.available_stock("30") == 2

    def test_snapshot_sizes_are_read_only(self, cart, jeans):
        cart.add_item(jeans, 1, "30")
        copy = cart.copy()

        with pytest.raises(TypeError):
            copy.items[0].product.sizes_stock["30"] = 0

        assert cart.items[0].available_stock == 2


@pytest.mark.django_db
class TestCartSession:
    """Test the session-backed cart used by the API."""

    @pytest.fixture
    def cart_session(self):
        return CartSession(SessionStore())

    def test_add_saves_cart(self, cart_session, shirt):
        notice = cart_session.add(shirt, 2)

        assert notice.ok
        assert notice.title == "Added to cart"
        assert cart_session.load().item_count == 2

    def test_rejected_add_leaves_cart_unchanged(self, cart_session, shirt):
        cart_session.add(shirt, 9)

        notice = cart_session.add(shirt, 2)

        assert not notice.ok
        assert notice.level == "error"
        assert notice.title == "Max stock reached"
        assert cart_session.load().item_count == 9

    def test_update_to_zero_reports_removal(self, cart_session, shirt):
        cart_session.add(shirt, 1)

        notice = cart_session.update((shirt.id, None), 0)

        assert notice.ok
        assert notice.title == "Item removed"
        assert cart_session.load().is_empty

    def test_invalid_discount_rejected(self, cart_session, shirt):
        cart_session.add(shirt, 1)

        notice = cart_session.apply_discount(pricing.PERCENT, Decimal("150"))

        assert not notice.ok
        assert cart_session.load().discount == pricing.Discount.none()

    def test_clear(self, cart_session, shirt):
        cart_session.add(shirt, 1)

        notice = cart_session.clear()

        assert notice.title == "Cart cleared"
        assert cart_session.load().is_empty

    def test_update_missing_line_is_rejected(self, cart_session, shirt):
        notice = cart_session.update((shirt.id, None), 3)

        assert not notice.ok
        assert notice.message == "That item is not in the cart."
        assert cart_session.load().is_empty
