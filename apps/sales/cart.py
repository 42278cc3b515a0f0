"""
Cart engine for the billing counter.

A Cart holds line items built from product snapshots taken when the item was
scanned. Stock checks here are advisory: they guard against the snapshot,
not the live row, and nothing is reserved until checkout decrements stock.

CartSession keeps one cart per operator session and is where cart errors
stop. Every mutation returns a CartNotice for the screen instead of raising.
"""

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

from apps.core.exceptions import StockExceededError, ValidationError

from . import pricing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProductSnapshot:
    """The product as it was when it was added to the cart."""

    product_id: str
    item_number: str
    name: str
    price: Decimal
    discount_percentage: Decimal = pricing.ZERO
    stock: int = 0
    sizes_stock: Mapping[str, int] = field(default_factory=dict)
    brand: str = ""
    category: str = ""

    def __post_init__(self):
        # Cart copies share snapshots
        object.__setattr__(self, "sizes_stock", MappingProxyType(dict(self.sizes_stock)))

    @classmethod
    def from_product(cls, product):
        return cls(
            product_id=str(product.id),
            item_number=product.item_number,
            name=product.name,
            price=pricing.to_decimal(product.price),
            discount_percentage=pricing.to_decimal(product.discount_percentage or 0),
            stock=product.stock,
            sizes_stock=dict(product.sizes_stock or {}),
            brand=product.brand,
            category=product.category,
        )

    @classmethod
    def from_dict(cls, data):
        return cls(
            product_id=data["product_id"],
            item_number=data["item_number"],
            name=data["name"],
            price=pricing.to_decimal(data["price"]),
            discount_percentage=pricing.to_decimal(data.get("discount_percentage", "0")),
            stock=int(data.get("stock", 0)),
            sizes_stock=dict(data.get("sizes_stock") or {}),
            brand=data.get("brand", ""),
            category=data.get("category", ""),
        )

    def to_dict(self):
        return {
            "product_id": self.product_id,
            "item_number": self.item_number,
            "name": self.name,
            "price": str(self.price),
            "discount_percentage": str(self.discount_percentage),
            "stock": self.stock,
            "sizes_stock": dict(self.sizes_stock),
            "brand": self.brand,
            "category": self.category,
        }

    def has_sizes(self):
        return bool(self.sizes_stock)

    def available_stock(self, size=None):
        if size is None:
            return self.stock
        return self.sizes_stock.get(size, 0)

    @property
    def unit_price(self) -> Decimal:
        return pricing.unit_price(self.price, self.discount_percentage)


@dataclass
class CartItem:
    product: ProductSnapshot
    quantity: int = 1
    selected_size: Optional[str] = None

    @property
    def key(self) -> Tuple[str, Optional[str]]:
        return (self.product.product_id, self.selected_size)

    @property
    def available_stock(self) -> int:
        return self.product.available_stock(self.selected_size)

    @property
    def unit_price(self) -> Decimal:
        return self.product.unit_price

    @property
    def total(self) -> Decimal:
        return pricing.line_total(
            self.product.price, self.product.discount_percentage, self.quantity
        )

    def as_line(self):
        return (self.product.price, self.product.discount_percentage, self.quantity)

    def to_dict(self):
        return {
            "product": self.product.to_dict(),
            "quantity": self.quantity,
            "selected_size": self.selected_size,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            product=ProductSnapshot.from_dict(data["product"]),
            quantity=int(data["quantity"]),
            selected_size=data.get("selected_size"),
        )


def _item_key(item):
    if isinstance(item, CartItem):
        return item.key
    product_id, size = item
    return (str(product_id), size or None)


class Cart:
    """
    Line items plus one cart-level discount.

    Lines are unique per (product, size); adding the same key again merges
    into the existing line.
    """

    def __init__(self, items=None, discount=None):
        self.items: List[CartItem] = list(items or [])
        self.discount: pricing.Discount = discount or pricing.Discount.none()

    def __len__(self):
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    @property
    def is_empty(self):
        return not self.items

    @property
    def item_count(self):
        return sum(item.quantity for item in self.items)

    def find(self, item) -> Optional[CartItem]:
        key = _item_key(item)
        for cart_item in self.items:
            if cart_item.key == key:
                return cart_item
        return None

    def add_item(self, product, quantity=1, size=None) -> CartItem:
        """
        Add units of a product, merging with an existing line for the same size.

        Raises:
            ValidationError: Bad quantity, or a missing, unknown or sold out size.
            StockExceededError: The line would exceed the known stock.
        """
        snapshot = product if isinstance(product, ProductSnapshot) else ProductSnapshot.from_product(product)

        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError("Quantity must be a whole number of at least 1.")

        size = size.strip() if isinstance(size, str) else size
        if snapshot.has_sizes():
            if not size:
                raise ValidationError(
                    f"Please select a size for {snapshot.name}.", product_id=snapshot.product_id
                )
            if size not in snapshot.sizes_stock:
                raise ValidationError(
                    f"Size '{size}' is not available for {snapshot.name}.",
                    product_id=snapshot.product_id,
                )
            if snapshot.sizes_stock[size] <= 0:
                raise ValidationError(
                    f"Size '{size}' of {snapshot.name} is out of stock.",
                    product_id=snapshot.product_id,
                )
        elif size:
            raise ValidationError(
                f"{snapshot.name} is not sold in sizes.", product_id=snapshot.product_id
            )
        else:
            size = None

        available = snapshot.available_stock(size)
        if available <= 0:
            raise StockExceededError(
                f"{snapshot.name} is out of stock.", product_id=snapshot.product_id
            )

        existing = self.find((snapshot.product_id, size))
        current = existing.quantity if existing else 0
        if current + quantity > available:
            raise StockExceededError(
                f"Only {available} in stock for {snapshot.name}.",
                product_id=snapshot.product_id,
                available=available,
            )

        if existing:
            existing.quantity = current + quantity
            return existing

        cart_item = CartItem(product=snapshot, quantity=quantity, selected_size=size)
        self.items.append(cart_item)
        return cart_item

    def update_quantity(self, item, new_quantity) -> Optional[CartItem]:
        """
        Replace a line's quantity. Zero or less removes the line.

        Raises:
            ValidationError: The line is not in the cart.
            StockExceededError: The new quantity exceeds the known stock.
        """
        if isinstance(new_quantity, bool) or not isinstance(new_quantity, int):
            raise ValidationError("Quantity must be a whole number.")

        if new_quantity <= 0:
            self.remove_item(item)
            return None

        cart_item = self.find(item)
        if cart_item is None:
            product_id, _ = _item_key(item)
            raise ValidationError("That item is not in the cart.", product_id=product_id)

        if new_quantity > cart_item.available_stock:
            raise StockExceededError(
                f"Only {cart_item.available_stock} in stock for {cart_item.product.name}.",
                product_id=cart_item.product.product_id,
                available=cart_item.available_stock,
            )

        cart_item.quantity = new_quantity
        return cart_item

    def remove_item(self, item) -> Optional[CartItem]:
        key = _item_key(item)
        for index, cart_item in enumerate(self.items):
            if cart_item.key == key:
                return self.items.pop(index)
        return None

    def clear(self):
        self.items = []
        self.discount = pricing.Discount.none()

    def apply_discount(self, discount_type, value):
        self.discount = pricing.Discount(discount_type, value)
        return self.discount

    def remove_discount(self):
        self.discount = pricing.Discount.none()

    def lines(self):
        return [item.as_line() for item in self.items]

    def totals(self, tax_rate=None) -> pricing.Totals:
        return pricing.calculate_totals(self.lines(), self.discount, tax_rate)

    @property
    def subtotal(self) -> Decimal:
        return pricing.calculate_subtotal(self.lines())

    @property
    def tax_amount(self) -> Decimal:
        return pricing.calculate_tax(self.subtotal)

    @property
    def discount_amount(self) -> Decimal:
        return pricing.calculate_discount(self.subtotal, self.discount)

    @property
    def total(self) -> Decimal:
        return pricing.calculate_total(self.subtotal, self.tax_amount, self.discount_amount)

    def copy(self):
        return Cart([replace(item) for item in self.items], self.discount)

    def to_dict(self):
        return {
            "items": [item.to_dict() for item in self.items],
            "discount": self.discount.as_dict(),
        }

    @classmethod
    def from_dict(cls, data):
        if not data:
            return cls()
        discount_data = data.get("discount") or {}
        discount = pricing.Discount(
            discount_data.get("type", pricing.PERCENT), discount_data.get("value", "0")
        )
        return cls([CartItem.from_dict(item) for item in data.get("items", [])], discount)


@dataclass(frozen=True)
class CartNotice:
    """Message shown to the cashier after a cart action."""

    ok: bool
    level: str
    title: str
    message: str = ""

    def as_dict(self):
        return {"ok": self.ok, "level": self.level, "title": self.title, "message": self.message}


class CartSession:
    """
    Stores the operator's cart in the Django session.

    Mutations are applied to a copy and only written back on success, so a
    rejected action leaves the stored cart as it was.
    """

    SESSION_KEY = "pos_cart"

    def __init__(self, session):
        self.session = session

    def load(self) -> Cart:
        return Cart.from_dict(self.session.get(self.SESSION_KEY))

    def save(self, cart):
        self.session[self.SESSION_KEY] = cart.to_dict()
        self.session.modified = True

    def _apply(self, action, success):
        cart = self.load().copy()
        try:
            result = action(cart)
        except (ValidationError, StockExceededError) as e:
            logger.info(f"Cart action rejected: {e.message}")
            return CartNotice(ok=False, level="error", title=e.title, message=e.message)

        self.save(cart)
        title, message = success(result)
        return CartNotice(ok=True, level="info", title=title, message=message)

    def add(self, product, quantity=1, size=None) -> CartNotice:
        return self._apply(
            lambda cart: cart.add_item(product, quantity, size),
            lambda item: ("Added to cart", f"{item.product.name} added to cart"),
        )

    def update(self, item, quantity) -> CartNotice:
        def success(updated):
            if updated is None:
                return ("Item removed", "Item removed from cart")
            return ("Cart updated", f"{updated.product.name} quantity set to {updated.quantity}")

        return self._apply(lambda cart: cart.update_quantity(item, quantity), success)

    def remove(self, item) -> CartNotice:
        return self._apply(
            lambda cart: cart.remove_item(item),
            lambda removed: (
                "Item removed",
                f"{removed.product.name} removed from cart" if removed else "Item removed from cart",
            ),
        )

    def clear(self) -> CartNotice:
        return self._apply(lambda cart: cart.clear(), lambda _: ("Cart cleared", ""))

    def apply_discount(self, discount_type, value) -> CartNotice:
        return self._apply(
            lambda cart: cart.apply_discount(discount_type, value),
            lambda discount: ("Discount applied", f"{discount.value} {discount.type} discount"),
        )

    def remove_discount(self) -> CartNotice:
        return self._apply(lambda cart: cart.remove_discount(), lambda _: ("Discount removed", ""))
