"""
Pytest configuration and fixtures for the retail POS.
"""

from decimal import Decimal

import pytest


@pytest.fixture
def api_client():
    """
    Fixture for Django REST framework API client.
    """
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def admin_user(django_user_model):
    """Shop administrator."""
    return django_user_model.objects.create_user(
        username="admin",
        email="admin@example.com",
        password="adminpass123",
        first_name="Shop",
        last_name="Admin",
        role="ADMIN",
        counter_number=1,
    )


@pytest.fixture
def cashier(django_user_model):
    """Cashier working counter 2."""
    return django_user_model.objects.create_user(
        username="cashier",
        email="cashier@example.com",
        password="cashierpass123",
        first_name="Ravi",
        last_name="Kumar",
        role="CASHIER",
        counter_number=2,
    )


@pytest.fixture
def admin_client(api_client, admin_user):
    """
    Fixture for an API client authenticated as the administrator.
    """
    api_client.force_authenticate(user=admin_user)
    return api_client


@pytest.fixture
def cashier_client(api_client, cashier):
    """
    Fixture for an API client authenticated as the cashier.
    """
    api_client.force_authenticate(user=cashier)
    return api_client


@pytest.fixture
def cashier_session(cashier):
    from apps.core.identity import Session

    return Session(user=cashier)


@pytest.fixture
def shirt():
    """Flat product: 10 units, 10% off a 500.00 MRP."""
    from apps.inventory.models import Product

    return Product.objects.create(
        item_number="SH-001",
        name="Cotton Shirt",
        brand="Acme",
        category="Shirts",
        price=Decimal("500.00"),
        discount_percentage=Decimal("10.00"),
        stock=10,
        low_stock_threshold=3,
    )


@pytest.fixture
def jeans():
    """Size variant product: 30 -> 2, 32 -> 1, 34 -> 0."""
    from apps.inventory.models import Product

    return Product.objects.create(
        item_number="JN-032",
        name="Denim Jeans",
        brand="Acme",
        category="Jeans",
        price=Decimal("1299.00"),
        discount_percentage=Decimal("0.00"),
        sizes_stock={"30": 2, "32": 1, "34": 0},
        low_stock_threshold=2,
    )


@pytest.fixture
def socks():
    """Cheap flat product with a single unit left."""
    from apps.inventory.models import Product

    return Product.objects.create(
        item_number="SK-100",
        name="Ankle Socks",
        brand="Footy",
        category="Accessories",
        price=Decimal("99.99"),
        stock=1,
    )


@pytest.fixture
def cart():
    from apps.sales.cart import Cart

    return Cart()
