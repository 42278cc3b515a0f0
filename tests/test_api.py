"""
Tests for the HTTP API.

Covers:
- Sign in, sign out and the current session
- Role gating of catalog writes and reports
- Cart endpoints and notices
- Checkout, bill history, receipts and WhatsApp delivery
"""

from decimal import Decimal
from unittest.mock import patch

from django.urls import reverse

import pytest
from rest_framework import status

from apps.inventory.models import Product
from apps.sales.models import Bill

CHECKOUT_DATA = {
    "customer_name": "Asha Rao",
    "customer_phone": "9876543210",
    "payment_method": "cash",
}


@pytest.mark.django_db
class TestAuthentication:
    """Test sign in and sign out."""

    def test_sign_in_returns_tokens(self, api_client, cashier):
        response = api_client.post(
            reverse("core:sign_in"),
            {"username": "cashier", "password": "cashierpass123"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["role"] == "CASHIER"
        assert response.data["access"]
        assert response.data["refresh"]
        assert response.data["operator"]["counter_number"] == 2

    def test_sign_in_wrong_password(self, api_client, cashier):
        response = api_client.post(
            reverse("core:sign_in"),
            {"username": "cashier", "password": "wrong"},
            format="json",
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data["code"] == "authentication_required"

    def test_bearer_token_grants_access(self, api_client, cashier):
        tokens = api_client.post(
            reverse("core:sign_in"),
            {"username": "cashier", "password": "cashierpass123"},
            format="json",
        ).data

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
        response = api_client.get(reverse("core:current_session"))

        assert response.data["is_authenticated"] is True
        assert response.data["is_admin"] is False

    def test_sign_out_blacklists_refresh_token(self, api_client, cashier):
        tokens = api_client.post(
            reverse("core:sign_in"),
            {"username": "cashier", "password": "cashierpass123"},
            format="json",
        ).data
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        response = api_client.post(
            reverse("core:sign_out"), {"refresh": tokens["refresh"]}, format="json"
        )
        assert response.status_code == status.HTTP_200_OK

        response = api_client.post(
            reverse("core:sign_out"), {"refresh": tokens["refresh"]}, format="json"
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_anonymous_session(self, api_client):
        response = api_client.get(reverse("core:current_session"))

        assert response.data == {"is_authenticated": False}

    def test_anonymous_cannot_use_cart(self, api_client):
        response = api_client.get(reverse("sales:cart_detail"))

        assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)


@pytest.mark.django_db
class TestProductAPI:
    """Test catalog endpoints and role gating."""

    def test_list_products(self, cashier_client, shirt, jeans):
        response = cashier_client.get(reverse("inventory:product_list"), {"search": "jeans"})

        assert response.status_code == status.HTTP_200_OK
        results = response.data["results"]
        assert [p["item_number"] for p in results] == ["JN-032"]
        assert results[0]["has_sizes"] is True
        assert results[0]["stock_status"] == "in-stock"

    def test_admin_creates_product(self, admin_client):
        response = admin_client.post(
            reverse("inventory:product_list"),
            {
                "item_number": "KR-01",
                "name": "Kurta",
                "brand": "Acme",
                "category": "Ethnic",
                "price": "799.00",
                "sizes_stock": {"M": 2, "L": 1},
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["stock"] == 3

    def test_cashier_cannot_create_product(self, cashier_client):
        response = cashier_client.post(
            reverse("inventory:product_list"),
            {"item_number": "KR-02", "name": "K", "brand": "B", "category": "C", "price": "1"},
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert not Product.objects.filter(item_number="KR-02").exists()

    def test_duplicate_item_number(self, admin_client, shirt):
        response = admin_client.post(
            reverse("inventory:product_list"),
            {"item_number": "SH-001", "name": "S", "brand": "B", "category": "C", "price": "1"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["code"] == "validation_error"

    def test_admin_updates_product(self, admin_client, shirt):
        response = admin_client.patch(
            reverse("inventory:product_detail", kwargs={"id": shirt.id}),
            {"discount_percentage": "20.00"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        shirt.refresh_from_db()
        assert shirt.discount_percentage == Decimal("20.00")

    def test_lookup_by_item_number(self, cashier_client, shirt):
        response = cashier_client.get(
            reverse("inventory:product_lookup", kwargs={"item_number": "sh-001"})
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["name"] == "Cotton Shirt"

    def test_lookup_unknown_item_number(self, cashier_client):
        response = cashier_client.get(
            reverse("inventory:product_lookup", kwargs={"item_number": "NOPE"})
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_low_stock_admin_only(self, cashier_client, socks):
        response = cashier_client.get(reverse("inventory:low_stock"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_low_stock(self, admin_client, shirt, socks):
        response = admin_client.get(reverse("inventory:low_stock"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["count"] == 1
        assert response.data["results"][0]["item_number"] == "SK-100"


@pytest.mark.django_db
class TestCartAPI:
    """Test cart endpoints."""

    def test_add_by_item_number(self, cashier_client, shirt):
        response = cashier_client.post(
            reverse("sales:cart_items"), {"item_number": "SH-001", "quantity": 2}, format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["notice"]["title"] == "Added to cart"
        assert response.data["item_count"] == 2
        assert response.data["subtotal"] == "900.00"

    def test_add_size_by_product_id(self, cashier_client, jeans):
        response = cashier_client.post(
            reverse("sales:cart_items"),
            {"product_id": str(jeans.id), "size": "30"},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["items"][0]["selected_size"] == "30"

    def test_stock_cap_returns_notice(self, cashier_client, socks):
        cashier_client.post(
            reverse("sales:cart_items"), {"product_id": str(socks.id)}, format="json"
        )

        response = cashier_client.post(
            reverse("sales:cart_items"), {"product_id": str(socks.id)}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["notice"]["title"] == "Max stock reached"
        assert response.data["item_count"] == 1

    def test_add_unknown_product(self, cashier_client):
        response = cashier_client.post(
            reverse("sales:cart_items"),
            {"product_id": "00000000-0000-0000-0000-000000000000"},
            format="json",
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_add_requires_product(self, cashier_client):
        response = cashier_client.post(reverse("sales:cart_items"), {"quantity": 1}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_update_and_remove(self, cashier_client, shirt):
        url = reverse("sales:cart_items")
        cashier_client.post(url, {"product_id": str(shirt.id)}, format="json")

        response = cashier_client.patch(
            url, {"product_id": str(shirt.id), "quantity": 3}, format="json"
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.data["item_count"] == 3

        response = cashier_client.delete(url, {"product_id": str(shirt.id)}, format="json")
        assert response.status_code == status.HTTP_200_OK
        assert response.data["items"] == []

    def test_discount(self, cashier_client, shirt):
        cashier_client.post(
            reverse("sales:cart_items"), {"product_id": str(shirt.id), "quantity": 2}, format="json"
        )

        response = cashier_client.post(
            reverse("sales:cart_discount"), {"type": "percent", "value": "10"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["discount_amount"] == "90.00"
        assert response.data["total"] == "810.00"

        response = cashier_client.delete(reverse("sales:cart_discount"))
        assert response.data["total"] == "900.00"

    def test_clear(self, cashier_client, shirt):
        cashier_client.post(
            reverse("sales:cart_items"), {"product_id": str(shirt.id)}, format="json"
        )

        response = cashier_client.post(reverse("sales:cart_clear"))

        assert response.data["items"] == []


@pytest.mark.django_db
class TestCheckoutAPI:
    """Test checkout over HTTP."""

    def _fill_cart(self, client, product, quantity=1):
        client.post(
            reverse("sales:cart_items"),
            {"product_id": str(product.id), "quantity": quantity},
            format="json",
        )

    def test_checkout(self, cashier_client, shirt):
        self._fill_cart(cashier_client, shirt, 2)

        response = cashier_client.post(reverse("sales:checkout"), CHECKOUT_DATA, format="json")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["bill"]["bill_number"] == "BILL-00000001"
        assert response.data["bill"]["total"] == "900.00"
        assert response.data["bill"]["status"] == Bill.COMPLETED
        assert response.data["warnings"] == []

        cart = cashier_client.get(reverse("sales:cart_detail")).data
        assert cart["items"] == []

        shirt.refresh_from_db()
        assert shirt.stock == 8

    def test_empty_cart(self, cashier_client):
        response = cashier_client.post(reverse("sales:checkout"), CHECKOUT_DATA, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["code"] == "empty_cart"

    def test_missing_customer_keeps_cart(self, cashier_client, shirt):
        self._fill_cart(cashier_client, shirt)

        response = cashier_client.post(
            reverse("sales:checkout"), {"payment_method": "cash"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["fields"] == ["customer_name", "customer_phone"]
        assert cashier_client.get(reverse("sales:cart_detail")).data["item_count"] == 1
        assert Bill.objects.count() == 0

    def test_shortfall_reported_as_warning(self, cashier_client, socks):
        self._fill_cart(cashier_client, socks)
        Product.objects.filter(id=socks.id).update(stock=0)

        response = cashier_client.post(reverse("sales:checkout"), CHECKOUT_DATA, format="json")

        assert response.status_code == status.HTTP_201_CREATED
        assert len(response.data["warnings"]) == 1

    def test_shortfall_abort_policy(self, cashier_client, socks, settings):
        settings.POS_STOCK_SHORTFALL_POLICY = "abort"
        self._fill_cart(cashier_client, socks)
        Product.objects.filter(id=socks.id).update(stock=0)

        response = cashier_client.post(reverse("sales:checkout"), CHECKOUT_DATA, format="json")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert Bill.objects.count() == 0


@pytest.mark.django_db
class TestBillAPI:
    """Test bill history, receipts and delivery."""

    @pytest.fixture
    def bill_id(self, cashier_client, shirt):
        cashier_client.post(
            reverse("sales:cart_items"), {"product_id": str(shirt.id)}, format="json"
        )
        response = cashier_client.post(reverse("sales:checkout"), CHECKOUT_DATA, format="json")
        return response.data["bill"]["id"]

    def test_bill_list(self, cashier_client, bill_id):
        response = cashier_client.get(reverse("sales:bill_list"), {"search": "Asha"})

        assert response.status_code == status.HTTP_200_OK
        assert response.data["count"] == 1
        row = response.data["results"][0]
        assert row["items_count"] == 1
        assert row["operator_name"] == "Ravi Kumar"
        assert row["payment_method_display"] == "Cash"

    def test_bill_list_bad_date(self, cashier_client, bill_id):
        response = cashier_client.get(reverse("sales:bill_list"), {"date_from": "yesterday"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_bill_detail(self, cashier_client, bill_id):
        response = cashier_client.get(reverse("sales:bill_detail", kwargs={"bill_id": bill_id}))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["items"][0]["product_name"] == "Cotton Shirt"
        assert response.data["counter_number"] == 2

    def test_bill_not_found(self, cashier_client):
        response = cashier_client.get(
            reverse("sales:bill_detail", kwargs={"bill_id": "00000000-0000-0000-0000-000000000000"})
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_pdf_receipt(self, cashier_client, bill_id):
        response = cashier_client.get(
            reverse("sales:bill_receipt_pdf", kwargs={"bill_id": bill_id}), {"type": "thermal"}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response["Content-Type"] == "application/pdf"
        assert "attachment" in response["Content-Disposition"]
        assert response.content.startswith(b"%PDF")

    def test_pdf_receipt_bad_type(self, cashier_client, bill_id):
        response = cashier_client.get(
            reverse("sales:bill_receipt_pdf", kwargs={"bill_id": bill_id}), {"type": "letter"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_html_receipt_is_public(self, api_client, bill_id):
        api_client.force_authenticate(user=None)

        response = api_client.get(reverse("sales:bill_receipt_html", kwargs={"bill_id": bill_id}))

        assert response.status_code == status.HTTP_200_OK
        assert b"BILL-00000001" in response.content

    def test_whatsapp(self, cashier_client, bill_id):
        with patch("apps.sales.tasks.send_whatsapp_receipt_task.delay") as mock_delay:
            response = cashier_client.post(
                reverse("sales:bill_whatsapp", kwargs={"bill_id": bill_id})
            )

        assert response.status_code == status.HTTP_202_ACCEPTED
        mock_delay.assert_called_once_with(bill_id)


@pytest.mark.django_db
class TestReportsAPI:
    """Test the admin sales summary."""

    def test_cashier_denied(self, cashier_client):
        response = cashier_client.get(reverse("sales:reports_summary"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_summary(self, admin_client, shirt, socks, cashier_session):
        from apps.sales.cart import Cart
        from apps.sales.checkout import CheckoutService

        for payment_method in (Bill.CASH, Bill.CARD):
            cart = Cart()
            cart.add_item(shirt, 1)
            CheckoutService().checkout(
                cart.items,
                {"name": "A", "phone": "9876543210"},
                payment_method,
                session=cashier_session,
            )

        response = admin_client.get(reverse("sales:reports_summary"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["revenue"] == "900.00"
        assert response.data["bill_count"] == 2
        assert {row["payment_method"] for row in response.data["by_payment_method"]} == {
            "cash",
            "card",
        }
        assert response.data["bills_with_warnings"] == 0
        assert response.data["low_stock_count"] == 1
