"""
Views for the billing counter.

- Cart: view, add/update/remove items, clear, cart-level discount
- Checkout: turn the session cart into a bill
- Bills: history, detail, PDF/HTML receipts and WhatsApp delivery
- Reports: sales summary for administrators
"""

import logging

from django.http import HttpResponse
from django.utils.dateparse import parse_date

from rest_framework import generics, permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from apps.core.exceptions import ProductNotFoundError, ValidationError
from apps.core.identity import IdentityService
from apps.core.permissions import IsPOSOperator, IsShopAdmin
from apps.inventory.serializers import ProductSerializer
from apps.inventory.services import InventoryService

from .cart import CartSession
from .checkout import CheckoutService
from .receipt_service import FORMAT_TYPES, STANDARD, ReceiptService
from .serializers import (
    BillListSerializer,
    CartItemAddSerializer,
    CartItemRemoveSerializer,
    CartItemUpdateSerializer,
    CheckoutSerializer,
    DiscountSerializer,
)
from .services import BillStore

logger = logging.getLogger(__name__)


def _cart_payload(cart, notice=None):
    totals = cart.totals()
    data = {
        "items": [
            {
                "product_id": item.product.product_id,
                "item_number": item.product.item_number,
                "name": item.product.name,
                "price": str(item.product.price),
                "discount_percentage": str(item.product.discount_percentage),
                "unit_price": str(item.unit_price),
                "selected_size": item.selected_size,
                "quantity": item.quantity,
                "available_stock": item.available_stock,
                "total": str(item.total),
            }
            for item in cart.items
        ],
        "item_count": cart.item_count,
        "discount": cart.discount.as_dict(),
        **totals.as_dict(),
    }
    if notice is not None:
        data["notice"] = notice.as_dict()
    return data


def _notice_response(cart_session, notice, success_status=status.HTTP_200_OK):
    return Response(
        _cart_payload(cart_session.load(), notice),
        status=success_status if notice.ok else status.HTTP_400_BAD_REQUEST,
    )


def _parse_date_param(request, name):
    value = request.query_params.get(name)
    if not value:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValidationError(f"{name} must be a date in YYYY-MM-DD format.", field=name)
    return parsed


@api_view(["GET"])
@permission_classes([IsPOSOperator])
def cart_detail(request):
    """Current cart with totals."""
    cart = CartSession(request.session).load()
    return Response(_cart_payload(cart), status=status.HTTP_200_OK)


@api_view(["POST", "PATCH", "DELETE"])
@permission_classes([IsPOSOperator])
def cart_items(request):
    """
    Change cart lines.

    POST   {"product_id" | "item_number", "quantity", "size"}: add
    PATCH  {"product_id", "size", "quantity"}: set quantity, 0 removes
    DELETE {"product_id", "size"}: remove

    Rejected changes leave the cart unchanged and return 400 with a notice.
    """
    cart_session = CartSession(request.session)

    if request.method == "POST":
        serializer = CartItemAddSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if data.get("product_id"):
            product = InventoryService.fetch_product(data["product_id"])
            if product is None or not product.is_active:
                raise ProductNotFoundError(
                    f"Product {data['product_id']} not found.", product_id=str(data["product_id"])
                )
        else:
            product = InventoryService.fetch_by_item_number(data["item_number"])

        notice = cart_session.add(product, data["quantity"], data.get("size") or None)
        return _notice_response(cart_session, notice, status.HTTP_201_CREATED)

    if request.method == "PATCH":
        serializer = CartItemUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        key = (data["product_id"], data.get("size") or None)

        notice = cart_session.update(key, data["quantity"])
        return _notice_response(cart_session, notice)

    serializer = CartItemRemoveSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    key = (data["product_id"], data.get("size") or None)

    notice = cart_session.remove(key)
    return _notice_response(cart_session, notice)


@api_view(["POST"])
@permission_classes([IsPOSOperator])
def cart_clear(request):
    cart_session = CartSession(request.session)
    notice = cart_session.clear()
    return _notice_response(cart_session, notice)


@api_view(["POST", "DELETE"])
@permission_classes([IsPOSOperator])
def cart_discount(request):
    """
    Apply or remove the cart-level discount.

    Request body (POST):
    {
        "type": "percent|amount",
        "value": "10.00"
    }
    """
    cart_session = CartSession(request.session)

    if request.method == "DELETE":
        notice = cart_session.remove_discount()
        return _notice_response(cart_session, notice)

    serializer = DiscountSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    notice = cart_session.apply_discount(
        serializer.validated_data["type"], serializer.validated_data["value"]
    )
    return _notice_response(cart_session, notice)


@api_view(["POST"])
@permission_classes([IsPOSOperator])
def checkout(request):
    """
    Check out the session cart.

    Request body:
    {
        "customer_name": "Asha",
        "customer_phone": "9876543210",
        "customer_email": "" (optional),
        "payment_method": "cash|card|digital-wallet"
    }

    Response contains the bill with its items and any stock warnings. The
    cart is cleared when the bill has been saved.
    """
    serializer = CheckoutSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    cart_session = CartSession(request.session)
    cart = cart_session.load()

    result = CheckoutService().checkout(
        cart.items,
        {
            "name": data["customer_name"],
            "phone": data["customer_phone"],
            "email": data["customer_email"],
        },
        data["payment_method"],
        cart.discount,
        session=IdentityService.get_session(request),
    )

    cart.clear()
    cart_session.save(cart)

    return Response(result.as_dict(), status=status.HTTP_201_CREATED)


class BillListView(generics.ListAPIView):
    """
    API endpoint for bill history.

    Supports:
    - Search by bill number, customer name or phone (?search=)
    - Date range (?date_from=YYYY-MM-DD&date_to=YYYY-MM-DD)
    """

    serializer_class = BillListSerializer
    permission_classes = [IsPOSOperator]

    def get_queryset(self):
        return BillStore.list_bills(
            search=self.request.query_params.get("search", None),
            date_from=_parse_date_param(self.request, "date_from"),
            date_to=_parse_date_param(self.request, "date_to"),
        )


def _get_bill_or_404(bill_id):
    bill = BillStore.get_bill_with_items(bill_id)
    if bill is None:
        raise NotFound("Bill not found.")
    return bill


@api_view(["GET"])
@permission_classes([IsPOSOperator])
def bill_detail(request, bill_id):
    """Bill with its items."""
    bill = _get_bill_or_404(bill_id)
    return Response(bill.as_dict(), status=status.HTTP_200_OK)


def _get_format_type(request):
    # "format" is taken by DRF content negotiation
    format_type = request.query_params.get("type", STANDARD)
    if format_type not in FORMAT_TYPES:
        raise ValidationError(
            f"Receipt type must be one of: {', '.join(FORMAT_TYPES)}.", field="type"
        )
    return format_type


@api_view(["GET"])
@permission_classes([IsPOSOperator])
def bill_receipt_pdf(request, bill_id):
    """
    Download the PDF receipt.

    ?type=standard (A5, default) or ?type=thermal (80mm)
    """
    bill = _get_bill_or_404(bill_id)
    format_type = _get_format_type(request)

    pdf_bytes = ReceiptService.generate_receipt(bill, format_type=format_type, output_format="pdf")

    response = HttpResponse(pdf_bytes, content_type="application/pdf")
    filename = ReceiptService.get_filename(bill, format_type)
    disposition = "inline" if request.query_params.get("inline") else "attachment"
    response["Content-Disposition"] = f'{disposition}; filename="{filename}"'
    return response


@api_view(["GET"])
@permission_classes([permissions.AllowAny])
def bill_receipt_html(request, bill_id):
    """
    Printable HTML receipt.

    Also the target of the receipt QR code, so it is reachable without
    signing in by anyone holding the bill id.
    """
    bill = _get_bill_or_404(bill_id)
    format_type = _get_format_type(request)

    html_content = ReceiptService.generate_receipt(
        bill, format_type=format_type, output_format="html"
    ).decode("utf-8")
    return HttpResponse(html_content, content_type="text/html")


@api_view(["POST"])
@permission_classes([IsPOSOperator])
def bill_whatsapp(request, bill_id):
    """Queue the receipt for delivery to the customer's WhatsApp."""
    bill = _get_bill_or_404(bill_id)
    ReceiptService.send_whatsapp(bill)

    return Response(
        {"detail": f"Receipt will be sent to {bill.customer_phone} via WhatsApp."},
        status=status.HTTP_202_ACCEPTED,
    )


@api_view(["GET"])
@permission_classes([IsShopAdmin])
def reports_summary(request):
    """
    Sales summary for administrators.

    ?date_from=YYYY-MM-DD&date_to=YYYY-MM-DD
    """
    summary = BillStore.summary(
        date_from=_parse_date_param(request, "date_from"),
        date_to=_parse_date_param(request, "date_to"),
    )

    low_stock = InventoryService.low_stock_products()
    summary["low_stock_count"] = len(low_stock)
    summary["low_stock_products"] = ProductSerializer(low_stock, many=True).data

    return Response(summary, status=status.HTTP_200_OK)
