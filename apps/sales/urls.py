"""
URL configuration for sales app.
"""

from django.urls import path

from . import views

app_name = "sales"

urlpatterns = [
    # Cart
    path("api/cart/", views.cart_detail, name="cart_detail"),
    path("api/cart/items/", views.cart_items, name="cart_items"),
    path("api/cart/clear/", views.cart_clear, name="cart_clear"),
    path("api/cart/discount/", views.cart_discount, name="cart_discount"),
    # Checkout
    path("api/checkout/", views.checkout, name="checkout"),
    # Bills
    path("api/bills/", views.BillListView.as_view(), name="bill_list"),
    path("api/bills/<uuid:bill_id>/", views.bill_detail, name="bill_detail"),
    path("api/bills/<uuid:bill_id>/receipt/", views.bill_receipt_html, name="bill_receipt_html"),
    path(
        "api/bills/<uuid:bill_id>/receipt/pdf/", views.bill_receipt_pdf, name="bill_receipt_pdf"
    ),
    path("api/bills/<uuid:bill_id>/whatsapp/", views.bill_whatsapp, name="bill_whatsapp"),
    # Reports
    path("api/reports/summary/", views.reports_summary, name="reports_summary"),
]
