"""
Django admin configuration for sales models.
"""

from django.contrib import admin

from .models import Bill, BillItem


class BillItemInline(admin.TabularInline):
    """Read-only inline for BillItem model."""

    model = BillItem
    extra = 0
    can_delete = False
    fields = [
        "position",
        "product_name",
        "item_number",
        "selected_size",
        "product_price",
        "discount_percentage",
        "quantity",
        "total",
    ]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    """Admin interface for Bill model."""

    list_display = [
        "bill_number",
        "customer_name",
        "customer_phone",
        "operator",
        "counter_number",
        "total",
        "payment_method",
        "status",
        "created_at",
    ]
    list_filter = ["status", "payment_method", "created_at"]
    search_fields = ["bill_number", "customer_name", "customer_phone"]
    readonly_fields = [
        "id",
        "bill_number",
        "operator",
        "counter_number",
        "subtotal",
        "tax",
        "tax_rate",
        "discount_type",
        "discount_value",
        "discount_amount",
        "total",
        "status",
        "reconciliation_warnings",
        "created_at",
        "completed_at",
    ]
    inlines = [BillItemInline]
    fieldsets = [
        (
            "Bill",
            {
                "fields": ["id", "bill_number", "operator", "counter_number", "status"],
            },
        ),
        (
            "Customer",
            {
                "fields": ["customer_name", "customer_phone", "customer_email"],
            },
        ),
        (
            "Amounts",
            {
                "fields": [
                    "payment_method",
                    "subtotal",
                    "tax",
                    "tax_rate",
                    "discount_type",
                    "discount_value",
                    "discount_amount",
                    "total",
                ],
            },
        ),
        (
            "Reconciliation",
            {
                "fields": ["reconciliation_warnings"],
            },
        ),
        (
            "Timestamps",
            {
                "fields": ["created_at", "completed_at"],
            },
        ),
    ]

    def has_delete_permission(self, request, obj=None):
        return False
