"""
Admin configuration for inventory models.
"""

from django.contrib import admin

from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Admin interface for Product."""

    list_display = [
        "item_number",
        "name",
        "brand",
        "category",
        "price",
        "discount_percentage",
        "stock",
        "is_active",
    ]
    list_filter = ["is_active", "category", "brand", "created_at"]
    search_fields = ["item_number", "name", "brand", "category"]
    readonly_fields = ["id", "created_at", "updated_at"]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "item_number", "name", "brand", "category", "description", "image"),
            },
        ),
        (
            "Pricing",
            {
                "fields": ("price", "discount_percentage"),
            },
        ),
        (
            "Stock",
            {
                "fields": ("stock", "sizes_stock", "low_stock_threshold", "is_active"),
                "description": "Stock is recalculated from the sizes when sizes are set.",
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )
