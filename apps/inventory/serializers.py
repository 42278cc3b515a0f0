"""
Serializers for the product catalog.
"""

from rest_framework import serializers

from .models import Product, normalize_sizes_stock


class ProductSerializer(serializers.ModelSerializer):
    """Full product representation used by the catalog and POS screens."""

    stock_status = serializers.CharField(read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)
    has_sizes = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
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
            "stock_status",
            "is_low_stock",
            "has_sizes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]


class ProductWriteSerializer(serializers.Serializer):
    """
    Input for creating or updating a product.

    Uniqueness of the item number is checked by the inventory service so the
    same rule applies to API and admin writes.
    """

    item_number = serializers.CharField(max_length=50)
    name = serializers.CharField(max_length=255)
    brand = serializers.CharField(max_length=100)
    category = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True)
    image = serializers.CharField(max_length=500, required=False, allow_blank=True)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    discount_percentage = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False
    )
    stock = serializers.IntegerField(min_value=0, required=False)
    sizes_stock = serializers.JSONField(required=False)
    low_stock_threshold = serializers.IntegerField(min_value=0, required=False)
    is_active = serializers.BooleanField(required=False)

    def validate_sizes_stock(self, value):
        """Trimmed, case-insensitively unique sizes with non-negative counts."""
        try:
            return normalize_sizes_stock(value)
        except ValueError as e:
            raise serializers.ValidationError(str(e))
