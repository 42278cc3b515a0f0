"""
Serializers for the cart, checkout and bill endpoints.
"""

from rest_framework import serializers

from .models import Bill
from .pricing import DISCOUNT_TYPES


class CartItemAddSerializer(serializers.Serializer):
    """Add a product to the cart by id or by scanned item number."""

    product_id = serializers.UUIDField(required=False)
    item_number = serializers.CharField(max_length=50, required=False)
    quantity = serializers.IntegerField(default=1)
    size = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)

    def validate(self, data):
        if not data.get("product_id") and not data.get("item_number"):
            raise serializers.ValidationError("Either product_id or item_number is required.")
        return data


class CartItemUpdateSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    size = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    quantity = serializers.IntegerField()


class CartItemRemoveSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    size = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)


class DiscountSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=DISCOUNT_TYPES)
    value = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class CheckoutSerializer(serializers.Serializer):
    """
    Customer details for checkout.

    Presence checks live in the checkout service so API and direct callers
    get the same errors.
    """

    customer_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    customer_phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    customer_email = serializers.CharField(max_length=254, required=False, allow_blank=True, default="")
    payment_method = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")


class BillListSerializer(serializers.ModelSerializer):
    """Bill history rows."""

    operator_name = serializers.SerializerMethodField()
    items_count = serializers.SerializerMethodField()
    payment_method_display = serializers.CharField(
        source="get_payment_method_display", read_only=True
    )

    class Meta:
        model = Bill
        fields = [
            "id",
            "bill_number",
            "created_at",
            "operator_name",
            "customer_name",
            "customer_phone",
            "payment_method",
            "payment_method_display",
            "total",
            "status",
            "items_count",
        ]
        read_only_fields = fields

    def get_operator_name(self, obj):
        return obj.operator.get_full_name() or obj.operator.get_username()

    def get_items_count(self, obj):
        return len(obj.items.all())
