"""
Views for the product catalog.

- Product list with search, create (admin only)
- Product detail and partial update (admin only)
- Lookup by scanned item number
- Low stock report (admin only)
"""

from rest_framework import generics, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core.permissions import IsPOSOperator, IsShopAdmin, IsShopAdminOrReadOnly

from .serializers import ProductSerializer, ProductWriteSerializer
from .services import InventoryService


class ProductListCreateView(generics.ListCreateAPIView):
    """
    API endpoint for listing and creating products.

    Supports:
    - Search by item number, name, brand and category (?search=)
    - Inactive products for administrators (?include_inactive=true)
    """

    serializer_class = ProductSerializer
    permission_classes = [IsShopAdminOrReadOnly]

    def get_queryset(self):
        search = self.request.query_params.get("search", None)
        include_inactive = self.request.query_params.get("include_inactive", "")
        include_inactive = (
            include_inactive.lower() in ["true", "1", "yes"] and self.request.user.is_admin()
        )
        return InventoryService.fetch_products(search=search, include_inactive=include_inactive)

    def create(self, request, *args, **kwargs):
        serializer = ProductWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        product = InventoryService.create_product(**serializer.validated_data)
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)


class ProductDetailView(generics.RetrieveUpdateAPIView):
    """
    API endpoint for retrieving and updating a single product.

    PUT is not offered; updates are partial.
    """

    serializer_class = ProductSerializer
    permission_classes = [IsShopAdminOrReadOnly]
    lookup_field = "id"
    http_method_names = ["get", "patch", "head", "options"]

    def get_queryset(self):
        return InventoryService.fetch_products(include_inactive=True)

    def update(self, request, *args, **kwargs):
        product = self.get_object()
        serializer = ProductWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        product = InventoryService.update_product(product, **serializer.validated_data)
        return Response(ProductSerializer(product).data, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes([IsPOSOperator])
def lookup_by_item_number(request, item_number):
    """
    Look up a product by its scanned item number.

    Used by the barcode scanner on the billing screen.
    """
    product = InventoryService.fetch_by_item_number(item_number)
    return Response(ProductSerializer(product).data, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes([IsShopAdmin])
def low_stock(request):
    """List active products at or below their low stock threshold."""
    products = InventoryService.low_stock_products()
    return Response(
        {
            "count": len(products),
            "results": ProductSerializer(products, many=True).data,
        },
        status=status.HTTP_200_OK,
    )
