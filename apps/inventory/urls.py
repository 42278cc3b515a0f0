"""
URL configuration for inventory app.
"""

from django.urls import path

from . import views

app_name = "inventory"

urlpatterns = [
    path("api/products/", views.ProductListCreateView.as_view(), name="product_list"),
    path("api/products/low-stock/", views.low_stock, name="low_stock"),
    path(
        "api/products/lookup/<str:item_number>/",
        views.lookup_by_item_number,
        name="product_lookup",
    ),
    path(
        "api/products/<uuid:id>/",
        views.ProductDetailView.as_view(),
        name="product_detail",
    ),
]
