"""
URL configuration for procurement app.
"""

from django.urls import path

from . import views

app_name = "procurement"

urlpatterns = [
    # Suppliers
    path("api/suppliers/", views.SupplierListCreateView.as_view(), name="supplier_list"),
    path(
        "api/suppliers/<uuid:id>/",
        views.SupplierDetailView.as_view(),
        name="supplier_detail",
    ),
    path(
        "api/suppliers/<uuid:supplier_id>/products/",
        views.SupplierProductListCreateView.as_view(),
        name="supplier_product_list",
    ),
    path(
        "api/supplier-products/<uuid:id>/",
        views.SupplierProductDetailView.as_view(),
        name="supplier_product_detail",
    ),
    # Reorder requests
    path("api/reorders/", views.ReorderRequestListCreateView.as_view(), name="reorder_list"),
    path(
        "api/reorders/suggestions/",
        views.reorder_suggestions,
        name="reorder_suggestions",
    ),
    path(
        "api/reorders/<uuid:id>/",
        views.ReorderRequestDetailView.as_view(),
        name="reorder_detail",
    ),
    path(
        "api/reorders/<uuid:reorder_id>/approve/",
        views.approve_reorder,
        name="reorder_approve",
    ),
    path("api/reorders/<uuid:reorder_id>/order/", views.order_reorder, name="reorder_order"),
    path("api/reorders/<uuid:reorder_id>/ship/", views.ship_reorder, name="reorder_ship"),
    path(
        "api/reorders/<uuid:reorder_id>/deliver/",
        views.deliver_reorder,
        name="reorder_deliver",
    ),
    path(
        "api/reorders/<uuid:reorder_id>/cancel/",
        views.cancel_reorder,
        name="reorder_cancel",
    ),
]
