"""
URL configuration for inventory app.
"""

from django.urls import path

from . import views

app_name = "inventory"

urlpatterns = [
    # Medication batches
    path("api/medications/", views.MedicationListCreateView.as_view(), name="medication_list"),
    path(
        "api/medications/<uuid:id>/",
        views.MedicationDetailView.as_view(),
        name="medication_detail",
    ),
    path("api/pos/products/", views.pos_products, name="pos_products"),
    # Reporting
    path("api/inventory/metrics/", views.inventory_metrics, name="metrics"),
    path("api/inventory/alerts/", views.inventory_alerts, name="alerts"),
    # Branch stock
    path(
        "api/branches/<uuid:branch_id>/stock/",
        views.branch_stock_list,
        name="branch_stock_list",
    ),
    path("api/inventory/stock-movements/", views.stock_movement, name="stock_movement"),
    # Stock transfers
    path("api/transfers/", views.StockTransferListCreateView.as_view(), name="transfer_list"),
    path(
        "api/transfers/<uuid:id>/",
        views.StockTransferDetailView.as_view(),
        name="transfer_detail",
    ),
    path(
        "api/transfers/<uuid:transfer_id>/approve/",
        views.approve_transfer,
        name="transfer_approve",
    ),
    path(
        "api/transfers/<uuid:transfer_id>/reject/",
        views.reject_transfer,
        name="transfer_reject",
    ),
    path("api/transfers/<uuid:transfer_id>/ship/", views.ship_transfer, name="transfer_ship"),
    path(
        "api/transfers/<uuid:transfer_id>/receive/",
        views.receive_transfer,
        name="transfer_receive",
    ),
    path(
        "api/transfers/<uuid:transfer_id>/cancel/",
        views.cancel_transfer,
        name="transfer_cancel",
    ),
]
