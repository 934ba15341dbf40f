"""
URL configuration for CRM app.
"""

from django.urls import path

from . import views

app_name = "crm"

urlpatterns = [
    # Customers
    path("api/customers/", views.CustomerListCreateView.as_view(), name="customer_list"),
    path(
        "api/customers/<uuid:id>/",
        views.CustomerDetailView.as_view(),
        name="customer_detail",
    ),
    # Loyalty
    path(
        "api/customers/<uuid:customer_id>/loyalty/",
        views.loyalty_history,
        name="loyalty_history",
    ),
    path(
        "api/customers/<uuid:customer_id>/loyalty/redeem/",
        views.loyalty_redeem,
        name="loyalty_redeem",
    ),
    path(
        "api/customers/<uuid:customer_id>/loyalty/add/",
        views.loyalty_add,
        name="loyalty_add",
    ),
    # Prescriptions
    path(
        "api/prescriptions/",
        views.PrescriptionListCreateView.as_view(),
        name="prescription_list",
    ),
    path(
        "api/prescriptions/expire/",
        views.prescription_expire,
        name="prescription_expire",
    ),
    path(
        "api/prescriptions/<uuid:id>/",
        views.PrescriptionDetailView.as_view(),
        name="prescription_detail",
    ),
    path(
        "api/prescriptions/<uuid:prescription_id>/refill/",
        views.prescription_refill,
        name="prescription_refill",
    ),
]
