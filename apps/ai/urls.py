"""
URL configuration for AI app.
"""

from django.urls import path

from . import views

app_name = "ai"

urlpatterns = [
    path("api/ai/scan-invoice/", views.scan_invoice_view, name="scan_invoice"),
    path("api/ai/scan-usage/", views.scan_usage, name="scan_usage"),
    path("api/ai/upsell/", views.smart_upsell, name="smart_upsell"),
    path("api/ai/upsell/events/", views.upsell_events, name="upsell_events"),
    path("api/ai/upsell/analytics/", views.upsell_analytics, name="upsell_analytics"),
    path("api/ai/drug-interactions/", views.drug_interactions, name="drug_interactions"),
    path("api/ai/insights/", views.inventory_insights, name="insights"),
    path("api/ai/search/", views.inventory_search, name="search"),
]
