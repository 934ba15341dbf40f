"""
URL configuration for sales app.
"""

from django.urls import path

from . import views

app_name = "sales"

urlpatterns = [
    # Sales
    path("api/pos/sales/", views.pos_complete_sale, name="pos_complete_sale"),
    path("api/sales/", views.SaleListView.as_view(), name="sale_list"),
    path("api/sales/daily-summary/", views.daily_summary, name="daily_summary"),
    path("api/sales/<uuid:id>/", views.SaleDetailView.as_view(), name="sale_detail"),
    path("api/sales/<uuid:sale_id>/void/", views.void_sale_view, name="sale_void"),
    # Shifts
    path("api/shifts/", views.ShiftListView.as_view(), name="shift_list"),
    path("api/shifts/current/", views.current_shift, name="shift_current"),
    path("api/shifts/clock-in/", views.shift_clock_in, name="shift_clock_in"),
    path("api/shifts/clock-out/", views.shift_clock_out, name="shift_clock_out"),
    # Held transactions
    path("api/pos/held/", views.held_transaction_list, name="held_list"),
    path("api/pos/held/clear/", views.held_transaction_clear, name="held_clear"),
    path(
        "api/pos/held/code/<str:short_code>/",
        views.held_transaction_by_code,
        name="held_by_code",
    ),
    path(
        "api/pos/held/<uuid:held_id>/resume/",
        views.held_transaction_resume,
        name="held_resume",
    ),
    path("api/pos/held/<uuid:held_id>/", views.held_transaction_delete, name="held_delete"),
    # Offline sync
    path("api/pos/offline/validate/", views.pos_offline_validate, name="pos_offline_validate"),
    path("api/pos/offline/sync/", views.pos_offline_sync, name="pos_offline_sync"),
]
