"""
URL patterns for the notifications app.
"""

from django.urls import path

from . import views

app_name = "notifications"

urlpatterns = [
    path("api/notifications/", views.NotificationListView.as_view(), name="list"),
    path("api/notifications/unread-count/", views.unread_count, name="unread_count"),
    path("api/notifications/mark-read/", views.mark_as_read, name="mark_read"),
    path(
        "api/notifications/<uuid:notification_id>/read/",
        views.mark_single_as_read,
        name="mark_single_read",
    ),
    path("api/alerts/", views.SentAlertListView.as_view(), name="sent_alerts"),
    path("api/alerts/send/", views.send_manual_alert, name="send_alert"),
    path("api/alerts/digest/", views.send_digest_now, name="send_digest"),
]
