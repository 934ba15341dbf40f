"""
URL configuration for the pharmacy POS platform.
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("apps.core.urls")),
    path("", include("apps.inventory.urls")),
    path("", include("apps.sales.urls")),
    path("", include("apps.crm.urls")),
    path("", include("apps.procurement.urls")),
    path("", include("apps.ai.urls")),
    path("", include("apps.notifications.urls")),
]
