from django.urls import path

from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from . import views

app_name = "core"

urlpatterns = [
    # Authentication
    path("api/auth/register/", views.register, name="register"),
    path("api/auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/me/", views.current_user, name="current_user"),
    # Pharmacy & subscription
    path("api/pharmacy/", views.pharmacy_detail, name="pharmacy_detail"),
    path("api/subscription/", views.subscription_status, name="subscription_status"),
    path(
        "api/subscription/branches/",
        views.upgrade_branches,
        name="upgrade_branches",
    ),
    # Branches
    path("api/branches/", views.branch_list, name="branch_list"),
    path("api/branches/<uuid:branch_id>/", views.branch_detail, name="branch_detail"),
    # Staff
    path("api/staff/", views.staff_list, name="staff_list"),
    path("api/staff/<int:user_id>/", views.staff_detail, name="staff_detail"),
    path(
        "api/staff/<int:user_id>/permissions/",
        views.staff_permission_update,
        name="staff_permission_update",
    ),
    path(
        "api/staff/<int:user_id>/role-template/",
        views.staff_apply_role_template,
        name="staff_apply_role_template",
    ),
]
