"""
Subscription tiers, plan limits, permission keys and role templates.
"""

STARTER = "starter"
PRO = "pro"
ENTERPRISE = "enterprise"

PLAN_CHOICES = [
    (STARTER, "Switch & Save"),
    (PRO, "AI Powerhouse"),
    (ENTERPRISE, "Enterprise"),
]

PLAN_DISPLAY_NAMES = dict(PLAN_CHOICES)

# Plan features
AI_FEATURES = "ai_features"
MULTI_BRANCH = "multi_branch"
NAFDAC_COMPLIANCE = "nafdac_compliance"
CONTROLLED_DRUGS = "controlled_drugs"
DEMAND_FORECASTING = "demand_forecasting"
EXPIRY_DISCOUNT = "expiry_discount"
STAFF_CLOCK_IN = "staff_clock_in"
PRIORITY_SUPPORT = "priority_support"

ALL_FEATURES = [
    AI_FEATURES,
    MULTI_BRANCH,
    NAFDAC_COMPLIANCE,
    CONTROLLED_DRUGS,
    DEMAND_FORECASTING,
    EXPIRY_DISCOUNT,
    STAFF_CLOCK_IN,
    PRIORITY_SUPPORT,
]

PLAN_LIMITS = {
    STARTER: {
        "max_users": 1,
        "max_branches": 1,
        "features": [],
    },
    PRO: {
        "max_users": 999,
        "max_branches": 10,
        "features": list(ALL_FEATURES),
    },
    ENTERPRISE: {
        "max_users": 999,
        "max_branches": 999,
        "features": list(ALL_FEATURES),
    },
}

# Monthly invoice-scan allowance
AI_SCAN_LIMITS = {
    STARTER: 5,
}
UNLIMITED_AI_SCANS = 999999

# Permission keys
VIEW_DASHBOARD = "view_dashboard"
VIEW_REPORTS = "view_reports"
VIEW_ANALYTICS = "view_analytics"
VIEW_FINANCIAL_DATA = "view_financial_data"
MANAGE_STAFF = "manage_staff"
MANAGE_SETTINGS = "manage_settings"

PERMISSION_CHOICES = [
    (VIEW_DASHBOARD, "View dashboard"),
    (VIEW_REPORTS, "View reports"),
    (VIEW_ANALYTICS, "View analytics"),
    (VIEW_FINANCIAL_DATA, "View financial data"),
    (MANAGE_STAFF, "Manage staff"),
    (MANAGE_SETTINGS, "Manage settings"),
]

ALL_PERMISSIONS = [key for key, _label in PERMISSION_CHOICES]

ROLE_TEMPLATES = {
    "cashier": [],
    "inventory_manager": [VIEW_DASHBOARD, VIEW_REPORTS],
    "senior_staff": [VIEW_DASHBOARD, VIEW_REPORTS, VIEW_ANALYTICS, VIEW_FINANCIAL_DATA],
    "full_access": [VIEW_DASHBOARD, VIEW_REPORTS, VIEW_ANALYTICS, VIEW_FINANCIAL_DATA],
}


def get_limits(plan):
    """Limits for a plan key; unknown plans fall back to starter."""
    return PLAN_LIMITS.get(plan, PLAN_LIMITS[STARTER])


def plan_has_feature(plan, feature):
    return feature in get_limits(plan)["features"]


def can_add_branches(plan):
    return plan != STARTER


def get_ai_scan_limit(plan):
    return AI_SCAN_LIMITS.get(plan, UNLIMITED_AI_SCANS)
