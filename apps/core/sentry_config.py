"""
Sentry initialization with data scrubbing.

Customer names, phone numbers, prescriptions and credentials must never
leave the platform inside an error report.
"""

import re
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.celery import CeleryIntegration
from sentry_sdk.integrations.django import DjangoIntegration

SENSITIVE_KEYS = {
    "password",
    "secret",
    "token",
    "api_key",
    "apikey",
    "authorization",
    "cookie",
    "csrf",
    "session",
    "phone",
    "date_of_birth",
    "address",
    "prescription",
    "prescriber",
    "image",
    "images",
    "image_url",
}

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
# Local (0803...) and international (+234803..., 234803...) mobile numbers
PHONE_PATTERN = re.compile(r"(?<!\d)(?:\+?234|0)[789][01]\d{8}(?!\d)")


def scrub_sensitive_data(data: Any) -> Any:
    """
    Recursively scrub sensitive data from dictionaries, lists, and strings.
    """
    if isinstance(data, dict):
        return {
            key: "[REDACTED]" if _is_sensitive_key(key) else scrub_sensitive_data(value)
            for key, value in data.items()
        }
    elif isinstance(data, list):
        return [scrub_sensitive_data(item) for item in data]
    elif isinstance(data, str):
        return _scrub_string(data)
    return data


def _is_sensitive_key(key) -> bool:
    key_lower = str(key).lower()
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)


def _scrub_string(text: str) -> str:
    text = EMAIL_PATTERN.sub(lambda m: _mask_email(m.group(0)), text)
    text = PHONE_PATTERN.sub(lambda m: f"XXXXXXX{m.group(0)[-4:]}", text)
    return text


def _mask_email(email: str) -> str:
    """
    Partially mask an email address (e.g. ad***@example.com).
    """
    try:
        local, domain = email.split("@")
        return f"{local[:2]}***@{domain}"
    except ValueError:
        return "REDACTED@EMAIL"


def before_send(event: Dict[str, Any], hint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Sentry before_send hook to scrub sensitive data from events.
    """
    request = event.get("request")
    if request:
        if "headers" in request:
            request["headers"] = scrub_sensitive_data(request["headers"])
        if "cookies" in request:
            request["cookies"] = {k: "[REDACTED]" for k in request["cookies"]}
        if "query_string" in request:
            request["query_string"] = scrub_sensitive_data(request["query_string"])
        if "data" in request:
            request["data"] = scrub_sensitive_data(request["data"])

    if "extra" in event:
        event["extra"] = scrub_sensitive_data(event["extra"])

    user = event.get("user")
    if user:
        if "email" in user:
            user["email"] = _mask_email(user["email"])
        if "ip_address" in user:
            user["ip_address"] = "XXX.XXX.XXX.XXX"

    for exception in event.get("exception", {}).get("values", []):
        if "value" in exception:
            exception["value"] = _scrub_string(exception["value"])

    for breadcrumb in event.get("breadcrumbs", {}).get("values", []):
        if "data" in breadcrumb:
            breadcrumb["data"] = scrub_sensitive_data(breadcrumb["data"])
        if "message" in breadcrumb and breadcrumb["message"]:
            breadcrumb["message"] = _scrub_string(breadcrumb["message"])

    return event


def initialize_sentry(
    dsn: Optional[str],
    environment: str = "development",
    traces_sample_rate: float = 0.1,
    release: Optional[str] = None,
) -> None:
    """
    Initialize Sentry SDK with Django and Celery integrations.

    Args:
        dsn: Sentry DSN. If empty, Sentry is not initialized.
        environment: Environment name (development, production)
        traces_sample_rate: Fraction of transactions to trace (0.0 to 1.0)
        release: Release version string
    """
    if not dsn:
        return

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        traces_sample_rate=traces_sample_rate,
        integrations=[
            DjangoIntegration(transaction_style="url"),
            CeleryIntegration(monitor_beat_tasks=True),
        ],
        before_send=before_send,
        send_default_pii=False,
        attach_stacktrace=True,
        max_breadcrumbs=50,
    )
