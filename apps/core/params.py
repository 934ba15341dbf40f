"""
Query parameter parsing for list and report endpoints.

Malformed values raise a DRF ValidationError keyed by the parameter name,
which the API answers with 400.
"""

import uuid
from datetime import date

from django.shortcuts import get_object_or_404

from rest_framework.exceptions import ValidationError

from apps.core.models import Branch


def uuid_param(request, name):
    """The parameter as a UUID string, or None when absent."""
    value = request.query_params.get(name)
    if not value:
        return None
    try:
        return str(uuid.UUID(value))
    except ValueError:
        raise ValidationError({name: f"'{value}' is not a valid id."})


def int_param(request, name, default=None, min_value=None):
    value = request.query_params.get(name)
    if value in (None, ""):
        return default
    try:
        number = int(value)
    except ValueError:
        raise ValidationError({name: f"'{value}' is not a number."})
    if min_value is not None and number < min_value:
        raise ValidationError({name: f"Must be at least {min_value}."})
    return number


def date_param(request, name):
    """The parameter as a date (YYYY-MM-DD), or None when absent."""
    value = request.query_params.get(name)
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError({name: "Invalid date. Use YYYY-MM-DD."})


def branch_param(request, name="branch"):
    """
    The user's branch named by the parameter, or None when absent.

    Raises Http404 for a well-formed id that is not one of the pharmacy's branches.
    """
    branch_id = uuid_param(request, name)
    if branch_id is None:
        return None
    return get_object_or_404(Branch, id=branch_id, pharmacy=request.user.pharmacy)
