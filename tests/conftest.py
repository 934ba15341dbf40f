"""
Pytest configuration and fixtures for the pharmacy POS platform.
"""

from datetime import timedelta
from decimal import Decimal

from django.utils import timezone

import pytest

from apps.core import plans
from apps.core.models import Branch, Pharmacy, User


@pytest.fixture
def api_client():
    """
    Fixture for Django REST framework API client.
    """
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def pharmacy(db):
    """A pharmacy on an active pro subscription."""
    pharmacy = Pharmacy.objects.create(
        name="Test Pharmacy",
        email="pharmacy@example.com",
        phone="08031234567",
        address="12 Allen Avenue, Ikeja",
    )
    pharmacy.activate_subscription(plans.PRO, months=1)
    return pharmacy


@pytest.fixture
def branch(pharmacy):
    return Branch.objects.create(pharmacy=pharmacy, name="Main Branch", is_main=True)


@pytest.fixture
def second_branch(pharmacy, branch):
    return Branch.objects.create(pharmacy=pharmacy, name="Lekki Branch")


@pytest.fixture
def owner(pharmacy, branch):
    user = User.objects.create_user(
        username="owner",
        email="owner@example.com",
        password="testpass123",
        pharmacy=pharmacy,
        branch=branch,
        role=User.OWNER,
    )
    pharmacy.owner = user
    pharmacy.save(update_fields=["owner"])
    return user


@pytest.fixture
def manager(pharmacy, branch):
    return User.objects.create_user(
        username="manager",
        email="manager@example.com",
        password="testpass123",
        pharmacy=pharmacy,
        branch=branch,
        role=User.MANAGER,
    )


@pytest.fixture
def staff_user(pharmacy, branch):
    return User.objects.create_user(
        username="cashier",
        email="cashier@example.com",
        password="testpass123",
        pharmacy=pharmacy,
        branch=branch,
        role=User.STAFF,
    )


@pytest.fixture
def other_pharmacy(db):
    pharmacy = Pharmacy.objects.create(name="Other Pharmacy", phone="08099999999")
    pharmacy.activate_subscription(plans.PRO, months=1)
    return pharmacy


@pytest.fixture
def other_owner(other_pharmacy):
    other_branch = Branch.objects.create(
        pharmacy=other_pharmacy, name="Main Branch", is_main=True
    )
    return User.objects.create_user(
        username="other_owner",
        password="testpass123",
        pharmacy=other_pharmacy,
        branch=other_branch,
        role=User.OWNER,
    )


@pytest.fixture
def owner_client(api_client, owner):
    api_client.force_authenticate(user=owner)
    return api_client


@pytest.fixture
def staff_client(api_client, staff_user):
    api_client.force_authenticate(user=staff_user)
    return api_client


@pytest.fixture
def make_medication(pharmacy):
    """
    Factory for medication batches.

    Defaults to a shelved, pharmacy-wide batch with 100 units expiring in a year.
    """

    def _make(**kwargs):
        from apps.inventory.models import Medication

        defaults = {
            "pharmacy": pharmacy,
            "name": "Paracetamol 500mg",
            "category": "Analgesics",
            "batch_number": "BN-001",
            "current_stock": 100,
            "reorder_level": 10,
            "expiry_date": timezone.localdate() + timedelta(days=365),
            "unit_price": Decimal("80.00"),
            "selling_price": Decimal("120.00"),
        }
        defaults.update(kwargs)
        return Medication.objects.create(**defaults)

    return _make


@pytest.fixture
def medication(make_medication):
    return make_medication()


@pytest.fixture
def customer(pharmacy):
    from apps.crm.models import Customer

    return Customer.objects.create(
        pharmacy=pharmacy,
        full_name="Adaeze Okafor",
        phone="08012345678",
        email="adaeze@example.com",
    )
