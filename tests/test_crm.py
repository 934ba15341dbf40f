"""
Tests for customers, loyalty points and prescriptions.
"""

from datetime import timedelta

from django.urls import reverse
from django.utils import timezone

import pytest
from rest_framework import status

from apps.crm.models import Customer, LoyaltyTransaction, Prescription
from apps.crm.services import expire_prescriptions
from apps.crm.signals import calculate_points
from apps.crm.tasks import expire_prescriptions as expire_prescriptions_task


@pytest.fixture
def prescription(pharmacy, customer):
    return Prescription.objects.create(
        pharmacy=pharmacy,
        customer=customer,
        prescriber_name="Dr. Bello",
        max_refills=2,
        expiry_date=timezone.localdate() + timedelta(days=90),
        items=[{"medication_name": "Amlodipine 5mg", "dosage": "1 daily", "quantity": 30}],
    )


@pytest.mark.django_db
class TestLoyaltyPoints:
    def test_points_per_currency(self):
        assert calculate_points(99) == 0
        assert calculate_points(100) == 1
        assert calculate_points(1999.99) == 19

    def test_add_points(self, customer):
        entry = customer.add_loyalty_points(25, description="Welcome bonus")

        assert customer.loyalty_points == 25
        assert entry.transaction_type == LoyaltyTransaction.EARNED
        assert entry.points == 25

    def test_add_non_positive_points_rejected(self, customer):
        with pytest.raises(ValueError):
            customer.add_loyalty_points(0)

    def test_redeem_points(self, customer):
        customer.add_loyalty_points(30)

        entry = customer.redeem_loyalty_points(10)

        assert customer.loyalty_points == 20
        assert Customer.objects.get(id=customer.id).loyalty_points == 20
        assert entry.points == -10

    def test_cannot_redeem_more_than_balance(self, customer):
        customer.add_loyalty_points(5)

        with pytest.raises(ValueError, match="Invalid points amount"):
            customer.redeem_loyalty_points(6)

    def test_reverse_never_goes_negative(self, customer):
        customer.add_loyalty_points(5)
        customer.redeem_loyalty_points(4)

        entry = customer.reverse_loyalty_points(5)

        assert customer.loyalty_points == 0
        assert entry.points == -1


@pytest.mark.django_db
class TestCustomerAPI:
    def test_create_customer(self, staff_client, pharmacy):
        response = staff_client.post(
            reverse("crm:customer_list"),
            {"full_name": "Tunde Bakare", "phone": "08023334444"},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert Customer.objects.get(phone="08023334444").pharmacy == pharmacy
        assert response.json()["loyalty_points"] == 0

    def test_duplicate_phone_rejected(self, staff_client, customer):
        response = staff_client.post(
            reverse("crm:customer_list"),
            {"full_name": "Someone Else", "phone": customer.phone},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "phone" in response.json()

    def test_same_phone_allowed_in_other_pharmacy(self, api_client, other_owner, customer):
        api_client.force_authenticate(user=other_owner)

        response = api_client.post(
            reverse("crm:customer_list"),
            {"full_name": "Adaeze Okafor", "phone": customer.phone},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED

    def test_search(self, staff_client, customer, pharmacy):
        Customer.objects.create(pharmacy=pharmacy, full_name="Musa Ibrahim", phone="08050000000")

        response = staff_client.get(reverse("crm:customer_list"), {"search": "okafor"})

        assert response.json()["count"] == 1
        assert response.json()["results"][0]["full_name"] == "Adaeze Okafor"

    def test_other_pharmacy_customer_hidden(self, api_client, other_owner, customer):
        api_client.force_authenticate(user=other_owner)

        response = api_client.get(reverse("crm:customer_detail", args=[customer.id]))

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestLoyaltyAPI:
    def test_history(self, staff_client, customer):
        customer.add_loyalty_points(12, description="Opening balance")

        response = staff_client.get(reverse("crm:loyalty_history", args=[customer.id]))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["loyalty_points"] == 12
        assert response.json()["results"][0]["description"] == "Opening balance"

    def test_redeem(self, staff_client, customer):
        customer.add_loyalty_points(12)

        response = staff_client.post(
            reverse("crm:loyalty_redeem", args=[customer.id]), {"points": 10}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"loyalty_points": 2}

    def test_redeem_too_many(self, staff_client, customer):
        response = staff_client.post(
            reverse("crm:loyalty_redeem", args=[customer.id]), {"points": 10}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_only_owner_or_manager_adds_points(self, staff_client, customer):
        response = staff_client.post(
            reverse("crm:loyalty_add", args=[customer.id]), {"points": 10}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_owner_adds_points(self, owner_client, customer, owner):
        response = owner_client.post(
            reverse("crm:loyalty_add", args=[customer.id]),
            {"points": 10, "description": "Goodwill"},
            format="json",
        )

        assert response.json() == {"loyalty_points": 10}
        assert LoyaltyTransaction.objects.get(customer=customer).created_by == owner


@pytest.mark.django_db
class TestPrescriptions:
    def test_numbering(self, prescription, pharmacy, customer):
        second = Prescription.objects.create(
            pharmacy=pharmacy, customer=customer, prescriber_name="Dr. Eze"
        )

        assert prescription.prescription_number == "PRE-000001"
        assert second.prescription_number == "PRE-000002"

    def test_refill_until_completed(self, prescription):
        prescription.refill()
        assert prescription.status == Prescription.ACTIVE

        prescription.refill()
        assert prescription.status == Prescription.COMPLETED

        with pytest.raises(ValueError, match="cannot be refilled"):
            prescription.refill()

    def test_expire_prescriptions(self, prescription, pharmacy, customer):
        past = Prescription.objects.create(
            pharmacy=pharmacy,
            customer=customer,
            prescriber_name="Dr. Eze",
            expiry_date=timezone.localdate() - timedelta(days=1),
        )

        assert expire_prescriptions() == 1
        assert Prescription.objects.get(id=past.id).status == Prescription.EXPIRED
        assert Prescription.objects.get(id=prescription.id).status == Prescription.ACTIVE

    def test_expire_task(self, pharmacy, customer):
        Prescription.objects.create(
            pharmacy=pharmacy,
            customer=customer,
            prescriber_name="Dr. Eze",
            expiry_date=timezone.localdate() - timedelta(days=1),
        )

        assert expire_prescriptions_task() == "Expired 1 prescriptions"

    def test_create_endpoint(self, staff_client, customer):
        response = staff_client.post(
            reverse("crm:prescription_list"),
            {
                "customer": str(customer.id),
                "prescriber_name": "Dr. Bello",
                "max_refills": 1,
                "items": [{"medication_name": "Metformin 500mg", "quantity": 60}],
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["prescription_number"] == "PRE-000001"
        assert response.json()["customer_name"] == "Adaeze Okafor"
        assert response.json()["can_refill"] is True

    def test_expiry_before_issue_rejected(self, staff_client, customer):
        today = timezone.localdate()

        response = staff_client.post(
            reverse("crm:prescription_list"),
            {
                "customer": str(customer.id),
                "prescriber_name": "Dr. Bello",
                "issued_date": today.isoformat(),
                "expiry_date": (today - timedelta(days=1)).isoformat(),
            },
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_refill_endpoint(self, staff_client, prescription):
        url = reverse("crm:prescription_refill", args=[prescription.id])

        response = staff_client.post(url)
        assert response.json()["refill_count"] == 1

        staff_client.post(url)
        response = staff_client.post(url)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_expire_endpoint_is_scoped(self, owner_client, other_pharmacy, customer, pharmacy):
        yesterday = timezone.localdate() - timedelta(days=1)
        other_customer = Customer.objects.create(pharmacy=other_pharmacy, full_name="Other")
        Prescription.objects.create(
            pharmacy=pharmacy, customer=customer, prescriber_name="A", expiry_date=yesterday
        )
        Prescription.objects.create(
            pharmacy=other_pharmacy,
            customer=other_customer,
            prescriber_name="B",
            expiry_date=yesterday,
        )

        response = owner_client.post(reverse("crm:prescription_expire"))

        assert response.json() == {"expired": 1}
        assert Prescription.objects.filter(status=Prescription.EXPIRED).count() == 1
