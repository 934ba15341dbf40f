"""
Tests for completing and voiding sales, daily summaries and shifts.
"""

import uuid
from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone

import pytest
from rest_framework import status

from apps.core import plans
from apps.core.services import set_staff_permission
from apps.crm.models import Customer, LoyaltyTransaction
from apps.inventory.models import Medication
from apps.sales.models import Sale, SaleItem, Shift
from apps.sales.services import (
    clock_in,
    clock_out,
    complete_sale,
    get_daily_summary,
    void_sale,
)


@pytest.fixture
def two_batches(make_medication):
    """Same product in two batches; the cheaper one expires first."""
    today = timezone.localdate()
    sooner = make_medication(
        batch_number="B-SOON",
        current_stock=3,
        expiry_date=today + timedelta(days=60),
        selling_price=Decimal("100.00"),
    )
    later = make_medication(
        batch_number="B-LATER",
        current_stock=20,
        expiry_date=today + timedelta(days=400),
        selling_price=Decimal("150.00"),
    )
    return sooner, later


def stock_of(medication):
    return Medication.objects.get(id=medication.id).current_stock


@pytest.mark.django_db
class TestCompleteSale:
    def test_sale_draws_earliest_expiry_first(self, pharmacy, owner, branch, two_batches):
        sooner, later = two_batches

        result = complete_sale(
            pharmacy, owner, [{"medication_id": later.id, "quantity": 5}], branch=branch
        )

        sale = result.sale
        assert stock_of(sooner) == 0
        assert stock_of(later) == 18

        items = list(sale.items.order_by("quantity"))
        assert [(item.medication, item.quantity) for item in items] == [(later, 2), (sooner, 3)]
        # Every line is priced from the batch the cashier picked
        assert all(item.unit_price == Decimal("150.00") for item in items)
        assert sale.total == Decimal("750.00")
        assert sooner.expiry_date.strftime("%b %y") in items[1].batch_expiry_info

    def test_receipt_numbers_are_sequential(self, pharmacy, owner, medication):
        first = complete_sale(pharmacy, owner, [{"medication_id": medication.id, "quantity": 1}])
        second = complete_sale(pharmacy, owner, [{"medication_id": medication.id, "quantity": 1}])

        assert first.sale.receipt_number == "RX-00000001"
        assert second.sale.receipt_number == "RX-00000002"

    def test_receipt_numbers_are_per_pharmacy(
        self, pharmacy, owner, medication, other_pharmacy, other_owner
    ):
        foreign = Medication.objects.create(
            pharmacy=other_pharmacy,
            name="Vitamin C",
            batch_number="VC",
            current_stock=10,
            expiry_date=timezone.localdate() + timedelta(days=100),
            unit_price=Decimal("50.00"),
        )
        complete_sale(pharmacy, owner, [{"medication_id": medication.id, "quantity": 1}])

        result = complete_sale(
            other_pharmacy, other_owner, [{"medication_id": foreign.id, "quantity": 1}]
        )

        assert result.sale.receipt_number == "RX-00000001"

    def test_insufficient_stock_rolls_back(self, pharmacy, owner, two_batches):
        sooner, later = two_batches

        with pytest.raises(ValueError, match="Insufficient stock"):
            complete_sale(pharmacy, owner, [{"medication_id": sooner.id, "quantity": 24}])

        assert stock_of(sooner) == 3
        assert stock_of(later) == 20
        assert Sale.objects.count() == 0

    def test_medication_from_other_pharmacy_not_found(self, pharmacy, owner, other_pharmacy):
        foreign = Medication.objects.create(
            pharmacy=other_pharmacy,
            name="Secret",
            batch_number="S",
            current_stock=10,
            expiry_date=timezone.localdate() + timedelta(days=100),
            unit_price=Decimal("50.00"),
        )

        with pytest.raises(ValueError, match="Medication not found"):
            complete_sale(pharmacy, owner, [{"medication_id": foreign.id, "quantity": 1}])

    def test_low_stock_alerts(self, pharmacy, owner, make_medication):
        med = make_medication(current_stock=12, reorder_level=10)

        result = complete_sale(pharmacy, owner, [{"medication_id": med.id, "quantity": 3}])

        assert result.low_stock_alerts == [
            {
                "medication_id": str(med.id),
                "name": med.name,
                "batch_number": med.batch_number,
                "current_stock": 9,
                "reorder_level": 10,
            }
        ]

    def test_open_shift_totals_updated(self, pharmacy, staff_user, medication):
        shift = clock_in(staff_user)

        complete_sale(pharmacy, staff_user, [{"medication_id": medication.id, "quantity": 2}])

        shift = Shift.objects.get(id=shift.id)
        assert shift.total_sales == Decimal("240.00")
        assert shift.total_transactions == 1


@pytest.mark.django_db
class TestLoyaltyOnSales:
    def test_points_awarded_once_per_sale(self, pharmacy, owner, customer, medication):
        result = complete_sale(
            pharmacy,
            owner,
            [{"medication_id": medication.id, "quantity": 5}],
            customer=customer,
        )

        customer = Customer.objects.get(id=customer.id)
        assert customer.loyalty_points == 6
        assert customer.total_purchases == Decimal("600.00")
        assert customer.last_purchase_at is not None

        # A later save of the same sale awards nothing more
        result.sale.save()
        assert Customer.objects.get(id=customer.id).loyalty_points == 6
        assert result.sale.customer_name == "Adaeze Okafor"

    def test_void_reverses_points_and_restocks(self, pharmacy, owner, customer, medication):
        result = complete_sale(
            pharmacy,
            owner,
            [{"medication_id": medication.id, "quantity": 5}],
            customer=customer,
        )

        void_sale(result.sale, owner, reason="Wrong item")

        customer = Customer.objects.get(id=customer.id)
        assert customer.loyalty_points == 0
        assert customer.total_purchases == Decimal("0.00")
        assert stock_of(medication) == 100
        assert LoyaltyTransaction.objects.filter(
            sale=result.sale, transaction_type=LoyaltyTransaction.REVERSED
        ).count() == 1

    def test_cannot_void_twice(self, pharmacy, owner, medication):
        result = complete_sale(pharmacy, owner, [{"medication_id": medication.id, "quantity": 1}])
        void_sale(result.sale, owner)

        with pytest.raises(ValueError, match="cannot be voided"):
            void_sale(result.sale, owner)

        assert stock_of(medication) == 100


@pytest.mark.django_db
class TestSaleAPI:
    def test_complete_sale_endpoint(self, staff_client, staff_user, branch, medication):
        response = staff_client.post(
            reverse("sales:pos_complete_sale"),
            {
                "items": [{"medication_id": str(medication.id), "quantity": 2}],
                "payment_method": "transfer",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["receipt_number"] == "RX-00000001"
        assert data["total"] == "240.00"
        assert data["branch"] == str(branch.id)
        assert data["payment_method"] == Sale.TRANSFER
        assert data["low_stock_alerts"] == []
        assert len(data["items"]) == 1

    def test_insufficient_stock_returns_400(self, staff_client, medication):
        response = staff_client.post(
            reverse("sales:pos_complete_sale"),
            {"items": [{"medication_id": str(medication.id), "quantity": 101}]},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert stock_of(medication) == 100

    def test_empty_cart_rejected(self, staff_client):
        response = staff_client.post(
            reverse("sales:pos_complete_sale"), {"items": []}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_expired_subscription_blocks_sales(self, staff_client, pharmacy, medication):
        pharmacy.subscription_ends_at = timezone.now() - timedelta(days=1)
        pharmacy.save()

        response = staff_client.post(
            reverse("sales:pos_complete_sale"),
            {"items": [{"medication_id": str(medication.id), "quantity": 1}]},
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_staff_see_only_their_sales(self, api_client, pharmacy, owner, staff_user, medication):
        complete_sale(pharmacy, owner, [{"medication_id": medication.id, "quantity": 1}])
        complete_sale(pharmacy, staff_user, [{"medication_id": medication.id, "quantity": 1}])

        api_client.force_authenticate(user=staff_user)
        response = api_client.get(reverse("sales:sale_list"))
        assert response.json()["count"] == 1

        api_client.force_authenticate(user=owner)
        response = api_client.get(reverse("sales:sale_list"))
        assert response.json()["count"] == 2

    def test_staff_cannot_void(self, staff_client, pharmacy, staff_user, medication):
        result = complete_sale(pharmacy, staff_user, [{"medication_id": medication.id, "quantity": 1}])

        response = staff_client.post(reverse("sales:sale_void", args=[result.sale.id]))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_owner_voids_sale(self, owner_client, pharmacy, owner, medication):
        result = complete_sale(pharmacy, owner, [{"medication_id": medication.id, "quantity": 1}])

        response = owner_client.post(
            reverse("sales:sale_void", args=[result.sale.id]), {"reason": "Refund"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == Sale.VOIDED
        assert response.json()["void_reason"] == "Refund"

    def test_daily_summary(self, owner_client, pharmacy, owner, medication):
        complete_sale(pharmacy, owner, [{"medication_id": medication.id, "quantity": 1}])
        complete_sale(
            pharmacy,
            owner,
            [{"medication_id": medication.id, "quantity": 2}],
            payment_method=Sale.CARD,
        )
        voided = complete_sale(pharmacy, owner, [{"medication_id": medication.id, "quantity": 1}])
        void_sale(voided.sale, owner)

        response = owner_client.get(reverse("sales:daily_summary"))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["count"] == 2
        assert data["revenue"] == "360.00"
        assert data["voided"] == 1
        assert data["by_payment_method"]["card"] == {"count": 1, "revenue": "240.00"}
        assert data["by_payment_method"]["pos"] == {"count": 0, "revenue": "0.00"}

    def test_daily_summary_bad_date(self, owner_client):
        response = owner_client.get(reverse("sales:daily_summary"), {"date": "yesterday"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_daily_summary_hidden_from_cashier(self, staff_client):
        response = staff_client.get(reverse("sales:daily_summary"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_daily_summary_with_financial_permission(
        self, staff_client, pharmacy, owner, staff_user, medication
    ):
        complete_sale(pharmacy, owner, [{"medication_id": medication.id, "quantity": 1}])
        set_staff_permission(staff_user, plans.VIEW_FINANCIAL_DATA, True, granted_by=owner)

        response = staff_client.get(reverse("sales:daily_summary"))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["revenue"] == "120.00"

    def test_daily_summary_after_permission_revoked(self, staff_client, owner, staff_user):
        set_staff_permission(staff_user, plans.VIEW_FINANCIAL_DATA, True, granted_by=owner)
        set_staff_permission(staff_user, plans.VIEW_FINANCIAL_DATA, False, granted_by=owner)

        response = staff_client.get(reverse("sales:daily_summary"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_daily_summary_unknown_branch(self, owner_client):
        response = owner_client.get(reverse("sales:daily_summary"), {"branch": str(uuid.uuid4())})

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.parametrize(
        "params",
        [
            {"branch": "not-a-uuid"},
            {"staff": "abc"},
            {"start_date": "bad"},
            {"end_date": "2026-13-40"},
        ],
    )
    def test_sale_list_malformed_filters(self, owner_client, params):
        response = owner_client.get(reverse("sales:sale_list"), params)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert set(response.json()) == set(params)

    def test_sale_list_date_filter(self, owner_client, pharmacy, owner, medication):
        complete_sale(pharmacy, owner, [{"medication_id": medication.id, "quantity": 1}])
        tomorrow = (timezone.localdate() + timedelta(days=1)).isoformat()

        response = owner_client.get(reverse("sales:sale_list"), {"start_date": tomorrow})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["count"] == 0

    def test_daily_summary_for_empty_day(self, pharmacy):
        summary = get_daily_summary(pharmacy, day=timezone.localdate() - timedelta(days=3))

        assert summary["count"] == 0
        assert summary["revenue"] == "0.00"


@pytest.mark.django_db
class TestShifts:
    def test_clock_in_and_out(self, staff_user):
        shift = clock_in(staff_user, notes="Morning")

        assert shift.is_open()
        with pytest.raises(ValueError, match="already have an open shift"):
            clock_in(staff_user)

        shift = clock_out(staff_user, notes="Handover done")
        assert not shift.is_open()
        assert "Handover done" in shift.notes

        with pytest.raises(ValueError, match="No open shift"):
            clock_out(staff_user)

    def test_clock_in_endpoint(self, staff_client):
        response = staff_client.post(reverse("sales:shift_clock_in"), {}, format="json")
        assert response.status_code == status.HTTP_201_CREATED

        response = staff_client.post(reverse("sales:shift_clock_in"), {}, format="json")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        response = staff_client.get(reverse("sales:shift_current"))
        assert response.json()["shift"]["is_open"] is True

    def test_staff_list_only_their_shifts(self, staff_client, staff_user, manager):
        clock_in(staff_user)
        clock_in(manager)

        response = staff_client.get(reverse("sales:shift_list"))

        assert response.json()["count"] == 1
        assert response.json()["results"][0]["staff"] == staff_user.id


@pytest.mark.django_db
def test_sale_item_total_computed(pharmacy, owner, medication):
    result = complete_sale(pharmacy, owner, [{"medication_id": medication.id, "quantity": 3}])

    item = SaleItem.objects.get(sale=result.sale)
    assert item.total_price == Decimal("360.00")
    assert item.medication_name == "Paracetamol 500mg"
