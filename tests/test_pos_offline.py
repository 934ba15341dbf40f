"""
Tests for validating and replaying sales queued while the POS was offline.
"""

import uuid
from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone

import pytest
from rest_framework import status

from apps.inventory.models import Medication
from apps.sales.models import Sale
from apps.sales.services import sync_offline_sales, validate_offline_transactions

TIMESTAMP = 1760000000000


def offline_sale(client_id, medication, quantity=1, timestamp=TIMESTAMP, **extra):
    sale = {
        "client_transaction_id": client_id,
        "items": [{"medication_id": str(medication.id), "quantity": quantity}],
        "timestamp": timestamp,
    }
    sale.update(extra)
    return sale


@pytest.mark.django_db
class TestValidateOfflineTransactions:
    def test_valid_transaction(self, pharmacy, medication):
        results = validate_offline_transactions(
            pharmacy,
            [
                {
                    "client_transaction_id": "offline_1",
                    "items": [{"medication_id": str(medication.id), "quantity": 5}],
                }
            ],
        )

        assert results == [{"client_transaction_id": "offline_1", "valid": True, "conflicts": []}]

    def test_stock_pooled_across_batches(self, pharmacy, make_medication):
        first = make_medication(batch_number="B1", current_stock=3)
        make_medication(batch_number="B2", current_stock=4)

        results = validate_offline_transactions(
            pharmacy,
            [
                {
                    "client_transaction_id": "offline_2",
                    "items": [{"medication_id": str(first.id), "quantity": 8}],
                }
            ],
        )

        conflict = results[0]["conflicts"][0]
        assert results[0]["valid"] is False
        assert conflict["conflict_type"] == "insufficient_stock"
        assert conflict["requested"] == 8
        assert conflict["available"] == 7

    def test_repeated_lines_add_up(self, pharmacy, make_medication):
        med = make_medication(current_stock=5)

        results = validate_offline_transactions(
            pharmacy,
            [
                {
                    "client_transaction_id": "offline_3",
                    "items": [
                        {"medication_id": str(med.id), "quantity": 3},
                        {"medication_id": str(med.id), "quantity": 3},
                    ],
                }
            ],
        )

        assert results[0]["conflicts"][0]["requested"] == 6

    def test_unknown_medication(self, pharmacy):
        results = validate_offline_transactions(
            pharmacy,
            [
                {
                    "client_transaction_id": "offline_4",
                    "items": [{"medication_id": str(uuid.uuid4()), "quantity": 1}],
                }
            ],
        )

        assert results[0]["conflicts"][0]["conflict_type"] == "medication_not_found"
        assert results[0]["conflicts"][0]["available"] == 0

    def test_validate_endpoint(self, staff_client, make_medication):
        med = make_medication(current_stock=1)

        response = staff_client.post(
            reverse("sales:pos_offline_validate"),
            {
                "transactions": [
                    {
                        "client_transaction_id": "offline_5",
                        "items": [{"medication_id": str(med.id), "quantity": 3}],
                    }
                ]
            },
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        result = response.json()["validation_results"][0]
        assert result["valid"] is False
        assert result["conflicts"][0]["available"] == 1


@pytest.mark.django_db
class TestSyncOfflineSales:
    def test_sync_records_sales_oldest_first(self, pharmacy, staff_user, branch, medication):
        payload = sync_offline_sales(
            pharmacy,
            staff_user,
            [
                offline_sale("offline_late", medication, timestamp=TIMESTAMP + 5000),
                offline_sale("offline_early", medication, timestamp=TIMESTAMP),
            ],
            branch=branch,
        )

        assert [r["client_transaction_id"] for r in payload["results"]] == [
            "offline_early",
            "offline_late",
        ]
        assert [r["receipt_number"] for r in payload["results"]] == ["RX-00000001", "RX-00000002"]
        assert "last_sync_time" in payload

        sale = Sale.objects.get(client_transaction_id="offline_early")
        assert sale.is_offline is True
        assert int(sale.offline_created_at.timestamp() * 1000) == TIMESTAMP

    def test_duplicate_is_not_recorded_twice(self, pharmacy, staff_user, medication):
        sync_offline_sales(pharmacy, staff_user, [offline_sale("offline_dup", medication)])

        payload = sync_offline_sales(pharmacy, staff_user, [offline_sale("offline_dup", medication)])

        assert payload["results"][0]["status"] == "duplicate"
        assert payload["results"][0]["receipt_number"] == "RX-00000001"
        assert Sale.objects.count() == 1
        assert Medication.objects.get(id=medication.id).current_stock == 99

    def test_shortfall_clamps_stock_at_zero(self, pharmacy, staff_user, make_medication):
        med = make_medication(current_stock=2)

        payload = sync_offline_sales(pharmacy, staff_user, [offline_sale("offline_short", med, 5)])

        assert payload["results"][0]["status"] == "synced"
        assert Medication.objects.get(id=med.id).current_stock == 0

        sale = Sale.objects.get(client_transaction_id="offline_short")
        assert sale.total == Decimal("600.00")
        shortfall = sale.items.get(medication__isnull=True)
        assert shortfall.quantity == 3

    def test_one_failure_does_not_block_others(self, pharmacy, staff_user, medication):
        missing = {
            "client_transaction_id": "offline_bad",
            "items": [{"medication_id": str(uuid.uuid4()), "quantity": 1}],
            "timestamp": TIMESTAMP,
        }

        payload = sync_offline_sales(
            pharmacy,
            staff_user,
            [missing, offline_sale("offline_good", medication, timestamp=TIMESTAMP + 1)],
        )

        statuses = {r["client_transaction_id"]: r["status"] for r in payload["results"]}
        assert statuses == {"offline_bad": "failed", "offline_good": "synced"}
        assert "Medication not found" in payload["results"][0]["error"]

    def test_expired_batches_not_sold_offline(self, pharmacy, staff_user, make_medication):
        expired = make_medication(
            batch_number="OLD", expiry_date=timezone.localdate() - timedelta(days=2)
        )
        fresh = make_medication(batch_number="NEW", current_stock=10)

        sync_offline_sales(pharmacy, staff_user, [offline_sale("offline_fefo", expired, 4)])

        assert Medication.objects.get(id=expired.id).current_stock == 100
        assert Medication.objects.get(id=fresh.id).current_stock == 6

    def test_sync_endpoint(self, staff_client, customer, medication):
        response = staff_client.post(
            reverse("sales:pos_offline_sync"),
            {
                "sales": [
                    offline_sale(
                        "offline_api",
                        medication,
                        quantity=2,
                        customer_id=str(customer.id),
                        payment_method="card",
                    )
                ]
            },
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["results"][0]["status"] == "synced"
        sale = Sale.objects.get(client_transaction_id="offline_api")
        assert sale.customer == customer
        assert sale.payment_method == Sale.CARD

    def test_sync_requires_sales(self, staff_client):
        response = staff_client.post(reverse("sales:pos_offline_sync"), {"sales": []}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_sync_at_branch_outside_limit_rejected(self, staff_client, second_branch, medication):
        response = staff_client.post(
            reverse("sales:pos_offline_sync"),
            {
                "branch_id": str(second_branch.id),
                "sales": [offline_sale("offline_lekki", medication)],
            },
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"].startswith("Branch is outside your plan's branch limit")
        assert not Sale.objects.filter(client_transaction_id="offline_lekki").exists()
        assert Medication.objects.get(id=medication.id).current_stock == 100

    def test_unrepresentable_timestamp_fails_only_that_sale(self, pharmacy, staff_user, medication):
        payload = sync_offline_sales(
            pharmacy,
            staff_user,
            [
                offline_sale("offline_far_future", medication, timestamp=10**22),
                offline_sale("offline_today", medication),
            ],
        )

        statuses = {r["client_transaction_id"]: r["status"] for r in payload["results"]}
        assert statuses == {"offline_far_future": "failed", "offline_today": "synced"}
        assert Medication.objects.get(id=medication.id).current_stock == 99

    @pytest.mark.parametrize("timestamp", [10**22, -1])
    def test_sync_endpoint_rejects_out_of_range_timestamp(self, staff_client, medication, timestamp):
        response = staff_client.post(
            reverse("sales:pos_offline_sync"),
            {"sales": [offline_sale("offline_range", medication, timestamp=timestamp)]},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert Medication.objects.get(id=medication.id).current_stock == 100


@pytest.mark.django_db
class TestBatchNamesWithIrregularSpacing:
    """Batches whose names differ only in spacing or case are one product."""

    @pytest.fixture
    def spaced_batches(self, make_medication):
        today = timezone.localdate()
        first = make_medication(
            name="Paracetamol 500mg",
            batch_number="BN-1",
            current_stock=2,
            expiry_date=today + timedelta(days=90),
        )
        second = make_medication(
            name=" paracetamol  500MG",
            batch_number="BN-2",
            current_stock=5,
            expiry_date=today + timedelta(days=300),
        )
        return first, second

    def test_normalized_name_stored(self, spaced_batches):
        first, second = spaced_batches

        assert first.normalized_name == "paracetamol 500mg"
        assert second.normalized_name == "paracetamol 500mg"

    def test_normalized_name_follows_rename(self, spaced_batches):
        first, _second = spaced_batches
        first.name = "Panadol   Extra"
        first.save(update_fields=["name"])

        first.refresh_from_db()
        assert first.normalized_name == "panadol extra"

    def test_validation_pools_both_batches(self, pharmacy, spaced_batches):
        first, _second = spaced_batches

        results = validate_offline_transactions(
            pharmacy,
            [
                {
                    "client_transaction_id": "offline_spaced",
                    "items": [{"medication_id": str(first.id), "quantity": 8}],
                }
            ],
        )

        assert results[0]["conflicts"][0]["available"] == 7

    def test_pos_sale_draws_from_both_batches(self, staff_client, spaced_batches):
        first, second = spaced_batches

        response = staff_client.post(
            reverse("sales:pos_complete_sale"),
            {"items": [{"medication_id": str(first.id), "quantity": 4}]},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert Medication.objects.get(id=first.id).current_stock == 0
        assert Medication.objects.get(id=second.id).current_stock == 3

    def test_offline_sync_draws_from_both_batches(self, pharmacy, staff_user, spaced_batches):
        first, second = spaced_batches

        payload = sync_offline_sales(
            pharmacy, staff_user, [offline_sale("offline_spaced_sync", second, quantity=6)]
        )

        assert payload["results"][0]["status"] == "synced"
        assert Medication.objects.get(id=first.id).current_stock == 0
        assert Medication.objects.get(id=second.id).current_stock == 1
