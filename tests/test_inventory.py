"""
Tests for medication batches, FEFO deduction, metrics and branch stock.
"""

from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone

import pytest
from rest_framework import status

from apps.core import plans
from apps.core.services import apply_role_template, set_staff_permission
from apps.inventory import fefo
from apps.inventory.models import BranchStock, Medication
from apps.inventory.services import (
    deduct_branch_stock,
    get_inventory_alerts,
    get_inventory_metrics,
    lock_batches_by_name,
    medications_for,
    receive_branch_stock,
)


def days_from_today(days):
    return timezone.localdate() + timedelta(days=days)


@pytest.mark.django_db
class TestMedicationModel:
    def test_price_prefers_selling_price(self, make_medication):
        med = make_medication(unit_price=Decimal("80.00"), selling_price=Decimal("120.00"))
        assert med.get_price() == Decimal("120.00")

    def test_price_falls_back_to_unit_price(self, make_medication):
        assert make_medication(selling_price=None).get_price() == Decimal("80.00")
        assert make_medication(selling_price=Decimal("0.00")).get_price() == Decimal("80.00")

    def test_expiry_flags(self, make_medication):
        expired = make_medication(expiry_date=days_from_today(-1))
        expiring = make_medication(expiry_date=days_from_today(30))
        fresh = make_medication(expiry_date=days_from_today(31))

        assert expired.is_expired() and not expired.is_expiring_soon()
        assert not expiring.is_expired() and expiring.is_expiring_soon()
        assert not fresh.is_expired() and not fresh.is_expiring_soon()

    def test_low_stock_includes_reorder_level(self, make_medication):
        assert make_medication(current_stock=10, reorder_level=10).is_low_stock()
        assert not make_medication(current_stock=11, reorder_level=10).is_low_stock()

    def test_deduct_quantity(self, medication):
        medication.deduct_quantity(30)
        medication.refresh_from_db()
        assert medication.current_stock == 70

    def test_deduct_more_than_stock_fails(self, medication):
        with pytest.raises(ValueError, match="Insufficient stock"):
            medication.deduct_quantity(101)

    def test_add_quantity_must_be_positive(self, medication):
        with pytest.raises(ValueError):
            medication.add_quantity(0)


class TestNormalizeName:
    def test_normalize_name(self):
        assert fefo.normalize_name("  Amoxicillin   500MG ") == "amoxicillin 500mg"
        assert fefo.normalize_name(None) == ""


@pytest.mark.django_db
class TestFEFO:
    def test_deducts_earliest_expiry_first(self, make_medication):
        later = make_medication(batch_number="B2", current_stock=10, expiry_date=days_from_today(200))
        sooner = make_medication(batch_number="B1", current_stock=3, expiry_date=days_from_today(40))

        result = fefo.deduct_fefo([later, sooner], "paracetamol 500MG", 5)

        assert result.total_deducted == 5
        assert result.used_multiple_batches is True
        assert [d.medication for d in result.batch_deductions] == [sooner, later]
        assert [d.quantity for d in result.batch_deductions] == [3, 2]
        assert result.batch_expiry_info[0] == f"3x exp {sooner.expiry_date.strftime('%b %y')}"

        sooner.refresh_from_db()
        later.refresh_from_db()
        assert sooner.current_stock == 0
        assert later.current_stock == 8

    def test_skips_expired_and_empty_batches(self, make_medication):
        expired = make_medication(batch_number="OLD", expiry_date=days_from_today(-5))
        empty = make_medication(batch_number="EMPTY", current_stock=0, expiry_date=days_from_today(10))
        good = make_medication(batch_number="GOOD", expiry_date=days_from_today(90))

        result = fefo.deduct_fefo([expired, empty, good], "Paracetamol 500mg", 4)

        assert result.used_multiple_batches is False
        assert result.batch_deductions[0].medication == good
        expired.refresh_from_db()
        assert expired.current_stock == 100

    def test_insufficient_stock_deducts_nothing(self, make_medication):
        med = make_medication(current_stock=2)

        with pytest.raises(ValueError, match="Available: 2, Requested: 5"):
            fefo.deduct_fefo([med], med.name, 5)

        med.refresh_from_db()
        assert med.current_stock == 2

    def test_plan_deduction_reports_shortfall(self, make_medication):
        med = make_medication(current_stock=2)

        result = fefo.plan_deduction([med], med.name, 5)

        assert result.total_deducted == 2

    def test_group_by_name(self, make_medication):
        expired = make_medication(
            batch_number="OLD", expiry_date=days_from_today(-1), selling_price=Decimal("90.00")
        )
        first = make_medication(
            name="paracetamol  500mg",
            batch_number="B1",
            current_stock=5,
            expiry_date=days_from_today(20),
            selling_price=Decimal("110.00"),
        )
        second = make_medication(
            batch_number="B2",
            current_stock=20,
            expiry_date=days_from_today(300),
            selling_price=Decimal("130.00"),
        )
        other = make_medication(name="Vitamin C", batch_number="VC1", current_stock=50)

        products = fefo.group_by_name([second, other, expired, first])

        assert [p["key"] for p in products] == ["paracetamol 500mg", "vitamin c"]
        paracetamol = products[0]
        assert paracetamol["total_stock"] == 25
        assert paracetamol["display_price"] == Decimal("110.00")
        assert paracetamol["lowest_price"] == Decimal("110.00")
        assert paracetamol["highest_price"] == Decimal("130.00")
        assert paracetamol["earliest_expiry"] == first.expiry_date
        assert paracetamol["has_multiple_batches"] is True
        assert paracetamol["has_expired_batch"] is True
        assert paracetamol["batches"][0] == expired

    def test_display_price_skips_empty_earliest_batch(self, make_medication):
        empty = make_medication(
            batch_number="B1", current_stock=0, expiry_date=days_from_today(10),
            selling_price=Decimal("100.00"),
        )
        stocked = make_medication(
            batch_number="B2", current_stock=4, expiry_date=days_from_today(60),
            selling_price=Decimal("150.00"),
        )

        product = fefo.group_by_name([empty, stocked])[0]

        assert product["display_price"] == Decimal("150.00")

    def test_all_expired_group_still_listed(self, make_medication):
        make_medication(expiry_date=days_from_today(-10))

        product = fefo.group_by_name(list(Medication.objects.all()))[0]

        assert product["total_stock"] == 0
        assert product["display_price"] == Decimal("0.00")


@pytest.mark.django_db
class TestInventoryServices:
    def test_branch_scope_includes_pharmacy_wide_batches(
        self, pharmacy, branch, second_branch, make_medication
    ):
        shared = make_medication(batch_number="SHARED")
        local = make_medication(batch_number="LOCAL", branch=branch)
        elsewhere = make_medication(batch_number="ELSEWHERE", branch=second_branch)

        visible = set(medications_for(pharmacy, branch))

        assert visible == {shared, local}
        assert elsewhere not in visible

    def test_lock_batches_by_name_matches_normalised(self, pharmacy, make_medication):
        a = make_medication(name="Amoxicillin 500mg")
        b = make_medication(name="AMOXICILLIN 500MG", batch_number="B2")
        make_medication(name="Amoxicillin 250mg", batch_number="B3")

        batches = lock_batches_by_name(pharmacy, [" amoxicillin 500mg "])

        assert set(batches) == {a, b}

    def test_metrics(self, pharmacy, make_medication):
        make_medication(current_stock=10, reorder_level=5, selling_price=Decimal("100.00"))
        make_medication(batch_number="LOW", current_stock=2, reorder_level=5)
        make_medication(batch_number="EXP", expiry_date=days_from_today(-3))
        make_medication(
            batch_number="SOON",
            current_stock=1,
            reorder_level=0,
            expiry_date=days_from_today(10),
            selling_price=Decimal("50.00"),
        )

        metrics = get_inventory_metrics(pharmacy)

        assert metrics["total_skus"] == 4
        assert metrics["low_stock"] == 1
        assert metrics["expired"] == 1
        assert metrics["expiring_soon"] == 1
        # 10 x 100 + 2 x 120 + 1 x 50; the expired batch is excluded
        assert metrics["total_value"] == Decimal("1290.00")

    def test_alerts(self, pharmacy, make_medication):
        make_medication(name="Out", current_stock=0)
        make_medication(name="Expiring", expiry_date=days_from_today(5))

        alerts = get_inventory_alerts(pharmacy)

        kinds = {(alert["name"], alert["type"]) for alert in alerts}
        assert kinds == {("Out", "out_of_stock"), ("Expiring", "expiring")}

    def test_receive_and_deduct_branch_stock(self, branch, medication):
        stock = receive_branch_stock(branch, medication, 15)
        assert stock.quantity == 15
        assert stock.reorder_level == medication.reorder_level

        receive_branch_stock(branch, medication, 5)
        stock = deduct_branch_stock(branch, medication, 12)
        assert stock.quantity == 8

    def test_deduct_unstocked_branch_fails(self, branch, medication):
        with pytest.raises(ValueError, match="not stocked"):
            deduct_branch_stock(branch, medication, 1)

    def test_deduct_more_than_branch_holds_fails(self, branch, medication):
        receive_branch_stock(branch, medication, 3)

        with pytest.raises(ValueError, match="Insufficient stock"):
            deduct_branch_stock(branch, medication, 4)


@pytest.mark.django_db
class TestInventoryAPI:
    def test_create_medication(self, owner_client, pharmacy, branch):
        response = owner_client.post(
            reverse("inventory:medication_list"),
            {
                "name": "Ibuprofen 400mg",
                "batch_number": "IBU-01",
                "current_stock": 40,
                "expiry_date": days_from_today(200).isoformat(),
                "unit_price": "150.00",
                "selling_price": "200.00",
                "branch": str(branch.id),
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        med = Medication.objects.get(batch_number="IBU-01")
        assert med.pharmacy == pharmacy
        assert med.branch == branch
        assert response.json()["price"] == "200.00"

    def test_list_is_scoped_and_searchable(self, owner_client, make_medication, other_pharmacy):
        make_medication(name="Amoxicillin 500mg", barcode_id="6150000000017")
        make_medication(name="Vitamin C")
        Medication.objects.create(
            pharmacy=other_pharmacy,
            name="Amoxicillin 500mg",
            batch_number="X",
            expiry_date=days_from_today(100),
            unit_price=Decimal("10.00"),
        )

        response = owner_client.get(reverse("inventory:medication_list"), {"search": "amox"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["count"] == 1

        response = owner_client.get(reverse("inventory:medication_list"), {"search": "615000"})
        assert response.json()["results"][0]["name"] == "Amoxicillin 500mg"

    def test_low_stock_filter(self, owner_client, make_medication):
        make_medication(name="Plenty")
        make_medication(name="Scarce", current_stock=1)

        response = owner_client.get(reverse("inventory:medication_list"), {"low_stock": "true"})

        assert [row["name"] for row in response.json()["results"]] == ["Scarce"]

    def test_cannot_read_other_pharmacy_medication(self, owner_client, other_pharmacy):
        foreign = Medication.objects.create(
            pharmacy=other_pharmacy,
            name="Secret",
            batch_number="S",
            expiry_date=days_from_today(100),
            unit_price=Decimal("10.00"),
        )

        response = owner_client.get(reverse("inventory:medication_detail", args=[foreign.id]))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_staff_cannot_delete_medication(self, staff_client, medication):
        response = staff_client.delete(reverse("inventory:medication_detail", args=[medication.id]))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert Medication.objects.filter(id=medication.id).exists()

    def test_pos_products_grouped(self, owner_client, make_medication):
        make_medication(batch_number="B1", expiry_date=days_from_today(30))
        make_medication(batch_number="B2", expiry_date=days_from_today(90))
        make_medication(name="Unshelved", is_shelved=False)

        response = owner_client.get(reverse("inventory:pos_products"))

        assert response.status_code == status.HTTP_200_OK
        results = response.json()["results"]
        assert len(results) == 1
        assert results[0]["total_stock"] == 200
        assert results[0]["has_multiple_batches"] is True

    def test_metrics_endpoint(self, owner_client, make_medication):
        make_medication(current_stock=2)

        response = owner_client.get(reverse("inventory:metrics"))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["low_stock"] == 1
        assert response.json()["total_value"] == "240.00"

    def test_metrics_hidden_from_cashier(self, staff_client, medication):
        response = staff_client.get(reverse("inventory:metrics"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_metrics_for_inventory_manager_template(self, staff_client, staff_user, medication):
        apply_role_template(staff_user, "inventory_manager")

        response = staff_client.get(reverse("inventory:metrics"))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["total_value"] == "12000.00"

    def test_metrics_after_dashboard_revoked(self, staff_client, staff_user, medication):
        apply_role_template(staff_user, "inventory_manager")
        set_staff_permission(staff_user, plans.VIEW_DASHBOARD, False)

        response = staff_client.get(reverse("inventory:metrics"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_metrics_malformed_branch(self, owner_client):
        response = owner_client.get(reverse("inventory:metrics"), {"branch": "main"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "branch" in response.json()

    @pytest.mark.parametrize("url_name", ["inventory:pos_products", "inventory:alerts"])
    def test_malformed_branch_param(self, owner_client, url_name):
        response = owner_client.get(reverse(url_name), {"branch": "12"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_medication_list_malformed_branch(self, owner_client, medication):
        response = owner_client.get(reverse("inventory:medication_list"), {"branch": "x"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_stock_movement(self, owner_client, branch, medication):
        url = reverse("inventory:stock_movement")

        response = owner_client.post(
            url,
            {
                "branch_id": str(branch.id),
                "medication_id": str(medication.id),
                "action": "receive",
                "quantity": 10,
            },
            format="json",
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["quantity"] == 10

        response = owner_client.post(
            url,
            {
                "branch_id": str(branch.id),
                "medication_id": str(medication.id),
                "action": "deduct",
                "quantity": 11,
            },
            format="json",
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert BranchStock.objects.get(branch=branch, medication=medication).quantity == 10

    def test_stock_movement_outside_branch_limit(self, owner_client, second_branch, medication):
        response = owner_client.post(
            reverse("inventory:stock_movement"),
            {
                "branch_id": str(second_branch.id),
                "medication_id": str(medication.id),
                "action": "receive",
                "quantity": 10,
            },
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
