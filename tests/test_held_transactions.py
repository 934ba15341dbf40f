"""
Tests for parking and resuming POS carts.
"""

from decimal import Decimal

from django.urls import reverse

import pytest
from rest_framework import status

from apps.sales.models import HeldTransaction
from apps.sales.services import clear_held_transactions, hold_transaction, resume_transaction

CART = [{"medication_id": "abc", "name": "Paracetamol 500mg", "quantity": 2, "price": "120.00"}]


@pytest.mark.django_db
class TestHeldTransactionServices:
    def test_hold_assigns_short_code(self, staff_user):
        held = hold_transaction(staff_user, CART, Decimal("240.00"), customer_name="Walk-in")

        assert len(held.short_code) == 6
        assert held.short_code == held.short_code.upper()
        assert held.pharmacy == staff_user.pharmacy

    def test_resume_returns_cart_and_deletes(self, staff_user):
        held = hold_transaction(staff_user, CART, Decimal("240.00"))

        cart = resume_transaction(held)

        assert cart["items"] == CART
        assert cart["total"] == "240.00"
        assert cart["short_code"] == held.short_code
        assert not HeldTransaction.objects.filter(id=held.id).exists()

    def test_clear_only_removes_own_carts(self, staff_user, manager):
        hold_transaction(staff_user, CART, Decimal("240.00"))
        hold_transaction(staff_user, CART, Decimal("240.00"))
        hold_transaction(manager, CART, Decimal("240.00"))

        assert clear_held_transactions(staff_user) == 2
        assert HeldTransaction.objects.filter(held_by=manager).count() == 1


@pytest.mark.django_db
class TestHeldTransactionAPI:
    def test_hold_and_list(self, staff_client):
        response = staff_client.post(
            reverse("sales:held_list"),
            {"items": CART, "total": "240.00", "customer_name": "Chinedu"},
            format="json",
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["customer_name"] == "Chinedu"

        response = staff_client.get(reverse("sales:held_list"))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["count"] == 1
        assert response.json()["results"][0]["items"] == CART

    def test_empty_cart_rejected(self, staff_client):
        response = staff_client.post(
            reverse("sales:held_list"), {"items": [], "total": "0.00"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_list_excludes_other_users_carts(self, staff_client, manager):
        hold_transaction(manager, CART, Decimal("240.00"))

        response = staff_client.get(reverse("sales:held_list"))

        assert response.json()["count"] == 0

    def test_resume(self, staff_client, staff_user):
        held = hold_transaction(staff_user, CART, Decimal("240.00"))

        response = staff_client.post(reverse("sales:held_resume", args=[held.id]))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["items"] == CART
        assert HeldTransaction.objects.count() == 0

    def test_cannot_resume_another_users_cart(self, staff_client, manager):
        held = hold_transaction(manager, CART, Decimal("240.00"))

        response = staff_client.post(reverse("sales:held_resume", args=[held.id]))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_delete_and_clear(self, staff_client, staff_user):
        first = hold_transaction(staff_user, CART, Decimal("240.00"))
        hold_transaction(staff_user, CART, Decimal("240.00"))

        response = staff_client.delete(reverse("sales:held_delete", args=[first.id]))
        assert response.status_code == status.HTTP_204_NO_CONTENT

        response = staff_client.delete(reverse("sales:held_clear"))
        assert response.json() == {"deleted": 1}

    def test_lookup_by_code_across_tills(self, staff_client, manager):
        held = hold_transaction(manager, CART, Decimal("240.00"))

        response = staff_client.get(reverse("sales:held_by_code", args=[held.short_code.lower()]))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["id"] == str(held.id)

    def test_code_lookup_scoped_to_pharmacy(self, api_client, other_owner, staff_user):
        held = hold_transaction(staff_user, CART, Decimal("240.00"))
        api_client.force_authenticate(user=other_owner)

        response = api_client.get(reverse("sales:held_by_code", args=[held.short_code]))

        assert response.status_code == status.HTTP_404_NOT_FOUND
