"""
Tests for the AI gateway, invoice scanning, smart upsell and interaction checks.

Provider HTTP calls are mocked with responses.
"""

import json
from datetime import datetime, timedelta
from datetime import timezone as dt_timezone
from unittest.mock import call, patch

from django.conf import settings
from django.test import override_settings
from django.urls import reverse
from django.utils import timezone

import pytest
import requests
import responses
from rest_framework import status

from apps.ai import quota
from apps.ai.gateway import (
    GEMINI_URL,
    AICreditsExhaustedError,
    AIGateway,
    AIProviderError,
    AIRateLimitError,
    parse_json_response,
)
from apps.ai.models import UpsellEvent
from apps.ai.services import (
    ai_search,
    check_drug_interactions,
    generate_inventory_insights,
    get_upsell_summary,
    normalize_expiry,
    normalize_quantity,
    record_upsell_events,
    scan_invoice,
    suggest_upsells,
)
from apps.ai.tasks import reset_monthly_ai_scans
from apps.core import plans
from apps.core.services import apply_role_template


def gemini_url():
    return GEMINI_URL.format(model=settings.GEMINI_MODEL)


def gemini_reply(payload):
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def gateway_reply(payload):
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return {"choices": [{"message": {"content": text}}]}


@pytest.fixture(autouse=True)
def no_backoff():
    with patch("apps.ai.gateway.time.sleep") as sleep:
        yield sleep


class TestParseJsonResponse:
    def test_plain_json(self):
        assert parse_json_response('{"items": []}') == {"items": []}

    def test_fenced_json_with_chatter(self):
        text = 'Here you go:\n```json\n{"interactions": [{"severity": "high"}]}\n```\nDone.'

        assert parse_json_response(text) == {"interactions": [{"severity": "high"}]}

    def test_no_object(self):
        with pytest.raises(ValueError):
            parse_json_response("Sorry, I cannot read that invoice.")

    def test_empty(self):
        with pytest.raises(ValueError):
            parse_json_response("")


class TestNormalisation:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("2027-05-31", "2027-05-31"),
            ("05/2027", "2027-05-01"),
            ("2026-3", "2026-03-01"),
            ("EXP 11 2028", "2028-11-01"),
            ("13/2027", None),
            ("next year", None),
            (None, None),
        ],
    )
    def test_normalize_expiry(self, raw, expected):
        assert normalize_expiry(raw) == expected

    def test_normalize_quantity(self):
        assert normalize_quantity("12") == 12
        assert normalize_quantity(0) == 1
        assert normalize_quantity(None) == 1
        assert normalize_quantity("abc") == 1


class TestAIGateway:
    @responses.activate
    def test_gemini_answer(self):
        responses.add(responses.POST, gemini_url(), json=gemini_reply("hello"), status=200)

        assert AIGateway().generate("Say hello") == "hello"
        assert len(responses.calls) == 1
        assert "key=test-gemini-key" in responses.calls[0].request.url

    @responses.activate
    def test_falls_back_to_gateway(self, no_backoff):
        responses.add(responses.POST, gemini_url(), status=503)
        responses.add(
            responses.POST, settings.AI_GATEWAY_URL, json=gateway_reply("from gateway"), status=200
        )

        assert AIGateway().generate("Say hello") == "from gateway"

        gemini_calls = [c for c in responses.calls if "generativelanguage" in c.request.url]
        assert len(gemini_calls) == settings.AI_MAX_ATTEMPTS
        # Linear backoff on server errors, no sleep after the final attempt
        assert no_backoff.call_args_list == [call(2), call(4)]
        gateway_call = responses.calls[-1].request
        assert gateway_call.headers["Authorization"] == "Bearer test-gateway-key"

    @responses.activate
    def test_rate_limited_everywhere(self, no_backoff):
        responses.add(responses.POST, gemini_url(), status=429)
        responses.add(responses.POST, settings.AI_GATEWAY_URL, status=429)

        with pytest.raises(AIRateLimitError):
            AIGateway().generate("Say hello")

        # Each provider backs off 6s then 12s between its three attempts
        assert no_backoff.call_args_list == [call(6), call(12), call(6), call(12)]

    @responses.activate
    def test_connection_error_is_retried(self, no_backoff):
        responses.add(responses.POST, gemini_url(), body=requests.ConnectionError("reset"))
        responses.add(
            responses.POST, settings.AI_GATEWAY_URL, json=gateway_reply("recovered"), status=200
        )

        assert AIGateway().generate("Say hello") == "recovered"

        gemini_calls = [c for c in responses.calls if "generativelanguage" in c.request.url]
        assert len(gemini_calls) == settings.AI_MAX_ATTEMPTS
        assert no_backoff.call_args_list == [call(2), call(4)]

    @responses.activate
    def test_credits_exhausted_is_not_retried(self):
        responses.add(responses.POST, gemini_url(), status=500)
        responses.add(responses.POST, settings.AI_GATEWAY_URL, status=402)

        with pytest.raises(AICreditsExhaustedError):
            AIGateway().generate("Say hello")

        gateway_calls = [c for c in responses.calls if c.request.url == settings.AI_GATEWAY_URL]
        assert len(gateway_calls) == 1

    @override_settings(GEMINI_API_KEY="", AI_GATEWAY_API_KEY="")
    def test_no_provider_configured(self):
        with pytest.raises(AIProviderError, match="No AI provider"):
            AIGateway().generate("Say hello")

    @responses.activate
    def test_images_sent_inline(self):
        responses.add(responses.POST, gemini_url(), json=gemini_reply("{}"), status=200)

        AIGateway().generate("Read this", images=["data:image/png;base64,iVBORw0KGgo="])

        body = json.loads(responses.calls[0].request.body)
        parts = body["contents"][0]["parts"]
        assert parts[1] == {"inlineData": {"mimeType": "image/png", "data": "iVBORw0KGgo="}}


class StubGateway:
    """Returns a canned reply and remembers the prompt."""

    def __init__(self, reply):
        self.reply = reply if isinstance(reply, str) else json.dumps(reply)
        self.prompts = []

    def generate(self, prompt, system_prompt="", images=None):
        self.prompts.append((prompt, system_prompt, images))
        return self.reply


class TestScanInvoice:
    def test_items_cleaned(self):
        gateway = StubGateway(
            {
                "items": [
                    {"productName": "Amoxil 500", "quantity": "0", "expiryDate": "06/2027"},
                    {"productName": "Panadol", "quantity": 24, "expiryDate": "2026-12-31"},
                    "garbage",
                ],
                "supplierName": "Emzor",
            }
        )

        result, parsed = scan_invoice(["https://example.com/invoice.jpg"], gateway=gateway)

        assert parsed is True
        assert result["supplierName"] == "Emzor"
        assert result["items"] == [
            {"productName": "Amoxil 500", "quantity": 1, "expiryDate": "2027-06-01"},
            {"productName": "Panadol", "quantity": 24, "expiryDate": "2026-12-31"},
        ]
        _prompt, system_prompt, images = gateway.prompts[0]
        assert "B/N" in system_prompt
        assert images == ["https://example.com/invoice.jpg"]

    def test_unparseable_output(self):
        result, parsed = scan_invoice(["x"], gateway=StubGateway("I could not read this."))

        assert parsed is False
        assert result["items"] == []
        assert "error" in result


@pytest.mark.django_db
class TestScanQuota:
    def test_starter_limit(self, pharmacy):
        pharmacy.activate_subscription(plans.STARTER)

        usage = quota.get_scan_usage(pharmacy)

        assert usage == {"used": 0, "limit": 5, "remaining": 5, "is_unlimited": False}

    def test_pro_is_unlimited(self, pharmacy):
        assert quota.get_scan_usage(pharmacy)["is_unlimited"] is True

    def test_counter_resets_in_new_month(self, pharmacy):
        pharmacy.ai_scans_used = 4
        pharmacy.ai_scans_reset_at = datetime(2026, 1, 15, tzinfo=dt_timezone.utc)
        pharmacy.save()

        quota.reset_if_new_month(pharmacy, now=datetime(2026, 2, 2, tzinfo=dt_timezone.utc))

        assert pharmacy.ai_scans_used == 0

    def test_counter_kept_within_month(self, pharmacy):
        pharmacy.ai_scans_used = 4
        pharmacy.ai_scans_reset_at = datetime(2026, 2, 1, 8, tzinfo=dt_timezone.utc)
        pharmacy.save()

        quota.reset_if_new_month(pharmacy, now=datetime(2026, 2, 20, tzinfo=dt_timezone.utc))

        assert pharmacy.ai_scans_used == 4

    def test_limit_reached(self, pharmacy):
        pharmacy.subscription_plan = plans.STARTER
        quota.get_scan_usage(pharmacy)
        for _ in range(5):
            quota.increment_scan_count(pharmacy)

        assert quota.is_limit_reached(pharmacy) is True

    def test_monthly_reset_task(self, pharmacy, other_pharmacy):
        quota.get_scan_usage(pharmacy)
        quota.increment_scan_count(pharmacy)

        assert reset_monthly_ai_scans() == "Reset AI scan counters for 2 pharmacies"
        pharmacy.refresh_from_db()
        assert pharmacy.ai_scans_used == 0


@pytest.mark.django_db
class TestScanInvoiceAPI:
    @responses.activate
    def test_successful_scan_counts(self, owner_client, pharmacy):
        responses.add(
            responses.POST,
            gemini_url(),
            json=gemini_reply({"items": [{"productName": "Panadol", "quantity": 2}]}),
            status=200,
        )

        response = owner_client.post(
            reverse("ai:scan_invoice"),
            {"image_url": "https://example.com/invoice.jpg"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["items"][0]["productName"] == "Panadol"
        assert response.json()["usage"]["used"] == 1

    @responses.activate
    def test_unparseable_scan_not_counted(self, owner_client, pharmacy):
        responses.add(responses.POST, gemini_url(), json=gemini_reply("no idea"), status=200)

        response = owner_client.post(
            reverse("ai:scan_invoice"), {"images": ["data:image/jpeg;base64,AAAA"]}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["items"] == []
        assert response.json()["usage"]["used"] == 0

    def test_image_required(self, owner_client):
        response = owner_client.post(reverse("ai:scan_invoice"), {"images": []}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_quota_exhausted(self, owner_client, pharmacy):
        quota.get_scan_usage(pharmacy)
        pharmacy.ai_scans_used = plans.UNLIMITED_AI_SCANS
        pharmacy.save(update_fields=["ai_scans_used"])

        response = owner_client.post(
            reverse("ai:scan_invoice"), {"image_url": "https://example.com/i.jpg"}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["usage"]["remaining"] == 0

    def test_starter_plan_blocked(self, owner_client, pharmacy):
        pharmacy.activate_subscription(plans.STARTER)

        response = owner_client.post(
            reverse("ai:scan_invoice"), {"image_url": "https://example.com/i.jpg"}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    @responses.activate
    def test_rate_limit_maps_to_429(self, owner_client):
        responses.add(responses.POST, gemini_url(), status=429)
        responses.add(responses.POST, settings.AI_GATEWAY_URL, status=429)

        response = owner_client.post(
            reverse("ai:scan_invoice"), {"image_url": "https://example.com/i.jpg"}, format="json"
        )

        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS

    @responses.activate
    def test_credits_exhausted_maps_to_402(self, owner_client):
        responses.add(responses.POST, gemini_url(), status=402)
        responses.add(responses.POST, settings.AI_GATEWAY_URL, status=402)

        response = owner_client.post(
            reverse("ai:scan_invoice"), {"image_url": "https://example.com/i.jpg"}, format="json"
        )

        assert response.status_code == status.HTTP_402_PAYMENT_REQUIRED

    def test_scan_usage_endpoint(self, staff_client):
        response = staff_client.get(reverse("ai:scan_usage"))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["is_unlimited"] is True


@pytest.mark.django_db
class TestSmartUpsell:
    def test_suggestions_limited_to_candidates(self, pharmacy, make_medication):
        amoxil = make_medication(name="Amoxicillin 500mg", category="Antibiotics")
        probiotic = make_medication(name="Probiotic Caps", category="Supplements")
        vitamin_c = make_medication(name="Vitamin C 1000mg", category="Supplements")
        make_medication(name="Out Of Stock Syrup", current_stock=0)
        gateway = StubGateway(
            {
                "suggestions": [
                    {"product_id": str(probiotic.id), "reason": "Gut health", "confidence": 0.93},
                    {"product_id": str(amoxil.id), "reason": "Already in cart", "confidence": 0.9},
                    {"product_id": "not-a-product", "reason": "Made up", "confidence": 0.8},
                    {"product_id": str(vitamin_c.id), "reason": "Immunity", "confidence": "0.75"},
                ]
            }
        )

        suggestions = suggest_upsells(pharmacy, [amoxil.id], gateway=gateway)

        assert [s["product_name"] for s in suggestions] == ["Probiotic Caps", "Vitamin C 1000mg"]
        assert suggestions[1]["confidence"] == 0.75
        prompt = gateway.prompts[0][0]
        assert "Out Of Stock Syrup" not in prompt
        assert f"ID: {probiotic.id}" in prompt

    def test_empty_cart(self, pharmacy):
        gateway = StubGateway({"suggestions": []})

        assert suggest_upsells(pharmacy, [], gateway=gateway) == []
        assert gateway.prompts == []

    def test_at_most_three(self, pharmacy, make_medication):
        cart = make_medication(name="Cart Item")
        others = [make_medication(name=f"Other {i}") for i in range(5)]
        gateway = StubGateway(
            {"suggestions": [{"product_id": str(m.id), "confidence": 0.8} for m in others]}
        )

        assert len(suggest_upsells(pharmacy, [cart.id], gateway=gateway)) == 3

    def test_events_and_summary(self, pharmacy, owner, make_medication):
        probiotic = make_medication(name="Probiotic Caps")
        shown = [
            {"product_id": probiotic.id, "product_name": "Probiotic Caps", "reason": "Gut"},
            {"product_id": "0" * 32, "product_name": "Deleted Product", "reason": ""},
        ]
        record_upsell_events(pharmacy, owner, shown, UpsellEvent.SHOWN)
        record_upsell_events(pharmacy, owner, shown[:1], UpsellEvent.ACCEPTED)

        summary = get_upsell_summary(pharmacy)

        assert summary["shown"] == 2
        assert summary["accepted"] == 1
        assert summary["acceptance_rate"] == 50.0
        assert summary["top_products"] == [{"product_name": "Probiotic Caps", "accepted": 1}]
        assert UpsellEvent.objects.filter(medication__isnull=True).count() == 1

    def test_upsell_endpoint(self, owner_client, make_medication):
        cart = make_medication(name="Ibuprofen 400mg")
        antacid = make_medication(name="Antacid Suspension")
        with patch(
            "apps.ai.services.AIGateway.generate",
            return_value=json.dumps(
                {"suggestions": [{"product_id": str(antacid.id), "reason": "Stomach"}]}
            ),
        ):
            response = owner_client.post(
                reverse("ai:smart_upsell"), {"cart_item_ids": [str(cart.id)]}, format="json"
            )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["suggestions"][0]["product_name"] == "Antacid Suspension"

    def test_events_endpoint(self, staff_client, make_medication):
        product = make_medication(name="Probiotic Caps")

        response = staff_client.post(
            reverse("ai:upsell_events"),
            {
                "event_type": "accepted",
                "suggestions": [{"product_id": str(product.id), "product_name": product.name}],
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json() == {"recorded": 1}

    def test_analytics_needs_analytics_permission(self, staff_client):
        response = staff_client.get(reverse("ai:upsell_analytics"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_analytics_for_senior_staff(self, staff_client, staff_user):
        apply_role_template(staff_user, "senior_staff")

        response = staff_client.get(reverse("ai:upsell_analytics"))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["shown"] == 0

    def test_analytics_bad_days(self, owner_client):
        response = owner_client.get(reverse("ai:upsell_analytics"), {"days": "month"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "days" in response.json()

    def test_analytics_window(self, owner_client, pharmacy, owner):
        record_upsell_events(
            pharmacy, owner, [{"product_id": "0" * 32, "product_name": "Old"}], UpsellEvent.SHOWN
        )
        UpsellEvent.objects.update(created_at=timezone.now() - timedelta(days=45))

        response = owner_client.get(reverse("ai:upsell_analytics"), {"days": 30})

        assert response.json()["shown"] == 0
        assert response.json()["acceptance_rate"] == 0.0


class TestDrugInteractions:
    def test_fewer_than_two(self):
        gateway = StubGateway({"interactions": []})

        assert check_drug_interactions(["Warfarin"], gateway=gateway) == {
            "interactions": [],
            "has_warnings": False,
        }
        assert gateway.prompts == []

    def test_too_many(self):
        with pytest.raises(ValueError, match="Maximum allowed: 50"):
            check_drug_interactions([f"Drug {i}" for i in range(51)], gateway=StubGateway("{}"))

    def test_warnings_flagged(self):
        gateway = StubGateway(
            {
                "interactions": [
                    {
                        "drugs": ["Warfarin", "Aspirin"],
                        "severity": "HIGH",
                        "description": "Bleeding risk",
                        "recommendation": "Avoid combination",
                    }
                ]
            }
        )

        result = check_drug_interactions(
            [{"name": "Warfarin"}, {"name": "Aspirin"}, {"name": " "}], gateway=gateway
        )

        assert result["has_warnings"] is True
        assert result["interactions"][0]["severity"] == "high"
        assert "Warfarin, Aspirin" in gateway.prompts[0][0]

    def test_moderate_only_is_not_a_warning(self):
        gateway = StubGateway({"interactions": [{"drugs": ["A", "B"], "severity": "moderate"}]})

        assert check_drug_interactions(["A", "B"], gateway=gateway)["has_warnings"] is False


@pytest.mark.django_db
class TestDrugInteractionAPI:
    def test_too_many_returns_400(self, owner_client):
        response = owner_client.post(
            reverse("ai:drug_interactions"),
            {"medications": [f"Drug {i}" for i in range(51)]},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @responses.activate
    def test_interactions_endpoint(self, owner_client):
        responses.add(
            responses.POST,
            gemini_url(),
            json=gemini_reply(
                "```json\n"
                + json.dumps({"interactions": [{"drugs": ["A", "B"], "severity": "severe"}]})
                + "\n```"
            ),
            status=200,
        )

        response = owner_client.post(
            reverse("ai:drug_interactions"), {"medications": ["A", "B"]}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["has_warnings"] is True

    @responses.activate
    def test_provider_outage_maps_to_502(self, owner_client):
        responses.add(responses.POST, gemini_url(), status=500)
        responses.add(responses.POST, settings.AI_GATEWAY_URL, status=500)

        response = owner_client.post(
            reverse("ai:drug_interactions"), {"medications": ["A", "B"]}, format="json"
        )

        assert response.status_code == status.HTTP_502_BAD_GATEWAY


@pytest.mark.django_db
class TestInventoryInsights:
    def test_prompt_carries_inventory_figures(self, pharmacy, make_medication):
        today = timezone.localdate()
        make_medication(name="Expired Syrup", expiry_date=today - timedelta(days=3))
        make_medication(name="Amoxicillin 500mg", expiry_date=today + timedelta(days=10))
        make_medication(name="Vitamin C", current_stock=2, reorder_level=10)
        gateway = StubGateway(
            {
                "insights": [
                    {
                        "id": "urgent-1",
                        "type": "warning",
                        "message": "Remove Expired Syrup from the shelf.",
                        "action": "Quarantine it",
                        "impact": "₦8,000",
                        "category": "urgent",
                    },
                    {"type": "made-up", "message": "Reorder Vitamin C.", "category": "reorder"},
                    {"type": "info", "message": ""},
                    "garbage",
                ]
            }
        )

        result = generate_inventory_insights(pharmacy, gateway=gateway, today=today)

        assert [i["message"] for i in result["insights"]] == [
            "Remove Expired Syrup from the shelf.",
            "Reorder Vitamin C.",
        ]
        assert result["insights"][1]["type"] == "info"
        assert result["insights"][1]["category"] == "reorder"
        assert result["metrics"]["expired"] == 1
        assert result["metrics"]["expiring_soon"] == 1
        assert result["metrics"]["low_stock"] == 1

        prompt, system_prompt, _images = gateway.prompts[0]
        assert "Expired items: 1" in system_prompt
        assert "Low stock items: 1" in system_prompt
        assert "₦" in system_prompt
        assert "Amoxicillin 500mg" in prompt

    def test_at_most_six(self, pharmacy, make_medication):
        make_medication()
        gateway = StubGateway({"insights": [{"message": f"Insight {i}"} for i in range(9)]})

        assert len(generate_inventory_insights(pharmacy, gateway=gateway)["insights"]) == 6

    def test_empty_inventory_skips_model(self, pharmacy):
        gateway = StubGateway({"insights": [{"message": "unused"}]})

        result = generate_inventory_insights(pharmacy, gateway=gateway)

        assert result["insights"] == []
        assert gateway.prompts == []

    def test_unparseable_output(self, pharmacy, make_medication):
        make_medication()

        result = generate_inventory_insights(pharmacy, gateway=StubGateway("no insights today"))

        assert result["insights"] == []
        assert result["metrics"]["total_skus"] == 1

    @responses.activate
    def test_insights_endpoint(self, owner_client, make_medication):
        make_medication()
        responses.add(
            responses.POST,
            gemini_url(),
            json=gemini_reply({"insights": [{"type": "info", "message": "Stock is healthy."}]}),
            status=200,
        )

        response = owner_client.get(reverse("ai:insights"))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["insights"][0]["message"] == "Stock is healthy."
        assert response.json()["metrics"]["total_value"] == "12000.00"

    def test_insights_need_dashboard_permission(self, staff_client):
        response = staff_client.get(reverse("ai:insights"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_insights_for_inventory_manager(self, staff_client, staff_user):
        apply_role_template(staff_user, "inventory_manager")

        response = staff_client.get(reverse("ai:insights"))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["insights"] == []

    def test_insights_need_ai_plan(self, owner_client, pharmacy):
        pharmacy.activate_subscription(plans.STARTER)

        response = owner_client.get(reverse("ai:insights"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_insights_bad_branch(self, owner_client):
        response = owner_client.get(reverse("ai:insights"), {"branch": "main"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestAISearch:
    def test_low_stock_terms(self, pharmacy, make_medication):
        make_medication(name="Vitamin C", current_stock=3, reorder_level=10)
        make_medication(name="Paracetamol 500mg")
        gateway = StubGateway({"searchTerms": "low stock", "interpretation": "Items running out"})

        result = ai_search(pharmacy, "  what is running out?\x07 ", gateway=gateway)

        assert result["query"] == "what is running out?"
        assert result["interpretation"] == "Items running out"
        assert [m.name for m in result["results"]] == ["Vitamin C"]

    def test_expired_terms(self, pharmacy, make_medication):
        make_medication(name="Old Syrup", expiry_date=timezone.localdate() - timedelta(days=1))
        make_medication(name="Fresh Syrup")

        gateway = StubGateway({"searchTerms": "expired"})

        result = ai_search(pharmacy, "expired medicines", gateway=gateway)

        assert [m.name for m in result["results"]] == ["Old Syrup"]

    def test_word_terms_match_name_or_category(self, pharmacy, make_medication):
        make_medication(name="Ibuprofen 400mg", category="Analgesics")
        make_medication(name="Amoxicillin 500mg", category="Antibiotics")
        make_medication(name="Loratadine", category="Antihistamines")

        gateway = StubGateway({"searchTerms": "Ibuprofen Antibiotics"})

        result = ai_search(pharmacy, "pain relievers", gateway=gateway)

        assert [m.name for m in result["results"]] == ["Amoxicillin 500mg", "Ibuprofen 400mg"]

    def test_unparseable_output_falls_back_to_name_search(self, pharmacy, make_medication):
        make_medication(name="Loratadine")
        make_medication(name="Paracetamol 500mg")

        result = ai_search(pharmacy, "lorat", gateway=StubGateway("hmm"))

        assert result["search_terms"] == "lorat"
        assert [m.name for m in result["results"]] == ["Loratadine"]

    def test_empty_query(self, pharmacy):
        with pytest.raises(ValueError, match="empty"):
            ai_search(pharmacy, " \x00 ", gateway=StubGateway("{}"))

    def test_search_endpoint(self, owner_client, make_medication):
        make_medication(name="Vitamin C", current_stock=0)
        with patch(
            "apps.ai.services.AIGateway.generate",
            return_value=json.dumps({"searchTerms": "low stock", "interpretation": "Low"}),
        ):
            response = owner_client.post(
                reverse("ai:search"), {"query": "what's running out"}, format="json"
            )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["results"][0]["name"] == "Vitamin C"

    def test_search_query_too_long(self, owner_client):
        response = owner_client.post(reverse("ai:search"), {"query": "x" * 501}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
