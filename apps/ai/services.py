"""
AI-assisted pharmacy features.

- Invoice scanning: extract stock lines from a supplier invoice photo
- Smart upsell: suggest complementary products for the current cart
- Drug interaction check for a list of medications
- Inventory insights from expiry, stock and value figures
- Natural-language inventory search
"""

import json
import logging
import re
from datetime import timedelta

from django.conf import settings
from django.db.models import Count, F, Q
from django.utils import timezone

from apps.inventory.services import get_inventory_metrics, medications_for, search_medications

from .gateway import AIGateway, parse_json_response
from .models import UpsellEvent

logger = logging.getLogger(__name__)

MAX_UPSELL_CANDIDATES = 50
MAX_UPSELL_SUGGESTIONS = 3
MAX_INTERACTION_MEDICATIONS = 50
MAX_INSIGHT_MEDICATIONS = 500
INSIGHT_COUNT = 6
INSIGHT_TYPES = {"warning", "suggestion", "info"}
INSIGHT_CATEGORIES = {"urgent", "expiry", "reorder", "profit", "demand", "savings"}
MAX_SEARCH_QUERY_LENGTH = 500
MAX_SEARCH_RESULTS = 50
CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")
WARNING_SEVERITIES = {"high", "severe"}

# Column headings seen on Nigerian supplier invoices
KEYWORD_DICTIONARY = {
    "productName": [
        "Item", "Description", "Drug Name", "Product", "SKU Name", "Name", "Medicine", "Drug",
        "Medication",
    ],
    "purchasePrice": [
        "P.Price", "Cost", "Unit Cost", "Rate", "W-Sale", "Land Cost", "Cost Price", "Purchase",
        "Buying Price",
    ],
    "sellingPrice": [
        "S.Price", "Retail", "MSRP", "Unit Price", "Dispense Price", "Selling", "Sale Price",
        "Price",
    ],
    "batchNumber": [
        "BN", "B/N", "Batch", "Lot", "Lot No", "Control No", "Batch Number", "Batch No",
    ],
    "expiryDate": [
        "EXP", "Expiry", "Best Before", "Valid To", "E.Date", "Exp Date", "Expiry Date", "Expires",
    ],
    "manufacturingDate": [
        "MFG", "Mfg Date", "Manufacturing", "Prod Date", "Production Date", "Made",
    ],
    "quantity": [
        "Qty", "In Stock", "Balance", "SOH", "Count", "Quantity", "Units", "Pcs", "Pieces",
    ],
    "nafdacNumber": ["NAFDAC", "Reg No", "Registration", "NAFDAC No", "Reg Number"],
}

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
YEAR_RE = re.compile(r"20\d{2}")
MONTH_RE = re.compile(r"\b(0?[1-9]|1[0-2])\b")

SCAN_SYSTEM_PROMPT = """You are an expert at extracting product information from pharmaceutical \
invoices and receipts, especially Nigerian supplier invoices.

KEYWORD DICTIONARY - look for these terms anywhere on the page:
{keyword_hints}

Each horizontal row of the invoice table is usually one product. If you see a 4-digit year near \
a 2-digit month (05/2027, 2027-05) treat it as that row's expiry date. Convert all dates to \
YYYY-MM-DD.

For each item return productName, quantity (1 if unclear), unitPrice, sellingPrice, \
batchNumber, expiryDate, manufacturingDate and nafdacNumber (null when not visible).

Return ONLY a JSON object:
{{"items": [...], "invoiceTotal": number or null, "invoiceDate": "YYYY-MM-DD" or null, \
"supplierName": string or null}}

If you cannot identify any products, return {{"items": [], "error": "Could not extract products \
from image"}}"""

SCAN_USER_PROMPT = (
    "Extract all medication/product details from this invoice image. Use the keyword "
    "dictionary to find batch numbers, expiry dates and prices. Return only valid JSON."
)

UPSELL_SYSTEM_PROMPT = """You are a pharmacy sales assistant. Suggest complementary products \
for what is in the customer's cart.

Rules:
1. Only suggest products medically or commonly associated with the cart items
2. Suggest 2-3 products at most, each with a reason of 10 words or fewer
3. Confidence: 0.9+ for obvious pairs, 0.7-0.89 for common associations, lower for general \
wellness

Common associations: antibiotics with probiotics or vitamin C; pain relievers with antacids; \
cold and flu medicine with lozenges or vitamin C; allergy medicine with eye drops or nasal spray; \
diabetes supplies with wound care."""

INTERACTION_SYSTEM_PROMPT = """You are a pharmaceutical drug interaction checker. Identify \
clinically significant, well-documented interactions between the given medications. Do not \
report minor or theoretical interactions.

Return a JSON object:
{"interactions": [{"drugs": ["Drug A", "Drug B"], "severity": "low" | "moderate" | "high" | \
"severe", "description": "...", "recommendation": "..."}]}

If there are no significant interactions, return {"interactions": []}"""

INSIGHTS_SYSTEM_PROMPT = """You are a pharmacy business analyst. Analyse the inventory data and \
give {count} actionable insights, one for each category:

1. urgent (type "warning"): expired drugs and critical stockouts
2. expiry (type "suggestion"): discounts that recover value before items expire
3. reorder (type "suggestion"): which items to reorder first
4. profit (type "info"): margins and pricing
5. demand (type "info"): categories or items that need attention
6. savings (type "info"): amounts that can be saved or recovered

Current date: {today}

SUMMARY:
- Total inventory value: {currency}{total_value}
- Expired items: {expired}
- Expiring within {warning_days} days: {expiring_soon}
- Low stock items: {low_stock}

Name specific medications and amounts in {currency}. Every insight needs an action the \
pharmacist can take today.

Return ONLY a JSON object:
{{"insights": [{{"id": "...", "type": "warning" | "suggestion" | "info", "message": "...", \
"action": "...", "impact": "...", "category": "urgent" | "expiry" | "reorder" | "profit" | \
"demand" | "savings"}}]}}"""

SEARCH_SYSTEM_PROMPT = """You turn natural language pharmacy inventory questions into simple \
search terms.

Current date: {today}

Examples:
- "Show me low stock items" -> "low stock"
- "What's running out?" -> "low stock"
- "Expired medicines" -> "expired"
- "Which drugs expire next month?" -> "expiring"
- "Find all tablets" -> "Tablet"
- "Pain relievers" -> "Ibuprofen Paracetamol"

Return ONLY a JSON object:
{{"searchTerms": "...", "interpretation": "how you read the question"}}"""


# Invoice scanning


def keyword_hints():
    return "\n".join(
        f'{field}: look for "' + '", "'.join(words) + '"'
        for field, words in KEYWORD_DICTIONARY.items()
    )


def normalize_expiry(value):
    """
    Coerce an extracted expiry into YYYY-MM-DD.

    Anything that is not already ISO becomes the first of the month built from
    a 20xx year and a 1-12 month token, or None when either is missing.
    """
    if not value:
        return None
    value = str(value).strip()
    if ISO_DATE_RE.match(value):
        return value

    year = YEAR_RE.search(value)
    month = MONTH_RE.search(YEAR_RE.sub(" ", value))
    if year and month:
        return f"{year.group(0)}-{int(month.group(1)):02d}-01"
    return None


def normalize_quantity(value):
    try:
        quantity = int(float(value))
    except (TypeError, ValueError):
        return 1
    return quantity if quantity >= 1 else 1


def clean_scanned_items(result):
    items = result.get("items")
    if not isinstance(items, list):
        result["items"] = []
        return result

    cleaned = []
    for item in items:
        if not isinstance(item, dict):
            continue
        if "expiryDate" in item:
            item["expiryDate"] = normalize_expiry(item.get("expiryDate"))
        item["quantity"] = normalize_quantity(item.get("quantity"))
        cleaned.append(item)
    result["items"] = cleaned
    return result


def scan_invoice(images, gateway=None):
    """
    Extract stock lines from invoice images.

    Returns:
        (result, parsed): the extraction result and whether the model's output
        could be parsed. Unparseable output gives {"items": [], "error": ...}.
    """
    gateway = gateway or AIGateway()
    system_prompt = SCAN_SYSTEM_PROMPT.format(keyword_hints=keyword_hints())
    text = gateway.generate(SCAN_USER_PROMPT, system_prompt=system_prompt, images=images)

    try:
        result = parse_json_response(text)
    except ValueError as e:
        logger.warning(f"Could not parse invoice scan output: {e}")
        return (
            {
                "items": [],
                "error": "Could not parse invoice data. Please try with a clearer image.",
            },
            False,
        )

    result = clean_scanned_items(result)
    logger.info(f"Invoice scan extracted {len(result['items'])} items")
    return result, True


# Smart upsell


def get_upsell_candidates(pharmacy, cart_names, branch=None):
    """In-stock products whose name is not already in the cart."""
    excluded = {name.strip().lower() for name in cart_names}
    candidates = []
    queryset = medications_for(pharmacy, branch).filter(current_stock__gt=0).order_by("name")
    for medication in queryset:
        if medication.name.strip().lower() in excluded:
            continue
        candidates.append(medication)
        if len(candidates) >= MAX_UPSELL_CANDIDATES:
            break
    return candidates


def suggest_upsells(pharmacy, cart_item_ids, branch=None, gateway=None):
    """
    Suggest up to three complementary products for a cart.

    Suggestions naming a product outside the candidate list are dropped.
    """
    if not cart_item_ids:
        return []

    cart = list(medications_for(pharmacy, branch).filter(id__in=cart_item_ids))
    if not cart:
        return []

    candidates = get_upsell_candidates(pharmacy, [med.name for med in cart], branch)
    if not candidates:
        return []

    cart_lines = "\n".join(f"- {med.name} ({med.category or 'uncategorised'})" for med in cart)
    candidate_lines = "\n".join(
        f"- ID: {med.id} | {med.name} ({med.category or 'uncategorised'})" for med in candidates
    )
    prompt = (
        f"Customer's cart:\n{cart_lines}\n\n"
        f"Available products to suggest from:\n{candidate_lines}\n\n"
        "Suggest 2-3 complementary products from the available list only. Return a JSON "
        'object: {"suggestions": [{"product_id": "...", "product_name": "...", '
        '"reason": "...", "confidence": 0.8}]}'
    )

    gateway = gateway or AIGateway()
    text = gateway.generate(prompt, system_prompt=UPSELL_SYSTEM_PROMPT)
    try:
        result = parse_json_response(text)
    except ValueError as e:
        logger.warning(f"Could not parse upsell output: {e}")
        return []

    by_id = {str(med.id): med for med in candidates}
    suggestions = []
    for suggestion in result.get("suggestions") or []:
        if not isinstance(suggestion, dict):
            continue
        product = by_id.get(str(suggestion.get("product_id")))
        if product is None:
            continue
        try:
            confidence = float(suggestion.get("confidence", 0))
        except (TypeError, ValueError):
            confidence = 0.0
        suggestions.append(
            {
                "product_id": str(product.id),
                "product_name": product.name,
                "reason": str(suggestion.get("reason", ""))[:255],
                "confidence": round(confidence, 2),
            }
        )
        if len(suggestions) >= MAX_UPSELL_SUGGESTIONS:
            break
    return suggestions


def record_upsell_events(pharmacy, user, suggestions, event_type):
    """Store shown/accepted events for the suggestions the till reported."""
    known = {
        str(med_id)
        for med_id in medications_for(pharmacy)
        .filter(id__in=[s["product_id"] for s in suggestions])
        .values_list("id", flat=True)
    }
    events = [
        UpsellEvent(
            pharmacy=pharmacy,
            user=user,
            medication_id=s["product_id"] if str(s["product_id"]) in known else None,
            product_name=s.get("product_name", "")[:255],
            event_type=event_type,
            reason=s.get("reason", "")[:255],
            confidence=s.get("confidence"),
        )
        for s in suggestions
    ]
    return UpsellEvent.objects.bulk_create(events)


def get_upsell_summary(pharmacy, since=None):
    queryset = UpsellEvent.objects.filter(pharmacy=pharmacy)
    if since is not None:
        queryset = queryset.filter(created_at__gte=since)

    totals = queryset.aggregate(
        shown=Count("id", filter=Q(event_type=UpsellEvent.SHOWN)),
        accepted=Count("id", filter=Q(event_type=UpsellEvent.ACCEPTED)),
    )
    top_products = list(
        queryset.filter(event_type=UpsellEvent.ACCEPTED)
        .values("product_name")
        .annotate(accepted=Count("id"))
        .order_by("-accepted", "product_name")[:5]
    )
    shown = totals["shown"]
    return {
        "shown": shown,
        "accepted": totals["accepted"],
        "acceptance_rate": round(totals["accepted"] / shown * 100, 1) if shown else 0.0,
        "top_products": top_products,
    }


# Drug interactions


def medication_names(medications):
    names = []
    for medication in medications:
        name = medication.get("name") if isinstance(medication, dict) else medication
        if name and str(name).strip():
            names.append(str(name).strip())
    return names


def check_drug_interactions(medications, gateway=None):
    """
    Ask the model for clinically significant interactions.

    Raises:
        ValueError: If more than MAX_INTERACTION_MEDICATIONS are given
    """
    names = medication_names(medications)
    if len(names) < 2:
        return {"interactions": [], "has_warnings": False}
    if len(names) > MAX_INTERACTION_MEDICATIONS:
        raise ValueError(
            f"Too many medications. Maximum allowed: {MAX_INTERACTION_MEDICATIONS}"
        )

    gateway = gateway or AIGateway()
    text = gateway.generate(
        f"Check for drug interactions between these medications: {', '.join(names)}",
        system_prompt=INTERACTION_SYSTEM_PROMPT,
    )
    try:
        result = parse_json_response(text)
    except ValueError as e:
        logger.warning(f"Could not parse interaction output: {e}")
        return {"interactions": [], "has_warnings": False}

    interactions = []
    for interaction in result.get("interactions") or []:
        if not isinstance(interaction, dict):
            continue
        severity = str(interaction.get("severity", "")).lower()
        interactions.append(
            {
                "drugs": list(interaction.get("drugs") or []),
                "severity": severity,
                "description": interaction.get("description", ""),
                "recommendation": interaction.get("recommendation", ""),
            }
        )

    logger.info(
        f"Interaction check for {len(names)} medications found {len(interactions)} interactions"
    )
    return {
        "interactions": interactions,
        "has_warnings": any(i["severity"] in WARNING_SEVERITIES for i in interactions),
    }


# Inventory insights


def insight_rows(medications):
    return [
        {
            "name": med.name,
            "category": med.category,
            "stock": med.current_stock,
            "reorderLevel": med.reorder_level,
            "expiryDate": med.expiry_date.isoformat(),
            "costPrice": str(med.unit_price),
            "sellingPrice": str(med.get_price()),
        }
        for med in medications
    ]


def clean_insights(result):
    insights = []
    for index, insight in enumerate(result.get("insights") or []):
        if not isinstance(insight, dict) or not insight.get("message"):
            continue
        insight_type = str(insight.get("type", "")).lower()
        category = str(insight.get("category", "")).lower()
        insights.append(
            {
                "id": str(insight.get("id") or index + 1),
                "type": insight_type if insight_type in INSIGHT_TYPES else "info",
                "message": str(insight["message"]),
                "action": str(insight.get("action") or ""),
                "impact": str(insight.get("impact") or ""),
                "category": category if category in INSIGHT_CATEGORIES else "",
            }
        )
        if len(insights) >= INSIGHT_COUNT:
            break
    return insights


def generate_inventory_insights(pharmacy, branch=None, gateway=None, today=None):
    """
    Ask the model for six insights about the pharmacy's stock.

    The prompt carries the headline figures from get_inventory_metrics and
    the batches themselves, capped at MAX_INSIGHT_MEDICATIONS. An empty
    inventory returns no insights without calling the model.
    """
    today = today or timezone.localdate()
    metrics = get_inventory_metrics(pharmacy, branch=branch, today=today)
    if not metrics["total_skus"]:
        return {"insights": [], "metrics": metrics}

    medications = medications_for(pharmacy, branch).order_by("expiry_date", "name")[
        :MAX_INSIGHT_MEDICATIONS
    ]
    system_prompt = INSIGHTS_SYSTEM_PROMPT.format(
        count=INSIGHT_COUNT,
        today=today.isoformat(),
        currency=settings.CURRENCY_SYMBOL,
        total_value=f"{metrics['total_value']:,.2f}",
        expired=metrics["expired"],
        warning_days=settings.EXPIRY_WARNING_DAYS,
        expiring_soon=metrics["expiring_soon"],
        low_stock=metrics["low_stock"],
    )
    prompt = (
        f"Analyse this pharmacy inventory and give {INSIGHT_COUNT} actionable insights:\n\n"
        f"{json.dumps(insight_rows(medications), indent=2)}"
    )

    gateway = gateway or AIGateway()
    text = gateway.generate(prompt, system_prompt=system_prompt)
    try:
        result = parse_json_response(text)
    except ValueError as e:
        logger.warning(f"Could not parse insights output: {e}")
        return {"insights": [], "metrics": metrics}

    insights = clean_insights(result)
    logger.info(f"Generated {len(insights)} inventory insights for pharmacy {pharmacy.id}")
    return {"insights": insights, "metrics": metrics}


# Natural-language search


def clean_search_query(query):
    """
    Strip control characters and surrounding whitespace.

    Raises:
        ValueError: If the query is empty or longer than MAX_SEARCH_QUERY_LENGTH
    """
    query = CONTROL_CHARS_RE.sub("", query or "").strip()
    if not query:
        raise ValueError("query cannot be empty")
    if len(query) > MAX_SEARCH_QUERY_LENGTH:
        raise ValueError(f"query must be less than {MAX_SEARCH_QUERY_LENGTH} characters")
    return query


def filter_by_search_terms(queryset, terms, today=None):
    """
    Apply the model's search terms to a medication queryset.

    "low stock", "expired" and "expiring" select those batches; anything
    else matches any word against name, category or batch.
    """
    today = today or timezone.localdate()
    lowered = terms.lower()
    if "low stock" in lowered or "out of stock" in lowered:
        return queryset.filter(current_stock__lte=F("reorder_level"))
    if "expired" in lowered:
        return queryset.filter(expiry_date__lt=today)
    if "expiring" in lowered:
        soon = today + timedelta(days=settings.EXPIRY_WARNING_DAYS)
        return queryset.filter(expiry_date__gte=today, expiry_date__lte=soon)

    words = [word for word in re.split(r"[\s,]+", terms) if word]
    if not words:
        return queryset.none()
    condition = Q()
    for word in words:
        condition |= Q(category__icontains=word)
        condition |= Q(name__icontains=word)
    return search_medications(queryset, terms.strip()) | queryset.filter(condition)


def ai_search(pharmacy, query, branch=None, gateway=None, today=None):
    """
    Interpret a natural-language inventory question and run it.

    Falls back to a plain name search when the model output cannot be parsed.

    Raises:
        ValueError: If the query is empty or too long
    """
    query = clean_search_query(query)
    today = today or timezone.localdate()
    queryset = medications_for(pharmacy, branch)

    gateway = gateway or AIGateway()
    text = gateway.generate(
        f'Convert this pharmacy inventory query to search terms: "{query}"',
        system_prompt=SEARCH_SYSTEM_PROMPT.format(today=today.isoformat()),
    )
    try:
        result = parse_json_response(text)
    except ValueError as e:
        logger.warning(f"Could not parse search output: {e}")
        result = {}

    terms = result.get("searchTerms") or ""
    if isinstance(terms, list):
        terms = " ".join(str(term) for term in terms)
    terms = str(terms).strip()
    if terms:
        matches = filter_by_search_terms(queryset, terms, today=today)
    else:
        terms = query
        matches = search_medications(queryset, query)

    matches = matches.distinct().order_by("name", "expiry_date")[:MAX_SEARCH_RESULTS]
    return {
        "query": query,
        "search_terms": terms,
        "interpretation": str(result.get("interpretation") or ""),
        "results": list(matches),
    }
