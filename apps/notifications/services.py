"""
Notification services.

This module provides in-app notifications, alert delivery over SMS and
WhatsApp through the Termii API, and the daily stock alert digest.
"""

import logging
from datetime import timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from django.conf import settings
from django.db.models import Q
from django.utils import timezone

import requests

from apps.core.models import Pharmacy
from apps.inventory.models import Medication

from .models import Notification, SentAlert

logger = logging.getLogger(__name__)

SMS_MAX_LENGTH = 900
DIGEST_PREVIEW_ITEMS = 3
CRITICAL_EXPIRY_DAYS = 7


class SMSDeliveryError(Exception):
    """Raised when Termii rejects or fails to accept a message."""

    pass


# In-app notifications


def create_notification(
    pharmacy: Pharmacy,
    title: str,
    message: str,
    user=None,
    notification_type: str = Notification.INFO,
    priority: str = Notification.PRIORITY_MEDIUM,
    link: str = "",
    metadata: Optional[Dict] = None,
) -> Notification:
    """
    Create an in-app notification.

    Example:
        >>> create_notification(
        ...     pharmacy,
        ...     title="3 items low on stock",
        ...     message="Reorder soon to avoid stockouts",
        ...     notification_type=Notification.WARNING,
        ...     link="/inventory",
        ... )
    """
    notification = Notification.objects.create(
        pharmacy=pharmacy,
        user=user,
        title=title,
        message=message,
        notification_type=notification_type,
        priority=priority,
        link=link,
        metadata=metadata or {},
    )

    logger.info(
        f"Created notification '{title}' for "
        f"{user.username if user else 'all staff'} of pharmacy {pharmacy.id}"
    )
    return notification


def get_user_notifications(user, unread_only: bool = False, notification_type: str = None):
    """A user's own notifications plus the pharmacy-wide ones."""
    queryset = Notification.objects.filter(pharmacy=user.pharmacy).filter(
        Q(user=user) | Q(user__isnull=True)
    )
    if unread_only:
        queryset = queryset.filter(is_read=False)
    if notification_type:
        queryset = queryset.filter(notification_type=notification_type)
    return queryset


def get_unread_count(user) -> int:
    return get_user_notifications(user, unread_only=True).count()


def mark_notifications_as_read(user, notification_ids: Optional[List] = None) -> int:
    """
    Mark notifications as read.

    Args:
        user: User whose notifications to mark
        notification_ids: Specific ids to mark, or None for all unread

    Returns:
        Number of notifications marked as read
    """
    queryset = get_user_notifications(user, unread_only=True)
    if notification_ids is not None:
        queryset = queryset.filter(id__in=notification_ids)

    count = queryset.update(is_read=True, read_at=timezone.now())
    logger.info(f"Marked {count} notifications as read for user {user.username}")
    return count


# SMS and WhatsApp delivery


def normalize_phone(phone: str) -> str:
    """
    Normalise a Nigerian phone number for Termii.

    Whitespace and a leading + are removed, and a local leading 0 becomes 234.
    """
    formatted = "".join((phone or "").split()).lstrip("+")
    if formatted.startswith("0"):
        formatted = "234" + formatted[1:]
    return formatted


def sender_id_for(pharmacy: Pharmacy) -> str:
    return getattr(settings, "TERMII_SENDER_ID", "") or pharmacy.name.replace(" ", "")[:11]


def _post_termii(path: str, payload: Dict) -> Dict:
    url = f"{settings.TERMII_BASE_URL}{path}"
    try:
        response = requests.post(
            url,
            json={"api_key": settings.TERMII_API_KEY, **payload},
            timeout=30,
        )
    except requests.RequestException as e:
        raise SMSDeliveryError(f"Termii request failed: {e}")

    try:
        data = response.json()
    except ValueError:
        data = {}

    if not response.ok or (data.get("code") and data.get("code") != "ok"):
        raise SMSDeliveryError(f"Termii returned HTTP {response.status_code}: {data}")
    return data


def send_whatsapp(to: str, message: str, sender_id: str) -> Dict:
    return _post_termii(
        "/send",
        {
            "to": to,
            "from": sender_id,
            "sms": message,
            "type": "plain",
            "channel": "whatsapp",
            "device_id": settings.TERMII_WHATSAPP_DEVICE_ID,
        },
    )


def send_sms(to: str, message: str, sender_id: str) -> Dict:
    return _post_termii(
        "/sms/send",
        {
            "to": to,
            "from": sender_id,
            "sms": message[:SMS_MAX_LENGTH],
            "type": "plain",
            "channel": "generic",
        },
    )


def send_alert_message(
    pharmacy: Pharmacy,
    phone: str,
    message: str,
    alert_type: str = SentAlert.DAILY_DIGEST,
    items_included: Optional[List[str]] = None,
) -> SentAlert:
    """
    Deliver an alert, trying WhatsApp first when the pharmacy prefers it and a
    device is configured, then SMS.

    Every attempt that reaches a final outcome is logged as a SentAlert.

    Raises:
        SMSDeliveryError: If no channel accepted the message
    """
    if not getattr(settings, "TERMII_API_KEY", ""):
        raise SMSDeliveryError("TERMII_API_KEY is not configured")

    to = normalize_phone(phone)
    sender_id = sender_id_for(pharmacy)
    items_included = items_included or []

    if pharmacy.alert_channel == Pharmacy.CHANNEL_WHATSAPP and getattr(
        settings, "TERMII_WHATSAPP_DEVICE_ID", ""
    ):
        try:
            data = send_whatsapp(to, message, sender_id)
            logger.info(f"WhatsApp alert sent to {to} for pharmacy {pharmacy.id}")
            return SentAlert.objects.create(
                pharmacy=pharmacy,
                alert_type=alert_type,
                channel=SentAlert.CHANNEL_WHATSAPP,
                recipient_phone=to,
                message=message,
                provider_message_id=str(data.get("message_id", "")),
                items_included=items_included,
            )
        except SMSDeliveryError as e:
            logger.warning(f"WhatsApp alert failed for pharmacy {pharmacy.id}, trying SMS: {e}")

    sms_message = message[:SMS_MAX_LENGTH]
    try:
        data = send_sms(to, sms_message, sender_id)
    except SMSDeliveryError as e:
        SentAlert.objects.create(
            pharmacy=pharmacy,
            alert_type=alert_type,
            channel=SentAlert.CHANNEL_SMS,
            recipient_phone=to,
            message=sms_message,
            status=SentAlert.STATUS_FAILED,
            items_included=items_included,
            error_message=str(e),
        )
        logger.error(f"SMS alert failed for pharmacy {pharmacy.id}: {e}")
        raise

    logger.info(f"SMS alert sent to {to} for pharmacy {pharmacy.id}")
    return SentAlert.objects.create(
        pharmacy=pharmacy,
        alert_type=alert_type,
        channel=SentAlert.CHANNEL_SMS,
        recipient_phone=to,
        message=sms_message,
        provider_message_id=str(data.get("message_id", "")),
        items_included=items_included,
    )


# Manual alerts

ALERT_HEADINGS = {
    "low_stock": "LOW STOCK ALERT",
    "expiring": "EXPIRY WARNING",
    "expired": "EXPIRED PRODUCT",
}


def format_manual_alert(kind: str, message: str) -> str:
    heading = ALERT_HEADINGS.get(kind, "PHARMATRACK ALERT")
    return f"{heading}\n\n{message}"


# Daily digest


def format_naira(amount) -> str:
    return f"₦{Decimal(amount):,.2f}"


def collect_digest_alerts(pharmacy: Pharmacy, now=None) -> Dict:
    """
    Medications that belong in today's digest.

    Expiring: shelved, in stock, expiring within EXPIRY_WARNING_DAYS.
    Low stock: shelved, at or below the reorder level.
    Anything notified within ALERT_RENOTIFY_DAYS is left out unless it is out of stock.
    """
    now = now or timezone.now()
    today = timezone.localdate(now)
    renotify_cutoff = now - timedelta(days=settings.ALERT_RENOTIFY_DAYS)
    not_recently_notified = Q(last_notified_at__isnull=True) | Q(
        last_notified_at__lt=renotify_cutoff
    )

    shelved = Medication.objects.filter(pharmacy=pharmacy, is_shelved=True)

    expiring = list(
        shelved.filter(
            not_recently_notified,
            current_stock__gt=0,
            expiry_date__lte=today + timedelta(days=settings.EXPIRY_WARNING_DAYS),
        ).order_by("expiry_date", "name")
    )

    low_stock = [
        med
        for med in shelved.filter(not_recently_notified | Q(current_stock=0)).order_by(
            "current_stock", "name"
        )
        if med.is_low_stock()
    ]

    value_at_risk = sum((med.calculate_stock_value() for med in expiring), Decimal("0.00"))
    critical_expiry = [
        med for med in expiring if (med.expiry_date - today).days <= CRITICAL_EXPIRY_DAYS
    ]
    out_of_stock = [med for med in low_stock if med.is_out_of_stock()]

    return {
        "today": today,
        "expiring": expiring,
        "low_stock": low_stock,
        "value_at_risk": value_at_risk,
        "critical_expiry_count": len(critical_expiry),
        "out_of_stock_count": len(out_of_stock),
    }


def build_digest_message(pharmacy: Pharmacy, alerts: Dict) -> str:
    today = alerts["today"]
    expiring = alerts["expiring"]
    low_stock = alerts["low_stock"]

    lines = [
        f"*{pharmacy.name} Daily Alert Digest*",
        "",
        f"Date: {today:%A, %d %b %Y}",
        "",
    ]

    if expiring:
        lines.append(f"*{len(expiring)} Items Expiring Soon*")
        for med in expiring[:DIGEST_PREVIEW_ITEMS]:
            days_left = (med.expiry_date - today).days
            when = "EXPIRED" if days_left <= 0 else f"{days_left} days"
            lines.append(f"- {med.name}: {when} ({format_naira(med.calculate_stock_value())})")
        if len(expiring) > DIGEST_PREVIEW_ITEMS:
            lines.append(f"  ...and {len(expiring) - DIGEST_PREVIEW_ITEMS} more")
        lines.append("")

    if low_stock:
        lines.append(f"*{len(low_stock)} Items Low on Stock*")
        for med in low_stock[:DIGEST_PREVIEW_ITEMS]:
            lines.append(f"- {med.name}: {med.current_stock} units left")
        if len(low_stock) > DIGEST_PREVIEW_ITEMS:
            lines.append(f"  ...and {len(low_stock) - DIGEST_PREVIEW_ITEMS} more")
        lines.append("")

    lines.append(f"*Total Value at Risk:* {format_naira(alerts['value_at_risk'])}")
    lines.append("")

    if alerts["critical_expiry_count"] or alerts["out_of_stock_count"]:
        lines.append(
            f"*URGENT:* {alerts['critical_expiry_count']} items expire this week, "
            f"{alerts['out_of_stock_count']} out of stock!"
        )
        lines.append("")

    lines.append("Discount expiring items and reorder low stock to protect your profits.")
    lines.append("Open PharmaTrack to take action.")
    return "\n".join(lines)


def create_digest_notifications(pharmacy: Pharmacy, alerts: Dict) -> List[Notification]:
    notifications = []
    expiring = alerts["expiring"]
    low_stock = alerts["low_stock"]

    if expiring:
        critical = alerts["critical_expiry_count"] > 0
        notifications.append(
            create_notification(
                pharmacy,
                title=f"{len(expiring)} items expiring soon",
                message=f"Total value at risk: {format_naira(alerts['value_at_risk'])}",
                notification_type=Notification.DANGER if critical else Notification.WARNING,
                priority=Notification.PRIORITY_HIGH if critical else Notification.PRIORITY_MEDIUM,
                link="/inventory",
                metadata={
                    "expiry_count": len(expiring),
                    "value": str(alerts["value_at_risk"]),
                },
            )
        )

    if low_stock:
        out = alerts["out_of_stock_count"]
        notifications.append(
            create_notification(
                pharmacy,
                title=f"{len(low_stock)} items low on stock",
                message=(
                    f"{out} items are completely out!" if out else "Reorder soon to avoid stockouts"
                ),
                notification_type=Notification.DANGER if out else Notification.WARNING,
                priority=Notification.PRIORITY_CRITICAL if out else Notification.PRIORITY_MEDIUM,
                link="/inventory",
                metadata={"low_stock_count": len(low_stock), "out_of_stock_count": out},
            )
        )

    return notifications


def send_pharmacy_digest(pharmacy: Pharmacy, now=None) -> Dict:
    """
    Build and deliver one pharmacy's digest.

    Returns:
        dict with the pharmacy name, alert count, whether a message was sent
        and any error
    """
    now = now or timezone.now()
    alerts = collect_digest_alerts(pharmacy, now)
    expiring = alerts["expiring"]
    low_stock = alerts["low_stock"]
    total = len(expiring) + len(low_stock)
    result = {"pharmacy": pharmacy.name, "alerts": total, "sent": False}

    if total == 0:
        return result

    item_ids = list(dict.fromkeys(str(med.id) for med in expiring + low_stock))
    phone = pharmacy.alert_recipient_phone or pharmacy.phone

    if phone:
        message = build_digest_message(pharmacy, alerts)
        try:
            send_alert_message(pharmacy, phone, message, items_included=item_ids)
            result["sent"] = True
        except SMSDeliveryError as e:
            result["error"] = str(e)
    else:
        result["error"] = "No alert phone configured"

    Medication.objects.filter(id__in=item_ids).update(last_notified_at=now)
    create_digest_notifications(pharmacy, alerts)
    return result
