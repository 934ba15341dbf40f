"""
Plan feature gating extended with django-waffle kill switches.

A feature is available to a pharmacy when:
1. Its subscription plan includes the feature
2. The subscription is in a state that can access features
3. No platform-wide kill switch (waffle switch ``kill_<feature>``) is active
"""

import logging

from waffle import switch_is_active
from waffle.models import Switch

from apps.core import plans

logger = logging.getLogger(__name__)

KILL_SWITCH_PREFIX = "kill_"


def kill_switch_name(feature):
    return f"{KILL_SWITCH_PREFIX}{feature}"


def is_feature_killed(feature):
    """Check the emergency kill switch for a feature."""
    return switch_is_active(kill_switch_name(feature))


def is_feature_enabled(pharmacy, feature):
    """
    Check if a plan feature is usable by a pharmacy right now.

    Args:
        pharmacy: Pharmacy instance (None always yields False)
        feature: Feature key from ``apps.core.plans``
    """
    if pharmacy is None:
        return False

    if not plans.plan_has_feature(pharmacy.subscription_plan, feature):
        return False

    if not pharmacy.can_access_features():
        return False

    if is_feature_killed(feature):
        logger.warning(f"Feature {feature} blocked by kill switch for pharmacy {pharmacy.id}")
        return False

    return True


def get_enabled_features(pharmacy):
    """Map of every plan feature to its current availability."""
    return {feature: is_feature_enabled(pharmacy, feature) for feature in plans.ALL_FEATURES}


def emergency_disable_feature(feature, note=""):
    """Turn on the kill switch for a feature across all pharmacies."""
    switch, _created = Switch.objects.update_or_create(
        name=kill_switch_name(feature),
        defaults={"active": True, "note": note},
    )
    logger.warning(f"Kill switch enabled for feature {feature}: {note}")
    return switch


def restore_feature(feature):
    """Turn the kill switch for a feature back off."""
    switch = Switch.objects.filter(name=kill_switch_name(feature)).first()
    if switch is None or not switch.active:
        return False

    # save() flushes waffle's cached switch state
    switch.active = False
    switch.save()
    logger.info(f"Kill switch cleared for feature {feature}")
    return True
