"""
Offline Pro unlock.

The key check is a local pattern match only: there is no license server
and no purchase record behind it.
"""

import logging
import re

from config import DEFAULT_GST_RATES, LICENSE_KEY_PATTERN
from errors import InvalidLicenseKeyError, ProFeatureLockedError
from invoice_state import update_profile

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(LICENSE_KEY_PATTERN)


def _mask(key):
    key = str(key)
    return key[:4] + "*" * max(len(key) - 4, 0)


def is_valid_license_key(key) -> bool:
    return isinstance(key, str) and bool(_KEY_RE.fullmatch(key))


def unlock_pro(state, key):
    """Unlock Pro with a key, or raise InvalidLicenseKeyError leaving state as is."""
    if not is_valid_license_key(key):
        logger.info("Rejected license key %s", _mask(key))
        raise InvalidLicenseKeyError("Invalid key. Contact support.")
    state.pro_unlocked = True
    state.license_key = key
    logger.info("Pro unlocked")


def available_gst_rates(state):
    if state.custom_rates:
        return list(state.custom_rates)
    return list(DEFAULT_GST_RATES)


def set_custom_rates(state, rates):
    """Replace the selectable GST rates (Pro). Pass None to go back to defaults."""
    if not state.pro_unlocked:
        raise ProFeatureLockedError("Custom GST rates are a Pro feature")
    if rates is None:
        state.custom_rates = None
        return
    cleaned = []
    for r in rates:
        r = float(r)
        if not 0 <= r <= 100:
            raise ValueError(f"GST rate out of range: {r}")
        cleaned.append(int(r) if r.is_integer() else r)
    state.custom_rates = sorted(set(cleaned)) or None


def set_logo(state, logo):
    """Set the business logo (data URI or local path). Pro only."""
    if not state.pro_unlocked:
        raise ProFeatureLockedError("Logo is a Pro feature")
    update_profile(state, logo=logo or "")
