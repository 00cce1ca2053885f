"""
Phone number normalization - E.164 format using the phonenumbers library.

Lead-form data is often malformed (missing country code, stray punctuation),
so anything the library rejects gets a best-effort digit-count fallback
instead of dropping the lead.
"""
import logging
import re
from typing import Optional

import phonenumbers

logger = logging.getLogger(__name__)

_DIGITS_ONLY = re.compile(r"\D")


def normalize_phone_e164(phone: Optional[str], default_region: str = "US") -> Optional[str]:
    """
    Normalize a phone number to E.164 format.

    Handles:
    - +1 650 253 0000  → +16502530000
    - (650) 253-0000   → +16502530000
    - 555.123.4567     → +15551234567  (digit fallback)
    - 1-555-123-4567   → +15551234567  (digit fallback)

    Returns None if no usable number can be recovered.
    """
    if not phone or not str(phone).strip():
        return None

    cleaned = str(phone).strip()

    parsed = _normalize_with_phonenumbers(cleaned, default_region)
    if parsed:
        return parsed
    return _normalize_with_digits(cleaned)


def _parse(phone: str, region: str):
    """Parse region-agnostically first, then under the default region."""
    try:
        return phonenumbers.parse(phone, None)
    except phonenumbers.NumberParseException:
        pass
    try:
        return phonenumbers.parse(phone, region)
    except phonenumbers.NumberParseException:
        return None


def _normalize_with_phonenumbers(phone: str, region: str) -> Optional[str]:
    """Return the E.164 form if the library considers the number valid."""
    parsed = _parse(phone, region)
    if parsed is None or not phonenumbers.is_valid_number(parsed):
        return None
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def _normalize_with_digits(phone: str) -> Optional[str]:
    """Fallback for US-looking digit strings."""
    digits = _DIGITS_ONLY.sub("", phone)

    if len(digits) == 10:
        return f"+1{digits}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"
    return None


def mask_phone(phone: Optional[str]) -> str:
    """Mask a phone number for log output: +15551234567 → +15551***."""
    if not phone:
        return ""
    if len(phone) <= 6:
        return "***"
    return phone[:6] + "***"
