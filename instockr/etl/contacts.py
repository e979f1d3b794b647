"""Helpers for pulling prices, phones and addresses out of free text."""

import logging
import re
from typing import List, Optional, Set

import phonenumbers

logger = logging.getLogger(__name__)

PRICE_REGEX = re.compile(r"€\s?\d[\d.,]*|\d[\d.,]*\s*€|\$\s?\d[\d.,]*")
PHONE_CANDIDATE_REGEX = re.compile(r"\+?\d[\d\s().\-]{6,}\d")
# Street-like fragment ending in a five digit postcode, e.g. "Via Roma 1, 20121 Milano".
ADDRESS_REGEX = re.compile(r"[A-Za-zÀ-ÿ][A-Za-zÀ-ÿ'\s,.]*\d+[A-Za-zÀ-ÿ'\s,.]*\d{5}[A-Za-zÀ-ÿ\s]*")


def extract_price(text: Optional[str]) -> Optional[str]:
    match = PRICE_REGEX.search(text or "")
    return match.group(0).strip() if match else None


def extract_address(text: Optional[str]) -> Optional[str]:
    match = ADDRESS_REGEX.search(text or "")
    if not match:
        return None
    return match.group(0).strip(" ,.")


def extract_phones(text: Optional[str], default_region: Optional[str] = None) -> List[str]:
    """Return E.164 phone strings parsed from text when possible."""

    if not text:
        return []

    normalized: Set[str] = set()
    for raw in PHONE_CANDIDATE_REGEX.findall(text):
        candidate = _normalize_phone(raw.strip(), default_region)
        if candidate:
            normalized.add(candidate)

    return sorted(normalized)


def _normalize_phone(raw: str, default_region: Optional[str]) -> Optional[str]:
    try:
        parsed = phonenumbers.parse(raw, default_region)
    except phonenumbers.NumberParseException:
        return None

    if not phonenumbers.is_possible_number(parsed):
        return None

    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)
