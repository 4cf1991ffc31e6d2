"""Shared validation and normalization utilities"""

import re
from datetime import datetime
from typing import Optional

CLINIC_DATE_FORMAT = "%d/%m/%Y"
ISO_DATE_FORMAT = "%Y-%m-%d"

# WhatsApp sends numbers with the Brazilian country code, the clinic stores them without
COUNTRY_CODE = "55"
MIN_LENGTH_WITH_COUNTRY_CODE = 12


def normalize_phone(phone: Optional[str]) -> str:
    """
    Normalize an inbound phone number for matching against stored clinic mobiles.

    Strips every non-digit and removes a leading country code when the
    remaining number is long enough to still carry area code + subscriber.

    "5541999998888" -> "41999998888"
    """
    if not phone:
        return ""

    digits = re.sub(r"\D", "", phone)

    if digits.startswith(COUNTRY_CODE) and len(digits) >= MIN_LENGTH_WITH_COUNTRY_CODE:
        digits = digits[len(COUNTRY_CODE) :]

    return digits


def to_clinic_date(value: str) -> str:
    """
    Convert an ISO date (yyyy-mm-dd) into the clinic's dd/mm/yyyy form.

    Values already in clinic form come back zero-padded, so "9/2/2026" and
    "09/02/2026" name the same stored day.

    Raises:
        ValueError: If the value is in neither format
    """
    value = value.strip()
    try:
        return datetime.strptime(value, ISO_DATE_FORMAT).strftime(CLINIC_DATE_FORMAT)
    except ValueError:
        pass

    return datetime.strptime(value, CLINIC_DATE_FORMAT).strftime(CLINIC_DATE_FORMAT)


def parse_clinic_date(value: str) -> datetime:
    """Parse dd/mm/yyyy at noon so weekday math never crosses a day boundary"""
    return datetime.strptime(value.strip(), CLINIC_DATE_FORMAT).replace(hour=12)
