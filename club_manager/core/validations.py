import re
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import PlainSerializer

from club_manager.clubs.models.clubs import MEETING_DAYS

# Monetary values and percentages are exact decimals, emitted as JSON numbers
Money = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def clean_phone_number(phone: Optional[str]) -> Optional[str]:
    """
    Keep digits and a leading '+'.

    Raises:
        ValueError: fewer than 7 or more than 20 digits
    """
    if phone is None or not phone.strip():
        return None

    phone = phone.strip()
    digits = re.sub(r"\D", "", phone)
    if len(digits) < 7 or len(digits) > 20:
        raise ValueError("Phone number must be between 7 and 20 digits")

    return f"+{digits}" if phone.startswith("+") else digits


def normalize_email(email: Optional[str]) -> Optional[str]:
    if email is None or not email.strip():
        return None
    email = email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email address")
    return email


def normalize_meeting_day(day: Optional[str]) -> Optional[str]:
    """Meeting day must be a French weekday (Lundi..Dimanche)"""
    if day is None or not day.strip():
        return None
    for candidate in MEETING_DAYS:
        if candidate.lower() == day.strip().lower():
            return candidate
    raise ValueError(f"Meeting day must be one of: {', '.join(MEETING_DAYS)}")


def clean_label(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError("Label cannot be empty")
    return value
