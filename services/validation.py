"""
Field validators for the intake wizard.
"""
from __future__ import annotations

import re
from datetime import date
from typing import Optional

UK_PHONE_PATTERN = re.compile(r"^(\+44|0)[1-9]\d{8,9}$")
MINIMUM_AGE = 18


def normalize_phone(phone: str) -> str:
    return re.sub(r"\s+", "", phone or "")


def is_valid_uk_phone(phone: Optional[str]) -> bool:
    """UK mobile or landline, national (0...) or international (+44...) form; spaces ignored."""
    if not phone:
        return False
    return bool(UK_PHONE_PATTERN.match(normalize_phone(phone)))


def age_on(date_of_birth: date, today: date) -> int:
    """Whole years between date_of_birth and today, by full year/month/day comparison."""
    years = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        years -= 1
    return years


def is_adult(date_of_birth: Optional[date], today: Optional[date] = None) -> bool:
    if date_of_birth is None:
        return False
    return age_on(date_of_birth, today or date.today()) >= MINIMUM_AGE
