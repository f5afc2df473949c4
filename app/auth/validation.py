"""
Validation Module - form field checks shared by registration and club forms
"""
import re
from datetime import date
from typing import Optional

NAME_PATTERN = re.compile(r"^[a-zA-Z\s'-]+$")
UK_PHONE_PATTERN = re.compile(r"^(\+44\s?7\d{3}|\(?07\d{3}\)?)\s?\d{3}\s?\d{3}$")
UK_POSTCODE_PATTERN = re.compile(r"^[A-Z]{1,2}[0-9R][0-9A-Z]?\s?[0-9][A-Z]{2}$", re.IGNORECASE)
PASSWORD_MIN_LENGTH = 8

PLAYER_MIN_AGE = 4
PLAYER_MAX_AGE = 18


def validate_person_name(value: str, label: str = "Name") -> str:
    """
    Check a first or last name

    2-50 characters; letters, spaces, hyphens and apostrophes only.

    Args:
        value: raw form value
        label: field label used in the error message

    Returns:
        the trimmed name
    """
    value = (value or "").strip()
    if len(value) < 2:
        raise ValueError(f"{label} must be at least 2 characters")
    if len(value) > 50:
        raise ValueError(f"{label} must be less than 50 characters")
    if not NAME_PATTERN.match(value):
        raise ValueError(f"{label} can only contain letters, spaces, hyphens, and apostrophes")
    return value


def validate_uk_phone(value: str) -> str:
    """UK mobile number (07xxx or +44 7xxx)"""
    value = (value or "").strip()
    if not UK_PHONE_PATTERN.match(value):
        raise ValueError("Please enter a valid UK mobile number (e.g., 07123 456789)")
    return value


def validate_uk_postcode(value: Optional[str]) -> Optional[str]:
    """Optional UK postcode, normalised to upper case"""
    if not value or not value.strip():
        return None
    value = value.strip().upper()
    if not UK_POSTCODE_PATTERN.match(value):
        raise ValueError("Please enter a valid UK postcode")
    return value


def validate_password(value: str) -> str:
    """
    Check a new account password

    At least 8 characters with an upper case letter, a lower case letter,
    a digit and a special character.
    """
    value = value or ""
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if not re.search(r"[A-Z]", value):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", value):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", value):
        raise ValueError("Password must contain at least one number")
    if not re.search(r"[^A-Za-z0-9]", value):
        raise ValueError("Password must contain at least one special character")
    return value


def get_age(birth_date: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """
    Age in whole years

    Args:
        birth_date: date of birth
        today: reference date (defaults to today)

    Returns:
        age, or None without a birth date
    """
    if not birth_date:
        return None

    today = today or date.today()
    age = today.year - birth_date.year

    # Birthday not reached yet this year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1

    return age


def validate_player_birth_date(value: date) -> date:
    """Players must be between 4 and 18 years old"""
    if value > date.today():
        raise ValueError("Date of birth cannot be in the future")
    age = get_age(value)
    if age < PLAYER_MIN_AGE or age > PLAYER_MAX_AGE:
        raise ValueError(f"Player must be between {PLAYER_MIN_AGE} and {PLAYER_MAX_AGE} years old")
    return value


def mask_email(email: str) -> str:
    """
    Mask an email address for logs

    example@gmail.com → e*****e@gmail.com
    """
    if not email or '@' not in email:
        return email

    local, domain = email.split('@', 1)

    if len(local) <= 2:
        masked_local = local[0] + '*' * (len(local) - 1)
    else:
        masked_local = local[0] + '*' * (len(local) - 2) + local[-1]

    return f"{masked_local}@{domain}"
