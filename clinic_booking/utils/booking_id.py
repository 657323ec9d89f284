"""
Booking ID generator

Format: PREFIX-YYYYMMDD-XXXX-CC
- PREFIX: clinic prefix (KAPP by default)
- YYYYMMDD: appointment date
- XXXX: 4 random characters from an alphabet without ambiguous glyphs
- CC: 2-character checksum over the first three parts
"""
import re
import secrets
from datetime import date, datetime
from typing import Optional

from clinic_booking import config
from clinic_booking.exceptions import InvalidBookingIdError

# No O/0 or I/1/L confusion
SAFE_CHARS = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"

_BOOKING_ID = re.compile(r"^([A-Z]+)-(\d{8})-([A-Z2-9]{4})-([A-Z2-9]{2})$")


def _secure_random(length: int) -> str:
    return "".join(secrets.choice(SAFE_CHARS) for _ in range(length))


def calculate_checksum(value: str) -> str:
    """Weighted character-code sum folded into two SAFE_CHARS characters."""
    total = sum(ord(char) * (index + 1) for index, char in enumerate(value))
    first = SAFE_CHARS[total % len(SAFE_CHARS)]
    second = SAFE_CHARS[(total // len(SAFE_CHARS)) % len(SAFE_CHARS)]
    return first + second


def generate_booking_id(when: Optional[datetime] = None, prefix: Optional[str] = None) -> str:
    """
    Generate a human-readable booking identifier

    Args:
        when: Appointment date-time (defaults to now)
        prefix: Clinic prefix (defaults to config.BOOKING_ID_PREFIX)

    Returns:
        Booking id such as "KAPP-20250601-7HQK-M3"
    """
    when = when or datetime.now()
    prefix = prefix or config.BOOKING_ID_PREFIX
    base_id = f"{prefix}-{when.strftime('%Y%m%d')}-{_secure_random(4)}"
    return f"{base_id}-{calculate_checksum(base_id)}"


def validate_booking_id(booking_id: str) -> None:
    """
    Validate format, checksum and date of a booking id

    Raises:
        InvalidBookingIdError: With the specific reason for rejection
    """
    match = _BOOKING_ID.match(booking_id or "")
    if not match:
        raise InvalidBookingIdError(booking_id, "Invalid booking ID format")

    prefix, date_part, random_part, checksum = match.groups()
    if calculate_checksum(f"{prefix}-{date_part}-{random_part}") != checksum:
        raise InvalidBookingIdError(booking_id, "Invalid booking ID checksum")

    try:
        datetime.strptime(date_part, "%Y%m%d")
    except ValueError:
        raise InvalidBookingIdError(booking_id, "Invalid date in booking ID")


def is_valid_booking_id(booking_id: str) -> bool:
    try:
        validate_booking_id(booking_id)
    except InvalidBookingIdError:
        return False
    return True


def get_booking_date(booking_id: str) -> Optional[date]:
    """Extract the appointment date from a booking id, or None if invalid."""
    if not is_valid_booking_id(booking_id):
        return None
    return datetime.strptime(booking_id.split("-")[1], "%Y%m%d").date()
