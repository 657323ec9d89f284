"""
Application Configuration
Centralized configuration for the booking engine and its document store
"""
import os
from typing import List

from dotenv import load_dotenv

load_dotenv()

# Document store backend: 'supabase' for production, 'memory' for local runs
DOCUMENT_STORE_BACKEND = os.getenv("DOCUMENT_STORE_BACKEND", "memory").lower()

# Supabase document table and the RPC used for server-side increments
SUPABASE_SCHEMA = os.getenv("SUPABASE_SCHEMA", "booking")
DOCUMENTS_TABLE = os.getenv("DOCUMENTS_TABLE", "documents")
INCREMENT_RPC = os.getenv("INCREMENT_RPC", "increment_document_field")

# Price applied when no doctor has configured a positive price for a service
DEFAULT_CONSULTATION_FEE = float(os.getenv("DEFAULT_CONSULTATION_FEE", "1500"))

# Currency context handed to the payment gateway, and the symbol used in messages
CURRENCY = os.getenv("CURRENCY", "PHP")
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "₱")

# Timezone the daily time grid is expressed in
CLINIC_TIMEZONE = os.getenv("CLINIC_TIMEZONE", "Asia/Manila")

# Prefix of generated booking identifiers (KAPP-20250601-AB3D-XY)
BOOKING_ID_PREFIX = os.getenv("BOOKING_ID_PREFIX", "KAPP")

# Fixed daily time grid offered to patients (12-hour clock)
DEFAULT_TIME_SLOTS = [
    "09:00 AM",
    "10:00 AM",
    "11:00 AM",
    "01:00 PM",
    "02:00 PM",
    "03:00 PM",
    "04:00 PM",
]

# Re-run the availability check right before the appointment write
RECHECK_SLOT_ON_COMMIT = os.getenv("RECHECK_SLOT_ON_COMMIT", "true").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def get_time_slots() -> List[str]:
    """
    Get the clinic's daily time grid

    Returns:
        Ordered list of time-of-day strings, e.g. ["09:00 AM", ...]
    """
    raw = os.getenv("CLINIC_TIME_SLOTS")
    if not raw:
        return list(DEFAULT_TIME_SLOTS)
    return [slot.strip() for slot in raw.split(",") if slot.strip()]


# HTTP payment collaborator; unset means only pay-later bookings are accepted
PAYMENT_GATEWAY_URL = os.getenv("PAYMENT_GATEWAY_URL")
PAYMENT_GATEWAY_API_KEY = os.getenv("PAYMENT_GATEWAY_API_KEY")
