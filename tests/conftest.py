"""
Shared fixtures for the booking engine tests
"""

from datetime import date

import pytest

from clinic_booking.db import paths
from clinic_booking.db.memory_store import InMemoryDocumentStore
from clinic_booking.models.booking import BookingRequest, ContactInfo, PaymentOutcome
from clinic_booking.models.catalog import AvailableService
from clinic_booking.models.discount import DiscountSelection

TIME_GRID = ["09:00 AM", "10:00 AM", "11:00 AM", "01:00 PM", "02:00 PM", "03:00 PM", "04:00 PM"]


def seed_catalog() -> dict:
    """Two treatments, one offered by doc1 and one by nobody, plus a custom service."""
    return {
        paths.treatment_path("consultation"): {
            "name": "Consultation",
            "description": "General check-up",
            "category": "General Medicine",
        },
        paths.treatment_path("botox"): {
            "name": "Botox",
            "description": "Wrinkle treatment",
            "category": "Aesthetic Treatments",
        },
        paths.doctor_path("doc1"): {
            "firstName": "Katheryne",
            "lastName": "Castillo",
            "specialization": "Family Medicine",
        },
        paths.doctor_service_path("doc1", "consultation"): {
            "treatmentId": "consultation",
            "providesService": True,
            "price": 2000,
        },
        paths.custom_service_path("doc1", "wellness-1"): {
            "name": "Wellness Package",
            "category": "General Medicine",
            "price": 3500,
            "createdBy": "doc1",
        },
    }


@pytest.fixture
def store():
    """Empty in-memory document store"""
    return InMemoryDocumentStore()


@pytest.fixture
def catalog_store():
    """Document store seeded with a small catalog"""
    return InMemoryDocumentStore(seed_catalog())


@pytest.fixture
def consultation():
    """Merged Consultation service offered by doc1"""
    return AvailableService(
        id="consultation",
        name="Consultation",
        category="General Medicine",
        price=2000,
        doctor_ids=["doc1"],
    )


@pytest.fixture
def contact():
    return ContactInfo(full_name="Juan Dela Cruz", email="juan@example.com", phone="09171234567")


@pytest.fixture
def selection():
    return DiscountSelection(service_id="consultation", service_name="Consultation", category="General Medicine")


@pytest.fixture
def booking_request(consultation, contact):
    """Paid Consultation booking with doc1 on 2025-06-01 at 10:00 AM"""
    return BookingRequest(
        patient_id="patient-1",
        service=consultation,
        doctor_id="doc1",
        appointment_date=date(2025, 6, 1),
        appointment_time="10:00 AM",
        contact=contact,
        original_price=2000,
        payment=PaymentOutcome.paid_with("PAY-123"),
    )
