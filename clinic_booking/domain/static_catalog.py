"""
Bundled fallback catalog.

Used only when the document store yields no bookable service at all. In the
fallback every listed doctor is eligible for every service.
"""

import re
from typing import List, Optional

from clinic_booking.models.catalog import AvailableService, Doctor

# =============================================================================
# SERVICE CATEGORIES
# =============================================================================
# Category title -> treatments. Display prices are marketing strings; the
# first amount found is used as the bookable price.
STATIC_SERVICE_CATEGORIES = [
    {
        "slug": "general-medicine",
        "title": "General Medicine",
        "treatments": [
            {
                "id": "gm-1",
                "name": "Annual Physical Exam",
                "description": "A comprehensive check-up to assess your overall health and prevent potential health issues.",
                "price": "₱2,500",
            },
            {
                "id": "gm-2",
                "name": "Vaccinations",
                "description": "Stay protected with essential vaccinations for flu, HPV, pneumonia, and more.",
                "price": "Varies per vaccine",
            },
            {
                "id": "gm-3",
                "name": "Chronic Disease Management",
                "description": "Ongoing care and support for managing conditions like diabetes, hypertension, and asthma.",
            },
            {
                "id": "gm-4",
                "name": "Minor Injury Care",
                "description": "Treatment for non-life-threatening injuries such as cuts, sprains, and minor burns.",
            },
        ],
    },
    {
        "slug": "aesthetic-treatments",
        "title": "Aesthetic Treatments",
        "treatments": [
            {
                "id": "at-1",
                "name": "Botox Injections",
                "description": "Smooth out wrinkles and fine lines for a refreshed, youthful appearance.",
                "price": "Starts at ₱5,000",
            },
            {
                "id": "at-2",
                "name": "Dermal Fillers",
                "description": "Restore volume, contour facial features, and soften creases with hyaluronic acid fillers.",
                "price": "Starts at ₱15,000",
            },
            {
                "id": "at-3",
                "name": "Chemical Peels",
                "description": "Improve skin texture and tone by removing the outermost layers of the skin.",
                "price": "Starts at ₱3,500",
            },
            {
                "id": "at-4",
                "name": "Microneedling with PRP",
                "description": "Stimulate collagen production and enhance skin repair using your body's own growth factors.",
                "price": "Starts at ₱8,000",
            },
        ],
    },
]

# =============================================================================
# DOCTOR ROSTER
# =============================================================================
STATIC_DOCTORS = [
    {"id": "default-doctor-id", "firstName": "Katheryne", "lastName": "Castillo",
     "specialization": "General & Aesthetic Medicine", "email": "dr.castillo@example.com"},
    {"id": "doctor-2", "firstName": "Maria", "lastName": "Santos",
     "specialization": "Dermatology", "email": "dr.santos@example.com"},
    {"id": "doctor-3", "firstName": "Jose", "lastName": "Rizal",
     "specialization": "General Medicine", "email": "dr.rizal@example.com"},
    {"id": "doctor-4", "firstName": "Lourdes", "lastName": "Gomez",
     "specialization": "Aesthetic Medicine", "email": "dr.gomez@example.com"},
    {"id": "doctor-5", "firstName": "Antonio", "lastName": "Luna",
     "specialization": "Internal Medicine", "email": "dr.luna@example.com"},
]

_AMOUNT = re.compile(r"(\d[\d,]*(?:\.\d+)?)")


def parse_display_price(raw: Optional[str]) -> Optional[float]:
    """
    Extract the first amount from a display price string.

    "₱2,500" -> 2500.0, "Starts at ₱5,000" -> 5000.0, "Varies per vaccine" -> None
    """
    if not raw:
        return None
    match = _AMOUNT.search(raw)
    if not match:
        return None
    value = float(match.group(1).replace(",", ""))
    return value if value > 0 else None


def static_doctors() -> List[Doctor]:
    return [Doctor.model_validate(doctor) for doctor in STATIC_DOCTORS]


def static_available_services() -> List[AvailableService]:
    """Fallback catalog: every bundled treatment, bookable with every bundled doctor."""
    doctor_ids = [doctor["id"] for doctor in STATIC_DOCTORS]
    services = []
    for category in STATIC_SERVICE_CATEGORIES:
        for treatment in category["treatments"]:
            services.append(AvailableService(
                id=treatment["id"],
                name=treatment["name"],
                description=treatment.get("description", ""),
                category=category["title"],
                price=parse_display_price(treatment.get("price")),
                is_custom=False,
                doctor_ids=list(doctor_ids),
            ))
    return services
