"""
Pydantic models for the booking engine.
"""
from .catalog import (
    AvailableService,
    CustomService,
    Doctor,
    DoctorChoice,
    DoctorServiceOffering,
    KnownDoctor,
    PendingDoctor,
    Treatment,
)
from .booking import (
    Appointment,
    AppointmentStatus,
    BookingRequest,
    BookingResult,
    ContactInfo,
    Patient,
    PaymentOutcome,
    PaymentStatus,
)
from .discount import (
    CriteriaType,
    DiscountCode,
    DiscountEvaluation,
    DiscountSelection,
    DiscountType,
)

__all__ = [
    "AvailableService",
    "CustomService",
    "Doctor",
    "DoctorChoice",
    "DoctorServiceOffering",
    "KnownDoctor",
    "PendingDoctor",
    "Treatment",
    "Appointment",
    "AppointmentStatus",
    "BookingRequest",
    "BookingResult",
    "ContactInfo",
    "Patient",
    "PaymentOutcome",
    "PaymentStatus",
    "CriteriaType",
    "DiscountCode",
    "DiscountEvaluation",
    "DiscountSelection",
    "DiscountType",
]
