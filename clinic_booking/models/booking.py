"""
Booking models: the persisted Appointment and the inputs/outputs of a commit.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .catalog import AvailableService
from .discount import DiscountEvaluation


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    RESCHEDULED = "rescheduled"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    PAID = "paid"
    PENDING_PAYMENT = "pending_payment"


class Appointment(BaseModel):
    """
    Appointment record.

    The same record lives at patients/{patientId}/appointments/{id} and at
    appointments/{id}; both copies carry identical field values.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow", use_enum_values=True)

    id: str
    patient_id: str = Field(..., alias="patientId")
    doctor_id: str = Field(..., alias="doctorId")
    service_id: Optional[str] = Field(None, alias="serviceId")
    service_type: str = Field(..., alias="serviceType")
    date_time: datetime = Field(..., alias="dateTime")
    status: AppointmentStatus = AppointmentStatus.PENDING
    payment_status: PaymentStatus = Field(PaymentStatus.PENDING_PAYMENT, alias="paymentStatus")
    payment_reference: Optional[str] = Field(None, alias="paymentReference")
    original_price: float = Field(..., alias="originalPrice")
    final_price: float = Field(..., alias="finalPrice")
    discount_code: Optional[str] = Field(None, alias="discountCode")
    discount_amount: Optional[float] = Field(None, alias="discountAmount")
    notes: Optional[str] = None
    patient_name: Optional[str] = Field(None, alias="patientName")
    patient_email: Optional[str] = Field(None, alias="patientEmail")
    patient_phone: Optional[str] = Field(None, alias="patientPhone")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    def to_document(self) -> Dict[str, Any]:
        """camelCase, JSON-safe representation written to the store."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "Appointment":
        return cls.model_validate({"id": doc_id, **data})


class Patient(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    email: Optional[str] = None
    phone: Optional[str] = None
    appointment_count: int = Field(0, alias="appointmentCount")


class ContactInfo(BaseModel):
    full_name: str = Field(..., min_length=2)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: str = Field(..., min_length=10)


class PaymentOutcome(BaseModel):
    """Result of the payment step: charged now, or deferred."""
    paid: bool
    payment_reference: Optional[str] = None

    @classmethod
    def paid_with(cls, payment_reference: str) -> "PaymentOutcome":
        return cls(paid=True, payment_reference=payment_reference)

    @classmethod
    def pay_later(cls) -> "PaymentOutcome":
        return cls(paid=False)

    @property
    def appointment_status(self) -> AppointmentStatus:
        return AppointmentStatus.CONFIRMED if self.paid else AppointmentStatus.PENDING

    @property
    def payment_status(self) -> PaymentStatus:
        return PaymentStatus.PAID if self.paid else PaymentStatus.PENDING_PAYMENT


class BookingRequest(BaseModel):
    """Fully assembled booking handed to the coordinator."""
    patient_id: str = Field(..., min_length=1)
    service: AvailableService
    doctor_id: str = Field(..., min_length=1)
    appointment_date: date
    appointment_time: str
    contact: ContactInfo
    original_price: float = Field(..., ge=0)
    payment: PaymentOutcome
    discount: Optional[DiscountEvaluation] = None
    notes: Optional[str] = None

    @field_validator("discount")
    @classmethod
    def only_applied_discounts(cls, value: Optional[DiscountEvaluation]):
        if value is not None and not value.is_applied:
            raise ValueError("Rejected discount codes cannot be attached to a booking")
        return value

    @model_validator(mode="after")
    def discount_matches_price(self):
        if self.discount is not None and abs(self.discount.original_price - self.original_price) > 0.005:
            raise ValueError(
                f"Discount was evaluated on {self.discount.original_price} "
                f"but the booking price is {self.original_price}"
            )
        return self

    @property
    def final_price(self) -> float:
        if self.discount is not None:
            return self.discount.final_price
        return self.original_price


@dataclass
class BookingResult:
    """Outcome of a committed booking."""
    appointment: Appointment
    confirmation_route: str
    warnings: List[str] = field(default_factory=list)

    @property
    def booking_id(self) -> str:
        return self.appointment.id

    @property
    def fully_consistent(self) -> bool:
        """False when the mirror or a counter write failed after the appointment was saved."""
        return not self.warnings
