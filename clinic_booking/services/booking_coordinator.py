"""
Booking Coordinator

Persists a finished booking:

1. Check doctor eligibility, the time format and the slot, then generate
   the booking id from the appointment date-time
2. Write the appointment to patients/{patientId}/appointments/{id}
3. Merge the same record into the clinic-wide appointments/{id} index
4. Increment the applied discount code's usageCount
5. Increment the patient's appointmentCount
6. Return the confirmation route for the new id

There is no cross-document transaction. A failure in step 2 aborts with
nothing written; a failure in steps 3-5 leaves a valid appointment and is
reported as a warning on the result.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Tuple

from clinic_booking import config
from clinic_booking.db import paths
from clinic_booking.db.document_store import DocumentStore
from clinic_booking.exceptions import (
    BookingPersistenceError,
    DocumentStoreError,
    PaymentFailedError,
    SlotNotAvailableError,
)
from clinic_booking.models.booking import (
    Appointment,
    BookingRequest,
    BookingResult,
    PaymentOutcome,
)
from clinic_booking.utils.booking_id import generate_booking_id
from clinic_booking.utils.time_slots import combine_date_time

from .availability_service import AvailabilityService
from .doctor_resolver import ensure_eligible
from .payment_gateway import PaymentGateway

logger = logging.getLogger(__name__)

CONFIRMATION_ROUTE = "/appointment/{booking_id}"


def build_appointment(request: BookingRequest, booking_id: str, now: datetime) -> Appointment:
    """Assemble the appointment record written to both locations."""
    discount = request.discount
    return Appointment(
        id=booking_id,
        patient_id=request.patient_id,
        doctor_id=request.doctor_id,
        service_id=request.service.id,
        service_type=request.service.name,
        date_time=combine_date_time(request.appointment_date, request.appointment_time),
        status=request.payment.appointment_status,
        payment_status=request.payment.payment_status,
        payment_reference=request.payment.payment_reference,
        original_price=request.original_price,
        final_price=request.final_price,
        discount_code=discount.code.code if discount else None,
        discount_amount=discount.discount_amount if discount else None,
        notes=request.notes,
        patient_name=request.contact.full_name,
        patient_email=request.contact.email,
        patient_phone=request.contact.phone,
        created_at=now,
        updated_at=now,
    )


class BookingCoordinator:
    """Commits bookings to the document store."""

    def __init__(
        self,
        store: DocumentStore,
        availability: Optional[AvailabilityService] = None,
        recheck_slot: Optional[bool] = None,
        id_factory: Callable[[datetime], str] = generate_booking_id,
    ):
        self.store = store
        self.availability = availability or AvailabilityService(store)
        self.recheck_slot = config.RECHECK_SLOT_ON_COMMIT if recheck_slot is None else recheck_slot
        self.id_factory = id_factory

    async def _ensure_slot_open(self, request: BookingRequest) -> None:
        available = await self.availability.check_slot_available(
            request.doctor_id, request.appointment_date, request.appointment_time
        )
        if not available:
            raise SlotNotAvailableError(
                request.doctor_id,
                f"{request.appointment_date.isoformat()} {request.appointment_time}",
            )

    async def prepare(self, request: BookingRequest) -> datetime:
        """
        Validate a booking before any side effect.

        Returns:
            The appointment date-time in clinic-local time

        Raises:
            NoEligibleDoctorError: If the doctor cannot perform the service
            ValueError: If the time slot string cannot be parsed
            SlotNotAvailableError: If a confirmed appointment now holds the slot
        """
        ensure_eligible(request.service, request.doctor_id)
        when = combine_date_time(request.appointment_date, request.appointment_time)
        if self.recheck_slot:
            await self._ensure_slot_open(request)
        return when

    async def commit(self, request: BookingRequest) -> BookingResult:
        """
        Persist a booking whose payment step has already resolved.

        Args:
            request: Assembled booking with its payment outcome

        Returns:
            BookingResult; warnings list any write that failed after the
            appointment itself was saved

        Raises:
            NoEligibleDoctorError: If the doctor cannot perform the service
            SlotNotAvailableError: If a confirmed appointment now holds the slot
            BookingPersistenceError: If the patient-scoped write failed
        """
        when = await self.prepare(request)
        return await self._persist(request, when)

    async def _persist(self, request: BookingRequest, when: datetime) -> BookingResult:
        booking_id = self.id_factory(when)
        appointment = build_appointment(request, booking_id, datetime.now(timezone.utc))
        document = appointment.to_document()

        try:
            await self.store.set(paths.patient_appointment_path(request.patient_id, booking_id), document)
        except DocumentStoreError as e:
            logger.error(f"Failed to save appointment {booking_id} for patient {request.patient_id}: {e}")
            raise BookingPersistenceError() from e

        logger.info(
            f"✅ Appointment {booking_id} saved: patient={request.patient_id} "
            f"doctor={request.doctor_id} at {when.isoformat()} ({appointment.status})"
        )

        warnings: List[str] = []

        try:
            await self.store.set(paths.appointment_index_path(booking_id), document, merge=True)
        except DocumentStoreError as e:
            logger.error(f"Appointment {booking_id} saved but mirror write failed: {e}", exc_info=True)
            warnings.append(f"Clinic-wide appointment index was not updated for {booking_id}")

        warnings.extend(await self._increment_counters(request, booking_id))

        return BookingResult(
            appointment=appointment,
            confirmation_route=CONFIRMATION_ROUTE.format(booking_id=booking_id),
            warnings=warnings,
        )

    async def _increment_counters(self, request: BookingRequest, booking_id: str) -> List[str]:
        """Counter writes do not depend on each other, so they run together."""
        warnings: List[str] = []
        increments: List[Tuple[str, Awaitable[int]]] = []

        if request.discount is not None:
            code = request.discount.code
            if code.id:
                increments.append((
                    f"usage count of discount code {code.code}",
                    self.store.increment(paths.discount_code_path(code.id), "usageCount"),
                ))
            else:
                logger.error(f"Discount code {code.code} has no document id; usage not recorded for {booking_id}")
                warnings.append(f"Failed to update usage count of discount code {code.code}")

        increments.append((
            f"appointment count of patient {request.patient_id}",
            self.store.increment(paths.patient_path(request.patient_id), "appointmentCount"),
        ))

        results = await asyncio.gather(*(op for _, op in increments), return_exceptions=True)
        for (label, _), result in zip(increments, results):
            if isinstance(result, Exception):
                logger.error(f"Appointment {booking_id} saved but {label} was not incremented: {result}")
                warnings.append(f"Failed to update {label}")
        return warnings

    async def checkout(
        self,
        request: BookingRequest,
        gateway: PaymentGateway,
        currency: Optional[str] = None,
    ) -> BookingResult:
        """
        Validate, charge the final price, then persist the booking as paid.

        Raises:
            NoEligibleDoctorError: If the doctor cannot perform the service; nothing is charged
            ValueError: If the time slot string cannot be parsed; nothing is charged
            SlotNotAvailableError: If a confirmed appointment holds the slot; nothing is charged
            PaymentFailedError: If the gateway declined; nothing is written
        """
        when = await self.prepare(request)
        result = await gateway.charge(
            amount=request.final_price,
            currency=currency or config.CURRENCY,
            customer=request.contact,
            description=f"{request.service.name} on {request.appointment_date.isoformat()} {request.appointment_time}",
        )
        if not result.success:
            raise PaymentFailedError(result.failure_reason or "Payment was not completed")

        paid = request.model_copy(update={"payment": PaymentOutcome.paid_with(result.payment_reference)})
        return await self._persist(paid, when)

    async def commit_pay_later(self, request: BookingRequest) -> BookingResult:
        """Commit as pending with payment deferred."""
        deferred = request.model_copy(update={"payment": PaymentOutcome.pay_later()})
        return await self.commit(deferred)
