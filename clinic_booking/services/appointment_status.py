"""
Appointment Status Service

Staff-side status changes (confirm, cancel, complete, reschedule). Each
change is written to the patient-scoped record first, then the full record
is merged into the clinic-wide index so the two copies converge.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, FrozenSet, List, Optional

from clinic_booking.db import paths
from clinic_booking.db.document_store import DocumentStore
from clinic_booking.exceptions import (
    DocumentNotFoundError,
    DocumentStoreError,
    InvalidStatusTransitionError,
    SlotNotAvailableError,
)
from clinic_booking.models.booking import Appointment, AppointmentStatus
from clinic_booking.utils.time_slots import combine_date_time, format_time_12h

from .availability_service import AvailabilityService, to_clinic_time

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.RESCHEDULED,
    }),
    AppointmentStatus.CONFIRMED: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.RESCHEDULED,
    }),
    AppointmentStatus.RESCHEDULED: frozenset({
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
}


def can_transition(current: AppointmentStatus, requested: AppointmentStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS.get(current, frozenset())


@dataclass
class StatusChangeResult:
    appointment: Appointment
    warnings: List[str] = field(default_factory=list)


class AppointmentStatusService:
    """Applies status transitions to both copies of an appointment."""

    def __init__(self, store: DocumentStore, availability: Optional[AvailabilityService] = None):
        self.store = store
        self.availability = availability or AvailabilityService(store)

    async def get_appointment(self, patient_id: str, appointment_id: str) -> Appointment:
        """
        Raises:
            DocumentNotFoundError: If the patient has no such appointment
        """
        path = paths.patient_appointment_path(patient_id, appointment_id)
        doc = await self.store.get(path)
        if doc is None:
            raise DocumentNotFoundError(path)
        return Appointment.from_document(doc.id, doc.data)

    async def _ensure_slot_open(self, appointment: Appointment, when: datetime) -> None:
        when = to_clinic_time(when, self.availability.clinic_timezone)
        slot = format_time_12h(when)
        if not await self.availability.check_slot_available(appointment.doctor_id, when.date(), slot):
            raise SlotNotAvailableError(appointment.doctor_id, f"{when.date().isoformat()} {slot}")

    async def transition(
        self,
        patient_id: str,
        appointment_id: str,
        new_status: AppointmentStatus,
        changes: Optional[Dict[str, Any]] = None,
    ) -> StatusChangeResult:
        """
        Move an appointment to a new status.

        Args:
            patient_id: Owning patient
            appointment_id: Booking id
            new_status: Requested status
            changes: Extra camelCase fields written with the status

        Returns:
            StatusChangeResult with the updated appointment; warnings are set
            when the clinic-wide copy could not be updated

        Raises:
            DocumentNotFoundError: If the appointment does not exist
            InvalidStatusTransitionError: If the move is not allowed
        """
        appointment = await self.get_appointment(patient_id, appointment_id)
        current = AppointmentStatus(appointment.status)
        new_status = AppointmentStatus(new_status)

        if not can_transition(current, new_status):
            raise InvalidStatusTransitionError(current.value, new_status.value)

        update = dict(changes or {})
        update["status"] = new_status.value
        update["updatedAt"] = datetime.now(timezone.utc).isoformat()

        updated = Appointment.from_document(
            appointment_id, {**appointment.to_document(), **update}
        )
        document = updated.to_document()

        await self.store.update(paths.patient_appointment_path(patient_id, appointment_id), document)
        logger.info(f"Appointment {appointment_id}: {current.value} -> {new_status.value}")

        warnings: List[str] = []
        try:
            await self.store.set(
                paths.appointment_index_path(appointment_id), document, merge=True
            )
        except DocumentStoreError as e:
            logger.error(
                f"Appointment {appointment_id} moved to {new_status.value} but mirror update failed: {e}",
                exc_info=True,
            )
            warnings.append(f"Clinic-wide appointment index was not updated for {appointment_id}")

        return StatusChangeResult(appointment=updated, warnings=warnings)

    async def confirm(self, patient_id: str, appointment_id: str) -> StatusChangeResult:
        """
        Confirm a pending or rescheduled appointment.

        Raises:
            SlotNotAvailableError: If another confirmed appointment holds the slot
        """
        appointment = await self.get_appointment(patient_id, appointment_id)
        if can_transition(AppointmentStatus(appointment.status), AppointmentStatus.CONFIRMED):
            await self._ensure_slot_open(appointment, appointment.date_time)
        return await self.transition(patient_id, appointment_id, AppointmentStatus.CONFIRMED)

    async def cancel(
        self,
        patient_id: str,
        appointment_id: str,
        cancelled_by: str,
        reason: Optional[str] = None,
    ) -> StatusChangeResult:
        return await self.transition(
            patient_id,
            appointment_id,
            AppointmentStatus.CANCELLED,
            {
                "cancelledBy": cancelled_by,
                "cancellationReason": reason or "",
                "cancelledAt": datetime.now(timezone.utc).isoformat(),
            },
        )

    async def complete(self, patient_id: str, appointment_id: str) -> StatusChangeResult:
        return await self.transition(patient_id, appointment_id, AppointmentStatus.COMPLETED)

    async def reschedule(
        self,
        patient_id: str,
        appointment_id: str,
        new_date: date,
        new_time: str,
        modified_by: str,
        note: Optional[str] = None,
    ) -> StatusChangeResult:
        """
        Move an appointment to a new date and time slot.

        Raises:
            ValueError: If new_time is not a 12-hour time string
            SlotNotAvailableError: If the new slot is held by a confirmed appointment
        """
        appointment = await self.get_appointment(patient_id, appointment_id)
        when = combine_date_time(new_date, new_time)

        if can_transition(AppointmentStatus(appointment.status), AppointmentStatus.RESCHEDULED):
            if when != to_clinic_time(appointment.date_time, self.availability.clinic_timezone):
                await self._ensure_slot_open(appointment, when)

        changes = {
            "dateTime": when.isoformat(),
            "lastModifiedBy": modified_by,
        }
        if note:
            changes["lastModifiedNote"] = note
        return await self.transition(patient_id, appointment_id, AppointmentStatus.RESCHEDULED, changes)
