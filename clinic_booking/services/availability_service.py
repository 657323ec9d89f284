"""
Availability Service

Finds which of the clinic's fixed daily time slots are still open for a
doctor on a given date.

Only appointments whose status is exactly 'confirmed' block a slot. Pending
and rescheduled requests do not reserve time, so two patients can request
the same slot; whichever is confirmed first takes it.
"""

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from clinic_booking import config
from clinic_booking.db import paths
from clinic_booking.db.document_store import DocumentStore
from clinic_booking.models.booking import AppointmentStatus
from clinic_booking.utils.time_slots import combine_date_time

logger = logging.getLogger(__name__)

# (doctor_id, local start datetime) of a confirmed appointment
BookedSlot = Tuple[str, datetime]


def to_clinic_time(value: datetime, clinic_timezone: str = None) -> datetime:
    """
    Express a stored appointment time as naive clinic-local time.

    Naive values are already clinic-local; aware values (e.g. UTC ISO strings
    written by other clients) are converted first.
    """
    if value.tzinfo is None:
        return value
    clinic_tz = ZoneInfo(clinic_timezone or config.CLINIC_TIMEZONE)
    return value.astimezone(clinic_tz).replace(tzinfo=None)


def is_time_slot_available(
    doctor_id: str,
    day: date,
    slot: str,
    booked: Iterable[BookedSlot],
) -> bool:
    """
    Check one doctor/date/time triple against confirmed appointments.

    Args:
        doctor_id: Doctor id
        day: Candidate calendar date
        slot: 12-hour time string, e.g. "10:00 AM"
        booked: Confirmed appointments as (doctor_id, clinic-local datetime)

    Returns:
        False if a confirmed appointment for this doctor starts on the same
        day at the same hour and minute, True otherwise
    """
    wanted = combine_date_time(day, slot)
    for booked_doctor, start in booked:
        if booked_doctor != doctor_id:
            continue
        if start.date() == wanted.date() and (start.hour, start.minute) == (wanted.hour, wanted.minute):
            return False
    return True


def filter_available_times(
    doctor_id: str,
    day: date,
    time_slots: List[str],
    booked: Iterable[BookedSlot],
) -> List[str]:
    """Remove slots taken by confirmed appointments; the grid's order is preserved."""
    booked = list(booked)
    return [slot for slot in time_slots if is_time_slot_available(doctor_id, day, slot, booked)]


class AvailabilityService:
    """
    Finds available appointment slots based on:
    - The clinic's fixed daily time grid
    - Confirmed appointments in the clinic-wide appointment index
    """

    def __init__(
        self,
        store: DocumentStore,
        time_slots: Optional[List[str]] = None,
        clinic_timezone: Optional[str] = None,
    ):
        self.store = store
        self.time_slots = list(time_slots) if time_slots is not None else config.get_time_slots()
        self.clinic_timezone = clinic_timezone or config.CLINIC_TIMEZONE

    async def get_confirmed_slots(self, doctor_id: Optional[str] = None) -> List[BookedSlot]:
        """
        Load confirmed appointments from the clinic-wide index

        Args:
            doctor_id: Only return this doctor's appointments

        Returns:
            (doctor_id, clinic-local start) pairs; unparseable records are skipped
        """
        documents = await self.store.query(
            paths.APPOINTMENTS, "status", AppointmentStatus.CONFIRMED.value
        )

        booked: List[BookedSlot] = []
        for doc in documents:
            booked_doctor = doc.data.get("doctorId")
            if not booked_doctor or (doctor_id and booked_doctor != doctor_id):
                continue

            raw = doc.data.get("dateTime")
            try:
                start = raw if isinstance(raw, datetime) else datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
            except ValueError:
                logger.warning(f"Skipping appointment {doc.path} with unparseable dateTime {raw!r}")
                continue

            booked.append((booked_doctor, to_clinic_time(start, self.clinic_timezone)))

        return booked

    async def get_available_times(self, doctor_id: str, day: date) -> List[str]:
        """
        Get the open time slots for a doctor on a date

        Returns:
            The clinic grid minus slots held by confirmed appointments
        """
        booked = await self.get_confirmed_slots(doctor_id)
        available = filter_available_times(doctor_id, day, self.time_slots, booked)

        if len(available) < len(self.time_slots):
            logger.debug(
                f"Doctor {doctor_id} on {day.isoformat()}: "
                f"{len(self.time_slots) - len(available)} slots taken"
            )
        return available

    async def check_slot_available(self, doctor_id: str, day: date, slot: str) -> bool:
        booked = await self.get_confirmed_slots(doctor_id)
        return is_time_slot_available(doctor_id, day, slot, booked)
