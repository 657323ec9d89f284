"""
Tests for slot availability
"""

from datetime import date, datetime, timezone

import pytest

from clinic_booking.db import paths
from clinic_booking.services.availability_service import (
    AvailabilityService,
    filter_available_times,
    is_time_slot_available,
    to_clinic_time,
)

from .conftest import TIME_GRID

JUNE_1 = date(2025, 6, 1)


async def add_appointment(store, appointment_id, doctor_id, when, status="confirmed"):
    await store.set(paths.appointment_index_path(appointment_id), {
        "doctorId": doctor_id,
        "dateTime": when,
        "status": status,
    })


class TestIsTimeSlotAvailable:

    def test_confirmed_match_blocks_slot(self):
        booked = [("doc1", datetime(2025, 6, 1, 10, 0))]

        assert is_time_slot_available("doc1", JUNE_1, "10:00 AM", booked) is False

    @pytest.mark.parametrize("doctor_id, day, slot", [
        ("doc2", JUNE_1, "10:00 AM"),
        ("doc1", date(2025, 6, 2), "10:00 AM"),
        ("doc1", JUNE_1, "11:00 AM"),
        ("doc1", JUNE_1, "10:00 PM"),
    ])
    def test_partial_matches_do_not_block(self, doctor_id, day, slot):
        booked = [("doc1", datetime(2025, 6, 1, 10, 0))]

        assert is_time_slot_available(doctor_id, day, slot, booked) is True

    def test_noon_and_midnight_conversion(self):
        booked = [("doc1", datetime(2025, 6, 1, 12, 0)), ("doc1", datetime(2025, 6, 1, 0, 30))]

        assert is_time_slot_available("doc1", JUNE_1, "12:00 PM", booked) is False
        assert is_time_slot_available("doc1", JUNE_1, "12:30 AM", booked) is False
        assert is_time_slot_available("doc1", JUNE_1, "12:00 AM", booked) is True

    def test_full_grid_returned_unchanged_when_open(self):
        assert filter_available_times("doc1", JUNE_1, TIME_GRID, []) == TIME_GRID


class TestToClinicTime:

    def test_naive_value_is_already_local(self):
        value = datetime(2025, 6, 1, 10, 0)
        assert to_clinic_time(value, "Asia/Manila") == value

    def test_aware_value_converted(self):
        value = datetime(2025, 6, 1, 2, 0, tzinfo=timezone.utc)
        assert to_clinic_time(value, "Asia/Manila") == datetime(2025, 6, 1, 10, 0)


class TestAvailabilityService:

    @pytest.mark.asyncio
    async def test_scenario_confirmed_appointment_removes_one_slot(self, store):
        """Confirmed 10:00 AM appointment for doc1 on 2025-06-01 removes that slot only"""
        await add_appointment(store, "a1", "doc1", "2025-06-01T10:00:00")

        service = AvailabilityService(store, time_slots=TIME_GRID)
        available = await service.get_available_times("doc1", JUNE_1)

        assert available == [slot for slot in TIME_GRID if slot != "10:00 AM"]

    @pytest.mark.asyncio
    async def test_pending_and_rescheduled_do_not_block(self, store):
        await add_appointment(store, "a1", "doc1", "2025-06-01T10:00:00", status="pending")
        await add_appointment(store, "a2", "doc1", "2025-06-01T11:00:00", status="rescheduled")
        await add_appointment(store, "a3", "doc1", "2025-06-01T13:00:00", status="cancelled")

        available = await AvailabilityService(store, time_slots=TIME_GRID).get_available_times("doc1", JUNE_1)

        assert available == TIME_GRID

    @pytest.mark.asyncio
    async def test_other_doctor_does_not_block(self, store):
        await add_appointment(store, "a1", "doc2", "2025-06-01T10:00:00")

        assert await AvailabilityService(store, time_slots=TIME_GRID).check_slot_available(
            "doc1", JUNE_1, "10:00 AM"
        ) is True

    @pytest.mark.asyncio
    async def test_utc_timestamp_compared_in_clinic_time(self, store):
        await add_appointment(store, "a1", "doc1", "2025-06-01T06:00:00Z")

        service = AvailabilityService(store, time_slots=TIME_GRID, clinic_timezone="Asia/Manila")

        assert await service.check_slot_available("doc1", JUNE_1, "02:00 PM") is False

    @pytest.mark.asyncio
    async def test_unparseable_datetime_skipped(self, store):
        await add_appointment(store, "bad", "doc1", "next tuesday")
        await add_appointment(store, "a1", "doc1", "2025-06-01T09:00:00")

        available = await AvailabilityService(store, time_slots=TIME_GRID).get_available_times("doc1", JUNE_1)

        assert "09:00 AM" not in available
        assert len(available) == len(TIME_GRID) - 1
