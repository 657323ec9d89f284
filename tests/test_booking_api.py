"""
Tests for the booking HTTP API
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from clinic_booking.app_factory import create_app
from clinic_booking.db import paths
from clinic_booking.db.memory_store import InMemoryDocumentStore
from clinic_booking.services.payment_gateway import PaymentGateway, PaymentResult

from .conftest import seed_catalog


def booking_body(**overrides):
    body = {
        "patient_id": "patient-1",
        "service_id": "consultation",
        "doctor_id": "doc1",
        "date": "2025-06-01",
        "time": "10:00 AM",
        "contact": {"full_name": "Juan Dela Cruz", "email": "juan@example.com", "phone": "09171234567"},
        "pay_later": False,
    }
    body.update(overrides)
    return body


# Test fixtures

@pytest.fixture
def api_store():
    documents = seed_catalog()
    documents[paths.discount_code_path("save10")] = {
        "code": "SAVE10",
        "discountType": "percentage",
        "discountValue": 10,
        "isActive": True,
        "usageCount": 0,
        "criteriaType": "all",
    }
    documents[paths.discount_code_path("old")] = {
        "code": "OLD",
        "discountType": "fixed",
        "discountValue": 100,
        "isActive": False,
    }
    return InMemoryDocumentStore(documents)


@pytest.fixture
def gateway():
    mock = AsyncMock(spec=PaymentGateway)
    mock.charge.return_value = PaymentResult.succeeded("PAY-555")
    return mock


@pytest.fixture
def client(api_store, gateway):
    app = create_app(store=api_store, payment_gateway=gateway)
    with TestClient(app) as test_client:
        yield test_client


class TestCatalogEndpoints:

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"

    def test_list_services(self, client):
        response = client.get("/api/v1/booking/services")

        assert response.status_code == 200
        data = response.json()
        ids = [service["id"] for service in data["services"]]
        assert "consultation" in ids
        assert "botox" not in ids
        consultation = next(s for s in data["services"] if s["id"] == "consultation")
        assert consultation["displayPrice"] == 2000
        assert consultation["doctorIds"] == ["doc1"]
        assert data["is_fallback"] is False

    def test_service_doctors_auto_selects_single_doctor(self, client):
        response = client.get("/api/v1/booking/services/consultation/doctors")

        assert response.status_code == 200
        data = response.json()
        assert data["auto_selected"] == "doc1"
        assert data["doctors"][0]["name"] == "Dr. Katheryne Castillo"
        assert data["doctors"][0]["kind"] == "known"

    def test_unknown_service_is_404(self, client):
        assert client.get("/api/v1/booking/services/nope/doctors").status_code == 404

    def test_availability(self, client):
        response = client.get("/api/v1/booking/availability", params={"doctor_id": "doc1", "date": "2025-06-01"})

        assert response.status_code == 200
        assert "10:00 AM" in response.json()["available_times"]


class TestDiscountEndpoint:

    def test_applied_code(self, client):
        response = client.post(
            "/api/v1/booking/discounts/evaluate",
            json={"code": "save10", "service_id": "consultation"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["applied"] is True
        assert data["discount_amount"] == 200
        assert data["final_price"] == 1800

    def test_rejection_is_a_value(self, client):
        response = client.post(
            "/api/v1/booking/discounts/evaluate",
            json={"code": "OLD", "service_id": "consultation"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["applied"] is False
        assert data["reason"] == "This discount code is no longer active."
        assert data["final_price"] == 2000


class TestBookingEndpoint:

    def test_paid_booking_blocks_slot(self, client, api_store, gateway):
        response = client.post("/api/v1/booking/bookings", json=booking_body(discount_code="SAVE10"))

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "confirmed"
        assert data["payment_status"] == "paid"
        assert data["final_price"] == 1800
        assert data["confirmation_route"] == f"/appointment/{data['booking_id']}"
        assert gateway.charge.await_args.kwargs["amount"] == 1800

        snapshot = api_store.snapshot()
        assert snapshot[paths.discount_code_path("save10")]["usageCount"] == 1
        assert snapshot[paths.patient_path("patient-1")]["appointmentCount"] == 1

        availability = client.get(
            "/api/v1/booking/availability", params={"doctor_id": "doc1", "date": "2025-06-01"}
        ).json()
        assert "10:00 AM" not in availability["available_times"]

    def test_pay_later_booking(self, client, gateway):
        response = client.post("/api/v1/booking/bookings", json=booking_body(pay_later=True))

        assert response.status_code == 201
        assert response.json()["status"] == "pending"
        gateway.charge.assert_not_awaited()

    def test_declined_payment_is_402(self, client, api_store, gateway):
        gateway.charge.return_value = PaymentResult.failed("Card declined")

        response = client.post("/api/v1/booking/bookings", json=booking_body())

        assert response.status_code == 402
        assert response.json()["detail"] == "Card declined"
        assert paths.patient_path("patient-1") not in api_store.snapshot()

    def test_rejected_code_blocks_booking(self, client):
        response = client.post("/api/v1/booking/bookings", json=booking_body(discount_code="OLD"))

        assert response.status_code == 422
        assert response.json()["detail"] == "This discount code is no longer active."

    def test_taken_slot_is_409(self, client, gateway):
        assert client.post("/api/v1/booking/bookings", json=booking_body()).status_code == 201

        assert client.post("/api/v1/booking/bookings", json=booking_body()).status_code == 409
        assert gateway.charge.await_count == 1

    def test_ineligible_doctor_is_422(self, client, gateway):
        response = client.post("/api/v1/booking/bookings", json=booking_body(doctor_id="doc2"))
        assert response.status_code == 422
        assert gateway.charge.await_count == 0

    def test_bad_time_is_422(self, client, gateway):
        response = client.post("/api/v1/booking/bookings", json=booking_body(time="25:00"))
        assert response.status_code == 422
        assert gateway.charge.await_count == 0

    def test_store_failure_is_generic_503(self, client, api_store):
        api_store.fail_on("set", "patients/")

        response = client.post("/api/v1/booking/bookings", json=booking_body(pay_later=True))

        assert response.status_code == 503
        assert "try again" in response.json()["detail"]

    def test_paid_booking_without_gateway_is_503(self, api_store):
        app = create_app(store=api_store)
        app.state.payment_gateway = None
        client = TestClient(app)

        response = client.post("/api/v1/booking/bookings", json=booking_body())

        assert response.status_code == 503


class TestStatusEndpoint:

    def test_confirm_then_complete(self, client, api_store):
        booking = client.post("/api/v1/booking/bookings", json=booking_body(pay_later=True)).json()
        url = f"/api/v1/booking/appointments/patient-1/{booking['booking_id']}/status"

        confirmed = client.post(url, json={"status": "confirmed", "actor": "staff-1"})
        completed = client.post(url, json={"status": "completed", "actor": "staff-1"})
        again = client.post(url, json={"status": "cancelled", "actor": "staff-1"})

        assert confirmed.status_code == 200
        assert completed.json()["appointment"]["status"] == "completed"
        assert again.status_code == 409
        mirror = api_store.snapshot()[paths.appointment_index_path(booking["booking_id"])]
        assert mirror["status"] == "completed"

    def test_reschedule_requires_new_slot(self, client):
        booking = client.post("/api/v1/booking/bookings", json=booking_body(pay_later=True)).json()
        url = f"/api/v1/booking/appointments/patient-1/{booking['booking_id']}/status"

        response = client.post(url, json={"status": "rescheduled", "actor": "staff-1"})

        assert response.status_code == 422

    def test_unknown_appointment_is_404(self, client):
        response = client.post(
            "/api/v1/booking/appointments/patient-1/missing/status",
            json={"status": "confirmed", "actor": "staff-1"},
        )
        assert response.status_code == 404
