"""
Booking API
Exposes the catalog, doctor resolution, availability, discount evaluation,
booking commit and staff status changes over HTTP.
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from .. import config
from ..db.document_store import DocumentStore
from ..exceptions import (
    BookingEngineError,
    BookingPersistenceError,
    DocumentNotFoundError,
    DocumentStoreError,
    InvalidStatusTransitionError,
    NoEligibleDoctorError,
    PaymentFailedError,
    ServiceNotFoundError,
    SlotNotAvailableError,
)
from ..models.booking import AppointmentStatus, BookingRequest, ContactInfo, PaymentOutcome
from ..models.discount import DiscountSelection
from ..services.appointment_status import AppointmentStatusService
from ..services.availability_service import AvailabilityService
from ..services.booking_coordinator import BookingCoordinator
from ..services.catalog_merger import CatalogMerger
from ..services.discount_evaluator import DiscountEvaluator
from ..services.doctor_resolver import DoctorResolver, auto_select, choice_to_dict
from ..services.payment_gateway import PaymentGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/booking", tags=["Booking"])

GENERIC_RETRY_MESSAGE = "Something went wrong while saving your booking. Please try again."


# =============================================================================
# Dependencies
# =============================================================================

def get_document_store(request: Request) -> DocumentStore:
    store = getattr(request.app.state, "document_store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Document store is not configured")
    return store


def get_payment_gateway(request: Request) -> Optional[PaymentGateway]:
    return getattr(request.app.state, "payment_gateway", None)


def to_http_exception(error: BookingEngineError) -> HTTPException:
    """Map an engine error to the response the patient or staff member sees."""
    if isinstance(error, SlotNotAvailableError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, InvalidStatusTransitionError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, (ServiceNotFoundError, DocumentNotFoundError)):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, NoEligibleDoctorError):
        return HTTPException(status_code=422, detail=str(error))
    if isinstance(error, PaymentFailedError):
        return HTTPException(status_code=402, detail=error.reason)
    if isinstance(error, (BookingPersistenceError, DocumentStoreError)):
        return HTTPException(status_code=503, detail=GENERIC_RETRY_MESSAGE)
    return HTTPException(status_code=400, detail=str(error))


# =============================================================================
# Request models
# =============================================================================

class DiscountEvaluationRequest(BaseModel):
    code: str = Field(..., min_length=1)
    service_id: str
    patient_id: Optional[str] = None


class CreateBookingRequest(BaseModel):
    patient_id: str = Field(..., min_length=1)
    service_id: str
    doctor_id: str
    date: date
    time: str = Field(..., description="12-hour slot, e.g. '10:00 AM'")
    contact: ContactInfo
    discount_code: Optional[str] = None
    pay_later: bool = False
    notes: Optional[str] = None


class StatusChangeRequest(BaseModel):
    status: AppointmentStatus
    actor: str = Field(..., min_length=1)
    reason: Optional[str] = None
    new_date: Optional[date] = None
    new_time: Optional[str] = None


def _evaluation_response(evaluation) -> Dict[str, Any]:
    return {
        "applied": evaluation.is_applied,
        "code": evaluation.code.code if evaluation.code else None,
        "reason": evaluation.reason,
        "original_price": evaluation.original_price,
        "discount_amount": evaluation.discount_amount,
        "final_price": evaluation.final_price,
    }


# =============================================================================
# Catalog
# =============================================================================

@router.get("/services")
async def list_services(store: DocumentStore = Depends(get_document_store)):
    """Merged catalog of bookable services."""
    try:
        catalog = await CatalogMerger(store).load_catalog()
    except BookingEngineError as e:
        raise to_http_exception(e) from e

    services = []
    for service in catalog.services:
        item = service.model_dump(by_alias=True)
        item["displayPrice"] = service.effective_price(config.DEFAULT_CONSULTATION_FEE)
        item["categorySlug"] = service.category_slug
        services.append(item)

    return {"services": services, "is_fallback": catalog.is_fallback, "currency": config.CURRENCY}


@router.get("/services/{service_id}/doctors")
async def list_service_doctors(service_id: str, store: DocumentStore = Depends(get_document_store)):
    """Doctors eligible for a service; auto_selected is set when only one is."""
    try:
        choices = await DoctorResolver(CatalogMerger(store)).get_doctors_for_service(service_id)
    except BookingEngineError as e:
        raise to_http_exception(e) from e

    selected = auto_select(choices)
    return {
        "service_id": service_id,
        "doctors": [choice_to_dict(choice) for choice in choices],
        "auto_selected": selected.id if selected else None,
    }


@router.get("/availability")
async def get_availability(
    doctor_id: str = Query(..., min_length=1),
    date: date = Query(...),
    store: DocumentStore = Depends(get_document_store),
):
    """Open time slots for a doctor on a date."""
    try:
        available = await AvailabilityService(store).get_available_times(doctor_id, date)
    except BookingEngineError as e:
        raise to_http_exception(e) from e

    return {"doctor_id": doctor_id, "date": date.isoformat(), "available_times": available}


# =============================================================================
# Discounts
# =============================================================================

@router.post("/discounts/evaluate")
async def evaluate_discount(
    body: DiscountEvaluationRequest,
    store: DocumentStore = Depends(get_document_store),
):
    """Evaluate a code against the selected service; rejections are 200 with a reason."""
    try:
        catalog = await CatalogMerger(store).load_catalog()
        service = catalog.get(body.service_id)
        if service is None:
            raise ServiceNotFoundError(body.service_id)

        evaluator = DiscountEvaluator(store, service_names=catalog.service_names())
        evaluation = await evaluator.evaluate_for_patient(
            body.code,
            DiscountSelection(service_id=service.id, service_name=service.name, category=service.category),
            service.effective_price(config.DEFAULT_CONSULTATION_FEE),
            body.patient_id,
        )
    except BookingEngineError as e:
        raise to_http_exception(e) from e

    return _evaluation_response(evaluation)


# =============================================================================
# Bookings
# =============================================================================

@router.post("/bookings", status_code=201)
async def create_booking(
    body: CreateBookingRequest,
    store: DocumentStore = Depends(get_document_store),
    gateway: Optional[PaymentGateway] = Depends(get_payment_gateway),
):
    """
    Commit a booking.

    With pay_later the appointment is saved as pending; otherwise the final
    price is charged first and nothing is saved if the charge fails.
    """
    if not body.pay_later and gateway is None:
        raise HTTPException(status_code=503, detail="Online payment is not available. Choose pay later.")

    try:
        catalog = await CatalogMerger(store).load_catalog()
        service = catalog.get(body.service_id)
        if service is None:
            raise ServiceNotFoundError(body.service_id)

        original_price = service.effective_price(config.DEFAULT_CONSULTATION_FEE)

        discount = None
        if body.discount_code:
            evaluator = DiscountEvaluator(store, service_names=catalog.service_names())
            evaluation = await evaluator.evaluate_for_patient(
                body.discount_code,
                DiscountSelection(service_id=service.id, service_name=service.name, category=service.category),
                original_price,
                body.patient_id,
            )
            if not evaluation.is_applied:
                raise HTTPException(status_code=422, detail=evaluation.reason)
            discount = evaluation

        try:
            request = BookingRequest(
                patient_id=body.patient_id,
                service=service,
                doctor_id=body.doctor_id,
                appointment_date=body.date,
                appointment_time=body.time,
                contact=body.contact,
                original_price=original_price,
                payment=PaymentOutcome.pay_later(),
                discount=discount,
                notes=body.notes,
            )
            coordinator = BookingCoordinator(store)
            if body.pay_later:
                result = await coordinator.commit_pay_later(request)
            else:
                result = await coordinator.checkout(request, gateway)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e

    except BookingEngineError as e:
        raise to_http_exception(e) from e

    appointment = result.appointment
    return {
        "booking_id": result.booking_id,
        "confirmation_route": result.confirmation_route,
        "status": appointment.status,
        "payment_status": appointment.payment_status,
        "original_price": appointment.original_price,
        "final_price": appointment.final_price,
        "warnings": result.warnings,
    }


# =============================================================================
# Staff status changes
# =============================================================================

@router.post("/appointments/{patient_id}/{appointment_id}/status")
async def change_appointment_status(
    patient_id: str,
    appointment_id: str,
    body: StatusChangeRequest,
    store: DocumentStore = Depends(get_document_store),
):
    service = AppointmentStatusService(store)

    try:
        if body.status == AppointmentStatus.CONFIRMED:
            result = await service.confirm(patient_id, appointment_id)
        elif body.status == AppointmentStatus.CANCELLED:
            result = await service.cancel(patient_id, appointment_id, body.actor, body.reason)
        elif body.status == AppointmentStatus.COMPLETED:
            result = await service.complete(patient_id, appointment_id)
        elif body.status == AppointmentStatus.RESCHEDULED:
            if body.new_date is None or not body.new_time:
                raise HTTPException(status_code=422, detail="new_date and new_time are required to reschedule")
            result = await service.reschedule(
                patient_id, appointment_id, body.new_date, body.new_time, body.actor, body.reason
            )
        else:
            raise HTTPException(status_code=422, detail=f"Cannot set status to {body.status.value}")
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except BookingEngineError as e:
        raise to_http_exception(e) from e

    return {
        "appointment": result.appointment.to_document(),
        "warnings": result.warnings,
    }
