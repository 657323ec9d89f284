"""
Discount Evaluator

Validates a typed discount code against the in-progress booking and computes
the discounted price. Gates run in order and the first failure wins:

1. code exists (trimmed, upper-cased lookup)
2. code is active
3. code has not expired
4. usage limit not reached
5. criteria check for the code's criteria type
6. discount computation, final price clamped at zero

Evaluation has no side effects; usage is only counted when a booking is
committed (see BookingCoordinator).
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Mapping, Optional

from pydantic import ValidationError

from clinic_booking import config
from clinic_booking.db import paths
from clinic_booking.db.document_store import DocumentStore
from clinic_booking.models.booking import Patient
from clinic_booking.models.discount import (
    CriteriaType,
    DiscountCode,
    DiscountEvaluation,
    DiscountSelection,
    DiscountType,
    normalize_code,
)
from clinic_booking.utils.time_slots import slugify

logger = logging.getLogger(__name__)

INVALID_CODE = "Invalid discount code."
INACTIVE_CODE = "This discount code is no longer active."
EXPIRED_CODE = "This discount code has expired."
USAGE_LIMIT_REACHED = "This discount code has reached its usage limit."


@dataclass(frozen=True)
class DiscountContext:
    """What a criteria check can see about the booking."""
    selection: DiscountSelection
    original_price: float
    prior_appointment_count: int
    service_names: Mapping[str, str]


def format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return f"{config.CURRENCY_SYMBOL}{amount:,.0f}"
    return f"{config.CURRENCY_SYMBOL}{amount:,.2f}"


def category_title(slug: str) -> str:
    """ "aesthetic-treatments" -> "Aesthetic Treatments" """
    return (slug or "").replace("-", " ").title()


# =============================================================================
# CRITERIA CHECKS
# =============================================================================
# Each check returns None when the code applies, or the rejection reason.

CriteriaCheck = Callable[[DiscountCode, DiscountContext], Optional[str]]


def _check_all(code: DiscountCode, context: DiscountContext) -> Optional[str]:
    return None


def _check_service(code: DiscountCode, context: DiscountContext) -> Optional[str]:
    if code.service_id == context.selection.service_id:
        return None
    required = context.service_names.get(code.service_id or "", code.service_id or "a specific service")
    return f"This code is only valid for {required}."


def _check_category(code: DiscountCode, context: DiscountContext) -> Optional[str]:
    if code.category_slug and code.category_slug == slugify(context.selection.category):
        return None
    return f"This code is only valid for {category_title(code.category_slug)} services."


def _check_minimum_amount(code: DiscountCode, context: DiscountContext) -> Optional[str]:
    minimum = code.minimum_amount or 0
    if context.original_price >= minimum:
        return None
    return f"This code requires a minimum booking amount of {format_amount(minimum)}."


def _check_returning_client(code: DiscountCode, context: DiscountContext) -> Optional[str]:
    required = code.min_appointment_count or 1
    if context.prior_appointment_count >= required:
        return None
    plural = "booking" if required == 1 else "bookings"
    return f"This code is only for returning clients with at least {required} previous {plural}."


CRITERIA_CHECKS: Dict[CriteriaType, CriteriaCheck] = {
    CriteriaType.ALL: _check_all,
    CriteriaType.SERVICE: _check_service,
    CriteriaType.CATEGORY: _check_category,
    CriteriaType.MINIMUM_AMOUNT: _check_minimum_amount,
    CriteriaType.RETURNING_CLIENT: _check_returning_client,
}

_unhandled = set(CriteriaType) - set(CRITERIA_CHECKS)
if _unhandled:
    raise RuntimeError(f"No criteria check registered for: {sorted(c.value for c in _unhandled)}")


def compute_discount(code: DiscountCode, original_price: float) -> float:
    """Discount amount before clamping: percent of the price, or a flat value."""
    if code.discount_type == DiscountType.PERCENTAGE:
        return original_price * code.discount_value / 100
    return code.discount_value


def _is_expired(expires_at: Optional[datetime], now: datetime) -> bool:
    if expires_at is None:
        return False
    if expires_at.tzinfo is None and now.tzinfo is not None:
        now = now.replace(tzinfo=None)
    elif expires_at.tzinfo is not None and now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return expires_at < now


def evaluate_code(
    code: Optional[DiscountCode],
    selection: DiscountSelection,
    original_price: float,
    prior_appointment_count: int = 0,
    now: Optional[datetime] = None,
    service_names: Optional[Mapping[str, str]] = None,
) -> DiscountEvaluation:
    """
    Run the gate checks for an already looked-up code.

    Args:
        code: The matched code record, or None if the lookup found nothing
        selection: Service currently selected in the booking
        original_price: Price before any discount
        prior_appointment_count: Patient's completed booking count
        now: Evaluation time (defaults to current UTC time)
        service_names: Service id -> display name, for rejection messages

    Returns:
        DiscountEvaluation; rejected evaluations leave the price unchanged
    """
    if code is None:
        return DiscountEvaluation.rejected(original_price, INVALID_CODE)

    if not code.is_active:
        return DiscountEvaluation.rejected(original_price, INACTIVE_CODE)

    if _is_expired(code.expires_at, now or datetime.now(timezone.utc)):
        return DiscountEvaluation.rejected(original_price, EXPIRED_CODE)

    if code.usage_limit is not None and code.usage_count >= code.usage_limit:
        return DiscountEvaluation.rejected(original_price, USAGE_LIMIT_REACHED)

    context = DiscountContext(
        selection=selection,
        original_price=original_price,
        prior_appointment_count=prior_appointment_count,
        service_names=service_names or {},
    )
    reason = CRITERIA_CHECKS[code.criteria_type](code, context)
    if reason:
        return DiscountEvaluation.rejected(original_price, reason)

    return DiscountEvaluation.applied(code, original_price, compute_discount(code, original_price))


class DiscountEvaluator:
    """Looks up discount codes in the store and evaluates them."""

    def __init__(self, store: DocumentStore, service_names: Optional[Mapping[str, str]] = None):
        self.store = store
        self.service_names = dict(service_names or {})

    async def find_code(self, typed_code: str) -> Optional[DiscountCode]:
        code = normalize_code(typed_code)
        if not code:
            return None

        documents = await self.store.query(paths.DISCOUNT_CODES, "code", code)
        for doc in documents:
            try:
                return DiscountCode.from_document(doc)
            except ValidationError as e:
                logger.warning(f"Ignoring malformed discount code {doc.path}: {e.error_count()} errors")
        return None

    async def get_prior_appointment_count(self, patient_id: Optional[str]) -> int:
        if not patient_id:
            return 0
        doc = await self.store.get(paths.patient_path(patient_id))
        if doc is None:
            return 0
        try:
            return Patient.model_validate({"id": doc.id, **doc.data}).appointment_count
        except ValidationError:
            logger.warning(f"Patient {patient_id} has an unreadable appointmentCount, treating as new")
            return 0

    async def evaluate(
        self,
        typed_code: str,
        selection: DiscountSelection,
        original_price: float,
        prior_appointment_count: int = 0,
        now: Optional[datetime] = None,
    ) -> DiscountEvaluation:
        """
        Evaluate a typed code against the booking.

        Each call starts from the original price; a new code replaces any
        earlier result rather than stacking on it.
        """
        code = await self.find_code(typed_code)
        evaluation = evaluate_code(
            code,
            selection,
            original_price,
            prior_appointment_count=prior_appointment_count,
            now=now,
            service_names=self.service_names,
        )

        if evaluation.is_applied:
            logger.info(
                f"Discount {evaluation.code.code} applied: "
                f"{original_price} -> {evaluation.final_price}"
            )
        else:
            logger.info(f"Discount code {normalize_code(typed_code)!r} rejected: {evaluation.reason}")
        return evaluation

    async def evaluate_for_patient(
        self,
        typed_code: str,
        selection: DiscountSelection,
        original_price: float,
        patient_id: Optional[str],
        now: Optional[datetime] = None,
    ) -> DiscountEvaluation:
        """Evaluate using the patient's stored appointmentCount as prior bookings."""
        prior = await self.get_prior_appointment_count(patient_id)
        return await self.evaluate(typed_code, selection, original_price, prior, now=now)
