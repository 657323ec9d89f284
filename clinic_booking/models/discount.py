"""
Discount code models.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from clinic_booking.db.document_store import StoredDocument


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class CriteriaType(str, Enum):
    ALL = "all"
    SERVICE = "service"
    CATEGORY = "category"
    MINIMUM_AMOUNT = "minimum_amount"
    RETURNING_CLIENT = "returning_client"


def normalize_code(value: str) -> str:
    """Canonical form of a typed code: trimmed and upper-cased."""
    return (value or "").strip().upper()


class DiscountCode(BaseModel):
    """Admin-managed discount code record."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    code: str = Field(..., min_length=1)
    discount_type: DiscountType = Field(..., alias="discountType")
    discount_value: float = Field(..., alias="discountValue", ge=0)
    is_active: bool = Field(True, alias="isActive")
    usage_limit: Optional[int] = Field(None, alias="usageLimit")
    usage_count: int = Field(0, alias="usageCount")
    expires_at: Optional[datetime] = Field(None, alias="expiresAt")
    criteria_type: CriteriaType = Field(CriteriaType.ALL, alias="criteriaType")
    service_id: Optional[str] = Field(None, alias="serviceId")
    category_slug: Optional[str] = Field(None, alias="categorySlug")
    minimum_amount: Optional[float] = Field(None, alias="minimumAmount")
    min_appointment_count: Optional[int] = Field(None, alias="minAppointmentCount")

    @field_validator("code")
    @classmethod
    def canonical_code(cls, value: str) -> str:
        return normalize_code(value)

    @field_validator("usage_limit")
    @classmethod
    def positive_limit(cls, value: Optional[int]) -> Optional[int]:
        # a zero or negative limit is stored by admin tooling as "no limit"
        if value is not None and value <= 0:
            return None
        return value

    @classmethod
    def from_document(cls, doc: StoredDocument) -> "DiscountCode":
        return cls.model_validate({"id": doc.id, **doc.data})


class DiscountSelection(BaseModel):
    """The part of the in-progress booking a discount code is checked against."""
    service_id: str
    service_name: str = ""
    category: str = ""


class DiscountEvaluation(BaseModel):
    """
    Result of evaluating one code against one booking.

    On success `code` is set and `reason` is None; on rejection `reason`
    carries the message shown to the patient and the price is unchanged.
    """
    original_price: float
    final_price: float
    discount_amount: float = 0.0
    code: Optional[DiscountCode] = None
    reason: Optional[str] = None

    @property
    def is_applied(self) -> bool:
        return self.code is not None and self.reason is None

    @classmethod
    def applied(cls, code: DiscountCode, original_price: float, discount_amount: float) -> "DiscountEvaluation":
        return cls(
            original_price=original_price,
            final_price=max(0.0, original_price - discount_amount),
            discount_amount=discount_amount,
            code=code,
        )

    @classmethod
    def rejected(cls, original_price: float, reason: str) -> "DiscountEvaluation":
        return cls(original_price=original_price, final_price=original_price, reason=reason)
