"""
Catalog models: treatments, doctor offerings, custom services and the merged
bookable view.
"""
import logging
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from clinic_booking.db import paths
from clinic_booking.db.document_store import StoredDocument
from clinic_booking.utils.time_slots import slugify

logger = logging.getLogger(__name__)

PENDING_DOCTOR_NAME = "Clinic Doctor"
PENDING_DOCTOR_SPECIALIZATION = "General Practice"


class CatalogModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Treatment(CatalogModel):
    """Clinic-defined service template."""
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str = ""
    category: str = ""

    @classmethod
    def from_document(cls, doc: StoredDocument) -> Optional["Treatment"]:
        try:
            return cls.model_validate({"id": doc.id, **doc.data})
        except ValidationError as e:
            logger.warning(f"Skipping malformed treatment {doc.path}: {e.error_count()} errors")
            return None


class DoctorServiceOffering(CatalogModel):
    """A doctor's declaration that they perform a Treatment at a price."""
    path: Optional[str] = None
    doctor_id: Optional[str] = Field(None, alias="doctorId")
    treatment_id: str = Field(..., alias="treatmentId", min_length=1)
    provides_service: bool = Field(False, alias="providesService")
    price: Optional[float] = None

    @property
    def owner_id(self) -> Optional[str]:
        """Doctor id from the storage location, falling back to an explicit field."""
        return paths.doctor_id_from_path(self.path) or (self.doctor_id or None)

    @classmethod
    def from_document(cls, doc: StoredDocument) -> Optional["DoctorServiceOffering"]:
        data = {"treatmentId": doc.id, **doc.data, "path": doc.path}
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Skipping malformed service offering {doc.path}: {e.error_count()} errors")
            return None


class CustomService(CatalogModel):
    """Doctor-authored service that is not tied to a Treatment."""
    id: str = Field(..., min_length=1)
    path: Optional[str] = None
    name: str = Field(..., min_length=1)
    description: str = ""
    category: str = ""
    price: Optional[float] = None
    created_by: Optional[str] = Field(None, alias="createdBy")

    @property
    def owner_id(self) -> Optional[str]:
        """Doctor id from the storage location, falling back to the creator."""
        return paths.doctor_id_from_path(self.path) or (self.created_by or None)

    @classmethod
    def from_document(cls, doc: StoredDocument) -> Optional["CustomService"]:
        try:
            return cls.model_validate({"id": doc.id, **doc.data, "path": doc.path})
        except ValidationError as e:
            logger.warning(f"Skipping malformed custom service {doc.path}: {e.error_count()} errors")
            return None


class AvailableService(CatalogModel):
    """Merged, bookable view of a Treatment or CustomService."""
    id: str
    name: str
    description: str = ""
    category: str = ""
    price: Optional[float] = None
    is_custom: bool = Field(False, alias="isCustom")
    doctor_ids: List[str] = Field(default_factory=list, alias="doctorIds")

    @property
    def category_slug(self) -> str:
        return slugify(self.category)

    def effective_price(self, default_fee: float) -> float:
        """Resolved price, or the default consultation fee when none is configured."""
        return self.price if self.price is not None else default_fee


class Doctor(CatalogModel):
    """Doctor profile."""
    id: str = Field(..., min_length=1)
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")
    specialization: str = ""
    email: Optional[str] = None
    status: Optional[str] = None
    onboarding_complete: Optional[bool] = Field(None, alias="onboardingComplete")

    @property
    def display_name(self) -> str:
        full_name = f"{self.first_name} {self.last_name}".strip()
        return f"Dr. {full_name}" if full_name else PENDING_DOCTOR_NAME

    @classmethod
    def from_document(cls, doc: StoredDocument) -> Optional["Doctor"]:
        try:
            return cls.model_validate({"id": doc.id, **doc.data})
        except ValidationError as e:
            logger.warning(f"Skipping malformed doctor profile {doc.path}: {e.error_count()} errors")
            return None


class KnownDoctor(BaseModel):
    """A selectable doctor with a full profile."""
    kind: Literal["known"] = "known"
    profile: Doctor

    @property
    def id(self) -> str:
        return self.profile.id

    @property
    def display_name(self) -> str:
        return self.profile.display_name

    @property
    def specialization(self) -> str:
        return self.profile.specialization


class PendingDoctor(BaseModel):
    """A doctor id referenced by service configuration whose profile does not exist yet."""
    kind: Literal["pending"] = "pending"
    doctor_id: str

    @property
    def id(self) -> str:
        return self.doctor_id

    @property
    def display_name(self) -> str:
        return PENDING_DOCTOR_NAME

    @property
    def specialization(self) -> str:
        return PENDING_DOCTOR_SPECIALIZATION


DoctorChoice = Annotated[Union[KnownDoctor, PendingDoctor], Field(discriminator="kind")]
