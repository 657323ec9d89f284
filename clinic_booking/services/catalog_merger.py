"""
Catalog Merger

Combines three independently maintained listings into one bookable catalog:
- clinic-wide treatment definitions (treatments/{id})
- per-doctor offerings of those treatments (doctors/{doctorId}/services/{treatmentId})
- per-doctor custom services (doctors/{doctorId}/customServices/{id})

A treatment nobody offers is not bookable and is left out. Malformed source
records are skipped with a warning instead of failing the whole merge. When
nothing at all is bookable the bundled static catalog is returned.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from clinic_booking.db import paths
from clinic_booking.db.document_store import DocumentStore
from clinic_booking.domain.static_catalog import (
    static_available_services,
    static_doctors,
)
from clinic_booking.exceptions import ServiceNotFoundError
from clinic_booking.models.catalog import (
    AvailableService,
    CustomService,
    Doctor,
    DoctorServiceOffering,
    Treatment,
)

logger = logging.getLogger(__name__)


@dataclass
class CatalogSources:
    """Raw inputs to the merge, already parsed into models."""
    treatments: List[Treatment] = field(default_factory=list)
    offerings: List[DoctorServiceOffering] = field(default_factory=list)
    custom_services: List[CustomService] = field(default_factory=list)
    doctors: List[Doctor] = field(default_factory=list)


@dataclass
class Catalog:
    """Merged catalog plus the doctor roster it should be resolved against."""
    services: List[AvailableService]
    doctors: List[Doctor]
    is_fallback: bool = False

    def get(self, service_id: str) -> Optional[AvailableService]:
        for service in self.services:
            if service.id == service_id:
                return service
        return None

    def service_names(self) -> Dict[str, str]:
        return {service.id: service.name for service in self.services}


def _minimum_positive_price(prices: List[Optional[float]]) -> Optional[float]:
    positive = [price for price in prices if price is not None and price > 0]
    return min(positive) if positive else None


def merge_catalog(
    treatments: List[Treatment],
    offerings: List[DoctorServiceOffering],
    custom_services: List[CustomService],
    doctors: Optional[List[Doctor]] = None,
    use_static_fallback: bool = True,
) -> Catalog:
    """
    Merge the three catalog sources into AvailableServices.

    Args:
        treatments: Clinic-wide treatment definitions
        offerings: Doctor offerings; only providesService=true entries count
        custom_services: Doctor-authored services
        doctors: Known doctor profiles
        use_static_fallback: Return the bundled catalog when nothing is bookable

    Returns:
        Catalog whose services each have at least one eligible doctor
    """
    doctors = list(doctors or [])

    doctor_ids_by_treatment: Dict[str, List[str]] = {}
    prices_by_treatment: Dict[str, List[Optional[float]]] = {}

    for offering in offerings:
        if not offering.provides_service:
            continue

        doctor_id = offering.owner_id
        if not doctor_id:
            logger.warning(f"Discarding service offering with no doctor id: {offering.path}")
            continue

        doctor_ids = doctor_ids_by_treatment.setdefault(offering.treatment_id, [])
        if doctor_id not in doctor_ids:
            doctor_ids.append(doctor_id)
        prices_by_treatment.setdefault(offering.treatment_id, []).append(offering.price)

    services: List[AvailableService] = []

    for treatment in treatments:
        doctor_ids = doctor_ids_by_treatment.get(treatment.id)
        if not doctor_ids:
            continue

        services.append(AvailableService(
            id=treatment.id,
            name=treatment.name,
            description=treatment.description,
            category=treatment.category,
            price=_minimum_positive_price(prices_by_treatment.get(treatment.id, [])),
            is_custom=False,
            doctor_ids=list(doctor_ids),
        ))

    for custom in custom_services:
        doctor_id = custom.owner_id
        if not doctor_id:
            logger.warning(f"Discarding custom service {custom.id} with no owning doctor")
            continue

        services.append(AvailableService(
            id=custom.id,
            name=custom.name,
            description=custom.description,
            category=custom.category,
            price=custom.price if custom.price is not None and custom.price > 0 else None,
            is_custom=True,
            doctor_ids=[doctor_id],
        ))

    if services or not use_static_fallback:
        return Catalog(services=services, doctors=doctors)

    logger.info("No dynamic services configured, using bundled catalog")
    fallback_doctors = doctors or static_doctors()
    fallback_ids = [doctor.id for doctor in fallback_doctors]
    fallback_services = [
        service.model_copy(update={"doctor_ids": list(fallback_ids)})
        for service in static_available_services()
    ]
    return Catalog(services=fallback_services, doctors=fallback_doctors, is_fallback=True)


class CatalogMerger:
    """Loads catalog sources from the document store and merges them."""

    def __init__(self, store: DocumentStore, use_static_fallback: bool = True):
        self.store = store
        self.use_static_fallback = use_static_fallback

    async def load_sources(self) -> CatalogSources:
        treatment_docs = await self.store.list(paths.TREATMENTS)
        offering_docs = await self.store.collection_group(paths.DOCTOR_SERVICES)
        custom_docs = await self.store.collection_group(paths.CUSTOM_SERVICES)
        doctor_docs = await self.store.list(paths.DOCTORS)

        sources = CatalogSources(
            treatments=[t for t in map(Treatment.from_document, treatment_docs) if t],
            offerings=[o for o in map(DoctorServiceOffering.from_document, offering_docs) if o],
            custom_services=[c for c in map(CustomService.from_document, custom_docs) if c],
            doctors=[d for d in map(Doctor.from_document, doctor_docs) if d],
        )

        logger.debug(
            f"Loaded catalog sources: {len(sources.treatments)} treatments, "
            f"{len(sources.offerings)} offerings, {len(sources.custom_services)} custom services, "
            f"{len(sources.doctors)} doctors"
        )
        return sources

    async def load_catalog(self) -> Catalog:
        """Rebuild the merged catalog from the store."""
        sources = await self.load_sources()
        catalog = merge_catalog(
            sources.treatments,
            sources.offerings,
            sources.custom_services,
            sources.doctors,
            use_static_fallback=self.use_static_fallback,
        )
        logger.info(f"Catalog loaded: {len(catalog.services)} bookable services (fallback={catalog.is_fallback})")
        return catalog

    async def get_service(self, service_id: str) -> AvailableService:
        catalog = await self.load_catalog()
        service = catalog.get(service_id)
        if service is None:
            raise ServiceNotFoundError(service_id)
        return service
