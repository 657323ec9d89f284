"""
Doctor Resolver

Resolves which doctors can be chosen for a bookable service. Doctor ids that
appear in service configuration but have no profile yet are returned as
PendingDoctor entries so they stay selectable.
"""

import logging
from typing import List, Optional

from clinic_booking.exceptions import NoEligibleDoctorError, ServiceNotFoundError
from clinic_booking.models.catalog import (
    AvailableService,
    Doctor,
    DoctorChoice,
    KnownDoctor,
    PendingDoctor,
)

from .catalog_merger import CatalogMerger

logger = logging.getLogger(__name__)

def resolve_doctors(service: AvailableService, doctors: List[Doctor]) -> List[DoctorChoice]:
    """
    Map a service's doctor ids to doctor choices, in the service's order.

    Args:
        service: Merged service with its eligible doctor ids
        doctors: Known doctor profiles

    Returns:
        One KnownDoctor or PendingDoctor per doctor id
    """
    profiles = {doctor.id: doctor for doctor in doctors}
    choices: List[DoctorChoice] = []

    for doctor_id in service.doctor_ids:
        profile = profiles.get(doctor_id)
        if profile is not None:
            choices.append(KnownDoctor(profile=profile))
        else:
            logger.info(f"Doctor {doctor_id} offers {service.id} but has no profile yet")
            choices.append(PendingDoctor(doctor_id=doctor_id))

    return choices


def auto_select(choices: List[DoctorChoice]) -> Optional[DoctorChoice]:
    """The only choice when exactly one doctor is eligible, otherwise None."""
    return choices[0] if len(choices) == 1 else None


def ensure_eligible(service: AvailableService, doctor_id: str) -> None:
    """
    Raises:
        NoEligibleDoctorError: If the service has no doctors or doctor_id is not one of them
    """
    if not service.doctor_ids:
        raise NoEligibleDoctorError(service.id)
    if doctor_id not in service.doctor_ids:
        raise NoEligibleDoctorError(service.id, doctor_id)


def choice_to_dict(choice: DoctorChoice) -> dict:
    return {
        "id": choice.id,
        "kind": choice.kind,
        "name": choice.display_name,
        "specialization": choice.specialization,
    }


class DoctorResolver:
    """Maps services to eligible doctors using the merged catalog."""

    def __init__(self, catalog_merger: CatalogMerger):
        self.catalog_merger = catalog_merger

    async def get_doctors_for_service(self, service_id: str) -> List[DoctorChoice]:
        """
        Find the doctors eligible for a service.

        Raises:
            ServiceNotFoundError: If the service is not bookable
            NoEligibleDoctorError: If the service has no doctor attached
        """
        catalog = await self.catalog_merger.load_catalog()
        service = catalog.get(service_id)
        if service is None:
            raise ServiceNotFoundError(service_id)

        choices = resolve_doctors(service, catalog.doctors)
        if not choices:
            raise NoEligibleDoctorError(service_id)

        logger.info(f"Found {len(choices)} eligible doctors for service {service_id}")
        return choices
