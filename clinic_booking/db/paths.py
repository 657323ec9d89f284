"""
Document locations used by the booking engine.

Per-doctor records live under the doctor's document, so the owning doctor id
is the second path segment of every offering and custom service.
"""
from typing import List, Optional

TREATMENTS = "treatments"
DOCTORS = "doctors"
DOCTOR_SERVICES = "services"
CUSTOM_SERVICES = "customServices"
PATIENTS = "patients"
APPOINTMENTS = "appointments"
DISCOUNT_CODES = "discountCodes"


def join(*segments: str) -> str:
    return "/".join(segment.strip("/") for segment in segments)


def split(path: str) -> List[str]:
    return [segment for segment in (path or "").split("/")]


def treatment_path(treatment_id: str) -> str:
    return join(TREATMENTS, treatment_id)


def doctor_path(doctor_id: str) -> str:
    return join(DOCTORS, doctor_id)


def doctor_service_path(doctor_id: str, treatment_id: str) -> str:
    return join(DOCTORS, doctor_id, DOCTOR_SERVICES, treatment_id)


def custom_service_path(doctor_id: str, service_id: str) -> str:
    return join(DOCTORS, doctor_id, CUSTOM_SERVICES, service_id)


def patient_path(patient_id: str) -> str:
    return join(PATIENTS, patient_id)


def patient_appointment_path(patient_id: str, appointment_id: str) -> str:
    return join(PATIENTS, patient_id, APPOINTMENTS, appointment_id)


def appointment_index_path(appointment_id: str) -> str:
    return join(APPOINTMENTS, appointment_id)


def discount_code_path(code_id: str) -> str:
    return join(DISCOUNT_CODES, code_id)


def doctor_id_from_path(path: str) -> Optional[str]:
    """
    Extract the owning doctor id from a per-doctor sub-record location.

    "doctors/doc1/services/gm-1" -> "doc1"; anything that is not a
    doctors/{id}/{collection}/{doc} path yields None.
    """
    segments = split(path)
    if len(segments) != 4 or segments[0] != DOCTORS:
        return None
    doctor_id = segments[1].strip()
    return doctor_id or None


def parent_collection(path: str) -> str:
    """ "patients/p1/appointments/a1" -> "patients/p1/appointments" """
    return path.rsplit("/", 1)[0] if "/" in path else ""


def document_id(path: str) -> str:
    return path.rsplit("/", 1)[-1]

