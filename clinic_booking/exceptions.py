"""
Custom exceptions for the booking engine.
"""


class BookingEngineError(Exception):
    """Base class for booking engine errors."""


class DocumentStoreError(BookingEngineError):
    """Raised when the document store cannot complete a read or write."""

    def __init__(self, operation: str, path: str, cause: Exception = None):
        self.operation = operation
        self.path = path
        self.cause = cause
        message = f"Document store {operation} failed for '{path}'"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class DocumentNotFoundError(BookingEngineError):
    """Raised when a document expected to exist is missing."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Document '{path}' not found")


class SlotNotAvailableError(BookingEngineError):
    """Raised when attempting to book a slot held by a confirmed appointment."""

    def __init__(self, doctor_id: str = None, slot: str = None, message: str = None):
        self.doctor_id = doctor_id
        self.slot = slot
        self.message = message or f"Slot {slot} is not available for doctor {doctor_id}"
        super().__init__(self.message)


class ServiceNotFoundError(BookingEngineError):
    """Raised when a service id is not part of the merged catalog."""

    def __init__(self, service_id: str):
        self.service_id = service_id
        super().__init__(f"Service {service_id} not found")


class NoEligibleDoctorError(BookingEngineError):
    """Raised when a service has no doctor able to perform it."""

    def __init__(self, service_id: str, doctor_id: str = None):
        self.service_id = service_id
        self.doctor_id = doctor_id
        if doctor_id:
            message = f"Doctor {doctor_id} does not offer service {service_id}"
        else:
            message = f"No eligible doctor for service {service_id}"
        super().__init__(message)


class PaymentFailedError(BookingEngineError):
    """Raised when the payment gateway declines a charge."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Payment failed: {reason}")


class BookingPersistenceError(BookingEngineError):
    """Raised when the primary appointment write fails."""

    def __init__(self, message: str = "Failed to save appointment. Please try again."):
        self.message = message
        super().__init__(message)


class InvalidBookingIdError(BookingEngineError):
    """Raised when a booking id fails format, checksum or date validation."""

    def __init__(self, booking_id: str, reason: str):
        self.booking_id = booking_id
        self.reason = reason
        super().__init__(f"{reason}: {booking_id}")


class InvalidStatusTransitionError(BookingEngineError):
    """Raised when an appointment status change is not allowed."""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move appointment from '{current}' to '{requested}'")
