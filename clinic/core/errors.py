"""
Domain errors raised by the clinic services.

They carry no HTTP knowledge; ``clinic.main`` maps each kind to a JSON
response.
"""


class ClinicError(Exception):
    """Base class for all domain errors."""

    error = "Clinic Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ClinicError):
    """A required field is missing or malformed."""

    error = "Validation Error"


class InvalidTransition(ClinicError):
    """A status change that the lifecycle does not allow."""

    error = "Invalid Transition"


class AccessDenied(ClinicError):
    """The acting role lacks permission for an operation."""

    error = "Access Denied"


class NotFound(ClinicError):
    error = "Not Found"


class Conflict(ClinicError):
    """The record changed between read and write."""

    error = "Conflict"


class StoreUnavailable(ClinicError):
    """The store did not answer within the timeout and retry budget."""

    error = "Store Unavailable"
