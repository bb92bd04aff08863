from django.core.exceptions import ValidationError as DjangoValidationError


class AdmissionNotFoundError(Exception):
    """Raised when the user or event of an admission request does not exist."""


class UserNotFoundError(AdmissionNotFoundError):
    """Raised when the applicant does not exist."""


class EventNotFoundError(AdmissionNotFoundError):
    """Raised when the event does not exist."""


class AdmissionSystemError(Exception):
    """Raised for failures that are not business rejections."""


class ConcurrencyConflictError(AdmissionSystemError):
    """Raised when a conditional write lost a race against another registration."""


class AdmissionUnavailableError(AdmissionSystemError):
    """Raised when the backing store cannot be reached or fails."""


class EventTransitionError(DjangoValidationError):
    """Raised when an Event is moved to a status its current status does not allow."""
