from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    ``kind`` and ``http_status`` let the controller layer turn any domain error
    into a distinct, user-displayable JSON response.
    """

    kind = "domain_error"
    http_status = 400
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(DomainError):
    """Raised when input data is missing, malformed or violates an invariant."""

    kind = "validation_error"
    default_message = "Invalid input"


class NotFoundError(DomainError):
    kind = "not_found"
    http_status = 404
    default_message = "Not found"


class InvalidCodeError(NotFoundError):
    kind = "invalid_code"
    default_message = "Invalid QR code"


class SessionNotFoundError(NotFoundError):
    kind = "session_not_found"
    default_message = "The class session bound to this code no longer exists"


class NoMatchingAbsenceError(NotFoundError):
    kind = "no_matching_absence"
    default_message = "No matching absence record found"


class JustificationNotFoundError(NotFoundError):
    kind = "justification_not_found"
    default_message = "Justification not found"


class MissingReferenceError(NotFoundError):
    """Raised by the storage layer when a foreign key points at no row."""

    kind = "missing_reference"
    default_message = "Referenced record does not exist"


class UnknownStudentError(NotFoundError):
    kind = "unknown_student"
    default_message = "Student not found"


class ExpiredError(DomainError):
    kind = "expired"
    default_message = "Expired"


class ExpiredCodeError(ExpiredError):
    kind = "expired_code"
    default_message = "QR code has expired"


class ConflictError(DomainError):
    kind = "conflict"
    http_status = 409
    default_message = "Conflicting request"


class DuplicateKeyError(ConflictError):
    """Raised by the storage layer when a unique key rejects an insert."""

    kind = "duplicate"
    default_message = "Duplicate entry"


class AlreadyResolvedError(ConflictError):
    kind = "already_resolved"
    default_message = "Justification has already been reviewed"


class DuplicateJustificationError(ConflictError):
    kind = "duplicate_justification"
    default_message = "A justification was already submitted for this absence"


class StorageError(DomainError):
    """Backing-store failure. The message shown to users stays opaque."""

    kind = "storage_error"
    http_status = 500
    default_message = "Storage error, please try again"
