"""
Custom exceptions for the booking engine.
Raised in engine/verification/orchestrator code and translated to JSON
error responses by apps.core.api.api_view.

Each error carries an HTTP status, a stable machine-readable code and a
retryable flag so clients can tell "try again" apart from "give up".
"""


class BookingEngineError(Exception):
    """Base exception for all booking engine errors."""
    status_code = 400
    code = 'BOOKING_ERROR'
    retryable = False

    def __init__(self, message: str = '', **details):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__
        self.details = details


class NotFoundError(BookingEngineError):
    """The requested service, professional or appointment does not exist."""
    status_code = 404
    code = 'NOT_FOUND'


class ValidationError(BookingEngineError):
    """Request data failed validation (time window, duration, phone, email)."""
    status_code = 400
    code = 'VALIDATION_ERROR'


class SlotConflictError(BookingEngineError):
    """The requested slot overlaps an appointment that already holds it."""
    status_code = 409
    code = 'SLOT_CONFLICT'
    retryable = True


class InvalidStateError(BookingEngineError):
    """The appointment is not in a state that allows this operation."""
    status_code = 409
    code = 'INVALID_STATE'


class CodeMismatchError(BookingEngineError):
    """The submitted verification code does not match."""
    status_code = 400
    code = 'CODE_MISMATCH'
    retryable = True


class VerificationExpiredError(BookingEngineError):
    """The verification window elapsed before the code was confirmed."""
    status_code = 410
    code = 'VERIFICATION_EXPIRED'


class NotificationFailedError(BookingEngineError):
    """The messaging channel could not deliver the verification code."""
    status_code = 502
    code = 'NOTIFICATION_FAILED'
    retryable = True


class AuthenticationRequired(BookingEngineError):
    """No valid bearer token was supplied."""
    status_code = 401
    code = 'AUTHENTICATION_REQUIRED'


class Unauthorized(BookingEngineError):
    """The caller's role does not allow this operation."""
    status_code = 403
    code = 'UNAUTHORIZED'
