"""
Exceptions raised by the negotiation engine.

Each class carries the classification and HTTP status the API layer
reports, plus a retryable flag. Messages are caller-facing; the
underlying cause (original_error) is only ever logged.
"""


class SchedulingError(Exception):
    """Base exception for negotiation operations."""

    error_type: str = "internal_error"
    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(SchedulingError):
    """
    Request data failed a business rule.

    Causes:
    - Missing recipient, title or event type
    - Wrong number of proposed dates
    - Window whose end is not after its start
    """

    error_type = "validation_error"
    status_code = 400


class AccessDeniedError(SchedulingError):
    """
    Caller may not perform the action.

    Causes:
    - Wrong role for the operation
    - No accepted connection between provider and individual
    - Caller is not a participant of the event request
    """

    error_type = "access_denied"
    status_code = 403

    def __init__(self, message: str = "Access denied", original_error: Exception | None = None):
        super().__init__(message, original_error)


class NotFoundError(SchedulingError):
    """Event request or proposed date does not exist."""

    error_type = "not_found"
    status_code = 404


class InvalidTransitionError(SchedulingError):
    """
    Action is not allowed from the request's current status.

    Also raised when a concurrent writer changed the status between the
    precondition read and the conditional update.
    """

    error_type = "invalid_transition"
    status_code = 409


class PersistenceError(SchedulingError):
    """
    Transaction failed while writing.

    The transaction has been rolled back; the message is generic.
    """

    error_type = "database_error"
    status_code = 500
    retryable = True
