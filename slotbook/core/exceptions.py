"""
Domain exceptions for the scheduling and booking engine.
Raised by models and services, rendered to HTTP by the handler registered in main.py.
"""


class SchedulingError(Exception):
    """Base exception for all scheduling engine errors."""
    status_code = 400
    error_type = "scheduling_error"
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "error": self.error_type,
            "retryable": self.retryable,
        }


class ValidationError(SchedulingError, ValueError):
    """Malformed input: inverted intervals, missing fields, break outside its rule item."""
    status_code = 422
    error_type = "validation_error"


class NotFoundError(SchedulingError):
    """Referenced schedule, slot, rule item, break or booking does not exist."""
    status_code = 404
    error_type = "not_found"


class ConflictError(SchedulingError):
    """State changed underneath the caller (slot taken, duplicate override date, overlap).

    Callers may retry: the condition can clear once a concurrent operation settles.
    """
    status_code = 409
    error_type = "conflict"
    retryable = True


class InvalidOperationError(SchedulingError):
    """Well-formed request that the aggregate's current state forbids."""
    status_code = 400
    error_type = "invalid_operation"


class ForbiddenError(SchedulingError):
    """Caller is not allowed to act on the target business."""
    status_code = 403
    error_type = "forbidden"
