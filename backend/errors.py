"""
errors.py — Typed failures raised by the expense services.
main.py maps each class onto an HTTP status; nothing store-specific leaks out.
"""


class ExpenseError(Exception):
    """Base class for every error the services hand back to the caller layer."""

    status_code = 500
    message = "Unexpected error"

    def __init__(self, message: str | None = None, details: dict | None = None):
        self.message = message or self.message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.details:
            body["errors"] = self.details
        return body


class ValidationError(ExpenseError):
    """Bad amount/category or a missing required field. Not retryable."""

    status_code = 400
    message = "Validation Error"


class NotFound(ExpenseError):
    """Target absent, or owned by somebody else."""

    status_code = 404
    message = "Not found"


class InvalidArgument(ExpenseError):
    """Malformed period identifier or unknown history kind."""

    status_code = 400
    message = "Invalid argument"


class StoreUnavailable(ExpenseError):
    """The database could not be reached. Safe to retry with backoff."""

    status_code = 503
    message = "Storage temporarily unavailable"


class DeliveryFailed(ExpenseError):
    status_code = 500
    message = "Failed to send verification email. Please try again."
