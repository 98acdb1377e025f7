"""
Domain exceptions raised by the services and translated to JSON by the API.
"""


class InvoicelyError(Exception):
    """Base class for all application errors."""


class ValidationError(InvoicelyError):
    """A request payload failed validation."""


class ConflictError(InvoicelyError):
    """A uniqueness constraint was violated at the persistence layer."""

    def __init__(self, message: str = "Conflict", *, field: str | None = None, value=None):
        super().__init__(message)
        self.field = field
        self.value = value


class InvoiceNumberAllocationError(InvoicelyError):
    """Every attempt to allocate a fresh invoice number collided."""

    def __init__(self, attempts: int):
        super().__init__("Could not allocate invoice number, please retry")
        self.attempts = attempts
