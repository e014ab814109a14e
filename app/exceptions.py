"""
Domain errors raised by the record stores.

HTTP mapping lives in app.main; nothing here knows about transport.
"""


class BookingFlowError(Exception):
    """Base class for every error the record stores raise."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingFlowError):
    """A required field is missing or malformed. Nothing was written."""

    def __init__(self, fields: list[str], message: str | None = None):
        self.fields = fields
        super().__init__(message or f"Missing or invalid fields: {', '.join(fields)}")


class StorageUnavailableError(BookingFlowError):
    """The underlying read or write failed. The core does not retry."""


class ReferentialGapWarning(UserWarning):
    """A customer or payment row points at a booking id that does not exist."""
