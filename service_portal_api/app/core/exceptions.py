"""
Error taxonomy shared by the store, the service layer and the API.

Validation problems are detected before anything is written.  Storage
and subscription problems happen after a request reached the document
store and are reported with the store's own message.
"""

from typing import Optional


class ServicePortalError(Exception):
    """Base class for all errors raised by this package."""


class RecordValidationError(ServicePortalError, ValueError):
    """A required field is empty or an enumerated field is out of range.

    ``field`` names the offending input using its wire (camelCase) name.
    """

    def __init__(self, field: str, message: Optional[str] = None) -> None:
        self.field = field
        self.message = message or f"Field '{field}' is invalid"
        super().__init__(self.message)


class StorageError(ServicePortalError):
    """The document store rejected a write, a query or a subscription."""


class SubscriptionError(ServicePortalError):
    """A live subscription terminated unexpectedly."""


class DecodeError(ServicePortalError, ValueError):
    """A stored document cannot be mapped onto a record type."""
