# services/errors.py
"""
Exceptions raised by the service layer.

Routers translate these into HTTP responses; see routers._errors.
"""


class InvoicingError(ValueError):
     """Base class for business-rule violations."""


class NotFoundError(InvoicingError):
     """Referenced record does not exist in the caller's organization."""


class ConflictError(InvoicingError):
     """Operation conflicts with the current state of a record."""


class InvalidOperationError(InvoicingError):
     """Operation is not allowed for the record in its current state."""


class EmailDeliveryError(InvoicingError):
     """Outbound email could not be delivered by the transport."""
