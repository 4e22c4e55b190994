# services/__init__.py
from .errors import (
     InvoicingError,
     NotFoundError,
     ConflictError,
     InvalidOperationError,
     EmailDeliveryError,
)

__all__ = [
     "InvoicingError",
     "NotFoundError",
     "ConflictError",
     "InvalidOperationError",
     "EmailDeliveryError",
]
