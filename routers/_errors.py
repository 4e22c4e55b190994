# routers/_errors.py
"""
Translation of service-layer exceptions into HTTP errors.
"""
from fastapi import HTTPException, status

from services.errors import (
     ConflictError,
     EmailDeliveryError,
     InvalidOperationError,
     InvoicingError,
     NotFoundError,
)

_STATUS_CODES = (
     (NotFoundError, status.HTTP_404_NOT_FOUND),
     (ConflictError, status.HTTP_409_CONFLICT),
     (InvalidOperationError, status.HTTP_400_BAD_REQUEST),
     (EmailDeliveryError, status.HTTP_502_BAD_GATEWAY),
)


def http_error(exc: InvoicingError) -> HTTPException:
     for error_type, code in _STATUS_CODES:
          if isinstance(exc, error_type):
               return HTTPException(status_code=code, detail=str(exc))
     return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
