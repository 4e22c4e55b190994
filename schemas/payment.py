"""
Pydantic schemas for recording payments against invoices.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator

from .invoice import as_naive_utc


class PaymentCreate(BaseModel):
     """Request body for POST /api/invoices/{id}/payments."""

     amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2, description="Amount received")
     paid_at: Optional[datetime] = Field(None, description="When the money was received (defaults to now)")
     reference: Optional[str] = Field(
          None,
          max_length=255,
          description="External reference, e.g. bank transfer id",
     )

     @field_validator("paid_at", mode="after")
     @classmethod
     def naive_utc_paid_at(cls, value):
          return as_naive_utc(value)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "amount": 140.00,
                    "reference": "BANK-TRX-000123",
               }
          }
     )


class MarkPaidRequest(BaseModel):
     """Optional body for PATCH /api/invoices/{id}/mark-paid."""

     paid_at: Optional[datetime] = None
     reference: Optional[str] = Field(None, max_length=255)

     @field_validator("paid_at", mode="after")
     @classmethod
     def naive_utc_paid_at(cls, value):
          return as_naive_utc(value)


class PaymentResponse(BaseModel):
     id: int
     invoice_id: int
     customer_id: int
     amount: Decimal
     paid_at: datetime
     recorded_by: Optional[int] = None
     reference: Optional[str] = None

     model_config = ConfigDict(from_attributes=True)
