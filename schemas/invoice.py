"""
Pydantic schemas for Invoice API request/response validation.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, field_validator
from enum import Enum


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
     """Dates are stored as naive UTC; shift offset-aware input onto that clock."""
     if value is not None and value.tzinfo is not None:
          return value.astimezone(timezone.utc).replace(tzinfo=None)
     return value


class InvoiceStatusEnum(str, Enum):
     """Invoice status options."""
     DRAFT = "draft"
     SENT = "sent"
     PAID = "paid"
     OVERDUE = "overdue"


class InvoiceItemIn(BaseModel):
     """One invoice line. amount is billed as given."""
     description: str = Field(..., min_length=1, max_length=500)
     page_qty: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
     service_charge: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
     rate: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
     amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)


class InvoiceItemResponse(BaseModel):
     description: str
     page_qty: Decimal
     service_charge: Decimal
     rate: Decimal
     amount: Decimal

     model_config = ConfigDict(from_attributes=True)


class ReminderResponse(BaseModel):
     sent_at: datetime
     sent_by: int

     model_config = ConfigDict(from_attributes=True)


class InvoiceCreate(BaseModel):
     """Schema for creating a new invoice."""
     customer_id: int = Field(..., gt=0, description="Customer ID (must belong to the organization)")
     issue_date: Optional[datetime] = Field(None, description="Issue date (defaults to now)")
     due_date: Optional[datetime] = Field(None, description="Due date (defaults to issue date + payment terms)")
     items: List[InvoiceItemIn] = Field(default_factory=list)
     tax: Optional[Decimal] = Field(
          None, ge=0, max_digits=12, decimal_places=2,
          description="Absolute tax amount; omit to derive it from the organization tax rate",
     )
     discount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
     notes: Optional[str] = Field(None, max_length=2000)

     @field_validator("issue_date", "due_date", mode="after")
     @classmethod
     def naive_utc_dates(cls, value):
          return as_naive_utc(value)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "customer_id": 1,
                    "issue_date": "2024-03-01T00:00:00",
                    "due_date": "2024-03-31T00:00:00",
                    "items": [
                         {"description": "Printing", "page_qty": 100, "service_charge": 0, "rate": 1.00, "amount": 100.00},
                         {"description": "Binding", "page_qty": 1, "service_charge": 0, "rate": 50.00, "amount": 50.00},
                    ],
                    "tax": 10.00,
                    "discount": 20.00,
                    "notes": "Thank you for your business",
               }
          }
     )


class InvoiceUpdate(BaseModel):
     """Schema for updating an existing invoice. The invoice number never changes."""
     customer_id: Optional[int] = Field(None, gt=0)
     issue_date: Optional[datetime] = None
     due_date: Optional[datetime] = None
     items: Optional[List[InvoiceItemIn]] = None
     tax: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
     discount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
     notes: Optional[str] = Field(None, max_length=2000)

     @field_validator("issue_date", "due_date", mode="after")
     @classmethod
     def naive_utc_dates(cls, value):
          return as_naive_utc(value)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "discount": 25.00
               }
          }
     )


class InvoiceResponse(BaseModel):
     """Schema for invoice response."""
     id: int
     org_id: int
     customer_id: int
     invoice_no: str
     issue_date: datetime
     due_date: datetime
     items: List[InvoiceItemResponse] = []
     sub_total: Decimal
     tax: Decimal
     discount: Decimal
     total: Decimal
     amount_paid: Decimal
     balance_due: Decimal
     notes: Optional[str] = None
     status: InvoiceStatusEnum
     created_by: Optional[int] = None
     sent_at: Optional[datetime] = None
     paid_at: Optional[datetime] = None
     reminders: List[ReminderResponse] = []
     is_overdue: bool
     days_overdue: int
     numbering_fallback_used: bool
     total_clamped: bool
     created_at: Optional[datetime] = None
     updated_at: Optional[datetime] = None

     # Optional related data
     customer_name: Optional[str] = None
     customer_email: Optional[str] = None

     @field_validator("status", mode="before")
     @classmethod
     def status_value(cls, value):
          return getattr(value, "value", value)

     model_config = ConfigDict(
          from_attributes=True,
          json_schema_extra={
               "example": {
                    "id": 1,
                    "org_id": 1,
                    "customer_id": 1,
                    "invoice_no": "INV-2024-00001",
                    "issue_date": "2024-03-01T00:00:00",
                    "due_date": "2024-03-31T00:00:00",
                    "items": [],
                    "sub_total": 150.00,
                    "tax": 10.00,
                    "discount": 20.00,
                    "total": 140.00,
                    "amount_paid": 0,
                    "balance_due": 140.00,
                    "status": "draft",
                    "is_overdue": False,
                    "days_overdue": 0,
                    "numbering_fallback_used": False,
                    "total_clamped": False,
                    "customer_name": "Acme Ltd",
                    "customer_email": "billing@acme.com",
               }
          }
     )


class InvoiceListResponse(BaseModel):
     """Schema for paginated invoice list response."""
     invoices: List[InvoiceResponse]
     total: int
     page: int = 1
     page_size: int = 50


class SendInvoiceRequest(BaseModel):
     custom_message: Optional[str] = Field(None, max_length=2000, description="Replaces the invoice notes in the email")
     send_copy: bool = Field(False, description="Also email a copy to the sender")


class SendInvoiceResponse(BaseModel):
     success: bool = True
     message_id: Optional[str] = None
     message: str
     invoice: InvoiceResponse
