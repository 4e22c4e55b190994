"""
Pydantic schemas for Customer API request/response validation.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, EmailStr, field_validator


class AddressSchema(BaseModel):
     street: Optional[str] = Field(None, max_length=255)
     city: Optional[str] = Field(None, max_length=100)
     state: Optional[str] = Field(None, max_length=100)
     zip_code: Optional[str] = Field(None, max_length=20)
     country: Optional[str] = Field(None, max_length=100)


class CustomerCreate(BaseModel):
     """Schema for creating a customer. Email is unique within the organization."""
     name: str = Field(..., min_length=1, max_length=100)
     email: EmailStr
     phone: Optional[str] = Field(None, max_length=20)
     website: Optional[str] = Field(None, max_length=255)
     tax_id: Optional[str] = Field(None, max_length=50)
     address: Optional[AddressSchema] = None
     billing_address: Optional[AddressSchema] = None
     notes: Optional[str] = Field(None, max_length=1000)

     @field_validator("name")
     @classmethod
     def strip_name(cls, value: str) -> str:
          value = value.strip()
          if not value:
               raise ValueError("Name is required")
          return value

     @field_validator("email")
     @classmethod
     def lower_email(cls, value: str) -> str:
          return value.strip().lower()

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "name": "Acme Ltd",
                    "email": "billing@acme.com",
                    "phone": "+1 555 0100",
                    "address": {"street": "1 Main St", "city": "Springfield", "country": "US"},
               }
          }
     )


class CustomerUpdate(BaseModel):
     """Schema for updating a customer. Only provided fields change."""
     name: Optional[str] = Field(None, min_length=1, max_length=100)
     email: Optional[EmailStr] = None
     phone: Optional[str] = Field(None, max_length=20)
     website: Optional[str] = Field(None, max_length=255)
     tax_id: Optional[str] = Field(None, max_length=50)
     address: Optional[AddressSchema] = None
     billing_address: Optional[AddressSchema] = None
     notes: Optional[str] = Field(None, max_length=1000)
     is_active: Optional[bool] = None

     @field_validator("email")
     @classmethod
     def lower_email(cls, value: Optional[str]) -> Optional[str]:
          return value.strip().lower() if value else value


class CustomerResponse(BaseModel):
     id: int
     org_id: int
     name: str
     email: str
     phone: Optional[str] = None
     website: Optional[str] = None
     tax_id: Optional[str] = None
     address: AddressSchema
     billing_address: Optional[AddressSchema] = None
     full_address: str
     full_billing_address: str
     notes: Optional[str] = None
     is_active: bool
     total_invoiced: Decimal
     total_paid: Decimal
     outstanding_balance: Decimal
     last_invoice_date: Optional[datetime] = None
     created_by: Optional[int] = None
     created_at: Optional[datetime] = None
     updated_at: Optional[datetime] = None


class CustomerStats(BaseModel):
     total_invoices: int = 0
     total_amount: Decimal = Decimal("0")
     paid_amount: Decimal = Decimal("0")
     overdue_amount: Decimal = Decimal("0")
     last_invoice_date: Optional[datetime] = None


class CustomerDetailResponse(CustomerResponse):
     stats: CustomerStats


class Pagination(BaseModel):
     page: int
     limit: int
     total: int
     total_pages: int
     has_next: bool
     has_prev: bool


class CustomerListResponse(BaseModel):
     customers: List[CustomerResponse]
     pagination: Pagination


class CustomerDeleteResponse(BaseModel):
     message: str
     deactivated: bool
     customer: Optional[CustomerResponse] = None
