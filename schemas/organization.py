"""
Pydantic schemas for organization profile and invoicing settings.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, EmailStr


class OrganizationUpdate(BaseModel):
     name: Optional[str] = Field(None, min_length=1, max_length=100)
     email: Optional[EmailStr] = None
     logo_url: Optional[str] = Field(None, max_length=500)
     street: Optional[str] = Field(None, max_length=255)
     city: Optional[str] = Field(None, max_length=100)
     state: Optional[str] = Field(None, max_length=100)
     zip_code: Optional[str] = Field(None, max_length=20)
     country: Optional[str] = Field(None, max_length=100)
     phone: Optional[str] = Field(None, max_length=50)
     website: Optional[str] = Field(None, max_length=255)
     tax_id: Optional[str] = Field(None, max_length=50)
     bank_name: Optional[str] = Field(None, max_length=255)
     bank_account_number: Optional[str] = Field(None, max_length=100)
     bank_routing_number: Optional[str] = Field(None, max_length=100)

     # Settings
     currency: Optional[str] = Field(None, min_length=3, max_length=10)
     tax_rate: Optional[Decimal] = Field(None, ge=0, le=100, max_digits=5, decimal_places=2)
     payment_terms: Optional[int] = Field(None, ge=1, le=365)
     invoice_prefix: Optional[str] = Field(None, min_length=1, max_length=10, pattern=r"^[A-Za-z0-9]+$")

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "name": "Print Shop LLC",
                    "tax_rate": 8.25,
                    "payment_terms": 14,
               }
          }
     )


class OrganizationResponse(BaseModel):
     id: int
     name: str
     email: str
     logo_url: Optional[str] = None
     street: Optional[str] = None
     city: Optional[str] = None
     state: Optional[str] = None
     zip_code: Optional[str] = None
     country: Optional[str] = None
     phone: Optional[str] = None
     website: Optional[str] = None
     tax_id: Optional[str] = None
     bank_name: Optional[str] = None
     bank_account_number: Optional[str] = None
     bank_routing_number: Optional[str] = None
     currency: str
     tax_rate: Decimal
     payment_terms: int
     invoice_prefix: str
     is_setup_complete: bool
     has_basic_info: bool
     created_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)
