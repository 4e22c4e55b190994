# models/organization.py
from sqlalchemy import Column, Integer, String, Numeric, Boolean
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


DEFAULT_INVOICE_PREFIX = "INV"


class Organization(TimestampMixin, Base):
     """
     Organization model - the tenant boundary.

     Every user, customer and invoice belongs to exactly one organization.
     Settings columns hold the invoicing defaults (currency, tax rate,
     payment terms, invoice number prefix).
     """
     __tablename__ = "organizations"

     id = Column(Integer, primary_key=True, autoincrement=True)
     name = Column(String(100), nullable=False)
     email = Column(String(255), nullable=False, index=True)
     logo_url = Column(String(500), nullable=True)

     # Address
     street = Column(String(255), nullable=True)
     city = Column(String(100), nullable=True)
     state = Column(String(100), nullable=True)
     zip_code = Column(String(20), nullable=True)
     country = Column(String(100), nullable=True)

     # Contact
     phone = Column(String(50), nullable=True)
     website = Column(String(255), nullable=True)
     tax_id = Column(String(50), nullable=True)

     # Bank details
     bank_name = Column(String(255), nullable=True)
     bank_account_number = Column(String(100), nullable=True)
     bank_routing_number = Column(String(100), nullable=True)

     # Settings
     currency = Column(String(10), default="USD", nullable=False)
     tax_rate = Column(Numeric(5, 2), default=0, nullable=False)  # percentage 0-100
     payment_terms = Column(Integer, default=30, nullable=False)  # days
     invoice_prefix = Column(String(10), default=DEFAULT_INVOICE_PREFIX, nullable=False)

     is_setup_complete = Column(Boolean, default=False, nullable=False)

     # Relationships
     users = relationship("User", back_populates="organization")
     customers = relationship("Customer", back_populates="organization")
     invoices = relationship("Invoice", back_populates="organization")

     def __repr__(self):
          return f"<Organization(id={self.id}, name='{self.name}')>"

     @property
     def has_basic_info(self) -> bool:
          """True once name, email and the full postal address are filled in."""
          return all([
               self.name,
               self.email,
               self.street,
               self.city,
               self.state,
               self.zip_code,
               self.country,
          ])

     def complete_setup(self) -> None:
          self.is_setup_complete = True
