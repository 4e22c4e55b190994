# models/customer.py
"""
Customer model with denormalized financial totals.

total_invoiced / total_paid are running totals maintained by explicit
calls (update_financials, mark_payment, adjust_invoiced). The invoice
lifecycle functions in services.invoice_service are the only callers.
outstanding_balance is always total_invoiced - total_paid; it is recomputed
before every INSERT/UPDATE by the mapper listener at the bottom of this
module. Overpayment leaves a negative balance (customer credit).
"""
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
     Column, Integer, String, Text, Boolean, Numeric, DateTime, ForeignKey,
     UniqueConstraint, Index, event,
)
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


def _money(value) -> Decimal:
     if value is None:
          return Decimal("0")
     if isinstance(value, Decimal):
          return value
     return Decimal(str(value))


def _join_address(*parts) -> str:
     return ", ".join(p for p in parts if p)


class Customer(TimestampMixin, Base):
     """
     Customer model - a billed party within an organization.
     """
     __tablename__ = "customers"
     __table_args__ = (
          UniqueConstraint("org_id", "email", name="uq_customers_org_email"),
          Index("ix_customers_org_name", "org_id", "name"),
          Index("ix_customers_org_active", "org_id", "is_active"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)
     org_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)

     name = Column(String(100), nullable=False)
     email = Column(String(255), nullable=False)
     phone = Column(String(20), nullable=True)
     website = Column(String(255), nullable=True)
     tax_id = Column(String(50), nullable=True)

     # Address
     street = Column(String(255), nullable=True)
     city = Column(String(100), nullable=True)
     state = Column(String(100), nullable=True)
     zip_code = Column(String(20), nullable=True)
     country = Column(String(100), nullable=True)

     # Billing address (falls back to address when empty)
     billing_street = Column(String(255), nullable=True)
     billing_city = Column(String(100), nullable=True)
     billing_state = Column(String(100), nullable=True)
     billing_zip_code = Column(String(20), nullable=True)
     billing_country = Column(String(100), nullable=True)

     notes = Column(Text, nullable=True)
     is_active = Column(Boolean, default=True, nullable=False)

     # Rollup
     total_invoiced = Column(Numeric(12, 2), default=0, nullable=False)
     total_paid = Column(Numeric(12, 2), default=0, nullable=False)
     outstanding_balance = Column(Numeric(12, 2), default=0, nullable=False)
     last_invoice_date = Column(DateTime, nullable=True)

     created_by = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

     # Relationships
     organization = relationship("Organization", back_populates="customers")
     invoices = relationship("Invoice", back_populates="customer")
     creator = relationship("User")

     def __repr__(self):
          return f"<Customer(id={self.id}, name='{self.name}', balance={self.outstanding_balance})>"

     @property
     def full_address(self) -> str:
          return _join_address(self.street, self.city, self.state, self.zip_code, self.country)

     @property
     def has_billing_address(self) -> bool:
          return any([
               self.billing_street,
               self.billing_city,
               self.billing_state,
               self.billing_zip_code,
               self.billing_country,
          ])

     @property
     def full_billing_address(self) -> str:
          if not self.has_billing_address:
               return self.full_address
          return _join_address(
               self.billing_street,
               self.billing_city,
               self.billing_state,
               self.billing_zip_code,
               self.billing_country,
          )

     def recompute_balance(self) -> Decimal:
          """Set outstanding_balance from the running totals and return it."""
          self.outstanding_balance = _money(self.total_invoiced) - _money(self.total_paid)
          return self.outstanding_balance

     def update_financials(self, invoice_amount, paid_amount=0, when: datetime = None) -> None:
          """Add to both running totals and stamp last_invoice_date."""
          self.total_invoiced = _money(self.total_invoiced) + _money(invoice_amount)
          self.total_paid = _money(self.total_paid) + _money(paid_amount)
          self.last_invoice_date = when or datetime.utcnow()
          self.recompute_balance()

     def mark_payment(self, amount) -> None:
          """Add to total_paid only. The balance may go negative."""
          self.total_paid = _money(self.total_paid) + _money(amount)
          self.recompute_balance()

     def adjust_invoiced(self, delta) -> None:
          """Apply a correction to total_invoiced after an issued invoice was edited."""
          self.total_invoiced = _money(self.total_invoiced) + _money(delta)
          self.recompute_balance()

     def deactivate(self) -> None:
          self.is_active = False

     def activate(self) -> None:
          self.is_active = True


@event.listens_for(Customer, "before_insert")
@event.listens_for(Customer, "before_update")
def _recompute_outstanding_balance(mapper, connection, target: Customer) -> None:
     target.recompute_balance()
