# models/invoice.py
import enum
from sqlalchemy import (
     Column, Integer, String, Numeric, Text, Boolean, DateTime, ForeignKey, Enum,
     UniqueConstraint, Index, func,
)
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class InvoiceStatus(str, enum.Enum):
     """Enumeration for invoice status. Transitions are caller-driven."""
     DRAFT = "draft"
     SENT = "sent"
     PAID = "paid"
     OVERDUE = "overdue"


class Invoice(TimestampMixin, Base):
     """
     Invoice model - a bill issued by an organization to one of its customers.

     invoice_no is assigned once on creation from the per-organization,
     per-year counter (see services.numbering) and never changes afterwards.
     sub_total and total are derived from the line items, tax and discount
     on every save (see services.totals).
     """
     __tablename__ = "invoices"
     __table_args__ = (
          UniqueConstraint("org_id", "invoice_no", name="uq_invoices_org_invoice_no"),
          Index("ix_invoices_org_status", "org_id", "status"),
          Index("ix_invoices_org_due_date", "org_id", "due_date"),
          Index("ix_invoices_customer_status", "customer_id", "status"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)

     # Foreign keys
     org_id = Column(
          Integer,
          ForeignKey("organizations.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     customer_id = Column(
          Integer,
          ForeignKey("customers.id", ondelete="RESTRICT"),
          nullable=False,
          index=True
     )
     created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

     invoice_no = Column(String(32), nullable=False)

     # Dates
     issue_date = Column(DateTime, nullable=False)
     due_date = Column(DateTime, nullable=False, index=True)

     # Financials
     sub_total = Column(Numeric(12, 2), default=0, nullable=False)
     tax = Column(Numeric(12, 2), default=0, nullable=False)
     tax_from_rate = Column(Boolean, default=False, nullable=False)  # tax derived from the organization tax rate
     discount = Column(Numeric(12, 2), default=0, nullable=False)
     total = Column(Numeric(12, 2), default=0, nullable=False)
     amount_paid = Column(Numeric(12, 2), default=0, nullable=False)

     notes = Column(Text, nullable=True)
     status = Column(
          Enum(
               InvoiceStatus,
               name="invoice_status",
               create_constraint=True,
               values_callable=lambda e: [m.value for m in e],
          ),
          default=InvoiceStatus.DRAFT,
          nullable=False,
          index=True
     )

     sent_at = Column(DateTime, nullable=True)
     paid_at = Column(DateTime, nullable=True)

     # Anomaly flags recorded when the numbering fallback or total clamp kicked in
     numbering_fallback_used = Column(Boolean, default=False, nullable=False)
     total_clamped = Column(Boolean, default=False, nullable=False)

     # Relationships
     organization = relationship("Organization", back_populates="invoices")
     customer = relationship("Customer", back_populates="invoices")
     creator = relationship("User")
     items = relationship(
          "InvoiceItem",
          back_populates="invoice",
          order_by="InvoiceItem.position",
          cascade="all, delete-orphan",
     )
     reminders = relationship(
          "InvoiceReminder",
          back_populates="invoice",
          order_by="InvoiceReminder.id",
          cascade="all, delete-orphan",
     )
     payments = relationship("Payment", back_populates="invoice", order_by="Payment.id")

     def __repr__(self):
          status = self.status.value if self.status else None
          return f"<Invoice(id={self.id}, invoice_no='{self.invoice_no}', total={self.total}, status='{status}')>"

     @property
     def is_overdue(self) -> bool:
          """Unpaid and past due date. Derived on read, never stored."""
          from datetime import datetime
          from services.overdue import is_overdue
          return is_overdue(self.status, self.due_date, datetime.utcnow())

     @property
     def days_overdue(self) -> int:
          from datetime import datetime
          from services.overdue import days_overdue
          return days_overdue(self.status, self.due_date, datetime.utcnow())

     @property
     def balance_due(self):
          return (self.total or 0) - (self.amount_paid or 0)

     def mark_as_sent(self, when) -> None:
          """Move a draft to sent. Re-sending keeps the original sent_at."""
          if self.status == InvoiceStatus.DRAFT:
               self.status = InvoiceStatus.SENT
          if self.sent_at is None:
               self.sent_at = when

     def mark_as_paid(self, when) -> None:
          """Mark the invoice as paid."""
          self.status = InvoiceStatus.PAID
          self.paid_at = when

     def mark_as_overdue(self) -> None:
          """Mark the invoice as overdue."""
          self.status = InvoiceStatus.OVERDUE


class InvoiceItem(Base):
     """
     One line on an invoice. amount is caller-supplied; it is not derived
     from page_qty x rate here.
     """
     __tablename__ = "invoice_items"

     id = Column(Integer, primary_key=True, autoincrement=True)
     invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
     position = Column(Integer, nullable=False, default=0)

     description = Column(String(500), nullable=False)
     page_qty = Column(Numeric(12, 2), default=0, nullable=False)
     service_charge = Column(Numeric(12, 2), default=0, nullable=False)
     rate = Column(Numeric(12, 2), default=0, nullable=False)
     amount = Column(Numeric(12, 2), default=0, nullable=False)

     invoice = relationship("Invoice", back_populates="items")

     def __repr__(self):
          return f"<InvoiceItem(id={self.id}, description='{self.description}', amount={self.amount})>"


class InvoiceReminder(Base):
     """Append-only audit row written each time a payment reminder is emailed."""
     __tablename__ = "invoice_reminders"

     id = Column(Integer, primary_key=True, autoincrement=True)
     invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
     sent_at = Column(DateTime, server_default=func.now(), nullable=False)
     sent_by = Column(Integer, ForeignKey("users.id"), nullable=False)

     invoice = relationship("Invoice", back_populates="reminders")

     def __repr__(self):
          return f"<InvoiceReminder(invoice_id={self.invoice_id}, sent_at={self.sent_at})>"
