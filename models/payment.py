# models/payment.py
"""
Payment model - append-only record of money received against an invoice.

Rows are written only by services.invoice_service.record_payment, which also
updates the invoice and the customer rollup in the same transaction.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from .base import Base


class Payment(Base):
     __tablename__ = "payments"

     id = Column(Integer, primary_key=True, autoincrement=True)
     invoice_id = Column(
          Integer,
          ForeignKey("invoices.id", ondelete="RESTRICT"),  # Prevent delete if payments exist
          nullable=False,
          index=True
     )
     customer_id = Column(Integer, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True)
     amount = Column(Numeric(12, 2), nullable=False)
     paid_at = Column(DateTime, nullable=False)
     recorded_by = Column(Integer, ForeignKey("users.id"), nullable=True)
     reference = Column(String(255), nullable=True)  # e.g. bank transfer or provider reference
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     invoice = relationship("Invoice", back_populates="payments")

     def __repr__(self):
          return f"<Payment(id={self.id}, invoice_id={self.invoice_id}, amount={self.amount})>"
