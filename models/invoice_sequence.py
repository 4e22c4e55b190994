# models/invoice_sequence.py
"""
InvoiceSequence model - the per-organization, per-year invoice counter.

One row per (org_id, year). last_value is the sequence number most recently
handed out; it is only ever advanced with a single atomic
UPDATE ... SET last_value = last_value + 1 (see services.numbering), so two
concurrent invoice creations can never read the same value.
"""
from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint
from .base import Base


class InvoiceSequence(Base):
     __tablename__ = "invoice_sequences"
     __table_args__ = (
          UniqueConstraint("org_id", "year", name="uq_invoice_sequences_org_year"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)
     org_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
     year = Column(Integer, nullable=False)
     last_value = Column(Integer, nullable=False, default=0)

     def __repr__(self):
          return f"<InvoiceSequence(org_id={self.org_id}, year={self.year}, last_value={self.last_value})>"
