# services/numbering.py
"""
Invoice Numbering - sequential invoice numbers per organization and year.

Numbers look like INV-2024-00001: <prefix>-<year>-<sequence, 5 digits>.

The sequence lives in the invoice_sequences table, one row per
(org_id, year). Allocation is a single atomic statement:

     UPDATE invoice_sequences SET last_value = last_value + 1
     WHERE org_id = :org AND year = :year
     RETURNING last_value

so concurrent invoice creations for the same organization serialize on the
row lock and can never receive the same value. The first allocation of a
year creates the row, seeded from the highest number already present on
that organization's invoices (data created before the counter existed).
"""
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import Invoice, InvoiceSequence
from models.organization import DEFAULT_INVOICE_PREFIX

log = logging.getLogger(__name__)

YEAR_SOURCE_CREATION_TIME = "creation_time"
YEAR_SOURCE_ISSUE_DATE = "issue_date"
YEAR_SOURCES = (YEAR_SOURCE_CREATION_TIME, YEAR_SOURCE_ISSUE_DATE)

NUMBERING_YEAR_SOURCE = os.getenv("INVOICE_NUMBERING_YEAR_SOURCE", YEAR_SOURCE_CREATION_TIME)

SEQUENCE_WIDTH = 5


@dataclass(frozen=True)
class NumberAssignment:
     invoice_no: str
     year: int
     sequence: int
     fallback_used: bool = False


def format_invoice_number(prefix: str, year: int, sequence: int) -> str:
     """format_invoice_number("INV", 2024, 7) -> "INV-2024-00007"."""
     return f"{prefix}-{year}-{sequence:0{SEQUENCE_WIDTH}d}"


def parse_sequence(invoice_no: str, prefix: str, year: int) -> Optional[int]:
     """Trailing sequence of an invoice number, or None if it does not parse."""
     match = re.fullmatch(rf"{re.escape(prefix)}-{year}-(\d+)", invoice_no or "")
     if not match:
          return None
     return int(match.group(1))


def numbering_year(issue_date: Optional[datetime], now: Optional[datetime] = None, source: Optional[str] = None) -> int:
     """
     Calendar year the sequence is scoped to.

     creation_time (default) uses the wall clock at creation, issue_date uses
     the invoice's own issue date (falls back to the wall clock when unset).
     """
     source = source or NUMBERING_YEAR_SOURCE
     if source not in YEAR_SOURCES:
          raise ValueError(f"Unknown numbering year source: {source!r}")
     now = now or datetime.utcnow()
     if source == YEAR_SOURCE_ISSUE_DATE and issue_date is not None:
          return issue_date.year
     return now.year


def _highest_existing_sequence(db: Session, org_id: int, year: int, prefix: str) -> Tuple[int, bool]:
     """
     Highest sequence already used by the organization's invoices for year.

     Mirrors the legacy lookup: take the lexicographically highest number
     with the year's prefix. If that number does not parse, the anomaly is
     logged and reported, and the scan falls back to the highest parseable
     number (0 when there is none, so the next number is 1).
     """
     pattern = f"{prefix}-{year}-%"
     highest = (
          db.query(Invoice.invoice_no)
          .filter(Invoice.org_id == org_id, Invoice.invoice_no.like(pattern))
          .order_by(Invoice.invoice_no.desc())
          .limit(1)
          .scalar()
     )
     if highest is None:
          return 0, False

     sequence = parse_sequence(highest, prefix, year)
     if sequence is not None:
          return sequence, False

     log.warning(
          "Unparseable invoice number %r for org_id=%s year=%s; falling back",
          highest, org_id, year,
     )
     rows = (
          db.query(Invoice.invoice_no)
          .filter(Invoice.org_id == org_id, Invoice.invoice_no.like(pattern))
          .all()
     )
     parsed = [parse_sequence(row[0], prefix, year) for row in rows]
     return max((p for p in parsed if p is not None), default=0), True


def _increment(db: Session, org_id: int, year: int) -> Optional[int]:
     stmt = (
          update(InvoiceSequence)
          .where(InvoiceSequence.org_id == org_id, InvoiceSequence.year == year)
          .values(last_value=InvoiceSequence.last_value + 1)
          .returning(InvoiceSequence.last_value)
          .execution_options(synchronize_session=False)
     )
     return db.execute(stmt).scalar_one_or_none()


def next_sequence(db: Session, org_id: int, year: int, prefix: str = DEFAULT_INVOICE_PREFIX) -> Tuple[int, bool]:
     """
     Atomically allocate the next sequence number for (org_id, year).

     Returns (sequence, fallback_used). The allocation is part of the
     caller's transaction: if that transaction rolls back, the number is
     released with it.
     """
     value = _increment(db, org_id, year)
     if value is not None:
          return value, False

     start, fallback_used = _highest_existing_sequence(db, org_id, year, prefix)
     try:
          with db.begin_nested():
               db.add(InvoiceSequence(org_id=org_id, year=year, last_value=start))
     except IntegrityError:
          # Another transaction created the counter row first
          log.debug("Invoice sequence for org_id=%s year=%s created concurrently", org_id, year)

     value = _increment(db, org_id, year)
     if value is None:
          raise RuntimeError(f"Invoice sequence row missing for org_id={org_id} year={year}")
     return value, fallback_used


def assign_invoice_number(
     db: Session,
     invoice: Invoice,
     prefix: str = DEFAULT_INVOICE_PREFIX,
     now: Optional[datetime] = None,
     year_source: Optional[str] = None,
) -> Optional[NumberAssignment]:
     """
     Give a new invoice its number. An invoice that already has a number
     keeps it and None is returned.
     """
     if invoice.invoice_no:
          return None

     year = numbering_year(invoice.issue_date, now, year_source)
     sequence, fallback_used = next_sequence(db, invoice.org_id, year, prefix)
     invoice.invoice_no = format_invoice_number(prefix, year, sequence)
     invoice.numbering_fallback_used = fallback_used

     return NumberAssignment(
          invoice_no=invoice.invoice_no,
          year=year,
          sequence=sequence,
          fallback_used=fallback_used,
     )
