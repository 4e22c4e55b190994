# services/totals.py
"""
Invoice totals calculator.

sub_total = sum of line-item amounts
total     = max(0, sub_total + tax - discount)

Line items are not checked for amount == page_qty * rate; the amount the
caller sends is the amount that is billed. When the raw total would be
negative it is clamped to zero and the result says so (InvoiceTotals.clamped).
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

log = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
     """Coerce a number to a two-decimal Decimal (half-up)."""
     if value is None:
          return ZERO
     if not isinstance(value, Decimal):
          value = Decimal(str(value))
     return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class InvoiceTotals:
     sub_total: Decimal
     tax: Decimal
     discount: Decimal
     total: Decimal
     clamped: bool = False


def _item_amount(item) -> Decimal:
     if isinstance(item, dict):
          return to_money(item.get("amount"))
     return to_money(getattr(item, "amount", None))


def compute_totals(items: Iterable, tax=0, discount=0) -> InvoiceTotals:
     """
     Derive sub_total and total from line items, tax and discount.

     items may be ORM InvoiceItem rows, pydantic models or plain dicts; only
     their ``amount`` is read. tax and discount are absolute amounts.
     """
     sub_total = sum((_item_amount(item) for item in items), ZERO)
     tax = to_money(tax)
     discount = to_money(discount)

     raw_total = sub_total + tax - discount
     clamped = raw_total < 0
     total = ZERO if clamped else raw_total

     return InvoiceTotals(
          sub_total=to_money(sub_total),
          tax=tax,
          discount=discount,
          total=to_money(total),
          clamped=clamped,
     )


def tax_from_rate(sub_total, tax_rate) -> Decimal:
     """Tax amount for a percentage rate (0-100)."""
     return to_money(to_money(sub_total) * Decimal(str(tax_rate or 0)) / Decimal(100))


def line_amount(page_qty, rate) -> Decimal:
     """page_qty x rate, the amount the invoice form pre-fills for a line."""
     return to_money(Decimal(str(page_qty or 0)) * Decimal(str(rate or 0)))


def apply_totals(invoice, tax_rate: Optional[Decimal] = None, derive_tax: bool = False) -> InvoiceTotals:
     """
     Recompute and store sub_total / total on an Invoice row.

     With derive_tax the invoice tax is replaced by sub_total * tax_rate / 100;
     otherwise the stored tax is used as entered.
     """
     if derive_tax:
          sub_total = compute_totals(invoice.items).sub_total
          invoice.tax = tax_from_rate(sub_total, tax_rate)

     totals = compute_totals(invoice.items, invoice.tax, invoice.discount)
     if totals.clamped:
          log.info(
               "Invoice %s total clamped to zero: discount %s exceeds sub_total %s + tax %s",
               invoice.invoice_no or "(new)", totals.discount, totals.sub_total, totals.tax,
          )

     invoice.sub_total = totals.sub_total
     invoice.tax = totals.tax
     invoice.discount = totals.discount
     invoice.total = totals.total
     invoice.total_clamped = totals.clamped
     return totals
