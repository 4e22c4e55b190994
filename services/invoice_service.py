"""
Invoice Service - Business logic layer for invoice operations.

This service handles invoice creation, updates, status changes and payments,
separate from the API layer. Every function works inside the caller's
session and only flushes; committing is the caller's job (get_session does
it at the end of the request).

Customer rollup rules (Customer.total_invoiced / total_paid):
- an invoice counts towards total_invoiced from the moment it leaves draft
  (send_invoice, or a payment recorded against a draft)
- edits to an issued invoice apply the change in total to total_invoiced
- every payment goes through _apply_payment, which updates the invoice and
  the customer together
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from models import Customer, Invoice, InvoiceItem, InvoiceReminder, Organization, Payment, User
from models.invoice import InvoiceStatus
from schemas.invoice import InvoiceCreate, InvoiceItemIn, InvoiceUpdate
from services import notification_service
from services.errors import (
     ConflictError,
     EmailDeliveryError,
     InvalidOperationError,
     NotFoundError,
)
from services.numbering import assign_invoice_number
from services.overdue import can_send_reminder
from services.totals import ZERO, apply_totals, to_money
from utils import email

log = logging.getLogger(__name__)


def _build_items(items: List[InvoiceItemIn]) -> List[InvoiceItem]:
     return [
          InvoiceItem(
               position=position,
               description=item.description.strip(),
               page_qty=item.page_qty,
               service_charge=item.service_charge,
               rate=item.rate,
               amount=to_money(item.amount),
          )
          for position, item in enumerate(items)
     ]


class InvoiceService:
     """Service class for invoice-related business logic."""

     # ------------------------------------------------------------------
     # Lookups
     # ------------------------------------------------------------------

     @staticmethod
     def get_organization(db: Session, org_id: int) -> Organization:
          org = db.query(Organization).filter(Organization.id == org_id).first()
          if not org:
               raise NotFoundError(f"Organization with ID {org_id} not found")
          return org

     @staticmethod
     def get_customer(db: Session, org_id: int, customer_id: int) -> Customer:
          customer = (
               db.query(Customer)
               .filter(Customer.id == customer_id, Customer.org_id == org_id)
               .first()
          )
          if not customer:
               raise NotFoundError(f"Customer with ID {customer_id} not found")
          return customer

     @staticmethod
     def get_invoice(db: Session, org_id: int, invoice_id: int) -> Invoice:
          invoice = (
               db.query(Invoice)
               .options(selectinload(Invoice.items), selectinload(Invoice.reminders))
               .filter(Invoice.id == invoice_id, Invoice.org_id == org_id)
               .first()
          )
          if not invoice:
               raise NotFoundError(f"Invoice with ID {invoice_id} not found")
          return invoice

     @staticmethod
     def list_invoices(
          db: Session,
          org_id: int,
          status: Optional[str] = None,
          date_from: Optional[datetime] = None,
          date_to: Optional[datetime] = None,
          customer_id: Optional[int] = None,
          page: int = 1,
          page_size: int = 50,
     ) -> Tuple[List[Invoice], int]:
          """
          Invoices of an organization, newest first.

          date_from / date_to filter on issue_date; date_to is inclusive of
          the whole day.
          """
          query = db.query(Invoice).filter(Invoice.org_id == org_id)

          if status and status != "all":
               query = query.filter(Invoice.status == InvoiceStatus(status))
          if customer_id:
               query = query.filter(Invoice.customer_id == customer_id)
          if date_from:
               query = query.filter(Invoice.issue_date >= date_from)
          if date_to:
               end = datetime(date_to.year, date_to.month, date_to.day) + timedelta(days=1)
               query = query.filter(Invoice.issue_date < end)

          total = query.count()
          offset = (page - 1) * page_size
          invoices = (
               query.options(selectinload(Invoice.items), selectinload(Invoice.reminders))
               .order_by(Invoice.created_at.desc(), Invoice.id.desc())
               .offset(offset)
               .limit(page_size)
               .all()
          )
          return invoices, total

     # ------------------------------------------------------------------
     # Create / update / delete
     # ------------------------------------------------------------------

     @staticmethod
     def create_invoice(
          db: Session,
          org_id: int,
          data: InvoiceCreate,
          user_id: Optional[int] = None,
          now: Optional[datetime] = None,
     ) -> Invoice:
          """
          Create a draft invoice.

          The invoice number comes from the organization's counter for the
          numbering year; sub_total and total are derived from the items.
          When tax is omitted it is derived from the organization tax rate.

          Raises:
               NotFoundError: organization or customer missing
               InvalidOperationError: inactive customer, due date before issue date
          """
          now = now or datetime.utcnow()
          org = InvoiceService.get_organization(db, org_id)
          customer = InvoiceService.get_customer(db, org_id, data.customer_id)
          if not customer.is_active:
               raise InvalidOperationError(f"Customer {customer.id} is inactive")

          issue_date = data.issue_date or now
          due_date = data.due_date or issue_date + timedelta(days=org.payment_terms or 30)
          if due_date < issue_date:
               raise InvalidOperationError("Due date cannot be before the issue date")

          invoice = Invoice(
               org_id=org_id,
               customer_id=customer.id,
               created_by=user_id,
               issue_date=issue_date,
               due_date=due_date,
               tax=to_money(data.tax),
               tax_from_rate=data.tax is None,
               discount=to_money(data.discount),
               amount_paid=ZERO,
               notes=data.notes,
               status=InvoiceStatus.DRAFT,
          )
          invoice.items = _build_items(data.items)

          assignment = assign_invoice_number(db, invoice, prefix=org.invoice_prefix, now=now)
          apply_totals(invoice, org.tax_rate, derive_tax=invoice.tax_from_rate)

          db.add(invoice)
          db.flush()  # Flush to get the ID without committing

          log.info(
               "Created invoice %s (id=%s) for org_id=%s customer_id=%s total=%s",
               invoice.invoice_no, invoice.id, org_id, customer.id, invoice.total,
          )
          if assignment and assignment.fallback_used:
               log.warning("Invoice %s numbered using the fallback sequence", invoice.invoice_no)
          return invoice

     @staticmethod
     def update_invoice(db: Session, org_id: int, invoice_id: int, data: InvoiceUpdate) -> Invoice:
          """
          Update an invoice. Only provided fields change; the invoice number
          is never reassigned and totals are always recomputed.

          Sending ``"tax": null`` switches the invoice back to tax derived from
          the organization rate.

          Raises:
               NotFoundError: invoice or new customer missing
               ConflictError: invoice is paid, or customer change on an issued invoice
          """
          invoice = InvoiceService.get_invoice(db, org_id, invoice_id)
          if invoice.status == InvoiceStatus.PAID:
               raise ConflictError(f"Invoice {invoice.invoice_no} is paid and can no longer be edited")

          org = InvoiceService.get_organization(db, org_id)
          fields = data.model_dump(exclude_unset=True)
          previous_total = to_money(invoice.total)

          if fields.get("customer_id") and fields["customer_id"] != invoice.customer_id:
               if invoice.status != InvoiceStatus.DRAFT:
                    raise ConflictError("The customer of an issued invoice cannot be changed")
               customer = InvoiceService.get_customer(db, org_id, fields["customer_id"])
               invoice.customer_id = customer.id
               invoice.customer = customer

          if data.issue_date is not None:
               invoice.issue_date = data.issue_date
          if data.due_date is not None:
               invoice.due_date = data.due_date
          if invoice.due_date < invoice.issue_date:
               raise InvalidOperationError("Due date cannot be before the issue date")

          if "notes" in fields:
               invoice.notes = data.notes
          if data.items is not None:
               invoice.items = _build_items(data.items)
          if "tax" in fields:
               invoice.tax_from_rate = data.tax is None
               if data.tax is not None:
                    invoice.tax = to_money(data.tax)
          if data.discount is not None:
               invoice.discount = to_money(data.discount)

          apply_totals(invoice, org.tax_rate, derive_tax=invoice.tax_from_rate)

          if invoice.status != InvoiceStatus.DRAFT:
               delta = to_money(invoice.total) - previous_total
               if delta:
                    invoice.customer.adjust_invoiced(delta)
               if to_money(invoice.amount_paid) > 0 and to_money(invoice.amount_paid) >= to_money(invoice.total):
                    invoice.mark_as_paid(datetime.utcnow())

          db.flush()
          return invoice

     @staticmethod
     def delete_invoice(db: Session, org_id: int, invoice_id: int) -> None:
          """
          Delete a draft invoice. Issued invoices are part of the financial
          history and cannot be deleted.
          """
          invoice = InvoiceService.get_invoice(db, org_id, invoice_id)
          if invoice.status != InvoiceStatus.DRAFT or invoice.payments:
               raise ConflictError(
                    f"Invoice {invoice.invoice_no} has been issued and cannot be deleted"
               )
          db.delete(invoice)
          db.flush()

     # ------------------------------------------------------------------
     # Status changes
     # ------------------------------------------------------------------

     @staticmethod
     def send_invoice(
          db: Session,
          org_id: int,
          invoice_id: int,
          user: User,
          custom_message: Optional[str] = None,
          send_copy: bool = False,
          now: Optional[datetime] = None,
     ) -> Tuple[Invoice, Optional[str]]:
          """
          Email the invoice to the customer.

          The first send moves a draft to sent and adds the invoice total to
          the customer's total_invoiced. Re-sending only emails again.

          Returns:
               (invoice, provider message id)
          """
          now = now or datetime.utcnow()
          invoice = InvoiceService.get_invoice(db, org_id, invoice_id)
          org = InvoiceService.get_organization(db, org_id)
          customer = invoice.customer

          message_id = email.send_invoice_email(invoice, customer, org, custom_message=custom_message)

          if invoice.status == InvoiceStatus.DRAFT:
               invoice.mark_as_sent(now)
               customer.update_financials(invoice.total, 0, when=now)
               notification_service.notify_invoice_sent(db, invoice, when=now)
          else:
               invoice.mark_as_sent(now)

          if send_copy and user is not None and user.email:
               try:
                    email.send_invoice_email(
                         invoice, customer, org,
                         custom_message=custom_message,
                         to_email=user.email,
                         to_name=user.name,
                    )
               except EmailDeliveryError as e:
                    log.warning("Failed to send copy of %s to sender %s: %s", invoice.invoice_no, user.email, e)

          db.flush()
          log.info("Invoice %s sent to %s", invoice.invoice_no, customer.email)
          return invoice, message_id

     @staticmethod
     def send_reminder(
          db: Session,
          org_id: int,
          invoice_id: int,
          user_id: int,
          now: Optional[datetime] = None,
     ) -> Tuple[Invoice, Optional[str]]:
          """
          Email a payment reminder and append it to the invoice's reminder
          history. Not allowed for draft or paid invoices, nor twice within
          the reminder interval.
          """
          now = now or datetime.utcnow()
          invoice = InvoiceService.get_invoice(db, org_id, invoice_id)

          if invoice.status == InvoiceStatus.PAID:
               raise InvalidOperationError("Cannot send reminder for paid invoice")
          if invoice.status == InvoiceStatus.DRAFT:
               raise InvalidOperationError("Cannot send reminder for draft invoice")
          if not can_send_reminder(invoice, now):
               raise InvalidOperationError("A reminder for this invoice was already sent recently")

          org = InvoiceService.get_organization(db, org_id)
          message_id = email.send_payment_reminder_email(invoice, invoice.customer, org, now=now)

          invoice.reminders.append(InvoiceReminder(sent_at=now, sent_by=user_id))
          db.flush()
          return invoice, message_id

     @staticmethod
     def mark_overdue(db: Session, org_id: int, invoice_id: int) -> Invoice:
          """Caller-driven transition of an issued, unpaid invoice to overdue."""
          invoice = InvoiceService.get_invoice(db, org_id, invoice_id)
          if invoice.status == InvoiceStatus.PAID:
               raise ConflictError(f"Invoice {invoice.invoice_no} is already paid")
          if invoice.status == InvoiceStatus.DRAFT:
               raise InvalidOperationError("A draft invoice cannot be overdue; send it first")
          invoice.mark_as_overdue()
          db.flush()
          return invoice

     # ------------------------------------------------------------------
     # Payments
     # ------------------------------------------------------------------

     @staticmethod
     def _apply_payment(
          db: Session,
          invoice: Invoice,
          amount: Decimal,
          user_id: Optional[int],
          paid_at: datetime,
          reference: Optional[str],
     ) -> Optional[Payment]:
          customer = invoice.customer
          payment = None
          if amount > 0:
               payment = Payment(
                    invoice=invoice,
                    customer_id=customer.id,
                    amount=amount,
                    paid_at=paid_at,
                    recorded_by=user_id,
                    reference=reference,
               )
               db.add(payment)

          invoice.amount_paid = to_money(invoice.amount_paid) + amount

          if invoice.status == InvoiceStatus.DRAFT:
               # Paying a never-sent invoice issues it at the same time
               customer.update_financials(invoice.total, amount, when=paid_at)
               invoice.mark_as_sent(paid_at)
               notification_service.notify_invoice_sent(db, invoice, when=paid_at)
          else:
               customer.mark_payment(amount)

          if to_money(invoice.amount_paid) >= to_money(invoice.total):
               invoice.mark_as_paid(paid_at)
               notification_service.notify_invoice_paid(db, invoice, when=paid_at)

          db.flush()
          log.info(
               "Recorded payment of %s on %s (paid %s of %s)",
               amount, invoice.invoice_no, invoice.amount_paid, invoice.total,
          )
          return payment

     @staticmethod
     def record_payment(
          db: Session,
          org_id: int,
          invoice_id: int,
          amount,
          user_id: Optional[int] = None,
          paid_at: Optional[datetime] = None,
          reference: Optional[str] = None,
     ) -> Payment:
          """
          Record money received for an invoice.

          Writes the payment row, raises the invoice's amount_paid (moving it
          to paid once settled) and updates the customer rollup, all in the
          caller's transaction.

          Raises:
               ConflictError: invoice already paid
               InvalidOperationError: non-positive amount or more than the balance due
          """
          invoice = InvoiceService.get_invoice(db, org_id, invoice_id)
          if invoice.status == InvoiceStatus.PAID:
               raise ConflictError(f"Invoice {invoice.invoice_no} is already paid")

          amount = to_money(amount)
          if amount <= 0:
               raise InvalidOperationError("Payment amount must be positive")
          balance = to_money(invoice.balance_due)
          if amount > balance:
               raise InvalidOperationError(f"Payment of {amount} exceeds the balance due of {balance}")

          return InvoiceService._apply_payment(
               db, invoice, amount, user_id, paid_at or datetime.utcnow(), reference
          )

     @staticmethod
     def mark_paid(
          db: Session,
          org_id: int,
          invoice_id: int,
          user_id: Optional[int] = None,
          paid_at: Optional[datetime] = None,
          reference: Optional[str] = None,
     ) -> Invoice:
          """
          Settle the remaining balance of an invoice. Marking an already paid
          invoice again changes nothing.
          """
          invoice = InvoiceService.get_invoice(db, org_id, invoice_id)
          if invoice.status == InvoiceStatus.PAID:
               return invoice

          balance = max(to_money(invoice.balance_due), ZERO)
          InvoiceService._apply_payment(
               db, invoice, balance, user_id, paid_at or datetime.utcnow(), reference
          )
          return invoice
