# services/overdue.py
"""
Overdue detection and the scheduled sweeps.

is_overdue / days_overdue are pure functions of (status, due_date, now).
Nothing here changes an invoice's status: overdue is derived on read, and
the status field only moves when a user asks for it.

The sweeps are meant to be triggered by an external scheduler once a day
(see routers/cron.py):
- notify_overdue_invoices: at most one overdue notification per invoice per day
- expire_stale_drafts: delete drafts untouched for DRAFT_RETENTION_DAYS
"""
import logging
import os
from datetime import datetime, timedelta
from math import ceil
from typing import List, Optional

from sqlalchemy.orm import Session

from models import Invoice, Notification
from models.invoice import InvoiceStatus
from models.notification import NotificationType

log = logging.getLogger(__name__)

DRAFT_RETENTION_DAYS = int(os.getenv("DRAFT_RETENTION_DAYS", "30"))
REMINDER_INTERVAL_HOURS = int(os.getenv("REMINDER_INTERVAL_HOURS", "24"))
OVERDUE_NOTIFICATION_INTERVAL = timedelta(days=1)


def _status_value(status) -> str:
     return status.value if isinstance(status, InvoiceStatus) else str(status)


def is_overdue(status, due_date: datetime, now: datetime) -> bool:
     """Overdue iff not paid and the due date has passed."""
     return _status_value(status) != InvoiceStatus.PAID.value and due_date < now


def days_overdue(status, due_date: datetime, now: datetime) -> int:
     """Whole days past due, rounded up; 0 when paid or not yet due."""
     if not is_overdue(status, due_date, now):
          return 0
     return ceil((now - due_date).total_seconds() / 86400)


def can_send_reminder(invoice: Invoice, now: datetime, interval_hours: Optional[int] = None) -> bool:
     """
     Reminders go out only for sent/overdue invoices and at most once per
     interval (24h by default).
     """
     if invoice.status in (InvoiceStatus.PAID, InvoiceStatus.DRAFT):
          return False
     if not invoice.reminders:
          return True
     interval = timedelta(hours=REMINDER_INTERVAL_HOURS if interval_hours is None else interval_hours)
     last = invoice.reminders[-1]
     return now - last.sent_at >= interval


def notify_overdue_invoices(db: Session, now: Optional[datetime] = None) -> List[Notification]:
     """
     Create an invoice_overdue notification for the creator of every unpaid
     invoice past its due date, unless one was already created for that
     invoice within the last day.

     Returns the notifications created.
     """
     from services.notification_service import create_notification

     now = now or datetime.utcnow()
     overdue = (
          db.query(Invoice)
          .filter(
               Invoice.status != InvoiceStatus.PAID,
               Invoice.due_date < now,
               Invoice.created_by.isnot(None),
          )
          .all()
     )

     created = []
     for invoice in overdue:
          recent = (
               db.query(Notification.id)
               .filter(
                    Notification.invoice_id == invoice.id,
                    Notification.type == NotificationType.INVOICE_OVERDUE,
                    Notification.created_at > now - OVERDUE_NOTIFICATION_INTERVAL,
               )
               .first()
          )
          if recent:
               continue

          created.append(create_notification(
               db,
               user_id=invoice.created_by,
               type=NotificationType.INVOICE_OVERDUE,
               title="Invoice Overdue",
               message=f"Invoice {invoice.invoice_no} is overdue",
               invoice=invoice,
               when=now,
          ))

     log.info("Overdue sweep: %d overdue invoices, %d notifications created", len(overdue), len(created))
     return created


def expire_stale_drafts(db: Session, now: Optional[datetime] = None, retention_days: Optional[int] = None) -> int:
     """
     Delete draft invoices whose last update is older than the retention
     window. Returns the number of drafts removed.
     """
     now = now or datetime.utcnow()
     days = DRAFT_RETENTION_DAYS if retention_days is None else retention_days
     cutoff = now - timedelta(days=days)

     stale = (
          db.query(Invoice)
          .filter(Invoice.status == InvoiceStatus.DRAFT, Invoice.updated_at < cutoff)
          .all()
     )
     for invoice in stale:
          db.delete(invoice)
     db.flush()

     log.info("Draft retention sweep: removed %d drafts older than %d days", len(stale), days)
     return len(stale)
