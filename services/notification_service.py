# services/notification_service.py
"""
Notification Service - in-app notifications for invoice events.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from models import Invoice, Notification
from models.notification import NotificationType

log = logging.getLogger(__name__)


def create_notification(
     db: Session,
     user_id: int,
     type: NotificationType,
     title: str,
     message: str,
     invoice: Optional[Invoice] = None,
     data: Optional[dict] = None,
     when: Optional[datetime] = None,
) -> Notification:
     payload = dict(data or {})
     if invoice is not None:
          payload.setdefault("invoice_id", invoice.id)
          payload.setdefault("invoice_no", invoice.invoice_no)

     notification = Notification(
          user_id=user_id,
          invoice_id=invoice.id if invoice is not None else None,
          type=type,
          title=title,
          message=message,
          data=payload,
          created_at=when or datetime.utcnow(),
     )
     db.add(notification)
     db.flush()
     return notification


def notify_invoice_sent(db: Session, invoice: Invoice, when: Optional[datetime] = None) -> Optional[Notification]:
     if invoice.created_by is None:
          return None
     return create_notification(
          db,
          user_id=invoice.created_by,
          type=NotificationType.INVOICE_SENT,
          title="Invoice Sent",
          message=f"Invoice {invoice.invoice_no} has been sent to the customer",
          invoice=invoice,
          when=when,
     )


def notify_invoice_paid(db: Session, invoice: Invoice, when: Optional[datetime] = None) -> Optional[Notification]:
     if invoice.created_by is None:
          return None
     return create_notification(
          db,
          user_id=invoice.created_by,
          type=NotificationType.INVOICE_PAID,
          title="Invoice Paid",
          message=f"Invoice {invoice.invoice_no} has been paid!",
          invoice=invoice,
          when=when,
     )


def list_unread(db: Session, user_id: int, limit: int = 50) -> List[Notification]:
     return (
          db.query(Notification)
          .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
          .order_by(Notification.created_at.desc(), Notification.id.desc())
          .limit(limit)
          .all()
     )


def mark_read(db: Session, user_id: int, notification_ids: Optional[List[int]] = None) -> int:
     """
     Mark the given notifications (or all of the user's, when ids is None)
     as read. Returns the number of rows changed.
     """
     query = db.query(Notification).filter(
          Notification.user_id == user_id,
          Notification.is_read.is_(False),
     )
     if notification_ids is not None:
          query = query.filter(Notification.id.in_(notification_ids))
     count = query.update({Notification.is_read: True}, synchronize_session=False)
     log.debug("Marked %d notifications read for user_id=%s", count, user_id)
     return count
