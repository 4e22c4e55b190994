# models/notification.py
import enum
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum, JSON, Index, func
from sqlalchemy.orm import relationship
from .base import Base


class NotificationType(str, enum.Enum):
     INVOICE_SENT = "invoice_sent"
     INVOICE_PAID = "invoice_paid"
     INVOICE_OVERDUE = "invoice_overdue"
     GENERAL = "general"


class Notification(Base):
     """
     In-app notification for a user (invoice sent / paid / overdue).
     """
     __tablename__ = "notifications"
     __table_args__ = (
          Index("ix_notifications_user_read", "user_id", "is_read"),
          Index("ix_notifications_invoice_type", "invoice_id", "type"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)
     user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
     invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True)
     type = Column(
          Enum(
               NotificationType,
               name="notification_type",
               values_callable=lambda e: [m.value for m in e],
          ),
          nullable=False
     )
     title = Column(String(200), nullable=False)
     message = Column(Text, nullable=False)
     data = Column(JSON, nullable=True)
     is_read = Column(Boolean, default=False, nullable=False)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     user = relationship("User", back_populates="notifications")

     def __repr__(self):
          return f"<Notification(id={self.id}, type='{self.type.value}', user_id={self.user_id})>"
