# models/__init__.py
from .base import Base
from .organization import Organization
from .user import User
from .customer import Customer
from .invoice import Invoice, InvoiceItem, InvoiceReminder
from .invoice_sequence import InvoiceSequence
from .payment import Payment
from .notification import Notification

__all__ = [
     "Base",
     "Organization",
     "User",
     "Customer",
     "Invoice",
     "InvoiceItem",
     "InvoiceReminder",
     "InvoiceSequence",
     "Payment",
     "Notification",
]
