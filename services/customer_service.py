"""
Customer Service - customer CRUD scoped to an organization.

Customers referenced by invoices are never physically deleted; delete_customer
deactivates them instead.
"""
import logging
from math import ceil
from typing import Optional, Tuple, List

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from models import Customer, Invoice
from models.invoice import InvoiceStatus
from schemas.customer import CustomerCreate, CustomerUpdate
from services.errors import ConflictError, NotFoundError

log = logging.getLogger(__name__)

SORTABLE_FIELDS = {
     "createdAt": Customer.created_at,
     "created_at": Customer.created_at,
     "name": Customer.name,
     "email": Customer.email,
     "outstanding_balance": Customer.outstanding_balance,
     "total_invoiced": Customer.total_invoiced,
}

ADDRESS_FIELDS = ("street", "city", "state", "zip_code", "country")


def _apply_address(customer: Customer, address: Optional[dict], prefix: str = "") -> None:
     if address is None:
          return
     for field in ADDRESS_FIELDS:
          setattr(customer, prefix + field, address.get(field))


def _email_taken(db: Session, org_id: int, email: str, exclude_id: Optional[int] = None) -> bool:
     query = db.query(Customer.id).filter(Customer.org_id == org_id, Customer.email == email)
     if exclude_id is not None:
          query = query.filter(Customer.id != exclude_id)
     return query.first() is not None


def get_customer(db: Session, org_id: int, customer_id: int) -> Customer:
     customer = (
          db.query(Customer)
          .filter(Customer.id == customer_id, Customer.org_id == org_id)
          .first()
     )
     if not customer:
          raise NotFoundError(f"Customer with ID {customer_id} not found")
     return customer


def create_customer(db: Session, org_id: int, data: CustomerCreate, user_id: Optional[int] = None) -> Customer:
     """
     Raises:
          ConflictError: a customer with this email already exists in the organization
     """
     if _email_taken(db, org_id, data.email):
          raise ConflictError("Customer with this email already exists")

     fields = data.model_dump(exclude={"address", "billing_address"})
     customer = Customer(org_id=org_id, created_by=user_id, is_active=True, **fields)
     _apply_address(customer, data.address.model_dump() if data.address else None)
     _apply_address(customer, data.billing_address.model_dump() if data.billing_address else None, "billing_")

     db.add(customer)
     db.flush()
     log.info("Created customer id=%s for org_id=%s", customer.id, org_id)
     return customer


def update_customer(db: Session, org_id: int, customer_id: int, data: CustomerUpdate) -> Customer:
     customer = get_customer(db, org_id, customer_id)
     fields = data.model_dump(exclude_unset=True, exclude={"address", "billing_address"})

     if fields.get("email") and fields["email"] != customer.email:
          if _email_taken(db, org_id, fields["email"], exclude_id=customer.id):
               raise ConflictError("Customer with this email already exists")

     for key, value in fields.items():
          if key in ("name", "email", "is_active") and value is None:
               continue
          setattr(customer, key, value)

     if data.address is not None:
          _apply_address(customer, data.address.model_dump())
     if data.billing_address is not None:
          _apply_address(customer, data.billing_address.model_dump(), "billing_")

     db.flush()
     return customer


def delete_customer(db: Session, org_id: int, customer_id: int) -> Tuple[bool, Optional[Customer]]:
     """
     Delete a customer, or deactivate it when invoices reference it.

     Returns:
          (deactivated, customer) - customer is None when the row was deleted
     """
     customer = get_customer(db, org_id, customer_id)
     invoice_count = db.query(func.count(Invoice.id)).filter(Invoice.customer_id == customer.id).scalar()

     if invoice_count:
          customer.deactivate()
          db.flush()
          log.info("Customer id=%s deactivated (%d invoices)", customer.id, invoice_count)
          return True, customer

     db.delete(customer)
     db.flush()
     return False, None


def list_customers(
     db: Session,
     org_id: int,
     search: str = "",
     status: str = "all",
     sort_by: str = "createdAt",
     sort_order: str = "desc",
     page: int = 1,
     limit: int = 10,
) -> Tuple[List[Customer], dict]:
     query = db.query(Customer).filter(Customer.org_id == org_id)

     if search:
          pattern = f"%{search}%"
          query = query.filter(or_(Customer.name.ilike(pattern), Customer.email.ilike(pattern)))

     if status != "all":
          query = query.filter(Customer.is_active.is_(status == "active"))

     column = SORTABLE_FIELDS.get(sort_by, Customer.created_at)
     order = column.desc() if sort_order == "desc" else column.asc()

     total = query.count()
     customers = (
          query.order_by(order, Customer.id.desc() if sort_order == "desc" else Customer.id.asc())
          .offset((page - 1) * limit)
          .limit(limit)
          .all()
     )

     total_pages = ceil(total / limit) if limit else 0
     pagination = {
          "page": page,
          "limit": limit,
          "total": total,
          "total_pages": total_pages,
          "has_next": page < total_pages,
          "has_prev": page > 1,
     }
     return customers, pagination


def customer_invoice_stats(db: Session, customer_id: int) -> dict:
     """Aggregate figures over all of a customer's invoices."""
     row = (
          db.query(
               func.count(Invoice.id),
               func.coalesce(func.sum(Invoice.total), 0),
               func.coalesce(func.sum(case((Invoice.status == InvoiceStatus.PAID, Invoice.total), else_=0)), 0),
               func.coalesce(func.sum(case((Invoice.status == InvoiceStatus.OVERDUE, Invoice.total), else_=0)), 0),
               func.max(Invoice.created_at),
          )
          .filter(Invoice.customer_id == customer_id)
          .one()
     )
     return {
          "total_invoices": row[0] or 0,
          "total_amount": row[1],
          "paid_amount": row[2],
          "overdue_amount": row[3],
          "last_invoice_date": row[4],
     }
