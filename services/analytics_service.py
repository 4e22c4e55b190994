"""
Analytics Service - dashboard figures and revenue reports for an organization.
"""
from calendar import monthrange
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import case, extract, func
from sqlalchemy.orm import Session

from models import Customer, Invoice
from models.invoice import InvoiceStatus


def _dec(value) -> float:
     return float(value or 0)


def dashboard_stats(db: Session, org_id: int, now: Optional[datetime] = None) -> dict:
     """
     - total_revenue: total of invoices paid during the current month
     - overdue_invoices: unpaid invoices past their due date
     - avg_payment_time: mean days from issue to payment over paid invoices
     - recent_invoices: the five most recently created invoices
     """
     now = now or datetime.utcnow()
     month_start = datetime(now.year, now.month, 1)
     month_end = datetime(now.year, now.month, monthrange(now.year, now.month)[1], 23, 59, 59, 999999)

     total_revenue = (
          db.query(func.coalesce(func.sum(Invoice.total), 0))
          .filter(
               Invoice.org_id == org_id,
               Invoice.status == InvoiceStatus.PAID,
               Invoice.paid_at >= month_start,
               Invoice.paid_at <= month_end,
          )
          .scalar()
     )

     overdue_count = (
          db.query(func.count(Invoice.id))
          .filter(
               Invoice.org_id == org_id,
               Invoice.status != InvoiceStatus.PAID,
               Invoice.due_date < now,
          )
          .scalar()
     )

     paid = (
          db.query(Invoice.issue_date, Invoice.paid_at)
          .filter(
               Invoice.org_id == org_id,
               Invoice.status == InvoiceStatus.PAID,
               Invoice.paid_at.isnot(None),
          )
          .all()
     )
     if paid:
          avg_payment_time = sum(
               (paid_at - issued).total_seconds() / 86400 for issued, paid_at in paid
          ) / len(paid)
     else:
          avg_payment_time = 0

     recent = (
          db.query(Invoice, Customer.name)
          .join(Customer, Invoice.customer_id == Customer.id)
          .filter(Invoice.org_id == org_id)
          .order_by(Invoice.created_at.desc(), Invoice.id.desc())
          .limit(5)
          .all()
     )

     return {
          "total_revenue": _dec(total_revenue),
          "overdue_invoices": overdue_count,
          "avg_payment_time": round(avg_payment_time, 2),
          "recent_invoices": [
               {
                    "id": invoice.id,
                    "invoice_no": invoice.invoice_no,
                    "customer_name": customer_name,
                    "total": _dec(invoice.total),
                    "status": invoice.status.value,
                    "issue_date": invoice.issue_date,
                    "due_date": invoice.due_date,
               }
               for invoice, customer_name in recent
          ],
     }


def _sum_if(status: InvoiceStatus):
     return func.coalesce(func.sum(case((Invoice.status == status, Invoice.total), else_=0)), 0)


def _count_if(status: InvoiceStatus):
     return func.coalesce(func.sum(case((Invoice.status == status, 1), else_=0)), 0)


def revenue_trends(db: Session, org_id: int, year: int) -> List[dict]:
     """Monthly revenue figures for invoices issued in year (months without invoices omitted)."""
     month = extract("month", Invoice.issue_date).label("month")
     rows = (
          db.query(
               month,
               func.coalesce(func.sum(Invoice.total), 0),
               _sum_if(InvoiceStatus.PAID),
               _sum_if(InvoiceStatus.SENT),
               _sum_if(InvoiceStatus.OVERDUE),
               func.count(Invoice.id),
               _count_if(InvoiceStatus.PAID),
               func.avg(Invoice.total),
          )
          .filter(
               Invoice.org_id == org_id,
               Invoice.issue_date >= datetime(year, 1, 1),
               Invoice.issue_date < datetime(year + 1, 1, 1),
          )
          .group_by(month)
          .order_by(month)
          .all()
     )
     return [
          {
               "year": year,
               "month": int(row[0]),
               "total_revenue": _dec(row[1]),
               "paid_revenue": _dec(row[2]),
               "pending_revenue": _dec(row[3]),
               "overdue_revenue": _dec(row[4]),
               "invoice_count": row[5],
               "paid_count": int(row[6]),
               "average_value": round(_dec(row[7]), 2),
          }
          for row in rows
     ]


def revenue_by_customer(db: Session, org_id: int, year: int, limit: int = 20) -> List[dict]:
     """Top customers by invoiced total in year, with their collection rate (paid / total, %)."""
     total = func.coalesce(func.sum(Invoice.total), 0)
     rows = (
          db.query(
               Customer.id,
               Customer.name,
               Customer.email,
               total.label("total_revenue"),
               _sum_if(InvoiceStatus.PAID),
               func.count(Invoice.id),
               func.avg(Invoice.total),
               func.max(Invoice.issue_date),
          )
          .join(Invoice, Invoice.customer_id == Customer.id)
          .filter(
               Invoice.org_id == org_id,
               Invoice.issue_date >= datetime(year, 1, 1),
               Invoice.issue_date < datetime(year + 1, 1, 1),
          )
          .group_by(Customer.id, Customer.name, Customer.email)
          .order_by(total.desc())
          .limit(limit)
          .all()
     )

     result = []
     for customer_id, name, email, total_revenue, paid_revenue, count, average, last_date in rows:
          total_revenue = Decimal(str(total_revenue or 0))
          paid_revenue = Decimal(str(paid_revenue or 0))
          rate = float(paid_revenue / total_revenue * 100) if total_revenue > 0 else 0.0
          result.append({
               "customer_id": customer_id,
               "customer_name": name,
               "customer_email": email,
               "total_revenue": float(total_revenue),
               "paid_revenue": float(paid_revenue),
               "invoice_count": count,
               "average_invoice_value": round(_dec(average), 2),
               "last_invoice_date": last_date,
               "collection_rate": round(rate, 2),
          })
     return result
