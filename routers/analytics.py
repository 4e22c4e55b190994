# routers/analytics.py
"""
Dashboard figures and revenue reports.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_session
from dependencies import verify_token
from services import analytics_service

router = APIRouter(prefix="/api", tags=["analytics"])


@router.get("/dashboard/stats", summary="Dashboard statistics")
def dashboard_stats(
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """
     - **total_revenue**: invoices paid this month
     - **overdue_invoices**: unpaid invoices past their due date
     - **avg_payment_time**: average days from issue to payment
     - **recent_invoices**: five most recent invoices
     """
     return analytics_service.dashboard_stats(db, token["org_id"])


@router.get("/analytics/revenue", summary="Revenue trends and top customers")
def revenue(
     year: Optional[int] = Query(None, ge=2000, le=2100, description="Defaults to the current year"),
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     year = year or datetime.utcnow().year
     return {
          "year": year,
          "monthly": analytics_service.revenue_trends(db, token["org_id"], year),
          "by_customer": analytics_service.revenue_by_customer(db, token["org_id"], year),
     }
