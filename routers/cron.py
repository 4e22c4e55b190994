# routers/cron.py
"""
Endpoints for the external scheduler. Authenticated with CRON_SECRET,
not with a user token.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_session
from dependencies import verify_cron_secret
from services.overdue import expire_stale_drafts, notify_overdue_invoices

router = APIRouter(prefix="/api/cron", tags=["cron"], dependencies=[Depends(verify_cron_secret)])


@router.get("/check-overdue", summary="Notify about overdue invoices")
def check_overdue(db: Session = Depends(get_session)):
     """Creates at most one overdue notification per invoice per day. Statuses are left unchanged."""
     notifications = notify_overdue_invoices(db)
     return {"success": True, "notifications_created": len(notifications)}


@router.post("/expire-drafts", summary="Delete stale draft invoices")
def expire_drafts(db: Session = Depends(get_session)):
     deleted = expire_stale_drafts(db)
     return {"success": True, "deleted": deleted}
