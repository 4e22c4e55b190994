# routers/notifications.py
"""
In-app notifications of the current user.
"""
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from database import get_session
from dependencies import verify_token
from schemas.notification import MarkReadRequest, NotificationResponse
from services import notification_service

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get(
     "/unread",
     response_model=List[NotificationResponse],
     summary="Unread notifications, newest first"
)
def unread(
     limit: int = Query(50, ge=1, le=200),
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     return [
          NotificationResponse.model_validate(n)
          for n in notification_service.list_unread(db, token["id"], limit=limit)
     ]


@router.post("/mark-read", summary="Mark notifications as read")
def mark_read(
     body: Optional[MarkReadRequest] = Body(None),
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """Marks the listed ids, or every unread notification when ids is omitted."""
     count = notification_service.mark_read(db, token["id"], body.ids if body else None)
     return {"success": True, "updated": count}
