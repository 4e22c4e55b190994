"""
Pydantic schemas for in-app notifications.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, field_validator


class NotificationResponse(BaseModel):
     id: int
     type: str
     title: str
     message: str
     data: Optional[dict] = None
     invoice_id: Optional[int] = None
     is_read: bool
     created_at: datetime

     @field_validator("type", mode="before")
     @classmethod
     def type_value(cls, value):
          return getattr(value, "value", value)

     model_config = ConfigDict(from_attributes=True)


class MarkReadRequest(BaseModel):
     """Omit ids to mark every unread notification as read."""
     ids: Optional[List[int]] = None
