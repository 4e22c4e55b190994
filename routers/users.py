# routers/users.py
"""
Account settings of the signed-in user: profile and password.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_current_user
from models import User
from routers._errors import http_error
from schemas.auth import PasswordChange, ProfileUpdate, UserInfo
from services import auth_service
from services.errors import InvoicingError

router = APIRouter(prefix="/api/user", tags=["user"])


@router.put(
     "/profile",
     response_model=UserInfo,
     summary="Update name and email"
)
def update_profile(
     body: ProfileUpdate,
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     """
     Update the current user's name and email.

     **Errors:**
     - 409: the email belongs to another user
     """
     try:
          user = auth_service.update_profile(db, user, body)
     except InvoicingError as e:
          raise http_error(e)
     return UserInfo(id=user.id, org_id=user.org_id, name=user.name, email=user.email, role=user.role)


@router.put("/password", summary="Change password")
def change_password(
     body: PasswordChange,
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     """
     **Errors:**
     - 400: current password is incorrect
     """
     try:
          auth_service.change_password(db, user, body.current_password, body.new_password)
     except InvoicingError as e:
          raise http_error(e)
     return {"success": True}
