# routers/auth.py
"""
Registration and login. Registering creates a new organization together
with its first (ADMIN) user.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_session
from models import User
from routers._errors import http_error
from schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserInfo
from services import auth_service
from services.errors import ConflictError, InvalidOperationError

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _token_response(user: User) -> TokenResponse:
     return TokenResponse(
          token=auth_service.create_token(user),
          user=UserInfo(id=user.id, org_id=user.org_id, name=user.name, email=user.email, role=user.role),
     )


@router.post(
     "/register",
     response_model=TokenResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Register an organization and its admin user"
)
def register(body: RegisterRequest, db: Session = Depends(get_session)):
     try:
          user = auth_service.register(db, body)
     except ConflictError as e:
          raise http_error(e)
     return _token_response(user)


@router.post(
     "/login",
     response_model=TokenResponse,
     summary="Exchange credentials for a bearer token"
)
def login(body: LoginRequest, db: Session = Depends(get_session)):
     try:
          user = auth_service.authenticate(db, body.email, body.password)
     except InvalidOperationError:
          raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
     return _token_response(user)
