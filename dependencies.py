# dependencies.py
"""
Shared FastAPI dependencies: bearer-token verification, the current user
and the cron secret check.
"""
import os

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from database import get_session
from models import User
from services.auth_service import ALGORITHM, SECRET_KEY


# Token Auth Dependency
def verify_token(request: Request) -> dict:
     auth = request.headers.get("Authorization")
     if not auth or not auth.startswith("Bearer "):
          raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
     token = auth.split(" ")[1]
     try:
          payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
     except JWTError:
          raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")
     if not payload.get("id") or not payload.get("org_id"):
          raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")
     return payload


def get_current_user(
     token: dict = Depends(verify_token),
     db: Session = Depends(get_session),
) -> User:
     user = db.query(User).filter(User.id == token["id"], User.org_id == token["org_id"]).first()
     if not user:
          raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User no longer exists")
     return user


def verify_cron_secret(request: Request) -> None:
     """Scheduled jobs authenticate with `Authorization: Bearer <CRON_SECRET>`."""
     secret = os.getenv("CRON_SECRET")
     if not secret or request.headers.get("Authorization") != f"Bearer {secret}":
          raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
