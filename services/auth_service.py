"""
Auth Service - password hashing, JWT issuing and organization sign-up.
"""
import logging
import os
from datetime import datetime, timedelta
from typing import Optional

from jose import jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from models import Organization, User
from schemas.auth import ProfileUpdate, RegisterRequest
from services.errors import ConflictError, InvalidOperationError

log = logging.getLogger(__name__)

SECRET_KEY = os.getenv("JWT_SECRET")
ALGORITHM = "HS256"
TOKEN_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "720"))

# Bcrypt
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
     return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
     return pwd_context.verify(password, hashed)


def create_token(user: User, now: Optional[datetime] = None) -> str:
     now = now or datetime.utcnow()
     payload = {
          "id": user.id,
          "org_id": user.org_id,
          "role": user.role,
          "exp": now + timedelta(minutes=TOKEN_EXPIRE_MINUTES),
     }
     return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def register(db: Session, data: RegisterRequest) -> User:
     """
     Create an organization together with its first (ADMIN) user.

     Raises:
          ConflictError: email already registered
     """
     email = data.email.lower()
     if db.query(User.id).filter(User.email == email).first():
          raise ConflictError("Email is already registered")

     org = Organization(name=data.organization_name.strip(), email=email)
     user = User(
          organization=org,
          email=email,
          password=hash_password(data.password),
          name=data.name.strip(),
          role="ADMIN",
     )
     db.add(org)
     db.add(user)
     db.flush()
     log.info("Registered user id=%s with organization id=%s", user.id, org.id)
     return user


def authenticate(db: Session, email: str, password: str) -> User:
     """
     Raises:
          InvalidOperationError: unknown email or wrong password
     """
     user = db.query(User).filter(User.email == email.lower()).first()
     if not user or not verify_password(password, user.password):
          raise InvalidOperationError("Invalid credentials")
     return user


def update_profile(db: Session, user: User, data: ProfileUpdate) -> User:
     """
     Raises:
          ConflictError: another user already has the email
     """
     email = data.email.lower()
     if email != user.email:
          taken = db.query(User.id).filter(User.email == email, User.id != user.id).first()
          if taken:
               raise ConflictError("Email already in use")

     user.name = data.name.strip()
     user.email = email
     db.flush()
     log.info("Updated profile of user id=%s", user.id)
     return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
     """
     Raises:
          InvalidOperationError: current password is wrong
     """
     if not verify_password(current_password, user.password):
          raise InvalidOperationError("Current password is incorrect")
     user.password = hash_password(new_password)
     db.flush()
     log.info("Changed password of user id=%s", user.id)
