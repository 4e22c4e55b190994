# models/user.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from .base import Base


class User(Base):
     """
     User model - an organization member who can log in.
     """
     __tablename__ = "users"

     id = Column(Integer, primary_key=True, autoincrement=True)
     org_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
     email = Column(String(255), unique=True, nullable=False, index=True)
     password = Column(String(255), nullable=False)
     name = Column(String(200), nullable=False)
     role = Column(String(50), default="USER", nullable=False)  # ADMIN, USER
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     organization = relationship("Organization", back_populates="users")
     notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

     def __repr__(self):
          return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
