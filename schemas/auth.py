"""
Pydantic schemas for registration and login.
"""
from pydantic import BaseModel, Field, EmailStr, ConfigDict


class RegisterRequest(BaseModel):
     name: str = Field(..., min_length=1, max_length=200)
     email: EmailStr
     password: str = Field(..., min_length=8, max_length=128)
     organization_name: str = Field(..., min_length=1, max_length=100)


class LoginRequest(BaseModel):
     email: EmailStr
     password: str


class UserInfo(BaseModel):
     id: int
     org_id: int
     name: str
     email: str
     role: str


class TokenResponse(BaseModel):
     token: str
     user: UserInfo


class ProfileUpdate(BaseModel):
     name: str = Field(..., min_length=1, max_length=200)
     email: EmailStr


class PasswordChange(BaseModel):
     current_password: str = Field(..., alias="currentPassword")
     new_password: str = Field(..., alias="newPassword", min_length=8, max_length=128)

     model_config = ConfigDict(populate_by_name=True)
