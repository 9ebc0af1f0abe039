"""User schemas"""

from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional
from datetime import datetime


class UserRegister(BaseModel):
    """Self-registration schema"""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)


class UserLogin(BaseModel):
    """User login schema"""
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserCreate(BaseModel):
    """Admin-side user creation; a strong password is generated when omitted"""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: Optional[str] = Field(None, min_length=8, max_length=128)


class UserUpdate(BaseModel):
    """Profile update; only provided fields change"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)

    @model_validator(mode="after")
    def new_differs_from_current(self):
        if self.new_password == self.current_password:
            raise ValueError("New password must differ from the current password")
        return self


class UserResponse(BaseModel):
    """User response schema"""
    id: int
    name: str
    email: str
    admin_id: Optional[int] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserCredentials(BaseModel):
    """User plus the plaintext password, returned once"""
    user: UserResponse
    password: str
