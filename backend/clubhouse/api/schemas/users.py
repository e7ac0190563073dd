"""User administration request models."""

from typing import Optional

from pydantic import BaseModel, Field


class UserCreateRequest(BaseModel):
    name: str = Field(..., max_length=255)
    email: str = Field(..., max_length=255)
    password: str
    password_confirmation: Optional[str] = None
    type: str = Field(..., description="One of the user type values")
    phone: Optional[str] = Field(None, max_length=20)


class UserUpdateRequest(BaseModel):
    """Admins send every field; staff only send type."""

    type: str
    name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)


class PasswordChangeRequest(BaseModel):
    password: str
    password_confirmation: Optional[str] = None
